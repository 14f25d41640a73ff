# reservations/tasks.py

from celery import shared_task

from .services import cancel_expired_pending_bookings


@shared_task
def cancel_expired_pending_bookings_task():
    """Daily sweep (Celery beat) of pending bookings with an overdue deposit."""
    cancelled = cancel_expired_pending_bookings()
    return f"Cancelled {cancelled} expired bookings."
