# reservations/selectors.py
# version: 1.0.0
# FEATURE: Availability of the apartment, calendar highlighting and the back-office dashboard.

from datetime import timedelta

from django.db.models import Sum
from django.utils import timezone

from content.models import Message
from pricing.selectors import get_pricing_period
from pricing.services import PricingError
from .models import Booking, BlockedDate

ALREADY_BOOKED = "Der gewählte Zeitraum ist bereits gebucht"
BLOCKED = "Der gewählte Zeitraum ist gesperrt"


def overlapping_bookings(start_date, end_date, exclude_booking_id=None):
    """
    Non-cancelled bookings sharing at least one night with [start_date, end_date).
    A stay may start on the departure day of another.
    """
    queryset = Booking.objects.exclude(status=Booking.STATUS_CANCELLED).filter(
        start_date__lt=end_date,
        end_date__gt=start_date,
    )
    if exclude_booking_id is not None:
        queryset = queryset.exclude(pk=exclude_booking_id)
    return queryset


def overlapping_blocks(start_date, end_date):
    # Blocked ranges include their last day.
    return BlockedDate.objects.filter(start_date__lt=end_date, end_date__gte=start_date)


def check_availability(start_date, end_date, exclude_booking_id=None):
    """
    Returns {"available": bool, "reason": str | None}. The first failing check wins:
    existing bookings, blocked ranges, then the stay length allowed by the pricing period.
    """
    if overlapping_bookings(start_date, end_date, exclude_booking_id).exists():
        return {"available": False, "reason": ALREADY_BOOKED}

    if overlapping_blocks(start_date, end_date).exists():
        return {"available": False, "reason": BLOCKED}

    try:
        period = get_pricing_period(start_date)
    except PricingError as exc:
        return {"available": False, "reason": str(exc)}

    nights = (end_date - start_date).days
    if nights < period.min_nights or nights > period.max_nights:
        return {
            "available": False,
            "reason": f"Aufenthaltsdauer muss zwischen {period.min_nights} und {period.max_nights} Nächten liegen",
        }

    return {"available": True, "reason": None}


def get_blocked_dates(start_date=None, end_date=None):
    """
    Every date that cannot be booked as a night, sorted and without duplicates.
    Bookings contribute their nights (arrival up to the day before departure),
    blocked ranges every day from start to end.
    """
    bookings = Booking.objects.exclude(status=Booking.STATUS_CANCELLED)
    blocks = BlockedDate.objects.all()
    if start_date:
        bookings = bookings.filter(end_date__gt=start_date)
        blocks = blocks.filter(end_date__gte=start_date)
    if end_date:
        bookings = bookings.filter(start_date__lte=end_date)
        blocks = blocks.filter(start_date__lte=end_date)

    dates = set()
    for first, last in bookings.values_list('start_date', 'end_date'):
        dates.update(first + timedelta(days=i) for i in range((last - first).days))
    for first, last in blocks.values_list('start_date', 'end_date'):
        dates.update(first + timedelta(days=i) for i in range((last - first).days + 1))

    if start_date:
        dates = {d for d in dates if d >= start_date}
    if end_date:
        dates = {d for d in dates if d <= end_date}
    return sorted(dates)


def dashboard_summary(today=None):
    today = today or timezone.localdate()
    active = Booking.objects.exclude(status=Booking.STATUS_CANCELLED)
    upcoming = active.filter(start_date__gte=today, start_date__lte=today + timedelta(days=30)).select_related('guest').order_by('start_date')
    revenue = Booking.objects.filter(
        status=Booking.STATUS_CONFIRMED,
        start_date__year=today.year,
    ).aggregate(total=Sum('total_price'))['total']

    return {
        'upcoming_arrivals': upcoming,
        'pending_count': Booking.objects.filter(status=Booking.STATUS_PENDING).count(),
        'unread_messages': Message.objects.filter(is_read=False, archived=False).count(),
        'revenue_this_year': revenue or 0,
    }
