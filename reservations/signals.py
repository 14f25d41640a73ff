# reservations/signals.py
# version: 2.0.0
# REFACTOR: Booking e-mails are queued after the surrounding transaction commits.
#           SMS notifications and payment confirmations removed.

import logging

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from notifications.tasks import send_booking_email_task
from .models import Booking

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Booking)
def send_booking_notifications(sender, instance, created, **kwargs):
    """
    A new pending booking gets the 'booking_received' mail. The confirmation
    mail with the PDF goes out once, when the booking is confirmed.
    """
    booking_id = instance.pk

    if instance.status == Booking.STATUS_CONFIRMED and not instance.notification_sent:
        # Mark as notified to prevent duplicate sends
        Booking.objects.filter(pk=booking_id).update(notification_sent=True)
        instance.notification_sent = True
        transaction.on_commit(lambda: send_booking_email_task.delay(booking_id, 'booking_confirmation', attach_pdf=True))
        logger.info("Queued confirmation mail for booking %s", instance.reference)
        return

    if created and instance.status == Booking.STATUS_PENDING:
        transaction.on_commit(lambda: send_booking_email_task.delay(booking_id, 'booking_received'))
        logger.info("Queued 'booking received' mail for booking %s", instance.reference)
