# notifications/tasks.py
# version: 2.0.0
# REFACTOR: E-mails are rendered from the templates stored in the database and logged.
#           SMS delivery removed.

import logging

from celery import shared_task

from reservations.models import Booking
from reservations.pdf_utils import generate_booking_confirmation_pdf
from reservations.services import booking_email_data
from .services import send_email

logger = logging.getLogger(__name__)


@shared_task
def send_email_task(to, template_name=None, subject=None, content=None, data=None, language='de'):
    """
    Celery task wrapper around send_email; the result dict is the task result.
    """
    return send_email(to, template_name=template_name, subject=subject, content=content,
                      data=data, language=language)


@shared_task
def send_booking_email_task(booking_id, template_name, attach_pdf=False):
    """
    Sends a booking template to the guest in their preferred language,
    optionally with the PDF confirmation attached. A failing PDF does not stop
    the mail.
    """
    try:
        booking = Booking.objects.select_related('guest').get(id=booking_id)
    except Booking.DoesNotExist:
        logger.error("Booking with id %s does not exist.", booking_id)
        return {'success': False, 'error': "Buchung nicht gefunden."}

    attachments = []
    if attach_pdf:
        try:
            attachments.append((
                f'buchungsbestaetigung_{booking.reference}.pdf',
                generate_booking_confirmation_pdf(booking),
                'application/pdf',
            ))
        except Exception:
            logger.exception("PDF generation failed for booking %s, sending without attachment", booking.reference)

    language = booking.guest.preferred_language
    return send_email(
        booking.guest.email,
        template_name=template_name,
        data=booking_email_data(booking, language),
        language=language,
        attachments=attachments,
    )
