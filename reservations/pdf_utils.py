# reservations/pdf_utils.py
# version: 2.0.0
# REFACTOR: German booking confirmation for the apartment; WeasyPrint is loaded on first use.

from pathlib import Path

from django.conf import settings
from django.template.loader import render_to_string

from core.models import SiteSettings
from pricing.models import PaymentSettings


def render_booking_confirmation_html(booking) -> str:
    context = {
        'booking': booking,
        'guest': booking.guest,
        'booked_fees': booking.booked_fees.all(),
        'site': SiteSettings.get_solo(),
        'payment_settings': PaymentSettings.get_active(),
    }
    return render_to_string('reservations/pdf/booking_confirmation.html', context)


def generate_booking_confirmation_pdf(booking) -> bytes:
    """
    Generates the PDF confirmation for a booking using WeasyPrint.
    """
    # WeasyPrint needs Pango at import time, so it is only loaded where PDFs are built.
    from weasyprint import HTML

    html_string = render_booking_confirmation_html(booking)
    # Relative asset paths (logo, fonts) resolve against the collected static files.
    base_url = Path(settings.STATIC_ROOT).as_uri() + '/'
    return HTML(string=html_string, base_url=base_url).write_pdf()
