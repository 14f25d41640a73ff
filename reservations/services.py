# reservations/services.py
# version: 1.0.0
# FEATURE: Booking creation and updates in a single transaction, status transitions,
#          payment flags and the sweep of expired unpaid bookings.

import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from core.models import SiteSettings
from core.utils import format_currency, format_date
from pricing.models import Fee, PaymentSettings
from pricing.selectors import load_pricing_snapshot
from pricing.services import PricingError, calculate_price_breakdown
from .models import Booking, BookedFee, Guest
from .selectors import check_availability

logger = logging.getLogger(__name__)

GUEST_UPDATE_FIELDS = ('first_name', 'last_name', 'phone', 'preferred_language', 'marketing_consent')
GUEST_ADDRESS_FIELDS = ('address_line_1', 'city', 'zip_code', 'country')


class BookingError(Exception):
    """The stay cannot be booked; the message is shown to the guest as is."""


def upsert_guest(email, **data):
    """
    Finds the guest by e-mail (case-insensitive) or creates one. A returning
    guest gets name, phone, language and consent from the latest booking;
    address fields are only overwritten when new values were given.
    """
    email = email.strip().lower()
    guest = Guest.objects.filter(email__iexact=email).first()
    if guest is None:
        return Guest.objects.create(email=email, **data)

    changed = []
    for field in GUEST_UPDATE_FIELDS + GUEST_ADDRESS_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field in GUEST_ADDRESS_FIELDS and not value:
            continue
        if getattr(guest, field) != value:
            setattr(guest, field, value)
            changed.append(field)
    if changed:
        guest.save(update_fields=changed + ['updated_at'])
    return guest


def _locked_payment_settings():
    # Every booking write locks this row, so two bookings cannot pass the
    # availability check at the same time.
    payment_settings = PaymentSettings.get_active(lock=True)
    if payment_settings is None:
        raise PricingError("Es sind keine aktiven Zahlungseinstellungen hinterlegt.")
    return payment_settings


def _apply_breakdown(booking, breakdown):
    booking.total_price = breakdown['total_online']
    booking.total_on_site = breakdown['total_on_site']
    booking.room_surcharge = breakdown['room_surcharge']
    booking.discount_amount = breakdown['discount_total']
    booking.deposit_amount = breakdown['deposit_amount']
    booking.deposit_due_date = breakdown['deposit_due_date']
    booking.remaining_amount = breakdown['remaining_amount']
    booking.remaining_due_date = breakdown['remaining_due_date']


def _store_booked_fees(booking, breakdown):
    booking.booked_fees.all().delete()
    rows = []
    for is_optional, lines in ((False, breakdown['mandatory_fees']), (True, breakdown['optional_fees'])):
        for line in lines:
            rows.append(BookedFee(
                booking=booking,
                fee_id=line['id'],
                name=line['name'],
                amount=line['amount'],
                payment_location=line['payment_location'],
                is_optional=is_optional,
            ))
    BookedFee.objects.bulk_create(rows)


@transaction.atomic
def create_booking(guest_data, start_date, end_date, num_adults, num_children=0,
                   with_extra_room=False, selected_fee_ids=(), special_requests='',
                   manual_discount_percentage=0, manual_discount_reason='',
                   status=Booking.STATUS_PENDING):
    """
    Checks availability, prices the stay and stores guest, booking and booked
    fees. Raises BookingError or PricingError; nothing is written in that case.
    """
    payment_settings = _locked_payment_settings()

    availability = check_availability(start_date, end_date)
    if not availability['available']:
        raise BookingError(availability['reason'])

    snapshot = load_pricing_snapshot(start_date, payment_settings=payment_settings)
    breakdown = calculate_price_breakdown(
        snapshot, start_date, end_date, num_adults, num_children,
        with_extra_room=with_extra_room,
        selected_fee_ids=selected_fee_ids,
        manual_discount_percentage=manual_discount_percentage,
        manual_discount_reason=manual_discount_reason,
    )

    guest_data = dict(guest_data)
    guest = upsert_guest(guest_data.pop('email'), **guest_data)

    booking = Booking(
        guest=guest,
        start_date=start_date,
        end_date=end_date,
        num_adults=num_adults,
        num_children=num_children,
        with_extra_room=with_extra_room,
        special_requests=special_requests,
        manual_discount_percentage=manual_discount_percentage or 0,
        manual_discount_reason=manual_discount_reason or '',
        status=status,
    )
    _apply_breakdown(booking, breakdown)
    booking.save()
    _store_booked_fees(booking, breakdown)

    logger.info("Booking %s created for %s (%s - %s, %s €)",
                booking.reference, guest.email, start_date, end_date, booking.total_price)
    return booking


@transaction.atomic
def update_booking(booking, **changes):
    """
    Applies back-office edits (dates, guests, extra room, optional fees,
    manual discount, requests) and reprices the booking. The availability
    check ignores the booking itself.
    """
    payment_settings = _locked_payment_settings()
    booking = Booking.objects.select_for_update().get(pk=booking.pk)
    if booking.status == Booking.STATUS_CANCELLED:
        raise BookingError("Stornierte Buchungen können nicht bearbeitet werden.")

    selected_fee_ids = changes.pop('selected_fee_ids', None)
    if selected_fee_ids is None:
        selected_fee_ids = list(
            booking.booked_fees.filter(is_optional=True, fee__isnull=False).values_list('fee_id', flat=True)
        )

    for field in ('start_date', 'end_date', 'num_adults', 'num_children', 'with_extra_room',
                  'special_requests', 'manual_discount_percentage', 'manual_discount_reason'):
        if field in changes:
            setattr(booking, field, changes[field])

    availability = check_availability(booking.start_date, booking.end_date, exclude_booking_id=booking.pk)
    if not availability['available']:
        raise BookingError(availability['reason'])

    snapshot = load_pricing_snapshot(booking.start_date, payment_settings=payment_settings)
    breakdown = calculate_price_breakdown(
        snapshot, booking.start_date, booking.end_date, booking.num_adults, booking.num_children,
        with_extra_room=booking.with_extra_room,
        selected_fee_ids=selected_fee_ids,
        manual_discount_percentage=booking.manual_discount_percentage,
        manual_discount_reason=booking.manual_discount_reason,
    )
    _apply_breakdown(booking, breakdown)
    booking.save()
    _store_booked_fees(booking, breakdown)

    logger.info("Booking %s updated, new online total %s €", booking.reference, booking.total_price)
    return booking


def change_status(booking, new_status):
    if new_status == booking.status:
        return booking
    if not booking.can_transition_to(new_status):
        raise ValidationError(
            f"Statuswechsel von '{booking.get_status_display()}' nach "
            f"'{dict(Booking.STATUS_CHOICES).get(new_status, new_status)}' ist nicht erlaubt."
        )
    old_status = booking.status
    booking.status = new_status
    booking.save(update_fields=['status', 'updated_at'])
    logger.info("Booking %s: %s -> %s", booking.reference, old_status, new_status)
    return booking


def mark_payment(booking, deposit_paid=None, remaining_paid=None):
    if booking.status == Booking.STATUS_CANCELLED and (deposit_paid or remaining_paid):
        raise ValidationError("Für stornierte Buchungen können keine Zahlungen erfasst werden.")

    now = timezone.now()
    update_fields = []
    for flag, value in (('deposit_paid', deposit_paid), ('remaining_paid', remaining_paid)):
        if value is None or getattr(booking, flag) == value:
            continue
        setattr(booking, flag, value)
        setattr(booking, f'{flag}_at', now if value else None)
        update_fields += [flag, f'{flag}_at']

    if update_fields:
        booking.save(update_fields=update_fields + ['updated_at'])
    return booking


def cancel_expired_pending_bookings(today=None):
    """
    Cancels pending bookings whose deposit is overdue. Does nothing unless
    AUTO_CANCEL_UNPAID_BOOKINGS is switched on.
    """
    if not settings.AUTO_CANCEL_UNPAID_BOOKINGS:
        logger.debug("Automatic cancellation of unpaid bookings is disabled.")
        return 0

    today = today or timezone.localdate()
    expired = Booking.objects.filter(
        status=Booking.STATUS_PENDING,
        deposit_paid=False,
        deposit_due_date__lt=today,
    )
    cancelled = 0
    for booking in expired:
        change_status(booking, Booking.STATUS_CANCELLED)
        cancelled += 1
    if cancelled:
        logger.info("Cancelled %s pending bookings with overdue deposit.", cancelled)
    return cancelled


def booking_email_data(booking, language=None):
    """Placeholder values for the booking e-mail templates and the PDF."""
    language = language or booking.guest.preferred_language
    site_settings = SiteSettings.get_solo()
    payment_settings = PaymentSettings.get_active()
    fees = booking.booked_fees.all()

    return {
        'reference': booking.reference,
        'guest_name': booking.guest.full_name,
        'first_name': booking.guest.first_name,
        'last_name': booking.guest.last_name,
        'email': booking.guest.email,
        'start_date': format_date(booking.start_date),
        'end_date': format_date(booking.end_date),
        'nights': booking.nights,
        'num_adults': booking.num_adults,
        'num_children': booking.num_children,
        'special_requests': booking.special_requests,
        'total_price': format_currency(booking.total_price),
        'total_on_site': format_currency(booking.total_on_site),
        'deposit_amount': format_currency(booking.deposit_amount),
        'deposit_due_date': format_date(booking.deposit_due_date),
        'remaining_amount': format_currency(booking.remaining_amount),
        'remaining_due_date': format_date(booking.remaining_due_date),
        'online_fees': [
            {'name': fee.name, 'amount': format_currency(fee.amount)}
            for fee in fees if fee.payment_location == Fee.PaymentLocation.ONLINE
        ],
        'on_site_fees': [
            {'name': fee.name, 'amount': format_currency(fee.amount)}
            for fee in fees if fee.payment_location == Fee.PaymentLocation.ON_SITE
        ],
        'bank_holder': payment_settings.bank_holder if payment_settings else '',
        'bank_iban': payment_settings.bank_iban if payment_settings else '',
        'bank_bic': payment_settings.bank_bic if payment_settings else '',
        'site_name': site_settings.site_name,
        'language': language,
    }
