# reservations/forms.py

from django import forms
from django.core.exceptions import ValidationError

from pricing.selectors import load_pricing_snapshot
from pricing.services import PricingError, calculate_price_breakdown
from .models import Booking
from .selectors import check_availability

# Changing any of these reprices the booking.
REPRICING_FIELDS = {
    'start_date', 'end_date', 'num_adults', 'num_children', 'with_extra_room',
    'manual_discount_percentage',
}


class BookingAdminForm(forms.ModelForm):
    """
    Back-office booking form. Rejects illegal status changes before anything
    is saved. Dates and prices are only checked for new bookings and when a
    field that affects the price changed, so payments can still be recorded
    on bookings whose season has since been edited or removed.
    """

    class Meta:
        model = Booking
        fields = [
            'guest', 'start_date', 'end_date', 'num_adults', 'num_children',
            'with_extra_room', 'special_requests', 'status',
            'manual_discount_percentage', 'manual_discount_reason',
            'deposit_paid', 'remaining_paid',
        ]

    @property
    def needs_repricing(self):
        return self.instance.pk is None or bool(REPRICING_FIELDS & set(self.changed_data))

    def clean_status(self):
        new_status = self.cleaned_data['status']
        if self.instance.pk and not self.instance.can_transition_to(new_status):
            raise ValidationError(
                f"Statuswechsel von '{self.instance.get_status_display()}' nach "
                f"'{dict(Booking.STATUS_CHOICES)[new_status]}' ist nicht erlaubt."
            )
        return new_status

    def clean(self):
        cleaned_data = super().clean()
        start_date = cleaned_data.get('start_date')
        end_date = cleaned_data.get('end_date')
        new_status = cleaned_data.get('status')

        if new_status == Booking.STATUS_CANCELLED:
            if (cleaned_data.get('deposit_paid') and 'deposit_paid' in self.changed_data) or \
               (cleaned_data.get('remaining_paid') and 'remaining_paid' in self.changed_data):
                raise ValidationError("Für stornierte Buchungen können keine Zahlungen erfasst werden.")
            return cleaned_data

        if not start_date or not end_date:
            return cleaned_data
        if end_date <= start_date:
            raise ValidationError({'end_date': "Das Abreisedatum muss nach dem Anreisedatum liegen."})

        if not self.needs_repricing:
            return cleaned_data

        availability = check_availability(start_date, end_date, exclude_booking_id=self.instance.pk)
        if not availability['available']:
            raise ValidationError(availability['reason'])

        try:
            calculate_price_breakdown(
                load_pricing_snapshot(start_date), start_date, end_date,
                cleaned_data.get('num_adults') or 1, cleaned_data.get('num_children') or 0,
                with_extra_room=cleaned_data.get('with_extra_room') or False,
            )
        except PricingError as exc:
            raise ValidationError(str(exc))
        return cleaned_data
