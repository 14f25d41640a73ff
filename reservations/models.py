# reservations/models.py
# version: 1.0.0
# REFACTOR: Hotel room bookings replaced by stays in the apartment. Guests are stored once per
#           e-mail address, booked fees are snapshotted per booking and admins can block date ranges.

import logging
import random
import string

from django.core.exceptions import ValidationError
from django.db import IntegrityError, models, transaction
from django.utils import timezone

from core.models import TimeStampedModel, LANGUAGE_CHOICES, DEFAULT_LANGUAGE
from pricing.models import Fee


logger = logging.getLogger(__name__)

# Retries when the random suffix is already taken.
REFERENCE_ATTEMPTS = 5


def generate_booking_reference():
    """CDB-<yymm>-<4 random characters>, e.g. CDB-2607-K4TQ."""
    suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"CDB-{timezone.now():%y%m}-{suffix}"


class Guest(TimeStampedModel):
    first_name = models.CharField(max_length=100, verbose_name="Vorname")
    last_name = models.CharField(max_length=100, verbose_name="Nachname")
    email = models.EmailField(unique=True, verbose_name="E-Mail")
    phone = models.CharField(max_length=30, blank=True, verbose_name="Telefon")
    preferred_language = models.CharField(max_length=2, choices=LANGUAGE_CHOICES, default=DEFAULT_LANGUAGE, verbose_name="Bevorzugte Sprache")
    marketing_consent = models.BooleanField(default=False, verbose_name="Newsletter-Einwilligung")
    address_line_1 = models.CharField(max_length=255, blank=True, verbose_name="Straße und Hausnummer")
    city = models.CharField(max_length=100, blank=True, verbose_name="Ort")
    zip_code = models.CharField(max_length=20, blank=True, verbose_name="PLZ")
    country = models.CharField(max_length=100, blank=True, verbose_name="Land")

    class Meta:
        verbose_name = "Gast"
        verbose_name_plural = "Gäste"
        ordering = ['last_name', 'first_name']

    def __str__(self):
        return f"{self.full_name} <{self.email}>"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class Booking(TimeStampedModel):
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'Angefragt'),
        (STATUS_CONFIRMED, 'Bestätigt'),
        (STATUS_CANCELLED, 'Storniert'),
    )
    # Cancelled is terminal; nothing goes back to pending.
    ALLOWED_TRANSITIONS = {
        STATUS_PENDING: {STATUS_CONFIRMED, STATUS_CANCELLED},
        STATUS_CONFIRMED: {STATUS_CANCELLED},
        STATUS_CANCELLED: set(),
    }

    reference = models.CharField(max_length=20, unique=True, default=generate_booking_reference, editable=False, verbose_name="Buchungsnummer")
    guest = models.ForeignKey(Guest, on_delete=models.PROTECT, related_name="bookings", verbose_name="Gast")
    start_date = models.DateField(verbose_name="Anreise")
    end_date = models.DateField(verbose_name="Abreise")
    num_adults = models.PositiveSmallIntegerField(default=2, verbose_name="Erwachsene")
    num_children = models.PositiveSmallIntegerField(default=0, verbose_name="Kinder")
    special_requests = models.TextField(blank=True, verbose_name="Besondere Wünsche")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, verbose_name="Status")

    # Amounts are copied from the price breakdown at booking time.
    total_price = models.DecimalField(max_digits=10, decimal_places=2, default=0, verbose_name="Gesamtpreis online (€)")
    total_on_site = models.DecimalField(max_digits=10, decimal_places=2, default=0, verbose_name="Vor Ort zu zahlen (€)")
    with_extra_room = models.BooleanField(default=False, verbose_name="Nebenzimmer gebucht")
    room_surcharge = models.DecimalField(max_digits=10, decimal_places=2, default=0, verbose_name="Aufpreis Nebenzimmer (€)")
    manual_discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=0, verbose_name="Manueller Rabatt (%)")
    manual_discount_reason = models.CharField(max_length=255, blank=True, verbose_name="Grund für Rabatt")
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0, verbose_name="Rabatt gesamt (€)")

    deposit_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0, verbose_name="Anzahlung (€)")
    deposit_due_date = models.DateField(null=True, blank=True, verbose_name="Anzahlung fällig am")
    deposit_paid = models.BooleanField(default=False, verbose_name="Anzahlung bezahlt")
    deposit_paid_at = models.DateTimeField(null=True, blank=True, verbose_name="Anzahlung eingegangen am")
    remaining_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0, verbose_name="Restbetrag (€)")
    remaining_due_date = models.DateField(null=True, blank=True, verbose_name="Restzahlung fällig am")
    remaining_paid = models.BooleanField(default=False, verbose_name="Restbetrag bezahlt")
    remaining_paid_at = models.DateTimeField(null=True, blank=True, verbose_name="Restbetrag eingegangen am")

    notification_sent = models.BooleanField(default=False, verbose_name="Bestätigung versendet?")

    class Meta:
        verbose_name = "Buchung"
        verbose_name_plural = "Buchungen"
        ordering = ['-created_at']
        indexes = [models.Index(fields=['start_date', 'end_date'])]

    def __str__(self):
        return f"Buchung {self.reference}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            return super().save(*args, **kwargs)
        for attempt in range(REFERENCE_ATTEMPTS):
            try:
                with transaction.atomic():
                    return super().save(*args, **kwargs)
            except IntegrityError:
                taken = Booking.objects.filter(reference=self.reference).exists()
                if not taken or attempt == REFERENCE_ATTEMPTS - 1:
                    raise
                logger.warning("Booking reference %s already taken, generating a new one", self.reference)
                self.reference = generate_booking_reference()

    @property
    def nights(self):
        return (self.end_date - self.start_date).days

    @property
    def num_guests(self):
        return self.num_adults + self.num_children

    @property
    def is_fully_paid(self):
        return self.deposit_paid and self.remaining_paid

    def can_transition_to(self, new_status):
        return new_status == self.status or new_status in self.ALLOWED_TRANSITIONS.get(self.status, set())


class BookedFee(models.Model):
    """A fee charged on a booking, with the name and amount as they were at booking time."""
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="booked_fees", verbose_name="Buchung")
    fee = models.ForeignKey(Fee, on_delete=models.SET_NULL, null=True, blank=True, related_name="booked_fees", verbose_name="Gebühr")
    name = models.CharField(max_length=255, verbose_name="Bezeichnung")
    amount = models.DecimalField(max_digits=10, decimal_places=2, verbose_name="Betrag (€)")
    payment_location = models.CharField(max_length=10, choices=Fee.PaymentLocation.choices, verbose_name="Zahlung")
    is_optional = models.BooleanField(default=False, verbose_name="Zusatzleistung")

    class Meta:
        verbose_name = "Gebuchte Gebühr"
        verbose_name_plural = "Gebuchte Gebühren"

    def __str__(self):
        return f"{self.name} für Buchung {self.booking.reference}"


class BlockedDate(models.Model):
    start_date = models.DateField(verbose_name="Von")
    end_date = models.DateField(verbose_name="Bis (einschließlich)")
    reason = models.CharField(max_length=255, blank=True, verbose_name="Grund")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Erstellt am")

    class Meta:
        verbose_name = "Gesperrter Zeitraum"
        verbose_name_plural = "Gesperrte Zeiträume"
        ordering = ['start_date']

    def __str__(self):
        return f"Gesperrt {self.start_date:%d.%m.%Y} - {self.end_date:%d.%m.%Y}"

    def clean(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({'end_date': "Das Ende muss nach dem Beginn liegen."})
