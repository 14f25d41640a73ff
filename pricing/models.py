# pricing/models.py
# version: 2.0.0
# REFACTOR: Daily per-room prices replaced by seasonal pricing periods, fee and discount catalogs
#           and the payment (deposit) settings of the apartment.

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models

from core.utils import get_translation

MIN_NIGHTS_FLOOR = 3
MAX_NIGHTS_CEILING = 28


class PricingPeriod(models.Model):
    SEASON_CHOICES = (
        ('low', 'Nebensaison'),
        ('mid', 'Zwischensaison'),
        ('high', 'Hauptsaison'),
        ('holiday', 'Feiertage'),
    )

    start_date = models.DateField(verbose_name="Beginn")
    end_date = models.DateField(verbose_name="Ende", help_text="Der letzte Tag gehört noch zum Zeitraum.")
    season_type = models.CharField(max_length=10, choices=SEASON_CHOICES, default='mid', verbose_name="Saison")
    base_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))], verbose_name="Grundpreis pro Nacht (€)")
    room_surcharge = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0.00'))], verbose_name="Aufpreis Nebenzimmer pro Nacht (€)")
    min_nights = models.PositiveSmallIntegerField(default=4, verbose_name="Mindestaufenthalt (Nächte)")
    max_nights = models.PositiveSmallIntegerField(default=MAX_NIGHTS_CEILING, verbose_name="Maximalaufenthalt (Nächte)")
    description = models.TextField(blank=True, verbose_name="Beschreibung")

    class Meta:
        verbose_name = "Preiszeitraum"
        verbose_name_plural = "Preiszeiträume"
        ordering = ['start_date']

    def __str__(self):
        return f"{self.get_season_type_display()} {self.start_date:%d.%m.%Y} - {self.end_date:%d.%m.%Y}"

    def clean(self):
        errors = {}
        if self.start_date and self.end_date and self.end_date < self.start_date:
            errors['end_date'] = "Das Ende muss nach dem Beginn liegen."
        if self.min_nights is not None and self.max_nights is not None:
            if self.min_nights < MIN_NIGHTS_FLOOR or self.min_nights > self.max_nights:
                errors['min_nights'] = "Die Mindestanzahl der Nächte muss zwischen 3 und der Maximalanzahl liegen."
            if self.max_nights > MAX_NIGHTS_CEILING:
                errors['max_nights'] = "Die Maximalanzahl der Nächte darf 28 nicht überschreiten."
        if errors:
            raise ValidationError(errors)

        # Lookup by date relies on periods never overlapping.
        if self.start_date and self.end_date:
            overlapping = PricingPeriod.objects.filter(
                start_date__lte=self.end_date,
                end_date__gte=self.start_date,
            ).exclude(pk=self.pk)
            if overlapping.exists():
                raise ValidationError("Der Zeitraum überschneidet sich mit einem bestehenden Preiszeitraum.")

    def contains(self, day):
        return self.start_date <= day <= self.end_date


class Fee(models.Model):
    class FeeType(models.TextChoices):
        MANDATORY = 'mandatory', 'Pflichtgebühr'
        OPTIONAL = 'optional', 'Zusatzleistung'

    class CalculationType(models.TextChoices):
        PER_STAY = 'per_stay', 'Pro Aufenthalt'
        PER_NIGHT = 'per_night', 'Pro Nacht'
        PER_PERSON = 'per_person', 'Pro Person'
        PER_PERSON_NIGHT = 'per_person_night', 'Pro Person und Nacht'

    class PaymentLocation(models.TextChoices):
        ONLINE = 'online', 'Online'
        ON_SITE = 'on_site', 'Vor Ort'

    # {"de": "Endreinigung", "en": "Final cleaning", ...}
    name = models.JSONField(default=dict, verbose_name="Name", help_text="Name je Sprache, Deutsch ist Pflicht.")
    type = models.CharField(max_length=10, choices=FeeType.choices, default=FeeType.MANDATORY, verbose_name="Art")
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))], verbose_name="Betrag (€)")
    calculation_type = models.CharField(max_length=20, choices=CalculationType.choices, default=CalculationType.PER_STAY, verbose_name="Berechnung")
    payment_location = models.CharField(max_length=10, choices=PaymentLocation.choices, default=PaymentLocation.ONLINE, verbose_name="Zahlung")
    is_active = models.BooleanField(default=True, verbose_name="Aktiv")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Erstellt am")

    class Meta:
        verbose_name = "Gebühr"
        verbose_name_plural = "Gebühren & Zusatzleistungen"
        ordering = ['type', 'id']

    def __str__(self):
        return f"{self.get_name()} ({self.get_type_display()})"

    def clean(self):
        if not isinstance(self.name, dict) or not self.name.get('de'):
            raise ValidationError("Ein deutscher Name ist erforderlich.")

    def get_name(self, language='de'):
        return get_translation(self.name, language)


class Discount(models.Model):
    class DiscountType(models.TextChoices):
        LONG_STAY = 'long_stay', 'Langzeitrabatt'
        EARLY_BIRD = 'early_bird', 'Frühbucherrabatt'
        LAST_MINUTE = 'last_minute', 'Last-Minute-Rabatt'

    type = models.CharField(max_length=20, choices=DiscountType.choices, verbose_name="Art")
    min_value = models.PositiveIntegerField(verbose_name="Mindestwert", help_text="Nächte (Langzeit) bzw. Tage bis zur Anreise.")
    max_value = models.PositiveIntegerField(null=True, blank=True, verbose_name="Höchstwert", help_text="Leer lassen für keine Obergrenze.")
    discount_percentage = models.DecimalField(
        max_digits=5, decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01')), MaxValueValidator(Decimal('100'))],
        verbose_name="Rabatt (%)",
    )
    is_active = models.BooleanField(default=True, verbose_name="Aktiv")

    class Meta:
        verbose_name = "Rabatt"
        verbose_name_plural = "Rabatte"
        ordering = ['type', 'min_value']

    def __str__(self):
        return f"{self.get_type_display()} {self.discount_percentage}%"

    def clean(self):
        if self.max_value is None or self.min_value is None:
            return
        if self.type == self.DiscountType.LAST_MINUTE:
            # Last minute counts down: min is the latest lead time, max the earliest.
            if self.max_value > self.min_value:
                raise ValidationError({'max_value': "Beim Last-Minute-Rabatt darf der Höchstwert den Mindestwert nicht übersteigen."})
        elif self.max_value < self.min_value:
            raise ValidationError({'max_value': "Der Höchstwert muss größer oder gleich dem Mindestwert sein."})

    def is_applicable(self, nights, days_until_arrival):
        """
        long_stay compares the night count, early_bird and last_minute the days
        until arrival. last_minute qualifies for *short* lead times, so its
        comparisons run the other way round.
        """
        if self.type == self.DiscountType.LONG_STAY:
            return nights >= self.min_value and (self.max_value is None or nights <= self.max_value)
        if self.type == self.DiscountType.EARLY_BIRD:
            return days_until_arrival >= self.min_value and (self.max_value is None or days_until_arrival <= self.max_value)
        if self.type == self.DiscountType.LAST_MINUTE:
            return days_until_arrival <= self.min_value and (self.max_value is None or days_until_arrival >= self.max_value)
        return False


class PaymentSettings(models.Model):
    deposit_percentage = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('30.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
        verbose_name="Anzahlung (%)",
    )
    deposit_due_days = models.PositiveSmallIntegerField(default=7, validators=[MinValueValidator(1)], verbose_name="Frist Anzahlung (Tage nach Buchung)")
    remaining_due_days = models.PositiveSmallIntegerField(default=30, verbose_name="Frist Restzahlung (Tage vor Anreise)")
    bank_holder = models.CharField(max_length=255, blank=True, verbose_name="Kontoinhaber")
    bank_iban = models.CharField(max_length=34, blank=True, verbose_name="IBAN")
    bank_bic = models.CharField(max_length=11, blank=True, verbose_name="BIC")
    is_active = models.BooleanField(default=False, help_text="Es kann nur eine Einstellung aktiv sein.", verbose_name="Aktiv")

    class Meta:
        verbose_name = "Zahlungseinstellung"
        verbose_name_plural = "Zahlungseinstellungen"

    def __str__(self):
        return f"Anzahlung {self.deposit_percentage}% ({'aktiv' if self.is_active else 'inaktiv'})"

    def save(self, *args, **kwargs):
        if self.is_active:
            PaymentSettings.objects.filter(is_active=True).exclude(pk=self.pk).update(is_active=False)
        super().save(*args, **kwargs)

    @classmethod
    def get_active(cls, lock=False):
        queryset = cls.objects.filter(is_active=True)
        if lock:
            queryset = queryset.select_for_update()
        return queryset.first()
