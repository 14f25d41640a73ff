# core/models.py
# version: 2.0.0
# REFACTOR: Reduced to the shared site configuration and language constants.

from django.db import models

LANGUAGE_CHOICES = (
    ('de', 'Deutsch'),
    ('en', 'English'),
    ('fr', 'Français'),
    ('it', 'Italiano'),
)
LANGUAGE_CODES = [code for code, _ in LANGUAGE_CHOICES]
DEFAULT_LANGUAGE = 'de'


class TimeStampedModel(models.Model):
    """
    Abstract base class adding creation and modification timestamps.
    """
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Erstellt am")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="Zuletzt geändert")

    class Meta:
        abstract = True


class SiteSettings(models.Model):
    site_name = models.CharField(max_length=100, default="Casa di Barbara", verbose_name="Name der Website")
    tagline = models.CharField(max_length=255, default="Ihr mediterranes Zuhause in Airole", blank=True, verbose_name="Untertitel")
    address = models.CharField(max_length=255, default="Via Roma, 14 | 18030 Airole (IM) | Italien", blank=True, verbose_name="Anschrift")
    phone_number = models.CharField(max_length=30, blank=True, verbose_name="Telefon")
    email = models.EmailField(blank=True, verbose_name="E-Mail", help_text="Empfänger für Benachrichtigungen über neue Nachrichten und Buchungen.")

    class Meta:
        verbose_name = "Website-Einstellungen"
        verbose_name_plural = "Website-Einstellungen"

    def __str__(self):
        return self.site_name

    @classmethod
    def get_solo(cls):
        """Returns the stored settings row, or an unsaved instance with the defaults."""
        return cls.objects.first() or cls()
