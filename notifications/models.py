# notifications/models.py

from django.db import models

from core.models import LANGUAGE_CHOICES, DEFAULT_LANGUAGE


class EmailTemplate(models.Model):
    TYPE_CHOICES = (
        ('booking', 'Buchung'),
        ('payment', 'Zahlung'),
        ('info', 'Information'),
    )

    name = models.SlugField(max_length=100, unique=True, verbose_name="Schlüssel", help_text="z.B. booking_confirmation")
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default='info', verbose_name="Art")
    description = models.CharField(max_length=255, blank=True, verbose_name="Beschreibung")
    subject_de = models.CharField(max_length=255, verbose_name="Betreff (Deutsch)")
    subject_en = models.CharField(max_length=255, blank=True, verbose_name="Betreff (Englisch)")
    subject_fr = models.CharField(max_length=255, blank=True, verbose_name="Betreff (Französisch)")
    subject_it = models.CharField(max_length=255, blank=True, verbose_name="Betreff (Italienisch)")
    body_de = models.TextField(verbose_name="Text (Deutsch)")
    body_en = models.TextField(blank=True, verbose_name="Text (Englisch)")
    body_fr = models.TextField(blank=True, verbose_name="Text (Französisch)")
    body_it = models.TextField(blank=True, verbose_name="Text (Italienisch)")
    is_active = models.BooleanField(default=True, verbose_name="Aktiv")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="Zuletzt geändert")

    class Meta:
        verbose_name = "E-Mail-Vorlage"
        verbose_name_plural = "E-Mail-Vorlagen"
        ordering = ['type', 'name']

    def __str__(self):
        return self.name

    def get_subject(self, language=DEFAULT_LANGUAGE):
        return getattr(self, f'subject_{language}', '') or self.subject_de

    def get_body(self, language=DEFAULT_LANGUAGE):
        return getattr(self, f'body_{language}', '') or self.body_de


class EmailTemplatePart(models.Model):
    """Shared header and footer wrapped around every template body."""
    NAME_CHOICES = (
        ('header', 'Kopfzeile'),
        ('footer', 'Fußzeile'),
    )

    name = models.CharField(max_length=10, choices=NAME_CHOICES, unique=True, verbose_name="Teil")
    content_de = models.TextField(blank=True, verbose_name="Inhalt (Deutsch)")
    content_en = models.TextField(blank=True, verbose_name="Inhalt (Englisch)")
    content_fr = models.TextField(blank=True, verbose_name="Inhalt (Französisch)")
    content_it = models.TextField(blank=True, verbose_name="Inhalt (Italienisch)")

    class Meta:
        verbose_name = "Vorlagenbaustein"
        verbose_name_plural = "Vorlagenbausteine"

    def __str__(self):
        return self.get_name_display()

    def get_content(self, language=DEFAULT_LANGUAGE):
        return getattr(self, f'content_{language}', '') or self.content_de


class EmailLog(models.Model):
    STATUS_CHOICES = (
        ('sent', 'Versendet'),
        ('failed', 'Fehlgeschlagen'),
    )

    recipient = models.EmailField(verbose_name="Empfänger")
    template_name = models.CharField(max_length=100, blank=True, verbose_name="Vorlage")
    language = models.CharField(max_length=2, choices=LANGUAGE_CHOICES, default=DEFAULT_LANGUAGE, verbose_name="Sprache")
    subject = models.CharField(max_length=255, verbose_name="Betreff")
    body = models.TextField(blank=True, verbose_name="Inhalt")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, verbose_name="Status")
    error_message = models.TextField(blank=True, verbose_name="Fehlermeldung")
    sent_at = models.DateTimeField(auto_now_add=True, verbose_name="Zeitpunkt")

    class Meta:
        verbose_name = "E-Mail-Protokoll"
        verbose_name_plural = "E-Mail-Protokoll"
        ordering = ['-sent_at']

    def __str__(self):
        return f"{self.subject} an {self.recipient} ({self.get_status_display()})"


class EmailSettings(models.Model):
    provider_name = models.CharField(max_length=100, verbose_name="Bezeichnung (z.B. Hauptpostfach)")
    host = models.CharField(max_length=255, verbose_name="SMTP-Server")
    port = models.PositiveIntegerField(default=587, verbose_name="Port")
    username = models.CharField(max_length=255, verbose_name="Benutzername")
    password = models.CharField(max_length=255, verbose_name="Passwort")
    use_tls = models.BooleanField(default=True, verbose_name="TLS verwenden")
    use_ssl = models.BooleanField(default=False, verbose_name="SSL verwenden")
    from_email = models.CharField(max_length=255, blank=True, verbose_name="Absender", help_text="z.B. Casa di Barbara <info@casadibarbara.com>. Leer: Benutzername.")
    is_active = models.BooleanField(default=False, help_text="Es kann nur eine Einstellung aktiv sein.", verbose_name="Aktiv")

    class Meta:
        verbose_name = "E-Mail-Einstellung"
        verbose_name_plural = "E-Mail-Einstellungen"

    def __str__(self):
        return self.provider_name

    def save(self, *args, **kwargs):
        if self.is_active:
            EmailSettings.objects.filter(is_active=True).exclude(pk=self.pk).update(is_active=False)
        super().save(*args, **kwargs)

    @classmethod
    def get_active(cls):
        return cls.objects.filter(is_active=True).first()

    @property
    def sender(self):
        return self.from_email or self.username
