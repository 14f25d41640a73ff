# content/models.py
# FEATURE: News/blog posts, local events and the messages sent through the contact form.

from django.db import models
from django.utils import timezone

from core.models import TimeStampedModel, LANGUAGE_CHOICES, DEFAULT_LANGUAGE
from core.utils import get_translation
from .utils import generate_unique_slug


class BlogPost(TimeStampedModel):
    slug = models.SlugField(max_length=255, unique=True, blank=True, verbose_name="Slug", help_text="Wird leer aus dem deutschen Titel erzeugt.")
    # Per-language texts: {"de": "...", "en": "...", ...}
    title = models.JSONField(default=dict, verbose_name="Titel")
    excerpt = models.JSONField(default=dict, blank=True, verbose_name="Kurzfassung")
    content = models.JSONField(default=dict, blank=True, verbose_name="Inhalt")
    cover_image = models.URLField(blank=True, verbose_name="Titelbild (URL)")
    published_at = models.DateTimeField(null=True, blank=True, verbose_name="Veröffentlicht am", help_text="Leer lassen für Entwurf.")

    class Meta:
        verbose_name = "Blogartikel"
        verbose_name_plural = "Blogartikel"
        ordering = ['-published_at', '-created_at']

    def __str__(self):
        return self.get_title() or self.slug

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = generate_unique_slug(BlogPost, self.get_title(DEFAULT_LANGUAGE), self.pk)
        super().save(*args, **kwargs)

    @property
    def is_published(self):
        return self.published_at is not None and self.published_at <= timezone.now()

    def get_title(self, language=DEFAULT_LANGUAGE):
        return get_translation(self.title, language)


class Event(TimeStampedModel):
    title = models.JSONField(default=dict, verbose_name="Titel")
    description = models.JSONField(default=dict, blank=True, verbose_name="Beschreibung")
    start_date = models.DateField(verbose_name="Beginn")
    end_date = models.DateField(null=True, blank=True, verbose_name="Ende")
    location = models.CharField(max_length=255, blank=True, verbose_name="Ort")
    is_published = models.BooleanField(default=False, verbose_name="Veröffentlicht")

    class Meta:
        verbose_name = "Veranstaltung"
        verbose_name_plural = "Veranstaltungen"
        ordering = ['start_date']

    def __str__(self):
        return f"{get_translation(self.title)} ({self.start_date:%d.%m.%Y})"


class Message(models.Model):
    name = models.CharField(max_length=200, verbose_name="Name")
    email = models.EmailField(verbose_name="E-Mail")
    phone = models.CharField(max_length=30, blank=True, verbose_name="Telefon")
    subject = models.CharField(max_length=255, blank=True, verbose_name="Betreff")
    message = models.TextField(verbose_name="Nachricht")
    language = models.CharField(max_length=2, choices=LANGUAGE_CHOICES, default=DEFAULT_LANGUAGE, verbose_name="Sprache")
    is_read = models.BooleanField(default=False, verbose_name="Gelesen")
    archived = models.BooleanField(default=False, verbose_name="Archiviert")
    tags = models.JSONField(default=list, blank=True, verbose_name="Schlagwörter")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Eingegangen am")

    class Meta:
        verbose_name = "Nachricht"
        verbose_name_plural = "Nachrichten"
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.subject or 'Nachricht'} von {self.name}"


class MessageReply(models.Model):
    message = models.ForeignKey(Message, on_delete=models.CASCADE, related_name="replies", verbose_name="Nachricht")
    content = models.TextField(verbose_name="Antwort")
    sent_by = models.CharField(max_length=150, blank=True, verbose_name="Gesendet von")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Gesendet am")

    class Meta:
        verbose_name = "Antwort"
        verbose_name_plural = "Antworten"
        ordering = ['created_at']

    def __str__(self):
        return f"Antwort auf {self.message}"
