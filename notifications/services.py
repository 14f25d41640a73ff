# notifications/services.py
# FEATURE: Sending templated e-mails through the SMTP profile configured in the back-office.

import logging
from html import unescape

from django.conf import settings
from django.core.mail import EmailMultiAlternatives, get_connection
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.html import linebreaks, strip_tags

from core.models import DEFAULT_LANGUAGE, SiteSettings
from .models import EmailLog, EmailSettings
from .templating import TemplateNotFound, get_template, process_template

logger = logging.getLogger(__name__)


def get_email_connection():
    """
    Connection for the active EmailSettings row, or the default connection
    configured through the EMAIL_* settings.
    """
    email_settings = EmailSettings.get_active()
    if email_settings is None:
        return get_connection(), settings.DEFAULT_FROM_EMAIL
    connection = get_connection(
        host=email_settings.host,
        port=email_settings.port,
        username=email_settings.username,
        password=email_settings.password,
        use_tls=email_settings.use_tls,
        use_ssl=email_settings.use_ssl,
    )
    return connection, email_settings.sender


def render_email_html(body, language=DEFAULT_LANGUAGE):
    if '<' not in body:
        body = linebreaks(body)
    return render_to_string('notifications/email/layout.html', {
        'body': body,
        'language': language,
        'site': SiteSettings.get_solo(),
    })


def _result(success, text):
    key = 'message' if success else 'error'
    return {'success': success, key: text, 'timestamp': timezone.now().isoformat()}


def send_email(to, template_name=None, subject=None, content=None, data=None,
               language=DEFAULT_LANGUAGE, attachments=None):
    """
    Renders and sends one e-mail, either from a stored template or from a
    given subject and content. Never raises: the outcome is written to the
    EmailLog and returned as {success, message|error, timestamp}.
    """
    data = data or {}
    try:
        if template_name:
            template = get_template(template_name, language)
            subject, content = template['subject'], template['body']
        if not subject or not content:
            raise ValueError("Betreff und Inhalt oder eine Vorlage sind erforderlich.")
        html_body = process_template(content, data, escape=True)
        subject = process_template(subject, data)
        content = process_template(content, data)
    except (TemplateNotFound, ValueError) as exc:
        EmailLog.objects.create(
            recipient=to, template_name=template_name or '', language=language,
            subject=subject or '', status='failed', error_message=str(exc),
        )
        return _result(False, str(exc))

    html_content = render_email_html(html_body, language)
    try:
        connection, from_email = get_email_connection()
        message = EmailMultiAlternatives(
            subject=subject,
            body=unescape(strip_tags(html_content)).strip(),
            from_email=from_email,
            to=[to],
            connection=connection,
        )
        message.attach_alternative(html_content, 'text/html')
        for filename, payload, mimetype in attachments or ():
            message.attach(filename, payload, mimetype)
        message.send(fail_silently=False)
    except Exception as exc:
        logger.exception("Sending e-mail '%s' to %s failed", subject, to)
        EmailLog.objects.create(
            recipient=to, template_name=template_name or '', language=language,
            subject=subject, body=content, status='failed', error_message=str(exc),
        )
        return _result(False, f"E-Mail konnte nicht gesendet werden: {exc}")

    EmailLog.objects.create(
        recipient=to, template_name=template_name or '', language=language,
        subject=subject, body=content, status='sent',
    )
    logger.info("E-mail '%s' sent to %s", subject, to)
    return _result(True, f"E-Mail an {to} wurde gesendet.")


def test_email_connection():
    try:
        connection, _ = get_email_connection()
        connection.open()
        connection.close()
    except Exception as exc:
        logger.warning("SMTP connection test failed: %s", exc)
        return _result(False, f"Verbindung fehlgeschlagen: {exc}")
    return _result(True, "Die Verbindung zum Mailserver wurde erfolgreich hergestellt.")
