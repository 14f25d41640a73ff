# content/services.py

import logging

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from core.models import SiteSettings
from notifications.tasks import send_email_task
from .models import BlogPost, Event, Message, MessageReply

logger = logging.getLogger(__name__)


def published_posts():
    return BlogPost.objects.filter(published_at__isnull=False, published_at__lte=timezone.now())


def upcoming_events(today=None):
    """Published events that have not ended yet, earliest first."""
    today = today or timezone.localdate()
    return Event.objects.filter(is_published=True).filter(
        Q(end_date__gte=today) | Q(end_date__isnull=True, start_date__gte=today)
    ).order_by('start_date')


def publish_post(post, published_at=None):
    post.published_at = published_at or timezone.now()
    post.save(update_fields=['published_at', 'updated_at'])
    return post


def unpublish_post(post):
    post.published_at = None
    post.save(update_fields=['published_at', 'updated_at'])
    return post


def _message_data(message):
    return {
        'name': message.name,
        'email': message.email,
        'phone': message.phone,
        'subject': message.subject,
        'message': message.message,
        'site_name': SiteSettings.get_solo().site_name,
    }


@transaction.atomic
def submit_contact_message(**data):
    """
    Stores a contact form message, then mails a confirmation to the sender and
    a notification to the site address once the transaction has committed.
    """
    message = Message.objects.create(**data)
    email_data = _message_data(message)
    site_email = SiteSettings.get_solo().email

    transaction.on_commit(lambda: send_email_task.delay(
        message.email, template_name='contact_confirmation', data=email_data, language=message.language,
    ))
    if site_email:
        transaction.on_commit(lambda: send_email_task.delay(
            site_email, template_name='message_notification', data=email_data,
        ))
    else:
        logger.warning("No site e-mail configured, message %s is not forwarded.", message.pk)
    return message


@transaction.atomic
def reply_to_message(message, content, sent_by=''):
    reply = MessageReply.objects.create(message=message, content=content, sent_by=sent_by)
    if not message.is_read:
        message.is_read = True
        message.save(update_fields=['is_read'])

    email_data = dict(_message_data(message), reply=content)
    transaction.on_commit(lambda: send_email_task.delay(
        message.email, template_name='message_reply', data=email_data, language=message.language,
    ))
    return reply
