# content/tests.py

from datetime import timedelta
from unittest import mock

from django.contrib.auth.models import User
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APITestCase

from core.models import SiteSettings
from .models import BlogPost, Event, Message, MessageReply
from .services import submit_contact_message, reply_to_message, upcoming_events
from .utils import slugify_title


class SlugTests(SimpleTestCase):

    def test_umlauts_are_transliterated(self):
        self.assertEqual(slugify_title('Frühling in Ligurien'), 'fruehling-in-ligurien')
        self.assertEqual(slugify_title('Größe & Süße'), 'groesse-suesse')

    def test_fallback_for_empty_titles(self):
        self.assertEqual(slugify_title(''), 'post')
        self.assertEqual(slugify_title('!!!'), 'post')


class BlogPostModelTests(TestCase):

    def test_slug_is_generated_and_unique(self):
        first = BlogPost.objects.create(title={'de': 'Olivenernte in Airole'})
        second = BlogPost.objects.create(title={'de': 'Olivenernte in Airole'})
        third = BlogPost.objects.create(title={'de': 'Olivenernte in Airole'})
        self.assertEqual(first.slug, 'olivenernte-in-airole')
        self.assertEqual(second.slug, 'olivenernte-in-airole-2')
        self.assertEqual(third.slug, 'olivenernte-in-airole-3')

    def test_given_slug_is_kept(self):
        post = BlogPost.objects.create(title={'de': 'Sommer'}, slug='mein-sommer')
        self.assertEqual(post.slug, 'mein-sommer')

    def test_draft_and_scheduled_posts_are_not_published(self):
        draft = BlogPost(title={'de': 'Entwurf'})
        scheduled = BlogPost(title={'de': 'Später'}, published_at=timezone.now() + timedelta(days=1))
        self.assertFalse(draft.is_published)
        self.assertFalse(scheduled.is_published)


class EventTests(TestCase):

    def test_upcoming_events(self):
        today = timezone.localdate()
        running = Event.objects.create(title={'de': 'Markt'}, start_date=today - timedelta(days=2), end_date=today + timedelta(days=1), is_published=True)
        coming = Event.objects.create(title={'de': 'Konzert'}, start_date=today + timedelta(days=5), is_published=True)
        Event.objects.create(title={'de': 'Vorbei'}, start_date=today - timedelta(days=10), end_date=today - timedelta(days=8), is_published=True)
        Event.objects.create(title={'de': 'Ohne Ende'}, start_date=today - timedelta(days=1), is_published=True)
        Event.objects.create(title={'de': 'Unveröffentlicht'}, start_date=today + timedelta(days=3))
        self.assertEqual(list(upcoming_events(today)), [running, coming])


@mock.patch('content.services.send_email_task')
class ContactMessageTests(TestCase):

    def test_message_is_stored_and_mails_are_queued(self, task):
        SiteSettings.objects.create(email='info@casadibarbara.com')
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            message = submit_contact_message(
                name='Maria Muster', email='maria@example.com', subject='Juli', message='Noch frei?', language='en',
            )
        self.assertEqual(len(callbacks), 2)
        self.assertFalse(message.is_read)
        first, second = task.delay.call_args_list
        self.assertEqual(first.args, ('maria@example.com',))
        self.assertEqual(first.kwargs['template_name'], 'contact_confirmation')
        self.assertEqual(first.kwargs['language'], 'en')
        self.assertEqual(second.args, ('info@casadibarbara.com',))
        self.assertEqual(second.kwargs['template_name'], 'message_notification')
        self.assertEqual(second.kwargs['data']['message'], 'Noch frei?')

    def test_no_notification_without_site_address(self, task):
        with self.captureOnCommitCallbacks(execute=True):
            submit_contact_message(name='Maria', email='maria@example.com', message='Hallo')
        self.assertEqual(task.delay.call_count, 1)

    def test_reply_is_stored_and_sent(self, task):
        message = Message.objects.create(name='Maria', email='maria@example.com', message='Hallo', language='it')
        with self.captureOnCommitCallbacks(execute=True):
            reply = reply_to_message(message, 'Grazie!', sent_by='barbara')
        message.refresh_from_db()
        self.assertTrue(message.is_read)
        self.assertEqual(reply.sent_by, 'barbara')
        task.delay.assert_called_once()
        self.assertEqual(task.delay.call_args.kwargs['template_name'], 'message_reply')
        self.assertEqual(task.delay.call_args.kwargs['data']['reply'], 'Grazie!')
        self.assertEqual(task.delay.call_args.kwargs['language'], 'it')


class PublicContentAPITests(APITestCase):

    @classmethod
    def setUpTestData(cls):
        now = timezone.now()
        cls.old = BlogPost.objects.create(title={'de': 'Alt'}, published_at=now - timedelta(days=10))
        cls.new = BlogPost.objects.create(title={'de': 'Neu'}, published_at=now - timedelta(days=1))
        cls.draft = BlogPost.objects.create(title={'de': 'Entwurf'})

    def test_blog_list_shows_published_posts_newest_first(self):
        response = self.client.get(reverse('content:blog-list'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual([post['slug'] for post in response.data], ['neu', 'alt'])

    def test_blog_detail_by_slug(self):
        response = self.client.get(reverse('content:blog-detail', args=['neu']))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['title'], {'de': 'Neu'})

    def test_draft_is_not_found(self):
        response = self.client.get(reverse('content:blog-detail', args=['entwurf']))
        self.assertEqual(response.status_code, 404)

    @mock.patch('content.services.send_email_task')
    def test_contact_form(self, task):
        payload = {'name': 'Maria', 'email': 'maria@example.com', 'message': 'Hallo'}
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(reverse('content:contact'), payload, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertTrue(Message.objects.filter(email='maria@example.com').exists())
        task.delay.assert_called_once()

    def test_contact_form_requires_message(self):
        response = self.client.post(reverse('content:contact'), {'name': 'Maria', 'email': 'maria@example.com'}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('message', response.data)


class AdminContentAPITests(APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user('barbara', 'barbara@example.com', 'secret', is_staff=True)
        cls.unread = Message.objects.create(name='Maria', email='maria@example.com', message='Hallo')
        cls.read = Message.objects.create(name='Luca', email='luca@example.com', message='Ciao', is_read=True)

    def setUp(self):
        self.client.force_authenticate(self.admin)

    def test_requires_staff(self):
        self.client.force_authenticate(None)
        response = self.client.get(reverse('content:message-list'))
        self.assertEqual(response.status_code, 401)

    def test_create_post_generates_slug(self):
        payload = {'title': {'de': 'Wandern über Airole', 'en': 'Hiking above Airole'}}
        response = self.client.post(reverse('content:blog-post-list'), payload, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['slug'], 'wandern-ueber-airole')
        self.assertFalse(response.data['is_published'])

    def test_create_post_rejects_unknown_language(self):
        payload = {'title': {'de': 'Titel', 'es': 'Título'}}
        response = self.client.post(reverse('content:blog-post-list'), payload, format='json')
        self.assertEqual(response.status_code, 400)

    def test_publish_and_unpublish(self):
        post = BlogPost.objects.create(title={'de': 'Neu'})
        response = self.client.post(reverse('content:blog-post-publish', args=[post.pk]))
        self.assertTrue(response.data['is_published'])
        response = self.client.post(reverse('content:blog-post-unpublish', args=[post.pk]))
        self.assertIsNone(response.data['published_at'])

    def test_filter_unread_messages(self):
        response = self.client.get(reverse('content:message-list'), {'is_read': 'false'})
        self.assertEqual([message['id'] for message in response.data], [self.unread.pk])

    def test_mark_read_and_archive(self):
        self.client.post(reverse('content:message-mark-read', args=[self.unread.pk]))
        self.client.post(reverse('content:message-archive', args=[self.unread.pk]))
        self.unread.refresh_from_db()
        self.assertTrue(self.unread.is_read)
        self.assertTrue(self.unread.archived)

    @mock.patch('content.services.send_email_task')
    def test_reply(self, task):
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(reverse('content:message-reply', args=[self.read.pk]), {'content': 'Grazie!'}, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['sent_by'], 'barbara')
        self.assertEqual(MessageReply.objects.filter(message=self.read).count(), 1)
        task.delay.assert_called_once()
