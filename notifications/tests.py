# notifications/tests.py

from datetime import date
from decimal import Decimal
from unittest import mock

from django.contrib.auth.models import User
from django.core import mail
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework.test import APITestCase

from reservations.models import Booking, Guest

from .models import EmailTemplate, EmailTemplatePart, EmailLog, EmailSettings
from .services import send_email
from .tasks import send_booking_email_task
from .templating import TemplateNotFound, get_template, process_template


class ProcessTemplateTests(SimpleTestCase):

    def test_placeholders(self):
        self.assertEqual(process_template('Hallo {{name}}!', {'name': 'Maria'}), 'Hallo Maria!')

    def test_unknown_placeholders_are_kept(self):
        self.assertEqual(process_template('{{name}} {{missing}}', {'name': 'Maria'}), 'Maria {{missing}}')

    def test_if_block(self):
        text = 'A{{#if note}} Hinweis: {{note}}{{/if}}B'
        self.assertEqual(process_template(text, {'note': 'Spät'}), 'A Hinweis: SpätB')
        self.assertEqual(process_template(text, {'note': ''}), 'AB')
        self.assertEqual(process_template(text, {}), 'AB')

    def test_each_block(self):
        text = '{{#each fees}}- {{this.name}}: {{this.amount}}{{/each}}'
        data = {'fees': [{'name': 'Endreinigung', 'amount': '50,00 €'}, {'name': 'Frühstück', 'amount': '100,00 €'}]}
        self.assertEqual(process_template(text, data), '- Endreinigung: 50,00 €\n- Frühstück: 100,00 €')

    def test_each_block_with_plain_items(self):
        self.assertEqual(process_template('{{#each tags}}#{{this}}{{/each}}', {'tags': ['a', 'b']}), '#a\n#b')

    def test_each_block_without_list(self):
        self.assertEqual(process_template('x{{#each fees}}{{this.name}}{{/each}}y', {}), 'xy')

    def test_escaped_values(self):
        text = '<p>{{name}}</p>{{#each fees}}<b>{{this.name}}</b>{{/each}}'
        data = {'name': '<a href="x">Maria</a>', 'fees': [{'name': 'Tom & Jerry'}]}
        self.assertEqual(
            process_template(text, data, escape=True),
            '<p>&lt;a href=&quot;x&quot;&gt;Maria&lt;/a&gt;</p><b>Tom &amp; Jerry</b>',
        )
        self.assertEqual(process_template('{{name}}', data), '<a href="x">Maria</a>')


class GetTemplateTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        EmailTemplate.objects.create(
            name='booking_received', subject_de='Buchung {{reference}}', subject_en='Booking {{reference}}',
            body_de='Danke!', body_en='Thank you!',
        )
        EmailTemplate.objects.create(name='old', subject_de='Alt', body_de='Alt', is_active=False)
        EmailTemplatePart.objects.create(name='header', content_de='<h1>Casa</h1>')
        EmailTemplatePart.objects.create(name='footer', content_de='<p>Gruß</p>', content_en='<p>Regards</p>')

    def test_language_with_parts(self):
        template = get_template('booking_received', 'en')
        self.assertEqual(template['subject'], 'Booking {{reference}}')
        self.assertEqual(template['body'], '<h1>Casa</h1>Thank you!<p>Regards</p>')

    def test_falls_back_to_german(self):
        template = get_template('booking_received', 'fr')
        self.assertEqual(template['subject'], 'Buchung {{reference}}')
        self.assertEqual(template['body'], '<h1>Casa</h1>Danke!<p>Gruß</p>')

    def test_missing_and_inactive_templates(self):
        with self.assertRaises(TemplateNotFound):
            get_template('unknown')
        with self.assertRaises(TemplateNotFound):
            get_template('old')


class SendEmailTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        EmailTemplate.objects.create(
            name='contact_confirmation', subject_de='Ihre Nachricht: {{subject}}',
            body_de='Hallo {{name}},\n\nvielen Dank für Ihre Nachricht.',
        )

    def test_template_is_rendered_sent_and_logged(self):
        result = send_email('maria@example.com', template_name='contact_confirmation', data={'name': 'Maria', 'subject': 'Juli'})
        self.assertTrue(result['success'])
        self.assertIn('timestamp', result)
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.subject, 'Ihre Nachricht: Juli')
        self.assertEqual(message.to, ['maria@example.com'])
        self.assertIn('Hallo Maria', message.body)
        self.assertIn('Hallo Maria', message.alternatives[0][0])
        log = EmailLog.objects.get()
        self.assertEqual(log.status, 'sent')
        self.assertEqual(log.template_name, 'contact_confirmation')

    def test_contact_form_values_are_escaped_in_html(self):
        EmailTemplate.objects.create(
            name='message_notification', subject_de='Neue Nachricht: {{subject}}',
            body_de='<p>Nachricht von {{name}}:</p><p>{{message}}</p>',
        )
        data = {'name': 'Eve', 'subject': 'Konto', 'message': '<a href="https://evil.example">Passwort erneuern</a>'}
        result = send_email('info@casadibarbara.com', template_name='message_notification', data=data)
        self.assertTrue(result['success'])
        html = mail.outbox[0].alternatives[0][0]
        self.assertIn('<p>Nachricht von Eve:</p>', html)
        self.assertNotIn('<a href="https://evil.example">', html)
        self.assertIn('&lt;a href=&quot;https://evil.example&quot;&gt;Passwort erneuern&lt;/a&gt;', html)
        self.assertIn('Passwort erneuern', mail.outbox[0].body)

    def test_free_text_email(self):
        result = send_email('maria@example.com', subject='Test', content='<p>Hallo</p>')
        self.assertTrue(result['success'])
        self.assertEqual(mail.outbox[0].subject, 'Test')

    def test_sender_from_active_settings(self):
        EmailSettings.objects.create(
            provider_name='Haupt', host='smtp.example.com', username='info@example.com', password='x',
            from_email='Casa di Barbara <info@casadibarbara.com>', is_active=True,
        )
        send_email('maria@example.com', subject='Test', content='Hallo')
        self.assertEqual(mail.outbox[0].from_email, 'Casa di Barbara <info@casadibarbara.com>')

    def test_attachments(self):
        send_email('maria@example.com', subject='Test', content='Hallo', attachments=[('a.pdf', b'%PDF', 'application/pdf')])
        self.assertEqual(mail.outbox[0].attachments[0][0], 'a.pdf')

    def test_missing_template_fails_without_raising(self):
        result = send_email('maria@example.com', template_name='unknown')
        self.assertFalse(result['success'])
        self.assertIn('unknown', result['error'])
        self.assertEqual(len(mail.outbox), 0)
        self.assertEqual(EmailLog.objects.get().status, 'failed')

    def test_missing_content_fails(self):
        result = send_email('maria@example.com', subject='Nur Betreff')
        self.assertFalse(result['success'])

    def test_backend_error_is_logged(self):
        with mock.patch('notifications.services.EmailMultiAlternatives.send', side_effect=OSError('Verbindung abgelehnt')):
            result = send_email('maria@example.com', subject='Test', content='Hallo')
        self.assertFalse(result['success'])
        log = EmailLog.objects.get()
        self.assertEqual(log.status, 'failed')
        self.assertIn('Verbindung abgelehnt', log.error_message)


class EmailSettingsModelTests(TestCase):

    def test_only_one_active(self):
        first = EmailSettings.objects.create(provider_name='A', host='a', username='a@example.com', password='x', is_active=True)
        second = EmailSettings.objects.create(provider_name='B', host='b', username='b@example.com', password='x', is_active=True)
        first.refresh_from_db()
        self.assertFalse(first.is_active)
        self.assertEqual(EmailSettings.get_active(), second)
        self.assertEqual(second.sender, 'b@example.com')


class NotificationsAPITests(APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user('barbara', 'barbara@example.com', 'secret', is_staff=True)
        cls.template = EmailTemplate.objects.create(
            name='booking_confirmation', type='booking', subject_de='Bestätigung {{reference}}',
            body_de='Hallo {{first_name}}, {{#each on_site_fees}}{{this.name}}{{/each}}',
        )

    def setUp(self):
        self.client.force_authenticate(self.admin)

    def test_preview_uses_sample_data(self):
        response = self.client.post(reverse('notifications:email-template-preview', args=[self.template.pk]), {}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['subject'], 'Bestätigung CDB-2607-TEST')
        self.assertEqual(response.data['body'], 'Hallo Maria, Endreinigung')
        self.assertIn('Hallo Maria', response.data['html'])

    def test_preview_with_own_data(self):
        url = reverse('notifications:email-template-preview', args=[self.template.pk])
        response = self.client.post(url, {'data': {'first_name': 'Luca'}}, format='json')
        self.assertEqual(response.data['body'], 'Hallo Luca, Endreinigung')

    def test_send_test_email(self):
        payload = {'to': 'maria@example.com', 'template_name': 'booking_confirmation'}
        response = self.client.post(reverse('notifications:send_test_email'), payload, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['success'])
        self.assertEqual(len(mail.outbox), 1)

    def test_send_test_email_needs_content(self):
        response = self.client.post(reverse('notifications:send_test_email'), {'to': 'maria@example.com'}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_settings_password_is_write_only(self):
        payload = {'provider_name': 'Haupt', 'host': 'smtp.example.com', 'username': 'info@example.com', 'password': 'geheim', 'is_active': True}
        response = self.client.post(reverse('notifications:email-settings-list'), payload, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertNotIn('password', response.data)

    def test_log_list(self):
        EmailLog.objects.create(recipient='maria@example.com', subject='Test', status='failed')
        response = self.client.get(reverse('notifications:email-log-list'), {'status': 'failed'})
        self.assertEqual(len(response.data), 1)

    def test_test_connection(self):
        with mock.patch('notifications.services.get_email_connection') as get_connection:
            get_connection.return_value = (mock.Mock(), 'info@example.com')
            response = self.client.post(reverse('notifications:test_connection'))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['success'])


@mock.patch('notifications.tasks.generate_booking_confirmation_pdf', return_value=b'%PDF-1.7')
class BookingEmailTaskTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        EmailTemplate.objects.create(name='booking_confirmation', subject_de='Bestätigung {{reference}}', body_de='Hallo {{first_name}}', subject_it='Conferma {{reference}}')
        guest = Guest.objects.create(first_name='Giulia', last_name='Rossi', email='giulia@example.com', preferred_language='it')
        cls.booking = Booking.objects.create(
            guest=guest, start_date=date(2026, 7, 4), end_date=date(2026, 7, 11), total_price=Decimal('700.00'),
        )

    def test_confirmation_in_guest_language_with_pdf(self, generate_pdf):
        result = send_booking_email_task(self.booking.pk, 'booking_confirmation', attach_pdf=True)
        self.assertTrue(result['success'])
        message = mail.outbox[0]
        self.assertEqual(message.subject, f'Conferma {self.booking.reference}')
        self.assertEqual(message.attachments[0][0], f'buchungsbestaetigung_{self.booking.reference}.pdf')

    def test_pdf_failure_still_sends(self, generate_pdf):
        generate_pdf.side_effect = OSError('Pango fehlt')
        result = send_booking_email_task(self.booking.pk, 'booking_confirmation', attach_pdf=True)
        self.assertTrue(result['success'])
        self.assertEqual(mail.outbox[0].attachments, [])

    def test_unknown_booking(self, generate_pdf):
        result = send_booking_email_task(0, 'booking_confirmation')
        self.assertFalse(result['success'])
