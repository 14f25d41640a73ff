# core/tests.py

from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase
from django.urls import reverse
from rest_framework.test import APITestCase

from .models import SiteSettings
from .utils import get_translation, format_currency, format_date


class HelperTests(SimpleTestCase):

    def test_translation_prefers_requested_language(self):
        self.assertEqual(get_translation({'de': 'Frühstück', 'en': 'Breakfast'}, 'en'), 'Breakfast')

    def test_translation_falls_back_to_german(self):
        self.assertEqual(get_translation({'de': 'Frühstück', 'en': ''}, 'en'), 'Frühstück')
        self.assertEqual(get_translation({'de': 'Frühstück'}, 'it'), 'Frühstück')

    def test_translation_of_empty_values(self):
        self.assertEqual(get_translation(None), '')
        self.assertEqual(get_translation({}), '')

    def test_format_currency(self):
        self.assertEqual(format_currency(Decimal('1234.5')), '1.234,50 €')
        self.assertEqual(format_currency(385), '385,00 €')
        self.assertEqual(format_currency(None), '0,00 €')

    def test_format_date(self):
        self.assertEqual(format_date(date(2026, 7, 4)), '04.07.2026')
        self.assertEqual(format_date(None), '')


class SiteSettingsAPITests(APITestCase):

    def test_missing_settings_return_404(self):
        response = self.client.get(reverse('core:site_settings_api'))
        self.assertEqual(response.status_code, 404)

    def test_settings_are_public(self):
        SiteSettings.objects.create(email='info@casadibarbara.com')
        response = self.client.get(reverse('core:site_settings_api'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['site_name'], 'Casa di Barbara')
        self.assertEqual(response.data['email'], 'info@casadibarbara.com')

    def test_get_solo_returns_defaults_without_row(self):
        settings = SiteSettings.get_solo()
        self.assertIsNone(settings.pk)
        self.assertEqual(settings.site_name, 'Casa di Barbara')
