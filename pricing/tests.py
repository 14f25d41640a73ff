# pricing/tests.py v2.0
from datetime import date, timedelta
from decimal import Decimal

from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APITestCase

from .forms import FeeAdminForm
from .models import PricingPeriod, Fee, Discount, PaymentSettings
from .selectors import get_pricing_period, get_minimum_stay, load_pricing_snapshot, get_price_calendar
from .services import (
    PricingError, PricingSnapshot, calculate_fee_amount, calculate_price_breakdown,
    resolve_discounts, resolve_fees,
)


def make_period(**kwargs):
    values = dict(
        start_date=date(2026, 6, 1), end_date=date(2026, 9, 30), season_type='high',
        base_price=Decimal('100.00'), room_surcharge=Decimal('40.00'), min_nights=4, max_nights=21,
    )
    values.update(kwargs)
    return PricingPeriod(**values)


def make_fee(pk, amount, calculation_type, fee_type=Fee.FeeType.MANDATORY,
             payment_location=Fee.PaymentLocation.ONLINE, name=None):
    return Fee(
        pk=pk, name=name or {'de': f'Gebühr {pk}'}, type=fee_type, amount=Decimal(amount),
        calculation_type=calculation_type, payment_location=payment_location, is_active=True,
    )


class FeeResolverTests(SimpleTestCase):

    def test_amount_per_calculation_mode(self):
        cases = [
            (Fee.CalculationType.PER_STAY, Decimal('10.00')),
            (Fee.CalculationType.PER_NIGHT, Decimal('50.00')),
            (Fee.CalculationType.PER_PERSON, Decimal('30.00')),
            (Fee.CalculationType.PER_PERSON_NIGHT, Decimal('150.00')),
        ]
        for calculation_type, expected in cases:
            with self.subTest(calculation_type=calculation_type):
                fee = make_fee(1, '10', calculation_type)
                self.assertEqual(calculate_fee_amount(fee, num_guests=3, nights=5), expected)

    def test_optional_fee_only_when_selected(self):
        fees = [
            make_fee(1, '50', Fee.CalculationType.PER_STAY, payment_location=Fee.PaymentLocation.ON_SITE),
            make_fee(2, '10', Fee.CalculationType.PER_PERSON_NIGHT, fee_type=Fee.FeeType.OPTIONAL),
        ]
        without = resolve_fees(fees, 2, 0, 5)
        self.assertEqual(len(without['mandatory_fees']), 1)
        self.assertEqual(without['optional_fees'], [])
        self.assertEqual(without['online_total'], Decimal('0.00'))
        self.assertEqual(without['on_site_total'], Decimal('50.00'))

        selected = resolve_fees(fees, 2, 0, 5, selected_fee_ids=[2])
        self.assertEqual(selected['optional_fees'][0]['amount'], Decimal('100.00'))
        self.assertEqual(selected['online_total'], Decimal('100.00'))

    def test_fee_name_in_requested_language(self):
        fee = make_fee(1, '50', Fee.CalculationType.PER_STAY, name={'de': 'Endreinigung', 'en': 'Final cleaning'})
        self.assertEqual(resolve_fees([fee], 2, 0, 5, language='en')['mandatory_fees'][0]['name'], 'Final cleaning')
        self.assertEqual(resolve_fees([fee], 2, 0, 5, language='it')['mandatory_fees'][0]['name'], 'Endreinigung')


class DiscountResolverTests(SimpleTestCase):
    today = date(2026, 3, 1)

    def test_highest_percentage_wins(self):
        discounts = [
            Discount(pk=1, type=Discount.DiscountType.LONG_STAY, min_value=7, discount_percentage=Decimal('5')),
            Discount(pk=2, type=Discount.DiscountType.EARLY_BIRD, min_value=60, discount_percentage=Decimal('12')),
        ]
        lines = resolve_discounts(discounts, 7, date(2026, 7, 1), self.today, Decimal('1000'), Decimal('0'))
        self.assertEqual(len(lines), 1)
        self.assertEqual(lines[0]['type'], 'early_bird')
        self.assertEqual(lines[0]['amount'], Decimal('120.00'))

    def test_equal_percentages_resolved_by_type_name(self):
        discounts = [
            Discount(pk=1, type=Discount.DiscountType.LONG_STAY, min_value=7, discount_percentage=Decimal('10')),
            Discount(pk=2, type=Discount.DiscountType.EARLY_BIRD, min_value=60, discount_percentage=Decimal('10')),
        ]
        lines = resolve_discounts(discounts, 7, date(2026, 7, 1), self.today, Decimal('1000'), Decimal('0'))
        self.assertEqual(lines[0]['type'], 'early_bird')

    def test_manual_discount_stacks(self):
        discounts = [Discount(pk=1, type=Discount.DiscountType.LONG_STAY, min_value=7, discount_percentage=Decimal('10'))]
        lines = resolve_discounts(
            discounts, 7, date(2026, 7, 1), self.today, Decimal('800'), Decimal('200'),
            manual_percentage=Decimal('5'), manual_reason='Stammgast',
        )
        self.assertEqual([line['type'] for line in lines], ['long_stay', 'manual'])
        self.assertEqual(lines[0]['amount'], Decimal('100.00'))
        self.assertEqual(lines[1]['amount'], Decimal('50.00'))
        self.assertEqual(lines[1]['reason'], 'Stammgast')

    def test_last_minute_applies_to_short_lead_times(self):
        open_ended = Discount(type=Discount.DiscountType.LAST_MINUTE, min_value=14, discount_percentage=Decimal('8'))
        self.assertTrue(open_ended.is_applicable(nights=5, days_until_arrival=10))
        self.assertFalse(open_ended.is_applicable(nights=5, days_until_arrival=20))

        bounded = Discount(type=Discount.DiscountType.LAST_MINUTE, min_value=14, max_value=3, discount_percentage=Decimal('8'))
        self.assertTrue(bounded.is_applicable(nights=5, days_until_arrival=3))
        self.assertFalse(bounded.is_applicable(nights=5, days_until_arrival=2))

    def test_long_stay_upper_bound(self):
        discount = Discount(type=Discount.DiscountType.LONG_STAY, min_value=7, max_value=13, discount_percentage=Decimal('10'))
        self.assertTrue(discount.is_applicable(nights=13, days_until_arrival=0))
        self.assertFalse(discount.is_applicable(nights=14, days_until_arrival=0))
        self.assertFalse(discount.is_applicable(nights=6, days_until_arrival=0))


class PriceBreakdownTests(SimpleTestCase):
    today = date(2026, 3, 1)

    def make_snapshot(self, fees=(), discounts=(), deposit='30.00', **period_kwargs):
        payment_settings = PaymentSettings(
            deposit_percentage=Decimal(deposit), deposit_due_days=7, remaining_due_days=30, is_active=True,
        )
        return PricingSnapshot(make_period(**period_kwargs), fees, discounts, payment_settings)

    def test_cleaning_and_breakfast_scenario(self):
        fees = [
            make_fee(1, '50', Fee.CalculationType.PER_STAY, payment_location=Fee.PaymentLocation.ON_SITE,
                     name={'de': 'Endreinigung'}),
            make_fee(2, '10', Fee.CalculationType.PER_PERSON_NIGHT, fee_type=Fee.FeeType.OPTIONAL,
                     name={'de': 'Frühstück'}),
        ]
        breakdown = calculate_price_breakdown(
            self.make_snapshot(fees), date(2026, 7, 1), date(2026, 7, 6), 2,
            selected_fee_ids=[2], today=self.today,
        )
        self.assertEqual(breakdown['nights'], 5)
        self.assertEqual(breakdown['base_price'], Decimal('500.00'))
        self.assertEqual(breakdown['total_on_site'], Decimal('50.00'))
        self.assertEqual(breakdown['total_online'], Decimal('600.00'))
        self.assertEqual(breakdown['deposit_amount'], Decimal('180.00'))
        self.assertEqual(breakdown['remaining_amount'], Decimal('420.00'))
        self.assertEqual(breakdown['deposit_due_date'], date(2026, 3, 8))
        self.assertEqual(breakdown['remaining_due_date'], date(2026, 6, 1))

    def test_plain_week_with_half_deposit(self):
        breakdown = calculate_price_breakdown(
            self.make_snapshot(deposit='50.00', base_price=Decimal('110.00'), room_surcharge=Decimal('0')),
            date(2026, 7, 1), date(2026, 7, 8), 2, today=self.today,
        )
        self.assertEqual(breakdown['base_price'], Decimal('770.00'))
        self.assertEqual(breakdown['total_online'], Decimal('770.00'))
        self.assertEqual(breakdown['deposit_amount'], Decimal('385.00'))
        self.assertEqual(breakdown['remaining_amount'], Decimal('385.00'))

    def test_extra_room_surcharge_per_night(self):
        breakdown = calculate_price_breakdown(
            self.make_snapshot(), date(2026, 7, 1), date(2026, 7, 6), 2,
            with_extra_room=True, today=self.today,
        )
        self.assertEqual(breakdown['room_surcharge'], Decimal('200.00'))
        self.assertEqual(breakdown['total_online'], Decimal('700.00'))

    def test_deposit_and_remaining_add_up(self):
        breakdown = calculate_price_breakdown(
            self.make_snapshot(deposit='33.33', base_price=Decimal('20.01')),
            date(2026, 7, 1), date(2026, 7, 6), 1, today=self.today,
        )
        self.assertEqual(breakdown['total_online'], Decimal('100.05'))
        self.assertEqual(breakdown['deposit_amount'], Decimal('33.35'))
        self.assertEqual(breakdown['deposit_amount'] + breakdown['remaining_amount'], breakdown['total_online'])

    def test_online_total_never_negative(self):
        discounts = [Discount(pk=1, type=Discount.DiscountType.EARLY_BIRD, min_value=30, discount_percentage=Decimal('10'))]
        breakdown = calculate_price_breakdown(
            self.make_snapshot(discounts=discounts), date(2026, 7, 1), date(2026, 7, 6), 2,
            manual_discount_percentage=Decimal('100'), today=self.today,
        )
        self.assertEqual(breakdown['total_online'], Decimal('0.00'))
        self.assertEqual(breakdown['deposit_amount'], Decimal('0.00'))
        self.assertEqual(breakdown['remaining_amount'], Decimal('0.00'))

    def test_stay_length_limits(self):
        snapshot = self.make_snapshot(min_nights=4, max_nights=7)
        with self.assertRaisesMessage(PricingError, "Mindestaufenthalt: 4 Nächte"):
            calculate_price_breakdown(snapshot, date(2026, 7, 1), date(2026, 7, 4), 2, today=self.today)
        with self.assertRaisesMessage(PricingError, "Maximaler Aufenthalt: 7 Nächte"):
            calculate_price_breakdown(snapshot, date(2026, 7, 1), date(2026, 7, 9), 2, today=self.today)

    def test_end_before_start_is_rejected(self):
        with self.assertRaises(PricingError):
            calculate_price_breakdown(self.make_snapshot(), date(2026, 7, 6), date(2026, 7, 6), 2, today=self.today)


class PricingSelectorTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.period = make_period(start_date=date(2026, 6, 1), end_date=date(2026, 6, 30), min_nights=5)
        cls.period.save()
        cls.payment_settings = PaymentSettings.objects.create(is_active=True)
        Fee.objects.create(name={'de': 'Endreinigung'}, amount=Decimal('50'), is_active=True)
        Fee.objects.create(name={'de': 'Alt'}, amount=Decimal('20'), is_active=False)

    def test_period_containing_date(self):
        self.assertEqual(get_pricing_period(date(2026, 6, 1)), self.period)
        self.assertEqual(get_pricing_period(date(2026, 6, 30)), self.period)

    def test_missing_period(self):
        with self.assertRaisesMessage(PricingError, "Für den gewählten Zeitraum sind keine Preise hinterlegt"):
            get_pricing_period(date(2026, 7, 1))

    def test_overlapping_periods_are_a_configuration_error(self):
        PricingPeriod.objects.create(
            start_date=date(2026, 6, 20), end_date=date(2026, 7, 10),
            base_price=Decimal('90'), min_nights=4, max_nights=14,
        )
        with self.assertRaises(PricingError):
            get_pricing_period(date(2026, 6, 25))

    def test_minimum_stay_falls_back_to_four(self):
        self.assertEqual(get_minimum_stay(date(2026, 6, 15)), 5)
        self.assertEqual(get_minimum_stay(date(2027, 1, 1)), 4)

    def test_snapshot_only_contains_active_fees(self):
        snapshot = load_pricing_snapshot(date(2026, 6, 10))
        self.assertEqual(snapshot.period, self.period)
        self.assertEqual([fee.get_name() for fee in snapshot.fees], ['Endreinigung'])
        self.assertEqual(snapshot.payment_settings, self.payment_settings)

    def test_price_calendar_marks_days_without_period(self):
        calendar = get_price_calendar(date(2026, 6, 29), date(2026, 7, 1))
        self.assertEqual([day['price'] for day in calendar], [Decimal('100.00'), Decimal('100.00'), None])


class PricingModelTests(TestCase):

    def test_period_overlap_is_rejected(self):
        make_period(start_date=date(2026, 6, 1), end_date=date(2026, 6, 30)).save()
        with self.assertRaises(ValidationError):
            make_period(start_date=date(2026, 6, 30), end_date=date(2026, 7, 15)).clean()
        make_period(start_date=date(2026, 7, 1), end_date=date(2026, 7, 15)).clean()

    def test_period_night_bounds(self):
        with self.assertRaises(ValidationError):
            make_period(min_nights=2).clean()
        with self.assertRaises(ValidationError):
            make_period(min_nights=10, max_nights=7).clean()
        with self.assertRaises(ValidationError):
            make_period(max_nights=30).clean()

    def test_only_one_active_payment_settings(self):
        first = PaymentSettings.objects.create(is_active=True)
        second = PaymentSettings.objects.create(deposit_percentage=Decimal('50'), is_active=True)
        first.refresh_from_db()
        self.assertFalse(first.is_active)
        self.assertEqual(PaymentSettings.get_active(), second)

    def test_fee_admin_form_builds_name_dict(self):
        form = FeeAdminForm(data={
            'name_de': 'Endreinigung', 'name_en': 'Final cleaning', 'name_fr': '', 'name_it': '',
            'type': 'mandatory', 'amount': '50.00', 'calculation_type': 'per_stay',
            'payment_location': 'on_site', 'is_active': True,
        })
        self.assertTrue(form.is_valid(), form.errors)
        fee = form.save()
        self.assertEqual(fee.name, {'de': 'Endreinigung', 'en': 'Final cleaning'})

    def test_fee_admin_form_requires_german_name(self):
        form = FeeAdminForm(data={
            'name_en': 'Final cleaning', 'type': 'mandatory', 'amount': '50.00',
            'calculation_type': 'per_stay', 'payment_location': 'on_site',
        })
        self.assertFalse(form.is_valid())
        self.assertIn('name_de', form.errors)


class PricingAPITests(APITestCase):

    @classmethod
    def setUpTestData(cls):
        today = timezone.localdate()
        cls.start = today + timedelta(days=40)
        PricingPeriod.objects.create(
            start_date=today, end_date=today + timedelta(days=365),
            base_price=Decimal('100.00'), min_nights=4, max_nights=21,
        )
        PaymentSettings.objects.create(deposit_percentage=Decimal('30'), is_active=True)
        cls.breakfast = Fee.objects.create(
            name={'de': 'Frühstück'}, type=Fee.FeeType.OPTIONAL, amount=Decimal('10'),
            calculation_type=Fee.CalculationType.PER_PERSON_NIGHT,
        )
        cls.admin = User.objects.create_user('barbara', 'barbara@example.com', 'secret', is_staff=True)

    def quote(self, nights, **extra):
        payload = {
            'start_date': self.start.isoformat(),
            'end_date': (self.start + timedelta(days=nights)).isoformat(),
            'num_adults': 2,
        }
        payload.update(extra)
        return self.client.post(reverse('pricing:price_quote_api'), payload, format='json')

    def test_quote(self):
        response = self.quote(5, selected_fee_ids=[self.breakfast.id])
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['total_online'], Decimal('600.00'))
        self.assertEqual(response.data['deposit_amount'], Decimal('180.00'))
        self.assertEqual(response.data['optional_fee_choices'][0]['id'], self.breakfast.id)

    def test_quote_below_minimum_stay(self):
        response = self.quote(2)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error'], "Mindestaufenthalt: 4 Nächte")

    def test_quote_rejects_manual_discount_field_silently(self):
        response = self.quote(5, manual_discount_percentage='50')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['discounts'], [])

    def test_admin_quote_with_manual_discount(self):
        self.client.force_authenticate(self.admin)
        payload = {
            'start_date': self.start.isoformat(),
            'end_date': (self.start + timedelta(days=5)).isoformat(),
            'num_adults': 2,
            'manual_discount_percentage': '10',
        }
        response = self.client.post(reverse('pricing:admin_price_quote_api'), payload, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['total_online'], Decimal('450.00'))

    def test_minimum_stay_endpoint(self):
        response = self.client.get(reverse('pricing:minimum_stay_api'), {'date': self.start.isoformat()})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['min_nights'], 4)

    def test_catalog_requires_admin(self):
        response = self.client.get(reverse('pricing:pricing-period-list'))
        self.assertIn(response.status_code, (401, 403))

    def test_admin_cannot_create_overlapping_period(self):
        self.client.force_authenticate(self.admin)
        payload = {
            'start_date': self.start.isoformat(),
            'end_date': (self.start + timedelta(days=10)).isoformat(),
            'season_type': 'high',
            'base_price': '150.00',
            'min_nights': 4,
            'max_nights': 14,
        }
        response = self.client.post(reverse('pricing:pricing-period-list'), payload, format='json')
        self.assertEqual(response.status_code, 400)
