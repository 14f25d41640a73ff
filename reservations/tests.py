# reservations/tests.py

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.contrib import messages
from django.contrib.admin.sites import AdminSite
from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.forms.models import model_to_dict
from django.test import RequestFactory, TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APITestCase

from content.models import Message
from pricing.models import PricingPeriod, Fee, PaymentSettings
from pricing.selectors import load_pricing_snapshot
from pricing.services import PricingError
from .admin import BookingAdmin
from .forms import BookingAdminForm
from .models import REFERENCE_ATTEMPTS, Booking, BookedFee, Guest, BlockedDate
from .pdf_utils import render_booking_confirmation_html
from .selectors import (
    ALREADY_BOOKED, BLOCKED, check_availability, get_blocked_dates, dashboard_summary,
)
from .services import (
    BookingError, create_booking, update_booking, upsert_guest, change_status,
    mark_payment, cancel_expired_pending_bookings, booking_email_data,
)

GUEST = {'first_name': 'Maria', 'last_name': 'Muster', 'email': 'maria@example.com'}


class BookingTestMixin:
    """Open season for a year, 100 € per night, 4 to 21 nights, 30 % deposit."""

    @classmethod
    def setUpTestData(cls):
        cls.today = timezone.localdate()
        cls.start = cls.today + timedelta(days=60)
        PricingPeriod.objects.create(
            start_date=cls.today, end_date=cls.today + timedelta(days=365),
            base_price=Decimal('100.00'), room_surcharge=Decimal('40.00'), min_nights=4, max_nights=21,
        )
        cls.payment_settings = PaymentSettings.objects.create(
            deposit_percentage=Decimal('30'), deposit_due_days=7, remaining_due_days=30,
            bank_holder='Barbara Muster', bank_iban='DE02120300000000202051', is_active=True,
        )
        cls.cleaning = Fee.objects.create(
            name={'de': 'Endreinigung', 'en': 'Final cleaning'}, amount=Decimal('50'),
            calculation_type=Fee.CalculationType.PER_STAY, payment_location=Fee.PaymentLocation.ON_SITE,
        )
        cls.breakfast = Fee.objects.create(
            name={'de': 'Frühstück'}, type=Fee.FeeType.OPTIONAL, amount=Decimal('10'),
            calculation_type=Fee.CalculationType.PER_PERSON_NIGHT,
        )

    def book(self, offset=0, nights=5, **kwargs):
        start = self.start + timedelta(days=offset)
        kwargs.setdefault('guest_data', GUEST)
        kwargs.setdefault('num_adults', 2)
        return create_booking(start_date=start, end_date=start + timedelta(days=nights), **kwargs)


class AvailabilityTests(BookingTestMixin, TestCase):

    def test_free_stay_is_available(self):
        result = check_availability(self.start, self.start + timedelta(days=5))
        self.assertEqual(result, {'available': True, 'reason': None})

    def test_overlapping_booking(self):
        self.book()
        result = check_availability(self.start + timedelta(days=2), self.start + timedelta(days=8))
        self.assertEqual(result, {'available': False, 'reason': ALREADY_BOOKED})

    def test_stays_may_abut(self):
        self.book()
        after = self.start + timedelta(days=5)
        before = self.start - timedelta(days=5)
        self.assertTrue(check_availability(after, after + timedelta(days=5))['available'])
        self.assertTrue(check_availability(before, self.start)['available'])

    def test_cancelled_booking_frees_the_dates(self):
        booking = self.book()
        change_status(booking, Booking.STATUS_CANCELLED)
        self.assertTrue(check_availability(self.start, self.start + timedelta(days=5))['available'])

    def test_blocked_range_includes_last_day(self):
        BlockedDate.objects.create(start_date=self.start - timedelta(days=3), end_date=self.start)
        result = check_availability(self.start, self.start + timedelta(days=5))
        self.assertEqual(result, {'available': False, 'reason': BLOCKED})
        self.assertTrue(check_availability(self.start + timedelta(days=1), self.start + timedelta(days=6))['available'])

    def test_stay_length_outside_period_limits(self):
        result = check_availability(self.start, self.start + timedelta(days=3))
        self.assertFalse(result['available'])
        self.assertEqual(result['reason'], "Aufenthaltsdauer muss zwischen 4 und 21 Nächten liegen")

    def test_no_pricing_period(self):
        later = self.today + timedelta(days=500)
        result = check_availability(later, later + timedelta(days=5))
        self.assertFalse(result['available'])
        self.assertIn("keine Preise", result['reason'])

    def test_exclude_own_booking(self):
        booking = self.book()
        result = check_availability(booking.start_date, booking.end_date, exclude_booking_id=booking.pk)
        self.assertTrue(result['available'])

    def test_blocked_dates_calendar(self):
        self.book(nights=4)
        BlockedDate.objects.create(start_date=self.start + timedelta(days=3), end_date=self.start + timedelta(days=5))
        dates = get_blocked_dates()
        expected = [self.start + timedelta(days=i) for i in range(6)]
        self.assertEqual(dates, expected)

    def test_blocked_dates_calendar_window(self):
        self.book(nights=4)
        dates = get_blocked_dates(self.start + timedelta(days=1), self.start + timedelta(days=2))
        self.assertEqual(dates, [self.start + timedelta(days=1), self.start + timedelta(days=2)])


class CreateBookingTests(BookingTestMixin, TestCase):

    def test_booking_copies_the_price_breakdown(self):
        booking = self.book(selected_fee_ids=[self.breakfast.pk], special_requests='Späte Anreise')
        self.assertEqual(booking.status, Booking.STATUS_PENDING)
        self.assertTrue(booking.reference.startswith('CDB-'))
        # 5 nights x 100 + breakfast 2 guests x 5 nights x 10
        self.assertEqual(booking.total_price, Decimal('600.00'))
        self.assertEqual(booking.total_on_site, Decimal('50.00'))
        self.assertEqual(booking.deposit_amount, Decimal('180.00'))
        self.assertEqual(booking.remaining_amount, Decimal('420.00'))
        self.assertEqual(booking.deposit_due_date, self.today + timedelta(days=7))
        self.assertEqual(booking.remaining_due_date, self.start - timedelta(days=30))
        fees = {fee.name: fee for fee in booking.booked_fees.all()}
        self.assertEqual(set(fees), {'Endreinigung', 'Frühstück'})
        self.assertTrue(fees['Frühstück'].is_optional)
        self.assertEqual(fees['Endreinigung'].payment_location, Fee.PaymentLocation.ON_SITE)

    def test_extra_room_and_manual_discount(self):
        booking = self.book(with_extra_room=True, manual_discount_percentage=Decimal('10'), manual_discount_reason='Stammgast')
        self.assertEqual(booking.room_surcharge, Decimal('200.00'))
        # (500 + 200) less 10 %
        self.assertEqual(booking.discount_amount, Decimal('70.00'))
        self.assertEqual(booking.total_price, Decimal('630.00'))

    def test_unavailable_stay_writes_nothing(self):
        self.book()
        with self.assertRaisesMessage(BookingError, ALREADY_BOOKED):
            self.book(offset=1, guest_data={'first_name': 'Luca', 'last_name': 'Rossi', 'email': 'luca@example.com'})
        self.assertEqual(Booking.objects.count(), 1)
        self.assertFalse(Guest.objects.filter(email='luca@example.com').exists())

    def test_too_short_stay(self):
        with self.assertRaises(BookingError):
            self.book(nights=2)

    def test_without_payment_settings(self):
        PaymentSettings.objects.update(is_active=False)
        with self.assertRaises(PricingError):
            self.book()

    def test_returning_guest_is_reused(self):
        first = self.book()
        second = self.book(offset=10, guest_data=dict(GUEST, email='Maria@Example.com', phone='+39 123'))
        self.assertEqual(first.guest_id, second.guest_id)
        self.assertEqual(Guest.objects.count(), 1)
        self.assertEqual(second.guest.phone, '+39 123')


class GuestTests(TestCase):

    def test_upsert_creates_with_normalised_email(self):
        guest = upsert_guest(' Maria@Example.COM ', first_name='Maria', last_name='Muster')
        self.assertEqual(guest.email, 'maria@example.com')

    def test_upsert_keeps_address_when_empty(self):
        upsert_guest('maria@example.com', first_name='Maria', last_name='Muster', city='Bern')
        guest = upsert_guest('maria@example.com', first_name='Maria', last_name='Rossi', city='')
        self.assertEqual(guest.city, 'Bern')
        self.assertEqual(guest.last_name, 'Rossi')


class BookingLifecycleTests(BookingTestMixin, TestCase):

    def test_status_machine(self):
        booking = self.book()
        change_status(booking, Booking.STATUS_CONFIRMED)
        self.assertEqual(Booking.objects.get(pk=booking.pk).status, Booking.STATUS_CONFIRMED)
        with self.assertRaises(ValidationError):
            change_status(booking, Booking.STATUS_PENDING)
        change_status(booking, Booking.STATUS_CANCELLED)
        with self.assertRaises(ValidationError):
            change_status(booking, Booking.STATUS_CONFIRMED)

    def test_same_status_is_a_no_op(self):
        booking = self.book()
        self.assertIs(change_status(booking, Booking.STATUS_PENDING), booking)

    def test_mark_payment_sets_timestamps(self):
        booking = self.book()
        mark_payment(booking, deposit_paid=True)
        booking.refresh_from_db()
        self.assertTrue(booking.deposit_paid)
        self.assertIsNotNone(booking.deposit_paid_at)
        self.assertFalse(booking.is_fully_paid)
        mark_payment(booking, deposit_paid=False, remaining_paid=True)
        booking.refresh_from_db()
        self.assertIsNone(booking.deposit_paid_at)
        self.assertIsNotNone(booking.remaining_paid_at)

    def test_no_payments_on_cancelled_bookings(self):
        booking = self.book()
        change_status(booking, Booking.STATUS_CANCELLED)
        with self.assertRaises(ValidationError):
            mark_payment(booking, deposit_paid=True)

    def test_update_reprices_and_keeps_optional_fees(self):
        booking = self.book(selected_fee_ids=[self.breakfast.pk])
        booking = update_booking(booking, end_date=booking.start_date + timedelta(days=7))
        self.assertEqual(booking.total_price, Decimal('840.00'))
        self.assertTrue(booking.booked_fees.filter(fee=self.breakfast).exists())
        self.assertEqual(BookedFee.objects.filter(booking=booking).count(), 2)

    def test_update_rejects_overlap_with_other_booking(self):
        booking = self.book()
        self.book(offset=10, guest_data={'first_name': 'Luca', 'last_name': 'Rossi', 'email': 'luca@example.com'})
        with self.assertRaises(BookingError):
            update_booking(booking, end_date=booking.start_date + timedelta(days=12))

    def test_cancelled_booking_cannot_be_updated(self):
        booking = self.book()
        change_status(booking, Booking.STATUS_CANCELLED)
        with self.assertRaises(BookingError):
            update_booking(booking, num_adults=3)

    def test_update_prices_with_the_locked_payment_settings(self):
        booking = self.book()
        with mock.patch('reservations.services.load_pricing_snapshot', wraps=load_pricing_snapshot) as snapshot:
            update_booking(booking, num_adults=3)
        snapshot.assert_called_once_with(booking.start_date, payment_settings=self.payment_settings)

    def test_taken_reference_is_regenerated(self):
        first = self.book()
        second = Booking(reference=first.reference, guest=first.guest,
                         start_date=self.start + timedelta(days=10), end_date=self.start + timedelta(days=15))
        with mock.patch('reservations.models.generate_booking_reference', return_value='CDB-2607-ZZZZ'):
            second.save()
        self.assertEqual(Booking.objects.get(pk=second.pk).reference, 'CDB-2607-ZZZZ')

    def test_reference_retries_are_limited(self):
        first = self.book()
        second = Booking(reference=first.reference, guest=first.guest,
                         start_date=self.start + timedelta(days=10), end_date=self.start + timedelta(days=15))
        with mock.patch('reservations.models.generate_booking_reference', return_value=first.reference) as generate:
            with self.assertRaises(IntegrityError):
                second.save()
        self.assertEqual(generate.call_count, REFERENCE_ATTEMPTS - 1)
        self.assertEqual(Booking.objects.count(), 1)

    def test_email_data(self):
        booking = self.book(selected_fee_ids=[self.breakfast.pk])
        data = booking_email_data(booking)
        self.assertEqual(data['guest_name'], 'Maria Muster')
        self.assertEqual(data['total_price'], '600,00 €')
        self.assertEqual(data['on_site_fees'], [{'name': 'Endreinigung', 'amount': '50,00 €'}])
        self.assertEqual(data['bank_holder'], 'Barbara Muster')

    def test_confirmation_html(self):
        booking = self.book()
        html = render_booking_confirmation_html(booking)
        self.assertIn(booking.reference, html)
        self.assertIn('Maria', html)


class ExpiryTests(BookingTestMixin, TestCase):

    def setUp(self):
        self.booking = self.book()
        Booking.objects.filter(pk=self.booking.pk).update(deposit_due_date=self.today - timedelta(days=1))

    @override_settings(AUTO_CANCEL_UNPAID_BOOKINGS=False)
    def test_disabled_by_default(self):
        self.assertEqual(cancel_expired_pending_bookings(), 0)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.STATUS_PENDING)

    @override_settings(AUTO_CANCEL_UNPAID_BOOKINGS=True)
    def test_overdue_pending_booking_is_cancelled(self):
        self.assertEqual(cancel_expired_pending_bookings(), 1)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.STATUS_CANCELLED)

    @override_settings(AUTO_CANCEL_UNPAID_BOOKINGS=True)
    def test_paid_deposit_is_kept(self):
        mark_payment(self.booking, deposit_paid=True)
        self.assertEqual(cancel_expired_pending_bookings(), 0)


@mock.patch('reservations.signals.send_booking_email_task')
class BookingSignalTests(BookingTestMixin, TestCase):

    def test_new_pending_booking_queues_received_mail(self, task):
        with self.captureOnCommitCallbacks(execute=True):
            booking = self.book()
        task.delay.assert_called_once_with(booking.pk, 'booking_received')

    def test_confirmation_is_sent_once(self, task):
        booking = self.book()
        with self.captureOnCommitCallbacks(execute=True):
            change_status(booking, Booking.STATUS_CONFIRMED)
        task.delay.assert_called_once_with(booking.pk, 'booking_confirmation', attach_pdf=True)
        booking.refresh_from_db()
        self.assertTrue(booking.notification_sent)

        task.reset_mock()
        with self.captureOnCommitCallbacks(execute=True):
            mark_payment(booking, deposit_paid=True)
        task.delay.assert_not_called()

    def test_nothing_is_queued_for_a_failed_booking(self, task):
        self.book()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(BookingError):
                self.book(offset=1)
        self.assertEqual(callbacks, [])


class BlockedDateModelTests(TestCase):

    def test_end_before_start(self):
        today = timezone.localdate()
        block = BlockedDate(start_date=today, end_date=today - timedelta(days=1))
        with self.assertRaises(ValidationError):
            block.full_clean()


class DashboardTests(BookingTestMixin, TestCase):

    def test_summary(self):
        self.book()
        soon = self.book(offset=-50, nights=4, guest_data={'first_name': 'Luca', 'last_name': 'Rossi', 'email': 'luca@example.com'})
        change_status(soon, Booking.STATUS_CONFIRMED)
        Message.objects.create(name='Anna', email='anna@example.com', message='Hallo')
        Message.objects.create(name='Otto', email='otto@example.com', message='Hallo', archived=True)

        summary = dashboard_summary(self.today)
        self.assertEqual(list(summary['upcoming_arrivals']), [soon])
        self.assertEqual(summary['pending_count'], 1)
        self.assertEqual(summary['unread_messages'], 1)


class PublicBookingAPITests(BookingTestMixin, APITestCase):

    def payload(self, **extra):
        payload = {
            'start_date': self.start.isoformat(),
            'end_date': (self.start + timedelta(days=5)).isoformat(),
            'num_adults': 2,
            'guest': dict(GUEST, preferred_language='en'),
            'selected_fee_ids': [self.breakfast.pk],
            'terms_accepted': True,
        }
        payload.update(extra)
        return payload

    def test_availability(self):
        url = reverse('reservations:availability')
        response = self.client.get(url, {'start_date': self.start.isoformat(), 'end_date': (self.start + timedelta(days=5)).isoformat()})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {'available': True, 'reason': None})

    def test_availability_rejects_reversed_range(self):
        url = reverse('reservations:availability')
        response = self.client.get(url, {'start_date': self.start.isoformat(), 'end_date': self.start.isoformat()})
        self.assertEqual(response.status_code, 400)

    def test_calendar(self):
        self.book(nights=4)
        response = self.client.get(reverse('reservations:blocked-dates-calendar'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data['dates']), 4)

    def test_create_booking(self):
        response = self.client.post(reverse('reservations:booking-create'), self.payload(), format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['total_price'], '600.00')
        self.assertEqual(response.data['status'], Booking.STATUS_PENDING)
        self.assertEqual(Guest.objects.get().preferred_language, 'en')

    def test_terms_must_be_accepted(self):
        response = self.client.post(reverse('reservations:booking-create'), self.payload(terms_accepted=False), format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('terms_accepted', response.data)
        self.assertFalse(Booking.objects.exists())

    def test_create_booking_on_booked_dates(self):
        self.book(offset=2)
        response = self.client.post(reverse('reservations:booking-create'), self.payload(), format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {'error': ALREADY_BOOKED})

    def test_lookup(self):
        booking = self.book()
        url = reverse('reservations:booking-lookup')
        response = self.client.post(url, {'reference': booking.reference.lower(), 'email': 'MARIA@example.com'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['reference'], booking.reference)

        response = self.client.post(url, {'reference': booking.reference, 'email': 'luca@example.com'}, format='json')
        self.assertEqual(response.status_code, 404)


class AdminBookingAPITests(BookingTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        super().setUpTestData()
        cls.admin = User.objects.create_user('barbara', 'barbara@example.com', 'secret', is_staff=True)

    def setUp(self):
        self.client.force_authenticate(self.admin)

    def test_back_office_requires_staff(self):
        self.client.force_authenticate(User.objects.create_user('gast', 'gast@example.com', 'secret'))
        response = self.client.get(reverse('reservations:booking-list'))
        self.assertEqual(response.status_code, 403)

    def test_list_filters_by_status(self):
        pending = self.book()
        confirmed = self.book(offset=10)
        change_status(confirmed, Booking.STATUS_CONFIRMED)
        response = self.client.get(reverse('reservations:booking-list'), {'status': 'pending'})
        self.assertEqual([row['id'] for row in response.data], [pending.pk])

    def test_admin_create_with_manual_discount(self):
        payload = {
            'start_date': self.start.isoformat(),
            'end_date': (self.start + timedelta(days=5)).isoformat(),
            'num_adults': 2,
            'guest': GUEST,
            'manual_discount_percentage': '10',
            'manual_discount_reason': 'Stammgast',
            'status': Booking.STATUS_CONFIRMED,
        }
        response = self.client.post(reverse('reservations:booking-list'), payload, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['total_price'], '450.00')
        self.assertEqual(response.data['status'], Booking.STATUS_CONFIRMED)

    def test_update_reprices(self):
        booking = self.book()
        url = reverse('reservations:booking-detail', args=[booking.pk])
        response = self.client.patch(url, {'num_adults': 3, 'with_extra_room': True}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['total_price'], '700.00')

    def test_status_action(self):
        booking = self.book()
        url = reverse('reservations:booking-set-status', args=[booking.pk])
        response = self.client.post(url, {'status': Booking.STATUS_CANCELLED}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], Booking.STATUS_CANCELLED)

        response = self.client.post(url, {'status': Booking.STATUS_CONFIRMED}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('error', response.data)

    def test_payment_action(self):
        booking = self.book()
        response = self.client.post(reverse('reservations:booking-payment', args=[booking.pk]), {'deposit_paid': True}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['deposit_paid'])
        self.assertIsNotNone(response.data['deposit_paid_at'])

    def test_bookings_cannot_be_deleted(self):
        booking = self.book()
        response = self.client.delete(reverse('reservations:booking-detail', args=[booking.pk]))
        self.assertEqual(response.status_code, 405)

    @mock.patch('reservations.views.generate_booking_confirmation_pdf', return_value=b'%PDF-1.7')
    def test_pdf(self, generate_pdf):
        booking = self.book()
        response = self.client.get(reverse('reservations:booking-pdf', args=[booking.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertEqual(response.content, b'%PDF-1.7')

    def test_guest_with_bookings_cannot_be_deleted(self):
        booking = self.book()
        response = self.client.delete(reverse('reservations:guest-detail', args=[booking.guest_id]))
        self.assertEqual(response.status_code, 400)
        self.assertTrue(Guest.objects.filter(pk=booking.guest_id).exists())

    def test_guest_detail_lists_bookings(self):
        booking = self.book()
        response = self.client.get(reverse('reservations:guest-detail', args=[booking.guest_id]))
        self.assertEqual([row['reference'] for row in response.data['bookings']], [booking.reference])

    def test_blocked_date_validation(self):
        payload = {'start_date': self.start.isoformat(), 'end_date': (self.start - timedelta(days=1)).isoformat()}
        response = self.client.post(reverse('reservations:blocked-date-list'), payload, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('end_date', response.data)

    def test_dashboard(self):
        self.book()
        response = self.client.get(reverse('reservations:dashboard'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['pending_count'], 1)


class BookingAdminTests(BookingTestMixin, TestCase):

    @classmethod
    def setUpTestData(cls):
        super().setUpTestData()
        cls.admin_user = User.objects.create_superuser('barbara', 'barbara@example.com', 'secret')

    def setUp(self):
        self.model_admin = BookingAdmin(Booking, AdminSite())
        self.request = RequestFactory().post('/admin/reservations/booking/')
        self.request.user = self.admin_user

    def form_for(self, booking, **changes):
        data = model_to_dict(Booking.objects.get(pk=booking.pk), fields=BookingAdminForm._meta.fields)
        data.update(changes)
        return BookingAdminForm(data, instance=Booking.objects.get(pk=booking.pk))

    def save(self, form, change=True):
        self.assertTrue(form.is_valid(), form.errors)
        obj = form.save(commit=False)
        with mock.patch.object(self.model_admin, 'message_user') as message_user:
            self.model_admin.save_model(self.request, obj, form, change)
        return obj, message_user

    def test_payment_is_recorded_after_the_season_changed(self):
        booking = self.book()
        PricingPeriod.objects.update(min_nights=7)
        form = self.form_for(booking, deposit_paid=True)
        self.assertEqual(form.changed_data, ['deposit_paid'])
        self.assertFalse(form.needs_repricing)

        _, message_user = self.save(form)
        booking.refresh_from_db()
        self.assertTrue(booking.deposit_paid)
        self.assertIsNotNone(booking.deposit_paid_at)
        self.assertEqual(booking.total_price, Decimal('500.00'))
        message_user.assert_not_called()

    def test_unpaid_flag_clears_the_timestamp(self):
        booking = self.book()
        mark_payment(booking, deposit_paid=True)
        self.save(self.form_for(booking, deposit_paid=False))
        booking.refresh_from_db()
        self.assertFalse(booking.deposit_paid)
        self.assertIsNone(booking.deposit_paid_at)

    def test_date_change_is_checked_against_the_season(self):
        booking = self.book()
        PricingPeriod.objects.update(min_nights=7)
        form = self.form_for(booking, end_date=booking.start_date + timedelta(days=6))
        self.assertFalse(form.is_valid())
        self.assertIn("Aufenthaltsdauer muss zwischen 7 und 21 Nächten liegen", form.non_field_errors())

    def test_illegal_status_change(self):
        booking = self.book()
        change_status(booking, Booking.STATUS_CONFIRMED)
        form = self.form_for(booking, status=Booking.STATUS_PENDING)
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors['status'], ["Statuswechsel von 'Bestätigt' nach 'Angefragt' ist nicht erlaubt."])

    def test_overlapping_dates(self):
        self.book()
        other = self.book(offset=10, guest_data={'first_name': 'Luca', 'last_name': 'Rossi', 'email': 'luca@example.com'})
        form = self.form_for(other, start_date=self.start + timedelta(days=3))
        self.assertFalse(form.is_valid())
        self.assertIn(ALREADY_BOOKED, form.non_field_errors())

    def test_end_before_start(self):
        booking = self.book()
        form = self.form_for(booking, end_date=booking.start_date)
        self.assertFalse(form.is_valid())
        self.assertIn('end_date', form.errors)

    def test_no_payments_on_cancelled_bookings(self):
        booking = self.book()
        change_status(booking, Booking.STATUS_CANCELLED)
        form = self.form_for(booking, deposit_paid=True)
        self.assertFalse(form.is_valid())
        self.assertIn("Für stornierte Buchungen können keine Zahlungen erfasst werden.", form.non_field_errors())

    def test_date_change_reprices(self):
        booking = self.book()
        _, message_user = self.save(self.form_for(booking, end_date=booking.start_date + timedelta(days=7)))
        booking.refresh_from_db()
        self.assertEqual(booking.total_price, Decimal('700.00'))
        self.assertEqual(booking.deposit_amount, Decimal('210.00'))
        message_user.assert_called_once_with(self.request, "Der Preis wurde neu berechnet.", messages.INFO)

    def test_new_booking_is_priced(self):
        guest = Guest.objects.create(**GUEST)
        form = BookingAdminForm({
            'guest': guest.pk,
            'start_date': self.start.isoformat(),
            'end_date': (self.start + timedelta(days=5)).isoformat(),
            'num_adults': 2,
            'num_children': 0,
            'status': Booking.STATUS_PENDING,
            'manual_discount_percentage': '10',
            'manual_discount_reason': 'Stammgast',
        })
        obj, _ = self.save(form, change=False)
        booking = Booking.objects.get(pk=obj.pk)
        self.assertEqual(booking.total_price, Decimal('450.00'))
        self.assertEqual(booking.discount_amount, Decimal('50.00'))
        self.assertEqual(booking.booked_fees.count(), 1)

    def test_failed_repricing_rolls_back(self):
        booking = self.book()
        form = self.form_for(booking, end_date=booking.start_date + timedelta(days=7), deposit_paid=True)
        with mock.patch('reservations.admin.update_booking', side_effect=BookingError(ALREADY_BOOKED)):
            _, message_user = self.save(form)
        message_user.assert_called_once_with(
            self.request, f"Die Buchung wurde nicht gespeichert: {ALREADY_BOOKED}", messages.ERROR,
        )
        booking.refresh_from_db()
        self.assertEqual(booking.end_date, self.start + timedelta(days=5))
        self.assertFalse(booking.deposit_paid)
