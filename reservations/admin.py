# reservations/admin.py
# version: 2.0.0
# REFACTOR: Booking admin recalculates prices through the booking services; guests and blocked
#           dates get their own admin pages. Bulk actions confirm or cancel bookings.

import logging

from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.db import transaction
from django.http import HttpResponse
from django.shortcuts import get_object_or_404, redirect
from django.urls import path, reverse
from django.utils import timezone
from django.utils.html import format_html

from pricing.services import PricingError
from .forms import BookingAdminForm
from .models import Booking, BookedFee, Guest, BlockedDate
from .pdf_utils import generate_booking_confirmation_pdf
from .services import BookingError, change_status, update_booking

logger = logging.getLogger(__name__)


class BookedFeeInline(admin.TabularInline):
    model = BookedFee
    extra = 0
    fields = ('name', 'amount', 'payment_location', 'is_optional')
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    form = BookingAdminForm
    list_display = ('reference', 'guest', 'start_date', 'end_date', 'status', 'total_price', 'deposit_paid', 'remaining_paid', 'pdf_link')
    list_filter = ('status', 'deposit_paid', 'remaining_paid', 'start_date')
    search_fields = ('reference', 'guest__first_name', 'guest__last_name', 'guest__email')
    autocomplete_fields = ('guest',)
    date_hierarchy = 'start_date'
    inlines = [BookedFeeInline]
    readonly_fields = (
        'reference', 'total_price', 'total_on_site', 'room_surcharge', 'discount_amount',
        'deposit_amount', 'deposit_due_date', 'deposit_paid_at',
        'remaining_amount', 'remaining_due_date', 'remaining_paid_at',
        'notification_sent', 'created_at', 'updated_at',
    )
    actions = ['confirm_bookings', 'cancel_bookings']

    def has_delete_permission(self, request, obj=None):
        # Bookings are cancelled, never deleted.
        return False

    @admin.display(description='PDF')
    def pdf_link(self, obj):
        url = reverse('admin:reservations_booking_pdf', args=[obj.pk])
        return format_html('<a href="{}" target="_blank">PDF</a>', url)

    def get_urls(self):
        custom_urls = [
            path('<int:booking_id>/pdf/', self.admin_site.admin_view(self.pdf_view), name='reservations_booking_pdf'),
        ]
        return custom_urls + super().get_urls()

    def pdf_view(self, request, booking_id):
        booking = get_object_or_404(Booking, pk=booking_id)
        try:
            pdf_bytes = generate_booking_confirmation_pdf(booking)
        except Exception as exc:
            self.message_user(request, f"PDF konnte nicht erstellt werden: {exc}", messages.ERROR)
            return redirect('admin:reservations_booking_change', booking.pk)
        response = HttpResponse(pdf_bytes, content_type='application/pdf')
        response['Content-Disposition'] = f'inline; filename="buchung_{booking.reference}.pdf"'
        return response

    def save_model(self, request, obj, form, change):
        for flag in ('deposit_paid', 'remaining_paid'):
            if flag in form.changed_data:
                setattr(obj, f'{flag}_at', timezone.now() if getattr(obj, flag) else None)

        reprice = obj.status != Booking.STATUS_CANCELLED and form.needs_repricing
        try:
            # A booking committed since the form was validated can still take the dates.
            with transaction.atomic():
                super().save_model(request, obj, form, change)
                if reprice:
                    update_booking(obj)
        except (BookingError, PricingError) as exc:
            logger.warning("Admin save of booking %s rolled back: %s", obj.reference, exc)
            self.message_user(request, f"Die Buchung wurde nicht gespeichert: {exc}", messages.ERROR)
            return

        if reprice:
            self.message_user(request, "Der Preis wurde neu berechnet.", messages.INFO)

    def _apply_status(self, request, queryset, new_status):
        changed = 0
        for booking in queryset:
            try:
                change_status(booking, new_status)
                changed += 1
            except ValidationError as exc:
                self.message_user(request, f"{booking.reference}: {exc.messages[0]}", messages.WARNING)
        if changed:
            self.message_user(request, f"{changed} Buchung(en) aktualisiert.", messages.SUCCESS)

    @admin.action(description="Ausgewählte Buchungen bestätigen")
    def confirm_bookings(self, request, queryset):
        self._apply_status(request, queryset, Booking.STATUS_CONFIRMED)

    @admin.action(description="Ausgewählte Buchungen stornieren")
    def cancel_bookings(self, request, queryset):
        self._apply_status(request, queryset, Booking.STATUS_CANCELLED)


class BookingInline(admin.TabularInline):
    model = Booking
    extra = 0
    fields = ('reference', 'start_date', 'end_date', 'status', 'total_price')
    readonly_fields = fields
    show_change_link = True
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Guest)
class GuestAdmin(admin.ModelAdmin):
    list_display = ('last_name', 'first_name', 'email', 'phone', 'preferred_language', 'marketing_consent')
    list_filter = ('preferred_language', 'marketing_consent')
    search_fields = ('first_name', 'last_name', 'email')
    inlines = [BookingInline]


@admin.register(BlockedDate)
class BlockedDateAdmin(admin.ModelAdmin):
    list_display = ('start_date', 'end_date', 'reason')
    date_hierarchy = 'start_date'
