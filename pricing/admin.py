# pricing/admin.py
# version 3
# REFACTOR: Admin for seasonal pricing periods, fees, discounts and payment settings.

from django.contrib import admin

from .forms import FeeAdminForm
from .models import PricingPeriod, Fee, Discount, PaymentSettings


@admin.register(PricingPeriod)
class PricingPeriodAdmin(admin.ModelAdmin):
    list_display = ('start_date', 'end_date', 'season_type', 'base_price', 'room_surcharge', 'min_nights', 'max_nights')
    list_filter = ('season_type',)
    date_hierarchy = 'start_date'
    ordering = ('start_date',)


@admin.register(Fee)
class FeeAdmin(admin.ModelAdmin):
    form = FeeAdminForm
    list_display = ('get_german_name', 'type', 'amount', 'calculation_type', 'payment_location', 'is_active')
    list_filter = ('type', 'payment_location', 'is_active')
    list_editable = ('is_active',)

    @admin.display(description='Name')
    def get_german_name(self, obj):
        return obj.get_name('de')


@admin.register(Discount)
class DiscountAdmin(admin.ModelAdmin):
    list_display = ('type', 'min_value', 'max_value', 'discount_percentage', 'is_active')
    list_filter = ('type', 'is_active')
    list_editable = ('is_active',)


@admin.register(PaymentSettings)
class PaymentSettingsAdmin(admin.ModelAdmin):
    list_display = ('deposit_percentage', 'deposit_due_days', 'remaining_due_days', 'bank_holder', 'is_active')
    list_filter = ('is_active',)
