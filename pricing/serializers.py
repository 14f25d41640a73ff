# pricing/serializers.py
# version: 2.0.0
# REFACTOR: Hotel search serializers replaced by the pricing catalog and price quote serializers.

from rest_framework import serializers

from core.models import LANGUAGE_CODES, DEFAULT_LANGUAGE
from core.serializers import ModelCleanMixin
from .models import PricingPeriod, Fee, Discount, PaymentSettings


class PricingPeriodSerializer(ModelCleanMixin, serializers.ModelSerializer):
    class Meta:
        model = PricingPeriod
        fields = [
            'id', 'start_date', 'end_date', 'season_type', 'base_price',
            'room_surcharge', 'min_nights', 'max_nights', 'description',
        ]


class FeeSerializer(ModelCleanMixin, serializers.ModelSerializer):
    class Meta:
        model = Fee
        fields = ['id', 'name', 'type', 'amount', 'calculation_type', 'payment_location', 'is_active']


class DiscountSerializer(ModelCleanMixin, serializers.ModelSerializer):
    class Meta:
        model = Discount
        fields = ['id', 'type', 'min_value', 'max_value', 'discount_percentage', 'is_active']


class PaymentSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentSettings
        fields = [
            'id', 'deposit_percentage', 'deposit_due_days', 'remaining_due_days',
            'bank_holder', 'bank_iban', 'bank_bic', 'is_active',
        ]


class StayInputSerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    num_adults = serializers.IntegerField(min_value=1)
    num_children = serializers.IntegerField(min_value=0, required=False, default=0)

    def validate(self, attrs):
        if attrs['end_date'] <= attrs['start_date']:
            raise serializers.ValidationError({'end_date': "Das Abreisedatum muss nach dem Anreisedatum liegen."})
        return attrs


class PriceQuoteInputSerializer(StayInputSerializer):
    with_extra_room = serializers.BooleanField(required=False, default=False)
    selected_fee_ids = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
    language = serializers.ChoiceField(choices=LANGUAGE_CODES, required=False, default=DEFAULT_LANGUAGE)


class AdminPriceQuoteInputSerializer(PriceQuoteInputSerializer):
    manual_discount_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, default=0)
    manual_discount_reason = serializers.CharField(required=False, allow_blank=True, default='')


class DayQuerySerializer(serializers.Serializer):
    date = serializers.DateField()


class DateRangeQuerySerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):
        if attrs['end'] < attrs['start']:
            raise serializers.ValidationError({'end': "Das Ende muss nach dem Beginn liegen."})
        if (attrs['end'] - attrs['start']).days > 366:
            raise serializers.ValidationError({'end': "Der Zeitraum darf höchstens ein Jahr umfassen."})
        return attrs


class PriceCalendarDaySerializer(serializers.Serializer):
    date = serializers.DateField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2, allow_null=True)
    season_type = serializers.CharField(allow_null=True)
    min_nights = serializers.IntegerField()
