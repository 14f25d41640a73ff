# reservations/serializers.py
# version: 2.0.0
# REFACTOR: Serializers for the apartment booking flow, the guest lookup and the back-office.

from rest_framework import serializers

from core.models import LANGUAGE_CHOICES, DEFAULT_LANGUAGE
from core.serializers import ModelCleanMixin
from pricing.serializers import StayInputSerializer
from .models import Guest, Booking, BookedFee, BlockedDate


class GuestInputSerializer(serializers.Serializer):
    """Guest data entered in the booking form."""
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    preferred_language = serializers.ChoiceField(choices=LANGUAGE_CHOICES, required=False, default=DEFAULT_LANGUAGE)
    marketing_consent = serializers.BooleanField(required=False, default=False)
    address_line_1 = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    zip_code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)


class CreateBookingSerializer(StayInputSerializer):
    guest = GuestInputSerializer()
    with_extra_room = serializers.BooleanField(required=False, default=False)
    selected_fee_ids = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
    special_requests = serializers.CharField(required=False, allow_blank=True, default='')
    terms_accepted = serializers.BooleanField()

    def validate_terms_accepted(self, value):
        if not value:
            raise serializers.ValidationError("Bitte akzeptieren Sie die Buchungsbedingungen.")
        return value


class AdminCreateBookingSerializer(CreateBookingSerializer):
    terms_accepted = serializers.BooleanField(required=False, default=True)
    manual_discount_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, default=0)
    manual_discount_reason = serializers.CharField(required=False, allow_blank=True, default='')
    status = serializers.ChoiceField(
        choices=[Booking.STATUS_PENDING, Booking.STATUS_CONFIRMED],
        required=False, default=Booking.STATUS_PENDING,
    )


class BookingUpdateSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    num_adults = serializers.IntegerField(min_value=1, required=False)
    num_children = serializers.IntegerField(min_value=0, required=False)
    with_extra_room = serializers.BooleanField(required=False)
    selected_fee_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    special_requests = serializers.CharField(required=False, allow_blank=True)
    manual_discount_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False)
    manual_discount_reason = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        booking = self.instance
        start_date = attrs.get('start_date', booking.start_date if booking else None)
        end_date = attrs.get('end_date', booking.end_date if booking else None)
        if start_date and end_date and end_date <= start_date:
            raise serializers.ValidationError({'end_date': "Das Abreisedatum muss nach dem Anreisedatum liegen."})
        return attrs


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.STATUS_CHOICES)


class PaymentFlagsSerializer(serializers.Serializer):
    deposit_paid = serializers.BooleanField(required=False, allow_null=True, default=None)
    remaining_paid = serializers.BooleanField(required=False, allow_null=True, default=None)


class AvailabilityQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()

    def validate(self, attrs):
        if attrs['end_date'] <= attrs['start_date']:
            raise serializers.ValidationError({'end_date': "Das Abreisedatum muss nach dem Anreisedatum liegen."})
        return attrs


class BlockedDatesQuerySerializer(serializers.Serializer):
    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)


class BookingLookupSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=20)
    email = serializers.EmailField()


class BookedFeeSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookedFee
        fields = ['id', 'fee', 'name', 'amount', 'payment_location', 'is_optional']


class GuestSerializer(serializers.ModelSerializer):
    class Meta:
        model = Guest
        fields = [
            'id', 'first_name', 'last_name', 'email', 'phone', 'preferred_language',
            'marketing_consent', 'address_line_1', 'city', 'zip_code', 'country',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']


class BookingDetailSerializer(serializers.ModelSerializer):
    """What the guest sees after booking and in the booking lookup."""
    guest_name = serializers.CharField(source='guest.full_name', read_only=True)
    nights = serializers.IntegerField(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    booked_fees = BookedFeeSerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            'reference', 'guest_name', 'start_date', 'end_date', 'nights',
            'num_adults', 'num_children', 'status', 'status_display',
            'total_price', 'total_on_site', 'room_surcharge', 'discount_amount',
            'deposit_amount', 'deposit_due_date', 'deposit_paid',
            'remaining_amount', 'remaining_due_date', 'remaining_paid',
            'booked_fees', 'created_at',
        ]
        read_only_fields = fields


class BookingAdminSerializer(serializers.ModelSerializer):
    guest = GuestSerializer(read_only=True)
    nights = serializers.IntegerField(read_only=True)
    booked_fees = BookedFeeSerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id', 'reference', 'guest', 'start_date', 'end_date', 'nights',
            'num_adults', 'num_children', 'special_requests', 'status',
            'total_price', 'total_on_site', 'with_extra_room', 'room_surcharge',
            'manual_discount_percentage', 'manual_discount_reason', 'discount_amount',
            'deposit_amount', 'deposit_due_date', 'deposit_paid', 'deposit_paid_at',
            'remaining_amount', 'remaining_due_date', 'remaining_paid', 'remaining_paid_at',
            'notification_sent', 'booked_fees', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class BookingListSerializer(serializers.ModelSerializer):
    guest_name = serializers.CharField(source='guest.full_name', read_only=True)
    guest_email = serializers.EmailField(source='guest.email', read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id', 'reference', 'guest_name', 'guest_email', 'start_date', 'end_date',
            'num_adults', 'num_children', 'status', 'total_price', 'deposit_paid', 'remaining_paid',
        ]
        read_only_fields = fields


class GuestDetailSerializer(GuestSerializer):
    bookings = BookingListSerializer(many=True, read_only=True)

    class Meta(GuestSerializer.Meta):
        fields = GuestSerializer.Meta.fields + ['bookings']


class BlockedDateSerializer(ModelCleanMixin, serializers.ModelSerializer):
    class Meta:
        model = BlockedDate
        fields = ['id', 'start_date', 'end_date', 'reason', 'created_at']
        read_only_fields = ['created_at']


class DashboardSerializer(serializers.Serializer):
    upcoming_arrivals = BookingListSerializer(many=True)
    pending_count = serializers.IntegerField()
    unread_messages = serializers.IntegerField()
    revenue_this_year = serializers.DecimalField(max_digits=12, decimal_places=2)
