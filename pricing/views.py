# pricing/views.py
# version: 2.0.0
# REFACTOR: Hotel search replaced by the apartment price quote, minimum stay and price calendar
#           endpoints plus the back-office CRUD for the pricing catalog.

import logging

from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import PricingPeriod, Fee, Discount, PaymentSettings
from .selectors import get_minimum_stay, get_price_calendar, load_pricing_snapshot
from .services import PricingError, calculate_price_breakdown, count_nights, optional_fee_choices
from .serializers import (
    PricingPeriodSerializer, FeeSerializer, DiscountSerializer, PaymentSettingsSerializer,
    PriceQuoteInputSerializer, AdminPriceQuoteInputSerializer,
    DayQuerySerializer, DateRangeQuerySerializer, PriceCalendarDaySerializer,
)

logger = logging.getLogger(__name__)


class BasePriceQuoteAPIView(APIView):
    input_serializer_class = PriceQuoteInputSerializer

    def get_breakdown_kwargs(self, data):
        return {}

    def post(self, request):
        serializer = self.input_serializer_class(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        try:
            snapshot = load_pricing_snapshot(data['start_date'])
            breakdown = calculate_price_breakdown(
                snapshot,
                data['start_date'],
                data['end_date'],
                data['num_adults'],
                data['num_children'],
                with_extra_room=data['with_extra_room'],
                selected_fee_ids=data['selected_fee_ids'],
                language=data['language'],
                **self.get_breakdown_kwargs(data)
            )
        except PricingError as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        breakdown['optional_fee_choices'] = optional_fee_choices(
            snapshot.fees, data['num_adults'], data['num_children'],
            count_nights(data['start_date'], data['end_date']), data['language'],
        )
        return Response(breakdown, status=status.HTTP_200_OK)


class PriceQuoteAPIView(BasePriceQuoteAPIView):
    """
    Price breakdown for the booking form, plus the optional extras the guest
    can still add.
    """
    authentication_classes = []
    permission_classes = [AllowAny]


class AdminPriceQuoteAPIView(BasePriceQuoteAPIView):
    """Quote for the back-office booking form, which may grant a manual discount."""
    input_serializer_class = AdminPriceQuoteInputSerializer

    def get_breakdown_kwargs(self, data):
        return {
            'manual_discount_percentage': data['manual_discount_percentage'],
            'manual_discount_reason': data['manual_discount_reason'],
        }


class MinimumStayAPIView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        query = DayQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)
        day = query.validated_data['date']
        return Response({"date": day, "min_nights": get_minimum_stay(day)}, status=status.HTTP_200_OK)


class PriceCalendarAPIView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        query = DateRangeQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)
        calendar = get_price_calendar(query.validated_data['start'], query.validated_data['end'])
        return Response(PriceCalendarDaySerializer(calendar, many=True).data, status=status.HTTP_200_OK)


# --- Back-office CRUD ---

class PricingPeriodViewSet(viewsets.ModelViewSet):
    queryset = PricingPeriod.objects.all()
    serializer_class = PricingPeriodSerializer
    filterset_fields = ['season_type']


class FeeViewSet(viewsets.ModelViewSet):
    queryset = Fee.objects.all()
    serializer_class = FeeSerializer
    filterset_fields = ['type', 'payment_location', 'is_active']


class DiscountViewSet(viewsets.ModelViewSet):
    queryset = Discount.objects.all()
    serializer_class = DiscountSerializer
    filterset_fields = ['type', 'is_active']


class PaymentSettingsViewSet(viewsets.ModelViewSet):
    """
    Payment settings profiles. Saving one as active deactivates the others.
    """
    queryset = PaymentSettings.objects.all().order_by('-is_active', 'id')
    serializer_class = PaymentSettingsSerializer
