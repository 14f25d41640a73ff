# reservations/views.py
# version: 3.0.0
# REFACTOR: Booking flow of the apartment: availability, calendar, booking creation and lookup
#           for guests; booking, guest and blocked date management for the back-office.

import logging

from django.core.exceptions import ValidationError
from django.db.models import Prefetch
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from pricing.services import PricingError
from .models import Booking, Guest, BlockedDate
from .pdf_utils import generate_booking_confirmation_pdf
from .selectors import check_availability, get_blocked_dates, dashboard_summary
from .serializers import (
    AvailabilityQuerySerializer, BlockedDatesQuerySerializer, CreateBookingSerializer,
    AdminCreateBookingSerializer, BookingUpdateSerializer, BookingStatusSerializer,
    PaymentFlagsSerializer, BookingLookupSerializer, BookingDetailSerializer,
    BookingAdminSerializer, BookingListSerializer, GuestSerializer, GuestDetailSerializer,
    BlockedDateSerializer, DashboardSerializer,
)
from .services import BookingError, create_booking, update_booking, change_status, mark_payment

logger = logging.getLogger(__name__)


def _create_booking_from(data, **extra):
    return create_booking(
        guest_data=data['guest'],
        start_date=data['start_date'],
        end_date=data['end_date'],
        num_adults=data['num_adults'],
        num_children=data['num_children'],
        with_extra_room=data['with_extra_room'],
        selected_fee_ids=data['selected_fee_ids'],
        special_requests=data['special_requests'],
        **extra
    )


class AvailabilityAPIView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        query = AvailabilityQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)
        result = check_availability(query.validated_data['start_date'], query.validated_data['end_date'])
        return Response(result, status=status.HTTP_200_OK)


class BlockedDatesAPIView(APIView):
    """Dates the booking calendar shows as unavailable."""
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        query = BlockedDatesQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)
        dates = get_blocked_dates(query.validated_data.get('start'), query.validated_data.get('end'))
        return Response({"dates": dates}, status=status.HTTP_200_OK)


class CreateBookingAPIView(APIView):
    """Booking request from the public booking form."""
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = CreateBookingSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            booking = _create_booking_from(serializer.validated_data)
        except (BookingError, PricingError) as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(BookingDetailSerializer(booking).data, status=status.HTTP_201_CREATED)


class BookingLookupAPIView(APIView):
    """
    Lets a guest look up their booking with the booking reference and the
    e-mail address used for it.
    """
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = BookingLookupSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        booking = Booking.objects.filter(
            reference__iexact=serializer.validated_data['reference'].strip(),
            guest__email__iexact=serializer.validated_data['email'],
        ).select_related('guest').first()
        if not booking:
            return Response({"error": "Es wurde keine Buchung mit diesen Angaben gefunden."}, status=status.HTTP_404_NOT_FOUND)
        return Response(BookingDetailSerializer(booking).data, status=status.HTTP_200_OK)


# --- Back-office ---

class BookingViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.CreateModelMixin,
                     mixins.UpdateModelMixin,
                     viewsets.GenericViewSet):
    """
    Bookings are never deleted; cancelling is a status change.
    """
    queryset = Booking.objects.select_related('guest').prefetch_related('booked_fees')
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = {
        'status': ['exact'],
        'start_date': ['gte', 'lte'],
        'end_date': ['gte', 'lte'],
        'deposit_paid': ['exact'],
        'remaining_paid': ['exact'],
    }
    search_fields = ['reference', 'guest__first_name', 'guest__last_name', 'guest__email']
    ordering_fields = ['start_date', 'created_at', 'total_price']

    def get_serializer_class(self):
        if self.action == 'list':
            return BookingListSerializer
        return BookingAdminSerializer

    def create(self, request, *args, **kwargs):
        serializer = AdminCreateBookingSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        try:
            booking = _create_booking_from(
                data,
                manual_discount_percentage=data['manual_discount_percentage'],
                manual_discount_reason=data['manual_discount_reason'],
                status=data['status'],
            )
        except (BookingError, PricingError) as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(BookingAdminSerializer(booking).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        booking = self.get_object()
        serializer = BookingUpdateSerializer(booking, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            booking = update_booking(booking, **serializer.validated_data)
        except (BookingError, PricingError) as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(BookingAdminSerializer(booking).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'], url_path='status')
    def set_status(self, request, pk=None):
        booking = self.get_object()
        serializer = BookingStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            change_status(booking, serializer.validated_data['status'])
        except ValidationError as exc:
            return Response({"error": exc.messages[0]}, status=status.HTTP_400_BAD_REQUEST)
        booking.refresh_from_db()
        return Response(BookingAdminSerializer(booking).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def payment(self, request, pk=None):
        booking = self.get_object()
        serializer = PaymentFlagsSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            mark_payment(booking, **serializer.validated_data)
        except ValidationError as exc:
            return Response({"error": exc.messages[0]}, status=status.HTTP_400_BAD_REQUEST)
        return Response(BookingAdminSerializer(booking).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['get'])
    def pdf(self, request, pk=None):
        booking = self.get_object()
        try:
            pdf_bytes = generate_booking_confirmation_pdf(booking)
        except Exception:
            logger.exception("PDF generation failed for booking %s", booking.reference)
            return Response({"error": "Beim Erstellen der PDF-Datei ist ein Fehler aufgetreten."}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        response = HttpResponse(pdf_bytes, content_type='application/pdf')
        response['Content-Disposition'] = f'inline; filename="buchung_{booking.reference}.pdf"'
        return response


class GuestViewSet(viewsets.ModelViewSet):
    queryset = Guest.objects.all()
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['email', 'preferred_language', 'marketing_consent']
    search_fields = ['first_name', 'last_name', 'email']

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related(
                Prefetch('bookings', queryset=Booking.objects.select_related('guest').order_by('-start_date'))
            )
        return queryset

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return GuestDetailSerializer
        return GuestSerializer

    def destroy(self, request, *args, **kwargs):
        guest = self.get_object()
        if guest.bookings.exists():
            return Response({"error": "Gäste mit Buchungen können nicht gelöscht werden."}, status=status.HTTP_400_BAD_REQUEST)
        return super().destroy(request, *args, **kwargs)


class BlockedDateViewSet(viewsets.ModelViewSet):
    queryset = BlockedDate.objects.all()
    serializer_class = BlockedDateSerializer


class DashboardAPIView(APIView):

    def get(self, request):
        return Response(DashboardSerializer(dashboard_summary()).data, status=status.HTTP_200_OK)
