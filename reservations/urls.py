# reservations/urls.py
# version: 2.0.0
# REFACTOR: Public booking flow plus the back-office router for bookings, guests and blocked dates.

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    AvailabilityAPIView, BlockedDatesAPIView, CreateBookingAPIView, BookingLookupAPIView,
    BookingViewSet, GuestViewSet, BlockedDateViewSet, DashboardAPIView,
)

app_name = 'reservations'

router = DefaultRouter()
router.register(r'bookings', BookingViewSet, basename='booking')
router.register(r'guests', GuestViewSet, basename='guest')
router.register(r'blocked-dates', BlockedDateViewSet, basename='blocked-date')

urlpatterns = [
    # Guest booking flow
    path('availability/', AvailabilityAPIView.as_view(), name='availability'),
    path('calendar/', BlockedDatesAPIView.as_view(), name='blocked-dates-calendar'),
    path('', CreateBookingAPIView.as_view(), name='booking-create'),
    path('lookup/', BookingLookupAPIView.as_view(), name='booking-lookup'),

    # Back-office
    path('admin/dashboard/', DashboardAPIView.as_view(), name='dashboard'),
    path('admin/', include(router.urls)),
]
