# pricing/urls.py
# version: 2.0.0
# REFACTOR: Public quote/calendar endpoints and the back-office pricing catalog router.

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'pricing'

router = DefaultRouter()
router.register(r'periods', views.PricingPeriodViewSet, basename='pricing-period')
router.register(r'fees', views.FeeViewSet, basename='fee')
router.register(r'discounts', views.DiscountViewSet, basename='discount')
router.register(r'payment-settings', views.PaymentSettingsViewSet, basename='payment-settings')

urlpatterns = [
    path('quote/', views.PriceQuoteAPIView.as_view(), name='price_quote_api'),
    path('minimum-stay/', views.MinimumStayAPIView.as_view(), name='minimum_stay_api'),
    path('calendar/', views.PriceCalendarAPIView.as_view(), name='price_calendar_api'),
    path('admin/quote/', views.AdminPriceQuoteAPIView.as_view(), name='admin_price_quote_api'),
    path('admin/', include(router.urls)),
]
