# casa_di_barbara/urls.py

from django.contrib import admin
from django.urls import path, include
from rest_framework.authtoken import views
from django.conf.urls.static import static
from django.conf import settings

admin.site.site_header = "Casa di Barbara Verwaltung"
admin.site.site_title = "Casa di Barbara"
admin.site.index_title = "Willkommen in der Verwaltung"

urlpatterns = [
    path('admin/', admin.site.urls),

    # Project APIs
    path('api/', include('core.urls', namespace='core')),
    path('api/pricing/', include('pricing.urls', namespace='pricing')),
    path('api/bookings/', include('reservations.urls', namespace='reservations')),
    path('api/notifications/', include('notifications.urls', namespace='notifications')),
    path('api/content/', include('content.urls', namespace='content')),

    # API for admin login and token retrieval
    path('api/auth/login/', views.obtain_auth_token, name='api_token_auth'),
]
if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
