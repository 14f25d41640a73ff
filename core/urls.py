# core/urls.py

from django.urls import path
from . import views

app_name = 'core'

urlpatterns = [
    path('settings/', views.SiteSettingsAPIView.as_view(), name='site_settings_api'),
]
