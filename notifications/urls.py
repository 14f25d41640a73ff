# notifications/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'notifications'

router = DefaultRouter()
router.register(r'templates', views.EmailTemplateViewSet, basename='email-template')
router.register(r'template-parts', views.EmailTemplatePartViewSet, basename='email-template-part')
router.register(r'logs', views.EmailLogViewSet, basename='email-log')
router.register(r'settings', views.EmailSettingsViewSet, basename='email-settings')

urlpatterns = [
    path('send-test/', views.SendTestEmailAPIView.as_view(), name='send_test_email'),
    path('test-connection/', views.TestConnectionAPIView.as_view(), name='test_connection'),
    path('', include(router.urls)),
]
