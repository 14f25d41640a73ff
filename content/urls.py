# content/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'content'

public_router = DefaultRouter()
public_router.register(r'blog', views.PublicBlogPostViewSet, basename='blog')

admin_router = DefaultRouter()
admin_router.register(r'blog-posts', views.BlogPostViewSet, basename='blog-post')
admin_router.register(r'events', views.EventViewSet, basename='event')
admin_router.register(r'messages', views.MessageViewSet, basename='message')

urlpatterns = [
    path('events/', views.UpcomingEventListView.as_view(), name='upcoming-events'),
    path('contact/', views.ContactAPIView.as_view(), name='contact'),
    path('admin/', include(admin_router.urls)),
    path('', include(public_router.urls)),
]
