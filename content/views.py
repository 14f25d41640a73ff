# content/views.py
# FEATURE: Blog, events and contact form for the website; blog, event and message management
#          for the back-office.

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, generics, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import BlogPost, Event, Message
from .serializers import (
    BlogPostListSerializer, BlogPostSerializer, EventSerializer,
    ContactMessageSerializer, MessageSerializer, MessageReplySerializer,
)
from .services import (
    published_posts, upcoming_events, publish_post, unpublish_post,
    submit_contact_message, reply_to_message,
)


class PublicBlogPostViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Published blog posts, newest first. Drafts and posts scheduled for later
    are not visible.
    """
    authentication_classes = []
    permission_classes = [AllowAny]
    lookup_field = 'slug'

    def get_queryset(self):
        return published_posts().order_by('-published_at')

    def get_serializer_class(self):
        if self.action == 'list':
            return BlogPostListSerializer
        return BlogPostSerializer


class UpcomingEventListView(generics.ListAPIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    serializer_class = EventSerializer

    def get_queryset(self):
        return upcoming_events()


class ContactAPIView(APIView):
    """Contact form of the website."""
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = ContactMessageSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        submit_contact_message(**serializer.validated_data)
        return Response({"message": "Vielen Dank für Ihre Nachricht. Wir melden uns in Kürze."}, status=status.HTTP_201_CREATED)


# --- Back-office ---

class BlogPostViewSet(viewsets.ModelViewSet):
    queryset = BlogPost.objects.all()
    serializer_class = BlogPostSerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['slug']
    ordering_fields = ['published_at', 'created_at']

    @action(detail=True, methods=['post'])
    def publish(self, request, pk=None):
        post = publish_post(self.get_object())
        return Response(self.get_serializer(post).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def unpublish(self, request, pk=None):
        post = unpublish_post(self.get_object())
        return Response(self.get_serializer(post).data, status=status.HTTP_200_OK)


class EventViewSet(viewsets.ModelViewSet):
    queryset = Event.objects.all()
    serializer_class = EventSerializer
    filterset_fields = {
        'is_published': ['exact'],
        'start_date': ['gte', 'lte'],
    }


class MessageViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.UpdateModelMixin,
                     mixins.DestroyModelMixin,
                     viewsets.GenericViewSet):
    """
    Contact form messages. Only `is_read`, `archived` and `tags` can be edited.
    """
    queryset = Message.objects.prefetch_related('replies')
    serializer_class = MessageSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['is_read', 'archived', 'language']
    search_fields = ['name', 'email', 'subject', 'message']

    @action(detail=True, methods=['post'], url_path='mark-read')
    def mark_read(self, request, pk=None):
        message = self.get_object()
        message.is_read = True
        message.save(update_fields=['is_read'])
        return Response(self.get_serializer(message).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def archive(self, request, pk=None):
        message = self.get_object()
        message.archived = True
        message.save(update_fields=['archived'])
        return Response(self.get_serializer(message).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def reply(self, request, pk=None):
        message = self.get_object()
        serializer = MessageReplySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        reply = reply_to_message(message, serializer.validated_data['content'], sent_by=request.user.get_username())
        return Response(MessageReplySerializer(reply).data, status=status.HTTP_201_CREATED)
