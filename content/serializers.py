# content/serializers.py

from rest_framework import serializers

from core.models import LANGUAGE_CHOICES, LANGUAGE_CODES, DEFAULT_LANGUAGE
from .models import BlogPost, Event, Message, MessageReply


class TranslatedTextField(serializers.JSONField):
    """Per-language text dict; only known language codes are accepted."""

    def __init__(self, *args, require_german=False, **kwargs):
        self.require_german = require_german
        super().__init__(*args, **kwargs)

    def to_internal_value(self, data):
        data = super().to_internal_value(data)
        if not isinstance(data, dict):
            raise serializers.ValidationError("Erwartet wird ein Objekt mit Sprachkürzeln als Schlüssel.")
        unknown = set(data) - set(LANGUAGE_CODES)
        if unknown:
            raise serializers.ValidationError(f"Unbekannte Sprache(n): {', '.join(sorted(unknown))}")
        if self.require_german and not data.get(DEFAULT_LANGUAGE):
            raise serializers.ValidationError("Ein deutscher Text ist erforderlich.")
        return data


class BlogPostListSerializer(serializers.ModelSerializer):
    class Meta:
        model = BlogPost
        fields = ['id', 'slug', 'title', 'excerpt', 'cover_image', 'published_at']


class BlogPostSerializer(serializers.ModelSerializer):
    title = TranslatedTextField(require_german=True)
    excerpt = TranslatedTextField(required=False)
    content = TranslatedTextField(required=False)
    is_published = serializers.BooleanField(read_only=True)

    class Meta:
        model = BlogPost
        fields = [
            'id', 'slug', 'title', 'excerpt', 'content', 'cover_image',
            'published_at', 'is_published', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {'slug': {'required': False}}


class EventSerializer(serializers.ModelSerializer):
    title = TranslatedTextField(require_german=True)
    description = TranslatedTextField(required=False)

    class Meta:
        model = Event
        fields = ['id', 'title', 'description', 'start_date', 'end_date', 'location', 'is_published']

    def validate(self, attrs):
        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({'end_date': "Das Ende darf nicht vor dem Beginn liegen."})
        return attrs


class ContactMessageSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    subject = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    message = serializers.CharField()
    language = serializers.ChoiceField(choices=LANGUAGE_CHOICES, required=False, default=DEFAULT_LANGUAGE)


class MessageReplySerializer(serializers.ModelSerializer):
    class Meta:
        model = MessageReply
        fields = ['id', 'content', 'sent_by', 'created_at']
        read_only_fields = ['sent_by', 'created_at']


class MessageSerializer(serializers.ModelSerializer):
    replies = MessageReplySerializer(many=True, read_only=True)

    class Meta:
        model = Message
        fields = [
            'id', 'name', 'email', 'phone', 'subject', 'message', 'language',
            'is_read', 'archived', 'tags', 'created_at', 'replies',
        ]
        read_only_fields = ['name', 'email', 'phone', 'subject', 'message', 'language', 'created_at']

    def validate_tags(self, value):
        if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
            raise serializers.ValidationError("Schlagwörter müssen eine Liste von Texten sein.")
        return value
