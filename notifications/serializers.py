# notifications/serializers.py

from rest_framework import serializers

from core.models import LANGUAGE_CHOICES, DEFAULT_LANGUAGE
from .models import EmailTemplate, EmailTemplatePart, EmailLog, EmailSettings


class EmailTemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = EmailTemplate
        fields = [
            'id', 'name', 'type', 'description',
            'subject_de', 'subject_en', 'subject_fr', 'subject_it',
            'body_de', 'body_en', 'body_fr', 'body_it',
            'is_active', 'updated_at',
        ]
        read_only_fields = ['updated_at']


class EmailTemplatePartSerializer(serializers.ModelSerializer):
    class Meta:
        model = EmailTemplatePart
        fields = ['id', 'name', 'content_de', 'content_en', 'content_fr', 'content_it']


class EmailLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = EmailLog
        fields = ['id', 'recipient', 'template_name', 'language', 'subject', 'body', 'status', 'error_message', 'sent_at']
        read_only_fields = fields


class EmailSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = EmailSettings
        fields = ['id', 'provider_name', 'host', 'port', 'username', 'password', 'use_tls', 'use_ssl', 'from_email', 'is_active']
        extra_kwargs = {'password': {'write_only': True}}


class TemplatePreviewSerializer(serializers.Serializer):
    language = serializers.ChoiceField(choices=LANGUAGE_CHOICES, required=False, default=DEFAULT_LANGUAGE)
    data = serializers.DictField(required=False)


class TestEmailSerializer(serializers.Serializer):
    to = serializers.EmailField()
    language = serializers.ChoiceField(choices=LANGUAGE_CHOICES, required=False, default=DEFAULT_LANGUAGE)
    template_name = serializers.CharField(required=False, allow_blank=True)
    subject = serializers.CharField(required=False, allow_blank=True)
    content = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs.get('template_name') and not (attrs.get('subject') and attrs.get('content')):
            raise serializers.ValidationError("Bitte eine Vorlage oder Betreff und Inhalt angeben.")
        return attrs
