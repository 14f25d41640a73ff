# core/serializers.py

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import SiteSettings


class ModelCleanMixin:
    """
    Runs the model's clean() on the submitted data so the API enforces the
    same rules as the admin forms.
    """

    def validate(self, attrs):
        attrs = super().validate(attrs)
        model = self.Meta.model
        values = {}
        if self.instance is not None:
            values = {field.attname: getattr(self.instance, field.attname) for field in model._meta.concrete_fields}
        candidate = model(**values)
        for key, value in attrs.items():
            setattr(candidate, key, value)
        try:
            candidate.clean()
        except DjangoValidationError as exc:
            if hasattr(exc, 'error_dict'):
                raise serializers.ValidationError(exc.message_dict)
            raise serializers.ValidationError({'non_field_errors': exc.messages})
        return attrs


class SiteSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = SiteSettings
        fields = ['site_name', 'tagline', 'address', 'phone_number', 'email']
