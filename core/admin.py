# core/admin.py

from django.contrib import admin
from .models import SiteSettings


@admin.register(SiteSettings)
class SiteSettingsAdmin(admin.ModelAdmin):
    list_display = ('site_name', 'email', 'phone_number')

    def has_add_permission(self, request):
        # A single settings row is enough.
        return not SiteSettings.objects.exists()
