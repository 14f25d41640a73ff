# notifications/admin.py

from django.contrib import admin, messages

from .models import EmailTemplate, EmailTemplatePart, EmailLog, EmailSettings
from .services import test_email_connection


@admin.register(EmailTemplate)
class EmailTemplateAdmin(admin.ModelAdmin):
    list_display = ('name', 'type', 'subject_de', 'is_active', 'updated_at')
    list_filter = ('type', 'is_active')
    list_editable = ('is_active',)
    search_fields = ('name', 'subject_de', 'description')
    fieldsets = (
        (None, {'fields': ('name', 'type', 'description', 'is_active')}),
        ('Deutsch', {'fields': ('subject_de', 'body_de')}),
        ('Englisch', {'fields': ('subject_en', 'body_en'), 'classes': ('collapse',)}),
        ('Französisch', {'fields': ('subject_fr', 'body_fr'), 'classes': ('collapse',)}),
        ('Italienisch', {'fields': ('subject_it', 'body_it'), 'classes': ('collapse',)}),
    )


@admin.register(EmailTemplatePart)
class EmailTemplatePartAdmin(admin.ModelAdmin):
    list_display = ('name',)


@admin.register(EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    list_display = ('sent_at', 'recipient', 'subject', 'template_name', 'status')
    list_filter = ('status', 'template_name', 'language')
    search_fields = ('recipient', 'subject')
    readonly_fields = ('recipient', 'template_name', 'language', 'subject', 'body', 'status', 'error_message', 'sent_at')

    def has_add_permission(self, request):
        return False


@admin.register(EmailSettings)
class EmailSettingsAdmin(admin.ModelAdmin):
    list_display = ('provider_name', 'host', 'port', 'username', 'is_active')
    list_editable = ('is_active',)
    actions = ['check_connection']

    @admin.action(description="Verbindung der aktiven Einstellung testen")
    def check_connection(self, request, queryset):
        result = test_email_connection()
        if result['success']:
            self.message_user(request, result['message'], messages.SUCCESS)
        else:
            self.message_user(request, result['error'], messages.ERROR)
