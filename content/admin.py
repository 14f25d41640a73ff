# content/admin.py

from django.contrib import admin
from django.utils import timezone

from core.utils import get_translation
from .models import BlogPost, Event, Message, MessageReply
from .services import reply_to_message


@admin.register(BlogPost)
class BlogPostAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'slug', 'published_at', 'is_published')
    list_filter = ('published_at',)
    search_fields = ('slug',)
    readonly_fields = ('created_at', 'updated_at')
    actions = ['publish_posts', 'unpublish_posts']

    @admin.display(boolean=True, description='Veröffentlicht')
    def is_published(self, obj):
        return obj.is_published

    @admin.action(description="Ausgewählte Artikel veröffentlichen")
    def publish_posts(self, request, queryset):
        updated = queryset.filter(published_at__isnull=True).update(published_at=timezone.now())
        self.message_user(request, f"{updated} Artikel veröffentlicht.")

    @admin.action(description="Ausgewählte Artikel zurückziehen")
    def unpublish_posts(self, request, queryset):
        updated = queryset.update(published_at=None)
        self.message_user(request, f"{updated} Artikel zurückgezogen.")


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('event_title', 'start_date', 'end_date', 'location', 'is_published')
    list_filter = ('is_published',)
    list_editable = ('is_published',)
    date_hierarchy = 'start_date'

    @admin.display(description='Titel')
    def event_title(self, obj):
        return get_translation(obj.title)


class MessageReplyInline(admin.StackedInline):
    model = MessageReply
    extra = 1
    fields = ('content', 'sent_by', 'created_at')
    readonly_fields = ('sent_by', 'created_at')

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'subject', 'language', 'is_read', 'archived', 'created_at')
    list_filter = ('is_read', 'archived', 'language')
    search_fields = ('name', 'email', 'subject', 'message')
    readonly_fields = ('name', 'email', 'phone', 'subject', 'message', 'language', 'created_at')
    inlines = [MessageReplyInline]
    actions = ['mark_as_read', 'archive_messages']

    def save_formset(self, request, form, formset, change):
        # New replies are sent to the sender instead of being saved directly.
        for reply in formset.save(commit=False):
            if reply.pk is None:
                reply_to_message(form.instance, reply.content, sent_by=request.user.get_username())
        for obj in formset.deleted_objects:
            obj.delete()

    @admin.action(description="Als gelesen markieren")
    def mark_as_read(self, request, queryset):
        queryset.update(is_read=True)

    @admin.action(description="Archivieren")
    def archive_messages(self, request, queryset):
        queryset.update(archived=True)
