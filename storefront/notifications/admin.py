from django.contrib import admin
from .models import Alert, NotificationTemplate


@admin.register(Alert)
class AlertAdmin(admin.ModelAdmin):
    list_display = ['name', 'alert_type', 'threshold', 'direction', 'severity', 'is_active']
    list_filter = ['alert_type', 'severity', 'is_active']
    search_fields = ['name', 'description']


@admin.register(NotificationTemplate)
class NotificationTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'channel', 'event_type', 'is_active', 'updated_at']
    list_filter = ['channel', 'is_active']
    search_fields = ['name', 'subject', 'body']
