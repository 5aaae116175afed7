from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ["id", "user", "subject", "type", "is_read", "created_at"]
    list_filter = ["type", "is_read"]
    search_fields = ["subject", "user__username"]
    ordering = ["-created_at"]
