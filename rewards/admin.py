from django.contrib import admin
from .models import PointsHistory


@admin.register(PointsHistory)
class PointsHistoryAdmin(admin.ModelAdmin):
    list_display = ("user", "type", "points", "ticket", "created_at")
    list_filter = ("type",)
    search_fields = ("user__username", "ticket__ticket_number")
    readonly_fields = ("user", "ticket", "type", "points", "description", "created_at")
