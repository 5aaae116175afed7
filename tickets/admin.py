from django.contrib import admin
from .models import Ticket


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = (
        "ticket_number", "user", "trip", "seat_number", "status",
        "ticket_type", "is_paid", "created_at",
    )
    list_filter = ("status", "ticket_type", "is_paid")
    search_fields = ("ticket_number", "user__username", "user__email", "recipient_name")
    readonly_fields = ("ticket_number", "alighted_at", "created_at", "updated_at")
