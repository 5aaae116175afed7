from django.contrib import admin
from .models import Trip, TripSeat, TripCodeCounter


class TripSeatInline(admin.TabularInline):
    model = TripSeat
    extra = 0
    readonly_fields = ("seat_number", "status", "updated_at")
    can_delete = False


@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    list_display = ("trip_code", "route", "bus", "driver", "embark_time", "status", "is_scheduled")
    list_filter = ("status", "is_scheduled")
    search_fields = ("trip_code", "route__origin", "route__destination", "bus__bus_number")
    readonly_fields = ("trip_code", "created_at", "updated_at")
    inlines = [TripSeatInline]


@admin.register(TripCodeCounter)
class TripCodeCounterAdmin(admin.ModelAdmin):
    list_display = ("scope", "last_value")
