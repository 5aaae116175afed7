from django.contrib import admin
from .models import Bus, Driver


@admin.register(Bus)
class BusAdmin(admin.ModelAdmin):
    list_display = ["id", "name", "bus_number", "model", "capacity", "status"]
    list_filter = ["status"]
    search_fields = ["name", "bus_number"]


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    list_display = ["id", "driver_no", "user", "license_number", "license_expiry", "status"]
    list_filter = ["status"]
    search_fields = ["driver_no", "license_number", "user__username"]
