from django.contrib import admin
from .models import Route, Stop


class StopInline(admin.TabularInline):
    model = Stop
    extra = 1


@admin.register(Route)
class RouteAdmin(admin.ModelAdmin):
    list_display = ("origin", "destination", "distance", "duration")
    search_fields = ("origin", "destination")
    readonly_fields = ("created_at", "updated_at")
    inlines = [StopInline]


@admin.register(Stop)
class StopAdmin(admin.ModelAdmin):
    list_display = ("stop_name", "route", "price")
    list_filter = ("route",)
    search_fields = ("stop_name", "route__origin", "route__destination")
