from django.contrib import admin
from .models import User, Role


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ["id", "username", "email", "phone", "role", "total_points", "is_active"]
    list_filter = ["role", "is_active"]
    search_fields = ["username", "email", "phone"]
    exclude = ["password"]


admin.site.register(Role)
