from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    fieldsets = DjangoUserAdmin.fieldsets + (
        ("Depot", {"fields": ("name", "role", "email_confirmed_at", "pending_role_assignment")}),
    )
    list_display = ("username", "email", "name", "role", "is_active", "pending_role_assignment")
    list_filter = DjangoUserAdmin.list_filter + ("role", "pending_role_assignment")
    search_fields = ("username", "email", "name")
