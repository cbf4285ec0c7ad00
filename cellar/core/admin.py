from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'full_name', 'role', 'email_confirmed', 'is_active', 'created_at']
    list_filter = ['role', 'email_confirmed', 'is_active', 'is_superuser']
    search_fields = ['username', 'email', 'full_name']
    ordering = ['-created_at']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Application role', {'fields': ('full_name', 'role', 'email_confirmed')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Application role', {'fields': ('email', 'full_name', 'role', 'email_confirmed')}),
    )
