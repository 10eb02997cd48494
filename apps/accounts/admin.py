from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from .models import User, OperatorRole


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for operator accounts.

    Operators with the ADMIN role may issue QR codes and run scan sessions.
    """

    list_display = [
        'email',
        'display_name',
        'role_badge',
        'is_active',
        'created_at',
        'last_login',
    ]

    list_filter = [
        'role',
        'is_active',
        'is_staff',
        'created_at',
    ]

    search_fields = [
        'email',
        'display_name',
    ]

    ordering = ['-created_at']

    # Remove username field references from BaseUserAdmin
    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'display_name', 'password')
        }),
        ('Permissions', {
            'fields': ('role', 'is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'role', 'password1', 'password2'),
        }),
    )

    readonly_fields = [
        'created_at',
        'last_login',
    ]

    filter_horizontal = ['groups', 'user_permissions']

    actions = ['grant_scanner_access', 'revoke_scanner_access']

    def role_badge(self, obj):
        """Display operator role as colored badge."""
        if obj.role == OperatorRole.ADMIN:
            return format_html(
                '<span style="background: #6B8E5E; color: white; padding: 3px 8px; '
                'border-radius: 10px; font-size: 11px;">Admin</span>'
            )
        return format_html(
            '<span style="background: #ccc; color: #666; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">User</span>'
        )
    role_badge.short_description = 'Role'
    role_badge.admin_order_field = 'role'

    @admin.action(description='Grant scanner access (ADMIN role)')
    def grant_scanner_access(self, request, queryset):
        count = queryset.update(role=OperatorRole.ADMIN)
        self.message_user(request, f'Granted scanner access to {count} user(s).')

    @admin.action(description='Revoke scanner access')
    def revoke_scanner_access(self, request, queryset):
        """Revoke ADMIN role (superusers keep access through is_superuser)."""
        count = queryset.filter(is_superuser=False).update(role=OperatorRole.USER)
        self.message_user(request, f'Revoked scanner access from {count} user(s).')
