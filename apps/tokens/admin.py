from django.contrib import admin
from django.utils.html import format_html
from .models import Token, TokenKind, RetiredTokenValue


@admin.register(Token)
class TokenAdmin(admin.ModelAdmin):
    """
    Read-mostly view of issued codes.

    Bindings are immutable, so everything except the active flag is read-only.
    """

    list_display = ['value', 'kind_badge', 'bound_to', 'amount', 'is_active', 'created_at']
    list_filter = ['kind', 'is_active', 'created_at']
    search_fields = ['value', 'donor__name', 'fund_group__name', 'label']
    list_select_related = ['donor', 'fund_group']
    readonly_fields = [
        'value', 'kind', 'donor', 'fund_group', 'amount', 'label',
        'image_path', 'created_by', 'created_at', 'updated_at',
    ]
    actions = ['activate', 'deactivate']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        # Deletion goes through delete_token so the value is retired
        return False

    def kind_badge(self, obj):
        """Display token kind as colored badge."""
        bg = '#4A6FA5' if obj.kind == TokenKind.IDENTITY else '#C08552'
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, obj.get_kind_display()
        )
    kind_badge.short_description = 'Kind'
    kind_badge.admin_order_field = 'kind'

    def bound_to(self, obj):
        return obj.donor if obj.kind == TokenKind.IDENTITY else obj.fund_group
    bound_to.short_description = 'Bound to'

    @admin.action(description='Activate selected codes')
    def activate(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f'{updated} code(s) activated.')

    @admin.action(description='Deactivate selected codes')
    def deactivate(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f'{updated} code(s) deactivated.')


@admin.register(RetiredTokenValue)
class RetiredTokenValueAdmin(admin.ModelAdmin):
    list_display = ['value', 'kind', 'retired_at']
    list_filter = ['kind']
    search_fields = ['value']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
