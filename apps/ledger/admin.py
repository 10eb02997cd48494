from django.contrib import admin
from django.utils.html import format_html
from .models import Donor, Group, Donation, Participation, GroupType


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    """Funds and volunteer groups are maintained here."""

    list_display = ['name', 'type_badge', 'created_at']
    list_filter = ['group_type']
    search_fields = ['name']

    def type_badge(self, obj):
        """Display group type as colored badge."""
        bg = '#6B8E5E' if obj.group_type == GroupType.FUND else '#A47449'
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, obj.get_group_type_display()
        )
    type_badge.short_description = 'Type'
    type_badge.admin_order_field = 'group_type'


@admin.register(Donor)
class DonorAdmin(admin.ModelAdmin):
    list_display = ['name', 'class_name', 'grade', 'cohort', 'created_at']
    list_filter = ['grade', 'cohort']
    search_fields = ['name', 'class_name']


class ImmutableLedgerAdmin(admin.ModelAdmin):
    """Ledger rows are written by the redemption services only."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Donation)
class DonationAdmin(ImmutableLedgerAdmin):
    list_display = ['donor', 'group', 'amount', 'source', 'recorded_by', 'created_at']
    list_filter = ['group', 'source', 'created_at']
    search_fields = ['donor__name', 'group__name']
    list_select_related = ['donor', 'group', 'recorded_by']


@admin.register(Participation)
class ParticipationAdmin(ImmutableLedgerAdmin):
    list_display = ['donor', 'group', 'date', 'recorded_by', 'created_at']
    list_filter = ['group', 'date']
    search_fields = ['donor__name', 'group__name']
    list_select_related = ['donor', 'group', 'recorded_by']
