"""
Group directory.

Read access to funds and volunteer groups for selectors and for the
redemption services.
"""

from typing import Optional

from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from apps.ledger.models import Group, GroupType

from .exceptions import GroupNotFoundError


def get_group(*, group_id) -> Group:
    """
    Fetch a group by id.

    Raises:
        GroupNotFoundError: If the id is malformed or no group matches
    """
    try:
        return Group.objects.get(id=group_id)
    except (Group.DoesNotExist, ValidationError, ValueError):
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


def get_group_by_name(*, name: str) -> Group:
    """Case-insensitive lookup used by tabular imports."""
    try:
        return Group.objects.get(name__iexact=(name or '').strip())
    except (Group.DoesNotExist, Group.MultipleObjectsReturned):
        raise GroupNotFoundError(f"Group '{name}' not found")


def list_groups(*, group_type: Optional[str] = None) -> QuerySet[Group]:
    queryset = Group.objects.all()
    if group_type:
        if group_type not in GroupType.values:
            return queryset.none()
        queryset = queryset.filter(group_type=group_type)
    return queryset.order_by('name')
