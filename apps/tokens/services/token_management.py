"""
Token management service.

Soft enable/disable, permanent deletion and listing for the QR management
screens.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import transaction
from django.db.models import Q, QuerySet

from apps.tokens.models import Token, TokenKind, RetiredTokenValue

from .exceptions import TokenNotFoundError
from .qr_rendering import delete_token_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenDeletion:
    value: str
    kind: str
    donor_deleted: bool
    donor_kept_reason: str = ''


def get_token(*, value: str) -> Token:
    """
    Raises:
        TokenNotFoundError: If no token has this value
    """
    try:
        return (
            Token.objects
            .select_related('donor', 'fund_group', 'created_by')
            .get(value=value)
        )
    except Token.DoesNotExist:
        raise TokenNotFoundError(f"QR code {value} not found")


def list_tokens(
    *,
    kind: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None
) -> QuerySet[Token]:
    queryset = Token.objects.select_related('donor', 'fund_group')

    if kind:
        queryset = queryset.filter(kind=kind)
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active)
    if search:
        queryset = queryset.filter(
            Q(donor__name__icontains=search)
            | Q(fund_group__name__icontains=search)
            | Q(label__icontains=search)
        )

    return queryset.order_by('-created_at')


@transaction.atomic
def set_token_active(*, value: str, is_active: bool) -> Token:
    """
    Soft-enable or soft-disable a token. The binding is untouched.

    Raises:
        TokenNotFoundError: If no token has this value
    """
    try:
        token = Token.objects.select_for_update().get(value=value)
    except Token.DoesNotExist:
        raise TokenNotFoundError(f"QR code {value} not found")

    if token.is_active != is_active:
        token.is_active = is_active
        token.save(update_fields=['is_active', 'updated_at'])
        logger.info("Token %s %s", value, 'activated' if is_active else 'deactivated')

    return token


def _donor_kept_reason(donor) -> str:
    if donor.tokens.exists():
        return 'donor has other QR codes'
    if donor.donations.exists():
        return 'donor has donations'
    if donor.participations.exists():
        return 'donor has volunteer records'
    return ''


@transaction.atomic
def delete_token(*, value: str) -> TokenDeletion:
    """
    Permanently delete a token.

    The value is retired so it is never issued again. For IDENTITY tokens
    the donor is removed as well, but only when nothing else references it
    (no other token, donation or participation). Otherwise the donor is
    kept and a warning is logged.

    The rendered image is removed after the transaction commits.

    Raises:
        TokenNotFoundError: If no token has this value
    """
    try:
        token = (
            Token.objects
            .select_for_update()
            .select_related('donor')
            .get(value=value)
        )
    except Token.DoesNotExist:
        raise TokenNotFoundError(f"QR code {value} not found")

    donor = token.donor
    kind = token.kind
    image_path = token.image_path

    RetiredTokenValue.objects.get_or_create(value=token.value, defaults={'kind': kind})
    token.delete()

    donor_deleted = False
    kept_reason = ''
    if kind == TokenKind.IDENTITY and donor is not None:
        kept_reason = _donor_kept_reason(donor)
        if kept_reason:
            logger.warning(
                "Kept donor %s after deleting token %s: %s",
                donor.id, value, kept_reason
            )
        else:
            donor.delete()
            donor_deleted = True
            logger.info("Deleted donor %s with its last token %s", donor.id, value)

    if image_path:
        transaction.on_commit(lambda: _remove_image(image_path))

    logger.info("Deleted %s token %s", kind, value)
    return TokenDeletion(
        value=value,
        kind=kind,
        donor_deleted=donor_deleted,
        donor_kept_reason=kept_reason,
    )


def _remove_image(image_path: str) -> None:
    try:
        delete_token_image(image_path=image_path)
    except OSError:
        logger.exception("Failed to remove QR image %s", image_path)
