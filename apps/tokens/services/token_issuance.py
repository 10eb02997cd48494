"""
Token issuance service.

Mints unique token values and binds them to a donor (IDENTITY) or to a
group, amount and label (PRESET).
"""

import logging
import secrets
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.conf import settings
from django.db import transaction, IntegrityError

from apps.accounts.models import User
from apps.ledger.services import (
    find_or_create_donor,
    get_group,
    parse_amount,
)
from apps.tokens.models import Token, TokenKind, RetiredTokenValue

from .exceptions import TokenGenerationError
from .qr_rendering import build_redeem_url, render_token_image, image_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    token: Token
    redeem_url: str
    image_ref: str

    @property
    def value(self):
        return self.token.value


def generate_token_value() -> str:
    """Random URL-safe value; 16 bytes give 22 characters."""
    return secrets.token_urlsafe(settings.TOKEN_VALUE_BYTES)


def _create_token(*, max_retries: int = 5, **fields) -> Token:
    """
    Insert a token with a fresh value, retrying on collision.

    Values of deleted tokens are skipped too, so a value is never handed
    out twice.

    Raises:
        TokenGenerationError: If no unique value was found after retries
    """
    for attempt in range(max_retries):
        value = generate_token_value()

        if RetiredTokenValue.objects.filter(value=value).exists():
            logger.warning("Generated retired token value, retrying (attempt %d)", attempt + 1)
            continue

        try:
            with transaction.atomic():
                return Token.objects.create(value=value, **fields)
        except IntegrityError:
            # Collision detected, retry
            logger.warning("Token value collision, retrying (attempt %d)", attempt + 1)
            continue

    raise TokenGenerationError(
        f"Failed to generate unique token value after {max_retries} attempts"
    )


def _finish_issuance(token: Token) -> IssuedToken:
    """Render the QR image. A rendering failure keeps the token without an image."""
    if settings.QR_RENDER_IMAGES:
        try:
            render_token_image(token=token)
        except Exception:
            logger.exception("Failed to render QR image for token %s", token.value)

    return IssuedToken(
        token=token,
        redeem_url=build_redeem_url(value=token.value, kind=token.kind),
        image_ref=image_url(token),
    )


def issue_identity_token(
    *,
    name: str,
    class_name: str,
    grade: str,
    cohort: str = '',
    created_by: Optional[User] = None
) -> IssuedToken:
    """
    Issue an IDENTITY token for a person.

    The donor is found or created from (name, class, grade, cohort). Issuing
    again for the same person creates another token bound to the same donor;
    earlier tokens stay valid.

    Args:
        name: Donor name
        class_name: Class, e.g. "Class 3A"
        grade: Grade, e.g. "Grade 3"
        cohort: Year or cohort (optional)
        created_by: Issuing operator

    Returns:
        IssuedToken with the persisted token, redeem URL and image URL

    Raises:
        InvalidDonorDetailsError: If name, class or grade is blank
        TokenGenerationError: If a unique value could not be generated
    """
    with transaction.atomic():
        donor = find_or_create_donor(
            name=name,
            class_name=class_name,
            grade=grade,
            cohort=cohort,
        )
        token = _create_token(
            kind=TokenKind.IDENTITY,
            donor=donor,
            created_by=created_by,
        )

    logger.info("Issued IDENTITY token %s for donor %s", token.value, donor.id)
    return _finish_issuance(token)


def _is_blank_amount(value) -> bool:
    """None, empty and zero all mean "no amount" for a volunteer preset."""
    if value is None or isinstance(value, bool):
        return value is None
    text = str(value).strip()
    if not text:
        return True
    try:
        return Decimal(text) == 0
    except InvalidOperation:
        return False


def issue_preset_token(
    *,
    group_id,
    amount=None,
    label: str = '',
    created_by: Optional[User] = None
) -> IssuedToken:
    """
    Issue a PRESET token bound to a group and fixed amount.

    Fund groups require a positive amount. Volunteer groups treat a
    missing or zero amount as no amount; any other value must still be
    valid and is stored but ignored at redemption.

    Raises:
        GroupNotFoundError: If the group doesn't exist
        InvalidAmountError: If the amount is missing (fund) or invalid
        TokenGenerationError: If a unique value could not be generated
    """
    group = get_group(group_id=group_id)

    parsed_amount: Optional[Decimal] = None
    if not group.is_volunteer or not _is_blank_amount(amount):
        parsed_amount = parse_amount(amount)

    with transaction.atomic():
        token = _create_token(
            kind=TokenKind.PRESET,
            fund_group=group,
            amount=parsed_amount,
            label=' '.join((label or '').split()),
            created_by=created_by,
        )

    logger.info(
        "Issued PRESET token %s for group %s (amount=%s)",
        token.value, group.id, parsed_amount
    )
    return _finish_issuance(token)
