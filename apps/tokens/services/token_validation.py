"""
Token validation service.

Turns a raw scan into a resolved token without any ledger side effects, so
the operator can see who or what was scanned before anything is recorded.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union
from urllib.parse import urlsplit, parse_qs

from apps.ledger.models import Donor, Group
from apps.ledger.services import DonorNotFoundError, GroupNotFoundError
from apps.tokens.models import Token, TokenKind

from .exceptions import (
    TokenNotFoundError,
    TokenInactiveError,
    TokenKindMismatchError,
)


TOKEN_VALUE_PATTERN = re.compile(r'[A-Za-z0-9_-]{4,64}')


@dataclass(frozen=True)
class ResolvedIdentity:
    token: Token
    donor: Donor

    kind = TokenKind.IDENTITY


@dataclass(frozen=True)
class ResolvedPreset:
    token: Token
    fund_group: Group
    amount: Optional[Decimal]
    label: str

    kind = TokenKind.PRESET


ResolvedToken = Union[ResolvedIdentity, ResolvedPreset]


def extract_token_value(raw_value) -> str:
    """
    Pull the token value out of a scanned payload.

    Accepts a bare value or a redemption URL such as
    ``https://host/redeemQR/preset/<value>``. Keystroke-wedge scanners
    append line terminators, so surrounding whitespace is stripped.

    Raises:
        TokenNotFoundError: If no well-formed value can be extracted
    """
    text = str(raw_value or '').strip()

    candidate = text
    if '/' in text or '?' in text:
        try:
            parts = urlsplit(text)
            query_token = parse_qs(parts.query).get('token')
        except ValueError:
            raise TokenNotFoundError("Scanned code is not a recognised QR code")
        if query_token:
            candidate = query_token[0].strip()
        else:
            segments = [segment for segment in parts.path.split('/') if segment]
            candidate = segments[-1] if segments else ''

    if not TOKEN_VALUE_PATTERN.fullmatch(candidate):
        raise TokenNotFoundError("Scanned code is not a recognised QR code")

    return candidate


def validate_scan(*, raw_value, expected_kind: Optional[str] = None) -> ResolvedToken:
    """
    Look up, check and resolve a scanned token.

    Args:
        raw_value: Bare token value or redemption URL
        expected_kind: IDENTITY or PRESET; None accepts either kind

    Returns:
        ResolvedIdentity with the bound donor, or ResolvedPreset with the
        bound group, amount and label

    Raises:
        TokenNotFoundError: If no token matches
        TokenInactiveError: If the token is disabled
        TokenKindMismatchError: If the token is not of the expected kind
        DonorNotFoundError: If an IDENTITY token's donor is gone
        GroupNotFoundError: If a PRESET token's group is gone
    """
    value = extract_token_value(raw_value)

    try:
        token = (
            Token.objects
            .select_related('donor', 'fund_group')
            .get(value=value)
        )
    except Token.DoesNotExist:
        raise TokenNotFoundError(f"QR code {value} not found")

    if not token.is_active:
        raise TokenInactiveError(f"QR code {value} is inactive")

    if expected_kind and token.kind != expected_kind:
        raise TokenKindMismatchError(expected=expected_kind, actual=token.kind)

    if token.kind == TokenKind.IDENTITY:
        if token.donor is None:
            raise DonorNotFoundError(f"Donor for QR code {value} not found")
        return ResolvedIdentity(token=token, donor=token.donor)

    if token.fund_group is None:
        raise GroupNotFoundError(f"Group for QR code {value} not found")
    return ResolvedPreset(
        token=token,
        fund_group=token.fund_group,
        amount=token.amount,
        label=token.label,
    )
