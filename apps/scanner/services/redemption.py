"""
Redemption service.

Turns validated scans into ledger rows. Every write runs in its own
transaction and is never retried: after an ambiguous storage failure the
operator decides whether to scan again, so a donation is never recorded
twice by the system itself.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date as date_type
from decimal import Decimal
from typing import Optional, Union

from django.core.exceptions import ValidationError
from django.db import transaction, IntegrityError, DatabaseError

from apps.accounts.models import User
from apps.ledger.models import Donation, DonationSource, Participation
from apps.ledger.services import (
    get_donor,
    get_group,
    parse_amount,
    InvalidGroupTypeError,
    DuplicateParticipationError,
    ParticipationNotFoundError,
    LedgerUnavailableError,
)
from apps.tokens.models import TokenKind
from apps.tokens.services import validate_scan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DonationSummary:
    donation_id: uuid.UUID
    donor_name: str
    group_name: str
    amount: Decimal


@dataclass(frozen=True)
class ParticipationSummary:
    participation_id: uuid.UUID
    donor_name: str
    group_name: str
    date: date_type


RedemptionSummary = Union[DonationSummary, ParticipationSummary]


def resolve_donor_ref(donor_ref) -> uuid.UUID:
    """
    Accept a donor id or an IDENTITY scan and return the donor id.

    Raises:
        DonorNotFoundError: If a donor id matches nobody
        TokenServiceError: If the scan does not resolve to an active IDENTITY token
    """
    try:
        donor_id = uuid.UUID(str(donor_ref).strip())
    except ValueError:
        resolved = validate_scan(raw_value=donor_ref, expected_kind=TokenKind.IDENTITY)
        return resolved.donor.id

    return get_donor(donor_id=donor_id).id


def record_donation(
    *,
    donor_id,
    group_id,
    amount,
    recorded_by: Optional[User] = None,
    source: str = DonationSource.SCAN
) -> DonationSummary:
    """
    Append one donation to the ledger.

    Identical calls create identical rows; repeated scans are filtered by
    the session's debounce guard, not here.

    Raises:
        InvalidAmountError: If the amount is not a positive two-place number
        DonorNotFoundError: If the donor doesn't exist
        GroupNotFoundError: If the group doesn't exist
        InvalidGroupTypeError: If the group is a volunteer group
        LedgerUnavailableError: If the write fails
    """
    parsed_amount = parse_amount(amount)
    donor = get_donor(donor_id=donor_id)
    group = get_group(group_id=group_id)

    if group.is_volunteer:
        raise InvalidGroupTypeError(f"{group.name} is a volunteer group and does not take donations")

    try:
        with transaction.atomic():
            donation = Donation.objects.create(
                donor=donor,
                group=group,
                amount=parsed_amount,
                source=source,
                recorded_by=recorded_by,
            )
    except DatabaseError:
        logger.exception("Failed to record donation for donor %s to group %s", donor.id, group.id)
        raise LedgerUnavailableError("Donation could not be recorded. Check the ledger before retrying.")

    logger.info(
        "Recorded donation %s: %s -> %s %s",
        donation.id, donor.id, group.id, parsed_amount
    )
    return DonationSummary(
        donation_id=donation.id,
        donor_name=donor.name,
        group_name=group.name,
        amount=parsed_amount,
    )


def record_participation(
    *,
    donor_id,
    group_id,
    recorded_by: Optional[User] = None
) -> ParticipationSummary:
    """
    Record that a donor volunteered for a group.

    Uniqueness of (donor, group) is enforced by the database constraint, so
    two stations scanning the same person at once still produce one row.

    Raises:
        DonorNotFoundError: If the donor doesn't exist
        GroupNotFoundError: If the group doesn't exist
        InvalidGroupTypeError: If the group is a fund
        DuplicateParticipationError: If the donor already volunteered for the group
        LedgerUnavailableError: If the write fails for another reason
    """
    donor = get_donor(donor_id=donor_id)
    group = get_group(group_id=group_id)

    if not group.is_volunteer:
        raise InvalidGroupTypeError(f"{group.name} is a fund, not a volunteer group")

    try:
        with transaction.atomic():
            participation = Participation.objects.create(
                donor=donor,
                group=group,
                recorded_by=recorded_by,
            )
    except IntegrityError:
        if not Participation.objects.filter(donor=donor, group=group).exists():
            logger.exception("Constraint failure recording participation for donor %s in group %s", donor.id, group.id)
            raise LedgerUnavailableError("Participation could not be recorded. Check the ledger before retrying.")
        logger.info("Duplicate participation: donor %s, group %s", donor.id, group.id)
        raise DuplicateParticipationError(f"{donor.name} is already registered for {group.name}")
    except DatabaseError:
        logger.exception("Failed to record participation for donor %s in group %s", donor.id, group.id)
        raise LedgerUnavailableError("Participation could not be recorded. Check the ledger before retrying.")

    logger.info("Recorded participation %s: %s -> %s", participation.id, donor.id, group.id)
    return ParticipationSummary(
        participation_id=participation.id,
        donor_name=donor.name,
        group_name=group.name,
        date=participation.date,
    )


def redeem_for_group(
    *,
    donor_id,
    group_id,
    amount=None,
    recorded_by: Optional[User] = None
) -> RedemptionSummary:
    """Participation for volunteer groups, donation of ``amount`` otherwise."""
    group = get_group(group_id=group_id)
    if group.is_volunteer:
        return record_participation(donor_id=donor_id, group_id=group.id, recorded_by=recorded_by)
    return record_donation(
        donor_id=donor_id,
        group_id=group.id,
        amount=amount,
        recorded_by=recorded_by,
    )


def redeem_preset_token(
    *,
    preset_value,
    donor_id,
    recorded_by: Optional[User] = None
) -> RedemptionSummary:
    """
    Apply a PRESET code to a donor.

    The preset is validated first; a volunteer preset records a
    participation and ignores its amount, a fund preset records a donation
    of exactly its bound amount.

    Raises:
        TokenServiceError: If the preset doesn't validate
        LedgerServiceError: If the redemption fails
    """
    preset = validate_scan(raw_value=preset_value, expected_kind=TokenKind.PRESET)
    return redeem_for_group(
        donor_id=donor_id,
        group_id=preset.fund_group.id,
        amount=preset.amount,
        recorded_by=recorded_by,
    )


@transaction.atomic
def delete_participation(*, participation_id) -> None:
    """
    Remove a mistaken volunteer record.

    Raises:
        ParticipationNotFoundError: If the record doesn't exist
    """
    try:
        participation = Participation.objects.select_for_update().get(id=participation_id)
    except (Participation.DoesNotExist, ValidationError, ValueError):
        raise ParticipationNotFoundError(f"Participation with ID {participation_id} not found")

    participation.delete()
    logger.info("Deleted participation %s", participation_id)
