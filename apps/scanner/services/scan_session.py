"""
Scan session state machine.

A session is one operator's scanning mode at one station. Each scan goes
through ``ScanSession.handle_scan`` and returns an ``Outcome``; nothing is
driven by UI callbacks, so the transitions are testable on their own.

Modes:
    NORMAL:            scan IDENTITY, then ``submit`` an amount and fund
    PRESET:            fund and amount chosen up front; each IDENTITY scan
                       is redeemed immediately
    PHYSICAL_PRESET:   PRESET driven by a keystroke-wedge scanner
    PHYSICAL_SEQUENCE: scan IDENTITY, then a PRESET code; the pair is redeemed

At most one scan is processed at a time per session. A scan that arrives
while another is being recorded is rejected with ``ScanInProgressError``.
"""

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.accounts.models import User
from apps.ledger.models import Donor, Group
from apps.ledger.services import (
    LedgerServiceError,
    InvalidAmountError,
    InvalidGroupTypeError,
    GroupNotFoundError,
    get_group,
    parse_amount,
)
from apps.tokens.models import TokenKind
from apps.tokens.services import TokenServiceError, validate_scan

from .debounce import DebounceGuard
from .exceptions import (
    InvalidSessionModeError,
    InvalidSessionActionError,
    ScanInProgressError,
    NoPendingDonorError,
)
from .redemption import (
    DonationSummary,
    ParticipationSummary,
    RedemptionSummary,
    record_donation,
    redeem_for_group,
    redeem_preset_token,
)

logger = logging.getLogger(__name__)


class ScanMode(models.TextChoices):
    NORMAL = 'NORMAL', 'Normal'
    PRESET = 'PRESET', 'Preset'
    PHYSICAL_PRESET = 'PHYSICAL_PRESET', 'Physical scanner, preset'
    PHYSICAL_SEQUENCE = 'PHYSICAL_SEQUENCE', 'Physical scanner, sequence'


class SequenceStep(models.TextChoices):
    AWAITING_IDENTITY = 'AWAITING_IDENTITY', 'Awaiting identity'
    AWAITING_PRESET = 'AWAITING_PRESET', 'Awaiting preset'


class OutcomeStatus(models.TextChoices):
    DONOR_IDENTIFIED = 'DONOR_IDENTIFIED', 'Donor identified'
    AWAITING_PRESET = 'AWAITING_PRESET', 'Awaiting preset'
    DONATION_RECORDED = 'DONATION_RECORDED', 'Donation recorded'
    PARTICIPATION_RECORDED = 'PARTICIPATION_RECORDED', 'Participation recorded'
    DEBOUNCED = 'DEBOUNCED', 'Debounced'
    REJECTED = 'REJECTED', 'Rejected'
    CANCELLED = 'CANCELLED', 'Cancelled'


PRESET_MODES = (ScanMode.PRESET, ScanMode.PHYSICAL_PRESET)


@dataclass
class Outcome:
    status: str
    message: str
    error_code: str = ''
    donor: Optional[Donor] = None
    donation: Optional[DonationSummary] = None
    participation: Optional[ParticipationSummary] = None
    session: Optional[dict] = None

    @property
    def recorded(self):
        return self.status in (
            OutcomeStatus.DONATION_RECORDED,
            OutcomeStatus.PARTICIPATION_RECORDED,
        )


class ScanSession:
    """
    Explicit per-operator session state.

    Args:
        mode: One of ``ScanMode``
        operator: Operator recorded on ledger rows
        group_id: Fund or volunteer group for PRESET modes
        amount: Fixed amount for PRESET modes with a fund
        debounce_seconds: Window for ignoring repeated reads; defaults to
            ``settings.SCANNER_DEBOUNCE_SECONDS``
        clock: Monotonic clock, replaceable in tests

    Raises:
        InvalidSessionModeError: If the mode is unknown
        GroupNotFoundError: If a PRESET mode group doesn't exist
        InvalidAmountError: If a PRESET mode fund has no valid amount
    """

    def __init__(
        self,
        *,
        mode: str,
        operator: Optional[User] = None,
        group_id=None,
        amount=None,
        debounce_seconds: Optional[float] = None,
        clock=time.monotonic
    ):
        if mode not in ScanMode.values:
            raise InvalidSessionModeError(f"Unknown scan mode '{mode}'")

        self.id = uuid.uuid4()
        self.mode = ScanMode(mode)
        self.operator = operator
        self.created_at = timezone.now()

        if debounce_seconds is None:
            debounce_seconds = settings.SCANNER_DEBOUNCE_SECONDS
        self.guard = DebounceGuard(window_seconds=debounce_seconds, clock=clock)
        self._in_flight = threading.Lock()

        self.preset_group: Optional[Group] = None
        self.preset_amount: Optional[Decimal] = None
        if self.mode in PRESET_MODES:
            self.preset_group = get_group(group_id=group_id)
            if not self.preset_group.is_volunteer:
                self.preset_amount = parse_amount(amount)

        self.pending_donor: Optional[Donor] = None
        self.step: Optional[str] = None
        self._reset_progress()

    # =========================================================================
    # Public API
    # =========================================================================

    def handle_scan(self, raw_value) -> Outcome:
        """
        Process one scan.

        Domain errors become a REJECTED outcome and reset partial progress;
        they never propagate.

        Raises:
            ScanInProgressError: If another scan on this session is in flight
        """
        with self._exclusive():
            value = str(raw_value or '').strip()

            if not self.guard.accept(value):
                return self._outcome(OutcomeStatus.DEBOUNCED, "Repeated scan ignored")

            try:
                if self.mode == ScanMode.NORMAL:
                    return self._scan_normal(value)
                if self.mode in PRESET_MODES:
                    return self._scan_preset(value)
                return self._scan_sequence(value)
            except (LedgerServiceError, TokenServiceError) as e:
                return self._reject(e)

    def submit(self, *, amount, group_id) -> Outcome:
        """
        Record the NORMAL mode donation for the scanned donor.

        An invalid amount or fund keeps the donor so the operator can
        correct the entry; any other failure clears it.

        Raises:
            InvalidSessionActionError: If the session is not in NORMAL mode
            NoPendingDonorError: If no donor has been scanned
            ScanInProgressError: If another scan on this session is in flight
        """
        if self.mode != ScanMode.NORMAL:
            raise InvalidSessionActionError("Amounts are only entered in NORMAL mode")

        with self._exclusive():
            if self.pending_donor is None:
                raise NoPendingDonorError("Scan a donor before entering an amount")

            donor = self.pending_donor
            try:
                summary = record_donation(
                    donor_id=donor.id,
                    group_id=group_id,
                    amount=amount,
                    recorded_by=self.operator,
                )
            except (InvalidAmountError, GroupNotFoundError, InvalidGroupTypeError) as e:
                logger.info("Rejected submission in session %s: %s", self.id, e)
                return self._outcome(
                    OutcomeStatus.REJECTED, str(e), error_code=e.code, donor=donor
                )
            except LedgerServiceError as e:
                return self._reject(e)

            self._reset_progress()
            return self._recorded(summary, donor)

    def cancel(self) -> Outcome:
        """
        Discard partial progress without touching the ledger.

        Raises:
            ScanInProgressError: If a redemption is being recorded
        """
        with self._exclusive():
            self._reset_progress()
            self.guard.reset()
            return self._outcome(OutcomeStatus.CANCELLED, "Cancelled")

    def snapshot(self) -> dict:
        return {
            'id': self.id,
            'mode': self.mode.value,
            'step': self.step,
            'pending_donor': self.pending_donor,
            'preset_group': self.preset_group,
            'preset_amount': self.preset_amount,
            'created_at': self.created_at,
        }

    # =========================================================================
    # Mode handlers
    # =========================================================================

    def _scan_normal(self, value) -> Outcome:
        # A new identity replaces any donor still awaiting an amount
        self.pending_donor = None
        resolved = validate_scan(raw_value=value, expected_kind=TokenKind.IDENTITY)
        self.pending_donor = resolved.donor
        return self._outcome(
            OutcomeStatus.DONOR_IDENTIFIED,
            f"{resolved.donor.name} scanned. Enter amount and fund.",
            donor=resolved.donor,
        )

    def _scan_preset(self, value) -> Outcome:
        resolved = validate_scan(raw_value=value, expected_kind=TokenKind.IDENTITY)
        summary = redeem_for_group(
            donor_id=resolved.donor.id,
            group_id=self.preset_group.id,
            amount=self.preset_amount,
            recorded_by=self.operator,
        )
        return self._recorded(summary, resolved.donor)

    def _scan_sequence(self, value) -> Outcome:
        if self.step == SequenceStep.AWAITING_IDENTITY:
            resolved = validate_scan(raw_value=value, expected_kind=TokenKind.IDENTITY)
            self.pending_donor = resolved.donor
            self.step = SequenceStep.AWAITING_PRESET
            return self._outcome(
                OutcomeStatus.AWAITING_PRESET,
                f"{resolved.donor.name} scanned. Scan a preset code.",
                donor=resolved.donor,
            )

        donor = self.pending_donor
        # The identity is consumed whether or not the preset redeems
        self._reset_progress()
        summary = redeem_preset_token(
            preset_value=value,
            donor_id=donor.id,
            recorded_by=self.operator,
        )
        return self._recorded(summary, donor)

    # =========================================================================
    # Helpers
    # =========================================================================

    @contextmanager
    def _exclusive(self):
        if not self._in_flight.acquire(blocking=False):
            raise ScanInProgressError("Previous scan is still being recorded")
        try:
            yield
        finally:
            self._in_flight.release()

    def _reset_progress(self):
        self.pending_donor = None
        self.step = (
            SequenceStep.AWAITING_IDENTITY
            if self.mode == ScanMode.PHYSICAL_SEQUENCE else None
        )

    def _reject(self, error) -> Outcome:
        self._reset_progress()
        logger.info(
            "Rejected scan in %s session %s: %s (%s)",
            self.mode, self.id, error, error.code
        )
        return self._outcome(OutcomeStatus.REJECTED, str(error), error_code=error.code)

    def _recorded(self, summary: RedemptionSummary, donor: Donor) -> Outcome:
        if isinstance(summary, ParticipationSummary):
            return self._outcome(
                OutcomeStatus.PARTICIPATION_RECORDED,
                f"{summary.donor_name} registered for {summary.group_name}",
                donor=donor,
                participation=summary,
            )
        return self._outcome(
            OutcomeStatus.DONATION_RECORDED,
            f"{summary.amount} from {summary.donor_name} to {summary.group_name}",
            donor=donor,
            donation=summary,
        )

    def _outcome(self, status, message, **kwargs) -> Outcome:
        return Outcome(status=status, message=message, session=self.snapshot(), **kwargs)
