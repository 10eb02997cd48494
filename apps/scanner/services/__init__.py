"""
Scanner services layer.

Redemption of validated scans into ledger rows and the per-operator scan
session state machine.
"""

from .exceptions import (
    ScannerServiceError,
    SessionNotFoundError,
    InvalidSessionModeError,
    InvalidSessionActionError,
    ScanInProgressError,
    NoPendingDonorError,
)

from .redemption import (
    DonationSummary,
    ParticipationSummary,
    resolve_donor_ref,
    record_donation,
    record_participation,
    redeem_for_group,
    redeem_preset_token,
    delete_participation,
)

from .debounce import DebounceGuard

from .scan_session import (
    ScanMode,
    SequenceStep,
    OutcomeStatus,
    Outcome,
    ScanSession,
)

from .session_registry import (
    SessionRegistry,
    registry,
    open_session,
    get_session,
    close_session,
    list_sessions,
)


__all__ = [
    # Exceptions
    'ScannerServiceError',
    'SessionNotFoundError',
    'InvalidSessionModeError',
    'InvalidSessionActionError',
    'ScanInProgressError',
    'NoPendingDonorError',

    # Redemption
    'DonationSummary',
    'ParticipationSummary',
    'resolve_donor_ref',
    'record_donation',
    'record_participation',
    'redeem_for_group',
    'redeem_preset_token',
    'delete_participation',

    # Debounce
    'DebounceGuard',

    # Sessions
    'ScanMode',
    'SequenceStep',
    'OutcomeStatus',
    'Outcome',
    'ScanSession',
    'SessionRegistry',
    'registry',
    'open_session',
    'get_session',
    'close_session',
    'list_sessions',
]
