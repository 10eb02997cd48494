"""
Domain-specific exceptions for the ledger.

Every exception carries a stable ``code`` so the HTTP layer and the scan
session can report an operator-actionable reason without parsing messages.
"""


class LedgerServiceError(Exception):
    """Base exception for all ledger service errors."""
    code = 'ledger_error'


class DonorNotFoundError(LedgerServiceError):
    """Raised when a donor does not exist (including dangling token references)."""
    code = 'donor_not_found'


class GroupNotFoundError(LedgerServiceError):
    """Raised when a fund or volunteer group does not exist."""
    code = 'group_not_found'


class InvalidAmountError(LedgerServiceError):
    """Raised when an amount is non-numeric, not positive, or finer than cents."""
    code = 'invalid_amount'


class InvalidGroupTypeError(LedgerServiceError):
    """Raised when a donation targets a volunteer group or participation targets a fund."""
    code = 'invalid_group_type'


class InvalidDonorDetailsError(LedgerServiceError):
    """Raised when required donor attributes are missing."""
    code = 'invalid_donor_details'


class DuplicateParticipationError(LedgerServiceError):
    """Raised when a donor already volunteered for the group."""
    code = 'duplicate_participation'


class ParticipationNotFoundError(LedgerServiceError):
    """Raised when a participation record does not exist."""
    code = 'participation_not_found'


class LedgerUnavailableError(LedgerServiceError):
    """Raised when the ledger store fails for a reason other than an expected constraint."""
    code = 'ledger_unavailable'
