"""
Ledger services layer.

Directory lookups for donors and groups plus shared amount parsing. The
write path (donations and participations) lives in the scanner app's
redemption services.
"""

from .exceptions import (
    LedgerServiceError,
    DonorNotFoundError,
    GroupNotFoundError,
    InvalidAmountError,
    InvalidGroupTypeError,
    InvalidDonorDetailsError,
    DuplicateParticipationError,
    ParticipationNotFoundError,
    LedgerUnavailableError,
)

from .amounts import parse_amount

from .donor_directory import (
    find_or_create_donor,
    get_donor,
    list_donors,
)

from .group_directory import (
    get_group,
    get_group_by_name,
    list_groups,
)


__all__ = [
    # Exceptions
    'LedgerServiceError',
    'DonorNotFoundError',
    'GroupNotFoundError',
    'InvalidAmountError',
    'InvalidGroupTypeError',
    'InvalidDonorDetailsError',
    'DuplicateParticipationError',
    'ParticipationNotFoundError',
    'LedgerUnavailableError',

    # Amounts
    'parse_amount',

    # Donor directory
    'find_or_create_donor',
    'get_donor',
    'list_donors',

    # Group directory
    'get_group',
    'get_group_by_name',
    'list_groups',
]
