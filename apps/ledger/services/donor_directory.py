"""
Donor directory.

Find-or-create relies on the (name, class, grade, cohort) unique constraint,
so two stations issuing a code for the same new person concurrently still
end up with a single donor row.
"""

import logging
from typing import Optional

from django.core.exceptions import ValidationError
from django.db.models import Q, QuerySet

from apps.ledger.models import Donor

from .exceptions import DonorNotFoundError, InvalidDonorDetailsError

logger = logging.getLogger(__name__)


def _clean(value) -> str:
    return ' '.join(str(value or '').split())


def find_or_create_donor(
    *,
    name: str,
    class_name: str,
    grade: str,
    cohort: str = ''
) -> Donor:
    """
    Return the donor matching all four attributes, creating it if needed.

    Whitespace is collapsed before matching so spreadsheet padding does not
    split one person into two donors.

    Raises:
        InvalidDonorDetailsError: If name, class or grade is blank
    """
    name, class_name, grade, cohort = (
        _clean(name), _clean(class_name), _clean(grade), _clean(cohort)
    )

    missing = [
        label for label, value in
        (('name', name), ('class', class_name), ('grade', grade))
        if not value
    ]
    if missing:
        raise InvalidDonorDetailsError(f"Missing donor {', '.join(missing)}")

    # get_or_create retries the lookup when the insert hits the unique constraint
    donor, created = Donor.objects.get_or_create(
        name=name,
        class_name=class_name,
        grade=grade,
        cohort=cohort,
    )
    if created:
        logger.info("Created donor %s (%s)", donor.name, donor.id)
    return donor


def get_donor(*, donor_id) -> Donor:
    """
    Raises:
        DonorNotFoundError: If the id is malformed or no donor matches
    """
    try:
        return Donor.objects.get(id=donor_id)
    except (Donor.DoesNotExist, ValidationError, ValueError):
        raise DonorNotFoundError(f"Donor with ID {donor_id} not found")


def list_donors(*, search: Optional[str] = None, grade: Optional[str] = None) -> QuerySet[Donor]:
    queryset = Donor.objects.all()
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) | Q(class_name__icontains=search)
        )
    if grade:
        queryset = queryset.filter(grade=grade)
    return queryset.order_by('name')
