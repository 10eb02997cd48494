"""
Bulk token issuance from tabular input.

One row issues one token. Rows are independent: every row runs in its own
transaction, so a bad row is reported and the rows before and after it are
still issued.

CSV headers (case-insensitive):
    IDENTITY: Name, Class, Grade, Cohort (optional)
    PRESET:   Group (group name), Amount, Label (optional)
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from apps.accounts.models import User
from apps.ledger.services import LedgerServiceError, get_group_by_name
from apps.tokens.models import TokenKind

from .exceptions import TokenServiceError, InvalidTokenFileError
from .token_issuance import issue_identity_token, issue_preset_token

logger = logging.getLogger(__name__)

REQUIRED_HEADERS = {
    TokenKind.IDENTITY.value: ('name', 'class', 'grade'),
    TokenKind.PRESET.value: ('group',),
}


@dataclass
class BulkRowResult:
    row: int
    ok: bool
    value: str = ''
    redeem_url: str = ''
    image_ref: str = ''
    error_code: str = ''
    error: str = ''


@dataclass
class BulkIssuanceResult:
    kind: str
    rows: List[BulkRowResult] = field(default_factory=list)

    @property
    def issued(self):
        return sum(1 for row in self.rows if row.ok)

    @property
    def failed(self):
        return sum(1 for row in self.rows if not row.ok)


def _normalize_row(row: dict) -> dict:
    # DictReader stores surplus cells under the None key
    return {
        str(key).strip().lower(): str(value or '').strip()
        for key, value in row.items()
        if key is not None
    }


def read_csv_rows(source, *, kind: str) -> List[dict]:
    """
    Read a CSV upload into normalized row dicts.

    Args:
        source: File-like object yielding bytes or text
        kind: IDENTITY or PRESET, used to check the header row

    Raises:
        InvalidTokenFileError: If the file is not UTF-8 CSV or lacks required headers
    """
    content = source.read()
    if isinstance(content, bytes):
        try:
            content = content.decode('utf-8-sig')
        except UnicodeDecodeError:
            raise InvalidTokenFileError("File must be a UTF-8 encoded CSV")
    else:
        content = content.lstrip('\ufeff')

    try:
        reader = csv.DictReader(io.StringIO(content))
        fieldnames = [name.strip().lower() for name in (reader.fieldnames or [])]
        if not fieldnames:
            raise InvalidTokenFileError("File is empty")
        missing = [h for h in REQUIRED_HEADERS[str(kind)] if h not in fieldnames]
        if missing:
            raise InvalidTokenFileError(
                f"Missing column(s): {', '.join(h.title() for h in missing)}"
            )
        return [_normalize_row(row) for row in reader]
    except csv.Error as e:
        raise InvalidTokenFileError(f"Could not parse CSV: {e}")


def _issue_row(row: dict, *, kind: str, created_by: Optional[User]):
    if kind == TokenKind.IDENTITY:
        return issue_identity_token(
            name=row.get('name', ''),
            class_name=row.get('class', ''),
            grade=row.get('grade', ''),
            cohort=row.get('cohort', ''),
            created_by=created_by,
        )

    group = get_group_by_name(name=row.get('group', ''))
    return issue_preset_token(
        group_id=group.id,
        amount=row.get('amount') or None,
        label=row.get('label', ''),
        created_by=created_by,
    )


def issue_tokens_from_rows(
    *,
    kind: str,
    rows: Iterable[dict],
    created_by: Optional[User] = None,
    first_row_number: int = 1
) -> BulkIssuanceResult:
    """
    Issue one token per row and report each row's outcome.

    Blank rows are skipped. Domain errors are recorded against the row and
    do not stop the batch.

    Args:
        kind: IDENTITY or PRESET
        rows: Row dicts; keys are matched case-insensitively
        created_by: Issuing operator
        first_row_number: Number reported for the first row (2 for CSV files
            so numbers match spreadsheet lines below the header)
    """
    result = BulkIssuanceResult(kind=kind)

    for number, raw_row in enumerate(rows, start=first_row_number):
        row = _normalize_row(raw_row)
        if not any(row.values()):
            continue

        try:
            issued = _issue_row(row, kind=kind, created_by=created_by)
        except (LedgerServiceError, TokenServiceError) as e:
            logger.warning("Bulk %s row %d failed: %s", kind, number, e)
            result.rows.append(BulkRowResult(
                row=number,
                ok=False,
                error_code=e.code,
                error=str(e),
            ))
            continue

        result.rows.append(BulkRowResult(
            row=number,
            ok=True,
            value=issued.value,
            redeem_url=issued.redeem_url,
            image_ref=issued.image_ref,
        ))

    logger.info(
        "Bulk %s issuance finished: %d issued, %d failed",
        kind, result.issued, result.failed
    )
    return result
