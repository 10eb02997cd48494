"""Amount parsing shared by issuance and redemption."""

from decimal import Decimal, InvalidOperation

from .exceptions import InvalidAmountError

CENT = Decimal('0.01')
MAX_AMOUNT = Decimal('99999999.99')


def parse_amount(value) -> Decimal:
    """
    Convert user input into a positive two-place Decimal.

    Floats go through ``str()`` so ``5.1`` becomes ``Decimal('5.1')`` rather
    than its binary expansion. Values with more than two decimal places are
    rejected instead of rounded.

    Raises:
        InvalidAmountError: If the value is missing, non-numeric, not
            positive, too large, or has sub-cent precision.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmountError("Amount is required")

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(f"Amount '{value}' is not a number")

    if not amount.is_finite():
        raise InvalidAmountError(f"Amount '{value}' is not a number")
    if amount <= 0:
        raise InvalidAmountError("Amount must be greater than zero")
    if amount > MAX_AMOUNT:
        raise InvalidAmountError(f"Amount must not exceed {MAX_AMOUNT}")
    if amount != amount.quantize(CENT):
        raise InvalidAmountError("Amount cannot have more than two decimal places")

    return amount.quantize(CENT)
