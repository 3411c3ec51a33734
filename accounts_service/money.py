"""
Fixed-point money helpers.

Balances are stored as integer cents so every addition and comparison is
exact; the service API speaks Decimal with two places. These helpers are
the only place the two representations meet.

    to_cents("10.50")   -> 1050
    from_cents(1050)    -> Decimal("10.50")

Amounts with more than two decimal places are rejected rather than rounded:
silently rounding a top-up or a trip charge would move money nobody asked
to move.
"""

from decimal import ROUND_DOWN, Decimal, InvalidOperation

from accounts_service.exceptions import ValidationError

SCALE = 2
CENT = Decimal(1).scaleb(-SCALE)  # Decimal("0.01")

# Largest amount or balance the ledger holds: 9,999,999,999,999.99
MAX_DIGITS = 15
MAX_CENTS = 10 ** MAX_DIGITS - 1
MAX_AMOUNT = Decimal(MAX_CENTS).scaleb(-SCALE)


def parse_amount(value: Decimal | int | str | float) -> Decimal:
    """
    Convert caller input into a Decimal, rejecting anything non-finite or
    larger than MAX_AMOUNT.

    Floats go through str() so 0.1 becomes Decimal("0.1") and not the
    binary approximation.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"Amount {amount} exceeds the maximum of {MAX_AMOUNT}")
    try:
        truncated = amount.quantize(CENT, rounding=ROUND_DOWN)
    except InvalidOperation:
        raise ValidationError(f"Amount {amount} is out of range")
    if amount != truncated:
        raise ValidationError(
            f"Amount {amount} has more than {SCALE} decimal places"
        )
    return amount


def to_cents(value: Decimal | int | str | float) -> int:
    """Convert an amount to integer cents (see parse_amount for what's accepted)."""
    return int(parse_amount(value).scaleb(SCALE))


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a two-place Decimal."""
    return Decimal(cents).scaleb(-SCALE).quantize(CENT)
