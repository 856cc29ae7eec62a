# common/money.py

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from common.exceptions import ValidationError

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

# Tolerance used when comparing recomputed totals.
MONEY_EPSILON = Decimal("0.01")


def money(value) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValidationError("money value must be numeric")
    try:
        return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid money value: {value!r}") from exc


def percent(value, *, field_name="percent") -> Decimal:
    """
    Normalize a percentage and enforce the [0, 100] range.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be numeric")
    try:
        pct = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field_name} must be numeric") from exc

    if pct < 0 or pct > HUNDRED:
        raise ValidationError(f"{field_name} must be between 0 and 100")
    return pct


def to_int_qty(value, *, field_name="quantity") -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are integer units in this system.
    """
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")

    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole integer unit")

    if isinstance(value, int):
        return value

    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)

    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return int(s)

    raise ValidationError(f"{field_name} must be a whole integer unit")
