"""Decimal arithmetic helpers"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional

ZERO = Decimal("0")
CENT = Decimal("0.01")

# Largest value a Numeric(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a number (or None) to Decimal without float artifacts.

    Args:
        value: int, float, str, Decimal or None

    Returns:
        Decimal value (None becomes zero)
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def parse_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert request input to Decimal inside a pydantic before-validator.

    None is passed through so the field's own type decides whether it is
    allowed.

    Raises:
        ValueError: If the value is not a number
    """
    if value is None:
        return None
    if isinstance(value, (bool, dict, list)):
        raise ValueError(f"Invalid number: {value!r}")
    try:
        return to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Invalid number: {value!r}")


def round_decimal(value: Decimal, decimal_places: int = 2) -> Decimal:
    """
    Round a decimal value to specified decimal places.

    Args:
        value: Decimal value to round
        decimal_places: Number of decimal places (default 2)

    Returns:
        Rounded decimal value
    """
    quantize_value = Decimal(10) ** -decimal_places
    return value.quantize(quantize_value, rounding=ROUND_HALF_UP)


def sum_decimals(values: Iterable[Decimal]) -> Decimal:
    """
    Sum decimal values.

    Args:
        values: Iterable of decimal values

    Returns:
        Sum of all values
    """
    return sum(values, ZERO)
