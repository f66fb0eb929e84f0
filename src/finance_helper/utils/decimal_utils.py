"""Decimal utilities for monetary amounts.

All monetary values are kept as Decimal to avoid floating-point drift in totals.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")


def parse_amount(raw_amount: str) -> Decimal:
    """Parse a statement amount into a signed Decimal.

    Thousands-separator commas are removed; the sign written in the
    text is kept as-is.

    Args:
        raw_amount: Amount text such as ``"1,234.50"`` or ``"-45.00"``.

    Returns:
        The parsed amount.

    Raises:
        ValueError: If the text is empty or not a finite number.
    """
    amount_str = raw_amount.replace(",", "").strip()
    if not amount_str:
        raise ValueError("Empty amount string")
    # Decimal() would read "1_000" as 1000
    if "_" in amount_str:
        raise ValueError(f"Cannot parse amount {raw_amount!r}")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse amount {raw_amount!r}") from e

    if not amount.is_finite():
        raise ValueError(f"Amount {raw_amount!r} is not a finite number")
    return amount


def quantize_cents(amount: Decimal) -> Decimal:
    """Round an amount to two decimal places (half up)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal, symbol: str = "") -> str:
    """Format an amount for display, e.g. ``-$1,234.50``.

    Args:
        amount: The amount to format.
        symbol: Optional currency symbol placed after the sign.

    Returns:
        Formatted string with thousands separators and two decimals.
    """
    rounded = quantize_cents(amount)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.2f}"


def to_decimal(value: object) -> Decimal:
    """Convert a JSON/YAML scalar into a Decimal.

    Floats go through ``str`` so ``45.1`` stays ``45.1``.

    Raises:
        ValueError: If the value is not numeric.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric amount: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        return parse_amount(value)
    else:
        raise ValueError(f"Not a numeric amount: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Amount {value!r} is not a finite number")
    return result
