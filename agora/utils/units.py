"""
Value units - conversion between display amounts and ledger base units.

The ledger stores integer base units. One whole unit is 10**18 base units,
the same scale as ether and wei, so "1.1" parses to 1_100_000_000_000_000_000.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

DECIMALS = 18
UNIT = 10 ** DECIMALS


def parse_value(amount: Union[str, int, Decimal]) -> int:
    """
    Convert a decimal amount of whole units to base units.

    Args:
        amount: Amount such as "1.1" or Decimal("0.5")

    Returns:
        Integer base units

    Raises:
        ValueError: If the amount is malformed, negative, or finer than one base unit
    """
    if isinstance(amount, float):
        raise ValueError("Use str or Decimal amounts, not float")
    try:
        value = Decimal(amount)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}") from None

    if not value.is_finite() or value < 0:
        raise ValueError(f"Amount must be a non-negative number, got {amount!r}")

    scaled = value * UNIT
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount!r} has more than {DECIMALS} decimals")
    return int(scaled)


def format_value(base_units: int) -> str:
    """
    Render base units as a decimal amount of whole units.

    Trailing zeros are dropped but at least one decimal is kept ("1.0").
    """
    whole, frac = divmod(base_units, UNIT)
    frac_str = str(frac).rjust(DECIMALS, "0").rstrip("0") or "0"
    return f"{whole}.{frac_str}"
