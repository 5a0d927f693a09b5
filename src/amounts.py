"""
Checked decimal arithmetic for account balances.

Balances live in a bounded base-10 domain: magnitude at most 2**96 - 1 with
up to 28 fractional digits. Every in-domain sum or difference is computed
exactly, and anything that leaves the domain is reported instead of rounded.
"""

from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Optional

MAX_AMOUNT = Decimal(2**96 - 1)
MAX_SCALE = 28

# 30 integer digits and 28 fractional digits always fit, so in-domain
# operands never round.
AMOUNT_CONTEXT = Context(prec=64, rounding=ROUND_HALF_EVEN)


def in_domain(value: Decimal) -> bool:
    return value.is_finite() and value.copy_abs() <= MAX_AMOUNT


def has_valid_scale(value: Decimal) -> bool:
    return value.is_finite() and -value.as_tuple().exponent <= MAX_SCALE


def checked_add(a: Decimal, b: Decimal) -> Optional[Decimal]:
    """Return a + b, or None if the result overflows the amount domain."""
    result = AMOUNT_CONTEXT.add(a, b)
    if not in_domain(result):
        return None
    return result


def checked_sub(a: Decimal, b: Decimal) -> Optional[Decimal]:
    """Return a - b, or None if the result underflows the amount domain."""
    result = AMOUNT_CONTEXT.subtract(a, b)
    if not in_domain(result):
        return None
    return result


def parse_amount(text: str) -> Decimal:
    """
    Parse a decimal amount from text.

    Raises:
        ValueError: not a finite decimal, out of range, or more than
            MAX_SCALE fractional digits.
    """
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"invalid amount {text!r}") from None

    if not in_domain(value):
        raise ValueError(f"amount {text!r} out of range")

    if not has_valid_scale(value):
        raise ValueError(f"amount {text!r} has more than {MAX_SCALE} decimal places")

    return value


def format_amount(value: Decimal) -> str:
    """Format decimal without exponent, removing trailing zeros."""
    normalized = value.normalize(AMOUNT_CONTEXT)
    if normalized.is_zero():
        return "0"
    return f"{normalized:f}"
