"""
Fixed-Point Money Module

Single-currency amount handling. Every balance and transaction amount is a
Decimal quantized to two places with ROUND_HALF_UP. NEVER uses float for
monetary values.

Arithmetic and rounding run in a local decimal context wide enough to hold
every digit of the operands, so large balances are never silently rounded or
rejected by the thread's default 28 digits. Amounts may carry up to
MAX_INTEGER_DIGITS integer digits.
"""

from decimal import (
    Context, Decimal, DecimalException, ROUND_HALF_UP, InvalidOperation,
    MAX_EMAX, MIN_EMIN, localcontext
)
from typing import Union
import re

from .errors import InvalidAmount

PRECISION = 2
CENT = Decimal('0.01')
ZERO = Decimal('0.00')

# Floor for the working precision of money arithmetic
BASE_DIGITS = 28

# Integer digits an amount or balance may carry; keeps working precision finite
MAX_INTEGER_DIGITS = 1000

AmountLike = Union[Decimal, int, str, float]


def _wide_context(*values: Decimal) -> Context:
    """Context that holds the exact sum or product of ``values`` to the cent"""
    digits = PRECISION + 4
    for value in values:
        if value.is_finite():
            digits += len(value.as_tuple().digits) + max(value.adjusted(), 0) + PRECISION
    return Context(
        prec=max(BASE_DIGITS, digits),
        rounding=ROUND_HALF_UP,
        Emax=MAX_EMAX,
        Emin=MIN_EMIN,
    )


def quantize(value: Decimal) -> Decimal:
    """Round a Decimal to ledger precision"""
    if value.is_finite() and value.adjusted() >= MAX_INTEGER_DIGITS:
        raise InvalidAmount(f"Amount exceeds {MAX_INTEGER_DIGITS} integer digits")
    try:
        with localcontext(_wide_context(value)):
            return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except DecimalException:
        raise InvalidAmount(f"Cannot represent {value!r} as an amount") from None


def add(left: Decimal, right: Decimal) -> Decimal:
    """Exact sum, rounded to ledger precision"""
    with localcontext(_wide_context(left, right)):
        return quantize(left + right)


def subtract(left: Decimal, right: Decimal) -> Decimal:
    """Exact difference, rounded to ledger precision"""
    with localcontext(_wide_context(left, right)):
        return quantize(left - right)


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    """``amount * rate / 100`` rounded half-up to ledger precision"""
    with localcontext(_wide_context(amount, rate)):
        return quantize(amount * rate / Decimal('100'))


def to_amount(value: AmountLike) -> Decimal:
    """
    Coerce a user-supplied value into a ledger amount

    Args:
        value: Decimal, int, numeric string or float (converted via str)

    Returns:
        Decimal rounded to two places

    Raises:
        InvalidAmount: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"Not a monetary amount: {value!r}")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = _parse(str(value))
    elif isinstance(value, str):
        amount = decimal_from_string(value)
    else:
        raise InvalidAmount(f"Not a monetary amount: {value!r}")

    if not amount.is_finite():
        raise InvalidAmount(f"Amount must be finite, got {value!r}")

    return quantize(amount)


def positive_amount(value: AmountLike) -> Decimal:
    """Coerce and require a strictly positive amount"""
    amount = to_amount(value)
    if amount <= ZERO:
        raise InvalidAmount(f"Amount must be greater than zero, got {amount}")
    return amount


def decimal_from_string(value: str) -> Decimal:
    """
    Convert a string to Decimal, handling common formats

    Currency symbols, underscores and whitespace are dropped. A single comma
    followed by at most two digits is read as a decimal separator; otherwise
    commas are thousands separators.
    """
    if not value or not value.strip():
        raise InvalidAmount("Amount must be a non-empty string")

    clean_value = re.sub(r'[\s$€£_]', '', value)

    if ',' in clean_value and '.' in clean_value:
        clean_value = clean_value.replace(',', '')
    elif clean_value.count(',') == 1:
        whole, fraction = clean_value.split(',')
        if len(fraction) <= 2:
            clean_value = f"{whole}.{fraction}"
        else:
            clean_value = whole + fraction

    return _parse(clean_value)


def _parse(text: str) -> Decimal:
    try:
        return Decimal(text)
    except InvalidOperation:
        raise InvalidAmount(f"Cannot convert '{text}' to an amount") from None


def format_amount(amount: Decimal) -> str:
    """Format for display, e.g. ``-1,234.50``"""
    return f"{quantize(amount):,.{PRECISION}f}"
