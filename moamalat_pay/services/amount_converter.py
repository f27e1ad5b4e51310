"""
Amount Converter

Converts between Libyan Dinar (major unit) and dirham (minor unit).
The gateway expects minor units as a plain digit string.

Conversion:
- 1 LYD = 1000 dirham (three decimal digits of precision)
- Rounding to the nearest dirham is ROUND_HALF_UP on the decimal value,
  so 1.0005 LYD -> "1001" and 1.0004 LYD -> "1000"
- Floats are read through their shortest repr (10.5 -> Decimal("10.5")), not
  their binary expansion

Arithmetic runs in a local decimal context sized to the amount, so large
amounts are exact up to MAX_AMOUNT_DIGITS significant digits and rejected
beyond that.

Pure functions, no side effects. Display helpers never feed signing or transport.
"""
import re
from decimal import Decimal, DecimalException, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Union

from ..exceptions import InvalidAmountError


CONVERSION_RATE = 1000
MAJOR_SYMBOL = "LYD"
MINOR_SYMBOL = "dirham"
MAX_AMOUNT_DIGITS = 100

_MINOR_PATTERN = re.compile(r"[0-9]+")

Number = Union[int, float, Decimal]


def parse_decimal(value: Union[Number, str]) -> Decimal:
    """Parse a number or numeric string into a finite Decimal."""
    if isinstance(value, bool):
        raise InvalidAmountError(f"Invalid amount type: {type(value).__name__}")
    try:
        if isinstance(value, float):
            parsed = Decimal(repr(value))
        elif isinstance(value, (int, Decimal)):
            parsed = Decimal(value)
        elif isinstance(value, str):
            # Decimal() accepts "1_000"; amounts never carry digit separators
            if "_" in value:
                raise InvalidAmountError(f"Invalid amount format: {value!r}")
            parsed = Decimal(value.strip())
        else:
            raise InvalidAmountError(f"Invalid amount type: {type(value).__name__}")
    except InvalidOperation:
        raise InvalidAmountError(f"Invalid amount format: {value!r}")

    if not parsed.is_finite():
        raise InvalidAmountError(f"Amount must be a finite number: {value!r}")
    return parsed


def _working_precision(amount: Decimal) -> int:
    """Digits needed to scale by CONVERSION_RATE and round without loss."""
    _, digits, exponent = amount.as_tuple()
    precision = len(digits) + max(exponent, 0) + 4
    if precision > MAX_AMOUNT_DIGITS:
        raise InvalidAmountError(
            f"Amount exceeds {MAX_AMOUNT_DIGITS} significant digits: {amount}"
        )
    return precision


def to_minor_units(major_amount: Union[Number, str]) -> str:
    """
    Convert a dinar amount to a dirham digit string.

    Args:
        major_amount: Dinar amount as a number or numeric string

    Returns:
        Minor-unit amount, e.g. 10.5 -> "10500"

    Raises:
        InvalidAmountError: If the amount is unparsable or negative
    """
    amount = parse_decimal(major_amount)
    if amount < 0:
        raise InvalidAmountError(f"Dinar amount cannot be negative: {major_amount}")

    try:
        with localcontext() as ctx:
            ctx.prec = _working_precision(amount)
            minor = (amount * CONVERSION_RATE).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    except DecimalException as e:
        raise InvalidAmountError(f"Cannot convert dinar amount {major_amount!r}: {type(e).__name__}")
    return str(int(minor))


def to_major_units(minor_amount: str) -> Decimal:
    """
    Convert a dirham string back to dinar.

    Returns:
        Exact Decimal dinar amount, e.g. "10500" -> Decimal("10.5")

    Raises:
        InvalidAmountError: If the string is unparsable or negative
    """
    amount = parse_decimal(minor_amount)
    if amount < 0:
        raise InvalidAmountError(f"Dirham amount cannot be negative: {minor_amount}")
    try:
        with localcontext() as ctx:
            ctx.prec = _working_precision(amount)
            return amount / CONVERSION_RATE
    except DecimalException as e:
        raise InvalidAmountError(f"Cannot convert dirham amount {minor_amount!r}: {type(e).__name__}")


def is_valid_minor_amount(value: str) -> bool:
    """True for a non-negative integer digit string, no signs or separators."""
    return isinstance(value, str) and _MINOR_PATTERN.fullmatch(value) is not None


def is_valid_major_amount(value: str) -> bool:
    """True if the string parses as a non-negative decimal number."""
    try:
        return parse_decimal(value) >= 0
    except InvalidAmountError:
        return False


def format_major(amount: Union[Number, str], with_symbol: bool = True) -> str:
    """
    Format a dinar amount for display.

    Whole amounts show two decimals, anything else three:
    1 -> "1.00 LYD", 10.5 -> "10.500 LYD", 12345.678 -> "12,345.678 LYD"
    """
    value = parse_decimal(amount)
    if value < 0:
        raise InvalidAmountError(f"Dinar amount cannot be negative: {amount}")

    try:
        with localcontext() as ctx:
            ctx.prec = _working_precision(value)
            if value == value.to_integral_value():
                formatted = f"{value:,.2f}"
            else:
                formatted = f"{value.quantize(Decimal('0.001'), rounding=ROUND_HALF_UP):,.3f}"
    except DecimalException as e:
        raise InvalidAmountError(f"Cannot format dinar amount {amount!r}: {type(e).__name__}")

    return f"{formatted} {MAJOR_SYMBOL}" if with_symbol else formatted


def format_minor(amount: str, with_symbol: bool = True) -> str:
    """Format a dirham string for display: "10500" -> "10,500 dirham"."""
    if not is_valid_minor_amount(amount):
        raise InvalidAmountError(f"Invalid dirham amount: {amount}")

    formatted = f"{int(amount):,}"
    return f"{formatted} {MINOR_SYMBOL}" if with_symbol else formatted
