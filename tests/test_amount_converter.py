"""
Tests for dinar/dirham conversion, validation and display formatting.
"""

from decimal import Decimal

import pytest
from hypothesis import given, strategies as st

from moamalat_pay.exceptions import InvalidAmountError
from moamalat_pay.services.amount_converter import (
    CONVERSION_RATE,
    MAX_AMOUNT_DIGITS,
    format_major,
    format_minor,
    is_valid_major_amount,
    is_valid_minor_amount,
    to_major_units,
    to_minor_units,
)


# === Conversion ===

def test_conversion_rate():
    assert CONVERSION_RATE == 1000


@pytest.mark.parametrize("major, minor", [
    (10.5, "10500"),
    (1.0, "1000"),
    (0.001, "1"),
    (0.0, "0"),
    (1.234, "1234"),
    (7, "7000"),
    (Decimal("12.345"), "12345"),
])
def test_to_minor_units_from_number(major, minor):
    assert to_minor_units(major) == minor


@pytest.mark.parametrize("major, minor", [
    ("1", "1000"),
    ("10.5", "10500"),
    ("10.500", "10500"),
    ("0.001", "1"),
    (" 2.5 ", "2500"),
])
def test_to_minor_units_from_string(major, minor):
    assert to_minor_units(major) == minor


def test_to_major_units():
    assert to_major_units("10500") == Decimal("10.5")
    assert to_major_units("10500") == 10.5
    assert to_major_units("1") == Decimal("0.001")
    assert to_major_units("0") == 0


def test_rounding_is_half_up_at_sub_dirham_boundary():
    assert to_minor_units("1.0005") == "1001"
    assert to_minor_units(1.0005) == "1001"
    assert to_minor_units("1.0004") == "1000"
    # Half-even would give "2" here
    assert to_minor_units("0.0025") == "3"


@pytest.mark.parametrize("bad", [-1.0, "-1", "-0.001", Decimal("-5")])
def test_negative_amounts_rejected(bad):
    with pytest.raises(InvalidAmountError):
        to_minor_units(bad)


@pytest.mark.parametrize("bad", ["abc", "", "1,000", "NaN", "Infinity", None, True, [1]])
def test_unparsable_amounts_rejected(bad):
    with pytest.raises(InvalidAmountError):
        to_minor_units(bad)


@pytest.mark.parametrize("bad", ["-100", "abc", "NaN"])
def test_to_major_units_rejects_invalid(bad):
    with pytest.raises(InvalidAmountError):
        to_major_units(bad)


def test_invalid_amount_error_code():
    with pytest.raises(InvalidAmountError) as exc_info:
        to_minor_units(-1.0)
    assert exc_info.value.error_code == "npg:amount:invalid"


# === Round-trip properties ===

@given(st.decimals(min_value=0, max_value=10**9, places=3, allow_nan=False, allow_infinity=False))
def test_round_trip_decimal(amount):
    assert to_major_units(to_minor_units(amount)) == amount


@given(st.integers(min_value=0, max_value=10**9))
def test_round_trip_float(minor):
    amount = minor / 1000
    assert float(to_major_units(to_minor_units(amount))) == amount


# === Validation ===

@pytest.mark.parametrize("value, expected", [
    ("1000", True),
    ("0", True),
    ("10.5", False),
    ("-100", False),
    ("+100", False),
    ("1,000", False),
    ("abc", False),
    ("", False),
])
def test_is_valid_minor_amount(value, expected):
    assert is_valid_minor_amount(value) is expected


@pytest.mark.parametrize("value, expected", [
    ("1.0", True),
    ("10.5", True),
    ("0", True),
    ("-1.5", False),
    ("abc", False),
    ("", False),
    ("NaN", False),
])
def test_is_valid_major_amount(value, expected):
    assert is_valid_major_amount(value) is expected


# === Display ===

@pytest.mark.parametrize("amount, expected", [
    (1.0, "1.00 LYD"),
    (10.5, "10.500 LYD"),
    (0.001, "0.001 LYD"),
    (1234567, "1,234,567.00 LYD"),
    ("12345.678", "12,345.678 LYD"),
])
def test_format_major(amount, expected):
    assert format_major(amount) == expected


def test_format_major_without_symbol():
    assert format_major(10.5, with_symbol=False) == "10.500"


def test_format_major_rejects_negative():
    with pytest.raises(InvalidAmountError):
        format_major(-1)


@pytest.mark.parametrize("amount, expected", [
    ("1000", "1,000 dirham"),
    ("10500", "10,500 dirham"),
    ("1", "1 dirham"),
    ("1234567", "1,234,567 dirham"),
])
def test_format_minor(amount, expected):
    assert format_minor(amount) == expected


def test_format_minor_without_symbol_and_invalid():
    assert format_minor("10500", with_symbol=False) == "10,500"
    with pytest.raises(InvalidAmountError):
        format_minor("10.5")


# === Large amounts ===

THIRTY_DIGITS = "123456789012345678901234567890"


def test_thirty_digit_amounts_convert_exactly():
    assert to_minor_units(THIRTY_DIGITS) == THIRTY_DIGITS + "000"
    assert to_minor_units("1e30") == "1" + "0" * 33
    assert to_minor_units(10**26) == "1" + "0" * 29
    assert to_minor_units("123456789012345678901234567.5") == "123456789012345678901234567500"


def test_thirty_digit_round_trip():
    minor = THIRTY_DIGITS + "1"
    major = to_major_units(minor)
    assert major == Decimal("1234567890123456789012345678.901")
    assert to_minor_units(major) == minor


def test_format_major_large_fractional_amount():
    assert format_major("12345678901234567890123456.5") == "12,345,678,901,234,567,890,123,456.500 LYD"


@pytest.mark.parametrize("bad", ["1e999999", "9" * (MAX_AMOUNT_DIGITS + 1)])
def test_amounts_beyond_supported_digits_rejected(bad):
    with pytest.raises(InvalidAmountError):
        to_minor_units(bad)
    with pytest.raises(InvalidAmountError):
        to_major_units(bad)
    with pytest.raises(InvalidAmountError):
        format_major(bad)


@given(st.integers(min_value=0, max_value=10**60))
def test_round_trip_large_minor_amounts(minor):
    assert to_minor_units(to_major_units(str(minor))) == str(minor)


@pytest.mark.parametrize("value", ["1_000", "1_0.5", "_1"])
def test_digit_separators_rejected(value):
    assert is_valid_major_amount(value) is False
    with pytest.raises(InvalidAmountError):
        to_minor_units(value)
