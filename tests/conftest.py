"""
Pytest configuration for moamalat_pay.

Ensures the project root is importable and provides shared request fixtures.
"""

import os
import sys

import pytest

_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from moamalat_pay.models import TransactionRequest  # noqa: E402

FIXED_TIMESTAMP = 1700000000
HEX_SECRET = "3A488A89B3F7993476C252F017C488BB"


def build_request(**overrides) -> TransactionRequest:
    """TransactionRequest with sensible test defaults."""
    fields = {
        "merchant_id": "10081014649",
        "terminal_id": "99179395",
        "merchant_reference": "ORDER_1",
        "amount_minor_units": "10500",
        "merchant_secret": HEX_SECRET,
        "is_test_environment": True,
    }
    fields.update(overrides)
    return TransactionRequest(**fields)


@pytest.fixture
def make_request():
    """Factory fixture for TransactionRequest objects."""
    return build_request


@pytest.fixture
def fixed_clock():
    return lambda: float(FIXED_TIMESTAMP)
