"""Unit tests for rounding helpers and price parsing."""

import pytest

from catalog_admin.insertion.payload_mapper import parse_price
from catalog_admin.utils.rounding import percentage, round_half_up


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [
        (12.5, 13),
        (12.49, 12),
        (0.5, 1),
        (2.5, 3),
        (66.666, 67),
        (0, 0),
    ],
)
def test_round_half_up(value, expected):
    """Halves round up, unlike Python's banker's rounding."""
    assert round_half_up(value) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "part,whole,expected",
    [
        (1, 8, 13),  # 12.5% rounds up
        (1, 3, 33),
        (2, 3, 67),
        (3, 3, 100),
        (0, 5, 0),
        (0, 0, 0),
        (5, 0, 0),
    ],
)
def test_percentage(part, whole, expected):
    assert percentage(part, whole) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "text,expected",
    [
        ("₹1,999", 1999),
        ("$12.50", 13),
        ("₹ 2,499.49", 2499),
        ("", 0),
        (None, 0),
        ("N/A", 0),
        ("1.2.3", 1),
        ("Rs. 1,999", 1999),
        ("MRP: Rs.2,499.50", 2500),
    ],
)
def test_parse_price(text, expected):
    assert parse_price(text) == expected
