from __future__ import annotations

import math
from decimal import Decimal
from fractions import Fraction

import pytest

from mobcalc.numeric import num


@pytest.mark.parametrize(
    "value",
    [None, "", "   ", "abc", "12abc", "1_000", "nan", "NaN", "inf", "-Infinity", math.nan, math.inf, -math.inf, [], {}, object()],
)
def test_non_numeric_values_coerce_to_zero(value):
    assert num(value) == 0.0


@pytest.mark.parametrize(
    ("value", "expected"),
    [("120", 120.0), (" 7.5 ", 7.5), ("-3", -3.0), ("1e3", 1000.0), (".5", 0.5), (8, 8.0), (0.92, 0.92)],
)
def test_numeric_strings_and_numbers_parse(value, expected):
    assert num(value) == expected


def test_booleans_coerce_to_one_and_zero():
    assert num(True) == 1.0
    assert num(False) == 0.0


def test_huge_integer_does_not_raise():
    assert num(10**400) == 0.0


def test_decimal_and_fraction_values_parse():
    assert num(Decimal("5")) == 5.0
    assert num(Decimal("2.25")) == 2.25
    assert num(Fraction(3, 4)) == 0.75


@pytest.mark.parametrize("value", [Decimal("NaN"), Decimal("sNaN"), Decimal("Infinity"), complex(1, 2)])
def test_unconvertible_number_types_coerce_to_zero(value):
    assert num(value) == 0.0
