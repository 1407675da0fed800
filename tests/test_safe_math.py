"""Tests for the arithmetic guards."""

import math

import pytest

from financial_health.calculators.safe_math import (
    clamp,
    safe_divide,
    safe_float,
    safe_multiply,
    safe_percentage,
)


def test_safe_divide_regular():
    assert safe_divide(10, 4) == 2.5


@pytest.mark.parametrize("denominator", [0, 0.0, float("nan"), float("inf"), None])
def test_safe_divide_guarded(denominator):
    """Zero or non-finite denominators return the default instead of raising."""
    assert safe_divide(1, denominator, default=-1) == -1


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1,250.5", 1250.5),
        ("₪1,200", 1200.0),
        ("12%", 12.0),
        (" 42 ", 42.0),
        (7, 7.0),
    ],
)
def test_safe_float_parses_form_values(raw, expected):
    assert math.isclose(safe_float(raw), expected)


@pytest.mark.parametrize("raw", [None, "", "abc", True, float("nan"), {"a": 1}])
def test_safe_float_defaults(raw):
    assert safe_float(raw, default=3.0) == 3.0


def test_safe_percentage_and_multiply():
    assert safe_percentage(1, 4) == 25.0
    assert safe_percentage(1, 0) == 0.0
    assert safe_multiply(2, 3, 4) == 24
    assert safe_multiply(2, float("nan"), default=-1) == -1


def test_clamp():
    assert clamp(140, 0, 100) == 100
    assert clamp(-5, 0, 100) == 0
    assert clamp(50, 0, 100) == 50
