"""Tests for inflation adjustment helpers."""

import math

import pytest

from financial_health.calculators.inflation import (
    adjust_projection,
    inflation_protection,
    inflation_scenarios,
    nominal_value,
    purchasing_power_series,
    real_return,
    real_value,
    scenario_rate,
)
from financial_health.models import Projection


@pytest.mark.parametrize("years", [0, -3])
def test_no_years_no_change(years):
    assert real_value(12345.6, 3.0, years) == 12345.6


def test_compound_real_value():
    assert real_value(100000, 2.5, 10) == pytest.approx(78119.84, abs=0.01)


def test_simple_real_value():
    assert real_value(100000, 2.0, 10, compounding=False) == pytest.approx(100000 / 1.2)


def test_nominal_value_inverts_real_value():
    amount = 50000
    assert nominal_value(real_value(amount, 3.0, 20), 3.0, 20) == pytest.approx(amount)


def test_fisher_real_return():
    assert real_return(7.0, 2.5) == pytest.approx(4.3902, abs=1e-4)
    assert real_return(3.0, 3.0) == pytest.approx(0.0)
    # Fisher is below the naive difference
    assert real_return(10.0, 5.0) < 5.0


def test_israel_scenarios():
    assert inflation_scenarios("israel") == {
        "optimistic": 2.0,
        "moderate": 2.5,
        "pessimistic": 3.2,
        "historical": 2.1,
    }
    assert inflation_scenarios("narnia") == inflation_scenarios("israel")
    assert scenario_rate("pessimistic", "uk") == 5.1


def test_purchasing_power_series():
    series = purchasing_power_series(1000, 2.0, 10)
    assert len(series) == 11
    assert series[0]["real_value"] == pytest.approx(1000)
    assert series[0]["erosion_pct"] == pytest.approx(0)
    assert series[-1]["real_value"] == pytest.approx(1000 / 1.02 ** 10)
    values = [row["real_value"] for row in series]
    assert values == sorted(values, reverse=True)


def test_inflation_protection():
    result = inflation_protection({"cash": 100, "realEstate": 100})
    assert math.isclose(result["score"], 45.0)
    assert inflation_protection({})["score"] == 0


def test_adjust_projection():
    proj = Projection(
        years=10,
        retirement_age=67,
        accumulation=1_000_000,
        by_asset={},
        monthly_income=3333.33,
        withdrawal_rate=0.04,
        years_to_goal=0,
        retirement_goal=0,
        replacement_ratio=0,
        net_monthly_savings=0,
    )
    out = adjust_projection(proj)
    assert out["moderate"]["real_accumulation"] == pytest.approx(1_000_000 / 1.025 ** 10)
    assert out["pessimistic"]["real_accumulation"] < out["optimistic"]["real_accumulation"]
    assert 0 < out["moderate"]["purchasing_power_lost_pct"] < 100
