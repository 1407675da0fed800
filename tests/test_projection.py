"""Tests for the accumulation projection."""

import math

import pytest

from financial_health.calculators.projection import future_value, project, years_to_goal
from financial_health.calculators.returns import adjust_returns
from financial_health.config import MAX_AGE
from financial_health.models import CanonicalInputs


def _inputs(**overrides):
    values = dict(
        age=57,
        retirement_age=67,
        gross_monthly_income=10000,
        net_monthly_income=7000,
        monthly_expenses=5000,
        pension_savings=100000,
        monthly_pension_contribution=1750,
    )
    values.update(overrides)
    return CanonicalInputs(**values)


def test_future_value():
    assert future_value(0, 1000, 0.0, 12) == pytest.approx(12000)
    assert future_value(10000, 0, 12.0, 12) == pytest.approx(11268.25, abs=0.01)
    assert future_value(1000, 100, 0.0, 24) == pytest.approx(3400)


def test_pension_compounds_net_of_fee():
    inputs = _inputs(pension_fee=0.5)
    returns = adjust_returns(None, inputs.years_to_retirement, inputs.age)
    proj = project(inputs, returns)
    expected = future_value(100000, 1750, returns.rate("pension") - 0.5, 120)
    assert proj.by_asset["pension"] == pytest.approx(expected)
    assert proj.by_asset["pension"] < project(_inputs(), returns).by_asset["pension"]


def test_withdrawal_income():
    proj = project(_inputs(emergency_fund=20000))
    assert proj.by_asset["cash"] == 20000
    assert proj.monthly_income == pytest.approx(proj.accumulation * 0.04 / 12)
    assert proj.replacement_ratio == pytest.approx(proj.monthly_income / 10000 * 100)


def test_state_pension_counts_towards_replacement():
    base = project(_inputs())
    with_state = project(_inputs(), state_pension=3000)
    assert with_state.replacement_ratio == pytest.approx(base.replacement_ratio + 30)


def test_schedule_covers_each_year():
    proj = project(_inputs())
    assert len(proj.ages) == 11
    assert proj.ages[0] == 57
    assert proj.ages[-1] == 67
    assert len(proj.schedule["pension"]) == 11
    assert proj.schedule["pension"][0] == pytest.approx(100000)


def test_negative_savings_never_reach_goal():
    proj = project(_inputs(net_monthly_income=5000, monthly_expenses=6000))
    assert proj.net_monthly_savings == -1000
    assert math.isinf(proj.years_to_goal)
    assert not proj.reaches_goal


def test_goal_already_met():
    proj = project(_inputs(net_monthly_income=5000, monthly_expenses=6000), retirement_goal=50000)
    assert proj.years_to_goal == 0
    assert proj.reaches_goal


def test_default_goal_is_multiple_of_expenses():
    assert project(_inputs()).retirement_goal == 5000 * 12 * 20


def test_years_to_goal():
    assert years_to_goal(0, 1000, 0.0, 120000) == pytest.approx(10)
    assert years_to_goal(200, 0, 5.0, 100) == 0
    assert math.isinf(years_to_goal(0, 0, 5.0, 100))
    assert years_to_goal(0, 1000, 6.0, 120000) < 10


def test_retired_profile_has_zero_horizon():
    proj = project(_inputs(age=70))
    assert proj.years == 0
    assert proj.by_asset["pension"] == pytest.approx(100000)


def test_horizon_capped_at_maximum_age():
    proj = project(_inputs(age=30, retirement_age=3e6))
    assert proj.years == MAX_AGE
    assert len(proj.ages) == MAX_AGE + 1
    assert math.isfinite(proj.accumulation)


def test_future_value_overflow_capped():
    value = future_value(1000, 100, 1e6, 1440)
    assert math.isfinite(value)
    assert value > 1e300
    assert future_value(0, 0, 1e6, 1440) == 0
