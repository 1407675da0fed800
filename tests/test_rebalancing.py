"""Tests for allocation drift and rebalancing analysis."""

from datetime import date

import pytest

from financial_health.calculators.normalizer import normalize
from financial_health.calculators.rebalancing import (
    add_months,
    analyze,
    calculate_tax_impact,
    cost_benefit_analysis,
    create_schedule,
    flatten_allocation,
    months_between,
)
from financial_health.config import default_config
from financial_health.models import CanonicalInputs, TaxImpact

LAST = date(2024, 5, 15)
AS_OF = date(2025, 6, 15)


def test_months_between():
    assert months_between(date(2024, 1, 15), date(2025, 2, 15)) == pytest.approx(13.0)
    assert months_between(date(2024, 1, 31), date(2024, 2, 29)) == pytest.approx(1.0)
    assert 0 < months_between(date(2024, 1, 1), date(2024, 1, 16)) < 1
    assert months_between(date(2025, 1, 1), date(2024, 1, 1)) == 0


def test_add_months_clamps_day():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)


def test_flatten_nested_allocation():
    flat = flatten_allocation({"stocks": {"domestic": 40, "international": 20}, "bonds": 40})
    assert flat == {"stocks.domestic": 40, "stocks.international": 20, "bonds": 40}


def test_invalid_allocation_reported_not_rescaled():
    """An allocation summing to 130 is flagged and analysed as given."""
    a = analyze({"stocks": 70, "bonds": 40, "realEstate": 20}, {"stocks": 60, "bonds": 30, "realEstate": 10})
    assert not a.validation.is_valid
    assert any("130.0%" in e for e in a.validation.errors)
    assert a.deviations["stocks"] == -10


@pytest.mark.parametrize(
    "drift, urgency", [(0, "none"), (4, "none"), (6, "low"), (10, "medium"), (15, "high"), (25, "critical")]
)
def test_threshold_urgency(drift, urgency):
    a = analyze({"stocks": 60 + drift, "bonds": 40 - drift}, {"stocks": 60, "bonds": 40})
    assert a.urgency == urgency
    assert a.max_deviation == drift
    assert a.needs_rebalancing == (urgency != "none")


@pytest.mark.parametrize("risk, overdue", [("conservative", 1.0), ("moderate", 7.0), ("aggressive", 10.0)])
def test_time_trigger(risk, overdue):
    inputs = normalize({"riskTolerance": risk})
    a = analyze({"stocks": 60, "bonds": 40}, {"stocks": 60, "bonds": 40}, LAST, inputs=inputs, as_of=AS_OF)
    assert a.months_since_rebalance == pytest.approx(13.0)
    assert a.months_overdue == pytest.approx(overdue)
    assert a.urgency == "low"
    assert a.triggers[0]["type"] == "time"


def test_time_trigger_not_yet_due():
    inputs = normalize({"riskTolerance": "moderate"})
    a = analyze({"stocks": 60, "bonds": 40}, {"stocks": 60, "bonds": 40},
                "2025-01-20", inputs=inputs, as_of="2025-06-15")
    assert a.months_overdue == 0
    assert not a.needs_rebalancing


def test_time_trigger_keeps_higher_threshold_urgency():
    a = analyze({"stocks": 75, "bonds": 25}, {"stocks": 60, "bonds": 40}, LAST, as_of=AS_OF)
    assert a.urgency == "high"
    assert {t["type"] for t in a.triggers} == {"threshold", "time"}


def test_unparseable_date_ignored():
    a = analyze({"stocks": 60, "bonds": 40}, {"stocks": 60, "bonds": 40}, "not a date")
    assert a.months_since_rebalance is None


def test_tax_impact():
    tax = calculate_tax_impact({"stocks": -10, "bonds": 10}, 1_000_000)
    assert tax.taxable_sales == pytest.approx(100000)
    assert tax.estimated_gain == pytest.approx(20000)
    assert tax.estimated_tax == pytest.approx(5000)
    assert tax.by_asset == {"stocks": pytest.approx(5000)}


def test_tax_advantaged_share_excluded():
    inputs = CanonicalInputs(pension_savings=500000, personal_portfolio=500000)
    a = analyze({"stocks": 70, "bonds": 30}, {"stocks": 60, "bonds": 40}, inputs=inputs)
    assert a.tax_impact.taxable_sales == pytest.approx(50000)
    assert a.tax_impact.estimated_tax == pytest.approx(2500)


def test_cost_benefit_verdicts():
    rb = default_config().rebalancing
    current = {"stocks": 100}
    target = {"stocks": 60, "bonds": 40}
    deviations = {"stocks": -40, "bonds": 40}
    value = 1_000_000

    sheltered = cost_benefit_analysis(current, target, deviations, value, TaxImpact(0, 0, 0.25, 0), rb)
    assert sheltered.return_improvement == pytest.approx(-1.6)
    assert sheltered.risk_reduction == pytest.approx(4.4)
    assert sheltered.annual_benefit == pytest.approx(3000)
    assert sheltered.verdict == "proceed"

    taxed = cost_benefit_analysis(current, target, deviations, value,
                                  calculate_tax_impact(deviations, value), rb)
    assert taxed.total_cost == pytest.approx(400 + 20000)
    assert taxed.verdict == "defer"


def test_recommendations_sorted_by_priority():
    a = analyze({"stocks": 85, "bonds": 15}, {"stocks": 60, "bonds": 40}, portfolio_value=100000)
    priorities = [r["priority"] for r in a.recommendations]
    assert priorities[0] == "high"
    assert priorities == sorted(priorities, key=["high", "medium", "low"].index)
    assert any(r.get("asset") == "stocks" for r in a.recommendations)


def test_schedule():
    aggressive = create_schedule("aggressive", as_of=date(2025, 1, 10))
    assert aggressive["interval_months"] == 3
    assert [r["date"] for r in aggressive["reviews"]] == ["2025-04-01", "2025-07-01", "2025-10-01", "2026-01-01"]
    assert len(create_schedule("conservative", as_of=date(2025, 1, 10))["reviews"]) == 2


def test_no_portfolio_value_asks_for_it_instead_of_cost_warning():
    a = analyze({"stocks": 75, "bonds": 25}, {"stocks": 60, "bonds": 40})
    titles = [r["title"] for r in a.recommendations]
    assert a.cost_benefit.total_cost == 0
    assert "Costs currently outweigh the benefit" not in titles
    assert "Portfolio value not supplied" in titles


def test_valued_portfolio_has_no_valuation_recommendation():
    a = analyze({"stocks": 75, "bonds": 25}, {"stocks": 60, "bonds": 40}, portfolio_value=100000)
    assert all(r["type"] != "valuation" for r in a.recommendations)
