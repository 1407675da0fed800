"""Tests for the eight-factor health score."""

import pytest

from financial_health.calculators import scoring
from financial_health.calculators.normalizer import normalize
from financial_health.config import default_config
from financial_health.models import CanonicalInputs, FactorScore

CFG = default_config().scoring


@pytest.mark.parametrize(
    "value, expected", [(25, 100), (20, 100), (17.5, 87.5), (12.5, 62.5), (7.5, 37.5), (2.5, 12.5), (0, 0)]
)
def test_tiered_higher_is_better(value, expected):
    assert scoring.tiered(value, (20, 15, 10, 5)) == pytest.approx(expected)


def test_tiered_lower_is_better():
    assert scoring.tiered(0.05, (0.1, 0.2, 0.3, 0.5), higher_is_better=False) == 100
    assert scoring.tiered(0.25, (0.1, 0.2, 0.3, 0.5), higher_is_better=False) == pytest.approx(62.5)
    assert scoring.tiered(2.0, (0.1, 0.2, 0.3, 0.5), higher_is_better=False) == 0


@pytest.mark.parametrize(
    "normalized, status", [(90, "excellent"), (85, "excellent"), (70, "good"), (55, "fair"), (30, "poor"), (10, "critical")]
)
def test_status_for(normalized, status):
    assert scoring.status_for(normalized, CFG) == status


def test_savings_rate_missing_income():
    factor = scoring.savings_rate_score(normalize({}), CFG)
    assert factor.score == 0
    assert factor.status == "critical"
    assert factor.details["missing_data"] == ["income"]


def test_savings_rate_from_contributions():
    inputs = CanonicalInputs(gross_monthly_income=10000, monthly_pension_contribution=1750,
                             monthly_training_contribution=750)
    factor = scoring.savings_rate_score(inputs, CFG)
    assert factor.details["savings_rate"] == 25
    assert factor.score == 25
    assert factor.status == "excellent"


def test_recommended_allocation():
    assert scoring.recommended_allocation(40, "moderate", CFG) == {"equity": 60, "bonds": 40}
    assert scoring.recommended_allocation(25, "conservative", CFG)["equity"] == 40


def test_risk_alignment():
    aligned = CanonicalInputs(age=40, equity_percentage=60, bond_percentage=40)
    assert scoring.risk_alignment_score(aligned, CFG).score == 12
    drifted = CanonicalInputs(age=40, equity_percentage=80, bond_percentage=20)
    factor = scoring.risk_alignment_score(drifted, CFG)
    assert factor.score == pytest.approx(7.2)
    assert factor.status == "fair"


def test_risk_alignment_without_allocation():
    factor = scoring.risk_alignment_score(CanonicalInputs(age=40), CFG)
    assert factor.score == 0
    assert factor.details["missing_data"] == ["allocation"]


def test_diversification_concentration_penalty():
    single = scoring.diversification_score(CanonicalInputs(pension_savings=100000), CFG)
    assert single.score == pytest.approx(0.5)
    assert single.details["concentrated"]
    spread = scoring.diversification_score(
        CanonicalInputs(pension_savings=1, training_fund=1, personal_portfolio=1, emergency_fund=1), CFG
    )
    assert spread.score == 10


def test_tax_efficiency():
    israel = default_config().country("israel")
    inputs = CanonicalInputs(gross_monthly_income=10000)
    factor = scoring.tax_efficiency_score(inputs, israel, CFG)
    assert 0 < factor.score <= 8
    assert factor.details["training_fund_utilization"] == 0.75
    zero = scoring.tax_efficiency_score(CanonicalInputs(), israel, CFG)
    assert zero.score == 0


def test_emergency_fund():
    half = scoring.emergency_fund_score(CanonicalInputs(monthly_expenses=5000, emergency_fund=15000), CFG)
    assert half.score == pytest.approx(3.5)
    assert half.status == "fair"
    full = scoring.emergency_fund_score(CanonicalInputs(monthly_expenses=5000, emergency_fund=60000), CFG)
    assert full.score == 7


def test_emergency_fund_missing_expenses():
    factor = scoring.emergency_fund_score(normalize({"emergencyFund": 10000}), CFG)
    assert factor.status == "critical"
    assert "expenses" in factor.details["missing_data"]


def test_debt_management():
    assert scoring.debt_management_score(CanonicalInputs(), CFG).score == 3
    inputs = CanonicalInputs(gross_monthly_income=10000, total_debt=30000)
    assert scoring.debt_management_score(inputs, CFG).score == pytest.approx(1.88, abs=0.01)
    no_income = CanonicalInputs(total_debt=30000)
    assert scoring.debt_management_score(no_income, CFG).score == 0


def test_high_interest_penalty():
    base = CanonicalInputs(gross_monthly_income=10000, total_debt=30000)
    costly = CanonicalInputs(gross_monthly_income=10000, total_debt=30000, high_interest_debt=20000)
    assert scoring.debt_management_score(costly, CFG).score < scoring.debt_management_score(base, CFG).score


def test_suggestions_ranked_by_impact():
    factors = {
        "savingsRate": FactorScore(score=5, weight=25, status="critical"),
        "emergencyFund": FactorScore(score=3, weight=7, status="poor"),
        "debtManagement": FactorScore(score=2, weight=3, status="good"),
    }
    suggestions = scoring.build_suggestions(factors, CFG)
    assert [s.factor for s in suggestions] == ["savingsRate", "emergencyFund", "debtManagement"]
    assert suggestions[0].priority == "high"
    assert suggestions[0].impact == pytest.approx(20)
    assert suggestions[-1].priority == "medium"


def test_all_good_gets_single_general_suggestion():
    factors = {name: FactorScore(score=w, weight=w, status="excellent") for name, w in CFG.weights.items()}
    suggestions = scoring.build_suggestions(factors, CFG)
    assert len(suggestions) == 1
    assert suggestions[0].factor == "general"
    assert suggestions[0].priority == "low"
    assert suggestions[0].title == "Keep up the excellent work!"


def test_missing_data_named_in_suggestion():
    factors = {"emergencyFund": FactorScore(score=0, weight=7, status="critical",
                                            details={"missing_data": ["expenses"]})}
    assert "Missing data: expenses" in scoring.build_suggestions(factors, CFG)[0].description


def test_peer_comparison():
    top = scoring.peer_comparison(80, 35, CFG)
    assert top.age_group == "30-39"
    assert top.percentile == pytest.approx(79.8)
    assert top.comparison == "Above Top 25%"
    assert scoring.peer_comparison(60, 35, CFG).comparison == "Above Average"
    low = scoring.peer_comparison(27.5, 35, CFG)
    assert low.percentile == 25
    assert low.comparison == "Below Average"


@pytest.mark.parametrize(
    "total, label", [(90, "Excellent"), (72, "Good"), (55, "Fair"), (20, "Needs Improvement")]
)
def test_interpret(total, label):
    assert scoring.interpret(total) == label


def test_validation_flags():
    inputs = normalize({"currentAge": 70, "retirementAge": 67, "targetAllocation": {"stocks": 90, "bonds": 40}})
    result = scoring.validate_inputs(inputs)
    assert not result.is_valid
    assert "income" in result.critical_missing
    assert any("130.0%" in e for e in result.errors)
    assert any("retirement age" in w for w in result.warnings)


def test_score_weights_and_bounds():
    inputs = normalize({
        "currentAge": 35, "retirementAge": 67, "salary": 20000, "currentMonthlyExpenses": 12000,
        "emergencyFund": 72000, "equityPercentage": 60, "bondPercentage": 40,
        "currentPensionSavings": 150000, "personalPortfolio": 50000,
    })
    report = scoring.score(inputs)
    assert list(report.factors) == list(CFG.weights)
    assert 0 <= report.total_score <= 100
    for name, factor in report.factors.items():
        assert 0 <= factor.score <= CFG.weights[name]
    assert report.total_score == pytest.approx(sum(f.score for f in report.factors.values()), abs=0.1)


def test_validation_current_split_must_total_100():
    result = scoring.validate_inputs(normalize({"currentAge": 40, "salary": 15000,
                                                "equityPercentage": 70, "bondPercentage": 40}))
    assert not result.is_valid
    assert any("Current allocation sums to 110.0%" in e for e in result.errors)


def test_validation_target_with_cash_is_valid():
    inputs = normalize({"currentAge": 40, "retirementAge": 67, "salary": 15000,
                        "targetAllocation": {"stocks": 50, "bonds": 40, "cash": 10}})
    result = scoring.validate_inputs(inputs)
    assert result.is_valid
    assert result.errors == ()


def test_validation_default_retirement_age_wording():
    result = scoring.validate_inputs(normalize({"currentAge": 40, "salary": 15000}))
    assert "No retirement age provided; a default of 67 is assumed" in result.warnings
    assert not any("retirement age" in w and "score zero" in w for w in result.warnings)


def test_validation_rejects_out_of_range_age():
    result = scoring.validate_inputs(normalize({"currentAge": 40, "retirementAge": 3e6, "salary": 15000}))
    assert not result.is_valid
    assert "retirement_age is above the supported maximum of 120" in result.errors


def test_validation_rejects_non_mapping_profile():
    result = scoring.validate_inputs(normalize([1, 2]))
    assert not result.is_valid
    assert "Profile is not a mapping of field names to values" in result.errors
