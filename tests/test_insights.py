from financial_health.components.insights import generate_insights, rebalancing_summary
from financial_health.calculators.rebalancing import analyze
from financial_health.models import HealthReport, Suggestion, ValidationResult


def _report(total, suggestions=()):
    return HealthReport(
        total_score=total,
        factors={},
        suggestions=tuple(suggestions),
        interpretation="",
        validation=ValidationResult(is_valid=True),
    )


def test_generate_insights_high_score():
    text = generate_insights(_report(90)).lower()
    assert "excellent shape" in text
    assert "biggest opportunity" not in text


def test_generate_insights_low_score_names_top_suggestion():
    top = Suggestion(factor="savingsRate", priority="high", title="Increase your savings rate", description="")
    text = generate_insights(_report(30, [top])).lower()
    assert "need of attention" in text
    assert "increase your savings rate" in text


def test_rebalancing_summary():
    assert rebalancing_summary(analyze({"stocks": 60, "bonds": 40}, {"stocks": 60, "bonds": 40})) is None
    text = rebalancing_summary(analyze({"stocks": 75, "bonds": 25}, {"stocks": 60, "bonds": 40}))
    assert "high" in text
    assert "15.0" in text
