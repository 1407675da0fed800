from financial_health import calculate_financial_health_score
from financial_health.calculators.inflation import purchasing_power_series
from financial_health.calculators.rebalancing import analyze
from financial_health.components.charts import (
    deviation_chart,
    factor_bar_chart,
    factor_table,
    projection_area_chart,
    purchasing_power_chart,
    score_gauge,
)

PROFILE = {
    "currentAge": 40, "retirementAge": 67, "salary": 20000, "currentMonthlyExpenses": 12000,
    "currentPensionSavings": 300000, "emergencyFund": 50000,
}


def test_score_gauge_clamps():
    assert score_gauge(120).data[0].value == 100
    assert score_gauge(-5).data[0].value == 0


def test_factor_charts():
    report = calculate_financial_health_score(PROFILE)
    fig = factor_bar_chart(report)
    assert len(fig.data) == 2
    assert len(fig.data[1].x) == 8
    table = factor_table(report)
    assert table["factor"][0] == "Savings rate"
    assert sum(table["weight"]) == 100


def test_projection_chart_skips_empty_assets():
    report = calculate_financial_health_score(PROFILE)
    fig = projection_area_chart(report.projection)
    names = {trace.name for trace in fig.data}
    assert "Pension" in names
    assert "Crypto" not in names


def test_purchasing_power_chart():
    fig = purchasing_power_chart(purchasing_power_series(1000, 2.5, 20))
    assert len(fig.data[0].x) == 21


def test_deviation_chart_colors():
    fig = deviation_chart(analyze({"stocks": 70, "bonds": 30}, {"stocks": 60, "bonds": 40}))
    assert list(fig.data[0].marker.color) == ["#ef4444", "#22c55e"]
