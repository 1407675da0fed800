"""Public entry points.

The data flow is::

    profile -> normalize -> adjust_returns -> project -> score -> HealthReport

Each call builds fresh value objects; the only shared state is the cached,
read-only configuration.

Example
-------

>>> report = calculate_financial_health_score({
...     "currentAge": 35, "retirementAge": 67,
...     "currentMonthlySalary": 20000, "currentMonthlyExpenses": 12000,
...     "emergencyFund": 72000, "equityPercentage": 60, "bondPercentage": 40,
... })
>>> 0 <= report.total_score <= 100
True
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .calculators import inflation, national_insurance as ni, normalizer, projection, rebalancing, returns, scoring
from .config import EngineConfig, default_config
from .models import CanonicalInputs, HealthReport, HealthScoreOptions, RebalancingAnalysis, ReturnAssumptions

logger = logging.getLogger(__name__)

national_insurance = ni.NationalInsuranceCalculator()


def _state_pension(inputs: CanonicalInputs, cfg: EngineConfig) -> Optional[float]:
    """Projected Israeli old-age pension, assuming contributions since age 21."""
    if inputs.country != "israel" or inputs.gross_monthly_income <= 0:
        return None
    calc = ni.NationalInsuranceCalculator(table=cfg.national_insurance)
    months = int(max(0.0, inputs.age - 21) * 12)
    result = calc.project_retirement_pension({
        "age": inputs.age,
        "retirement_age": inputs.retirement_age,
        "current_income": inputs.gross_monthly_income,
        "contribution_months": months,
        "average_income": inputs.gross_monthly_income,
        "marital_status": "married" if inputs.mode == "couple" else "single",
    })
    return result.monthly_total if result.eligible else 0.0


def calculate_financial_health_score(
    profile: Optional[Mapping[str, Any]],
    options: Optional[HealthScoreOptions] = None,
    config: Optional[EngineConfig] = None,
) -> HealthReport:
    """Normalize a raw profile, project it and score it.

    Never raises on malformed profile data; missing fields show up as
    ``critical`` factors and in ``report.validation``.
    """
    options = options or HealthScoreOptions()
    cfg = config or default_config(options.year)
    inputs = normalizer.normalize(profile, cfg)
    assumptions = returns.adjust_returns(
        options.base_returns, inputs.years_to_retirement, inputs.age, inputs.risk_tolerance, config=cfg,
    )
    goal = scoring.retirement_goal(inputs, cfg.scoring, options)
    state = _state_pension(inputs, cfg) if options.include_state_pension else None
    proj = projection.project(
        inputs,
        assumptions,
        withdrawal_rate=options.withdrawal_rate,
        retirement_goal=goal,
        state_pension=state,
        config=cfg,
    )
    report = scoring.score(inputs, proj, options, cfg, returns=assumptions)
    logger.debug("Health score %.1f (%s mode, %s)", report.total_score, inputs.mode, inputs.country)
    return report


def calculate_time_based_returns(
    base_returns: Optional[Mapping[str, float]],
    years_to_retirement: float,
    age: float,
    risk_tolerance: str = "moderate",
    config: Optional[EngineConfig] = None,
) -> ReturnAssumptions:
    return returns.adjust_returns(base_returns, years_to_retirement, age, risk_tolerance, config=config)


def adjust_for_inflation(nominal: float, inflation_rate: float, years: float, compounding: bool = True) -> float:
    return inflation.real_value(nominal, inflation_rate, years, compounding)


def analyze_rebalancing_needs(
    profile: Optional[Mapping[str, Any]],
    current: Mapping[str, Any],
    target: Mapping[str, Any],
    last_rebalance_date=None,
    as_of=None,
    config: Optional[EngineConfig] = None,
) -> RebalancingAnalysis:
    """Rebalancing analysis using the profile's risk tolerance, country and assets."""
    cfg = config or default_config()
    inputs = normalizer.normalize(profile, cfg) if profile else None
    return rebalancing.analyze(current, target, last_rebalance_date, inputs=inputs, as_of=as_of, config=cfg)


__all__ = [
    "adjust_for_inflation",
    "analyze_rebalancing_needs",
    "calculate_financial_health_score",
    "calculate_time_based_returns",
    "national_insurance",
]
