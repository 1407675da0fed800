"""Eight-factor financial health score.

Each factor produces a normalized value between 0 and 100 which is then
scaled to the factor's weight, so the factor scores add up to a total
between 0 and 100:

================== ======
factor             weight
================== ======
savingsRate        25
retirementReadiness 20
timeHorizon        15
riskAlignment      12
diversification    10
taxEfficiency      8
emergencyFund      7
debtManagement     3
================== ======

Factors whose required inputs are missing score zero with status
``critical`` and list the absent fields under ``details["missing_data"]``.
Zero incomes never raise; the affected ratios fall back to zero through the
safe-math helpers.

Benchmark curves map a raw metric onto the 0-100 scale: reaching the
*excellent* benchmark scores 100, *good* 75, *fair* 50 and *poor* 25, with
linear interpolation in between.

Example
-------

>>> tiered(17.5, (20, 15, 10, 5))
87.5
>>> round(tiered(0.25, (0.1, 0.2, 0.3, 0.5), higher_is_better=False), 2)
62.5
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import MAX_AGE, CountryTable, EngineConfig, ScoringConfig, default_config
from ..models import (
    CanonicalInputs,
    FactorScore,
    HealthReport,
    HealthScoreOptions,
    PeerComparison,
    Projection,
    ReturnAssumptions,
    Suggestion,
    ValidationResult,
)
from .projection import project
from .safe_math import clamp, safe_divide

logger = logging.getLogger(__name__)

SUGGESTIONS: Dict[str, Tuple[str, str, Tuple[str, ...]]] = {
    "savingsRate": (
        "Increase your savings rate",
        "Aim to put aside at least 15-20% of gross income.",
        ("Raise pension contributions towards the ceiling", "Automate a monthly transfer to investments"),
    ),
    "retirementReadiness": (
        "Boost retirement savings",
        "Projected savings fall short of your retirement goal.",
        ("Increase monthly contributions", "Review investment fees", "Consider a later retirement age"),
    ),
    "timeHorizon": (
        "Limited time to retirement",
        "A short horizon leaves less room for compounding.",
        ("Prioritise guaranteed income sources", "Review the planned retirement age"),
    ),
    "riskAlignment": (
        "Align risk with age",
        "Your equity/bond split differs from the mix suggested for your age and risk tolerance.",
        ("Rebalance towards the recommended allocation",),
    ),
    "diversification": (
        "Diversify investments",
        "Spread savings across more asset classes to reduce concentration risk.",
        ("Add a broad index fund", "Avoid holding more than 70% in one asset class"),
    ),
    "taxEfficiency": (
        "Optimize tax strategies",
        "Tax-advantaged contribution limits are not fully used.",
        ("Contribute up to the pension ceiling", "Open or top up a training fund"),
    ),
    "emergencyFund": (
        "Build emergency reserves",
        "Keep at least 6 months of expenses in accessible cash.",
        ("Set up a dedicated savings account", "Direct part of each bonus to the reserve"),
    ),
    "debtManagement": (
        "Reduce debt burden",
        "Debt is high relative to income.",
        ("Pay off high-interest debt first", "Consider consolidating loans"),
    ),
}


def tiered(value: float, benchmarks: Sequence[float], higher_is_better: bool = True) -> float:
    """Map ``value`` onto 0-100 using excellent/good/fair/poor benchmarks."""
    excellent, good, fair, poor = benchmarks
    if higher_is_better:
        if value >= excellent:
            return 100.0
        if value >= good:
            return 75 + (value - good) / (excellent - good) * 25
        if value >= fair:
            return 50 + (value - fair) / (good - fair) * 25
        if value >= poor:
            return 25 + (value - poor) / (fair - poor) * 25
        return max(0.0, safe_divide(value, poor, default=0.0) * 25)

    if value <= excellent:
        return 100.0
    if value <= good:
        return 90 - (value - excellent) / (good - excellent) * 15
    if value <= fair:
        return 75 - (value - good) / (fair - good) * 25
    if value <= poor:
        return 50 - (value - fair) / (poor - fair) * 25
    return max(0.0, 25 - (value - poor) * 50)


def status_for(normalized: float, cfg: Optional[ScoringConfig] = None) -> str:
    excellent, good, fair, poor = (cfg or default_config().scoring).status_thresholds
    if normalized >= excellent:
        return "excellent"
    if normalized >= good:
        return "good"
    if normalized >= fair:
        return "fair"
    if normalized >= poor:
        return "poor"
    return "critical"


def _factor(
    name: str,
    normalized: float,
    cfg: ScoringConfig,
    details: Optional[Dict[str, Any]] = None,
    missing: Iterable[str] = (),
) -> FactorScore:
    weight = cfg.weights[name]
    details = dict(details or {})
    missing = sorted(missing)
    if missing:
        details["missing_data"] = missing
        return FactorScore(score=0.0, weight=weight, status="critical", details=details)
    normalized = clamp(normalized, 0.0, 100.0)
    details["normalized"] = round(normalized, 2)
    return FactorScore(
        score=round(normalized * weight / 100.0, 2),
        weight=weight,
        status=status_for(normalized, cfg),
        details=details,
    )


# ---------- Factors ----------

def savings_rate_score(inputs: CanonicalInputs, cfg: ScoringConfig) -> FactorScore:
    income = inputs.total_monthly_income
    contributions = inputs.total_monthly_contributions
    rate = safe_divide(contributions, income, default=0.0, context="savings rate") * 100.0
    missing = {"income"} & inputs.missing
    return _factor(
        "savingsRate",
        tiered(rate, cfg.benchmarks["savingsRate"]),
        cfg,
        {"savings_rate": round(rate, 2), "monthly_contributions": contributions, "monthly_income": income},
        missing,
    )


def retirement_goal(inputs: CanonicalInputs, cfg: ScoringConfig, options: HealthScoreOptions) -> float:
    if options.retirement_goal is not None:
        return float(options.retirement_goal)
    multiple = cfg.goal_multiple if options.goal_multiple is None else options.goal_multiple
    return inputs.annual_expenses * multiple


def retirement_readiness_score(
    inputs: CanonicalInputs,
    projection: Projection,
    goal: float,
    cfg: ScoringConfig,
    goal_supplied: bool = False,
) -> FactorScore:
    ratio = min(1.0, safe_divide(projection.accumulation, goal, default=0.0, context="readiness"))
    missing = set() if goal_supplied else {"expenses"} & inputs.missing
    return _factor(
        "retirementReadiness",
        ratio * 100.0,
        cfg,
        {
            "projected_accumulation": round(projection.accumulation, 2),
            "retirement_goal": round(goal, 2),
            "readiness_ratio": round(ratio, 4),
            "years_to_goal": projection.years_to_goal,
        },
        missing,
    )


def time_horizon_score(inputs: CanonicalInputs, cfg: ScoringConfig) -> FactorScore:
    years = inputs.years_to_retirement
    return _factor(
        "timeHorizon",
        tiered(years, cfg.benchmarks["timeHorizon"]),
        cfg,
        {"years_to_retirement": years},
        {"age"} & inputs.missing,
    )


def recommended_allocation(age: float, risk_tolerance: str, cfg: ScoringConfig) -> Dict[str, float]:
    """Age-based equity/bond split clamped into the risk profile's ranges."""
    profile = cfg.risk_profiles.get(risk_tolerance, cfg.risk_profiles["moderate"])
    eq_min, eq_max = profile["equity"]
    bond_max = profile["bonds"][1]
    equity = clamp(max(20.0, 100.0 - age), eq_min, eq_max)
    bonds = min(100.0 - equity, bond_max)
    return {"equity": equity, "bonds": bonds}


def risk_alignment_score(inputs: CanonicalInputs, cfg: ScoringConfig) -> FactorScore:
    target = recommended_allocation(inputs.age, inputs.risk_tolerance, cfg)
    if inputs.equity_percentage is None:
        return _factor("riskAlignment", 0.0, cfg, {"recommended": target}, {"allocation"})
    equity = inputs.equity_percentage
    bonds = inputs.bond_percentage or 0.0
    avg_diff = (abs(equity - target["equity"]) + abs(bonds - target["bonds"])) / 2
    return _factor(
        "riskAlignment",
        max(0.0, 100.0 - avg_diff * 2),
        cfg,
        {"current": {"equity": equity, "bonds": bonds}, "recommended": target, "average_difference": avg_diff},
        {"age"} & inputs.missing,
    )


def diversification_score(inputs: CanonicalInputs, cfg: ScoringConfig) -> FactorScore:
    balances = inputs.balances
    total = sum(balances.values())
    held = [name for name, value in balances.items() if value > 0]
    normalized = min(100.0, len(held) * 25.0)
    largest = max(balances.values()) if balances else 0.0
    concentration = safe_divide(largest, total, default=0.0, context="concentration")
    if concentration > cfg.concentration_limit:
        normalized -= cfg.concentration_penalty
    return _factor(
        "diversification",
        normalized,
        cfg,
        {
            "asset_classes": len(held),
            "held": held,
            "largest_share": round(concentration, 4),
            "concentrated": concentration > cfg.concentration_limit,
        },
    )


def tax_efficiency_score(inputs: CanonicalInputs, country: CountryTable, cfg: ScoringConfig) -> FactorScore:
    pension_use = min(1.0, safe_divide(inputs.pension_rate, country.pension_ceiling_rate, default=0.0))
    details = {
        "pension_utilization": round(pension_use, 4),
        "country": country.name,
    }
    if inputs.gross_monthly_income <= 0:
        utilization = 0.0
    elif country.training_fund_ceiling_rate > 0:
        training_use = min(1.0, safe_divide(inputs.training_fund_rate, country.training_fund_ceiling_rate, default=0.0))
        details["training_fund_utilization"] = round(training_use, 4)
        utilization = 0.6 * pension_use + 0.4 * training_use
    else:
        utilization = pension_use
    normalized = utilization * 100.0
    if utilization > 0:
        normalized += country.tax_advantage_bonus
    return _factor("taxEfficiency", normalized, cfg, details, {"income"} & inputs.missing)


def emergency_fund_score(inputs: CanonicalInputs, cfg: ScoringConfig) -> FactorScore:
    months = safe_divide(inputs.emergency_fund, inputs.monthly_expenses, default=0.0, context="emergency months")
    target = cfg.emergency_target_months
    return _factor(
        "emergencyFund",
        min(1.0, months / target) * 100.0,
        cfg,
        {"months_covered": round(months, 2), "target_months": target},
        {"expenses"} & inputs.missing,
    )


def debt_management_score(inputs: CanonicalInputs, cfg: ScoringConfig) -> FactorScore:
    if inputs.total_debt <= 0 and inputs.high_interest_debt <= 0:
        return _factor("debtManagement", 100.0, cfg, {"debt_to_income": 0.0, "has_debt": False})

    income = inputs.total_monthly_income
    ratio = safe_divide(inputs.total_debt, income * 12, default=float("inf"), context="debt to income")
    normalized = tiered(ratio, cfg.benchmarks["debtManagement"], higher_is_better=False)
    penalty = min(
        cfg.high_interest_penalty_cap,
        safe_divide(inputs.high_interest_debt, income, default=0.0, context="high interest share") * 10,
    )
    return _factor(
        "debtManagement",
        normalized - penalty,
        cfg,
        {
            "debt_to_income": round(ratio, 4) if ratio != float("inf") else ratio,
            "high_interest_penalty": round(penalty, 2),
            "has_debt": True,
        },
    )


# ---------- Report pieces ----------

def build_suggestions(factors: Mapping[str, FactorScore], cfg: ScoringConfig) -> Tuple[Suggestion, ...]:
    """Suggestions for factors below the fair line, biggest impact first."""
    flagged: List[Suggestion] = []
    for name, factor in factors.items():
        normalized = factor.normalized
        if normalized >= cfg.suggestion_threshold:
            continue
        title, description, actions = SUGGESTIONS[name]
        missing = factor.details.get("missing_data")
        if missing:
            description = f"Missing data: {', '.join(missing)}. " + description
        shortfall = 1.0 - normalized / 100.0
        flagged.append(Suggestion(
            factor=name,
            priority="high" if factor.status in ("poor", "critical") else "medium",
            title=title,
            description=description,
            actions=actions,
            impact=round(factor.weight * shortfall, 2),
        ))
    flagged.sort(key=lambda s: s.impact, reverse=True)
    if not flagged:
        return (Suggestion(
            factor="general",
            priority="low",
            title="Keep up the excellent work!",
            description="Every factor is at or above its benchmark. Review your plan once a year.",
        ),)
    return tuple(flagged)


def age_group(age: float) -> str:
    if age < 30:
        return "20-29"
    if age < 40:
        return "30-39"
    if age < 50:
        return "40-49"
    if age < 60:
        return "50-59"
    return "60+"


def peer_comparison(total: float, age: float, cfg: ScoringConfig) -> PeerComparison:
    """Interpolated percentile against age-group averages."""
    group = age_group(age)
    average, top = cfg.peer_benchmarks[group]
    if total >= top:
        percentile = min(99.0, 75 + (total - top) / (100 - top) * 24)
        label = "Above Top 25%"
    elif total >= average:
        percentile = 50 + (total - average) / (top - average) * 25
        label = "Above Average"
    else:
        percentile = max(1.0, total / average * 50)
        label = "Below Average"
    return PeerComparison(
        age_group=group,
        average_score=average,
        top_quartile=top,
        percentile=round(percentile, 1),
        comparison=label,
    )


def interpret(total: float) -> str:
    if total >= 85:
        return "Excellent"
    if total >= 70:
        return "Good"
    if total >= 50:
        return "Fair"
    return "Needs Improvement"


def allocation_errors(allocation: Mapping[str, float], label: str, tolerance: float = 0.5) -> List[str]:
    """Errors for an allocation whose percentages do not add up to 100."""
    if not allocation:
        return []
    total = sum(allocation.values())
    if abs(total - 100.0) > tolerance:
        logger.info("%s allocation sums to %.1f%%", label, total)
        return [f"{label} allocation sums to {total:.1f}%, expected 100%"]
    return []


def validate_inputs(inputs: CanonicalInputs) -> ValidationResult:
    tracked = ("age", "retirement_age", "income", "expenses", "allocation")
    critical = tuple(f for f in ("age", "income") if f in inputs.missing)
    errors = []
    if "profile" in inputs.missing:
        errors.append("Profile is not a mapping of field names to values")
    errors += [f"{name} cannot be negative" for name in dict.fromkeys(inputs.negative_fields)]
    errors += [
        f"{name} is above the supported maximum of {MAX_AGE:.0f}"
        for name in dict.fromkeys(inputs.out_of_range_fields)
    ]
    errors += allocation_errors(inputs.supplied_allocation, "Current")
    errors += allocation_errors(inputs.target_allocation, "Target")
    warnings = []
    if "retirement_age" not in inputs.missing and inputs.age >= inputs.retirement_age:
        warnings.append("Current age is at or above the retirement age")
    for name in ("expenses", "allocation"):
        if name in inputs.missing:
            warnings.append(f"No {name} provided; related factors score zero")
    if "retirement_age" in inputs.missing:
        warnings.append(f"No retirement age provided; a default of {inputs.retirement_age:.0f} is assumed")
    present = sum(1 for f in tracked if f not in inputs.missing)
    return ValidationResult(
        is_valid=not errors and not critical,
        errors=tuple(errors),
        warnings=tuple(warnings),
        critical_missing=critical,
        data_completeness=round(present / len(tracked) * 100.0, 1),
    )


def score(
    inputs: CanonicalInputs,
    projection: Optional[Projection] = None,
    options: Optional[HealthScoreOptions] = None,
    config: Optional[EngineConfig] = None,
    returns: Optional[ReturnAssumptions] = None,
) -> HealthReport:
    """Score a normalized profile.

    Parameters
    ----------
    inputs : CanonicalInputs
        Output of :func:`~financial_health.calculators.normalizer.normalize`.
    projection : Projection, optional
        Projection used for retirement readiness.  Built from ``inputs`` when
        omitted.
    options : HealthScoreOptions, optional
        Goal, withdrawal rate and peer-comparison switches.
    config : EngineConfig, optional
        Tables to score against.

    Returns
    -------
    HealthReport
    """
    options = options or HealthScoreOptions()
    cfg = config or default_config(options.year)
    sc = cfg.scoring
    goal = retirement_goal(inputs, sc, options)
    if projection is None:
        projection = project(
            inputs, returns, withdrawal_rate=options.withdrawal_rate, retirement_goal=goal, config=cfg,
        )

    factors = {
        "savingsRate": savings_rate_score(inputs, sc),
        "retirementReadiness": retirement_readiness_score(
            inputs, projection, goal, sc, goal_supplied=options.retirement_goal is not None,
        ),
        "timeHorizon": time_horizon_score(inputs, sc),
        "riskAlignment": risk_alignment_score(inputs, sc),
        "diversification": diversification_score(inputs, sc),
        "taxEfficiency": tax_efficiency_score(inputs, cfg.country(inputs.country), sc),
        "emergencyFund": emergency_fund_score(inputs, sc),
        "debtManagement": debt_management_score(inputs, sc),
    }
    factors = {name: factors[name] for name in sc.weights}
    total = round(clamp(sum(f.score for f in factors.values()), 0.0, 100.0), 1)

    zero = tuple(name for name, f in factors.items() if f.score == 0)
    if zero:
        logger.debug("Factors scoring zero: %s", ", ".join(zero))

    return HealthReport(
        total_score=total,
        factors=factors,
        suggestions=build_suggestions(factors, sc),
        interpretation=interpret(total),
        validation=validate_inputs(inputs),
        projection=projection,
        returns=returns,
        peer_comparison=peer_comparison(total, inputs.age, sc) if options.include_peer_comparison else None,
        zero_score_factors=zero,
        metadata={
            "mode": inputs.mode,
            "country": inputs.country,
            "config_year": cfg.year,
            "monthly_income": inputs.total_monthly_income,
            "monthly_expenses": inputs.monthly_expenses,
        },
    )


__all__ = [
    "SUGGESTIONS",
    "age_group",
    "allocation_errors",
    "build_suggestions",
    "debt_management_score",
    "diversification_score",
    "emergency_fund_score",
    "interpret",
    "peer_comparison",
    "recommended_allocation",
    "retirement_goal",
    "retirement_readiness_score",
    "risk_alignment_score",
    "savings_rate_score",
    "score",
    "status_for",
    "tax_efficiency_score",
    "tiered",
    "time_horizon_score",
]
