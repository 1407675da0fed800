"""Portfolio drift and rebalancing analysis.

Allocations are percentages keyed by asset.  They may be flat
(``{"stocks": 60, "bonds": 40}``) or grouped by category
(``{"stocks": {"domestic": 40, "international": 20}}``), in which case the
keys are flattened to ``stocks.domestic``.  An allocation that does not add
up to 100 is reported in the validation result and analysed as given; it is
never rescaled.

Two triggers are evaluated:

* **threshold**: the largest absolute deviation crosses 5 / 8 / 12 / 20
  percentage points (minor / moderate / major / critical), giving an
  urgency of low / medium / high / critical;
* **time**: the calendar months elapsed since the last rebalance reach the
  frequency for the risk tolerance (conservative 12, moderate 6,
  aggressive 3).  A due calendar rebalance raises urgency to at least low.

Example
-------

>>> from datetime import date
>>> round(months_between(date(2024, 1, 15), date(2025, 2, 15)), 2)
13.0
>>> a = analyze({"stocks": 75, "bonds": 25}, {"stocks": 60, "bonds": 40})
>>> a.urgency
'high'
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np

from ..config import EngineConfig, RebalancingConfig, default_config
from ..models import CanonicalInputs, CostBenefit, RebalancingAnalysis, TaxImpact, ValidationResult
from . import taxes
from .safe_math import safe_divide, safe_float

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str, None]

TIERS = ("minor", "moderate", "major", "critical")
URGENCY_BY_TIER = {"minor": "low", "moderate": "medium", "major": "high", "critical": "critical"}
_URGENCY_RANK = {"none": 0, "low": 1, "medium": 2, "high": 3, "critical": 4}
_PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}

# Asset names that map onto a risk/return class
_ASSET_CLASS = {
    "equity": "stocks", "equities": "stocks", "stock": "stocks",
    "personalPortfolio": "stocks", "pension": "stocks", "trainingFund": "stocks",
    "bond": "bonds", "fixedIncome": "bonds",
    "property": "realEstate",
    "emergencyFund": "cash",
}


def flatten_allocation(allocation: Optional[Mapping[str, Any]]) -> Dict[str, float]:
    """Flatten nested category allocations into ``category.asset`` keys."""
    flat: Dict[str, float] = {}
    for key, value in (allocation or {}).items():
        if isinstance(value, Mapping):
            for sub, pct in value.items():
                flat[f"{key}.{sub}"] = safe_float(pct)
        else:
            flat[str(key)] = safe_float(value)
    return flat


def validate_allocation(allocation: Mapping[str, float], label: str, tolerance: float = 0.5) -> List[str]:
    errors = []
    total = sum(allocation.values())
    if not allocation:
        errors.append(f"{label} allocation is empty")
    elif abs(total - 100.0) > tolerance:
        errors.append(f"{label} allocation sums to {total:.1f}%, expected 100%")
    negative = [k for k, v in allocation.items() if v < 0]
    if negative:
        errors.append(f"{label} allocation has negative weights: {', '.join(sorted(negative))}")
    return errors


def _to_date(value: DateLike) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00")).date()
    except ValueError:
        logger.debug("Unparseable rebalance date %r", value)
        return None


def add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(start: date, end: date) -> float:
    """Calendar months from ``start`` to ``end`` including the partial month."""
    if end <= start:
        return 0.0
    whole = (end.year - start.year) * 12 + (end.month - start.month)
    if add_months(start, whole) > end:
        whole -= 1
    anchor = add_months(start, whole)
    following = add_months(start, whole + 1)
    return whole + (end - anchor).days / (following - anchor).days


def threshold_tier(max_deviation: float, cfg: RebalancingConfig) -> Optional[str]:
    tier = None
    for name, limit in zip(TIERS, cfg.thresholds):
        if max_deviation >= limit:
            tier = name
    return tier


def _risk_return(asset: str, cfg: RebalancingConfig) -> Tuple[float, float]:
    base = asset.split(".", 1)[0]
    base = _ASSET_CLASS.get(base, base)
    return tuple(cfg.risk_return.get(base, cfg.default_risk_return))


def _portfolio_metrics(allocation: Mapping[str, float], cfg: RebalancingConfig) -> Tuple[float, float]:
    """Expected return and weighted volatility, both in percent."""
    if not allocation:
        return 0.0, 0.0
    weights = np.array(list(allocation.values()), dtype=float) / 100.0
    metrics = np.array([_risk_return(a, cfg) for a in allocation], dtype=float)
    expected, volatility = weights @ metrics
    return float(expected), float(volatility)


def calculate_tax_impact(
    deviations: Mapping[str, float],
    portfolio_value: float,
    taxable_share: float = 1.0,
    country: str = "israel",
    config: Optional[EngineConfig] = None,
) -> TaxImpact:
    """Capital gains tax on the sell-downs needed to reach the target.

    Only the taxable share of each sale is taxed and only the embedded gain
    portion (``embedded_gain_ratio``) of the sale counts as a gain.
    """
    cfg = config or default_config()
    gain_ratio = cfg.rebalancing.embedded_gain_ratio
    rate = cfg.country(country).capital_gains_rate
    by_asset: Dict[str, float] = {}
    sales = 0.0
    for asset, dev in deviations.items():
        if dev >= 0:
            continue
        sale = abs(dev) / 100.0 * portfolio_value * taxable_share
        sales += sale
        by_asset[asset] = taxes.capital_gains_tax(sale * gain_ratio, country, cfg)
    gain = sales * gain_ratio
    return TaxImpact(
        taxable_sales=sales,
        estimated_gain=gain,
        tax_rate=rate,
        estimated_tax=sum(by_asset.values()),
        by_asset=by_asset,
    )


def cost_benefit_analysis(
    current: Mapping[str, float],
    target: Mapping[str, float],
    deviations: Mapping[str, float],
    portfolio_value: float,
    tax: TaxImpact,
    cfg: RebalancingConfig,
) -> CostBenefit:
    turnover = sum(abs(d) for d in deviations.values()) / 2 / 100.0 * portfolio_value
    trading = turnover * cfg.trading_cost_rate
    total_cost = trading + tax.estimated_tax

    cur_ret, cur_vol = _portfolio_metrics(current, cfg)
    tgt_ret, tgt_vol = _portfolio_metrics(target, cfg)
    improvement = tgt_ret - cur_ret
    risk_reduction = cur_vol - tgt_vol
    benefit = portfolio_value * (improvement + cfg.risk_reduction_weight * risk_reduction) / 100.0
    benefit *= cfg.benefit_realisation

    if benefit > total_cost * cfg.proceed_multiple:
        verdict = "proceed"
    elif benefit > total_cost:
        verdict = "consider"
    else:
        verdict = "defer"
    return CostBenefit(
        trading_cost=trading,
        tax_cost=tax.estimated_tax,
        total_cost=total_cost,
        return_improvement=improvement,
        risk_reduction=risk_reduction,
        annual_benefit=benefit,
        verdict=verdict,
    )


def _recommendations(
    urgency: str,
    deviations: Mapping[str, float],
    tax: TaxImpact,
    costs: CostBenefit,
    cfg: RebalancingConfig,
    portfolio_value: float,
) -> Tuple[Dict[str, Any], ...]:
    recs: List[Dict[str, Any]] = []
    if urgency in ("critical", "high"):
        recs.append({
            "type": "rebalance",
            "priority": "high",
            "title": "Rebalance your portfolio",
            "description": "Allocation has drifted well beyond its target range.",
        })
    if tax.estimated_tax > 0:
        recs.append({
            "type": "tax",
            "priority": "medium",
            "title": "Rebalance with new contributions first",
            "description": (
                f"Selling down would cost about {tax.estimated_tax:,.0f} in capital gains tax; "
                "directing new money to underweight assets avoids it."
            ),
        })
    for asset, dev in sorted(deviations.items(), key=lambda kv: -abs(kv[1])):
        if abs(dev) > cfg.thresholds[1]:
            recs.append({
                "type": "asset",
                "priority": "medium",
                "asset": asset,
                "title": f"{'Increase' if dev > 0 else 'Reduce'} {asset}",
                "description": f"{asset} is {abs(dev):.1f} points {'below' if dev > 0 else 'above'} target.",
            })
    if urgency in ("low", "medium"):
        recs.append({
            "type": "automation",
            "priority": "low",
            "title": "Automate rebalancing",
            "description": "Schedule periodic reviews or use automatic rebalancing to keep drift small.",
        })
    if urgency != "none" and costs.verdict == "defer" and costs.total_cost > 0:
        recs.append({
            "type": "cost",
            "priority": "low",
            "title": "Costs currently outweigh the benefit",
            "description": "Consider waiting for new contributions or a larger drift before trading.",
        })
    if urgency != "none" and portfolio_value <= 0:
        recs.append({
            "type": "valuation",
            "priority": "low",
            "title": "Portfolio value not supplied",
            "description": "Tax and trading costs could not be estimated without a portfolio value.",
        })
    recs.sort(key=lambda r: _PRIORITY_RANK[r["priority"]])
    return tuple(recs)


def analyze(
    current: Mapping[str, Any],
    target: Mapping[str, Any],
    last_rebalance_date: DateLike = None,
    inputs: Optional[CanonicalInputs] = None,
    as_of: DateLike = None,
    portfolio_value: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> RebalancingAnalysis:
    """Compare current and target allocations and decide whether to act.

    Parameters
    ----------
    current, target : mapping
        Allocation percentages, flat or grouped by category.
    last_rebalance_date : date or ISO string, optional
        Enables the time trigger.
    inputs : CanonicalInputs, optional
        Supplies risk tolerance, country and portfolio value.
    as_of : date or ISO string, optional
        Evaluation date; defaults to today.
    portfolio_value : float, optional
        Overrides the value derived from ``inputs``.
    """
    cfg = config or default_config()
    rb = cfg.rebalancing
    cur = flatten_allocation(current)
    tgt = flatten_allocation(target)

    errors = validate_allocation(cur, "Current", rb.sum_tolerance) + validate_allocation(tgt, "Target", rb.sum_tolerance)
    if errors:
        logger.info("Invalid allocation: %s", "; ".join(errors))
    validation = ValidationResult(is_valid=not errors, errors=tuple(errors))

    assets = list(dict.fromkeys(list(tgt) + list(cur)))
    deviations = {a: round(tgt.get(a, 0.0) - cur.get(a, 0.0), 6) for a in assets}
    max_dev = max((abs(d) for d in deviations.values()), default=0.0)

    triggers: List[Dict[str, Any]] = []
    urgency = "none"
    tier = threshold_tier(max_dev, rb)
    if tier:
        urgency = URGENCY_BY_TIER[tier]
        triggers.append({"type": "threshold", "tier": tier, "max_deviation": max_dev})

    risk = inputs.risk_tolerance if inputs else "moderate"
    schedule = rb.calendars.get(risk, rb.calendars["moderate"])
    last = _to_date(last_rebalance_date)
    today = _to_date(as_of) or date.today()
    elapsed: Optional[float] = None
    overdue = 0.0
    if last is not None:
        elapsed = months_between(last, today)
        if elapsed >= schedule["months"]:
            overdue = elapsed - schedule["months"]
            triggers.append({
                "type": "time",
                "frequency": schedule["frequency"],
                "months_since_rebalance": round(elapsed, 2),
                "months_overdue": round(overdue, 2),
            })
            if _URGENCY_RANK[urgency] < _URGENCY_RANK["low"]:
                urgency = "low"

    if portfolio_value is None:
        portfolio_value = inputs.total_assets if inputs else 0.0
    taxable_share = 1.0
    country = "israel"
    if inputs is not None:
        country = inputs.country
        sheltered = inputs.pension_savings + inputs.training_fund
        taxable_share = 1.0 - safe_divide(sheltered, inputs.total_assets, default=0.0, context="sheltered share")

    tax = calculate_tax_impact(deviations, portfolio_value, taxable_share, country, cfg)
    costs = cost_benefit_analysis(cur, tgt, deviations, portfolio_value, tax, rb)

    return RebalancingAnalysis(
        needs_rebalancing=urgency != "none",
        urgency=urgency,
        deviations=deviations,
        max_deviation=max_dev,
        triggers=tuple(triggers),
        months_since_rebalance=elapsed,
        months_overdue=overdue,
        tax_impact=tax,
        cost_benefit=costs,
        recommendations=_recommendations(urgency, deviations, tax, costs, rb, portfolio_value),
        validation=validation,
    )


def create_schedule(
    risk_tolerance: str = "moderate",
    as_of: DateLike = None,
    config: Optional[EngineConfig] = None,
) -> Dict[str, Any]:
    """Review dates over the next twelve months for a risk tolerance."""
    rb = (config or default_config()).rebalancing
    schedule = rb.calendars.get(risk_tolerance, rb.calendars["moderate"])
    today = _to_date(as_of) or date.today()
    reviews = []
    for offset in range(1, 13):
        d = add_months(date(today.year, today.month, 1), offset)
        if d.month in schedule["review_months"]:
            reviews.append({"date": d.isoformat(), "threshold": schedule["threshold"]})
    return {
        "frequency": schedule["frequency"],
        "interval_months": schedule["months"],
        "threshold": schedule["threshold"],
        "reviews": reviews,
    }


__all__ = [
    "add_months",
    "analyze",
    "calculate_tax_impact",
    "cost_benefit_analysis",
    "create_schedule",
    "flatten_allocation",
    "months_between",
    "threshold_tier",
    "validate_allocation",
]
