"""Inflation adjustment helpers.

Rates are given in percent.  ``real_value`` discounts a future nominal
amount to today's money; ``nominal_value`` is its inverse.

Example
-------

>>> round(real_value(100000, 2.5, 10), 2)
78119.84
>>> real_value(100000, 2.5, 0)
100000
>>> round(real_return(7.0, 2.5), 4)
4.3902
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

import numpy as np

from ..config import EngineConfig, default_config
from ..models import Projection
from .safe_math import safe_divide, safe_float

logger = logging.getLogger(__name__)

SCENARIO_SOURCES = {
    "optimistic": "target",
    "moderate": "projection",
    "pessimistic": "recent",
    "historical": "historical",
}

# Share of an asset's value expected to keep pace with inflation
INFLATION_PROTECTION = {
    "pension": 0.7,
    "trainingFund": 0.6,
    "personalPortfolio": 0.8,
    "bonds": 0.3,
    "realEstate": 0.9,
    "crypto": 0.4,
    "cash": 0.0,
}


def real_value(nominal: float, inflation_rate: float, years: float, compounding: bool = True) -> float:
    """Value of ``nominal`` received in ``years`` expressed in today's money."""
    if years <= 0:
        return nominal
    r = inflation_rate / 100.0
    divisor = (1 + r) ** years if compounding else 1 + r * years
    return safe_divide(nominal, divisor, default=nominal, context="inflation divisor")


def nominal_value(real: float, inflation_rate: float, years: float, compounding: bool = True) -> float:
    """Future nominal amount with the same purchasing power as ``real`` today."""
    if years <= 0:
        return real
    r = inflation_rate / 100.0
    return real * ((1 + r) ** years if compounding else 1 + r * years)


def real_return(nominal_return: float, inflation_rate: float) -> float:
    """Fisher equation, percent in and percent out."""
    n = nominal_return / 100.0
    i = inflation_rate / 100.0
    return (safe_divide(1 + n, 1 + i, default=1 + n, context="fisher") - 1) * 100.0


def real_returns(returns: Mapping[str, float], inflation_rate: float) -> Dict[str, float]:
    return {asset: real_return(value, inflation_rate) for asset, value in returns.items()}


def inflation_scenarios(country: str = "israel", config: Optional[EngineConfig] = None) -> Dict[str, float]:
    """Named inflation rates for ``country``; unknown countries use Israel."""
    tables = (config or default_config()).inflation
    data = tables.get((country or "").lower()) or tables["israel"]
    return {name: data[source] for name, source in SCENARIO_SOURCES.items()}


def scenario_rate(scenario: str = "moderate", country: str = "israel", config: Optional[EngineConfig] = None) -> float:
    scenarios = inflation_scenarios(country, config)
    return scenarios.get(scenario, scenarios["moderate"])


def purchasing_power_series(amount: float, inflation_rate: float, years: int = 40) -> List[Dict[str, float]]:
    """Year-by-year real value of ``amount`` and the share of value lost."""
    years = max(0, min(int(years), 100))
    t = np.arange(years + 1)
    real = amount / np.power(1 + inflation_rate / 100.0, t)
    return [
        {
            "year": int(y),
            "real_value": float(v),
            "erosion_pct": float((1 - v / amount) * 100.0) if amount else 0.0,
        }
        for y, v in zip(t, real)
    ]


def inflation_protection(holdings: Mapping[str, float]) -> Dict[str, float]:
    """Weighted share of holdings expected to keep pace with inflation.

    Returns the protection score (0-100) and the protected amount.
    """
    total = sum(max(0.0, safe_float(v)) for v in holdings.values())
    protected = sum(
        max(0.0, safe_float(v)) * INFLATION_PROTECTION.get(asset, 0.5)
        for asset, v in holdings.items()
    )
    return {
        "score": safe_divide(protected, total, default=0.0, context="inflation protection") * 100.0,
        "protected_amount": protected,
        "total": total,
    }


def adjust_projection(
    projection: Projection,
    country: str = "israel",
    config: Optional[EngineConfig] = None,
) -> Dict[str, Dict[str, float]]:
    """Express a projection's accumulation and income in today's money.

    One entry per inflation scenario.
    """
    out: Dict[str, Dict[str, float]] = {}
    for name, rate in inflation_scenarios(country, config).items():
        out[name] = {
            "inflation_rate": rate,
            "real_accumulation": real_value(projection.accumulation, rate, projection.years),
            "real_monthly_income": real_value(projection.monthly_income, rate, projection.years),
            "purchasing_power_lost_pct": (1 - real_value(1.0, rate, projection.years)) * 100.0,
        }
    return out


__all__ = [
    "INFLATION_PROTECTION",
    "adjust_projection",
    "inflation_protection",
    "inflation_scenarios",
    "nominal_value",
    "purchasing_power_series",
    "real_return",
    "real_returns",
    "real_value",
    "scenario_rate",
]
