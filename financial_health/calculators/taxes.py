"""Country-specific payroll withholding and simple investment taxes.

Social-insurance contributions follow a three-band schedule taken from the
country table:

* income up to ``threshold`` pays the *reduced* rate,
* income between ``threshold`` and ``ceiling`` pays the *full* rate,
* income above ``ceiling`` pays the ``above_ceiling`` rate (zero in Israel,
  where income above the insured ceiling is not charged).

Self-employed persons pay a single combined rate on income up to the
ceiling.  Unsupported countries use the ``default`` table.

Example
-------

>>> # Israeli employee earning 20 000 ILS a month
>>> round(contribution_withholding(20000)["employee"], 2)
1760.63

>>> round(capital_gains_tax(10000, country="israel"), 2)
2500.0
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from ..config import EngineConfig, default_config
from .safe_math import safe_divide, safe_float

logger = logging.getLogger(__name__)


def _banded(income: float, threshold: float, ceiling: float, rates: Mapping[str, float]) -> float:
    """Apply reduced / full / above-ceiling rates to ``income``."""
    if income <= 0:
        return 0.0
    reduced_part = min(income, threshold)
    full_part = max(0.0, min(income, ceiling) - threshold)
    above_part = max(0.0, income - ceiling)
    return (
        reduced_part * rates.get("reduced", 0.0)
        + full_part * rates.get("full", 0.0)
        + above_part * rates.get("above_ceiling", 0.0)
    )


def contribution_withholding(
    monthly_income: float,
    country: str = "israel",
    employment_type: str = "employee",
    config: Optional[EngineConfig] = None,
) -> Dict[str, float]:
    """Compute monthly social-insurance contributions.

    Parameters
    ----------
    monthly_income : float
        Gross monthly income.
    country : str, optional
        Country key into the contribution tables.
    employment_type : str, optional
        ``"employee"`` (default) or ``"self_employed"``.

    Returns
    -------
    dict
        ``employee``, ``employer`` and ``total`` monthly amounts.  For the
        self-employed the whole charge is reported under ``employee``.
    """
    cfg = config or default_config()
    schedule = cfg.country(country).contributions
    income = max(0.0, safe_float(monthly_income))

    if employment_type == "self_employed":
        employee = min(income, schedule.ceiling) * schedule.self_employed
        employer = 0.0
    else:
        employee = _banded(income, schedule.threshold, schedule.ceiling, schedule.employee)
        employer = _banded(income, schedule.threshold, schedule.ceiling, schedule.employer)

    return {"employee": employee, "employer": employer, "total": employee + employer}


def estimate_gross_from_net(net_monthly: float, country: str = "israel", config: Optional[EngineConfig] = None) -> float:
    """Estimate gross salary from take-home pay with a two-step divisor.

    High earners (net above the table threshold) keep a smaller share of
    their gross salary.
    """
    net = max(0.0, safe_float(net_monthly))
    if net == 0:
        return 0.0
    table = (config or default_config()).country(country).net_to_gross
    divisor = table["high"] if net > table["threshold"] else table["base"]
    return round(safe_divide(net, divisor, default=net, context="gross from net"))


def estimate_net_from_gross(gross_monthly: float, country: str = "israel", config: Optional[EngineConfig] = None) -> float:
    """Inverse of :func:`estimate_gross_from_net` using the same divisors.

    The forward estimate never yields a gross salary between
    ``threshold / base`` and ``threshold / high``; salaries in that gap map
    onto the threshold, which keeps the estimate non-decreasing in gross.
    """
    gross = max(0.0, safe_float(gross_monthly))
    if gross == 0:
        return 0.0
    table = (config or default_config()).country(country).net_to_gross
    threshold = table["threshold"]
    return round(min(gross * table["base"], max(threshold, gross * table["high"])))


def capital_gains_tax(gain: float, country: str = "israel", config: Optional[EngineConfig] = None) -> float:
    """Flat-rate capital gains tax; losses are not taxed."""
    if gain <= 0:
        return 0.0
    rate = (config or default_config()).country(country).capital_gains_rate
    return gain * rate


__all__ = [
    "capital_gains_tax",
    "contribution_withholding",
    "estimate_gross_from_net",
    "estimate_net_from_gross",
]
