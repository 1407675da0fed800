"""Deterministic accumulation projection to the target retirement age.

Each asset class compounds monthly at its adjusted return net of the
management fee::

    FV = balance * (1 + r)**n + contribution * ((1 + r)**n - 1) / r

with ``r`` the monthly rate and ``n`` the number of months.  Payroll pension
and training-fund contributions come from gross income times the
contribution rates; portfolio, crypto and real-estate savings come from the
explicit monthly amounts; cash is carried flat.

Retirement income uses the safe-withdrawal rule:
``monthly_income = accumulation * withdrawal_rate / 12``.

Example
-------

>>> round(future_value(0, 1000, 0.0, 12), 2)
12000.0
>>> round(future_value(10000, 0, 12.0, 12), 2)
11268.25
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Optional, Tuple

import numpy as np

from ..config import MAX_AGE, EngineConfig, default_config
from ..models import CanonicalInputs, Projection, ReturnAssumptions
from .returns import adjust_returns
from .safe_math import safe_divide

logger = logging.getLogger(__name__)

DEFAULT_WITHDRAWAL_RATE = 0.04


def future_value(balance: float, monthly_contribution: float, annual_rate: float, months: float) -> float:
    """Future value of a balance plus level monthly contributions.

    ``annual_rate`` is a nominal percentage compounded monthly.
    """
    return float(_fv_series(balance, monthly_contribution, annual_rate, np.array([months], dtype=float))[0])


def _fv_series(balance: float, contribution: float, annual_rate: float, months: np.ndarray) -> np.ndarray:
    r = annual_rate / 100.0 / 12.0
    if balance == 0 and contribution == 0:
        return np.zeros_like(months)
    if r == 0:
        return balance + contribution * months
    with np.errstate(over="ignore", invalid="ignore"):
        growth = np.power(1 + r, months)
        values = balance * growth + contribution * (growth - 1) / r
    if not np.all(np.isfinite(values)):
        logger.warning("Compounding at %.2f%% overflowed; capping the series", annual_rate)
        values = np.where(np.isfinite(values), values, np.finfo(float).max)
    return values


def _asset_flows(inputs: CanonicalInputs) -> Dict[str, Tuple[float, float, float]]:
    """balance, monthly contribution and annual fee (%) per asset class."""
    return {
        "pension": (inputs.pension_savings, inputs.monthly_pension_contribution, inputs.pension_fee),
        "trainingFund": (inputs.training_fund, inputs.monthly_training_contribution, inputs.training_fund_fee),
        "personalPortfolio": (inputs.personal_portfolio, inputs.monthly_portfolio_contribution, inputs.portfolio_fee),
        "realEstate": (inputs.real_estate, inputs.monthly_real_estate_contribution, 0.0),
        "crypto": (inputs.crypto, inputs.monthly_crypto_contribution, 0.0),
    }


def years_to_goal(current: float, monthly_savings: float, annual_rate: float, goal: float) -> float:
    """Years until ``current`` plus savings reaches ``goal``.

    Returns ``inf`` when the goal can never be reached.
    """
    if current >= goal:
        return 0.0
    if monthly_savings <= 0:
        return math.inf
    r = annual_rate / 100.0 / 12.0
    if r == 0:
        return (goal - current) / monthly_savings / 12.0
    numerator = goal * r + monthly_savings
    denominator = current * r + monthly_savings
    if numerator <= 0 or denominator <= 0 or 1 + r <= 0:
        return math.inf
    months = math.log(numerator / denominator) / math.log(1 + r)
    return months / 12.0 if months >= 0 else math.inf


def project(
    inputs: CanonicalInputs,
    returns: Optional[ReturnAssumptions] = None,
    years: Optional[float] = None,
    withdrawal_rate: float = DEFAULT_WITHDRAWAL_RATE,
    retirement_goal: Optional[float] = None,
    state_pension: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> Projection:
    """Project balances to retirement.

    Parameters
    ----------
    inputs : CanonicalInputs
        Normalized profile.
    returns : ReturnAssumptions, optional
        Adjusted returns.  Computed from the profile when omitted.
    years : float, optional
        Horizon; defaults to the years left until the retirement age and
        never exceeds ``MAX_AGE`` years.
    withdrawal_rate : float
        Safe-withdrawal rate as a fraction (default 4 %).
    retirement_goal : float, optional
        Target accumulation; defaults to ``goal_multiple`` times annual
        expenses.
    state_pension : float, optional
        Monthly state pension expected at retirement, reported alongside the
        portfolio income.

    Returns
    -------
    Projection
    """
    cfg = config or default_config()
    if returns is None:
        returns = adjust_returns(None, inputs.years_to_retirement, inputs.age, inputs.risk_tolerance, config=cfg)
    horizon = inputs.years_to_retirement if years is None else max(0.0, float(years))
    horizon = min(horizon, MAX_AGE)
    total_months = horizon * 12.0

    whole_years = int(math.ceil(horizon))
    months = np.minimum(np.arange(whole_years + 1) * 12.0, total_months)
    ages = tuple(float(a) for a in inputs.age + months / 12.0)

    schedule: Dict[str, Tuple[float, ...]] = {}
    by_asset: Dict[str, float] = {}
    weighted_rate = 0.0
    weight_total = 0.0
    for asset, (balance, contribution, fee) in _asset_flows(inputs).items():
        rate = returns.rate(asset) - fee
        series = _fv_series(balance, contribution, rate, months)
        schedule[asset] = tuple(float(v) for v in series)
        by_asset[asset] = float(series[-1])
        w = balance + contribution * 12
        weighted_rate += rate * w
        weight_total += w
    schedule["cash"] = tuple(float(inputs.emergency_fund) for _ in months)
    by_asset["cash"] = float(inputs.emergency_fund)

    accumulation = sum(by_asset.values())
    monthly_income = accumulation * withdrawal_rate / 12.0

    goal = retirement_goal
    if goal is None:
        goal = inputs.annual_expenses * cfg.scoring.goal_multiple
    blended_rate = safe_divide(weighted_rate, weight_total, default=returns.rate("pension"), context="blended rate")
    net_savings = inputs.net_monthly_income + inputs.additional_monthly_income - inputs.monthly_expenses
    if net_savings <= 0:
        to_goal = 0.0 if inputs.total_assets >= goal else math.inf
    else:
        payroll = inputs.monthly_pension_contribution + inputs.monthly_training_contribution
        to_goal = years_to_goal(inputs.total_assets, payroll + net_savings, blended_rate, goal)

    retirement_income = monthly_income + (state_pension or 0.0)
    replacement = safe_divide(retirement_income, inputs.gross_monthly_income, default=0.0, context="replacement") * 100.0

    logger.debug("Projected %.0f over %.1f years (goal %.0f)", accumulation, horizon, goal)
    return Projection(
        years=horizon,
        retirement_age=inputs.age + horizon,
        accumulation=accumulation,
        by_asset=by_asset,
        monthly_income=monthly_income,
        withdrawal_rate=withdrawal_rate,
        years_to_goal=to_goal,
        retirement_goal=goal,
        replacement_ratio=replacement,
        net_monthly_savings=net_savings,
        ages=ages,
        schedule=schedule,
        state_pension=state_pension,
    )


__all__ = ["DEFAULT_WITHDRAWAL_RATE", "future_value", "project", "years_to_goal"]
