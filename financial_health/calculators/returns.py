"""Age, horizon and risk adjusted return assumptions.

Base nominal returns per asset class are scaled by one combined factor,

    factor = time_horizon_factor * age_factor * risk_factor

clamped to ``[0.5, 1.3]``.  Each asset then applies its own multiplier
(pension funds and real estate react less than a personal portfolio, and
crypto is damped when retirement is less than ten years away) and the
result is clamped to the asset's historical band.

Example
-------

>>> a = adjust_returns({"pension": 7.0}, years_to_retirement=35, age=30,
...                    risk_tolerance="moderate")
>>> a.adjustment_factor
1.05
>>> round(a.rate("pension"), 3)
6.615
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from ..config import EngineConfig, ReturnsConfig, default_config
from ..models import AssetReturn, ReturnAssumptions
from .safe_math import clamp, safe_float

logger = logging.getLogger(__name__)


def time_horizon_factor(years: float, cfg: Optional[ReturnsConfig] = None) -> float:
    """Step factor that shrinks as the horizon shortens."""
    cfg = cfg or default_config().returns
    for minimum, factor in cfg.time_factors:
        if years >= minimum:
            return factor
    return cfg.short_horizon_factor


def age_factor(age: float, cfg: Optional[ReturnsConfig] = None) -> float:
    cfg = cfg or default_config().returns
    for maximum, factor in cfg.age_factors:
        if age <= maximum:
            return factor
    return cfg.senior_age_factor


def risk_factor(risk_tolerance: str, cfg: Optional[ReturnsConfig] = None) -> float:
    cfg = cfg or default_config().returns
    return cfg.risk_factors.get((risk_tolerance or "").lower(), cfg.risk_factors["moderate"])


def asset_multiplier(asset: str, years_to_retirement: float, cfg: Optional[ReturnsConfig] = None) -> float:
    cfg = cfg or default_config().returns
    if asset == "crypto" and years_to_retirement <= cfg.crypto_long_horizon_years:
        return cfg.crypto_short_horizon_multiplier
    return cfg.asset_multipliers.get(asset, 1.0)


def scenario_returns(scenario: str = "moderate", config: Optional[EngineConfig] = None) -> Dict[str, float]:
    """Base returns for a named market scenario (falls back to moderate)."""
    scenarios = (config or default_config()).returns.scenarios
    return dict(scenarios.get(scenario, scenarios["moderate"]))


def adjust_returns(
    base_returns: Optional[Mapping[str, float]],
    years_to_retirement: float,
    age: float,
    risk_tolerance: str = "moderate",
    config: Optional[EngineConfig] = None,
) -> ReturnAssumptions:
    """Apply the combined adjustment factor to each base return.

    Parameters
    ----------
    base_returns : mapping, optional
        Nominal returns in percent keyed by asset class.  Missing classes
        are filled from the moderate scenario.
    years_to_retirement : float
        Investment horizon.
    age : float
        Current age.
    risk_tolerance : str
        ``conservative``, ``moderate`` or ``aggressive``.

    Returns
    -------
    ReturnAssumptions
    """
    cfg = (config or default_config()).returns
    years = max(0.0, safe_float(years_to_retirement))
    age = safe_float(age)

    t = time_horizon_factor(years, cfg)
    a = age_factor(age, cfg)
    r = risk_factor(risk_tolerance, cfg)
    lower, upper = cfg.factor_bounds
    combined = round(clamp(t * a * r, lower, upper), 6)

    bases = dict(cfg.scenarios["moderate"])
    for asset, value in (base_returns or {}).items():
        bases[asset] = safe_float(value, default=bases.get(asset, 0.0))

    assets: Dict[str, AssetReturn] = {}
    for asset, base in bases.items():
        multiplier = asset_multiplier(asset, years, cfg)
        band = tuple(cfg.bands.get(asset, (-100.0, 100.0)))
        adjusted = clamp(base * combined * multiplier, band[0], band[1])
        assets[asset] = AssetReturn(asset=asset, base=base, multiplier=multiplier, adjusted=adjusted, band=band)

    logger.debug("Return factor %.4f (time %.2f, age %.3f, risk %.2f)", combined, t, a, r)
    return ReturnAssumptions(
        time_horizon_factor=t,
        age_factor=a,
        risk_factor=r,
        adjustment_factor=combined,
        assets=assets,
    )


def validate_return(asset: str, value: float, config: Optional[EngineConfig] = None) -> List[str]:
    """Warnings for a return assumption outside the asset's historical band."""
    cfg = (config or default_config()).returns
    band = cfg.bands.get(asset)
    if band is None:
        return []
    lower, upper = band
    if value > upper:
        return [f"{asset} return of {value:.1f}% is above the historical range ({lower:.0f}%-{upper:.0f}%)"]
    if value < lower:
        return [f"{asset} return of {value:.1f}% is below the historical range ({lower:.0f}%-{upper:.0f}%)"]
    return []


__all__ = [
    "adjust_returns",
    "age_factor",
    "asset_multiplier",
    "risk_factor",
    "scenario_returns",
    "time_horizon_factor",
    "validate_return",
]
