"""Immutable, year-versioned configuration for the engine.

Every constant the calculators rely on (scoring weights and benchmarks,
return bands, rebalancing thresholds, country contribution schedules and the
Israeli National Insurance table) lives here or in the JSON files under
``data/``.  The structures are frozen dataclasses wrapping read-only
mappings so a config object can be shared between calls without anyone
mutating it.

Tables are keyed by year and then by country, the same way a tax table file
is keyed by year and filing status:

>>> cfg = load_config(2024)
>>> cfg.country("israel").capital_gains_rate
0.25
>>> cfg.country("atlantis").name
'default'

Set ``FINHEALTH_TABLES_DIR`` to point the loader at a different directory of
JSON tables (useful for testing a new tax year before it ships).
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

_DEFAULT_TABLES_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_YEAR = 2024
# Ages and horizons above this are clamped; also bounds every year loop
MAX_AGE = 120.0


class ConfigError(ValueError):
    """Raised when a configuration table is missing or malformed."""


def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


# ---------- Scoring ----------

FACTOR_WEIGHTS = _frozen({
    "savingsRate": 25,
    "retirementReadiness": 20,
    "timeHorizon": 15,
    "riskAlignment": 12,
    "diversification": 10,
    "taxEfficiency": 8,
    "emergencyFund": 7,
    "debtManagement": 3,
})

# excellent / good / fair / poor boundaries; debt is "lower is better"
BENCHMARKS = _frozen({
    "savingsRate": (20.0, 15.0, 10.0, 5.0),
    "timeHorizon": (30.0, 20.0, 10.0, 5.0),
    "debtManagement": (0.1, 0.2, 0.3, 0.5),
})

PEER_BENCHMARKS = _frozen({
    "20-29": (45, 65),
    "30-39": (55, 75),
    "40-49": (65, 80),
    "50-59": (70, 85),
    "60+": (75, 90),
})

RISK_PROFILES = _frozen({
    "conservative": {"equity": (20, 40), "bonds": (40, 60)},
    "moderate": {"equity": (40, 60), "bonds": (30, 50)},
    "aggressive": {"equity": (60, 80), "bonds": (10, 30)},
})


@dataclass(frozen=True)
class ScoringConfig:
    weights: Mapping[str, int] = field(default_factory=lambda: FACTOR_WEIGHTS)
    benchmarks: Mapping[str, Tuple[float, float, float, float]] = field(default_factory=lambda: BENCHMARKS)
    peer_benchmarks: Mapping[str, Tuple[int, int]] = field(default_factory=lambda: PEER_BENCHMARKS)
    risk_profiles: Mapping[str, Mapping[str, Tuple[int, int]]] = field(default_factory=lambda: RISK_PROFILES)
    # normalized (0-100) cut-offs for excellent / good / fair / poor
    status_thresholds: Tuple[float, float, float, float] = (85.0, 70.0, 50.0, 25.0)
    suggestion_threshold: float = 70.0
    goal_multiple: float = 20.0
    emergency_target_months: float = 6.0
    concentration_limit: float = 0.70
    concentration_penalty: float = 20.0
    high_interest_penalty_cap: float = 30.0


# ---------- Returns ----------

MARKET_SCENARIOS = _frozen({
    "conservative": _frozen({
        "pension": 5.5, "trainingFund": 5.0, "personalPortfolio": 6.5,
        "realEstate": 4.5, "crypto": 10.0,
    }),
    "moderate": _frozen({
        "pension": 7.0, "trainingFund": 6.5, "personalPortfolio": 8.0,
        "realEstate": 6.0, "crypto": 15.0,
    }),
    "aggressive": _frozen({
        "pension": 8.5, "trainingFund": 8.0, "personalPortfolio": 10.0,
        "realEstate": 7.5, "crypto": 20.0,
    }),
})

RETURN_BANDS = _frozen({
    "pension": (3.0, 10.0),
    "trainingFund": (2.0, 10.0),
    "personalPortfolio": (3.0, 15.0),
    "realEstate": (2.0, 12.0),
    "crypto": (-20.0, 50.0),
})


@dataclass(frozen=True)
class ReturnsConfig:
    scenarios: Mapping[str, Mapping[str, float]] = field(default_factory=lambda: MARKET_SCENARIOS)
    bands: Mapping[str, Tuple[float, float]] = field(default_factory=lambda: RETURN_BANDS)
    # (minimum years, factor), checked top-down
    time_factors: Tuple[Tuple[float, float], ...] = (
        (30, 1.0), (20, 0.95), (10, 0.90), (5, 0.85),
    )
    short_horizon_factor: float = 0.80
    # (maximum age, factor), checked top-down
    age_factors: Tuple[Tuple[float, float], ...] = (
        (30, 1.05), (40, 1.0), (50, 0.975), (60, 0.95),
    )
    senior_age_factor: float = 0.90
    risk_factors: Mapping[str, float] = field(default_factory=lambda: _frozen({
        "conservative": 0.85, "moderate": 1.0, "aggressive": 1.15,
    }))
    asset_multipliers: Mapping[str, float] = field(default_factory=lambda: _frozen({
        "pension": 0.9, "trainingFund": 0.95, "personalPortfolio": 1.0,
        "realEstate": 0.8, "crypto": 1.0,
    }))
    crypto_short_horizon_multiplier: float = 0.7
    crypto_long_horizon_years: float = 10.0
    factor_bounds: Tuple[float, float] = (0.5, 1.3)


# ---------- Rebalancing ----------

REBALANCING_CALENDARS = _frozen({
    "conservative": _frozen({"frequency": "annual", "months": 12, "threshold": 10, "review_months": (1, 7)}),
    "moderate": _frozen({"frequency": "semiAnnual", "months": 6, "threshold": 8, "review_months": (1, 4, 7, 10)}),
    "aggressive": _frozen({"frequency": "quarterly", "months": 3, "threshold": 5, "review_months": (1, 4, 7, 10)}),
})

ASSET_RISK_RETURN = _frozen({
    "stocks": (8.0, 16.0),
    "bonds": (4.0, 5.0),
    "realEstate": (6.0, 12.0),
    "cash": (2.0, 0.5),
    "crypto": (15.0, 60.0),
    "commodities": (5.0, 18.0),
    "alternatives": (7.0, 14.0),
})


@dataclass(frozen=True)
class RebalancingConfig:
    # minor / moderate / major / critical deviation in percentage points
    thresholds: Tuple[float, float, float, float] = (5.0, 8.0, 12.0, 20.0)
    calendars: Mapping[str, Mapping[str, Any]] = field(default_factory=lambda: REBALANCING_CALENDARS)
    # expected return %, volatility % per asset class
    risk_return: Mapping[str, Tuple[float, float]] = field(default_factory=lambda: ASSET_RISK_RETURN)
    default_risk_return: Tuple[float, float] = (5.0, 10.0)
    sum_tolerance: float = 0.5
    embedded_gain_ratio: float = 0.20
    trading_cost_rate: float = 0.001
    proceed_multiple: float = 1.5
    risk_reduction_weight: float = 0.5
    benefit_realisation: float = 0.5


# ---------- Country & National Insurance tables ----------

@dataclass(frozen=True)
class ContributionSchedule:
    threshold: float
    ceiling: float
    employee: Mapping[str, float]
    employer: Mapping[str, float]
    self_employed: float


@dataclass(frozen=True)
class CountryTable:
    name: str
    currency: str
    capital_gains_rate: float
    net_to_gross: Mapping[str, float]
    pension_ceiling_rate: float
    training_fund_ceiling_rate: float
    tax_advantage_bonus: float
    contributions: ContributionSchedule


@dataclass(frozen=True)
class NationalInsuranceTable:
    year: int
    basic_amount: float
    senior_supplement: float
    income_test_amount: float
    rates: Mapping[str, float]
    max_insured_income: float
    min_insured_income: float
    min_contribution_months: int
    retirement_age: Mapping[str, int]
    survivor_rate: float
    disability_rates: Mapping[str, float]
    income_guarantee: Mapping[str, float]
    average_wage: Mapping[int, float]

    def average_wage_for(self, year: Optional[int] = None) -> float:
        """Average wage for ``year``; years outside the table use the nearest entry."""
        year = self.year if year is None else int(year)
        if year in self.average_wage:
            return self.average_wage[year]
        known = sorted(self.average_wage)
        nearest = known[0] if year < known[0] else known[-1]
        return self.average_wage[nearest]


@dataclass(frozen=True)
class EngineConfig:
    year: int
    countries: Mapping[str, CountryTable]
    national_insurance: NationalInsuranceTable
    inflation: Mapping[str, Mapping[str, float]]
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    returns: ReturnsConfig = field(default_factory=ReturnsConfig)
    rebalancing: RebalancingConfig = field(default_factory=RebalancingConfig)

    def country(self, name: Optional[str]) -> CountryTable:
        """Return the table for ``name``, falling back to ``default``."""
        key = (name or "").strip().lower()
        if key in self.countries:
            return self.countries[key]
        logger.debug("No country table for %r; using default", name)
        return self.countries["default"]


def _load_json(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Could not read configuration table %s: %s", path, exc)
        raise ConfigError(f"Could not read configuration table {path}") from exc


def _country_table(name: str, raw: Mapping[str, Any]) -> CountryTable:
    c = raw["contributions"]
    return CountryTable(
        name=name,
        currency=raw.get("currency", ""),
        capital_gains_rate=float(raw["capital_gains_rate"]),
        net_to_gross=_frozen(raw["net_to_gross"]),
        pension_ceiling_rate=float(raw["pension_ceiling_rate"]),
        training_fund_ceiling_rate=float(raw["training_fund_ceiling_rate"]),
        tax_advantage_bonus=float(raw.get("tax_advantage_bonus", 0)),
        contributions=ContributionSchedule(
            threshold=float(c["threshold"]),
            ceiling=float(c["ceiling"]),
            employee=_frozen(c["employee"]),
            employer=_frozen(c["employer"]),
            self_employed=float(c["self_employed"]),
        ),
    )


def _ni_table(year: int, raw: Mapping[str, Any]) -> NationalInsuranceTable:
    return NationalInsuranceTable(
        year=year,
        basic_amount=float(raw["basic_amount"]),
        senior_supplement=float(raw["senior_supplement"]),
        income_test_amount=float(raw["income_test_amount"]),
        rates=_frozen(raw["rates"]),
        max_insured_income=float(raw["max_insured_income"]),
        min_insured_income=float(raw["min_insured_income"]),
        min_contribution_months=int(raw["min_contribution_months"]),
        retirement_age=_frozen(raw["retirement_age"]),
        survivor_rate=float(raw["survivor_rate"]),
        disability_rates=_frozen(raw["disability_rates"]),
        income_guarantee=_frozen(raw["income_guarantee"]),
        average_wage=_frozen({int(y): float(w) for y, w in raw["average_wage"].items()}),
    )


def load_config(year: Optional[int] = None, path: Optional[Path] = None) -> EngineConfig:
    """Build an :class:`EngineConfig` from the JSON tables.

    Parameters
    ----------
    year : int, optional
        Table year to load.  Defaults to :data:`DEFAULT_YEAR`.
    path : Path, optional
        Directory holding ``country_tables.json``, ``national_insurance.json``
        and ``inflation.json``.  Defaults to ``FINHEALTH_TABLES_DIR`` or the
        directory shipped with the package.

    Raises
    ------
    ConfigError
        If a table is unreadable or the year is absent.
    """
    year = DEFAULT_YEAR if year is None else int(year)
    base = Path(path or os.getenv("FINHEALTH_TABLES_DIR") or _DEFAULT_TABLES_DIR)

    countries_raw = _load_json(base / "country_tables.json")
    ni_raw = _load_json(base / "national_insurance.json")
    inflation_raw = _load_json(base / "inflation.json")

    try:
        countries = {
            name: _country_table(name, table)
            for name, table in countries_raw[str(year)].items()
        }
        ni = _ni_table(year, ni_raw[str(year)])
    except (KeyError, TypeError, ValueError) as exc:
        logger.error("Malformed configuration tables for %s in %s: %s", year, base, exc)
        raise ConfigError(f"No usable tables for year {year} in {base}") from exc
    if "default" not in countries:
        raise ConfigError(f"Country tables for {year} lack a 'default' entry")

    return EngineConfig(
        year=year,
        countries=_frozen(countries),
        national_insurance=ni,
        inflation=_frozen({k: _frozen(v) for k, v in inflation_raw.items()}),
    )


@lru_cache(maxsize=None)
def default_config(year: Optional[int] = None) -> EngineConfig:
    """Return the cached config for ``year`` built from the shipped tables."""
    return load_config(year)


__all__ = [
    "ConfigError",
    "MAX_AGE",
    "ContributionSchedule",
    "CountryTable",
    "EngineConfig",
    "NationalInsuranceTable",
    "RebalancingConfig",
    "ReturnsConfig",
    "ScoringConfig",
    "default_config",
    "load_config",
]
