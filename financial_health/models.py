"""Value objects passed between the calculators.

Everything here is a frozen dataclass: each call builds new objects and no
component keeps mutable state between calls.  ``as_dict()`` returns plain
nested dictionaries for callers that want JSON-like records.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, is_dataclass
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Literal, Mapping, Optional, Tuple

PlanningMode = Literal["individual", "couple"]
RiskTolerance = Literal["conservative", "moderate", "aggressive"]
FactorStatus = Literal["excellent", "good", "fair", "poor", "critical"]
Urgency = Literal["none", "low", "medium", "high", "critical"]
Verdict = Literal["proceed", "consider", "defer"]
EmploymentType = Literal["employee", "self_employed"]

ASSET_CLASSES: Tuple[str, ...] = (
    "pension",
    "trainingFund",
    "personalPortfolio",
    "realEstate",
    "crypto",
)


def _plain(value: Any) -> Any:
    """Nested records and read-only mappings as plain dicts and lists."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, tuple):
        return tuple(_plain(v) for v in value)
    return value


def _freeze(record: Any, *names: str) -> None:
    for name in names:
        object.__setattr__(record, name, MappingProxyType(dict(getattr(record, name))))


class _Record:
    def as_dict(self) -> Dict[str, Any]:
        return _plain(self)


@dataclass(frozen=True)
class CanonicalInputs(_Record):
    """Profile with every alias resolved and partners combined."""

    mode: PlanningMode = "individual"
    country: str = "israel"
    age: float = 30.0
    retirement_age: float = 67.0
    risk_tolerance: RiskTolerance = "moderate"
    employment_type: EmploymentType = "employee"
    job_stability: str = "stable"

    gross_monthly_income: float = 0.0
    net_monthly_income: float = 0.0
    additional_monthly_income: float = 0.0
    monthly_expenses: float = 0.0

    pension_savings: float = 0.0
    training_fund: float = 0.0
    personal_portfolio: float = 0.0
    real_estate: float = 0.0
    crypto: float = 0.0
    emergency_fund: float = 0.0

    pension_rate: float = 17.5
    training_fund_rate: float = 7.5
    monthly_pension_contribution: float = 0.0
    monthly_training_contribution: float = 0.0
    monthly_portfolio_contribution: float = 0.0
    monthly_crypto_contribution: float = 0.0
    monthly_real_estate_contribution: float = 0.0
    pension_fee: float = 0.0
    training_fund_fee: float = 0.0
    portfolio_fee: float = 0.0

    total_debt: float = 0.0
    high_interest_debt: float = 0.0
    monthly_debt_payments: float = 0.0

    equity_percentage: Optional[float] = None
    bond_percentage: Optional[float] = None
    target_allocation: Mapping[str, float] = field(default_factory=dict)

    # equity/bond split as supplied, before either side is completed
    supplied_allocation: Mapping[str, float] = field(default_factory=dict)

    missing: FrozenSet[str] = frozenset()
    negative_fields: Tuple[str, ...] = ()
    out_of_range_fields: Tuple[str, ...] = ()

    @property
    def years_to_retirement(self) -> float:
        return max(0.0, self.retirement_age - self.age)

    @property
    def annual_expenses(self) -> float:
        return self.monthly_expenses * 12

    @property
    def total_monthly_income(self) -> float:
        """Gross salary plus bonus, RSU and other income, per month."""
        return self.gross_monthly_income + self.additional_monthly_income

    @property
    def total_monthly_contributions(self) -> float:
        return (
            self.monthly_pension_contribution
            + self.monthly_training_contribution
            + self.monthly_portfolio_contribution
            + self.monthly_crypto_contribution
            + self.monthly_real_estate_contribution
        )

    @property
    def balances(self) -> Dict[str, float]:
        return {
            "pension": self.pension_savings,
            "trainingFund": self.training_fund,
            "personalPortfolio": self.personal_portfolio,
            "realEstate": self.real_estate,
            "crypto": self.crypto,
            "cash": self.emergency_fund,
        }

    @property
    def total_assets(self) -> float:
        return sum(self.balances.values())


@dataclass(frozen=True)
class HealthScoreOptions(_Record):
    """Options for a health-score calculation.

    ``retirement_goal`` overrides ``goal_multiple`` times annual expenses.
    ``year`` selects the table year when no config is injected.
    """

    withdrawal_rate: float = 0.04
    goal_multiple: Optional[float] = None
    retirement_goal: Optional[float] = None
    base_returns: Optional[Mapping[str, float]] = None
    include_peer_comparison: bool = True
    include_state_pension: bool = True
    year: Optional[int] = None


@dataclass(frozen=True)
class ValidationResult(_Record):
    is_valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    critical_missing: Tuple[str, ...] = ()
    data_completeness: float = 100.0


@dataclass(frozen=True)
class AssetReturn(_Record):
    asset: str
    base: float
    multiplier: float
    adjusted: float
    band: Tuple[float, float]


@dataclass(frozen=True)
class ReturnAssumptions(_Record):
    """Age/horizon/risk adjusted nominal returns, in percent."""

    time_horizon_factor: float
    age_factor: float
    risk_factor: float
    adjustment_factor: float
    assets: Mapping[str, AssetReturn]

    def rate(self, asset: str, default: float = 0.0) -> float:
        entry = self.assets.get(asset)
        return entry.adjusted if entry else default

    @property
    def adjusted_returns(self) -> Dict[str, float]:
        return {name: a.adjusted for name, a in self.assets.items()}


@dataclass(frozen=True)
class Projection(_Record):
    years: float
    retirement_age: float
    accumulation: float
    by_asset: Mapping[str, float]
    monthly_income: float
    withdrawal_rate: float
    years_to_goal: float
    retirement_goal: float
    replacement_ratio: float
    net_monthly_savings: float
    ages: Tuple[float, ...] = ()
    schedule: Mapping[str, Tuple[float, ...]] = field(default_factory=dict)
    state_pension: Optional[float] = None

    @property
    def reaches_goal(self) -> bool:
        return math.isfinite(self.years_to_goal) and self.years_to_goal <= self.years


@dataclass(frozen=True)
class FactorScore(_Record):
    score: float
    weight: float
    status: FactorStatus
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        _freeze(self, "details")

    @property
    def normalized(self) -> float:
        """Score as a percentage of the factor's weight."""
        return 0.0 if not self.weight else self.score / self.weight * 100.0


@dataclass(frozen=True)
class Suggestion(_Record):
    factor: str
    priority: Literal["high", "medium", "low"]
    title: str
    description: str
    actions: Tuple[str, ...] = ()
    impact: float = 0.0


@dataclass(frozen=True)
class PeerComparison(_Record):
    age_group: str
    average_score: float
    top_quartile: float
    percentile: float
    comparison: str


@dataclass(frozen=True)
class HealthReport(_Record):
    total_score: float
    factors: Mapping[str, FactorScore]
    suggestions: Tuple[Suggestion, ...]
    interpretation: str
    validation: ValidationResult
    projection: Optional[Projection] = None
    returns: Optional[ReturnAssumptions] = None
    peer_comparison: Optional[PeerComparison] = None
    zero_score_factors: Tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        _freeze(self, "factors", "metadata")

    @property
    def status(self) -> FactorStatus:
        """Overall status using the same cut-offs as a single factor."""
        if self.total_score >= 85:
            return "excellent"
        if self.total_score >= 70:
            return "good"
        if self.total_score >= 50:
            return "fair"
        if self.total_score >= 25:
            return "poor"
        return "critical"


@dataclass(frozen=True)
class SocialInsuranceProfile(_Record):
    age: float = 0.0
    gender: str = "male"
    contribution_months: int = 0
    average_income: float = 0.0
    current_income: float = 0.0
    marital_status: str = "single"
    children: int = 0
    spouse_income: float = 0.0
    other_income: float = 0.0
    retirement_age: Optional[float] = None
    income_growth_rate: float = 0.03
    disability_level: Any = "full"
    deceased_pension: float = 0.0
    survivor_income: float = 0.0

    @property
    def is_married(self) -> bool:
        return self.marital_status.lower() in ("married", "couple")


@dataclass(frozen=True)
class ContributionBreakdown(_Record):
    monthly_income: float
    insured_income: float
    employment_type: str
    employee: float
    employer: float
    total: float
    annual_total: float


@dataclass(frozen=True)
class BenefitResult(_Record):
    """Outcome of a National Insurance benefit calculation.

    Ineligible results carry ``reason`` and ``shortfall`` (months) and a zero
    ``monthly_total``.
    """

    eligible: bool
    monthly_total: float = 0.0
    components: Mapping[str, float] = field(default_factory=dict)
    reason: str = ""
    minimum_required: int = 0
    current_contributions: int = 0
    shortfall: int = 0
    replacement_ratio: float = 0.0


@dataclass(frozen=True)
class LifetimeBenefits(_Record):
    monthly_pension: float
    years_of_benefits: float
    total_benefits: float
    present_value: float


@dataclass(frozen=True)
class TaxImpact(_Record):
    taxable_sales: float
    estimated_gain: float
    tax_rate: float
    estimated_tax: float
    by_asset: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class CostBenefit(_Record):
    trading_cost: float
    tax_cost: float
    total_cost: float
    return_improvement: float
    risk_reduction: float
    annual_benefit: float
    verdict: Verdict


@dataclass(frozen=True)
class RebalancingAnalysis(_Record):
    needs_rebalancing: bool
    urgency: Urgency
    deviations: Mapping[str, float]
    max_deviation: float
    triggers: Tuple[Mapping[str, Any], ...]
    months_since_rebalance: Optional[float]
    months_overdue: float
    tax_impact: TaxImpact
    cost_benefit: CostBenefit
    recommendations: Tuple[Mapping[str, Any], ...]
    validation: ValidationResult


__all__ = [
    "ASSET_CLASSES",
    "AssetReturn",
    "BenefitResult",
    "CanonicalInputs",
    "ContributionBreakdown",
    "CostBenefit",
    "FactorScore",
    "HealthReport",
    "HealthScoreOptions",
    "LifetimeBenefits",
    "PeerComparison",
    "Projection",
    "RebalancingAnalysis",
    "ReturnAssumptions",
    "SocialInsuranceProfile",
    "Suggestion",
    "TaxImpact",
    "ValidationResult",
]
