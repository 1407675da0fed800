"""Resolve a raw financial profile into :class:`CanonicalInputs`.

Profiles arrive from several generations of input forms, so the same value
may be stored under many names (``currentMonthlySalary``, ``monthlySalary``,
``salary`` ...).  :data:`FIELD_ALIASES` lists, for each canonical field, the
names tried in order.  In couple mode person-level fields are read once per
partner using a ``partner1``/``partner2`` prefix and summed; if neither
partner supplies the field the unprefixed name is used instead.  Individual
mode only ever reads unprefixed names, so stale partner data left in a
profile is ignored.

The normalizer never raises.  Unparsable values are treated as absent: the
field falls back to its default and its name lands in
``CanonicalInputs.missing`` next to the canonical names that were never
supplied, so the scoring layer can tell a computed zero from absent data.
Negative values are clamped to zero and ages above :data:`MAX_AGE` are
clamped to it; both are reported for validation.

Example
-------

>>> c = normalize({"planningType": "couple",
...                "partner1Salary": 20000, "partner2Salary": 15000,
...                "currentAge": 40})
>>> c.gross_monthly_income
35000.0
>>> c.pension_rate
17.5
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from ..config import MAX_AGE, EngineConfig, default_config
from ..models import CanonicalInputs
from . import taxes
from .safe_math import safe_divide, safe_float

logger = logging.getLogger(__name__)

FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "age": ("currentAge", "age"),
    "retirement_age": ("retirementAge", "targetRetirementAge", "plannedRetirementAge"),
    "gross_income": (
        "currentMonthlySalary", "monthlySalary", "grossSalary", "monthlyGrossSalary",
        "salary", "monthlyIncome", "currentSalary", "grossMonthlyIncome",
    ),
    "net_income": ("netSalary", "monthlyNetSalary", "netMonthlyIncome", "currentNetSalary", "takeHomePay"),
    "annual_bonus": ("annualBonus", "bonus", "yearlyBonus"),
    "quarterly_rsu": ("quarterlyRSU", "rsuQuarterly", "rsuIncome"),
    "freelance_income": ("freelanceIncome", "monthlyFreelanceIncome"),
    "rental_income": ("rentalIncome", "monthlyRentalIncome"),
    "dividend_income": ("dividendIncome", "monthlyDividendIncome"),
    "other_income": ("otherIncome", "additionalIncome"),
    "monthly_expenses": ("currentMonthlyExpenses", "monthlyExpenses", "expenses", "jointMonthlyExpenses"),
    "annual_expenses": ("currentAnnualExpenses", "annualExpenses", "yearlyExpenses"),
    "expense_breakdown": ("expenseBreakdown", "monthlyExpenseBreakdown", "expenseCategories"),
    "pension_savings": (
        "currentPensionSavings", "pensionSavings", "currentSavings", "retirementSavings", "pensionValue",
    ),
    "training_fund": (
        "currentTrainingFund", "currentTrainingFundSavings", "trainingFund", "trainingFundValue",
        "kerenHishtalmut", "currentKeren",
    ),
    "personal_portfolio": (
        "currentPersonalPortfolio", "personalPortfolio", "portfolio", "investments", "portfolioValue",
    ),
    "real_estate": ("currentRealEstate", "realEstate", "realEstateValue", "propertyValue"),
    "crypto": ("currentCrypto", "currentCryptoFiatValue", "cryptoValue", "crypto"),
    "emergency_fund": (
        "emergencyFund", "currentBankAccount", "currentSavingsAccount", "emergencySavings", "cashSavings",
    ),
    "pension_rate": ("pensionContributionRate", "pensionEmployeeRate", "pensionRate"),
    "training_fund_rate": ("trainingFundContributionRate", "trainingFundRate", "trainingFundEmployeeRate"),
    "portfolio_monthly": ("personalPortfolioMonthly", "monthlyInvestment", "monthlyPortfolioContribution"),
    "crypto_monthly": ("cryptoMonthly", "monthlyCryptoContribution"),
    "real_estate_monthly": ("realEstateMonthly", "monthlyRealEstateContribution"),
    "pension_fee": ("pensionManagementFee", "pensionFee", "pensionAnnualFee"),
    "training_fund_fee": ("trainingFundManagementFee", "trainingFundFee"),
    "portfolio_fee": ("portfolioManagementFee", "personalPortfolioFee", "portfolioFee"),
    "total_debt": ("totalDebt", "currentDebt", "debt"),
    "high_interest_debt": ("highInterestDebt", "creditCardDebt"),
    "monthly_debt_payments": ("monthlyDebtPayments", "debtPayments"),
    "equity_percentage": ("equityPercentage", "stocksPercentage", "stockAllocation", "equityAllocation"),
    "bond_percentage": ("bondPercentage", "bondsPercentage", "bondAllocation"),
    "target_allocation": ("targetAllocation", "allocation"),
    "mode": ("planningType", "mode", "planType"),
    "risk_tolerance": ("riskTolerance", "riskProfile", "portfolioAggressiveness", "investmentRiskProfile"),
    "country": ("country", "taxCountry", "taxResidency"),
    "employment_type": ("employmentType", "employmentStatus"),
    "job_stability": ("jobStability",),
}

# Fields summed across partners in couple mode
PERSON_FIELDS = frozenset({
    "annual_bonus", "quarterly_rsu", "freelance_income", "rental_income", "dividend_income", "other_income",
    "pension_savings", "training_fund", "personal_portfolio", "real_estate", "crypto",
    "emergency_fund", "portfolio_monthly", "crypto_monthly", "real_estate_monthly",
    "total_debt", "high_interest_debt", "monthly_debt_payments",
    "monthly_expenses", "annual_expenses",
})

DEFAULTS: Dict[str, Any] = {
    "age": 30.0,
    "retirement_age": 67.0,
    "pension_rate": 17.5,
    "training_fund_rate": 7.5,
    "risk_tolerance": "moderate",
    "country": "israel",
    "mode": "individual",
    "employment_type": "employee",
    "job_stability": "stable",
}

_COUNTRY_NAMES = {
    "il": "israel", "isr": "israel",
    "usa": "us", "united states": "us", "america": "us",
    "gb": "uk", "gbr": "uk", "united kingdom": "uk", "england": "uk",
}
_RISK_NAMES = {
    "low": "conservative", "conservative": "conservative",
    "medium": "moderate", "moderate": "moderate", "balanced": "moderate",
    "high": "aggressive", "aggressive": "aggressive", "growth": "aggressive",
}


def _present(value: Any) -> bool:
    return value is not None and not (isinstance(value, str) and not value.strip())


def partner_keys(alias: str, partner: int) -> Tuple[str, str]:
    """``partner1CurrentAge`` and ``partner1_currentAge`` for ``currentAge``."""
    return (f"partner{partner}{alias[0].upper()}{alias[1:]}", f"partner{partner}_{alias}")


class _Resolver:
    """Alias lookups against one raw profile, recording what was missing."""

    def __init__(self, raw: Mapping[str, Any], couple: bool):
        self.raw = raw
        self.couple = couple
        self.missing: Set[str] = set()
        self.negative: List[str] = []
        self.out_of_range: List[str] = []

    def lookup(self, field: str, partner: Optional[int] = None) -> Any:
        for alias in FIELD_ALIASES[field]:
            keys = (alias,) if partner is None else partner_keys(alias, partner)
            for key in keys:
                value = self.raw.get(key)
                if _present(value):
                    return value
        return None

    def number(self, field: str, partner: Optional[int] = None) -> Optional[float]:
        value = self.lookup(field, partner)
        if value is None or isinstance(value, Mapping):
            return None
        number = safe_float(value, default=None)
        if number is None:
            logger.debug("Unparsable value for %s treated as missing", field)
            self.missing.add(field)
            return None
        if number < 0:
            logger.debug("Negative value for %s clamped to zero", field)
            self.negative.append(field)
            return 0.0
        return number

    def combined(self, field: str) -> Optional[float]:
        """Partner values summed in couple mode, unprefixed value otherwise."""
        if self.couple and field in PERSON_FIELDS:
            values = [self.number(field, p) for p in (1, 2)]
            found = [v for v in values if v is not None]
            if found:
                return sum(found)
        return self.number(field)

    def shared(self, field: str) -> Optional[float]:
        """Household-level number; in couple mode falls back to partner 1."""
        value = self.number(field)
        if value is None and self.couple:
            value = self.number(field, 1)
        return value

    def text(self, field: str) -> str:
        value = self.lookup(field)
        if value is None and self.couple:
            value = self.lookup(field, 1)
        if value is None:
            return DEFAULTS[field]
        return str(value).strip().lower()


def _planning_mode(raw: Mapping[str, Any]) -> str:
    for alias in FIELD_ALIASES["mode"]:
        value = raw.get(alias)
        if _present(value):
            return "couple" if str(value).strip().lower() in ("couple", "married", "joint") else "individual"
    return DEFAULTS["mode"]


def _persons(r: _Resolver) -> Sequence[Optional[int]]:
    """Partner numbers to read payroll fields for; ``None`` means unprefixed."""
    if not r.couple:
        return (None,)
    partners = tuple(
        p for p in (1, 2)
        if r.lookup("gross_income", p) is not None or r.lookup("net_income", p) is not None
    )
    return partners or (None,)


def _payroll(r: _Resolver, person: Optional[int], country: str, cfg: EngineConfig) -> Dict[str, float]:
    gross = r.number("gross_income", person)
    net = r.number("net_income", person)
    if gross is None and net is not None:
        gross = taxes.estimate_gross_from_net(net, country, cfg)
    elif net is None and gross is not None:
        net = taxes.estimate_net_from_gross(gross, country, cfg)
    gross = gross or 0.0
    net = net or 0.0

    pension_rate = r.number("pension_rate", person)
    if pension_rate is None and person is not None:
        pension_rate = r.number("pension_rate")
    training_rate = r.number("training_fund_rate", person)
    if training_rate is None and person is not None:
        training_rate = r.number("training_fund_rate")
    pension_rate = DEFAULTS["pension_rate"] if pension_rate is None else pension_rate
    training_rate = DEFAULTS["training_fund_rate"] if training_rate is None else training_rate

    return {
        "gross": float(gross),
        "net": float(net),
        "pension": gross * pension_rate / 100.0,
        "training": gross * training_rate / 100.0,
        "pension_rate": pension_rate,
        "training_rate": training_rate,
    }


def _monthly_expenses(r: _Resolver) -> Optional[float]:
    monthly = r.combined("monthly_expenses")
    if monthly is not None:
        return monthly
    breakdown = r.lookup("expense_breakdown")
    if isinstance(breakdown, Mapping) and breakdown:
        return sum(max(0.0, safe_float(v)) for v in breakdown.values())
    raw_expenses = r.raw.get("expenses")
    if isinstance(raw_expenses, Mapping) and raw_expenses:
        return sum(max(0.0, safe_float(v)) for v in raw_expenses.values())
    annual = r.combined("annual_expenses")
    if annual is not None:
        return annual / 12.0
    return None


def _allocation(r: _Resolver) -> Tuple[Optional[float], Optional[float], Dict[str, float], Dict[str, float]]:
    target_raw = r.lookup("target_allocation")
    target: Dict[str, float] = {}
    if isinstance(target_raw, Mapping):
        target = {str(k): safe_float(v) for k, v in target_raw.items() if not isinstance(v, Mapping)}

    equity = r.shared("equity_percentage")
    bonds = r.shared("bond_percentage")
    supplied = {"equity": equity, "bonds": bonds} if equity is not None and bonds is not None else {}
    if equity is None and bonds is None and target:
        equity = target.get("stocks", target.get("equity"))
        bonds = target.get("bonds")
    if equity is not None and bonds is None:
        bonds = max(0.0, 100.0 - equity)
    elif bonds is not None and equity is None:
        equity = max(0.0, 100.0 - bonds)
    return equity, bonds, target, supplied


def _age(r: _Resolver, field: str) -> float:
    value = r.shared(field)
    if value is None:
        r.missing.add(field)
        return DEFAULTS[field]
    if value > MAX_AGE:
        logger.debug("%s of %s clamped to %s", field, value, MAX_AGE)
        r.out_of_range.append(field)
        return MAX_AGE
    return value


def normalize(raw_profile: Optional[Mapping[str, Any]], config: Optional[EngineConfig] = None) -> CanonicalInputs:
    """Resolve aliases, combine partners and apply defaults.

    Parameters
    ----------
    raw_profile : mapping
        Form values as submitted.  ``None`` or any non-mapping value is
        treated as an empty profile; the latter is flagged as ``profile`` in
        ``missing``.
    config : EngineConfig, optional
        Tables used for the gross/net estimate.  Defaults to the shipped
        tables.

    Returns
    -------
    CanonicalInputs
        Flattened values plus the set of missing canonical fields.
    """
    cfg = config or default_config()
    raw: Mapping[str, Any] = raw_profile or {}
    malformed = not isinstance(raw, Mapping)
    if malformed:
        logger.info("Profile of type %s is not a mapping; scoring an empty profile", type(raw_profile).__name__)
        raw = {}
    mode = _planning_mode(raw)
    r = _Resolver(raw, couple=(mode == "couple"))
    if malformed:
        r.missing.add("profile")

    country = r.text("country")
    country = _COUNTRY_NAMES.get(country, country)
    risk = _RISK_NAMES.get(r.text("risk_tolerance"), DEFAULTS["risk_tolerance"])
    employment = "self_employed" if r.text("employment_type").replace("-", "_") in (
        "self_employed", "selfemployed", "freelancer", "freelance") else "employee"

    age = _age(r, "age")
    retirement_age = _age(r, "retirement_age")

    payroll = [_payroll(r, p, country, cfg) for p in _persons(r)]
    gross = sum(p["gross"] for p in payroll)
    net = sum(p["net"] for p in payroll)
    if gross == 0 and net == 0:
        r.missing.add("income")
    pension_contribution = sum(p["pension"] for p in payroll)
    training_contribution = sum(p["training"] for p in payroll)
    pension_rate = safe_divide(pension_contribution * 100.0, gross, default=payroll[0]["pension_rate"])
    training_rate = safe_divide(training_contribution * 100.0, gross, default=payroll[0]["training_rate"])

    additional = (
        (r.combined("annual_bonus") or 0.0) / 12.0
        + (r.combined("quarterly_rsu") or 0.0) / 3.0
        + sum(r.combined(f) or 0.0 for f in ("freelance_income", "rental_income", "dividend_income", "other_income"))
    )

    expenses = _monthly_expenses(r)
    if expenses is None:
        r.missing.add("expenses")
        expenses = 0.0

    equity, bonds, target, supplied = _allocation(r)
    if equity is None:
        r.missing.add("allocation")

    def amount(field: str) -> float:
        return r.combined(field) or 0.0

    def fee(field: str) -> float:
        return r.shared(field) or 0.0

    canonical = CanonicalInputs(
        mode=mode,
        country=country,
        age=float(age),
        retirement_age=float(retirement_age),
        risk_tolerance=risk,
        employment_type=employment,
        job_stability=r.text("job_stability"),
        gross_monthly_income=gross,
        net_monthly_income=net,
        additional_monthly_income=additional,
        monthly_expenses=expenses,
        pension_savings=amount("pension_savings"),
        training_fund=amount("training_fund"),
        personal_portfolio=amount("personal_portfolio"),
        real_estate=amount("real_estate"),
        crypto=amount("crypto"),
        emergency_fund=amount("emergency_fund"),
        pension_rate=pension_rate,
        training_fund_rate=training_rate,
        monthly_pension_contribution=pension_contribution,
        monthly_training_contribution=training_contribution,
        monthly_portfolio_contribution=amount("portfolio_monthly"),
        monthly_crypto_contribution=amount("crypto_monthly"),
        monthly_real_estate_contribution=amount("real_estate_monthly"),
        pension_fee=fee("pension_fee"),
        training_fund_fee=fee("training_fund_fee"),
        portfolio_fee=fee("portfolio_fee"),
        total_debt=amount("total_debt"),
        high_interest_debt=amount("high_interest_debt"),
        monthly_debt_payments=amount("monthly_debt_payments"),
        equity_percentage=equity,
        bond_percentage=bonds,
        target_allocation=target,
        supplied_allocation=supplied,
        missing=frozenset(r.missing),
        negative_fields=tuple(r.negative),
        out_of_range_fields=tuple(r.out_of_range),
    )
    if r.missing:
        logger.debug("Profile normalized with missing fields: %s", sorted(r.missing))
    return canonical


__all__ = ["DEFAULTS", "FIELD_ALIASES", "PERSON_FIELDS", "normalize", "partner_keys"]
