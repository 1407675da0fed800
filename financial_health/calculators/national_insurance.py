"""Israeli National Insurance (Bituach Leumi) contributions and benefits.

The calculator is a thin object over one year's
:class:`~financial_health.config.NationalInsuranceTable`, so a different
table year can be injected without touching module state.

Old-age pension
    Requires at least 144 contribution months.  The pension percentage
    grows 2 % a year for the first ten years, 3 % a year to twenty, 2 % a
    year to thirty and 1 % a year after that, capped at 80 %.  It applies to
    a blend of the national average wage (60 %) and the person's own average
    insured income (40 %).  A senior supplement is paid to low-income
    pensioners and an income guarantee sets the floor.

Survivor and disability benefits follow the same table with their own
income tests.

Example
-------

>>> ni = NationalInsuranceCalculator()
>>> ni.calculate_old_age_pension({"contributionMonths": 120}).eligible
False
>>> ni.calculate_old_age_pension({"contributionMonths": 480,
...                                "averageInsuredIncome": 15000}).components["base_pension"]
10614.0
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from ..config import MAX_AGE, EngineConfig, NationalInsuranceTable, default_config
from ..models import BenefitResult, ContributionBreakdown, LifetimeBenefits, SocialInsuranceProfile
from .safe_math import safe_divide, safe_float

logger = logging.getLogger(__name__)

ProfileLike = Union[SocialInsuranceProfile, Mapping[str, Any]]

_PROFILE_KEYS = {
    "age": ("age", "currentAge", "survivorAge"),
    "gender": ("gender",),
    "contribution_months": ("contribution_months", "contributionMonths", "contributionMonthsToDate"),
    "average_income": ("average_income", "averageInsuredIncome", "averageIncomeToDate"),
    "current_income": ("current_income", "currentMonthlyIncome", "monthlyIncome"),
    "marital_status": ("marital_status", "maritalStatus"),
    "children": ("children", "dependentChildren"),
    "spouse_income": ("spouse_income", "spouseIncome"),
    "other_income": ("other_income", "totalIncome", "otherIncome"),
    "retirement_age": ("retirement_age", "retirementAge"),
    "income_growth_rate": ("income_growth_rate", "expectedIncomeGrowth"),
    "disability_level": ("disability_level", "disabilityLevel"),
    "deceased_pension": ("deceased_pension", "deceasedPension"),
    "survivor_income": ("survivor_income", "survivorIncome"),
}


def as_profile(data: ProfileLike) -> SocialInsuranceProfile:
    """Build a :class:`SocialInsuranceProfile` from a plain mapping."""
    if isinstance(data, SocialInsuranceProfile):
        return data
    values = {}
    for field, keys in _PROFILE_KEYS.items():
        for key in keys:
            if data.get(key) is not None:
                values[field] = data[key]
                break

    if "marital_status" not in values and data.get("isMarried") is not None:
        values["marital_status"] = "married" if data["isMarried"] else "single"
    for field in ("age", "average_income", "current_income", "spouse_income", "other_income",
                  "income_growth_rate", "deceased_pension", "survivor_income"):
        if field in values:
            values[field] = safe_float(values[field])
    for field in ("contribution_months", "children"):
        if field in values:
            values[field] = int(safe_float(values[field]))
    if values.get("retirement_age") is not None:
        values["retirement_age"] = safe_float(values["retirement_age"])
    if isinstance(values.get("gender"), str):
        values["gender"] = "female" if values["gender"].lower() in ("female", "women", "woman", "f") else "male"
    return SocialInsuranceProfile(**values)


def pension_percentage(contribution_years: float) -> float:
    """Tiered accrual percentage, capped at 80."""
    y = max(0.0, contribution_years)
    if y <= 10:
        pct = y * 2
    elif y <= 20:
        pct = 20 + (y - 10) * 3
    elif y <= 30:
        pct = 50 + (y - 20) * 2
    else:
        pct = 70 + (y - 30)
    return min(pct, 80.0)


class NationalInsuranceCalculator:
    """Contributions and benefit estimates for one table year."""

    def __init__(self, table: Optional[NationalInsuranceTable] = None, config: Optional[EngineConfig] = None):
        self.table = table or (config or default_config()).national_insurance

    # ---------- Contributions ----------

    def calculate_contributions(
        self,
        monthly_income: float,
        employment_type: str = "employee",
        yearly_income: Optional[float] = None,
    ) -> ContributionBreakdown:
        """Monthly contributions on ``monthly_income``.

        Employees pay a flat rate on income up to the insured ceiling; the
        employer pays its base rate up to the ceiling and a higher rate on
        the remainder.  Self-employed persons pay one combined rate on
        insured income.
        """
        t = self.table
        income = max(0.0, safe_float(monthly_income))
        if yearly_income is not None and income == 0:
            income = max(0.0, safe_float(yearly_income)) / 12.0
        insured = min(income, t.max_insured_income)

        if employment_type == "self_employed":
            employee = insured * t.rates["self_employed"]
            employer = 0.0
        else:
            employee = insured * t.rates["employee"]
            employer = insured * t.rates["employer"]
            if income > t.max_insured_income:
                employer += (income - t.max_insured_income) * t.rates["employer_above_ceiling"]

        total = employee + employer
        return ContributionBreakdown(
            monthly_income=income,
            insured_income=insured,
            employment_type=employment_type,
            employee=employee,
            employer=employer,
            total=total,
            annual_total=total * 12,
        )

    # ---------- Old-age pension ----------

    def _ineligible(self, required: int, current: int) -> BenefitResult:
        logger.info("Benefit not available: %d of %d contribution months", current, required)
        return BenefitResult(
            eligible=False,
            reason="Insufficient contribution period",
            minimum_required=required,
            current_contributions=current,
            shortfall=max(0, required - current),
        )

    def base_pension(self, contribution_months: int, average_income: float) -> float:
        t = self.table
        pct = pension_percentage(contribution_months / 12.0)
        personal = min(max(0.0, average_income), t.max_insured_income)
        blended = t.average_wage_for(t.year) * 0.6 + personal * 0.4
        return float(round(blended * pct / 100.0))

    def senior_supplement(self, p: SocialInsuranceProfile) -> float:
        t = self.table
        threshold = t.income_test_amount * (1.5 if p.is_married else 1.0)
        if p.other_income > threshold:
            return 0.0
        reduction = max(0.0, (p.other_income - threshold * 0.7) * 0.6)
        return float(max(0, round(t.senior_supplement - reduction)))

    def income_guarantee(self, p: SocialInsuranceProfile) -> float:
        g = self.table.income_guarantee
        guarantee = g["couple"] if p.is_married else g["single"]
        guarantee += p.children * g["per_child"]
        if p.is_married and p.spouse_income > 0:
            reduction = min(p.spouse_income * 0.6, guarantee * 0.5)
            guarantee = max(guarantee - reduction, guarantee * 0.5)
        return float(round(guarantee))

    def calculate_old_age_pension(self, profile: ProfileLike) -> BenefitResult:
        """Monthly old-age pension, or an ineligible result with the shortfall."""
        p = as_profile(profile)
        required = self.table.min_contribution_months
        if p.contribution_months < required:
            return self._ineligible(required, p.contribution_months)

        base = self.base_pension(p.contribution_months, p.average_income)
        supplement = self.senior_supplement(p)
        guarantee = self.income_guarantee(p)
        total = max(base + supplement, guarantee)
        return BenefitResult(
            eligible=True,
            monthly_total=total,
            components={
                "base_pension": base,
                "senior_supplement": supplement,
                "income_guarantee": guarantee,
                "contribution_years": float(p.contribution_months // 12),
            },
            minimum_required=required,
            current_contributions=p.contribution_months,
            replacement_ratio=safe_divide(total, p.average_income, default=0.0, context="ni replacement") * 100.0,
        )

    # ---------- Survivor ----------

    def calculate_survivor_benefits(self, profile: ProfileLike) -> BenefitResult:
        t = self.table
        p = as_profile(profile)
        base = p.deceased_pension * t.survivor_rate
        children = p.children * t.income_guarantee["per_child"]
        gross = base + children

        exempt = t.basic_amount * 2
        reduction = 0.0
        if p.survivor_income > exempt:
            reduction = min((p.survivor_income - exempt) * 0.6, gross * 0.5)
        final = max(gross - reduction, gross * 0.5)
        return BenefitResult(
            eligible=True,
            monthly_total=float(round(final)),
            components={
                "survivor_pension": base,
                "child_allowances": children,
                "gross_benefits": gross,
                "income_test_reduction": reduction,
            },
        )

    # ---------- Disability ----------

    @staticmethod
    def min_disability_contributions(age: float) -> int:
        if age < 28:
            return 12
        if age < 31:
            return 24
        return int(min(60, (age - 21) * 12 / 3))

    def disability_rate(self, level: Any) -> float:
        if isinstance(level, (int, float)) and not isinstance(level, bool):
            return float(level) / 100.0
        rates = self.table.disability_rates
        return rates.get(str(level).lower(), rates["full"])

    def calculate_disability_benefits(self, profile: ProfileLike) -> BenefitResult:
        t = self.table
        p = as_profile(profile)
        required = self.min_disability_contributions(p.age)
        if p.contribution_months < required:
            return self._ineligible(required, p.contribution_months)

        base = float(round(t.average_wage_for(t.year) * self.disability_rate(p.disability_level)))
        children = p.children * t.income_guarantee["per_child"]
        reduction = 0.0
        if p.spouse_income > t.basic_amount:
            reduction = min((p.spouse_income - t.basic_amount) * 0.6, base * 0.5)
        total = max(base + children - reduction, base * 0.25)
        return BenefitResult(
            eligible=True,
            monthly_total=float(round(total)),
            components={
                "base_pension": base,
                "child_allowances": children,
                "income_test_reduction": reduction,
            },
            minimum_required=required,
            current_contributions=p.contribution_months,
        )

    # ---------- Projection ----------

    def project_retirement_pension(self, profile: ProfileLike) -> BenefitResult:
        """Old-age pension at retirement assuming continued contributions.

        Current income grows at ``income_growth_rate`` a year; the projected
        average insured income blends contribution history with the future
        incomes and is capped at the insured ceiling.
        """
        t = self.table
        p = as_profile(profile)
        retirement_age = min(p.retirement_age or t.retirement_age["female" if p.gender == "female" else "male"], MAX_AGE)
        years = max(0, int(retirement_age - p.age))

        income = p.current_income
        future_total = 0.0
        for _ in range(years):
            income *= 1 + p.income_growth_rate
            future_total += income * 12

        months = p.contribution_months + years * 12
        average = safe_divide(
            p.average_income * p.contribution_months + future_total, months,
            default=0.0, context="projected insured income",
        )
        projected = SocialInsuranceProfile(
            age=retirement_age,
            gender=p.gender,
            contribution_months=months,
            average_income=min(average, t.max_insured_income),
            current_income=income,
            marital_status=p.marital_status,
            children=p.children,
            spouse_income=p.spouse_income,
            other_income=p.other_income,
            retirement_age=retirement_age,
        )
        return self.calculate_old_age_pension(projected)

    def calculate_lifetime_benefits(
        self,
        pension: Union[BenefitResult, float],
        life_expectancy: float = 85,
        retirement_age: float = 67,
        discount_rate: float = 0.03,
    ) -> LifetimeBenefits:
        """Total and present value of a pension paid until ``life_expectancy``."""
        monthly = pension.monthly_total if isinstance(pension, BenefitResult) else safe_float(pension)
        years = max(0, int(life_expectancy - retirement_age))
        yearly = monthly * 12
        present = sum(yearly / (1 + discount_rate) ** y for y in range(1, years + 1))
        return LifetimeBenefits(
            monthly_pension=monthly,
            years_of_benefits=years,
            total_benefits=yearly * years,
            present_value=float(round(present)),
        )


__all__ = ["NationalInsuranceCalculator", "as_profile", "pension_percentage"]
