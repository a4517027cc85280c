# backend/paycore/schemas/rules.py
"""
Typed statutory rule set.

Every category is its own frozen model with named fields and 2026 defaults.
A stored rule record only carries *overrides*: one partial model per category
(same field names and types, all optional), so a misspelled key or a bad value
fails when the record is loaded.

Defaults (2026):
    • Minimum wage        10,320/h, 2,156,880/month (209h)
    • National pension    4.75% EE / 4.75% ER, base 400,000–6,370,000, exempt at 60
    • Health insurance    3.595% EE / 3.595% ER
    • Long-term care      13.85% of the health premium
    • Employment ins.     0.9% EE / 1.1% ER (<150 staff), exempt at 65
    • Premiums            overtime x1.5, night x0.5 surcharge, holiday x1.5 / x2.0 over 8h
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from paycore.exceptions import RuleConfigError


class _RuleCategory(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class MinimumWageRules(_RuleCategory):
    hourly: Decimal = Decimal("10320")
    monthly: Decimal = Decimal("2156880")


class NationalPensionRules(_RuleCategory):
    employee_rate: Decimal = Decimal("0.0475")
    employer_rate: Decimal = Decimal("0.0475")
    lower_limit: Decimal = Decimal("400000")
    upper_limit: Decimal = Decimal("6370000")
    exemption_age: int = 60
    short_time_monthly_hours: Decimal = Decimal("60")


class HealthInsuranceRules(_RuleCategory):
    employee_rate: Decimal = Decimal("0.03595")
    employer_rate: Decimal = Decimal("0.03595")


class LongTermCareRules(_RuleCategory):
    rate: Decimal = Decimal("0.1385")


class EmploymentInsuranceRules(_RuleCategory):
    employee_rate: Decimal = Decimal("0.009")
    employer_rate: Decimal = Decimal("0.011")
    exemption_age: int = 65


class IncomeTaxRules(_RuleCategory):
    local_tax_rate: Decimal = Decimal("0.1")
    personal_deduction: Decimal = Decimal("1500000")
    max_table_dependents: int = 11


class PremiumRules(_RuleCategory):
    # night_multiplier is a surcharge on hours already paid in another bucket
    overtime_multiplier: Decimal = Decimal("1.5")
    night_multiplier: Decimal = Decimal("0.5")
    holiday_multiplier: Decimal = Decimal("1.5")
    holiday_extended_multiplier: Decimal = Decimal("2.0")


class WeeklyRestRules(_RuleCategory):
    min_weekly_hours: Decimal = Decimal("15")
    weeks_per_month: Decimal = Decimal("4.345")


class NonTaxableCaps(_RuleCategory):
    meal: Decimal = Decimal("200000")
    transport: Decimal = Decimal("200000")
    childcare: Decimal = Decimal("200000")


class WorkTimeRules(_RuleCategory):
    daily_standard_hours: Decimal = Decimal("8")
    monthly_standard_hours: Decimal = Decimal("209")
    weekly_hour_limit: Decimal = Decimal("52")
    weekly_rest_day: int = Field(6, ge=0, le=6)  # date.weekday(); 6 = Sunday
    pay_volatility_threshold: Decimal = Decimal("0.30")


_CATEGORY_MODELS = {
    "minimum_wage": MinimumWageRules,
    "national_pension": NationalPensionRules,
    "health_insurance": HealthInsuranceRules,
    "long_term_care": LongTermCareRules,
    "employment_insurance": EmploymentInsuranceRules,
    "income_tax": IncomeTaxRules,
    "premiums": PremiumRules,
    "weekly_rest": WeeklyRestRules,
    "non_taxable": NonTaxableCaps,
    "work_time": WorkTimeRules,
}


class StatutoryRuleSet(BaseModel):
    """Point-in-time snapshot of every rule category."""

    model_config = ConfigDict(frozen=True)

    reference_date: date
    label: str = "default"

    minimum_wage: MinimumWageRules = MinimumWageRules()
    national_pension: NationalPensionRules = NationalPensionRules()
    health_insurance: HealthInsuranceRules = HealthInsuranceRules()
    long_term_care: LongTermCareRules = LongTermCareRules()
    employment_insurance: EmploymentInsuranceRules = EmploymentInsuranceRules()
    income_tax: IncomeTaxRules = IncomeTaxRules()
    premiums: PremiumRules = PremiumRules()
    weekly_rest: WeeklyRestRules = WeeklyRestRules()
    non_taxable: NonTaxableCaps = NonTaxableCaps()
    work_time: WorkTimeRules = WorkTimeRules()


def _partial(model: type) -> type:
    """Override model for a category: same fields, every one optional, unknown keys rejected."""
    fields = {name: (Optional[info.annotation], None) for name, info in model.model_fields.items()}
    return create_model(f"{model.__name__}Override", __base__=_RuleCategory, **fields)


MinimumWageOverride = _partial(MinimumWageRules)
NationalPensionOverride = _partial(NationalPensionRules)
HealthInsuranceOverride = _partial(HealthInsuranceRules)
LongTermCareOverride = _partial(LongTermCareRules)
EmploymentInsuranceOverride = _partial(EmploymentInsuranceRules)
IncomeTaxOverride = _partial(IncomeTaxRules)
PremiumOverride = _partial(PremiumRules)
WeeklyRestOverride = _partial(WeeklyRestRules)
NonTaxableOverride = _partial(NonTaxableCaps)
WorkTimeOverride = _partial(WorkTimeRules)


class RuleOverrides(BaseModel):
    """Partial overrides per category; unknown categories and fields are rejected."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    minimum_wage: Optional[MinimumWageOverride] = None
    national_pension: Optional[NationalPensionOverride] = None
    health_insurance: Optional[HealthInsuranceOverride] = None
    long_term_care: Optional[LongTermCareOverride] = None
    employment_insurance: Optional[EmploymentInsuranceOverride] = None
    income_tax: Optional[IncomeTaxOverride] = None
    premiums: Optional[PremiumOverride] = None
    weekly_rest: Optional[WeeklyRestOverride] = None
    non_taxable: Optional[NonTaxableOverride] = None
    work_time: Optional[WorkTimeOverride] = None

    def categories(self) -> Dict[str, Dict[str, Any]]:
        """{category: fields actually set}, empty patches dropped."""
        out: Dict[str, Dict[str, Any]] = {}
        for name in _CATEGORY_MODELS:
            patch = getattr(self, name)
            if patch is None:
                continue
            values = patch.model_dump(exclude_none=True)
            if values:
                out[name] = values
        return out


class RuleRecord(BaseModel):
    """One stored, date-scoped override record."""

    model_config = ConfigDict(frozen=True)

    label: str
    valid_from: date
    valid_to: Optional[date] = None  # None = open-ended
    overrides: RuleOverrides = RuleOverrides()

    def covers(self, day: date) -> bool:
        if day < self.valid_from:
            return False
        return self.valid_to is None or day <= self.valid_to


def parse_rule_record(raw: Dict[str, Any]) -> RuleRecord:
    """Validate a raw mapping (JSON / DB) into a RuleRecord, field names included."""
    try:
        record = RuleRecord.model_validate(raw)
        for name, patch in record.overrides.categories().items():
            _CATEGORY_MODELS[name].model_validate(patch)
    except ValidationError as exc:
        label = raw.get("label", "?") if isinstance(raw, dict) else "?"
        raise RuleConfigError(f"invalid rule record {label!r}: {exc}") from exc
    return record


def build_rule_set(reference_date: date, record: Optional[RuleRecord] = None) -> StatutoryRuleSet:
    """Defaults, with the record's overrides merged per category."""
    if record is None:
        return StatutoryRuleSet(reference_date=reference_date)

    merged: Dict[str, Any] = {}
    for name, patch in record.overrides.categories().items():
        model = _CATEGORY_MODELS[name]
        merged[name] = model.model_validate({**model().model_dump(), **patch})
    return StatutoryRuleSet(reference_date=reference_date, label=record.label, **merged)


__all__ = [
    "MinimumWageRules",
    "NationalPensionRules",
    "HealthInsuranceRules",
    "LongTermCareRules",
    "EmploymentInsuranceRules",
    "IncomeTaxRules",
    "PremiumRules",
    "WeeklyRestRules",
    "NonTaxableCaps",
    "WorkTimeRules",
    "StatutoryRuleSet",
    "RuleOverrides",
    "RuleRecord",
    "parse_rule_record",
    "build_rule_set",
]
