# backend/paycore/schemas/severance.py
"""
Pydantic schemas for severance (retirement pay) calculation.

Covers:
- Monthly wage records for the 3-month lookback (input)
- Exclusion periods such as unpaid leave (input)
- Severance request (input)
- Average-wage detail, termination tax breakdown, IRP simulation (derived)
- Severance result (output; `ineligible` results carry only the service period)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from paycore.schemas.payroll import CompensationTerms, PayWarning

SeveranceStatus = Literal["ineligible", "computed"]


# ------------------------------- Inputs ----------------------------------- #
class MonthlyWageRecord(BaseModel):
    """One month of paid wages inside the lookback window (a stored PayResult, typically)."""

    model_config = ConfigDict(frozen=True)

    year: Optional[int] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    basic_pay: Decimal = Decimal("0")
    overtime_pay: Decimal = Decimal("0")
    night_pay: Decimal = Decimal("0")
    holiday_pay: Decimal = Decimal("0")
    meal_allowance: Decimal = Decimal("0")
    car_allowance: Decimal = Decimal("0")
    unused_leave_pay: Decimal = Decimal("0")


class ExclusionPeriod(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_date: date
    end_date: date
    excluded_days: Optional[int] = Field(default=None, ge=1, description="Defaults to the period's own span")
    excluded_wage: Decimal = Decimal("0")


class SeveranceRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    terms: Optional[CompensationTerms] = None
    hire_date: Optional[date] = None  # falls back to terms.hire_date
    retirement_date: date
    payroll_records: List[MonthlyWageRecord] = Field(default_factory=list)
    exclusions: List[ExclusionPeriod] = Field(default_factory=list)
    include_bonus: bool = True
    annual_bonus: Decimal = Field(default=Decimal("0"), ge=0)
    irp_account: Optional[str] = None
    as_of: Optional[date] = None  # "today" for the overdue check; skipped when None


# ------------------------------- Derived ---------------------------------- #
class AverageWageDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    period_start: date
    period_end: date
    period_days: int
    excluded_days: int
    adjusted_days: int
    excluded_wage: Decimal

    base_pay_3m: Decimal
    allowance_3m: Decimal
    bonus_3m: Decimal
    bonus_included: bool
    unused_leave_pay: Decimal
    total_wage_3m: Decimal
    estimated_months: int = 0


class SeveranceTaxBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    retirement_income: Decimal
    service_years_deduction: Decimal
    converted_salary: Decimal
    converted_deduction: Decimal
    tax_base: Decimal
    converted_tax: Decimal
    income_tax: Decimal
    local_tax: Decimal
    total_tax: Decimal


class IrpTaxBenefit(BaseModel):
    model_config = ConfigDict(frozen=True)

    lump_sum: Decimal
    annuity_within_10: Decimal
    annuity_over_10: Decimal
    saving_within_10: Decimal
    saving_over_10: Decimal


# ------------------------------- Output ----------------------------------- #
class SeveranceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: SeveranceStatus
    hire_date: date
    retirement_date: date
    service_days: int
    service_years: Decimal  # days / 365, 4 dp

    average_wage: Optional[AverageWageDetail] = None
    average_daily_wage: Optional[Decimal] = None
    ordinary_daily_wage: Optional[Decimal] = None
    applied_daily_wage: Optional[Decimal] = None
    used_ordinary_wage: bool = False

    severance_pay: Optional[Decimal] = None
    tax_breakdown: Optional[SeveranceTaxBreakdown] = None
    net_severance_pay: Optional[Decimal] = None

    payment_due_date: Optional[date] = None
    irp_benefit: Optional[IrpTaxBenefit] = None
    warnings: List[PayWarning] = Field(default_factory=list)
