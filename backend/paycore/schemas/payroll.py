# backend/paycore/schemas/payroll.py
"""
Pydantic schemas for payroll calculation.

Covers:
- Compensation terms (input, owned by the caller)
- Attendance intervals (input)
- Hour breakdown (derived)
- Gross pay / deductions / employer contributions (derived)
- Pay result and batch result (output)

Notes:
- Monetary values use Decimal to avoid float rounding; pay items are whole won.
- Hours are Decimal with 2 decimal places.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ------------------------- Enum Literals (string) ------------------------- #
PayBasis = Literal["hourly", "daily", "monthly", "annual"]

Severity = Literal["critical", "warning", "info"]


# ------------------------------- Inputs ----------------------------------- #
class NonTaxableAllowances(BaseModel):
    model_config = ConfigDict(frozen=True)

    meal: Decimal = Field(default=Decimal("0"), ge=0)
    transport: Decimal = Field(default=Decimal("0"), ge=0, description="Car / self-driving allowance")
    childcare: Decimal = Field(default=Decimal("0"), ge=0)


class CompensationTerms(BaseModel):
    model_config = ConfigDict(frozen=True)

    basis: PayBasis
    amount: Decimal = Field(..., ge=0, description="Rate for the basis: per hour / day / month / year")
    non_taxable_allowances: NonTaxableAllowances = NonTaxableAllowances()
    birth_date: Optional[date] = None
    dependent_count: int = Field(default=1, ge=1, description="Dependents including the employee")
    hire_date: Optional[date] = None

    # contractual schedule, used for ordinary daily wage
    work_hours_per_day: Decimal = Field(default=Decimal("8"), gt=0)
    work_days_per_week: Decimal = Field(default=Decimal("5"), gt=0)


class AttendanceInterval(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime


# ------------------------------- Derived ---------------------------------- #
class HourBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    regular: Decimal = Decimal("0.00")
    overtime: Decimal = Decimal("0.00")
    night: Decimal = Decimal("0.00")
    holiday_regular: Decimal = Decimal("0.00")
    holiday_extended: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")  # worked hours; night excluded

    work_days: int = 0
    holiday_work_days: int = 0
    skipped_intervals: int = 0


class GrossPay(BaseModel):
    model_config = ConfigDict(frozen=True)

    basic_pay: Decimal
    weekly_rest_pay: Decimal
    overtime_pay: Decimal
    night_pay: Decimal
    holiday_pay: Decimal
    meal_allowance: Decimal
    transport_allowance: Decimal
    childcare_allowance: Decimal
    non_taxable_total: Decimal
    gross_pay: Decimal
    taxable_income: Decimal


class DeductionSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    pension: Decimal = Decimal("0")
    health: Decimal = Decimal("0")
    long_term_care: Decimal = Decimal("0")
    employment: Decimal = Decimal("0")
    income_tax: Decimal = Decimal("0")
    local_tax: Decimal = Decimal("0")

    pension_exempt_reason: Optional[Literal["age", "short_time"]] = None
    employment_exempt: bool = False
    income_tax_source: Literal["table", "formula", "none"] = "none"

    @property
    def total(self) -> Decimal:
        return (
            self.pension
            + self.health
            + self.long_term_care
            + self.employment
            + self.income_tax
            + self.local_tax
        )


class EmployerContributions(BaseModel):
    model_config = ConfigDict(frozen=True)

    pension: Decimal = Decimal("0")
    health: Decimal = Decimal("0")
    long_term_care: Decimal = Decimal("0")
    employment: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.pension + self.health + self.long_term_care + self.employment


class PayWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    severity: Severity
    message: str
    value: Optional[Decimal] = None


# ------------------------------- Outputs ---------------------------------- #
class PayResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    reference_date: date
    rules_label: str
    basis: PayBasis
    hourly_rate: Decimal
    hours: HourBreakdown

    basic_pay: Decimal
    weekly_rest_pay: Decimal
    overtime_pay: Decimal
    night_pay: Decimal
    holiday_pay: Decimal
    non_taxable_total: Decimal
    gross_pay: Decimal
    taxable_income: Decimal

    deductions: DeductionSet
    total_deductions: Decimal
    net_pay: Decimal
    employer_contributions: EmployerContributions

    warnings: List[PayWarning] = Field(default_factory=list)


class PayrollBatchEntry(BaseModel):
    employee_id: Any
    terms: Optional[CompensationTerms] = None
    intervals: List[AttendanceInterval] = Field(default_factory=list)
    previous_gross: Optional[Decimal] = None


class PayrollBatchError(BaseModel):
    employee_id: Any
    error: str


class PayrollBatchItem(BaseModel):
    employee_id: Any
    result: PayResult


class PayrollBatchSummary(BaseModel):
    total_employees: int = 0
    calculated: int = 0
    failed: int = 0
    total_gross: Decimal = Decimal("0")
    total_deductions: Decimal = Decimal("0")
    total_net: Decimal = Decimal("0")
    total_employer_cost: Decimal = Decimal("0")
    total_labor_cost: Decimal = Decimal("0")


class PayrollBatchResult(BaseModel):
    reference_date: date
    rules_label: str
    summary: PayrollBatchSummary
    results: List[PayrollBatchItem] = Field(default_factory=list)
    errors: List[PayrollBatchError] = Field(default_factory=list)
