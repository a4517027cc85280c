# backend/paycore/services/severance_tax.py
"""
Retirement income tax (8 steps) and the IRP annuity simulation.

    1) retirement income          = severance pay (no non-taxable portion)
    2) service-year deduction     on ceil(service years)
    3) converted salary           floor(max(1 - 2, 0) x 12 / ceil(years))
    4) converted-salary deduction 100% to 8M, then 60 / 55 / 45 / 35% bands
    5) tax base                   max(3 - 4, 0)
    6) converted tax              8-band progressive table
    7) income tax                 floor(6 x ceil(years) / 12)
    8) local income tax           floor(7 x 10%)

Service years are counted from service days; a started year counts in full.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from paycore.schemas.severance import IrpTaxBenefit, SeveranceTaxBreakdown
from paycore.services.deductions import progressive_tax
from paycore.services.money import ZERO, D, floor_won

DAYS_PER_YEAR = 365
MONTHS_PER_YEAR = Decimal("12")
DEFAULT_LOCAL_TAX_RATE = Decimal("0.1")

# (upper bound or None, base amount, marginal rate on the excess over the previous bound)
CONVERTED_DEDUCTION_BANDS = (
    (Decimal("8000000"), Decimal("0"), Decimal("1")),
    (Decimal("70000000"), Decimal("8000000"), Decimal("0.60")),
    (Decimal("100000000"), Decimal("45200000"), Decimal("0.55")),
    (Decimal("300000000"), Decimal("61700000"), Decimal("0.45")),
    (None, Decimal("151700000"), Decimal("0.35")),
)


def ceil_service_years(service_days: int) -> int:
    """Whole service years, a started year counting in full; at least 1."""
    return max(-(-int(service_days) // DAYS_PER_YEAR), 1)


def service_years_deduction(years: int) -> Decimal:
    if years <= 5:
        return Decimal(1_000_000 * years)
    if years <= 10:
        return Decimal(5_000_000 + 2_000_000 * (years - 5))
    if years <= 20:
        return Decimal(15_000_000 + 2_500_000 * (years - 10))
    return Decimal(40_000_000 + 3_000_000 * (years - 20))


def converted_salary(retirement_income: Decimal, deduction: Decimal, years: int) -> Decimal:
    base = max(D(retirement_income) - D(deduction), ZERO)
    return floor_won(base * MONTHS_PER_YEAR / Decimal(years))


def converted_deduction(salary: Decimal) -> Decimal:
    s = D(salary)
    lower = ZERO
    for upper, base, rate in CONVERTED_DEDUCTION_BANDS:
        if upper is None or s <= upper:
            return base + floor_won((s - lower) * rate)
        lower = upper
    return ZERO  # unreachable


def calculate_severance_tax(
    severance_pay: Decimal | int,
    service_days: int,
    local_tax_rate: Optional[Decimal] = None,
) -> SeveranceTaxBreakdown:
    years = ceil_service_years(service_days)
    income = floor_won(severance_pay)

    deduction = service_years_deduction(years)
    salary = converted_salary(income, deduction, years)
    conv_deduction = converted_deduction(salary)
    tax_base = max(salary - conv_deduction, ZERO)
    conv_tax = floor_won(progressive_tax(tax_base))
    income_tax = floor_won(conv_tax * Decimal(years) / MONTHS_PER_YEAR)
    rate = DEFAULT_LOCAL_TAX_RATE if local_tax_rate is None else D(local_tax_rate)
    local_tax = floor_won(income_tax * rate)

    return SeveranceTaxBreakdown(
        retirement_income=income,
        service_years_deduction=deduction,
        converted_salary=salary,
        converted_deduction=conv_deduction,
        tax_base=tax_base,
        converted_tax=conv_tax,
        income_tax=income_tax,
        local_tax=local_tax,
        total_tax=income_tax + local_tax,
    )


def calc_irp_tax_benefit(income_tax: Decimal | int) -> IrpTaxBenefit:
    """Tax owed by payout method when severance goes to an IRP account (informational)."""
    tax = D(income_tax)
    return IrpTaxBenefit(
        lump_sum=floor_won(tax),
        annuity_within_10=floor_won(tax * Decimal("0.7")),
        annuity_over_10=floor_won(tax * Decimal("0.6")),
        saving_within_10=floor_won(tax * Decimal("0.3")),
        saving_over_10=floor_won(tax * Decimal("0.4")),
    )


__all__ = [
    "ceil_service_years",
    "service_years_deduction",
    "converted_salary",
    "converted_deduction",
    "calculate_severance_tax",
    "calc_irp_tax_benefit",
]
