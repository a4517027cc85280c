# backend/paycore/services/deductions.py
"""
Statutory deductions: four social insurances + withholding tax.

Employee shares (all truncated to 10 won):
    • National pension   clamp(income, lower, upper) x rate
                         skipped at age >= 60 or under 60 monthly hours
    • Health insurance   income x rate
    • Long-term care     health premium x rate
    • Employment ins.    income x rate, skipped at age >= 65
    • Income tax         simplified table (year, dependents, income) when a row
                         exists; otherwise annualised progressive formula
    • Local income tax   income tax x 10%

Employer shares use the same bases and gates with the employer rates.
Unknown age (no birth date) never triggers an exemption.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Dict, Optional, Tuple

from paycore.schemas.payroll import DeductionSet, EmployerContributions
from paycore.schemas.rules import StatutoryRuleSet
from paycore.services.money import ZERO, D, floor10

logger = logging.getLogger(__name__)

TaxLookup = Callable[[int, int, Decimal], Optional[Decimal]]

MONTHS_PER_YEAR = Decimal("12")

# (upper bound of band or None, rate, cumulative deduction)
PROGRESSIVE_BRACKETS: Tuple[Tuple[Optional[Decimal], Decimal, Decimal], ...] = (
    (Decimal("14000000"), Decimal("0.06"), Decimal("0")),
    (Decimal("50000000"), Decimal("0.15"), Decimal("1260000")),
    (Decimal("88000000"), Decimal("0.24"), Decimal("5760000")),
    (Decimal("150000000"), Decimal("0.35"), Decimal("15440000")),
    (Decimal("300000000"), Decimal("0.38"), Decimal("19940000")),
    (Decimal("500000000"), Decimal("0.40"), Decimal("25940000")),
    (Decimal("1000000000"), Decimal("0.42"), Decimal("35940000")),
    (None, Decimal("0.45"), Decimal("65940000")),
)


def progressive_tax(base: Decimal | int) -> Decimal:
    """Annual tax on `base` via the 8-band table (rate x base - cumulative deduction). Unrounded."""
    b = D(base)
    if b <= 0:
        return ZERO
    for upper, rate, deduction in PROGRESSIVE_BRACKETS:
        if upper is None or b <= upper:
            return max(b * rate - deduction, ZERO)
    return ZERO  # unreachable: last band is open


# ---------------------------- Gates ---------------------------- #

def pension_exempt_reason(
    age: Optional[int],
    monthly_hours: Optional[Decimal],
    rules: StatutoryRuleSet,
) -> Optional[str]:
    np = rules.national_pension
    if age is not None and age >= np.exemption_age:
        return "age"
    if monthly_hours is not None and D(monthly_hours) < np.short_time_monthly_hours:
        return "short_time"
    return None


def employment_exempt(age: Optional[int], rules: StatutoryRuleSet) -> bool:
    return age is not None and age >= rules.employment_insurance.exemption_age


def pension_base(income: Decimal, rules: StatutoryRuleSet) -> Decimal:
    np = rules.national_pension
    return min(max(D(income), np.lower_limit), np.upper_limit)


# ---------------------------- Income tax ---------------------------- #

def formula_income_tax(monthly_income: Decimal, dependents: int, rules: StatutoryRuleSet) -> Decimal:
    annual = D(monthly_income) * MONTHS_PER_YEAR
    taxable = annual - Decimal(dependents) * rules.income_tax.personal_deduction
    return floor10(progressive_tax(taxable) / MONTHS_PER_YEAR)


def withholding_income_tax(
    monthly_income: Decimal,
    dependents: int,
    rules: StatutoryRuleSet,
    reference_year: int,
    tax_lookup: Optional[TaxLookup] = None,
) -> Tuple[Decimal, str]:
    """(tax, source) with source in {'table', 'formula', 'none'}."""
    income = D(monthly_income)
    if income <= 0:
        return ZERO, "none"

    if tax_lookup is not None:
        table_dependents = min(max(dependents, 1), rules.income_tax.max_table_dependents)
        amount = tax_lookup(reference_year, table_dependents, income)
        if amount is not None:
            return floor10(amount), "table"
        logger.debug(
            "no withholding table row for %s/%s/%s; using formula", reference_year, table_dependents, income
        )

    return formula_income_tax(income, dependents, rules), "formula"


# ---------------------------- Aggregates ---------------------------- #

def compute_deductions(
    taxable_income: Decimal | int,
    age: Optional[int],
    dependents: int,
    rules: StatutoryRuleSet,
    reference_year: int,
    monthly_hours: Optional[Decimal] = None,
    tax_lookup: Optional[TaxLookup] = None,
) -> DeductionSet:
    income = max(D(taxable_income), ZERO)

    pension_reason = pension_exempt_reason(age, monthly_hours, rules)
    pension = ZERO
    if pension_reason is None and income > 0:
        pension = floor10(pension_base(income, rules) * rules.national_pension.employee_rate)

    health = floor10(income * rules.health_insurance.employee_rate)
    ltc = floor10(health * rules.long_term_care.rate)

    emp_exempt = employment_exempt(age, rules)
    employment = ZERO if emp_exempt else floor10(income * rules.employment_insurance.employee_rate)

    income_tax, source = withholding_income_tax(income, dependents, rules, reference_year, tax_lookup)
    local_tax = floor10(income_tax * rules.income_tax.local_tax_rate)

    return DeductionSet(
        pension=pension,
        health=health,
        long_term_care=ltc,
        employment=employment,
        income_tax=income_tax,
        local_tax=local_tax,
        pension_exempt_reason=pension_reason,
        employment_exempt=emp_exempt,
        income_tax_source=source,
    )


def compute_employer_contributions(
    taxable_income: Decimal | int,
    age: Optional[int],
    rules: StatutoryRuleSet,
    monthly_hours: Optional[Decimal] = None,
) -> EmployerContributions:
    income = max(D(taxable_income), ZERO)

    pension = ZERO
    if pension_exempt_reason(age, monthly_hours, rules) is None and income > 0:
        pension = floor10(pension_base(income, rules) * rules.national_pension.employer_rate)

    health = floor10(income * rules.health_insurance.employer_rate)
    ltc = floor10(health * rules.long_term_care.rate)
    employment = ZERO
    if not employment_exempt(age, rules):
        employment = floor10(income * rules.employment_insurance.employer_rate)

    return EmployerContributions(pension=pension, health=health, long_term_care=ltc, employment=employment)


def deduction_lines(deductions: DeductionSet) -> Dict[str, Decimal]:
    """Flat {code: amount} view for payslip rendering."""
    return {
        "NATIONAL_PENSION": deductions.pension,
        "HEALTH_INSURANCE": deductions.health,
        "LONG_TERM_CARE": deductions.long_term_care,
        "EMPLOYMENT_INSURANCE": deductions.employment,
        "INCOME_TAX": deductions.income_tax,
        "LOCAL_INCOME_TAX": deductions.local_tax,
    }


__all__ = [
    "PROGRESSIVE_BRACKETS",
    "TaxLookup",
    "progressive_tax",
    "pension_exempt_reason",
    "employment_exempt",
    "pension_base",
    "formula_income_tax",
    "withholding_income_tax",
    "compute_deductions",
    "compute_employer_contributions",
    "deduction_lines",
]
