# backend/paycore/services/wages.py
"""
Wage normalizer.

Any compensation basis -> effective hourly rate (premiums are always legally
based on the hourly-equivalent rate):
    monthly -> amount / 209
    annual  -> amount / 12 / 209
    daily   -> amount / 8
    hourly  -> amount
(209 and 8 are rule-set constants: 40h week + paid weekly rest, 8h day.)

Also the ordinary daily wage used as the severance floor.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from paycore.exceptions import PayrollInputError
from paycore.schemas.payroll import CompensationTerms
from paycore.schemas.rules import StatutoryRuleSet
from paycore.services.money import ZERO, D, floor_won, safe_div

MONTHS_PER_YEAR = Decimal("12")
DAYS_PER_MONTH = Decimal("30")


def validate_terms(terms: CompensationTerms | None) -> CompensationTerms:
    if terms is None:
        raise PayrollInputError("compensation terms are required")
    if D(terms.amount) <= 0:
        raise PayrollInputError(f"compensation amount must be positive (got {terms.amount})")
    return terms


def monthly_salary(terms: CompensationTerms) -> Decimal:
    """Fixed period salary for monthly/annual contracts (unrounded)."""
    if terms.basis == "monthly":
        return D(terms.amount)
    if terms.basis == "annual":
        return D(terms.amount) / MONTHS_PER_YEAR
    return ZERO


def normalize(terms: CompensationTerms, rules: StatutoryRuleSet) -> Decimal:
    """Effective hourly rate, full precision (callers truncate the money they derive from it)."""
    monthly_hours = rules.work_time.monthly_standard_hours
    daily_hours = rules.work_time.daily_standard_hours
    amount = D(terms.amount)

    if terms.basis == "hourly":
        return amount
    if terms.basis == "daily":
        return safe_div(amount, daily_hours)
    if terms.basis == "monthly":
        return safe_div(amount, monthly_hours)
    if terms.basis == "annual":
        return safe_div(amount / MONTHS_PER_YEAR, monthly_hours)
    raise PayrollInputError(f"unknown pay basis: {terms.basis}")


def contractual_monthly_hours(terms: CompensationTerms) -> Decimal:
    """(weekly hours + one paid rest day) x 365 / 7 / 12, rounded; 209 for 8h x 5d."""
    hpd = D(terms.work_hours_per_day)
    weekly = hpd * D(terms.work_days_per_week)
    hours = (weekly + hpd) * Decimal("365") / Decimal("7") / MONTHS_PER_YEAR
    return hours.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def ordinary_daily_wage(terms: CompensationTerms) -> Decimal:
    amount = D(terms.amount)
    if terms.basis == "monthly":
        return floor_won(amount / DAYS_PER_MONTH)
    if terms.basis == "annual":
        return floor_won(amount / MONTHS_PER_YEAR / DAYS_PER_MONTH)
    if terms.basis == "hourly":
        return floor_won(amount * contractual_monthly_hours(terms) / DAYS_PER_MONTH)
    if terms.basis == "daily":
        return floor_won(amount)
    return ZERO


__all__ = [
    "validate_terms",
    "monthly_salary",
    "normalize",
    "contractual_monthly_hours",
    "ordinary_daily_wage",
]
