# backend/paycore/services/gross_pay.py
"""
Gross pay composer.

    basic          hourly: regular h x rate
                   daily : (days worked - holiday days) x daily rate
                   monthly / annual: the fixed period salary, hours ignored
    weekly rest    hourly/daily only, when total h / days x 5 >= threshold:
                   floor(total h / days x rate x 4.345)
    premiums       overtime h x rate x 1.5
                   night h x rate x 0.5 (surcharge; hours already paid elsewhere)
                   holiday h<=8 x rate x 1.5 + holiday h>8 x rate x 2.0
    non-taxable    min(declared, cap) per category

Each item is truncated to whole won on its own before summing.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from paycore.schemas.payroll import CompensationTerms, GrossPay, HourBreakdown
from paycore.schemas.rules import StatutoryRuleSet
from paycore.services.money import ZERO, D, floor_won, safe_div
from paycore.services.wages import monthly_salary

logger = logging.getLogger(__name__)

WEEKDAYS_PER_WEEK = Decimal("5")


def basic_pay(breakdown: HourBreakdown, hourly_rate: Decimal, terms: CompensationTerms) -> Decimal:
    if terms.basis == "hourly":
        return floor_won(breakdown.regular * hourly_rate)
    if terms.basis == "daily":
        days = max(breakdown.work_days - breakdown.holiday_work_days, 0)
        return floor_won(Decimal(days) * D(terms.amount))
    return floor_won(monthly_salary(terms))


def average_weekly_hours(breakdown: HourBreakdown) -> Decimal:
    """Total hours / days worked x 5; zero when nothing was worked."""
    return safe_div(breakdown.total, breakdown.work_days) * WEEKDAYS_PER_WEEK


def weekly_rest_pay(
    breakdown: HourBreakdown,
    hourly_rate: Decimal,
    terms: CompensationTerms,
    rules: StatutoryRuleSet,
) -> Decimal:
    if terms.basis not in ("hourly", "daily"):
        return ZERO
    if breakdown.work_days <= 0:
        return ZERO
    if average_weekly_hours(breakdown) < rules.weekly_rest.min_weekly_hours:
        return ZERO
    avg_daily = safe_div(breakdown.total, breakdown.work_days)
    return floor_won(avg_daily * hourly_rate * rules.weekly_rest.weeks_per_month)


def premium_pays(breakdown: HourBreakdown, hourly_rate: Decimal, rules: StatutoryRuleSet) -> dict:
    p = rules.premiums
    return {
        "overtime_pay": floor_won(breakdown.overtime * hourly_rate * p.overtime_multiplier),
        "night_pay": floor_won(breakdown.night * hourly_rate * p.night_multiplier),
        "holiday_pay": floor_won(
            breakdown.holiday_regular * hourly_rate * p.holiday_multiplier
            + breakdown.holiday_extended * hourly_rate * p.holiday_extended_multiplier
        ),
    }


def non_taxable_allowances(terms: CompensationTerms, rules: StatutoryRuleSet) -> dict:
    declared = terms.non_taxable_allowances
    caps = rules.non_taxable
    return {
        "meal_allowance": floor_won(min(D(declared.meal), caps.meal)),
        "transport_allowance": floor_won(min(D(declared.transport), caps.transport)),
        "childcare_allowance": floor_won(min(D(declared.childcare), caps.childcare)),
    }


def compose(
    breakdown: HourBreakdown,
    hourly_rate: Decimal,
    terms: CompensationTerms,
    rules: StatutoryRuleSet,
) -> GrossPay:
    basic = basic_pay(breakdown, hourly_rate, terms)
    rest = weekly_rest_pay(breakdown, hourly_rate, terms, rules)
    premiums = premium_pays(breakdown, hourly_rate, rules)
    allowances = non_taxable_allowances(terms, rules)

    non_taxable_total = sum(allowances.values(), ZERO)
    gross = basic + rest + sum(premiums.values(), ZERO) + non_taxable_total

    logger.debug(
        "gross pay basis=%s basic=%s rest=%s premiums=%s non_taxable=%s",
        terms.basis, basic, rest, premiums, non_taxable_total,
    )
    return GrossPay(
        basic_pay=basic,
        weekly_rest_pay=rest,
        **premiums,
        **allowances,
        non_taxable_total=non_taxable_total,
        gross_pay=gross,
        taxable_income=gross - non_taxable_total,
    )


__all__ = [
    "basic_pay",
    "average_weekly_hours",
    "weekly_rest_pay",
    "premium_pays",
    "non_taxable_allowances",
    "compose",
]
