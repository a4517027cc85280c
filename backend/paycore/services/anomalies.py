# backend/paycore/services/anomalies.py
"""
Anomaly detector: advisory warnings attached to a pay result.

Each rule is independent and never blocks the calculation:
    MIN_WAGE            critical  effective hourly rate below the statutory minimum
    OVERTIME_LIMIT      critical  average weekly hours over the period > 52
    PAY_VOLATILITY      warning   |gross - previous gross| / previous gross > 30%
    PENSION_SHORT_TIME  info      pension skipped for < 60 monthly hours
    INVALID_INTERVALS   warning   attendance intervals were skipped
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from paycore.schemas.payroll import DeductionSet, HourBreakdown, PayWarning
from paycore.schemas.rules import StatutoryRuleSet
from paycore.services.money import D, hours2, round2, safe_div

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = Decimal("7")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class WarningContext:
    rules: StatutoryRuleSet
    hourly_rate: Decimal
    hours: HourBreakdown
    gross_pay: Decimal
    deductions: DeductionSet
    period_start: date
    period_end: date
    previous_gross: Optional[Decimal] = None

    @property
    def period_days(self) -> int:
        return max((self.period_end - self.period_start).days + 1, 1)


def month_bounds(reference_date: date) -> tuple:
    last = calendar.monthrange(reference_date.year, reference_date.month)[1]
    return reference_date.replace(day=1), reference_date.replace(day=last)


def average_weekly_hours(total_hours: Decimal, period_days: int) -> Decimal:
    weeks = safe_div(Decimal(period_days), DAYS_PER_WEEK)
    return hours2(safe_div(total_hours, weeks))


# ---------------------------- Rules ---------------------------- #

def _check_minimum_wage(ctx: WarningContext) -> Optional[PayWarning]:
    minimum = ctx.rules.minimum_wage.hourly
    if D(ctx.hourly_rate) >= minimum:
        return None
    return PayWarning(
        code="MIN_WAGE",
        severity="critical",
        message=f"hourly rate {ctx.hourly_rate:.2f} is below the minimum wage {minimum}",
        value=D(ctx.hourly_rate),
    )


def _check_overtime_limit(ctx: WarningContext) -> Optional[PayWarning]:
    weekly = average_weekly_hours(ctx.hours.total, ctx.period_days)
    limit = ctx.rules.work_time.weekly_hour_limit
    if weekly <= limit:
        return None
    return PayWarning(
        code="OVERTIME_LIMIT",
        severity="critical",
        message=f"average {weekly} hours/week exceeds the {limit}-hour weekly limit",
        value=weekly,
    )


def _check_pay_volatility(ctx: WarningContext) -> Optional[PayWarning]:
    if ctx.previous_gross is None:
        return None
    previous = D(ctx.previous_gross)
    if previous <= 0:
        return None
    change = abs(D(ctx.gross_pay) - previous) / previous
    if change <= ctx.rules.work_time.pay_volatility_threshold:
        return None
    pct = round2(change * HUNDRED)
    return PayWarning(
        code="PAY_VOLATILITY",
        severity="warning",
        message=f"gross pay changed {pct}% against the previous period",
        value=pct,
    )


def _check_pension_short_time(ctx: WarningContext) -> Optional[PayWarning]:
    if ctx.deductions.pension_exempt_reason != "short_time":
        return None
    return PayWarning(
        code="PENSION_SHORT_TIME",
        severity="info",
        message="national pension not withheld: under 60 working hours in the month",
        value=ctx.hours.total,
    )


def _check_invalid_intervals(ctx: WarningContext) -> Optional[PayWarning]:
    skipped = ctx.hours.skipped_intervals
    if not skipped:
        return None
    return PayWarning(
        code="INVALID_INTERVALS",
        severity="warning",
        message=f"{skipped} attendance interval(s) were reversed or overlapping and counted as zero",
        value=Decimal(skipped),
    )


_RULES = (
    _check_minimum_wage,
    _check_overtime_limit,
    _check_pay_volatility,
    _check_pension_short_time,
    _check_invalid_intervals,
)


def detect_warnings(ctx: WarningContext) -> List[PayWarning]:
    warnings: List[PayWarning] = []
    for rule in _RULES:
        found = rule(ctx)
        if found is not None:
            warnings.append(found)
    if warnings:
        logger.info("payroll warnings: %s", ", ".join(w.code for w in warnings))
    return warnings


__all__ = ["WarningContext", "detect_warnings", "month_bounds", "average_weekly_hours"]
