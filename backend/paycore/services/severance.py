# backend/paycore/services/severance.py
"""
Severance (retirement pay) calculator.

Flow:
    1) service period   days = retirement - hire + 1, eligible at >= 365 days
                        (ineligible -> result with the period only)
    2) lookback window  the 3 calendar months ending on the retirement date
    3) exclusions       unpaid leave etc.: overlapping days and pro-rated wage
                        come out of the window
    4) wages            latest 3 monthly records in the window (newest first);
                        base + fixed allowances + premiums + 3/12 of the annual
                        bonus + unused-leave pay; missing months are estimated
                        from the contract salary (flagged)
    5) daily wage       max(floor(total / days), ordinary daily wage)
    6) severance        floor(daily x 30 x service days / 365)
    7) tax              severance_tax.calculate_severance_tax
    8) extras           payment due date (+14 days), IRP simulation, warnings

Notes:
- Uses the local-tax rate of the rule set valid on the retirement date.
- The overdue check needs the caller's `as_of` date; skipped without it.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from paycore.exceptions import PayrollInputError
from paycore.schemas.payroll import CompensationTerms, PayWarning
from paycore.schemas.severance import (
    AverageWageDetail,
    ExclusionPeriod,
    MonthlyWageRecord,
    SeveranceRequest,
    SeveranceResult,
)
from paycore.services.money import ONE, ZERO, D, floor_won
from paycore.services.payroll_rules import RuleSource, RuleStore
from paycore.services.severance_tax import calc_irp_tax_benefit, calculate_severance_tax
from paycore.services.wages import contractual_monthly_hours, monthly_salary, ordinary_daily_wage

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = Decimal("365")
DAYS_PER_MONTH = Decimal("30")
LOOKBACK_MONTHS = 3
MIN_SERVICE_DAYS = 365
PAYMENT_DEADLINE_DAYS = 14


# ---------------------------- Periods ---------------------------- #

def subtract_months(day: date, months: int) -> date:
    """Subtract `months` calendar months, clamping the day to the target month's last day."""
    month = day.month - months
    year = day.year
    while month <= 0:
        month += 12
        year -= 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def calc_service_period(hire_date: date, retirement_date: date) -> Tuple[int, Decimal, bool]:
    """(service days incl. both ends, service years to 4 dp, eligible)."""
    days = (retirement_date - hire_date).days + 1
    years = (Decimal(days) / DAYS_PER_YEAR).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
    return days, years, days >= MIN_SERVICE_DAYS


def average_wage_period(retirement_date: date) -> Tuple[date, date, int]:
    start = subtract_months(retirement_date, LOOKBACK_MONTHS) + timedelta(days=1)
    return start, retirement_date, (retirement_date - start).days + 1


def apply_exclusion_periods(
    period_start: date,
    period_end: date,
    base_days: int,
    exclusions: Iterable[ExclusionPeriod] = (),
) -> Tuple[int, int, Decimal]:
    """(adjusted days >= 1, excluded days, excluded wage) for the lookback window."""
    excluded_days = 0
    excluded_wage = ZERO
    for ex in exclusions:
        lo = max(ex.start_date, period_start)
        hi = min(ex.end_date, period_end)
        if lo > hi:
            continue
        overlap = (hi - lo).days + 1
        span = ex.excluded_days or max((ex.end_date - ex.start_date).days + 1, 1)
        excluded_days += overlap
        excluded_wage += floor_won(D(ex.excluded_wage) * Decimal(overlap) / Decimal(span))
    return max(base_days - excluded_days, 1), excluded_days, excluded_wage


# ---------------------------- Wages ---------------------------- #

def estimated_monthly_wage(terms: CompensationTerms) -> Decimal:
    """Contract salary for one month, used to fill months with no payroll record."""
    if terms.basis in ("monthly", "annual"):
        return floor_won(monthly_salary(terms))
    hours = contractual_monthly_hours(terms)
    if terms.basis == "hourly":
        return floor_won(D(terms.amount) * hours)
    return floor_won(D(terms.amount) * hours / D(terms.work_hours_per_day))


def _in_window(record: MonthlyWageRecord, period_start: date, period_end: date) -> bool:
    key = (record.year, record.month)
    return (period_start.year, period_start.month) <= key <= (period_end.year, period_end.month)


def select_lookback_records(
    records: Sequence[MonthlyWageRecord],
    period_start: Optional[date] = None,
    period_end: Optional[date] = None,
) -> List[MonthlyWageRecord]:
    """Newest-first records inside the window; undated records follow in caller order."""
    dated = [r for r in records if r.year is not None and r.month is not None]
    undated = [r for r in records if r.year is None or r.month is None]
    if period_start is not None and period_end is not None:
        dropped = [r for r in dated if not _in_window(r, period_start, period_end)]
        if dropped:
            logger.debug("severance: %d wage record(s) outside %s..%s ignored", len(dropped), period_start, period_end)
        dated = [r for r in dated if _in_window(r, period_start, period_end)]
    dated.sort(key=lambda r: (r.year, r.month), reverse=True)
    return (dated + undated)[:LOOKBACK_MONTHS]


def fill_missing_months(
    records: Sequence[MonthlyWageRecord],
    terms: Optional[CompensationTerms],
    period_start: Optional[date] = None,
    period_end: Optional[date] = None,
) -> Tuple[List[MonthlyWageRecord], int]:
    filled = select_lookback_records(records, period_start, period_end)
    missing = LOOKBACK_MONTHS - len(filled)
    if missing <= 0 or terms is None:
        return filled, 0
    estimate = MonthlyWageRecord(basic_pay=estimated_monthly_wage(terms))
    filled.extend([estimate] * missing)
    logger.info("severance: %d month(s) of wages estimated from the contract salary", missing)
    return filled, missing


def build_wage_components(
    records: Iterable[MonthlyWageRecord],
    *,
    include_bonus: bool = True,
    annual_bonus: Decimal | int = 0,
) -> Dict[str, Decimal]:
    base = allowance = unused_leave = ZERO
    for r in records:
        base += D(r.basic_pay)
        allowance += (
            D(r.overtime_pay)
            + D(r.night_pay)
            + D(r.holiday_pay)
            + D(r.meal_allowance)
            + D(r.car_allowance)
        )
        unused_leave += D(r.unused_leave_pay)

    bonus = ZERO
    if include_bonus and D(annual_bonus) > 0:
        bonus = floor_won(D(annual_bonus) * Decimal(LOOKBACK_MONTHS) / Decimal("12"))

    return {
        "base_pay_3m": base,
        "allowance_3m": allowance,
        "bonus_3m": bonus,
        "unused_leave_pay": unused_leave,
        "total_wage_3m": base + allowance + bonus + unused_leave,
    }


def calculate_average_wage(
    retirement_date: date,
    records: Sequence[MonthlyWageRecord],
    *,
    terms: Optional[CompensationTerms] = None,
    exclusions: Iterable[ExclusionPeriod] = (),
    include_bonus: bool = True,
    annual_bonus: Decimal | int = 0,
) -> Tuple[AverageWageDetail, Decimal]:
    """(detail, average daily wage)."""
    start, end, days = average_wage_period(retirement_date)
    adjusted, excluded_days, excluded_wage = apply_exclusion_periods(start, end, days, exclusions)

    effective, estimated = fill_missing_months(records, terms, start, end)
    wages = build_wage_components(effective, include_bonus=include_bonus, annual_bonus=annual_bonus)

    total = max(wages["total_wage_3m"] - excluded_wage, ZERO)
    average = floor_won(total / Decimal(adjusted)) if total > 0 else ZERO

    detail = AverageWageDetail(
        period_start=start,
        period_end=end,
        period_days=days,
        excluded_days=excluded_days,
        adjusted_days=adjusted,
        excluded_wage=excluded_wage,
        bonus_included=include_bonus,
        estimated_months=estimated,
        **wages,
    )
    return detail, average


def calculate_severance_pay(applied_daily_wage: Decimal, service_days: int) -> Decimal:
    return floor_won(D(applied_daily_wage) * DAYS_PER_MONTH * Decimal(service_days) / DAYS_PER_YEAR)


def calculate_dc_contribution(annual_records: Iterable[MonthlyWageRecord]) -> Decimal:
    """Defined-contribution plan: at least annual wages / 12, rounded up to the won."""
    total = ZERO
    for r in annual_records:
        total += (
            D(r.basic_pay)
            + D(r.overtime_pay)
            + D(r.night_pay)
            + D(r.holiday_pay)
            + D(r.meal_allowance)
            + D(r.car_allowance)
        )
    if total <= 0:
        return ZERO
    return (total / Decimal("12")).quantize(ONE, rounding=ROUND_CEILING)


def payment_due_date(retirement_date: date) -> date:
    return retirement_date + timedelta(days=PAYMENT_DEADLINE_DAYS)


# ---------------------------- Entry point ---------------------------- #

def _validate(request: SeveranceRequest) -> Tuple[CompensationTerms, date]:
    terms = request.terms
    if terms is None:
        raise PayrollInputError("compensation terms are required for severance")
    hire = request.hire_date or terms.hire_date
    if hire is None:
        raise PayrollInputError("hire date is required for severance")
    if request.retirement_date < hire:
        raise PayrollInputError(
            f"retirement date {request.retirement_date} is before hire date {hire}"
        )
    return terms, hire


def calculate_severance(request: SeveranceRequest, rule_source: Optional[RuleSource] = None) -> SeveranceResult:
    terms, hire = _validate(request)
    retire = request.retirement_date

    days, years, eligible = calc_service_period(hire, retire)
    if not eligible:
        logger.info("severance: %d service days, not eligible", days)
        return SeveranceResult(
            status="ineligible",
            hire_date=hire,
            retirement_date=retire,
            service_days=days,
            service_years=years,
        )

    detail, average = calculate_average_wage(
        retire,
        request.payroll_records,
        terms=terms,
        exclusions=request.exclusions,
        include_bonus=request.include_bonus,
        annual_bonus=request.annual_bonus,
    )
    ordinary = ordinary_daily_wage(terms)
    applied = max(average, ordinary)
    used_ordinary = ordinary > average

    pay = calculate_severance_pay(applied, days)
    rules = RuleStore(rule_source).resolve(retire)
    tax = calculate_severance_tax(pay, days, rules.income_tax.local_tax_rate)
    due = payment_due_date(retire)

    warnings: List[PayWarning] = []
    if detail.estimated_months:
        warnings.append(PayWarning(
            code="SEVERANCE_ESTIMATED_WAGES",
            severity="warning",
            message=f"{detail.estimated_months} month(s) of lookback wages estimated from the contract salary",
            value=Decimal(detail.estimated_months),
        ))
    if used_ordinary:
        warnings.append(PayWarning(
            code="ORDINARY_WAGE_APPLIED",
            severity="info",
            message="average daily wage is below the ordinary daily wage; ordinary wage applied",
            value=ordinary,
        ))
    if not request.irp_account:
        warnings.append(PayWarning(
            code="IRP_ACCOUNT_MISSING",
            severity="warning",
            message="no IRP account on file; severance must be transferred to an IRP account",
        ))
    if request.as_of is not None and request.as_of > due:
        overdue = (request.as_of - due).days
        warnings.append(PayWarning(
            code="PAYMENT_OVERDUE",
            severity="critical",
            message=f"payment deadline {due.isoformat()} passed {overdue} day(s) ago; late interest accrues",
            value=Decimal(overdue),
        ))

    logger.info(
        "severance: days=%d applied_daily=%s pay=%s tax=%s",
        days, applied, pay, tax.total_tax,
    )
    return SeveranceResult(
        status="computed",
        hire_date=hire,
        retirement_date=retire,
        service_days=days,
        service_years=years,
        average_wage=detail,
        average_daily_wage=average,
        ordinary_daily_wage=ordinary,
        applied_daily_wage=applied,
        used_ordinary_wage=used_ordinary,
        severance_pay=pay,
        tax_breakdown=tax,
        net_severance_pay=pay - tax.total_tax,
        payment_due_date=due,
        irp_benefit=calc_irp_tax_benefit(tax.income_tax),
        warnings=warnings,
    )


__all__ = [
    "subtract_months",
    "calc_service_period",
    "average_wage_period",
    "apply_exclusion_periods",
    "estimated_monthly_wage",
    "select_lookback_records",
    "build_wage_components",
    "calculate_average_wage",
    "calculate_severance_pay",
    "calculate_dc_contribution",
    "payment_due_date",
    "calculate_severance",
]
