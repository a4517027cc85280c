# backend/paycore/services/payroll.py
"""
Payroll orchestrator: one employee, one pay period.

Pipeline:
    rules      RuleStore.resolve(reference_date)            (memoised)
    hours      time_aggregation.aggregate(intervals)
    rate       wages.normalize(terms)
    gross      gross_pay.compose(hours, rate)
    deductions deductions.compute_deductions(taxable income)
    employer   deductions.compute_employer_contributions(taxable income)
    warnings   anomalies.detect_warnings
    net        max(gross - deductions, 0)

Batch:
- calculate_payroll_batch(entries, reference_date) resolves the rule set once,
  runs each employee independently and collects per-employee input errors
  without aborting the rest.
- Summary carries gross / deductions / net / employer cost / labour cost totals.

Notes:
- Inputs are never mutated; identical inputs give identical results.
- The pay period defaults to the calendar month of reference_date.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Collection, Iterable, Optional, Sequence

from paycore.exceptions import PayrollInputError
from paycore.schemas.payroll import (
    AttendanceInterval,
    CompensationTerms,
    PayResult,
    PayrollBatchEntry,
    PayrollBatchError,
    PayrollBatchItem,
    PayrollBatchResult,
    PayrollBatchSummary,
)
from paycore.schemas.rules import StatutoryRuleSet
from paycore.services.anomalies import WarningContext, detect_warnings, month_bounds
from paycore.services.deductions import compute_deductions, compute_employer_contributions
from paycore.services.gross_pay import compose
from paycore.services.holidays import calculate_age
from paycore.services.money import ZERO
from paycore.services.payroll_rules import RuleSource, RuleStore
from paycore.services.time_aggregation import aggregate
from paycore.services.wages import normalize, validate_terms

logger = logging.getLogger(__name__)


def pension_monthly_hours(terms: CompensationTerms, recorded_hours: Decimal, rules: StatutoryRuleSet) -> Decimal:
    """Hours used for the short-time pension gate: recorded for hourly/daily, contractual otherwise."""
    if terms.basis in ("hourly", "daily"):
        return recorded_hours
    return rules.work_time.monthly_standard_hours


def calculate_pay(
    terms: Optional[CompensationTerms],
    intervals: Iterable[AttendanceInterval],
    reference_date: date,
    *,
    rule_source: Optional[RuleSource] = None,
    rule_store: Optional[RuleStore] = None,
    previous_gross: Optional[Decimal] = None,
    period_start: Optional[date] = None,
    period_end: Optional[date] = None,
    holidays: Optional[Collection[date]] = None,
    strict_intervals: bool = False,
) -> PayResult:
    terms = validate_terms(terms)

    default_start, default_end = month_bounds(reference_date)
    start = period_start or default_start
    end = period_end or default_end
    if end < start:
        raise PayrollInputError(f"pay period ends before it starts: {start} -> {end}")
    if terms.hire_date is not None and reference_date < terms.hire_date:
        raise PayrollInputError(f"reference date {reference_date} precedes hire date {terms.hire_date}")
    if terms.hire_date is not None and terms.hire_date > end:
        raise PayrollInputError(f"hire date {terms.hire_date} is after the pay period ending {end}")

    store = rule_store if rule_store is not None else RuleStore(rule_source)
    rules = store.resolve(reference_date)

    hours = aggregate(intervals, rules, holidays=holidays, strict=strict_intervals)
    rate = normalize(terms, rules)
    gross = compose(hours, rate, terms, rules)

    age = calculate_age(terms.birth_date, reference_date)
    monthly_hours = pension_monthly_hours(terms, hours.total, rules)
    deductions = compute_deductions(
        gross.taxable_income,
        age,
        terms.dependent_count,
        rules,
        reference_date.year,
        monthly_hours,
        tax_lookup=store.income_tax,
    )
    employer = compute_employer_contributions(gross.taxable_income, age, rules, monthly_hours)

    warnings = detect_warnings(
        WarningContext(
            rules=rules,
            hourly_rate=rate,
            hours=hours,
            gross_pay=gross.gross_pay,
            deductions=deductions,
            period_start=start,
            period_end=end,
            previous_gross=previous_gross,
        )
    )

    total_deductions = deductions.total
    net = max(gross.gross_pay - total_deductions, ZERO)

    logger.info(
        "payroll %s basis=%s gross=%s deductions=%s net=%s rules=%s",
        reference_date, terms.basis, gross.gross_pay, total_deductions, net, rules.label,
    )
    return PayResult(
        reference_date=reference_date,
        rules_label=rules.label,
        basis=terms.basis,
        hourly_rate=rate,
        hours=hours,
        basic_pay=gross.basic_pay,
        weekly_rest_pay=gross.weekly_rest_pay,
        overtime_pay=gross.overtime_pay,
        night_pay=gross.night_pay,
        holiday_pay=gross.holiday_pay,
        non_taxable_total=gross.non_taxable_total,
        gross_pay=gross.gross_pay,
        taxable_income=gross.taxable_income,
        deductions=deductions,
        total_deductions=total_deductions,
        net_pay=net,
        employer_contributions=employer,
        warnings=warnings,
    )


def calculate_payroll_batch(
    entries: Sequence[PayrollBatchEntry],
    reference_date: date,
    rule_source: Optional[RuleSource] = None,
    *,
    holidays: Optional[Collection[date]] = None,
) -> PayrollBatchResult:
    store = RuleStore(rule_source)
    rules = store.resolve(reference_date)

    summary = PayrollBatchSummary(total_employees=len(entries))
    results = []
    errors = []
    totals = {"gross": ZERO, "deductions": ZERO, "net": ZERO, "employer": ZERO}

    for entry in entries:
        try:
            result = calculate_pay(
                entry.terms,
                entry.intervals,
                reference_date,
                rule_store=store,
                previous_gross=entry.previous_gross,
                holidays=holidays,
            )
        except PayrollInputError as exc:
            logger.warning("payroll batch: employee %s skipped: %s", entry.employee_id, exc)
            errors.append(PayrollBatchError(employee_id=entry.employee_id, error=str(exc)))
            continue

        results.append(PayrollBatchItem(employee_id=entry.employee_id, result=result))
        totals["gross"] += result.gross_pay
        totals["deductions"] += result.total_deductions
        totals["net"] += result.net_pay
        totals["employer"] += result.employer_contributions.total

    summary = summary.model_copy(
        update={
            "calculated": len(results),
            "failed": len(errors),
            "total_gross": totals["gross"],
            "total_deductions": totals["deductions"],
            "total_net": totals["net"],
            "total_employer_cost": totals["employer"],
            "total_labor_cost": totals["gross"] + totals["employer"],
        }
    )
    logger.info(
        "payroll batch %s: %d calculated, %d failed, gross=%s (rules %s)",
        reference_date, summary.calculated, summary.failed, summary.total_gross, rules.label,
    )
    return PayrollBatchResult(
        reference_date=reference_date,
        rules_label=rules.label,
        summary=summary,
        results=results,
        errors=errors,
    )


__all__ = ["calculate_pay", "calculate_payroll_batch", "pension_monthly_hours"]
