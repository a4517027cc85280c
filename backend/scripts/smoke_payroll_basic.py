# backend/scripts/smoke_payroll_basic.py
"""
Smoke test for the payroll and severance calculators.

What it does:
1) Builds an hourly employee with 20 weekday shifts (09:00–17:00) plus one
   evening shift running into the night
2) Calculates the month's pay with the packaged rule records
3) Calculates severance for a 3-year monthly-salaried employee
4) Prints a compact JSON summary

No database needed; rules come from PAYCORE_RULES_DIR (or the packaged JSON).
"""

from __future__ import annotations

# --- PATH SHIM: ensure 'paycore' package is importable when running this script ---
import os, sys
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))          # .../backend/scripts
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))   # .../backend
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import json
import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from paycore.schemas.payroll import AttendanceInterval, CompensationTerms
from paycore.schemas.severance import MonthlyWageRecord, SeveranceRequest
from paycore.services.deductions import deduction_lines
from paycore.services.holidays import is_holiday
from paycore.services.payroll import calculate_pay
from paycore.services.severance import calculate_severance


def _weekday_shifts(first_day: date, count: int) -> list:
    shifts = []
    day = first_day
    while len(shifts) < count:
        if not is_holiday(day):
            start = datetime.combine(day, time(9))
            shifts.append(AttendanceInterval(start=start, end=start + timedelta(hours=8)))
        day += timedelta(days=1)
    return shifts


def build_summary(reference_date: date) -> dict:
    terms = CompensationTerms(
        basis="hourly",
        amount=Decimal("10320"),
        birth_date=date(1990, 5, 1),
        hire_date=date(2024, 1, 2),
    )
    first = reference_date.replace(day=1)
    intervals = _weekday_shifts(first, 20)
    evening = datetime.combine(intervals[-1].start.date(), time(19))
    intervals.append(AttendanceInterval(start=evening, end=evening + timedelta(hours=4)))

    pay = calculate_pay(terms, intervals, reference_date)

    sev = calculate_severance(
        SeveranceRequest(
            terms=CompensationTerms(basis="monthly", amount=Decimal("3000000")),
            hire_date=date(2023, 1, 2),
            retirement_date=date(2025, 12, 31),
            payroll_records=[MonthlyWageRecord(basic_pay=Decimal("3000000"))] * 3,
            irp_account="IRP-SMOKE",
        )
    )

    return {
        "payroll": {
            "reference_date": pay.reference_date.isoformat(),
            "rules": pay.rules_label,
            "hours": {k: str(v) for k, v in pay.hours.model_dump().items()},
            "gross_pay": str(pay.gross_pay),
            "deductions": {k: str(v) for k, v in deduction_lines(pay.deductions).items()},
            "net_pay": str(pay.net_pay),
            "employer_cost": str(pay.employer_contributions.total),
            "warnings": [w.code for w in pay.warnings],
        },
        "severance": {
            "status": sev.status,
            "service_days": sev.service_days,
            "applied_daily_wage": str(sev.applied_daily_wage),
            "severance_pay": str(sev.severance_pay),
            "total_tax": str(sev.tax_breakdown.total_tax) if sev.tax_breakdown else None,
            "net_severance_pay": str(sev.net_severance_pay),
            "payment_due_date": sev.payment_due_date.isoformat() if sev.payment_due_date else None,
            "warnings": [w.code for w in sev.warnings],
        },
    }


def main():
    logging.basicConfig(level=os.environ.get("PAYCORE_LOG_LEVEL", "WARNING"))
    print(json.dumps(build_summary(date.today()), indent=2))


if __name__ == "__main__":
    main()
