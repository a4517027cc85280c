# backend/tests/conftest.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal

import pytest

from paycore.schemas.payroll import AttendanceInterval, CompensationTerms
from paycore.schemas.rules import StatutoryRuleSet
from paycore.services.payroll_rules import InMemoryRuleSource

APRIL_2026 = date(2026, 4, 30)


def shift(day: date, start_hour: int, hours: float) -> AttendanceInterval:
    start = datetime.combine(day, time(start_hour))
    return AttendanceInterval(start=start, end=start + timedelta(hours=hours))


def april_weekday_shifts(count: int = 20, start_hour: int = 9, hours: float = 8) -> list:
    """`count` weekday shifts from 2026-04-01 on (April 2026 has no public holidays)."""
    out = []
    day = date(2026, 4, 1)
    while len(out) < count:
        if day.weekday() < 5:
            out.append(shift(day, start_hour, hours))
        day += timedelta(days=1)
    return out


@pytest.fixture
def rules() -> StatutoryRuleSet:
    return StatutoryRuleSet(reference_date=APRIL_2026)


@pytest.fixture
def empty_source() -> InMemoryRuleSource:
    return InMemoryRuleSource()


@pytest.fixture
def hourly_terms() -> CompensationTerms:
    return CompensationTerms(
        basis="hourly",
        amount=Decimal("10320"),
        birth_date=date(1990, 5, 1),
        hire_date=date(2024, 3, 4),
    )


@pytest.fixture
def monthly_terms() -> CompensationTerms:
    return CompensationTerms(
        basis="monthly",
        amount=Decimal("2500000"),
        birth_date=date(1985, 1, 15),
    )
