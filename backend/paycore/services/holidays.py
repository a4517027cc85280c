# backend/paycore/services/holidays.py
"""
Korean non-working-day calendar and age helper.

A day is a holiday when it is:
    • the weekly paid rest day (Sunday unless the rule set says otherwise)
    • a fixed statutory public holiday (same solar date every year)
    • a lunar-calendar holiday (Seollal, Buddha's Birthday, Chuseok),
      pre-converted to solar dates per year below
    • a date the caller designates (company holidays, substitute holidays)
"""

from __future__ import annotations

from datetime import date
from typing import Collection, Dict, FrozenSet, Optional

SUNDAY = 6

# (month, day)
FIXED_HOLIDAYS: FrozenSet[tuple] = frozenset(
    {
        (1, 1),    # New Year's Day
        (3, 1),    # Independence Movement Day
        (5, 5),    # Children's Day
        (6, 6),    # Memorial Day
        (8, 15),   # Liberation Day
        (10, 3),   # National Foundation Day
        (10, 9),   # Hangul Day
        (12, 25),  # Christmas
    }
)

LUNAR_HOLIDAYS: Dict[int, FrozenSet[date]] = {
    2024: frozenset(date.fromisoformat(d) for d in (
        "2024-02-09", "2024-02-10", "2024-02-11", "2024-02-12",
        "2024-05-15", "2024-09-16", "2024-09-17", "2024-09-18",
    )),
    2025: frozenset(date.fromisoformat(d) for d in (
        "2025-01-28", "2025-01-29", "2025-01-30",
        "2025-05-05", "2025-10-05", "2025-10-06", "2025-10-07",
    )),
    2026: frozenset(date.fromisoformat(d) for d in (
        "2026-02-16", "2026-02-17", "2026-02-18",
        "2026-05-24", "2026-09-24", "2026-09-25", "2026-09-26",
    )),
    2027: frozenset(date.fromisoformat(d) for d in (
        "2027-02-06", "2027-02-07", "2027-02-08",
        "2027-05-13", "2027-09-14", "2027-09-15", "2027-09-16",
    )),
    2028: frozenset(date.fromisoformat(d) for d in (
        "2028-01-26", "2028-01-27", "2028-01-28",
        "2028-05-02", "2028-10-02", "2028-10-03", "2028-10-04",
    )),
}


def is_public_holiday(day: date) -> bool:
    if (day.month, day.day) in FIXED_HOLIDAYS:
        return True
    return day in LUNAR_HOLIDAYS.get(day.year, frozenset())


def is_holiday(
    day: date,
    *,
    weekly_rest_day: int = SUNDAY,
    extra_holidays: Optional[Collection[date]] = None,
) -> bool:
    if day.weekday() == weekly_rest_day:
        return True
    if extra_holidays and day in extra_holidays:
        return True
    return is_public_holiday(day)


def calculate_age(birth_date: Optional[date], reference_date: date) -> Optional[int]:
    """Full (international) age on reference_date; None when the birth date is unknown."""
    if birth_date is None:
        return None
    age = reference_date.year - birth_date.year
    if (reference_date.month, reference_date.day) < (birth_date.month, birth_date.day):
        age -= 1
    return max(age, 0)


__all__ = ["FIXED_HOLIDAYS", "LUNAR_HOLIDAYS", "is_public_holiday", "is_holiday", "calculate_age"]
