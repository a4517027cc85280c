# backend/paycore/services/time_aggregation.py
"""
Attendance intervals -> categorized hour buckets.

Per shift (classified by the date the shift starts on):
    weekday shift : first 8h regular, the rest overtime
    holiday shift : first 8h holiday_regular, the rest holiday_extended
    any shift     : overlap with every 22:00–06:00 window it touches is night

Night hours are a surcharge overlay: they are also counted in one of the
worked buckets, and are excluded from `total`.

Buckets are accumulated in whole seconds and converted to hours with 2 dp at
the end; `total` is the sum of the rounded worked buckets so it always equals
regular + overtime + holiday_regular + holiday_extended.

Reversed / zero-length intervals and intervals overlapping an earlier accepted
one count as zero duration (logged, counted in skipped_intervals). With
strict=True they raise PayrollInputError instead.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Collection, Iterable, List, Optional

from paycore.exceptions import PayrollInputError
from paycore.schemas.payroll import AttendanceInterval, HourBreakdown
from paycore.schemas.rules import StatutoryRuleSet
from paycore.services.holidays import is_holiday
from paycore.services.money import hours2

logger = logging.getLogger(__name__)

KST = timezone(timedelta(hours=9))  # Asia/Seoul, no DST
NIGHT_START = time(22, 0)
NIGHT_END = time(6, 0)
SECONDS_PER_HOUR = Decimal("3600")


def _local(dt: datetime) -> datetime:
    """Aware datetimes are moved to KST wall-clock; naive ones are taken as KST already."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(KST).replace(tzinfo=None)


def night_seconds(start: datetime, end: datetime) -> int:
    """Overlap of [start, end) with every 22:00–06:00 window touching it."""
    if end <= start:
        return 0
    total = 0
    day = start.date() - timedelta(days=1)  # window opened the evening before
    last = end.date()
    while day <= last:
        w_start = datetime.combine(day, NIGHT_START)
        w_end = datetime.combine(day + timedelta(days=1), NIGHT_END)
        lo = max(start, w_start)
        hi = min(end, w_end)
        if hi > lo:
            total += int((hi - lo).total_seconds())
        day += timedelta(days=1)
    return total


def _accepted(intervals: Iterable[AttendanceInterval], strict: bool) -> tuple:
    shifts = sorted((_local(i.start), _local(i.end)) for i in intervals)
    accepted: List[tuple] = []
    skipped = 0
    last_end: Optional[datetime] = None
    for start, end in shifts:
        if end <= start:
            if strict:
                raise PayrollInputError(f"interval ends before it starts: {start} -> {end}")
            logger.warning("skipping reversed/empty interval %s -> %s", start, end)
            skipped += 1
            continue
        if last_end is not None and start < last_end:
            if strict:
                raise PayrollInputError(f"interval {start} -> {end} overlaps a previous shift")
            logger.warning("skipping overlapping interval %s -> %s", start, end)
            skipped += 1
            continue
        accepted.append((start, end))
        last_end = end
    return accepted, skipped


def aggregate(
    intervals: Iterable[AttendanceInterval],
    rules: StatutoryRuleSet,
    *,
    holidays: Optional[Collection[date]] = None,
    strict: bool = False,
) -> HourBreakdown:
    standard = int(rules.work_time.daily_standard_hours * SECONDS_PER_HOUR)
    rest_day = rules.work_time.weekly_rest_day

    regular = overtime = night = hol_regular = hol_extended = 0
    work_dates = set()
    holiday_dates = set()

    shifts, skipped = _accepted(intervals, strict)
    for start, end in shifts:
        duration = int((end - start).total_seconds())
        first = min(duration, standard)
        excess = duration - first

        if is_holiday(start.date(), weekly_rest_day=rest_day, extra_holidays=holidays):
            hol_regular += first
            hol_extended += excess
            holiday_dates.add(start.date())
        else:
            regular += first
            overtime += excess
        work_dates.add(start.date())
        night += night_seconds(start, end)

    buckets = {
        name: hours2(Decimal(secs) / SECONDS_PER_HOUR)
        for name, secs in (
            ("regular", regular),
            ("overtime", overtime),
            ("night", night),
            ("holiday_regular", hol_regular),
            ("holiday_extended", hol_extended),
        )
    }
    total = buckets["regular"] + buckets["overtime"] + buckets["holiday_regular"] + buckets["holiday_extended"]

    breakdown = HourBreakdown(
        **buckets,
        total=total,
        work_days=len(work_dates),
        holiday_work_days=len(holiday_dates),
        skipped_intervals=skipped,
    )
    logger.debug("aggregated %d shifts: %s", len(shifts), breakdown)
    return breakdown


__all__ = ["KST", "aggregate", "night_seconds"]
