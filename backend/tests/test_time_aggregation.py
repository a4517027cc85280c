# backend/tests/test_time_aggregation.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import april_weekday_shifts, shift
from paycore.exceptions import PayrollInputError
from paycore.schemas.payroll import AttendanceInterval
from paycore.services.holidays import calculate_age, is_holiday
from paycore.services.time_aggregation import aggregate, night_seconds


def _interval(start: str, end: str) -> AttendanceInterval:
    return AttendanceInterval(start=datetime.fromisoformat(start), end=datetime.fromisoformat(end))


def test_day_shift_has_no_night_hours(rules):
    hb = aggregate([_interval("2026-04-06T09:00", "2026-04-06T18:00")], rules)
    assert hb.regular == Decimal("8.00")
    assert hb.overtime == Decimal("1.00")
    assert hb.night == Decimal("0.00")
    assert hb.total == Decimal("9.00")
    assert hb.work_days == 1


def test_evening_shift_counts_one_night_hour(rules):
    hb = aggregate([_interval("2026-04-06T21:00", "2026-04-06T23:00")], rules)
    assert hb.night == Decimal("1.00")
    assert hb.regular == Decimal("2.00")
    assert hb.total == Decimal("2.00")


def test_shift_spanning_two_night_windows(rules):
    hb = aggregate([_interval("2026-04-06T21:00", "2026-04-08T07:00")], rules)
    # 22:00-06:00 twice
    assert hb.night == Decimal("16.00")
    assert hb.regular == Decimal("8.00")
    assert hb.overtime == Decimal("26.00")


def test_early_morning_overlap_with_previous_window(rules):
    hb = aggregate([_interval("2026-04-07T04:00", "2026-04-07T10:00")], rules)
    assert hb.night == Decimal("2.00")


def test_sunday_shift_goes_to_holiday_buckets(rules):
    hb = aggregate([_interval("2026-04-05T09:00", "2026-04-05T20:00")], rules)
    assert hb.holiday_regular == Decimal("8.00")
    assert hb.holiday_extended == Decimal("3.00")
    assert hb.regular == Decimal("0.00")
    assert hb.overtime == Decimal("0.00")
    assert hb.holiday_work_days == 1


def test_public_holiday_and_caller_designated_holiday(rules):
    childrens_day = aggregate([shift(date(2026, 5, 5), 9, 4)], rules)
    assert childrens_day.holiday_regular == Decimal("4.00")

    company = aggregate([shift(date(2026, 4, 8), 9, 4)], rules, holidays={date(2026, 4, 8)})
    assert company.holiday_regular == Decimal("4.00")
    assert company.regular == Decimal("0.00")


def test_bucket_sum_equals_raw_durations(rules):
    intervals = [
        _interval("2026-04-06T09:00", "2026-04-06T19:30"),
        _interval("2026-04-07T22:00", "2026-04-08T03:15"),
        _interval("2026-04-12T08:00", "2026-04-12T18:45"),  # Sunday
    ]
    raw = sum(((i.end - i.start).total_seconds() for i in intervals), 0.0) / 3600
    hb = aggregate(intervals, rules)
    assert hb.total == Decimal(str(raw)).quantize(Decimal("0.01"))
    assert hb.total == hb.regular + hb.overtime + hb.holiday_regular + hb.holiday_extended


def test_reversed_and_overlapping_intervals_are_skipped(rules):
    intervals = [
        _interval("2026-04-06T09:00", "2026-04-06T17:00"),
        _interval("2026-04-06T16:00", "2026-04-06T20:00"),  # overlaps
        _interval("2026-04-07T17:00", "2026-04-07T09:00"),  # reversed
    ]
    hb = aggregate(intervals, rules)
    assert hb.skipped_intervals == 2
    assert hb.total == Decimal("8.00")
    assert hb.work_days == 1


def test_strict_mode_rejects_invalid_intervals(rules):
    with pytest.raises(PayrollInputError):
        aggregate([_interval("2026-04-07T17:00", "2026-04-07T09:00")], rules, strict=True)
    with pytest.raises(PayrollInputError):
        aggregate(
            [
                _interval("2026-04-06T09:00", "2026-04-06T17:00"),
                _interval("2026-04-06T12:00", "2026-04-06T13:00"),
            ],
            rules,
            strict=True,
        )


def test_aware_datetimes_are_converted_to_kst(rules):
    # 12:00-14:00 UTC = 21:00-23:00 KST
    start = datetime(2026, 4, 6, 12, 0, tzinfo=timezone.utc)
    hb = aggregate([AttendanceInterval(start=start, end=start + timedelta(hours=2))], rules)
    assert hb.night == Decimal("1.00")


def test_twenty_standard_days(rules):
    hb = aggregate(april_weekday_shifts(), rules)
    assert hb.regular == Decimal("160.00")
    assert hb.work_days == 20
    assert hb.overtime == Decimal("0.00")


def test_no_intervals(rules):
    hb = aggregate([], rules)
    assert hb.total == Decimal("0.00")
    assert hb.work_days == 0


def test_night_seconds_empty_for_reversed():
    assert night_seconds(datetime(2026, 4, 6, 23), datetime(2026, 4, 6, 22)) == 0


# ---------------------------- Calendar helpers ---------------------------- #

def test_is_holiday():
    assert is_holiday(date(2026, 4, 5))           # Sunday
    assert is_holiday(date(2026, 2, 17))          # Seollal
    assert is_holiday(date(2026, 1, 1))
    assert not is_holiday(date(2026, 4, 6))
    assert is_holiday(date(2026, 4, 4), weekly_rest_day=5)


def test_calculate_age():
    assert calculate_age(date(1966, 5, 1), date(2026, 4, 30)) == 59
    assert calculate_age(date(1966, 5, 1), date(2026, 5, 1)) == 60
    assert calculate_age(None, date(2026, 5, 1)) is None
