# backend/paycore/services/money.py
"""
Decimal helpers shared by every calculator.

Statutory rounding in Korean payroll is truncation: whole won for pay items,
10 won for insurance premiums and withholding. Never ROUND_HALF_EVEN.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
ONE = Decimal("1")
TEN = Decimal("10")


def D(val: Any) -> Decimal:
    if isinstance(val, Decimal):
        return val
    if val is None:
        return ZERO
    try:
        return Decimal(str(val))
    except (InvalidOperation, ValueError):
        return ZERO


def floor_won(val: Any) -> Decimal:
    """Truncate to whole won; negatives clamp to zero."""
    v = D(val)
    if v <= 0:
        return ZERO
    return v.quantize(ONE, rounding=ROUND_DOWN)


def floor10(val: Any) -> Decimal:
    """Truncate to the nearest 10 won below; negatives clamp to zero."""
    v = D(val)
    if v <= 0:
        return ZERO
    return (v / TEN).quantize(ONE, rounding=ROUND_DOWN) * TEN


def round2(val: Any) -> Decimal:
    """Ratios and percentages: 2 decimal places, half-up."""
    return D(val).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def hours2(val: Any) -> Decimal:
    """Hours are reported to 2 decimal places."""
    return round2(val)


def safe_div(num: Any, den: Any, default: Decimal = ZERO) -> Decimal:
    d = D(den)
    if d == 0:
        return default
    return D(num) / d


__all__ = ["D", "ZERO", "ONE", "floor_won", "floor10", "round2", "hours2", "safe_div"]
