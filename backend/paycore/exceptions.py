# backend/paycore/exceptions.py
"""Typed errors raised by the payroll engine."""

from __future__ import annotations


class PaycoreError(Exception):
    """Base class for every error raised by paycore."""


class PayrollInputError(PaycoreError, ValueError):
    """Bad caller input: missing terms, missing hire date, invalid intervals, dates out of order."""


class RuleConfigError(PaycoreError):
    """A stored rule record could not be parsed into a typed override."""
