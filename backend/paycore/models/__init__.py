# backend/paycore/models/__init__.py
"""
Mapped classes for the SQL rule source.

Import this package once so SQLAlchemy sees every table before create_all().
"""
from paycore.db import Base  # re-export Base
from paycore.models.payroll_rules import IncomeTaxBracketRow, PayrollRuleRow  # noqa: F401

__all__ = ["Base", "PayrollRuleRow", "IncomeTaxBracketRow"]
