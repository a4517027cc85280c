# backend/paycore/models/payroll_rules.py
"""
Rule-store ORM models.

Tables:
- payroll_rules          one row per (category, rule_key) with a validity window
- income_tax_brackets    simplified withholding table rows (year x dependents x salary band)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from paycore.db import Base


class PayrollRuleRow(Base):
    __tablename__ = "payroll_rules"
    __table_args__ = (
        UniqueConstraint("category", "rule_key", "valid_from", name="uq_payroll_rules_key_from"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False)   # e.g. national_pension
    rule_key: Mapped[str] = mapped_column(String(64), nullable=False)   # e.g. employee_rate
    value: Mapped[str] = mapped_column(String(64), nullable=False)      # stored as text, validated on load
    valid_from: Mapped[date] = mapped_column(Date(), nullable=False)
    valid_to: Mapped[Optional[date]] = mapped_column(Date(), nullable=True)  # NULL = open-ended

    def __repr__(self) -> str:
        return f"<PayrollRuleRow {self.category}/{self.rule_key}={self.value} @ {self.valid_from}>"


class IncomeTaxBracketRow(Base):
    __tablename__ = "income_tax_brackets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    dependents: Mapped[int] = mapped_column(Integer, nullable=False)
    min_salary: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    max_salary: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)

    def __repr__(self) -> str:
        return f"<IncomeTaxBracketRow {self.year} dep={self.dependents} {self.min_salary}..{self.max_salary}>"
