# backend/paycore/services/payroll_rules.py
"""
Payroll rule store: versioned statutory constants + income-tax table lookup.

Resolution per reference date:
    1) the most recent rule record whose window contains the date
       (valid_from <= date <= valid_to, valid_to NULL = open-ended)
    2) built-in defaults for every category / field the record leaves unset
    3) no record at all -> defaults (normal case, logged at INFO)

Sources (the injected time-keyed store):
    • InMemoryRuleSource - records handed in by the caller (tests, batch jobs)
    • JsonRuleSource     - one JSON file per record under a directory
                           (PAYCORE_RULES_DIR, default paycore/data/payroll/)
    • SqlRuleSource      - payroll_rules / income_tax_brackets tables

RuleStore memoises resolution per date, so one calculation or one batch hits
the source once.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from paycore.config import get_settings
from paycore.exceptions import RuleConfigError
from paycore.models.payroll_rules import IncomeTaxBracketRow, PayrollRuleRow
from paycore.schemas.rules import RuleRecord, StatutoryRuleSet, build_rule_set, parse_rule_record
from paycore.services.money import D

logger = logging.getLogger(__name__)


# ---------------------------- Data holders ---------------------------- #

@dataclass(frozen=True)
class IncomeTaxRow:
    year: int
    dependents: int
    min_salary: Decimal
    max_salary: Decimal
    tax_amount: Decimal

    def matches(self, year: int, dependents: int, income: Decimal) -> bool:
        return (
            self.year == year
            and self.dependents == dependents
            and self.min_salary <= income <= self.max_salary
        )


class RuleSource(Protocol):
    def find_rule_record(self, reference_date: date) -> Optional[RuleRecord]:
        ...

    def find_income_tax(self, year: int, dependents: int, monthly_income: Decimal) -> Optional[Decimal]:
        ...


def _latest_covering(records: Iterable[RuleRecord], day: date) -> Optional[RuleRecord]:
    chosen: Optional[RuleRecord] = None
    for rec in records:
        if rec.covers(day) and (chosen is None or rec.valid_from > chosen.valid_from):
            chosen = rec
    return chosen


# ---------------------------- In-memory ---------------------------- #

class InMemoryRuleSource:
    def __init__(
        self,
        records: Sequence[Any] = (),
        income_tax_rows: Sequence[IncomeTaxRow] = (),
    ):
        self._records: List[RuleRecord] = [
            r if isinstance(r, RuleRecord) else parse_rule_record(r) for r in records
        ]
        self._tax_rows = list(income_tax_rows)

    def find_rule_record(self, reference_date: date) -> Optional[RuleRecord]:
        return _latest_covering(self._records, reference_date)

    def find_income_tax(self, year: int, dependents: int, monthly_income: Decimal) -> Optional[Decimal]:
        income = D(monthly_income)
        for row in self._tax_rows:
            if row.matches(year, dependents, income):
                return row.tax_amount
        return None


# ---------------------------- JSON files ---------------------------- #

def _tax_row(raw: Dict[str, Any]) -> IncomeTaxRow:
    return IncomeTaxRow(
        year=int(raw["year"]),
        dependents=int(raw["dependents"]),
        min_salary=D(raw["min_salary"]),
        max_salary=D(raw["max_salary"]),
        tax_amount=D(raw["tax_amount"]),
    )


def _load_json(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f, parse_float=Decimal)
    except ValueError as exc:
        raise RuleConfigError(f"{path}: not valid JSON ({exc})") from exc


@lru_cache(maxsize=32)
def _load_directory(directory: str) -> Tuple[Tuple[RuleRecord, ...], Tuple[IncomeTaxRow, ...]]:
    try:
        names = sorted(n for n in os.listdir(directory) if n.endswith(".json"))
    except FileNotFoundError:
        logger.info("rule directory %s not found; defaults only", directory)
        return (), ()

    records: List[RuleRecord] = []
    tax_rows: List[IncomeTaxRow] = []
    for name in names:
        raw = _load_json(os.path.join(directory, name))
        try:
            tax_rows.extend(_tax_row(r) for r in raw.pop("income_tax_brackets", []) or [])
        except (KeyError, TypeError, ValueError) as exc:
            raise RuleConfigError(f"{name}: bad income_tax_brackets row ({exc})") from exc
        raw.setdefault("label", name[: -len(".json")])
        records.append(parse_rule_record(raw))
    logger.debug("loaded %d rule records, %d tax rows from %s", len(records), len(tax_rows), directory)
    return tuple(records), tuple(tax_rows)


class JsonRuleSource:
    def __init__(self, directory: Optional[str] = None):
        self.directory = os.path.abspath(directory or get_settings().rules_dir)

    def _data(self) -> Tuple[Tuple[RuleRecord, ...], Tuple[IncomeTaxRow, ...]]:
        return _load_directory(self.directory)

    def find_rule_record(self, reference_date: date) -> Optional[RuleRecord]:
        records, _ = self._data()
        return _latest_covering(records, reference_date)

    def find_income_tax(self, year: int, dependents: int, monthly_income: Decimal) -> Optional[Decimal]:
        _, rows = self._data()
        income = D(monthly_income)
        for row in rows:
            if row.matches(year, dependents, income):
                return row.tax_amount
        return None


# ---------------------------- SQL tables ---------------------------- #

class SqlRuleSource:
    """
    Reads payroll_rules rows (one per category/key) and merges the newest row
    per key that is valid on the date into a single record. A database error
    is treated like an empty table: logged, then defaults apply.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def find_rule_record(self, reference_date: date) -> Optional[RuleRecord]:
        stmt = (
            select(PayrollRuleRow)
            .where(
                PayrollRuleRow.valid_from <= reference_date,
                or_(PayrollRuleRow.valid_to.is_(None), PayrollRuleRow.valid_to >= reference_date),
            )
            .order_by(PayrollRuleRow.valid_from.desc(), PayrollRuleRow.id.desc())
        )
        try:
            with self._session_factory() as db:
                rows = db.execute(stmt).scalars().all()
        except SQLAlchemyError:
            logger.warning("payroll_rules lookup failed for %s; using defaults", reference_date, exc_info=True)
            return None
        if not rows:
            return None

        seen = set()
        overrides: Dict[str, Dict[str, Any]] = {}
        for row in rows:  # newest first
            key = (row.category, row.rule_key)
            if key in seen:
                continue
            seen.add(key)
            overrides.setdefault(row.category, {})[row.rule_key] = row.value

        newest = rows[0].valid_from
        ends = [r.valid_to for r in rows if r.valid_to is not None]
        return parse_rule_record(
            {
                "label": f"db:{newest.isoformat()}",
                "valid_from": newest,
                "valid_to": min(ends) if ends else None,
                "overrides": overrides,
            }
        )

    def find_income_tax(self, year: int, dependents: int, monthly_income: Decimal) -> Optional[Decimal]:
        income = D(monthly_income)
        stmt = (
            select(IncomeTaxBracketRow.tax_amount)
            .where(
                IncomeTaxBracketRow.year == year,
                IncomeTaxBracketRow.dependents == dependents,
                IncomeTaxBracketRow.min_salary <= income,
                IncomeTaxBracketRow.max_salary >= income,
            )
            .limit(1)
        )
        try:
            with self._session_factory() as db:
                amount = db.execute(stmt).scalar()
        except SQLAlchemyError:
            logger.warning("income_tax_brackets lookup failed (%s, %s)", year, dependents, exc_info=True)
            return None
        return D(amount) if amount is not None else None


# ---------------------------- Store ---------------------------- #

def default_rule_source() -> JsonRuleSource:
    return JsonRuleSource(get_settings().rules_dir)


class RuleStore:
    """Resolves StatutoryRuleSets from a source, once per reference date."""

    def __init__(self, source: Optional[RuleSource] = None):
        self.source: RuleSource = source if source is not None else default_rule_source()
        self._resolved: Dict[date, StatutoryRuleSet] = {}

    def resolve(self, reference_date: date) -> StatutoryRuleSet:
        cached = self._resolved.get(reference_date)
        if cached is not None:
            return cached

        record = self.source.find_rule_record(reference_date)
        if record is None:
            logger.info("no payroll rule record for %s; statutory defaults applied", reference_date)
        else:
            logger.info("payroll rules %s applied for %s", record.label, reference_date)
        rules = build_rule_set(reference_date, record)
        self._resolved[reference_date] = rules
        return rules

    def income_tax(self, year: int, dependents: int, monthly_income: Decimal) -> Optional[Decimal]:
        return self.source.find_income_tax(year, dependents, monthly_income)


def resolve_rules(reference_date: date, source: Optional[RuleSource] = None) -> StatutoryRuleSet:
    return RuleStore(source).resolve(reference_date)


__all__ = [
    "IncomeTaxRow",
    "RuleSource",
    "InMemoryRuleSource",
    "JsonRuleSource",
    "SqlRuleSource",
    "RuleStore",
    "default_rule_source",
    "resolve_rules",
]
