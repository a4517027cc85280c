# backend/tests/test_payroll_rules.py
from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from paycore.db import create_tables, make_session_factory
from paycore.exceptions import RuleConfigError
from paycore.models import IncomeTaxBracketRow, PayrollRuleRow
from paycore.schemas.rules import RuleOverrides, build_rule_set, parse_rule_record
from paycore.services.payroll_rules import (
    IncomeTaxRow,
    InMemoryRuleSource,
    JsonRuleSource,
    RuleStore,
    SqlRuleSource,
    resolve_rules,
)


def _record(label, valid_from, valid_to=None, **overrides):
    return {"label": label, "valid_from": valid_from, "valid_to": valid_to, "overrides": overrides}


class _CountingSource(InMemoryRuleSource):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.lookups = 0

    def find_rule_record(self, reference_date):
        self.lookups += 1
        return super().find_rule_record(reference_date)


# ---------------------------- Resolution ---------------------------- #

def test_no_record_gives_defaults(empty_source):
    rules = resolve_rules(date(2026, 4, 1), empty_source)
    assert rules.label == "default"
    assert rules.minimum_wage.hourly == Decimal("10320")
    assert rules.national_pension.employee_rate == Decimal("0.0475")
    assert rules.long_term_care.rate == Decimal("0.1385")
    assert rules.work_time.monthly_standard_hours == Decimal("209")


def test_partial_override_keeps_other_defaults():
    source = InMemoryRuleSource([_record("2027", "2027-01-01", minimum_wage={"hourly": "11000"})])
    rules = resolve_rules(date(2027, 3, 1), source)
    assert rules.label == "2027"
    assert rules.minimum_wage.hourly == Decimal("11000")
    assert rules.minimum_wage.monthly == Decimal("2156880")
    assert rules.health_insurance.employee_rate == Decimal("0.03595")


def test_most_recent_covering_record_wins():
    source = InMemoryRuleSource(
        [
            _record("old", "2026-01-01", premiums={"overtime_multiplier": "1.6"}),
            _record("new", "2026-07-01", premiums={"overtime_multiplier": "1.7"}),
        ]
    )
    assert resolve_rules(date(2026, 6, 30), source).premiums.overtime_multiplier == Decimal("1.6")
    assert resolve_rules(date(2026, 7, 1), source).premiums.overtime_multiplier == Decimal("1.7")


def test_valid_to_is_inclusive():
    source = InMemoryRuleSource([_record("h1", "2026-01-01", "2026-06-30", long_term_care={"rate": "0.13"})])
    assert resolve_rules(date(2026, 6, 30), source).label == "h1"
    assert resolve_rules(date(2026, 7, 1), source).label == "default"
    assert resolve_rules(date(2025, 12, 31), source).label == "default"


def test_unknown_field_is_rejected():
    with pytest.raises(RuleConfigError):
        parse_rule_record(_record("typo", "2026-01-01", minimum_wage={"hourly_rate": "11000"}))


def test_unknown_category_is_rejected():
    with pytest.raises(RuleConfigError):
        InMemoryRuleSource([_record("typo", "2026-01-01", bonus_rules={"x": 1})])


def test_overrides_are_typed_per_category():
    overrides = RuleOverrides(national_pension={"employee_rate": "0.05"}, work_time={"weekly_hour_limit": 48})
    assert overrides.national_pension.employee_rate == Decimal("0.05")
    assert overrides.national_pension.upper_limit is None
    assert overrides.categories() == {
        "national_pension": {"employee_rate": Decimal("0.05")},
        "work_time": {"weekly_hour_limit": Decimal("48")},
    }

    with pytest.raises(ValidationError):
        RuleOverrides(national_pension={"employee_rate": "not-a-rate"})
    with pytest.raises(ValidationError):
        RuleOverrides(national_pension={"employee_share": "0.05"})

    assert RuleOverrides(health_insurance={}).categories() == {}


def test_resolution_is_memoised_per_store():
    source = _CountingSource([_record("r", "2026-01-01")])
    store = RuleStore(source)
    first = store.resolve(date(2026, 4, 30))
    second = store.resolve(date(2026, 4, 30))
    assert first is second
    assert source.lookups == 1

    store.resolve(date(2026, 5, 31))
    assert source.lookups == 2


def test_rule_set_is_immutable(rules):
    with pytest.raises(ValidationError):
        rules.minimum_wage.hourly = Decimal("1")


def test_build_rule_set_without_record():
    rules = build_rule_set(date(2026, 1, 1))
    assert rules.label == "default"
    assert rules.reference_date == date(2026, 1, 1)


# ---------------------------- Income tax table ---------------------------- #

def test_in_memory_income_tax_lookup():
    row = IncomeTaxRow(
        year=2026,
        dependents=1,
        min_salary=Decimal("2000000"),
        max_salary=Decimal("2010000"),
        tax_amount=Decimal("19000"),
    )
    store = RuleStore(InMemoryRuleSource(income_tax_rows=[row]))
    assert store.income_tax(2026, 1, Decimal("2005000")) == Decimal("19000")
    assert store.income_tax(2026, 2, Decimal("2005000")) is None
    assert store.income_tax(2025, 1, Decimal("2005000")) is None


# ---------------------------- JSON source ---------------------------- #

def test_packaged_json_records():
    source = JsonRuleSource()
    h1 = resolve_rules(date(2025, 3, 1), source)
    assert h1.label == "2025-h1"
    assert h1.minimum_wage.hourly == Decimal("10030")
    assert h1.national_pension.upper_limit == Decimal("6170000")

    h2 = resolve_rules(date(2025, 9, 1), source)
    assert h2.label == "2025-h2"
    assert h2.national_pension.upper_limit == Decimal("6370000")

    assert resolve_rules(date(2026, 4, 1), source).label == "default"


def test_json_directory_label_from_filename(tmp_path):
    raw = {
        "valid_from": "2030-01-01",
        "overrides": {"minimum_wage": {"hourly": 12000}},
        "income_tax_brackets": [
            {"year": 2030, "dependents": 1, "min_salary": 3000000, "max_salary": 3010000, "tax_amount": 74350},
        ],
    }
    (tmp_path / "future.json").write_text(json.dumps(raw), encoding="utf-8")

    store = RuleStore(JsonRuleSource(str(tmp_path)))
    rules = store.resolve(date(2030, 2, 1))
    assert rules.label == "future"
    assert rules.minimum_wage.hourly == Decimal("12000")
    assert store.income_tax(2030, 1, Decimal("3005000")) == Decimal("74350")


def test_json_bad_file_raises(tmp_path):
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(RuleConfigError):
        JsonRuleSource(str(tmp_path)).find_rule_record(date(2026, 1, 1))


def test_json_missing_directory_falls_back_to_defaults(tmp_path):
    source = JsonRuleSource(str(tmp_path / "nope"))
    assert resolve_rules(date(2026, 1, 1), source).label == "default"


# ---------------------------- SQL source ---------------------------- #

@pytest.fixture
def sql_factory():
    factory = make_session_factory("sqlite://")
    create_tables(factory)
    return factory


def test_sql_source_merges_newest_rows(sql_factory):
    with sql_factory() as db:
        db.add_all(
            [
                PayrollRuleRow(category="minimum_wage", rule_key="hourly", value="10320", valid_from=date(2026, 1, 1)),
                PayrollRuleRow(category="minimum_wage", rule_key="hourly", value="11000", valid_from=date(2027, 1, 1)),
                PayrollRuleRow(category="work_time", rule_key="weekly_rest_day", value="5", valid_from=date(2026, 1, 1)),
                PayrollRuleRow(
                    category="premiums",
                    rule_key="night_multiplier",
                    value="1.5",
                    valid_from=date(2026, 1, 1),
                    valid_to=date(2026, 12, 31),
                ),
            ]
        )
        db.commit()

    source = SqlRuleSource(sql_factory)
    rules_2026 = resolve_rules(date(2026, 6, 1), source)
    assert rules_2026.minimum_wage.hourly == Decimal("10320")
    assert rules_2026.premiums.night_multiplier == Decimal("1.5")
    assert rules_2026.work_time.weekly_rest_day == 5

    rules_2027 = resolve_rules(date(2027, 6, 1), source)
    assert rules_2027.label == "db:2027-01-01"
    assert rules_2027.minimum_wage.hourly == Decimal("11000")
    assert rules_2027.premiums.night_multiplier == Decimal("0.5")


def test_sql_source_empty_table_gives_defaults(sql_factory):
    assert resolve_rules(date(2026, 6, 1), SqlRuleSource(sql_factory)).label == "default"


def test_sql_source_bad_value_raises(sql_factory):
    with sql_factory() as db:
        db.add(PayrollRuleRow(category="minimum_wage", rule_key="hourly", value="lots", valid_from=date(2026, 1, 1)))
        db.commit()
    with pytest.raises(RuleConfigError):
        resolve_rules(date(2026, 6, 1), SqlRuleSource(sql_factory))


def test_sql_source_without_tables_falls_back():
    factory = make_session_factory("sqlite://")
    source = SqlRuleSource(factory)
    assert source.find_rule_record(date(2026, 6, 1)) is None
    assert source.find_income_tax(2026, 1, Decimal("2000000")) is None


def test_sql_income_tax_lookup(sql_factory):
    with sql_factory() as db:
        db.add(
            IncomeTaxBracketRow(
                year=2026,
                dependents=2,
                min_salary=Decimal("3000000"),
                max_salary=Decimal("3020000"),
                tax_amount=Decimal("61130"),
            )
        )
        db.commit()
    source = SqlRuleSource(sql_factory)
    assert source.find_income_tax(2026, 2, Decimal("3010000")) == Decimal("61130")
    assert source.find_income_tax(2026, 3, Decimal("3010000")) is None
