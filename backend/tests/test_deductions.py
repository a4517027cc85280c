# backend/tests/test_deductions.py
from __future__ import annotations

from decimal import Decimal

from paycore.services.deductions import (
    compute_deductions,
    compute_employer_contributions,
    deduction_lines,
    progressive_tax,
)

INCOME = Decimal("2009923")


def _deduct(rules, income=INCOME, age=35, dependents=1, hours=Decimal("160"), lookup=None):
    return compute_deductions(income, age, dependents, rules, 2026, hours, tax_lookup=lookup)


def test_employee_deductions_example(rules):
    d = _deduct(rules)
    assert d.pension == Decimal("95470")
    assert d.health == Decimal("72250")
    assert d.long_term_care == Decimal("10000")
    assert d.employment == Decimal("18080")
    assert d.income_tax == Decimal("177730")
    assert d.local_tax == Decimal("17770")
    assert d.income_tax_source == "formula"
    assert d.total == Decimal("391300")


def test_pension_age_exemption(rules):
    d = _deduct(rules, age=60)
    assert d.pension == Decimal("0")
    assert d.pension_exempt_reason == "age"
    assert d.employment == Decimal("18080")


def test_employment_age_exemption(rules):
    d = _deduct(rules, age=65)
    assert d.employment == Decimal("0")
    assert d.employment_exempt is True
    assert d.health == Decimal("72250")


def test_unknown_age_has_no_exemptions(rules):
    d = _deduct(rules, age=None)
    assert d.pension_exempt_reason is None
    assert d.employment_exempt is False


def test_short_time_pension_exemption(rules):
    d = _deduct(rules, hours=Decimal("40"))
    assert d.pension == Decimal("0")
    assert d.pension_exempt_reason == "short_time"


def test_pension_base_is_clamped(rules):
    assert _deduct(rules, income=Decimal("300000")).pension == Decimal("19000")
    assert _deduct(rules, income=Decimal("8000000")).pension == Decimal("302570")


def test_table_lookup_preferred_and_dependents_capped(rules):
    calls = []

    def lookup(year, dependents, income):
        calls.append((year, dependents, income))
        return Decimal("19005")

    d = _deduct(rules, dependents=15, lookup=lookup)
    assert d.income_tax == Decimal("19000")
    assert d.local_tax == Decimal("1900")
    assert d.income_tax_source == "table"
    assert calls == [(2026, 11, INCOME)]


def test_missing_table_row_falls_back_to_formula(rules):
    d = _deduct(rules, lookup=lambda *a: None)
    assert d.income_tax == Decimal("177730")
    assert d.income_tax_source == "formula"


def test_more_dependents_lower_formula_tax(rules):
    assert _deduct(rules, dependents=3).income_tax < _deduct(rules, dependents=1).income_tax


def test_zero_income(rules):
    d = _deduct(rules, income=Decimal("0"))
    assert d.total == Decimal("0")
    assert d.income_tax_source == "none"


def test_deductions_are_monotone_in_income(rules):
    previous = None
    for step in range(0, 41):
        d = _deduct(rules, income=Decimal(step * 250000))
        if previous is not None:
            assert d.pension >= previous.pension
            assert d.health >= previous.health
            assert d.long_term_care >= previous.long_term_care
            assert d.employment >= previous.employment
            assert d.income_tax >= previous.income_tax
            assert d.local_tax >= previous.local_tax
        previous = d


def test_all_amounts_are_truncated_to_ten_won(rules):
    d = _deduct(rules, income=Decimal("3456789"))
    for amount in deduction_lines(d).values():
        assert amount % 10 == 0


def test_employer_contributions(rules):
    er = compute_employer_contributions(INCOME, 35, rules, Decimal("160"))
    assert er.pension == Decimal("95470")
    assert er.health == Decimal("72250")
    assert er.long_term_care == Decimal("10000")
    assert er.employment == Decimal("22100")
    assert er.total == Decimal("199820")

    senior = compute_employer_contributions(INCOME, 66, rules, Decimal("160"))
    assert senior.pension == Decimal("0")
    assert senior.employment == Decimal("0")


def test_progressive_tax_bands():
    assert progressive_tax(Decimal("0")) == Decimal("0")
    assert progressive_tax(Decimal("14000000")) == Decimal("840000")
    assert progressive_tax(Decimal("50000000")) == Decimal("6240000")
    # band edges are continuous
    assert progressive_tax(Decimal("14000001")) > progressive_tax(Decimal("14000000"))
    assert progressive_tax(Decimal("2000000000")) == Decimal("834060000")
