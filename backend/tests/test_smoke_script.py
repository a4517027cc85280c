# backend/tests/test_smoke_script.py
# Runs the payroll smoke script's summary builder in-process.

import importlib.util
import os
from datetime import date

SCRIPT = os.path.join(os.path.dirname(__file__), "..", "scripts", "smoke_payroll_basic.py")


def _load_script():
    spec = importlib.util.spec_from_file_location("smoke_payroll_basic", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_smoke_summary_shape():
    summary = _load_script().build_summary(date(2026, 4, 30))

    payroll = summary["payroll"]
    assert payroll["rules"] == "default"
    assert payroll["hours"]["night"] == "1.00"
    assert set(payroll["deductions"]) == {
        "NATIONAL_PENSION",
        "HEALTH_INSURANCE",
        "LONG_TERM_CARE",
        "EMPLOYMENT_INSURANCE",
        "INCOME_TAX",
        "LOCAL_INCOME_TAX",
    }

    severance = summary["severance"]
    assert severance["status"] == "computed"
    assert severance["severance_pay"] == "9000000"
    assert severance["net_severance_pay"] == "8894400"
    assert severance["warnings"] == ["ORDINARY_WAGE_APPLIED"]
