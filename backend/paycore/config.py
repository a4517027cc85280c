# backend/paycore/config.py
"""
Runtime settings for paycore.

Precedence:
    1) Environment variables
    2) .env file (loaded once via python-dotenv)
    3) Built-in defaults

Only infrastructure settings live here (where rule records are stored).
Statutory constants never come from the environment; they are rule records
resolved by date in services/payroll_rules.py.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _package_data_dir() -> str:
    here = os.path.dirname(os.path.abspath(__file__))  # .../paycore
    return os.path.join(here, "data", "payroll")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    rules_dir: str
    database_url: Optional[str]
    sql_echo: bool


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        rules_dir=os.getenv("PAYCORE_RULES_DIR") or _package_data_dir(),
        database_url=os.getenv("DATABASE_URL") or None,
        sql_echo=_env_bool("PAYCORE_SQL_ECHO", False),
    )


__all__ = ["Settings", "get_settings"]
