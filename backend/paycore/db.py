# backend/paycore/db.py
"""
SQLAlchemy plumbing for the SQL-backed rule source.

The engine never owns a connection of its own; callers pass a session factory
(built here from DATABASE_URL, or their own) into SqlRuleSource.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from paycore.config import get_settings

Base = declarative_base()


def make_session_factory(database_url: Optional[str] = None) -> sessionmaker:
    """Build a session factory for `database_url` (defaults to DATABASE_URL)."""
    settings = get_settings()
    url = database_url or settings.database_url
    if not url:
        raise RuntimeError("DATABASE_URL is not configured")
    engine = create_engine(url, echo=settings.sql_echo)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(session_factory: sessionmaker) -> None:
    """Create the rule tables on the factory's engine (tests, local sqlite)."""
    import paycore.models  # noqa: F401  (register mapped classes)

    Base.metadata.create_all(bind=session_factory.kw["bind"])
