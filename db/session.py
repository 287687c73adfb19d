"""
db/session.py

SQLAlchemy engine and session factory for the sync pipeline.

Every store call opens its own short session from this factory, so the pool
has to cover one connection per sync worker plus the run tracker.
"""

from __future__ import annotations

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url

# Run tracker and the aggregate/backfill commands sharing the process.
_POOL_HEADROOM = 2


def _get_bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def default_pool_size() -> int:
    """Pool size that fits ``ETL_CONCURRENCY`` workers, unless ``DB_POOL_SIZE`` overrides it."""
    workers = max(1, _get_int_env("ETL_CONCURRENCY", 3))
    return _get_int_env("DB_POOL_SIZE", workers + _POOL_HEADROOM)


def create_db_engine() -> Engine:
    database_url = resolve_database_url()
    if not database_url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    return create_engine(
        database_url,
        echo=_get_bool_env("SQL_ECHO", default=False),
        pool_pre_ping=True,
        pool_recycle=_get_int_env("DB_POOL_RECYCLE", 1800),
        pool_size=default_pool_size(),
        max_overflow=_get_int_env("DB_MAX_OVERFLOW", 5),
    )


_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def get_engine() -> Engine:
    """Return the shared engine, creating it on first call."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def _get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            class_=Session,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory


def SessionLocal() -> Session:
    """Open a new session on the shared engine. Nothing connects until first use."""
    return _get_session_factory()()
