"""
app/startup.py

Process start-up checks shared by the command-line entry points.
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from app.config import get_odata_settings, get_outbound_guard_settings
from app.connectors.outbound_guard import is_host_allowed

logger = logging.getLogger(__name__)


def validate_environment() -> None:
    """
    Validate required environment variables before any network or database
    work begins.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.
    """

    from db.config import has_database_url

    errors: list[str] = []

    # --- Database URL ---------------------------------------------------
    if not has_database_url():
        errors.append(
            "No database URL configured. Set DATABASE_URL, or configure "
            "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
        )

    # --- Source URLs ----------------------------------------------------
    guard = get_outbound_guard_settings()
    odata = get_odata_settings()
    for name, url in (
        ("KNESSET_ODATA_BASE_URL", odata.base_url),
        ("KNESSET_ODATA_METADATA_URL", odata.metadata_url),
    ):
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.hostname:
            errors.append(f"{name}='{url}' is not an absolute URL.")
            continue
        if guard.production_mode and parsed.scheme != "https":
            errors.append(f"{name} must use https in production.")
        if not is_host_allowed(parsed.hostname, guard.allowed_domains):
            errors.append(
                f"{name} host '{parsed.hostname}' is not in ALLOWED_FETCH_DOMAINS "
                f"({', '.join(guard.allowed_domains)})."
            )

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    from db.session import SessionLocal

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def check_schema() -> None:
    """
    Every table registered on Base.metadata must exist in the database.

    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401 registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    actual: set[str] = set(sa_inspect(get_engine()).get_table_names())
    missing = set(Base.metadata.tables.keys()) - actual
    if missing:
        logger.critical(
            "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
            "the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )
