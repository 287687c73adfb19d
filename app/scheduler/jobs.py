"""
app/scheduler/jobs.py

APScheduler-based batch scheduler for the Knesset sync pipeline.

Schedule (all times UTC)
--------------------------
  nightly_sync         02:00 every day
  party_topic_scores   03:30 every day

The aggregate runs on its own trigger rather than chained to the sync, so a
failed or slow sync still leaves yesterday's data scored.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured scheduler, then start it.
``scripts/run_scheduler.py`` hosts the jobs in a blocking scheduler.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from app.services.party_topic_aggregation_service import get_party_topic_aggregation_service
from app.services.sync_orchestrator_service import get_sync_orchestrator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Job: Nightly sync
# ---------------------------------------------------------------------------


def run_nightly_sync() -> None:
    """
    Run one full sync. The run row records its own outcome; the job only
    logs a summary.
    """
    logger.info("Scheduler: nightly_sync starting")
    try:
        result = get_sync_orchestrator().run()
    except Exception as exc:  # noqa: BLE001
        logger.error("Scheduler: nightly_sync failed to run: %s", exc)
        return
    logger.info(
        "Scheduler: nightly_sync complete run_id=%s status=%s fetched=%s errors=%s",
        result.run_id,
        result.status,
        result.total_fetched,
        result.error_count,
    )


# ---------------------------------------------------------------------------
# Job: Party/topic scores
# ---------------------------------------------------------------------------


def run_party_topic_scores() -> None:
    """
    Rebuild the party/topic aggregate from the current database state.
    """
    logger.info("Scheduler: party_topic_scores starting")
    try:
        result = get_party_topic_aggregation_service().run()
    except Exception as exc:  # noqa: BLE001
        logger.error("Scheduler: party_topic_scores failed: %s", exc)
        return
    logger.info(
        "Scheduler: party_topic_scores complete rows=%s parties=%s duration_ms=%s",
        result.rows_written,
        result.parties_updated,
        result.duration_ms,
    )


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def register_jobs(scheduler: BaseScheduler) -> BaseScheduler:
    """
    Register the sync and scoring jobs on ``scheduler``.

    Schedule (UTC):
        nightly_sync        02:00 every day
        party_topic_scores  03:30 every day
    """
    scheduler.add_job(
        run_nightly_sync,
        trigger="cron",
        hour=2,
        minute=0,
        id="nightly_sync",
        name="Nightly Knesset sync",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
    )
    scheduler.add_job(
        run_party_topic_scores,
        trigger="cron",
        hour=3,
        minute=30,
        id="party_topic_scores",
        name="Party/topic score aggregation",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
    )
    return scheduler


def build_scheduler() -> BackgroundScheduler:
    """
    Return a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)``.
    """
    scheduler = BackgroundScheduler(timezone="UTC")
    register_jobs(scheduler)
    return scheduler
