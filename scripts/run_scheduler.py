"""
Host the nightly sync and scoring jobs in a blocking scheduler.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.blocking import BlockingScheduler

from app.logging_utils import configure_logging
from app.scheduler.jobs import register_jobs
from app.startup import check_db, check_schema, validate_environment

logger = logging.getLogger(__name__)


def main() -> int:
    configure_logging()
    validate_environment()
    check_db()
    logger.info("Database connectivity confirmed")
    check_schema()
    logger.info("Database schema validated")

    scheduler = BlockingScheduler(timezone="UTC")
    register_jobs(scheduler)
    logger.info("Scheduler starting with %d jobs", len(scheduler.get_jobs()))
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
