"""
Python-based scheduler for the daily refresh
Runs once a day at config.REFRESH_HOUR_UTC:00 UTC
"""

import logging
import sys
import time
from datetime import date, datetime, timezone

import config
from doverbins.api.db import get_latest_refresh_run
from doverbins.common.logging_utils import setup_logging
from doverbins.common.migrations import init_database
from doverbins.refresh.main import run_refresh_job

CHECK_INTERVAL_SECONDS = 60


def should_run_now(now: datetime, last_run_date: date | None) -> bool:
    """True once per UTC day, at or after the configured hour."""
    if last_run_date == now.date():
        return False
    return now.hour >= config.REFRESH_HOUR_UTC


def last_completed_run_date() -> date | None:
    """UTC date of the last refresh that finished, so a restart does not run twice."""
    run = get_latest_refresh_run()
    if not run or not run["finished_at"]:
        return None
    logger = logging.getLogger(__name__)
    logger.info(
        "Last refresh finished at %s UTC: %s success, %s errors, %s skipped",
        run["finished_at"],
        run["success_count"],
        run["error_count"],
        run["skipped_count"],
    )
    return date.fromisoformat(str(run["started_at"])[:10])


def main():
    """Main scheduler loop"""
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Scheduler started (daily at %02d:00 UTC)", config.REFRESH_HOUR_UTC)

    init_database()
    last_run_date = last_completed_run_date()
    while True:
        now = datetime.now(timezone.utc)
        if should_run_now(now, last_run_date):
            logger.info("Running scheduled refresh")
            exit_code = run_refresh_job()
            if exit_code != 0:
                logger.warning("Refresh exited with code %s", exit_code)
            # No retries within the same day; tomorrow's run starts fresh
            last_run_date = now.date()

        time.sleep(CHECK_INTERVAL_SECONDS)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Scheduler stopped")
        sys.exit(0)
