"""
One-shot refresh of all subscriptions - can be used for daily cron jobs
"""

import argparse
import logging
import sys

from doverbins.common.logging_utils import setup_logging
from doverbins.common.migrations import init_database
from doverbins.refresh.reconciler import run_refresh


def run_refresh_job() -> int:
    """Run one refresh pass. Returns a process exit code."""
    setup_logging()
    logger = logging.getLogger(__name__)
    init_database()

    try:
        summary = run_refresh()
    except Exception as e:
        logger.exception("Refresh failed: %s", e)
        return 1

    print(summary)
    for outcome in summary.outcomes:
        for override in outcome.overrides:
            print(
                f" {outcome.uprn} {override.service_name}: "
                f"{override.original_date.isoformat()} -> {override.actual_date.isoformat()}"
            )
    return 0


def main():
    """Refresh CLI entry point"""
    parser = argparse.ArgumentParser(description="Refresh bin collection data for all subscriptions")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL for this run (e.g. DEBUG)",
    )
    args = parser.parse_args()

    setup_logging(args.log_level)
    return run_refresh_job()


if __name__ == "__main__":
    sys.exit(main())
