"""
Logging setup shared by the API, the refresh job and the scheduler.
"""

import logging

import config

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """
    Configure root logging from config.LOG_LEVEL (or an explicit level).
    Calling it again only adjusts the level.
    """
    level_name = str(level or config.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    if root_logger.handlers:
        if level:
            root_logger.setLevel(numeric_level)
        return
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
