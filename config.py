"""
Runtime configuration. Values come from environment variables with sane defaults.
"""

import os
import os.path


def _read_secret_file_optional(filename: str) -> str | None:
    """Read a secret file if it exists and is not empty; return None otherwise."""
    secrets_path = os.path.join("secrets", filename)
    if not os.path.exists(secrets_path):
        return None
    with open(secrets_path) as f:
        content = f.read().strip()
        return content or None


DEBUG = os.getenv("DEBUG", "0") == "1"
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO")

DB_PATH = os.getenv(
    "DB_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "database", "doverbins.db"),
)

COUNCIL_BASE_URL = os.getenv("COUNCIL_BASE_URL", "https://collections.dover.gov.uk")
COUNCIL_TIMEOUT_SECONDS = float(os.getenv("COUNCIL_TIMEOUT_SECONDS", "20"))
COUNCIL_USER_AGENT = os.getenv("COUNCIL_USER_AGENT", "DoverBinsCalendar/1.0")

# Daily refresh
REFRESH_DELAY_SECONDS = float(os.getenv("REFRESH_DELAY_SECONDS", "0.5"))
REFRESH_HOUR_UTC = int(os.getenv("REFRESH_HOUR_UTC", "6"))
OVERRIDE_RETENTION_DAYS = int(os.getenv("OVERRIDE_RETENTION_DAYS", "365"))

# Calendar feeds
CALENDAR_HORIZON_MONTHS = int(os.getenv("CALENDAR_HORIZON_MONTHS", "3"))
CALENDAR_DOMAIN = os.getenv("CALENDAR_DOMAIN", "doverbins.app")
CALENDAR_TIMEZONE = os.getenv("CALENDAR_TIMEZONE", "Europe/London")
CALENDAR_PRODID = "-//Dover Bins//doverbins.app//EN"
CALENDAR_REFRESH_INTERVAL = "PT1H"
CALENDAR_CACHE_SECONDS = 3600
CALENDAR_FILTERED_CACHE_SECONDS = 1800

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL") or _read_secret_file_optional("public_base_url.txt")

API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "3333"))

# Requests per window, per client IP
RATE_LIMITS = {
    "lookup": {"window_seconds": 60, "max_requests": 30},
    "subscribe": {"window_seconds": 60, "max_requests": 10},
    "calendar": {"window_seconds": 60, "max_requests": 60},
    "delete": {"window_seconds": 60, "max_requests": 5},
}
