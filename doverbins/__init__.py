"""
Dover Bins - subscribable bin collection calendars for Dover District.

Structure:
- calendar/  - schedule parsing, date projection and iCalendar rendering (pure)
- scraper/   - council website client
- refresh/   - daily reconciliation job and scheduler
- api/       - Flask API serving lookups, subscriptions and feeds
- common/    - shared DB, logging, throttle and rate-limit helpers
"""

__version__ = "1.0.0"
