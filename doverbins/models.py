"""
Plain data records shared by the scraper, refresh job and API.
"""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class Address:
    uprn: str
    address: str


@dataclass(frozen=True)
class ScrapedService:
    """One service row as shown on the council property page."""

    service_name: str
    schedule: str
    next_collection: date


@dataclass(frozen=True)
class Subscription:
    id: str
    uprn: str
    address: str
    postcode: str
    calendar_token: str
    created_at: datetime | None = None
    last_fetched: datetime | None = None


@dataclass(frozen=True)
class CollectionRecord:
    uprn: str
    service_name: str
    schedule: str
    next_collection: date
    fetched_at: datetime | None = None


@dataclass(frozen=True)
class OverrideRecord:
    uprn: str
    service_name: str
    original_date: date
    actual_date: date
    detected_at: datetime | None = None
