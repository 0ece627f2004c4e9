"""
Scraper for the Dover District Council collections site.

Two pages are used:
- POST /property/ with a postcode returns JSON whose `result` is an HTML list
  of matching addresses linking to /property/<uprn>.
- GET /property/<uprn> renders one `.service-wrapper` block per bin service
  with its schedule text and next collection date (DD/MM/YYYY).
"""

import logging
import re
from datetime import date

import requests
from bs4 import BeautifulSoup

import config
from doverbins.models import Address, ScrapedService

logger = logging.getLogger(__name__)

UK_DATE_RE = re.compile(r"(\d{2})/(\d{2})/(\d{4})")
PROPERTY_HREF_RE = re.compile(r"property/(\d+)")


class CouncilSourceError(Exception):
    """The council site could not be reached or returned something unexpected."""


def _headers(accept: str) -> dict[str, str]:
    return {"Accept": accept, "User-Agent": config.COUNCIL_USER_AGENT}


def parse_uk_date(text: str | None) -> date | None:
    """Find a DD/MM/YYYY date in text."""
    if not text:
        return None
    match = UK_DATE_RE.search(text)
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_address_results(result_html: str) -> list[Address]:
    soup = BeautifulSoup(result_html, "html.parser")
    addresses = []
    for link in soup.select("li a"):
        match = PROPERTY_HREF_RE.search(link.get("href") or "")
        if match:
            addresses.append(Address(uprn=match.group(1), address=link.get_text(strip=True)))
    return addresses


def lookup_addresses(postcode: str, session: requests.Session | None = None) -> list[Address]:
    """Addresses (with UPRNs) the council knows for a postcode."""
    http = session or requests
    try:
        response = http.post(
            f"{config.COUNCIL_BASE_URL}/property/",
            data={"search_property": postcode, "aj": "true", "id": "", "if": "", "gac": "FALSE"},
            headers={**_headers("application/json"), "X-Requested-With": "XMLHttpRequest"},
            timeout=config.COUNCIL_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as e:
        raise CouncilSourceError(f"Address lookup failed: {e}") from e
    except ValueError as e:
        raise CouncilSourceError(f"Address lookup returned invalid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise CouncilSourceError("Address lookup returned an unexpected payload")
    if payload.get("status") != "OK" or not payload.get("result"):
        logger.debug("No addresses for postcode %s (status=%s)", postcode, payload.get("status"))
        return []
    return parse_address_results(payload["result"])


def _own_text(cell) -> str:
    """Text directly inside a cell, ignoring nested labels."""
    if cell is None:
        return ""
    return " ".join(part.strip() for part in cell.find_all(string=True, recursive=False)).strip()


def parse_property_page(html: str) -> list[ScrapedService]:
    soup = BeautifulSoup(html, "html.parser")
    services = []
    for wrapper in soup.select(".service-wrapper.property-service-wrapper"):
        name_tag = wrapper.select_one("h3.service-name")
        service_name = name_tag.get_text(strip=True) if name_tag else ""
        schedule_tag = wrapper.select_one("td.schedule div")
        schedule = schedule_tag.get_text(strip=True) if schedule_tag else ""

        next_collection = parse_uk_date(_own_text(wrapper.select_one("td.next-service")))
        if not service_name or not next_collection:
            continue
        services.append(
            ScrapedService(
                service_name=service_name,
                schedule=schedule,
                next_collection=next_collection,
            )
        )
    return services


def scrape_property_collections(
    uprn: str, session: requests.Session | None = None
) -> list[ScrapedService]:
    """Current bin services for one property."""
    http = session or requests
    try:
        response = http.get(
            f"{config.COUNCIL_BASE_URL}/property/{uprn}",
            headers=_headers("text/html"),
            timeout=config.COUNCIL_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise CouncilSourceError(f"Failed to fetch property {uprn}: {e}") from e

    services = parse_property_page(response.text)
    logger.debug("Scraped %s services for UPRN %s", len(services), uprn)
    return services
