"""
Council website client (collections.dover.gov.uk)
"""

from doverbins.scraper.client import (
    CouncilSourceError,
    lookup_addresses,
    parse_address_results,
    parse_property_page,
    parse_uk_date,
    scrape_property_collections,
)

__all__ = [
    "CouncilSourceError",
    "lookup_addresses",
    "scrape_property_collections",
    "parse_address_results",
    "parse_property_page",
    "parse_uk_date",
]
