"""
Service names as shown by the council, and how we present them.
"""

from dataclasses import dataclass

RECYCLING = "recycling"
GENERAL = "general"
GARDEN = "garden"
FOOD = "food"
OTHER = "other"


@dataclass(frozen=True)
class ServiceInfo:
    kind: str
    short_name: str
    description: str


KNOWN_SERVICES = {
    "Refuse Collection": ServiceInfo(
        GENERAL, "General waste", "Put out your black bin (general waste)"
    ),
    "Paper/Card Collection": ServiceInfo(
        RECYCLING, "Paper & card", "Put out your blue bin (paper and card)"
    ),
    "Recycling Collection": ServiceInfo(
        RECYCLING, "Recycling", "Put out your green bin (mixed recycling)"
    ),
    "Food Collection": ServiceInfo(FOOD, "Food waste", "Put out your food waste caddy"),
    "Garden Waste Collection": ServiceInfo(
        GARDEN, "Garden waste", "Put out your brown bin (garden waste)"
    ),
}

# Checked in order; "garden waste recycling" is garden, not recycling
_KIND_KEYWORDS = (
    (FOOD, ("food",)),
    (GARDEN, ("garden",)),
    (GENERAL, ("refuse", "general", "rubbish", "residual")),
    (RECYCLING, ("recycling", "paper", "glass")),
)

# Order services are listed in within one day
KIND_ORDER = {RECYCLING: 0, GENERAL: 1, GARDEN: 2, OTHER: 3, FOOD: 4}


def service_kind(service_name: str) -> str:
    known = KNOWN_SERVICES.get(service_name)
    if known:
        return known.kind
    lower = service_name.lower()
    for kind, keywords in _KIND_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return kind
    return OTHER


def service_info(service_name: str) -> ServiceInfo:
    known = KNOWN_SERVICES.get(service_name)
    if known:
        return known

    short_name = service_name.strip()
    if short_name.lower().endswith(" collection"):
        short_name = short_name[: -len(" collection")].strip()
    return ServiceInfo(
        kind=service_kind(service_name),
        short_name=short_name or service_name,
        description=f"{service_name} day",
    )


def is_food_service(service_name: str) -> bool:
    return service_kind(service_name) == FOOD
