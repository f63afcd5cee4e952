"""Known sites, their coordinates, and the default organ roster."""

from __future__ import annotations

from dataclasses import dataclass

from terra.domains.planetary.domain_logic.organ_models import OrganCategory


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, lon: float, lat: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lon <= lon <= self.max_lon


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lon: float


# Forest regions (Lungs). EONET events are filtered by these boxes.
FOREST_REGIONS: dict[str, BoundingBox] = {
    "Amazon": BoundingBox(min_lat=-15, max_lat=5, min_lon=-75, max_lon=-45),
    "Congo": BoundingBox(min_lat=-5, max_lat=5, min_lon=10, max_lon=30),
    "Indonesia": BoundingBox(min_lat=-10, max_lat=6, min_lon=95, max_lon=141),
}

# ISO 3166-1 alpha-3 codes used by Global Forest Watch queries.
FOREST_REGION_ISO: dict[str, str] = {
    "Amazon": "BRA",
    "Congo": "COD",
    "Indonesia": "IDN",
}

# Ocean sites (Veins).
OCEAN_SITES: dict[str, Coordinates] = {
    "Great Barrier Reef": Coordinates(lat=-18.2871, lon=147.6992),
    "Caribbean Sea": Coordinates(lat=15.0, lon=-75.0),
    "Pacific Ocean": Coordinates(lat=0.0, lon=-140.0),
}

# Cities (Skin).
CITIES: dict[str, Coordinates] = {
    "Lagos": Coordinates(lat=6.5244, lon=3.3792),
    "Delhi": Coordinates(lat=28.6139, lon=77.209),
    "Beijing": Coordinates(lat=39.9042, lon=116.4074),
    "Los Angeles": Coordinates(lat=34.0522, lon=-118.2437),
}


def forest_region(locator: str) -> BoundingBox:
    """Bounding box for a forest region; unknown regions map to the Amazon."""
    return FOREST_REGIONS.get(locator, FOREST_REGIONS["Amazon"])


def ocean_site(locator: str) -> Coordinates:
    """Coordinates for an ocean site; unknown sites map to the Great Barrier Reef."""
    return OCEAN_SITES.get(locator, OCEAN_SITES["Great Barrier Reef"])


def city(locator: str) -> Coordinates:
    """Coordinates for a city; unknown cities map to Lagos."""
    return CITIES.get(locator, CITIES["Lagos"])


# ---------------------------------------------------------------------------
# Organ roster
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Organ:
    """A named organ: a category bound to a concrete site."""

    name: str
    category: OrganCategory
    locator: str


DEFAULT_ORGANS: tuple[Organ, ...] = (
    Organ("Amazon Lungs", OrganCategory.LUNGS, "Amazon"),
    Organ("Great Barrier Reef Veins", OrganCategory.VEINS, "Great Barrier Reef"),
    Organ("Lagos Skin", OrganCategory.SKIN, "Lagos"),
)

DEFAULT_LOCATORS: dict[OrganCategory, str] = {
    organ.category: organ.locator for organ in DEFAULT_ORGANS
}

# Used when an organ's name mentions none of its category's known sites.
_ALTERNATE_LOCATORS: dict[OrganCategory, str] = {
    OrganCategory.LUNGS: "Congo",
    OrganCategory.VEINS: "Pacific Ocean",
    OrganCategory.SKIN: "Delhi",
}

_KNOWN_SITES: dict[OrganCategory, tuple[str, ...]] = {
    OrganCategory.LUNGS: tuple(FOREST_REGIONS),
    OrganCategory.VEINS: tuple(OCEAN_SITES),
    OrganCategory.SKIN: tuple(CITIES),
}


def locator_for_organ(category: OrganCategory, organ_name: str) -> str:
    """Pick the site an organ refers to by scanning its display name.

    "Amazon Lungs" resolves to ``"Amazon"``; a name mentioning no known site
    falls back to the category's alternate site.
    """
    lowered = organ_name.lower()
    for site in _KNOWN_SITES[category]:
        if site.lower() in lowered:
            return site
    # "Barrier" alone is enough to identify the reef.
    if category is OrganCategory.VEINS and "barrier" in lowered:
        return "Great Barrier Reef"
    return _ALTERNATE_LOCATORS[category]
