"""NASA EONET wildfire adapter (Lungs). Free, no API key."""

from __future__ import annotations

import logging
from typing import Any

from terra.domains.planetary.connectors import SourceUnavailableError
from terra.domains.planetary.connectors.http_client import HttpClient, get_json
from terra.domains.planetary.domain_logic.geography import forest_region
from terra.domains.planetary.domain_logic.organ_models import (
    DeforestationMetrics,
    MetricSnapshot,
    OrganCategory,
    WildfireEvent,
)

logger = logging.getLogger(__name__)

EONET_EVENTS_URL = "https://eonet.gsfc.nasa.gov/api/v3/events"

ACRES_TO_HECTARES = 0.404686
# EONET rarely reports fire size; assume a mid-sized burn when it does not.
DEFAULT_EVENT_AREA_HA = 500.0
MAX_EVENTS_KEPT = 5


def _event_point(event: dict[str, Any]) -> tuple[dict[str, Any], float, float] | None:
    geometry = event.get("geometry") or []
    if not geometry or not isinstance(geometry[0], dict):
        return None
    coords = geometry[0].get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    try:
        lon, lat = float(coords[0]), float(coords[1])
    except (TypeError, ValueError):
        return None
    return geometry[0], lon, lat


def _event_area_ha(geometry: dict[str, Any]) -> float:
    value = geometry.get("magnitudeValue")
    if value is None:
        return DEFAULT_EVENT_AREA_HA
    try:
        value = float(value)
    except (TypeError, ValueError):
        return DEFAULT_EVENT_AREA_HA
    if (geometry.get("magnitudeUnit") or "").lower() == "acres":
        return value * ACRES_TO_HECTARES
    return value


class EonetWildfireAdapter:
    """Counts open wildfire events inside a forest region's bounding box."""

    def __init__(self, http_client: HttpClient, url: str = EONET_EVENTS_URL) -> None:
        self._http = http_client
        self._url = url

    @property
    def name(self) -> str:
        return "NASA EONET"

    @property
    def category(self) -> OrganCategory:
        return OrganCategory.LUNGS

    async def fetch(self, locator: str) -> MetricSnapshot:
        payload = await get_json(
            self._http,
            self._url,
            source=self.name,
            params={"category": "wildfires", "status": "open", "limit": 100, "days": 30},
        )
        events = payload.get("events") if isinstance(payload, dict) else None
        if not isinstance(events, list):
            raise SourceUnavailableError("NASA EONET response has no 'events' list")

        bounds = forest_region(locator)
        regional: list[WildfireEvent] = []
        total_area = 0.0
        for event in events:
            if not isinstance(event, dict):
                continue
            point = _event_point(event)
            if point is None:
                continue
            geometry, lon, lat = point
            if not bounds.contains(lon, lat):
                continue
            total_area += _event_area_ha(geometry)
            regional.append(
                WildfireEvent(
                    title=str(event.get("title", "")),
                    date=geometry.get("date"),
                    longitude=lon,
                    latitude=lat,
                )
            )

        logger.info("NASA EONET: %d active wildfires in %s", len(regional), locator)
        return MetricSnapshot(
            category=self.category,
            locator=locator,
            metrics=DeforestationMetrics(
                alert_count=len(regional),
                total_area_ha=float(round(total_area)),
                events=tuple(regional[:MAX_EVENTS_KEPT]),
            ),
            source=self.name,
        )
