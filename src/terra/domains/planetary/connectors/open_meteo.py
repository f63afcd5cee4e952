"""Open-Meteo air quality adapter (Skin). Free, no API key."""

from __future__ import annotations

import logging

from terra.domains.planetary.connectors import SourceUnavailableError
from terra.domains.planetary.connectors.http_client import HttpClient, as_float, get_json
from terra.domains.planetary.domain_logic.geography import city
from terra.domains.planetary.domain_logic.organ_models import (
    AirQualityMetrics,
    MetricSnapshot,
    OrganCategory,
)

logger = logging.getLogger(__name__)

OPEN_METEO_AQ_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"

# Upper bounds of US EPA AQI bands mapped onto the 1-5 index.
_US_AQI_BANDS = ((50, 1), (100, 2), (150, 3), (200, 4))


def us_aqi_to_index(us_aqi: float) -> int:
    """Convert a 0-500 US AQI value to the 1 (good) to 5 (very poor) index."""
    for upper, index in _US_AQI_BANDS:
        if us_aqi <= upper:
            return index
    return 5


class OpenMeteoAirQualityAdapter:
    """Current air quality for a known city's coordinates."""

    def __init__(self, http_client: HttpClient, url: str = OPEN_METEO_AQ_URL) -> None:
        self._http = http_client
        self._url = url

    @property
    def name(self) -> str:
        return "Open-Meteo"

    @property
    def category(self) -> OrganCategory:
        return OrganCategory.SKIN

    async def fetch(self, locator: str) -> MetricSnapshot:
        coords = city(locator)
        payload = await get_json(
            self._http,
            self._url,
            source=self.name,
            params={
                "latitude": coords.lat,
                "longitude": coords.lon,
                "current": "pm10,pm2_5,carbon_monoxide,nitrogen_dioxide,us_aqi",
                "timezone": "auto",
            },
        )
        current = payload.get("current") if isinstance(payload, dict) else None
        if not isinstance(current, dict) or current.get("us_aqi") is None:
            raise SourceUnavailableError("Open-Meteo returned no current air quality")

        metrics = AirQualityMetrics(
            aqi=us_aqi_to_index(as_float(current.get("us_aqi"))),
            pm25=as_float(current.get("pm2_5")),
            pm10=as_float(current.get("pm10")),
            no2=as_float(current.get("nitrogen_dioxide")),
            co=as_float(current.get("carbon_monoxide"))
            if current.get("carbon_monoxide") is not None
            else None,
        )
        logger.info(
            "Open-Meteo: US AQI %s (index %d), PM2.5 %.2f in %s",
            current.get("us_aqi"),
            metrics.aqi,
            metrics.pm25,
            locator,
        )
        return MetricSnapshot(
            category=self.category, locator=locator, metrics=metrics, source=self.name
        )
