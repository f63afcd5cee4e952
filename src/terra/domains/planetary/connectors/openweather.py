"""OpenWeather air pollution adapter (Skin). Needs an API key."""

from __future__ import annotations

import logging

from terra.domains.planetary.connectors import SourceUnavailableError
from terra.domains.planetary.connectors.http_client import HttpClient, as_float, get_json, has_real_key
from terra.domains.planetary.domain_logic.geography import Coordinates, city
from terra.domains.planetary.domain_logic.organ_models import (
    AirQualityMetrics,
    MetricSnapshot,
    OrganCategory,
)

logger = logging.getLogger(__name__)

OPENWEATHER_BASE_URL = "https://api.openweathermap.org"


class OpenWeatherAirQualityAdapter:
    """Geocodes a city, then reads the current OpenWeather air pollution index.

    OpenWeather's AQI is already on the 1 (good) to 5 (very poor) scale.
    """

    def __init__(
        self,
        http_client: HttpClient,
        api_key: str,
        base_url: str = OPENWEATHER_BASE_URL,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "OpenWeather"

    @property
    def category(self) -> OrganCategory:
        return OrganCategory.SKIN

    async def _geocode(self, locator: str) -> Coordinates:
        results = await get_json(
            self._http,
            f"{self._base_url}/geo/1.0/direct",
            source=self.name,
            params={"q": locator, "limit": 1, "appid": self._api_key},
        )
        if isinstance(results, list) and results and isinstance(results[0], dict):
            first = results[0]
            if first.get("lat") is not None and first.get("lon") is not None:
                return Coordinates(lat=float(first["lat"]), lon=float(first["lon"]))
        logger.info("OpenWeather could not geocode %r; using known coordinates", locator)
        return city(locator)

    async def fetch(self, locator: str) -> MetricSnapshot:
        if not has_real_key(self._api_key):
            raise SourceUnavailableError("OpenWeather API key not configured")

        coords = await self._geocode(locator)
        payload = await get_json(
            self._http,
            f"{self._base_url}/data/2.5/air_pollution",
            source=self.name,
            params={"lat": coords.lat, "lon": coords.lon, "appid": self._api_key},
        )
        entries = payload.get("list") if isinstance(payload, dict) else None
        if not isinstance(entries, list) or not entries or not isinstance(entries[0], dict):
            raise SourceUnavailableError("OpenWeather returned no air pollution entries")

        entry = entries[0]
        aqi = (entry.get("main") or {}).get("aqi")
        if aqi is None:
            raise SourceUnavailableError("OpenWeather entry has no AQI")
        components = entry.get("components") or {}

        metrics = AirQualityMetrics(
            aqi=int(aqi),
            pm25=as_float(components.get("pm2_5")),
            pm10=as_float(components.get("pm10")),
            no2=as_float(components.get("no2")),
            co=as_float(components.get("co")) if components.get("co") is not None else None,
        )
        logger.info("OpenWeather: AQI %d, PM2.5 %.2f in %s", metrics.aqi, metrics.pm25, locator)
        return MetricSnapshot(
            category=self.category, locator=locator, metrics=metrics, source=self.name
        )
