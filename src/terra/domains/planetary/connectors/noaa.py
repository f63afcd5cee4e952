"""NOAA ERDDAP surface seawater pH adapter (Veins).

ERDDAP serves tabular datasets through ``tabledap``; the dataset id and the
name of its pH variable depend on which observing programme is queried, so
both come from settings. Without a dataset id the adapter reports itself
unavailable and the chain moves on.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from terra.domains.planetary.connectors import SourceUnavailableError
from terra.domains.planetary.connectors.http_client import HttpClient, get_json
from terra.domains.planetary.domain_logic.geography import ocean_site
from terra.domains.planetary.domain_logic.organ_models import (
    MetricSnapshot,
    OceanChemistryMetrics,
    OrganCategory,
    acidification_level_for_ph,
)

logger = logging.getLogger(__name__)

NOAA_ERDDAP_URL = "https://www.ncei.noaa.gov/erddap/tabledap"

# Half-width, in degrees, of the box searched around a site.
SEARCH_RADIUS_DEG = 2.0

# Plausible open-ocean range; anything outside is a sensor or unit error.
_PH_BOUNDS = (6.5, 9.0)


def _build_query(variable: str, lat: float, lon: float) -> str:
    constraints = [
        f"{variable},time,latitude,longitude",
        "time>=now-30days",
        f"latitude>={lat - SEARCH_RADIUS_DEG}",
        f"latitude<={lat + SEARCH_RADIUS_DEG}",
        f"longitude>={lon - SEARCH_RADIUS_DEG}",
        f"longitude<={lon + SEARCH_RADIUS_DEG}",
        'orderByMax("time")',
    ]
    return quote("&".join(constraints), safe="&,=()")


def _latest_ph(table: dict[str, Any], variable: str) -> tuple[float, float | None, float | None]:
    columns = table.get("columnNames")
    rows = table.get("rows")
    if not isinstance(columns, list) or not isinstance(rows, list):
        raise SourceUnavailableError("NOAA ERDDAP response is not a table")
    try:
        ph_idx = columns.index(variable)
    except ValueError:
        raise SourceUnavailableError(f"NOAA ERDDAP table has no {variable!r} column") from None
    lat_idx = columns.index("latitude") if "latitude" in columns else None
    lon_idx = columns.index("longitude") if "longitude" in columns else None

    for row in reversed(rows):
        if not isinstance(row, list) or len(row) <= ph_idx or row[ph_idx] is None:
            continue
        try:
            ph = float(row[ph_idx])
        except (TypeError, ValueError):
            continue
        if not _PH_BOUNDS[0] <= ph <= _PH_BOUNDS[1]:
            continue
        lat = row[lat_idx] if lat_idx is not None else None
        lon = row[lon_idx] if lon_idx is not None else None
        return ph, lat, lon

    raise SourceUnavailableError("NOAA ERDDAP returned no usable pH readings")


class NoaaErddapOceanAdapter:
    """Latest surface pH observed within a few degrees of an ocean site."""

    def __init__(
        self,
        http_client: HttpClient,
        dataset_id: str,
        ph_variable: str = "pH",
        base_url: str = NOAA_ERDDAP_URL,
    ) -> None:
        self._http = http_client
        self._dataset_id = dataset_id
        self._ph_variable = ph_variable
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "NOAA ERDDAP"

    @property
    def category(self) -> OrganCategory:
        return OrganCategory.VEINS

    async def fetch(self, locator: str) -> MetricSnapshot:
        if not self._dataset_id:
            raise SourceUnavailableError("NOAA ERDDAP dataset not configured")

        site = ocean_site(locator)
        url = (
            f"{self._base_url}/{self._dataset_id}.json?"
            f"{_build_query(self._ph_variable, site.lat, site.lon)}"
        )
        payload = await get_json(self._http, url, source=self.name)
        table = payload.get("table") if isinstance(payload, dict) else None
        if not isinstance(table, dict):
            raise SourceUnavailableError("NOAA ERDDAP response has no 'table'")

        ph, lat, lon = _latest_ph(table, self._ph_variable)
        ph = round(ph, 3)
        logger.info("NOAA ERDDAP: pH %.3f near %s", ph, locator)
        return MetricSnapshot(
            category=self.category,
            locator=locator,
            metrics=OceanChemistryMetrics(
                ph=ph,
                acidification_level=acidification_level_for_ph(ph),
                latitude=float(lat) if lat is not None else site.lat,
                longitude=float(lon) if lon is not None else site.lon,
            ),
            source=self.name,
        )
