"""Global Forest Watch integrated deforestation alerts (Lungs). Needs an API key."""

from __future__ import annotations

import logging

from terra.domains.planetary.connectors import SourceUnavailableError
from terra.domains.planetary.connectors.http_client import HttpClient, get_json, has_real_key
from terra.domains.planetary.domain_logic.geography import FOREST_REGION_ISO
from terra.domains.planetary.domain_logic.organ_models import (
    DeforestationMetrics,
    MetricSnapshot,
    OrganCategory,
)

logger = logging.getLogger(__name__)

GFW_ALERTS_URL = (
    "https://data-api.globalforestwatch.org/dataset/gfw_integrated_alerts/latest/query"
)

_ALERTS_SQL = (
    "SELECT COUNT(*) as alert_count, "
    "SUM(gfw_integrated_alerts__area_ha) as total_area_ha "
    "FROM data "
    "WHERE gfw_integrated_alerts__date >= CURRENT_DATE - INTERVAL '30 days' "
    "AND iso = '{iso}'"
)


class GlobalForestWatchAdapter:
    """Counts integrated deforestation alerts for a country over 30 days."""

    def __init__(
        self, http_client: HttpClient, api_key: str, url: str = GFW_ALERTS_URL
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._url = url

    @property
    def name(self) -> str:
        return "Global Forest Watch"

    @property
    def category(self) -> OrganCategory:
        return OrganCategory.LUNGS

    async def fetch(self, locator: str) -> MetricSnapshot:
        if not has_real_key(self._api_key):
            raise SourceUnavailableError("Global Forest Watch API key not configured")

        iso = FOREST_REGION_ISO.get(locator, "BRA")
        payload = await get_json(
            self._http,
            self._url,
            source=self.name,
            params={"sql": _ALERTS_SQL.format(iso=iso)},
            headers={"x-api-key": self._api_key},
        )
        rows = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
            raise SourceUnavailableError("Global Forest Watch returned no rows")

        row = rows[0]
        try:
            alert_count = int(row.get("alert_count") or 0)
            total_area = float(row.get("total_area_ha") or 0.0)
        except (TypeError, ValueError) as exc:
            raise SourceUnavailableError("Global Forest Watch returned malformed counts") from exc

        logger.info("Global Forest Watch: %d alerts for %s (%s)", alert_count, locator, iso)
        return MetricSnapshot(
            category=self.category,
            locator=locator,
            metrics=DeforestationMetrics(alert_count=alert_count, total_area_ha=total_area),
            source=self.name,
        )
