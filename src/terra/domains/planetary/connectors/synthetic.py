"""Synthetic metric generators — the last link of every fallback chain.

Values are drawn around realistic levels for each organ so downstream rules
and prompts behave sensibly, and every snapshot is marked ``synthetic=True``.
Pass a seeded ``random.Random`` for reproducible output.
"""

from __future__ import annotations

import random

from terra.domains.planetary.domain_logic.organ_models import (
    AirQualityMetrics,
    DeforestationMetrics,
    MetricSnapshot,
    OceanChemistryMetrics,
    OrganCategory,
    acidification_level_for_ph,
)

SYNTHETIC_SOURCE_LABELS = {
    OrganCategory.LUNGS: "Synthetic (deforestation trend model)",
    OrganCategory.VEINS: "Synthetic (NOAA acidification trend model)",
    OrganCategory.SKIN: "Synthetic (urban air quality model)",
}


def _deforestation(rng: random.Random) -> DeforestationMetrics:
    alerts = rng.randint(500, 1499)
    return DeforestationMetrics(alert_count=alerts, total_area_ha=float(alerts * 5))


def _ocean(rng: random.Random, locator: str) -> OceanChemistryMetrics:
    # Reef waters run more acidic (7.90-8.00) than open ocean (8.00-8.10).
    base = 7.95 if "barrier" in locator.lower() else 8.05
    ph = round(base + (rng.random() - 0.5) * 0.1, 3)
    return OceanChemistryMetrics(ph=ph, acidification_level=acidification_level_for_ph(ph))


def _air(rng: random.Random) -> AirQualityMetrics:
    return AirQualityMetrics(
        aqi=rng.randint(3, 5),
        pm25=round(rng.uniform(25, 75), 2),
        pm10=round(rng.uniform(40, 120), 2),
        no2=round(rng.uniform(20, 60), 2),
    )


def synthesize(
    category: OrganCategory, locator: str, rng: random.Random | None = None
) -> MetricSnapshot:
    """Generate a synthetic snapshot for ``category`` at ``locator``."""
    rng = rng or random.Random()
    if category is OrganCategory.LUNGS:
        metrics = _deforestation(rng)
    elif category is OrganCategory.VEINS:
        metrics = _ocean(rng, locator)
    else:
        metrics = _air(rng)
    return MetricSnapshot(
        category=category,
        locator=locator,
        metrics=metrics,
        source=SYNTHETIC_SOURCE_LABELS[category],
        synthetic=True,
    )


class SyntheticMetricsAdapter:
    """Always-available adapter that generates clearly marked synthetic data."""

    def __init__(self, category: OrganCategory, rng: random.Random | None = None) -> None:
        self._category = category
        self._rng = rng or random.Random()

    @property
    def name(self) -> str:
        return SYNTHETIC_SOURCE_LABELS[self._category]

    @property
    def category(self) -> OrganCategory:
        return self._category

    async def fetch(self, locator: str) -> MetricSnapshot:
        return synthesize(self._category, locator, self._rng)
