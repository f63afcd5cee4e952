"""Organ health score (0-100) derived directly from the raw metrics."""

from __future__ import annotations

from terra.domains.planetary.domain_logic.organ_models import (
    AirQualityMetrics,
    DeforestationMetrics,
    MetricSnapshot,
    OceanChemistryMetrics,
)


def _clamp(value: float) -> int:
    return int(round(max(0.0, min(100.0, value))))


def compute_health_score(snapshot: MetricSnapshot) -> int:
    """Score an organ from its metrics; higher is healthier.

    * Lungs: 100 minus one point per ten alerts.
    * Veins: pH 7.5 scores 0, pH 8.0 scores 100.
    * Skin: 15 points lost per AQI step.
    """
    m = snapshot.metrics
    if isinstance(m, DeforestationMetrics):
        return _clamp(100 - m.alert_count / 10)
    if isinstance(m, OceanChemistryMetrics):
        return _clamp((m.ph - 7.5) * 200)
    if isinstance(m, AirQualityMetrics):
        return _clamp(100 - m.aqi * 15)
    raise TypeError(f"Unsupported metrics type: {type(m).__name__}")
