"""Planetary organ categories, metric snapshots and diagnosis results.

Earth is modelled as a patient with three organs, each backed by one class of
environmental metric:

* ``LUNGS`` — forests; wildfire and deforestation alerts.
* ``VEINS`` — oceans; seawater pH and acidification.
* ``SKIN``  — air; air quality index and particulate matter.

Metric payloads are a tagged union keyed by category: every category has its
own frozen metrics dataclass, and a :class:`MetricSnapshot` refuses to pair a
category with the wrong variant.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

from terra.core.errors import TerraError


class UnknownCategoryError(TerraError, ValueError):
    """Raised when a caller names an organ category that does not exist."""


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class OrganCategory(str, Enum):
    """The fixed set of organs the orchestrator can diagnose."""

    LUNGS = "lungs"
    VEINS = "veins"
    SKIN = "skin"

    @property
    def display_name(self) -> str:
        """Capitalised organ name used in prompts and diagnosis text."""
        return self.value.capitalize()

    @property
    def metric_domain(self) -> str:
        return _METRIC_DOMAINS[self]

    @classmethod
    def parse(cls, value: str | OrganCategory) -> OrganCategory:
        """Resolve a category from its value, name, display name or alias.

        Raises:
            UnknownCategoryError: if ``value`` matches no category.
        """
        if isinstance(value, OrganCategory):
            return value
        if not isinstance(value, str):
            raise UnknownCategoryError(f"Unknown organ category: {value!r}")

        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        category = _CATEGORY_ALIASES.get(key)
        if category is None:
            raise UnknownCategoryError(
                f"Unknown organ category: {value!r}. "
                f"Expected one of: {', '.join(c.value for c in cls)}"
            )
        return category


_METRIC_DOMAINS = {
    OrganCategory.LUNGS: "wildfire/deforestation",
    OrganCategory.VEINS: "ocean chemistry",
    OrganCategory.SKIN: "air quality",
}

_CATEGORY_ALIASES: dict[str, OrganCategory] = {
    "lungs": OrganCategory.LUNGS,
    "forest": OrganCategory.LUNGS,
    "forests": OrganCategory.LUNGS,
    "wildfire": OrganCategory.LUNGS,
    "wildfires": OrganCategory.LUNGS,
    "deforestation": OrganCategory.LUNGS,
    "veins": OrganCategory.VEINS,
    "ocean": OrganCategory.VEINS,
    "oceans": OrganCategory.VEINS,
    "ocean_ph": OrganCategory.VEINS,
    "ocean_chemistry": OrganCategory.VEINS,
    "skin": OrganCategory.SKIN,
    "air": OrganCategory.SKIN,
    "air_quality": OrganCategory.SKIN,
}


class DiagnosisStatus(str, Enum):
    INFLAMED = "INFLAMED"
    HEALTHY = "HEALTHY"


class Severity(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class DiagnosisSource(str, Enum):
    """Which path produced a diagnosis."""

    AI = "ai"
    AI_FALLBACK = "ai_fallback"  # AI was called but its output was unusable
    RULE_BASED = "rule_based"


# ---------------------------------------------------------------------------
# Metric variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WildfireEvent:
    """A single satellite-observed wildfire event."""

    title: str
    date: str | None = None
    longitude: float | None = None
    latitude: float | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "date": self.date,
            "longitude": self.longitude,
            "latitude": self.latitude,
        }


@dataclass(frozen=True)
class DeforestationMetrics:
    """Lungs: wildfire/deforestation alerts over the last 30 days."""

    alert_count: int
    total_area_ha: float
    events: tuple[WildfireEvent, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "alert_count": self.alert_count,
            "total_area_ha": self.total_area_ha,
            "events": [e.as_dict() for e in self.events],
        }


@dataclass(frozen=True)
class OceanChemistryMetrics:
    """Veins: surface seawater chemistry."""

    ph: float
    acidification_level: str  # 'LOW' | 'MODERATE' | 'HIGH'
    latitude: float | None = None
    longitude: float | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "ph": self.ph,
            "acidification_level": self.acidification_level,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass(frozen=True)
class AirQualityMetrics:
    """Skin: air quality. ``aqi`` uses the 1 (good) to 5 (very poor) scale."""

    aqi: int
    pm25: float
    pm10: float
    no2: float
    co: float | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "aqi": self.aqi,
            "pm25": self.pm25,
            "pm10": self.pm10,
            "no2": self.no2,
            "co": self.co,
        }


OrganMetrics = Union[DeforestationMetrics, OceanChemistryMetrics, AirQualityMetrics]

METRIC_TYPES: dict[OrganCategory, type] = {
    OrganCategory.LUNGS: DeforestationMetrics,
    OrganCategory.VEINS: OceanChemistryMetrics,
    OrganCategory.SKIN: AirQualityMetrics,
}


def acidification_level_for_ph(ph: float) -> str:
    """Classify seawater pH into an acidification level."""
    if ph < 8.0:
        return "HIGH"
    if ph < 8.1:
        return "MODERATE"
    return "LOW"


# ---------------------------------------------------------------------------
# Snapshot and result types
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MetricSnapshot:
    """One reading of an organ's metrics, produced by a single source adapter.

    ``source`` names the adapter that produced it (e.g. ``"NASA EONET"``).
    ``synthetic`` is True whenever the adapter could not reach its real source
    and generated the values instead.
    """

    category: OrganCategory
    locator: str
    metrics: OrganMetrics
    source: str
    synthetic: bool = False
    captured_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        expected = METRIC_TYPES[self.category]
        if not isinstance(self.metrics, expected):
            raise TypeError(
                f"{self.category.value} snapshot requires {expected.__name__}, "
                f"got {type(self.metrics).__name__}"
            )

    def content(self) -> dict[str, Any]:
        """Everything that identifies the reading, minus the capture time."""
        return {
            "category": self.category.value,
            "locator": self.locator,
            "source": self.source,
            "synthetic": self.synthetic,
            "metrics": self.metrics.as_dict(),
        }

    def as_dict(self) -> dict[str, Any]:
        return {**self.content(), "captured_at": self.captured_at.isoformat()}


@dataclass(frozen=True)
class DiagnosisResult:
    """A diagnosis, identical in shape whether AI- or rule-generated."""

    diagnosis: str
    status: DiagnosisStatus
    source: DiagnosisSource
    severity: Severity | None = None
    generated_at: datetime = field(default_factory=_utcnow)

    def as_dict(self) -> dict[str, Any]:
        return {
            "diagnosis": self.diagnosis,
            "status": self.status.value,
            "severity": self.severity.value if self.severity else None,
            "source": self.source.value,
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass(frozen=True)
class DiagnosticScan:
    """A full scan: the metrics fetched, their diagnosis and a health score."""

    category: OrganCategory
    locator: str
    snapshot: MetricSnapshot
    diagnosis: DiagnosisResult
    health_score: int
    scanned_at: datetime = field(default_factory=_utcnow)

    def as_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "locator": self.locator,
            "metrics": self.snapshot.as_dict(),
            "diagnosis": self.diagnosis.diagnosis,
            "status": self.diagnosis.status.value,
            "severity": self.diagnosis.severity.value if self.diagnosis.severity else None,
            "diagnosis_source": self.diagnosis.source.value,
            "health_score": self.health_score,
            "scanned_at": self.scanned_at.isoformat(),
        }
