"""Rule-based diagnosis engine — deterministic, threshold-driven, no network.

Used whenever the AI path is unavailable, disallowed by quota, or failed at
the transport level. Each organ has an ordered list of rules evaluated from
most to least severe; the first matching rule wins. When none match, the organ
is HEALTHY.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from terra.domains.planetary.domain_logic.organ_models import (
    AirQualityMetrics,
    DeforestationMetrics,
    DiagnosisResult,
    DiagnosisSource,
    DiagnosisStatus,
    MetricSnapshot,
    OceanChemistryMetrics,
    OrganCategory,
    Severity,
    UnknownCategoryError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThresholdRule:
    """One severity tier: a predicate over the metrics plus a text template."""

    severity: Severity
    matches: Callable[[object], bool]
    template: str


# ---------------------------------------------------------------------------
# Lungs — deforestation / wildfire alerts
# ---------------------------------------------------------------------------

_LUNG_RULES = (
    ThresholdRule(
        Severity.CRITICAL,
        lambda m: m.alert_count > 1000,
        "CRITICAL RESPIRATORY DISTRESS: {alerts} deforestation alerts detected in "
        "{locator}. Massive tissue damage observed. Area affected: {area} hectares. "
        "Immediate intervention required to prevent irreversible damage.",
    ),
    ThresholdRule(
        Severity.HIGH,
        lambda m: m.alert_count > 500,
        "ACUTE INFLAMMATION: {alerts} deforestation events compromising respiratory "
        "function in {locator}. Significant tissue degradation detected. Urgent "
        "restoration protocols recommended.",
    ),
    ThresholdRule(
        Severity.MODERATE,
        lambda m: m.alert_count > 200,
        "MODERATE STRESS: {alerts} deforestation alerts indicate early-stage "
        "respiratory compromise in {locator}. Preventive measures advised to avoid "
        "progression.",
    ),
)

_LUNG_HEALTHY = (
    "STABLE CONDITION: Minimal deforestation activity ({alerts} alerts) in {locator}. "
    "Respiratory function within normal parameters. Continue monitoring."
)


def _lung_fields(m: DeforestationMetrics, locator: str) -> dict[str, str]:
    return {
        "alerts": f"{m.alert_count:,}",
        "area": f"{m.total_area_ha:,.0f}",
        "locator": locator,
    }


# ---------------------------------------------------------------------------
# Veins — ocean acidification
# ---------------------------------------------------------------------------

_VEIN_RULES = (
    ThresholdRule(
        Severity.CRITICAL,
        lambda m: m.ph < 7.9,
        "SEVERE ACIDOSIS: Ocean pH at {ph} in {locator}. Critical acidification "
        "threatening circulatory system integrity. Coral bleaching and marine "
        "ecosystem collapse imminent. Emergency alkalinity restoration required.",
    ),
    ThresholdRule(
        Severity.HIGH,
        lambda m: m.ph < 8.0,
        "ACUTE ACIDIFICATION: pH level {ph} detected in {locator}. Circulatory system "
        "under significant stress. {level} acidification level compromising vascular "
        "health. Immediate buffering intervention needed.",
    ),
    ThresholdRule(
        Severity.MODERATE,
        lambda m: m.ph < 8.1,
        "EARLY ACIDOSIS: pH {ph} in {locator} indicates moderate circulatory stress. "
        "{level} acidification detected. Preventive measures recommended.",
    ),
)

_VEIN_HEALTHY = (
    "OPTIMAL CIRCULATION: Ocean pH at {ph} in {locator}. Vascular system functioning "
    "normally. Acidification levels within safe parameters."
)


def _vein_fields(m: OceanChemistryMetrics, locator: str) -> dict[str, str]:
    return {"ph": f"{m.ph:.3f}", "level": m.acidification_level, "locator": locator}


# ---------------------------------------------------------------------------
# Skin — air quality
# ---------------------------------------------------------------------------

_SKIN_RULES = (
    ThresholdRule(
        Severity.CRITICAL,
        lambda m: m.aqi >= 4 or m.pm25 > 35,
        "SEVERE DERMAL TOXICITY: Air Quality Index {aqi} (Unhealthy) in {locator}. "
        "PM2.5 particulate matter at {pm25} μg/m³. Skin barrier severely compromised. "
        "Toxic exposure causing cellular damage. Immediate air purification required.",
    ),
    ThresholdRule(
        Severity.HIGH,
        lambda m: m.aqi >= 3 or m.pm25 > 25,
        "ACUTE IRRITATION: AQI {aqi} with PM2.5 at {pm25} μg/m³ in {locator}. "
        "Moderate air pollution causing dermal stress. Protective measures advised.",
    ),
    ThresholdRule(
        Severity.MODERATE,
        lambda m: m.aqi >= 2 or m.pm25 > 12,
        "MILD INFLAMMATION: AQI {aqi}, PM2.5 {pm25} μg/m³ in {locator}. Acceptable "
        "air quality but showing early signs of environmental stress. Monitor closely.",
    ),
)

_SKIN_HEALTHY = (
    "HEALTHY EPIDERMIS: Air quality excellent in {locator}. AQI {aqi}, PM2.5 {pm25} "
    "μg/m³. Skin barrier functioning optimally. No intervention needed."
)


def _skin_fields(m: AirQualityMetrics, locator: str) -> dict[str, str]:
    return {"aqi": str(m.aqi), "pm25": f"{m.pm25:.2f}", "locator": locator}


_RULEBOOK = {
    OrganCategory.LUNGS: (_LUNG_RULES, _LUNG_HEALTHY, _lung_fields),
    OrganCategory.VEINS: (_VEIN_RULES, _VEIN_HEALTHY, _vein_fields),
    OrganCategory.SKIN: (_SKIN_RULES, _SKIN_HEALTHY, _skin_fields),
}


def diagnose_by_rules(
    category: OrganCategory, snapshot: MetricSnapshot
) -> DiagnosisResult:
    """Diagnose ``snapshot`` from fixed thresholds.

    Raises:
        UnknownCategoryError: if ``category`` has no rulebook.
        ValueError: if the snapshot belongs to a different category.
    """
    try:
        rules, healthy_template, fields_for = _RULEBOOK[category]
    except KeyError:
        raise UnknownCategoryError(f"No diagnostic rules for {category!r}") from None

    if snapshot.category is not category:
        raise ValueError(
            f"Snapshot category {snapshot.category.value!r} does not match "
            f"requested category {category.value!r}"
        )

    fields = fields_for(snapshot.metrics, snapshot.locator)
    for rule in rules:
        if rule.matches(snapshot.metrics):
            logger.debug(
                "Rule match for %s at %s: %s", category.value, snapshot.locator, rule.severity.value
            )
            return DiagnosisResult(
                diagnosis=rule.template.format(**fields),
                status=DiagnosisStatus.INFLAMED,
                severity=rule.severity,
                source=DiagnosisSource.RULE_BASED,
            )

    return DiagnosisResult(
        diagnosis=healthy_template.format(**fields),
        status=DiagnosisStatus.HEALTHY,
        severity=Severity.LOW,
        source=DiagnosisSource.RULE_BASED,
    )
