"""Shared test fixtures for Terra diagnostics tests."""

from __future__ import annotations

import asyncio
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("GFW_API_KEY", "")
    monkeypatch.setenv("OPENWEATHER_API_KEY", "")
    monkeypatch.setenv("NOAA_ERDDAP_DATASET", "")
    monkeypatch.setenv("AI_MIN_CALL_INTERVAL_SECONDS", "60")
    monkeypatch.setenv("AI_MAX_DAILY_CALLS", "50")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from terra.core.llm.client import LLMClient  # noqa: E402
from terra.core.llm.providers.mock import MockProvider  # noqa: E402
from terra.core.quota.governor import QuotaGovernor  # noqa: E402
from terra.domains.planetary.connectors import SourceUnavailableError  # noqa: E402
from terra.domains.planetary.connectors.chain import FallbackChain  # noqa: E402
from terra.domains.planetary.diagnosis.ai_client import AIDiagnosisClient  # noqa: E402
from terra.domains.planetary.diagnosis.cache import DiagnosisCache  # noqa: E402
from terra.domains.planetary.diagnosis.orchestrator import DiagnosticOrchestrator  # noqa: E402
from terra.domains.planetary.diagnosis.state import DiagnosticState  # noqa: E402
from terra.domains.planetary.domain_logic.organ_models import (  # noqa: E402
    AirQualityMetrics,
    DeforestationMetrics,
    MetricSnapshot,
    OceanChemistryMetrics,
    OrganCategory,
    acidification_level_for_ph,
)

AI_RESPONSE = (
    '{"diagnosis": "Acute respiratory inflammation across the canopy.", '
    '"status": "INFLAMED", "severity": "HIGH"}'
)


# ---------------------------------------------------------------------------
# Clocks
# ---------------------------------------------------------------------------

class FakeClock:
    """Manually advanced clock returning timezone-aware datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

def lungs_snapshot(alerts: int = 1500, locator: str = "Amazon", **kwargs) -> MetricSnapshot:
    return MetricSnapshot(
        category=OrganCategory.LUNGS,
        locator=locator,
        metrics=DeforestationMetrics(alert_count=alerts, total_area_ha=float(alerts * 5)),
        source=kwargs.pop("source", "NASA EONET"),
        **kwargs,
    )


def veins_snapshot(ph: float = 7.95, locator: str = "Great Barrier Reef", **kwargs) -> MetricSnapshot:
    return MetricSnapshot(
        category=OrganCategory.VEINS,
        locator=locator,
        metrics=OceanChemistryMetrics(ph=ph, acidification_level=acidification_level_for_ph(ph)),
        source=kwargs.pop("source", "NOAA ERDDAP"),
        **kwargs,
    )


def skin_snapshot(aqi: int = 4, pm25: float = 40.0, locator: str = "Lagos", **kwargs) -> MetricSnapshot:
    return MetricSnapshot(
        category=OrganCategory.SKIN,
        locator=locator,
        metrics=AirQualityMetrics(aqi=aqi, pm25=pm25, pm10=60.0, no2=30.0),
        source=kwargs.pop("source", "OpenWeather"),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------

class FakeAdapter:
    """Scripted adapter: returns a fixed snapshot or raises a fixed error."""

    def __init__(
        self,
        category: OrganCategory,
        snapshot: MetricSnapshot | None = None,
        error: Exception | None = None,
        name: str = "Fake",
        delay: float = 0.0,
    ) -> None:
        self._category = category
        self._snapshot = snapshot
        self._error = error
        self._name = name
        self._delay = delay
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def category(self) -> OrganCategory:
        return self._category

    async def fetch(self, locator: str) -> MetricSnapshot:
        self.calls.append(locator)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        if self._snapshot is None:
            raise SourceUnavailableError(f"{self._name} has nothing")
        return self._snapshot


def fixed_chains() -> dict[OrganCategory, FallbackChain]:
    """One live-looking adapter per organ, no network."""
    return {
        OrganCategory.LUNGS: FallbackChain(
            OrganCategory.LUNGS,
            [FakeAdapter(OrganCategory.LUNGS, lungs_snapshot(), name="NASA EONET")],
        ),
        OrganCategory.VEINS: FallbackChain(
            OrganCategory.VEINS,
            [FakeAdapter(OrganCategory.VEINS, veins_snapshot(), name="NOAA ERDDAP")],
        ),
        OrganCategory.SKIN: FallbackChain(
            OrganCategory.SKIN,
            [FakeAdapter(OrganCategory.SKIN, skin_snapshot(), name="OpenWeather")],
        ),
    }


@pytest.fixture
def chains() -> dict[OrganCategory, FallbackChain]:
    return fixed_chains()


# ---------------------------------------------------------------------------
# Diagnosis plumbing
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider(response_content=AI_RESPONSE)


@pytest.fixture
def ai_client(mock_provider: MockProvider) -> AIDiagnosisClient:
    return AIDiagnosisClient(LLMClient(provider=mock_provider, provider_name="mock"))


@pytest.fixture
def state(clock: FakeClock) -> DiagnosticState:
    return DiagnosticState(
        governor=QuotaGovernor(min_interval_seconds=60, daily_ceiling=50, clock=clock),
        cache=DiagnosisCache(ttl_seconds=3600, clock=clock),
    )


@pytest.fixture
def orchestrator(
    chains: dict[OrganCategory, FallbackChain],
    ai_client: AIDiagnosisClient,
    state: DiagnosticState,
) -> DiagnosticOrchestrator:
    return DiagnosticOrchestrator(chains=chains, ai_client=ai_client, state=state)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def make_lungs():
    return lungs_snapshot


@pytest.fixture
def make_veins():
    return veins_snapshot


@pytest.fixture
def make_skin():
    return skin_snapshot


@pytest.fixture
def fake_adapter():
    """The FakeAdapter class, for tests that script their own chains."""
    return FakeAdapter
