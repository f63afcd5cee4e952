"""Metric source connectors — one adapter per external data source."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from terra.core.errors import TerraError
from terra.domains.planetary.domain_logic.organ_models import MetricSnapshot, OrganCategory


class SourceUnavailableError(TerraError):
    """An adapter could not obtain genuine data from its source."""


@runtime_checkable
class MetricSourceAdapter(Protocol):
    """Abstract interface for one environmental data source.

    The fallback chain calls ``fetch`` without knowing whether data comes from
    a satellite feed, a paid API or a synthetic generator. Adapters raise on
    failure; generators return snapshots marked ``synthetic=True``.
    """

    @property
    def name(self) -> str:
        """Provenance label, e.g. 'NASA EONET'."""
        ...

    @property
    def category(self) -> OrganCategory:
        """The organ category this adapter produces snapshots for."""
        ...

    async def fetch(self, locator: str) -> MetricSnapshot:
        """Fetch a snapshot for a site or region name."""
        ...
