"""Fallback chain runner — ordered adapters, first genuine result wins.

Priority order per organ is fixed at construction, e.g. for Lungs::

    NASA EONET > Global Forest Watch > Synthetic

Each adapter call is bounded by a timeout. An exception, a timeout, or a
synthetic snapshot all move the chain to the next adapter. When nothing
genuine turns up, the last synthetic snapshot is returned; the chain never
raises to its caller.
"""

from __future__ import annotations

import asyncio
import logging
import random

from terra.domains.planetary.connectors import MetricSourceAdapter, SourceUnavailableError
from terra.domains.planetary.connectors.synthetic import synthesize
from terra.domains.planetary.domain_logic.organ_models import MetricSnapshot, OrganCategory

logger = logging.getLogger(__name__)

DEFAULT_ADAPTER_TIMEOUT_SECONDS = 15.0


class FallbackChain:
    """Runs a category's adapters in priority order.

    Usage::

        chain = FallbackChain(OrganCategory.SKIN, [
            openweather,   # Highest priority
            open_meteo,    # Free fallback
            synthetic,     # Always succeeds
        ])
        snapshot = await chain.fetch("Lagos")
    """

    def __init__(
        self,
        category: OrganCategory,
        adapters: list[MetricSourceAdapter],
        timeout_seconds: float = DEFAULT_ADAPTER_TIMEOUT_SECONDS,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize with adapters in priority order (highest first).

        Args:
            category: Organ category every adapter must serve.
            adapters: Ordered adapters; the first genuine snapshot wins.
            timeout_seconds: Upper bound on each individual adapter call.
            rng: Random source for the emergency synthetic snapshot.
        """
        if not adapters:
            raise ValueError("At least one adapter is required")
        mismatched = [a.name for a in adapters if a.category is not category]
        if mismatched:
            raise ValueError(
                f"Adapters {mismatched} do not serve category {category.value!r}"
            )
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self._category = category
        self._adapters = list(adapters)
        self._timeout = timeout_seconds
        self._rng = rng

    @property
    def category(self) -> OrganCategory:
        return self._category

    @property
    def adapter_names(self) -> list[str]:
        return [a.name for a in self._adapters]

    async def fetch(self, locator: str) -> MetricSnapshot:
        """Return exactly one snapshot for ``locator``. Never raises."""
        last_synthetic: MetricSnapshot | None = None

        for adapter in self._adapters:
            try:
                snapshot = await asyncio.wait_for(adapter.fetch(locator), timeout=self._timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "%s timed out after %.1fs for %s; trying next source",
                    adapter.name,
                    self._timeout,
                    locator,
                )
                continue
            except SourceUnavailableError as exc:
                logger.warning("%s unavailable for %s: %s", adapter.name, locator, exc)
                continue
            except Exception:
                logger.exception("%s failed for %s; trying next source", adapter.name, locator)
                continue

            if snapshot.category is not self._category:
                logger.error(
                    "%s returned a %s snapshot for a %s chain; ignoring it",
                    adapter.name,
                    snapshot.category.value,
                    self._category.value,
                )
                continue

            if not snapshot.synthetic:
                logger.info("%s metrics for %s from %s", self._category.value, locator, snapshot.source)
                return snapshot

            logger.info("%s returned synthetic data for %s", adapter.name, locator)
            last_synthetic = snapshot

        if last_synthetic is not None:
            return last_synthetic

        logger.warning(
            "Every %s source failed for %s; generating synthetic metrics",
            self._category.value,
            locator,
        )
        return synthesize(self._category, locator, self._rng)

    def describe(self) -> dict[str, str]:
        """Provenance summary for status output."""
        return {
            "category": self._category.value,
            "priority": " > ".join(self.adapter_names),
            "timeout_seconds": f"{self._timeout:g}",
        }
