"""Diagnostic orchestrator — metrics in, diagnosis out, within budget.

``generate_diagnosis`` decides, per request, which path produces the answer:

1. A cached diagnosis for the same (organ, metrics) fingerprint is returned
   without touching the quota.
2. Concurrent requests for one fingerprint share a single computation.
3. The quota governor reserves an AI slot atomically. Denied: rule engine.
4. Permitted: AI client. A transport failure switches to the rule engine and
   the slot stays spent.

Whatever path produced the result, it is cached and returned in the same
shape. An unknown category raises :class:`UnknownCategoryError`; source
and provider failures never reach the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from terra.domains.planetary.connectors.chain import FallbackChain
from terra.domains.planetary.diagnosis.ai_client import AIDiagnosisClient, DiagnosisTransportError
from terra.domains.planetary.diagnosis.cache import fingerprint_snapshot
from terra.domains.planetary.diagnosis.state import DiagnosticState
from terra.domains.planetary.domain_logic.geography import (
    DEFAULT_LOCATORS,
    DEFAULT_ORGANS,
    Organ,
    locator_for_organ,
)
from terra.domains.planetary.domain_logic.health_score import compute_health_score
from terra.domains.planetary.domain_logic.organ_models import (
    DiagnosisResult,
    DiagnosticScan,
    MetricSnapshot,
    OrganCategory,
)
from terra.domains.planetary.domain_logic.rule_engine import diagnose_by_rules

logger = logging.getLogger(__name__)


class DiagnosticOrchestrator:
    """Coordinates source chains, quota, cache, AI client and rule engine."""

    def __init__(
        self,
        chains: dict[OrganCategory, FallbackChain],
        ai_client: AIDiagnosisClient,
        state: DiagnosticState | None = None,
        organs: tuple[Organ, ...] = DEFAULT_ORGANS,
    ) -> None:
        missing = [c.value for c in OrganCategory if c not in chains]
        if missing:
            raise ValueError(f"No source chain configured for: {', '.join(missing)}")
        self._chains = dict(chains)
        self._ai = ai_client
        self.state = state or DiagnosticState()
        self.organs = organs
        self._inflight: dict[str, asyncio.Task[DiagnosisResult]] = {}
        self._inflight_lock = asyncio.Lock()

    @property
    def chains(self) -> dict[OrganCategory, FallbackChain]:
        return dict(self._chains)

    # ------------------------------------------------------------------
    # Diagnosis
    # ------------------------------------------------------------------

    async def generate_diagnosis(
        self, category: OrganCategory | str, snapshot: MetricSnapshot
    ) -> DiagnosisResult:
        """Diagnose ``snapshot`` for ``category``. Always returns a result.

        Raises:
            UnknownCategoryError: ``category`` is not a known organ category.
        """
        category = OrganCategory.parse(category)
        if snapshot.category is not category:
            raise ValueError(
                f"Snapshot is for {snapshot.category.value}, not {category.value}"
            )

        fingerprint = fingerprint_snapshot(category, snapshot)
        cached = self.state.cache.lookup(fingerprint)
        if cached is not None:
            logger.info("Cache hit for %s (%s)", category.value, fingerprint[:12])
            return cached

        async with self._inflight_lock:
            # Re-check under the map lock: a computation may have finished meanwhile.
            cached = self.state.cache.lookup(fingerprint)
            if cached is not None:
                return cached
            task = self._inflight.get(fingerprint)
            if task is None:
                # Detached from the requesting coroutine: cancelling a waiter
                # never cancels the shared computation.
                task = asyncio.get_running_loop().create_task(
                    self._compute_and_store(category, snapshot, fingerprint)
                )
                self._inflight[fingerprint] = task
                task.add_done_callback(lambda done: self._forget(fingerprint, done))
            else:
                logger.debug("Joining in-flight diagnosis for %s", category.value)

        return await asyncio.shield(task)

    def _forget(self, fingerprint: str, task: asyncio.Task[DiagnosisResult]) -> None:
        if self._inflight.get(fingerprint) is task:
            del self._inflight[fingerprint]
        if not task.cancelled() and task.exception() is not None:
            logger.error("Diagnosis computation failed", exc_info=task.exception())

    async def _compute_and_store(
        self, category: OrganCategory, snapshot: MetricSnapshot, fingerprint: str
    ) -> DiagnosisResult:
        result = await self._compute(category, snapshot)
        self.state.cache.store(fingerprint, result)
        return result

    async def _compute(
        self, category: OrganCategory, snapshot: MetricSnapshot
    ) -> DiagnosisResult:
        if not self.state.governor.try_acquire():
            logger.info("Using rule-based diagnosis for %s (AI quota unavailable)", category.value)
            return diagnose_by_rules(category, snapshot)

        try:
            return await self._ai.diagnose(category, snapshot)
        except DiagnosisTransportError as exc:
            logger.warning(
                "AI diagnosis for %s failed (%s); falling back to rule-based diagnosis",
                category.value,
                exc,
            )
            return diagnose_by_rules(category, snapshot)

    # ------------------------------------------------------------------
    # Scans
    # ------------------------------------------------------------------

    def resolve_locator(
        self,
        category: OrganCategory,
        locator: str | None = None,
        organ_name: str | None = None,
    ) -> str:
        """An explicit locator wins, then the organ name, then the default site."""
        if locator:
            return locator
        if organ_name:
            return locator_for_organ(category, organ_name)
        return DEFAULT_LOCATORS[category]

    async def scan(
        self,
        category: OrganCategory | str,
        locator: str | None = None,
        organ_name: str | None = None,
    ) -> DiagnosticScan:
        """Fetch metrics for one organ, diagnose them and score its health."""
        category = OrganCategory.parse(category)
        site = self.resolve_locator(category, locator, organ_name)
        snapshot = await self._chains[category].fetch(site)
        diagnosis = await self.generate_diagnosis(category, snapshot)
        return DiagnosticScan(
            category=category,
            locator=site,
            snapshot=snapshot,
            diagnosis=diagnosis,
            health_score=compute_health_score(snapshot),
        )

    async def _scan_organ(self, organ: Organ) -> dict[str, Any]:
        try:
            result = await self.scan(organ.category, locator=organ.locator, organ_name=organ.name)
        except Exception as exc:
            logger.exception("Diagnostic scan failed for %s", organ.name)
            return {
                "organ": organ.name,
                "category": organ.category.value,
                "success": False,
                "error": f"{type(exc).__name__}: {exc}",
            }
        return {"organ": organ.name, "success": True, **result.as_dict()}

    async def scan_all(
        self, organs: tuple[Organ, ...] | list[Organ] | None = None, parallel: bool = False
    ) -> list[dict[str, Any]]:
        """Scan every organ in the roster. One organ's failure never aborts the sweep."""
        roster = list(organs if organs is not None else self.organs)
        if parallel:
            results = await asyncio.gather(*(self._scan_organ(o) for o in roster))
            return list(results)
        return [await self._scan_organ(o) for o in roster]

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def quota_status(self) -> dict[str, Any]:
        """Read-only view of AI quota usage and cache state."""
        quota = self.state.governor.snapshot()
        cache = self.state.cache
        limit = quota.daily_calls_limit
        percentage = round(quota.daily_calls_used / limit * 100, 1) if limit else 100.0
        if quota.exhausted:
            status = "QUOTA_EXCEEDED"
            message = "Daily AI limit reached. Using rule-based diagnosis."
        else:
            status = "AVAILABLE"
            message = f"{quota.remaining_calls} AI calls remaining today."
        return {
            "daily_calls_used": quota.daily_calls_used,
            "daily_calls_limit": limit,
            "remaining_calls": quota.remaining_calls,
            "percentage_used": percentage,
            "last_reset_day": quota.last_reset_day.isoformat(),
            "last_call_at": quota.last_call_at.isoformat() if quota.last_call_at else None,
            "cache_size": cache.size,
            "cache_ttl_minutes": round(cache.ttl_seconds / 60, 2),
            "min_interval_seconds": quota.min_interval_seconds,
            "ai_provider": self._ai.provider_name,
            "status": status,
            "message": message,
        }
