"""Time-boxed diagnosis cache keyed by a fingerprint of (organ, metrics)."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from terra.domains.planetary.domain_logic.organ_models import (
    DiagnosisResult,
    MetricSnapshot,
    OrganCategory,
)

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600.0


def fingerprint_snapshot(category: OrganCategory, snapshot: MetricSnapshot) -> str:
    """SHA-256 of the canonical JSON of a category and snapshot content.

    Keys are sorted so field order never matters. The capture time is left
    out: two identical readings taken a minute apart share one diagnosis.
    """
    payload = {"category": category.value, "snapshot": snapshot.content()}
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    result: DiagnosisResult
    cached_at: datetime


class DiagnosisCache:
    """In-memory memo of diagnoses with lazy expiry.

    Entries older than ``ttl_seconds`` read as absent. They stay in memory
    until overwritten or until :meth:`prune` is called.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl.total_seconds()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def lookup(self, fingerprint: str, now: datetime | None = None) -> DiagnosisResult | None:
        """Return the cached result if it is still within the validity window."""
        now = now or self._clock()
        with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is None:
                return None
            if now - entry.cached_at >= self._ttl:
                return None
            return entry.result

    def store(
        self, fingerprint: str, result: DiagnosisResult, now: datetime | None = None
    ) -> None:
        """Insert or overwrite the entry for ``fingerprint``."""
        now = now or self._clock()
        with self._lock:
            self._entries[fingerprint] = CacheEntry(result=result, cached_at=now)

    def prune(self, now: datetime | None = None) -> int:
        """Drop expired entries. Returns how many were removed."""
        now = now or self._clock()
        with self._lock:
            expired = [
                key for key, entry in self._entries.items() if now - entry.cached_at >= self._ttl
            ]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Pruned %d expired diagnosis cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
