"""Process-wide diagnostic state: the AI quota governor and the diagnosis cache.

Built once by the application factory and injected into the orchestrator, so
tests can construct isolated instances (or call :meth:`reset`).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from terra.core.quota.governor import QuotaGovernor
from terra.domains.planetary.diagnosis.cache import DiagnosisCache


@dataclass
class DiagnosticState:
    governor: QuotaGovernor = field(default_factory=QuotaGovernor)
    cache: DiagnosisCache = field(default_factory=DiagnosisCache)

    def reset(self) -> None:
        """Forget all quota usage and cached diagnoses."""
        self.governor.reset()
        self.cache.clear()
