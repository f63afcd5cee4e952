"""AI diagnosis client — structured-output request plus validation.

The provider is asked for one JSON object ``{"diagnosis": ..., "status": ...}``.
Output handling is deliberately tolerant on the outside and strict on the
inside: surrounding prose is ignored, but the extracted object must carry a
non-empty diagnosis and a status of exactly INFLAMED or HEALTHY. Anything else
yields the generic "environmental stress" diagnosis with status INFLAMED.

Transport failures are not absorbed here; they surface as
:class:`DiagnosisTransportError` so the orchestrator can switch to the
rule-based engine.
"""

from __future__ import annotations

import asyncio
import logging

from terra.core.errors import TerraError
from terra.core.llm.client import LLMClient, LLMTransportError
from terra.core.llm.response import extract_json_object, require_str
from terra.domains.planetary.domain_logic.organ_models import (
    DiagnosisResult,
    DiagnosisSource,
    DiagnosisStatus,
    MetricSnapshot,
    OrganCategory,
    Severity,
)
from terra.domains.planetary.prompts.diagnosis_prompts import (
    SYSTEM_PROMPT,
    build_diagnosis_prompt,
)

logger = logging.getLogger(__name__)

# Status must be spelled exactly; anything else is treated as unusable output.
_VALID_STATUSES = frozenset(s.value for s in DiagnosisStatus)


class DiagnosisTransportError(TerraError):
    """The inference call was attempted but did not complete."""


def generic_stress_diagnosis(category: OrganCategory) -> DiagnosisResult:
    """The conservative stand-in used when AI output cannot be trusted."""
    return DiagnosisResult(
        diagnosis=(
            f"Environmental stress detected in {category.display_name}. "
            "Immediate intervention required."
        ),
        status=DiagnosisStatus.INFLAMED,
        source=DiagnosisSource.AI_FALLBACK,
    )


def parse_diagnosis(category: OrganCategory, text: str) -> DiagnosisResult:
    """Turn raw provider text into a DiagnosisResult. Never raises."""
    payload = extract_json_object(text)
    if payload is None:
        logger.warning("AI response for %s contained no JSON object", category.value)
        return generic_stress_diagnosis(category)

    diagnosis = require_str(payload, "diagnosis")
    status_raw = require_str(payload, "status")
    if diagnosis is None or status_raw is None:
        logger.warning(
            "AI response for %s missing required fields (got keys: %s)",
            category.value,
            sorted(payload),
        )
        return generic_stress_diagnosis(category)

    if status_raw not in _VALID_STATUSES:
        logger.warning("AI response for %s had invalid status %r", category.value, status_raw)
        return generic_stress_diagnosis(category)
    status = DiagnosisStatus(status_raw)

    severity: Severity | None = None
    severity_raw = require_str(payload, "severity")
    if severity_raw is not None:
        try:
            severity = Severity(severity_raw.upper())
        except ValueError:
            logger.debug("Ignoring unknown severity %r", severity_raw)

    return DiagnosisResult(
        diagnosis=diagnosis,
        status=status,
        severity=severity,
        source=DiagnosisSource.AI,
    )


class AIDiagnosisClient:
    """Asks the inference provider for a diagnosis of one organ.

    Only call :meth:`diagnose` after the quota governor has granted a slot.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        temperature: float = 0.7,
        max_output_tokens: int = 1024,
        timeout_seconds: float | None = 30.0,
    ) -> None:
        self._llm = llm_client
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout_seconds = timeout_seconds

    @property
    def provider_name(self) -> str:
        return self._llm.provider_name

    async def diagnose(
        self, category: OrganCategory, snapshot: MetricSnapshot
    ) -> DiagnosisResult:
        """Request and validate a diagnosis.

        Raises:
            DiagnosisTransportError: the provider call failed or timed out.
        """
        call = self._llm.invoke(
            system_message=SYSTEM_PROMPT,
            user_message=build_diagnosis_prompt(category, snapshot),
            max_tokens=self.max_output_tokens,
            temperature=self.temperature,
        )
        try:
            if self.timeout_seconds:
                response = await asyncio.wait_for(call, timeout=self.timeout_seconds)
            else:
                response = await call
        except asyncio.TimeoutError:
            raise DiagnosisTransportError(
                f"AI diagnosis for {category.value} timed out after {self.timeout_seconds}s"
            ) from None
        except LLMTransportError as exc:
            raise DiagnosisTransportError(str(exc)) from exc

        return parse_diagnosis(category, response.content)
