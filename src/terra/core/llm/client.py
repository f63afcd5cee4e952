"""LLM client — the single place inference calls leave the process."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from terra.core.errors import TerraError
from terra.core.llm.provider import LLMProvider, ProviderResponse

logger = logging.getLogger(__name__)


class LLMTransportError(TerraError):
    """The provider call itself failed (network, timeout, auth, 5xx...)."""


@dataclass
class LLMResponse:
    """Raw text returned by the provider plus usage accounting."""

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0


class LLMClient:
    """Invokes the configured provider and normalises transport failures."""

    def __init__(self, provider: LLMProvider, provider_name: str = "") -> None:
        self.provider = provider
        self.provider_name = provider_name or type(provider).__name__

    async def invoke(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Send one request to the provider.

        Raises:
            LLMTransportError: if the provider raised for any reason.
        """
        try:
            provider_response: ProviderResponse = await self.provider.generate(
                system_message=system_message,
                user_message=user_message,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as exc:
            logger.warning(
                "LLM call via %s failed: %s: %s",
                self.provider_name,
                type(exc).__name__,
                exc,
            )
            raise LLMTransportError(
                f"{self.provider_name} call failed: {type(exc).__name__}"
            ) from exc

        logger.info(
            "LLM call: provider=%s, model=%s, tokens=%d+%d, latency=%.0fms",
            self.provider_name,
            provider_response.model,
            provider_response.input_tokens,
            provider_response.output_tokens,
            provider_response.latency_ms,
        )

        return LLMResponse(
            content=provider_response.content,
            model=provider_response.model,
            usage={
                "input_tokens": provider_response.input_tokens,
                "output_tokens": provider_response.output_tokens,
            },
            latency_ms=provider_response.latency_ms,
        )
