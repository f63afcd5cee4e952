"""Terra Diagnostics MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from terra.core.config.settings import Settings, get_settings
from terra.core.llm.client import LLMClient
from terra.core.llm.provider import LLMProvider, create_provider
from terra.core.quota.governor import QuotaGovernor
from terra.domains.planetary.connectors.chain import FallbackChain
from terra.domains.planetary.connectors.http_client import HttpClient, SharedHttpClient
from terra.domains.planetary.connectors.registry import build_default_chains
from terra.domains.planetary.diagnosis.ai_client import AIDiagnosisClient
from terra.domains.planetary.diagnosis.cache import DiagnosisCache
from terra.domains.planetary.diagnosis.orchestrator import DiagnosticOrchestrator
from terra.domains.planetary.diagnosis.state import DiagnosticState
from terra.domains.planetary.domain_logic.organ_models import OrganCategory
from terra.domains.planetary.prompts.diagnosis_prompts import register_diagnosis_prompts
from terra.domains.planetary.tools.diagnostic_tools import register_diagnostic_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "Terra Diagnostics"
SERVER_VERSION = "0.1.0"


def _resolve_provider(settings: Settings) -> tuple[str, LLMProvider]:
    """Pick the configured provider, or the mock one when its key is missing."""
    if settings.llm_provider == "mock":
        provider_name = "mock"
        api_key = ""
        model = ""
    elif settings.llm_provider == "anthropic":
        api_key = settings.anthropic_api_key
        model = settings.anthropic_model
        provider_name = "anthropic" if api_key else "mock"
    elif settings.llm_provider == "openai":
        api_key = settings.openai_api_key
        model = settings.openai_model
        provider_name = "openai" if api_key else "mock"
    else:  # pragma: no cover
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider!r}")

    if provider_name == "mock" and settings.llm_provider != "mock":
        logger.warning(
            "No API key configured for provider '%s'; falling back to mock provider",
            settings.llm_provider,
        )

    provider = create_provider(
        provider_name=provider_name,
        api_key=api_key,
        model=model,
        timeout=settings.ai_timeout_seconds,
    )
    return provider_name, provider


def build_orchestrator(
    settings: Settings,
    *,
    provider_override: LLMProvider | None = None,
    chains_override: dict[OrganCategory, FallbackChain] | None = None,
    state_override: DiagnosticState | None = None,
    http_client: HttpClient | None = None,
) -> DiagnosticOrchestrator:
    """Wire settings into a ready-to-use orchestrator.

    Adapters share ``http_client``; the caller owns its lifetime.
    """
    if provider_override is not None:
        provider_name, provider = type(provider_override).__name__, provider_override
    else:
        provider_name, provider = _resolve_provider(settings)

    ai_client = AIDiagnosisClient(
        LLMClient(provider=provider, provider_name=provider_name),
        temperature=settings.ai_temperature,
        max_output_tokens=settings.ai_max_output_tokens,
        timeout_seconds=settings.ai_timeout_seconds,
    )

    if chains_override is not None:
        chains = chains_override
    else:
        if http_client is None:
            http_client = SharedHttpClient(settings.adapter_timeout_seconds)
        chains = build_default_chains(settings, http_client)
    for chain in chains.values():
        logger.info("%s sources: %s", chain.category.display_name, " > ".join(chain.adapter_names))

    state = state_override or DiagnosticState(
        governor=QuotaGovernor(
            min_interval_seconds=settings.ai_min_call_interval_seconds,
            daily_ceiling=settings.ai_max_daily_calls,
        ),
        cache=DiagnosisCache(ttl_seconds=settings.diagnosis_cache_ttl_seconds),
    )
    logger.info(
        "AI budget: %d calls/day, %.0fs minimum spacing; cache TTL %.0fs",
        state.governor.daily_ceiling,
        state.governor.min_interval_seconds,
        state.cache.ttl_seconds,
    )
    return DiagnosticOrchestrator(chains=chains, ai_client=ai_client, state=state)


def create_app(
    *,
    orchestrator_override: DiagnosticOrchestrator | None = None,
    provider_override: LLMProvider | None = None,
    chains_override: dict[OrganCategory, FallbackChain] | None = None,
    state_override: DiagnosticState | None = None,
) -> FastMCP:
    """Create and configure the Terra Diagnostics MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Builds the inference provider, source chains, quota governor and cache
    3. Registers all tools and prompts

    The adapters' HTTP client is closed when the server shuts down.
    """
    settings = get_settings()
    http_client = SharedHttpClient(settings.adapter_timeout_seconds)

    @asynccontextmanager
    async def lifespan(app: FastMCP) -> AsyncIterator[dict]:
        async with http_client.session():
            yield {}

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Planetary health diagnostics. Treats Earth as a patient with three "
            "organs (Lungs: forests, Veins: oceans, Skin: air) and diagnoses each "
            "from live environmental data, using an AI physician within a strict "
            "daily budget and a rule-based engine otherwise."
        ),
        lifespan=lifespan,
    )

    # --- Orchestrator ---
    if orchestrator_override is not None:
        orchestrator = orchestrator_override
    else:
        orchestrator = build_orchestrator(
            settings,
            provider_override=provider_override,
            chains_override=chains_override,
            state_override=state_override,
            http_client=http_client,
        )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        quota = orchestrator.quota_status()
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "ai_provider": quota["ai_provider"],
            "ai_status": quota["status"],
            "sources": {
                category.value: chain.adapter_names
                for category, chain in orchestrator.chains.items()
            },
        }

    register_diagnostic_tools(server, orchestrator)
    logger.info("Planetary diagnostic tools registered")

    # --- Register prompts ---
    register_diagnosis_prompts(server)

    return server


# Module-level instance for FastMCP discovery ("...app.py:mcp").
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
