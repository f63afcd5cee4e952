"""MCP tools for planetary diagnostics."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from terra.domains.planetary.diagnosis.orchestrator import DiagnosticOrchestrator

from terra.domains.planetary.domain_logic.organ_models import UnknownCategoryError

logger = logging.getLogger(__name__)


def register_diagnostic_tools(mcp: FastMCP, orchestrator: DiagnosticOrchestrator) -> None:
    """Register organ diagnosis and quota tools on the MCP server."""

    @mcp.tool
    async def diagnose_organ(
        category: str,
        locator: str = "",
        organ_name: str = "",
    ) -> str:
        """Run a diagnostic scan of one of Earth's organs.

        Fetches the latest environmental metrics (falling back to synthetic
        data when live sources are down), diagnoses them with the AI physician
        when quota allows or the rule engine otherwise, and scores the organ's
        health from 0 to 100.

        Args:
            category: Organ to examine: lungs (forests), veins (oceans) or skin (air).
            locator: Site to examine, e.g. "Amazon", "Great Barrier Reef", "Lagos".
            organ_name: Organ display name used to pick a site when no locator is given.
        """
        try:
            scan = await orchestrator.scan(
                category, locator=locator or None, organ_name=organ_name or None
            )
        except UnknownCategoryError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        return json.dumps({"status": "ok", "scan": scan.as_dict()}, indent=2)

    @mcp.tool
    async def diagnose_all_organs(parallel: bool = False) -> str:
        """Run a full-body planetary check-up across the default organ roster.

        Args:
            parallel: Scan all organs concurrently instead of one after another.
        """
        results = await orchestrator.scan_all(parallel=parallel)
        return json.dumps({
            "status": "ok",
            "organs_scanned": len(results),
            "succeeded": sum(1 for r in results if r["success"]),
            "results": results,
        }, indent=2)

    @mcp.tool
    def quota_status() -> str:
        """Report AI quota usage, diagnosis cache size and availability."""
        return json.dumps(orchestrator.quota_status(), indent=2)
