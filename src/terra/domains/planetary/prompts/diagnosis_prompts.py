"""Diagnosis prompts — the AI request template and MCP prompt templates."""

from __future__ import annotations

import json

from fastmcp import FastMCP

from terra.domains.planetary.domain_logic.organ_models import MetricSnapshot, OrganCategory

SYSTEM_PROMPT = (
    "You are a planetary physician examining Earth as a living organism. "
    "You read environmental measurements as vital signs and answer with a single "
    "JSON object and nothing else."
)

_ORGAN_GUIDELINES = {
    OrganCategory.LUNGS: (
        "LUNGS: Deforestation and wildfire alerts = respiratory distress. "
        "High alert counts = INFLAMED, low alert counts = HEALTHY."
    ),
    OrganCategory.VEINS: (
        "VEINS: Ocean acidification = circulatory issues. "
        "pH < 8.0 = INFLAMED, pH >= 8.1 = HEALTHY."
    ),
    OrganCategory.SKIN: (
        "SKIN: Air pollution = dermatological damage. AQI is on a 1 (good) to 5 "
        "(very poor) scale. High AQI/PM2.5 = INFLAMED, low values = HEALTHY."
    ),
}


def build_diagnosis_prompt(category: OrganCategory, snapshot: MetricSnapshot) -> str:
    """Render the user message asking for a structured diagnosis."""
    metrics = json.dumps(
        {
            "location": snapshot.locator,
            "data_source": snapshot.source,
            **snapshot.metrics.as_dict(),
        },
        indent=2,
        sort_keys=True,
    )
    return f"""Analyze the following environmental data and provide a visceral medical diagnosis.

Organ Type: {category.display_name}
Environmental Metrics: {metrics}

Respond with exactly this JSON object (no additional text):
{{
  "diagnosis": "A short, visceral medical brief (2-3 sentences) describing the organ's condition using medical terminology",
  "status": "INFLAMED or HEALTHY"
}}

Guidelines:
- {_ORGAN_GUIDELINES[category]}
- Use medical language: "acute inflammation", "chronic degradation", "tissue regeneration", etc.
- Be dramatic but scientifically grounded.
- "status" must be exactly INFLAMED or HEALTHY.

Return ONLY the JSON object, nothing else."""


def register_diagnosis_prompts(mcp: FastMCP) -> None:
    """Register planetary diagnosis MCP prompts."""

    @mcp.prompt()
    def planetary_checkup_prompt() -> str:
        """Prompt template for a full-body planetary check-up."""
        return """Please run a full planetary check-up. For each organ (Lungs, Veins, Skin):

1. Run a diagnostic scan
2. Report the diagnosis, status and health score
3. Say whether the data came from a live source or a synthetic fallback

Finish with a one-paragraph prognosis for the whole planet."""

    @mcp.prompt()
    def organ_checkup_prompt(organ: str = "lungs", site: str = "") -> str:
        """Prompt template for diagnosing a single organ."""
        where = f" at {site}" if site else ""
        return f"""Diagnose the planet's {organ}{where}.

Run a diagnostic scan, then explain the reading in plain language: what was
measured, how severe it is, and what would move the organ toward HEALTHY."""
