"""Structured-output extraction from free-form LLM text."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

_DECODER = json.JSONDecoder()


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first well-formed JSON object embedded in ``text``.

    Providers often wrap the object in prose or Markdown code fences, so every
    ``{`` is tried as a starting point until one decodes to a dict. Returns
    None when no such object exists.
    """
    if not text:
        return None

    start = text.find("{")
    while start != -1:
        try:
            parsed, _ = _DECODER.raw_decode(text, start)
        except (json.JSONDecodeError, RecursionError):
            # Pathologically nested output is as unusable as broken JSON.
            start = text.find("{", start + 1)
            continue
        if isinstance(parsed, dict):
            return parsed
        start = text.find("{", start + 1)

    logger.debug("No JSON object found in %d chars of LLM output", len(text))
    return None


def require_str(payload: dict[str, Any], key: str) -> str | None:
    """Return ``payload[key]`` stripped, or None if missing/blank/not a string."""
    value = payload.get(key)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None
