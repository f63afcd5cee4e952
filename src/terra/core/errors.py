"""Base exception for the Terra diagnostics server."""

from __future__ import annotations


class TerraError(Exception):
    """Base exception for all Terra errors."""
