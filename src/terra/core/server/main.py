"""Terra server entry point — ``python -m terra.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from terra.core.config.settings import get_settings
from terra.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the Terra MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.terra_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger = logging.getLogger(__name__)
    if not settings.terra_allow_insecure_bind and not _is_loopback_host(settings.terra_host):
        raise RuntimeError(
            "Refusing to bind Terra server to a non-loopback host without an auth layer. "
            "Set TERRA_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting Terra Diagnostics server on %s:%d",
        settings.terra_host,
        settings.terra_port,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.terra_host,
        port=settings.terra_port,
    )


if __name__ == "__main__":
    run()
