"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Terra diagnostics server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the tools.
    terra_host: str = "127.0.0.1"
    terra_port: int = 8001
    terra_log_level: str = "info"
    terra_allow_insecure_bind: bool = False

    # Inference provider
    llm_provider: Literal["anthropic", "openai", "mock"] = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"

    # AI call budget (free-tier friendly defaults)
    ai_min_call_interval_seconds: float = 60.0
    ai_max_daily_calls: int = 50
    ai_temperature: float = 0.7
    ai_max_output_tokens: int = 1024
    ai_timeout_seconds: float = 30.0

    # Diagnosis cache
    diagnosis_cache_ttl_seconds: float = 3600.0

    # Source adapters
    adapter_timeout_seconds: float = 15.0
    gfw_api_key: str = ""
    openweather_api_key: str = ""
    noaa_erddap_url: str = "https://www.ncei.noaa.gov/erddap/tabledap"
    noaa_erddap_dataset: str = ""
    noaa_erddap_ph_variable: str = "pH"


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
