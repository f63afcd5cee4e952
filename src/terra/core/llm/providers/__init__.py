"""LLM provider implementations."""

from terra.core.llm.providers.anthropic import AnthropicProvider
from terra.core.llm.providers.mock import MockProvider
from terra.core.llm.providers.openai import OpenAIProvider

__all__ = ["AnthropicProvider", "MockProvider", "OpenAIProvider"]
