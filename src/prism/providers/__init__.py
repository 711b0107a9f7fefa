"""Provider adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .anthropic import AnthropicAdapter
from .base import GenerationOptions, ProviderAdapter, ProviderCapabilities
from .gemini import GeminiAdapter
from .mock import MockAdapter
from .models import AIModel, ToolCallResult, get_model
from .openai import OpenAIAdapter

if TYPE_CHECKING:
    from prism.config import Config


def create_adapter(config: Config) -> ProviderAdapter:
    """Build the adapter for ``config.provider`` (or the mock in mock mode)."""
    if config.use_mock:
        return MockAdapter(config)
    if config.provider == "openai":
        return OpenAIAdapter(config)
    if config.provider == "anthropic":
        return AnthropicAdapter(config)
    return GeminiAdapter(config)


__all__ = [
    "AIModel",
    "AnthropicAdapter",
    "GeminiAdapter",
    "GenerationOptions",
    "MockAdapter",
    "OpenAIAdapter",
    "ProviderAdapter",
    "ProviderCapabilities",
    "ToolCallResult",
    "create_adapter",
    "get_model",
]
