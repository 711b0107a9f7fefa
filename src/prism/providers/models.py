"""Domain models for the provider layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from prism.tools import FunctionCall

ModelProvider = Literal["openai", "anthropic", "google"]


@dataclass(frozen=True)
class AIModel:
    """Static descriptor of a model; reference data, never built per request."""

    id: str
    provider: ModelProvider
    name: str
    context_window: int
    supports_functions: bool = False
    supports_images: bool = False
    max_output_tokens: int | None = None


@dataclass(frozen=True)
class ToolCallResult:
    """Normalized result of a tool-enabled generation."""

    provider: str
    text: str = ""
    function_calls: tuple[FunctionCall, ...] = ()
    finish_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)

    @property
    def has_function_calls(self) -> bool:
        return bool(self.function_calls)


OPENAI_MODELS: tuple[AIModel, ...] = (
    AIModel("gpt-4o", "openai", "GPT-4o", 128_000, True, True),
    AIModel("gpt-4-turbo", "openai", "GPT-4 Turbo", 128_000, True, True),
    AIModel("gpt-3.5-turbo", "openai", "GPT-3.5 Turbo", 16_384, True, False),
)

ANTHROPIC_MODELS: tuple[AIModel, ...] = (
    AIModel("claude-3-7-sonnet-20250219", "anthropic", "Claude 3.7 Sonnet", 200_000, True, True),
    AIModel("claude-3-5-sonnet-20240620", "anthropic", "Claude 3.5 Sonnet", 200_000, True, True),
    AIModel("claude-3-opus-20240229", "anthropic", "Claude 3 Opus", 200_000, True, True),
    AIModel("claude-3-sonnet-20240229", "anthropic", "Claude 3 Sonnet", 200_000, True, True),
    AIModel("claude-3-haiku-20240307", "anthropic", "Claude 3 Haiku", 200_000, True, True),
)

# Function calling varies per Gemini model; recorded here, not enforced.
GEMINI_MODELS: tuple[AIModel, ...] = (
    AIModel("gemini-1.5-pro", "google", "Gemini 1.5 Pro", 1_000_000, True, True),
    AIModel("gemini-1.5-flash", "google", "Gemini 1.5 Flash", 1_000_000, True, True),
    AIModel("gemini-1.0-pro", "google", "Gemini 1.0 Pro", 32_768, True, True),
    AIModel("gemini-1.0-pro-vision", "google", "Gemini 1.0 Pro Vision", 16_385, False, True),
)


def get_model(model_id: str) -> AIModel | None:
    """Look a model up across every provider catalog."""
    for model in (*OPENAI_MODELS, *ANTHROPIC_MODELS, *GEMINI_MODELS):
        if model.id == model_id:
            return model
    return None
