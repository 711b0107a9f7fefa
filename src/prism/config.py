"""Configuration: frozen Config with explicit provider requirements."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Literal

from dotenv import load_dotenv

from prism.errors import ConfigurationError

load_dotenv()

ProviderName = Literal["openai", "anthropic", "gemini"]

_PROVIDERS: tuple[ProviderName, ...] = ("openai", "anthropic", "gemini")

# Provider-specific API key environment variable names
API_KEY_ENV_VARS: dict[ProviderName, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

DEFAULT_MODELS: dict[ProviderName, str] = {
    "openai": "gpt-4o",
    "anthropic": "claude-3-7-sonnet-20250219",
    "gemini": "gemini-1.5-pro",
}


@dataclass(frozen=True)
class Config:
    """Immutable adapter configuration.

    Built once at startup and passed to ``create_adapter``. API keys are
    resolved from the standard environment variables when not given.

    Example:
        config = Config(provider="anthropic")
        # API key is automatically resolved from ANTHROPIC_API_KEY
    """

    provider: ProviderName
    #: Falls back to the provider's default model when *None*.
    model: str | None = None
    #: Auto-resolved from the provider's environment variable when *None*.
    api_key: str | None = None
    use_mock: bool = False
    temperature: float = 0.7
    max_output_tokens: int = 2048
    #: OpenAI-only; ignored for other providers.
    base_url: str | None = None
    #: OpenAI-only; ignored for other providers.
    organization: str | None = None

    def __post_init__(self) -> None:
        """Auto-resolve model and API key, then validate."""
        if self.provider not in _PROVIDERS:
            raise ConfigurationError(
                f"Unknown provider: {self.provider!r}",
                hint="Supported providers: 'openai', 'anthropic', 'gemini'",
            )

        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(
                f"temperature must be between 0 and 2, got {self.temperature}",
                hint="Lower values give more deterministic output.",
            )
        if self.max_output_tokens < 1:
            raise ConfigurationError(
                f"max_output_tokens must be ≥ 1, got {self.max_output_tokens}",
                hint="This caps the length of each model response.",
            )

        if self.model is None:
            object.__setattr__(self, "model", DEFAULT_MODELS[self.provider])

        if self.api_key is None and not self.use_mock:
            resolved_key = os.environ.get(API_KEY_ENV_VARS[self.provider])
            object.__setattr__(self, "api_key", resolved_key)

        # Real API calls need a key; fail here rather than at the first request.
        if not self.use_mock and not self.api_key:
            env_var = API_KEY_ENV_VARS[self.provider]
            raise ConfigurationError(
                f"API key required for {self.provider}",
                hint=f"Set {env_var} environment variable or pass api_key=...",
            )

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"Config(provider={self.provider!r}, model={self.model!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, use_mock={self.use_mock})"
        )

    __repr__ = __str__
