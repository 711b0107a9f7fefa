"""Shared utilities for adapter implementations."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from prism.config import API_KEY_ENV_VARS
from prism.errors import ConfigurationError, LLMAPIError

if TYPE_CHECKING:
    from prism.config import Config
    from prism.providers.base import GenerationOptions

DEFAULT_SYSTEM_PROMPT = "You are an expert programmer helping with code."

CODE_ANALYSIS_KEYS: tuple[str, ...] = (
    "summary",
    "complexity",
    "qualityIssues",
    "securityIssues",
    "suggestions",
    "dependencies",
)
CODE_ANALYSIS_TEMPERATURE = 0.1


def require_api_key(provider: str, api_key: str | None) -> str:
    """Fail fast, before any network call, when no key is configured."""
    if not api_key:
        env_var = API_KEY_ENV_VARS.get(provider, "the provider API key")  # type: ignore[call-overload]
        raise ConfigurationError(
            f"{provider} API key not found",
            hint=f"Set {env_var} environment variable or pass Config(api_key=...).",
        )
    return api_key


@dataclass(frozen=True)
class ResolvedOptions:
    model: str
    temperature: float
    max_tokens: int
    system_prompt: str
    json_mode: bool


def resolve_options(
    options: GenerationOptions | None,
    config: Config,
    *,
    default_system_prompt: str = DEFAULT_SYSTEM_PROMPT,
) -> ResolvedOptions:
    """Merge per-call options over the adapter's configured defaults."""
    model = config.model or ""
    temperature = config.temperature
    max_tokens = config.max_output_tokens
    system_prompt = default_system_prompt
    json_mode = False
    if options is not None:
        model = options.model or model
        if options.temperature is not None:
            temperature = options.temperature
        max_tokens = options.max_tokens or max_tokens
        system_prompt = options.system_prompt or system_prompt
        json_mode = options.json_mode
    return ResolvedOptions(model, temperature, max_tokens, system_prompt, json_mode)


def code_analysis_system_prompt(language: str) -> str:
    return (
        f"You are an expert code analyzer specialized in {language}.\n"
        "Analyze the provided code and return a JSON object with the following structure:\n"
        "{\n"
        '  "summary": "Brief description of what the code does",\n'
        '  "complexity": "Low/Medium/High",\n'
        '  "qualityIssues": [array of code quality issues found],\n'
        '  "securityIssues": [array of potential security issues],\n'
        '  "suggestions": [array of improvement suggestions],\n'
        '  "dependencies": [array of libraries/packages used]\n'
        "}"
    )


def code_analysis_prompt(code: str, language: str) -> str:
    return (
        f"Please analyze this {language} code and provide your analysis in JSON "
        f"format only:\n\n```{language}\n{code}\n```"
    )


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first top-level JSON object embedded in *text*, if any."""
    decoder = json.JSONDecoder()
    idx = text.find("{")
    while idx != -1:
        try:
            value, _ = decoder.raw_decode(text, idx)
        except ValueError:
            idx = text.find("{", idx + 1)
            continue
        if isinstance(value, dict):
            return value
        idx = text.find("{", idx + 1)
    return None


def parse_code_analysis(text: str, *, provider: str) -> dict[str, Any]:
    """Parse a code-analysis reply, extracting an embedded object if needed.

    Raises:
        LLMAPIError: When no JSON object can be recovered.
    """
    try:
        value = json.loads(text)
    except ValueError:
        value = extract_json_object(text)
    if not isinstance(value, dict):
        raise LLMAPIError(
            "Failed to parse code analysis results: no JSON object in response",
            provider=provider,
            phase="analyze",
            retryable=False,
        )
    return value
