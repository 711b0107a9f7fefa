"""Anthropic Messages API adapter."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from prism.errors import LLMAPIError
from prism.providers._errors import wrap_provider_error
from prism.providers._utils import (
    CODE_ANALYSIS_TEMPERATURE,
    code_analysis_prompt,
    code_analysis_system_prompt,
    parse_code_analysis,
    require_api_key,
    resolve_options,
)
from prism.providers.base import GenerationOptions, ProviderCapabilities
from prism.providers.models import ANTHROPIC_MODELS, AIModel, ToolCallResult
from prism.tools import CanonicalTool, FunctionCall, coerce_tools, encode_arguments

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prism.config import Config
    from prism.tools import ToolInput

log = logging.getLogger(__name__)

# The Messages API has no JSON response flag; JSON mode is an instruction.
_JSON_MODE_INSTRUCTION = (
    "Respond only with a single valid JSON object. Do not wrap it in markdown "
    "or add any text before or after it."
)


class AnthropicAdapter:
    """Anthropic Messages API adapter."""

    name = "anthropic"

    def __init__(self, config: Config) -> None:
        """Initialize from an immutable ``Config``."""
        self.config = config
        self.api_key = config.api_key
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize and return the async Anthropic client."""
        if self._client is None:
            api_key = require_api_key(self.name, self.api_key)
            try:
                from anthropic import AsyncAnthropic
            except ImportError as e:
                raise LLMAPIError(
                    "anthropic package not installed",
                    hint="pip install anthropic",
                    provider=self.name,
                ) from e
            self._client = AsyncAnthropic(api_key=api_key)
        return self._client

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Return supported feature flags."""
        return ProviderCapabilities(
            image_generation=False,
            function_calling=True,
            json_mode=True,
        )

    def supports_capability(self, capability: str) -> bool:
        return self.capabilities.supports(capability)

    def available_models(self) -> tuple[AIModel, ...]:
        return ANTHROPIC_MODELS

    def _create_kwargs(self, prompt: str, options: GenerationOptions | None) -> dict[str, Any]:
        resolved = resolve_options(options, self.config)
        system = resolved.system_prompt
        if resolved.json_mode:
            system = f"{system}\n\n{_JSON_MODE_INSTRUCTION}"
        return {
            "model": resolved.model,
            "max_tokens": resolved.max_tokens,
            "temperature": resolved.temperature,
            "system": system,
            "messages": [{"role": "user", "content": prompt}],
        }

    async def generate_completion(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> str:
        """Generate a single completion; text blocks are joined."""
        create_kwargs = self._create_kwargs(prompt, options)
        client = self._get_client()
        log.debug(
            "Calling Anthropic with model: %s, temperature: %s",
            create_kwargs["model"],
            create_kwargs["temperature"],
        )
        response = await self._create(client, create_kwargs, phase="generate")
        return _parse_response(response).text

    async def generate_with_tools(
        self,
        prompt: str,
        tools: Sequence[ToolInput],
        options: GenerationOptions | None = None,
    ) -> ToolCallResult:
        """Generate with tools; ``tool_use`` blocks become ``FunctionCall``s."""
        canonical = coerce_tools(tools)
        create_kwargs = self._create_kwargs(prompt, options)
        client = self._get_client()
        if canonical:
            create_kwargs["tools"] = to_anthropic_tools(canonical)
            create_kwargs["tool_choice"] = {"type": "auto"}

        log.debug(
            "Calling Anthropic with %d tools, model: %s",
            len(canonical),
            create_kwargs["model"],
        )
        response = await self._create(client, create_kwargs, phase="tools")
        return _parse_response(response)

    async def analyze_code(self, code: str, language: str) -> dict[str, Any]:
        """Analyze code; the reply is parsed or the first JSON object extracted."""
        text = await self.generate_completion(
            code_analysis_prompt(code, language),
            GenerationOptions(
                system_prompt=code_analysis_system_prompt(language),
                temperature=CODE_ANALYSIS_TEMPERATURE,
                json_mode=True,
            ),
        )
        return parse_code_analysis(text, provider=self.name)

    async def generate_image(self, prompt: str) -> str:
        """Raise because Anthropic has no image generation."""
        _ = prompt
        raise LLMAPIError(
            "Anthropic provider does not support image generation",
            provider=self.name,
            phase="image",
            retryable=False,
        )

    async def _create(self, client: Any, create_kwargs: dict[str, Any], *, phase: str) -> Any:
        try:
            return await client.messages.create(**create_kwargs)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise wrap_provider_error(
                e,
                provider=self.name,
                phase=phase,
                message="Anthropic API call failed",
            ) from e

    async def aclose(self) -> None:
        """Close underlying async client resources."""
        client = self._client
        if client is None:
            return
        self._client = None
        await client.close()


def to_anthropic_tools(tools: Sequence[CanonicalTool]) -> list[dict[str, Any]]:
    """Convert canonical tools to Anthropic format (parameters → input_schema)."""
    return [
        {
            "name": tool.function.name,
            "description": tool.function.description,
            "input_schema": tool.function.parameters.model_dump(mode="json"),
        }
        for tool in tools
    ]


def _parse_response(response: Any) -> ToolCallResult:
    """Parse an Anthropic Message into the canonical result."""
    text_parts: list[str] = []
    function_calls: list[FunctionCall] = []

    for block in getattr(response, "content", None) or []:
        block_type = getattr(block, "type", None)
        if block_type == "text":
            text_parts.append(getattr(block, "text", "") or "")
        elif block_type == "tool_use":
            function_calls.append(
                FunctionCall(
                    id=str(getattr(block, "id", "")),
                    name=str(getattr(block, "name", "")),
                    arguments=encode_arguments(getattr(block, "input", None)),
                )
            )

    usage: dict[str, int] = {}
    usage_raw = getattr(response, "usage", None)
    if usage_raw is not None:
        input_tokens = int(getattr(usage_raw, "input_tokens", 0) or 0)
        output_tokens = int(getattr(usage_raw, "output_tokens", 0) or 0)
        usage = {
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
        }

    return ToolCallResult(
        provider="anthropic",
        text="\n\n".join(text_parts),
        function_calls=tuple(function_calls),
        finish_reason=_normalize_stop_reason(getattr(response, "stop_reason", None)),
        usage=usage,
    )


def _normalize_stop_reason(stop_reason: Any) -> str | None:
    """Map Anthropic stop_reason to a normalized lowercase string."""
    if stop_reason is None:
        return None
    reason = str(stop_reason).lower()

    mapping: dict[str, str] = {
        "end_turn": "stop",
        "stop_sequence": "stop",
        "max_tokens": "max_tokens",
        "tool_use": "tool_calls",
    }
    return mapping.get(reason, reason)
