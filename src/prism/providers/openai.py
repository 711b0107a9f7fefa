"""OpenAI Chat Completions adapter."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any
import uuid

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
from prism.providers.models import OPENAI_MODELS, AIModel, ToolCallResult
from prism.tools import CanonicalTool, FunctionCall, coerce_tools, encode_arguments

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prism.config import Config
    from prism.tools import ToolInput

log = logging.getLogger(__name__)

_IMAGE_MODEL = "dall-e-3"
_IMAGE_SIZE = "1024x1024"


class OpenAIAdapter:
    """OpenAI Chat Completions API adapter."""

    name = "openai"

    def __init__(self, config: Config) -> None:
        """Initialize from an immutable ``Config``."""
        self.config = config
        self.api_key = config.api_key
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize and return the OpenAI client."""
        if self._client is None:
            api_key = require_api_key(self.name, self.api_key)
            try:
                from openai import AsyncOpenAI
            except ImportError as e:
                raise LLMAPIError(
                    "openai package not installed",
                    hint="pip install openai",
                    provider=self.name,
                ) from e
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=self.config.base_url,
                organization=self.config.organization,
            )
        return self._client

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Return supported feature flags."""
        return ProviderCapabilities(
            image_generation=True,
            function_calling=True,
            json_mode=True,
        )

    def supports_capability(self, capability: str) -> bool:
        return self.capabilities.supports(capability)

    def available_models(self) -> tuple[AIModel, ...]:
        return OPENAI_MODELS

    async def generate_completion(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> str:
        """Generate a single completion via ``chat.completions``."""
        resolved = resolve_options(options, self.config)
        client = self._get_client()

        create_kwargs: dict[str, Any] = {
            "model": resolved.model,
            "messages": _messages(resolved.system_prompt, prompt),
            "temperature": resolved.temperature,
            "max_tokens": resolved.max_tokens,
        }
        if resolved.json_mode:
            create_kwargs["response_format"] = {"type": "json_object"}

        log.debug(
            "Calling OpenAI with model: %s, temperature: %s",
            resolved.model,
            resolved.temperature,
        )
        response = await self._create(client, create_kwargs, phase="generate")
        return _parse_response(response).text

    async def generate_with_tools(
        self,
        prompt: str,
        tools: Sequence[ToolInput],
        options: GenerationOptions | None = None,
    ) -> ToolCallResult:
        """Generate with tools; ``message.tool_calls`` become ``FunctionCall``s."""
        canonical = coerce_tools(tools)
        resolved = resolve_options(options, self.config)
        client = self._get_client()

        create_kwargs: dict[str, Any] = {
            "model": resolved.model,
            "messages": _messages(resolved.system_prompt, prompt),
            "temperature": resolved.temperature,
            "max_tokens": resolved.max_tokens,
        }
        if canonical:
            create_kwargs["tools"] = to_openai_tools(canonical)
            create_kwargs["tool_choice"] = "auto"

        log.debug("Calling OpenAI with %d tools, model: %s", len(canonical), resolved.model)
        response = await self._create(client, create_kwargs, phase="tools")
        return _parse_response(response)

    async def analyze_code(self, code: str, language: str) -> dict[str, Any]:
        """Analyze code using JSON mode."""
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
        """Generate one image and return its URL."""
        client = self._get_client()
        try:
            response = await client.images.generate(
                model=_IMAGE_MODEL,
                prompt=prompt,
                n=1,
                size=_IMAGE_SIZE,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise wrap_provider_error(
                e,
                provider=self.name,
                phase="image",
                message="OpenAI image generation failed",
            ) from e
        data = getattr(response, "data", None) or []
        return (getattr(data[0], "url", None) or "") if data else ""

    async def _create(self, client: Any, create_kwargs: dict[str, Any], *, phase: str) -> Any:
        try:
            return await client.chat.completions.create(**create_kwargs)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise wrap_provider_error(
                e,
                provider=self.name,
                phase=phase,
                message="OpenAI API call failed",
            ) from e

    async def aclose(self) -> None:
        """Close underlying async client resources."""
        client = self._client
        if client is None:
            return
        self._client = None
        await client.close()


def to_openai_tools(tools: Sequence[CanonicalTool]) -> list[dict[str, Any]]:
    """Convert canonical tools to the Chat Completions ``tools`` shape."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool.function.name,
                "description": tool.function.description,
                "parameters": tool.function.parameters.model_dump(mode="json"),
            },
        }
        for tool in tools
    ]


def _messages(system_prompt: str, prompt: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": prompt},
    ]


def _parse_response(response: Any) -> ToolCallResult:
    """Parse a ChatCompletion into the canonical result."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        raise LLMAPIError(
            "OpenAI returned no choices",
            provider="openai",
            phase="parse",
            retryable=False,
        )
    choice = choices[0]
    message = getattr(choice, "message", None)
    text = getattr(message, "content", None) or ""

    function_calls: list[FunctionCall] = []
    for tc in getattr(message, "tool_calls", None) or []:
        fn = getattr(tc, "function", None)
        if fn is None:
            continue
        function_calls.append(
            FunctionCall(
                id=getattr(tc, "id", None) or f"call_{uuid.uuid4().hex[:8]}",
                name=str(fn.name),
                arguments=encode_arguments(getattr(fn, "arguments", None)),
            )
        )

    usage: dict[str, int] = {}
    usage_raw = getattr(response, "usage", None)
    if usage_raw is not None:
        usage = {
            "input_tokens": int(getattr(usage_raw, "prompt_tokens", 0) or 0),
            "output_tokens": int(getattr(usage_raw, "completion_tokens", 0) or 0),
            "total_tokens": int(getattr(usage_raw, "total_tokens", 0) or 0),
        }

    finish_reason = getattr(choice, "finish_reason", None)
    return ToolCallResult(
        provider="openai",
        text=text,
        function_calls=tuple(function_calls),
        finish_reason=finish_reason if isinstance(finish_reason, str) else None,
        usage=usage,
    )
