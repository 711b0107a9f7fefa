"""Google Gemini adapter."""

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
from prism.providers.models import GEMINI_MODELS, AIModel, ToolCallResult
from prism.tools import CanonicalTool, FunctionCall, coerce_tools, encode_arguments

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prism.config import Config
    from prism.tools import ToolInput

log = logging.getLogger(__name__)


class GeminiAdapter:
    """Google Gemini API adapter.

    Function-calling support varies by model (see ``GEMINI_MODELS``); the
    adapter does not refuse tools for models that lack it.
    """

    name = "gemini"

    def __init__(self, config: Config) -> None:
        """Initialize from an immutable ``Config``."""
        self.config = config
        self.api_key = config.api_key
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazy-initialize the Gemini client."""
        if self._client is None:
            api_key = require_api_key(self.name, self.api_key)
            try:
                from google import genai
            except ImportError as e:
                raise LLMAPIError(
                    "google-genai package not installed",
                    hint="pip install google-genai",
                    provider=self.name,
                ) from e
            self._client = genai.Client(api_key=api_key)
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
        return GEMINI_MODELS

    async def generate_completion(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> str:
        """Generate a single completion."""
        return (await self._generate(prompt, options, tools=None, phase="generate")).text

    async def generate_with_tools(
        self,
        prompt: str,
        tools: Sequence[ToolInput],
        options: GenerationOptions | None = None,
    ) -> ToolCallResult:
        """Generate with tools; Gemini ``function_calls`` become ``FunctionCall``s."""
        canonical = coerce_tools(tools)
        return await self._generate(prompt, options, tools=canonical, phase="tools")

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
        """Raise because image generation is not offered through this adapter."""
        _ = prompt
        raise LLMAPIError(
            "Gemini provider does not support image generation",
            provider=self.name,
            phase="image",
            retryable=False,
        )

    async def _generate(
        self,
        prompt: str,
        options: GenerationOptions | None,
        *,
        tools: list[CanonicalTool] | None,
        phase: str,
    ) -> ToolCallResult:
        resolved = resolve_options(options, self.config)
        client = self._get_client()
        from google.genai import types

        config_kwargs: dict[str, Any] = {
            "system_instruction": resolved.system_prompt,
            "temperature": resolved.temperature,
            "max_output_tokens": resolved.max_tokens,
        }
        if resolved.json_mode:
            config_kwargs["response_mime_type"] = "application/json"
        if tools:
            config_kwargs["tools"] = to_gemini_tools(tools)

        log.debug(
            "Calling Gemini with model: %s, temperature: %s, tools: %d",
            resolved.model,
            resolved.temperature,
            len(tools or ()),
        )
        try:
            response = await client.aio.models.generate_content(
                model=resolved.model,
                contents=prompt,
                config=types.GenerateContentConfig(**config_kwargs),
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise wrap_provider_error(
                e,
                provider=self.name,
                phase=phase,
                message="Gemini API call failed",
            ) from e

        if not response:
            raise LLMAPIError(
                "Gemini returned an empty response.",
                provider=self.name,
                phase=phase,
                retryable=True,
            )
        return self._parse_response(response)

    def _parse_response(self, response: Any) -> ToolCallResult:
        """Parse a Gemini response into the canonical result."""
        text = ""
        try:
            if hasattr(response, "text"):
                text = response.text or ""
        except Exception:
            # .text raises when the candidate only holds function calls.
            text = ""

        usage: dict[str, int] = {}
        um = getattr(response, "usage_metadata", None)
        if um is not None:
            usage = {
                "input_tokens": int(getattr(um, "prompt_token_count", 0) or 0),
                "output_tokens": int(getattr(um, "candidates_token_count", 0) or 0),
                "total_tokens": int(getattr(um, "total_token_count", 0) or 0),
            }

        function_calls: list[FunctionCall] = []
        for fc in getattr(response, "function_calls", None) or []:
            # Gemini rarely supplies an id; the canonical contract needs one.
            call_id = getattr(fc, "id", None) or f"call_{uuid.uuid4().hex[:8]}"
            function_calls.append(
                FunctionCall(
                    id=str(call_id),
                    name=str(fc.name),
                    # Gemini args arrive as objects, not JSON strings.
                    arguments=encode_arguments(getattr(fc, "args", None) or {}),
                )
            )

        finish_reason: str | None = None
        candidates = getattr(response, "candidates", None)
        if isinstance(candidates, (list, tuple)) and candidates:
            raw_reason = getattr(candidates[0], "finish_reason", None)
            reason_name = getattr(raw_reason, "name", raw_reason)
            if isinstance(reason_name, str):
                finish_reason = reason_name.lower()

        return ToolCallResult(
            provider=self.name,
            text=text,
            function_calls=tuple(function_calls),
            finish_reason=finish_reason,
            usage=usage,
        )

    async def aclose(self) -> None:
        """Close underlying async client resources."""
        client = self._client
        if client is None:
            return
        self._client = None
        aio = getattr(client, "aio", None)
        aclose = getattr(aio, "aclose", None)
        if callable(aclose):
            await aclose()


def to_gemini_tools(tools: Sequence[CanonicalTool]) -> list[dict[str, Any]]:
    """Convert canonical tools to Gemini's single ``functionDeclarations`` wrapper.

    Gemini expects one tool object holding every declaration. Names and
    descriptions pass through untouched.
    """
    declarations = []
    for tool in tools:
        params = tool.function.parameters
        declarations.append(
            {
                "name": tool.function.name,
                "description": tool.function.description,
                "parameters": {
                    "type": "OBJECT",
                    "properties": dict(params.properties or {}),
                    "required": list(params.required or []),
                },
            }
        )
    return [{"functionDeclarations": declarations}]
