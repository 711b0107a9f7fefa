"""Mock adapter for testing."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from prism.errors import LLMAPIError
from prism.providers.base import ProviderCapabilities
from prism.providers.models import OPENAI_MODELS, AIModel, ToolCallResult
from prism.tools import FunctionCall, coerce_tools

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prism.config import Config
    from prism.providers.base import GenerationOptions
    from prism.tools import ToolInput


class MockAdapter:
    """Mock adapter for testing without API calls.

    Echoes prompts and returns scripted function calls. Calls are recorded on
    ``calls`` so tests can inspect what reached the adapter.
    """

    name = "mock"

    def __init__(
        self,
        config: Config | None = None,
        *,
        function_calls: Sequence[FunctionCall] = (),
    ) -> None:
        self.config = config
        self.function_calls = tuple(function_calls)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

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
        """Return a deterministic echo of the prompt's last line."""
        self.calls.append({"method": "generate_completion", "prompt": prompt, "options": options})
        return _echo(prompt)

    async def generate_with_tools(
        self,
        prompt: str,
        tools: Sequence[ToolInput],
        options: GenerationOptions | None = None,
    ) -> ToolCallResult:
        """Return the scripted calls, restricted to the offered tool names."""
        canonical = coerce_tools(tools)
        self.calls.append(
            {"method": "generate_with_tools", "prompt": prompt, "tools": canonical, "options": options}
        )
        offered = {tool.name for tool in canonical}
        calls = tuple(fc for fc in self.function_calls if fc.name in offered)
        return ToolCallResult(
            provider=self.name,
            text="" if calls else _echo(prompt),
            function_calls=calls,
            finish_reason="tool_calls" if calls else "stop",
            usage={"input_tokens": 10, "output_tokens": 10, "total_tokens": 20},
        )

    async def analyze_code(self, code: str, language: str) -> dict[str, Any]:
        """Return a fixed-shape analysis without calling a model."""
        if not code.strip():
            raise LLMAPIError(
                "Nothing to analyze", provider=self.name, phase="analyze", retryable=False
            )
        return {
            "summary": f"mock analysis of {len(code.splitlines())} lines of {language}",
            "complexity": "Low",
            "qualityIssues": [],
            "securityIssues": [],
            "suggestions": [],
            "dependencies": [],
        }

    async def generate_image(self, prompt: str) -> str:
        """Return a mock image URL."""
        return f"mock://image/{abs(hash(prompt)) % 10_000}"

    async def aclose(self) -> None:
        self.closed = True


def _echo(prompt: str) -> str:
    lines = [line for line in prompt.splitlines() if line.strip()]
    text = lines[-1] if lines else ""
    # Templates end with the assistant cue; echo the user line instead.
    if text.rstrip() in ("Assistant:", "A:", "## YOUR RESPONSE") and len(lines) > 1:
        text = lines[-2]
    return f"echo: {text[:100]}"
