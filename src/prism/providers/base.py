"""Provider adapter protocol: minimal interface shared by every LLM backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prism.providers.models import AIModel, ToolCallResult
    from prism.tools import ToolInput

Capability = Literal["image_generation", "function_calling", "json_mode"]


@dataclass(frozen=True)
class ProviderCapabilities:
    """Feature flags exposed by adapters."""

    image_generation: bool
    function_calling: bool
    json_mode: bool

    def supports(self, capability: str) -> bool:
        if capability not in ("image_generation", "function_calling", "json_mode"):
            return False
        return bool(getattr(self, capability))


@dataclass(frozen=True)
class GenerationOptions:
    """Per-call overrides; unset fields fall back to the adapter's ``Config``."""

    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    system_prompt: str | None = None
    json_mode: bool = False


@runtime_checkable
class ProviderAdapter(Protocol):
    """Issue model calls and translate the canonical tool contract."""

    name: str

    async def generate_completion(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> str:
        """Return a single text completion."""
        ...

    async def generate_with_tools(
        self,
        prompt: str,
        tools: Sequence[ToolInput],
        options: GenerationOptions | None = None,
    ) -> ToolCallResult:
        """Call the model with canonical tools and normalize any calls."""
        ...

    async def analyze_code(self, code: str, language: str) -> dict[str, Any]:
        """Return the fixed-shape JSON code analysis."""
        ...

    async def generate_image(self, prompt: str) -> str:
        """Generate an image and return its URL."""
        ...

    def supports_capability(self, capability: str) -> bool:
        """Whether the provider supports ``capability``."""
        ...

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Static capability table."""
        ...

    def available_models(self) -> tuple[AIModel, ...]:
        """Known models for this provider."""
        ...

    async def aclose(self) -> None:
        """Release SDK client resources."""
        ...
