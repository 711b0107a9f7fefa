"""Prism: budget-aware prompt construction over interchangeable LLM providers.

Public API:
    - PromptManager: Select a template, fit context to a token budget, render
    - create_adapter(): Build the provider adapter for a Config
    - run(): Build one prompt and send it through an adapter
    - Config: Configuration dataclass
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

from prism.config import Config
from prism.errors import (
    ConfigurationError,
    LLMAPIError,
    PrismError,
    RateLimitError,
    TokenLimitExceededError,
)
from prism.memory import MemoryContext, MemoryProvider
from prism.prompts import PromptConfig, PromptManager, PromptTemplate
from prism.providers import (
    GenerationOptions,
    ProviderAdapter,
    ToolCallResult,
    create_adapter,
)
from prism.tokens import HeuristicEstimator, TokenEstimator
from prism.tools import CanonicalTool, FunctionCall
from prism.types import (
    CodeSnippet,
    ConversationTurn,
    ProjectContext,
    PromptContext,
    PromptInput,
    PromptMetadata,
    PromptResult,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prism.tools import ToolInput

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("prism-llm")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("prism").addHandler(logging.NullHandler())

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    """The prompt that was sent and what came back."""

    prompt: PromptResult
    text: str
    function_calls: tuple[FunctionCall, ...] = ()


async def run(
    prompt_input: PromptInput | str,
    context: PromptContext | None = None,
    *,
    config: Config,
    tools: Sequence[ToolInput] | None = None,
    manager: PromptManager | None = None,
    options: GenerationOptions | None = None,
) -> RunResult:
    """Build a prompt and send it to the configured provider.

    Args:
        prompt_input: The request, or a bare query string.
        context: Optional history, memories, code and tool definitions.
        config: Configuration specifying provider and model.
        tools: Tools to offer; defaults to the context's function definitions.
        manager: Prompt manager to use; a default one is built when omitted.
        options: Per-call generation overrides.

    Returns:
        RunResult with the built prompt, the reply text and any function calls.

    Example:
        config = Config(provider="openai")
        result = await run("Explain closures", config=config)
        print(result.text)
    """
    if isinstance(prompt_input, str):
        prompt_input = PromptInput(query=prompt_input)
    context = context if context is not None else PromptContext()
    manager = manager or PromptManager()

    built = manager.create_prompt(prompt_input, context)
    offered = list(tools) if tools else list(context.function_definitions or ())
    adapter = create_adapter(config)

    try:
        if offered:
            result = await adapter.generate_with_tools(built.prompt, offered, options)
            text, calls = result.text, result.function_calls
        else:
            text = await adapter.generate_completion(built.prompt, options)
            calls = ()
    finally:
        aclose = getattr(adapter, "aclose", None)
        if callable(aclose):
            try:
                await aclose()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                # Cleanup should never mask the primary failure.
                logger.warning("Adapter cleanup failed: %s", exc)

    return RunResult(prompt=built, text=text, function_calls=calls)


__all__ = [
    "CanonicalTool",
    "CodeSnippet",
    "Config",
    "ConfigurationError",
    "ConversationTurn",
    "FunctionCall",
    "GenerationOptions",
    "HeuristicEstimator",
    "LLMAPIError",
    "MemoryContext",
    "MemoryProvider",
    "PrismError",
    "ProjectContext",
    "PromptConfig",
    "PromptContext",
    "PromptInput",
    "PromptManager",
    "PromptMetadata",
    "PromptResult",
    "PromptTemplate",
    "ProviderAdapter",
    "RateLimitError",
    "RunResult",
    "TokenEstimator",
    "TokenLimitExceededError",
    "ToolCallResult",
    "create_adapter",
    "run",
]
