"""Token-budget allocation for prompt context.

Allocation order:

1. The baseline (system message and current turn) must fit or
   ``TokenLimitExceededError`` is raised.
2. Summary and memories are charged only when the template renders them, and
   dropped together when they do not fit.
3. Auxiliary context is dropped when it does not fit: project first, then code
   snippets.
4. History keeps the longest most-recent suffix that fits what is left. A turn
   that lands exactly on the budget is kept.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import json
import logging
from typing import TYPE_CHECKING

from prism.errors import TokenLimitExceededError
from prism.prompts.templates import (
    DEFAULT_SYSTEM_MESSAGE,
    current_turn,
    memories_block,
    summary_block,
)
from prism.tokens import HeuristicEstimator
from prism.types import PromptMetadata

if TYPE_CHECKING:
    from prism.tokens import TokenEstimator
    from prism.types import ConversationTurn, PromptContext, PromptInput

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimizedContext:
    context: PromptContext
    metadata: PromptMetadata


class ContextOptimizer:
    """Fits a ``PromptContext`` into a token budget without mutating it."""

    def __init__(
        self,
        estimator: TokenEstimator | None = None,
        *,
        default_system_message: str = DEFAULT_SYSTEM_MESSAGE,
    ) -> None:
        self._estimator = estimator or HeuristicEstimator()
        self._default_system_message = default_system_message

    def baseline_text(self, prompt_input: PromptInput) -> str:
        """The part of every prompt that can never be trimmed."""
        system = prompt_input.system_message or self._default_system_message
        return f"{system}\n\n{current_turn(prompt_input.query)}"

    def memory_cost(self, context: PromptContext) -> int:
        blocks = [summary_block(context), memories_block(context)]
        text = "\n\n".join(b for b in blocks if b)
        return self._estimator.estimate(text) if text else 0

    def turn_cost(self, turn: ConversationTurn) -> int:
        return self._estimator.estimate(f"{turn.role}: {turn.content}")

    def snippets_cost(self, context: PromptContext) -> int:
        if not context.code_snippets:
            return 0
        return self._estimator.estimate(
            "\n".join(snippet.code for snippet in context.code_snippets)
        )

    def project_cost(self, context: PromptContext) -> int:
        if context.project is None:
            return 0
        return self._estimator.estimate(json.dumps(context.project.to_dict()))

    def optimize(
        self,
        prompt_input: PromptInput,
        context: PromptContext,
        token_limit: int,
        *,
        charge_memory: bool = True,
    ) -> OptimizedContext:
        """Trim *context* so the rendered prompt fits ``token_limit``.

        Set *charge_memory* to False for layouts that never render the summary
        or memories; they are then neither charged nor dropped.

        Raises:
            TokenLimitExceededError: When the baseline alone does not fit.
        """
        baseline_tokens = self._estimator.estimate(self.baseline_text(prompt_input))
        remaining = token_limit - baseline_tokens
        if remaining <= 0:
            raise TokenLimitExceededError(
                "Query is too large to fit within token limit",
                baseline_tokens,
                token_limit,
                hint="Shorten the query or system message, or raise the token limit.",
            )

        context_included = True
        optimized = context

        if charge_memory:
            memory_tokens = self.memory_cost(context)
            if memory_tokens > remaining:
                context_included = False
                optimized = replace(optimized, summary=None, memories=())
                log.debug(
                    "Dropped summary and memories (%d tokens, budget=%d)",
                    memory_tokens,
                    remaining,
                )
            else:
                remaining -= memory_tokens

        snippets_tokens = self.snippets_cost(context)
        project_tokens = self.project_cost(context)
        if snippets_tokens + project_tokens > remaining:
            context_included = False
            optimized = replace(optimized, project=None)
            if snippets_tokens > remaining:
                optimized = replace(optimized, code_snippets=None)
            log.debug(
                "Dropped auxiliary context (snippets=%d, project=%d, budget=%d)",
                snippets_tokens,
                project_tokens,
                remaining,
            )

        if optimized.code_snippets:
            remaining -= snippets_tokens
        if optimized.project is not None:
            remaining -= project_tokens

        history = context.history
        costs = [self.turn_cost(turn) for turn in history]
        kept: tuple[ConversationTurn, ...] = history
        if sum(costs) > remaining:
            kept_tokens = 0
            start = len(history)
            for idx in range(len(history) - 1, -1, -1):
                if kept_tokens + costs[idx] > remaining:
                    break
                kept_tokens += costs[idx]
                start = idx
            kept = history[start:]
            log.debug("Kept %d of %d history turns", len(kept), len(history))

        history_truncated = len(kept) < len(history)
        metadata = PromptMetadata(
            context_included=context_included,
            history_included=not (history_truncated and not kept),
            history_truncated=history_truncated,
            context_size=len(kept),
        )
        return OptimizedContext(optimized.with_history(kept), metadata)
