"""Prompt orchestration: select, optimize, render.

``PromptManager.create_prompt`` is synchronous and holds only immutable
configuration, so one manager can serve concurrent callers.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
import logging
from types import MappingProxyType
from typing import Any

from prism.errors import ConfigurationError, TokenLimitExceededError
from prism.prompts.optimizer import ContextOptimizer
from prism.prompts.selector import select_template
from prism.prompts.templates import (
    BUILTIN_TEMPLATES,
    COMPACT,
    DEFAULT_SYSTEM_MESSAGE,
    PromptTemplate,
)
from prism.tokens import TokenEstimator, as_estimator
from prism.types import PromptContext, PromptInput, PromptMetadata, PromptResult

log = logging.getLogger(__name__)

_FALLBACK_METADATA = PromptMetadata(
    context_included=False,
    history_included=False,
    history_truncated=False,
    context_size=0,
)


@dataclass(frozen=True)
class PromptConfig:
    """Immutable prompt-manager configuration."""

    default_system_message: str = DEFAULT_SYSTEM_MESSAGE
    default_token_limit: int = 8000
    #: A ``TokenEstimator`` or a plain ``Callable[[str], int]``.
    estimator: TokenEstimator | Callable[[str], int] | None = None
    default_template_id: str = "standard"
    #: Extra templates; an id matching a built-in replaces it.
    templates: tuple[PromptTemplate, ...] = ()
    #: Agent name (case-insensitive) to template id.
    agent_templates: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.default_token_limit < 1:
            raise ConfigurationError(
                f"default_token_limit must be ≥ 1, got {self.default_token_limit}",
                hint="This is the prompt budget used when a template sets none.",
            )
        object.__setattr__(self, "estimator", as_estimator(self.estimator))
        object.__setattr__(self, "templates", tuple(self.templates))
        object.__setattr__(
            self,
            "agent_templates",
            MappingProxyType({k.lower(): v for k, v in self.agent_templates.items()}),
        )


class PromptManager:
    """Builds budget-aware prompts from a request and its context."""

    def __init__(self, config: PromptConfig | None = None) -> None:
        self.config = config or PromptConfig()
        registry = {t.id: t for t in BUILTIN_TEMPLATES}
        registry.update({t.id: t for t in self.config.templates})
        if self.config.default_template_id not in registry:
            raise ConfigurationError(
                f"Unknown default template: {self.config.default_template_id!r}",
                hint=f"Known templates: {', '.join(sorted(registry))}",
            )
        self._templates: Mapping[str, PromptTemplate] = MappingProxyType(registry)
        self._estimator: TokenEstimator = self.config.estimator  # type: ignore[assignment]
        self._optimizer = ContextOptimizer(
            self._estimator,
            default_system_message=self.config.default_system_message,
        )

    def estimate_token_count(self, text: str) -> int:
        return self._estimator.estimate(text)

    def get_template(self, template_id: str) -> PromptTemplate:
        """Look up a template; unknown ids fall back to the default template."""
        template = self._templates.get(template_id)
        if template is None:
            log.warning(
                "Template %r not found, using default template %r",
                template_id,
                self.config.default_template_id,
            )
            return self._templates[self.config.default_template_id]
        return template

    def available_templates(self) -> list[dict[str, Any]]:
        return [
            {
                "id": t.id,
                "name": t.name,
                "description": t.description,
                "tags": list(t.tags),
            }
            for t in self._templates.values()
        ]

    def resolve_template_id(
        self, prompt_input: PromptInput, context: PromptContext
    ) -> str:
        if prompt_input.agent:
            agent = prompt_input.agent.lower()
            return self.config.agent_templates.get(agent, f"{agent}-template")
        return select_template(prompt_input, context)

    def create_prompt(
        self,
        prompt_input: PromptInput,
        context: PromptContext | None = None,
    ) -> PromptResult:
        """Create a prompt that fits the template's token budget.

        Non-budget failures while optimizing or rendering fall back once to the
        compact template with no history.

        Raises:
            TokenLimitExceededError: When the system message and query alone
                exceed the budget.
        """
        context = context if context is not None else PromptContext()
        template = self.get_template(self.resolve_template_id(prompt_input, context))
        token_limit = template.token_limit or self.config.default_token_limit
        if (
            prompt_input.system_message is None
            and self.config.default_system_message != DEFAULT_SYSTEM_MESSAGE
        ):
            # A configured default replaces each layout's built-in system message.
            prompt_input = replace(
                prompt_input, system_message=self.config.default_system_message
            )

        try:
            optimized = self._optimizer.optimize(
                prompt_input,
                context,
                token_limit,
                charge_memory=template.renders_memory,
            )
            prompt = template.construct(prompt_input, optimized.context)
        except TokenLimitExceededError:
            raise
        except Exception:
            log.error(
                "Error constructing prompt with template %r; falling back to %r",
                template.id,
                COMPACT.id,
                exc_info=True,
            )
            return self._fallback(prompt_input)

        metadata = optimized.metadata
        return PromptResult(
            prompt=prompt,
            estimated_tokens=self.estimate_token_count(prompt),
            truncated=metadata.history_truncated or not metadata.context_included,
            template_used=template.id,
            metadata=metadata,
        )

    def _fallback(self, prompt_input: PromptInput) -> PromptResult:
        # Always the built-in compact layout. Single level: a failure here
        # propagates instead of retrying again.
        fallback = COMPACT
        prompt = fallback.construct(prompt_input, PromptContext(history=()))
        return PromptResult(
            prompt=prompt,
            estimated_tokens=self.estimate_token_count(prompt),
            truncated=True,
            template_used=fallback.id,
            metadata=_FALLBACK_METADATA,
        )
