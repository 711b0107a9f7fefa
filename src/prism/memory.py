"""Inbound memory interface.

Prism does not store anything. A memory service implements
``MemoryProvider`` and its result is turned into a ``PromptContext``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from prism.types import PromptContext, turns_from_interactions


@dataclass(frozen=True)
class MemoryContext:
    """What a memory service knows about a session."""

    #: Past exchanges as ``{"input": ..., "response": ...}`` pairs, oldest first.
    history: tuple[Mapping[str, Any], ...] = ()
    memories: tuple[str, ...] = ()
    summary: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "history", tuple(self.history))
        object.__setattr__(self, "memories", tuple(self.memories))

    def to_prompt_context(self, **extra: Any) -> PromptContext:
        """Return a new ``PromptContext``; *extra* sets the remaining fields."""
        return PromptContext(
            history=turns_from_interactions(self.history),
            memories=self.memories,
            summary=self.summary,
            **extra,
        )


@runtime_checkable
class MemoryProvider(Protocol):
    async def get_context(self, session_id: str, query: str) -> MemoryContext:
        """Return the stored context relevant to *query*."""
        ...
