"""Token estimation strategies.

Prompt budgeting only needs a cheap, deterministic approximation. The default
is the classic four-characters-per-token heuristic; anything implementing
``estimate(text) -> int`` (for example a wrapper around a real tokenizer) can
be dropped in without touching the optimizer or the manager.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable

CHARS_PER_TOKEN = 4


@runtime_checkable
class TokenEstimator(Protocol):
    """Maps text to an approximate token count."""

    def estimate(self, text: str) -> int:
        """Return the estimated token count for *text*.

        Must be pure, and monotonic: extending a string never lowers its count.
        """
        ...


@dataclass(frozen=True, slots=True)
class HeuristicEstimator:
    """``ceil(len(text) / chars_per_token)``; empty text costs nothing."""

    chars_per_token: int = CHARS_PER_TOKEN

    def estimate(self, text: str) -> int:
        if not text:
            return 0
        return math.ceil(len(text) / self.chars_per_token)


@dataclass(frozen=True, slots=True)
class CallableEstimator:
    """Adapt a plain ``Callable[[str], int]`` to the estimator protocol."""

    func: Callable[[str], int]

    def estimate(self, text: str) -> int:
        return int(self.func(text))


def as_estimator(
    value: TokenEstimator | Callable[[str], int] | None,
) -> TokenEstimator:
    """Normalize an estimator or estimating function; *None* gives the default."""
    if value is None:
        return HeuristicEstimator()
    if isinstance(value, TokenEstimator):
        return value
    if callable(value):
        return CallableEstimator(value)
    raise TypeError(f"Expected a TokenEstimator or callable, got {type(value)!r}")
