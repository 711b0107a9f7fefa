"""Exception hierarchy for Prism."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class PrismError(Exception):
    """Base exception for all Prism errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(PrismError):
    """Configuration validation or resolution failed."""


class TokenLimitExceededError(PrismError):
    """The unavoidable prompt baseline does not fit the token budget.

    Not retryable by Prism: a smaller template would still have to carry the
    same system message and query.
    """

    def __init__(
        self,
        message: str,
        token_count: int,
        max_tokens: int,
        *,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.token_count = token_count
        self.max_tokens = max_tokens

    def __str__(self) -> str:
        return (
            f"{super().__str__()} (token count: {self.token_count}, "
            f"max allowed: {self.max_tokens})"
        )


class LLMAPIError(PrismError):
    """A provider call failed.

    Every provider SDK or network failure is re-raised as this type so callers
    never have to catch provider-specific exceptions.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        retryable: bool | None = None,
        status_code: int | None = None,
        provider: str | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.retryable = retryable
        self.status_code = status_code
        self.provider = provider
        self.phase = phase


class RateLimitError(LLMAPIError):
    """Rate limit exceeded (HTTP 429)."""


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
