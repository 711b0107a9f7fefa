"""Shared provider-side error helpers.

Adapters funnel every SDK or network failure through ``wrap_provider_error``
so callers only ever see ``LLMAPIError`` with stable metadata.
"""

from __future__ import annotations

import asyncio

import httpx

from prism.config import API_KEY_ENV_VARS
from prism.errors import LLMAPIError, RateLimitError, _walk_exception_chain

# Transient statuses a caller may choose to retry; Prism itself never retries.
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 409, 429, 500, 502, 503, 504})


def extract_status_code(exc: BaseException) -> int | None:
    """Walk the exception chain to find an HTTP status code."""
    for e in _walk_exception_chain(exc):
        for attr in ("status_code", "status", "code"):
            value = getattr(e, attr, None)
            if isinstance(value, int) and 100 <= value <= 599:
                return value
        response = getattr(e, "response", None)
        value = getattr(response, "status_code", None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
    return None


def _auth_hint(
    provider: str, status_code: int | None, cause_message: str
) -> str | None:
    """Generate a hint for auth errors where naming the env var is useful."""
    cause_lower = cause_message.lower()
    if status_code in {401, 403} or (
        status_code == 400 and ("api key" in cause_lower or "api_key" in cause_lower)
    ):
        env_var = API_KEY_ENV_VARS.get(provider, "API key")  # type: ignore[call-overload]
        return f"Check credentials/permissions (try setting {env_var} or Config.api_key)."
    return None


def wrap_provider_error(
    exc: BaseException,
    *,
    provider: str,
    phase: str,
    message: str | None = None,
    hint: str | None = None,
) -> LLMAPIError:
    """Map provider SDK exceptions into ``LLMAPIError``."""
    if isinstance(exc, asyncio.CancelledError):
        raise exc

    # Already wrapped: fill in missing context only.
    if isinstance(exc, LLMAPIError):
        if exc.provider is None:
            exc.provider = provider
        if exc.phase is None:
            exc.phase = phase
        if hint is not None and exc.hint is None:
            exc.hint = hint
        return exc

    status_code = extract_status_code(exc)

    retryable = False
    if isinstance(status_code, int) and status_code in RETRYABLE_STATUS_CODES:
        retryable = True
    else:
        for e in _walk_exception_chain(exc):
            if isinstance(e, (httpx.TimeoutException, httpx.RequestError)):
                retryable = True
                break

    derived_hint = hint if hint is not None else _auth_hint(provider, status_code, str(exc))

    msg = message or f"{provider} {phase} failed"
    err_cls: type[LLMAPIError] = RateLimitError if status_code == 429 else LLMAPIError

    status_note = f" (status={status_code})" if isinstance(status_code, int) else ""
    cause = str(exc)
    return err_cls(
        f"{msg}{status_note}: {cause}" if cause else f"{msg}{status_note}",
        hint=derived_hint,
        retryable=retryable,
        status_code=status_code,
        provider=provider,
        phase=phase,
    )
