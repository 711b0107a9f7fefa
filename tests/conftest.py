"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, marker handling,
and automatic API test skipping. All fixtures here are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass, field
import logging
import os
from typing import Any

import pytest

from prism.providers.base import ProviderCapabilities
from prism.providers.models import ToolCallResult
from prism.tools import FunctionCall, coerce_tools

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class FakeAdapter:
    """Adapter test double for facade behavior verification.

    Captures calls and returns configurable responses without network access.
    """

    name: str = "fake"
    text: str = "ok"
    function_calls: tuple[FunctionCall, ...] = ()
    fail_with: BaseException | None = None
    fail_on_close: BaseException | None = None
    last_prompt: str | None = None
    last_tools: list[Any] | None = None
    completion_calls: int = 0
    tool_calls: int = 0
    closed: bool = False
    _capabilities: ProviderCapabilities = field(
        default_factory=lambda: ProviderCapabilities(
            image_generation=False,
            function_calling=True,
            json_mode=True,
        )
    )

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self._capabilities

    def supports_capability(self, capability: str) -> bool:
        return self._capabilities.supports(capability)

    def available_models(self) -> tuple[Any, ...]:
        return ()

    async def generate_completion(self, prompt: str, options: Any = None) -> str:
        del options
        self.completion_calls += 1
        self.last_prompt = prompt
        if self.fail_with is not None:
            raise self.fail_with
        return self.text

    async def generate_with_tools(
        self, prompt: str, tools: list[Any], options: Any = None
    ) -> ToolCallResult:
        del options
        self.tool_calls += 1
        self.last_prompt = prompt
        self.last_tools = coerce_tools(tools)
        if self.fail_with is not None:
            raise self.fail_with
        return ToolCallResult(
            provider=self.name, text=self.text, function_calls=self.function_calls
        )

    async def analyze_code(self, code: str, language: str) -> dict[str, Any]:
        del code, language
        return {}

    async def generate_image(self, prompt: str) -> str:
        del prompt
        return ""

    async def aclose(self) -> None:
        self.closed = True
        if self.fail_on_close is not None:
            raise self.fail_on_close


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_provider_env(request, monkeypatch):
    """Ensure a clean provider environment for each test.

    Clears OPENAI_*, ANTHROPIC_* and GEMINI_* env vars to prevent test pollution.
    Opt-out: @pytest.mark.allow_env_pollution or @pytest.mark.api
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith(("GEMINI_", "OPENAI_", "ANTHROPIC_")):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Pytest Hooks
# =============================================================================

API_TESTS_REASON = "API tests require ENABLE_API_TESTS=1"


def _api_tests_enabled() -> bool:
    return bool(os.getenv("ENABLE_API_TESTS"))


def pytest_collection_modifyitems(items):
    """Automatically skip API tests when not explicitly enabled."""
    if _api_tests_enabled():
        return
    skip_api = pytest.mark.skip(reason=API_TESTS_REASON)
    for item in items:
        if "api" in item.keywords:
            item.add_marker(skip_api)


# =============================================================================
# Shared Fixtures
# =============================================================================

OPENAI_MODEL = "gpt-4o"
ANTHROPIC_MODEL = "claude-3-7-sonnet-20250219"
GEMINI_MODEL = "gemini-1.5-pro"

WEATHER_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "get_weather",
        "description": "Get the current weather for a city",
        "parameters": {
            "type": "object",
            "properties": {"city": {"type": "string"}},
            "required": ["city"],
        },
    },
}


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def openai_api_key():
    """Return OPENAI_API_KEY or skip the test if unavailable."""
    key = os.getenv("OPENAI_API_KEY")
    if not key:
        pytest.skip("OPENAI_API_KEY not set")
    return key


@pytest.fixture
def anthropic_api_key():
    """Return ANTHROPIC_API_KEY or skip the test if unavailable."""
    key = os.getenv("ANTHROPIC_API_KEY")
    if not key:
        pytest.skip("ANTHROPIC_API_KEY not set")
    return key


@pytest.fixture
def gemini_api_key():
    """Return GEMINI_API_KEY or skip the test if unavailable."""
    key = os.getenv("GEMINI_API_KEY")
    if not key:
        pytest.skip("GEMINI_API_KEY not set")
    return key
