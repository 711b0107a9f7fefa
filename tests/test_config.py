"""Configuration boundary tests."""

from __future__ import annotations

import pytest

from prism.config import DEFAULT_MODELS, Config
from prism.errors import ConfigurationError
from tests.conftest import ANTHROPIC_MODEL, GEMINI_MODEL, OPENAI_MODEL

pytestmark = pytest.mark.unit


def test_config_creation_with_mock_mode() -> None:
    """Config can be created with mock mode (no API key needed)."""
    cfg = Config(provider="gemini", model=GEMINI_MODEL, use_mock=True)
    assert cfg.provider == "gemini"
    assert cfg.model == GEMINI_MODEL
    assert cfg.api_key is None


@pytest.mark.parametrize(
    ("provider", "env_var"),
    [
        ("openai", "OPENAI_API_KEY"),
        ("anthropic", "ANTHROPIC_API_KEY"),
        ("gemini", "GEMINI_API_KEY"),
    ],
)
def test_config_auto_resolves_provider_specific_api_key(
    monkeypatch: pytest.MonkeyPatch, provider: str, env_var: str
) -> None:
    monkeypatch.setenv(env_var, "env-key")

    cfg = Config(provider=provider)  # type: ignore[arg-type]

    assert cfg.api_key == "env-key"


def test_explicit_api_key_takes_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")

    cfg = Config(provider="anthropic", model=ANTHROPIC_MODEL, api_key="explicit-key")

    assert cfg.api_key == "explicit-key"


def test_model_defaults_per_provider() -> None:
    for provider, model in DEFAULT_MODELS.items():
        assert Config(provider=provider, use_mock=True).model == model


def test_missing_api_key_raises_clear_error() -> None:
    """Missing API key without mock mode must fail clearly."""
    with pytest.raises(ConfigurationError, match="API key required") as exc:
        Config(provider="openai", model=OPENAI_MODEL)
    assert exc.value.hint is not None
    assert "OPENAI_API_KEY" in exc.value.hint


def test_unknown_provider_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Unknown provider"):
        Config(provider="cohere", use_mock=True)  # type: ignore[arg-type]


@pytest.mark.parametrize("temperature", [-0.1, 2.5])
def test_out_of_range_temperature_is_rejected(temperature: float) -> None:
    with pytest.raises(ConfigurationError, match="temperature"):
        Config(provider="openai", use_mock=True, temperature=temperature)


def test_non_positive_max_output_tokens_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="max_output_tokens"):
        Config(provider="openai", use_mock=True, max_output_tokens=0)


def test_repr_redacts_api_key() -> None:
    cfg = Config(provider="openai", api_key="sk-very-secret")

    text = repr(cfg)

    assert "sk-very-secret" not in text
    assert "[REDACTED]" in text
    assert str(cfg) == text


def test_config_is_immutable() -> None:
    cfg = Config(provider="openai", use_mock=True)
    with pytest.raises(AttributeError):
        cfg.model = "gpt-3.5-turbo"  # type: ignore[misc]
