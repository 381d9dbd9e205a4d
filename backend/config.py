"""Application configuration helpers."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

# Load variables from .env into process environment as early as possible.
load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised when a required provider credential is not configured."""


def _optional_env(name: str) -> str | None:
    value = os.getenv(name)
    return value or None


def _float_env(name: str, default: float) -> float:
    value = _optional_env(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {name} must be a number, got {value!r}") from exc


def _int_env(name: str, default: int) -> int:
    value = _optional_env(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {name} must be an integer, got {value!r}") from exc


@lru_cache(maxsize=None)
def get_openai_api_key() -> str:
    """Return the OpenAI API key used by the CHATGPT persona."""

    value = _optional_env("OPENAI_API_KEY")
    if not value:
        raise ConfigurationError("Set OPENAI_API_KEY to use the OpenAI provider")
    return value


@lru_cache(maxsize=None)
def get_claude_api_key() -> str:
    """Return the Anthropic Claude API key."""

    value = _optional_env("CLAUDE_API_KEY") or _optional_env("ANTHROPIC_API_KEY")
    if not value:
        raise ConfigurationError("Set CLAUDE_API_KEY (or ANTHROPIC_API_KEY) to use the Claude provider")
    return value


@lru_cache(maxsize=None)
def get_grok_api_key() -> str:
    """Return the xAI Grok API key."""

    value = _optional_env("XAI_API_KEY") or _optional_env("GROK_API_KEY")
    if not value:
        raise ConfigurationError("Set XAI_API_KEY (or GROK_API_KEY) to use the Grok provider")
    return value


@lru_cache(maxsize=None)
def get_deepseek_api_key() -> str:
    """Return the DeepSeek API key."""

    value = _optional_env("DEEPSEEK_API_KEY")
    if not value:
        raise ConfigurationError("Set DEEPSEEK_API_KEY to use the DeepSeek provider")
    return value


def clear_credential_cache() -> None:
    """Forget cached credentials so the next lookup re-reads the environment."""
    for getter in (get_openai_api_key, get_claude_api_key, get_grok_api_key, get_deepseek_api_key):
        getter.cache_clear()


@lru_cache(maxsize=None)
def get_model_overrides() -> dict[str, str]:
    """Return per-provider model names set through the environment."""
    overrides: dict[str, str] = {}
    for provider, env_name in (
        ("openai", "OPENAI_MODEL"),
        ("claude", "CLAUDE_MODEL"),
        ("grok", "GROK_MODEL"),
        ("deepseek", "DEEPSEEK_MODEL"),
    ):
        value = _optional_env(env_name)
        if value:
            overrides[provider] = value
    return overrides


@dataclass(frozen=True)
class DebateSettings:
    """Tunables for the debate engine, pacing layer and provider calls."""

    max_turns: int = 100
    history_window: int = 6
    turn_delay_seconds: float = 2.0
    provider_min_interval_seconds: float = 1.0
    ack_timeout_seconds: float | None = None
    provider_timeout_seconds: float = 30.0
    provider_max_tokens: int = 150
    provider_temperature: float = 0.2


@lru_cache(maxsize=None)
def get_debate_settings() -> DebateSettings:
    """Build the debate settings from environment variables."""

    ack_timeout = _optional_env("ACK_TIMEOUT_SECONDS")
    settings = DebateSettings(
        max_turns=_int_env("DEBATE_MAX_TURNS", 100),
        history_window=_int_env("DEBATE_HISTORY_WINDOW", 6),
        turn_delay_seconds=_float_env("DEBATE_TURN_DELAY_SECONDS", 2.0),
        provider_min_interval_seconds=_float_env("PROVIDER_MIN_INTERVAL_SECONDS", 1.0),
        ack_timeout_seconds=_float_env("ACK_TIMEOUT_SECONDS", 0.0) if ack_timeout else None,
        provider_timeout_seconds=_float_env("PROVIDER_TIMEOUT_SECONDS", 30.0),
        provider_max_tokens=_int_env("PROVIDER_MAX_TOKENS", 150),
        provider_temperature=_float_env("PROVIDER_TEMPERATURE", 0.2),
    )
    if settings.max_turns < 1:
        raise ConfigurationError("DEBATE_MAX_TURNS must be at least 1")
    if settings.history_window < 1:
        raise ConfigurationError("DEBATE_HISTORY_WINDOW must be at least 1")
    if settings.ack_timeout_seconds is not None and settings.ack_timeout_seconds <= 0:
        raise ConfigurationError("ACK_TIMEOUT_SECONDS must be greater than 0 (leave unset to wait indefinitely)")
    return settings


@lru_cache(maxsize=None)
def get_port() -> int:
    """Return the port the development server listens on."""
    return _int_env("PORT", 3001)
