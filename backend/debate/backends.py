"""Backend adapters: one per persona, each turning a prompt into reply text."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping, Optional, Protocol

import httpx

from config import (
    DebateSettings,
    get_claude_api_key,
    get_deepseek_api_key,
    get_grok_api_key,
    get_model_overrides,
    get_openai_api_key,
)
from provider_clients import (
    PROVIDER_DEFAULT_MODELS,
    ProviderName,
    ProviderRequestError,
    request_completion,
)

from .errors import BackendError, ConfigurationError
from .personas import PERSONAS, Persona
from .rate_limiter import ProviderRateLimiter

logger = logging.getLogger(__name__)

PROVIDER_KEY_GETTERS: Dict[ProviderName, Callable[[], str]] = {
    ProviderName.OPENAI: get_openai_api_key,
    ProviderName.CLAUDE: get_claude_api_key,
    ProviderName.GROK: get_grok_api_key,
    ProviderName.DEEPSEEK: get_deepseek_api_key,
}


class TextBackend(Protocol):
    """Anything the engine can ask for one completion."""

    provider: str

    async def generate(self, prompt: str) -> str:  # pragma: no cover - protocol
        ...


class BackendAdapter:
    """Calls one hosted provider for one persona.

    The credential is checked before anything else so a missing key surfaces
    as ``ConfigurationError`` without touching the network or the limiter.
    Exactly one outbound request per ``generate()``; no retries.
    """

    def __init__(
        self,
        provider: ProviderName,
        model: str,
        key_getter: Callable[[], str],
        limiter: ProviderRateLimiter,
        max_tokens: int = 150,
        temperature: float = 0.2,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.provider_name = provider
        self.provider = provider.value
        self.model = model
        self._key_getter = key_getter
        self._limiter = limiter
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._transport = transport

    def credential(self) -> str:
        try:
            return self._key_getter()
        except ConfigurationError:
            raise
        except RuntimeError as exc:
            raise ConfigurationError(str(exc)) from exc

    def is_configured(self) -> bool:
        try:
            self.credential()
        except ConfigurationError:
            return False
        return True

    async def generate(self, prompt: str) -> str:
        api_key = self.credential()
        await self._limiter.wait_if_needed(self.provider)
        try:
            return await request_completion(
                self.provider_name,
                api_key,
                self.model,
                prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                timeout=self.timeout,
                transport=self._transport,
            )
        except ProviderRequestError as exc:
            logger.error("%s API error: %s", self.provider, exc)
            raise BackendError(self.provider, str(exc)) from exc
        except httpx.HTTPError as exc:
            cause = str(exc) or type(exc).__name__
            logger.error("%s transport error: %s", self.provider, cause)
            raise BackendError(self.provider, cause) from exc


def build_adapters(
    limiter: ProviderRateLimiter,
    settings: DebateSettings,
    key_getters: Optional[Mapping[ProviderName, Callable[[], str]]] = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Dict[Persona, BackendAdapter]:
    """Create the persona -> adapter table used for the life of the process."""
    getters = dict(PROVIDER_KEY_GETTERS)
    if key_getters:
        getters.update(key_getters)
    models = get_model_overrides()

    adapters: Dict[Persona, BackendAdapter] = {}
    for persona, profile in PERSONAS.items():
        provider = profile.provider
        adapters[persona] = BackendAdapter(
            provider=provider,
            model=models.get(provider.value, PROVIDER_DEFAULT_MODELS[provider]),
            key_getter=getters[provider],
            limiter=limiter,
            max_tokens=settings.provider_max_tokens,
            temperature=settings.provider_temperature,
            timeout=settings.provider_timeout_seconds,
            transport=transport,
        )
    return adapters


def credential_status(adapters: Mapping[Persona, BackendAdapter]) -> Dict[str, bool]:
    """Report which personas have a credential configured."""
    return {persona.value: adapter.is_configured() for persona, adapter in adapters.items()}
