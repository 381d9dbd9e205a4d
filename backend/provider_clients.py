"""HTTP completion calls against the hosted LLM providers."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List

import httpx

logger = logging.getLogger(__name__)


class ProviderName(str, Enum):
    OPENAI = "openai"
    CLAUDE = "claude"
    GROK = "grok"
    DEEPSEEK = "deepseek"


PROVIDER_DEFAULT_MODELS: Dict[ProviderName, str] = {
    ProviderName.OPENAI: "gpt-3.5-turbo",
    ProviderName.CLAUDE: "claude-3-5-sonnet-20241022",
    ProviderName.GROK: "grok-2-1212",
    ProviderName.DEEPSEEK: "deepseek-chat",
}

# OpenAI-compatible chat completion endpoints.
CHAT_COMPLETION_URLS: Dict[ProviderName, str] = {
    ProviderName.OPENAI: "https://api.openai.com/v1/chat/completions",
    ProviderName.GROK: "https://api.x.ai/v1/chat/completions",
    ProviderName.DEEPSEEK: "https://api.deepseek.com/v1/chat/completions",
}

CLAUDE_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class ProviderRequestError(RuntimeError):
    """A provider answered with an error or with a payload we cannot read."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


async def request_completion(
    provider: ProviderName,
    api_key: str,
    model: str,
    prompt: str,
    *,
    max_tokens: int,
    temperature: float,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Send a single-message completion request and return the best completion text.

    Raises:
        ProviderRequestError: non-2xx response or malformed success payload
        httpx.HTTPError: transport failure (connect, read timeout, ...)
    """
    api_key = api_key.strip()
    if not api_key:
        raise ValueError("API key is required")

    if provider is ProviderName.CLAUDE:
        return await _complete_claude(api_key, model, prompt, max_tokens, temperature, timeout, transport)
    if provider in CHAT_COMPLETION_URLS:
        return await _complete_chat(provider, api_key, model, prompt, max_tokens, temperature, timeout, transport)
    raise ValueError(f"Unsupported provider: {provider}")


async def _complete_chat(
    provider: ProviderName,
    api_key: str,
    model: str,
    prompt: str,
    max_tokens: int,
    temperature: float,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None,
) -> str:
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    payload = {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        response = await client.post(CHAT_COMPLETION_URLS[provider], headers=headers, json=payload)
    data = _decode_response(response, f"{provider.value} completion failed")
    content = _extract_chat_content(data)
    if content is None:
        raise ProviderRequestError(f"{provider.value} returned no completion text", response.status_code)
    return content.strip()


async def _complete_claude(
    api_key: str,
    model: str,
    prompt: str,
    max_tokens: int,
    temperature: float,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None,
) -> str:
    headers = {
        "x-api-key": api_key,
        "anthropic-version": ANTHROPIC_VERSION,
        "Content-Type": "application/json",
    }
    payload = {
        "model": model,
        "max_tokens": max_tokens,
        "temperature": temperature,
        "messages": [{"role": "user", "content": prompt}],
    }
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        response = await client.post(CLAUDE_MESSAGES_URL, headers=headers, json=payload)
    data = _decode_response(response, "Claude completion failed")
    content = _extract_claude_content(data)
    if content is None:
        raise ProviderRequestError("claude returned no completion text", response.status_code)
    return content.strip()


def _extract_chat_content(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    text = first.get("text")
    return text if isinstance(text, str) else None


def _extract_claude_content(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    blocks = data.get("content")
    if not isinstance(blocks, list):
        return None
    parts: List[str] = []
    for block in blocks:
        if isinstance(block, dict) and isinstance(block.get("text"), str):
            parts.append(block["text"])
    return "".join(parts) if parts else None


def _decode_response(response: httpx.Response, fallback: str) -> Any:
    try:
        data = response.json()
    except ValueError:
        data = None
    if response.is_success:
        if data is None:
            raise ProviderRequestError(f"{fallback}: response was not JSON", response.status_code)
        return data
    message = _extract_error_message(data) or response.text or fallback
    raise ProviderRequestError(
        f"HTTP {response.status_code}: {message.strip() or fallback}",
        response.status_code,
    )


def _extract_error_message(payload: Any) -> str | None:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            message = error.get("message") or error.get("error")
            if isinstance(message, str):
                return message
        elif isinstance(error, str):
            return error
        message = payload.get("message")
        if isinstance(message, str):
            return message
    return None
