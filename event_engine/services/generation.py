"""Text-generation providers and the ordered fallback chain.

Every call site that needs an LLM goes through a :class:`TextProvider`.
A :class:`ProviderChain` tries its providers in order and raises a single
:class:`ProviderError` when all of them fail, so callers implement exactly
one local fallback (rule-based moderation, templated answers, ...).
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol, Sequence

import requests
from openai import OpenAIError

from ..clients.gemini_client import GEMINI_API_BASE
from ..config import GEMINI_TEXT_MODEL, PROVIDER_TIMEOUT_SECONDS, TEXT_MODEL
from ..errors import ProviderError

logger = logging.getLogger(__name__)


class TextProvider(Protocol):
    name: str

    def generate(self, prompt: str, *, system_prompt: str = "", max_tokens: int = 800) -> str:
        ...


class OpenAITextProvider:
    """Chat-completion provider backed by the OpenAI SDK."""

    name = "openai"

    def __init__(self, client: Any, model: str = TEXT_MODEL, temperature: float = 0.2) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature

    def generate(self, prompt: str, *, system_prompt: str = "", max_tokens: int = 800) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        try:
            resp = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as exc:
            raise ProviderError(self.name, str(exc)) from exc

        content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise ProviderError(self.name, "empty completion")
        return content


class GeminiTextProvider:
    """`generateContent` REST provider for Gemini models."""

    name = "gemini"

    def __init__(
        self,
        session: requests.Session,
        api_key: str,
        model: str = GEMINI_TEXT_MODEL,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
    ) -> None:
        self._session = session
        self._api_key = api_key
        self.model = model
        self.timeout = timeout

    def generate(self, prompt: str, *, system_prompt: str = "", max_tokens: int = 800) -> str:
        text = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
        data = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {"maxOutputTokens": max_tokens, "temperature": 0.2},
        }
        try:
            response = self._session.post(
                f"{GEMINI_API_BASE}/{self.model}:generateContent",
                params={"key": self._api_key},
                json=data,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ProviderError(self.name, str(exc)) from exc

        if response.status_code != 200:
            logger.error("Error from Gemini API: %s - %s", response.status_code, response.text[:200])
            raise ProviderError(self.name, f"HTTP {response.status_code}")

        try:
            return response.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderError(self.name, "malformed response body") from exc


class ProviderChain:
    """Try each provider in order; the first successful answer wins."""

    name = "chain"

    def __init__(self, providers: Sequence[TextProvider]) -> None:
        self.providers: List[TextProvider] = list(providers)

    def __bool__(self) -> bool:
        return bool(self.providers)

    def generate(self, prompt: str, *, system_prompt: str = "", max_tokens: int = 800) -> str:
        last_error: Optional[ProviderError] = None
        for provider in self.providers:
            try:
                return provider.generate(prompt, system_prompt=system_prompt, max_tokens=max_tokens)
            except ProviderError as exc:
                logger.warning("Text provider '%s' failed: %s – trying next", provider.name, exc)
                last_error = exc
        if last_error is None:
            raise ProviderError(self.name, "no text providers configured")
        raise ProviderError(self.name, f"all providers failed (last: {last_error})")


__all__ = ["TextProvider", "OpenAITextProvider", "GeminiTextProvider", "ProviderChain"]
