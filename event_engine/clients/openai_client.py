"""Factory for the OpenAI SDK client."""

from __future__ import annotations

from openai import OpenAI as _OpenAIClient

from ..config import OPENAI_API_KEY, PROVIDER_TIMEOUT_SECONDS
from ..errors import ConfigurationError


def create_openai_client(
    api_key: str | None = None,
    timeout: float = PROVIDER_TIMEOUT_SECONDS,
) -> _OpenAIClient:
    """Return a new :class:`openai.OpenAI` client.

    The caller owns the instance and should ``close()`` it on shutdown.
    """
    api_key = api_key or OPENAI_API_KEY
    if not api_key:
        raise ConfigurationError("OPENAI_API_KEY is not set in environment variables")
    # Retries are handled by the provider fallback chain instead of the SDK.
    return _OpenAIClient(api_key=api_key, timeout=timeout, max_retries=0)

__all__ = ["create_openai_client"]
