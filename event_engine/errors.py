"""Exception taxonomy shared by every engine component.

* :class:`InputError` – a malformed event field. Callers skip the affected
  computation step (e.g. the geo term of a duplicate score), never the whole
  pipeline.
* :class:`ProviderError` – an LLM, embedding or vector-store dependency is
  unavailable. Always recovered locally through a defined fallback.
* :class:`ConfigurationError` – fatal misconfiguration, raised at startup.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all engine errors."""


class InputError(EngineError, ValueError):
    """Raised when an event field cannot be used for a computation."""


class ProviderError(EngineError):
    """Raised when an external provider fails (network, auth, quota, bad output)."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ConfigurationError(EngineError):
    """Raised when the engine cannot start with the given configuration."""


__all__ = ["EngineError", "InputError", "ProviderError", "ConfigurationError"]
