"""Embedding providers: OpenAI, Gemini and a deterministic hash fallback.

The hash fallback is NOT a semantic embedding. It exists so that indexing
stays idempotent while the real provider is down: identical text always maps
to the identical vector. Every fallback use is logged and counted, and the
``source`` returned by :meth:`embed_with_source` lets the index and the
ranker tell the two kinds apart.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Tuple

import numpy as np
import requests
from openai import OpenAIError

from ..clients.gemini_client import GEMINI_API_BASE
from ..config import (
    EMBEDDING_DIMENSIONS,
    EMBEDDING_MODEL,
    GEMINI_EMBEDDING_MODEL,
    PROVIDER_TIMEOUT_SECONDS,
)
from ..errors import ConfigurationError, ProviderError
from ..models import Embedding

HASH_SOURCE: str = "hash-fallback"

logger = logging.getLogger(__name__)


class BaseEmbeddingProvider:
    """Common interface: ``embed(text)`` plus provenance via ``embed_with_source``."""

    name: str = "base"

    def __init__(self, dimension: int) -> None:
        if dimension <= 0:
            raise ConfigurationError(f"Embedding dimension must be positive, got {dimension}")
        self.dimension = dimension

    def embed(self, text: str) -> Embedding:
        raise NotImplementedError

    def embed_with_source(self, text: str) -> Tuple[Embedding, str]:
        return self.embed(text), self.name

    def _check_length(self, vector: Embedding) -> Embedding:
        if len(vector) != self.dimension:
            raise ProviderError(
                self.name, f"returned {len(vector)} dimensions, expected {self.dimension}"
            )
        return vector


class OpenAIEmbeddingProvider(BaseEmbeddingProvider):
    name = "openai"

    def __init__(
        self,
        client: Any,
        model: str = EMBEDDING_MODEL,
        dimension: int = EMBEDDING_DIMENSIONS,
    ) -> None:
        super().__init__(dimension)
        self._client = client
        self.model = model

    def embed(self, text: str) -> Embedding:
        logger.debug("Generating embedding for text (first 50 chars): %s…", text[:50])
        try:
            response = self._client.embeddings.create(
                model=self.model,
                input=text,
                dimensions=self.dimension,
            )
        except OpenAIError as exc:
            raise ProviderError(self.name, str(exc)) from exc
        try:
            values = list(response.data[0].embedding)
        except (AttributeError, IndexError, TypeError) as exc:
            raise ProviderError(self.name, "malformed embedding response") from exc
        return self._check_length(values)


class GeminiEmbeddingProvider(BaseEmbeddingProvider):
    name = "gemini"

    def __init__(
        self,
        session: requests.Session,
        api_key: str,
        model: str = GEMINI_EMBEDDING_MODEL,
        dimension: int = EMBEDDING_DIMENSIONS,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(dimension)
        self._session = session
        self._api_key = api_key
        self.model = model
        self.timeout = timeout

    def embed(self, text: str) -> Embedding:
        try:
            response = self._session.post(
                f"{GEMINI_API_BASE}/{self.model}:embedContent",
                params={"key": self._api_key},
                json={"content": {"parts": [{"text": text}]}},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ProviderError(self.name, str(exc)) from exc

        if response.status_code != 200:
            raise ProviderError(self.name, f"HTTP {response.status_code}")
        try:
            values = response.json()["embedding"]["values"]
        except (ValueError, KeyError, TypeError) as exc:
            raise ProviderError(self.name, "malformed response body") from exc
        return self._check_length([float(v) for v in values])


def hash_seed(text: str) -> int:
    """32-bit rolling hash (``h = h*31 + ord(c)``) used to seed the fallback PRNG."""
    h = 0
    for char in text:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    return h


class HashEmbeddingProvider(BaseEmbeddingProvider):
    """Deterministic pseudo-random vectors in ``[-1, 1]``; lower quality by construction."""

    name = HASH_SOURCE

    def embed(self, text: str) -> Embedding:
        rng = np.random.default_rng(hash_seed(text))
        return rng.uniform(-1.0, 1.0, self.dimension).tolist()


class FallbackEmbeddingProvider(BaseEmbeddingProvider):
    """Use *primary* when it works, the hash provider otherwise."""

    name = "fallback-chain"

    def __init__(
        self,
        primary: Optional[BaseEmbeddingProvider],
        fallback: Optional[BaseEmbeddingProvider] = None,
        dimension: int = EMBEDDING_DIMENSIONS,
    ) -> None:
        dimension = primary.dimension if primary is not None else dimension
        super().__init__(dimension)
        self.primary = primary
        self.fallback = fallback or HashEmbeddingProvider(dimension)
        if self.fallback.dimension != dimension:
            raise ConfigurationError(
                f"Fallback embedding dimension {self.fallback.dimension} does not match {dimension}"
            )
        self._lock = threading.Lock()
        self.primary_count = 0
        self.fallback_count = 0

    def embed(self, text: str) -> Embedding:
        return self.embed_with_source(text)[0]

    def embed_with_source(self, text: str) -> Tuple[Embedding, str]:
        if self.primary is not None:
            try:
                vector = self.primary.embed(text)
                with self._lock:
                    self.primary_count += 1
                return vector, self.primary.name
            except ProviderError as exc:
                logger.warning(
                    "Embedding provider '%s' failed: %s – using hash-based fallback embedding "
                    "(deterministic, not semantic)",
                    self.primary.name,
                    exc,
                )
        else:
            logger.warning("No embedding provider configured – using hash-based fallback embedding")

        vector = self.fallback.embed(text)
        with self._lock:
            self.fallback_count += 1
        return vector, self.fallback.name

    def stats(self) -> dict:
        with self._lock:
            return {"primary": self.primary_count, "fallback": self.fallback_count}


def is_semantic_source(source: str) -> bool:
    return source != HASH_SOURCE


__all__ = [
    "HASH_SOURCE",
    "BaseEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "GeminiEmbeddingProvider",
    "HashEmbeddingProvider",
    "FallbackEmbeddingProvider",
    "hash_seed",
    "is_semantic_source",
]
