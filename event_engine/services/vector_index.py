"""Vector index implementations: in-memory (numpy) and Pinecone.

Both store ``(id, vector, metadata)`` tuples keyed by event id, so upserting
an id that is already present overwrites it. Distances are cosine distances
(``1 - cosine similarity``); an empty index answers every query with ``[]``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol

import numpy as np

from ..config import EMBEDDING_DIMENSIONS, PINECONE_NAMESPACE
from ..errors import ConfigurationError, ProviderError
from ..models import Embedding

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class VectorMatch:
    id: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    distance: float = 0.0


class VectorIndex(Protocol):
    dimension: int

    def upsert(self, id: str, vector: Embedding, metadata: Dict[str, Any]) -> None: ...

    def delete(self, id: str) -> None: ...

    def query(self, vector: Embedding, k: int, ids: Optional[Iterable[str]] = None) -> List[VectorMatch]: ...

    def count(self) -> int: ...

    def check_dimension(self) -> None: ...


def _check_vector(vector: Embedding, dimension: int) -> None:
    if len(vector) != dimension:
        raise ConfigurationError(
            f"Embedding has {len(vector)} dimensions but the index expects {dimension}"
        )


class InMemoryVectorIndex:
    """Thread-safe brute-force cosine index, used in tests and local development."""

    def __init__(self, dimension: int = EMBEDDING_DIMENSIONS) -> None:
        self.dimension = dimension
        self._vectors: Dict[str, np.ndarray] = {}
        self._metadata: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def check_dimension(self) -> None:
        with self._lock:
            for key, vector in self._vectors.items():
                if vector.shape[0] != self.dimension:
                    raise ConfigurationError(f"Stored vector '{key}' has the wrong dimension")

    def upsert(self, id: str, vector: Embedding, metadata: Dict[str, Any]) -> None:
        _check_vector(vector, self.dimension)
        with self._lock:
            self._vectors[id] = np.asarray(vector, dtype=float)
            self._metadata[id] = dict(metadata)

    def delete(self, id: str) -> None:
        with self._lock:
            self._vectors.pop(id, None)
            self._metadata.pop(id, None)

    def count(self) -> int:
        with self._lock:
            return len(self._vectors)

    def __contains__(self, id: str) -> bool:
        with self._lock:
            return id in self._vectors

    def query(self, vector: Embedding, k: int, ids: Optional[Iterable[str]] = None) -> List[VectorMatch]:
        _check_vector(vector, self.dimension)
        with self._lock:
            allowed = set(ids) if ids is not None else None
            keys = [key for key in self._vectors if allowed is None or key in allowed]
            if not keys or k <= 0:
                return []
            matrix = np.vstack([self._vectors[key] for key in keys])
            metadata = {key: dict(self._metadata[key]) for key in keys}

        query = np.asarray(vector, dtype=float)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        with np.errstate(divide="ignore", invalid="ignore"):
            sims = np.where(norms > 0, dots / norms, 0.0)
        distances = 1.0 - sims

        order = np.argsort(distances, kind="stable")[:k]
        return [
            VectorMatch(id=keys[i], metadata=metadata[keys[i]], distance=float(distances[i]))
            for i in order
        ]


def _clean_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Pinecone accepts strings, numbers, booleans and lists of strings only."""
    cleaned: Dict[str, Any] = {}
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, datetime):
            cleaned[key] = value.isoformat()
        elif isinstance(value, (str, bool, int, float)):
            cleaned[key] = value
        elif isinstance(value, (list, tuple)):
            cleaned[key] = [str(v) for v in value]
        else:
            cleaned[key] = str(value)
    return cleaned


class PineconeVectorIndex:
    """Adapter over a ``pinecone.Index`` restricted to one namespace."""

    def __init__(
        self,
        index: Any,
        dimension: int = EMBEDDING_DIMENSIONS,
        namespace: str = PINECONE_NAMESPACE,
    ) -> None:
        self._index = index
        self.dimension = dimension
        self.namespace = namespace

    def check_dimension(self) -> None:
        """Fail fast when the remote index was built for another embedding size."""
        try:
            stats = self._index.describe_index_stats()
        except Exception as exc:  # pragma: no cover – network failure
            raise ConfigurationError(f"Could not describe Pinecone index: {exc}") from exc
        remote = getattr(stats, "dimension", None)
        if remote is None and isinstance(stats, dict):
            remote = stats.get("dimension")
        if remote is not None and int(remote) != self.dimension:
            raise ConfigurationError(
                f"Pinecone index dimension {remote} does not match embedding dimension {self.dimension}"
            )
        logger.info("Pinecone index ready (dimension=%s, namespace=%s)", remote, self.namespace)

    def upsert(self, id: str, vector: Embedding, metadata: Dict[str, Any]) -> None:
        _check_vector(vector, self.dimension)
        payload = _clean_metadata({**metadata, "event_id": id})
        try:
            self._index.upsert(vectors=[(id, list(vector), payload)], namespace=self.namespace)
        except Exception as exc:  # pragma: no cover – network failure
            raise ProviderError("pinecone", f"upsert failed: {exc}") from exc

    def delete(self, id: str) -> None:
        try:
            self._index.delete(ids=[id], namespace=self.namespace)
        except Exception as exc:  # pragma: no cover – network failure
            raise ProviderError("pinecone", f"delete failed: {exc}") from exc

    def query(self, vector: Embedding, k: int, ids: Optional[Iterable[str]] = None) -> List[VectorMatch]:
        _check_vector(vector, self.dimension)
        kwargs: Dict[str, Any] = {
            "namespace": self.namespace,
            "vector": list(vector),
            "top_k": k,
            "include_metadata": True,
        }
        if ids is not None:
            id_list = list(ids)
            if not id_list:
                return []
            kwargs["filter"] = {"event_id": {"$in": id_list}}
        try:
            response = self._index.query(**kwargs)
        except Exception as exc:  # pragma: no cover – network failure
            raise ProviderError("pinecone", f"query failed: {exc}") from exc

        # Pinecone reports cosine *similarity* as `score`
        return [
            VectorMatch(id=m.id, metadata=dict(m.metadata or {}), distance=1.0 - float(m.score))
            for m in (response.matches or [])
        ]

    def count(self) -> int:
        try:
            stats = self._index.describe_index_stats()
        except Exception as exc:  # pragma: no cover – network failure
            raise ProviderError("pinecone", f"describe failed: {exc}") from exc
        namespaces = getattr(stats, "namespaces", None) or {}
        summary = namespaces.get(self.namespace)
        return int(getattr(summary, "vector_count", 0) or 0) if summary is not None else 0


__all__ = ["VectorMatch", "VectorIndex", "InMemoryVectorIndex", "PineconeVectorIndex"]
