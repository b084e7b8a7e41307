"""Factory for Pinecone and helper for obtaining the Index."""

from __future__ import annotations

from typing import Any

from pinecone import Pinecone as _Pinecone

from ..config import PINECONE_API_KEY, PINECONE_INDEX_NAME
from ..errors import ConfigurationError


def create_pinecone(api_key: str | None = None) -> _Pinecone:
    """Return a new :class:`pinecone.Pinecone` client."""
    api_key = api_key or PINECONE_API_KEY
    if not api_key:
        raise ConfigurationError("PINECONE_API_KEY is not set in environment variables")
    return _Pinecone(api_key=api_key)


def get_index(client: _Pinecone, name: str = PINECONE_INDEX_NAME) -> Any:
    """Return the configured Pinecone Index instance (must already exist)."""
    return client.Index(name)

__all__ = ["create_pinecone", "get_index"]
