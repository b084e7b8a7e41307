"""Factory for the MongoDB client."""

from __future__ import annotations

from pymongo import MongoClient

from ..config import MONGODB_TIMEOUT_MS, MONGODB_URI
from ..errors import ConfigurationError


def create_mongo_client(uri: str | None = None, timeout_ms: int = MONGODB_TIMEOUT_MS) -> MongoClient:
    """Return a new :class:`pymongo.MongoClient`."""
    uri = uri or MONGODB_URI
    if not uri:
        raise ConfigurationError("MONGODB_URI is not set in environment variables")
    return MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)

__all__ = ["create_mongo_client"]
