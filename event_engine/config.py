"""Centralised configuration for event_engine.

Environment variables are loaded once and all related constants are
grouped by concern for easier maintenance. Components take these values as
keyword defaults, so tests can override any of them per instance.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Load environment variables from `.env` (if present)
# ---------------------------------------------------------------------------
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw not in (None, "") else default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Core credentials (from environment)
# ---------------------------------------------------------------------------
OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
GEMINI_API_KEY: str | None = os.getenv("GEMINI_API_KEY")
PINECONE_API_KEY: str | None = os.getenv("PINECONE_API_KEY")
MONGODB_URI: str | None = os.getenv("MONGODB_URI")

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------
MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "event_map")
MONGODB_COLLECTION: str = os.getenv("MONGODB_COLLECTION", "events")
MONGODB_TIMEOUT_MS: int = _env_int("MONGODB_TIMEOUT_MS", 5000)

PINECONE_INDEX_NAME: str = os.getenv("PINECONE_INDEX_NAME", "events")
PINECONE_NAMESPACE: str = os.getenv("PINECONE_NAMESPACE", "events")

# ---------------------------------------------------------------------------
# Providers
# accepted values for EMBEDDING_PROVIDER: "openai", "gemini", "hash"
# ---------------------------------------------------------------------------
EMBEDDING_PROVIDER: str = os.getenv("EMBEDDING_PROVIDER", "openai")
EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
EMBEDDING_DIMENSIONS: int = _env_int("EMBEDDING_DIMENSIONS", 768)
TEXT_MODEL: str = os.getenv("TEXT_MODEL", "gpt-4o-mini")
GEMINI_TEXT_MODEL: str = os.getenv("GEMINI_TEXT_MODEL", "gemini-1.5-flash")
GEMINI_EMBEDDING_MODEL: str = os.getenv("GEMINI_EMBEDDING_MODEL", "embedding-001")
PROVIDER_TIMEOUT_SECONDS: float = _env_float("PROVIDER_TIMEOUT_SECONDS", 10.0)

# ---------------------------------------------------------------------------
# Duplicate detection & moderation thresholds
# ---------------------------------------------------------------------------
DUPLICATE_THRESHOLD: float = _env_float("DUPLICATE_THRESHOLD", 0.7)
AUTO_REJECT_THRESHOLD: float = _env_float("AUTO_REJECT_THRESHOLD", 0.9)
FLAG_THRESHOLD: float = _env_float("FLAG_THRESHOLD", 0.5)
MODERATION_REJECT_THRESHOLD: float = _env_float("MODERATION_REJECT_THRESHOLD", 0.7)
AUTO_APPROVE_CLEAN_EVENTS: bool = _env_bool("AUTO_APPROVE_CLEAN_EVENTS", True)

# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------
DEFAULT_RADIUS_KM: float = _env_float("DEFAULT_RADIUS_KM", 25.0)
MAX_RADIUS_KM: float = _env_float("MAX_RADIUS_KM", 100.0)
RESULT_LIMIT: int = _env_int("RESULT_LIMIT", 20)
SEMANTIC_TOP_K: int = _env_int("SEMANTIC_TOP_K", 20)
SEMANTIC_TIMEOUT_SECONDS: float = _env_float("SEMANTIC_TIMEOUT_SECONDS", 3.0)
CANDIDATE_LIMIT: int = _env_int("CANDIDATE_LIMIT", 100)

# ---------------------------------------------------------------------------
# Index maintenance
# ---------------------------------------------------------------------------
INDEX_MAX_WORKERS: int = _env_int("INDEX_MAX_WORKERS", 4)
INDEX_MAX_RETRIES: int = _env_int("INDEX_MAX_RETRIES", 3)
INDEX_RETRY_DELAY_SECONDS: float = _env_float("INDEX_RETRY_DELAY_SECONDS", 0.5)

# ---------------------------------------------------------------------------
# Miscellaneous
# ---------------------------------------------------------------------------
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Re-exported names
# ---------------------------------------------------------------------------
__all__ = [
    # credentials
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "PINECONE_API_KEY",
    "MONGODB_URI",
    # storage
    "MONGODB_DATABASE",
    "MONGODB_COLLECTION",
    "MONGODB_TIMEOUT_MS",
    "PINECONE_INDEX_NAME",
    "PINECONE_NAMESPACE",
    # providers
    "EMBEDDING_PROVIDER",
    "EMBEDDING_MODEL",
    "EMBEDDING_DIMENSIONS",
    "TEXT_MODEL",
    "GEMINI_TEXT_MODEL",
    "GEMINI_EMBEDDING_MODEL",
    "PROVIDER_TIMEOUT_SECONDS",
    # thresholds
    "DUPLICATE_THRESHOLD",
    "AUTO_REJECT_THRESHOLD",
    "FLAG_THRESHOLD",
    "MODERATION_REJECT_THRESHOLD",
    "AUTO_APPROVE_CLEAN_EVENTS",
    # retrieval
    "DEFAULT_RADIUS_KM",
    "MAX_RADIUS_KM",
    "RESULT_LIMIT",
    "SEMANTIC_TOP_K",
    "SEMANTIC_TIMEOUT_SECONDS",
    "CANDIDATE_LIMIT",
    # indexing
    "INDEX_MAX_WORKERS",
    "INDEX_MAX_RETRIES",
    "INDEX_RETRY_DELAY_SECONDS",
    # misc
    "LOG_LEVEL",
]
