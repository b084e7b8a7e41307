"""Service layer modules grouping business logic by concern.

This module provides convenience re-exports so that callers can simply do for
example `from event_engine.services import DuplicateDetector` without having
to know which underlying module provides the symbol.
"""

from .generation import TextProvider, OpenAITextProvider, GeminiTextProvider, ProviderChain  # noqa: F401
from .embeddings import (  # noqa: F401
    BaseEmbeddingProvider,
    OpenAIEmbeddingProvider,
    GeminiEmbeddingProvider,
    HashEmbeddingProvider,
    FallbackEmbeddingProvider,
)
from .vector_index import VectorIndex, VectorMatch, InMemoryVectorIndex, PineconeVectorIndex  # noqa: F401
from .storage import EventStore, MongoEventStore, build_search_query  # noqa: F401
from .deduplication import DuplicateDetector  # noqa: F401
from .moderation import ModerationScorer  # noqa: F401
from .retrieval import RetrievalRanker, build_event_context  # noqa: F401
from .indexing import IndexMaintainer, IndexState, LifecycleAction  # noqa: F401
from .classification import classify_event, classification_confidence  # noqa: F401
from .intent import Intent, IntentAnalysis, classify_intent  # noqa: F401
from .assistant import AssistantReply, EventAssistant  # noqa: F401

__all__ = [
    "TextProvider",
    "OpenAITextProvider",
    "GeminiTextProvider",
    "ProviderChain",
    "BaseEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "GeminiEmbeddingProvider",
    "HashEmbeddingProvider",
    "FallbackEmbeddingProvider",
    "VectorIndex",
    "VectorMatch",
    "InMemoryVectorIndex",
    "PineconeVectorIndex",
    "EventStore",
    "MongoEventStore",
    "build_search_query",
    "DuplicateDetector",
    "ModerationScorer",
    "RetrievalRanker",
    "build_event_context",
    "IndexMaintainer",
    "IndexState",
    "LifecycleAction",
    "classify_event",
    "classification_confidence",
    "Intent",
    "IntentAnalysis",
    "classify_intent",
    "AssistantReply",
    "EventAssistant",
]
