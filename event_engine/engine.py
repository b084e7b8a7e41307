"""`EventEngine`: the assembled submission, search and indexing surface.

Every collaborator is passed in explicitly; :meth:`EventEngine.from_env`
builds the production set (MongoDB, Pinecone, OpenAI/Gemini) from the
configuration module. Nothing is created at import time.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from .clients import (
    create_gemini_session,
    create_mongo_client,
    create_openai_client,
    create_pinecone,
    get_pinecone_index,
)
from .config import (
    EMBEDDING_DIMENSIONS,
    EMBEDDING_PROVIDER,
    GEMINI_API_KEY,
    MONGODB_COLLECTION,
    MONGODB_DATABASE,
    OPENAI_API_KEY,
    PINECONE_API_KEY,
)
from .errors import ConfigurationError
from .models import (
    Coordinates,
    Event,
    RankedEvent,
    SearchFilters,
    SubmissionEvaluation,
    UserPreferences,
)
from .services.assistant import AssistantReply, EventAssistant
from .services.deduplication import DuplicateDetector
from .services.embeddings import (
    BaseEmbeddingProvider,
    FallbackEmbeddingProvider,
    GeminiEmbeddingProvider,
    OpenAIEmbeddingProvider,
)
from .services.generation import GeminiTextProvider, OpenAITextProvider, ProviderChain, TextProvider
from .services.indexing import IndexMaintainer
from .services.moderation import ModerationScorer
from .services.retrieval import RetrievalRanker
from .services.storage import EventStore, MongoEventStore, build_search_query
from .services.vector_index import InMemoryVectorIndex, PineconeVectorIndex, VectorIndex
from .workflows.submission import evaluate_submission

logger = logging.getLogger(__name__)


class EventEngine:
    def __init__(
        self,
        store: EventStore,
        embedder: FallbackEmbeddingProvider,
        index: VectorIndex,
        *,
        text_provider: Optional[TextProvider] = None,
        detector: Optional[DuplicateDetector] = None,
        moderator: Optional[ModerationScorer] = None,
        ranker: Optional[RetrievalRanker] = None,
        indexer: Optional[IndexMaintainer] = None,
        resources: Sequence[Any] = (),
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.index = index
        self.text_provider = text_provider
        self.detector = detector or DuplicateDetector()
        self.moderator = moderator or ModerationScorer(text_provider)
        self.ranker = ranker or RetrievalRanker(embedder, index)
        self.indexer = indexer or IndexMaintainer(embedder, index)
        self.assistant = EventAssistant(store, self.ranker, text_provider)
        self._resources: List[Any] = list(resources)
        self._closed = False

    # ------------------------------------------------------------------
    # Construction & lifecycle
    # ------------------------------------------------------------------
    @classmethod
    def from_env(cls) -> "EventEngine":
        """Build the engine from environment configuration.

        Raises
        ------
        ConfigurationError
            If MongoDB is not configured or the embedding provider is unknown.
        """
        resources: List[Any] = []

        mongo = create_mongo_client()
        resources.append(mongo)
        store = MongoEventStore(mongo[MONGODB_DATABASE][MONGODB_COLLECTION])

        openai_client = create_openai_client() if OPENAI_API_KEY else None
        gemini_session = create_gemini_session() if GEMINI_API_KEY else None
        resources.extend(r for r in (openai_client, gemini_session) if r is not None)

        text_providers: List[TextProvider] = []
        if openai_client is not None:
            text_providers.append(OpenAITextProvider(openai_client))
        if gemini_session is not None:
            text_providers.append(GeminiTextProvider(gemini_session, GEMINI_API_KEY))
        if not text_providers:
            logger.warning("No text provider configured – moderation uses the rule scan only")

        primary = _embedding_provider(EMBEDDING_PROVIDER, openai_client, gemini_session)
        embedder = FallbackEmbeddingProvider(primary, dimension=EMBEDDING_DIMENSIONS)

        if PINECONE_API_KEY:
            index: VectorIndex = PineconeVectorIndex(
                get_pinecone_index(create_pinecone()), dimension=embedder.dimension
            )
        else:
            logger.warning("PINECONE_API_KEY is not set – using an in-memory vector index")
            index = InMemoryVectorIndex(embedder.dimension)

        return cls(
            store,
            embedder,
            index,
            text_provider=ProviderChain(text_providers),
            resources=resources,
        )

    def connect(self) -> "EventEngine":
        """Verify that embeddings and the vector index agree on dimensionality."""
        if self.embedder.dimension != self.index.dimension:
            raise ConfigurationError(
                f"Embedding dimension {self.embedder.dimension} does not match "
                f"index dimension {self.index.dimension}"
            )
        self.index.check_dimension()
        logger.info("Event engine connected (dimension=%d)", self.index.dimension)
        return self

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.ranker.close()
        self.indexer.close()
        for resource in self._resources:
            try:
                resource.close()
            except Exception as exc:  # pragma: no cover – best-effort shutdown
                logger.warning("Error while closing %s: %s", type(resource).__name__, exc)
        logger.info("Event engine closed")

    def __enter__(self) -> "EventEngine":
        return self.connect()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def evaluate_submission(self, event: Event) -> SubmissionEvaluation:
        return evaluate_submission(event, self.store, self.detector, self.moderator)

    def search(
        self,
        query: Optional[str],
        location: Optional[Coordinates] = None,
        filters: Optional[SearchFilters] = None,
        preferences: Optional[UserPreferences] = None,
        radius_km: Optional[float] = None,
        deadline: Optional[float] = None,
    ) -> List[RankedEvent]:
        """Rank approved events for *query*; *deadline* is a ``time.monotonic()`` value."""
        radius = self.ranker.effective_radius(radius_km) if location is not None else None
        candidates = self.store.find(build_search_query(filters, location, radius))
        return self.ranker.rank(
            query,
            candidates,
            location=location,
            radius_km=radius_km,
            filters=filters,
            preferences=preferences,
            deadline=deadline,
        )

    def on_event_lifecycle(self, event: Event, action: Any):
        """Schedule index maintenance; returns a future resolving to success."""
        return self.indexer.handle_lifecycle(event, action)

    def assist(
        self,
        message: str,
        location: Optional[Coordinates] = None,
        preferences: Optional[UserPreferences] = None,
        deadline: Optional[float] = None,
    ) -> AssistantReply:
        return self.assistant.reply(message, location, preferences, deadline)


def _embedding_provider(
    name: str, openai_client: Any, gemini_session: Any
) -> Optional[BaseEmbeddingProvider]:
    name = (name or "").strip().lower()
    if name == "openai":
        if openai_client is None:
            logger.warning("EMBEDDING_PROVIDER=openai but OPENAI_API_KEY is not set")
            return None
        return OpenAIEmbeddingProvider(openai_client, dimension=EMBEDDING_DIMENSIONS)
    if name == "gemini":
        if gemini_session is None:
            logger.warning("EMBEDDING_PROVIDER=gemini but GEMINI_API_KEY is not set")
            return None
        return GeminiEmbeddingProvider(gemini_session, GEMINI_API_KEY, dimension=EMBEDDING_DIMENSIONS)
    if name == "hash":
        return None
    raise ConfigurationError(f"Unknown EMBEDDING_PROVIDER '{name}' (expected openai, gemini or hash)")


__all__ = ["EventEngine"]
