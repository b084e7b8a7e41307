"""Hybrid event retrieval: hard filters, keyword + semantic fusion, preferences.

The semantic leg (one embedding call plus one vector-index query) is an
optional enhancement. It runs on a worker thread with a timeout bounded by
the caller's deadline; any failure or expiry leaves the keyword ranking in
place instead of failing the query.
"""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import (
    DEFAULT_RADIUS_KM,
    MAX_RADIUS_KM,
    RESULT_LIMIT,
    SEMANTIC_TIMEOUT_SECONDS,
    SEMANTIC_TOP_K,
)
from ..errors import EngineError, InputError
from ..models import (
    Coordinates,
    Event,
    EventStatus,
    RankedEvent,
    SearchFilters,
    UserPreferences,
)
from ..utils.datetime_utils import parse_timestamp
from ..utils.geo import distance_between
from .embeddings import HASH_SOURCE, BaseEmbeddingProvider, is_semantic_source
from .vector_index import VectorIndex

# ---------------------------------------------------------------------------
# Local scoring constants
# ---------------------------------------------------------------------------
TITLE_MATCH_POINTS: int = 3
CATEGORY_MATCH_POINTS: int = 2
OTHER_MATCH_POINTS: int = 1
MIN_TOKEN_LENGTH: int = 3

CATEGORY_PREFERENCE_BONUS: float = 2.0
LOCATION_PREFERENCE_BONUS: float = 1.0
TIME_PREFERENCE_BONUS: float = 1.0
MORNING_END_HOUR: int = 12
EVENING_START_HOUR: int = 18

logger = logging.getLogger(__name__)


def query_tokens(query: Optional[str]) -> List[str]:
    """Lower-cased whitespace tokens of *query* longer than two characters."""
    return [t for t in (query or "").lower().split() if len(t) >= MIN_TOKEN_LENGTH]


def keyword_score(tokens: Sequence[str], event: Event) -> float:
    """Average per-token match points (title 3, category 2, anywhere else 1)."""
    if not tokens:
        return 0.0
    title = event.title.lower()
    category = event.category.value.lower()
    searchable = " ".join([title, event.description.lower(), event.location.lower()])
    total = 0
    for token in tokens:
        if token in title:
            total += TITLE_MATCH_POINTS
        elif token in category:
            total += CATEGORY_MATCH_POINTS
        elif token in searchable:
            total += OTHER_MATCH_POINTS
    return total / len(tokens)


def preference_score(event: Event, preferences: Optional[UserPreferences]) -> float:
    if preferences is None:
        return 0.0
    score = 0.0
    if event.category in preferences.categories:
        score += CATEGORY_PREFERENCE_BONUS
    location = event.location.lower()
    if any(loc and loc.lower() in location for loc in preferences.locations):
        score += LOCATION_PREFERENCE_BONUS
    if event.start_time is not None:
        hour = event.start_time.hour
        wanted = {p.lower() for p in preferences.time_preferences}
        if "morning" in wanted and hour < MORNING_END_HOUR:
            score += TIME_PREFERENCE_BONUS
        if "evening" in wanted and hour >= EVENING_START_HOUR:
            score += TIME_PREFERENCE_BONUS
    return score


def _sort_key(ranked: RankedEvent) -> Tuple[float, float, float]:
    distance = ranked.distance_km if ranked.distance_km is not None else math.inf
    start = ranked.event.start_time.timestamp() if ranked.event.start_time else math.inf
    return (-ranked.total_score, distance, start)


def build_event_context(ranked: Iterable[RankedEvent]) -> str:
    """Render ranked events as a context block for a text-generation prompt."""
    blocks = []
    for item in ranked:
        event = item.event
        blocks.append(
            "\n".join(
                [
                    f"Event: {event.title}",
                    f"Description: {event.description}",
                    f"Category: {event.category.value}",
                    f"Location: {event.location}",
                    f"Date: {event.start_time.isoformat() if event.start_time else 'unknown'}",
                    f"Relevance Score: {item.total_score:.2f}",
                ]
            )
        )
    return "\n\n".join(blocks)


class RetrievalRanker:
    def __init__(
        self,
        embedder: Optional[BaseEmbeddingProvider] = None,
        index: Optional[VectorIndex] = None,
        *,
        result_limit: int = RESULT_LIMIT,
        default_radius_km: float = DEFAULT_RADIUS_KM,
        max_radius_km: float = MAX_RADIUS_KM,
        semantic_top_k: int = SEMANTIC_TOP_K,
        semantic_timeout: float = SEMANTIC_TIMEOUT_SECONDS,
    ) -> None:
        self.embedder = embedder
        self.index = index
        self.result_limit = result_limit
        self.default_radius_km = default_radius_km
        self.max_radius_km = max_radius_km
        self.semantic_top_k = semantic_top_k
        self.semantic_timeout = semantic_timeout
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def semantic_enabled(self) -> bool:
        return self.embedder is not None and self.index is not None

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Step 1: hard filters
    # ------------------------------------------------------------------
    def effective_radius(self, radius_km: Optional[float]) -> float:
        if radius_km is None or radius_km <= 0:
            radius_km = self.default_radius_km
        return min(radius_km, self.max_radius_km)

    def filter_candidates(
        self,
        candidates: Iterable[Event],
        location: Optional[Coordinates] = None,
        radius_km: Optional[float] = None,
        filters: Optional[SearchFilters] = None,
    ) -> List[Tuple[Event, Optional[float]]]:
        """Return ``(event, distance_km)`` pairs that pass every hard filter."""
        radius = self.effective_radius(radius_km)
        filters = filters or SearchFilters()
        date_from = parse_timestamp(filters.date_from)
        date_to = parse_timestamp(filters.date_to)

        kept: List[Tuple[Event, Optional[float]]] = []
        for event in candidates:
            if event.status != EventStatus.APPROVED:
                continue
            if filters.categories and event.category not in filters.categories:
                continue
            if date_from is not None or date_to is not None:
                try:
                    start = parse_timestamp(event.start_time)
                except InputError as exc:
                    logger.debug("Dropping event %s with unusable start time: %s", event.id, exc)
                    continue
                if start is None:
                    continue
                if date_from is not None and start < date_from:
                    continue
                if date_to is not None and start > date_to:
                    continue
            if filters.price_min is not None or filters.price_max is not None:
                if event.price is None:
                    continue
                if filters.price_min is not None and event.price < filters.price_min:
                    continue
                if filters.price_max is not None and event.price > filters.price_max:
                    continue

            distance: Optional[float] = None
            if location is not None:
                try:
                    distance = distance_between(location, event.coordinates)
                except InputError as exc:
                    logger.debug("Dropping event %s with unusable coordinates: %s", event.id, exc)
                    continue
                if distance is None or distance > radius:
                    continue
            kept.append((event, distance))
        return kept

    # ------------------------------------------------------------------
    # Step 3: semantic leg
    # ------------------------------------------------------------------
    def _semantic_lookup(self, query: str, ids: List[str]) -> Dict[str, float]:
        vector, source = self.embedder.embed_with_source(query)
        if not is_semantic_source(source):
            logger.info("Query embedding came from the hash fallback – semantic scores skipped")
            return {}
        matches = self.index.query(vector, min(self.semantic_top_k, len(ids)), ids=ids)
        allowed = set(ids)
        scores: Dict[str, float] = {}
        for m in matches:
            if m.id not in allowed:
                continue
            # stored while the provider was down; not comparable with a real query vector
            if m.metadata.get("embedding_source") == HASH_SOURCE:
                logger.debug("Skipping hash-fallback vector for event %s", m.id)
                continue
            scores[m.id] = max(0.0, min(1.0, 1.0 - m.distance))
        return scores

    def semantic_scores(
        self, query: str, ids: List[str], deadline: Optional[float] = None
    ) -> Dict[str, float]:
        """Similarity per event id, or ``{}`` when the semantic leg is unavailable.

        *deadline* is an absolute :func:`time.monotonic` value.
        """
        if not self.semantic_enabled or not query.strip() or not ids:
            return {}
        timeout = self.semantic_timeout
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning("Deadline expired before semantic search – keyword-only ranking")
                return {}
            timeout = min(timeout, remaining)

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="semantic")
        future = self._executor.submit(self._semantic_lookup, query, ids)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.warning("Semantic search timed out after %.1fs – keyword-only ranking", timeout)
        except EngineError as exc:
            logger.warning("Semantic search failed: %s – keyword-only ranking", exc)
        except Exception as exc:
            logger.error("Unexpected semantic search error: %r – keyword-only ranking", exc)
        return {}

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------
    def rank(
        self,
        query: Optional[str],
        candidates: Iterable[Event],
        location: Optional[Coordinates] = None,
        radius_km: Optional[float] = None,
        filters: Optional[SearchFilters] = None,
        preferences: Optional[UserPreferences] = None,
        deadline: Optional[float] = None,
    ) -> List[RankedEvent]:
        query = query or ""
        kept = self.filter_candidates(candidates, location, radius_km, filters)
        if not kept:
            logger.info("No candidates left after hard filters")
            return []

        tokens = query_tokens(query)
        ids = [event.id for event, _ in kept if event.id is not None]
        semantic = self.semantic_scores(query, ids, deadline)

        ranked: List[RankedEvent] = []
        for event, distance in kept:
            kw = keyword_score(tokens, event) if tokens else None
            sem = semantic.get(event.id) if event.id is not None else None
            if kw is not None and sem is not None:
                combined = (kw + sem) / 2
            elif kw is not None:
                combined = kw
            elif sem is not None:
                combined = sem
            else:
                combined = 0.0
            pref = preference_score(event, preferences)
            ranked.append(
                RankedEvent(
                    event=event,
                    keyword_score=kw,
                    semantic_score=sem,
                    distance_km=distance,
                    preference_score=pref,
                    total_score=combined + pref,
                )
            )

        ranked.sort(key=_sort_key)
        logger.info(
            "Ranked %d candidates (semantic scores for %d) for query '%s'",
            len(ranked),
            len(semantic),
            query,
        )
        return ranked[: self.result_limit]


__all__ = [
    "RetrievalRanker",
    "query_tokens",
    "keyword_score",
    "preference_score",
    "build_event_context",
]
