"""Duplicate detection combining text, geo and temporal proximity."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from ..config import DUPLICATE_THRESHOLD
from ..errors import InputError
from ..models import Event, SimilarityResult
from ..utils.datetime_utils import delta_ms
from ..utils.geo import distance_between
from ..utils.text_similarity import similarity

# ---------------------------------------------------------------------------
# Local deduplication weights
# ---------------------------------------------------------------------------
TITLE_WEIGHT: float = 0.4
DESCRIPTION_WEIGHT: float = 0.4
GEO_WEIGHT: float = 0.1
TIME_WEIGHT: float = 0.1
GEO_SCALE_KM: float = 10.0
TIME_WINDOW: timedelta = timedelta(hours=2)

logger = logging.getLogger(__name__)


class DuplicateDetector:
    """Scores a new event against existing candidates.

    A candidate whose coordinates or dates are unusable still gets a score;
    it just contributes nothing to the geo/time terms.
    """

    def __init__(
        self,
        threshold: float = DUPLICATE_THRESHOLD,
        time_window: timedelta = TIME_WINDOW,
        geo_scale_km: float = GEO_SCALE_KM,
    ) -> None:
        self.threshold = threshold
        self.time_window_ms = time_window.total_seconds() * 1000.0
        self.geo_scale_km = geo_scale_km

    def _distance(self, new_event: Event, candidate: Event) -> Optional[float]:
        try:
            return distance_between(new_event.coordinates, candidate.coordinates)
        except InputError as exc:
            logger.debug("Skipping geo term for candidate %s: %s", candidate.id, exc)
            return None

    def _time_delta(self, new_event: Event, candidate: Event) -> Optional[float]:
        if new_event.start_time is None or candidate.start_time is None:
            return None
        try:
            return delta_ms(new_event.start_time, candidate.start_time)
        except InputError as exc:
            logger.debug("Skipping time term for candidate %s: %s", candidate.id, exc)
            return None

    def score(self, new_event: Event, candidate: Event) -> SimilarityResult:
        title_sim = similarity(new_event.title, candidate.title)
        description_sim = similarity(new_event.description, candidate.description)
        distance = self._distance(new_event, candidate)
        time_delta = self._time_delta(new_event, candidate)

        geo_term = max(0.0, 1.0 - distance / self.geo_scale_km) if distance is not None else 0.0
        time_term = 1.0 if time_delta is not None and time_delta <= self.time_window_ms else 0.0
        combined = (
            TITLE_WEIGHT * title_sim
            + DESCRIPTION_WEIGHT * description_sim
            + GEO_WEIGHT * geo_term
            + TIME_WEIGHT * time_term
        )
        return SimilarityResult(
            candidate_id=candidate.id,
            title=candidate.title,
            title_similarity=title_sim,
            description_similarity=description_sim,
            geo_distance_km=distance,
            time_delta_ms=time_delta,
            combined_score=max(0.0, min(1.0, combined)),
        )

    def detect(self, new_event: Event, candidates: Iterable[Event]) -> List[SimilarityResult]:
        """Return duplicate candidates sorted by ``combined_score`` (highest first)."""
        logger.info("Checking for duplicates for event: %s", new_event.title)
        duplicates: List[SimilarityResult] = []
        for candidate in candidates:
            if new_event.id is not None and candidate.id == new_event.id:
                continue
            result = self.score(new_event, candidate)
            if result.combined_score > self.threshold:
                logger.info(
                    "Found duplicate candidate '%s' – similarity %.2f",
                    candidate.title,
                    result.combined_score,
                )
                duplicates.append(result)

        duplicates.sort(key=lambda r: r.combined_score, reverse=True)
        if not duplicates:
            logger.info("No duplicates found for: %s", new_event.title)
        return duplicates


def top_score(results: List[SimilarityResult]) -> float:
    return max((r.combined_score for r in results), default=0.0)


__all__ = ["DuplicateDetector", "top_score"]
