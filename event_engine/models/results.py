"""Transient result and request types produced or consumed by the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .event import AIFlags, Category, Event, EventStatus


@dataclass(slots=True)
class SimilarityResult:
    """How closely an existing event matches a newly submitted one."""

    candidate_id: Optional[str]
    title: str
    title_similarity: float
    description_similarity: float
    geo_distance_km: Optional[float]
    time_delta_ms: Optional[float]
    combined_score: float


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(slots=True)
class ModerationWarning:
    category: str
    severity: Severity
    message: str
    matches: int = 0


@dataclass(slots=True)
class ModerationResult:
    risk_score: float
    warnings: List[ModerationWarning] = field(default_factory=list)
    is_flagged: bool = False
    flagged_categories: List[str] = field(default_factory=list)
    source: str = "rules"

    def warning_messages(self) -> List[str]:
        return [w.message for w in self.warnings]


@dataclass(slots=True)
class ModerationReport:
    """A moderation result plus simple quality statistics of the text."""

    result: ModerationResult
    title_analysis: Dict[str, Any]
    description_analysis: Dict[str, Any]


@dataclass(slots=True)
class SearchFilters:
    """Hard filters applied before any scoring."""

    categories: List[Category] = field(default_factory=list)
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None


@dataclass(slots=True)
class UserPreferences:
    categories: List[Category] = field(default_factory=list)
    locations: List[str] = field(default_factory=list)
    # accepted values: "morning", "evening"
    time_preferences: List[str] = field(default_factory=list)


@dataclass(slots=True)
class RankedEvent:
    event: Event
    keyword_score: Optional[float] = None
    semantic_score: Optional[float] = None
    distance_km: Optional[float] = None
    preference_score: float = 0.0
    total_score: float = 0.0


@dataclass(slots=True)
class SubmissionEvaluation:
    duplicates: List[SimilarityResult]
    moderation: ModerationResult
    recommended_status: EventStatus
    ai_flags: AIFlags


__all__ = [
    "SimilarityResult",
    "Severity",
    "ModerationWarning",
    "ModerationResult",
    "ModerationReport",
    "SearchFilters",
    "UserPreferences",
    "RankedEvent",
    "SubmissionEvaluation",
]
