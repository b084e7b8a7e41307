"""Domain models used across the project."""

from .event import (  # noqa: F401
    AIFlags,
    Category,
    Coordinates,
    Embedding,
    Event,
    EventStatus,
    validate_event,
)
from .results import (  # noqa: F401
    ModerationReport,
    ModerationResult,
    ModerationWarning,
    RankedEvent,
    SearchFilters,
    Severity,
    SimilarityResult,
    SubmissionEvaluation,
    UserPreferences,
)

__all__ = [
    "AIFlags",
    "Category",
    "Coordinates",
    "Embedding",
    "Event",
    "EventStatus",
    "validate_event",
    "ModerationReport",
    "ModerationResult",
    "ModerationWarning",
    "RankedEvent",
    "SearchFilters",
    "Severity",
    "SimilarityResult",
    "SubmissionEvaluation",
    "UserPreferences",
]
