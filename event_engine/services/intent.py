"""Rule-based intent classification for assistant messages.

Substring patterns score each intent; the best score wins and ``GENERAL``
is the answer when nothing matches. Filter phrases ("music", "tomorrow",
"free", ...) are turned into :class:`SearchFilters` for the ranker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..models import Category, SearchFilters
from ..utils.datetime_utils import get_current_timestamp

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    SEARCH = "search"
    CREATE = "create"
    RECOMMEND = "recommend"
    MODERATE = "moderate"
    ANALYZE = "analyze"
    WHEN = "when"
    WHERE = "where"
    PRICE = "price"
    ATTEND = "attend"
    GREETING = "greeting"
    GENERAL = "general"


# ---------------------------------------------------------------------------
# Pattern tables
# ---------------------------------------------------------------------------
INTENT_PATTERNS: Dict[Intent, Tuple[str, ...]] = {
    Intent.SEARCH: ("find", "search", "looking for", "show me", "list", "what events", "any events"),
    Intent.CREATE: ("create", "make", "organize", "plan", "host", "generate description", "help me write"),
    Intent.RECOMMEND: ("recommend", "suggest", "what should", "best events", "popular", "for me"),
    Intent.MODERATE: ("flagged", "review", "moderation", "risky", "spam", "inappropriate"),
    Intent.ANALYZE: ("analytics", "insights", "performance", "statistics", "how many", "trends"),
    Intent.WHEN: ("when", "what time", "schedule", "date"),
    Intent.WHERE: ("where", "location", "venue", "place"),
    Intent.PRICE: ("price", "cost", "ticket", "fee", "how much", "free"),
    Intent.ATTEND: ("attend", "join", "register", "sign up", "rsvp"),
    Intent.GREETING: ("hello", "hi", "hey", "good morning", "good afternoon", "help"),
}

# message words that map onto a stored category
CATEGORY_PHRASES: Dict[str, Category] = {
    "music": Category.MUSIC,
    "concert": Category.MUSIC,
    "sports": Category.SPORTS,
    "workshop": Category.WORKSHOP,
    "art": Category.EXHIBITION,
    "exhibition": Category.EXHIBITION,
    "college": Category.COLLEGE_FEST,
    "fest": Category.COLLEGE_FEST,
    "religious": Category.RELIGIOUS,
}

TIMEFRAMES: Tuple[str, ...] = ("today", "tomorrow", "weekend", "next week", "this month")

EXACT_MATCH_BOOST: float = 0.3
SHORT_MESSAGE_LENGTH: int = 10
SHORT_MESSAGE_PENALTY: float = 0.8


@dataclass(slots=True)
class IntentAnalysis:
    intent: Intent
    confidence: float
    filters: SearchFilters = field(default_factory=SearchFilters)
    timeframe: Optional[str] = None


def _score_intents(message: str) -> Dict[Intent, int]:
    return {
        intent: sum(1 for pattern in patterns if pattern in message)
        for intent, patterns in INTENT_PATTERNS.items()
    }


def intent_confidence(message: str, intent: Intent) -> float:
    patterns = INTENT_PATTERNS.get(intent, ())
    matches = sum(1 for pattern in patterns if pattern in message)
    confidence = matches / (len(patterns) or 1)
    if matches:
        confidence = min(confidence + EXACT_MATCH_BOOST, 1.0)
    if len(message) < SHORT_MESSAGE_LENGTH:
        confidence *= SHORT_MESSAGE_PENALTY
    return round(confidence, 2)


def timeframe_range(
    timeframe: str, now: Optional[datetime] = None
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Return the inclusive ``(start, end)`` UTC range named by *timeframe*."""
    now = now or get_current_timestamp()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    last_tick = timedelta(microseconds=1)

    if timeframe == "today":
        return today, today + timedelta(days=1) - last_tick
    if timeframe == "tomorrow":
        start = today + timedelta(days=1)
        return start, start + timedelta(days=1) - last_tick
    if timeframe == "weekend":
        # upcoming Saturday, or today when it is Saturday
        start = today + timedelta(days=(5 - today.weekday()) % 7)
        return start, start + timedelta(days=2) - last_tick
    if timeframe == "next week":
        start = today + timedelta(days=7)
        return start, start + timedelta(days=7) - last_tick
    if timeframe == "this month":
        first_next = (today.replace(day=1) + timedelta(days=32)).replace(day=1)
        return today, first_next - last_tick
    return None, None


def extract_filters(message: str, now: Optional[datetime] = None) -> Tuple[SearchFilters, Optional[str]]:
    """Turn filter phrases in a lower-cased *message* into :class:`SearchFilters`."""
    filters = SearchFilters()
    categories: List[Category] = []
    for phrase, category in CATEGORY_PHRASES.items():
        if phrase in message and category not in categories:
            categories.append(category)
    filters.categories = categories

    timeframe = next((t for t in TIMEFRAMES if t in message), None)
    if timeframe is not None:
        filters.date_from, filters.date_to = timeframe_range(timeframe, now)

    if "free" in message:
        filters.price_max = 0.0
    return filters, timeframe


def classify_intent(message: str, now: Optional[datetime] = None) -> IntentAnalysis:
    lowered = (message or "").lower()
    scores = _score_intents(lowered)
    best = max(scores.values(), default=0)
    # ties go to the first intent in table order
    intent = next((i for i, s in scores.items() if s == best), Intent.GENERAL) if best else Intent.GENERAL
    filters, timeframe = extract_filters(lowered, now)
    analysis = IntentAnalysis(
        intent=intent,
        confidence=intent_confidence(lowered, intent),
        filters=filters,
        timeframe=timeframe,
    )
    logger.debug("Classified '%s' as %s (confidence %.2f)", message, intent.value, analysis.confidence)
    return analysis


__all__ = [
    "Intent",
    "IntentAnalysis",
    "INTENT_PATTERNS",
    "classify_intent",
    "extract_filters",
    "intent_confidence",
    "timeframe_range",
]
