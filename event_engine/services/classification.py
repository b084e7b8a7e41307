"""Keyword-based event categorisation used when a submission has no category."""

from __future__ import annotations

import re
from typing import Dict, List, Pattern, Tuple

from ..models import Category

# ---------------------------------------------------------------------------
# Keyword tables
# ---------------------------------------------------------------------------
CATEGORY_KEYWORDS: Dict[Category, Tuple[str, ...]] = {
    Category.MUSIC: (
        "music", "concert", "band", "dj", "festival", "gig", "live", "song",
        "album", "performance", "orchestra", "symphony",
    ),
    Category.SPORTS: (
        "sport", "football", "basketball", "soccer", "tennis", "match", "game",
        "tournament", "league", "championship", "race", "marathon",
    ),
    Category.WORKSHOP: (
        "workshop", "training", "course", "tutorial", "seminar", "class",
        "lesson", "bootcamp", "webinar", "certification",
    ),
    Category.EXHIBITION: (
        "exhibition", "art", "gallery", "museum", "show", "display", "painting",
        "sculpture", "photography", "installation",
    ),
    Category.COLLEGE_FEST: (
        "college", "university", "fest", "campus", "student", "graduation",
        "alumni", "orientation",
    ),
    Category.RELIGIOUS: (
        "church", "temple", "mosque", "prayer", "worship", "bible", "quran",
        "god", "faith", "spiritual",
    ),
    Category.PROMOTION: (
        "sale", "discount", "offer", "deal", "promotion", "marketing",
        "advertisement", "launch", "product",
    ),
}

TITLE_BONUS: float = 1.5
MIN_CLASSIFICATION_SCORE: float = 0.5
# number of keyword hits that counts as full confidence
CONFIDENCE_SATURATION: int = 5

_PATTERNS: Dict[Category, List[Pattern[str]]] = {
    category: [re.compile(r"\b" + re.escape(kw) + r"\b", re.IGNORECASE) for kw in keywords]
    for category, keywords in CATEGORY_KEYWORDS.items()
}


def _count(patterns: List[Pattern[str]], text: str) -> int:
    return sum(len(p.findall(text)) for p in patterns)


def category_scores(title: str, description: str) -> Dict[Category, float]:
    """Keyword hits over title + description, with title hits counted again at 1.5x."""
    text = f"{title} {description}"
    return {
        category: _count(patterns, text) + TITLE_BONUS * _count(patterns, title)
        for category, patterns in _PATTERNS.items()
    }


def classify_event(title: str, description: str) -> Category:
    scores = category_scores(title or "", description or "")
    best, best_score = Category.OTHER, 0.0
    # first category wins ties, following table order
    for category, score in scores.items():
        if score > best_score:
            best, best_score = category, score
    return best if best_score >= MIN_CLASSIFICATION_SCORE else Category.OTHER


def classification_confidence(title: str, description: str, category: Category) -> float:
    """How strongly the text supports *category*, in ``[0, 1]``."""
    patterns = _PATTERNS.get(Category.parse(category))
    if not patterns:
        return 0.0
    matches = _count(patterns, f"{title or ''} {description or ''}")
    return min(matches / CONFIDENCE_SATURATION, 1.0)


__all__ = ["CATEGORY_KEYWORDS", "category_scores", "classify_event", "classification_confidence"]
