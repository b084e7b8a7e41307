"""Policy-risk scoring for event title + description.

Two tiers:

1. An LLM assessment through the configured text provider, accepted only if
   it returns a well-formed JSON object.
2. A deterministic keyword/formatting rule scan, used whenever the provider
   is missing, fails or answers with something unusable.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Pattern, Tuple

from ..config import FLAG_THRESHOLD
from ..errors import ProviderError
from ..models import ModerationReport, ModerationResult, ModerationWarning, Severity
from ..utils.llm_parsing import extract_structured_json
from .generation import TextProvider

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ModerationRule:
    keywords: Tuple[str, ...]
    severity: Severity
    weight: float


MODERATION_RULES: Dict[str, ModerationRule] = {
    "explicit": ModerationRule(
        keywords=(
            "porn", "sex", "xxx", "adult", "nude", "naked", "erotic", "explicit",
            "nsfw", "sexual", "intimate", "sensual",
        ),
        severity=Severity.HIGH,
        weight=1.0,
    ),
    "abuse": ModerationRule(
        keywords=(
            "hate", "racist", "discriminate", "violence", "threat", "harass",
            "abuse", "bully", "attack", "offensive", "insult",
        ),
        severity=Severity.HIGH,
        weight=1.0,
    ),
    "spam": ModerationRule(
        keywords=(
            "click here", "buy now", "limited time", "act fast", "free money",
            "miracle cure", "lose weight", "get rich", "no risk", "guarantee",
            "spam", "scam", "fraud", "rip off",
        ),
        severity=Severity.MEDIUM,
        weight=0.8,
    ),
    "fake": ModerationRule(
        keywords=(
            "fake event", "not real", "scam", "fraud", "rip off", "bogus",
            "phony", "sham", "hoax",
        ),
        severity=Severity.HIGH,
        weight=1.0,
    ),
}

SEVERITY_MULTIPLIER: Dict[Severity, float] = {
    Severity.HIGH: 1.0,
    Severity.MEDIUM: 0.7,
    Severity.LOW: 0.5,
}

CAPS_RATIO_LIMIT: float = 0.5
CAPS_PENALTY: float = 0.3
EXCLAMATION_LIMIT: int = 5
EXCLAMATION_PENALTY: float = 0.2

_COMPILED_RULES: Dict[str, List[Pattern[str]]] = {
    category: [re.compile(r"\b" + re.escape(kw) + r"\b", re.IGNORECASE) for kw in rule.keywords]
    for category, rule in MODERATION_RULES.items()
}

MODERATION_SYSTEM_PROMPT: str = (
    "You are a content-safety reviewer for a public event-discovery platform."
    " Assess the event below for explicit content, abusive content, spam and"
    " fraudulent or fake events. Output EXACTLY one JSON object, no markdown,"
    " no commentary."
)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def caps_ratio(text: str) -> float:
    """Share of upper-case letters among all ASCII letters in *text*."""
    letters = [c for c in text if c.isascii() and c.isalpha()]
    if not letters:
        return 0.0
    return sum(1 for c in letters if c.isupper()) / len(letters)


class ModerationScorer:
    def __init__(
        self,
        provider: Optional[TextProvider] = None,
        flag_threshold: float = FLAG_THRESHOLD,
    ) -> None:
        self.provider = provider
        self.flag_threshold = flag_threshold

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def score(self, title: str, description: str) -> ModerationResult:
        if self.provider:
            try:
                return self.score_with_llm(title, description)
            except (ProviderError, ValueError) as exc:
                logger.warning("LLM moderation unavailable: %s – falling back to rule scan", exc)
        return self.score_with_rules(title, description)

    def report(self, title: str, description: str) -> ModerationReport:
        """Moderation result plus simple statistics about the title and description."""
        return ModerationReport(
            result=self.score(title, description),
            title_analysis={
                "length": len(title),
                "word_count": len(title.split()),
                "has_excessive_caps": caps_ratio(title) > CAPS_RATIO_LIMIT,
                "exclamation_count": title.count("!"),
            },
            description_analysis={
                "length": len(description),
                "word_count": len(description.split()),
                "paragraph_count": len([p for p in description.split("\n\n") if p.strip()]),
            },
        )

    # ------------------------------------------------------------------
    # Tier 1: LLM
    # ------------------------------------------------------------------
    def _build_prompt(self, title: str, description: str) -> str:
        return (
            f"Event title: {title}\n"
            f"Event description: {description}\n\n"
            "Return a JSON object with exactly these keys:\n"
            '  "riskScore": number between 0 and 1,\n'
            '  "warnings": array of {"category", "severity" (high|medium|low), "message"},\n'
            '  "isFlagged": boolean,\n'
            '  "flaggedCategories": array of strings drawn from '
            '["explicit", "abuse", "spam", "fake"].'
        )

    def score_with_llm(self, title: str, description: str) -> ModerationResult:
        """Ask the provider for an assessment.

        Raises
        ------
        ProviderError
            If the provider call fails.
        ValueError
            If the answer is not a well-formed assessment.
        """
        raw = self.provider.generate(
            self._build_prompt(title, description),
            system_prompt=MODERATION_SYSTEM_PROMPT,
            max_tokens=400,
        )
        data = extract_structured_json(raw)
        return self._parse_assessment(data)

    def _parse_assessment(self, data: Dict[str, Any]) -> ModerationResult:
        missing = {"riskScore", "warnings", "isFlagged", "flaggedCategories"} - data.keys()
        if missing:
            raise ValueError(f"Assessment is missing keys: {sorted(missing)}")

        risk = data["riskScore"]
        if isinstance(risk, bool) or not isinstance(risk, (int, float)) or not math.isfinite(risk):
            raise ValueError(f"riskScore is not a finite number: {risk!r}")
        if not isinstance(data["warnings"], list) or not isinstance(data["flaggedCategories"], list):
            raise ValueError("warnings and flaggedCategories must be arrays")

        warnings: List[ModerationWarning] = []
        for item in data["warnings"]:
            if isinstance(item, str):
                warnings.append(ModerationWarning(category="general", severity=Severity.LOW, message=item))
            elif isinstance(item, dict):
                try:
                    severity = Severity(str(item.get("severity", "medium")).lower())
                except ValueError:
                    severity = Severity.MEDIUM
                warnings.append(
                    ModerationWarning(
                        category=str(item.get("category", "general")),
                        severity=severity,
                        message=str(item.get("message", "")),
                    )
                )

        risk_score = round(_clamp(float(risk)), 2)
        if bool(data["isFlagged"]) != (risk_score > self.flag_threshold):
            logger.debug("Provider isFlagged disagrees with riskScore %.2f; using threshold", risk_score)
        return ModerationResult(
            risk_score=risk_score,
            warnings=warnings,
            is_flagged=risk_score > self.flag_threshold,
            flagged_categories=[str(c) for c in data["flaggedCategories"]],
            source="llm",
        )

    # ------------------------------------------------------------------
    # Tier 2: rules
    # ------------------------------------------------------------------
    def score_with_rules(self, title: str, description: str) -> ModerationResult:
        text = f"{title} {description}"
        risk = 0.0
        warnings: List[ModerationWarning] = []
        flagged: List[str] = []

        for category, rule in MODERATION_RULES.items():
            matches = sum(len(p.findall(text)) for p in _COMPILED_RULES[category])
            if not matches:
                continue
            risk += matches * rule.weight * SEVERITY_MULTIPLIER[rule.severity]
            flagged.append(category)
            warnings.append(
                ModerationWarning(
                    category=category,
                    severity=rule.severity,
                    message=f"{category.capitalize()} content detected ({matches} matches)",
                    matches=matches,
                )
            )

        if caps_ratio(text) > CAPS_RATIO_LIMIT:
            risk += CAPS_PENALTY
            warnings.append(
                ModerationWarning(
                    category="formatting",
                    severity=Severity.LOW,
                    message="Excessive capitalization detected",
                )
            )

        exclamations = text.count("!")
        if exclamations > EXCLAMATION_LIMIT:
            risk += EXCLAMATION_PENALTY
            warnings.append(
                ModerationWarning(
                    category="formatting",
                    severity=Severity.LOW,
                    message="Excessive exclamation marks detected",
                    matches=exclamations,
                )
            )

        risk_score = round(_clamp(risk), 2)
        return ModerationResult(
            risk_score=risk_score,
            warnings=warnings,
            is_flagged=risk_score > self.flag_threshold,
            flagged_categories=flagged,
            source="rules",
        )


__all__ = ["ModerationRule", "MODERATION_RULES", "ModerationScorer", "caps_ratio"]
