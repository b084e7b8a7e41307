"""Evaluation of a newly submitted event: duplicates, moderation, decision."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List

from ..config import AUTO_APPROVE_CLEAN_EVENTS, AUTO_REJECT_THRESHOLD, MODERATION_REJECT_THRESHOLD
from ..models import (
    AIFlags,
    Category,
    Event,
    EventStatus,
    ModerationResult,
    SimilarityResult,
    SubmissionEvaluation,
    validate_event,
)
from ..services.classification import classify_event
from ..services.deduplication import DuplicateDetector, top_score
from ..services.moderation import ModerationScorer
from ..services.storage import EventStore, duplicate_candidates_query

logger = logging.getLogger(__name__)


def decide_status(
    duplicates: List[SimilarityResult],
    moderation: ModerationResult,
    *,
    auto_reject_threshold: float = AUTO_REJECT_THRESHOLD,
    moderation_reject_threshold: float = MODERATION_REJECT_THRESHOLD,
    auto_approve: bool = AUTO_APPROVE_CLEAN_EVENTS,
) -> EventStatus:
    if top_score(duplicates) > auto_reject_threshold:
        return EventStatus.REJECTED
    if moderation.is_flagged and moderation.risk_score > moderation_reject_threshold:
        return EventStatus.REJECTED
    if duplicates or moderation.is_flagged:
        return EventStatus.PENDING
    return EventStatus.APPROVED if auto_approve else EventStatus.PENDING


def evaluate_submission(
    event: Event,
    store: EventStore,
    detector: DuplicateDetector,
    moderator: ModerationScorer,
    *,
    auto_reject_threshold: float = AUTO_REJECT_THRESHOLD,
    moderation_reject_threshold: float = MODERATION_REJECT_THRESHOLD,
    auto_approve: bool = AUTO_APPROVE_CLEAN_EVENTS,
) -> SubmissionEvaluation:
    """Score *event*, write its ``ai_flags`` and recommend a status.

    Duplicate detection and moderation run concurrently and are both joined
    before the decision. Event-store failures propagate to the caller.
    """
    logger.info("Evaluating submission: %s", event.title)
    problems = validate_event(event)
    for problem in problems:
        logger.warning("Submission '%s': %s", event.title, problem)

    if event.category == Category.OTHER:
        event.category = classify_event(event.title, event.description)
        logger.info("Classified '%s' as %s", event.title, event.category.value)

    # unlimited: every approved or pending event is compared
    candidates = store.find(duplicate_candidates_query(), limit=0)

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="submission") as executor:
        duplicates_future = executor.submit(detector.detect, event, candidates)
        moderation_future = executor.submit(moderator.score, event.title, event.description)
        duplicates = duplicates_future.result()
        moderation = moderation_future.result()

    status = decide_status(
        duplicates,
        moderation,
        auto_reject_threshold=auto_reject_threshold,
        moderation_reject_threshold=moderation_reject_threshold,
        auto_approve=auto_approve,
    )
    flags = AIFlags(
        duplicate_risk=top_score(duplicates),
        risk_score=moderation.risk_score,
        warnings=moderation.warning_messages() + problems,
    )
    event.ai_flags = flags
    logger.info(
        "Submission '%s' → %s (duplicate risk %.2f, moderation risk %.2f via %s)",
        event.title,
        status.value,
        flags.duplicate_risk,
        flags.risk_score,
        moderation.source,
    )
    return SubmissionEvaluation(
        duplicates=duplicates,
        moderation=moderation,
        recommended_status=status,
        ai_flags=flags,
    )


__all__ = ["decide_status", "evaluate_submission"]
