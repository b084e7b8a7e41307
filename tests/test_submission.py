import unittest
from unittest.mock import MagicMock
import os
import sys
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_engine.config import CANDIDATE_LIMIT
from event_engine.models import Category, EventStatus, ModerationResult, SimilarityResult
from event_engine.services.deduplication import DuplicateDetector
from event_engine.services.moderation import ModerationScorer
from event_engine.workflows.submission import decide_status, evaluate_submission
from event_factories import ListEventStore, make_event


def _duplicate(score):
    return SimilarityResult(
        candidate_id="x",
        title="x",
        title_similarity=score,
        description_similarity=score,
        geo_distance_km=None,
        time_delta_ms=None,
        combined_score=score,
    )


def _moderation(risk, flagged):
    return ModerationResult(risk_score=risk, warnings=[], is_flagged=flagged, flagged_categories=[], source="rules")


class TestDecideStatus(unittest.TestCase):

    def test_clean_event_is_approved(self):
        self.assertEqual(decide_status([], _moderation(0.0, False)), EventStatus.APPROVED)

    def test_clean_event_waits_without_auto_approve(self):
        self.assertEqual(decide_status([], _moderation(0.0, False), auto_approve=False), EventStatus.PENDING)

    def test_near_duplicate_is_reviewed(self):
        self.assertEqual(decide_status([_duplicate(0.8)], _moderation(0.0, False)), EventStatus.PENDING)

    def test_strong_duplicate_is_rejected(self):
        self.assertEqual(decide_status([_duplicate(0.95)], _moderation(0.0, False)), EventStatus.REJECTED)

    def test_moderation_thresholds(self):
        self.assertEqual(decide_status([], _moderation(0.6, True)), EventStatus.PENDING)
        self.assertEqual(decide_status([], _moderation(0.9, True)), EventStatus.REJECTED)


class TestEvaluateSubmission(unittest.TestCase):

    def setUp(self):
        self.store = MagicMock()
        self.store.find.return_value = [make_event(event_id="a", title="Jazz Night")]
        self.detector = DuplicateDetector()
        self.moderator = ModerationScorer()

    def _evaluate(self, event, **kwargs):
        return evaluate_submission(event, self.store, self.detector, self.moderator, **kwargs)

    def test_near_duplicate_goes_to_review(self):
        submitted = make_event(event_id=None, title="Jazz Nite", status=EventStatus.PENDING)
        evaluation = self._evaluate(submitted)
        self.assertEqual(evaluation.recommended_status, EventStatus.PENDING)
        self.assertGreater(evaluation.ai_flags.duplicate_risk, 0.7)
        self.assertIs(submitted.ai_flags, evaluation.ai_flags)
        # the recommendation is not written onto the event
        self.assertEqual(submitted.status, EventStatus.PENDING)

    def test_exact_copy_is_rejected(self):
        evaluation = self._evaluate(make_event(event_id="b", status=EventStatus.PENDING))
        self.assertEqual(evaluation.recommended_status, EventStatus.REJECTED)
        self.assertAlmostEqual(evaluation.ai_flags.duplicate_risk, 1.0)

    def test_unique_clean_event(self):
        chess = make_event(
            event_id=None,
            title="Chess Club Meetup",
            description="Weekly games for beginners and experienced players.",
            lon=50.0,
            lat=20.0,
            start=datetime(2024, 9, 3, 18, 0, tzinfo=timezone.utc),
            status=EventStatus.PENDING,
        )
        self.assertEqual(self._evaluate(chess).recommended_status, EventStatus.APPROVED)
        self.assertEqual(self._evaluate(chess, auto_approve=False).recommended_status, EventStatus.PENDING)
        self.assertEqual(chess.ai_flags.duplicate_risk, 0.0)

    def test_spam_is_rejected(self):
        spam = make_event(
            event_id=None,
            title="Get rich tonight",
            description="Click here and buy now, limited time, no risk guarantee.",
            lon=50.0,
            lat=20.0,
            status=EventStatus.PENDING,
        )
        evaluation = self._evaluate(spam)
        self.assertEqual(evaluation.recommended_status, EventStatus.REJECTED)
        self.assertEqual(evaluation.moderation.risk_score, 1.0)
        self.assertTrue(any(w.startswith("Spam content detected") for w in spam.ai_flags.warnings))

    def test_uncategorised_event_is_classified(self):
        event = make_event(
            event_id=None,
            title="Jazz Concert",
            description="Live band performance",
            category=Category.OTHER,
            lon=50.0,
            lat=20.0,
        )
        self._evaluate(event)
        self.assertEqual(event.category, Category.MUSIC)

    def test_validation_problems_become_warnings(self):
        event = make_event(event_id=None, title="Chess", description="Board games", lon=None)
        self._evaluate(event)
        self.assertIn("Coordinates are missing", event.ai_flags.warnings)

    def test_every_stored_event_is_a_candidate(self):
        older = [
            make_event(
                event_id=f"pottery-{i}",
                title="Pottery Class",
                description="Hands-on ceramics for beginners.",
                lon=40.0,
                lat=10.0,
                start=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(hours=i),
            )
            for i in range(CANDIDATE_LIMIT + 50)
        ]
        store = ListEventStore(older + [make_event(event_id="jazz")])
        resubmitted = make_event(event_id=None, status=EventStatus.PENDING)

        evaluation = evaluate_submission(resubmitted, store, self.detector, self.moderator)

        self.assertEqual(evaluation.duplicates[0].candidate_id, "jazz")
        self.assertEqual(evaluation.recommended_status, EventStatus.REJECTED)
        self.assertEqual(store.queries[0][1], 0)

    def test_store_failure_propagates(self):
        self.store.find.side_effect = RuntimeError("connection lost")
        with self.assertRaises(RuntimeError):
            self._evaluate(make_event(event_id=None))


if __name__ == '__main__':
    unittest.main()
