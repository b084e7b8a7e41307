import threading
import unittest
from unittest.mock import MagicMock
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_engine.errors import ProviderError
from event_engine.models import EventStatus
from event_engine.services.embeddings import FallbackEmbeddingProvider
from event_engine.services.indexing import IndexMaintainer, IndexState, LifecycleAction
from event_engine.services.vector_index import InMemoryVectorIndex
from event_factories import StubEmbeddingProvider, make_event


class GatedIndex(InMemoryVectorIndex):
    """Holds upserts of event "a" until the gate opens."""

    def __init__(self, dimension):
        super().__init__(dimension)
        self.gate = threading.Event()

    def upsert(self, id, vector, metadata):
        if id == "a":
            self.gate.wait(timeout=5)
        super().upsert(id, vector, metadata)


class TestIndexMaintainer(unittest.TestCase):

    def setUp(self):
        self.index = InMemoryVectorIndex(dimension=4)
        self.embedder = FallbackEmbeddingProvider(StubEmbeddingProvider(dimension=4))
        self.maintainer = IndexMaintainer(self.embedder, self.index, retry_delay=0)
        self.event = make_event(event_id="evt-1")

    def tearDown(self):
        self.maintainer.close()

    def test_add_twice_leaves_one_entry(self):
        self.maintainer.add_to_index(self.event)
        self.maintainer.add_to_index(self.event)
        self.assertEqual(self.index.count(), 1)
        self.assertEqual(self.maintainer.state_of("evt-1"), IndexState.INDEXED)

    def test_metadata_records_embedding_source(self):
        self.maintainer.add_to_index(self.event)
        match = self.index.query([1.0, 0.0, 0.0, 0.0], 1)[0]
        self.assertEqual(match.metadata["embedding_source"], "stub")
        self.assertEqual(match.metadata["title"], "Jazz Night")

    def test_hash_fallback_is_marked(self):
        embedder = FallbackEmbeddingProvider(StubEmbeddingProvider(dimension=4, fail=True))
        maintainer = IndexMaintainer(embedder, self.index, retry_delay=0)
        try:
            maintainer.add_to_index(self.event)
        finally:
            maintainer.close()
        vector = embedder.fallback.embed(self.event.embedding_text())
        match = self.index.query(vector, 1)[0]
        self.assertEqual(match.metadata["embedding_source"], "hash-fallback")

    def test_remove(self):
        self.maintainer.add_to_index(self.event)
        self.maintainer.remove_from_index("evt-1")
        self.maintainer.remove_from_index("evt-1")
        self.assertEqual(self.index.count(), 0)
        self.assertEqual(self.maintainer.state_of("evt-1"), IndexState.UNINDEXED)

    def test_lifecycle_created_pending_is_not_indexed(self):
        pending = make_event(event_id="p", status=EventStatus.PENDING)
        self.assertTrue(self.maintainer.handle_lifecycle(pending, "created").result(timeout=5))
        self.assertEqual(self.index.count(), 0)

    def test_lifecycle_approved_indexes(self):
        future = self.maintainer.handle_lifecycle(self.event, LifecycleAction.APPROVED)
        self.assertTrue(future.result(timeout=5))
        self.assertIn("evt-1", self.index)

    def test_lifecycle_update_to_rejected_removes(self):
        self.maintainer.add_to_index(self.event)
        rejected = make_event(event_id="evt-1", status=EventStatus.REJECTED)
        self.maintainer.handle_lifecycle(rejected, "updated").result(timeout=5)
        self.assertNotIn("evt-1", self.index)

    def test_operations_on_one_id_run_in_order(self):
        futures = [
            self.maintainer.handle_lifecycle(self.event, "approved"),
            self.maintainer.handle_lifecycle(self.event, "updated"),
            self.maintainer.handle_lifecycle(self.event, "deleted"),
        ]
        for future in futures:
            self.assertTrue(future.result(timeout=5))
        self.assertEqual(self.index.count(), 0)

    def test_busy_id_does_not_hold_other_workers(self):
        index = GatedIndex(4)
        maintainer = IndexMaintainer(self.embedder, index, max_workers=2, retry_delay=0)
        try:
            burst = [maintainer.handle_lifecycle(make_event(event_id="a"), "approved") for _ in range(4)]
            other = maintainer.handle_lifecycle(make_event(event_id="b"), "approved")
            self.assertTrue(other.result(timeout=2))
            self.assertFalse(burst[-1].done())
            index.gate.set()
            self.assertTrue(all(f.result(timeout=5) for f in burst))
        finally:
            index.gate.set()
            maintainer.close()

    def test_per_id_bookkeeping_is_released(self):
        for action in ("approved", "updated", "deleted"):
            self.assertTrue(self.maintainer.handle_lifecycle(self.event, action).result(timeout=5))
        self.maintainer.add_to_index(make_event(event_id="evt-2"))
        self.assertEqual(self.maintainer._locks, {})
        self.assertNotIn("evt-1", self.maintainer._states)
        self.assertEqual(self.maintainer.state_of("evt-2"), IndexState.INDEXED)

    def test_unknown_action_and_missing_id_are_ignored(self):
        self.assertFalse(self.maintainer.handle_lifecycle(self.event, "archived").result(timeout=5))
        self.assertFalse(self.maintainer.handle_lifecycle(make_event(event_id=None), "approved").result(timeout=5))

    def test_transient_failure_is_retried(self):
        index = MagicMock(dimension=4)
        index.upsert.side_effect = [ProviderError("pinecone", "timeout"), None]
        maintainer = IndexMaintainer(self.embedder, index, retry_delay=0)
        try:
            self.assertTrue(maintainer.handle_lifecycle(self.event, "approved").result(timeout=5))
        finally:
            maintainer.close()
        self.assertEqual(index.upsert.call_count, 2)

    def test_exhausted_retries_resolve_false_without_raising(self):
        index = MagicMock(dimension=4)
        index.upsert.side_effect = ProviderError("pinecone", "down")
        maintainer = IndexMaintainer(self.embedder, index, max_retries=2, retry_delay=0)
        try:
            with self.assertLogs("event_engine.services.indexing", level="ERROR"):
                self.assertFalse(maintainer.handle_lifecycle(self.event, "approved").result(timeout=5))
        finally:
            maintainer.close()
        self.assertEqual(index.upsert.call_count, 2)
        self.assertEqual(maintainer.state_of("evt-1"), IndexState.UNINDEXED)


if __name__ == '__main__':
    unittest.main()
