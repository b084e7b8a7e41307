"""Keeps the vector index in step with event lifecycle changes.

Only approved events are searchable, so only approved events are indexed.
Every operation is an upsert or a delete keyed by event id, which makes
replays harmless. Background work for the same event id runs strictly in
submission order; different ids proceed in parallel.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator

from ..config import INDEX_MAX_RETRIES, INDEX_MAX_WORKERS, INDEX_RETRY_DELAY_SECONDS
from ..errors import EngineError, InputError, ProviderError
from ..models import Event, EventStatus
from .embeddings import BaseEmbeddingProvider
from .vector_index import VectorIndex

logger = logging.getLogger(__name__)


class LifecycleAction(str, Enum):
    CREATED = "created"
    APPROVED = "approved"
    UPDATED = "updated"
    DELETED = "deleted"


class IndexState(str, Enum):
    UNINDEXED = "unindexed"
    INDEXED = "indexed"


def _completed(value: bool) -> "Future[bool]":
    future: "Future[bool]" = Future()
    future.set_result(value)
    return future


@dataclass(slots=True)
class _IdLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class IndexMaintainer:
    def __init__(
        self,
        embedder: BaseEmbeddingProvider,
        index: VectorIndex,
        *,
        max_workers: int = INDEX_MAX_WORKERS,
        max_retries: int = INDEX_MAX_RETRIES,
        retry_delay: float = INDEX_RETRY_DELAY_SECONDS,
    ) -> None:
        self.embedder = embedder
        self.index = index
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="indexer")
        self._guard = threading.Lock()
        # entries live only while an operation on the id is in flight
        self._locks: Dict[str, _IdLock] = {}
        self._tails: Dict[str, Future] = {}
        self._states: Dict[str, IndexState] = {}

    # ------------------------------------------------------------------
    # Synchronous operations
    # ------------------------------------------------------------------
    @contextmanager
    def _locked(self, event_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(event_id, _IdLock())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[event_id]

    def state_of(self, event_id: str) -> IndexState:
        with self._guard:
            return self._states.get(event_id, IndexState.UNINDEXED)

    def _set_state(self, event_id: str, state: IndexState) -> None:
        with self._guard:
            self._states[event_id] = state

    def _with_retries(self, operation: Callable[[], Any], description: str) -> Any:
        """Run *operation*, retrying :class:`ProviderError` with exponential back-off."""
        for attempt in range(1, self.max_retries + 1):
            try:
                return operation()
            except ProviderError as exc:
                if attempt == self.max_retries:
                    logger.error("%s failed after %d attempts: %s", description, attempt, exc)
                    raise
                delay = self.retry_delay * (2 ** (attempt - 1))
                logger.warning(
                    "%s failed (attempt %d/%d): %s – retrying in %.2fs",
                    description,
                    attempt,
                    self.max_retries,
                    exc,
                    delay,
                )
                time.sleep(delay)
        return None

    def _metadata(self, event: Event, source: str) -> Dict[str, Any]:
        return {
            "title": event.title,
            "category": event.category.value,
            "location": event.location,
            "date": event.start_time,
            "status": event.status.value,
            "embedding_source": source,
        }

    def add_to_index(self, event: Event) -> None:
        """Embed *event* and upsert it; calling twice leaves one entry."""
        if event.id is None:
            raise InputError("Cannot index an event without an id")
        with self._locked(event.id):
            vector, source = self._with_retries(
                lambda: self.embedder.embed_with_source(event.embedding_text()),
                f"Embedding event {event.id}",
            )
            self._with_retries(
                lambda: self.index.upsert(event.id, vector, self._metadata(event, source)),
                f"Upserting event {event.id}",
            )
            self._set_state(event.id, IndexState.INDEXED)
        logger.info("Indexed event %s (%s) using %s embedding", event.id, event.title, source)

    def update_in_index(self, event: Event) -> None:
        # upsert overwrites, so an update is a re-add
        self.add_to_index(event)

    def remove_from_index(self, event_id: str) -> None:
        with self._locked(event_id):
            self._with_retries(lambda: self.index.delete(event_id), f"Deleting event {event_id}")
            with self._guard:
                # unindexed is the default, so deleted ids leave no entry behind
                self._states.pop(event_id, None)
        logger.info("Removed event %s from index", event_id)

    # ------------------------------------------------------------------
    # Lifecycle hook
    # ------------------------------------------------------------------
    def apply(self, event: Event, action: LifecycleAction) -> None:
        """Apply *action* synchronously."""
        if action in (LifecycleAction.CREATED, LifecycleAction.UPDATED):
            if event.status == EventStatus.APPROVED:
                self.add_to_index(event)
            elif action == LifecycleAction.UPDATED:
                self.remove_from_index(event.id)
            else:
                logger.debug("Event %s created as %s – not indexed", event.id, event.status.value)
        elif action == LifecycleAction.APPROVED:
            self.add_to_index(event)
        elif action == LifecycleAction.DELETED:
            self.remove_from_index(event.id)

    def _run(self, event: Event, action: LifecycleAction) -> bool:
        try:
            self.apply(event, action)
            return True
        except EngineError as exc:
            logger.error("Index maintenance '%s' for event %s failed: %s", action.value, event.id, exc)
            return False

    def _start(self, result: "Future[bool]", event: Event, action: LifecycleAction) -> None:
        """Hand the work behind *result* to the pool and settle *result* with its outcome."""
        try:
            work = self._executor.submit(self._run, event, action)
        except RuntimeError as exc:
            logger.error("Index maintenance '%s' for event %s not scheduled: %s", action.value, event.id, exc)
            result.set_result(False)
            return

        def _settle(done: Future) -> None:
            exc = done.exception()
            if exc is not None:
                logger.error("Index maintenance '%s' for event %s crashed: %r", action.value, event.id, exc)
            result.set_result(exc is None and done.result())

        work.add_done_callback(_settle)

    def handle_lifecycle(self, event: Event, action: Any) -> "Future[bool]":
        """Schedule index maintenance for *event* and return immediately.

        The returned future resolves to ``True`` on success and ``False`` when
        the work failed (already logged); it never raises. Work for an id that
        is still busy waits in a done-callback, not on a pool thread.
        """
        try:
            action = LifecycleAction(action)
        except ValueError:
            logger.warning("Ignoring unknown lifecycle action %r", action)
            return _completed(False)
        if event.id is None:
            logger.warning("Ignoring '%s' for an event without an id", action.value)
            return _completed(False)

        event_id = event.id
        result: "Future[bool]" = Future()
        with self._guard:
            previous = self._tails.get(event_id)
            self._tails[event_id] = result

        def _forget(done: Future) -> None:
            with self._guard:
                if self._tails.get(event_id) is done:
                    del self._tails[event_id]

        result.add_done_callback(_forget)
        if previous is None:
            self._start(result, event, action)
        else:
            previous.add_done_callback(lambda _: self._start(result, event, action))
        return result

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


__all__ = ["LifecycleAction", "IndexState", "IndexMaintainer"]
