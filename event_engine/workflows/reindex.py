"""Rebuild the vector index from every approved event in the store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Optional

from ..errors import EngineError
from ..models import EventStatus

if TYPE_CHECKING:
    from ..engine import EventEngine

logger = logging.getLogger(__name__)


def run(engine: Optional["EventEngine"] = None) -> Dict[str, int]:
    """Execute the reindex once and return its statistics.

    When *engine* is omitted one is built from the environment and closed
    afterwards.
    """
    owns_engine = engine is None
    if engine is None:
        from ..engine import EventEngine

        engine = EventEngine.from_env()
        engine.connect()

    try:
        logger.info("Starting reindex workflow")
        events = engine.store.find({"status": EventStatus.APPROVED.value}, limit=0)
        indexed = 0
        failed = 0
        for event in events:
            try:
                engine.indexer.add_to_index(event)
                indexed += 1
            except EngineError as exc:
                failed += 1
                logger.error("Could not index event %s: %s", event.id, exc)

        stats = {
            "approved_events": len(events),
            "indexed": indexed,
            "failed": failed,
            "hash_fallback_embeddings": engine.embedder.stats()["fallback"],
        }
        _log_stats(stats)
        return stats
    finally:
        if owns_engine:
            engine.close()


def _log_stats(stats: Dict[str, int]) -> None:
    logger.info("=== Reindex Statistics ===")
    logger.info("Approved events found: %d", stats["approved_events"])
    logger.info("Events indexed: %d", stats["indexed"])
    logger.info("Events failed: %d", stats["failed"])
    logger.info("Hash-fallback embeddings: %d", stats["hash_fallback_embeddings"])
    logger.info("==========================")


__all__ = ["run"]
