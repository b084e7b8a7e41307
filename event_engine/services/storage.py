"""Persistence layer: the MongoDB-backed event store.

The engine only reads events and writes back status and AI flags; it never
deletes documents.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from bson import ObjectId
from bson.errors import InvalidId

from ..config import CANDIDATE_LIMIT
from ..errors import InputError
from ..models import Coordinates, Event, EventStatus, SearchFilters

logger = logging.getLogger(__name__)


class EventStore(Protocol):
    def find(self, filter: Dict[str, Any], limit: Optional[int] = None) -> List[Event]: ...

    def find_by_id(self, event_id: str) -> Optional[Event]: ...

    def save(self, event: Event) -> str: ...


def _to_object_id(event_id: str) -> Any:
    try:
        return ObjectId(event_id)
    except (InvalidId, TypeError):
        return event_id


def build_search_query(
    filters: Optional[SearchFilters] = None,
    location: Optional[Coordinates] = None,
    radius_km: Optional[float] = None,
) -> Dict[str, Any]:
    """Translate :class:`SearchFilters` into a MongoDB filter on approved events.

    With *location* and *radius_km* the query also carries a ``$near``
    clause on ``locationCoords`` (needs a ``2dsphere`` index), so the store
    returns the nearby events rather than an arbitrary page of all of them.
    The ranker repeats the radius check in-process.
    """
    query: Dict[str, Any] = {"status": EventStatus.APPROVED.value}
    if location is not None and radius_km is not None:
        try:
            location.validate()
        except InputError as exc:
            logger.warning("Ignoring unusable search location: %s", exc)
        else:
            query["locationCoords"] = {
                "$near": {
                    "$geometry": location.to_geojson(),
                    "$maxDistance": radius_km * 1000.0,
                }
            }
    if filters is None:
        return query
    if filters.categories:
        query["category"] = {"$in": [c.value for c in filters.categories]}
    date_range: Dict[str, Any] = {}
    if filters.date_from is not None:
        date_range["$gte"] = filters.date_from
    if filters.date_to is not None:
        date_range["$lte"] = filters.date_to
    if date_range:
        query["date"] = date_range
    price_range: Dict[str, Any] = {}
    if filters.price_min is not None:
        price_range["$gte"] = filters.price_min
    if filters.price_max is not None:
        price_range["$lte"] = filters.price_max
    if price_range:
        query["price"] = price_range
    return query


def duplicate_candidates_query() -> Dict[str, Any]:
    """Events a new submission is compared against."""
    return {"status": {"$in": [EventStatus.APPROVED.value, EventStatus.PENDING.value]}}


class MongoEventStore:
    """Event store over a :class:`pymongo.collection.Collection`."""

    def __init__(self, collection: Any, default_limit: int = CANDIDATE_LIMIT) -> None:
        self._collection = collection
        self.default_limit = default_limit

    def find(self, filter: Dict[str, Any], limit: Optional[int] = None) -> List[Event]:
        """Events matching *filter*; ``limit=0`` means no limit.

        Results are ordered by date, except for ``$near`` queries, which keep
        MongoDB's nearest-first order so a limit drops the farthest events.
        """
        cursor = self._collection.find(filter)
        if "locationCoords" not in filter:
            cursor = cursor.sort("date", 1)
        limit = self.default_limit if limit is None else limit
        if limit:
            cursor = cursor.limit(limit)
        events = [Event.from_document(doc) for doc in cursor]
        logger.debug("Found %d events for filter %s", len(events), filter)
        return events

    def find_by_id(self, event_id: str) -> Optional[Event]:
        doc = self._collection.find_one({"_id": _to_object_id(event_id)})
        return Event.from_document(doc) if doc else None

    def save(self, event: Event) -> str:
        """Insert *event* or update the engine-owned fields of an existing one."""
        doc = event.to_document()
        if event.id is None:
            result = self._collection.insert_one(doc)
            event.id = str(result.inserted_id)
            logger.info("Stored event to MongoDB with _id=%s", event.id)
        else:
            self._collection.update_one({"_id": _to_object_id(event.id)}, {"$set": doc}, upsert=True)
            logger.info("Updated event %s in MongoDB", event.id)
        return event.id


__all__ = ["EventStore", "MongoEventStore", "build_search_query", "duplicate_candidates_query"]
