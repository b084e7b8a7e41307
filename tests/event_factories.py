"""Shared builders for test events and stub providers."""

import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_engine.config import CANDIDATE_LIMIT
from event_engine.errors import ProviderError
from event_engine.models import Category, Coordinates, Event, EventStatus
from event_engine.services.embeddings import BaseEmbeddingProvider
from event_engine.utils.geo import distance_between


def make_event(
    event_id="evt-1",
    title="Jazz Night",
    description="Live jazz music with local bands downtown.",
    category=Category.MUSIC,
    location="Blue Note Club",
    lon=0.0,
    lat=0.0,
    start=datetime(2024, 6, 1, 20, 0, tzinfo=timezone.utc),
    status=EventStatus.APPROVED,
    price=None,
):
    return Event(
        id=event_id,
        title=title,
        description=description,
        category=category,
        location=location,
        coordinates=Coordinates(longitude=lon, latitude=lat) if lon is not None else None,
        start_time=start,
        status=status,
        price=price,
    )


class StubEmbeddingProvider(BaseEmbeddingProvider):
    """Returns preset vectors by text and a constant vector otherwise."""

    name = "stub"

    def __init__(self, dimension=4, vectors=None, fail=False):
        super().__init__(dimension)
        self.vectors = vectors or {}
        self.fail = fail
        self.calls = 0

    def embed(self, text):
        self.calls += 1
        if self.fail:
            raise ProviderError(self.name, "unavailable")
        return self.vectors.get(text, [1.0] + [0.0] * (self.dimension - 1))


class StubTextProvider:
    """Text provider returning a fixed reply or raising ProviderError."""

    name = "stub"

    def __init__(self, reply="", fail=False):
        self.reply = reply
        self.fail = fail
        self.prompts = []

    def generate(self, prompt, *, system_prompt="", max_tokens=800):
        self.prompts.append(prompt)
        if self.fail:
            raise ProviderError(self.name, "unavailable")
        return self.reply


class ListEventStore:
    """Event store over a list that pages like ``MongoEventStore``.

    Understands the status, ``$in`` and ``$near`` clauses the engine builds;
    results are date ordered (nearest first for ``$near``) and cut to
    ``default_limit`` unless ``limit=0``.
    """

    def __init__(self, events, default_limit=CANDIDATE_LIMIT):
        self.events = list(events)
        self.default_limit = default_limit
        self.queries = []

    def _matches(self, event, filter):
        status = filter.get("status")
        if isinstance(status, dict):
            if event.status.value not in status["$in"]:
                return False
        elif status is not None and event.status.value != status:
            return False
        return True

    def find(self, filter, limit=None):
        self.queries.append((filter, limit))
        found = [e for e in self.events if self._matches(e, filter)]
        near = filter.get("locationCoords", {}).get("$near")
        if near is not None:
            lon, lat = near["$geometry"]["coordinates"]
            here = Coordinates(longitude=lon, latitude=lat)
            with_distance = [
                (distance_between(here, e.coordinates) * 1000.0, e) for e in found if e.coordinates
            ]
            found = [e for d, e in sorted(with_distance, key=lambda p: p[0]) if d <= near["$maxDistance"]]
        else:
            found.sort(key=lambda e: e.start_time)
        limit = self.default_limit if limit is None else limit
        return found[:limit] if limit else found

    def find_by_id(self, event_id):
        return next((e for e in self.events if e.id == event_id), None)

    def save(self, event):
        self.events.append(event)
        return event.id
