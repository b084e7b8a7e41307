"""Definition of the `Event` dataclass and its value types."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import InputError
from ..utils.datetime_utils import parse_timestamp

# Type alias for embedding vectors
Embedding = List[float]


class Category(str, Enum):
    MUSIC = "music"
    SPORTS = "sports"
    WORKSHOP = "workshop"
    EXHIBITION = "exhibition"
    COLLEGE_FEST = "college-fest"
    RELIGIOUS = "religious"
    PROMOTION = "promotion"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "Category":
        """Map free-form category strings onto the closed enumeration."""
        if isinstance(value, Category):
            return value
        if not value:
            return cls.OTHER
        normalised = str(value).strip().lower().replace(" ", "-").replace("_", "-")
        for member in cls:
            if member.value == normalised:
                return member
        return cls.OTHER


class EventStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(slots=True, frozen=True)
class Coordinates:
    """A (longitude, latitude) pair, stored in GeoJSON order."""

    longitude: float
    latitude: float

    def validate(self) -> None:
        """Raise :class:`InputError` unless both values are finite and in range."""
        if not (math.isfinite(self.longitude) and math.isfinite(self.latitude)):
            raise InputError("Latitude and longitude must be finite numbers")
        if not -90.0 <= self.latitude <= 90.0:
            raise InputError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InputError(f"Longitude out of range: {self.longitude}")

    @classmethod
    def from_geojson(cls, value: Any) -> Optional["Coordinates"]:
        """Parse ``{"type": "Point", "coordinates": [lon, lat]}`` or ``[lon, lat]``."""
        if value is None:
            return None
        if isinstance(value, Coordinates):
            return value
        if isinstance(value, dict):
            value = value.get("coordinates")
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            return None
        try:
            return cls(longitude=float(value[0]), latitude=float(value[1]))
        except (TypeError, ValueError):
            return None

    def to_geojson(self) -> Dict[str, Any]:
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}


@dataclass(slots=True)
class AIFlags:
    """Engine-written flags read by admin tooling."""

    duplicate_risk: float = 0.0
    risk_score: float = 0.0
    warnings: List[str] = field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        return {
            "duplicateRisk": self.duplicate_risk,
            "riskScore": self.risk_score,
            "moderationWarnings": list(self.warnings),
        }

    @classmethod
    def from_document(cls, doc: Optional[Dict[str, Any]]) -> "AIFlags":
        doc = doc or {}
        return cls(
            duplicate_risk=float(doc.get("duplicateRisk") or 0.0),
            risk_score=float(doc.get("riskScore") or 0.0),
            warnings=[str(w) for w in doc.get("moderationWarnings") or doc.get("warnings") or []],
        )


@dataclass(slots=True)
class Event:
    """A user-submitted event and the subset of fields the engine reads or writes."""

    id: Optional[str] = None
    title: str = ""
    description: str = ""
    category: Category = Category.OTHER
    location: str = ""
    coordinates: Optional[Coordinates] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: EventStatus = EventStatus.PENDING
    price: Optional[float] = None
    ai_flags: AIFlags = field(default_factory=AIFlags)

    def overview_text(self) -> str:
        """Return the concatenation of title and description."""
        return f"{self.title} {self.description}"

    def embedding_text(self) -> str:
        """Return the multi-field text used to embed this event."""
        start = self.start_time.isoformat() if self.start_time else ""
        return (
            f"Title: {self.title}\n"
            f"Description: {self.description}\n"
            f"Category: {self.category.value}\n"
            f"Location: {self.location}\n"
            f"Date: {start}"
        )

    # ------------------------------------------------------------------
    # Document conversion
    # ------------------------------------------------------------------
    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Event":
        """Build an :class:`Event` from a stored document.

        Unparseable timestamps are dropped to ``None`` rather than raised so a
        single corrupt record cannot break a scan over the collection.
        """
        def _ts(key: str) -> Optional[datetime]:
            try:
                return parse_timestamp(doc.get(key))
            except InputError:
                return None

        raw_id = doc.get("_id", doc.get("id"))
        price = doc.get("price")
        try:
            price = float(price) if price is not None else None
        except (TypeError, ValueError):
            price = None
        try:
            status = EventStatus(doc.get("status") or EventStatus.PENDING.value)
        except ValueError:
            status = EventStatus.PENDING
        return cls(
            id=str(raw_id) if raw_id is not None else None,
            title=doc.get("title") or "",
            description=doc.get("description") or "",
            category=Category.parse(doc.get("category")),
            location=doc.get("location") or "",
            coordinates=Coordinates.from_geojson(doc.get("locationCoords", doc.get("coordinates"))),
            start_time=_ts("date") or _ts("startTime"),
            end_time=_ts("endDate") or _ts("endTime"),
            status=status,
            price=price,
            ai_flags=AIFlags.from_document(doc.get("aiFlags")),
        )

    def to_document(self) -> Dict[str, Any]:
        """Render the engine-owned fields in the stored document shape."""
        doc: Dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "location": self.location,
            "date": self.start_time,
            "endDate": self.end_time,
            "status": self.status.value,
            "aiFlags": self.ai_flags.to_document(),
        }
        if self.coordinates is not None:
            doc["locationCoords"] = self.coordinates.to_geojson()
        if self.price is not None:
            doc["price"] = self.price
        return doc


def validate_event(event: Event) -> List[str]:
    """Return the input problems of *event* (empty when the event is well-formed).

    Nothing is raised: each problem only disables the computation step that
    needs the broken field.
    """
    problems: List[str] = []
    if not event.title.strip():
        problems.append("Title is required")
    if not event.description.strip():
        problems.append("Description is required")
    if event.coordinates is None:
        problems.append("Coordinates are missing")
    else:
        try:
            event.coordinates.validate()
        except InputError as exc:
            problems.append(str(exc))
    if event.start_time is None:
        problems.append("Start time is missing")
    elif event.end_time is not None:
        try:
            if event.end_time <= event.start_time:
                problems.append("End time must be after start time")
        except TypeError:
            problems.append("Start and end times are not comparable")
    return problems


__all__ = [
    "Embedding",
    "Category",
    "EventStatus",
    "Coordinates",
    "AIFlags",
    "Event",
    "validate_event",
]
