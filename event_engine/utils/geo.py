"""Great-circle distance helpers."""

from __future__ import annotations

import math
from typing import Final, Optional

from ..errors import InputError

EARTH_RADIUS_KM: Final[float] = 6371.0

__all__ = ["EARTH_RADIUS_KM", "distance_km", "distance_between"]


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometres between two (lat, lon) points.

    Raises
    ------
    InputError
        If any coordinate is not a finite number.
    """
    values = (lat1, lon1, lat2, lon2)
    try:
        if not all(math.isfinite(float(v)) for v in values):
            raise InputError(f"Non-finite coordinate in {values!r}")
    except (TypeError, ValueError) as exc:
        raise InputError(f"Invalid coordinate in {values!r}") from exc

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # rounding can push `a` just outside [0, 1] for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_between(a, b) -> Optional[float]:
    """Distance between two :class:`~event_engine.models.Coordinates`.

    Returns ``None`` when either side is missing; invalid values raise
    :class:`InputError`.
    """
    if a is None or b is None:
        return None
    a.validate()
    b.validate()
    return distance_km(a.latitude, a.longitude, b.latitude, b.longitude)
