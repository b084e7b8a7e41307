"""Utility functions for the event engine.

Re-exports the similarity, geo, parsing and datetime helpers so that imports
like `from ..utils import similarity` work as expected.
"""

from .text_similarity import similarity  # noqa: F401
from .geo import distance_km, distance_between  # noqa: F401
from .llm_parsing import extract_structured_json, strip_think_blocks  # noqa: F401
from .datetime_utils import get_current_timestamp, parse_timestamp  # noqa: F401

__all__ = [
    "similarity",
    "distance_km",
    "distance_between",
    "extract_structured_json",
    "strip_think_blocks",
    "get_current_timestamp",
    "parse_timestamp",
]
