"""Top-level package for the event-engine project.

Exposes the assembled :class:`EventEngine` so callers can do
`from event_engine import EventEngine` or run `python -m event_engine` to
rebuild the vector index.
"""

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version("event-engine")
except _metadata.PackageNotFoundError:  # pragma: no cover – running from source
    __version__ = "0.0.0"

from .engine import EventEngine  # convenience re-export
from .errors import ConfigurationError, EngineError, InputError, ProviderError  # noqa: F401

__all__ = [
    "EventEngine",
    "EngineError",
    "InputError",
    "ProviderError",
    "ConfigurationError",
    "__version__",
]
