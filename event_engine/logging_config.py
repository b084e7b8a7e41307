"""Logging setup for the engine's entry points.

Importing this module configures the root logger once, at the level named by
``LOG_LEVEL``. Library modules never configure logging themselves; they only
call `logging.getLogger(__name__)`.
"""

import logging

from .config import LOG_LEVEL

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# SDK request logs drown out provider fallback warnings
for _name in ("httpx", "openai", "pymongo", "urllib3"):
    logging.getLogger(_name).setLevel(logging.WARNING)

__all__ = ["logging"]
