"""Entry point for `python -m event_engine`: rebuild the vector index."""

import sys

from .logging_config import logging as _  # noqa: F401  # ensure config applied early
from .workflows.reindex import run


def main() -> None:
    stats = run()
    if stats["failed"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
