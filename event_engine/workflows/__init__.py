"""End-to-end workflows built on the service layer."""

from .submission import decide_status, evaluate_submission  # noqa: F401

__all__ = ["decide_status", "evaluate_submission"]
