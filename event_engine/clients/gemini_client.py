"""Shared HTTP session for Gemini REST API calls."""

from __future__ import annotations

import requests

GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta/models"


def create_gemini_session() -> requests.Session:
    """Return a new :class:`requests.Session` configured for the Gemini API."""
    session = requests.Session()
    session.headers.update({"Content-Type": "application/json"})
    return session

__all__ = ["GEMINI_API_BASE", "create_gemini_session"]
