"""Utilities for parsing structured outputs returned by LLM calls.

Providers are asked for bare JSON but regularly wrap it in markdown fences,
prefix it with prose or emit a `<think>` block first. The helpers here are
shared between the moderation scorer and the assistant so we keep them in
one place.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Final

__all__ = ["strip_think_blocks", "extract_structured_json"]


def strip_think_blocks(text: str) -> str:
    """Return the content after a closing ``</think>`` tag, minus JSON fences."""
    if not text:
        return (text or "").strip()

    marker: Final[str] = "</think>"
    idx: int = text.rfind(marker)
    after: str = text if idx == -1 else text[idx + len(marker) :]

    cleaned: str = after.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json") :].strip()
    if cleaned.startswith("```"):
        cleaned = cleaned[3:].strip()
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3].strip()
    return cleaned


def _as_object(parsed: Any) -> Dict[str, Any]:
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def extract_structured_json(response_text: str) -> Dict[str, Any]:
    """Robustly extract a JSON object from an LLM response.

    Parameters
    ----------
    response_text
        The raw message content returned by the provider.

    Returns
    -------
    dict[str, Any]
        The parsed JSON object.

    Raises
    ------
    ValueError
        If no JSON object can be located in *response_text*.
    """
    cleaned: str = strip_think_blocks(response_text)

    # 1. Try to parse the whole string first (fast path)
    try:
        return _as_object(json.loads(cleaned))
    except json.JSONDecodeError:
        pass

    # 2. Search for fenced JSON block, with or without explicit `json` label
    fenced = re.search(
        r"```(?:json)?\s*(\{.*?\})\s*```",
        cleaned,
        flags=re.DOTALL | re.IGNORECASE,
    )
    if fenced:
        snippet = fenced.group(1).strip()
        try:
            return _as_object(json.loads(snippet))
        except json.JSONDecodeError:
            cleaned = snippet  # Narrow search space.

    # 3. Progressive truncation from the first `{`
    start = cleaned.find("{")
    if start == -1:
        raise ValueError("Could not locate JSON in provider response")

    candidate = cleaned[start:]
    for end in range(len(candidate), 0, -1):
        if candidate[end - 1] != "}":
            continue
        try:
            return _as_object(json.loads(candidate[:end]))
        except json.JSONDecodeError:
            continue

    raise ValueError("Could not locate JSON in provider response")
