"""Structured-output parsing for model responses."""

from __future__ import annotations

import re
from typing import Any

import orjson

from legal_review.core.logging import get_logger

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def parse_json_object(text: str | None) -> dict[str, Any] | None:
    """Extract the JSON object from a model reply, or None if there is none.

    Markdown code fences and text around the outermost braces are ignored;
    trailing commas are tolerated.
    """
    if not text:
        return None
    cleaned = strip_fences(text)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        logger.warning("No JSON object found in model response: %s", cleaned[:200])
        return None
    candidate = cleaned[start : end + 1]
    for attempt in (candidate, _TRAILING_COMMA_RE.sub(r"\1", candidate)):
        try:
            parsed = orjson.loads(attempt)
        except orjson.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    logger.warning("Unparsable JSON in model response: %s", candidate[:200])
    return None


__all__ = ["parse_json_object", "strip_fences"]
