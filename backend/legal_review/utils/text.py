"""Text processing helpers."""

from __future__ import annotations

from typing import Any

import orjson


def truncate(text: str | None, limit: int) -> str:
    """Return at most ``limit`` characters of ``text``."""
    return (text or "")[:limit]


def render_value(value: Any) -> str:
    """Render a model-produced value (string or JSON structure) as prompt text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return orjson.dumps(value).decode("utf-8")
