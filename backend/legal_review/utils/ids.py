"""ID helpers."""

from __future__ import annotations

import uuid

from legal_review.utils.time import now_ms


def new_id(prefix: str | None = None) -> str:
    """Generate a random UUID4 string with optional prefix."""
    base = uuid.uuid4().hex
    return f"{prefix}_{base}" if prefix else base


def manual_train_id() -> str:
    """Vector id for a manually trained case: ``manual-train-<epoch ms>-<suffix>``."""
    return f"manual-train-{now_ms()}-{uuid.uuid4().hex[:6]}"
