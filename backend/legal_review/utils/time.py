"""Time helpers."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any


def now_ms() -> int:
    """Return current timestamp in milliseconds."""
    return int(time.time() * 1000)


def utc_iso() -> str:
    """ISO-8601 UTC timestamp, the format stored in case vector metadata."""
    return datetime.now(tz=timezone.utc).isoformat()


def ms_to_datetime(value: Any) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
