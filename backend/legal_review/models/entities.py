"""Internal dataclasses representing persisted entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EntryStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"
    ERROR = "error"
    COMPLETED = "completed"
    DELETED = "deleted"


@dataclass(slots=True)
class QueueEntry:
    id: str
    filename: str
    status: EntryStatus
    ai_result: dict[str, Any] | None
    user_feedback: str | None
    indexed: bool
    created_at: int
    updated_at: int

    @property
    def has_result(self) -> bool:
        """True when a completed analysis (not an error record) is attached."""
        return bool(self.ai_result) and "error" not in self.ai_result


@dataclass(slots=True)
class CaseVector:
    id: str
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class VectorMatch:
    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


__all__ = ["CaseVector", "EntryStatus", "QueueEntry", "VectorMatch"]
