"""Read-only projections over the ledger that feed the review queue."""

from __future__ import annotations

from typing import Any, Iterable

from legal_review.ledger.queue import DocumentLedger
from legal_review.models.entities import EntryStatus


class QueueView:
    """List and count entries by a caller-supplied status set."""

    def __init__(self, ledger: DocumentLedger) -> None:
        self.ledger = ledger

    def list(
        self,
        statuses: Iterable[str | EntryStatus] | None,
        order_by: str = "created_at",
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        entries = self.ledger.select(statuses, order_by=order_by, descending=descending, limit=limit)
        return [
            {
                "id": entry.id,
                "filename": entry.filename,
                "status": entry.status.value,
                "created_at": entry.created_at,
                "updated_at": entry.updated_at,
            }
            for entry in entries
        ]

    def count(self, statuses: Iterable[str | EntryStatus] | None) -> int:
        return self.ledger.count(statuses)


__all__ = ["QueueView"]
