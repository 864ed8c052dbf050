"""Document ledger: the system-of-record table for queue entries."""

from __future__ import annotations

import sqlite3
from typing import Any, Iterable, Sequence

import orjson

from legal_review.core.errors import LedgerEntryNotFound
from legal_review.core.logging import get_logger
from legal_review.db.sqlite import SQLiteDatabase
from legal_review.models.entities import EntryStatus, QueueEntry
from legal_review.utils.ids import new_id
from legal_review.utils.time import now_ms

logger = get_logger(__name__)

_COLUMNS = "id, filename, status, ai_result, user_feedback, indexed, created_at, updated_at"
_ORDERABLE = {"created_at", "updated_at", "filename", "status"}
_UPDATABLE = {"status", "ai_result", "user_feedback", "indexed"}


class DocumentLedger:
    """Insert, select, update and count over ``document_queue``."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self.db = database

    def enqueue(self, filename: str) -> QueueEntry | None:
        """Create a pending entry; returns None when an active entry already exists."""
        entry_id = new_id("doc")
        now = now_ms()
        with self.db.transaction() as conn:
            try:
                conn.execute(
                    f"INSERT INTO document_queue ({_COLUMNS}) VALUES (?, ?, ?, NULL, NULL, 0, ?, ?)",
                    [entry_id, filename, EntryStatus.PENDING.value, now, now],
                )
            except sqlite3.IntegrityError:
                # a failed INSERT is atomic; the open transaction stays usable
                logger.debug("Active entry already exists for %s", filename)
                return None
        return self.require(entry_id)

    def get(self, entry_id: str) -> QueueEntry | None:
        row = self.db.execute(
            f"SELECT {_COLUMNS} FROM document_queue WHERE id = ?",
            [entry_id],
        ).fetchone()
        return _row_to_entry(row) if row else None

    def require(self, entry_id: str) -> QueueEntry:
        entry = self.get(entry_id)
        if entry is None:
            raise LedgerEntryNotFound(entry_id)
        return entry

    def select(
        self,
        statuses: Iterable[str | EntryStatus] | None = None,
        order_by: str = "created_at",
        descending: bool = False,
        limit: int | None = None,
    ) -> list[QueueEntry]:
        if order_by not in _ORDERABLE:
            raise ValueError(f"Unsupported order column: {order_by}")
        where, params = _status_clause(statuses)
        sql = f"SELECT {_COLUMNS} FROM document_queue{where} ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return [_row_to_entry(row) for row in self.db.query(sql, params)]

    def count(self, statuses: Iterable[str | EntryStatus] | None = None) -> int:
        where, params = _status_clause(statuses)
        row = self.db.execute(f"SELECT COUNT(*) AS count FROM document_queue{where}", params).fetchone()
        return int(row["count"]) if row else 0

    def update(self, entry_id: str, **fields: Any) -> bool:
        """Update the given columns and refresh ``updated_at``; False if no such row."""
        return self._write(entry_id, None, fields)

    def transition(self, entry_id: str, from_statuses: Sequence[str | EntryStatus], **fields: Any) -> bool:
        """Like :meth:`update`, but only while the entry's status is one of ``from_statuses``."""
        return self._write(entry_id, from_statuses, fields)

    def claim(self, entry_id: str, from_statuses: Sequence[str | EntryStatus]) -> bool:
        """Move an entry to ``processing`` only if its status is still one of ``from_statuses``."""
        return self.transition(entry_id, from_statuses, status=EntryStatus.PROCESSING)

    def _write(
        self,
        entry_id: str,
        from_statuses: Sequence[str | EntryStatus] | None,
        fields: dict[str, Any],
    ) -> bool:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update columns: {sorted(unknown)}")
        assignments: list[str] = []
        params: list[Any] = []
        for column, value in fields.items():
            assignments.append(f"{column} = ?")
            params.append(_encode(column, value))
        assignments.append("updated_at = ?")
        params.extend([now_ms(), entry_id])
        sql = f"UPDATE document_queue SET {', '.join(assignments)} WHERE id = ?"
        if from_statuses is not None:
            if not from_statuses:
                return False
            sql += f" AND status IN ({','.join('?' for _ in from_statuses)})"
            params.extend(_status_value(status) for status in from_statuses)
        with self.db.transaction() as conn:
            cursor = conn.execute(sql, params)
        return cursor.rowcount > 0

    def active_filenames(self) -> set[str]:
        rows = self.db.query(
            "SELECT filename FROM document_queue WHERE status != ?",
            [EntryStatus.DELETED.value],
        )
        return {row["filename"] for row in rows}


def _status_value(status: str | EntryStatus) -> str:
    return status.value if isinstance(status, EntryStatus) else EntryStatus(status).value


def _status_clause(statuses: Iterable[str | EntryStatus] | None) -> tuple[str, list[Any]]:
    if statuses is None:
        return "", []
    values = [_status_value(status) for status in statuses]
    if not values:
        # an empty filter matches nothing rather than everything
        return " WHERE 0", []
    placeholders = ",".join("?" for _ in values)
    return f" WHERE status IN ({placeholders})", values


def _encode(column: str, value: Any) -> Any:
    if column == "status":
        return _status_value(value)
    if column == "ai_result":
        return None if value is None else orjson.dumps(value).decode("utf-8")
    if column == "indexed":
        return int(bool(value))
    return value


def _row_to_entry(row: sqlite3.Row) -> QueueEntry:
    return QueueEntry(
        id=row["id"],
        filename=row["filename"],
        status=EntryStatus(row["status"]),
        ai_result=orjson.loads(row["ai_result"]) if row["ai_result"] else None,
        user_feedback=row["user_feedback"],
        indexed=bool(row["indexed"]),
        created_at=int(row["created_at"]),
        updated_at=int(row["updated_at"]),
    )


__all__ = ["DocumentLedger"]
