"""Semantic store for confirmed cases: cosine index persisted to SQLite."""

from __future__ import annotations

import math
import threading
from array import array
from typing import Any, Sequence

import orjson

from legal_review.core.metrics import INDEX_SIZE
from legal_review.db.sqlite import SQLiteDatabase
from legal_review.models.entities import CaseVector, VectorMatch
from legal_review.utils.time import now_ms


class CaseVectorStore:
    """In-memory cosine index over case vectors, written through to ``case_vectors``.

    Ids are unique: ``upsert`` on an existing id overwrites both the vector and
    the metadata.
    """

    def __init__(self, database: SQLiteDatabase, dim: int | None = None) -> None:
        self.db = database
        self.dim = dim
        self._vectors: dict[str, list[float]] = {}
        self._metadata: dict[str, dict[str, Any]] = {}
        self._lock = threading.RLock()

    @property
    def size(self) -> int:
        return len(self._vectors)

    def ids(self) -> set[str]:
        with self._lock:
            return set(self._vectors)

    def upsert(self, vector_id: str, vector: Sequence[float], metadata: dict[str, Any] | None = None) -> None:
        values = [float(value) for value in vector]
        with self._lock:
            if self.dim is None:
                self.dim = len(values)
            if len(values) != self.dim:
                raise ValueError("Vector dimension mismatch")
            meta = dict(metadata or {})
            with self.db.transaction() as conn:
                conn.execute(
                    """
                INSERT INTO case_vectors (id, dim, vector, metadata_json, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                  dim = excluded.dim,
                  vector = excluded.vector,
                  metadata_json = excluded.metadata_json,
                  updated_at = excluded.updated_at
                """,
                    [vector_id, self.dim, array("f", values).tobytes(), orjson.dumps(meta).decode("utf-8"), now_ms()],
                )
            self._vectors[vector_id] = values
            self._metadata[vector_id] = meta
            INDEX_SIZE.set(self.size)

    def fetch(self, vector_id: str) -> CaseVector | None:
        with self._lock:
            vector = self._vectors.get(vector_id)
            if vector is None:
                return None
            return CaseVector(id=vector_id, embedding=list(vector), metadata=dict(self._metadata[vector_id]))

    def query(self, vector: Sequence[float], top_k: int = 3) -> list[VectorMatch]:
        with self._lock:
            if not self._vectors:
                return []
            if len(vector) != self.dim:
                raise ValueError("Query vector dimension mismatch")
            scores = [(vector_id, _cosine(stored, vector)) for vector_id, stored in self._vectors.items()]
            scores.sort(key=lambda item: item[1], reverse=True)
            return [
                VectorMatch(id=vector_id, score=score, metadata=dict(self._metadata[vector_id]))
                for vector_id, score in scores[: max(top_k, 0)]
            ]

    def delete(self, vector_id: str) -> bool:
        with self._lock:
            with self.db.transaction() as conn:
                cursor = conn.execute("DELETE FROM case_vectors WHERE id = ?", [vector_id])
            removed = self._vectors.pop(vector_id, None) is not None
            self._metadata.pop(vector_id, None)
            INDEX_SIZE.set(self.size)
            return removed or cursor.rowcount > 0

    def rebuild(self) -> None:
        """Reload the in-memory index from the ``case_vectors`` table."""
        rows = self.db.query("SELECT id, dim, vector, metadata_json FROM case_vectors", [])
        with self._lock:
            self._vectors = {}
            self._metadata = {}
            for row in rows:
                floats = array("f")
                floats.frombytes(row["vector"])
                self._vectors[row["id"]] = list(floats)
                self._metadata[row["id"]] = orjson.loads(row["metadata_json"]) if row["metadata_json"] else {}
            if self._vectors:
                self.dim = len(next(iter(self._vectors.values())))
            INDEX_SIZE.set(self.size)


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    return dot / norm


__all__ = ["CaseVectorStore"]
