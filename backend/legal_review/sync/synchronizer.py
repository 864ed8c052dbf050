"""Keep the semantic store and the ledger in step on review actions.

The ledger is the source of truth for status; the semantic store holds the
confirmed content that retrieval reads. The two are written by separate calls,
vector first, so a crash in between leaves at most a stale ``indexed`` flag or
a non-deleted row whose vector is gone. ``audit`` finds and optionally
repairs those gaps.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from legal_review.core.errors import InvalidTransition, LedgerEntryNotFound
from legal_review.core.logging import entry_context, get_logger
from legal_review.core.retry import RateLimitedExecutor
from legal_review.ledger.queue import DocumentLedger
from legal_review.ledger.views import QueueView
from legal_review.llm.types import Embedder
from legal_review.models.entities import EntryStatus, QueueEntry
from legal_review.pipeline.results import AnalysisResult
from legal_review.retrieval.vector_index import CaseVectorStore
from legal_review.utils.text import render_value, truncate
from legal_review.utils.time import utc_iso

logger = get_logger(__name__)

CONTENT_PREVIEW_CHARS = 1000
MANUAL_ID_PREFIX = "manual-train-"


@dataclass(slots=True)
class CaseEdit:
    full_content: str
    user_feedback: str = ""
    doc_type: str = ""


@dataclass(slots=True)
class AuditReport:
    missing_vectors: list[str] = field(default_factory=list)
    unflagged_vectors: list[str] = field(default_factory=list)
    orphan_vectors: list[str] = field(default_factory=list)
    stuck_processing: list[str] = field(default_factory=list)
    repaired: bool = False

    @property
    def consistent(self) -> bool:
        return not (self.missing_vectors or self.unflagged_vectors or self.orphan_vectors)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["consistent"] = self.consistent
        return payload


def confirmed_case_text(result: AnalysisResult, feedback: str | None) -> str:
    """Canonical rendering embedded for a reviewed pipeline entry."""
    return "\n".join(
        [
            f"[Document type]: {result.doc_type or 'legal document'}",
            f"[Key summary]: {render_value(result.final_analysis)}",
            f"[Reviewer feedback]: {feedback or 'none'}",
            f"[Full extraction]: {render_value(result.extraction if result.extraction is not None else {})}",
        ]
    )


def edited_case_text(edit: CaseEdit) -> str:
    """Canonical rendering embedded for a user-edited case."""
    return "\n".join(
        [
            f"[Document type]: {edit.doc_type}",
            f"[Key content]: {edit.full_content}",
            f"[User feedback]: {edit.user_feedback}",
        ]
    )


class LedgerSynchronizer:
    """Confirm, edit and delete reviewed cases across both stores."""

    def __init__(
        self,
        ledger: DocumentLedger,
        store: CaseVectorStore,
        embedder: Embedder,
        executor: RateLimitedExecutor,
    ) -> None:
        self.ledger = ledger
        self.store = store
        self.embedder = embedder
        self.executor = executor

    def confirm(self, entry_id: str, feedback: str | None) -> None:
        entry = self.ledger.require(entry_id)
        _ensure_not_deleted(entry)
        result = AnalysisResult.from_record(entry.ai_result if entry.has_result else None)
        vector = self._embed(confirmed_case_text(result, feedback))
        self.store.upsert(
            entry.id,
            vector,
            {
                "filename": entry.filename,
                "docType": result.doc_type or "Unknown",
                "uploadDate": utc_iso(),
                "userFeedback": feedback or "",
                "fullContent": truncate(render_value(result.final_analysis), CONTENT_PREVIEW_CHARS),
            },
        )
        self.ledger.update(entry.id, status=EntryStatus.COMPLETED, user_feedback=feedback, indexed=True)
        logger.info("Confirmed and indexed", extra=entry_context(entry.id, entry.filename))

    def update(self, entry_id: str, edit: CaseEdit) -> None:
        entry = self.ledger.get(entry_id)
        existing = self.store.fetch(entry_id)
        if entry is None and existing is None:
            raise LedgerEntryNotFound(entry_id)
        if entry is not None:
            _ensure_not_deleted(entry)

        metadata: dict[str, Any] = {
            "fullContent": edit.full_content,
            "userFeedback": edit.user_feedback,
            "docType": edit.doc_type,
            "updatedAt": utc_iso(),
        }
        filename = entry.filename if entry is not None else (existing.metadata.get("fileName") if existing else None)
        if filename:
            metadata["filename"] = filename

        self.store.upsert(entry_id, self._embed(edited_case_text(edit)), metadata)
        if entry is not None:
            self.ledger.update(
                entry_id,
                status=EntryStatus.COMPLETED,
                user_feedback=edit.user_feedback,
                indexed=True,
            )
        logger.info("Case edited and re-indexed", extra=entry_context(entry_id, filename))

    def delete(self, entry_id: str) -> None:
        entry = self.ledger.get(entry_id)
        removed = self.store.delete(entry_id)
        if entry is None and not removed:
            raise LedgerEntryNotFound(entry_id)
        if entry is not None:
            self.ledger.update(entry_id, status=EntryStatus.DELETED, indexed=False)
        logger.info("Case deleted", extra=entry_context(entry_id, entry.filename if entry else None))

    def get(self, entry_id: str) -> dict[str, Any]:
        """Detail view: semantic store metadata, falling back to the ledger row."""
        case = self.store.fetch(entry_id)
        if case is not None:
            return case.metadata
        entry = self.ledger.get(entry_id)
        if entry is None:
            raise LedgerEntryNotFound(entry_id)
        return {
            "filename": entry.filename,
            "status": entry.status.value,
            "userFeedback": entry.user_feedback or "",
            "aiResult": entry.ai_result,
        }

    def list_indexed(self) -> list[dict[str, Any]]:
        return QueueView(self.ledger).list([EntryStatus.COMPLETED], order_by="updated_at", descending=True)

    def audit(self, repair: bool = False) -> AuditReport:
        entries = self.ledger.select(None)
        vector_ids = self.store.ids()
        ledger_ids = {entry.id for entry in entries}
        report = AuditReport()
        for entry in entries:
            present = entry.id in vector_ids
            if entry.indexed and not present:
                report.missing_vectors.append(entry.id)
            elif present and not entry.indexed:
                report.unflagged_vectors.append(entry.id)
            if entry.status == EntryStatus.PROCESSING:
                report.stuck_processing.append(entry.id)
        report.orphan_vectors = sorted(
            vector_id
            for vector_id in vector_ids - ledger_ids
            if not vector_id.startswith(MANUAL_ID_PREFIX)
        )
        if repair:
            for entry_id in report.missing_vectors:
                self.ledger.update(entry_id, indexed=False)
            for entry_id in report.unflagged_vectors:
                self.ledger.update(entry_id, indexed=True)
            report.repaired = True
        if not report.consistent:
            logger.warning(
                "Ledger/vector audit found %s missing, %s unflagged, %s orphan",
                len(report.missing_vectors),
                len(report.unflagged_vectors),
                len(report.orphan_vectors),
            )
        return report

    def _embed(self, text: str) -> list[float]:
        return self.executor.execute(lambda: self.embedder.embed(text))


def _ensure_not_deleted(entry: QueueEntry) -> None:
    if entry.status == EntryStatus.DELETED:
        raise InvalidTransition(f"entry {entry.id} is deleted")


__all__ = ["AuditReport", "CaseEdit", "LedgerSynchronizer", "confirmed_case_text", "edited_case_text"]
