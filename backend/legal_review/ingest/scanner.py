"""Detect newly uploaded files and enqueue them in the ledger."""

from __future__ import annotations

from legal_review.core.logging import entry_context, get_logger
from legal_review.ledger.queue import DocumentLedger
from legal_review.storage.file_store import FileStore

logger = get_logger(__name__)


class InboxScanner:
    """Create a pending entry for every stored file without an active ledger row."""

    def __init__(self, file_store: FileStore, ledger: DocumentLedger) -> None:
        self.file_store = file_store
        self.ledger = ledger

    def scan(self) -> list[str]:
        known = self.ledger.active_filenames()
        added: list[str] = []
        for name in self.file_store.list_names():
            if name in known:
                continue
            if self.enqueue(name):
                added.append(name)
        if added:
            logger.info("Queued %s new document(s)", len(added))
        return added

    def enqueue(self, name: str) -> bool:
        entry = self.ledger.enqueue(name)
        if entry is None:
            return False
        logger.info("Queued %s", name, extra=entry_context(entry.id, name))
        return True


__all__ = ["InboxScanner"]
