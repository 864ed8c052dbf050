"""Filesystem watcher that queues documents dropped into the inbox."""

from __future__ import annotations

import threading
from pathlib import Path

from watchdog.events import FileSystemEvent, PatternMatchingEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from legal_review.core.logging import get_logger
from legal_review.ingest.scanner import InboxScanner

logger = get_logger(__name__)


class InboxEventHandler(PatternMatchingEventHandler):
    """Forward new or renamed PDFs to the scanner."""

    def __init__(self, scanner: InboxScanner, patterns: list[str] | None = None) -> None:
        super().__init__(
            patterns=patterns or ["*.pdf"],
            ignore_directories=True,
            case_sensitive=False,
        )
        self.scanner = scanner

    def on_created(self, event: FileSystemEvent) -> None:
        self._enqueue(Path(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        self._enqueue(Path(event.dest_path))

    def _enqueue(self, path: Path) -> None:
        try:
            self.scanner.enqueue(path.name)
        except Exception:
            logger.exception("Failed to queue %s", path)


class InboxWatcher:
    """Wrapper around a watchdog observer on the inbox directory."""

    def __init__(self, scanner: InboxScanner, inbox_dir: Path) -> None:
        self.scanner = scanner
        self.inbox_dir = inbox_dir.expanduser()
        self._observer: BaseObserver = Observer()
        self._lock = threading.Lock()
        self._started = False

    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            self.inbox_dir.mkdir(parents=True, exist_ok=True)
            # pick up anything that arrived while nobody was watching
            self.scanner.scan()
            self._observer.schedule(InboxEventHandler(self.scanner), str(self.inbox_dir), recursive=False)
            self._observer.start()
            self._started = True
            logger.info("Watching %s", self.inbox_dir)

    def stop(self) -> None:
        with self._lock:
            if not self._started:
                return
            self._observer.stop()
            self._observer.join(timeout=5)
            self._started = False


__all__ = ["InboxEventHandler", "InboxWatcher"]
