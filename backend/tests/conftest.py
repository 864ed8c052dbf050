"""Test fixtures for the legal review service."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("LGR_DB_PATH", str(tmp_path / "ledger.db"))
    monkeypatch.setenv("LGR_INBOX_DIR", str(tmp_path / "inbox"))
    monkeypatch.setenv("LGR_EMBEDDING_BACKEND", "hashed")
    monkeypatch.setenv("LGR_EMBEDDING_DIM", "64")
    monkeypatch.setenv("LGR_PACING_SECONDS", "0")
    monkeypatch.setenv("LGR_RETRY_INITIAL_DELAY", "0")
    for name in ("LGR_CONFIG", "LGR_GEMINI_API_KEY", "GEMINI_API_KEY", "LGR_WATCH_INBOX"):
        monkeypatch.delenv(name, raising=False)

    from legal_review.api import dependencies as deps

    deps.reset_dependencies()
    yield
    deps.reset_dependencies()


@pytest.fixture
def db(tmp_path: Path):
    from legal_review.db.sqlite import SQLiteDatabase

    database = SQLiteDatabase(tmp_path / "unit.db")
    database.ensure_schema()
    yield database
    database.close()


@pytest.fixture
def ledger(db):
    from legal_review.ledger.queue import DocumentLedger

    return DocumentLedger(db)


@pytest.fixture
def store(db):
    from legal_review.retrieval.vector_index import CaseVectorStore

    return CaseVectorStore(db)


@pytest.fixture
def file_store(tmp_path: Path):
    from legal_review.storage.file_store import FileStore

    return FileStore(tmp_path / "files")


@pytest.fixture
def embedder():
    from legal_review.llm.embeddings import HashedEmbedder

    return HashedEmbedder(dim=64)


@pytest.fixture
def settings():
    from legal_review.core.config import Settings

    return Settings(pacing_seconds=0, max_retries=0, retry_initial_delay=0, batch_size=1, max_batch_size=5)
