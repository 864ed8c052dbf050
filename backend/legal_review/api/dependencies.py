"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from legal_review.core.config import Settings, get_settings
from legal_review.core.retry import RateLimitedExecutor
from legal_review.db.sqlite import SQLiteDatabase
from legal_review.ingest.scanner import InboxScanner
from legal_review.ledger.queue import DocumentLedger
from legal_review.ledger.views import QueueView
from legal_review.llm.embeddings import build_embedder
from legal_review.llm.gemini import GeminiClient
from legal_review.llm.types import Embedder, Generator
from legal_review.pipeline.analysis import AnalysisPipeline
from legal_review.retrieval.similar import SemanticRetriever
from legal_review.retrieval.vector_index import CaseVectorStore
from legal_review.rules.loader import RuleLoader
from legal_review.storage.file_store import FileStore
from legal_review.sync.synchronizer import LedgerSynchronizer
from legal_review.training.manual import ManualTrainer

_DB: SQLiteDatabase | None = None
_VECTOR_STORE: CaseVectorStore | None = None
_GEMINI: GeminiClient | None = None
_RULE_LOADER: RuleLoader | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        db = SQLiteDatabase(get_app_settings().db_path)
        db.ensure_schema()
        _DB = db
    return _DB


def get_ledger() -> DocumentLedger:
    return DocumentLedger(get_database())


def get_queue_view() -> QueueView:
    return QueueView(get_ledger())


def get_file_store() -> FileStore:
    return FileStore(get_app_settings().inbox_dir)


def get_vector_store() -> CaseVectorStore:
    global _VECTOR_STORE
    if _VECTOR_STORE is None:
        store = CaseVectorStore(get_database())
        store.rebuild()
        _VECTOR_STORE = store
    return _VECTOR_STORE


def get_gemini_client() -> GeminiClient:
    global _GEMINI
    if _GEMINI is None:
        settings = get_app_settings()
        _GEMINI = GeminiClient(
            api_key=settings.gemini_api_key,
            generation_model=settings.generation_model,
            embedding_model=settings.embedding_model,
        )
    return _GEMINI


def get_generator() -> Generator:
    return get_gemini_client()


def get_embedder() -> Embedder:
    settings = get_app_settings()
    gemini = get_gemini_client() if settings.embedding_backend == "gemini" else None
    return build_embedder(settings, gemini)


def get_executor() -> RateLimitedExecutor:
    settings = get_app_settings()
    return RateLimitedExecutor(max_retries=settings.max_retries, initial_delay=settings.retry_initial_delay)


def get_rule_loader() -> RuleLoader:
    global _RULE_LOADER
    if _RULE_LOADER is None:
        _RULE_LOADER = RuleLoader.from_settings(get_app_settings())
    return _RULE_LOADER


def get_retriever() -> SemanticRetriever:
    return SemanticRetriever(get_embedder(), get_vector_store(), get_app_settings().similar_top_k)


def get_pipeline() -> AnalysisPipeline:
    return AnalysisPipeline(
        ledger=get_ledger(),
        file_store=get_file_store(),
        rule_loader=get_rule_loader(),
        retriever=get_retriever(),
        generator=get_generator(),
        executor=get_executor(),
        settings=get_app_settings(),
    )


def get_synchronizer() -> LedgerSynchronizer:
    return LedgerSynchronizer(
        ledger=get_ledger(),
        store=get_vector_store(),
        embedder=get_embedder(),
        executor=get_executor(),
    )


def get_trainer() -> ManualTrainer:
    return ManualTrainer(
        rule_loader=get_rule_loader(),
        retriever=get_retriever(),
        generator=get_generator(),
        embedder=get_embedder(),
        store=get_vector_store(),
        executor=get_executor(),
    )


def get_scanner() -> InboxScanner:
    return InboxScanner(get_file_store(), get_ledger())


def reset_dependencies() -> None:
    """Drop cached singletons (settings, database, store, clients)."""
    global _DB, _VECTOR_STORE, _GEMINI, _RULE_LOADER
    get_app_settings.cache_clear()
    get_settings.cache_clear()
    if _DB is not None:
        _DB.close()
    _DB = None
    _VECTOR_STORE = None
    _GEMINI = None
    _RULE_LOADER = None


__all__ = [
    "get_app_settings",
    "get_database",
    "get_embedder",
    "get_executor",
    "get_file_store",
    "get_gemini_client",
    "get_generator",
    "get_ledger",
    "get_pipeline",
    "get_queue_view",
    "get_retriever",
    "get_rule_loader",
    "get_scanner",
    "get_synchronizer",
    "get_trainer",
    "get_vector_store",
    "reset_dependencies",
]
