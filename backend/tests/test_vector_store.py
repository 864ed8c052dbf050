"""Tests for the case vector store."""

import pytest

from legal_review.retrieval.vector_index import CaseVectorStore


def test_vector_store_basic(store) -> None:
    store.upsert("a", [1.0, 0.0, 0.0], {"docType": "lease"})
    store.upsert("b", [0.0, 1.0, 0.0], {"docType": "judgment"})
    results = store.query([1.0, 0.1, 0.0], top_k=1)
    assert results
    assert results[0].id == "a"
    assert results[0].metadata == {"docType": "lease"}


def test_upsert_overwrites(store) -> None:
    store.upsert("a", [1.0, 0.0], {"userFeedback": "old"})
    store.upsert("a", [0.0, 1.0], {"userFeedback": "new"})
    case = store.fetch("a")
    assert store.size == 1
    assert case.embedding == [0.0, 1.0]
    assert case.metadata == {"userFeedback": "new"}


def test_dimension_mismatch(store) -> None:
    store.upsert("a", [1.0, 0.0])
    with pytest.raises(ValueError):
        store.upsert("b", [1.0, 0.0, 0.0])


def test_delete(store) -> None:
    store.upsert("a", [1.0, 0.0])
    assert store.delete("a") is True
    assert store.fetch("a") is None
    assert store.delete("a") is False
    assert store.query([1.0, 0.0]) == []


def test_rebuild_from_database(db, store) -> None:
    store.upsert("a", [0.5, 0.25], {"filename": "a.pdf"})
    reloaded = CaseVectorStore(db)
    reloaded.rebuild()
    assert reloaded.ids() == {"a"}
    assert reloaded.dim == 2
    assert reloaded.fetch("a").metadata == {"filename": "a.pdf"}
    assert reloaded.fetch("a").embedding == [0.5, 0.25]
