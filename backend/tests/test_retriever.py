"""Tests for similar-case retrieval formatting."""

from legal_review.retrieval import NO_SIMILAR_CASES, RETRIEVAL_FAILED, SemanticRetriever


class FixedEmbedder:
    def __init__(self, vector) -> None:
        self.vector = vector

    def embed(self, text: str):
        return self.vector


class BrokenEmbedder:
    def embed(self, text: str):
        raise RuntimeError("embedding service down")


def test_no_cases(store) -> None:
    retriever = SemanticRetriever(FixedEmbedder([1.0, 0.0]), store)
    assert retriever.find_similar("rent") == NO_SIMILAR_CASES
    assert retriever.find_feedback("rent") == NO_SIMILAR_CASES


def test_renders_ranked_cases(store) -> None:
    store.upsert("near", [1.0, 0.0], {"docType": "lease", "fullContent": "tenant owes rent"})
    store.upsert("far", [0.0, 1.0], {"userFeedback": "check the deadline"})
    retriever = SemanticRetriever(FixedEmbedder([1.0, 0.2]), store, default_top_k=3)

    rendered = retriever.find_similar("rent")
    assert rendered == (
        "[Case 1] (type: lease)\ncontent: tenant owes rent"
        "\n\n"
        "[Case 2] (type: unknown)\ncontent: check the deadline"
    )
    assert retriever.find_similar("rent", top_k=1).count("[Case") == 1


def test_feedback_lines(store) -> None:
    store.upsert("a", [1.0, 0.0], {"docType": "lease", "userFeedback": "watch the notice period"})
    store.upsert("b", [0.9, 0.1], {})
    retriever = SemanticRetriever(FixedEmbedder([1.0, 0.0]), store)
    assert retriever.find_feedback("lease").splitlines() == [
        "- Past similar case (lease): watch the notice period",
        "- Past similar case (unknown): no feedback",
    ]


def test_failures_become_sentinel(store) -> None:
    store.upsert("a", [1.0, 0.0], {})
    assert SemanticRetriever(BrokenEmbedder(), store).find_similar("x") == RETRIEVAL_FAILED
    # wrong dimension from the embedder is an index error
    assert SemanticRetriever(FixedEmbedder([1.0, 0.0, 0.0]), store).find_similar("x") == RETRIEVAL_FAILED
