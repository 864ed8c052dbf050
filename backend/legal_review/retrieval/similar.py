"""Similar-case lookup rendered as prompt context."""

from __future__ import annotations

from legal_review.core.logging import get_logger
from legal_review.llm.types import Embedder
from legal_review.models.entities import VectorMatch
from legal_review.retrieval.vector_index import CaseVectorStore

logger = get_logger(__name__)

NO_SIMILAR_CASES = "No similar past cases found."
RETRIEVAL_FAILED = "An error occurred while searching past cases."
NO_CONTEXT = "No similar cases retrieved."


class SemanticRetriever:
    """Embed a query, look up the nearest confirmed cases and format them.

    Never raises: embedding or index failures turn into ``RETRIEVAL_FAILED``
    so a broken semantic store only lowers analysis quality.
    """

    def __init__(self, embedder: Embedder, store: CaseVectorStore, default_top_k: int = 3) -> None:
        self.embedder = embedder
        self.store = store
        self.default_top_k = default_top_k

    def find_similar(self, query_text: str, top_k: int | None = None) -> str:
        matches = self._search(query_text, top_k)
        if matches is None:
            return RETRIEVAL_FAILED
        if not matches:
            return NO_SIMILAR_CASES
        return "\n\n".join(_render_case(idx, match) for idx, match in enumerate(matches, start=1))

    def find_feedback(self, query_text: str, top_k: int | None = None) -> str:
        """One line per match carrying only reviewer feedback (manual training context)."""
        matches = self._search(query_text, top_k)
        if matches is None:
            return RETRIEVAL_FAILED
        if not matches:
            return NO_SIMILAR_CASES
        return "\n".join(
            f"- Past similar case ({match.metadata.get('docType') or 'unknown'}): "
            f"{match.metadata.get('userFeedback') or 'no feedback'}"
            for match in matches
        )

    def _search(self, query_text: str, top_k: int | None) -> list[VectorMatch] | None:
        try:
            vector = self.embedder.embed(query_text)
            return self.store.query(vector, top_k=top_k or self.default_top_k)
        except Exception as exc:
            logger.warning("Similar-case search failed: %s", exc)
            return None


def _render_case(index: int, match: VectorMatch) -> str:
    meta = match.metadata or {}
    doc_type = meta.get("docType") or "unknown"
    content = meta.get("fullContent") or meta.get("userFeedback") or "no feedback"
    return f"[Case {index}] (type: {doc_type})\ncontent: {content}"


__all__ = ["NO_CONTEXT", "NO_SIMILAR_CASES", "RETRIEVAL_FAILED", "SemanticRetriever"]
