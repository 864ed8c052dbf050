"""Semantic store and similar-case retrieval."""

from .vector_index import CaseVectorStore
from .similar import NO_CONTEXT, NO_SIMILAR_CASES, RETRIEVAL_FAILED, SemanticRetriever

__all__ = [
    "CaseVectorStore",
    "SemanticRetriever",
    "NO_CONTEXT",
    "NO_SIMILAR_CASES",
    "RETRIEVAL_FAILED",
]
