"""Embedding backends."""

from __future__ import annotations

import hashlib
import math
import re

from legal_review.core.config import Settings
from legal_review.llm.types import Embedder

_TOKEN_RE = re.compile(r"\w+")


class HashedEmbedder:
    """Deterministic hashed bag-of-words embedder.

    Used when no embedding service is configured (offline runs, tests). Output
    vectors are L2-normalized.
    """

    def __init__(self, dim: int = 768) -> None:
        self.dim = dim

    def embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dim
        for token in _tokenize(text):
            vector[_hash_token(token, self.dim)] += 1.0
        _normalize(vector)
        return vector


def build_embedder(settings: Settings, gemini: Embedder | None = None) -> Embedder:
    """Pick the embedding backend named by ``settings.embedding_backend``."""
    if settings.embedding_backend == "gemini":
        if gemini is None:
            raise ValueError("Gemini embedding backend requires a Gemini client")
        return gemini
    return HashedEmbedder(dim=settings.embedding_dim)


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = ["HashedEmbedder", "build_embedder"]
