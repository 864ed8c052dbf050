"""Gemini client for generation and embeddings."""

from __future__ import annotations

import threading
from typing import Any, Sequence

import google.generativeai as genai
from google.api_core import exceptions as api_exceptions

from legal_review.core.errors import ConfigurationError, GenerationError, RateLimitError
from legal_review.core.logging import get_logger
from legal_review.llm.types import InlineDocument, PromptPart

logger = get_logger(__name__)

_configure_lock = threading.Lock()


class GeminiClient:
    """Wraps ``google.generativeai`` behind the ``Generator``/``Embedder`` interfaces.

    Quota errors are re-raised as ``RateLimitError`` so the executor can back
    off; any other API error becomes ``GenerationError``.
    """

    def __init__(self, api_key: str | None, generation_model: str, embedding_model: str) -> None:
        if not api_key:
            raise ConfigurationError("Gemini API key is not configured (set LGR_GEMINI_API_KEY)")
        with _configure_lock:
            genai.configure(api_key=api_key)
        self.generation_model = generation_model
        self.embedding_model = embedding_model
        self._model = genai.GenerativeModel(generation_model)

    def generate(self, parts: Sequence[PromptPart]) -> str:
        contents = [_to_content(part) for part in parts]
        try:
            response = self._model.generate_content(contents)
        except (api_exceptions.ResourceExhausted, api_exceptions.TooManyRequests) as exc:
            raise RateLimitError(f"Generation throttled: {exc}", original_error=exc) from exc
        except api_exceptions.GoogleAPIError as exc:
            raise GenerationError(f"Generation failed: {exc}", original_error=exc) from exc
        return response.text

    def embed(self, text: str) -> list[float]:
        try:
            result = genai.embed_content(model=self.embedding_model, content=text)
        except (api_exceptions.ResourceExhausted, api_exceptions.TooManyRequests) as exc:
            raise RateLimitError(f"Embedding throttled: {exc}", original_error=exc) from exc
        except api_exceptions.GoogleAPIError as exc:
            raise GenerationError(f"Embedding failed: {exc}", original_error=exc) from exc
        return list(result["embedding"])


def _to_content(part: PromptPart) -> Any:
    if isinstance(part, InlineDocument):
        return {"mime_type": part.mime_type, "data": part.data}
    return part


__all__ = ["GeminiClient"]
