"""Interfaces for the embedding and generation services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, Union


@dataclass(slots=True)
class InlineDocument:
    """Raw file bytes sent alongside a prompt."""

    data: bytes
    mime_type: str = "application/pdf"


PromptPart = Union[str, InlineDocument]


class Embedder(Protocol):
    def embed(self, text: str) -> list[float]: ...


class Generator(Protocol):
    def generate(self, parts: Sequence[PromptPart]) -> str: ...


__all__ = ["Embedder", "Generator", "InlineDocument", "PromptPart"]
