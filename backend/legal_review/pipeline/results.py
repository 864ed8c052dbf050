"""Versioned analysis result schema and per-phase model outputs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from legal_review.llm.parsing import parse_json_object

RESULT_SCHEMA_VERSION = 1
PARSE_ERROR = "Error"
PAST_CASES_PREVIEW_CHARS = 500


class AnalysisMode(str, Enum):
    STANDARD = "standard"
    COMPARATIVE_WITH_HISTORY = "comparative_with_history"


class ExtractionOutput(BaseModel):
    """Phase 1 reply: extracted facts, baseline interpretation, search context."""

    extraction: Any = PARSE_ERROR
    baseline_analysis: Any = PARSE_ERROR
    search_context: str = ""

    @field_validator("search_context", mode="before")
    @classmethod
    def _coerce_context(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @classmethod
    def from_response(cls, text: str | None) -> "ExtractionOutput":
        parsed = parse_json_object(text)
        if parsed is None:
            return cls()
        try:
            return cls.model_validate(parsed)
        except ValidationError:
            return cls()


class FinalReportOutput(BaseModel):
    """Phase 3 reply: final narrative, enumerated issues, whether past cases mattered."""

    final_rag_analysis: Any = ""
    issues: list[Any] = Field(default_factory=list)
    rag_reference_used: bool = False

    @field_validator("issues", mode="before")
    @classmethod
    def _coerce_issues(cls, value: Any) -> list[Any]:
        if value is None:
            return []
        return value if isinstance(value, list) else [value]

    @classmethod
    def from_response(cls, text: str | None) -> "FinalReportOutput":
        parsed = parse_json_object(text)
        if parsed is not None:
            try:
                return cls.model_validate(parsed)
            except ValidationError:
                pass
        # keep the raw narrative so the reviewer still sees something
        return cls(final_rag_analysis=text or "", issues=[], rag_reference_used=False)


class AnalysisResult(BaseModel):
    """What the ledger stores in ``ai_result`` once an entry is processed.

    Every phase field is optional; re-analysis replaces the whole record.
    """

    schema_version: int = RESULT_SCHEMA_VERSION
    mode: AnalysisMode = AnalysisMode.STANDARD
    extraction: Any = None
    baseline_analysis: Any = None
    final_analysis: Any = None
    issues: list[Any] = Field(default_factory=list)
    rag_reference_used: bool = False
    past_cases_summary: str = ""
    analyzed_at: int | None = None

    @classmethod
    def assemble(
        cls,
        phase1: ExtractionOutput,
        past_cases: str,
        phase3: FinalReportOutput,
        analyzed_at: int,
    ) -> "AnalysisResult":
        return cls(
            extraction=phase1.extraction,
            baseline_analysis=phase1.baseline_analysis,
            final_analysis=phase3.final_rag_analysis,
            issues=phase3.issues,
            rag_reference_used=phase3.rag_reference_used,
            past_cases_summary=past_cases[:PAST_CASES_PREVIEW_CHARS],
            analyzed_at=analyzed_at,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | None) -> "AnalysisResult":
        return cls.model_validate(dict(record or {}))

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @property
    def doc_type(self) -> str | None:
        if isinstance(self.extraction, Mapping):
            value = self.extraction.get("doc_type")
            return str(value) if value else None
        return None


@dataclass(slots=True)
class EntryOutcome:
    id: str
    filename: str
    status: str
    result: dict[str, Any] | None = None
    error: str | None = None
    cached: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "filename": self.filename, "status": self.status}
        if self.result is not None:
            payload["result"] = self.result
        if self.error is not None:
            payload["error"] = self.error
        if self.cached:
            payload["cached"] = True
        return payload


__all__ = [
    "AnalysisMode",
    "AnalysisResult",
    "EntryOutcome",
    "ExtractionOutput",
    "FinalReportOutput",
    "PARSE_ERROR",
    "RESULT_SCHEMA_VERSION",
]
