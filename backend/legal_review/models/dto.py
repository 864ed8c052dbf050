"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class QueueItem(BaseModel):
    id: str
    filename: str
    status: str
    created_at: datetime
    updated_at: datetime


class QueueListResponse(BaseModel):
    success: bool = True
    items: list[QueueItem]


class CountResponse(BaseModel):
    success: bool = True
    count: int


class ScanResponse(BaseModel):
    queued: list[str]


class UploadRequest(BaseModel):
    filename: str
    file_base64: str


class UploadResponse(BaseModel):
    success: bool = True
    filename: str
    queued: bool = Field(description="False when an active entry already exists for the name")


class RulesReloadResponse(BaseModel):
    success: bool = True
    loaded: bool


class RunRequest(BaseModel):
    entry_id: str | None = Field(default=None, description="Force analysis of this entry")
    batch_size: int | None = Field(default=None, ge=1, description="Entries to take in auto mode")
    reanalyze: bool = Field(default=False, description="Re-run a processed entry instead of serving its cached result")


class RunResponse(BaseModel):
    success: bool = True
    processed: list[dict[str, Any]]


class ConfirmRequest(BaseModel):
    user_feedback: str | None = None


class CaseUpdateRequest(BaseModel):
    full_content: str
    user_feedback: str = ""
    doc_type: str = ""


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class CaseDetailResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]


class AuditRequest(BaseModel):
    repair: bool = False


class TrainAnalyzeRequest(BaseModel):
    file_base64: str
    mime_type: str = "application/pdf"
    doc_type: str
    file_name: str | None = None


class TrainAnalyzeResponse(BaseModel):
    success: bool = True
    extraction: Any = None
    baseline_analysis: Any = None
    rag_analysis: Any = None


class TrainSaveRequest(BaseModel):
    doc_type: str
    extraction: Any = None
    analysis: Any = None
    user_feedback: str = ""
    file_name: str | None = None


class TrainSaveResponse(BaseModel):
    success: bool = True
    upsert_id: str


__all__ = [
    "AuditRequest",
    "CaseDetailResponse",
    "CaseUpdateRequest",
    "ConfirmRequest",
    "CountResponse",
    "MessageResponse",
    "QueueItem",
    "QueueListResponse",
    "RunRequest",
    "RulesReloadResponse",
    "RunResponse",
    "ScanResponse",
    "TrainAnalyzeRequest",
    "TrainAnalyzeResponse",
    "TrainSaveRequest",
    "TrainSaveResponse",
    "UploadRequest",
    "UploadResponse",
]
