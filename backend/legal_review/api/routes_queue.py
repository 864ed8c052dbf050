"""Review queue routes."""

from __future__ import annotations

import base64
import binascii

from fastapi import APIRouter, Depends, HTTPException, Query

from legal_review.api.dependencies import get_app_settings, get_file_store, get_queue_view, get_scanner
from legal_review.core.config import Settings
from legal_review.ingest.scanner import InboxScanner
from legal_review.ledger.views import QueueView
from legal_review.models.dto import (
    CountResponse,
    QueueItem,
    QueueListResponse,
    ScanResponse,
    UploadRequest,
    UploadResponse,
)
from legal_review.models.entities import EntryStatus
from legal_review.storage.file_store import FileStore
from legal_review.utils.time import ms_to_datetime

router = APIRouter()


@router.get("", response_model=QueueListResponse, summary="List queue entries awaiting review")
async def list_queue(
    status: list[EntryStatus] | None = Query(default=None),
    view: QueueView = Depends(get_queue_view),
    settings: Settings = Depends(get_app_settings),
) -> QueueListResponse:
    statuses = status or settings.review_statuses
    rows = view.list(statuses, order_by="created_at")
    return QueueListResponse(
        items=[
            QueueItem(
                id=row["id"],
                filename=row["filename"],
                status=row["status"],
                created_at=ms_to_datetime(row["created_at"]),
                updated_at=ms_to_datetime(row["updated_at"]),
            )
            for row in rows
        ]
    )


@router.get("/count", response_model=CountResponse, summary="Count queue entries")
async def count_queue(
    status: list[EntryStatus] | None = Query(default=None),
    view: QueueView = Depends(get_queue_view),
    settings: Settings = Depends(get_app_settings),
) -> CountResponse:
    return CountResponse(count=view.count(status or settings.review_statuses))


@router.post("/scan", response_model=ScanResponse, summary="Queue files found in the inbox")
def scan_inbox(scanner: InboxScanner = Depends(get_scanner)) -> ScanResponse:
    return ScanResponse(queued=scanner.scan())



@router.post("/upload", response_model=UploadResponse, summary="Store a document in the inbox and queue it")
def upload_document(
    request: UploadRequest,
    file_store: FileStore = Depends(get_file_store),
    scanner: InboxScanner = Depends(get_scanner),
) -> UploadResponse:
    try:
        data = base64.b64decode(request.file_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail="file_base64 is not valid base64") from exc
    try:
        file_store.upload(request.filename, data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return UploadResponse(filename=request.filename, queued=scanner.enqueue(request.filename))


__all__ = ["router"]
