"""Manual training routes."""

from __future__ import annotations

import base64
import binascii

from fastapi import APIRouter, Depends, HTTPException

from legal_review.api.dependencies import get_trainer
from legal_review.models.dto import TrainAnalyzeRequest, TrainAnalyzeResponse, TrainSaveRequest, TrainSaveResponse
from legal_review.training.manual import ManualTrainer

router = APIRouter()


@router.post("/analyze", response_model=TrainAnalyzeResponse, summary="Compare rules-only and history-aware analysis")
def analyze_upload(
    request: TrainAnalyzeRequest,
    trainer: ManualTrainer = Depends(get_trainer),
) -> TrainAnalyzeResponse:
    try:
        file_bytes = base64.b64decode(request.file_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail="file_base64 is not valid base64") from exc
    payload = trainer.analyze(file_bytes, request.mime_type, request.doc_type, request.file_name)
    return TrainAnalyzeResponse(**payload)


@router.post("/save", response_model=TrainSaveResponse, summary="Store a verified instruction")
def save_instruction(
    request: TrainSaveRequest,
    trainer: ManualTrainer = Depends(get_trainer),
) -> TrainSaveResponse:
    vector_id = trainer.save(
        doc_type=request.doc_type,
        extraction=request.extraction,
        analysis=request.analysis,
        feedback=request.user_feedback,
        file_name=request.file_name,
    )
    return TrainSaveResponse(upsert_id=vector_id)


__all__ = ["router"]
