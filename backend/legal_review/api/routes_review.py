"""Review and knowledge-base management routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from legal_review.api.dependencies import get_synchronizer
from legal_review.models.dto import (
    AuditRequest,
    CaseDetailResponse,
    CaseUpdateRequest,
    ConfirmRequest,
    MessageResponse,
)
from legal_review.sync.synchronizer import CaseEdit, LedgerSynchronizer

router = APIRouter()


@router.post("/review/{entry_id}/confirm", response_model=MessageResponse, summary="Confirm an analysis")
def confirm_entry(
    entry_id: str,
    request: ConfirmRequest,
    sync: LedgerSynchronizer = Depends(get_synchronizer),
) -> MessageResponse:
    sync.confirm(entry_id, request.user_feedback)
    return MessageResponse(message="indexed")


@router.get("/cases", summary="List confirmed cases")
def list_cases(sync: LedgerSynchronizer = Depends(get_synchronizer)) -> dict[str, Any]:
    return {"success": True, "items": sync.list_indexed()}


@router.get("/cases/{entry_id}", response_model=CaseDetailResponse, summary="Case detail")
def get_case(entry_id: str, sync: LedgerSynchronizer = Depends(get_synchronizer)) -> CaseDetailResponse:
    return CaseDetailResponse(data=sync.get(entry_id))


@router.put("/cases/{entry_id}", response_model=MessageResponse, summary="Edit and re-index a case")
def update_case(
    entry_id: str,
    request: CaseUpdateRequest,
    sync: LedgerSynchronizer = Depends(get_synchronizer),
) -> MessageResponse:
    sync.update(
        entry_id,
        CaseEdit(full_content=request.full_content, user_feedback=request.user_feedback, doc_type=request.doc_type),
    )
    return MessageResponse(message="updated")


@router.delete("/cases/{entry_id}", response_model=MessageResponse, summary="Delete a case")
def delete_case(entry_id: str, sync: LedgerSynchronizer = Depends(get_synchronizer)) -> MessageResponse:
    sync.delete(entry_id)
    return MessageResponse(message="deleted")


@router.post("/cases/audit", summary="Compare ledger index flags with the semantic store")
def audit_cases(
    request: AuditRequest | None = None,
    sync: LedgerSynchronizer = Depends(get_synchronizer),
) -> dict[str, Any]:
    report = sync.audit(repair=bool(request and request.repair))
    return {"success": True, "report": report.to_dict()}


__all__ = ["router"]
