"""Pipeline trigger routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from legal_review.api.dependencies import get_pipeline
from legal_review.models.dto import RunRequest, RunResponse
from legal_review.pipeline.analysis import AnalysisPipeline

router = APIRouter()


@router.post("/run", response_model=RunResponse, summary="Analyze queued documents")
def run_pipeline(
    request: RunRequest | None = None,
    pipeline: AnalysisPipeline = Depends(get_pipeline),
) -> RunResponse:
    request = request or RunRequest()
    outcomes = pipeline.run(
        entry_id=request.entry_id,
        batch_size=request.batch_size,
        reanalyze=request.reanalyze,
    )
    return RunResponse(processed=[outcome.to_dict() for outcome in outcomes])


__all__ = ["router"]
