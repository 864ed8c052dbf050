"""Administrative routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from legal_review.api.dependencies import get_rule_loader
from legal_review.core.logging import get_logger
from legal_review.models.dto import RulesReloadResponse
from legal_review.rules.loader import RuleLoader

logger = get_logger(__name__)

router = APIRouter()


@router.post("/rules/reload", response_model=RulesReloadResponse, summary="Refetch rule documents")
def reload_rules(loader: RuleLoader = Depends(get_rule_loader)) -> RulesReloadResponse:
    loader.invalidate()
    rules = loader.load_rules()
    if not rules.loaded:
        logger.warning("Rule reload failed; the next run retries the fetch")
    return RulesReloadResponse(loaded=rules.loaded)


__all__ = ["router"]
