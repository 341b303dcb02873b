"""
Learning Loop Routes

1. GET /api/patterns/top - Most frequent active patterns
2. POST /api/patterns/merge - Fold a duplicate pattern into another
3. POST /api/patterns/{pattern_id}/deactivate - Stop applying a pattern
4. POST /api/patterns/links/{link_id}/rating - Rate a pattern link as helpful or not
5. POST /api/patterns/feedback/process - Sweep feedback still awaiting extraction
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from relnotes.ai_core.learning.pattern_engine import PatternMergeError
from relnotes.models import Pattern, PatternLink
from relnotes.models.api_responses import (
    LinkRatingRequest,
    MergePatternsRequest,
    ProcessFeedbackResponse,
)
from relnotes.repositories import RecordNotFoundError
from relnotes.services.container import ServiceContainer, get_services

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/top", response_model=List[Pattern])
async def top_patterns(
    limit: int = Query(10, ge=1, le=100), services: ServiceContainer = Depends(get_services)
):
    return services.engine.get_top_patterns(limit)


@router.post("/merge", response_model=Pattern)
async def merge_patterns(request: MergePatternsRequest, services: ServiceContainer = Depends(get_services)):
    try:
        return services.engine.merge_patterns(request.source_id, request.target_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PatternMergeError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{pattern_id}/deactivate", response_model=Pattern)
async def deactivate_pattern(pattern_id: str, services: ServiceContainer = Depends(get_services)):
    try:
        return services.engine.deactivate_pattern(pattern_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/links/{link_id}/rating", response_model=PatternLink)
async def rate_link(link_id: str, request: LinkRatingRequest, services: ServiceContainer = Depends(get_services)):
    try:
        return services.engine.mark_link_helpful(link_id, request.was_helpful)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/feedback/process", response_model=ProcessFeedbackResponse)
async def process_feedback(
    limit: int = Query(50, ge=1, le=500), services: ServiceContainer = Depends(get_services)
):
    processed = await services.engine.process_unprocessed_feedback(limit)
    return ProcessFeedbackResponse(processed=processed)
