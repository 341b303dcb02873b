"""
Tracker Sync Routes

1. POST /api/sync/release - Sync every bug of a release
2. POST /api/sync/bugs/{tracker_id} - Sync one bug
3. GET /api/sync/status/{release} - Sync state of a release
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from relnotes.integrations.tracker.client import TrackerBugNotFoundError, TrackerError
from relnotes.models import BugRecord
from relnotes.models.api_responses import SyncReleaseRequest
from relnotes.services.container import ServiceContainer, get_services
from relnotes.services.sync_service import SyncError, SyncResult, SyncStatusSummary

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/release", response_model=SyncResult)
async def sync_release(request: SyncReleaseRequest, services: ServiceContainer = Depends(get_services)):
    try:
        return await services.sync_service.sync_release(request.release, request.filters)
    except SyncError as e:
        logger.error(f"Release sync failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/bugs/{tracker_id}", response_model=BugRecord)
async def sync_bug(tracker_id: int, services: ServiceContainer = Depends(get_services)):
    try:
        return await services.sync_service.sync_bug_by_id(tracker_id)
    except TrackerBugNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TrackerError as e:
        logger.error(f"Sync of bug {tracker_id} failed: {e}")
        raise HTTPException(status_code=502, detail=f"Tracker error: {e}")


@router.get("/status/{release}", response_model=SyncStatusSummary)
async def sync_status(release: str, services: ServiceContainer = Depends(get_services)):
    return services.sync_service.get_sync_status(release)
