"""
Release Note Routes

1. POST /api/release-notes/bugs/{bug_id}/generate - Draft (or store) a bug's note
2. POST /api/release-notes/bulk-generate - Draft notes for several bugs
3. PUT /api/release-notes/{note_id} - Edit a note
4. POST /api/release-notes/{note_id}/approve - Manager approval (optionally corrected)
5. POST /api/release-notes/{note_id}/reject - Send back to the developer
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from relnotes.models import ReleaseNote
from relnotes.models.api_responses import (
    ApproveReleaseNoteRequest,
    BulkGenerateRequest,
    GenerateReleaseNoteRequest,
    RejectReleaseNoteRequest,
    UpdateReleaseNoteRequest,
)
from relnotes.repositories import RecordNotFoundError
from relnotes.services.container import ServiceContainer, get_services
from relnotes.services.release_note_service import BulkGenerationResult, ReleaseNoteExistsError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/bugs/{bug_id}/generate", response_model=ReleaseNote, status_code=201)
async def generate_release_note(
    bug_id: str, request: GenerateReleaseNoteRequest, services: ServiceContainer = Depends(get_services)
):
    try:
        return await services.release_note_service.generate_release_note(
            bug_id, request.user_id, manual_content=request.manual_content
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReleaseNoteExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/bulk-generate", response_model=BulkGenerationResult)
async def bulk_generate(request: BulkGenerateRequest, services: ServiceContainer = Depends(get_services)):
    return await services.release_note_service.bulk_generate_release_notes(request.bug_ids, request.user_id)


@router.get("/{note_id}", response_model=ReleaseNote)
async def get_release_note(note_id: str, services: ServiceContainer = Depends(get_services)):
    try:
        return services.release_note_service.get_release_note(note_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{note_id}", response_model=ReleaseNote)
async def update_release_note(
    note_id: str, request: UpdateReleaseNoteRequest, services: ServiceContainer = Depends(get_services)
):
    try:
        return services.release_note_service.update_release_note(
            note_id, request.content, request.user_id, status=request.status
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{note_id}/approve", response_model=ReleaseNote)
async def approve_release_note(
    note_id: str, request: ApproveReleaseNoteRequest, services: ServiceContainer = Depends(get_services)
):
    try:
        return await services.release_note_service.approve_release_note(
            note_id,
            request.manager_id,
            corrected_content=request.corrected_content,
            feedback_text=request.feedback_text,
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{note_id}/reject", response_model=ReleaseNote)
async def reject_release_note(
    note_id: str, request: RejectReleaseNoteRequest, services: ServiceContainer = Depends(get_services)
):
    try:
        return await services.release_note_service.reject_release_note(
            note_id, request.manager_id, feedback_text=request.feedback_text
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
