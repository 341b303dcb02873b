"""
API Request/Response Models

Pydantic models for the HTTP surface.
"""

from pydantic import BaseModel, Field
from typing import List, Optional

from relnotes.integrations.tracker.models import BugFilters
from relnotes.models.release_note import ReleaseNoteStatus


class SyncReleaseRequest(BaseModel):
    """Request model for a release sync."""

    release: str = Field(..., min_length=1, description="Tracker release name")
    filters: Optional[BugFilters] = Field(
        None, description="Optional extra filters (status, component, severity, ...)"
    )


class GenerateReleaseNoteRequest(BaseModel):
    user_id: str = Field(..., description="User creating the note")
    manual_content: Optional[str] = Field(
        None, description="Note text to store as-is instead of asking the model"
    )


class BulkGenerateRequest(BaseModel):
    user_id: str
    bug_ids: List[str] = Field(..., min_length=1)


class UpdateReleaseNoteRequest(BaseModel):
    user_id: str
    content: str = Field(..., min_length=1)
    status: Optional[ReleaseNoteStatus] = None


class ApproveReleaseNoteRequest(BaseModel):
    manager_id: str
    corrected_content: Optional[str] = Field(
        None, description="Manager's corrected text; captured as feedback when it differs"
    )
    feedback_text: Optional[str] = Field(None, description="Why the text was corrected")


class RejectReleaseNoteRequest(BaseModel):
    manager_id: str
    feedback_text: Optional[str] = Field(None, description="Reason for sending the note back")


class MergePatternsRequest(BaseModel):
    source_id: str
    target_id: str


class LinkRatingRequest(BaseModel):
    was_helpful: bool


class ProcessFeedbackResponse(BaseModel):
    processed: int = Field(..., description="Feedback records whose patterns were extracted")
