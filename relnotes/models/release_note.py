"""
Release Note Models

A release note is the customer-facing summary of a bug fix. Exactly one note
exists per bug; every edit bumps `version`.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from relnotes.utils.helpers import new_id, utc_now


class ReleaseNoteStatus(str, Enum):
    """Workflow: draft → ai_generated → dev_approved → mgr_approved, or rejected."""

    DRAFT = "draft"
    AI_GENERATED = "ai_generated"
    DEV_APPROVED = "dev_approved"
    MGR_APPROVED = "mgr_approved"
    REJECTED = "rejected"


class GeneratedBy(str, Enum):
    AI = "ai"
    MANUAL = "manual"
    PLACEHOLDER = "placeholder"  # AI failed; templated note awaiting edits


class ReleaseNote(BaseModel):
    """Persisted release note."""

    id: str = Field(default_factory=new_id)
    bug_id: str  # Unique
    content: str
    version: int = 1
    generated_by: GeneratedBy = GeneratedBy.MANUAL
    ai_model: Optional[str] = None
    ai_confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    status: ReleaseNoteStatus = ReleaseNoteStatus.DRAFT

    created_by_id: Optional[str] = None
    approved_by_dev_id: Optional[str] = None
    approved_by_mgr_id: Optional[str] = None
    dev_approved_at: Optional[datetime] = None
    mgr_approved_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class GeneratedReleaseNote(BaseModel):
    """Result of one AI generation, after parsing and confidence calibration."""

    content: str = Field(..., description="Customer-facing release note text")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Calibrated confidence")
    model: str = Field(..., description="Model that produced the note")
    reasoning: str = Field("", description="Model's explanation of its confidence")
    alternative_versions: List[str] = Field(
        default_factory=list, description="Alternative phrasings offered by the model"
    )
