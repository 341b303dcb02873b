"""
Bug and User Models

Internal records for bugs mirrored from the defect tracker and the people
attached to them. Tracker-owned fields are refreshed by sync; the workflow
`status` belongs to the release-note process and is never written by sync.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from relnotes.utils.helpers import new_id, utc_now


class BugStatus(str, Enum):
    """Release-note workflow state mirrored onto the bug."""

    PENDING = "pending"  # No release note yet
    DRAFT = "draft"
    AI_GENERATED = "ai_generated"
    DEV_APPROVED = "dev_approved"
    MGR_APPROVED = "mgr_approved"
    REJECTED = "rejected"


class SyncStatus(str, Enum):
    """Outcome of the last tracker sync for a bug."""

    SYNCED = "synced"
    PENDING = "pending"
    FAILED = "failed"


class UserRole(str, Enum):
    DEVELOPER = "developer"
    MANAGER = "manager"
    ADMIN = "admin"


class User(BaseModel):
    """A person known to the system, keyed by unique email."""

    id: str = Field(default_factory=new_id)
    email: str
    name: str = ""
    role: UserRole = UserRole.DEVELOPER
    created_at: datetime = Field(default_factory=utc_now)


class BugRecord(BaseModel):
    """Internal copy of a tracker bug."""

    id: str = Field(default_factory=new_id)
    tracker_id: int  # Unique
    tracker_url: Optional[str] = None
    title: str
    description: Optional[str] = None
    severity: str = ""
    priority: str = ""
    bug_type: str = ""
    cve_number: Optional[str] = None
    assigned_to_id: Optional[str] = None
    watcher_ids: List[str] = []
    release: str = ""
    component: str = ""

    status: BugStatus = BugStatus.PENDING
    sync_status: SyncStatus = SyncStatus.PENDING
    last_synced_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
