"""
Tracker Sync Service
Owner: ① Tracker Integration & Sync Owner

Responsibilities:
- Pull a release's bugs from the tracker
- Provision users for every assignee, reviewer and watcher email
- Create or refresh internal bug records without touching workflow status
- Report per-bug failures without aborting the batch
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from relnotes.config import get_settings
from relnotes.integrations.tracker.client import TrackerClient, TrackerError
from relnotes.integrations.tracker.mapper import (
    extract_unique_emails,
    map_tracker_bug,
    merge_tracker_bug,
    tracker_bug_url,
)
from relnotes.integrations.tracker.models import BugFilters, TrackerBug
from relnotes.models import BugRecord, SyncStatus, User, UserRole
from relnotes.repositories import (
    BugRepository,
    DuplicateRecordError,
    RecordNotFoundError,
    UserRepository,
)
from relnotes.utils.helpers import name_from_email, utc_now

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Raised when the tracker fetch that starts a sync fails."""

    pass


class SyncResult(BaseModel):
    """Outcome of one release sync."""

    total_fetched: int = 0
    new_bugs: int = 0
    updated_bugs: int = 0
    failed_bugs: int = 0
    synced_at: datetime = Field(default_factory=utc_now)
    errors: List[str] = []


class SyncStatusSummary(BaseModel):
    """Sync state of the bugs stored for a release."""

    release: str
    total_bugs: int = 0
    synced_bugs: int = 0
    pending_bugs: int = 0
    failed_bugs: int = 0
    last_synced_at: Optional[datetime] = None


class TrackerSyncService:
    """Mirrors tracker bugs into the bug repository."""

    def __init__(
        self,
        tracker: TrackerClient,
        bugs: BugRepository,
        users: UserRepository,
        logger: Optional[logging.Logger] = None,
    ):
        self.tracker = tracker
        self.bugs = bugs
        self.users = users
        self.logger = logger or logging.getLogger(__name__)
        self.settings = get_settings()

    async def sync_release(self, release: str, filters: Optional[BugFilters] = None) -> SyncResult:
        """
        Sync every bug of a release.

        Raises:
            SyncError: If the tracker fetch fails (nothing is written)
        """
        self.logger.info(f"Starting sync for release {release}")

        try:
            response = await asyncio.to_thread(self.tracker.get_bugs_by_release, release, filters)
        except (TrackerError, ValueError) as e:
            self.logger.error(f"Failed to fetch bugs for release {release}: {e}")
            raise SyncError(f"Failed to fetch bugs for release {release}: {e}") from e

        result = SyncResult(total_fetched=len(response.bugs))
        if not response.bugs:
            self.logger.info(f"No bugs found for release {release}")
            return result

        tracker_bugs = []
        for raw in response.bugs:
            try:
                tracker_bugs.append(TrackerBug.model_validate(raw))
            except ValidationError as e:
                raw_id = raw.get("id") if isinstance(raw, dict) else None
                result.failed_bugs += 1
                result.errors.append(f"Bug {raw_id}: invalid tracker record ({e.error_count()} validation errors)")
                self.logger.error(f"Skipping malformed tracker record {raw_id}: {e}")

        email_to_user_id = self._ensure_users(tracker_bugs)

        for tracker_bug in tracker_bugs:
            try:
                _, created = self._upsert_bug(tracker_bug, email_to_user_id)
            except (RecordNotFoundError, DuplicateRecordError, ValueError) as e:
                result.failed_bugs += 1
                result.errors.append(f"Bug {tracker_bug.id}: {e}")
                self.logger.error(f"Failed to sync bug {tracker_bug.id}: {e}")
                continue

            if created:
                result.new_bugs += 1
            else:
                result.updated_bugs += 1

        result.synced_at = utc_now()
        self.logger.info(
            f"Sync for release {release} finished: fetched={result.total_fetched}, "
            f"new={result.new_bugs}, updated={result.updated_bugs}, failed={result.failed_bugs}"
        )
        return result

    async def sync_bug_by_id(self, tracker_id: int) -> BugRecord:
        """
        Sync a single bug.

        Raises:
            TrackerBugNotFoundError: If the tracker has no such bug
            TrackerError: On other tracker failures
        """
        tracker_bug = await asyncio.to_thread(self.tracker.get_bug_by_id, tracker_id)
        email_to_user_id = self._ensure_users([tracker_bug])
        bug, created = self._upsert_bug(tracker_bug, email_to_user_id)
        self.logger.info(f"Synced bug {tracker_id} ({'created' if created else 'updated'})")
        return bug

    def get_sync_status(self, release: str) -> SyncStatusSummary:
        bugs = self.bugs.list_by_release(release)
        summary = SyncStatusSummary(release=release, total_bugs=len(bugs))
        for bug in bugs:
            if bug.sync_status == SyncStatus.SYNCED:
                summary.synced_bugs += 1
            elif bug.sync_status == SyncStatus.FAILED:
                summary.failed_bugs += 1
            else:
                summary.pending_bugs += 1
            if bug.last_synced_at and (
                summary.last_synced_at is None or bug.last_synced_at > summary.last_synced_at
            ):
                summary.last_synced_at = bug.last_synced_at
        return summary

    def _ensure_users(self, bugs: List[TrackerBug]) -> Dict[str, str]:
        """Resolve every email on the bugs to a user id, creating developers as needed."""
        email_to_user_id: Dict[str, str] = {}
        for email in extract_unique_emails(bugs):
            user = self.users.get_by_email(email)
            if user is None:
                try:
                    user = self.users.create(
                        User(email=email, name=name_from_email(email), role=UserRole.DEVELOPER)
                    )
                    self.logger.info(f"Created user for {email}")
                except DuplicateRecordError:
                    user = self.users.get_by_email(email)
                    if user is None:
                        self.logger.error(f"Failed to provision user {email}, skipping")
                        continue
            email_to_user_id[email] = user.id
        return email_to_user_id

    def _upsert_bug(self, tracker_bug: TrackerBug, email_to_user_id: Dict[str, str]):
        """Returns (record, created)."""
        existing = self.bugs.get_by_tracker_id(tracker_bug.id)
        if existing is None:
            url = tracker_bug_url(self.tracker.base_url, self.tracker.api_version, tracker_bug.id)
            try:
                return self.bugs.create(map_tracker_bug(tracker_bug, email_to_user_id, url)), True
            except DuplicateRecordError:
                # A concurrent sync inserted it between the lookup and the create
                existing = self.bugs.get_by_tracker_id(tracker_bug.id)
                if existing is None:
                    raise

        merge_tracker_bug(existing, tracker_bug, email_to_user_id)
        return self.bugs.update(existing), False
