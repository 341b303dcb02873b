"""
Tracker → internal record mapping.

Only tracker-owned fields are written here. The workflow `status` of an
existing record is left alone.
"""

from typing import Dict, List, Optional

from relnotes.integrations.tracker.models import TrackerBug
from relnotes.models import BugRecord, BugStatus, SyncStatus
from relnotes.utils.helpers import utc_now


def tracker_bug_url(base_url: str, api_version: str, bug_id: int) -> str:
    return f"{base_url.rstrip('/')}/{api_version}/bugs/{bug_id}"


def extract_unique_emails(bugs: List[TrackerBug]) -> List[str]:
    """Distinct non-empty assignee, reviewer and watcher emails in first-seen order."""
    seen: Dict[str, None] = {}
    for bug in bugs:
        for email in [bug.assignee, *bug.review_list, *bug.watchers]:
            email = (email or "").strip()
            if email:
                seen.setdefault(email, None)
    return list(seen)


def _watcher_ids(bug: TrackerBug, email_to_user_id: Dict[str, str]) -> List[str]:
    ids = []
    for email in bug.watchers:
        user_id = email_to_user_id.get(email)
        if user_id and user_id not in ids:
            ids.append(user_id)
    return ids


def map_tracker_bug(
    bug: TrackerBug, email_to_user_id: Dict[str, str], tracker_url: Optional[str] = None
) -> BugRecord:
    """Build a new BugRecord from a tracker bug."""
    return BugRecord(
        tracker_id=bug.id,
        tracker_url=tracker_url,
        title=bug.title,
        description=bug.description or None,
        severity=bug.severity,
        priority=bug.priority,
        bug_type=bug.issue_type,
        cve_number=bug.cve or None,
        assigned_to_id=email_to_user_id.get(bug.assignee),
        watcher_ids=_watcher_ids(bug, email_to_user_id),
        release=bug.release,
        component=bug.component,
        status=BugStatus.PENDING,
        sync_status=SyncStatus.SYNCED,
        last_synced_at=utc_now(),
    )


def merge_tracker_bug(
    existing: BugRecord, bug: TrackerBug, email_to_user_id: Dict[str, str]
) -> BugRecord:
    """Refresh tracker-owned fields of an existing record in place and return it."""
    existing.title = bug.title
    existing.severity = bug.severity
    existing.priority = bug.priority
    existing.bug_type = bug.issue_type
    existing.release = bug.release
    existing.component = bug.component
    if bug.description:
        existing.description = bug.description
    if bug.cve:
        existing.cve_number = bug.cve
    if bug.assignee and bug.assignee in email_to_user_id:
        existing.assigned_to_id = email_to_user_id[bug.assignee]
    watcher_ids = _watcher_ids(bug, email_to_user_id)
    if watcher_ids:
        existing.watcher_ids = watcher_ids
    existing.sync_status = SyncStatus.SYNCED
    existing.last_synced_at = utc_now()
    return existing
