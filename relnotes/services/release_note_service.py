"""
Release Note Service
Owner: ② Release Note Workflow Owner

Responsibilities:
- Gather bug context (bug record + commits parsed from tracker comments)
- Create a release note: manual text, AI draft, or placeholder when AI fails
- Edit / approve / reject, mirroring the note status onto the bug
- Close the learning loop: manager corrections become feedback
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel

from relnotes.ai_core.generation.client import GenerationError
from relnotes.ai_core.generation.release_note_generator import ReleaseNoteGenerator
from relnotes.ai_core.learning.context import build_bug_context
from relnotes.ai_core.learning.pattern_engine import PatternLearningEngine
from relnotes.config import get_settings
from relnotes.integrations.tracker.client import TrackerClient, TrackerError
from relnotes.integrations.tracker.parser import ParsedCommit, parse_comment
from relnotes.models import (
    BugRecord,
    BugStatus,
    FeedbackAction,
    GeneratedBy,
    ReleaseNote,
    ReleaseNoteStatus,
)
from relnotes.repositories import (
    BugRepository,
    DuplicateRecordError,
    RecordNotFoundError,
    ReleaseNoteRepository,
)
from relnotes.services.feedback_service import BugNotFoundError, FeedbackService
from relnotes.utils.helpers import utc_now

logger = logging.getLogger(__name__)

PLACEHOLDER_NOTICE = "[This is a placeholder release note. Please edit with actual details.]"


class ReleaseNoteNotFoundError(RecordNotFoundError):
    pass


class ReleaseNoteExistsError(Exception):
    """Raised when generating a note for a bug that already has one."""

    pass


@dataclass
class BugGenerationContext:
    bug: BugRecord
    commits: List[ParsedCommit] = field(default_factory=list)
    total_comments: int = 0


class BulkGenerationItem(BaseModel):
    bug_id: str
    success: bool
    release_note_id: Optional[str] = None
    error: Optional[str] = None


class BulkGenerationResult(BaseModel):
    total: int = 0
    generated: int = 0
    failed: int = 0
    results: List[BulkGenerationItem] = []


def build_placeholder_content(bug: BugRecord) -> str:
    """Template note used when the model is unavailable."""
    headline = f"Fixed: {bug.title}"
    if bug.component:
        headline += f" in {bug.component}"
    return (
        f"{headline}.\n\n"
        f"Severity: {bug.severity}\n"
        f"Priority: {bug.priority}\n\n"
        f"{PLACEHOLDER_NOTICE}"
    )


class ReleaseNoteService:
    """Release note lifecycle."""

    def __init__(
        self,
        bugs: BugRepository,
        release_notes: ReleaseNoteRepository,
        tracker: TrackerClient,
        generator: ReleaseNoteGenerator,
        engine: PatternLearningEngine,
        feedback_service: FeedbackService,
        logger: Optional[logging.Logger] = None,
    ):
        self.bugs = bugs
        self.release_notes = release_notes
        self.tracker = tracker
        self.generator = generator
        self.engine = engine
        self.feedback_service = feedback_service
        self.logger = logger or logging.getLogger(__name__)
        self.settings = get_settings()

    def _get_bug(self, bug_id: str) -> BugRecord:
        bug = self.bugs.get(bug_id)
        if bug is None:
            raise BugNotFoundError(f"Bug {bug_id} not found")
        return bug

    def get_release_note(self, note_id: str) -> ReleaseNote:
        note = self.release_notes.get(note_id)
        if note is None:
            raise ReleaseNoteNotFoundError(f"Release note {note_id} not found")
        return note

    def get_release_note_by_bug_id(self, bug_id: str) -> ReleaseNote:
        note = self.release_notes.get_by_bug_id(bug_id)
        if note is None:
            raise ReleaseNoteNotFoundError(f"No release note for bug {bug_id}")
        return note

    def _mirror_status(self, bug_id: str, status: ReleaseNoteStatus) -> None:
        bug = self.bugs.get(bug_id)
        if bug is None:
            self.logger.error(f"Bug {bug_id} disappeared, cannot mirror status {status.value}")
            return
        bug.status = BugStatus(status.value)
        self.bugs.update(bug)

    async def get_bug_context(self, bug_id: str) -> BugGenerationContext:
        """
        Load a bug and the commits announced in its tracker comments.

        Raises:
            BugNotFoundError: If the bug does not exist
            TrackerError: If the comments cannot be fetched
        """
        bug = self._get_bug(bug_id)
        user_filter = self.settings.tracker_commit_user or None
        response = await asyncio.to_thread(self.tracker.get_bug_comments, bug.tracker_id, user_filter)

        commits = []
        for comment in response.comments:
            parsed = parse_comment(comment, self.settings.review_url_prefixes)
            if parsed.is_commit:
                commits.append(parsed)

        self.logger.info(
            f"Bug {bug.tracker_id}: {len(response.comments)} comments, {len(commits)} commits parsed"
        )
        return BugGenerationContext(bug=bug, commits=commits, total_comments=len(response.comments))

    async def generate_release_note(
        self, bug_id: str, user_id: str, manual_content: Optional[str] = None
    ) -> ReleaseNote:
        """
        Create the release note for a bug.

        Manual content is stored as a draft. Otherwise the model drafts it,
        without commits if the tracker cannot be reached. If generation fails
        a templated placeholder draft is stored instead.

        Raises:
            BugNotFoundError: If the bug does not exist
            ReleaseNoteExistsError: If the bug already has a release note
        """
        bug = self._get_bug(bug_id)
        if self.release_notes.get_by_bug_id(bug_id) is not None:
            raise ReleaseNoteExistsError(f"Release note already exists for bug {bug_id}")

        if manual_content and manual_content.strip():
            note = ReleaseNote(
                bug_id=bug_id,
                content=manual_content.strip(),
                generated_by=GeneratedBy.MANUAL,
                status=ReleaseNoteStatus.DRAFT,
                created_by_id=user_id,
            )
        else:
            try:
                note = await self._generate_with_ai(bug, user_id)
            except GenerationError as e:
                self.logger.warning(f"AI generation failed for bug {bug.tracker_id}, using placeholder: {e}")
                note = ReleaseNote(
                    bug_id=bug_id,
                    content=build_placeholder_content(bug),
                    generated_by=GeneratedBy.PLACEHOLDER,
                    status=ReleaseNoteStatus.DRAFT,
                    created_by_id=user_id,
                )

        try:
            self.release_notes.create(note)
        except DuplicateRecordError as e:
            raise ReleaseNoteExistsError(f"Release note already exists for bug {bug_id}") from e

        self._mirror_status(bug_id, note.status)
        self.logger.info(
            f"Release note {note.id} created for bug {bug.tracker_id} (generated_by={note.generated_by.value})"
        )
        return note

    async def _generate_with_ai(self, bug: BugRecord, user_id: str) -> ReleaseNote:
        try:
            commits = (await self.get_bug_context(bug.id)).commits
        except TrackerError as e:
            self.logger.warning(f"Could not load commits for bug {bug.tracker_id}, will try AI without commits: {e}")
            commits = []

        examples = self.engine.get_best_examples_for_bug(bug, limit=self.settings.example_limit)
        patterns = self.engine.find_matching_patterns(build_bug_context(bug))

        generated = await self.generator.generate_release_note(
            bug, commits, examples=examples, patterns=patterns
        )
        return ReleaseNote(
            bug_id=bug.id,
            content=generated.content,
            generated_by=GeneratedBy.AI,
            ai_model=generated.model,
            ai_confidence=generated.confidence,
            status=ReleaseNoteStatus.AI_GENERATED,
            created_by_id=user_id,
        )

    async def bulk_generate_release_notes(self, bug_ids: List[str], user_id: str) -> BulkGenerationResult:
        """Generate notes one bug at a time; failures are reported per item."""
        result = BulkGenerationResult(total=len(bug_ids))
        for bug_id in bug_ids:
            try:
                note = await self.generate_release_note(bug_id, user_id)
            except (RecordNotFoundError, ReleaseNoteExistsError) as e:
                result.failed += 1
                result.results.append(BulkGenerationItem(bug_id=bug_id, success=False, error=str(e)))
                continue
            result.generated += 1
            result.results.append(BulkGenerationItem(bug_id=bug_id, success=True, release_note_id=note.id))

        self.logger.info(
            f"Bulk generation completed: total={result.total}, generated={result.generated}, failed={result.failed}"
        )
        return result

    def update_release_note(
        self,
        note_id: str,
        content: str,
        user_id: str,
        status: Optional[ReleaseNoteStatus] = None,
    ) -> ReleaseNote:
        """Edit a note. Every edit bumps the version."""
        note = self.get_release_note(note_id)
        note.content = content
        note.version += 1

        if status is not None:
            note.status = status
            if status == ReleaseNoteStatus.DEV_APPROVED:
                note.approved_by_dev_id = user_id
                note.dev_approved_at = utc_now()

        self.release_notes.update(note)
        if status is not None:
            self._mirror_status(note.bug_id, status)

        self.logger.info(f"Release note {note_id} updated to version {note.version}")
        return note

    async def approve_release_note(
        self,
        note_id: str,
        manager_id: str,
        corrected_content: Optional[str] = None,
        feedback_text: Optional[str] = None,
    ) -> ReleaseNote:
        """
        Manager approval. A corrected text that differs from the current one
        replaces it and is captured as feedback for the learning loop.
        """
        note = self.get_release_note(note_id)

        corrected = (corrected_content or "").strip()
        if corrected and corrected != note.content.strip():
            await self.feedback_service.capture_feedback(
                release_note_id=note.id,
                bug_id=note.bug_id,
                manager_id=manager_id,
                original_content=note.content,
                corrected_content=corrected,
                feedback_text=feedback_text,
                action=FeedbackAction.APPROVED_WITH_CORRECTION,
            )
            note.content = corrected
            note.version += 1

        note.status = ReleaseNoteStatus.MGR_APPROVED
        note.approved_by_mgr_id = manager_id
        note.mgr_approved_at = utc_now()
        self.release_notes.update(note)
        self._mirror_status(note.bug_id, note.status)

        self.logger.info(f"Release note {note_id} approved by manager {manager_id}")
        return note

    async def reject_release_note(
        self, note_id: str, manager_id: str, feedback_text: Optional[str] = None
    ) -> ReleaseNote:
        """Send a note back to the developer, keeping the manager's reason as feedback."""
        note = self.get_release_note(note_id)

        if feedback_text and feedback_text.strip():
            await self.feedback_service.capture_feedback(
                release_note_id=note.id,
                bug_id=note.bug_id,
                manager_id=manager_id,
                original_content=note.content,
                corrected_content=note.content,
                feedback_text=feedback_text.strip(),
                action=FeedbackAction.SENT_BACK_TO_DEV,
            )

        note.status = ReleaseNoteStatus.REJECTED
        self.release_notes.update(note)
        self._mirror_status(note.bug_id, note.status)

        self.logger.info(f"Release note {note_id} rejected by manager {manager_id}")
        return note
