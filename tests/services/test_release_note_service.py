"""
Tests for the release note lifecycle and feedback capture.
Owner: ② Release Note Workflow Owner
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import pytest
import requests
from unittest.mock import Mock

from relnotes.ai_core.learning.task_queue import BackgroundTaskQueue
from relnotes.integrations.tracker.client import TrackerClient, TrackerRetryExhaustedError
from relnotes.integrations.tracker.models import TrackerComment
from relnotes.models import (
    BugContext,
    BugStatus,
    FeedbackAction,
    FeedbackRecord,
    GeneratedBy,
    Pattern,
    ReleaseNoteStatus,
)
from relnotes.services.feedback_service import BugNotFoundError, FeedbackService
from relnotes.services.release_note_service import (
    PLACEHOLDER_NOTICE,
    ReleaseNoteExistsError,
    ReleaseNoteNotFoundError,
)
from conftest import extraction_json, release_note_json

NOTE = "Resolved an issue where BGP sessions reset when a route map attached to a neighbor was updated."
COMMIT_TEXT = (
    "jane.doe committed https://review.example/c/eos/+/99 in eos.git (main):\n"
    "\n"
    "Keep BGP session on route map change\n"
    "Change-Id: I123\n"
)


def add_commit_comments(tracker, tracker_id=1001):
    tracker.comments[tracker_id] = [
        TrackerComment(id=1, bugId=tracker_id, user="gerrit", the_text=COMMIT_TEXT, epoch_time=1700000000),
        TrackerComment(id=2, bugId=tracker_id, user="qa", the_text="Verified on 4.32.0F"),
    ]


def make_response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.text = ""
    response.json.return_value = payload
    return response


def make_tracker_client(*outcomes):
    session = Mock()
    session.request.side_effect = list(outcomes)
    return TrackerClient(
        base_url="https://bugs.example.com", token="t", max_retries=3, session=session, sleep=lambda s: None
    )


class TestGenerate:
    """Test suite for creating release notes."""

    @pytest.mark.asyncio
    async def test_bug_context_keeps_only_commits(self, release_note_service, tracker, stored_bug):
        add_commit_comments(tracker)

        context = await release_note_service.get_bug_context(stored_bug.id)

        assert context.total_comments == 2
        assert len(context.commits) == 1
        assert context.commits[0].title == "Keep BGP session on route map change"
        assert tracker.comment_requests == [(1001, None)]

    @pytest.mark.asyncio
    async def test_ai_generation(self, release_note_service, tracker, chat_model, repos, stored_bug):
        add_commit_comments(tracker)
        chat_model.queue(release_note_json(NOTE, confidence=0.8))

        note = await release_note_service.generate_release_note(stored_bug.id, "dev-1")

        assert note.content == NOTE
        assert note.generated_by == GeneratedBy.AI
        assert note.status == ReleaseNoteStatus.AI_GENERATED
        assert note.ai_model == "test-model"
        # 0.8 → 0.85 → 0.9, third boost skipped at the threshold
        assert note.ai_confidence == pytest.approx(0.9)
        assert repos.bugs.get(stored_bug.id).status == BugStatus.AI_GENERATED

        prompt = chat_model.calls[0][-1].content
        assert "Keep BGP session on route map change" in prompt

    @pytest.mark.asyncio
    async def test_prompt_includes_learned_patterns_and_examples(
        self, release_note_service, chat_model, repos, stored_bug
    ):
        repos.patterns.create(
            Pattern(name="state_impact", category="content", description="Say what customers see",
                    applicable_when=BugContext(component="routing"))
        )
        repos.feedback.create(
            FeedbackRecord(
                release_note_id="old", bug_id="old-bug", manager_id="m",
                original_content="Fixed route map bug.", corrected_content="Resolved route map resets.",
                bug_context=BugContext(component="routing"),
                patterns_extracted=True, effectiveness_score=0.9,
            )
        )
        chat_model.queue(release_note_json(NOTE))

        await release_note_service.generate_release_note(stored_bug.id, "dev-1")

        prompt = chat_model.calls[0][-1].content
        assert "Say what customers see" in prompt
        assert "Corrected: Resolved route map resets." in prompt
        assert "No commit information available." in prompt

    @pytest.mark.asyncio
    async def test_placeholder_when_model_fails(self, release_note_service, chat_model, repos, stored_bug):
        chat_model.queue(ValueError("permission denied"))

        note = await release_note_service.generate_release_note(stored_bug.id, "dev-1")

        assert note.generated_by == GeneratedBy.PLACEHOLDER
        assert note.status == ReleaseNoteStatus.DRAFT
        assert note.content.startswith("Fixed: BGP session flaps when route map is updated in routing.")
        assert PLACEHOLDER_NOTICE in note.content
        assert repos.bugs.get(stored_bug.id).status == BugStatus.DRAFT

    @pytest.mark.asyncio
    async def test_tracker_failure_still_uses_model(self, release_note_service, tracker, chat_model, stored_bug):
        tracker.fail_with = TrackerRetryExhaustedError("down", attempts=3)
        chat_model.queue(release_note_json(NOTE, confidence=0.8))

        note = await release_note_service.generate_release_note(stored_bug.id, "dev-1")

        assert note.generated_by == GeneratedBy.AI
        assert note.status == ReleaseNoteStatus.AI_GENERATED
        assert len(chat_model.calls) == 1
        assert "No commit information available." in chat_model.calls[0][-1].content

    @pytest.mark.asyncio
    async def test_malformed_comments_payload_still_uses_model(
        self, release_note_service, chat_model, stored_bug
    ):
        release_note_service.tracker = make_tracker_client(
            make_response({"comments": [{"id": None}], "count": 1})
        )
        chat_model.queue(release_note_json(NOTE))

        note = await release_note_service.generate_release_note(stored_bug.id, "dev-1")

        assert note.generated_by == GeneratedBy.AI
        assert note.content == NOTE

    @pytest.mark.asyncio
    async def test_dropped_connection_then_model_failure_gives_placeholder(
        self, release_note_service, chat_model, stored_bug
    ):
        client = make_tracker_client(*[requests.exceptions.ChunkedEncodingError("connection broken")] * 3)
        release_note_service.tracker = client
        chat_model.queue(ValueError("permission denied"))

        note = await release_note_service.generate_release_note(stored_bug.id, "dev-1")

        assert client.session.request.call_count == 3
        assert note.generated_by == GeneratedBy.PLACEHOLDER
        assert PLACEHOLDER_NOTICE in note.content

    @pytest.mark.asyncio
    async def test_manual_content(self, release_note_service, chat_model, stored_bug):
        note = await release_note_service.generate_release_note(
            stored_bug.id, "dev-1", manual_content="  Fixed route map handling.  "
        )

        assert note.content == "Fixed route map handling."
        assert note.generated_by == GeneratedBy.MANUAL
        assert note.status == ReleaseNoteStatus.DRAFT
        assert chat_model.calls == []

    @pytest.mark.asyncio
    async def test_one_note_per_bug(self, release_note_service, stored_bug):
        await release_note_service.generate_release_note(stored_bug.id, "dev-1", manual_content="Fixed it.")
        with pytest.raises(ReleaseNoteExistsError):
            await release_note_service.generate_release_note(stored_bug.id, "dev-1", manual_content="Again.")

    @pytest.mark.asyncio
    async def test_unknown_bug(self, release_note_service):
        with pytest.raises(BugNotFoundError):
            await release_note_service.generate_release_note("missing", "dev-1")

    @pytest.mark.asyncio
    async def test_bulk_generation_reports_per_item(self, release_note_service, chat_model, stored_bug):
        chat_model.queue(release_note_json(NOTE))

        result = await release_note_service.bulk_generate_release_notes([stored_bug.id, "missing"], "dev-1")

        assert result.total == 2
        assert result.generated == 1
        assert result.failed == 1
        assert result.results[0].success
        assert result.results[1].error == "Bug missing not found"


class TestReview:
    """Test suite for edit, approval and rejection."""

    @pytest.mark.asyncio
    async def test_update_bumps_version_and_mirrors_status(self, release_note_service, repos, stored_bug):
        note = await release_note_service.generate_release_note(stored_bug.id, "dev-1", manual_content="Fixed it.")

        updated = release_note_service.update_release_note(
            note.id, "Fixed route maps.", "dev-1", status=ReleaseNoteStatus.DEV_APPROVED
        )

        assert updated.version == 2
        assert updated.approved_by_dev_id == "dev-1"
        assert updated.dev_approved_at is not None
        assert repos.bugs.get(stored_bug.id).status == BugStatus.DEV_APPROVED

        with pytest.raises(ReleaseNoteNotFoundError):
            release_note_service.update_release_note("missing", "x", "dev-1")

    @pytest.mark.asyncio
    async def test_approve_with_correction_feeds_learning(
        self, release_note_service, chat_model, task_queue, repos, stored_bug
    ):
        chat_model.queue(release_note_json(NOTE))
        note = await release_note_service.generate_release_note(stored_bug.id, "dev-1")
        corrected = "Resolved an issue where BGP sessions could reset after a route map change."
        chat_model.queue(
            extraction_json(
                [{"pattern_name": "avoid_internal_detail", "confidence": 0.9, "category": "clarity"}]
            )
        )

        approved = await release_note_service.approve_release_note(
            note.id, "mgr-1", corrected_content=corrected, feedback_text="Too detailed"
        )

        assert approved.content == corrected
        assert approved.version == 2
        assert approved.status == ReleaseNoteStatus.MGR_APPROVED
        assert approved.approved_by_mgr_id == "mgr-1"
        assert repos.bugs.get(stored_bug.id).status == BugStatus.MGR_APPROVED

        [feedback] = repos.feedback.list()
        assert feedback.original_content == NOTE
        assert feedback.corrected_content == corrected
        assert feedback.bug_context.component == "routing"

        await task_queue.join()
        assert repos.feedback.get(feedback.id).patterns_extracted
        assert repos.patterns.get_by_name("avoid_internal_detail") is not None

    @pytest.mark.asyncio
    async def test_approve_unchanged_records_no_feedback(self, release_note_service, repos, stored_bug):
        note = await release_note_service.generate_release_note(stored_bug.id, "dev-1", manual_content="Fixed it.")

        approved = await release_note_service.approve_release_note(note.id, "mgr-1", corrected_content=" Fixed it. ")

        assert approved.version == 1
        assert approved.status == ReleaseNoteStatus.MGR_APPROVED
        assert repos.feedback.list() == []

    @pytest.mark.asyncio
    async def test_reject_keeps_reason(self, release_note_service, repos, stored_bug):
        note = await release_note_service.generate_release_note(stored_bug.id, "dev-1", manual_content="Fixed it.")

        rejected = await release_note_service.reject_release_note(note.id, "mgr-1", feedback_text="Needs impact")

        assert rejected.status == ReleaseNoteStatus.REJECTED
        assert repos.bugs.get(stored_bug.id).status == BugStatus.REJECTED
        [feedback] = repos.feedback.list()
        assert feedback.action == FeedbackAction.SENT_BACK_TO_DEV
        assert feedback.feedback_text == "Needs impact"


class TestFeedbackCapture:
    """Test suite for FeedbackService."""

    @pytest.mark.asyncio
    async def test_capture_when_queue_closed(self, repos, engine, stored_bug):
        queue = BackgroundTaskQueue(workers=1, max_pending=1, name="closed")
        await queue.shutdown()
        service = FeedbackService(bugs=repos.bugs, feedback=repos.feedback, engine=engine, task_queue=queue)

        record = await service.capture_feedback("rn-1", stored_bug.id, "mgr-1", "old", "new")

        stored = service.get_feedback(record.id)
        assert not stored.patterns_extracted
        assert [f.id for f in repos.feedback.list_unprocessed(10)] == [record.id]

    @pytest.mark.asyncio
    async def test_capture_unknown_bug(self, feedback_service):
        with pytest.raises(BugNotFoundError):
            await feedback_service.capture_feedback("rn-1", "missing", "mgr-1", "old", "new")

    @pytest.mark.asyncio
    async def test_usage_and_effectiveness(self, repos, feedback_service, chat_model, task_queue, stored_bug):
        chat_model.queue(extraction_json([]))
        record = await feedback_service.capture_feedback("rn-1", stored_bug.id, "mgr-1", "old", "new")
        await task_queue.join()

        feedback_service.increment_usage_count(record.id)
        feedback_service.update_effectiveness_score(record.id, 0.75)

        stored = feedback_service.get_feedback(record.id)
        assert stored.times_used_as_example == 1
        assert stored.effectiveness_score == 0.75
