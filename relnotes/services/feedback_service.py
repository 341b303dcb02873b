"""
Feedback Capture Service
Owner: ② Release Note Workflow Owner

Records manager corrections and hands them to the learning engine in the
background. Capture never waits for pattern extraction; feedback whose
extraction could not be queued or failed stays unprocessed until the next
sweep.
"""

import logging
from typing import Optional

from relnotes.ai_core.learning.context import build_bug_context
from relnotes.ai_core.learning.pattern_engine import FeedbackNotFoundError, PatternLearningEngine
from relnotes.ai_core.learning.task_queue import (
    BackgroundTaskQueue,
    TaskQueueClosedError,
    TaskQueueFullError,
)
from relnotes.models import FeedbackAction, FeedbackRecord
from relnotes.repositories import BugRepository, FeedbackRepository, RecordNotFoundError

logger = logging.getLogger(__name__)


class BugNotFoundError(RecordNotFoundError):
    pass


class FeedbackService:
    """Captures manager feedback and schedules pattern extraction."""

    def __init__(
        self,
        bugs: BugRepository,
        feedback: FeedbackRepository,
        engine: PatternLearningEngine,
        task_queue: Optional[BackgroundTaskQueue] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.bugs = bugs
        self.feedback = feedback
        self.engine = engine
        self.task_queue = task_queue or BackgroundTaskQueue(name="pattern-extraction")
        self.logger = logger or logging.getLogger(__name__)

    async def capture_feedback(
        self,
        release_note_id: str,
        bug_id: str,
        manager_id: str,
        original_content: str,
        corrected_content: str,
        feedback_text: Optional[str] = None,
        action: FeedbackAction = FeedbackAction.APPROVED_WITH_CORRECTION,
    ) -> FeedbackRecord:
        """
        Persist a correction and queue its pattern extraction.

        Returns:
            The stored FeedbackRecord (patterns_extracted is False)

        Raises:
            BugNotFoundError: If the bug does not exist
        """
        bug = self.bugs.get(bug_id)
        if bug is None:
            raise BugNotFoundError(f"Bug {bug_id} not found")

        record = FeedbackRecord(
            release_note_id=release_note_id,
            bug_id=bug_id,
            manager_id=manager_id,
            original_content=original_content,
            corrected_content=corrected_content,
            feedback_text=feedback_text,
            action=action,
            bug_context=build_bug_context(bug),
        )
        self.feedback.create(record)
        self.logger.info(
            f"Captured {action.value} feedback {record.id} for release note {release_note_id}"
        )

        try:
            self.task_queue.submit(
                self.engine.extract_patterns_from_feedback,
                record.id,
                label=f"extract-patterns-{record.id}",
            )
        except (TaskQueueFullError, TaskQueueClosedError) as e:
            self.logger.warning(f"Pattern extraction for feedback {record.id} deferred to sweep: {e}")

        return record

    def get_feedback(self, feedback_id: str) -> FeedbackRecord:
        record = self.feedback.get(feedback_id)
        if record is None:
            raise FeedbackNotFoundError(f"Feedback {feedback_id} not found")
        return record

    def update_effectiveness_score(self, feedback_id: str, score: float) -> FeedbackRecord:
        return self.engine.update_effectiveness_score(feedback_id, score)

    def increment_usage_count(self, feedback_id: str) -> None:
        try:
            self.feedback.increment_usage(feedback_id)
        except RecordNotFoundError as e:
            raise FeedbackNotFoundError(str(e)) from e
