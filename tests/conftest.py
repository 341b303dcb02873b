"""
Shared fixtures: in-memory repositories, a scripted chat model, and a fake
tracker, wired into the real services.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import json
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from langchain_core.messages import AIMessage

from relnotes.ai_core.generation.client import GenerationClient
from relnotes.ai_core.generation.release_note_generator import ReleaseNoteGenerator
from relnotes.ai_core.learning.pattern_engine import PatternLearningEngine
from relnotes.ai_core.learning.task_queue import BackgroundTaskQueue
from relnotes.integrations.tracker.client import TrackerBugNotFoundError
from relnotes.integrations.tracker.models import (
    BugFilters,
    CommentsResponse,
    TrackerBug,
    TrackerComment,
    TrackerResponse,
)
from relnotes.models import BugRecord
from relnotes.repositories import InMemoryRepositories
from relnotes.services.feedback_service import FeedbackService
from relnotes.services.release_note_service import ReleaseNoteService
from relnotes.services.sync_service import TrackerSyncService


class ScriptedChatModel:
    """
    Stand-in for a LangChain chat model. Each ainvoke() consumes the next
    scripted item: a string becomes an AIMessage, an exception is raised.
    """

    def __init__(self, responses: Optional[List] = None):
        self.responses = list(responses or [])
        self.calls: List[list] = []

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    async def ainvoke(self, messages, **kwargs):
        self.calls.append(messages)
        if not self.responses:
            raise AssertionError("ScriptedChatModel has no response left")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return AIMessage(content=item)


class FakeTracker:
    """In-memory tracker exposing the TrackerClient operations the services use."""

    base_url = "https://bugs.example.com"
    api_version = "v3"

    def __init__(self):
        self.bugs: Dict[int, TrackerBug] = {}
        self.comments: Dict[int, List[TrackerComment]] = {}
        self.fail_with: Optional[Exception] = None
        self.comment_requests: List[tuple] = []
        # Release records returned as-is, after the stored bugs
        self.raw_records: List[dict] = []

    def add_bug(self, **fields) -> TrackerBug:
        bug = TrackerBug(**fields)
        self.bugs[bug.id] = bug
        return bug

    def get_bugs_by_release(self, release: str, filters: Optional[BugFilters] = None) -> TrackerResponse:
        if self.fail_with:
            raise self.fail_with
        bugs = [b for b in self.bugs.values() if b.release == release] + self.raw_records
        return TrackerResponse(bugs=bugs, count=len(bugs), total=len(bugs))

    def get_bug_by_id(self, bug_id: int) -> TrackerBug:
        if self.fail_with:
            raise self.fail_with
        if bug_id not in self.bugs:
            raise TrackerBugNotFoundError(bug_id)
        return self.bugs[bug_id]

    def get_bug_comments(self, bug_id: int, user: Optional[str] = None) -> CommentsResponse:
        self.comment_requests.append((bug_id, user))
        if self.fail_with:
            raise self.fail_with
        comments = [c for c in self.comments.get(bug_id, []) if not user or c.user == user]
        return CommentsResponse(comments=comments, count=len(comments))


def release_note_json(note: str, confidence: float = 0.8, reasoning: str = "clear fix") -> str:
    return json.dumps(
        {
            "release_note": note,
            "confidence": confidence,
            "reasoning": reasoning,
            "alternative_versions": [],
        }
    )


def extraction_json(patterns: List[dict], overall: float = 0.9) -> str:
    return json.dumps({"patterns": patterns, "overall_confidence": overall})


async def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def repos():
    return InMemoryRepositories()


@pytest.fixture
def chat_model():
    return ScriptedChatModel()


@pytest.fixture
def generation_client(chat_model):
    return GenerationClient(llm=chat_model, model_name="test-model", timeout=5, sleep=no_sleep)


@pytest.fixture
def tracker():
    return FakeTracker()


@pytest.fixture
def engine(repos, generation_client):
    return PatternLearningEngine(
        patterns=repos.patterns,
        pattern_links=repos.pattern_links,
        feedback=repos.feedback,
        client=generation_client,
    )


@pytest_asyncio.fixture
async def task_queue():
    queue = BackgroundTaskQueue(workers=1, max_pending=10, name="test")
    yield queue
    await queue.shutdown(wait=False)


@pytest.fixture
def feedback_service(repos, engine, task_queue):
    return FeedbackService(
        bugs=repos.bugs, feedback=repos.feedback, engine=engine, task_queue=task_queue
    )


@pytest.fixture
def release_note_service(repos, tracker, generation_client, engine, feedback_service):
    return ReleaseNoteService(
        bugs=repos.bugs,
        release_notes=repos.release_notes,
        tracker=tracker,
        generator=ReleaseNoteGenerator(client=generation_client),
        engine=engine,
        feedback_service=feedback_service,
    )


@pytest.fixture
def sync_service(repos, tracker):
    return TrackerSyncService(tracker=tracker, bugs=repos.bugs, users=repos.users)


@pytest.fixture
def stored_bug(repos):
    bug = BugRecord(
        tracker_id=1001,
        title="BGP session flaps when route map is updated",
        description="When a route map attached to a BGP neighbor is modified, the session resets. "
        "Seen on spine switches after config changes in production networks.",
        severity="2",
        priority="P1",
        release="4.32.0",
        component="routing",
    )
    return repos.bugs.create(bug)
