"""
Service wiring.

Builds every service on one shared in-memory store. The API resolves the
container through `get_services`, which tests override with their own fakes.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel

from relnotes.ai_core.generation.client import GenerationClient
from relnotes.ai_core.generation.release_note_generator import ReleaseNoteGenerator
from relnotes.ai_core.learning.pattern_engine import PatternLearningEngine
from relnotes.ai_core.learning.task_queue import BackgroundTaskQueue
from relnotes.integrations.tracker.client import TrackerClient
from relnotes.repositories import InMemoryRepositories
from relnotes.services.feedback_service import FeedbackService
from relnotes.services.release_note_service import ReleaseNoteService
from relnotes.services.sync_service import TrackerSyncService


@dataclass
class ServiceContainer:
    repositories: InMemoryRepositories
    tracker: TrackerClient
    generation_client: GenerationClient
    task_queue: BackgroundTaskQueue
    engine: PatternLearningEngine
    feedback_service: FeedbackService
    release_note_service: ReleaseNoteService
    sync_service: TrackerSyncService


def build_services(
    tracker: Optional[TrackerClient] = None,
    llm: Optional[BaseChatModel] = None,
    repositories: Optional[InMemoryRepositories] = None,
    task_queue: Optional[BackgroundTaskQueue] = None,
) -> ServiceContainer:
    repositories = repositories or InMemoryRepositories()
    tracker = tracker or TrackerClient()
    generation_client = GenerationClient(llm=llm)
    task_queue = task_queue or BackgroundTaskQueue(name="pattern-extraction")

    engine = PatternLearningEngine(
        patterns=repositories.patterns,
        pattern_links=repositories.pattern_links,
        feedback=repositories.feedback,
        client=generation_client,
    )
    feedback_service = FeedbackService(
        bugs=repositories.bugs,
        feedback=repositories.feedback,
        engine=engine,
        task_queue=task_queue,
    )
    release_note_service = ReleaseNoteService(
        bugs=repositories.bugs,
        release_notes=repositories.release_notes,
        tracker=tracker,
        generator=ReleaseNoteGenerator(client=generation_client),
        engine=engine,
        feedback_service=feedback_service,
    )
    sync_service = TrackerSyncService(
        tracker=tracker,
        bugs=repositories.bugs,
        users=repositories.users,
    )

    return ServiceContainer(
        repositories=repositories,
        tracker=tracker,
        generation_client=generation_client,
        task_queue=task_queue,
        engine=engine,
        feedback_service=feedback_service,
        release_note_service=release_note_service,
        sync_service=sync_service,
    )


@lru_cache
def get_services() -> ServiceContainer:
    return build_services()
