"""Repository interfaces and the in-memory implementation."""

from relnotes.repositories.base import (
    BaseRepository,
    BugRepository,
    UserRepository,
    ReleaseNoteRepository,
    FeedbackRepository,
    PatternRepository,
    PatternLinkRepository,
    RecordNotFoundError,
    DuplicateRecordError,
)
from relnotes.repositories.memory import InMemoryStore, InMemoryRepositories

__all__ = [
    "BaseRepository",
    "BugRepository",
    "UserRepository",
    "ReleaseNoteRepository",
    "FeedbackRepository",
    "PatternRepository",
    "PatternLinkRepository",
    "RecordNotFoundError",
    "DuplicateRecordError",
    "InMemoryStore",
    "InMemoryRepositories",
]
