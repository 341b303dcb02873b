"""
Repository interfaces.

Each record type gets a narrow interface exposing only the queries the
services need. Implementations must return copies: mutating a returned model
never changes stored state until it is passed back through `update`.
"""

from abc import ABC, abstractmethod
from typing import Callable, Generic, List, Optional, TypeVar

from relnotes.models import (
    BugRecord,
    User,
    ReleaseNote,
    FeedbackRecord,
    Pattern,
    PatternLink,
)

T = TypeVar("T")


class RecordNotFoundError(Exception):
    """Raised when a record addressed by id does not exist."""

    pass


class DuplicateRecordError(Exception):
    """Raised when a create would violate a unique key."""

    pass


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base class for repositories.
    """

    @abstractmethod
    def get(self, id: str) -> Optional[T]:
        """Get an entity by ID."""
        ...

    @abstractmethod
    def create(self, entity: T) -> T:
        """Insert a new entity. Raises DuplicateRecordError on a unique-key clash."""
        ...

    @abstractmethod
    def update(self, entity: T) -> T:
        """Replace a stored entity. Raises RecordNotFoundError if it is missing."""
        ...

    @abstractmethod
    def list(
        self, where: Optional[Callable[[T], bool]] = None, limit: Optional[int] = None
    ) -> List[T]:
        """List entities, optionally filtered."""
        ...


class BugRepository(BaseRepository[BugRecord]):
    @abstractmethod
    def get_by_tracker_id(self, tracker_id: int) -> Optional[BugRecord]:
        ...

    @abstractmethod
    def list_by_release(self, release: str) -> List[BugRecord]:
        ...


class UserRepository(BaseRepository[User]):
    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        ...


class ReleaseNoteRepository(BaseRepository[ReleaseNote]):
    @abstractmethod
    def get_by_bug_id(self, bug_id: str) -> Optional[ReleaseNote]:
        ...


class FeedbackRepository(BaseRepository[FeedbackRecord]):
    @abstractmethod
    def list_unprocessed(self, limit: int) -> List[FeedbackRecord]:
        """Feedback whose patterns have not been extracted yet, oldest first."""
        ...

    @abstractmethod
    def list_scored(self, component: Optional[str] = None) -> List[FeedbackRecord]:
        """Extracted feedback that carries an effectiveness score."""
        ...

    @abstractmethod
    def increment_usage(self, feedback_id: str) -> None:
        ...


class PatternRepository(BaseRepository[Pattern]):
    @abstractmethod
    def get_by_name(self, name: str) -> Optional[Pattern]:
        ...

    @abstractmethod
    def list_active(self) -> List[Pattern]:
        ...

    @abstractmethod
    def merge(self, source_id: str, target_id: str) -> Pattern:
        """
        Fold source into target in one atomic step: repoint links, mark source
        inactive with merged_into_id, sum occurrences and weight the average
        confidence. Returns the updated target.
        """
        ...


class PatternLinkRepository(BaseRepository[PatternLink]):
    @abstractmethod
    def list_by_feedback(self, feedback_id: str) -> List[PatternLink]:
        ...

    @abstractmethod
    def list_by_pattern(self, pattern_id: str) -> List[PatternLink]:
        ...
