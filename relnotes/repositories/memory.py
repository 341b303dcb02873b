"""
In-memory repository implementations.

All repositories built on one InMemoryStore share a re-entrant lock and can be
grouped into a transaction that is rolled back on error. Records are stored
and returned as deep copies. Nothing persists across restarts.
"""

import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel

from relnotes.models import (
    BugRecord,
    User,
    ReleaseNote,
    FeedbackRecord,
    Pattern,
    PatternLink,
)
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
from relnotes.utils.helpers import utc_now


class InMemoryStore:
    """Tables of records keyed by id, guarded by a single lock."""

    def __init__(self):
        self.lock = threading.RLock()
        self._tables: Dict[str, Dict[str, BaseModel]] = {}

    def table(self, name: str) -> Dict[str, BaseModel]:
        with self.lock:
            return self._tables.setdefault(name, {})

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Hold the lock for the whole block and restore every table if it raises.

        Rows are replaced, never mutated in place, so a shallow copy of each
        table is a complete snapshot.
        """
        with self.lock:
            snapshot = {name: dict(rows) for name, rows in self._tables.items()}
            try:
                yield
            except Exception:
                for name, rows in self._tables.items():
                    rows.clear()
                    rows.update(snapshot.get(name, {}))
                raise


class InMemoryRepository(BaseRepository):
    """Generic dict-backed repository with unique-field enforcement."""

    table_name = ""
    unique_fields: Tuple[str, ...] = ()

    def __init__(self, store: Optional[InMemoryStore] = None):
        self.store = store or InMemoryStore()

    @property
    def _rows(self) -> Dict[str, BaseModel]:
        return self.store.table(self.table_name)

    def _check_unique(self, entity: BaseModel) -> None:
        for field in self.unique_fields:
            value = getattr(entity, field)
            for row in self._rows.values():
                if row.id != entity.id and getattr(row, field) == value:
                    raise DuplicateRecordError(
                        f"{self.table_name}.{field}={value!r} already exists"
                    )

    def get(self, id: str):
        with self.store.lock:
            row = self._rows.get(id)
            return row.model_copy(deep=True) if row is not None else None

    def create(self, entity):
        with self.store.lock:
            if entity.id in self._rows:
                raise DuplicateRecordError(f"{self.table_name} {entity.id} already exists")
            self._check_unique(entity)
            self._rows[entity.id] = entity.model_copy(deep=True)
            return entity

    def update(self, entity):
        with self.store.lock:
            if entity.id not in self._rows:
                raise RecordNotFoundError(f"{self.table_name} {entity.id} not found")
            self._check_unique(entity)
            if hasattr(entity, "updated_at"):
                entity.updated_at = utc_now()
            self._rows[entity.id] = entity.model_copy(deep=True)
            return entity

    def list(self, where: Optional[Callable] = None, limit: Optional[int] = None) -> List:
        with self.store.lock:
            rows = [r for r in self._rows.values() if where is None or where(r)]
            if limit is not None:
                rows = rows[:limit]
            return [r.model_copy(deep=True) for r in rows]

    def _first(self, where: Callable):
        found = self.list(where, limit=1)
        return found[0] if found else None


class InMemoryBugRepository(InMemoryRepository, BugRepository):
    table_name = "bugs"
    unique_fields = ("tracker_id",)

    def get_by_tracker_id(self, tracker_id: int) -> Optional[BugRecord]:
        return self._first(lambda b: b.tracker_id == tracker_id)

    def list_by_release(self, release: str) -> List[BugRecord]:
        return self.list(lambda b: b.release == release)


class InMemoryUserRepository(InMemoryRepository, UserRepository):
    table_name = "users"
    unique_fields = ("email",)

    def get_by_email(self, email: str) -> Optional[User]:
        return self._first(lambda u: u.email == email)


class InMemoryReleaseNoteRepository(InMemoryRepository, ReleaseNoteRepository):
    table_name = "release_notes"
    unique_fields = ("bug_id",)

    def get_by_bug_id(self, bug_id: str) -> Optional[ReleaseNote]:
        return self._first(lambda n: n.bug_id == bug_id)


class InMemoryFeedbackRepository(InMemoryRepository, FeedbackRepository):
    table_name = "feedback"

    def list_unprocessed(self, limit: int) -> List[FeedbackRecord]:
        pending = self.list(lambda f: not f.patterns_extracted)
        pending.sort(key=lambda f: f.created_at)
        return pending[:limit]

    def list_scored(self, component: Optional[str] = None) -> List[FeedbackRecord]:
        def eligible(f: FeedbackRecord) -> bool:
            if not f.patterns_extracted or f.effectiveness_score is None:
                return False
            return component is None or f.bug_context.component == component

        return self.list(eligible)

    def increment_usage(self, feedback_id: str) -> None:
        with self.store.lock:
            record = self.get(feedback_id)
            if record is None:
                raise RecordNotFoundError(f"feedback {feedback_id} not found")
            record.times_used_as_example += 1
            self.update(record)


class InMemoryPatternLinkRepository(InMemoryRepository, PatternLinkRepository):
    table_name = "pattern_links"

    def list_by_feedback(self, feedback_id: str) -> List[PatternLink]:
        return self.list(lambda link: link.feedback_id == feedback_id)

    def list_by_pattern(self, pattern_id: str) -> List[PatternLink]:
        return self.list(lambda link: link.pattern_id == pattern_id)


class InMemoryPatternRepository(InMemoryRepository, PatternRepository):
    table_name = "patterns"
    unique_fields = ("name",)

    def get_by_name(self, name: str) -> Optional[Pattern]:
        return self._first(lambda p: p.name == name)

    def list_active(self) -> List[Pattern]:
        return self.list(lambda p: p.is_active)

    def merge(self, source_id: str, target_id: str) -> Pattern:
        links = InMemoryPatternLinkRepository(self.store)
        with self.store.transaction():
            source = self.get(source_id)
            target = self.get(target_id)
            if source is None:
                raise RecordNotFoundError(f"pattern {source_id} not found")
            if target is None:
                raise RecordNotFoundError(f"pattern {target_id} not found")

            for link in links.list_by_pattern(source_id):
                link.pattern_id = target_id
                links.update(link)

            total = source.occurrence_count + target.occurrence_count
            if total > 0:
                target.avg_confidence = (
                    source.avg_confidence * source.occurrence_count
                    + target.avg_confidence * target.occurrence_count
                ) / total
            target.occurrence_count = total
            for feedback_id in source.example_feedback_ids:
                if feedback_id not in target.example_feedback_ids:
                    target.example_feedback_ids.append(feedback_id)

            source.is_active = False
            source.merged_into_id = target_id

            self.update(source)
            return self.update(target)


class InMemoryRepositories:
    """Every repository wired to one shared store."""

    def __init__(self, store: Optional[InMemoryStore] = None):
        self.store = store or InMemoryStore()
        self.bugs = InMemoryBugRepository(self.store)
        self.users = InMemoryUserRepository(self.store)
        self.release_notes = InMemoryReleaseNoteRepository(self.store)
        self.feedback = InMemoryFeedbackRepository(self.store)
        self.patterns = InMemoryPatternRepository(self.store)
        self.pattern_links = InMemoryPatternLinkRepository(self.store)
