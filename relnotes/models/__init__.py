# Shared data models
from relnotes.models.bug import BugRecord, BugStatus, SyncStatus, User, UserRole
from relnotes.models.release_note import (
    ReleaseNote,
    ReleaseNoteStatus,
    GeneratedBy,
    GeneratedReleaseNote,
)
from relnotes.models.feedback import (
    BugContext,
    FeedbackAction,
    FeedbackRecord,
    ExtractedPattern,
    PatternExtractionResult,
    Pattern,
    PatternCategory,
    PatternLink,
)

__all__ = [
    "BugRecord",
    "BugStatus",
    "SyncStatus",
    "User",
    "UserRole",
    "ReleaseNote",
    "ReleaseNoteStatus",
    "GeneratedBy",
    "GeneratedReleaseNote",
    "BugContext",
    "FeedbackAction",
    "FeedbackRecord",
    "ExtractedPattern",
    "PatternExtractionResult",
    "Pattern",
    "PatternCategory",
    "PatternLink",
]
