"""Learning loop: bug fingerprints, pattern extraction, background processing."""

from relnotes.ai_core.learning.context import build_bug_context, extract_title_keywords, classify_bug_type
from relnotes.ai_core.learning.pattern_engine import (
    PatternLearningEngine,
    PatternExtractionError,
    PatternMergeError,
    PatternNotFoundError,
    PatternLinkNotFoundError,
    FeedbackNotFoundError,
    calculate_priority,
)
from relnotes.ai_core.learning.task_queue import (
    BackgroundTaskQueue,
    TaskQueueFullError,
    TaskQueueClosedError,
)

__all__ = [
    "build_bug_context",
    "extract_title_keywords",
    "classify_bug_type",
    "PatternLearningEngine",
    "PatternExtractionError",
    "PatternMergeError",
    "PatternNotFoundError",
    "PatternLinkNotFoundError",
    "FeedbackNotFoundError",
    "calculate_priority",
    "BackgroundTaskQueue",
    "TaskQueueFullError",
    "TaskQueueClosedError",
]
