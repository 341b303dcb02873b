"""Defect tracker integration: REST client, wire models, commit comment parsing."""

from relnotes.integrations.tracker.client import (
    TrackerClient,
    TrackerError,
    TrackerAPIError,
    TrackerResponseError,
    TrackerRetryExhaustedError,
    TrackerBugNotFoundError,
)
from relnotes.integrations.tracker.auth import TokenProvider, TrackerAuthError
from relnotes.integrations.tracker.models import (
    BugFilters,
    TrackerBug,
    TrackerComment,
    TrackerResponse,
    CommentsResponse,
)
from relnotes.integrations.tracker.parser import (
    ParsedCommit,
    parse_commit_comment,
    parse_comment,
)

__all__ = [
    "TrackerClient",
    "TrackerError",
    "TrackerAPIError",
    "TrackerResponseError",
    "TrackerRetryExhaustedError",
    "TrackerBugNotFoundError",
    "TokenProvider",
    "TrackerAuthError",
    "BugFilters",
    "TrackerBug",
    "TrackerComment",
    "TrackerResponse",
    "CommentsResponse",
    "ParsedCommit",
    "parse_commit_comment",
    "parse_comment",
]
