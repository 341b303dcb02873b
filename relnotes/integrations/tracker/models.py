"""
Defect Tracker Wire Models

Pydantic models for the tracker's JSON payloads and the filter set used to
build its query language.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional, Union


class TrackerBug(BaseModel):
    """A bug as returned by the tracker's bugs endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    title: str = ""
    description: str = ""
    severity: str = ""
    priority: str = ""
    component: str = ""
    release: str = Field("", alias="version")
    assignee: str = ""
    issue_type: str = Field("", alias="issueType")
    status: str = ""
    cve: str = ""
    watchers: List[str] = []
    review_list: List[str] = Field([], alias="reviewList")

    @field_validator(
        "title", "description", "severity", "priority", "component", "release",
        "assignee", "issue_type", "status", "cve",
        mode="before",
    )
    @classmethod
    def _none_to_empty_string(cls, value):
        return "" if value is None else value

    @field_validator("watchers", "review_list", mode="before")
    @classmethod
    def _none_to_empty_list(cls, value):
        return [] if value is None else value


class TrackerLinks(BaseModel):
    next: Optional[str] = None


class TrackerMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    has_next: bool = Field(False, alias="hasNext")
    cursor: Optional[Union[int, str]] = None
    links: TrackerLinks = Field(default_factory=TrackerLinks)


class TrackerResponse(BaseModel):
    """
    Envelope of a bug query.

    `bugs` holds the records as received; validate each with TrackerBug so a
    single malformed record can be reported on its own.
    """

    model_config = ConfigDict(extra="ignore")

    bugs: List[Any] = []
    count: int = 0
    total: int = 0
    metadata: TrackerMetadata = Field(default_factory=TrackerMetadata)

    @field_validator("bugs", mode="before")
    @classmethod
    def _none_to_empty_list(cls, value):
        return [] if value is None else value


class TrackerComment(BaseModel):
    """An audit comment on a bug. Commit comments are posted by a bot account."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    bug_id: int = Field(0, alias="bugId")
    user: str = ""
    text: str = Field("", alias="the_text")
    epoch_time: Optional[int] = None
    real_name: str = ""
    is_noisy: bool = False

    @field_validator("user", "text", "real_name", mode="before")
    @classmethod
    def _none_to_empty_string(cls, value):
        return "" if value is None else value


class CommentsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    comments: List[TrackerComment] = []
    count: int = 0
    metadata: TrackerMetadata = Field(default_factory=TrackerMetadata)

    @field_validator("comments", mode="before")
    @classmethod
    def _none_to_empty_list(cls, value):
        return [] if value is None else value


class BugFilters(BaseModel):
    """Optional filters for a bug query; empty values are ignored."""

    release: str = ""
    status: str = ""
    bug_type: str = ""
    component: str = ""
    assigned_to: str = ""
    manager: str = ""
    severity: List[str] = []
    text_query: str = ""  # Free-text search, sent separately from `q`

    def build_query(self) -> str:
        """
        Build the tracker query expression.

        Clauses appear in a fixed order and are joined with " AND ":
            release=="X" AND status=="Y" AND ... AND severity in ["1","2"]
        No filters gives an empty string.
        """
        clauses = []
        for field in ("release", "status", "bug_type", "component", "assigned_to", "manager"):
            value = getattr(self, field)
            if value:
                clauses.append(f'{field}=="{value}"')

        if self.severity:
            values = ",".join(f'"{s}"' for s in self.severity)
            clauses.append(f"severity in [{values}]")

        return " AND ".join(clauses)
