"""
Feedback and Pattern Models

Data for the learning loop: manager corrections (feedback), the recurring
correction patterns extracted from them, and the links between the two.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from relnotes.utils.helpers import new_id, utc_now

# Fingerprint keys a learned pattern is scoped by
PATTERN_SCOPE_KEYS = ("component", "severity", "bug_type", "has_cve")


class BugContext(BaseModel):
    """Attribute fingerprint of a bug, used to scope patterns and pick examples."""

    component: str = ""
    severity: str = ""
    release: str = ""
    bug_type: str = ""
    has_cve: bool = False
    cve_number: str = ""
    title_keywords: List[str] = []

    def restricted_to(self, keys: Iterable[str]) -> "BugContext":
        """Copy keeping only `keys`; every other attribute reset to its empty default."""
        keys = set(keys)
        data = {k: v for k, v in self.model_dump().items() if k in keys}
        return BugContext(**data)

    def non_empty_items(self) -> Dict[str, Any]:
        """Attributes that carry a value. `has_cve` only counts when true."""
        return {
            key: value
            for key, value in self.model_dump().items()
            if value not in ("", [], None, False)
        }

    def matches(self, other: "BugContext", keys: Optional[Iterable[str]] = None) -> bool:
        """
        Partial equality: every non-empty attribute of self (or only `keys`)
        must be equal on `other`. An empty fingerprint matches everything.
        """
        required = self.non_empty_items()
        if keys is not None:
            keys = set(keys)
            required = {k: v for k, v in required.items() if k in keys}
        other_values = other.model_dump()
        return all(other_values.get(k) == v for k, v in required.items())


class FeedbackAction(str, Enum):
    APPROVED_WITH_CORRECTION = "approved_with_correction"
    SENT_BACK_TO_DEV = "sent_back_to_dev"


class PatternCategory(str, Enum):
    CONTENT = "content"
    CLARITY = "clarity"
    CONSISTENCY = "consistency"
    STRUCTURE = "structure"
    STYLE = "style"


class ExtractedPattern(BaseModel):
    """One pattern as returned by the extraction prompt."""

    pattern_name: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)
    description: str = ""
    category: str = ""


class PatternExtractionResult(BaseModel):
    """Parsed output of the pattern-extraction prompt."""

    patterns: List[ExtractedPattern] = []
    overall_confidence: float = Field(0.0, ge=0.0, le=1.0)


class FeedbackRecord(BaseModel):
    """A manager correction of a release note."""

    id: str = Field(default_factory=new_id)
    release_note_id: str
    bug_id: str
    manager_id: str
    original_content: str
    corrected_content: str
    feedback_text: Optional[str] = None
    action: FeedbackAction = FeedbackAction.APPROVED_WITH_CORRECTION
    bug_context: BugContext = Field(default_factory=BugContext)

    extracted_patterns: Optional[PatternExtractionResult] = None
    overall_confidence: Optional[float] = None
    patterns_extracted: bool = False
    extraction_error: Optional[str] = None

    times_used_as_example: int = 0
    effectiveness_score: Optional[float] = Field(None, ge=0.0, le=1.0)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Pattern(BaseModel):
    """A recurring correction learned across feedback."""

    id: str = Field(default_factory=new_id)
    name: str  # Unique
    category: str = ""
    description: str = ""
    applicable_when: BugContext = Field(default_factory=BugContext)
    occurrence_count: int = 0
    avg_confidence: float = 0.0
    success_rate: float = 0.0
    priority: int = 50
    is_active: bool = True
    merged_into_id: Optional[str] = None  # Set once, never cleared
    example_feedback_ids: List[str] = []

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class PatternLink(BaseModel):
    """Association of a pattern with the feedback it was observed in."""

    id: str = Field(default_factory=new_id)
    feedback_id: str
    pattern_id: str
    confidence: float = 0.0
    description: str = ""
    was_helpful: Optional[bool] = None
    created_at: datetime = Field(default_factory=utc_now)
