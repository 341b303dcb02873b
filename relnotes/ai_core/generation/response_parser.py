"""
Model response parsing.

Release-note responses never fail to parse: anything that is not the expected
JSON object is taken as the note text itself at a neutral confidence.
Pattern-extraction responses are strict, since a bad parse there must be
recorded and retried later.
"""

import json
import logging
from typing import Any, List

from pydantic import BaseModel, Field, ValidationError

from relnotes.models import ExtractedPattern, PatternExtractionResult
from relnotes.utils.helpers import flatten_list, strip_code_fences

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.5
FALLBACK_REASONING = "Failed to parse JSON response, using raw text"


class PatternExtractionParseError(Exception):
    """Raised when a pattern-extraction response is not the expected JSON."""

    pass


class ParsedReleaseNote(BaseModel):
    """Release-note fields as returned by the model (before calibration)."""

    release_note: str = ""
    confidence: float = Field(FALLBACK_CONFIDENCE, ge=0.0, le=1.0)
    reasoning: str = ""
    alternative_versions: List[str] = []


def _clamp(value: Any, low: float = 0.0, high: float = 1.0, default: float = FALLBACK_CONFIDENCE) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return max(low, min(high, number))


def parse_release_note_response(raw: str) -> ParsedReleaseNote:
    """
    Parse a release-note response, tolerating code fences and non-JSON text.

    Never raises. The caller decides what an empty `release_note` means.
    """
    cleaned = strip_code_fences(raw)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        data = None

    if not isinstance(data, dict):
        logger.warning("Release note response was not a JSON object, using raw text")
        return ParsedReleaseNote(
            release_note=cleaned,
            confidence=FALLBACK_CONFIDENCE,
            reasoning=FALLBACK_REASONING,
            alternative_versions=[],
        )

    note = data.get("release_note")
    return ParsedReleaseNote(
        release_note=note.strip() if isinstance(note, str) else "",
        confidence=_clamp(data.get("confidence", 0.0), default=0.0),
        reasoning=str(data.get("reasoning") or ""),
        alternative_versions=[v for v in flatten_list(data.get("alternative_versions")) if v.strip()],
    )


def parse_pattern_extraction_response(raw: str) -> PatternExtractionResult:
    """
    Parse a pattern-extraction response.

    Pattern confidences are clamped into [0, 1]; patterns without a name are
    dropped.

    Raises:
        PatternExtractionParseError: If the text is not a JSON object of the expected shape
    """
    cleaned = strip_code_fences(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise PatternExtractionParseError(f"Failed to parse AI response: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("patterns", []), list):
        raise PatternExtractionParseError("Failed to parse AI response: unexpected JSON shape")

    patterns = []
    for item in data.get("patterns", []):
        if not isinstance(item, dict):
            continue
        name = str(item.get("pattern_name") or "").strip()
        if not name:
            continue
        try:
            patterns.append(
                ExtractedPattern(
                    pattern_name=name,
                    confidence=_clamp(item.get("confidence", 0.0), default=0.0),
                    description=str(item.get("description") or ""),
                    category=str(item.get("category") or "").strip().lower(),
                )
            )
        except ValidationError as e:
            logger.warning(f"Skipping malformed pattern {name!r}: {e}")

    return PatternExtractionResult(
        patterns=patterns,
        overall_confidence=_clamp(data.get("overall_confidence", 0.0), default=0.0),
    )
