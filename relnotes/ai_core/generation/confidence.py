"""
Confidence calibration for generated release notes.

The model's self-reported confidence is nudged by observable evidence and
kept inside a band that never claims certainty or total doubt.
"""

import math
from typing import Optional

CONFIDENCE_FLOOR = 0.3
CONFIDENCE_CEILING = 0.95
BOOST = 0.05
BOOST_THRESHOLD = 0.9
RICH_DESCRIPTION_LENGTH = 100

MIN_NOTE_LENGTH = 50
MAX_NOTE_LENGTH = 1000
FIX_VERBS = ("fixed", "resolved", "corrected", "addressed", "improved", "updated")


def is_well_formed_release_note(content: str) -> bool:
    """Length in [50, 1000], capitalized, terminal punctuation, and a fix verb."""
    if not content:
        return False
    if not MIN_NOTE_LENGTH <= len(content) <= MAX_NOTE_LENGTH:
        return False
    if not ("A" <= content[0] <= "Z"):
        return False
    if content[-1] not in ".!?":
        return False
    lowered = content.lower()
    return any(verb in lowered for verb in FIX_VERBS)


def adjust_confidence(
    raw_confidence: float,
    has_commits: bool,
    description: Optional[str],
    content: str,
) -> float:
    """
    Calibrate model confidence.

    Each piece of evidence adds 0.05 while the running value is still below
    0.9; the check is made again before every boost. The result is clamped to
    [0.3, 0.95]. NaN maps to the floor.
    """
    if raw_confidence is None or math.isnan(raw_confidence):
        return CONFIDENCE_FLOOR

    confidence = float(raw_confidence)
    evidence = (
        has_commits,
        bool(description) and len(description) > RICH_DESCRIPTION_LENGTH,
        is_well_formed_release_note(content),
    )
    for present in evidence:
        if present and confidence < BOOST_THRESHOLD:
            confidence = round(confidence + BOOST, 10)

    return max(CONFIDENCE_FLOOR, min(CONFIDENCE_CEILING, confidence))
