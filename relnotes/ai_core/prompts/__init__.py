"""Prompts package."""

from relnotes.ai_core.prompts.generation import (
    RELEASE_NOTE_SYSTEM_PROMPT,
    build_release_note_prompt,
)
from relnotes.ai_core.prompts.extraction import (
    PATTERN_EXTRACTION_PROMPT_TEMPLATE,
    build_pattern_extraction_prompt,
)

__all__ = [
    "RELEASE_NOTE_SYSTEM_PROMPT",
    "build_release_note_prompt",
    "PATTERN_EXTRACTION_PROMPT_TEMPLATE",
    "build_pattern_extraction_prompt",
]
