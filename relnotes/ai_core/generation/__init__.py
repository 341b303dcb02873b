"""Release note generation: model client, response parsing, confidence calibration."""

from relnotes.ai_core.generation.client import (
    GenerationClient,
    GenerationError,
    build_chat_model,
    is_retryable_error,
)
from relnotes.ai_core.generation.confidence import adjust_confidence, is_well_formed_release_note
from relnotes.ai_core.generation.response_parser import (
    ParsedReleaseNote,
    PatternExtractionParseError,
    parse_release_note_response,
    parse_pattern_extraction_response,
)
from relnotes.ai_core.generation.release_note_generator import ReleaseNoteGenerator

__all__ = [
    "GenerationClient",
    "GenerationError",
    "build_chat_model",
    "is_retryable_error",
    "adjust_confidence",
    "is_well_formed_release_note",
    "ParsedReleaseNote",
    "PatternExtractionParseError",
    "parse_release_note_response",
    "parse_pattern_extraction_response",
    "ReleaseNoteGenerator",
]
