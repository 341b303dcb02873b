"""
Release Note Generator
Owner: ③ AI Core · Generation · Learning Owner

Responsibilities:
- Build the drafting prompt from bug facts, commits, examples and patterns
- Call the model through GenerationClient
- Parse the JSON answer and calibrate its confidence
"""

import logging
from typing import Optional, Sequence

from relnotes.ai_core.generation.client import GenerationClient, GenerationError
from relnotes.ai_core.generation.confidence import adjust_confidence
from relnotes.ai_core.generation.response_parser import parse_release_note_response
from relnotes.ai_core.prompts.generation import build_release_note_prompt
from relnotes.integrations.tracker.parser import ParsedCommit
from relnotes.models import BugRecord, FeedbackRecord, GeneratedReleaseNote, Pattern

logger = logging.getLogger(__name__)


class ReleaseNoteGenerator:
    """Drafts release notes with the language model."""

    def __init__(self, client: Optional[GenerationClient] = None, logger: Optional[logging.Logger] = None):
        self.client = client or GenerationClient()
        self.logger = logger or logging.getLogger(__name__)

    async def generate_release_note(
        self,
        bug: BugRecord,
        commits: Sequence[ParsedCommit],
        examples: Optional[Sequence[FeedbackRecord]] = None,
        patterns: Optional[Sequence[Pattern]] = None,
    ) -> GeneratedReleaseNote:
        """
        Draft a release note for a bug.

        Args:
            bug: Bug to describe
            commits: Parsed commits attached to the bug (may be empty)
            examples: Past corrections to show as few-shot examples
            patterns: Learned patterns matching this bug

        Returns:
            GeneratedReleaseNote with calibrated confidence

        Raises:
            GenerationError: If the model fails or returns no note text
        """
        prompt = build_release_note_prompt(bug, commits, examples=examples, patterns=patterns)
        self.logger.info(
            f"Generating release note for bug {bug.tracker_id} "
            f"({len(commits)} commits, {len(examples or [])} examples, {len(patterns or [])} patterns)"
        )

        raw = await self.client.generate(prompt)
        parsed = parse_release_note_response(raw)
        if not parsed.release_note:
            raise GenerationError(f"Model returned no release note text for bug {bug.tracker_id}")

        confidence = adjust_confidence(
            parsed.confidence,
            has_commits=bool(commits),
            description=bug.description,
            content=parsed.release_note,
        )
        self.logger.info(
            f"Generated release note for bug {bug.tracker_id} "
            f"(raw confidence {parsed.confidence:.2f}, calibrated {confidence:.2f})"
        )

        return GeneratedReleaseNote(
            content=parsed.release_note,
            confidence=confidence,
            model=self.client.model_name,
            reasoning=parsed.reasoning,
            alternative_versions=parsed.alternative_versions,
        )
