"""
Pattern Learning Engine
Owner: ③ AI Core · Generation · Learning Owner

Responsibilities:
- Extract correction patterns from manager feedback with the language model
- Maintain pattern statistics (occurrences, running confidence, success rate)
- Select patterns and past corrections relevant to a new bug
- Pattern housekeeping: merge, deactivate, rank, helpfulness scoring
"""

import logging
from typing import List, Optional

from relnotes.ai_core.generation.client import GenerationClient, GenerationError
from relnotes.ai_core.generation.response_parser import (
    PatternExtractionParseError,
    parse_pattern_extraction_response,
)
from relnotes.ai_core.learning.context import build_bug_context
from relnotes.ai_core.prompts.extraction import build_pattern_extraction_prompt
from relnotes.models import (
    BugContext,
    BugRecord,
    ExtractedPattern,
    FeedbackRecord,
    Pattern,
    PatternCategory,
    PatternExtractionResult,
    PatternLink,
)
from relnotes.models.feedback import PATTERN_SCOPE_KEYS
from relnotes.repositories import (
    DuplicateRecordError,
    FeedbackRepository,
    PatternLinkRepository,
    PatternRepository,
    RecordNotFoundError,
)

logger = logging.getLogger(__name__)

CATEGORY_PRIORITIES = {
    PatternCategory.CONTENT.value: 100,
    PatternCategory.CLARITY.value: 80,
    PatternCategory.CONSISTENCY.value: 60,
    PatternCategory.STRUCTURE.value: 40,
    PatternCategory.STYLE.value: 20,
}
DEFAULT_PRIORITY = 50


# Custom Exceptions


class PatternExtractionError(Exception):
    """
    Raised when patterns could not be extracted from a feedback record.
    The error is also stored on the record so the sweep can retry it.
    """

    pass


class FeedbackNotFoundError(RecordNotFoundError):
    pass


class PatternNotFoundError(RecordNotFoundError):
    pass


class PatternLinkNotFoundError(RecordNotFoundError):
    pass


class PatternMergeError(Exception):
    """Raised for a merge that would break the merged_into chain."""

    pass


def calculate_priority(category: str) -> int:
    """Content problems outrank clarity, consistency, structure, then style."""
    return CATEGORY_PRIORITIES.get((category or "").lower(), DEFAULT_PRIORITY)


class PatternLearningEngine:
    """Learns recurring corrections and feeds them back into generation."""

    def __init__(
        self,
        patterns: PatternRepository,
        pattern_links: PatternLinkRepository,
        feedback: FeedbackRepository,
        client: Optional[GenerationClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.patterns = patterns
        self.pattern_links = pattern_links
        self.feedback = feedback
        self.client = client or GenerationClient()
        self.logger = logger or logging.getLogger(__name__)

    # Extraction

    async def extract_patterns_from_feedback(self, feedback_id: str) -> Optional[PatternExtractionResult]:
        """
        Extract and record the patterns behind one correction.

        Already-processed feedback is skipped and its stored result returned.

        Raises:
            FeedbackNotFoundError: If the feedback does not exist
            PatternExtractionError: If the model call or its parsing fails
        """
        record = self.feedback.get(feedback_id)
        if record is None:
            raise FeedbackNotFoundError(f"Feedback {feedback_id} not found")

        if record.patterns_extracted:
            self.logger.info(f"Patterns already extracted for feedback {feedback_id}, skipping")
            return record.extracted_patterns

        prompt = build_pattern_extraction_prompt(
            record.original_content,
            record.corrected_content,
            record.feedback_text,
            record.bug_context,
        )

        try:
            raw = await self.client.generate(prompt)
        except GenerationError as e:
            self._record_extraction_failure(record, f"AI pattern extraction failed: {e}")
            raise PatternExtractionError(record.extraction_error) from e

        try:
            result = parse_pattern_extraction_response(raw)
        except PatternExtractionParseError as e:
            self._record_extraction_failure(record, str(e))
            raise PatternExtractionError(record.extraction_error) from e

        record.extracted_patterns = result
        record.overall_confidence = result.overall_confidence
        record.patterns_extracted = True
        record.extraction_error = None
        self.feedback.update(record)

        for extracted in result.patterns:
            try:
                self._record_pattern(record, extracted)
            except (RecordNotFoundError, DuplicateRecordError) as e:
                self.logger.error(
                    f"Failed to record pattern {extracted.pattern_name} for feedback {feedback_id}: {e}"
                )

        self.logger.info(
            f"Extracted {len(result.patterns)} patterns from feedback {feedback_id} "
            f"(overall confidence {result.overall_confidence:.2f})"
        )
        return result

    def _record_extraction_failure(self, record: FeedbackRecord, message: str) -> None:
        self.logger.error(f"Pattern extraction failed for feedback {record.id}: {message}")
        record.extraction_error = message
        record.patterns_extracted = False
        self.feedback.update(record)

    def _resolve_merged(self, pattern: Pattern) -> Pattern:
        seen = {pattern.id}
        while pattern.merged_into_id:
            target = self.patterns.get(pattern.merged_into_id)
            if target is None or target.id in seen:
                break
            seen.add(target.id)
            pattern = target
        return pattern

    def _record_pattern(self, record: FeedbackRecord, extracted: ExtractedPattern) -> Pattern:
        pattern = self.patterns.get_by_name(extracted.pattern_name)

        if pattern is None:
            pattern = Pattern(
                name=extracted.pattern_name,
                category=extracted.category,
                description=extracted.description,
                applicable_when=record.bug_context.restricted_to(PATTERN_SCOPE_KEYS),
                occurrence_count=1,
                avg_confidence=extracted.confidence,
                success_rate=1.0,
                priority=calculate_priority(extracted.category),
                is_active=True,
                example_feedback_ids=[record.id],
            )
            try:
                self.patterns.create(pattern)
                self.logger.info(f"New pattern created: {pattern.name} ({pattern.category})")
            except DuplicateRecordError:
                # Another worker created it first
                pattern = self._update_statistics(
                    self.patterns.get_by_name(extracted.pattern_name), extracted.confidence, record.id
                )
        else:
            pattern = self._update_statistics(pattern, extracted.confidence, record.id)

        self.pattern_links.create(
            PatternLink(
                feedback_id=record.id,
                pattern_id=pattern.id,
                confidence=extracted.confidence,
                description=extracted.description,
            )
        )
        return pattern

    def _update_statistics(self, pattern: Optional[Pattern], confidence: float, feedback_id: str) -> Pattern:
        if pattern is None:
            raise PatternNotFoundError("Pattern vanished during update")
        pattern = self._resolve_merged(pattern)

        count = pattern.occurrence_count
        pattern.avg_confidence = (pattern.avg_confidence * count + confidence) / (count + 1)
        pattern.success_rate = (pattern.success_rate * count + 1.0) / (count + 1)
        pattern.occurrence_count = count + 1
        if feedback_id not in pattern.example_feedback_ids:
            pattern.example_feedback_ids.append(feedback_id)
        return self.patterns.update(pattern)

    async def process_unprocessed_feedback(self, limit: int = 50) -> int:
        """
        Retry extraction for feedback not yet processed. Failures are logged
        and the sweep continues.

        Returns:
            Number of records processed successfully
        """
        pending = self.feedback.list_unprocessed(limit)
        self.logger.info(f"Processing {len(pending)} unprocessed feedback records")

        processed = 0
        for record in pending:
            try:
                await self.extract_patterns_from_feedback(record.id)
                processed += 1
            except (PatternExtractionError, RecordNotFoundError) as e:
                self.logger.error(f"Failed to extract patterns for feedback {record.id}: {e}")
        return processed

    # Selection

    def find_matching_patterns(self, context: BugContext) -> List[Pattern]:
        """Active patterns whose scope matches the context, highest priority first."""
        matching = [p for p in self.patterns.list_active() if p.applicable_when.matches(context)]
        matching.sort(key=lambda p: (-p.priority, -p.success_rate, p.name))
        return matching

    def get_best_examples_for_bug(self, bug: BugRecord, limit: int = 3) -> List[FeedbackRecord]:
        """
        Pick past corrections to show as few-shot examples.

        Same-component feedback comes first (most effective, least used); the
        remainder is filled with the globally most effective feedback. Each
        chosen record's usage counter is incremented.
        """
        if limit <= 0:
            return []

        context = build_bug_context(bug)
        similar = self.feedback.list_scored(component=context.component or None)
        similar.sort(key=lambda f: (-f.effectiveness_score, f.times_used_as_example))
        examples = similar[:limit]

        if len(examples) < limit:
            chosen = {f.id for f in examples}
            effective = self.feedback.list_scored()
            effective.sort(key=lambda f: (-f.effectiveness_score, -(f.overall_confidence or 0.0)))
            for record in effective:
                if len(examples) >= limit:
                    break
                if record.id not in chosen:
                    examples.append(record)
                    chosen.add(record.id)

        for record in examples:
            self.feedback.increment_usage(record.id)

        self.logger.debug(f"Selected {len(examples)} examples for bug {bug.tracker_id}")
        return examples

    # Housekeeping

    def get_pattern(self, pattern_id: str) -> Pattern:
        pattern = self.patterns.get(pattern_id)
        if pattern is None:
            raise PatternNotFoundError(f"Pattern {pattern_id} not found")
        return pattern

    def get_top_patterns(self, limit: int = 10) -> List[Pattern]:
        active = self.patterns.list_active()
        active.sort(key=lambda p: (-p.occurrence_count, -p.avg_confidence, p.name))
        return active[:limit]

    def deactivate_pattern(self, pattern_id: str) -> Pattern:
        pattern = self.get_pattern(pattern_id)
        pattern.is_active = False
        self.logger.info(f"Deactivated pattern {pattern.name}")
        return self.patterns.update(pattern)

    def merge_patterns(self, source_id: str, target_id: str) -> Pattern:
        """
        Fold a duplicate pattern into another.

        Raises:
            PatternNotFoundError: If either pattern is missing
            PatternMergeError: For a self-merge or a pattern already merged
        """
        if source_id == target_id:
            raise PatternMergeError("Cannot merge a pattern into itself")

        source = self.get_pattern(source_id)
        target = self.get_pattern(target_id)
        if source.merged_into_id:
            raise PatternMergeError(f"Pattern {source.name} was already merged into {source.merged_into_id}")
        if target.merged_into_id:
            raise PatternMergeError(f"Cannot merge into {target.name}: it was merged into {target.merged_into_id}")

        merged = self.patterns.merge(source_id, target_id)
        self.logger.info(
            f"Merged pattern {source.name} into {target.name} "
            f"(occurrences {merged.occurrence_count}, avg confidence {merged.avg_confidence:.2f})"
        )
        return merged

    # Effectiveness

    def mark_link_helpful(self, link_id: str, was_helpful: bool) -> PatternLink:
        """Rate one pattern link and refresh its feedback's effectiveness."""
        link = self.pattern_links.get(link_id)
        if link is None:
            raise PatternLinkNotFoundError(f"Pattern link {link_id} not found")
        link.was_helpful = was_helpful
        self.pattern_links.update(link)
        self.recompute_effectiveness(link.feedback_id)
        return link

    def update_effectiveness_score(self, feedback_id: str, score: float) -> FeedbackRecord:
        if not 0.0 <= score <= 1.0:
            raise ValueError(f"Effectiveness score must be within [0, 1], got {score}")
        record = self.feedback.get(feedback_id)
        if record is None:
            raise FeedbackNotFoundError(f"Feedback {feedback_id} not found")
        record.effectiveness_score = score
        return self.feedback.update(record)

    def recompute_effectiveness(self, feedback_id: str) -> Optional[float]:
        """Effectiveness = helpful links / rated links. Unrated feedback is left alone."""
        rated = [
            link for link in self.pattern_links.list_by_feedback(feedback_id) if link.was_helpful is not None
        ]
        if not rated:
            return None
        score = sum(1 for link in rated if link.was_helpful) / len(rated)
        self.update_effectiveness_score(feedback_id, score)
        return score
