"""
Prompts for Pattern Extraction

Given an AI draft and the manager's corrected version, the model names the
recurring correction patterns that explain the difference.
"""

import json
from textwrap import dedent
from typing import Optional

from relnotes.models import BugContext

PATTERN_EXTRACTION_PROMPT_TEMPLATE = dedent(
    """
    You are a pattern extraction expert for release note quality improvement.

    Analyze the differences between the AI-generated and manager-corrected release notes.

    ORIGINAL (AI-generated):
    {original_content}

    CORRECTED (Manager's version):
    {corrected_content}

    MANAGER FEEDBACK:
    {feedback_text}

    BUG CONTEXT:
    {bug_context}

    Extract specific patterns that explain what went wrong and how to improve.

    PATTERN CATEGORIES:
    - clarity: Issues with clarity, jargon, technical language
    - style: Issues with writing style, tone, voice
    - content: Missing or incorrect content
    - structure: Issues with sentence structure, length
    - consistency: Inconsistency with standards or conventions

    OUTPUT (JSON format only, no markdown):
    {{
      "patterns": [
        {{
          "pattern_name": "snake_case_name",
          "confidence": 0.95,
          "description": "Brief description of the pattern",
          "category": "clarity"
        }}
      ],
      "overall_confidence": 0.92
    }}

    EXAMPLES OF GOOD PATTERN NAMES:
    - "too_technical_jargon"
    - "abbreviation_expansion"
    - "verb_consistency"
    - "missing_device_specificity"
    - "passive_voice_usage"
    - "exceeds_length_limit"
    - "missing_cve_reference"
    - "customer_facing_language"

    Extract 1-5 patterns. Focus on the most significant differences.
    Return ONLY the JSON object, no additional text.
    """
).strip()


def bug_context_json(context: Optional[BugContext]) -> str:
    """Stable JSON rendering of a bug fingerprint ("{}" when absent)."""
    if context is None:
        return "{}"
    return json.dumps(context.model_dump(), sort_keys=True)


def build_pattern_extraction_prompt(
    original_content: str,
    corrected_content: str,
    feedback_text: Optional[str],
    bug_context: Optional[BugContext],
) -> str:
    return PATTERN_EXTRACTION_PROMPT_TEMPLATE.format(
        original_content=original_content,
        corrected_content=corrected_content,
        feedback_text=feedback_text or "",
        bug_context=bug_context_json(bug_context),
    )
