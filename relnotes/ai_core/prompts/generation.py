"""
Prompts for Release Note Generation

This module contains the prompt used to draft a customer-facing release note
for a bug from its tracker fields and parsed commits, optionally enriched with
guidelines learned from manager corrections and few-shot examples.
"""

from textwrap import dedent
from typing import List, Optional, Sequence

from relnotes.integrations.tracker.parser import ParsedCommit
from relnotes.models import BugRecord, FeedbackRecord, Pattern
from relnotes.utils.helpers import truncate_text

COMMIT_MESSAGE_LIMIT = 500
MAX_PROMPT_EXAMPLES = 3

RELEASE_NOTE_SYSTEM_PROMPT = (
    "You are a technical writer creating release notes for network operating system bugs."
)

RELEASE_NOTE_GUIDELINES = dedent(
    """
    MANDATORY RELEASE NOTE GUIDELINES:

    AUDIENCE & FOCUS:
    - Write for CUSTOMERS and field teams, NOT internal engineering
    - Focus on customer-visible issue/symptom, NOT internal fix details
    - Answer: What will customers notice? What conditions trigger this issue?

    FORMAT & CONTENT:
    - Keep it brief (1-2 sentences)
    - MUST include: when the problem occurs (required configuration) and the impact
    - Use past tense for fixes (e.g., 'Resolved', 'Fixed', 'Corrected')
    - If workaround exists, add as second line (do NOT say 'no known workarounds')

    AVOID INTERNAL JARGON:
    - NO internal architectural names (e.g., 'HW LAG', 'SW LAG')
    - NO codenames (e.g., chip or platform project names)
    - NO bug IDs in the note text
    - NO specific software version numbers in the note text
    - AVOID: crash, segfault, assert, race condition

    AGENT/SYSTEM LANGUAGE:
    - If agent dies: 'the [Agent Name] agent can restart unexpectedly'
    - If system goes down: 'the system can restart unexpectedly' or 'reset unexpectedly'

    SPELLING & CAPITALIZATION:
    - Use American English spelling
    - Protocol names/acronyms in ALL CAPS (BGP, OSPF, MLAG, VXLAN)
    - Specific spellings: 'running config', 'route map', 'next hop', 'port channel' (not hyphenated)
    - Use 'workaround' as a noun

    DO NOT:
    - Comment on likelihood (avoid 'rare', 'infrequently', etc.)
    """
).strip()

RELEASE_NOTE_OUTPUT_FORMAT = dedent(
    """
    === OUTPUT FORMAT ===

    Return a JSON object with the following structure:
    {
      "release_note": "<your release note text>",
      "confidence": <0.0-1.0>,
      "reasoning": "<brief explanation of your confidence score>",
      "alternative_versions": ["<alternative 1>", "<alternative 2>"]
    }

    EXAMPLE OUTPUT:
    {
      "release_note": "Resolved an issue where packet capture failed on access points operating in Dual 5G mode.",
      "confidence": 0.85,
      "reasoning": "Bug affects packet capture in a specific radio mode. Combined info from 3 commits.",
      "alternative_versions": [
        "Fixed packet capture for access points in Dual 5G mode.",
        "Corrected packet capture failures on access points configured for Dual 5G mode."
      ]
    }

    Generate the release note following ALL guidelines above.
    Return ONLY valid JSON, no additional text.
    """
).strip()


def _bug_section(bug: BugRecord) -> str:
    lines = [
        "=== BUG INFORMATION ===",
        "",
        f"Bug ID: {bug.tracker_id}",
        f"Title: {bug.title}",
        f"Severity: {bug.severity}",
        f"Priority: {bug.priority}",
    ]
    if bug.component:
        lines.append(f"Component: {bug.component}")
    if bug.release:
        lines.append(f"Release: {bug.release}")
    if bug.description:
        lines.extend(["", "Description:", bug.description])
    return "\n".join(lines)


def _commits_section(commits: Sequence[ParsedCommit]) -> str:
    lines = ["=== CODE CHANGES ===", ""]
    if not commits:
        lines.append("No commit information available.")
        return "\n".join(lines)

    lines.extend([f"Number of commits: {len(commits)}", ""])
    for i, commit in enumerate(commits, start=1):
        lines.append(f"Commit {i}:")
        if commit.title:
            lines.append(f"  Title: {commit.title}")
        if commit.change_id:
            lines.append(f"  Change ID: {commit.change_id}")
        if commit.message:
            lines.append(f"  Message: {truncate_text(commit.message, COMMIT_MESSAGE_LIMIT)}")
        lines.append("")
    return "\n".join(lines).rstrip()


def _patterns_section(patterns: Sequence[Pattern]) -> str:
    lines = [
        "=== LEARNED GUIDELINES ===",
        "",
        "Managers have repeatedly corrected drafts for similar bugs. Apply these lessons:",
    ]
    for pattern in patterns:
        description = pattern.description or pattern.name.replace("_", " ")
        lines.append(f"- [{pattern.category or 'general'}] {description}")
    return "\n".join(lines)


def _examples_section(examples: Sequence[FeedbackRecord]) -> str:
    lines = [
        "=== EXAMPLES OF PAST CORRECTIONS ===",
        "",
        "Learn from how managers corrected earlier drafts:",
    ]
    for i, example in enumerate(examples, start=1):
        lines.extend(
            [
                "",
                f"Example {i}:",
                f"  AI draft: {example.original_content}",
                f"  Corrected: {example.corrected_content}",
            ]
        )
        if example.feedback_text:
            lines.append(f"  Manager note: {example.feedback_text}")
    return "\n".join(lines)


def build_release_note_prompt(
    bug: BugRecord,
    commits: Sequence[ParsedCommit],
    examples: Optional[Sequence[FeedbackRecord]] = None,
    patterns: Optional[Sequence[Pattern]] = None,
) -> str:
    """
    Build the release-note drafting prompt.

    Output is deterministic for equal inputs. At most MAX_PROMPT_EXAMPLES
    examples are included.
    """
    sections: List[str] = [
        RELEASE_NOTE_SYSTEM_PROMPT,
        RELEASE_NOTE_GUIDELINES,
        _bug_section(bug),
        _commits_section(commits),
    ]
    if patterns:
        sections.append(_patterns_section(patterns))
    if examples:
        sections.append(_examples_section(list(examples)[:MAX_PROMPT_EXAMPLES]))
    sections.append(RELEASE_NOTE_OUTPUT_FORMAT)
    return "\n\n".join(sections) + "\n"
