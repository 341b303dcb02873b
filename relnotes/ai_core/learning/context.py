"""
Bug context fingerprint.

A BugContext summarizes the attributes that make two bugs "similar" for the
learning loop. Similarity is plain attribute equality.
"""

import re
from typing import List

from relnotes.models import BugContext, BugRecord

STOP_WORDS = frozenset(
    {"the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by", "from"}
)

_WORD_RE = re.compile(r"[A-Za-z0-9-]+")
_CVE_RE = re.compile(r"CVE-\d{4}-\d{4,7}", re.IGNORECASE)
_CVE_MARKERS = ("CVE-", "cve-", "vulnerability", "security")

# First matching rule wins
_BUG_TYPE_RULES = (
    ("security", ("security", "vulnerability", "cve")),
    ("crash", ("crash", "panic", "segfault")),
    ("performance", ("performance", "slow", "latency")),
    ("memory", ("memory", "leak")),
)


def extract_title_keywords(title: str) -> List[str]:
    """Lowercased words longer than two characters, minus stop words, in order."""
    keywords = []
    for word in _WORD_RE.findall(title or ""):
        lowered = word.lower()
        if len(lowered) > 2 and lowered not in STOP_WORDS:
            keywords.append(lowered)
    return keywords


def mentions_cve(text: str) -> bool:
    return any(marker in (text or "") for marker in _CVE_MARKERS)


def extract_cve_number(text: str) -> str:
    match = _CVE_RE.search(text or "")
    return match.group(0).upper() if match else ""


def classify_bug_type(title: str) -> str:
    lowered = (title or "").lower()
    for bug_type, markers in _BUG_TYPE_RULES:
        if any(marker in lowered for marker in markers):
            return bug_type
    return "general"


def build_bug_context(bug: BugRecord) -> BugContext:
    """Derive the fingerprint of a bug from its title and tracker fields."""
    has_cve = mentions_cve(bug.title)
    cve_number = extract_cve_number(bug.title) if has_cve else ""
    if not cve_number and bug.cve_number:
        cve_number = bug.cve_number

    return BugContext(
        component=bug.component,
        severity=bug.severity,
        release=bug.release,
        bug_type=classify_bug_type(bug.title),
        has_cve=has_cve,
        cve_number=cve_number,
        title_keywords=extract_title_keywords(bug.title),
    )
