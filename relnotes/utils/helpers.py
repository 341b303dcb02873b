"""
Shared Utility Functions

Common helper functions used across multiple modules.
"""

import re
import uuid
import logging
from datetime import datetime, timezone
from typing import Any, List

logger = logging.getLogger(__name__)

_FENCE_PREFIXES = ("```json", "```")


def flatten_list(items: Any) -> List[str]:
    """
    Flatten a potentially nested list to a single-level list of strings.

    Handles various formats:
    - Nested lists: [["a", "b"]] → ["a", "b"]
    - Flat lists: ["a", "b"] → ["a", "b"]
    - Single string: "a" → ["a"]
    - None/empty: None → []

    Args:
        items: Any value that could be a list, nested list, or string

    Returns:
        Flat list of strings
    """
    if not items:
        return []

    if isinstance(items, str):
        return [items]

    if not isinstance(items, list):
        return [str(items)]

    result = []
    for item in items:
        if isinstance(item, list):
            result.extend(flatten_list(item))
        elif isinstance(item, str):
            result.append(item)
        elif item is not None:
            result.append(str(item))

    return result


def strip_code_fences(text: str) -> str:
    """
    Remove a surrounding markdown code fence from an LLM response.

    "```json {...} ```" and "``` {...} ```" both become "{...}". Text without
    a leading fence is only trimmed.
    """
    cleaned = (text or "").strip()
    for prefix in _FENCE_PREFIXES:
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix):]
            if cleaned.endswith("```"):
                cleaned = cleaned[:-3]
            return cleaned.strip()
    return cleaned


def truncate_text(text: str, limit: int, suffix: str = "...") -> str:
    """Cut text to `limit` characters, appending `suffix` when anything was dropped."""
    if text is None:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + suffix


def name_from_email(email: str) -> str:
    """
    Derive a display name from an email local part.

    "jane.doe@example.com" → "Jane Doe"
    """
    local = (email or "").split("@", 1)[0]
    parts = [p for p in re.split(r"[._\-+]+", local) if p]
    if not parts:
        return email or ""
    return " ".join(p.capitalize() for p in parts)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())
