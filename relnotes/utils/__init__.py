"""
Utility package exports
"""

from relnotes.utils.helpers import (
    flatten_list,
    strip_code_fences,
    truncate_text,
    name_from_email,
    utc_now,
    new_id,
)

__all__ = [
    "flatten_list",
    "strip_code_fences",
    "truncate_text",
    "name_from_email",
    "utc_now",
    "new_id",
]
