"""
Commit comment parser.
Owner: ① Tracker Integration & Sync Owner

The code-review bot posts a comment on the bug for every merged change:

    jane.doe committed https://review.example/c/repo/+/1234 in repo.git (main):

    Fix null deref in parser

    Longer description of the change.
    Fixes: BUG123
    Change-Id: I77c0e7277d43c75c79730ff61f303eea83136f2f
    Merged-By:jane.doe

Parsing is best-effort and never raises: anything that cannot be found is
left as an empty string.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from relnotes.integrations.tracker.models import TrackerComment

DEFAULT_URL_PREFIXES = ("https://", "http://")


@dataclass
class ParsedCommit:
    """Commit coordinates and message recovered from a tracker comment."""

    comment_id: int = 0
    commented_at: Optional[datetime] = None
    review_url: str = ""
    commit_hash: str = ""
    repository: str = ""
    branch: str = ""
    title: str = ""
    message: str = ""
    change_id: str = ""
    merged_by: str = ""

    @property
    def is_commit(self) -> bool:
        return bool(self.review_url or self.repository or self.change_id)


def _is_commit_header(line: str, url_prefixes: Sequence[str]) -> bool:
    if " committed " in line:
        return True
    return any(token.startswith(tuple(url_prefixes)) for token in line.split())


def parse_commit_comment(
    text: str,
    comment_id: int = 0,
    epoch_time: Optional[int] = None,
    url_prefixes: Sequence[str] = DEFAULT_URL_PREFIXES,
) -> ParsedCommit:
    """
    Parse a commit-announcement comment.

    Args:
        text: Raw comment text
        comment_id: Tracker comment id, copied through
        epoch_time: Seconds since epoch, converted to an aware UTC datetime
        url_prefixes: Prefixes that identify the review URL token

    Returns:
        ParsedCommit. Review URL, repository and branch are read from the
        first line independently. Title, message and trailers are only read
        when that line is a commit header or names a repository.
    """
    info = ParsedCommit(comment_id=comment_id)
    if epoch_time is not None:
        try:
            info.commented_at = datetime.fromtimestamp(epoch_time, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            info.commented_at = None

    lines = (text or "").split("\n")
    header = lines[0]
    prefixes = tuple(url_prefixes)

    # Header: "<user> committed <url> in <repo>.git (<branch>):"
    for token in header.split():
        if token.startswith(prefixes):
            info.review_url = token.strip()
            marker = info.review_url.rfind("/+/")
            if marker != -1:
                info.commit_hash = info.review_url[marker + 3:]
            break

    if " in " in header and ".git" in header:
        repo_part = header.split(" in ", 1)[1]
        end = repo_part.find(".git")
        if end != -1:
            info.repository = repo_part[: end + 4]

    start = header.find("(")
    end = header.find(")")
    if start != -1 and end > start:
        info.branch = header[start + 1 : end]

    if not (_is_commit_header(header, prefixes) or info.repository):
        return info

    # Body: first non-blank line is the title, trailers are pulled out
    message_lines = []
    title_found = False
    for line in lines[1:]:
        stripped = line.strip()
        if not title_found:
            if stripped:
                info.title = stripped
                title_found = True
            continue

        if stripped.startswith("Change-Id:"):
            info.change_id = stripped[len("Change-Id:"):].strip()
        elif stripped.startswith("Merged-By:"):
            info.merged_by = stripped[len("Merged-By:"):].strip()
        elif not stripped.startswith("Fixes:"):
            message_lines.append(line)

    info.message = "\n".join(message_lines).strip()
    return info


def parse_comment(
    comment: TrackerComment, url_prefixes: Sequence[str] = DEFAULT_URL_PREFIXES
) -> ParsedCommit:
    """Parse a TrackerComment, carrying over its id and timestamp."""
    return parse_commit_comment(
        comment.text,
        comment_id=comment.id,
        epoch_time=comment.epoch_time,
        url_prefixes=url_prefixes,
    )
