"""
Tests for the commit comment parser and tracker record mapping.
Owner: ① Tracker Integration & Sync Owner
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from datetime import timezone

from relnotes.integrations.tracker.mapper import (
    extract_unique_emails,
    map_tracker_bug,
    merge_tracker_bug,
    tracker_bug_url,
)
from relnotes.integrations.tracker.models import TrackerBug, TrackerComment
from relnotes.integrations.tracker.parser import parse_comment, parse_commit_comment
from relnotes.models import BugStatus

COMMIT_COMMENT = (
    "jane.doe committed https://review.example/c/eos/+/1234 in eos.git (main):\n"
    "\n"
    "Fix null deref in parser\n"
    "\n"
    "The parser dereferenced a missing node.\n"
    "Fixes: BUG123\n"
    "Change-Id: I77c0e7277d43c75c79730ff61f303eea83136f2f\n"
    "Merged-By:jane.doe\n"
)


class TestParseCommitComment:
    """Test suite for commit comment parsing."""

    def test_full_commit_comment(self):
        info = parse_commit_comment(COMMIT_COMMENT, comment_id=9, epoch_time=1700000000)

        assert info.is_commit
        assert info.comment_id == 9
        assert info.review_url == "https://review.example/c/eos/+/1234"
        assert info.commit_hash == "1234"
        assert info.repository == "eos.git"
        assert info.branch == "main"
        assert info.title == "Fix null deref in parser"
        assert info.change_id == "I77c0e7277d43c75c79730ff61f303eea83136f2f"
        assert info.merged_by == "jane.doe"
        assert info.commented_at.tzinfo == timezone.utc

    def test_fixes_trailer_dropped_from_message(self):
        info = parse_commit_comment(COMMIT_COMMENT)

        assert info.message == "The parser dereferenced a missing node."
        assert "Fixes:" not in info.message
        assert "Change-Id" not in info.message

    def test_plain_comment_is_not_a_commit(self):
        info = parse_commit_comment("Still reproduces on 4.31.\nSee attached logs.")

        assert not info.is_commit
        assert info.title == ""
        assert info.message == ""

    def test_header_without_committed_or_url(self):
        text = "bob merged change in tools.git (rel-2):\n\nTighten LLDP timers\nDetails.\nChange-Id: I9"
        info = parse_commit_comment(text)

        assert info.is_commit
        assert info.review_url == ""
        assert info.repository == "tools.git"
        assert info.branch == "rel-2"
        assert info.title == "Tighten LLDP timers"
        assert info.message == "Details."
        assert info.change_id == "I9"

    def test_blank_and_none_never_raise(self):
        for text in ["", None, "\n\n", ")(", " committed "]:
            info = parse_commit_comment(text)
            assert info.review_url == ""

    def test_custom_url_prefixes(self):
        text = "bot committed review:42 in tools.git (rel-1):\nTitle"
        info = parse_commit_comment(text, url_prefixes=["review:"])

        assert info.review_url == "review:42"
        assert info.repository == "tools.git"
        assert info.branch == "rel-1"

    def test_parse_comment_carries_id_and_time(self):
        comment = TrackerComment(id=5, bugId=1, user="gerrit", the_text=COMMIT_COMMENT, epoch_time=0)
        info = parse_comment(comment)

        assert info.comment_id == 5
        assert info.commented_at.year == 1970
        assert info.title == "Fix null deref in parser"


class TestMapper:
    """Test suite for tracker → record mapping."""

    def make_bug(self, **overrides):
        fields = dict(
            id=42,
            title="Crash on boot",
            description="Long description",
            severity="1",
            version="4.32.0",
            issueType="Bug",
            assignee="dev@example.com",
            reviewList=["rev@example.com", "dev@example.com"],
            watchers=["mgr@example.com", ""],
            component="boot",
        )
        fields.update(overrides)
        return TrackerBug(**fields)

    def test_extract_unique_emails_order(self):
        bugs = [self.make_bug(), self.make_bug(id=43, assignee="other@example.com")]
        assert extract_unique_emails(bugs) == [
            "dev@example.com",
            "rev@example.com",
            "mgr@example.com",
            "other@example.com",
        ]

    def test_map_tracker_bug(self):
        ids = {"dev@example.com": "u1", "mgr@example.com": "u2"}
        record = map_tracker_bug(self.make_bug(), ids, tracker_url="https://t/v3/bugs/42")

        assert record.tracker_id == 42
        assert record.release == "4.32.0"
        assert record.bug_type == "Bug"
        assert record.assigned_to_id == "u1"
        assert record.watcher_ids == ["u2"]
        assert record.status == BugStatus.PENDING
        assert record.last_synced_at is not None

    def test_merge_keeps_workflow_status(self):
        ids = {"dev@example.com": "u1"}
        record = map_tracker_bug(self.make_bug(), ids)
        record.status = BugStatus.DEV_APPROVED

        merged = merge_tracker_bug(record, self.make_bug(title="Crash on cold boot", description=""), ids)

        assert merged.status == BugStatus.DEV_APPROVED
        assert merged.title == "Crash on cold boot"
        assert merged.description == "Long description"

    def test_tracker_bug_url(self):
        assert tracker_bug_url("https://t/", "v3", 7) == "https://t/v3/bugs/7"
