"""
Tests for tracker token lookup.
Owner: ① Tracker Integration & Sync Owner
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import pytest

from relnotes.integrations.tracker.auth import TokenProvider, TrackerAuthError


class TestTokenProvider:
    """Environment variable first, YAML file second."""

    def test_env_var_wins(self, monkeypatch, tmp_path):
        token_file = tmp_path / "oauth"
        token_file.write_text("access_token: from-file\n")
        monkeypatch.setenv("TEST_TRACKER_TOKEN", "from-env")

        provider = TokenProvider(env_var="TEST_TRACKER_TOKEN", token_file=str(token_file))
        assert provider.get_token() == "from-env"

    def test_reads_yaml_file(self, monkeypatch, tmp_path):
        token_file = tmp_path / "oauth"
        token_file.write_text("access_token: from-file\nrefresh_token: other\n")
        monkeypatch.delenv("TEST_TRACKER_TOKEN", raising=False)

        provider = TokenProvider(env_var="TEST_TRACKER_TOKEN", token_file=str(token_file))
        assert provider.get_token() == "from-file"

    def test_missing_file(self, monkeypatch, tmp_path):
        monkeypatch.delenv("TEST_TRACKER_TOKEN", raising=False)
        provider = TokenProvider(env_var="TEST_TRACKER_TOKEN", token_file=str(tmp_path / "none"))

        with pytest.raises(TrackerAuthError):
            provider.get_token()

    def test_file_without_token(self, monkeypatch, tmp_path):
        token_file = tmp_path / "oauth"
        token_file.write_text("refresh_token: only\n")
        monkeypatch.delenv("TEST_TRACKER_TOKEN", raising=False)

        provider = TokenProvider(env_var="TEST_TRACKER_TOKEN", token_file=str(token_file))
        with pytest.raises(TrackerAuthError, match="No access_token"):
            provider.get_token()
