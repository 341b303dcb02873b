"""
Tests for the HTTP routes, with services built on fakes.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import pytest
from fastapi.testclient import TestClient

from relnotes.ai_core.learning.task_queue import BackgroundTaskQueue
from relnotes.main import app
from relnotes.models import Pattern
from relnotes.repositories import InMemoryRepositories
from relnotes.services.container import build_services, get_services
from conftest import FakeTracker, ScriptedChatModel


@pytest.fixture
def services():
    tracker = FakeTracker()
    tracker.add_bug(id=1, title="BGP flap", version="4.32.0", assignee="jane.doe@example.com")
    tracker.add_bug(id=2, title="LLDP leak", version="4.32.0")
    return build_services(
        tracker=tracker,
        llm=ScriptedChatModel(),
        repositories=InMemoryRepositories(),
        task_queue=BackgroundTaskQueue(workers=1, max_pending=10, name="api-test"),
    )


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestHealth:
    def test_root_and_health(self, client):
        assert client.get("/").json()["endpoints"]["release_notes"] == "/api/release-notes"
        assert client.get("/health").json()["status"] == "healthy"


class TestSyncRoutes:
    """Test suite for /api/sync."""

    def test_sync_release_and_status(self, client):
        response = client.post("/api/sync/release", json={"release": "4.32.0"})

        assert response.status_code == 200
        assert response.json()["new_bugs"] == 2

        status = client.get("/api/sync/status/4.32.0").json()
        assert status["total_bugs"] == 2
        assert status["synced_bugs"] == 2

    def test_sync_release_tracker_failure(self, client, services):
        services.tracker.fail_with = ValueError("no valid filters provided")
        response = client.post("/api/sync/release", json={"release": "4.32.0"})
        assert response.status_code == 502

    def test_sync_unknown_bug(self, client):
        assert client.post("/api/sync/bugs/404").status_code == 404


class TestReleaseNoteRoutes:
    """Test suite for /api/release-notes."""

    def sync_first_bug(self, client, services):
        client.post("/api/sync/bugs/1")
        return services.repositories.bugs.get_by_tracker_id(1)

    def test_manual_note_lifecycle(self, client, services):
        bug = self.sync_first_bug(client, services)

        created = client.post(
            f"/api/release-notes/bugs/{bug.id}/generate",
            json={"user_id": "dev-1", "manual_content": "Fixed BGP flaps."},
        )
        assert created.status_code == 201
        note_id = created.json()["id"]

        duplicate = client.post(
            f"/api/release-notes/bugs/{bug.id}/generate",
            json={"user_id": "dev-1", "manual_content": "Again."},
        )
        assert duplicate.status_code == 409

        updated = client.put(
            f"/api/release-notes/{note_id}",
            json={"user_id": "dev-1", "content": "Fixed BGP session flaps.", "status": "dev_approved"},
        )
        assert updated.json()["version"] == 2

        approved = client.post(f"/api/release-notes/{note_id}/approve", json={"manager_id": "mgr-1"})
        assert approved.json()["status"] == "mgr_approved"
        assert services.repositories.bugs.get(bug.id).status.value == "mgr_approved"

    def test_unknown_bug_and_note(self, client):
        response = client.post("/api/release-notes/bugs/missing/generate", json={"user_id": "dev-1"})
        assert response.status_code == 404
        assert client.get("/api/release-notes/missing").status_code == 404
        assert client.post("/api/release-notes/missing/reject", json={"manager_id": "m"}).status_code == 404


class TestPatternRoutes:
    """Test suite for /api/patterns."""

    def test_top_merge_and_deactivate(self, client, services):
        patterns = services.repositories.patterns
        a = patterns.create(Pattern(name="a", occurrence_count=2, avg_confidence=0.8))
        b = patterns.create(Pattern(name="b", occurrence_count=3, avg_confidence=0.6))

        top = client.get("/api/patterns/top", params={"limit": 1}).json()
        assert [p["name"] for p in top] == ["b"]

        merged = client.post("/api/patterns/merge", json={"source_id": a.id, "target_id": b.id})
        assert merged.json()["occurrence_count"] == 5

        again = client.post("/api/patterns/merge", json={"source_id": a.id, "target_id": b.id})
        assert again.status_code == 400

        missing = client.post("/api/patterns/merge", json={"source_id": "x", "target_id": b.id})
        assert missing.status_code == 404

        assert client.post(f"/api/patterns/{b.id}/deactivate").json()["is_active"] is False

    def test_process_feedback_with_nothing_pending(self, client):
        response = client.post("/api/patterns/feedback/process")
        assert response.json() == {"processed": 0}
