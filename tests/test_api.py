"""
Tests for the storyweave HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from storyweave.api.server import create_app
from storyweave.config import DEFAULT_CONFIG
from storyweave.engine import NarrativeEngine
from storyweave.state.seeds import CHA_HAE_IN
from storyweave.state.store import MemorySnapshotStore


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def api_engine():
    return NarrativeEngine()


@pytest.fixture
def client(api_engine, memory_snapshots):
    """Test client over an in-memory engine and snapshot store."""
    app = create_app(engine=api_engine, snapshots=memory_snapshots, config=dict(DEFAULT_CONFIG))
    return TestClient(app)


@pytest.fixture
def json_client(tmp_path):
    """Test client that writes snapshots under tmp_path."""
    config = dict(DEFAULT_CONFIG, snapshot_dir="saves")
    return TestClient(create_app(config=config, data_dir=tmp_path))


# -----------------------------------------------------------------------------
# Tests
# -----------------------------------------------------------------------------

class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["ok"] is True


class TestMemories:

    def test_add_memory(self, client):
        response = client.post("/players/p1/memories", json={
            "event": "First real conversation",
            "location": "hunter_association",
            "story_tags": ["first_meaningful_conversation"],
            "emotional_impact": 4,
        })

        assert response.status_code == 200
        body = response.json()
        assert body["memory_id"].startswith("memory_")
        assert body["current_chapter"] == 2
        assert body["triggered_events"] == []

    def test_add_memory_reports_triggered_events(self, client, api_engine, set_affection):
        set_affection(api_engine, "p1", 0.5)

        response = client.post("/players/p1/memories", json={"event": "Coffee", "location": "hongdae_cafe"})
        assert response.json()["triggered_events"] == ["first_coffee_date"]

        response = client.post("/players/p1/memories", json={"event": "More coffee", "location": "hongdae_cafe"})
        assert response.json()["triggered_events"] == []

    def test_memory_without_event(self, client):
        response = client.post("/players/p1/memories", json={"location": "hongdae_cafe"})
        assert response.status_code == 422

    def test_large_impact_accepted(self, client):
        response = client.post("/players/p1/memories", json={"event": "Gate break", "emotional_impact": 42})
        assert response.status_code == 200
        assert client.get("/players/p1/context").json()["narrative_tension"] == 0.84

    def test_list_memories(self, client):
        client.post("/players/p1/memories", json={"event": "one"})
        client.post("/players/p1/memories", json={"event": "two"})

        response = client.get("/players/p1/memories")
        assert [m["event"] for m in response.json()] == ["one", "two"]


class TestContext:

    def test_full_context(self, client):
        response = client.get("/players/p1/context")

        assert response.status_code == 200
        body = response.json()
        assert body["pacing"] == "slow"
        assert body["active_story_arcs"][0]["title"] == "The Hunter's Heart"
        assert body["active_story_arcs"][0]["is_complete"] is False
        assert CHA_HAE_IN in body["emotional_states"]
        assert len(body["world_events"]) == 3

    def test_summary(self, client):
        client.post("/players/p1/memories", json={"event": "x", "story_tags": ["first_meaningful_conversation"]})

        body = client.get("/api/narrative-context/p1").json()
        assert body["story_title"] == "The Hunter's Heart"
        assert body["current_chapter"] == 2
        assert body["emotional_summary"]["dominant_mood"] == ["confidence", 0.8]
        assert body["emotional_summary"]["relationship_level"] == ["professional_respect", 0.8]
        assert len(body["recent_memories"]) == 1

    def test_narrative_bundle(self, client):
        response = client.post("/players/p1/narrative", json={"situation": "Late night at her apartment"})

        body = response.json()
        assert body["narrative_prompt"].startswith("Chapter 1 of The Hunter's Heart")
        assert "TIME_CONTEXT" in body["narrative_prompt"]
        assert len(body["suggested_responses"]) == 3

    def test_recent_events(self, client):
        client.post("/players/p1/memories", json={"event": "x", "story_tags": ["first_meaningful_conversation"]})
        client.post("/players/p2/memories", json={"event": "y"})

        events = client.get("/players/p1/events").json()
        types = [e["type"] for e in events]
        assert types[0] == "memory.added"
        assert "arc.chapter_event" in types
        assert types.count("memory.added") == 1

    def test_recent_events_limit(self, client):
        for i in range(3):
            client.post("/players/p1/memories", json={"event": f"e{i}"})

        events = client.get("/players/p1/events", params={"limit": 2}).json()
        assert [e["data"]["memory_id"] for e in events] == [
            m["id"] for m in client.get("/players/p1/memories").json()[-2:]
        ]


class TestPlayerOperations:

    def test_mood(self, client):
        assert client.post("/players/p1/mood", json={"mood": "playful", "duration_minutes": 30}).status_code == 200
        assert client.get("/players/p1/context").json()["prevailing_mood"] == "playful"

    def test_mood_duration_must_be_positive(self, client):
        response = client.post("/players/p1/mood", json={"mood": "playful", "duration_minutes": 0})
        assert response.status_code == 422

    def test_flags_milestones_and_profile(self, client):
        client.post("/players/p1/flags", json={"key": "met_mother", "value": "yes"})
        client.post("/players/p1/milestones", json={"milestone": "shared_secret"})
        client.post("/players/p1/profile", json={"profile": "pragmatic"})

        body = client.get("/players/p1/context").json()
        assert body["narrative_flags"]["met_mother"] == "yes"
        assert body["relationship_milestones"] == ["shared_secret"]
        assert body["player_profile"] == "pragmatic"

    def test_substories(self, client):
        client.post("/players/p1/substories", json={"character_id": "yoo_jin_ho", "storyline_id": "guild"})
        client.post("/players/p1/substories", json={
            "character_id": "yoo_jin_ho", "storyline_id": "guild", "progress_level": 3,
        })

        flags = client.get("/players/p1/context").json()["narrative_flags"]
        assert flags["substory_yoo_jin_ho_guild"] == "active"
        assert flags["substory_yoo_jin_ho_guild_progress"] == "3"


class TestSaveLoad:

    def test_save_then_load(self, client, memory_snapshots):
        client.post("/players/p1/memories", json={"event": "kept"})
        saved = client.post("/players/p1/save")
        assert saved.status_code == 200
        assert saved.json()["memory_count"] == 1
        assert memory_snapshots.exists("p1")

        client.post("/players/p1/memories", json={"event": "discarded"})
        loaded = client.post("/players/p1/load")
        assert loaded.status_code == 200

        events = [m["event"] for m in client.get("/players/p1/memories").json()]
        assert events == ["kept"]

    def test_load_missing(self, client):
        assert client.post("/players/nobody/load").status_code == 404

    def test_json_store_on_disk(self, json_client, tmp_path):
        json_client.post("/players/p1/memories", json={"event": "kept"})
        assert json_client.post("/players/p1/save").status_code == 200
        assert (tmp_path / "saves" / "p1.json").exists()

    def test_unusable_player_id(self, json_client):
        assert json_client.post("/players/bad%20id/save").status_code == 400
