"""
Pytest fixtures for storyweave tests.

Provides in-memory stores, a fresh engine and memory helpers for isolated testing.
"""

import pytest
from pathlib import Path

# Add project root to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from storyweave.engine import NarrativeEngine
from storyweave.state.event_bus import EventBus
from storyweave.state.schema import StoryMemory
from storyweave.state.seeds import CHA_HAE_IN
from storyweave.state.store import JsonSnapshotStore, MemoryNarrativeStore, MemorySnapshotStore


@pytest.fixture
def store():
    """In-memory narrative store."""
    return MemoryNarrativeStore()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def engine():
    """Engine with default config and in-memory storage."""
    return NarrativeEngine()


@pytest.fixture
def player():
    return "player_1"


@pytest.fixture
def memory():
    """Factory for StoryMemory records with sensible defaults."""
    def _make(event="Talked after the raid", **fields):
        return StoryMemory(event=event, **fields)
    return _make


@pytest.fixture
def set_affection():
    """Set Cha Hae-In's personal_affection for a player, seeding them first."""
    def _set(engine, player_id, value):
        engine.get_story_context(player_id)
        state = engine.store.get_emotional_state(player_id, CHA_HAE_IN)
        state.relationship_dynamics["personal_affection"] = value
        return state
    return _set


@pytest.fixture
def memory_snapshots():
    """In-memory snapshot store."""
    return MemorySnapshotStore()


@pytest.fixture
def json_snapshots(tmp_path):
    """File-based snapshot store in a temp directory."""
    return JsonSnapshotStore(tmp_path / "saves")
