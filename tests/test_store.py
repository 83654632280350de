"""
Tests for live narrative storage and snapshot persistence.
"""

import pytest

from storyweave.state.schema import NarrativeSnapshot, PlayerProfile, StoryMemory
from storyweave.state.seeds import cha_hae_in_state, main_romance_arc
from storyweave.state.store import NarrativeStore, SnapshotStore


def _snapshot(player_id="player_1", memories=2, chapter=1):
    return NarrativeSnapshot(
        player_id=player_id,
        memories=[StoryMemory(event=f"event {i}") for i in range(memories)],
        arcs=[main_romance_arc()],
        emotional_states=[cha_hae_in_state()],
        profile=PlayerProfile(player_id=player_id, current_chapter=chapter),
    )


class TestMemoryNarrativeStore:

    def test_satisfies_protocol(self, store):
        assert isinstance(store, NarrativeStore)

    def test_memories_kept_in_insertion_order(self, store):
        for i in range(3):
            store.append_memory("p", StoryMemory(event=f"e{i}"))
        assert [m.event for m in store.list_memories("p")] == ["e0", "e1", "e2"]

    def test_list_memories_returns_copy(self, store):
        store.append_memory("p", StoryMemory(event="e"))
        store.list_memories("p").clear()
        assert len(store.list_memories("p")) == 1

    def test_unknown_player_is_empty(self, store):
        assert store.list_memories("nobody") == []
        assert store.get_arcs("nobody") == []
        assert store.get_profile("nobody") is None
        assert store.get_emotional_state("nobody", "cha_hae_in") is None

    def test_put_arc_replaces_by_id(self, store):
        arc = main_romance_arc()
        store.put_arc("p", arc)
        advanced = main_romance_arc()
        advanced.current_chapter = 4
        store.put_arc("p", advanced)
        assert [a.current_chapter for a in store.get_arcs("p")] == [4]

    def test_players_are_isolated(self, store):
        store.put_emotional_state("a", cha_hae_in_state())
        store.put_emotional_state("b", cha_hae_in_state())
        store.get_emotional_state("a", "cha_hae_in").shift_mood("happiness", 0.3)
        assert store.get_emotional_state("b", "cha_hae_in").current_mood["happiness"] == 0.6

    def test_drop_player(self, store):
        store.append_memory("p", StoryMemory(event="e"))
        store.put_profile(PlayerProfile(player_id="p"))
        assert store.players() == ["p"]
        assert store.drop_player("p") is True
        assert store.players() == []
        assert store.drop_player("p") is False


class TestMemorySnapshotStore:

    def test_satisfies_protocol(self, memory_snapshots):
        assert isinstance(memory_snapshots, SnapshotStore)

    def test_save_and_load(self, memory_snapshots):
        memory_snapshots.save(_snapshot())
        loaded = memory_snapshots.load("player_1")
        assert loaded is not None
        assert len(loaded.memories) == 2

    def test_saved_copy_is_isolated(self, memory_snapshots):
        snap = _snapshot()
        memory_snapshots.save(snap)
        snap.memories.clear()
        assert len(memory_snapshots.load("player_1").memories) == 2

    def test_missing_returns_none(self, memory_snapshots):
        assert memory_snapshots.load("nobody") is None

    def test_delete_and_clear(self, memory_snapshots):
        memory_snapshots.save(_snapshot("a"))
        memory_snapshots.save(_snapshot("b"))
        assert memory_snapshots.delete("a") is True
        assert memory_snapshots.delete("a") is False
        memory_snapshots.clear()
        assert memory_snapshots.list_all() == []


class TestJsonSnapshotStore:

    def test_satisfies_protocol(self, json_snapshots):
        assert isinstance(json_snapshots, SnapshotStore)

    def test_round_trip(self, json_snapshots):
        snap = _snapshot(chapter=3)
        json_snapshots.save(snap)

        loaded = json_snapshots.load("player_1")
        assert loaded.player_id == "player_1"
        assert [m.id for m in loaded.memories] == [m.id for m in snap.memories]
        assert loaded.arcs[0].title == "The Hunter's Heart"
        assert loaded.emotional_states[0].relationship_dynamics["personal_affection"] == 0.3
        assert loaded.profile.current_chapter == 3

    def test_second_save_writes_backup(self, json_snapshots):
        json_snapshots.save(_snapshot(memories=1))
        json_snapshots.save(_snapshot(memories=2))
        backup = json_snapshots.snapshot_dir / "player_1.json.bak"
        assert backup.exists()

    def test_corrupt_file_loads_as_none(self, json_snapshots):
        (json_snapshots.snapshot_dir / "broken.json").write_text("{not json", encoding="utf-8")
        assert json_snapshots.load("broken") is None

    def test_unsafe_player_id_rejected(self, json_snapshots):
        with pytest.raises(ValueError):
            json_snapshots.save(_snapshot(player_id="../escape"))
        with pytest.raises(ValueError):
            json_snapshots.load(".hidden")

    def test_list_all(self, json_snapshots):
        json_snapshots.save(_snapshot("a", memories=1, chapter=2))
        json_snapshots.save(_snapshot("b", memories=3))

        entries = {e["player_id"]: e for e in json_snapshots.list_all()}
        assert entries["a"]["memory_count"] == 1
        assert entries["a"]["chapter"] == 2
        assert entries["b"]["memory_count"] == 3

    def test_list_all_skips_foreign_file_names(self, json_snapshots):
        json_snapshots.save(_snapshot("a"))
        (json_snapshots.snapshot_dir / "bad name.json").write_text("{}", encoding="utf-8")
        (json_snapshots.snapshot_dir / ".hidden.json").write_text("{}", encoding="utf-8")

        assert [e["player_id"] for e in json_snapshots.list_all()] == ["a"]

    def test_exists_and_delete(self, json_snapshots):
        json_snapshots.save(_snapshot())
        assert json_snapshots.exists("player_1")
        assert json_snapshots.delete("player_1") is True
        assert not json_snapshots.exists("player_1")
