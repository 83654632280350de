"""
Narrative storage abstraction.

Separates persistence from rule logic for testability. Two layers:
- NarrativeStore: live per-player state the systems read and write
- SnapshotStore: durable save/restore of whole-player snapshots
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from .schema import (
    CharacterEmotionalState,
    NarrativeSnapshot,
    PlayerProfile,
    StoryArc,
    StoryMemory,
    WorldEvent,
)

logger = logging.getLogger(__name__)

# Player ids become file names
_SAFE_PLAYER_ID = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")


@runtime_checkable
class NarrativeStore(Protocol):
    """
    Live state interface used by the narrative systems.

    Implementations:
    - MemoryNarrativeStore: process-local dictionaries (default)
    """

    def append_memory(self, player_id: str, memory: StoryMemory) -> None:
        """Append a memory to the end of the player's log."""
        ...

    def list_memories(self, player_id: str) -> list[StoryMemory]:
        """All memories for the player in insertion order."""
        ...

    def get_arcs(self, player_id: str) -> list[StoryArc]:
        """Arcs belonging to the player."""
        ...

    def put_arc(self, player_id: str, arc: StoryArc) -> None:
        """Insert or replace an arc by id."""
        ...

    def get_emotional_state(self, player_id: str, character_id: str) -> CharacterEmotionalState | None:
        """Emotional state of a character as seen by this player."""
        ...

    def put_emotional_state(self, player_id: str, state: CharacterEmotionalState) -> None:
        """Insert or replace a character's emotional state."""
        ...

    def list_emotional_states(self, player_id: str) -> dict[str, CharacterEmotionalState]:
        """All tracked characters for the player, keyed by character id."""
        ...

    def get_world_events(self, player_id: str) -> list[WorldEvent]:
        """The player's world-event catalog."""
        ...

    def put_world_events(self, player_id: str, events: list[WorldEvent]) -> None:
        """Replace the player's world-event catalog."""
        ...

    def get_profile(self, player_id: str) -> PlayerProfile | None:
        """Player profile, or None if the player has never been seen."""
        ...

    def put_profile(self, profile: PlayerProfile) -> None:
        """Insert or replace a player profile."""
        ...

    def players(self) -> list[str]:
        """Ids of every player with state."""
        ...

    def drop_player(self, player_id: str) -> bool:
        """Forget everything about a player. Returns True if anything was removed."""
        ...


class MemoryNarrativeStore:
    """
    In-memory narrative store.

    Fully volatile: state lives until the process exits.
    """

    def __init__(self):
        self._memories: dict[str, list[StoryMemory]] = {}
        self._arcs: dict[str, dict[str, StoryArc]] = {}
        self._emotions: dict[str, dict[str, CharacterEmotionalState]] = {}
        self._world_events: dict[str, list[WorldEvent]] = {}
        self._profiles: dict[str, PlayerProfile] = {}

    def append_memory(self, player_id: str, memory: StoryMemory) -> None:
        self._memories.setdefault(player_id, []).append(memory)

    def list_memories(self, player_id: str) -> list[StoryMemory]:
        return list(self._memories.get(player_id, []))

    def get_arcs(self, player_id: str) -> list[StoryArc]:
        return list(self._arcs.get(player_id, {}).values())

    def put_arc(self, player_id: str, arc: StoryArc) -> None:
        self._arcs.setdefault(player_id, {})[arc.id] = arc

    def get_emotional_state(self, player_id: str, character_id: str) -> CharacterEmotionalState | None:
        return self._emotions.get(player_id, {}).get(character_id)

    def put_emotional_state(self, player_id: str, state: CharacterEmotionalState) -> None:
        self._emotions.setdefault(player_id, {})[state.character_id] = state

    def list_emotional_states(self, player_id: str) -> dict[str, CharacterEmotionalState]:
        return dict(self._emotions.get(player_id, {}))

    def get_world_events(self, player_id: str) -> list[WorldEvent]:
        return list(self._world_events.get(player_id, []))

    def put_world_events(self, player_id: str, events: list[WorldEvent]) -> None:
        self._world_events[player_id] = list(events)

    def get_profile(self, player_id: str) -> PlayerProfile | None:
        return self._profiles.get(player_id)

    def put_profile(self, profile: PlayerProfile) -> None:
        self._profiles[profile.player_id] = profile

    def players(self) -> list[str]:
        return sorted(
            set(self._memories) | set(self._arcs) | set(self._emotions)
            | set(self._world_events) | set(self._profiles)
        )

    def drop_player(self, player_id: str) -> bool:
        removed = False
        for table in (self._memories, self._arcs, self._emotions, self._world_events, self._profiles):
            if player_id in table:
                del table[player_id]
                removed = True
        return removed


# -----------------------------------------------------------------------------
# Snapshot Persistence
# -----------------------------------------------------------------------------


@runtime_checkable
class SnapshotStore(Protocol):
    """
    Durable storage for player snapshots.

    Implementations:
    - JsonSnapshotStore: File-based persistence (production)
    - MemorySnapshotStore: In-memory storage (testing)
    """

    def save(self, snapshot: NarrativeSnapshot) -> None:
        """Persist a snapshot."""
        ...

    def load(self, player_id: str) -> NarrativeSnapshot | None:
        """Load a player's snapshot. Returns None if not found."""
        ...

    def delete(self, player_id: str) -> bool:
        """Delete a snapshot. Returns True if deleted."""
        ...

    def list_all(self) -> list[dict]:
        """List saved players with metadata."""
        ...

    def exists(self, player_id: str) -> bool:
        """Check if a snapshot exists."""
        ...


def _snapshot_summary(snapshot: NarrativeSnapshot) -> dict:
    chapter = snapshot.profile.current_chapter if snapshot.profile else 1
    return {
        "player_id": snapshot.player_id,
        "memory_count": len(snapshot.memories),
        "chapter": chapter,
        "saved_at": snapshot.saved_at,
    }


class JsonSnapshotStore:
    """
    File-based snapshot storage using JSON.

    One file per player; the previous save is kept as <player>.json.bak.
    """

    def __init__(self, snapshot_dir: Path | str = "saves"):
        self.snapshot_dir = Path(snapshot_dir)
        self.snapshot_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, player_id: str) -> Path:
        if not _SAFE_PLAYER_ID.match(player_id):
            raise ValueError(f"Player id not usable as a file name: {player_id!r}")
        return self.snapshot_dir / f"{player_id}.json"

    def save(self, snapshot: NarrativeSnapshot) -> None:
        """Save snapshot to JSON file with backup."""
        snapshot.saved_at = datetime.now()
        snapshot_file = self._path(snapshot.player_id)

        if snapshot_file.exists():
            backup = snapshot_file.with_suffix(".json.bak")
            backup.write_text(snapshot_file.read_text(encoding="utf-8"), encoding="utf-8")

        snapshot_file.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
        logger.info(f"Saved snapshot for {snapshot.player_id} to {snapshot_file}")

    def load(self, player_id: str) -> NarrativeSnapshot | None:
        snapshot_file = self._path(player_id)
        if not snapshot_file.exists():
            return None

        try:
            data = json.loads(snapshot_file.read_text(encoding="utf-8"))
            return NarrativeSnapshot.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Could not read snapshot {snapshot_file}: {e}")
            return None

    def delete(self, player_id: str) -> bool:
        snapshot_file = self._path(player_id)
        if snapshot_file.exists():
            snapshot_file.unlink()
            return True
        return False

    def list_all(self) -> list[dict]:
        """
        List saved snapshots, most recently modified first.

        Returns list of dicts with: player_id, memory_count, chapter, saved_at
        """
        results = []
        for f in sorted(
            self.snapshot_dir.glob("*.json"),
            key=lambda x: x.stat().st_mtime,
            reverse=True,
        ):
            if not _SAFE_PLAYER_ID.match(f.stem):
                logger.debug(f"Skipping {f.name}: not a player snapshot name")
                continue
            snapshot = self.load(f.stem)
            if snapshot is not None:
                results.append(_snapshot_summary(snapshot))
        return results

    def exists(self, player_id: str) -> bool:
        return self._path(player_id).exists()


class MemorySnapshotStore:
    """
    In-memory snapshot storage for testing.

    Snapshots are copied on save and load so later engine mutations
    cannot leak into the saved copy.
    """

    def __init__(self):
        self.snapshots: dict[str, NarrativeSnapshot] = {}

    def save(self, snapshot: NarrativeSnapshot) -> None:
        snapshot.saved_at = datetime.now()
        self.snapshots[snapshot.player_id] = snapshot.model_copy(deep=True)

    def load(self, player_id: str) -> NarrativeSnapshot | None:
        snapshot = self.snapshots.get(player_id)
        return snapshot.model_copy(deep=True) if snapshot else None

    def delete(self, player_id: str) -> bool:
        if player_id in self.snapshots:
            del self.snapshots[player_id]
            return True
        return False

    def list_all(self) -> list[dict]:
        results = [_snapshot_summary(s) for s in self.snapshots.values()]
        results.sort(key=lambda x: x["saved_at"], reverse=True)
        return results

    def exists(self, player_id: str) -> bool:
        return player_id in self.snapshots

    def clear(self) -> None:
        """Clear all snapshots (test utility)."""
        self.snapshots.clear()
