"""
Narrative engine facade.

The single entry point the game layer talks to. Writing a memory runs
the analysis pipeline synchronously, in a fixed order:

1. long-term memory capture
2. player-profile scoring
3. story arc progression
4. world event triggers
5. emotional state update

Every public call holds a per-player lock, so concurrent requests for
the same player are applied one at a time in arrival order. Emotional
state is scoped per (player, character).
"""

import logging
import threading
from typing import Callable, NamedTuple

from .config import DEFAULT_CONFIG, Config
from .context.narrative import NarrativeContextBuilder
from .state.event_bus import EventBus, EventType
from .state.schema import (
    MemoryInput,
    NarrativeBundle,
    NarrativeContext,
    NarrativeSnapshot,
    StoryArc,
    StoryMemory,
    WorldEvent,
    parse_condition,
)
from .state.seeds import CHARACTER_TEMPLATES, default_world_events, main_romance_arc
from .state.store import MemoryNarrativeStore, NarrativeStore
from .systems.arcs import StoryArcTracker
from .systems.emotions import EmotionalStateModel
from .systems.profile import PlayerProfileSystem
from .systems.world_events import WorldEventEngine

logger = logging.getLogger(__name__)

# Called with (player_id, memory); return value is ignored
MemoryAnalyzer = Callable[[str, StoryMemory], object]


class MemoryOutcome(NamedTuple):
    """What a single memory write did, read under the player's lock."""

    memory_id: str
    current_chapter: int
    triggered_events: list[str]


class NarrativeEngine:
    """
    Owns narrative state for every player in the process.

    Storage is delegated to a NarrativeStore (in-memory by default).
    Observable effects are published on an EventBus.
    """

    def __init__(
        self,
        store: NarrativeStore | None = None,
        bus: EventBus | None = None,
        config: Config | None = None,
        world_event_factory: Callable[[], list[WorldEvent]] = default_world_events,
        arc_factories: list[Callable[[], StoryArc]] | None = None,
    ):
        self.config: Config = {**DEFAULT_CONFIG, **(config or {})}
        self.store = store if store is not None else MemoryNarrativeStore()
        self.bus = bus if bus is not None else EventBus(self.config["event_history_limit"])

        self._world_event_factory = world_event_factory
        self._arc_factories = arc_factories if arc_factories is not None else [main_romance_arc]

        focus = self.config["focus_character"]
        self.profiles = PlayerProfileSystem(
            self.store, self.bus, long_term_threshold=self.config["long_term_impact_threshold"]
        )
        self.arcs = StoryArcTracker(self.store, self.bus)
        self.world_events = WorldEventEngine(self.store, self.bus, focus_character=focus)
        self.emotions = EmotionalStateModel(self.store, self.bus, focus_character=focus)
        self.context = NarrativeContextBuilder(
            self.store,
            self.profiles,
            focus_character=focus,
            main_arc_id=self.config["main_arc_id"],
            tension_window=self.config["tension_window"],
            tension_divisor=self.config["tension_divisor"],
        )

        # Subscribers to "memory added", run in this order
        self._analyzers: list[MemoryAnalyzer] = [
            self.profiles.process_long_term_memory,
            self.profiles.update_player_profile,
            self.arcs.evaluate,
            self.world_events.check_triggers,
            self.emotions.update,
        ]

        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

        if self.config["strict_conditions"]:
            self._validate_catalog(self._world_event_factory())

    # -------------------------------------------------------------------------
    # Player lifecycle
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_catalog(catalog: list[WorldEvent]) -> None:
        """Raise InvalidConditionError if any event has an unparseable condition."""
        for event in catalog:
            for condition in event.trigger_conditions:
                parse_condition(str(condition), strict=True)

    def _lock_for(self, player_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(player_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[player_id] = lock
            return lock

    def _ensure_player(self, player_id: str) -> None:
        """Seed arcs, characters, world events and profile on first contact."""
        if self.store.get_profile(player_id) is not None:
            return

        for factory in self._arc_factories:
            self.store.put_arc(player_id, factory())
        for template in CHARACTER_TEMPLATES.values():
            self.store.put_emotional_state(player_id, template())

        self.store.put_world_events(player_id, self._world_event_factory())

        self.profiles.get(player_id)
        logger.debug(f"Seeded narrative state for {player_id}")

    def add_analyzer(self, analyzer: MemoryAnalyzer) -> None:
        """Append an analysis step that runs after the built-in ones."""
        self._analyzers.append(analyzer)

    # -------------------------------------------------------------------------
    # Write path
    # -------------------------------------------------------------------------

    def add_story_memory(self, player_id: str, memory: MemoryInput | dict) -> str:
        """
        Record a memory and run the analysis pipeline.

        Args:
            player_id: Player the memory belongs to
            memory: Memory fields without id or timestamp

        Returns:
            The generated memory id
        """
        return self.record_story_memory(player_id, memory).memory_id

    def record_story_memory(self, player_id: str, memory: MemoryInput | dict) -> MemoryOutcome:
        """
        Like add_story_memory, but also report the chapter reached and the
        world events this write fired. Both are read before the lock is
        released.
        """
        fields = memory if isinstance(memory, MemoryInput) else MemoryInput.model_validate(memory)

        with self._lock_for(player_id):
            self._ensure_player(player_id)
            before = {e.id for e in self.store.get_world_events(player_id) if e.is_triggered}

            record = StoryMemory(**fields.model_dump())
            self.store.append_memory(player_id, record)
            self.bus.emit(EventType.MEMORY_ADDED, player_id=player_id, memory_id=record.id)

            for analyzer in self._analyzers:
                analyzer(player_id, record)

            fired = [
                e.id for e in self.store.get_world_events(player_id)
                if e.is_triggered and e.id not in before
            ]
            return MemoryOutcome(record.id, self.store.get_profile(player_id).current_chapter, fired)

    def advance_story_arc(self, player_id: str, arc_id: str) -> bool:
        """Advance an arc one chapter directly. Returns False if not possible."""
        with self._lock_for(player_id):
            self._ensure_player(player_id)
            arc = next((a for a in self.store.get_arcs(player_id) if a.id == arc_id), None)
            if arc is None:
                return False
            return self.arcs.advance(player_id, arc)

    def set_prevailing_mood(self, player_id: str, mood: str, duration_minutes: float | None = None) -> None:
        with self._lock_for(player_id):
            self._ensure_player(player_id)
            self.profiles.set_prevailing_mood(player_id, mood, duration_minutes)

    def set_player_profile(self, player_id: str, profile: str) -> None:
        with self._lock_for(player_id):
            self._ensure_player(player_id)
            self.profiles.set_player_profile(player_id, profile)

    def add_relationship_milestone(self, player_id: str, milestone: str) -> None:
        with self._lock_for(player_id):
            self._ensure_player(player_id)
            self.profiles.add_relationship_milestone(player_id, milestone)

    def add_narrative_flag(self, player_id: str, key: str, value: str) -> None:
        with self._lock_for(player_id):
            self._ensure_player(player_id)
            self.profiles.add_narrative_flag(player_id, key, value)

    def initialize_sub_storyline(self, player_id: str, character_id: str, storyline_id: str) -> None:
        with self._lock_for(player_id):
            self._ensure_player(player_id)
            self.profiles.initialize_sub_storyline(player_id, character_id, storyline_id)

    def progress_sub_storyline(self, player_id: str, character_id: str, storyline_id: str, progress_level: int) -> None:
        with self._lock_for(player_id):
            self._ensure_player(player_id)
            self.profiles.progress_sub_storyline(player_id, character_id, storyline_id, progress_level)

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    def list_memories(self, player_id: str) -> list[StoryMemory]:
        with self._lock_for(player_id):
            return self.store.list_memories(player_id)

    def get_story_context(self, player_id: str) -> NarrativeContext:
        with self._lock_for(player_id):
            self._ensure_player(player_id)
            # Copy so callers cannot reach live state through the context
            return self.context.get_context(player_id).model_copy(deep=True)

    def generate_contextual_narrative(self, player_id: str, situation: str) -> NarrativeBundle:
        with self._lock_for(player_id):
            self._ensure_player(player_id)
            return self.context.generate_contextual_narrative(player_id, situation)

    # -------------------------------------------------------------------------
    # Snapshot / restore
    # -------------------------------------------------------------------------

    def snapshot(self, player_id: str) -> NarrativeSnapshot:
        """Deep copy of everything held for a player."""
        with self._lock_for(player_id):
            self._ensure_player(player_id)
            snap = NarrativeSnapshot(
                player_id=player_id,
                memories=self.store.list_memories(player_id),
                arcs=self.store.get_arcs(player_id),
                emotional_states=list(self.store.list_emotional_states(player_id).values()),
                world_events=self.store.get_world_events(player_id),
                profile=self.store.get_profile(player_id),
            )
            return snap.model_copy(deep=True)

    def restore(self, snapshot: NarrativeSnapshot) -> None:
        """Replace a player's state with a snapshot."""
        snap = snapshot.model_copy(deep=True)
        player_id = snap.player_id

        with self._lock_for(player_id):
            self.store.drop_player(player_id)
            for memory in snap.memories:
                self.store.append_memory(player_id, memory)
            for arc in snap.arcs:
                self.store.put_arc(player_id, arc)
            for state in snap.emotional_states:
                self.store.put_emotional_state(player_id, state)
            self.store.put_world_events(player_id, snap.world_events)
            if snap.profile is not None:
                self.store.put_profile(snap.profile)
            else:
                self.profiles.get(player_id)

        logger.info(f"Restored {player_id}: {len(snap.memories)} memories")
