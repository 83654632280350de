"""
World event engine for storyweave.

World events are one-shot rules: when every trigger condition holds for a
new memory, the event fires, its consequences are applied to the focus
character, and it never fires again.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from ..state.event_bus import EventBus, EventType
from ..state.schema import (
    AffectionAbove,
    AtLocation,
    CharacterEmotionalState,
    MilestoneReached,
    TagCountAtLeast,
)

if TYPE_CHECKING:
    from ..state.schema import Condition, StoryMemory, WorldEvent
    from ..state.store import NarrativeStore

logger = logging.getLogger(__name__)


def _relationship_dynamic_shift(state: CharacterEmotionalState) -> None:
    state.shift_relationship("personal_affection", 0.1)
    state.shift_mood("openness", 0.1)


def _emotional_intimacy_increase(state: CharacterEmotionalState) -> None:
    state.shift_relationship("emotional_intimacy", 0.2)


def _romantic_tension_increase(state: CharacterEmotionalState) -> None:
    state.shift_relationship("romantic_tension", 0.15)


# Consequence key -> mutation of the focus character. Keys not listed here
# (e.g. "new_dialogue_options") are narrative unlocks with no numeric effect.
CONSEQUENCE_EFFECTS: dict[str, Callable[[CharacterEmotionalState], None]] = {
    "relationship_dynamic_shift": _relationship_dynamic_shift,
    "emotional_intimacy_increase": _emotional_intimacy_increase,
    "romantic_tension_increase": _romantic_tension_increase,
}


class WorldEventEngine:
    """Evaluates a player's world-event catalog against new memories."""

    def __init__(
        self,
        store: "NarrativeStore",
        bus: EventBus,
        focus_character: str = "cha_hae_in",
    ):
        self.store = store
        self.bus = bus
        self.focus_character = focus_character

    def check_triggers(self, player_id: str, new_memory: "StoryMemory") -> list["WorldEvent"]:
        """
        Fire every untriggered event whose conditions all hold.

        Returns:
            Events that fired for this memory
        """
        events = self.store.get_world_events(player_id)
        fired = []
        for event in events:
            if event.is_triggered:
                continue
            if all(self.condition_holds(player_id, c, new_memory) for c in event.trigger_conditions):
                self.trigger(player_id, event)
                fired.append(event)

        if fired:
            self.store.put_world_events(player_id, events)
        return fired

    def condition_holds(self, player_id: str, condition: "Condition", new_memory: "StoryMemory") -> bool:
        """Evaluate one condition. Unrecognized conditions are never satisfied."""
        if isinstance(condition, AffectionAbove):
            state = self.store.get_emotional_state(player_id, self.focus_character)
            affection = state.relationship_dynamics.get("personal_affection", 0.0) if state else 0.0
            return affection * 100 > condition.threshold

        if isinstance(condition, AtLocation):
            return new_memory.location == condition.location

        if isinstance(condition, TagCountAtLeast):
            count = sum(1 for m in self.store.list_memories(player_id) if m.has_tag(condition.tag))
            return count >= condition.count

        if isinstance(condition, MilestoneReached):
            profile = self.store.get_profile(player_id)
            return profile is not None and condition.milestone in profile.relationship_milestones

        return False

    def trigger(self, player_id: str, event: "WorldEvent") -> None:
        """Mark an event fired and apply its consequences."""
        event.is_triggered = True
        event.trigger_date = datetime.now()
        logger.info(f"World event triggered for {player_id}: {event.title}")

        for consequence in event.consequences:
            self.apply_consequence(player_id, consequence)

        self.bus.emit(
            EventType.WORLD_EVENT_TRIGGERED,
            player_id=player_id,
            event_id=event.id,
            title=event.title,
            consequences=list(event.consequences),
        )

    def apply_consequence(self, player_id: str, consequence: str) -> bool:
        """
        Apply one consequence to the focus character.

        Returns:
            True if the consequence changed emotional state
        """
        effect = CONSEQUENCE_EFFECTS.get(consequence)
        if effect is None:
            logger.debug(f"Consequence {consequence!r} has no emotional effect")
            return False

        state = self.store.get_emotional_state(player_id, self.focus_character)
        if state is None:
            logger.debug(f"No emotional state for {self.focus_character} ({player_id}); skipping {consequence}")
            return False

        effect(state)
        self.store.put_emotional_state(player_id, state)
        return True
