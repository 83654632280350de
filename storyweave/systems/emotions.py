"""
Emotional state model for storyweave.

Nudges the focus character's mood after each memory. A memory moves a
mood dimension by 0.05 per matching tag, scaled by emotional impact.
"""

import logging
from typing import TYPE_CHECKING

from ..state.event_bus import EventBus, EventType

if TYPE_CHECKING:
    from ..state.schema import StoryMemory
    from ..state.store import NarrativeStore

logger = logging.getLogger(__name__)


# Tags that move each tracked mood dimension
EMOTION_TAGS: dict[str, list[str]] = {
    "happiness": ["laughter", "joy", "success", "gift", "surprise"],
    "confidence": ["praise", "achievement", "support", "validation"],
    "attraction": ["romantic", "intimate", "physical", "charming"],
    "trust": ["honesty", "vulnerability", "protection", "reliability"],
    "openness": ["personal_sharing", "intimate_conversation", "emotional_moment"],
}

TAG_WEIGHT = 0.05


def calculate_emotional_change(memory: "StoryMemory", emotion: str) -> float:
    """
    Mood delta a memory produces for one dimension.

    matches * 0.05 * (emotional_impact / 10); zero for untracked emotions.
    """
    relevant = EMOTION_TAGS.get(emotion, [])
    matches = sum(1 for tag in memory.story_tags if tag in relevant)
    return matches * TAG_WEIGHT * (memory.emotional_impact / 10)


class EmotionalStateModel:
    """Applies memory-driven mood changes to a player's view of a character."""

    def __init__(
        self,
        store: "NarrativeStore",
        bus: EventBus,
        focus_character: str = "cha_hae_in",
    ):
        self.store = store
        self.bus = bus
        self.focus_character = focus_character

    def update(self, player_id: str, memory: "StoryMemory") -> dict[str, float]:
        """
        Apply a memory to the focus character's mood.

        Returns:
            Mood deltas that were applied (empty if the character is not tracked)
        """
        state = self.store.get_emotional_state(player_id, self.focus_character)
        if state is None:
            logger.debug(f"No emotional state for {self.focus_character} ({player_id}); skipping update")
            return {}

        deltas = {emotion: calculate_emotional_change(memory, emotion) for emotion in EMOTION_TAGS}
        for emotion, delta in deltas.items():
            state.shift_mood(emotion, delta)

        self.store.put_emotional_state(player_id, state)

        changed = {k: v for k, v in deltas.items() if v != 0}
        if changed:
            self.bus.emit(
                EventType.EMOTION_UPDATED,
                player_id=player_id,
                character_id=self.focus_character,
                deltas=changed,
                memory_id=memory.id,
            )
        return deltas
