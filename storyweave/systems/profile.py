"""
Player profile system for storyweave.

Tracks what the story remembers about the player rather than the NPC:
long-term memories, narrative flags, the player's inferred play style,
a prevailing mood for the scene, and side storylines.
"""

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable

from ..state.event_bus import EventBus, EventType
from ..state.schema import PlayerProfile

if TYPE_CHECKING:
    from ..state.schema import StoryMemory
    from ..state.store import NarrativeStore

logger = logging.getLogger(__name__)


LONG_TERM_TRIGGERS = [
    "first_kiss", "confession", "first_date", "relationship_milestone",
    "major_battle", "emotional_breakthrough", "intimate_moment",
    "tragic_event", "achievement", "world_changing_event",
]

EMPATHY_KEYWORDS = ["care", "help", "understand", "comfort", "support", "gentle"]
PRAGMATIC_KEYWORDS = ["efficient", "practical", "logical", "strategic", "focus", "mission"]
ROMANTIC_KEYWORDS = ["love", "beautiful", "together", "heart", "feelings", "romantic"]

# Romantic needs a floor rather than strict dominance
ROMANTIC_PROFILE_THRESHOLD = 5

DEFAULT_MOOD = "focused"


def long_term_label(memory: "StoryMemory") -> str:
    """Short label for a long-term memory: the event headline plus where it happened."""
    return f"{memory.event.split(':')[0]}_at_{memory.location}"


def is_long_term(memory: "StoryMemory", impact_threshold: float = 8.0) -> bool:
    event_text = memory.event.lower()
    if memory.emotional_impact >= impact_threshold:
        return True
    return any(t in memory.story_tags or t in event_text for t in LONG_TERM_TRIGGERS)


def classify_profile(profile: PlayerProfile) -> str | None:
    """Dominant play style from cumulative scores, or None to leave it unchanged."""
    empathy, pragmatic, romantic = profile.empathy_score, profile.pragmatic_score, profile.romantic_score
    if empathy > pragmatic and empathy > romantic:
        return "empathetic"
    if pragmatic > empathy and pragmatic > romantic:
        return "pragmatic"
    if romantic > ROMANTIC_PROFILE_THRESHOLD:
        return "romantic"
    return None


class PlayerProfileSystem:
    """
    Owns PlayerProfile records.

    Mood expiry is checked lazily against the clock whenever the mood is
    read, so nothing runs in the background.
    """

    def __init__(
        self,
        store: "NarrativeStore",
        bus: EventBus,
        long_term_threshold: float = 8.0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.bus = bus
        self.long_term_threshold = long_term_threshold
        self.clock = clock

    def get(self, player_id: str) -> PlayerProfile:
        """Profile for a player, created on first access."""
        profile = self.store.get_profile(player_id)
        if profile is None:
            profile = PlayerProfile(player_id=player_id)
            self.store.put_profile(profile)
        return profile

    # -------------------------------------------------------------------------
    # Memory pipeline hooks
    # -------------------------------------------------------------------------

    def process_long_term_memory(self, player_id: str, memory: "StoryMemory") -> str | None:
        """Record a long-term memory if this one is significant enough."""
        if not is_long_term(memory, self.long_term_threshold):
            return None

        label = long_term_label(memory)
        profile = self.get(player_id)
        profile.long_term_memories.append(label)
        self.store.put_profile(profile)

        logger.info(f"Long-term memory created for {player_id}: {label}")
        self.bus.emit(EventType.LONG_TERM_MEMORY_CREATED, player_id=player_id, label=label, memory_id=memory.id)
        return label

    def update_player_profile(self, player_id: str, memory: "StoryMemory") -> str:
        """Score the memory text for play style and reclassify the player."""
        profile = self.get(player_id)
        event_text = memory.event.lower()

        profile.empathy_score += sum(1 for word in EMPATHY_KEYWORDS if word in event_text)
        profile.pragmatic_score += sum(1 for word in PRAGMATIC_KEYWORDS if word in event_text)
        profile.romantic_score += sum(1 for word in ROMANTIC_KEYWORDS if word in event_text)

        profile.narrative_flags["empathy_score"] = str(profile.empathy_score)
        profile.narrative_flags["pragmatic_score"] = str(profile.pragmatic_score)
        profile.narrative_flags["romantic_score"] = str(profile.romantic_score)

        new_profile = classify_profile(profile)
        if new_profile and new_profile != profile.player_profile:
            profile.player_profile = new_profile
            self.bus.emit(EventType.PLAYER_PROFILE_CHANGED, player_id=player_id, profile=new_profile)

        self.store.put_profile(profile)
        return profile.player_profile

    # -------------------------------------------------------------------------
    # Direct operations
    # -------------------------------------------------------------------------

    def set_prevailing_mood(self, player_id: str, mood: str, duration_minutes: float | None = None) -> None:
        """
        Set the scene mood.

        With a duration, the mood falls back to "focused" once it expires,
        unless something else has replaced it in the meantime.
        """
        profile = self.get(player_id)
        profile.prevailing_mood = mood
        profile.mood_expires_at = (
            self.clock() + timedelta(minutes=duration_minutes) if duration_minutes else None
        )
        self.store.put_profile(profile)

        logger.info(f"Prevailing mood for {player_id} set to {mood}")
        self.bus.emit(EventType.PREVAILING_MOOD_SET, player_id=player_id, mood=mood, duration_minutes=duration_minutes)

    def get_prevailing_mood(self, player_id: str) -> str:
        profile = self.get(player_id)
        if profile.mood_expires_at is not None and self.clock() >= profile.mood_expires_at:
            logger.info(f"Prevailing mood {profile.prevailing_mood} for {player_id} expired")
            profile.prevailing_mood = DEFAULT_MOOD
            profile.mood_expires_at = None
            self.store.put_profile(profile)
            self.bus.emit(EventType.PREVAILING_MOOD_SET, player_id=player_id, mood=DEFAULT_MOOD, duration_minutes=None)
        return profile.prevailing_mood

    def set_player_profile(self, player_id: str, player_profile: str) -> None:
        profile = self.get(player_id)
        profile.player_profile = player_profile
        self.store.put_profile(profile)
        self.bus.emit(EventType.PLAYER_PROFILE_CHANGED, player_id=player_id, profile=player_profile)

    def add_relationship_milestone(self, player_id: str, milestone: str) -> None:
        profile = self.get(player_id)
        profile.relationship_milestones.append(milestone)
        self.store.put_profile(profile)

    def add_narrative_flag(self, player_id: str, key: str, value: str) -> None:
        profile = self.get(player_id)
        profile.narrative_flags[key] = value
        self.store.put_profile(profile)

    def initialize_sub_storyline(self, player_id: str, character_id: str, storyline_id: str) -> None:
        """Mark a side storyline with another character as active."""
        self.add_narrative_flag(player_id, f"substory_{character_id}_{storyline_id}", "active")
        logger.info(f"Sub-storyline initialized for {player_id}: {character_id} - {storyline_id}")
        self.bus.emit(
            EventType.SUB_STORYLINE_CHANGED,
            player_id=player_id,
            character_id=character_id,
            storyline_id=storyline_id,
            status="active",
        )

    def progress_sub_storyline(self, player_id: str, character_id: str, storyline_id: str, progress_level: int) -> None:
        self.add_narrative_flag(
            player_id, f"substory_{character_id}_{storyline_id}_progress", str(progress_level)
        )
        logger.info(f"Sub-storyline progressed for {player_id}: {character_id} - {storyline_id} (level {progress_level})")
        self.bus.emit(
            EventType.SUB_STORYLINE_CHANGED,
            player_id=player_id,
            character_id=character_id,
            storyline_id=storyline_id,
            progress=progress_level,
        )
