"""
Pydantic models for storyweave narrative state.

Memories are frozen once created. Everything else is mutated in place by
the systems that own it, and every numeric emotion stays within [0, 1].
Designed to serialize to JSON for snapshots.
"""

import logging
import random
import re
import string
import time
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class WorldEventType(str, Enum):
    GATE_OUTBREAK = "gate_outbreak"
    HUNTER_POLITICS = "hunter_politics"
    RELATIONSHIP_MILESTONE = "relationship_milestone"
    PERSONAL_GROWTH = "personal_growth"


class Pacing(str, Enum):
    """Narrative pacing tier, slowest first."""
    SLOW = "slow"
    MODERATE = "moderate"
    INTENSE = "intense"
    CLIMACTIC = "climactic"


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def generate_memory_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"memory_{int(time.time() * 1000)}_{suffix}"


def clamp_unit(value: float) -> float:
    """Clamp a value into [0, 1]."""
    return max(0.0, min(1.0, value))


class InvalidConditionError(ValueError):
    """Raised when a trigger condition string matches no known grammar."""


# -----------------------------------------------------------------------------
# Story Memory
# -----------------------------------------------------------------------------

class StoryMemory(BaseModel):
    """A narratively significant moment. Immutable once recorded."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_memory_id)
    timestamp: datetime = Field(default_factory=datetime.now)
    event: str
    location: str = ""
    participants: tuple[str, ...] = ()
    emotional_impact: float = 0.0  # roughly -10..10, not enforced
    story_tags: tuple[str, ...] = ()
    consequences: tuple[str, ...] = ()

    def has_tag(self, tag: str) -> bool:
        return tag in self.story_tags


class MemoryInput(BaseModel):
    """Fields a caller supplies when recording a memory (no id or timestamp)."""
    event: str
    location: str = ""
    participants: list[str] = Field(default_factory=list)
    emotional_impact: float = 0.0
    story_tags: list[str] = Field(default_factory=list)
    consequences: list[str] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Story Arc
# -----------------------------------------------------------------------------

class StoryArc(BaseModel):
    """Chapter-numbered progression for one player."""
    id: str
    title: str
    current_chapter: int = Field(default=1, ge=1)
    total_chapters: int = Field(ge=1)
    theme: str = ""
    major_events: list[StoryMemory] = Field(default_factory=list)
    relationship_milestones: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def is_complete(self) -> bool:
        return self.current_chapter == self.total_chapters


# -----------------------------------------------------------------------------
# Emotional State
# -----------------------------------------------------------------------------

class CharacterEmotionalState(BaseModel):
    """Bounded mood and relationship vectors for one character."""
    character_id: str
    base_personality: dict[str, float] = Field(default_factory=dict)
    current_mood: dict[str, float] = Field(default_factory=dict)
    relationship_dynamics: dict[str, float] = Field(default_factory=dict)
    growth_trajectory: list[str] = Field(default_factory=list)
    trauma_events: list[str] = Field(default_factory=list)
    joyful_memories: list[str] = Field(default_factory=list)

    def shift_mood(self, emotion: str, delta: float) -> float:
        """Shift a mood dimension by delta, clamped. Returns the new value."""
        value = clamp_unit(self.current_mood.get(emotion, 0.0) + delta)
        self.current_mood[emotion] = value
        return value

    def shift_relationship(self, dimension: str, delta: float) -> float:
        """Shift a relationship dimension by delta, clamped. Returns the new value."""
        value = clamp_unit(self.relationship_dynamics.get(dimension, 0.0) + delta)
        self.relationship_dynamics[dimension] = value
        return value

    def dominant_mood(self) -> tuple[str, float] | None:
        if not self.current_mood:
            return None
        return max(self.current_mood.items(), key=lambda item: item[1])

    def strongest_relationship(self) -> tuple[str, float] | None:
        if not self.relationship_dynamics:
            return None
        return max(self.relationship_dynamics.items(), key=lambda item: item[1])


# -----------------------------------------------------------------------------
# Trigger Conditions
# -----------------------------------------------------------------------------

class AffectionAbove(BaseModel):
    """personal_affection * 100 must exceed threshold."""
    kind: Literal["affection_above"] = "affection_above"
    threshold: int

    def __str__(self) -> str:
        return f"affection_above_{self.threshold}"


class AtLocation(BaseModel):
    """The triggering memory must have happened at location."""
    kind: Literal["location"] = "location"
    location: str

    def __str__(self) -> str:
        return f"location_{self.location}"


class TagCountAtLeast(BaseModel):
    """At least count of the player's memories carry tag."""
    kind: Literal["tag_count_at_least"] = "tag_count_at_least"
    tag: str
    count: int

    def __str__(self) -> str:
        return f"{self.tag}_count_{self.count}"


class MilestoneReached(BaseModel):
    """The player has reached a relationship milestone."""
    kind: Literal["milestone"] = "milestone"
    milestone: str

    def __str__(self) -> str:
        return f"milestone_{self.milestone}"


class UnrecognizedCondition(BaseModel):
    """A condition in no known grammar. Never satisfied."""
    kind: Literal["unrecognized"] = "unrecognized"
    raw: str

    def __str__(self) -> str:
        return self.raw


Condition = Annotated[
    Union[AffectionAbove, AtLocation, TagCountAtLeast, MilestoneReached, UnrecognizedCondition],
    Field(discriminator="kind"),
]

# Order matters: tag-count must be tried before anything with a looser prefix.
_AFFECTION_RE = re.compile(r"^affection_above_(\d+)$")
_TAG_COUNT_RE = re.compile(r"^(intimate_conversation)_count_(\d+)$")
_LOCATION_PREFIX = "location_"
_MILESTONE_PREFIX = "milestone_"


def parse_condition(text: str, strict: bool = False) -> Condition:
    """
    Parse a legacy condition string into a typed condition.

    Grammars:
        affection_above_N                 -> AffectionAbove(N)
        location_X                        -> AtLocation(X)
        intimate_conversation_count_N     -> TagCountAtLeast("intimate_conversation", N)
        milestone_X                       -> MilestoneReached(X)

    Args:
        text: The condition string
        strict: Raise InvalidConditionError instead of returning an
            UnrecognizedCondition

    Returns:
        The typed condition
    """
    match = _AFFECTION_RE.match(text)
    if match:
        return AffectionAbove(threshold=int(match.group(1)))

    match = _TAG_COUNT_RE.match(text)
    if match:
        return TagCountAtLeast(tag=match.group(1), count=int(match.group(2)))

    if text.startswith(_LOCATION_PREFIX) and len(text) > len(_LOCATION_PREFIX):
        return AtLocation(location=text[len(_LOCATION_PREFIX):])

    if text.startswith(_MILESTONE_PREFIX) and len(text) > len(_MILESTONE_PREFIX):
        return MilestoneReached(milestone=text[len(_MILESTONE_PREFIX):])

    if strict:
        raise InvalidConditionError(f"Unrecognized trigger condition: {text!r}")
    logger.warning(f"Unrecognized trigger condition {text!r}; it will never be satisfied")
    return UnrecognizedCondition(raw=text)


# -----------------------------------------------------------------------------
# World Events
# -----------------------------------------------------------------------------

class WorldEvent(BaseModel):
    """A one-shot rule: all conditions hold -> consequences apply, once."""
    id: str
    type: WorldEventType
    title: str
    description: str = ""
    trigger_conditions: list[Condition] = Field(default_factory=list)
    consequences: list[str] = Field(default_factory=list)
    is_triggered: bool = False
    trigger_date: datetime | None = None

    @field_validator("trigger_conditions", mode="before")
    @classmethod
    def _parse_condition_strings(cls, value):
        if not isinstance(value, list):
            return value
        return [parse_condition(item) if isinstance(item, str) else item for item in value]

    @property
    def is_fireable(self) -> bool:
        """False if any condition can never be satisfied."""
        return not any(isinstance(c, UnrecognizedCondition) for c in self.trigger_conditions)


# -----------------------------------------------------------------------------
# Player Profile
# -----------------------------------------------------------------------------

class PlayerProfile(BaseModel):
    """Per-player narrative bookkeeping outside arcs and emotions."""
    player_id: str
    long_term_memories: list[str] = Field(default_factory=list)
    narrative_flags: dict[str, str] = Field(default_factory=dict)
    relationship_milestones: list[str] = Field(default_factory=list)
    prevailing_mood: str = "focused"
    mood_expires_at: datetime | None = None
    player_profile: str = "neutral"
    empathy_score: int = 0
    pragmatic_score: int = 0
    romantic_score: int = 0
    current_chapter: int = 1


# -----------------------------------------------------------------------------
# Derived Views
# -----------------------------------------------------------------------------

class NarrativeContext(BaseModel):
    """Read-only snapshot assembled for UI display and prompt building."""
    active_story_arcs: list[StoryArc] = Field(default_factory=list)
    story_memories: list[StoryMemory] = Field(default_factory=list)
    emotional_states: dict[str, CharacterEmotionalState] = Field(default_factory=dict)
    world_events: list[WorldEvent] = Field(default_factory=list)
    narrative_tension: float = Field(default=0.0, ge=0, le=1)
    pacing: Pacing = Pacing.SLOW
    long_term_memories: list[str] = Field(default_factory=list)
    narrative_flags: dict[str, str] = Field(default_factory=dict)
    relationship_milestones: list[str] = Field(default_factory=list)
    prevailing_mood: str = "focused"
    player_profile: str = "neutral"
    current_chapter: int = 1


class NarrativeBundle(BaseModel):
    """Prompt material for the dialogue generator."""
    narrative_prompt: str
    emotional_context: str
    suggested_responses: list[str]


class NarrativeSnapshot(BaseModel):
    """Everything the engine holds for one player."""
    schema_version: str = "1.0.0"
    player_id: str
    saved_at: datetime = Field(default_factory=datetime.now)
    memories: list[StoryMemory] = Field(default_factory=list)
    arcs: list[StoryArc] = Field(default_factory=list)
    emotional_states: list[CharacterEmotionalState] = Field(default_factory=list)
    world_events: list[WorldEvent] = Field(default_factory=list)
    profile: PlayerProfile | None = None
