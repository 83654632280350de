"""Narrative state: models, storage and the event bus."""

from .schema import (
    StoryMemory,
    MemoryInput,
    StoryArc,
    CharacterEmotionalState,
    WorldEvent,
    WorldEventType,
    Condition,
    AffectionAbove,
    AtLocation,
    TagCountAtLeast,
    MilestoneReached,
    UnrecognizedCondition,
    InvalidConditionError,
    parse_condition,
    PlayerProfile,
    NarrativeContext,
    NarrativeBundle,
    NarrativeSnapshot,
    Pacing,
)
from .store import (
    NarrativeStore,
    MemoryNarrativeStore,
    SnapshotStore,
    JsonSnapshotStore,
    MemorySnapshotStore,
)
from .event_bus import (
    EventBus,
    EventType,
    NarrativeEvent,
)

__all__ = [
    # Schema
    "StoryMemory",
    "MemoryInput",
    "StoryArc",
    "CharacterEmotionalState",
    "WorldEvent",
    "WorldEventType",
    "Condition",
    "AffectionAbove",
    "AtLocation",
    "TagCountAtLeast",
    "MilestoneReached",
    "UnrecognizedCondition",
    "InvalidConditionError",
    "parse_condition",
    "PlayerProfile",
    "NarrativeContext",
    "NarrativeBundle",
    "NarrativeSnapshot",
    "Pacing",
    # Store
    "NarrativeStore",
    "MemoryNarrativeStore",
    "SnapshotStore",
    "JsonSnapshotStore",
    "MemorySnapshotStore",
    # Event Bus
    "EventBus",
    "EventType",
    "NarrativeEvent",
]
