"""storyweave - narrative and emotional simulation engine for a romance RPG."""

from .config import Config, DEFAULT_CONFIG, load_config
from .engine import MemoryOutcome, NarrativeEngine
from .state.schema import (
    CharacterEmotionalState,
    MemoryInput,
    NarrativeBundle,
    NarrativeContext,
    NarrativeSnapshot,
    Pacing,
    StoryArc,
    StoryMemory,
    WorldEvent,
    WorldEventType,
)

__version__ = "0.1.0"

__all__ = [
    "NarrativeEngine",
    "MemoryOutcome",
    "Config",
    "DEFAULT_CONFIG",
    "load_config",
    "CharacterEmotionalState",
    "MemoryInput",
    "NarrativeBundle",
    "NarrativeContext",
    "NarrativeSnapshot",
    "Pacing",
    "StoryArc",
    "StoryMemory",
    "WorldEvent",
    "WorldEventType",
]
