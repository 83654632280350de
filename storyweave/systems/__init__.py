"""
Narrative systems.

Each system owns one slice of the rules and reads/writes state through a
NarrativeStore. The engine wires them into the memory pipeline.
"""

from .arcs import StoryArcTracker, should_advance
from .emotions import EmotionalStateModel, calculate_emotional_change
from .profile import PlayerProfileSystem
from .world_events import WorldEventEngine

__all__ = [
    "StoryArcTracker",
    "should_advance",
    "EmotionalStateModel",
    "calculate_emotional_change",
    "PlayerProfileSystem",
    "WorldEventEngine",
]
