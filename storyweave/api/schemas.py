"""
Pydantic schemas for the storyweave HTTP API.

These models define the contract between the game client and the
narrative engine. Engine models (StoryMemory, NarrativeContext, ...) are
returned as-is where they already are the contract.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ..state.schema import MemoryInput, Pacing, StoryMemory, WorldEvent


class MemoryRequest(MemoryInput):
    """A memory to record (id and timestamp are generated)."""


class MemoryResponse(BaseModel):
    memory_id: str
    current_chapter: int
    triggered_events: list[str] = Field(default_factory=list)


class NarrativeRequest(BaseModel):
    situation: str = Field(min_length=1)


class MoodRequest(BaseModel):
    mood: str = Field(min_length=1)
    duration_minutes: float | None = Field(default=None, gt=0)


class FlagRequest(BaseModel):
    key: str = Field(min_length=1)
    value: str


class MilestoneRequest(BaseModel):
    milestone: str = Field(min_length=1)


class ProfileRequest(BaseModel):
    profile: str = Field(min_length=1)


class SubStorylineRequest(BaseModel):
    """Start a side storyline, or record progress when progress_level is set."""
    character_id: str = Field(min_length=1)
    storyline_id: str = Field(min_length=1)
    progress_level: int | None = Field(default=None, ge=0)


class SaveResponse(BaseModel):
    player_id: str
    memory_count: int
    saved_at: datetime


class EmotionalSummary(BaseModel):
    dominant_mood: tuple[str, float] | None = None
    relationship_level: tuple[str, float] | None = None


class NarrativeSummary(BaseModel):
    """Compact view for the progression panel."""
    player_id: str
    story_title: str
    current_chapter: int
    pacing: Pacing
    narrative_tension: float
    emotional_summary: EmotionalSummary
    recent_memories: list[StoryMemory] = Field(default_factory=list)
    world_events: list[WorldEvent] = Field(default_factory=list)
