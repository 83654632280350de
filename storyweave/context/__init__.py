"""Narrative context and prompt building."""

from .narrative import (
    NarrativeContextBuilder,
    calculate_pacing,
    calculate_tension,
    format_emotional_context,
)

__all__ = [
    "NarrativeContextBuilder",
    "calculate_pacing",
    "calculate_tension",
    "format_emotional_context",
]
