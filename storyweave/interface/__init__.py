"""Terminal views of narrative state."""

from .panels import render_arc_panel, render_emotion_panel, render_memory_table, render_world_events

__all__ = [
    "render_arc_panel",
    "render_emotion_panel",
    "render_memory_table",
    "render_world_events",
]
