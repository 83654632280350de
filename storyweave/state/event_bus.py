"""
Event bus for storyweave narrative notifications.

Lets the UI/API layer observe what the engine did (chapter unlocks,
world events, milestones) without the engine knowing who listens.

One bus per engine; the engine exposes it as `engine.bus`.

Usage:
    from .event_bus import EventBus, EventType

    bus = EventBus()
    bus.on(EventType.CHAPTER_EVENT, my_handler)

    # Emitted by the arc tracker after a successful advance
    bus.emit(EventType.CHAPTER_EVENT, player_id="p1", chapter=3, unlock="...")

    def my_handler(event: NarrativeEvent):
        print(f"Chapter {event.data['chapter']} unlocked!")
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Narrative events that can be published."""

    # Memory events
    MEMORY_ADDED = "memory.added"
    LONG_TERM_MEMORY_CREATED = "memory.long_term"

    # Arc events
    CHAPTER_ADVANCED = "arc.chapter_advanced"
    CHAPTER_EVENT = "arc.chapter_event"
    MILESTONE_REACHED = "arc.milestone"

    # World events
    WORLD_EVENT_TRIGGERED = "world.event_triggered"

    # Character / player events
    EMOTION_UPDATED = "emotion.updated"
    PREVAILING_MOOD_SET = "mood.set"
    PLAYER_PROFILE_CHANGED = "profile.changed"
    SUB_STORYLINE_CHANGED = "substory.changed"


@dataclass
class NarrativeEvent:
    """
    Event payload for the event bus.

    Attributes:
        type: The event type (from EventType enum)
        data: Event-specific payload as dict
        player_id: Player this event belongs to
        timestamp: When the event was emitted
    """

    type: EventType
    data: dict = field(default_factory=dict)
    player_id: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.player_id} {self.data}"


EventHandler = Callable[[NarrativeEvent], None]


class EventBus:
    """
    Synchronous event bus.

    Listeners are called immediately on emit(), in subscription order.
    A failing listener is logged and does not stop the others. History is
    shared by every player, so it is guarded by a lock.
    """

    def __init__(self, history_limit: int = 100):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[NarrativeEvent] = []
        self._history_limit = history_limit
        self._history_lock = threading.Lock()

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: The type of event to listen for
            handler: Callback function that receives NarrativeEvent
        """
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from an event type."""
        if event_type in self._listeners and handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def emit(self, event_type: EventType, player_id: str = "", **data) -> NarrativeEvent:
        """
        Emit an event to all subscribers.

        Args:
            event_type: The type of event
            player_id: Player context (optional)
            **data: Event-specific data

        Returns:
            The emitted NarrativeEvent (for chaining/testing)
        """
        event = NarrativeEvent(type=event_type, data=data, player_id=player_id)

        with self._history_lock:
            self._history.append(event)
            if len(self._history) > self._history_limit:
                del self._history[:-self._history_limit]

        for handler in list(self._listeners.get(event_type, [])):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in handler for {event_type.value}")

        return event

    def clear(self) -> None:
        """Clear all listeners. Useful for testing."""
        self._listeners.clear()

    def get_history(self, event_type: EventType | None = None) -> list[NarrativeEvent]:
        """
        Get recent event history.

        Args:
            event_type: Filter by type, or None for all events
        """
        with self._history_lock:
            history = list(self._history)
        if event_type is None:
            return history
        return [e for e in history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        """Get number of listeners for an event type."""
        return len(self._listeners.get(event_type, []))

