"""
Story arc progression for storyweave.

Each player's arcs advance one chapter at a time when a new memory
matches the current chapter's trigger vocabulary. Reaching certain
chapters records relationship milestones, and late milestones add an
already-triggered world event to the player's catalog.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from ..state.event_bus import EventBus, EventType
from ..state.schema import PlayerProfile, WorldEvent
from ..state.seeds import MILESTONE_WORLD_EVENTS

if TYPE_CHECKING:
    from ..state.schema import StoryArc, StoryMemory
    from ..state.store import NarrativeStore

logger = logging.getLogger(__name__)


# Tags (or event-text substrings) that move an arc past its current chapter
ARC_TRIGGERS: dict[int, list[str]] = {
    1: ["first_meaningful_conversation", "professional_recognition"],
    2: ["casual_interaction_outside_work", "personal_interest_shown"],
    3: ["vulnerability_displayed", "emotional_moment_shared"],
    4: ["romantic_tension_acknowledged", "intimate_conversation"],
    5: ["physical_closeness", "emotional_barrier_broken"],
    6: ["confession_or_kiss", "relationship_defined"],
}

# What opens up on arriving at a chapter
CHAPTER_UNLOCKS: dict[int, str] = {
    2: "New dialogue options unlocked - casual conversation topics",
    3: "Cha Hae-In becomes more open in private conversations",
    4: "Romantic undertones begin appearing in interactions",
    5: "Intimate activity options become available",
    6: "Relationship milestone: official romantic connection",
}

CHAPTER_MILESTONES: dict[int, str] = {
    2: "first_meaningful_conversation",
    3: "casual_meeting_outside_work",
    4: "emotional_vulnerability_shared",
    5: "romantic_tension_acknowledged",
    6: "physical_intimacy_begun",
    7: "exclusive_relationship_status",
    8: "deep_emotional_intimacy",
    9: "future_planning_together",
    10: "complete_trust_established",
}

# Milestones from this chapter on may create a world event
MILESTONE_EVENT_CHAPTER = 6


def should_advance(arc: "StoryArc", new_memory: "StoryMemory", all_memories: list["StoryMemory"]) -> bool:
    """
    Check whether a memory moves an arc past its current chapter.

    Matches on tag membership first, then falls back to a case-insensitive
    substring search of the event text.

    all_memories is accepted for rules that look at history; the current
    trigger table only inspects the new memory.
    """
    triggers = ARC_TRIGGERS.get(arc.current_chapter, [])
    event_text = new_memory.event.lower()
    return any(
        trigger in new_memory.story_tags or trigger in event_text
        for trigger in triggers
    )


class StoryArcTracker:
    """
    Advances player arcs and records the milestones they unlock.

    One notification per successful advance; nothing is retried or batched.
    """

    def __init__(self, store: "NarrativeStore", bus: EventBus):
        self.store = store
        self.bus = bus

    def evaluate(self, player_id: str, new_memory: "StoryMemory") -> list["StoryArc"]:
        """
        Check every arc of the player against a new memory.

        Returns:
            Arcs that advanced
        """
        memories = self.store.list_memories(player_id)
        advanced = []
        for arc in self.store.get_arcs(player_id):
            if should_advance(arc, new_memory, memories):
                if self.advance(player_id, arc, new_memory):
                    advanced.append(arc)
        return advanced

    def advance(self, player_id: str, arc: "StoryArc", cause: "StoryMemory | None" = None) -> bool:
        """
        Move an arc forward one chapter.

        Returns:
            False if the arc was already at its final chapter
        """
        if arc.current_chapter >= arc.total_chapters:
            return False

        arc.current_chapter += 1
        if cause is not None:
            arc.major_events.append(cause)
        self.store.put_arc(player_id, arc)

        profile = self.store.get_profile(player_id) or PlayerProfile(player_id=player_id)
        profile.current_chapter = arc.current_chapter
        self.store.put_profile(profile)

        logger.info(f"Story arc advanced for {player_id}: {arc.title} - Chapter {arc.current_chapter}")
        self.bus.emit(
            EventType.CHAPTER_ADVANCED,
            player_id=player_id,
            arc_id=arc.id,
            chapter=arc.current_chapter,
            is_complete=arc.is_complete,
        )

        self._trigger_chapter_event(player_id, arc)
        self.evaluate_milestones(player_id, arc)
        return True

    def _trigger_chapter_event(self, player_id: str, arc: "StoryArc") -> None:
        unlock = CHAPTER_UNLOCKS.get(arc.current_chapter)
        if unlock:
            logger.info(f"Chapter event for {player_id}: {unlock}")
            self.bus.emit(
                EventType.CHAPTER_EVENT,
                player_id=player_id,
                arc_id=arc.id,
                chapter=arc.current_chapter,
                unlock=unlock,
            )

    def evaluate_milestones(self, player_id: str, arc: "StoryArc") -> str | None:
        """
        Record the milestone for the arc's current chapter, once.

        Returns:
            The newly reached milestone, or None
        """
        milestone = CHAPTER_MILESTONES.get(arc.current_chapter)
        profile = self.store.get_profile(player_id) or PlayerProfile(player_id=player_id)
        if not milestone or milestone in profile.relationship_milestones:
            return None

        profile.relationship_milestones.append(milestone)
        profile.narrative_flags["relationship_status"] = milestone
        self.store.put_profile(profile)

        if milestone not in arc.relationship_milestones:
            arc.relationship_milestones.append(milestone)
            self.store.put_arc(player_id, arc)

        logger.info(f"Relationship milestone for {player_id}: {milestone}")
        self.bus.emit(
            EventType.MILESTONE_REACHED,
            player_id=player_id,
            milestone=milestone,
            chapter=arc.current_chapter,
        )

        if arc.current_chapter >= MILESTONE_EVENT_CHAPTER:
            self._add_milestone_world_event(player_id, milestone)
        return milestone

    def _add_milestone_world_event(self, player_id: str, milestone: str) -> WorldEvent | None:
        template = MILESTONE_WORLD_EVENTS.get(milestone)
        if template is None:
            return None

        events = self.store.get_world_events(player_id)
        if any(e.id == template["id"] for e in events):
            return None

        event = WorldEvent(
            **template,
            trigger_conditions=[f"milestone_{milestone}"],
            is_triggered=True,
            trigger_date=datetime.now(),
        )
        events.append(event)
        self.store.put_world_events(player_id, events)

        logger.info(f"Milestone world event for {player_id}: {event.title}")
        self.bus.emit(
            EventType.WORLD_EVENT_TRIGGERED,
            player_id=player_id,
            event_id=event.id,
            title=event.title,
            source="milestone",
        )
        return event
