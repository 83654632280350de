"""
Narrative context builder for storyweave.

Assembles a player's arcs, memories, emotional states and world events
into a NarrativeContext, and turns that into prompt material for the
dialogue generator.

Pacing tiers (first match wins, tension checked before chapter):
1. climactic: tension > 0.8 or main-arc chapter >= 10
2. intense:   tension > 0.6 or chapter >= 7
3. moderate:  tension > 0.3 or chapter >= 4
4. slow:      otherwise
"""

import math
from typing import TYPE_CHECKING

from ..state.schema import NarrativeBundle, NarrativeContext, Pacing

if TYPE_CHECKING:
    from ..state.schema import CharacterEmotionalState, StoryArc, StoryMemory
    from ..state.store import NarrativeStore
    from ..systems.profile import PlayerProfileSystem


# (pacing, tension must exceed, or chapter at least), in priority order
PACING_TIERS: list[tuple[Pacing, float, int]] = [
    (Pacing.CLIMACTIC, 0.8, 10),
    (Pacing.INTENSE, 0.6, 7),
    (Pacing.MODERATE, 0.3, 4),
]

SUGGESTED_RESPONSES: dict[Pacing, list[str]] = {
    Pacing.CLIMACTIC: [
        "Express your true feelings",
        "Take a decisive action",
        "Embrace the moment fully",
    ],
    Pacing.INTENSE: [
        "Share something personal",
        "Move closer to her",
        "Ask about her feelings",
    ],
    Pacing.MODERATE: [
        "Deepen the conversation",
        "Suggest spending more time together",
        "Show your caring side",
    ],
    Pacing.SLOW: [
        "Get to know her better",
        "Find common ground",
        "Be genuinely interested",
    ],
}

LOCATION_KEYWORDS: dict[str, list[str]] = {
    "hunter_association": ["association", "office", "headquarters", "hq"],
    "chahaein_apartment": ["apartment", "home", "her place"],
    "hongdae_cafe": ["cafe", "coffee", "hongdae"],
    "myeongdong_restaurant": ["restaurant", "dining", "myeongdong"],
}

TIME_KEYWORDS: dict[str, list[str]] = {
    "morning": ["morning", "breakfast", "early"],
    "afternoon": ["afternoon", "lunch", "day"],
    "evening": ["evening", "dinner", "sunset"],
    "night": ["night", "late", "midnight", "dark"],
}

LOCATION_WEIGHTS: dict[str, dict] = {
    "hunter_association": {
        "topics": ["combat", "missions", "professional_development", "hunter_politics"],
        "mood": "professional_focused",
    },
    "chahaein_apartment": {
        "topics": ["personal_feelings", "intimacy", "future_plans", "vulnerability"],
        "mood": "intimate_personal",
    },
    "hongdae_cafe": {
        "topics": ["casual_conversation", "hobbies", "relaxation", "getting_to_know"],
        "mood": "relaxed_friendly",
    },
    "myeongdong_restaurant": {
        "topics": ["sharing_meals", "cultural_experiences", "romantic_atmosphere"],
        "mood": "romantic_warm",
    },
}

PRIVATE_LOCATIONS = ("chahaein_apartment", "player_apartment")


def calculate_tension(memories: list["StoryMemory"], window: int = 10, divisor: float = 50.0) -> float:
    """Sum of |impact| over the last `window` memories, scaled into [0, 1]."""
    recent = memories[-window:] if window > 0 else []
    total = sum(abs(m.emotional_impact) for m in recent)
    return min(1.0, total / divisor)


def calculate_pacing(tension: float, chapter: int | None) -> Pacing:
    for pacing, tension_floor, chapter_floor in PACING_TIERS:
        if tension > tension_floor or (chapter is not None and chapter >= chapter_floor):
            return pacing
    return Pacing.SLOW


def _percent(value: float) -> int:
    """Fraction to whole percent, halves rounded up."""
    return math.floor(value * 100 + 0.5)


def _match_keywords(text: str, table: dict[str, list[str]]) -> str:
    lowered = text.lower()
    for key, keywords in table.items():
        if any(keyword in lowered for keyword in keywords):
            return key
    return "unknown"


def extract_location(situation: str) -> str:
    return _match_keywords(situation, LOCATION_KEYWORDS)


def extract_time_of_day(situation: str) -> str:
    return _match_keywords(situation, TIME_KEYWORDS)


def format_emotional_context(state: "CharacterEmotionalState | None") -> str:
    """Name the strongest mood and relationship dimension with percentages."""
    if state is None:
        return "Neutral emotional state"

    mood = state.dominant_mood()
    relationship = state.strongest_relationship()
    if mood is None or relationship is None:
        return "Neutral emotional state"

    return (
        f"Dominant mood: {mood[0]} ({_percent(mood[1])}%). "
        f"Relationship level: {relationship[0]} ({_percent(relationship[1])}%)"
    )


class NarrativeContextBuilder:
    """Read side of the engine: snapshots and prompt bundles."""

    def __init__(
        self,
        store: "NarrativeStore",
        profiles: "PlayerProfileSystem",
        focus_character: str = "cha_hae_in",
        main_arc_id: str = "main_romance_arc",
        tension_window: int = 10,
        tension_divisor: float = 50.0,
    ):
        self.store = store
        self.profiles = profiles
        self.focus_character = focus_character
        self.main_arc_id = main_arc_id
        self.tension_window = tension_window
        self.tension_divisor = tension_divisor

    def _main_arc(self, arcs: list["StoryArc"]) -> "StoryArc | None":
        return next((a for a in arcs if a.id == self.main_arc_id), None)

    def narrative_tension(self, player_id: str) -> float:
        return calculate_tension(
            self.store.list_memories(player_id), self.tension_window, self.tension_divisor
        )

    def pacing(self, player_id: str) -> Pacing:
        main_arc = self._main_arc(self.store.get_arcs(player_id))
        chapter = main_arc.current_chapter if main_arc else None
        return calculate_pacing(self.narrative_tension(player_id), chapter)

    def get_context(self, player_id: str) -> NarrativeContext:
        """Assemble the full narrative snapshot for a player."""
        arcs = self.store.get_arcs(player_id)
        memories = self.store.list_memories(player_id)
        main_arc = self._main_arc(arcs)

        tension = calculate_tension(memories, self.tension_window, self.tension_divisor)
        pacing = calculate_pacing(tension, main_arc.current_chapter if main_arc else None)

        profile = self.profiles.get(player_id)
        prevailing_mood = self.profiles.get_prevailing_mood(player_id)

        return NarrativeContext(
            active_story_arcs=arcs,
            story_memories=memories,
            emotional_states=self.store.list_emotional_states(player_id),
            world_events=self.store.get_world_events(player_id),
            narrative_tension=tension,
            pacing=pacing,
            long_term_memories=list(profile.long_term_memories),
            narrative_flags=dict(profile.narrative_flags),
            relationship_milestones=list(profile.relationship_milestones),
            prevailing_mood=prevailing_mood,
            player_profile=profile.player_profile,
            current_chapter=profile.current_chapter,
        )

    def build_narrative_prompt(self, context: NarrativeContext, situation: str) -> str:
        """Core prompt: chapter, pacing, tension and the caller's situation."""
        main_arc = self._main_arc(context.active_story_arcs)
        if main_arc:
            chapter_context = f"Chapter {main_arc.current_chapter} of {main_arc.title}"
        else:
            chapter_context = "Beginning of story"

        return (
            f"{chapter_context}. Current pacing: {context.pacing.value}. "
            f"Narrative tension: {_percent(context.narrative_tension)}%. "
            f"Situation: {situation}"
        )

    def build_contextual_prompt(self, context: NarrativeContext, situation: str) -> str:
        """Core prompt plus location, time, mood and player-profile hints."""
        location = extract_location(situation)
        time_of_day = extract_time_of_day(situation)
        prompt = self.build_narrative_prompt(context, situation)

        weights = LOCATION_WEIGHTS.get(location)
        if weights:
            prompt += (
                f" LOCATION_CONTEXT: Currently at {location}. Conversation topics should be "
                f"weighted towards: {', '.join(weights['topics'])}. Emotional tone: {weights['mood']}."
            )

        if time_of_day == "night" and location in PRIVATE_LOCATIONS:
            prompt += (
                " TIME_CONTEXT: Evening/night setting encourages more intimate, personal "
                "conversations and emotional vulnerability."
            )

        if context.prevailing_mood != "focused":
            prompt += (
                f" MOOD_CONTEXT: Cha Hae-In's current prevailing mood is {context.prevailing_mood}. "
                "This affects her receptiveness and conversation style."
            )

        if context.player_profile != "neutral":
            prompt += (
                f" PLAYER_PROFILE: Based on past interactions, player tends to be "
                f"{context.player_profile}. Adjust Cha Hae-In's responses accordingly."
            )

        return prompt

    def generate_contextual_narrative(self, player_id: str, situation: str) -> NarrativeBundle:
        context = self.get_context(player_id)
        state = context.emotional_states.get(self.focus_character)

        return NarrativeBundle(
            narrative_prompt=self.build_contextual_prompt(context, situation),
            emotional_context=format_emotional_context(state),
            suggested_responses=list(SUGGESTED_RESPONSES[context.pacing]),
        )
