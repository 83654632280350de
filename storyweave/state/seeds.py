"""
Starting state for a new player.

Every factory returns a fresh copy so players never share mutable state.
"""

from .schema import CharacterEmotionalState, StoryArc, WorldEvent, WorldEventType


CHA_HAE_IN = "cha_hae_in"
MAIN_ARC_ID = "main_romance_arc"


def cha_hae_in_state() -> CharacterEmotionalState:
    """Cha Hae-In as she is before the player has done anything."""
    return CharacterEmotionalState(
        character_id=CHA_HAE_IN,
        base_personality={
            "professionalism": 0.8,
            "kindness": 0.7,
            "strength": 0.9,
            "vulnerability": 0.3,
            "romanticism": 0.4,
            "independence": 0.8,
        },
        current_mood={
            "happiness": 0.6,
            "confidence": 0.8,
            "attraction": 0.4,
            "trust": 0.5,
            "openness": 0.3,
        },
        relationship_dynamics={
            "professional_respect": 0.8,
            "personal_affection": 0.3,
            "romantic_tension": 0.2,
            "emotional_intimacy": 0.1,
        },
        growth_trajectory=["hunter_career_focus", "personal_walls"],
    )


# Characters seeded for every player, keyed by character id
CHARACTER_TEMPLATES = {
    CHA_HAE_IN: cha_hae_in_state,
}


def main_romance_arc() -> StoryArc:
    return StoryArc(
        id=MAIN_ARC_ID,
        title="The Hunter's Heart",
        current_chapter=1,
        total_chapters=12,
        theme="professional_to_personal",
    )


def _build_world_event_catalog() -> list[WorldEvent]:
    return [
        WorldEvent(
            id="first_coffee_date",
            type=WorldEventType.RELATIONSHIP_MILESTONE,
            title="First Casual Meeting",
            description="Jin-Woo and Cha Hae-In meet outside of work for the first time",
            trigger_conditions=["affection_above_40", "location_hongdae_cafe"],
            consequences=["relationship_dynamic_shift", "personal_conversation_unlocked"],
        ),
        WorldEvent(
            id="vulnerability_moment",
            type=WorldEventType.PERSONAL_GROWTH,
            title="Walls Coming Down",
            description="Cha Hae-In shares something personal about her past",
            trigger_conditions=["affection_above_60", "intimate_conversation_count_5"],
            consequences=["emotional_intimacy_increase", "new_dialogue_options"],
        ),
        WorldEvent(
            id="jealousy_scene",
            type=WorldEventType.RELATIONSHIP_MILESTONE,
            title="Unspoken Feelings",
            description="A moment that reveals deeper feelings",
            # other_female_interaction has no grammar, so this never fires
            trigger_conditions=["affection_above_70", "other_female_interaction"],
            consequences=["romantic_tension_increase", "confession_path_opened"],
        ),
    ]


# Parsed once at import; unrecognized conditions are logged here only
DEFAULT_WORLD_EVENTS = _build_world_event_catalog()


def default_world_events() -> list[WorldEvent]:
    """The fixed world-event catalog, as a fresh deep copy."""
    return [event.model_copy(deep=True) for event in DEFAULT_WORLD_EVENTS]


# World events created (already triggered) when a late milestone is reached
MILESTONE_WORLD_EVENTS: dict[str, dict] = {
    "exclusive_relationship_status": {
        "id": "relationship_official",
        "type": WorldEventType.RELATIONSHIP_MILESTONE,
        "title": "Official Relationship",
        "description": "Your relationship with Cha Hae-In is now officially recognized",
        "consequences": ["new_dialogue_options", "intimate_activities_unlocked"],
    },
    "deep_emotional_intimacy": {
        "id": "emotional_bond_complete",
        "type": WorldEventType.PERSONAL_GROWTH,
        "title": "Deep Emotional Bond",
        "description": "You and Cha Hae-In share complete emotional intimacy",
        "consequences": ["advanced_conversations", "future_planning_unlocked"],
    },
}
