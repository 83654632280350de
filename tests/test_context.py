"""
Tests for tension, pacing and prompt building.
"""

import pytest

from storyweave.context.narrative import (
    SUGGESTED_RESPONSES,
    calculate_pacing,
    calculate_tension,
    extract_location,
    extract_time_of_day,
    format_emotional_context,
)
from storyweave.state.schema import CharacterEmotionalState, Pacing, StoryMemory
from storyweave.state.seeds import MAIN_ARC_ID, cha_hae_in_state


def _memories(*impacts):
    return [StoryMemory(event="e", emotional_impact=i) for i in impacts]


class TestTension:

    def test_empty(self):
        assert calculate_tension([]) == 0.0

    def test_absolute_values_summed(self):
        assert calculate_tension(_memories(5, -5)) == pytest.approx(0.2)

    def test_capped_at_one(self):
        assert calculate_tension(_memories(*[10] * 10)) == 1.0

    def test_only_last_ten_count(self):
        assert calculate_tension(_memories(10, *[0] * 10)) == 0.0


class TestPacing:

    @pytest.mark.parametrize("tension,chapter,expected", [
        (0.85, 1, Pacing.CLIMACTIC),
        (0.0, 10, Pacing.CLIMACTIC),
        (0.65, None, Pacing.INTENSE),
        (0.0, 7, Pacing.INTENSE),
        (0.31, 1, Pacing.MODERATE),
        (0.0, 4, Pacing.MODERATE),
        (0.3, 1, Pacing.SLOW),
        (0.0, None, Pacing.SLOW),
    ])
    def test_tiers(self, tension, chapter, expected):
        assert calculate_pacing(tension, chapter) == expected

    def test_engine_pacing_follows_chapter(self, engine, player):
        for _ in range(3):
            engine.advance_story_arc(player, MAIN_ARC_ID)
        assert engine.get_story_context(player).pacing == Pacing.MODERATE


class TestEmotionalContext:

    def test_seed_state(self):
        assert format_emotional_context(cha_hae_in_state()) == (
            "Dominant mood: confidence (80%). Relationship level: professional_respect (80%)"
        )

    def test_halves_round_up(self):
        state = CharacterEmotionalState(
            character_id="c",
            current_mood={"trust": 0.125},
            relationship_dynamics={"romantic_tension": 0.005},
        )
        assert format_emotional_context(state) == (
            "Dominant mood: trust (13%). Relationship level: romantic_tension (1%)"
        )

    def test_missing_state(self):
        assert format_emotional_context(None) == "Neutral emotional state"
        assert format_emotional_context(CharacterEmotionalState(character_id="c")) == "Neutral emotional state"


class TestSituationParsing:

    @pytest.mark.parametrize("situation,location", [
        ("Meeting at the hongdae cafe", "hongdae_cafe"),
        ("Back at the Association HQ", "hunter_association"),
        ("Dinner at a Myeongdong restaurant", "myeongdong_restaurant"),
        ("Walking along the river", "unknown"),
    ])
    def test_location(self, situation, location):
        assert extract_location(situation) == location

    @pytest.mark.parametrize("situation,time_of_day", [
        ("Early breakfast", "morning"),
        ("Watching the sunset", "evening"),
        ("Late night at her apartment", "night"),
        ("Walking along the river", "unknown"),
    ])
    def test_time_of_day(self, situation, time_of_day):
        assert extract_time_of_day(situation) == time_of_day


class TestNarrativeBundle:

    def test_fresh_player_prompt(self, engine, player):
        bundle = engine.generate_contextual_narrative(player, "Meeting at the hongdae cafe in the morning")

        assert bundle.narrative_prompt.startswith(
            "Chapter 1 of The Hunter's Heart. Current pacing: slow. Narrative tension: 0%. "
            "Situation: Meeting at the hongdae cafe in the morning"
        )
        assert "LOCATION_CONTEXT: Currently at hongdae_cafe" in bundle.narrative_prompt
        assert "relaxed_friendly" in bundle.narrative_prompt
        assert "TIME_CONTEXT" not in bundle.narrative_prompt
        assert bundle.emotional_context.startswith("Dominant mood: confidence (80%)")
        assert bundle.suggested_responses == SUGGESTED_RESPONSES[Pacing.SLOW]

    def test_night_in_private_location(self, engine, player):
        bundle = engine.generate_contextual_narrative(player, "Late night at her apartment")
        assert "LOCATION_CONTEXT: Currently at chahaein_apartment" in bundle.narrative_prompt
        assert "TIME_CONTEXT" in bundle.narrative_prompt

    def test_mood_and_profile_hints(self, engine, player):
        engine.set_prevailing_mood(player, "playful")
        engine.set_player_profile(player, "empathetic")

        prompt = engine.generate_contextual_narrative(player, "Walking along the river").narrative_prompt
        assert "MOOD_CONTEXT: Cha Hae-In's current prevailing mood is playful" in prompt
        assert "player tends to be empathetic" in prompt
        assert "LOCATION_CONTEXT" not in prompt

    def test_tension_shows_in_prompt(self, engine, player):
        engine.add_story_memory(player, {"event": "Gate break", "emotional_impact": -9})
        engine.add_story_memory(player, {"event": "Rescue", "emotional_impact": 9})
        engine.add_story_memory(player, {"event": "Aftermath", "emotional_impact": 0.5})

        bundle = engine.generate_contextual_narrative(player, "Quiet moment")
        assert "Narrative tension: 37%" in bundle.narrative_prompt
        assert "Current pacing: moderate" in bundle.narrative_prompt
        assert bundle.suggested_responses == SUGGESTED_RESPONSES[Pacing.MODERATE]

    def test_context_without_main_arc(self, player):
        from storyweave.engine import NarrativeEngine

        engine = NarrativeEngine(arc_factories=[])
        bundle = engine.generate_contextual_narrative(player, "Somewhere")
        assert bundle.narrative_prompt.startswith("Beginning of story.")
