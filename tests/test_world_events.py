"""
Tests for world event triggers and their consequences.
"""

import pytest

from storyweave.engine import NarrativeEngine
from storyweave.state.event_bus import EventType
from storyweave.state.schema import WorldEvent, WorldEventType
from storyweave.state.seeds import CHA_HAE_IN


def _event(context, event_id):
    return next(e for e in context.world_events if e.id == event_id)


def _relationship(engine, player_id, key):
    return engine.get_story_context(player_id).emotional_states[CHA_HAE_IN].relationship_dynamics[key]


class TestCoffeeDate:
    """first_coffee_date: affection above 40 at the Hongdae cafe."""

    def test_fires_and_applies_consequences(self, engine, player, set_affection):
        set_affection(engine, player, 0.5)

        engine.add_story_memory(player, {"event": "Met for coffee", "location": "hongdae_cafe"})

        context = engine.get_story_context(player)
        event = _event(context, "first_coffee_date")
        assert event.is_triggered
        assert event.trigger_date is not None

        state = context.emotional_states[CHA_HAE_IN]
        assert state.relationship_dynamics["personal_affection"] == pytest.approx(0.6)
        assert state.current_mood["openness"] == pytest.approx(0.4)

    def test_needs_affection(self, engine, player):
        engine.add_story_memory(player, {"event": "Met for coffee", "location": "hongdae_cafe"})
        assert not _event(engine.get_story_context(player), "first_coffee_date").is_triggered

    def test_below_threshold(self, engine, player, set_affection):
        set_affection(engine, player, 0.39)
        engine.add_story_memory(player, {"event": "Met for coffee", "location": "hongdae_cafe"})
        assert not _event(engine.get_story_context(player), "first_coffee_date").is_triggered

    def test_needs_location_of_new_memory(self, engine, player, set_affection):
        set_affection(engine, player, 0.5)
        engine.add_story_memory(player, {"event": "Sparring", "location": "hunter_association"})
        assert not _event(engine.get_story_context(player), "first_coffee_date").is_triggered

    def test_fires_only_once(self, engine, player, set_affection):
        set_affection(engine, player, 0.5)
        engine.add_story_memory(player, {"event": "Coffee", "location": "hongdae_cafe"})
        engine.add_story_memory(player, {"event": "Coffee again", "location": "hongdae_cafe"})

        assert _relationship(engine, player, "personal_affection") == pytest.approx(0.6)
        fired = [
            e for e in engine.bus.get_history(EventType.WORLD_EVENT_TRIGGERED)
            if e.data["event_id"] == "first_coffee_date"
        ]
        assert len(fired) == 1


class TestVulnerabilityMoment:
    """vulnerability_moment: affection above 60 and five intimate conversations."""

    def test_fires_on_fifth_conversation(self, engine, player, set_affection):
        set_affection(engine, player, 0.65)
        talk = {"event": "Late talk", "location": "rooftop", "story_tags": ["intimate_conversation"]}

        for _ in range(4):
            engine.add_story_memory(player, talk)
        assert not _event(engine.get_story_context(player), "vulnerability_moment").is_triggered

        engine.add_story_memory(player, talk)
        assert _event(engine.get_story_context(player), "vulnerability_moment").is_triggered
        assert _relationship(engine, player, "emotional_intimacy") == pytest.approx(0.3)

    def test_count_alone_is_not_enough(self, engine, player):
        for _ in range(5):
            engine.add_story_memory(player, {"event": "Talk", "story_tags": ["intimate_conversation"]})
        assert not _event(engine.get_story_context(player), "vulnerability_moment").is_triggered


class TestUnfireableEvents:

    def test_jealousy_scene_never_fires(self, engine, player, set_affection):
        set_affection(engine, player, 1.0)
        engine.add_story_memory(player, {
            "event": "other_female_interaction",
            "story_tags": ["other_female_interaction"],
        })

        context = engine.get_story_context(player)
        event = _event(context, "jealousy_scene")
        assert not event.is_triggered
        assert not event.is_fireable
        assert context.emotional_states[CHA_HAE_IN].relationship_dynamics["romantic_tension"] == 0.2


class TestConditionsAndConsequences:

    @pytest.fixture
    def milestone_engine(self):
        def catalog():
            return [WorldEvent(
                id="first_spark",
                type=WorldEventType.RELATIONSHIP_MILESTONE,
                title="First Spark",
                trigger_conditions=["milestone_first_meaningful_conversation"],
                consequences=["romantic_tension_increase"],
            )]
        return NarrativeEngine(world_event_factory=catalog)

    def test_milestone_condition(self, milestone_engine, player):
        milestone_engine.add_story_memory(player, {"event": "x", "story_tags": ["first_meaningful_conversation"]})

        assert _event(milestone_engine.get_story_context(player), "first_spark").is_triggered
        assert _relationship(milestone_engine, player, "romantic_tension") == pytest.approx(0.35)

    def test_manual_milestone_satisfies_condition(self, milestone_engine, player):
        milestone_engine.add_relationship_milestone(player, "first_meaningful_conversation")
        milestone_engine.add_story_memory(player, {"event": "Quiet evening"})
        assert _event(milestone_engine.get_story_context(player), "first_spark").is_triggered

    def test_event_without_conditions_fires_on_first_memory(self, player):
        engine = NarrativeEngine(world_event_factory=lambda: [WorldEvent(
            id="prologue", type=WorldEventType.GATE_OUTBREAK, title="Prologue",
        )])
        engine.add_story_memory(player, {"event": "Woke up"})
        assert _event(engine.get_story_context(player), "prologue").is_triggered

    def test_unknown_consequence_has_no_effect(self, engine, player):
        engine.get_story_context(player)
        assert engine.world_events.apply_consequence(player, "new_dialogue_options") is False

    def test_consequences_are_clamped(self, engine, player, set_affection):
        set_affection(engine, player, 0.95)
        assert engine.world_events.apply_consequence(player, "relationship_dynamic_shift") is True
        assert _relationship(engine, player, "personal_affection") == 1.0
