# Author: Bradley R. Kinnard
# tests for the shared ontology and cultural seeding

import pytest

from knowledge import (
    ActionKind,
    Concept,
    Culture,
    EmotionType,
    MemoryType,
    Node,
    Predicate,
    Source,
    Value,
    build_default_ontology,
    cultural_knowledge,
)
from knowledge.ontology import action_category


class TestTaxonomy:
    """is-a closure and trait inheritance."""

    def test_transitive_parents(self, ontology):
        assert ontology.parents(Concept.APPLE) >= {Concept.FOOD, Concept.OBJECT, Concept.PHYSICAL, Concept.THING}

    def test_is_a_reflexive(self, ontology):
        assert ontology.is_a(Concept.WOLF, Concept.WOLF)
        assert ontology.is_a(Concept.WOLF, Concept.ANIMAL)
        assert not ontology.is_a(Concept.ANIMAL, Concept.WOLF)

    def test_edibility_inherited_from_food(self, ontology):
        assert ontology.is_edible(Concept.APPLE)
        assert ontology.is_edible(Concept.BERRY)
        assert not ontology.is_edible(Concept.WOOD)

    def test_edible_items_are_leaves(self, ontology):
        items = ontology.edible_items()
        assert Concept.APPLE in items
        assert Concept.BERRY in items
        assert Concept.FOOD not in items


class TestProduction:
    """what sources yield and how fast they regrow."""

    def test_produces(self, ontology):
        assert ontology.produces(Concept.APPLE_TREE) == [Concept.APPLE]
        assert ontology.produces(Concept.BERRY_BUSH) == [Concept.BERRY]
        assert ontology.produces(Concept.WOLF) == []

    def test_regeneration_rate(self, ontology):
        assert ontology.regeneration_rate(Concept.APPLE_TREE) == 300.0
        assert ontology.regeneration_rate(Concept.STONE) is None


class TestAssociations:
    """innate emotional associations and action categories."""

    def test_wolves_are_feared(self, ontology):
        value = ontology.get(Node.concept(Concept.WOLF), Predicate.TRIGGERS_EMOTION)
        assert value.emotion_type == EmotionType.FEAR
        assert value.intensity == pytest.approx(0.9)

    def test_action_category(self, ontology):
        assert action_category(ontology, ActionKind.ATTACK) == Concept.VIOLENT_ACTION
        assert action_category(ontology, ActionKind.IDLE) is None


class TestImmutability:
    """the ontology cannot change once built."""

    def test_attribute_assignment_rejected(self, ontology):
        with pytest.raises(AttributeError):
            ontology._triples = ()

    def test_query_returns_copies(self, ontology):
        before = len(ontology)
        ontology.query(predicate=Predicate.IS_A).clear()
        assert len(ontology) == before


class TestCulture:
    """cultural seeding."""

    @pytest.mark.parametrize("culture", list(Culture))
    def test_every_culture_seeds_cultural_memory(self, culture):
        facts = cultural_knowledge(culture, now=5.0)
        assert facts
        for t in facts:
            assert t.meta.memory_type == MemoryType.CULTURAL
            assert t.meta.source == Source.CULTURAL
            assert t.meta.timestamp == 5.0

    def test_farmers_know_faster_apple_trees(self):
        facts = cultural_knowledge(Culture.FARMER)
        rates = [t for t in facts if t.predicate == Predicate.REGENERATION_RATE]
        assert rates[0].subject == Node.concept(Concept.APPLE_TREE)
        assert rates[0].obj == Value.number(240.0)


@pytest.fixture
def ontology():
    return build_default_ontology()
