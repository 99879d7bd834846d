# Author: Bradley R. Kinnard
# tests for episodic consolidation into semantic beliefs

import pytest
from hypothesis import given, strategies as st

from knowledge import (
    ActionKind,
    Concept,
    EmotionType,
    FactStore,
    Metadata,
    Node,
    Predicate,
    Source,
    Triple,
    Value,
    build_default_ontology,
)
from memory import ConsolidationEngine, EpisodicRecorder, OutcomeEvent

ME = 1
WOLF_ID = 2


def attack_on_me(t: float, emotion=EmotionType.FEAR, intensity: float = 0.8) -> OutcomeEvent:
    return OutcomeEvent(
        actor=WOLF_ID, action=ActionKind.ATTACK, target=ME, result=Concept.SUCCESS,
        timestamp=t, emotion=(emotion, intensity),
    )


class TestEvidenceCombination:
    """confidence rises with support and falls with contradiction."""

    @given(st.floats(min_value=0.01, max_value=50.0), st.floats(min_value=0.0, max_value=50.0),
           st.floats(min_value=0.01, max_value=10.0))
    def test_monotonic(self, support, contradict, extra):
        engine = ConsolidationEngine()
        base = engine.combine(support, contradict)
        assert engine.combine(support + extra, contradict) >= base
        assert engine.combine(support, contradict + extra) <= base
        assert 0.0 <= base < 1.0

    def test_no_support_no_belief(self, engine):
        assert engine.combine(0.0, 3.0) == 0.0

    def test_recent_intense_events_weigh_more(self, engine):
        from memory.consolidation import RecalledEvent
        events = [
            RecalledEvent(0, 100.0, emotion=EmotionType.FEAR, intensity=0.9),
            RecalledEvent(1, 0.0, emotion=EmotionType.FEAR, intensity=0.9),
            RecalledEvent(2, 100.0, emotion=EmotionType.FEAR, intensity=0.1),
        ]
        w = engine.event_weights(events, 100.0)
        assert w[0] > w[1]
        assert w[0] > w[2]


class TestDispositions:
    """beliefs about other agents."""

    def test_repeated_attacks_make_hostile(self, store, recorder, engine):
        ids = [recorder.record(store, attack_on_me(float(t))) for t in range(4)]
        engine.consolidate(store, ME, 10.0)

        wolf = Node.entity(WOLF_ID)
        hostile = store.query(wolf, Predicate.HAS_TRAIT, Value.concept(Concept.HOSTILE), include_ontology=False)
        assert len(hostile) == 1
        meta = hostile[0].meta
        assert meta.confidence > 0.7
        assert meta.source == Source.INFERRED
        assert set(meta.evidence) == set(ids)

        fear = store.query(wolf, Predicate.TRIGGERS_EMOTION, include_ontology=False)
        assert fear[0].obj.emotion_type == EmotionType.FEAR

    def test_single_mild_event_is_not_a_pattern(self, store, recorder, engine):
        recorder.record(store, attack_on_me(0.0, intensity=0.5))
        assert engine.consolidate(store, ME, 1.0) == []

    def test_contradiction_lowers_confidence(self, store, recorder, engine):
        for t in range(4):
            recorder.record(store, attack_on_me(float(t)))
        engine.consolidate(store, ME, 10.0)
        pure = store.confidence_of(Node.entity(WOLF_ID), Predicate.HAS_TRAIT, Value.concept(Concept.HOSTILE))

        mixed = FactStore(ontology=store.ontology)
        mixed_recorder = EpisodicRecorder(ME)
        for t in range(4):
            mixed_recorder.record(mixed, attack_on_me(float(t)))
        for t in range(2):
            mixed_recorder.record(mixed, attack_on_me(float(t + 4), EmotionType.JOY, 0.8))
        engine.consolidate(mixed, ME, 10.0)
        contested = mixed.confidence_of(Node.entity(WOLF_ID), Predicate.HAS_TRAIT, Value.concept(Concept.HOSTILE))

        assert 0.0 < contested < pure

    def test_reconsolidation_weakens_contested_belief(self, store, recorder, engine):
        wolf = Node.entity(WOLF_ID)
        for t in range(4):
            recorder.record(store, attack_on_me(float(t)))
        engine.consolidate(store, ME, 10.0)
        before = store.confidence_of(wolf, Predicate.HAS_TRAIT, Value.concept(Concept.HOSTILE))

        for t in range(2):
            recorder.record(store, attack_on_me(float(t + 4), EmotionType.JOY, 0.8))
        engine.consolidate(store, ME, 10.0)
        after = store.confidence_of(wolf, Predicate.HAS_TRAIT, Value.concept(Concept.HOSTILE))

        assert 0.0 < after < before

    def test_own_actions_never_form_dispositions(self, store, recorder, engine):
        for t in range(4):
            recorder.record(store, OutcomeEvent(
                actor=ME, action=ActionKind.ATTACK, target=WOLF_ID, result=Concept.SUCCESS,
                timestamp=float(t), emotion=(EmotionType.ANGER, 0.9),
            ))
        engine.consolidate(store, ME, 5.0)
        assert store.query(Node.entity(ME), Predicate.HAS_TRAIT, include_ontology=False) == []


class TestAffordances:
    """beliefs about what categories of things afford."""

    def test_successful_attacks_teach_affordance(self, store, recorder, engine):
        for t in range(3):
            recorder.record(store, OutcomeEvent(
                actor=ME, action=ActionKind.ATTACK, target=50, result=Concept.SUCCESS,
                timestamp=float(t), emotion=(EmotionType.JOY, 0.5), target_category=Concept.DEER,
            ))
        engine.consolidate(store, ME, 3.0)
        assert store.has(Node.concept(Concept.DEER), Predicate.AFFORDS, Value.action(ActionKind.ATTACK))

    def test_damage_marks_category_dangerous(self, store, recorder, engine):
        for t in range(2):
            recorder.record(store, OutcomeEvent(
                actor=ME, action=ActionKind.HARVEST, target=60, result=Concept.DAMAGED,
                timestamp=float(t), emotion=(EmotionType.FEAR, 0.9), target_category=Concept.BERRY_BUSH,
            ))
        engine.consolidate(store, ME, 2.0)

        bush = Node.concept(Concept.BERRY_BUSH)
        assert store.query(bush, Predicate.HAS_TRAIT, Value.concept(Concept.DANGEROUS), include_ontology=False)
        assert store.query(bush, Predicate.TRIGGERS_EMOTION, include_ontology=False)

    def test_repeated_failure_retracts_learned_affordance(self, store, recorder, engine):
        deer = Node.concept(Concept.DEER)
        store.assert_triple(Triple(deer, Predicate.AFFORDS, Value.action(ActionKind.ATTACK),
                                   Metadata.inferred(0.0, 0.6, [])))
        for t in range(3):
            recorder.record(store, OutcomeEvent(
                actor=ME, action=ActionKind.ATTACK, target=50, result=Concept.FAILURE,
                timestamp=float(t), emotion=(EmotionType.SADNESS, 0.5), target_category=Concept.DEER,
            ))
        engine.consolidate(store, ME, 3.0)
        assert not store.has(deer, Predicate.AFFORDS, Value.action(ActionKind.ATTACK))


class TestOneShot:
    """a single overwhelming episode is enough."""

    def test_intense_attack_learned_immediately(self, store, recorder, engine):
        event = attack_on_me(0.0, intensity=0.95)
        event_id = recorder.record(store, event)
        written = engine.learn_one_shot(store, event_id, event, ME, 0.0)

        assert written
        hostile = store.query(Node.entity(WOLF_ID), Predicate.HAS_TRAIT, Value.concept(Concept.HOSTILE),
                              include_ontology=False)
        assert hostile[0].meta.confidence == pytest.approx(0.95)
        assert hostile[0].meta.evidence == (event_id,)

    def test_mild_event_ignored(self, store, recorder, engine):
        event = attack_on_me(0.0, intensity=0.6)
        event_id = recorder.record(store, event)
        assert engine.learn_one_shot(store, event_id, event, ME, 0.0) == []


@pytest.fixture
def store():
    return FactStore(ontology=build_default_ontology())


@pytest.fixture
def recorder():
    return EpisodicRecorder(ME)


@pytest.fixture
def engine():
    return ConsolidationEngine()
