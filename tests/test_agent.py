# Author: Bradley R. Kinnard
# integration tests for the mind agent and population stepping

import pytest

from core import (
    AgentInput,
    MindAgent,
    PhysiologicalSnapshot,
    ProposalSource,
    VisibleObject,
    create_agent,
    step_population,
)
from knowledge import (
    SELF,
    ActionKind,
    Concept,
    Culture,
    EmotionType,
    MemoryType,
    Node,
    Predicate,
    Source,
    Triple,
    Value,
    build_default_ontology,
)
from memory import OutcomeEvent

TREE = 100

HUNGRY = PhysiologicalSnapshot(hunger=60.0, location=(0, 0))
TREE_IN_VIEW = [VisibleObject(TREE, (Concept.APPLE_TREE,), (3, 4), {Concept.APPLE: 2})]


class TestPerception:
    """interoception and vision land in the store."""

    def test_body_state_written(self, agent):
        agent.perceive(HUNGRY, [], 0.0)
        assert agent.store.get(SELF, Predicate.HUNGER) == Value.integer(60)
        assert agent.store.get(SELF, Predicate.LOCATED_AT) == Value.tile(0, 0)

    def test_visible_objects_are_semantic(self, agent):
        agent.perceive(HUNGRY, TREE_IN_VIEW, 0.0)
        contents = agent.query(Node.entity(TREE), Predicate.CONTAINS, include_ontology=False)
        assert [t.obj for t in contents] == [Value.item(Concept.APPLE, 2)]
        assert contents[0].meta.memory_type == MemoryType.SEMANTIC

    def test_vanished_items_recorded_as_zero(self, agent):
        agent.perceive(PhysiologicalSnapshot(inventory={Concept.BERRY: 2}), [], 0.0)
        agent.perceive(PhysiologicalSnapshot(), [], 1.0)
        assert agent.store.count_of(SELF, Concept.BERRY) == 0
        assert agent.query(SELF, Predicate.CONTAINS, include_ontology=False)


class TestDecisions:
    """full ticks produce explained decisions."""

    def test_hungry_agent_heads_for_food(self, agent):
        decision = agent.tick(0, 0.0, HUNGRY, TREE_IN_VIEW)

        assert decision.source == ProposalSource.PLANNED
        assert decision.action.kind == ActionKind.MOVE_TO
        assert decision.action.target_tile == (3, 4)
        assert decision.goal.name == "satisfy hunger"
        assert decision.to_dict()["source"] == "planned"
        assert agent.previous_winner == ProposalSource.PLANNED
        assert agent.last_decision is decision

    def test_reflex_takes_over(self, agent):
        agent.tick(0, 0.0, HUNGRY, TREE_IN_VIEW)
        starving = PhysiologicalSnapshot(hunger=95.0, location=(0, 0), inventory={Concept.APPLE: 1})

        decision = agent.tick(1, 1.0, starving, TREE_IN_VIEW)
        assert decision.source == ProposalSource.REFLEXIVE
        assert decision.action.kind == ActionKind.EAT

    def test_no_decision_when_not_due(self, ontology):
        agent = MindAgent(1, ontology, config={"schedule": {"decision_interval": 2}})
        assert agent.tick(0, 0.0, HUNGRY) is None
        assert agent.store.get(SELF, Predicate.HUNGER) == Value.integer(60)
        assert agent.tick(1, 1.0, HUNGRY) is not None

    def test_replan_listener_fires(self, agent):
        heard = []
        agent.add_replan_listener(lambda agent_id, reason: heard.append((agent_id, reason)))

        agent.tick(0, 0.0, HUNGRY, TREE_IN_VIEW)
        agent.planned.invalidate("interrupted")
        decision = agent.tick(1, 1.0, HUNGRY, TREE_IN_VIEW)

        assert heard == [(0, "interrupted")]
        assert decision.replanned


class TestLearning:
    """outcomes, one-shot learning and hearsay."""

    def test_successful_harvest_updates_inventory(self, agent):
        event = OutcomeEvent(actor=0, action=ActionKind.HARVEST, target=TREE, result=Concept.SUCCESS,
                             timestamp=1.0, gained=(Concept.APPLE, 1))
        assert agent.ingest([event], 1.0) == 1
        assert agent.store.count_of(SELF, Concept.APPLE) == 1
        assert agent.recorder.working_memory == [0]

    def test_overwhelming_attack_learned_at_once(self, agent):
        event = OutcomeEvent(actor=5, action=ActionKind.ATTACK, target=0, result=Concept.DAMAGED,
                             timestamp=1.0, emotion=(EmotionType.FEAR, 0.95))
        agent.ingest([event], 1.0)
        traits = agent.query(Node.entity(5), Predicate.HAS_TRAIT, include_ontology=False)
        assert Value.concept(Concept.HOSTILE) in [t.obj for t in traits]

    def test_damage_from_known_creature_marks_its_kind(self, agent):
        agent.store.perceive_entity(77, Predicate.IS_A, Value.concept(Concept.WOLF), 0.0,
                                    memory_type=MemoryType.SEMANTIC)
        event = OutcomeEvent(actor=0, action=ActionKind.ATTACK, target=77, result=Concept.DAMAGED,
                             timestamp=1.0, emotion=(EmotionType.FEAR, 0.95))
        agent.ingest([event], 1.0)

        (danger,) = agent.query(Node.concept(Concept.WOLF), Predicate.HAS_TRAIT, Value.concept(Concept.DANGEROUS),
                                include_ontology=False)
        assert danger.meta.confidence == pytest.approx(0.95)
        assert danger.meta.evidence == (0,)

    def test_hearsay_keeps_informant(self, agent):
        told = [Triple(Node.entity(9), Predicate.HAS_TRAIT, Value.concept(Concept.FRIENDLY))]
        assert agent.hear(told, informant=2, now=3.0) == 1

        (triple,) = agent.query(Node.entity(9), Predicate.HAS_TRAIT, include_ontology=False)
        assert triple.meta.source == Source.HEARSAY
        assert triple.meta.informant == 2
        assert triple.meta.confidence == pytest.approx(0.7)


class TestCulture:
    """upbringing seeds cultural beliefs."""

    def test_hunter_knows_deer_can_be_hunted(self, ontology):
        hunter = create_agent(3, ontology, culture=Culture.HUNTER)
        beliefs = hunter.query(Node.concept(Concept.DEER), Predicate.AFFORDS, include_ontology=False)
        assert [t.obj for t in beliefs] == [Value.action(ActionKind.ATTACK)]
        assert beliefs[0].meta.memory_type == MemoryType.CULTURAL

    def test_culture_from_config(self, ontology):
        agent = create_agent(3, ontology, config={"agent": {"culture": "farmer"}})
        assert agent.culture == Culture.FARMER
        assert agent.get_status()["culture"] == "farmer"


class TestPopulation:
    """agents are isolated and batch-stepped."""

    def test_agents_share_no_beliefs(self, ontology):
        a, b = create_agent(0, ontology), create_agent(1, ontology)
        a.perceive(HUNGRY, TREE_IN_VIEW, 0.0)
        assert not b.query(Node.entity(TREE), include_ontology=False)
        assert a.store.ontology is b.store.ontology

    def test_skips_agents_without_input(self, ontology):
        agents = [create_agent(i, ontology) for i in range(3)]
        decisions = step_population(agents, 0, 0.0, {1: AgentInput(HUNGRY, TREE_IN_VIEW)})
        assert list(decisions) == [1]
        assert decisions[1].action.kind == ActionKind.MOVE_TO

    def test_order_does_not_matter(self, ontology):
        inputs = {i: AgentInput(HUNGRY, TREE_IN_VIEW) for i in range(3)}
        forward = step_population([create_agent(i, ontology) for i in range(3)], 0, 0.0, inputs)
        backward = step_population([create_agent(i, ontology) for i in reversed(range(3))], 0, 0.0, inputs)
        assert {k: v.to_dict() for k, v in forward.items()} == {k: v.to_dict() for k, v in backward.items()}


@pytest.fixture
def ontology():
    return build_default_ontology()


@pytest.fixture
def agent(ontology):
    return create_agent(0, ontology)
