# Author: Bradley R. Kinnard
# tests for the planned source and its replanning triggers

import pytest

from core import PhysiologicalSnapshot, PlannedSource, ProposalSource
from knowledge import (
    ActionKind,
    Concept,
    FactStore,
    MemoryType,
    Predicate,
    Value,
    build_default_ontology,
    self_has,
)
from planning import Goal, RegressivePlanner

TREE = 100

HUNGER = Goal((self_has(Predicate.HUNGER, Value.integer(0)),), priority=0.8, name="satisfy hunger")
FATIGUE = Goal((self_has(Predicate.ENERGY, Value.integer(100)),), priority=0.6, name="satisfy fatigue")
ALERT = PhysiologicalSnapshot(hunger=80.0)


class TestGating:
    """when the planned source speaks at all."""

    def test_abstains_when_drowsy(self, source, world):
        assert source.propose(world, PhysiologicalSnapshot(alertness=0.2), HUNGER, 0.0) is None

    def test_wanders_without_goal(self, source, world):
        p = source.propose(world, ALERT, None, 0.0)
        assert p.action.kind == ActionKind.WANDER
        assert p.urgency == 10.0
        assert p.source == ProposalSource.PLANNED


class TestPlanFollowing:
    """holding and stepping through a plan."""

    def test_first_step_of_new_plan(self, source, world):
        p = source.propose(world, ALERT, HUNGER, 0.0)

        assert [a.kind for a in source.plan] == [ActionKind.MOVE_TO, ActionKind.HARVEST, ActionKind.EAT]
        assert p.action.kind == ActionKind.MOVE_TO
        assert p.urgency == pytest.approx(80.0)
        assert source.goal == HUNGER

    def test_advances_past_finished_steps(self, source, world):
        source.propose(world, ALERT, HUNGER, 0.0)
        world.perceive_self(Predicate.LOCATED_AT, Value.tile(3, 4), 1.0)

        p = source.propose(world, ALERT, HUNGER, 1.0, planning_due=False)
        assert p.action.kind == ActionKind.HARVEST
        assert source.step == 1
        assert not source.replanned

    def test_unsatisfiable_goal_explores(self, source):
        empty = FactStore(ontology=build_default_ontology())
        p = source.propose(empty, ALERT, HUNGER, 0.0)
        assert p.action.kind == ActionKind.EXPLORE
        assert p.urgency == pytest.approx(0.8 * 30.0)


class TestReplanning:
    """every trigger replans and keeps the goal."""

    def test_precondition_violated(self, source, world):
        source.propose(world, ALERT, HUNGER, 0.0)
        world.perceive_self(Predicate.LOCATED_AT, Value.tile(3, 4), 1.0)
        world.perceive_entity(TREE, Predicate.CONTAINS, Value.item(Concept.APPLE, 0), 1.0,
                              memory_type=MemoryType.SEMANTIC)

        p = source.propose(world, ALERT, HUNGER, 1.0, planning_due=False)
        assert source.replanned
        assert source.last_replan_reason == "precondition_violated"
        assert source.goal == HUNGER
        assert p.action.kind == ActionKind.EXPLORE

    def test_goal_changed(self, source, world):
        source.propose(world, ALERT, HUNGER, 0.0)
        p = source.propose(world, ALERT, FATIGUE, 1.0, planning_due=False)

        assert source.replanned
        assert source.last_replan_reason == "goal_changed"
        assert p.action.kind == ActionKind.SLEEP

    def test_plan_completed(self, source, world):
        world.perceive_self(Predicate.CONTAINS, Value.item(Concept.APPLE, 1), 0.0)
        source.propose(world, ALERT, HUNGER, 0.0)
        assert [a.kind for a in source.plan] == [ActionKind.EAT]

        world.perceive_self(Predicate.HUNGER, Value.integer(0), 1.0)
        p = source.propose(world, ALERT, HUNGER, 1.0, planning_due=False)
        assert source.last_replan_reason == "plan_completed"
        assert p.action.kind == ActionKind.WANDER
        assert p.urgency == 5.0

    def test_external_invalidation(self, source, world):
        source.propose(world, ALERT, HUNGER, 0.0)
        source.invalidate("told_to_stop")
        assert source.plan == []

        source.propose(world, ALERT, HUNGER, 1.0, planning_due=False)
        assert source.replanned
        assert source.last_replan_reason == "told_to_stop"
        assert source.replan_count == 1

    def test_resource_found_while_exploring(self, source):
        store = FactStore(ontology=build_default_ontology())
        store.perceive_self(Predicate.LOCATED_AT, Value.tile(0, 0), 0.0)
        assert source.propose(store, ALERT, HUNGER, 0.0).action.kind == ActionKind.EXPLORE

        put_tree(store, now=1.0)
        p = source.propose(store, ALERT, HUNGER, 1.0, planning_due=False)
        assert source.last_replan_reason == "resource_found"
        assert p.action.kind == ActionKind.MOVE_TO

    def test_flag_clears_next_tick(self, source, world):
        source.propose(world, ALERT, HUNGER, 0.0)
        source.propose(world, ALERT, FATIGUE, 1.0)
        assert source.replanned
        source.propose(world, ALERT, FATIGUE, 2.0, planning_due=False)
        assert not source.replanned


class TestFallbacks:
    """what happens when planning is not due."""

    def test_heads_for_believed_resource(self, source, world):
        p = source.propose(world, ALERT, HUNGER, 0.0, planning_due=False)
        assert source.plan == []
        assert p.action.kind == ActionKind.MOVE_TO
        assert p.action.target_tile == (3, 4)
        assert p.urgency == pytest.approx(0.8 * 50.0)

    def test_belief_floor_from_config(self):
        assert PlannedSource.from_config({"planned": {"min_belief_confidence": 0.3}}).min_belief_confidence == 0.3
        assert PlannedSource.from_config({}).min_belief_confidence == 0.1


def put_tree(store: FactStore, now: float = 0.0) -> None:
    for predicate, value in (
        (Predicate.IS_A, Value.concept(Concept.APPLE_TREE)),
        (Predicate.LOCATED_AT, Value.tile(3, 4)),
        (Predicate.CONTAINS, Value.item(Concept.APPLE, 2)),
    ):
        store.perceive_entity(TREE, predicate, value, now, memory_type=MemoryType.SEMANTIC)


@pytest.fixture
def world():
    store = FactStore(ontology=build_default_ontology())
    store.perceive_self(Predicate.LOCATED_AT, Value.tile(0, 0), 0.0)
    store.perceive_self(Predicate.HUNGER, Value.integer(80), 0.0)
    put_tree(store)
    return store


@pytest.fixture
def source():
    return PlannedSource(planner=RegressivePlanner())
