# Author: Bradley R. Kinnard
# tests for the regressive planner

import math

import pytest
from hypothesis import given, settings, strategies as st

from knowledge import (
    SELF,
    ActionKind,
    Concept,
    FactStore,
    MemoryType,
    Metadata,
    Node,
    Predicate,
    Triple,
    Value,
    build_default_ontology,
    entity_contains,
    self_contains,
    self_has,
)
from planning import (
    ActionTemplate,
    BeliefState,
    Goal,
    PlannerState,
    PlanStatus,
    RegressivePlanner,
    candidate_actions,
)

TREE_A = 1
TREE_B = 2

HUNGER_GOAL = Goal((self_has(Predicate.HUNGER, Value.integer(0)),), priority=0.8, name="satisfy hunger")


def harvest(tree: int, cost: float) -> ActionTemplate:
    return ActionTemplate(
        kind=ActionKind.HARVEST,
        target=tree,
        preconditions=(entity_contains(tree, Concept.APPLE),),
        effects=(Triple(SELF, Predicate.CONTAINS, Value.item(Concept.APPLE, 1)),),
        base_cost=cost,
        item=Concept.APPLE,
    )


class TestCostRanking:
    """uncertain preconditions make actions more expensive."""

    def test_cheaper_less_certain_tree_wins(self, store, planner):
        store.assert_triple(Triple(Node.entity(TREE_A), Predicate.CONTAINS, Value.item(Concept.APPLE, 3),
                                   Metadata.semantic(0.0, 0.85)))
        store.assert_triple(Triple(Node.entity(TREE_B), Predicate.CONTAINS, Value.item(Concept.APPLE, 3),
                                   Metadata.semantic(0.0, 0.70)))
        goal = Goal((self_contains(Concept.APPLE),))

        result = planner.plan(goal, [harvest(TREE_A, 15.0), harvest(TREE_B, 10.0)], BeliefState(store, 0.0))

        assert result.status == PlanStatus.FOUND
        assert [a.target for a in result.actions] == [TREE_B]
        assert result.cost == pytest.approx(10.0 / 0.70)

    def test_effective_cost(self, planner):
        assert planner.effective_cost(10.0, 0.5) == pytest.approx(20.0)
        assert math.isinf(planner.effective_cost(10.0, 0.01))


class TestOutcomes:
    """status and failure reasons."""

    def test_already_satisfied(self, store, planner):
        store.perceive_self(Predicate.CONTAINS, Value.item(Concept.APPLE, 1), 0.0)
        result = planner.plan(Goal((self_contains(Concept.APPLE),)), [], BeliefState(store, 0.0))
        assert result.status == PlanStatus.ALREADY_SATISFIED
        assert result.actions == []
        assert result.succeeded

    def test_no_plan(self, store, planner):
        result = planner.plan(HUNGER_GOAL, [], BeliefState(store, 0.0))
        assert result.failed
        assert result.reason == "no_plan"

    def test_budget_exhausted(self, world):
        planner = RegressivePlanner(max_expansions=1)
        result = planner.plan(HUNGER_GOAL, candidate_actions(world), BeliefState(world, 0.0))
        assert result.status == PlanStatus.FAILED
        assert result.reason == "budget_exhausted"

    def test_rejects_bad_budget(self):
        with pytest.raises(ValueError):
            RegressivePlanner(max_expansions=0)


class TestChaining:
    """multi-step plans through synthesized moves."""

    def test_move_harvest_eat(self, world, planner):
        result = planner.plan(HUNGER_GOAL, candidate_actions(world), BeliefState(world, 0.0))

        assert result.status == PlanStatus.FOUND
        assert [a.kind for a in result.actions] == [ActionKind.MOVE_TO, ActionKind.HARVEST, ActionKind.EAT]
        move, pick, eat = result.actions
        assert move.target_tile == (3, 4)
        assert move.base_cost == pytest.approx(5.0)
        assert pick.target == TREE_A
        assert eat.item == Concept.APPLE

    def test_already_there_skips_move(self, world, planner):
        world.perceive_self(Predicate.LOCATED_AT, Value.tile(3, 4), 0.0)
        result = planner.plan(HUNGER_GOAL, candidate_actions(world), BeliefState(world, 0.0))
        assert [a.kind for a in result.actions] == [ActionKind.HARVEST, ActionKind.EAT]

    def test_empty_tree_gives_no_plan(self, world, planner):
        world.assert_triple(Triple(Node.entity(TREE_A), Predicate.CONTAINS, Value.item(Concept.APPLE, 0),
                                   Metadata.semantic(0.0, 1.0)))
        result = planner.plan(HUNGER_GOAL, candidate_actions(world), BeliefState(world, 0.0))
        assert result.failed

    def test_forward_replay_holds(self, world, planner):
        belief = BeliefState(world, 0.0)
        result = planner.plan(HUNGER_GOAL, candidate_actions(world), belief)
        assert_sound(planner, result.actions, HUNGER_GOAL, belief)


class TestSoundness:
    """every returned plan replays forward without a broken step."""

    @settings(max_examples=30, deadline=None)
    @given(
        here=st.tuples(st.integers(0, 9), st.integers(0, 9)),
        trees=st.lists(
            st.tuples(
                st.tuples(st.integers(0, 9), st.integers(0, 9)),
                st.integers(0, 3),
                st.floats(min_value=0.05, max_value=1.0),
            ),
            min_size=1,
            max_size=4,
        ),
        holding=st.integers(0, 1),
    )
    def test_plan_soundness(self, here, trees, holding):
        store = FactStore(ontology=build_default_ontology())
        store.perceive_self(Predicate.LOCATED_AT, Value.tile(*here), 0.0)
        store.perceive_self(Predicate.HUNGER, Value.integer(60), 0.0)
        store.perceive_self(Predicate.CONTAINS, Value.item(Concept.APPLE, holding), 0.0)
        for i, (tile, qty, conf) in enumerate(trees):
            put_tree(store, 10 + i, tile, qty, conf)

        planner = RegressivePlanner()
        belief = BeliefState(store, 0.0)
        result = planner.plan(HUNGER_GOAL, candidate_actions(store), belief)

        if result.status == PlanStatus.FOUND:
            assert result.actions
            assert_sound(planner, result.actions, HUNGER_GOAL, belief)
        else:
            assert result.actions == []


def assert_sound(planner: RegressivePlanner, plan: list[ActionTemplate], goal: Goal, belief: BeliefState) -> None:
    state = PlannerState(belief)
    for action in plan:
        for pre in action.preconditions:
            assert state.probability(pre) >= planner.satisfied_threshold, f"{pre} unmet before {action}"
        state = state.apply(action)
    for condition in goal.conditions:
        assert state.probability(condition) >= planner.satisfied_threshold


def put_tree(store: FactStore, entity_id: int, tile: tuple[int, int], quantity: int, confidence: float) -> None:
    store.perceive_entity(entity_id, Predicate.IS_A, Value.concept(Concept.APPLE_TREE), 0.0,
                          memory_type=MemoryType.SEMANTIC)
    store.perceive_entity(entity_id, Predicate.LOCATED_AT, Value.tile(*tile), 0.0,
                          memory_type=MemoryType.SEMANTIC)
    store.perceive_entity(entity_id, Predicate.CONTAINS, Value.item(Concept.APPLE, quantity), 0.0,
                          confidence=confidence, memory_type=MemoryType.SEMANTIC)


@pytest.fixture
def store():
    return FactStore(ontology=build_default_ontology())


@pytest.fixture
def world(store):
    store.perceive_self(Predicate.LOCATED_AT, Value.tile(0, 0), 0.0)
    store.perceive_self(Predicate.HUNGER, Value.integer(60), 0.0)
    put_tree(store, TREE_A, (3, 4), 2, 1.0)
    return store


@pytest.fixture
def planner():
    return RegressivePlanner()
