# Author: Bradley R. Kinnard
# regressive planner - backward a* over uncertain beliefs

import heapq
import itertools
import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from knowledge.triples import (
    SELF,
    Node,
    Predicate,
    Triple,
    TriplePattern,
    ValueKind,
)
from planning.actions import ActionTemplate, MoveToHandler, located_tile
from planning.belief_state import BeliefState
from planning.goals import Goal
from utils.helpers import get_logger

logger = get_logger(__name__)


class PlanningBudgetExceeded(Exception):
    """raised inside the search when the node-expansion budget runs out."""
    pass


class PlanStatus(Enum):
    FOUND = auto()
    ALREADY_SATISFIED = auto()
    FAILED = auto()


@dataclass
class PlanResult:
    """outcome of one planning call. an empty found plan never happens, that is ALREADY_SATISFIED."""
    status: PlanStatus
    actions: list[ActionTemplate] = field(default_factory=list)
    cost: float = 0.0
    expansions: int = 0
    reason: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status != PlanStatus.FAILED

    @property
    def failed(self) -> bool:
        return self.status == PlanStatus.FAILED


class PlannerState:
    """
    overlay of hypothetical facts on a belief state.

    holds only what the plan so far added, plus which functional
    (subject, predicate) pairs those additions overwrote. the belief state
    underneath is never copied.
    """

    def __init__(
        self,
        belief: BeliefState,
        added: tuple[Triple, ...] = (),
        retired: frozenset[tuple[Node, Predicate]] = frozenset(),
    ):
        self._belief = belief
        self._added = added
        self._retired = retired

    @property
    def added(self) -> tuple[Triple, ...]:
        return self._added

    def apply(self, action: ActionTemplate) -> "PlannerState":
        added = list(self._added)
        retired = set(self._retired)
        for effect in action.effects:
            if effect.predicate.functional:
                key = (effect.subject, effect.predicate)
                added = [t for t in added if (t.subject, t.predicate) != key]
                retired.add(key)
            added = [t for t in added if t.key != effect.key]
            added.append(effect)
        return PlannerState(self._belief, tuple(added), frozenset(retired))

    def probability(self, pattern: TriplePattern) -> float:
        if any(pattern.matches(t) for t in self._added):
            return 1.0
        if pattern.subject is not None and pattern.predicate is not None:
            if (pattern.subject, pattern.predicate) in self._retired:
                return 0.0
        return self._belief.build(pattern)


def _conflicts(effect: Triple, condition: TriplePattern) -> bool:
    """effect overwrites the functional slot the condition needs with a different value."""
    return (
        effect.predicate.functional
        and effect.subject == condition.subject
        and effect.predicate == condition.predicate
        and condition.obj is not None
        and not condition.matches(effect)
    )


def _inconsistent(conditions: frozenset[TriplePattern]) -> bool:
    """two different required values for the same functional slot."""
    seen: dict[tuple, Any] = {}
    for c in conditions:
        if c.predicate is None or not c.predicate.functional or c.subject is None or c.obj is None:
            continue
        key = (c.subject, c.predicate)
        if key in seen and seen[key] != c.obj:
            return True
        seen[key] = c.obj
    return False


class RegressivePlanner:
    """
    goal-oriented action planning, searched backward from the goal.

    states are frozensets of still-unmet conditions. expanding a state picks
    any action whose effects satisfy one of its conditions and replaces the
    condition with that action's own unmet preconditions. the search ends
    when no condition is left unmet. move-to actions are synthesized only
    for location conditions, never enumerated.

    each step costs base_cost / max(eps, p) where p is the product of the
    believed probabilities of the preconditions taken as already true.
    """

    def __init__(
        self,
        max_expansions: int = 200,
        satisfied_threshold: float = 0.5,
        min_success_probability: float = 0.05,
        epsilon: float = 1e-3,
        heuristic_weight: float = 1.0,
        move_cost_per_tile: float = 1.0,
        unknown_distance_cost: float = 20.0,
    ):
        if max_expansions < 1:
            raise ValueError("max_expansions must be positive")
        if not 0.0 < satisfied_threshold <= 1.0:
            raise ValueError("satisfied_threshold must be in (0, 1]")
        self.max_expansions = max_expansions
        self.satisfied_threshold = satisfied_threshold
        self.min_success_probability = min_success_probability
        self.epsilon = epsilon
        self.heuristic_weight = heuristic_weight
        self.move_cost_per_tile = move_cost_per_tile
        self.unknown_distance_cost = unknown_distance_cost
        self._move = MoveToHandler()

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "RegressivePlanner":
        cfg = config.get("planner", {})
        return cls(
            max_expansions=cfg.get("max_expansions", 200),
            satisfied_threshold=cfg.get("satisfied_threshold", 0.5),
            min_success_probability=cfg.get("min_success_probability", 0.05),
            epsilon=cfg.get("epsilon", 1e-3),
            heuristic_weight=cfg.get("heuristic_weight", 1.0),
            move_cost_per_tile=cfg.get("move_cost_per_tile", 1.0),
            unknown_distance_cost=cfg.get("unknown_distance_cost", 20.0),
        )

    def is_satisfied(self, pattern: TriplePattern, belief: BeliefState) -> bool:
        return belief.build(pattern) >= self.satisfied_threshold

    def effective_cost(self, base_cost: float, success_probability: float) -> float:
        if success_probability < self.min_success_probability:
            return math.inf
        return base_cost / max(self.epsilon, success_probability)

    def plan(self, goal: Goal, actions: list[ActionTemplate], belief: BeliefState) -> PlanResult:
        """search for an action sequence. never raises on failure."""
        start = frozenset(c for c in goal.conditions if not self.is_satisfied(c, belief))
        if not start:
            return PlanResult(PlanStatus.ALREADY_SATISFIED)

        try:
            result = self._search(start, goal, actions, belief)
        except PlanningBudgetExceeded:
            logger.debug(f"planning for {goal} exhausted {self.max_expansions} expansions")
            return PlanResult(PlanStatus.FAILED, expansions=self.max_expansions, reason="budget_exhausted")

        if result.status == PlanStatus.FOUND:
            logger.info(
                f"plan for {goal}: {' -> '.join(a.name for a in result.actions)} "
                f"(cost {result.cost:.1f}, {result.expansions} expansions)"
            )
        return result

    def _search(
        self,
        start: frozenset[TriplePattern],
        goal: Goal,
        actions: list[ActionTemplate],
        belief: BeliefState,
    ) -> PlanResult:
        tie = itertools.count()
        g_score = {start: 0.0}
        came_from: dict[frozenset, tuple[frozenset, ActionTemplate]] = {}
        open_heap = [(self._heuristic(start, belief), 0.0, next(tie), start)]
        expansions = 0

        while open_heap:
            _f, g, _, state = heapq.heappop(open_heap)
            if g > g_score.get(state, math.inf):
                continue

            if not state:
                plan = self._reconstruct(came_from, state, start)
                if self._verify(plan, goal, belief):
                    return PlanResult(PlanStatus.FOUND, plan, g, expansions)
                logger.debug(f"discarded unsound plan {[a.name for a in plan]}")
                continue

            if expansions >= self.max_expansions:
                raise PlanningBudgetExceeded()
            expansions += 1

            for condition in sorted(state, key=lambda c: c.sort_key):
                for action in self._achievers(condition, actions, belief):
                    step = self._regress(state, action, belief)
                    if step is None:
                        continue
                    next_state, cost = step
                    new_g = g + cost
                    if new_g < g_score.get(next_state, math.inf):
                        g_score[next_state] = new_g
                        came_from[next_state] = (state, action)
                        f = new_g + self._heuristic(next_state, belief)
                        heapq.heappush(open_heap, (f, new_g, next(tie), next_state))

        return PlanResult(PlanStatus.FAILED, expansions=expansions, reason="no_plan")

    def _heuristic(self, state: frozenset[TriplePattern], belief: BeliefState) -> float:
        return self.heuristic_weight * sum(1.0 - belief.build(c) for c in state)

    def _achievers(
        self,
        condition: TriplePattern,
        actions: list[ActionTemplate],
        belief: BeliefState,
    ) -> list[ActionTemplate]:
        found = [a for a in actions if a.achieves(condition)]
        move = self._synthesize_move(condition, belief)
        if move is not None:
            found.append(move)
        return found

    def _synthesize_move(self, condition: TriplePattern, belief: BeliefState) -> ActionTemplate | None:
        if condition.subject != SELF or condition.predicate != Predicate.LOCATED_AT or condition.obj is None:
            return None

        store = belief.store
        if condition.obj.kind == ValueKind.TILE:
            target, tile = None, condition.obj.as_tile()
        elif condition.obj.kind == ValueKind.ENTITY:
            target = condition.obj.data
            tile = located_tile(store, target)
            if tile is None:
                return None
        else:
            return None

        here = store.get(SELF, Predicate.LOCATED_AT)
        here_tile = here.as_tile() if here is not None else None
        if here_tile is None:
            cost = self.unknown_distance_cost
        else:
            cost = math.dist(here_tile, tile) * self.move_cost_per_tile
        return self._move.build(store, target=target, tile=tile, cost=cost)

    def _regress(
        self,
        state: frozenset[TriplePattern],
        action: ActionTemplate,
        belief: BeliefState,
    ) -> tuple[frozenset[TriplePattern], float] | None:
        remaining = set()
        for c in state:
            if action.achieves(c):
                continue
            if any(_conflicts(e, c) for e in action.effects):
                # a later requirement that this action would undo
                return None
            remaining.add(c)

        success = 1.0
        for pre in action.preconditions:
            p = belief.build(pre)
            if p >= self.satisfied_threshold:
                success *= p
            else:
                remaining.add(pre)

        cost = self.effective_cost(action.base_cost, success)
        if math.isinf(cost):
            return None
        next_state = frozenset(remaining)
        if _inconsistent(next_state):
            return None
        return next_state, cost

    def _reconstruct(
        self,
        came_from: dict[frozenset, tuple[frozenset, ActionTemplate]],
        state: frozenset,
        start: frozenset,
    ) -> list[ActionTemplate]:
        # regression discovers the last action first, so walking back yields execution order
        plan = []
        while state != start:
            state, action = came_from[state]
            plan.append(action)
        return plan

    def _verify(self, plan: list[ActionTemplate], goal: Goal, belief: BeliefState) -> bool:
        """replay effects forward and confirm every step and the goal hold."""
        overlay = PlannerState(belief)
        for action in plan:
            for pre in action.preconditions:
                if overlay.probability(pre) < self.satisfied_threshold:
                    return False
            overlay = overlay.apply(action)
        return all(overlay.probability(c) >= self.satisfied_threshold for c in goal.conditions)


def create_planner(config: dict[str, Any]) -> RegressivePlanner:
    """factory function for creating a planner from config."""
    return RegressivePlanner.from_config(config)
