# Author: Bradley R. Kinnard
# planned source - holds a plan, re-verifies it every tick and replans on triggers

from typing import Any

from knowledge.fact_store import FactStore
from knowledge.triples import ActionKind, Node, Predicate, TriplePattern, Value
from core.proposals import Proposal, ProposalSource, simple_action
from core.snapshot import PhysiologicalSnapshot
from planning.actions import ActionTemplate, believed_sources, candidate_actions, harvestable_items, located_tile
from planning.belief_state import BeliefState
from planning.goals import Goal
from planning.planner import PlanStatus, RegressivePlanner
from utils.helpers import get_logger

logger = get_logger(__name__)


class PlannedSource:
    """
    deliberate, goal-directed behaviour.

    abstains when the agent is not alert enough to think. otherwise keeps a
    plan and a step index, checks the next step against current beliefs
    every tick, and replans when the goal changes, a step's preconditions
    stop holding, the plan finishes, or something is found while exploring.
    the goal survives every replan.
    """

    def __init__(
        self,
        planner: RegressivePlanner | None = None,
        alertness_gate: float = 0.3,
        explore_urgency_scale: float = 30.0,
        believed_resource_scale: float = 50.0,
        wander_urgency: float = 5.0,
        idle_wander_urgency: float = 10.0,
        min_belief_confidence: float = 0.1,
    ):
        self.planner = planner or RegressivePlanner()
        self.alertness_gate = alertness_gate
        self.explore_urgency_scale = explore_urgency_scale
        self.believed_resource_scale = believed_resource_scale
        self.wander_urgency = wander_urgency
        self.idle_wander_urgency = idle_wander_urgency
        self.min_belief_confidence = min_belief_confidence

        self.goal: Goal | None = None
        self.plan: list[ActionTemplate] = []
        self.step = 0
        self.replanned = False
        self.last_replan_reason: str | None = None
        self.replan_count = 0
        self._pending: str | None = None
        self._exploring = False
        self._known_sources: frozenset[int] = frozenset()

    @classmethod
    def from_config(cls, config: dict[str, Any], planner: RegressivePlanner | None = None) -> "PlannedSource":
        cfg = config.get("planned", {})
        return cls(
            planner=planner or RegressivePlanner.from_config(config),
            alertness_gate=cfg.get("alertness_gate", 0.3),
            explore_urgency_scale=cfg.get("explore_urgency_scale", 30.0),
            believed_resource_scale=cfg.get("believed_resource_scale", 50.0),
            wander_urgency=cfg.get("wander_urgency", 5.0),
            idle_wander_urgency=cfg.get("idle_wander_urgency", 10.0),
            min_belief_confidence=cfg.get("min_belief_confidence", 0.1),
        )

    @property
    def current_action(self) -> ActionTemplate | None:
        return self.plan[self.step] if self.step < len(self.plan) else None

    def invalidate(self, reason: str) -> None:
        """external invalidation. the plan is dropped and replanned next tick."""
        self._drop_plan()
        self._pending = reason

    def _drop_plan(self) -> None:
        self.plan = []
        self.step = 0

    def propose(
        self,
        store: FactStore,
        snapshot: PhysiologicalSnapshot,
        goal: Goal | None,
        now: float,
        planning_due: bool = True,
    ) -> Proposal | None:
        self.replanned = False
        if snapshot.alertness < self.alertness_gate:
            return None

        trigger, self._pending = self._pending, None
        if goal != self.goal:
            if self.goal is not None:
                trigger = "goal_changed"
            self._drop_plan()
        # same conditions may carry a new priority
        self.goal = goal

        if self.goal is None:
            self._exploring = False
            return Proposal(ProposalSource.PLANNED, simple_action(ActionKind.WANDER), self.idle_wander_urgency, "no goal")

        belief = BeliefState(store, now)
        if self._exploring and self._found_something(store):
            trigger = "resource_found"
        if self.plan:
            problem = self._check_plan(belief)
            if problem is not None:
                self._drop_plan()
                trigger = problem

        if not self.plan and (trigger is not None or planning_due):
            status = self._replan(store, belief, trigger)
            if status == PlanStatus.ALREADY_SATISFIED:
                return Proposal(ProposalSource.PLANNED, simple_action(ActionKind.WANDER),
                                self.wander_urgency, "goal already satisfied")

        urgency = self.goal.priority * 100.0
        action = self.current_action
        if action is not None:
            self._exploring = False
            return Proposal(ProposalSource.PLANNED, action, urgency,
                            f"step {self.step + 1}/{len(self.plan)} toward {self.goal}")

        believed = self._believed_resource(store, belief)
        if believed is not None:
            return believed

        if not self._exploring:
            self._known_sources = frozenset(believed_sources(store, self.min_belief_confidence))
        self._exploring = True
        return Proposal(ProposalSource.PLANNED, simple_action(ActionKind.EXPLORE),
                        self.goal.priority * self.explore_urgency_scale, "no plan, exploring")

    def _replan(self, store: FactStore, belief: BeliefState, trigger: str | None) -> PlanStatus:
        result = self.planner.plan(self.goal, candidate_actions(store, self.min_belief_confidence), belief)
        if result.status == PlanStatus.FOUND:
            self.plan = result.actions
            self.step = 0
        if trigger is not None:
            self.replanned = True
            self.last_replan_reason = trigger
            self.replan_count += 1
            logger.info(f"replanned for {self.goal} after {trigger}: {result.status.name.lower()}")
        return result.status

    def _check_plan(self, belief: BeliefState) -> str | None:
        """advance past finished steps and verify the next one. returns a replan reason or None."""
        threshold = self.planner.satisfied_threshold
        while self.step < len(self.plan):
            effects = self.plan[self.step].effects
            done = bool(effects) and all(
                belief.build(TriplePattern(e.subject, e.predicate, e.obj)) >= threshold for e in effects
            )
            if not done:
                break
            self.step += 1

        if self.step >= len(self.plan):
            return "plan_completed"
        for pre in self.plan[self.step].preconditions:
            if belief.build(pre) < threshold:
                logger.debug(f"precondition {pre} no longer holds for {self.plan[self.step].name}")
                return "precondition_violated"
        return None

    def _found_something(self, store: FactStore) -> bool:
        current = set(believed_sources(store, self.min_belief_confidence))
        return bool(current - self._known_sources)

    def _believed_resource(self, store: FactStore, belief: BeliefState) -> Proposal | None:
        """head for the most promising remembered food source when no plan exists."""
        if store.ontology is None or not any(c.predicate == Predicate.HUNGER for c in self.goal.conditions):
            return None

        best, best_p = None, self.planner.min_success_probability
        for entity_id in believed_sources(store, self.min_belief_confidence):
            tile = located_tile(store, entity_id)
            if tile is None:
                continue
            for item in harvestable_items(store, entity_id):
                if not store.ontology.is_edible(item):
                    continue
                p = belief.build(TriplePattern(Node.entity(entity_id), Predicate.CONTAINS, Value.item(item, 1)))
                if p > best_p:
                    best, best_p = (entity_id, tile), p
        if best is None:
            return None

        entity_id, tile = best
        return Proposal(
            ProposalSource.PLANNED,
            simple_action(ActionKind.MOVE_TO, tile=tile),
            self.goal.priority * self.believed_resource_scale,
            f"checking remembered source {entity_id} (p={best_p:.2f})",
        )
