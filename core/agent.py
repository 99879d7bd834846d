# Author: Bradley R. Kinnard
# mind agent - per-creature store, memory and decision loop

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

from knowledge.decay import DecayPolicy
from knowledge.fact_store import FactStore
from knowledge.ontology import Culture, Ontology, cultural_knowledge
from knowledge.triples import (
    SELF,
    Concept,
    MemoryType,
    Node,
    Predicate,
    Triple,
    Value,
    ValueKind,
)
from memory.belief_updater import apply_outcome
from memory.consolidation import ConsolidationEngine
from memory.episodic import EpisodicRecorder, OutcomeEvent
from planning.actions import ActionTemplate
from planning.goals import Goal, GoalFormulator
from planning.planner import RegressivePlanner
from core.arbitration import Arbitrator, SourcePowers
from core.associative import AssociativeSource
from core.planned import PlannedSource
from core.proposals import ProposalSource
from core.reflexive import ReflexiveSource
from core.scheduler import AgentSchedule
from core.snapshot import PhysiologicalSnapshot, VisibleObject
from utils.helpers import default_config, get_logger

logger = get_logger(__name__)


ReplanListener = Callable[[int, str], None]


@dataclass
class Decision:
    """what an agent chose to do this tick, and why."""
    tick: int
    action: ActionTemplate
    source: ProposalSource
    urgency: float
    score: float
    scores: dict[ProposalSource, float] = field(default_factory=dict)
    powers: SourcePowers | None = None
    goal: Goal | None = None
    replanned: bool = False
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick": self.tick,
            "action": self.action.to_dict(),
            "source": self.source.name.lower(),
            "urgency": self.urgency,
            "score": self.score,
            "scores": {s.name.lower(): v for s, v in self.scores.items()},
            "powers": self.powers.to_dict() if self.powers is not None else None,
            "goal": str(self.goal) if self.goal is not None else None,
            "replanned": self.replanned,
            "reason": self.reason,
        }


class MindAgent:
    """
    one creature's mind.

    owns a fact store, episodic memory and the three competing decision
    sources. the ontology is shared between agents and only ever read.
    every tick the agent perceives, learns from outcomes, runs whatever
    maintenance is due for it, and when a decision is due picks one action.
    """

    def __init__(
        self,
        agent_id: int,
        ontology: Ontology,
        config: dict[str, Any] | None = None,
        culture: Culture | None = None,
        now: float = 0.0,
    ):
        self.agent_id = agent_id
        self._config = config if config is not None else default_config()

        self.store = FactStore(ontology=ontology, decay_policy=DecayPolicy.from_config(self._config))
        self.recorder = EpisodicRecorder.from_config(agent_id, self._config)
        self.consolidation = ConsolidationEngine.from_config(self._config)
        self.goals = GoalFormulator.from_config(self._config)

        self.reflexive = ReflexiveSource.from_config(self._config, ontology)
        self.associative = AssociativeSource.from_config(self._config)
        self.planned = PlannedSource.from_config(self._config, RegressivePlanner.from_config(self._config))
        self.arbitrator = Arbitrator.from_config(self._config)
        self.schedule = AgentSchedule.from_config(self._config)

        self._previous_winner: ProposalSource | None = None
        self._listeners: list[ReplanListener] = []
        self.last_decision: Decision | None = None

        if culture is None:
            culture = Culture[self._config.get("agent", {}).get("culture", "gatherer").upper()]
        self.culture = culture
        seeded = self.store.assert_many(cultural_knowledge(culture, now))
        logger.debug(f"agent {agent_id} seeded with {seeded} {culture.name.lower()} beliefs")

    @property
    def previous_winner(self) -> ProposalSource | None:
        return self._previous_winner

    def add_replan_listener(self, callback: ReplanListener) -> None:
        """callback(agent_id, reason) fires whenever the planned source replans."""
        self._listeners.append(callback)

    # -- inputs --

    def perceive(self, snapshot: PhysiologicalSnapshot, visible: Sequence[VisibleObject], now: float) -> None:
        """write interoception and what is in view."""
        store = self.store
        store.perceive_self(Predicate.HUNGER, Value.integer(round(snapshot.hunger)), now)
        store.perceive_self(Predicate.ENERGY, Value.integer(round(snapshot.energy)), now)
        store.perceive_self(Predicate.PAIN, Value.integer(round(snapshot.pain)), now)
        if snapshot.location is not None:
            store.perceive_self(Predicate.LOCATED_AT, Value.tile(*snapshot.location), now)

        self._perceive_contents(SELF, snapshot.inventory, now, MemoryType.PERCEPTION)

        for obj in sorted(visible, key=lambda o: o.entity_id):
            for tag in obj.tags:
                store.perceive_entity(obj.entity_id, Predicate.IS_A, Value.concept(tag), now,
                                      memory_type=MemoryType.SEMANTIC)
            if obj.tile is not None:
                store.perceive_entity(obj.entity_id, Predicate.LOCATED_AT, Value.tile(*obj.tile), now,
                                      memory_type=MemoryType.SEMANTIC)
            if obj.contents is not None:
                self._perceive_contents(Node.entity(obj.entity_id), obj.contents, now, MemoryType.SEMANTIC)

    def _perceive_contents(
        self,
        subject: Node,
        contents: dict[Concept, int],
        now: float,
        memory_type: MemoryType,
    ) -> None:
        # items believed held but no longer seen are recorded as zero, not removed
        believed = {
            t.obj.item_concept
            for t in self.store.query(subject, Predicate.CONTAINS, include_ontology=False)
            if t.obj.kind == ValueKind.ITEM
        }
        counts = {concept: 0 for concept in believed}
        counts.update(contents)
        for concept in sorted(counts, key=lambda c: c.value):
            value = Value.item(concept, max(0, counts[concept]))
            if subject.is_self:
                self.store.perceive_self(Predicate.CONTAINS, value, now)
            else:
                self.store.perceive_entity(subject.ref, Predicate.CONTAINS, value, now, memory_type=memory_type)

    def ingest(self, outcomes: Iterable[OutcomeEvent], now: float) -> int:
        """learn from completed actions. returns the number of events recorded."""
        count = 0
        for event in outcomes:
            apply_outcome(self.store, event, self.agent_id, now)
            event_id = self.recorder.record(self.store, event)
            self.consolidation.learn_one_shot(self.store, event_id, event, self.agent_id, now)
            count += 1
        return count

    def hear(self, content: list[Triple], informant: int, now: float, confidence: float = 0.7) -> int:
        """accept knowledge told by another agent."""
        return self.recorder.ingest_hearsay(self.store, content, informant, now, confidence)

    def maintain(self, tick: int, now: float) -> None:
        """staggered background work: forgetting, consolidation, index checks."""
        if self.schedule.decay.is_due(self.agent_id, tick):
            self.store.decay(now)
        if self.schedule.consolidation.is_due(self.agent_id, tick):
            self.consolidation.consolidate(self.store, self.agent_id, now)
        if self.schedule.consistency.is_due(self.agent_id, tick):
            self.store.ensure_consistent()

    # -- decision --

    def decide(
        self,
        tick: int,
        now: float,
        snapshot: PhysiologicalSnapshot,
        visible: Sequence[VisibleObject] = (),
    ) -> Decision | None:
        """formulate a goal, gather proposals and arbitrate."""
        goal = self.goals.formulate(snapshot)
        held = self._previous_winner == ProposalSource.REFLEXIVE
        planning_due = self.schedule.planning.is_due(self.agent_id, tick)

        candidates = (
            self.reflexive.propose(snapshot, held),
            self.associative.propose(self.store, snapshot, visible),
            self.planned.propose(self.store, snapshot, goal, now, planning_due),
        )
        proposals = [p for p in candidates if p is not None]

        if self.planned.replanned:
            for callback in self._listeners:
                callback(self.agent_id, self.planned.last_replan_reason)

        powers = self.arbitrator.compute_powers(snapshot)
        result = self.arbitrator.arbitrate(proposals, powers, self._previous_winner)
        if result.winner is None:
            self._previous_winner = None
            self.last_decision = None
            return None

        winner = result.winner
        if winner.source != self._previous_winner:
            logger.debug(f"agent {self.agent_id} control passes to {winner.source.name.lower()}")
        self._previous_winner = winner.source

        decision = Decision(
            tick=tick,
            action=winner.action,
            source=winner.source,
            urgency=winner.urgency,
            score=result.scores[winner.source],
            scores=result.scores,
            powers=powers,
            goal=goal,
            replanned=self.planned.replanned,
            reason=winner.reason,
        )
        self.last_decision = decision
        return decision

    def tick(
        self,
        tick: int,
        now: float,
        snapshot: PhysiologicalSnapshot,
        visible: Sequence[VisibleObject] = (),
        outcomes: Iterable[OutcomeEvent] = (),
    ) -> Decision | None:
        """one full update. returns None when no decision is due or nothing was proposed."""
        self.perceive(snapshot, visible, now)
        self.ingest(outcomes, now)
        self.maintain(tick, now)
        if not self.schedule.decision.is_due(self.agent_id, tick):
            return None
        return self.decide(tick, now, snapshot, visible)

    # -- introspection --

    def query(
        self,
        subject: Node | None = None,
        predicate: Predicate | None = None,
        obj: Value | None = None,
        include_ontology: bool = True,
    ) -> list[Triple]:
        return self.store.query(subject, predicate, obj, include_ontology=include_ontology)

    def get_status(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "culture": self.culture.name.lower(),
            "beliefs": len(self.store),
            "episodes": len(self.recorder.working_memory),
            "goal": str(self.planned.goal) if self.planned.goal is not None else None,
            "plan": [a.name for a in self.planned.plan],
            "replans": self.planned.replan_count,
            "last_source": self._previous_winner.name.lower() if self._previous_winner else None,
        }


@dataclass
class AgentInput:
    """everything the world hands one agent for one tick."""
    snapshot: PhysiologicalSnapshot
    visible: list[VisibleObject] = field(default_factory=list)
    outcomes: list[OutcomeEvent] = field(default_factory=list)


def step_population(
    agents: Iterable[MindAgent],
    tick: int,
    now: float,
    inputs: dict[int, AgentInput],
) -> dict[int, Decision | None]:
    """
    tick a batch of agents. agents share nothing mutable, so order does not
    change any result. agents with no input this tick are skipped.
    """
    decisions: dict[int, Decision | None] = {}
    for agent in sorted(agents, key=lambda a: a.agent_id):
        given = inputs.get(agent.agent_id)
        if given is None:
            continue
        decisions[agent.agent_id] = agent.tick(tick, now, given.snapshot, given.visible, given.outcomes)
    return decisions


def create_agent(
    agent_id: int,
    ontology: Ontology,
    config: dict[str, Any] | None = None,
    culture: Culture | None = None,
    now: float = 0.0,
) -> MindAgent:
    """factory function for creating an agent from config."""
    return MindAgent(agent_id, ontology, config=config, culture=culture, now=now)
