# Author: Bradley R. Kinnard
# sandbox - small scripted grid world that drives mind agents headlessly

from dataclasses import dataclass, field
from typing import Any, Iterable

import numpy as np

from knowledge.triples import ActionKind, Concept, EmotionType
from memory.episodic import FailureReason, OutcomeEvent
from planning.actions import ActionTemplate
from core.agent import Decision, MindAgent
from core.snapshot import PhysiologicalSnapshot, VisibleObject
from utils.helpers import get_logger

logger = get_logger(__name__)


# one tile in each direction, diagonals included
_STEPS = np.array([(dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dx, dy) != (0, 0)])


@dataclass
class WorldObject:
    """a resource holder on the grid."""
    entity_id: int
    kind: Concept
    tile: tuple[int, int]
    contents: dict[Concept, int] = field(default_factory=dict)
    produces: Concept | None = None
    regeneration_rate: float = 0.0
    capacity: int = 0
    last_regrowth: float = 0.0

    def regrow(self, now: float) -> None:
        if self.produces is None or self.regeneration_rate <= 0:
            return
        held = self.contents.get(self.produces, 0)
        if held >= self.capacity:
            self.last_regrowth = now
            return
        if now - self.last_regrowth >= self.regeneration_rate:
            self.contents[self.produces] = held + 1
            self.last_regrowth = now


@dataclass
class Body:
    """ground-truth physical state of one creature."""
    agent_id: int
    tile: tuple[int, int]
    hunger: float = 0.0
    energy: float = 100.0
    pain: float = 0.0
    is_sleeping: bool = False
    inventory: dict[Concept, int] = field(default_factory=dict)
    activity: ActionKind | None = None


class SandboxWorld:
    """
    deterministic grid world for exercising agents without a game engine.

    hunger rises and energy drains every tick, trees and bushes regrow
    their produce on a timer, and actions resolve into outcome events.
    all randomness comes from one seeded numpy generator.
    """

    def __init__(
        self,
        seed: int = 0,
        size: int = 12,
        view_radius: int = 3,
        hunger_rate: float = 0.5,
        energy_rate: float = 0.1,
        sleep_recovery: float = 2.0,
    ):
        if size < 2:
            raise ValueError("size must be at least 2")
        self.rng = np.random.default_rng(seed)
        self.size = size
        self.view_radius = view_radius
        self.hunger_rate = hunger_rate
        self.energy_rate = energy_rate
        self.sleep_recovery = sleep_recovery
        self.objects: dict[int, WorldObject] = {}
        self.bodies: dict[int, Body] = {}
        self.now = 0.0
        self._next_entity = 1000

    @classmethod
    def populated(cls, seed: int = 0, agents: int = 1, trees: int = 3, bushes: int = 2, size: int = 12) -> "SandboxWorld":
        """random layout from the seed: some apple trees, berry bushes and creatures."""
        world = cls(seed=seed, size=size)
        for _ in range(trees):
            world.add_source(Concept.APPLE_TREE, world.random_tile(), Concept.APPLE, capacity=3, regeneration_rate=300.0)
        for _ in range(bushes):
            world.add_source(Concept.BERRY_BUSH, world.random_tile(), Concept.BERRY, capacity=5, regeneration_rate=180.0)
        for agent_id in range(agents):
            world.add_body(agent_id, world.random_tile())
        return world

    def random_tile(self) -> tuple[int, int]:
        x, y = self.rng.integers(0, self.size, size=2)
        return int(x), int(y)

    def add_source(
        self,
        kind: Concept,
        tile: tuple[int, int],
        produces: Concept,
        capacity: int = 3,
        regeneration_rate: float = 300.0,
        stock: int | None = None,
    ) -> WorldObject:
        obj = WorldObject(
            entity_id=self._next_entity,
            kind=kind,
            tile=tile,
            contents={produces: capacity if stock is None else stock},
            produces=produces,
            regeneration_rate=regeneration_rate,
            capacity=capacity,
            last_regrowth=self.now,
        )
        self.objects[obj.entity_id] = obj
        self._next_entity += 1
        return obj

    def add_body(self, agent_id: int, tile: tuple[int, int], **state: Any) -> Body:
        if agent_id in self.bodies:
            raise ValueError(f"agent {agent_id} already has a body")
        body = Body(agent_id=agent_id, tile=tile, **state)
        self.bodies[agent_id] = body
        return body

    # -- sensing --

    def snapshot(self, agent_id: int) -> PhysiologicalSnapshot:
        b = self.bodies[agent_id]
        return PhysiologicalSnapshot(
            hunger=b.hunger,
            energy=b.energy,
            pain=b.pain,
            alertness=0.1 if b.is_sleeping else 1.0,
            stress=max(0.0, b.hunger - 50.0),
            is_sleeping=b.is_sleeping,
            current_activity=b.activity,
            inventory={c: n for c, n in b.inventory.items() if n > 0},
            location=b.tile,
        )

    def visible_to(self, agent_id: int) -> list[VisibleObject]:
        if self.bodies[agent_id].is_sleeping:
            return []
        here = self.bodies[agent_id].tile
        seen = []
        for obj in sorted(self.objects.values(), key=lambda o: o.entity_id):
            if _chebyshev(here, obj.tile) <= self.view_radius:
                seen.append(VisibleObject(obj.entity_id, (obj.kind,), obj.tile, dict(obj.contents)))
        return seen

    # -- dynamics --

    def advance(self, dt: float = 1.0) -> None:
        self.now += dt
        for body in self.bodies.values():
            body.hunger = min(100.0, body.hunger + self.hunger_rate * dt)
            if body.is_sleeping:
                body.energy = min(100.0, body.energy + self.sleep_recovery * dt)
            else:
                body.energy = max(0.0, body.energy - self.energy_rate * dt)
        for obj in self.objects.values():
            obj.regrow(self.now)

    def execute(self, agent_id: int, action: ActionTemplate) -> OutcomeEvent | None:
        """carry out one tick of an action. returns an outcome when it completes."""
        body = self.bodies[agent_id]
        body.activity = action.kind
        kind = action.kind

        if kind == ActionKind.MOVE_TO:
            destination = action.target_tile
            if action.target is not None and action.target in self.objects:
                destination = self.objects[action.target].tile
            if destination is not None:
                body.tile = _step_toward(body.tile, destination)
            return None
        if kind in (ActionKind.WANDER, ActionKind.EXPLORE, ActionKind.FLEE):
            body.tile = self._clamp(np.add(body.tile, _STEPS[self.rng.integers(len(_STEPS))]))
            return None
        if kind == ActionKind.SLEEP:
            body.is_sleeping = True
            return None
        if kind == ActionKind.WAKE_UP:
            body.is_sleeping = False
            return None
        if kind == ActionKind.HARVEST:
            return self._harvest(body, action)
        if kind == ActionKind.EAT:
            return self._eat(body, action)
        return None

    def _outcome(self, body: Body, action: ActionTemplate, result: Concept, **extra: Any) -> OutcomeEvent:
        return OutcomeEvent(
            actor=body.agent_id,
            action=action.kind,
            target=action.target,
            result=result,
            timestamp=self.now,
            **extra,
        )

    def _harvest(self, body: Body, action: ActionTemplate) -> OutcomeEvent:
        if action.target is None:
            return self._outcome(body, action, Concept.FAILURE, failure=FailureReason.NO_TARGET)
        obj = self.objects.get(action.target)
        if obj is None:
            return self._outcome(body, action, Concept.FAILURE, failure=FailureReason.TARGET_GONE)
        if body.tile != obj.tile:
            return self._outcome(body, action, Concept.FAILURE, failure=FailureReason.TOO_FAR,
                                 target_category=obj.kind)
        item = action.item or obj.produces
        if obj.contents.get(item, 0) < 1:
            return self._outcome(body, action, Concept.FAILURE, failure=FailureReason.RESOURCE_DEPLETED,
                                 target_category=obj.kind)

        obj.contents[item] -= 1
        body.inventory[item] = body.inventory.get(item, 0) + 1
        return self._outcome(body, action, Concept.SUCCESS, target_category=obj.kind,
                             gained=(item, 1), emotion=(EmotionType.JOY, 0.2))

    def _eat(self, body: Body, action: ActionTemplate) -> OutcomeEvent:
        item = action.item
        if item is None or body.inventory.get(item, 0) < 1:
            return self._outcome(body, action, Concept.FAILURE, failure=FailureReason.MISSING_ITEM,
                                 missing_item=item)
        body.inventory[item] -= 1
        body.hunger = 0.0
        return self._outcome(body, action, Concept.SUCCESS, consumed=(item, 1), emotion=(EmotionType.JOY, 0.3))

    def _clamp(self, tile) -> tuple[int, int]:
        x, y = np.clip(tile, 0, self.size - 1)
        return int(x), int(y)


def _chebyshev(a: tuple[int, int], b: tuple[int, int]) -> int:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


def _step_toward(here: tuple[int, int], there: tuple[int, int]) -> tuple[int, int]:
    dx = int(np.sign(there[0] - here[0]))
    dy = int(np.sign(there[1] - here[1]))
    return here[0] + dx, here[1] + dy


@dataclass
class SandboxReport:
    """summary of a headless run."""
    ticks: int
    decisions: int = 0
    wins: dict[str, int] = field(default_factory=dict)
    actions: dict[str, int] = field(default_factory=dict)
    meals: int = 0
    replans: int = 0
    final_hunger: dict[int, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ticks": self.ticks,
            "decisions": self.decisions,
            "wins": dict(sorted(self.wins.items())),
            "actions": dict(sorted(self.actions.items())),
            "meals": self.meals,
            "replans": self.replans,
            "final_hunger": {str(k): round(v, 2) for k, v in sorted(self.final_hunger.items())},
        }


def run_sandbox(
    world: SandboxWorld,
    agents: Iterable[MindAgent],
    ticks: int,
    dt: float = 1.0,
) -> SandboxReport:
    """
    drive agents through the world for a number of ticks.

    outcomes are handed back to the acting agent as soon as the world
    resolves them, so next tick's perception already agrees with them.
    """
    agents = sorted(agents, key=lambda a: a.agent_id)
    report = SandboxReport(ticks=ticks)

    def count_replan(agent_id: int, reason: str) -> None:
        report.replans += 1

    for agent in agents:
        agent.add_replan_listener(count_replan)

    for tick in range(ticks):
        world.advance(dt)
        for agent in agents:
            decision = agent.tick(tick, world.now, world.snapshot(agent.agent_id), world.visible_to(agent.agent_id))
            if decision is None:
                continue
            _tally(report, decision)
            outcome = world.execute(agent.agent_id, decision.action)
            if outcome is not None:
                if outcome.action == ActionKind.EAT and outcome.result == Concept.SUCCESS:
                    report.meals += 1
                agent.ingest([outcome], world.now)

    report.final_hunger = {a.agent_id: world.bodies[a.agent_id].hunger for a in agents}
    logger.info(f"sandbox run finished: {report.decisions} decisions, {report.meals} meals, {report.replans} replans")
    return report


def _tally(report: SandboxReport, decision: Decision) -> None:
    report.decisions += 1
    source = decision.source.name.lower()
    kind = decision.action.kind.name.lower()
    report.wins[source] = report.wins.get(source, 0) + 1
    report.actions[kind] = report.actions.get(kind, 0) + 1
