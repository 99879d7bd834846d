# Author: Bradley R. Kinnard
# goals - turn unmet needs into goal conditions

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from knowledge.triples import ActionKind, Predicate, TriplePattern, Value, self_has
from utils.helpers import get_logger

if TYPE_CHECKING:
    from core.snapshot import PhysiologicalSnapshot

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class Goal:
    """
    conditions to make true, with a priority in [0, 1].

    equality and hashing use the conditions only, so priority drift does
    not invalidate a plan in progress.
    """
    conditions: tuple[TriplePattern, ...]
    priority: float = 0.5
    name: str = ""

    def __post_init__(self):
        if not self.conditions:
            raise ValueError("goal needs at least one condition")
        if not 0.0 <= self.priority <= 1.0:
            raise ValueError("priority must be between 0 and 1")

    def __eq__(self, other) -> bool:
        if not isinstance(other, Goal):
            return NotImplemented
        return frozenset(self.conditions) == frozenset(other.conditions)

    def __hash__(self) -> int:
        return hash(frozenset(self.conditions))

    def __str__(self) -> str:
        return self.name or " & ".join(str(c) for c in self.conditions)


class Need(Enum):
    """interoceptive drives that can become goals."""
    HUNGER = auto()
    FATIGUE = auto()


# what satisfying each need looks like
NEED_CONDITIONS = {
    Need.HUNGER: (self_has(Predicate.HUNGER, Value.integer(0)),),
    Need.FATIGUE: (self_has(Predicate.ENERGY, Value.integer(100)),),
}

# activities that count as already working on a need
NEED_ACTIVITIES = {
    Need.HUNGER: frozenset({ActionKind.EAT, ActionKind.HARVEST}),
    Need.FATIGUE: frozenset({ActionKind.SLEEP}),
}


@dataclass(frozen=True)
class Urgency:
    need: Need
    value: float


class GoalFormulator:
    """picks the most urgent need above threshold and phrases it as a goal."""

    def __init__(self, urgency_threshold: float = 0.1, momentum_bonus: float = 0.2):
        if not 0.0 <= urgency_threshold <= 1.0:
            raise ValueError("urgency_threshold must be between 0 and 1")
        self.urgency_threshold = urgency_threshold
        self.momentum_bonus = momentum_bonus

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "GoalFormulator":
        cfg = config.get("goals", {})
        return cls(
            urgency_threshold=cfg.get("urgency_threshold", 0.1),
            momentum_bonus=cfg.get("momentum_bonus", 0.2),
        )

    def urgencies(self, snapshot: "PhysiologicalSnapshot") -> list[Urgency]:
        raw = {
            Need.HUNGER: snapshot.hunger / 100.0,
            Need.FATIGUE: 1.0 - snapshot.energy / 100.0,
        }
        out = []
        for need, value in raw.items():
            if snapshot.current_activity in NEED_ACTIVITIES[need]:
                value *= 1.0 + self.momentum_bonus
            out.append(Urgency(need, min(1.0, max(0.0, value))))
        return out

    def formulate(self, snapshot: "PhysiologicalSnapshot") -> Goal | None:
        """the single most urgent goal, or None when nothing is pressing."""
        best = None
        for u in self.urgencies(snapshot):
            if u.value > self.urgency_threshold and (best is None or u.value > best.value):
                best = u
        if best is None:
            return None
        return Goal(NEED_CONDITIONS[best.need], priority=best.value, name=f"satisfy {best.need.name.lower()}")
