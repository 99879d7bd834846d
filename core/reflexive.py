# Author: Bradley R. Kinnard
# reflexive source - ordered survival rules, first match wins

from dataclasses import dataclass, fields
from typing import Any, Callable

from knowledge.ontology import Ontology
from knowledge.triples import ActionKind, Concept, EmotionType
from core.proposals import Proposal, ProposalSource, simple_action
from core.snapshot import PhysiologicalSnapshot
from utils.helpers import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReflexThresholds:
    """
    trigger levels. the *_held variants apply while reflexes are already in
    control, so a reflex keeps firing until the state clearly recovers.
    """
    wake_energy: float = 90.0
    stress_snap: float = 90.0
    stress_snap_held: float = 70.0
    pain: float = 70.0
    pain_held: float = 50.0
    hunger: float = 80.0
    hunger_held: float = 60.0
    energy: float = 15.0
    energy_held: float = 30.0
    fear: float = 0.8
    fear_held: float = 0.5

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ReflexThresholds":
        cfg = config.get("reflexive", {})
        return cls(**{f.name: cfg[f.name] for f in fields(cls) if f.name in cfg})


ReflexRule = Callable[[PhysiologicalSnapshot, bool], Proposal | None]


class ReflexiveSource:
    """
    hard-wired survival responses.

    a pure function of the body snapshot. no planning, no social awareness,
    and anything edible in hand counts as food regardless of whose it is.
    """

    def __init__(self, thresholds: ReflexThresholds | None = None, ontology: Ontology | None = None):
        self.thresholds = thresholds or ReflexThresholds()
        self._ontology = ontology
        self._rules: tuple[ReflexRule, ...] = (
            self._sleep_cycle,
            self._stress_snap,
            self._pain,
            self._critical_hunger,
            self._critical_fatigue,
            self._critical_fear,
        )

    @classmethod
    def from_config(cls, config: dict[str, Any], ontology: Ontology | None = None) -> "ReflexiveSource":
        return cls(ReflexThresholds.from_config(config), ontology)

    def propose(self, snapshot: PhysiologicalSnapshot, held: bool = False) -> Proposal | None:
        """evaluate rules top to bottom. held is True when reflexes won last tick."""
        for rule in self._rules:
            proposal = rule(snapshot, held)
            if proposal is not None:
                return proposal
        return None

    def _edible_in_hand(self, snapshot: PhysiologicalSnapshot) -> Concept | None:
        if self._ontology is None:
            return None
        for concept in sorted(snapshot.inventory, key=lambda c: c.value):
            if snapshot.inventory[concept] > 0 and self._ontology.is_edible(concept):
                return concept
        return None

    def _propose(self, kind: ActionKind, urgency: float, reason: str, item: Concept | None = None) -> Proposal:
        return Proposal(ProposalSource.REFLEXIVE, simple_action(kind, item=item), max(0.0, urgency), reason)

    # -- rules, in priority order --

    def _sleep_cycle(self, s: PhysiologicalSnapshot, held: bool) -> Proposal | None:
        if not s.is_sleeping:
            return None
        if s.energy >= self.thresholds.wake_energy:
            return self._propose(ActionKind.WAKE_UP, 50.0, "rested")
        return self._propose(ActionKind.SLEEP, 100.0 - s.energy, "still tired")

    def _stress_snap(self, s: PhysiologicalSnapshot, held: bool) -> Proposal | None:
        limit = self.thresholds.stress_snap_held if held else self.thresholds.stress_snap
        if s.stress <= limit:
            return None
        food = self._edible_in_hand(s)
        if s.hunger > 30 and food is not None:
            return self._propose(ActionKind.EAT, 100.0, "snapped: eating for relief", item=food)
        if s.hunger > 50:
            return self._propose(ActionKind.EXPLORE, 95.0, "snapped: desperate search for food")
        if s.energy < 50:
            return self._propose(ActionKind.SLEEP, 100.0, "snapped: collapsing")
        return self._propose(ActionKind.FLEE, 90.0, "snapped: escaping")

    def _pain(self, s: PhysiologicalSnapshot, held: bool) -> Proposal | None:
        limit = self.thresholds.pain_held if held else self.thresholds.pain
        if s.pain > limit:
            return self._propose(ActionKind.IDLE, s.pain, "immobilized by pain")
        return None

    def _critical_hunger(self, s: PhysiologicalSnapshot, held: bool) -> Proposal | None:
        limit = self.thresholds.hunger_held if held else self.thresholds.hunger
        if s.hunger <= limit:
            return None
        food = self._edible_in_hand(s)
        if food is None:
            return None
        return self._propose(ActionKind.EAT, s.hunger, "starving with food in hand", item=food)

    def _critical_fatigue(self, s: PhysiologicalSnapshot, held: bool) -> Proposal | None:
        limit = self.thresholds.energy_held if held else self.thresholds.energy
        if s.energy < limit:
            return self._propose(ActionKind.SLEEP, 100.0 - s.energy, "exhausted")
        return None

    def _critical_fear(self, s: PhysiologicalSnapshot, held: bool) -> Proposal | None:
        limit = self.thresholds.fear_held if held else self.thresholds.fear
        fear = s.emotion(EmotionType.FEAR)
        if fear > limit:
            return self._propose(ActionKind.FLEE, fear * 100.0, "terrified")
        return None
