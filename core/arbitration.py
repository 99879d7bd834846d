# Author: Bradley R. Kinnard
# arbitration - weigh competing proposals by source power and pick one winner

from dataclasses import dataclass, field
from typing import Any

from core.proposals import SOURCE_PRIORITY, Proposal, ProposalSource
from core.snapshot import PhysiologicalSnapshot
from utils.helpers import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SourcePowers:
    """how much say each source has this tick, each in [0, max_power]."""
    reflexive: float
    associative: float
    planned: float

    def of(self, source: ProposalSource) -> float:
        if source == ProposalSource.REFLEXIVE:
            return self.reflexive
        if source == ProposalSource.ASSOCIATIVE:
            return self.associative
        return self.planned

    def to_dict(self) -> dict[str, float]:
        return {
            "reflexive": self.reflexive,
            "associative": self.associative,
            "planned": self.planned,
        }


@dataclass
class ArbitrationResult:
    winner: Proposal | None
    scores: dict[ProposalSource, float] = field(default_factory=dict)
    powers: SourcePowers | None = None


class Arbitrator:
    """
    picks one proposal per tick.

    score = urgency * power of the proposing source, plus a hysteresis bonus
    for whichever source won last tick. ties go to the more primitive
    source. the same inputs always give the same winner.
    """

    def __init__(
        self,
        max_power: float = 1.0,
        associative_base: float = 0.25,
        mood_weight: float = 0.5,
        pain_weight: float = 0.2,
        stress_multiplier: float = 0.5,
        planned_base: float = 0.6,
        hysteresis_bonus: float = 10.0,
    ):
        if max_power <= 0:
            raise ValueError("max_power must be positive")
        if hysteresis_bonus < 0:
            raise ValueError("hysteresis_bonus must be non-negative")
        self.max_power = max_power
        self.associative_base = associative_base
        self.mood_weight = mood_weight
        self.pain_weight = pain_weight
        self.stress_multiplier = stress_multiplier
        self.planned_base = planned_base
        self.hysteresis_bonus = hysteresis_bonus

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "Arbitrator":
        cfg = config.get("arbitration", {})
        return cls(
            max_power=cfg.get("max_power", 1.0),
            associative_base=cfg.get("associative_base", 0.25),
            mood_weight=cfg.get("mood_weight", 0.5),
            pain_weight=cfg.get("pain_weight", 0.2),
            stress_multiplier=cfg.get("stress_multiplier", 0.5),
            planned_base=cfg.get("planned_base", 0.6),
            hysteresis_bonus=cfg.get("hysteresis_bonus", 10.0),
        )

    def compute_powers(self, snapshot: PhysiologicalSnapshot) -> SourcePowers:
        """
        reflexes always hold full power. emotion gains power with mood
        swings, pain and stress. deliberation needs energy and alertness.
        """
        associative = self.associative_base
        associative += snapshot.mood_swing * self.mood_weight
        associative += (snapshot.pain / 100.0) * self.pain_weight
        associative *= 1.0 + (snapshot.stress / 100.0) * self.stress_multiplier

        planned = self.planned_base * (0.5 + 0.5 * snapshot.energy / 100.0) * snapshot.alertness

        return SourcePowers(
            reflexive=self.max_power,
            associative=_clamp(associative, self.max_power),
            planned=_clamp(planned, self.max_power),
        )

    def score(self, proposal: Proposal, powers: SourcePowers, previous_winner: ProposalSource | None) -> float:
        value = proposal.urgency * powers.of(proposal.source)
        if proposal.source == previous_winner:
            value += self.hysteresis_bonus
        return value

    def arbitrate(
        self,
        proposals: list[Proposal],
        powers: SourcePowers,
        previous_winner: ProposalSource | None = None,
    ) -> ArbitrationResult:
        if not proposals:
            return ArbitrationResult(None, {}, powers)

        scores = {p.source: self.score(p, powers, previous_winner) for p in proposals}
        winner = max(proposals, key=lambda p: (scores[p.source], SOURCE_PRIORITY[p.source]))
        logger.debug(
            f"arbitration: {winner.source.name.lower()} wins with {scores[winner.source]:.1f} "
            f"({winner.action.name})"
        )
        return ArbitrationResult(winner, scores, powers)


def _clamp(value: float, upper: float) -> float:
    return max(0.0, min(upper, value))


def create_arbitrator(config: dict[str, Any]) -> Arbitrator:
    """factory function for creating an arbitrator from config."""
    return Arbitrator.from_config(config)
