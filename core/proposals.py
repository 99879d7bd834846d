# Author: Bradley R. Kinnard
# proposals - candidate actions emitted by the competing decision sources

from dataclasses import dataclass
from enum import Enum, auto

from knowledge.triples import ActionKind, Concept
from planning.actions import ActionTemplate, handler_for


class ProposalSource(Enum):
    """the three systems that compete for control each tick."""
    REFLEXIVE = auto()
    ASSOCIATIVE = auto()
    PLANNED = auto()


# higher wins a tied arbitration score
SOURCE_PRIORITY = {
    ProposalSource.REFLEXIVE: 3,
    ProposalSource.ASSOCIATIVE: 2,
    ProposalSource.PLANNED: 1,
}


@dataclass(frozen=True)
class Proposal:
    """an action a source wants, and how badly (0-100)."""
    source: ProposalSource
    action: ActionTemplate
    urgency: float
    reason: str = ""

    def __post_init__(self):
        if self.urgency < 0:
            raise ValueError("urgency must be non-negative")


def simple_action(
    kind: ActionKind,
    target: int | None = None,
    tile: tuple[int, int] | None = None,
    item: Concept | None = None,
) -> ActionTemplate:
    """template for actions that need no belief lookups to build."""
    return handler_for(kind).build(None, target=target, tile=tile, item=item)
