# Author: Bradley R. Kinnard
# associative source - learned and innate emotional reactions to what is in view

from typing import Any, Sequence

from knowledge.fact_store import FactStore
from knowledge.triples import ActionKind, EmotionType, Node, Predicate
from core.proposals import Proposal, ProposalSource, simple_action
from core.snapshot import PhysiologicalSnapshot, VisibleObject
from utils.helpers import get_logger

logger = get_logger(__name__)


class AssociativeSource:
    """
    reacts to emotional associations attached to visible objects.

    associations are summed over the object itself and every kind it is
    believed to be, so fear of wolves applies to any wolf. strong enough
    general fear triggers flight with nothing specific in view.
    """

    def __init__(
        self,
        fear_threshold: float = 0.3,
        joy_threshold: float = 0.3,
        anger_threshold: float = 0.5,
        general_fear_threshold: float = 0.7,
    ):
        self.fear_threshold = fear_threshold
        self.joy_threshold = joy_threshold
        self.anger_threshold = anger_threshold
        self.general_fear_threshold = general_fear_threshold

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "AssociativeSource":
        cfg = config.get("associative", {})
        return cls(
            fear_threshold=cfg.get("fear_threshold", 0.3),
            joy_threshold=cfg.get("joy_threshold", 0.3),
            anger_threshold=cfg.get("anger_threshold", 0.5),
            general_fear_threshold=cfg.get("general_fear_threshold", 0.7),
        )

    def associations(self, store: FactStore, entity_id: int) -> dict[EmotionType, float]:
        """summed emotional association per emotion, capped at 1."""
        node = Node.entity(entity_id)
        subjects = [node] + [Node.concept(c) for c in sorted(store.all_types(node), key=lambda c: c.value)]
        totals: dict[EmotionType, float] = {}
        for subject in subjects:
            for t in store.query(subject, Predicate.TRIGGERS_EMOTION):
                emotion = t.obj.emotion_type
                totals[emotion] = totals.get(emotion, 0.0) + t.obj.intensity * t.meta.confidence
        return {e: min(1.0, v) for e, v in totals.items()}

    def propose(
        self,
        store: FactStore,
        snapshot: PhysiologicalSnapshot,
        visible: Sequence[VisibleObject],
    ) -> Proposal | None:
        best: Proposal | None = None

        def consider(candidate: Proposal) -> None:
            nonlocal best
            if best is None or candidate.urgency > best.urgency:
                best = candidate

        for obj in sorted(visible, key=lambda o: o.entity_id):
            assoc = self.associations(store, obj.entity_id)
            fear = assoc.get(EmotionType.FEAR, 0.0)
            anger = assoc.get(EmotionType.ANGER, 0.0)
            joy = assoc.get(EmotionType.JOY, 0.0)

            if fear > self.fear_threshold:
                consider(Proposal(
                    ProposalSource.ASSOCIATIVE,
                    simple_action(ActionKind.FLEE, target=obj.entity_id),
                    fear * 80.0,
                    f"afraid of entity {obj.entity_id}",
                ))
            if anger > self.anger_threshold:
                consider(Proposal(
                    ProposalSource.ASSOCIATIVE,
                    simple_action(ActionKind.ATTACK, target=obj.entity_id),
                    anger * 60.0,
                    f"angry at entity {obj.entity_id}",
                ))
            if joy > self.joy_threshold and obj.tile is not None:
                consider(Proposal(
                    ProposalSource.ASSOCIATIVE,
                    simple_action(ActionKind.MOVE_TO, tile=obj.tile),
                    joy * 50.0,
                    f"drawn to entity {obj.entity_id}",
                ))

        general_fear = snapshot.emotion(EmotionType.FEAR)
        if general_fear > self.general_fear_threshold:
            consider(Proposal(
                ProposalSource.ASSOCIATIVE,
                simple_action(ActionKind.FLEE),
                general_fear * 90.0,
                "overwhelmed by fear, seeking safety",
            ))
        return best
