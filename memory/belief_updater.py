# Author: Bradley R. Kinnard
# belief updater - apply the agent's own action outcomes to its beliefs

from knowledge.fact_store import FactStore
from knowledge.triples import (
    SELF,
    Concept,
    Metadata,
    Node,
    Predicate,
    Source,
    Triple,
    Value,
)
from memory.episodic import FailureReason, OutcomeEvent
from utils.helpers import get_logger

logger = get_logger(__name__)


def _experienced(now: float) -> Metadata:
    return Metadata.semantic(now, 1.0, source=Source.EXPERIENCED)


def _set_count(store: FactStore, subject: Node, concept: Concept, quantity: int, now: float) -> None:
    store.assert_triple(
        Triple(subject, Predicate.CONTAINS, Value.item(concept, max(0, quantity)), _experienced(now))
    )


def apply_outcome(store: FactStore, event: OutcomeEvent, self_id: int, now: float) -> int:
    """
    learn from what happened to our own action.

    successes update inventory. failures correct the belief that made the
    action look possible. returns the number of beliefs touched.
    """
    if event.actor != self_id:
        return 0

    touched = 0
    target = Node.entity(event.target) if event.target is not None else None

    if event.result == Concept.SUCCESS:
        if event.gained is not None:
            concept, qty = event.gained
            _set_count(store, SELF, concept, store.count_of(SELF, concept) + qty, now)
            touched += 1
        if event.consumed is not None:
            concept, qty = event.consumed
            _set_count(store, SELF, concept, store.count_of(SELF, concept) - qty, now)
            touched += 1
        return touched

    reason = event.failure
    if reason == FailureReason.RESOURCE_DEPLETED and target is not None:
        # keep "once contained" evidence at zero so regeneration can be estimated
        concepts = _held_concepts(store, target) or _produced_concepts(store, target)
        for concept in concepts:
            _set_count(store, target, concept, 0, now)
            touched += 1
    elif reason == FailureReason.MISSING_ITEM and event.missing_item is not None:
        _set_count(store, SELF, event.missing_item, 0, now)
        touched += 1
    elif reason == FailureReason.NO_EDIBLE_FOOD:
        for concept in _held_concepts(store, SELF):
            if store.ontology is not None and store.ontology.is_edible(concept):
                _set_count(store, SELF, concept, 0, now)
                touched += 1
    elif reason == FailureReason.TARGET_GONE and event.target is not None:
        touched += store.invalidate(event.target)

    if touched:
        logger.debug(f"agent {self_id} corrected {touched} beliefs after failed {event.action.name.lower()}")
    return touched


def _held_concepts(store: FactStore, subject: Node) -> list[Concept]:
    return [
        t.obj.item_concept
        for t in store.query(subject, Predicate.CONTAINS, include_ontology=False)
        if t.obj.item_concept is not None
    ]


def _produced_concepts(store: FactStore, subject: Node) -> list[Concept]:
    if store.ontology is None:
        return []
    out = []
    for category in sorted(store.all_types(subject), key=lambda c: c.value):
        for concept in store.ontology.produces(category):
            if concept not in out:
                out.append(concept)
    return out
