# Author: Bradley R. Kinnard
# fact store - per-agent indexed triple arena with decay

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from knowledge.decay import DecayPolicy
from knowledge.ontology import Ontology
from knowledge.triples import (
    SELF,
    Concept,
    MemoryType,
    Metadata,
    Node,
    NodeKind,
    Predicate,
    Triple,
    TriplePattern,
    Value,
    ValueKind,
)
from utils.helpers import canonical_json, compute_hash, get_logger

logger = get_logger(__name__)


def identity_key(triple: Triple) -> tuple:
    """
    what makes two triples the same live fact.

    functional predicates: one per (subject, predicate).
    item containers: one per (subject, contains, item concept).
    emotional associations: one per (subject, predicate, emotion type).
    everything else: the full (s, p, o).
    """
    if triple.predicate.functional:
        return (triple.subject, triple.predicate)
    if triple.predicate == Predicate.CONTAINS and triple.obj.kind == ValueKind.ITEM:
        return (triple.subject, triple.predicate, triple.obj.item_concept)
    if triple.obj.kind == ValueKind.EMOTION:
        return (triple.subject, triple.predicate, triple.obj.emotion_type)
    return (triple.subject, triple.predicate, triple.obj)


@dataclass
class StoreIndex:
    """secondary indices over arena slots. maintained incrementally on assert."""
    by_subject: dict[Node, set[int]] = field(default_factory=dict)
    by_predicate: dict[Predicate, set[int]] = field(default_factory=dict)
    functional: dict[tuple[Node, Predicate], int] = field(default_factory=dict)
    by_memory_type: dict[MemoryType, set[int]] = field(default_factory=dict)
    identity: dict[tuple, int] = field(default_factory=dict)

    @classmethod
    def build(cls, slots: Iterable[tuple[int, Triple]]) -> "StoreIndex":
        index = cls()
        for slot, triple in slots:
            index.add(slot, triple)
        return index

    def add(self, slot: int, triple: Triple) -> None:
        self.by_subject.setdefault(triple.subject, set()).add(slot)
        self.by_predicate.setdefault(triple.predicate, set()).add(slot)
        self.by_memory_type.setdefault(triple.meta.memory_type, set()).add(slot)
        if triple.predicate.functional:
            self.functional[(triple.subject, triple.predicate)] = slot
        self.identity[identity_key(triple)] = slot

    def remove(self, slot: int, triple: Triple) -> None:
        _discard(self.by_subject, triple.subject, slot)
        _discard(self.by_predicate, triple.predicate, slot)
        _discard(self.by_memory_type, triple.meta.memory_type, slot)
        if triple.predicate.functional:
            self.functional.pop((triple.subject, triple.predicate), None)
        self.identity.pop(identity_key(triple), None)


def _discard(index: dict, key, slot: int) -> None:
    bucket = index.get(key)
    if bucket is None:
        return
    bucket.discard(slot)
    if not bucket:
        del index[key]


class FactStore:
    """
    personal belief store for one agent.

    an arena of slots with a free-list. the shared ontology is unioned in at
    query time and never copied. secondary indices are rebuilt only after a
    decay sweep removes something or an invariant check finds them stale.
    """

    def __init__(
        self,
        ontology: Ontology | None = None,
        decay_policy: DecayPolicy | None = None,
    ):
        self._ontology = ontology
        self._policy = decay_policy or DecayPolicy()
        self._slots: list[Triple | None] = []
        self._free: list[int] = []
        self._index = StoreIndex()

    @property
    def ontology(self) -> Ontology | None:
        return self._ontology

    @property
    def decay_policy(self) -> DecayPolicy:
        return self._policy

    @property
    def index(self) -> StoreIndex:
        return self._index

    def __len__(self) -> int:
        return len(self._slots) - len(self._free)

    def slots(self) -> Iterator[tuple[int, Triple]]:
        """live (slot, triple) pairs in slot order."""
        for slot, triple in enumerate(self._slots):
            if triple is not None:
                yield slot, triple

    def triples(self, memory_type: MemoryType | None = None) -> list[Triple]:
        if memory_type is None:
            return [t for _, t in self.slots()]
        return [self._slots[s] for s in sorted(self._index.by_memory_type.get(memory_type, ()))]

    # -- writes --

    def assert_triple(self, triple: Triple) -> Triple:
        """
        insert or replace a triple.

        functional predicates and item containers replace the prior value
        in place. an exact duplicate refreshes its metadata.
        raises MalformedTripleError for invalid input.
        """
        triple.validate()
        key = identity_key(triple)
        slot = self._index.identity.get(key)

        if slot is None:
            slot = self._free.pop() if self._free else len(self._slots)
            if slot == len(self._slots):
                self._slots.append(triple)
            else:
                self._slots[slot] = triple
            self._index.add(slot, triple)
            logger.debug(f"asserted {triple}")
            return triple

        old = self._slots[slot]
        if old.obj == triple.obj:
            triple = Triple(triple.subject, triple.predicate, triple.obj, _refresh(old.meta, triple.meta))

        self._index.remove(slot, old)
        self._slots[slot] = triple
        self._index.add(slot, triple)
        logger.debug(f"replaced {old} with {triple}")
        return triple

    def revise(self, triple: Triple) -> Triple:
        """a belief re-derived from its evidence overwrites the old one, confidence included."""
        self.remove(triple.subject, triple.predicate, triple.obj)
        return self.assert_triple(triple)

    def assert_many(self, triples: Iterable[Triple]) -> int:
        count = 0
        for t in triples:
            self.assert_triple(t)
            count += 1
        return count

    def perceive_self(self, predicate: Predicate, value: Value, now: float, confidence: float = 1.0) -> Triple:
        return self.assert_triple(Triple(SELF, predicate, value, Metadata.perception(now, confidence)))

    def perceive_entity(
        self,
        entity_id: int,
        predicate: Predicate,
        value: Value,
        now: float,
        confidence: float = 1.0,
        memory_type: MemoryType = MemoryType.PERCEPTION,
    ) -> Triple:
        """observed facts about a world object. lasting facts can be held as semantic memory."""
        meta = Metadata.perception(now, confidence).with_updates(memory_type=memory_type)
        return self.assert_triple(Triple(Node.entity(entity_id), predicate, value, meta))

    def remove(self, subject: Node, predicate: Predicate | None = None, obj: Value | None = None) -> int:
        """explicit invalidation of personal triples. returns count removed."""
        doomed = [slot for slot, _ in self._match_slots(TriplePattern(subject, predicate, obj))]
        for slot in doomed:
            self._index.remove(slot, self._slots[slot])
            self._free_slot(slot)
        if doomed:
            logger.debug(f"invalidated {len(doomed)} triples about {subject}")
        return len(doomed)

    def invalidate(self, entity_id: int) -> int:
        """forget an entity that no longer exists, including facts that point at it."""
        pointing = Value.entity(entity_id)
        doomed = sorted(
            {slot for slot, _ in self._match_slots(TriplePattern(Node.entity(entity_id)))}
            | {slot for slot, t in self.slots() if t.obj == pointing}
        )
        for slot in doomed:
            self._index.remove(slot, self._slots[slot])
            self._free_slot(slot)
        if doomed:
            logger.debug(f"entity {entity_id} invalidated, {len(doomed)} triples dropped")
        return len(doomed)

    def _free_slot(self, slot: int) -> None:
        self._slots[slot] = None
        self._free.append(slot)

    # -- reads --

    def _match_slots(self, pattern: TriplePattern) -> list[tuple[int, Triple]]:
        idx = self._index
        s, p = pattern.subject, pattern.predicate
        if s is not None and p is not None and p.functional:
            slot = idx.functional.get((s, p))
            candidates = [] if slot is None else [slot]
        elif s is not None:
            candidates = idx.by_subject.get(s, set())
            if p is not None:
                candidates = candidates & idx.by_predicate.get(p, set())
        elif p is not None:
            candidates = idx.by_predicate.get(p, set())
        else:
            return [(slot, t) for slot, t in self.slots() if pattern.matches(t)]

        out = []
        for slot in sorted(candidates):
            t = self._slots[slot]
            if t is not None and pattern.matches(t):
                out.append((slot, t))
        return out

    def query(
        self,
        subject: Node | None = None,
        predicate: Predicate | None = None,
        obj: Value | None = None,
        include_ontology: bool = True,
    ) -> list[Triple]:
        """ontology matches first, then personal matches in slot order."""
        results = []
        if include_ontology and self._ontology is not None:
            results.extend(self._ontology.query(subject, predicate, obj))
        results.extend(t for _, t in self._match_slots(TriplePattern(subject, predicate, obj)))
        return results

    def query_pattern(self, pattern: TriplePattern, include_ontology: bool = True) -> list[Triple]:
        return self.query(pattern.subject, pattern.predicate, pattern.obj, include_ontology)

    def get_triple(self, subject: Node, predicate: Predicate) -> Triple | None:
        """personal triple only, O(1) for functional predicates."""
        matches = self._match_slots(TriplePattern(subject, predicate))
        return matches[0][1] if matches else None

    def get(self, subject: Node, predicate: Predicate) -> Value | None:
        """personal value first, falling back to the ontology."""
        triple = self.get_triple(subject, predicate)
        if triple is not None:
            return triple.obj
        if self._ontology is not None:
            return self._ontology.get(subject, predicate)
        return None

    def has(self, subject: Node, predicate: Predicate, obj: Value) -> bool:
        return bool(self.query(subject, predicate, obj))

    def all_types(self, node: Node) -> set[Concept]:
        """direct and inherited categories of a node."""
        if node.kind == NodeKind.CONCEPT:
            direct = {node.ref}
        else:
            direct = {
                t.obj.data for t in self.query(node, Predicate.IS_A)
                if t.obj.kind == ValueKind.CONCEPT
            }
        types = set(direct)
        if self._ontology is not None:
            for c in direct:
                types |= self._ontology.parents(c)
        return types

    def is_a(self, node: Node, category: Concept) -> bool:
        return category in self.all_types(node)

    def has_trait(self, node: Node, trait: Concept) -> bool:
        trait_value = Value.concept(trait)
        if self.query(node, Predicate.HAS_TRAIT, trait_value, include_ontology=False):
            return True
        for c in self.all_types(node):
            if self._ontology is not None and self._ontology.has_trait(c, trait):
                return True
            if self.query(Node.concept(c), Predicate.HAS_TRAIT, trait_value, include_ontology=False):
                return True
        return False

    def count_of(self, subject: Node, concept: Concept) -> int:
        """total quantity of items of a concept (or its subtypes) the subject holds."""
        total = 0
        for t in self.query(subject, Predicate.CONTAINS, include_ontology=False):
            item = t.obj.item_concept
            if item is None:
                continue
            if item == concept or (self._ontology is not None and self._ontology.is_a(item, concept)):
                total += t.obj.quantity
        return total

    def has_any(self, subject: Node, concept: Concept) -> bool:
        return self.count_of(subject, concept) > 0

    def confidence_of(self, subject: Node, predicate: Predicate, obj: Value | None = None) -> float:
        """highest stored confidence among matches, 0.0 when unknown."""
        matches = self.query(subject, predicate, obj)
        return max((t.meta.confidence for t in matches), default=0.0)

    # -- maintenance --

    def decay(self, now: float) -> int:
        """
        forget triples whose strength fell below threshold.

        intrinsic and procedural memories are never scanned. indices are
        rebuilt only when something was removed.
        """
        candidates = sorted(
            slot
            for mt, bucket in self._index.by_memory_type.items() if mt.decays
            for slot in bucket
        )
        if not candidates:
            return 0

        strengths = self._policy.strengths([self._slots[s].meta for s in candidates], now)
        doomed = [s for s, st in zip(candidates, strengths) if st < self._policy.forget_threshold]
        for slot in doomed:
            self._free_slot(slot)

        if doomed:
            self.rebuild_indices()
            logger.debug(f"decay forgot {len(doomed)} triples, {len(self)} remain")
        return len(doomed)

    def rebuild_indices(self) -> None:
        """invariant repair: rebuild every secondary index from the arena."""
        index = StoreIndex()
        for slot, triple in self.slots():
            clash = index.identity.get(identity_key(triple))
            if clash is not None:
                # two live slots claim the same fact, keep the newer one
                keep_old = self._slots[clash].meta.timestamp >= triple.meta.timestamp
                loser = slot if keep_old else clash
                if not keep_old:
                    index.remove(clash, self._slots[clash])
                    index.add(slot, triple)
                self._free_slot(loser)
                continue
            index.add(slot, triple)
        self._index = index

    def ensure_consistent(self) -> bool:
        """
        check store invariants and rebuild indices on breach.

        returns True if the store was already consistent. never raises.
        """
        from verification.invariants import check_store_invariants

        violations = check_store_invariants(self)
        if not violations:
            return True
        for v in violations:
            logger.warning(f"fact store invariant {v.invariant_name} violated: {v.message}")
        self.rebuild_indices()
        logger.warning(f"fact store indices rebuilt ({len(self)} triples)")
        return False

    def digest(self) -> str:
        """sha256 over canonical personal content."""
        rows = sorted(
            [str(t.subject), t.predicate.name, str(t.obj), t.meta.memory_type.name,
             round(t.meta.confidence, 9), round(t.meta.timestamp, 9)]
            for _, t in self.slots()
        )
        return compute_hash(canonical_json(rows))


def _refresh(old: Metadata, new: Metadata) -> Metadata:
    """duplicate assert: take the newer observation, keep the strongest confidence and salience."""
    evidence = tuple(dict.fromkeys(old.evidence + new.evidence))
    return new.with_updates(
        confidence=max(old.confidence, new.confidence),
        salience=max(old.salience, new.salience),
        evidence=evidence,
    )
