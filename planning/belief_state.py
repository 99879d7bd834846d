# Author: Bradley R. Kinnard
# belief state - lazy fact probabilities for one planning call

import math

from knowledge.decay import DecayPolicy
from knowledge.fact_store import FactStore
from knowledge.triples import Node, Predicate, TriplePattern, ValueKind


class BeliefState:
    """
    probability that a fact pattern holds right now.

    computed on demand and cached for the lifetime of this object, which is
    one planning call. stock facts about other holders use a regeneration
    model when last seen short, everything else uses stored confidence
    decayed by age.
    """

    def __init__(self, store: FactStore, now: float, decay_policy: DecayPolicy | None = None):
        self._store = store
        self._now = now
        self._policy = decay_policy or store.decay_policy
        self._cache: dict[TriplePattern, float] = {}

    @property
    def now(self) -> float:
        return self._now

    @property
    def store(self) -> FactStore:
        return self._store

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def build(self, pattern: TriplePattern) -> float:
        cached = self._cache.get(pattern)
        if cached is None:
            cached = self._compute(pattern)
            self._cache[pattern] = cached
        return cached

    def _compute(self, pattern: TriplePattern) -> float:
        if self._is_stock_fact(pattern):
            return self._stock_probability(pattern)
        matches = self._store.query_pattern(pattern)
        if not matches:
            return 0.0
        return max(self._policy.decayed_confidence(t.meta, self._now) for t in matches)

    def _is_stock_fact(self, pattern: TriplePattern) -> bool:
        return (
            pattern.predicate == Predicate.CONTAINS
            and pattern.subject is not None
            and not pattern.subject.is_self
            and pattern.obj is not None
            and pattern.obj.kind == ValueKind.ITEM
        )

    def _stock_probability(self, pattern: TriplePattern) -> float:
        concept = pattern.obj.item_concept
        wanted = max(1, pattern.obj.quantity)
        observed = [
            t for t in self._store.query(pattern.subject, Predicate.CONTAINS, include_ontology=False)
            if t.obj.item_concept == concept
        ]
        if not observed:
            return 0.0

        last = observed[0]
        if last.obj.quantity >= wanted:
            return self._policy.decayed_confidence(last.meta, self._now)

        # seen short: estimate regrowth since that observation
        rate = self.regeneration_rate(pattern.subject)
        if rate is None or rate <= 0:
            return 0.0
        age = max(0.0, self._now - last.meta.timestamp)
        return 1.0 - math.exp(-age / rate)

    def regeneration_rate(self, subject: Node) -> float | None:
        """the holder's own rate, else the first rate known for one of its kinds."""
        own = self._store.get(subject, Predicate.REGENERATION_RATE)
        if own is not None:
            return own.as_number()
        for concept in sorted(self._store.all_types(subject), key=lambda c: c.value):
            rate = self._store.get(Node.concept(concept), Predicate.REGENERATION_RATE)
            if rate is not None:
                return rate.as_number()
        return None
