# Author: Bradley R. Kinnard
# consolidation engine - turn repeated episodes into semantic beliefs

import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from knowledge.fact_store import FactStore
from knowledge.triples import (
    ActionKind,
    Concept,
    EmotionType,
    MemoryType,
    Metadata,
    Node,
    NodeKind,
    Predicate,
    Triple,
    Value,
)
from memory.episodic import OutcomeEvent
from utils.helpers import get_logger

logger = get_logger(__name__)


@dataclass
class RecalledEvent:
    """an episode reassembled from its event triples."""
    event_id: int
    timestamp: float
    actor: int | None = None
    action: ActionKind | None = None
    target: int | None = None
    target_category: Concept | None = None
    result: Concept | None = None
    emotion: EmotionType | None = None
    intensity: float = 0.0

    @property
    def valence(self) -> float:
        return self.emotion.valence if self.emotion is not None else 0.0


class ConsolidationEngine:
    """
    weighted-evidence belief formation.

    episodes are grouped by (actor, action) for dispositions of others and by
    (action, target category, result) for what things afford. each episode
    weighs (0.2 + intensity * 0.8) * (0.3 + recency * 0.7). supporting weight S
    and contradicting weight C combine as

        confidence = (1 - exp(-S / scale)) * S / (S + C)

    which rises with S and falls with C. a single episode above the one-shot
    intensity writes its belief immediately.
    """

    def __init__(
        self,
        recency_half_life: float = 300.0,
        min_pattern_events: int = 2,
        belief_threshold: float = 0.4,
        evidence_scale: float = 2.0,
        one_shot_intensity: float = 0.8,
    ):
        if recency_half_life <= 0:
            raise ValueError("recency_half_life must be positive")
        if evidence_scale <= 0:
            raise ValueError("evidence_scale must be positive")
        self.recency_half_life = recency_half_life
        self.min_pattern_events = min_pattern_events
        self.belief_threshold = belief_threshold
        self.evidence_scale = evidence_scale
        self.one_shot_intensity = one_shot_intensity

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ConsolidationEngine":
        cfg = config.get("consolidation", {})
        return cls(
            recency_half_life=cfg.get("recency_half_life", 300.0),
            min_pattern_events=cfg.get("min_pattern_events", 2),
            belief_threshold=cfg.get("belief_threshold", 0.4),
            evidence_scale=cfg.get("evidence_scale", 2.0),
            one_shot_intensity=cfg.get("one_shot_intensity", 0.8),
        )

    # -- evidence math --

    def event_weights(self, events: list[RecalledEvent], now: float) -> np.ndarray:
        if not events:
            return np.empty(0)
        intensity = np.array([e.intensity for e in events], dtype=float)
        age = np.maximum(0.0, now - np.array([e.timestamp for e in events], dtype=float))
        recency = np.power(0.5, age / self.recency_half_life)
        return (0.2 + np.clip(intensity, 0.0, 1.0) * 0.8) * (0.3 + recency * 0.7)

    def combine(self, support: float, contradict: float) -> float:
        """monotonic evidence combination into a confidence in [0, 1)."""
        if support <= 0:
            return 0.0
        strength = 1.0 - math.exp(-support / self.evidence_scale)
        return float(strength * support / (support + max(0.0, contradict)))

    # -- recall --

    def recall_events(self, store: FactStore) -> list[RecalledEvent]:
        """reassemble episodes from episodic event triples, ordered by id."""
        events: dict[int, RecalledEvent] = {}
        for t in store.triples(MemoryType.EPISODIC):
            if t.subject.kind != NodeKind.EVENT:
                continue
            ev = events.setdefault(t.subject.ref, RecalledEvent(t.subject.ref, t.meta.timestamp))
            obj = t.obj
            if t.predicate == Predicate.ACTOR:
                ev.actor = obj.data
            elif t.predicate == Predicate.ACTION:
                ev.action = obj.data
            elif t.predicate == Predicate.TARGET:
                ev.target = obj.data
            elif t.predicate == Predicate.TARGET_CATEGORY:
                ev.target_category = obj.data
            elif t.predicate == Predicate.RESULT:
                ev.result = obj.data
            elif t.predicate == Predicate.TIMESTAMP:
                ev.timestamp = obj.as_number()
            elif t.predicate == Predicate.FELT_EMOTION:
                ev.emotion, ev.intensity = obj.emotion_type, obj.intensity
        return [events[k] for k in sorted(events)]

    # -- passes --

    def consolidate(self, store: FactStore, self_id: int, now: float) -> list[Triple]:
        """one consolidation pass. returns the beliefs written."""
        events = self.recall_events(store)
        if not events:
            return []

        written = []
        written.extend(self._consolidate_dispositions(store, events, self_id, now))
        written.extend(self._consolidate_affordances(store, events, now))
        if written:
            logger.info(f"agent {self_id} consolidated {len(written)} beliefs from {len(events)} episodes")
        return written

    def _consolidate_dispositions(
        self,
        store: FactStore,
        events: list[RecalledEvent],
        self_id: int,
        now: float,
    ) -> list[Triple]:
        groups: dict[tuple[int, ActionKind], list[RecalledEvent]] = {}
        for e in events:
            if e.actor is None or e.actor == self_id or e.action is None or e.valence == 0:
                continue
            groups.setdefault((e.actor, e.action), []).append(e)

        written = []
        for (actor, _action), group in sorted(groups.items(), key=lambda kv: (kv[0][0], kv[0][1].value)):
            weights = self.event_weights(group, now)
            signs = np.sign([e.valence for e in group])
            net = float(np.dot(signs, weights))
            if net == 0:
                continue
            hostile = net < 0
            agree = signs == (-1 if hostile else 1)
            if int(agree.sum()) < self.min_pattern_events:
                continue

            confidence = self.combine(float(weights[agree].sum()), float(weights[~agree].sum()))
            if confidence <= self.belief_threshold:
                continue

            supporting = [e for e, ok in zip(group, agree) if ok]
            written.extend(self._write_disposition(store, actor, hostile, supporting, confidence, now))
        return written

    def _write_disposition(
        self,
        store: FactStore,
        actor: int,
        hostile: bool,
        supporting: list[RecalledEvent],
        confidence: float,
        now: float,
    ) -> list[Triple]:
        subject = Node.entity(actor)
        trait, opposite = (Concept.HOSTILE, Concept.FRIENDLY) if hostile else (Concept.FRIENDLY, Concept.HOSTILE)

        # the weaker contradictory disposition gives way
        for t in store.query(subject, Predicate.HAS_TRAIT, Value.concept(opposite), include_ontology=False):
            if t.meta.confidence < confidence:
                store.remove(subject, Predicate.HAS_TRAIT, Value.concept(opposite))

        totals: dict[EmotionType, float] = {}
        for e in supporting:
            totals[e.emotion] = totals.get(e.emotion, 0.0) + e.intensity
        dominant = max(sorted(totals, key=lambda em: em.value), key=lambda em: totals[em])
        mean_intensity = sum(e.intensity for e in supporting) / len(supporting)

        evidence = [e.event_id for e in supporting]
        meta = Metadata.inferred(now, confidence, evidence, salience=confidence)
        beliefs = [
            Triple(subject, Predicate.HAS_TRAIT, Value.concept(trait), meta),
            Triple(subject, Predicate.TRIGGERS_EMOTION,
                   Value.emotion(dominant, min(1.0, confidence * mean_intensity)), meta),
        ]
        logger.info(f"believes entity {actor} is {trait.name.lower()} (confidence {confidence:.2f})")
        return [store.revise(b) for b in beliefs]

    def _consolidate_affordances(self, store: FactStore, events: list[RecalledEvent], now: float) -> list[Triple]:
        groups: dict[tuple[ActionKind, Concept, Concept], list[RecalledEvent]] = {}
        for e in events:
            if e.action is None or e.target_category is None or e.result is None:
                continue
            groups.setdefault((e.action, e.target_category, e.result), []).append(e)

        def weight_of(key) -> float:
            return float(self.event_weights(groups.get(key, []), now).sum())

        written = []
        for (action, category, result), group in sorted(
            groups.items(), key=lambda kv: tuple(x.value for x in kv[0])
        ):
            if len(group) < self.min_pattern_events:
                continue
            support = weight_of((action, category, result))
            subject = Node.concept(category)
            evidence = [e.event_id for e in group]

            if result == Concept.SUCCESS:
                confidence = self.combine(support, weight_of((action, category, Concept.FAILURE)))
                if confidence > self.belief_threshold:
                    meta = Metadata.inferred(now, confidence, evidence, salience=confidence)
                    written.append(store.revise(
                        Triple(subject, Predicate.AFFORDS, Value.action(action), meta)
                    ))
            elif result == Concept.DAMAGED:
                confidence = self.combine(support, weight_of((action, category, Concept.SUCCESS)))
                if confidence > self.belief_threshold:
                    written.extend(self._write_danger(store, subject, confidence, evidence, now))
            elif result == Concept.FAILURE:
                confidence = self.combine(support, weight_of((action, category, Concept.SUCCESS)))
                if confidence > self.belief_threshold:
                    # repeated failure retracts a learned affordance, never an ontology one
                    removed = store.remove(subject, Predicate.AFFORDS, Value.action(action))
                    if removed:
                        logger.info(f"no longer believes {category.name.lower()} affords {action.name.lower()}")
        return written

    def _write_danger(
        self,
        store: FactStore,
        subject: Node,
        confidence: float,
        evidence: list[int],
        now: float,
    ) -> list[Triple]:
        meta = Metadata.inferred(now, confidence, evidence, salience=confidence)
        beliefs = [
            Triple(subject, Predicate.HAS_TRAIT, Value.concept(Concept.DANGEROUS), meta),
            Triple(subject, Predicate.TRIGGERS_EMOTION, Value.emotion(EmotionType.FEAR, confidence), meta),
        ]
        logger.info(f"believes {subject} is dangerous (confidence {confidence:.2f})")
        return [store.revise(b) for b in beliefs]

    def learn_one_shot(
        self,
        store: FactStore,
        event_id: int,
        event: OutcomeEvent,
        self_id: int,
        now: float,
    ) -> list[Triple]:
        """a single overwhelming episode becomes a belief without any pattern."""
        if event.emotion is None or event.intensity <= self.one_shot_intensity:
            return []

        emotion, intensity = event.emotion
        written = []
        if event.actor != self_id and emotion.valence != 0:
            recalled = RecalledEvent(
                event_id, event.timestamp, actor=event.actor, action=event.action,
                emotion=emotion, intensity=intensity,
            )
            written.extend(self._write_disposition(
                store, event.actor, emotion.valence < 0, [recalled], intensity, now
            ))
        category = event.target_category
        if category is None:
            # the recorder resolved the target's category when the episode was stored
            recorded = store.get(Node.event(event_id), Predicate.TARGET_CATEGORY)
            category = recorded.data if recorded is not None else None
        if event.result == Concept.DAMAGED and category is not None:
            written.extend(self._write_danger(store, Node.concept(category), intensity, [event_id], now))
        if written:
            logger.info(f"agent {self_id} one-shot learned from event {event_id} (intensity {intensity:.2f})")
        return written


def create_consolidation_engine(config: dict[str, Any]) -> ConsolidationEngine:
    """factory function for creating a consolidation engine from config."""
    return ConsolidationEngine.from_config(config)
