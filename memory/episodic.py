# Author: Bradley R. Kinnard
# episodic memory - ingest action outcome events as episodic triples

import math
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from knowledge.fact_store import FactStore
from knowledge.triples import (
    ActionKind,
    Concept,
    EmotionType,
    MemoryType,
    Metadata,
    Node,
    Predicate,
    Source,
    Triple,
    Value,
)
from utils.helpers import get_logger

logger = get_logger(__name__)


OUTCOME_RESULTS = frozenset({Concept.SUCCESS, Concept.FAILURE, Concept.DAMAGED})


class FailureReason(Enum):
    """why an attempted action failed."""
    TARGET_GONE = auto()
    NO_TARGET = auto()
    RESOURCE_DEPLETED = auto()
    MISSING_ITEM = auto()
    NO_EDIBLE_FOOD = auto()
    TOO_FAR = auto()


@dataclass(frozen=True)
class OutcomeEvent:
    """a completed action reported back by the execution collaborator."""
    actor: int
    action: ActionKind
    target: int | None
    result: Concept
    timestamp: float
    emotion: tuple[EmotionType, float] | None = None
    target_category: Concept | None = None
    gained: tuple[Concept, int] | None = None
    consumed: tuple[Concept, int] | None = None
    failure: FailureReason | None = None
    missing_item: Concept | None = None

    def __post_init__(self):
        if self.result not in OUTCOME_RESULTS:
            raise ValueError(f"result must be success, failure or damaged, got {self.result.name.lower()}")
        if not math.isfinite(self.timestamp) or self.timestamp < 0:
            raise ValueError("timestamp must be non-negative")
        if self.emotion is not None and not 0.0 <= self.emotion[1] <= 1.0:
            raise ValueError("emotion intensity must be between 0 and 1")

    @property
    def intensity(self) -> float:
        return self.emotion[1] if self.emotion is not None else 0.0

    def involves(self, entity_id: int) -> bool:
        return self.actor == entity_id or self.target == entity_id


class EpisodicRecorder:
    """
    writes outcome events into an agent's fact store.

    each event becomes an event node with actor, action, target, result,
    timestamp and felt emotion triples. salience is emotional intensity
    scaled by how directly the agent was involved.
    """

    def __init__(self, owner_id: int, working_memory_size: int = 20):
        if working_memory_size < 1:
            raise ValueError("working_memory_size must be positive")
        self._owner = owner_id
        self._working = deque(maxlen=working_memory_size)
        self._next_id = 0

    @classmethod
    def from_config(cls, owner_id: int, config: dict[str, Any]) -> "EpisodicRecorder":
        cfg = config.get("consolidation", {})
        return cls(owner_id, cfg.get("working_memory_size", 20))

    @property
    def working_memory(self) -> list[int]:
        """ids of the most recent events, oldest first."""
        return list(self._working)

    def record(self, store: FactStore, event: OutcomeEvent) -> int:
        """ingest one event. returns its id."""
        event_id = self._next_id
        self._next_id += 1

        importance = 1.0 if event.involves(self._owner) else 0.5
        salience = min(1.0, event.intensity * importance)
        meta = Metadata.episodic(event.timestamp, salience)
        node = Node.event(event_id)

        facts = [
            (Predicate.ACTOR, Value.entity(event.actor)),
            (Predicate.ACTION, Value.action(event.action)),
            (Predicate.RESULT, Value.concept(event.result)),
            (Predicate.TIMESTAMP, Value.number(event.timestamp)),
        ]
        if event.target is not None:
            facts.append((Predicate.TARGET, Value.entity(event.target)))
            category = event.target_category or self._lookup_category(store, event.target)
            if category is not None:
                facts.append((Predicate.TARGET_CATEGORY, Value.concept(category)))
        if event.emotion is not None:
            facts.append((Predicate.FELT_EMOTION, Value.emotion(*event.emotion)))

        for predicate, value in facts:
            store.assert_triple(Triple(node, predicate, value, meta))

        self._working.append(event_id)
        logger.debug(
            f"agent {self._owner} recorded event {event_id}: {event.action.name.lower()} "
            f"-> {event.result.name.lower()} (salience {salience:.2f})"
        )
        return event_id

    def _lookup_category(self, store: FactStore, entity_id: int) -> Concept | None:
        types = store.query(Node.entity(entity_id), Predicate.IS_A, include_ontology=False)
        return types[0].obj.data if types else None

    def ingest_hearsay(
        self,
        store: FactStore,
        content: list[Triple],
        informant: int,
        now: float,
        confidence: float = 0.7,
    ) -> int:
        """knowledge told by another agent, held as semantic hearsay."""
        meta = Metadata(
            source=Source.HEARSAY,
            memory_type=MemoryType.SEMANTIC,
            timestamp=now,
            confidence=confidence,
            informant=informant,
            salience=0.5,
        )
        for t in content:
            store.assert_triple(Triple(t.subject, t.predicate, t.obj, meta))
        logger.debug(f"agent {self._owner} heard {len(content)} facts from {informant}")
        return len(content)
