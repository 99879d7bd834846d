# Author: Bradley R. Kinnard
# triples - nodes, values, metadata and patterns for agent knowledge

import math
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Any


class MalformedTripleError(ValueError):
    """raised when a triple fails validation at assert time."""
    pass


class NodeKind(Enum):
    """what a triple subject refers to."""
    ENTITY = auto()
    CONCEPT = auto()
    TILE = auto()
    EVENT = auto()
    SELF = auto()
    ACTION = auto()


class ValueKind(Enum):
    """what a triple object holds."""
    BOOL = auto()
    INT = auto()
    FLOAT = auto()
    CONCEPT = auto()
    ENTITY = auto()
    TILE = auto()
    ACTION = auto()
    EMOTION = auto()
    ITEM = auto()
    ATTITUDE = auto()
    TEXT = auto()


class Concept(Enum):
    """abstract concepts shared by every agent."""
    # taxonomy roots
    THING = auto()
    PHYSICAL = auto()
    ABSTRACT = auto()
    # living
    PERSON = auto()
    ANIMAL = auto()
    PLANT = auto()
    # objects and resources
    OBJECT = auto()
    FOOD = auto()
    RESOURCE = auto()
    APPLE = auto()
    APPLE_TREE = auto()
    BERRY = auto()
    BERRY_BUSH = auto()
    WOOD = auto()
    WATER = auto()
    STONE = auto()
    STICK = auto()
    DEER = auto()
    WOLF = auto()
    # traits
    EDIBLE = auto()
    PREY = auto()
    DANGEROUS = auto()
    SAFE = auto()
    FRIENDLY = auto()
    HOSTILE = auto()
    NEUTRAL = auto()
    HARVESTABLE = auto()
    SENTIENT = auto()
    # action categories
    SOCIAL_ACTION = auto()
    VIOLENT_ACTION = auto()
    SURVIVAL_ACTION = auto()
    MOVEMENT_ACTION = auto()
    # outcomes
    SUCCESS = auto()
    FAILURE = auto()
    DAMAGED = auto()


class Predicate(Enum):
    """relations between nodes and values."""
    IS_A = auto()
    HAS_TRAIT = auto()
    LOCATED_AT = auto()
    CONTAINS = auto()
    AFFORDS = auto()
    PRODUCES = auto()
    CONSUMES = auto()
    REGENERATION_RATE = auto()
    LAST_OBSERVED = auto()
    # interoception
    HUNGER = auto()
    ENERGY = auto()
    PAIN = auto()
    # episodic event structure
    ACTOR = auto()
    ACTION = auto()
    TARGET = auto()
    TARGET_CATEGORY = auto()
    RESULT = auto()
    TIMESTAMP = auto()
    FELT_EMOTION = auto()
    # social and emotional
    TRIGGERS_EMOTION = auto()
    TRUST = auto()
    KNOWS = auto()
    HEADING = auto()

    @property
    def functional(self) -> bool:
        return self in FUNCTIONAL_PREDICATES


FUNCTIONAL_PREDICATES = frozenset({
    Predicate.LOCATED_AT,
    Predicate.HUNGER,
    Predicate.ENERGY,
    Predicate.PAIN,
    Predicate.REGENERATION_RATE,
    Predicate.LAST_OBSERVED,
    Predicate.ACTOR,
    Predicate.ACTION,
    Predicate.TARGET,
    Predicate.TARGET_CATEGORY,
    Predicate.RESULT,
    Predicate.TIMESTAMP,
    Predicate.TRUST,
    Predicate.HEADING,
})


class EmotionType(Enum):
    """basic emotions carried by emotional values."""
    JOY = auto()
    SURPRISE = auto()
    SADNESS = auto()
    FEAR = auto()
    ANGER = auto()
    DISGUST = auto()

    @property
    def valence(self) -> float:
        return EMOTION_VALENCE[self]


EMOTION_VALENCE = {
    EmotionType.JOY: 1.0,
    EmotionType.SURPRISE: 0.2,
    EmotionType.SADNESS: -0.5,
    EmotionType.FEAR: -1.0,
    EmotionType.ANGER: -0.8,
    EmotionType.DISGUST: -0.7,
}


class ActionKind(Enum):
    """closed set of things an agent can do."""
    MOVE_TO = auto()
    HARVEST = auto()
    EAT = auto()
    SLEEP = auto()
    WAKE_UP = auto()
    WANDER = auto()
    EXPLORE = auto()
    IDLE = auto()
    FLEE = auto()
    ATTACK = auto()


class MemoryType(Enum):
    """decay class of a triple."""
    INTRINSIC = auto()
    CULTURAL = auto()
    SEMANTIC = auto()
    EPISODIC = auto()
    PROCEDURAL = auto()
    PERCEPTION = auto()

    @property
    def decays(self) -> bool:
        return self not in (MemoryType.INTRINSIC, MemoryType.PROCEDURAL)


class Source(Enum):
    """where a belief came from."""
    INTRINSIC = auto()
    CULTURAL = auto()
    COMMUNICATED = auto()
    HEARSAY = auto()
    OBSERVED = auto()
    EXPERIENCED = auto()
    INFERRED = auto()
    PERCEPTION = auto()


@dataclass(frozen=True)
class Node:
    """subject of a triple."""
    kind: NodeKind
    ref: Any = None

    @classmethod
    def entity(cls, entity_id: int) -> "Node":
        return cls(NodeKind.ENTITY, int(entity_id))

    @classmethod
    def concept(cls, concept: Concept) -> "Node":
        return cls(NodeKind.CONCEPT, concept)

    @classmethod
    def tile(cls, x: int, y: int) -> "Node":
        return cls(NodeKind.TILE, (int(x), int(y)))

    @classmethod
    def event(cls, event_id: int) -> "Node":
        return cls(NodeKind.EVENT, int(event_id))

    @classmethod
    def action(cls, kind: ActionKind) -> "Node":
        return cls(NodeKind.ACTION, kind)

    @property
    def is_self(self) -> bool:
        return self.kind == NodeKind.SELF

    def __str__(self) -> str:
        if self.kind == NodeKind.SELF:
            return "self"
        ref = self.ref.name.lower() if isinstance(self.ref, Enum) else self.ref
        return f"{self.kind.name.lower()}:{ref}"


SELF = Node(NodeKind.SELF)


@dataclass(frozen=True)
class Value:
    """object of a triple."""
    kind: ValueKind
    data: Any

    @classmethod
    def boolean(cls, flag: bool) -> "Value":
        return cls(ValueKind.BOOL, bool(flag))

    @classmethod
    def integer(cls, number: int) -> "Value":
        return cls(ValueKind.INT, int(number))

    @classmethod
    def number(cls, number: float) -> "Value":
        return cls(ValueKind.FLOAT, float(number))

    @classmethod
    def concept(cls, concept: Concept) -> "Value":
        return cls(ValueKind.CONCEPT, concept)

    @classmethod
    def entity(cls, entity_id: int) -> "Value":
        return cls(ValueKind.ENTITY, int(entity_id))

    @classmethod
    def tile(cls, x: int, y: int) -> "Value":
        return cls(ValueKind.TILE, (int(x), int(y)))

    @classmethod
    def action(cls, kind: ActionKind) -> "Value":
        return cls(ValueKind.ACTION, kind)

    @classmethod
    def emotion(cls, emotion: EmotionType, intensity: float) -> "Value":
        return cls(ValueKind.EMOTION, (emotion, float(intensity)))

    @classmethod
    def item(cls, concept: Concept, quantity: int) -> "Value":
        return cls(ValueKind.ITEM, (concept, int(quantity)))

    @classmethod
    def attitude(cls, scalar: float) -> "Value":
        return cls(ValueKind.ATTITUDE, float(scalar))

    @classmethod
    def text(cls, content: str) -> "Value":
        return cls(ValueKind.TEXT, str(content))

    @property
    def item_concept(self) -> Concept | None:
        return self.data[0] if self.kind == ValueKind.ITEM else None

    @property
    def quantity(self) -> int | None:
        return self.data[1] if self.kind == ValueKind.ITEM else None

    @property
    def emotion_type(self) -> EmotionType | None:
        return self.data[0] if self.kind == ValueKind.EMOTION else None

    @property
    def intensity(self) -> float | None:
        return self.data[1] if self.kind == ValueKind.EMOTION else None

    def as_number(self) -> float | None:
        if self.kind in (ValueKind.INT, ValueKind.FLOAT, ValueKind.ATTITUDE):
            return float(self.data)
        return None

    def as_tile(self) -> tuple[int, int] | None:
        return self.data if self.kind == ValueKind.TILE else None

    def as_node(self) -> Node | None:
        """values that name something a triple can be about."""
        if self.kind == ValueKind.ENTITY:
            return Node.entity(self.data)
        if self.kind == ValueKind.CONCEPT:
            return Node.concept(self.data)
        if self.kind == ValueKind.TILE:
            return Node.tile(*self.data)
        return None

    def __str__(self) -> str:
        if self.kind == ValueKind.ITEM:
            return f"{self.data[0].name.lower()}x{self.data[1]}"
        if self.kind == ValueKind.EMOTION:
            return f"{self.data[0].name.lower()}@{self.data[1]:.2f}"
        data = self.data.name.lower() if isinstance(self.data, Enum) else self.data
        return f"{data}"


# object kinds each constrained predicate accepts
_OBJECT_KINDS: dict[Predicate, frozenset[ValueKind]] = {
    Predicate.IS_A: frozenset({ValueKind.CONCEPT}),
    Predicate.HAS_TRAIT: frozenset({ValueKind.CONCEPT}),
    Predicate.LOCATED_AT: frozenset({ValueKind.TILE, ValueKind.ENTITY}),
    Predicate.CONTAINS: frozenset({ValueKind.ITEM, ValueKind.ENTITY}),
    Predicate.PRODUCES: frozenset({ValueKind.ITEM, ValueKind.CONCEPT}),
    Predicate.AFFORDS: frozenset({ValueKind.ACTION}),
    Predicate.HUNGER: frozenset({ValueKind.INT, ValueKind.FLOAT}),
    Predicate.ENERGY: frozenset({ValueKind.INT, ValueKind.FLOAT}),
    Predicate.PAIN: frozenset({ValueKind.INT, ValueKind.FLOAT}),
    Predicate.REGENERATION_RATE: frozenset({ValueKind.INT, ValueKind.FLOAT}),
    Predicate.TIMESTAMP: frozenset({ValueKind.INT, ValueKind.FLOAT}),
    Predicate.TARGET_CATEGORY: frozenset({ValueKind.CONCEPT}),
    Predicate.RESULT: frozenset({ValueKind.CONCEPT}),
    Predicate.ACTION: frozenset({ValueKind.ACTION}),
    Predicate.TRIGGERS_EMOTION: frozenset({ValueKind.EMOTION}),
    Predicate.FELT_EMOTION: frozenset({ValueKind.EMOTION}),
    Predicate.TRUST: frozenset({ValueKind.ATTITUDE, ValueKind.FLOAT}),
}


@dataclass(frozen=True)
class Metadata:
    """provenance of a triple."""
    source: Source = Source.INTRINSIC
    memory_type: MemoryType = MemoryType.INTRINSIC
    timestamp: float = 0.0
    confidence: float = 1.0
    informant: int | None = None
    evidence: tuple[int, ...] = ()
    salience: float = 0.0

    @classmethod
    def intrinsic(cls) -> "Metadata":
        return cls()

    @classmethod
    def perception(cls, timestamp: float, confidence: float = 1.0) -> "Metadata":
        return cls(Source.PERCEPTION, MemoryType.PERCEPTION, timestamp, confidence)

    @classmethod
    def episodic(cls, timestamp: float, salience: float) -> "Metadata":
        return cls(Source.EXPERIENCED, MemoryType.EPISODIC, timestamp, 1.0, salience=salience)

    @classmethod
    def semantic(cls, timestamp: float, confidence: float, source: Source = Source.OBSERVED) -> "Metadata":
        return cls(source, MemoryType.SEMANTIC, timestamp, confidence)

    @classmethod
    def inferred(
        cls,
        timestamp: float,
        confidence: float,
        evidence: tuple[int, ...] | list[int],
        salience: float = 0.0,
    ) -> "Metadata":
        return cls(
            Source.INFERRED, MemoryType.SEMANTIC, timestamp, confidence,
            evidence=tuple(evidence), salience=salience,
        )

    @classmethod
    def cultural(cls, timestamp: float, confidence: float = 0.8, salience: float = 0.5) -> "Metadata":
        return cls(Source.CULTURAL, MemoryType.CULTURAL, timestamp, confidence, salience=salience)

    def with_updates(self, **changes: Any) -> "Metadata":
        return replace(self, **changes)


@dataclass(frozen=True)
class Triple:
    """subject-predicate-object fact. equality ignores metadata."""
    subject: Node
    predicate: Predicate
    obj: Value
    meta: Metadata = field(default_factory=Metadata, compare=False)

    @property
    def key(self) -> tuple[Node, Predicate, Value]:
        return (self.subject, self.predicate, self.obj)

    def validate(self) -> None:
        """reject malformed triples. raises MalformedTripleError."""
        m = self.meta
        if not isinstance(self.subject, Node):
            raise MalformedTripleError(f"subject must be a Node, got {type(self.subject).__name__}")
        if not isinstance(self.predicate, Predicate):
            raise MalformedTripleError(f"predicate must be a Predicate, got {self.predicate!r}")
        if not isinstance(self.obj, Value):
            raise MalformedTripleError(f"object must be a Value, got {type(self.obj).__name__}")
        if not 0.0 <= m.confidence <= 1.0:
            raise MalformedTripleError(f"confidence must be between 0 and 1, got {m.confidence}")
        if not 0.0 <= m.salience <= 1.0:
            raise MalformedTripleError(f"salience must be between 0 and 1, got {m.salience}")
        if not math.isfinite(m.timestamp) or m.timestamp < 0:
            raise MalformedTripleError(f"timestamp must be non-negative, got {m.timestamp}")

        allowed = _OBJECT_KINDS.get(self.predicate)
        if allowed is not None and self.obj.kind not in allowed:
            raise MalformedTripleError(
                f"{self.predicate.name.lower()} does not accept {self.obj.kind.name.lower()} objects"
            )
        if self.obj.kind == ValueKind.ITEM and self.obj.quantity < 0:
            raise MalformedTripleError(f"item quantity must be non-negative, got {self.obj.quantity}")
        if self.obj.kind == ValueKind.EMOTION and not 0.0 <= self.obj.intensity <= 1.0:
            raise MalformedTripleError(f"emotion intensity must be between 0 and 1, got {self.obj.intensity}")

    def __str__(self) -> str:
        return f"({self.subject} {self.predicate.name.lower()} {self.obj})"


@dataclass(frozen=True)
class TriplePattern:
    """partial triple used by queries, goals and action conditions."""
    subject: Node | None = None
    predicate: Predicate | None = None
    obj: Value | None = None

    def matches(self, triple: Triple) -> bool:
        if self.subject is not None and self.subject != triple.subject:
            return False
        if self.predicate is not None and self.predicate != triple.predicate:
            return False
        if self.obj is None:
            return True
        return value_satisfies(triple.obj, self.obj)

    @property
    def sort_key(self) -> str:
        return str(self)

    def __str__(self) -> str:
        s = str(self.subject) if self.subject is not None else "?"
        p = self.predicate.name.lower() if self.predicate is not None else "?"
        o = str(self.obj) if self.obj is not None else "?"
        return f"({s} {p} {o})"


def value_satisfies(actual: Value, wanted: Value) -> bool:
    """item values satisfy a wanted item of the same concept with at least that quantity."""
    if wanted.kind == ValueKind.ITEM and actual.kind == ValueKind.ITEM:
        return actual.item_concept == wanted.item_concept and actual.quantity >= max(wanted.quantity, 1)
    return actual == wanted


def self_has(predicate: Predicate, value: Value) -> TriplePattern:
    return TriplePattern(SELF, predicate, value)


def self_at(x: int, y: int) -> TriplePattern:
    return TriplePattern(SELF, Predicate.LOCATED_AT, Value.tile(x, y))


def self_contains(concept: Concept, quantity: int = 1) -> TriplePattern:
    return TriplePattern(SELF, Predicate.CONTAINS, Value.item(concept, quantity))


def entity_contains(entity_id: int, concept: Concept, quantity: int = 1) -> TriplePattern:
    return TriplePattern(Node.entity(entity_id), Predicate.CONTAINS, Value.item(concept, quantity))
