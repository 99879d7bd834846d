# Author: Bradley R. Kinnard
# ontology - shared immutable world knowledge and cultural seeds

from enum import Enum, auto
from types import MappingProxyType
from typing import Iterable

from knowledge.triples import (
    ActionKind,
    Concept,
    EmotionType,
    Metadata,
    Node,
    Predicate,
    Triple,
    TriplePattern,
    Value,
    ValueKind,
)
from utils.helpers import get_logger

logger = get_logger(__name__)


class Ontology:
    """
    universal truths shared by reference across every agent.

    built once, never mutated. parent and trait caches are computed at
    construction so is-a and trait lookups do not walk the hierarchy.
    """

    __slots__ = ("_triples", "_by_subject", "_parents", "_traits")

    def __init__(self, triples: Iterable[Triple]):
        frozen = []
        for t in triples:
            t.validate()
            frozen.append(t)
        self._triples = tuple(frozen)

        by_subject: dict[Node, list[Triple]] = {}
        for t in self._triples:
            by_subject.setdefault(t.subject, []).append(t)
        self._by_subject = MappingProxyType({k: tuple(v) for k, v in by_subject.items()})

        self._parents = MappingProxyType(self._build_parent_cache())
        self._traits = MappingProxyType(self._build_trait_cache())
        logger.info(f"ontology built with {len(self._triples)} triples")

    def __setattr__(self, name, value):
        if hasattr(self, name):
            raise AttributeError("ontology is immutable")
        object.__setattr__(self, name, value)

    def __len__(self) -> int:
        return len(self._triples)

    def __iter__(self):
        return iter(self._triples)

    def _direct_parents(self, concept: Concept) -> list[Concept]:
        return [
            t.obj.data for t in self._by_subject.get(Node.concept(concept), ())
            if t.predicate == Predicate.IS_A and t.obj.kind == ValueKind.CONCEPT
        ]

    def _build_parent_cache(self) -> dict[Concept, frozenset[Concept]]:
        cache = {}
        for concept in Concept:
            seen: set[Concept] = set()
            stack = self._direct_parents(concept)
            while stack:
                parent = stack.pop()
                if parent in seen:
                    continue
                seen.add(parent)
                stack.extend(self._direct_parents(parent))
            cache[concept] = frozenset(seen)
        return cache

    def _build_trait_cache(self) -> dict[Concept, frozenset[Concept]]:
        def direct(c: Concept) -> set[Concept]:
            return {
                t.obj.data for t in self._by_subject.get(Node.concept(c), ())
                if t.predicate == Predicate.HAS_TRAIT
            }

        cache = {}
        for concept in Concept:
            traits = direct(concept)
            for parent in self._parents[concept]:
                traits |= direct(parent)
            cache[concept] = frozenset(traits)
        return cache

    def query(
        self,
        subject: Node | None = None,
        predicate: Predicate | None = None,
        obj: Value | None = None,
    ) -> list[Triple]:
        pattern = TriplePattern(subject, predicate, obj)
        pool = self._by_subject.get(subject, ()) if subject is not None else self._triples
        return [t for t in pool if pattern.matches(t)]

    def get(self, subject: Node, predicate: Predicate) -> Value | None:
        for t in self._by_subject.get(subject, ()):
            if t.predicate == predicate:
                return t.obj
        return None

    def parents(self, concept: Concept) -> frozenset[Concept]:
        """all ancestors of a concept, transitive."""
        return self._parents[concept]

    def is_a(self, concept: Concept, category: Concept) -> bool:
        return concept == category or category in self._parents[concept]

    def traits(self, concept: Concept) -> frozenset[Concept]:
        return self._traits[concept]

    def has_trait(self, concept: Concept, trait: Concept) -> bool:
        return trait in self._traits[concept]

    def is_edible(self, concept: Concept) -> bool:
        return self.has_trait(concept, Concept.EDIBLE)

    def edible_items(self) -> list[Concept]:
        """concrete edible concepts, i.e. edible leaves of the taxonomy."""
        has_children = {p for c in Concept for p in self._direct_parents(c)}
        return [c for c in Concept if self.is_edible(c) and c not in has_children]

    def produces(self, concept: Concept) -> list[Concept]:
        """item concepts a category yields when harvested, inherited."""
        out = []
        for c in (concept, *sorted(self._parents[concept], key=lambda x: x.value)):
            for t in self._by_subject.get(Node.concept(c), ()):
                if t.predicate == Predicate.PRODUCES:
                    item = t.obj.item_concept if t.obj.kind == ValueKind.ITEM else t.obj.data
                    if item not in out:
                        out.append(item)
        return out

    def regeneration_rate(self, concept: Concept) -> float | None:
        for c in (concept, *sorted(self._parents[concept], key=lambda x: x.value)):
            value = self.get(Node.concept(c), Predicate.REGENERATION_RATE)
            if value is not None:
                return value.as_number()
        return None


def _isa(child: Concept, parent: Concept) -> Triple:
    return Triple(Node.concept(child), Predicate.IS_A, Value.concept(parent))


def _trait(concept: Concept, trait: Concept) -> Triple:
    return Triple(Node.concept(concept), Predicate.HAS_TRAIT, Value.concept(trait))


def build_default_ontology() -> Ontology:
    """the taxonomy, affordances and innate associations every creature shares."""
    C = Concept
    triples = [
        _isa(C.PHYSICAL, C.THING),
        _isa(C.ABSTRACT, C.THING),
        _isa(C.ANIMAL, C.PHYSICAL),
        _isa(C.PLANT, C.PHYSICAL),
        _isa(C.OBJECT, C.PHYSICAL),
        _isa(C.PERSON, C.ANIMAL),
        _isa(C.FOOD, C.OBJECT),
        _isa(C.RESOURCE, C.OBJECT),
        _isa(C.APPLE, C.FOOD),
        _isa(C.APPLE, C.RESOURCE),
        _isa(C.BERRY, C.FOOD),
        _isa(C.BERRY, C.RESOURCE),
        _isa(C.WOOD, C.RESOURCE),
        _isa(C.WATER, C.RESOURCE),
        _isa(C.STONE, C.RESOURCE),
        _isa(C.STICK, C.RESOURCE),
        _isa(C.APPLE_TREE, C.PLANT),
        _isa(C.BERRY_BUSH, C.PLANT),
        _isa(C.DEER, C.ANIMAL),
        _isa(C.WOLF, C.ANIMAL),

        _trait(C.FOOD, C.EDIBLE),
        _trait(C.PERSON, C.SENTIENT),
        _trait(C.DEER, C.PREY),
        _trait(C.WOLF, C.DANGEROUS),
        _trait(C.APPLE_TREE, C.HARVESTABLE),
        _trait(C.BERRY_BUSH, C.HARVESTABLE),

        Triple(Node.concept(C.APPLE_TREE), Predicate.PRODUCES, Value.item(C.APPLE, 1)),
        Triple(Node.concept(C.BERRY_BUSH), Predicate.PRODUCES, Value.item(C.BERRY, 1)),
        Triple(Node.concept(C.APPLE_TREE), Predicate.REGENERATION_RATE, Value.number(300.0)),
        Triple(Node.concept(C.BERRY_BUSH), Predicate.REGENERATION_RATE, Value.number(180.0)),
        Triple(Node.concept(C.APPLE_TREE), Predicate.AFFORDS, Value.action(ActionKind.HARVEST)),
        Triple(Node.concept(C.BERRY_BUSH), Predicate.AFFORDS, Value.action(ActionKind.HARVEST)),
        Triple(Node.concept(C.FOOD), Predicate.AFFORDS, Value.action(ActionKind.EAT)),

        Triple(Node.concept(C.WOLF), Predicate.TRIGGERS_EMOTION, Value.emotion(EmotionType.FEAR, 0.9)),
        Triple(Node.action(ActionKind.ATTACK), Predicate.TRIGGERS_EMOTION, Value.emotion(EmotionType.FEAR, 0.8)),
        Triple(Node.action(ActionKind.EAT), Predicate.TRIGGERS_EMOTION, Value.emotion(EmotionType.JOY, 0.3)),
        Triple(Node.action(ActionKind.HARVEST), Predicate.TRIGGERS_EMOTION, Value.emotion(EmotionType.JOY, 0.2)),
    ]

    categories = {
        ActionKind.ATTACK: C.VIOLENT_ACTION,
        ActionKind.FLEE: C.SURVIVAL_ACTION,
        ActionKind.EAT: C.SURVIVAL_ACTION,
        ActionKind.HARVEST: C.SURVIVAL_ACTION,
        ActionKind.SLEEP: C.SURVIVAL_ACTION,
        ActionKind.MOVE_TO: C.MOVEMENT_ACTION,
        ActionKind.WANDER: C.MOVEMENT_ACTION,
        ActionKind.EXPLORE: C.MOVEMENT_ACTION,
    }
    for kind, category in categories.items():
        triples.append(Triple(Node.action(kind), Predicate.IS_A, Value.concept(category)))

    return Ontology(triples)


def action_category(ontology: Ontology, kind: ActionKind) -> Concept | None:
    value = ontology.get(Node.action(kind), Predicate.IS_A)
    return value.data if value is not None else None


class Culture(Enum):
    """upbringing that seeds an agent with cultural beliefs."""
    NOMAD = auto()
    FARMER = auto()
    HUNTER = auto()
    GATHERER = auto()


def cultural_knowledge(culture: Culture, now: float = 0.0) -> list[Triple]:
    """beliefs taught by a culture. cultural memory decays over hours."""
    C = Concept
    meta = Metadata.cultural(now)
    facts = {
        Culture.NOMAD: [
            (Node.concept(C.WATER), Predicate.HAS_TRAIT, Value.concept(C.SAFE)),
            (Node.concept(C.WOLF), Predicate.HAS_TRAIT, Value.concept(C.HOSTILE)),
        ],
        Culture.FARMER: [
            (Node.concept(C.APPLE_TREE), Predicate.REGENERATION_RATE, Value.number(240.0)),
            (Node.concept(C.APPLE_TREE), Predicate.HAS_TRAIT, Value.concept(C.SAFE)),
        ],
        Culture.HUNTER: [
            (Node.concept(C.DEER), Predicate.AFFORDS, Value.action(ActionKind.ATTACK)),
            (Node.concept(C.WOLF), Predicate.TRIGGERS_EMOTION, Value.emotion(EmotionType.ANGER, 0.6)),
        ],
        Culture.GATHERER: [
            (Node.concept(C.BERRY_BUSH), Predicate.REGENERATION_RATE, Value.number(150.0)),
            (Node.concept(C.BERRY), Predicate.HAS_TRAIT, Value.concept(C.SAFE)),
        ],
    }
    return [Triple(s, p, o, meta) for s, p, o in facts[culture]]
