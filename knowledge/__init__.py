# Author: Bradley R. Kinnard
# knowledge module exports - triples, ontology, decay and the fact store

from knowledge.triples import (
    SELF,
    ActionKind,
    Concept,
    EmotionType,
    MalformedTripleError,
    MemoryType,
    Metadata,
    Node,
    NodeKind,
    Predicate,
    Source,
    Triple,
    TriplePattern,
    Value,
    ValueKind,
    entity_contains,
    self_at,
    self_contains,
    self_has,
)
from knowledge.decay import DecayPolicy
from knowledge.ontology import (
    Culture,
    Ontology,
    build_default_ontology,
    cultural_knowledge,
)
from knowledge.fact_store import FactStore, StoreIndex

__all__ = [
    "SELF",
    "ActionKind",
    "Concept",
    "EmotionType",
    "MalformedTripleError",
    "MemoryType",
    "Metadata",
    "Node",
    "NodeKind",
    "Predicate",
    "Source",
    "Triple",
    "TriplePattern",
    "Value",
    "ValueKind",
    "entity_contains",
    "self_at",
    "self_contains",
    "self_has",
    "DecayPolicy",
    "Culture",
    "Ontology",
    "build_default_ontology",
    "cultural_knowledge",
    "FactStore",
    "StoreIndex",
]
