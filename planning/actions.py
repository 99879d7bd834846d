# Author: Bradley R. Kinnard
# action registry - one handler per action kind, building planning templates

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from knowledge.fact_store import FactStore
from knowledge.triples import (
    SELF,
    ActionKind,
    Concept,
    Node,
    NodeKind,
    Predicate,
    Triple,
    TriplePattern,
    Value,
    entity_contains,
    self_at,
    self_contains,
)
from utils.helpers import get_logger

logger = get_logger(__name__)


class UnknownActionError(Exception):
    """raised when no handler is registered for an action kind."""
    pass


@dataclass(frozen=True)
class ActionTemplate:
    """a concrete action with the conditions it needs and the facts it makes true."""
    kind: ActionKind
    target: int | None = None
    target_tile: tuple[int, int] | None = None
    preconditions: tuple[TriplePattern, ...] = ()
    effects: tuple[Triple, ...] = ()
    base_cost: float = 1.0
    item: Concept | None = None

    def __post_init__(self):
        if self.base_cost < 0:
            raise ValueError("base_cost must be non-negative")

    @property
    def name(self) -> str:
        parts = [self.kind.name.lower()]
        if self.item is not None:
            parts.append(self.item.name.lower())
        if self.target is not None:
            parts.append(f"entity:{self.target}")
        elif self.target_tile is not None:
            parts.append(f"tile:{self.target_tile[0]},{self.target_tile[1]}")
        return "(" + " ".join(parts) + ")" if len(parts) > 1 else parts[0]

    def achieves(self, pattern: TriplePattern) -> bool:
        return any(pattern.matches(e) for e in self.effects)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.name.lower(),
            "target": self.target,
            "target_tile": list(self.target_tile) if self.target_tile else None,
            "item": self.item.name.lower() if self.item else None,
            "preconditions": [str(p) for p in self.preconditions],
            "effects": [str(e) for e in self.effects],
            "base_cost": self.base_cost,
        }

    def __str__(self) -> str:
        return self.name


def located_tile(store: FactStore, entity_id: int) -> tuple[int, int] | None:
    value = store.get(Node.entity(entity_id), Predicate.LOCATED_AT)
    return value.as_tile() if value is not None else None


class ActionHandler(ABC):
    """builds templates for one action kind."""

    kind: ActionKind
    base_cost: float = 1.0

    @abstractmethod
    def build(
        self,
        store: FactStore,
        target: int | None = None,
        tile: tuple[int, int] | None = None,
        item: Concept | None = None,
    ) -> ActionTemplate:
        pass

    def is_plan_valid(self, store: FactStore, target: int | None = None, item: Concept | None = None) -> bool:
        """whether the planner may consider this action at all."""
        return True


class MoveToHandler(ActionHandler):
    """
    reach a tile, or the believed tile of an entity.

    never pre-enumerated. the planner synthesizes it when a condition asks
    for the agent to be somewhere, and supplies the distance-based cost.
    """
    kind = ActionKind.MOVE_TO

    def build(self, store, target=None, tile=None, item=None, cost: float | None = None) -> ActionTemplate:
        if tile is None and target is not None:
            tile = located_tile(store, target)
        if tile is None:
            raise ValueError("move_to needs a tile or an entity with a known location")

        preconditions = ()
        effects = [Triple(SELF, Predicate.LOCATED_AT, Value.tile(*tile))]
        if target is not None:
            # arriving relies on the target still being where we believe it is
            preconditions = (TriplePattern(Node.entity(target), Predicate.LOCATED_AT, Value.tile(*tile)),)
            effects = [Triple(SELF, Predicate.LOCATED_AT, Value.entity(target))]
        return ActionTemplate(
            kind=self.kind,
            target=target,
            target_tile=tile,
            preconditions=preconditions,
            effects=tuple(effects),
            base_cost=self.base_cost if cost is None else cost,
        )


class HarvestHandler(ActionHandler):
    """take one produced item from a believed source."""
    kind = ActionKind.HARVEST
    base_cost = 10.0

    def build(self, store, target=None, tile=None, item=None) -> ActionTemplate:
        if target is None:
            raise ValueError("harvest needs a target entity")
        tile = tile or located_tile(store, target)
        item = item or next(iter(harvestable_items(store, target)), None)
        if tile is None or item is None:
            raise ValueError(f"entity {target} has no known location or produce")
        return ActionTemplate(
            kind=self.kind,
            target=target,
            target_tile=tile,
            preconditions=(self_at(*tile), entity_contains(target, item)),
            effects=(Triple(SELF, Predicate.CONTAINS, Value.item(item, 1)),),
            base_cost=self.base_cost,
            item=item,
        )

    def is_plan_valid(self, store, target=None, item=None) -> bool:
        if target is None or located_tile(store, target) is None:
            return False
        items = harvestable_items(store, target)
        return bool(items) and (item is None or item in items)


class EatHandler(ActionHandler):
    kind = ActionKind.EAT

    def build(self, store, target=None, tile=None, item=None) -> ActionTemplate:
        if item is None:
            raise ValueError("eat needs an item concept")
        return ActionTemplate(
            kind=self.kind,
            preconditions=(self_contains(item),),
            effects=(Triple(SELF, Predicate.HUNGER, Value.integer(0)),),
            base_cost=self.base_cost,
            item=item,
        )

    def is_plan_valid(self, store, target=None, item=None) -> bool:
        return item is not None and store.ontology is not None and store.ontology.is_edible(item)


class SleepHandler(ActionHandler):
    kind = ActionKind.SLEEP
    base_cost = 5.0

    def build(self, store, target=None, tile=None, item=None) -> ActionTemplate:
        return ActionTemplate(
            kind=self.kind,
            effects=(Triple(SELF, Predicate.ENERGY, Value.integer(100)),),
            base_cost=self.base_cost,
        )


class _NoEffectHandler(ActionHandler):
    """behaviours with no modelled effects. never useful to the planner."""

    def build(self, store, target=None, tile=None, item=None) -> ActionTemplate:
        return ActionTemplate(kind=self.kind, target=target, target_tile=tile, base_cost=self.base_cost)

    def is_plan_valid(self, store, target=None, item=None) -> bool:
        return False


class WakeUpHandler(_NoEffectHandler):
    kind = ActionKind.WAKE_UP


class WanderHandler(_NoEffectHandler):
    kind = ActionKind.WANDER


class ExploreHandler(_NoEffectHandler):
    kind = ActionKind.EXPLORE
    base_cost = 5.0


class IdleHandler(_NoEffectHandler):
    kind = ActionKind.IDLE


class FleeHandler(_NoEffectHandler):
    kind = ActionKind.FLEE


class AttackHandler(_NoEffectHandler):
    kind = ActionKind.ATTACK
    base_cost = 3.0


ACTION_HANDLERS: dict[ActionKind, ActionHandler] = {
    h.kind: h for h in (
        MoveToHandler(),
        HarvestHandler(),
        EatHandler(),
        SleepHandler(),
        WakeUpHandler(),
        WanderHandler(),
        ExploreHandler(),
        IdleHandler(),
        FleeHandler(),
        AttackHandler(),
    )
}


def handler_for(kind: ActionKind) -> ActionHandler:
    handler = ACTION_HANDLERS.get(kind)
    if handler is None:
        raise UnknownActionError(f"no handler for action kind: {kind}")
    return handler


def make_action(
    kind: ActionKind,
    store: FactStore,
    target: int | None = None,
    tile: tuple[int, int] | None = None,
    item: Concept | None = None,
) -> ActionTemplate:
    return handler_for(kind).build(store, target=target, tile=tile, item=item)


def harvestable_items(store: FactStore, entity_id: int) -> list[Concept]:
    """item concepts an entity is believed to hold or to produce."""
    node = Node.entity(entity_id)
    items = []
    for t in store.query(node, Predicate.CONTAINS, include_ontology=False):
        if t.obj.item_concept is not None and t.obj.item_concept not in items:
            items.append(t.obj.item_concept)
    if store.ontology is not None:
        for category in sorted(store.all_types(node), key=lambda c: c.value):
            for concept in store.ontology.produces(category):
                if concept not in items:
                    items.append(concept)
    return items


def candidate_actions(store: FactStore, min_confidence: float = 0.1) -> list[ActionTemplate]:
    """
    actions the planner may chain.

    includes harvests of every entity believed to hold or produce something,
    whether or not it is currently in view.
    """
    candidates = []
    eat = handler_for(ActionKind.EAT)
    if store.ontology is not None:
        for concept in store.ontology.edible_items():
            if eat.is_plan_valid(store, item=concept):
                candidates.append(eat.build(store, item=concept))
    candidates.append(handler_for(ActionKind.SLEEP).build(store))

    harvest = handler_for(ActionKind.HARVEST)
    for entity_id in believed_sources(store, min_confidence):
        for concept in harvestable_items(store, entity_id):
            if harvest.is_plan_valid(store, entity_id, concept):
                candidates.append(harvest.build(store, target=entity_id, item=concept))
    return candidates


def believed_sources(store: FactStore, min_confidence: float = 0.1) -> list[int]:
    """entity ids believed to hold items or to be of a producing kind."""
    ids = set()
    for t in store.query(predicate=Predicate.CONTAINS, include_ontology=False):
        if t.subject.kind == NodeKind.ENTITY and t.meta.confidence > min_confidence:
            ids.add(t.subject.ref)
    if store.ontology is not None:
        for t in store.query(predicate=Predicate.IS_A, include_ontology=False):
            if t.subject.kind != NodeKind.ENTITY or t.meta.confidence <= min_confidence:
                continue
            if store.ontology.produces(t.obj.data):
                ids.add(t.subject.ref)
    return sorted(ids)
