# Author: Bradley R. Kinnard
# invariant definitions and runtime checking for the fact store

from dataclasses import dataclass
from typing import Any, Callable
from enum import Enum, auto

from knowledge.fact_store import FactStore, StoreIndex
from utils.helpers import get_logger

logger = get_logger(__name__)


class InvariantSeverity(Enum):
    """severity levels for invariant violations."""
    CRITICAL = auto()  # caller error, data cannot be trusted
    REPAIRABLE = auto()  # fixed by a full index rebuild


@dataclass
class InvariantViolation:
    """record of an invariant violation."""
    invariant_name: str
    severity: InvariantSeverity
    message: str
    state_digest: str
    details: dict[str, Any]


class InvariantChecker:
    """
    checks structural invariants of a fact store.

    I1: confidence bounded - every live triple has confidence in [0, 1]
    I2: timestamps non-negative
    I3: functional uniqueness - at most one live triple per functional (subject, predicate)
    I4: index consistency - secondary indices equal a fresh rebuild from the arena
    I5: live count - len(store) matches the number of occupied slots
    """

    def __init__(self):
        self._invariants: list[tuple[str, Callable[[FactStore], tuple[bool, str]], InvariantSeverity]] = []
        self._register_core_invariants()

    def _register_core_invariants(self) -> None:

        def check_confidence_bounded(store: FactStore) -> tuple[bool, str]:
            for slot, t in store.slots():
                if not 0.0 <= t.meta.confidence <= 1.0:
                    return False, f"slot {slot} confidence {t.meta.confidence} out of bounds"
            return True, "all confidences bounded"

        self._invariants.append(("I1_confidence_bounded", check_confidence_bounded, InvariantSeverity.CRITICAL))

        def check_timestamps(store: FactStore) -> tuple[bool, str]:
            for slot, t in store.slots():
                if t.meta.timestamp < 0:
                    return False, f"slot {slot} has negative timestamp {t.meta.timestamp}"
            return True, "all timestamps valid"

        self._invariants.append(("I2_timestamps_non_negative", check_timestamps, InvariantSeverity.CRITICAL))

        def check_functional_unique(store: FactStore) -> tuple[bool, str]:
            seen = set()
            for slot, t in store.slots():
                if not t.predicate.functional:
                    continue
                key = (t.subject, t.predicate)
                if key in seen:
                    return False, f"duplicate functional {t.predicate.name.lower()} for {t.subject}"
                seen.add(key)
            return True, "functional predicates unique"

        self._invariants.append(("I3_functional_unique", check_functional_unique, InvariantSeverity.REPAIRABLE))

        def check_index_consistent(store: FactStore) -> tuple[bool, str]:
            expected = StoreIndex.build(store.slots())
            if store.index != expected:
                return False, "secondary indices differ from arena contents"
            return True, "indices consistent"

        self._invariants.append(("I4_index_consistent", check_index_consistent, InvariantSeverity.REPAIRABLE))

        def check_live_count(store: FactStore) -> tuple[bool, str]:
            occupied = sum(1 for _ in store.slots())
            if occupied != len(store):
                return False, f"store reports {len(store)} triples but {occupied} slots are occupied"
            return True, "live count consistent"

        self._invariants.append(("I5_live_count", check_live_count, InvariantSeverity.REPAIRABLE))

    def register_invariant(
        self,
        name: str,
        check_fn: Callable[[FactStore], tuple[bool, str]],
        severity: InvariantSeverity = InvariantSeverity.REPAIRABLE,
    ) -> None:
        """register a custom invariant."""
        self._invariants.append((name, check_fn, severity))
        logger.info(f"registered invariant: {name}")

    def check_all(self, store: FactStore) -> list[InvariantViolation]:
        """check all invariants and return violations."""
        violations = []
        digest = store.digest()

        for name, check_fn, severity in self._invariants:
            passed, message = check_fn(store)
            if not passed:
                violations.append(InvariantViolation(
                    invariant_name=name,
                    severity=severity,
                    message=message,
                    state_digest=digest,
                    details={"triples": len(store)},
                ))
                logger.debug(f"invariant {name} violated: {message}")

        return violations

    def has_violations(self, store: FactStore) -> bool:
        return len(self.check_all(store)) > 0


def check_store_invariants(store: FactStore) -> list[InvariantViolation]:
    """convenience function to check all invariants."""
    return InvariantChecker().check_all(store)


def check_determinism(store_a: FactStore, store_b: FactStore) -> tuple[bool, str]:
    """same inputs applied to two stores must yield the same digest."""
    if store_a.digest() != store_b.digest():
        return False, "stores diverged despite same inputs"
    return True, "determinism verified"
