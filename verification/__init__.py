# Author: Bradley R. Kinnard
# verification module - runtime invariant checking for agent knowledge

from verification.invariants import (
    InvariantChecker,
    InvariantSeverity,
    InvariantViolation,
    check_determinism,
    check_store_invariants,
)

__all__ = [
    "InvariantChecker",
    "InvariantSeverity",
    "InvariantViolation",
    "check_determinism",
    "check_store_invariants",
]
