# Author: Bradley R. Kinnard
# memory module exports - episodic ingestion, belief updates and consolidation

from memory.episodic import (
    EpisodicRecorder,
    FailureReason,
    OutcomeEvent,
)
from memory.belief_updater import apply_outcome
from memory.consolidation import (
    ConsolidationEngine,
    RecalledEvent,
    create_consolidation_engine,
)

__all__ = [
    "EpisodicRecorder",
    "FailureReason",
    "OutcomeEvent",
    "apply_outcome",
    "ConsolidationEngine",
    "RecalledEvent",
    "create_consolidation_engine",
]
