# Author: Bradley R. Kinnard
# core module exports

from core.snapshot import PhysiologicalSnapshot, VisibleObject
from core.proposals import SOURCE_PRIORITY, Proposal, ProposalSource, simple_action
from core.reflexive import ReflexiveSource, ReflexThresholds
from core.associative import AssociativeSource
from core.planned import PlannedSource
from core.arbitration import ArbitrationResult, Arbitrator, SourcePowers, create_arbitrator
from core.scheduler import AgentSchedule, StaggeredSchedule
from core.agent import (
    AgentInput,
    Decision,
    MindAgent,
    create_agent,
    step_population,
)

__all__ = [
    "PhysiologicalSnapshot",
    "VisibleObject",
    "SOURCE_PRIORITY",
    "Proposal",
    "ProposalSource",
    "simple_action",
    "ReflexiveSource",
    "ReflexThresholds",
    "AssociativeSource",
    "PlannedSource",
    "ArbitrationResult",
    "Arbitrator",
    "SourcePowers",
    "create_arbitrator",
    "AgentSchedule",
    "StaggeredSchedule",
    "AgentInput",
    "Decision",
    "MindAgent",
    "create_agent",
    "step_population",
]
