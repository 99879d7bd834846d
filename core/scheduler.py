# Author: Bradley R. Kinnard
# scheduler - staggered periodic work so a population never spikes on one tick

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StaggeredSchedule:
    """
    a task that runs every `interval` ticks, offset by agent id.

    agents with different ids fire on different ticks, so per-tick cost is
    spread evenly across the population.
    """
    interval: int = 1

    def __post_init__(self):
        if self.interval < 1:
            raise ValueError("interval must be at least 1")

    def is_due(self, agent_id: int, tick: int) -> bool:
        return (agent_id + tick) % self.interval == 0

    def next_due(self, agent_id: int, tick: int) -> int:
        """first tick >= tick on which the task runs."""
        return tick + (-(agent_id + tick)) % self.interval


@dataclass(frozen=True)
class AgentSchedule:
    decision: StaggeredSchedule = StaggeredSchedule(1)
    planning: StaggeredSchedule = StaggeredSchedule(5)
    decay: StaggeredSchedule = StaggeredSchedule(60)
    consolidation: StaggeredSchedule = StaggeredSchedule(30)
    consistency: StaggeredSchedule = StaggeredSchedule(120)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "AgentSchedule":
        cfg = config.get("schedule", {})
        return cls(
            decision=StaggeredSchedule(cfg.get("decision_interval", 1)),
            planning=StaggeredSchedule(cfg.get("planning_interval", 5)),
            decay=StaggeredSchedule(cfg.get("decay_interval", 60)),
            consolidation=StaggeredSchedule(cfg.get("consolidation_interval", 30)),
            consistency=StaggeredSchedule(cfg.get("consistency_interval", 120)),
        )
