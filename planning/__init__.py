# Author: Bradley R. Kinnard
# planning module exports - actions, goals, belief state and the regressive planner

from planning.actions import (
    ACTION_HANDLERS,
    ActionHandler,
    ActionTemplate,
    UnknownActionError,
    candidate_actions,
    handler_for,
    make_action,
)
from planning.goals import Goal, GoalFormulator, Need, Urgency
from planning.belief_state import BeliefState
from planning.planner import (
    PlannerState,
    PlanResult,
    PlanStatus,
    PlanningBudgetExceeded,
    RegressivePlanner,
    create_planner,
)

__all__ = [
    "ACTION_HANDLERS",
    "ActionHandler",
    "ActionTemplate",
    "UnknownActionError",
    "candidate_actions",
    "handler_for",
    "make_action",
    "Goal",
    "GoalFormulator",
    "Need",
    "Urgency",
    "BeliefState",
    "PlannerState",
    "PlanResult",
    "PlanStatus",
    "PlanningBudgetExceeded",
    "RegressivePlanner",
    "create_planner",
]
