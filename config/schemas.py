# Author: Bradley R. Kinnard
# schema definitions for mind config validation

_probability = {"type": "number", "minimum": 0.0, "maximum": 1.0}
_positive = {"type": "number", "exclusiveMinimum": 0.0}
_non_negative = {"type": "number", "minimum": 0.0}
_interval = {"type": "integer", "minimum": 1}

mind_config_schema = {
    "type": "object",
    "required": ["decay", "planner", "arbitration", "schedule"],
    "properties": {
        "decay": {
            "type": "object",
            "required": ["half_lives"],
            "properties": {
                "half_lives": {
                    "type": "object",
                    "description": "base half-life in seconds per memory type",
                    "properties": {
                        "perception": _positive,
                        "episodic": _positive,
                        "semantic": _positive,
                        "cultural": _positive
                    },
                    "additionalProperties": False
                },
                "salience_multiplier": _non_negative,
                "forget_threshold": _probability
            }
        },
        "consolidation": {
            "type": "object",
            "properties": {
                "recency_half_life": _positive,
                "min_pattern_events": {"type": "integer", "minimum": 1},
                "belief_threshold": _probability,
                "evidence_scale": _positive,
                "one_shot_intensity": _probability,
                "working_memory_size": {"type": "integer", "minimum": 1}
            }
        },
        "planner": {
            "type": "object",
            "required": ["max_expansions"],
            "properties": {
                "max_expansions": {"type": "integer", "minimum": 1},
                "satisfied_threshold": _probability,
                "min_success_probability": _probability,
                "epsilon": _positive,
                "heuristic_weight": _non_negative,
                "move_cost_per_tile": _non_negative,
                "unknown_distance_cost": _non_negative
            }
        },
        "goals": {
            "type": "object",
            "properties": {
                "urgency_threshold": _probability,
                "momentum_bonus": _non_negative
            }
        },
        "reflexive": {
            "type": "object",
            "properties": {
                "wake_energy": _non_negative,
                "stress_snap": _non_negative,
                "stress_snap_held": _non_negative,
                "pain": _non_negative,
                "pain_held": _non_negative,
                "hunger": _non_negative,
                "hunger_held": _non_negative,
                "energy": _non_negative,
                "energy_held": _non_negative,
                "fear": _probability,
                "fear_held": _probability
            }
        },
        "associative": {
            "type": "object",
            "properties": {
                "fear_threshold": _probability,
                "joy_threshold": _probability,
                "anger_threshold": _probability,
                "general_fear_threshold": _probability
            }
        },
        "planned": {
            "type": "object",
            "properties": {
                "alertness_gate": _probability,
                "explore_urgency_scale": _non_negative,
                "believed_resource_scale": _non_negative,
                "wander_urgency": _non_negative,
                "idle_wander_urgency": _non_negative,
                "min_belief_confidence": _probability
            }
        },
        "arbitration": {
            "type": "object",
            "required": ["hysteresis_bonus"],
            "properties": {
                "max_power": _positive,
                "associative_base": _non_negative,
                "mood_weight": _non_negative,
                "pain_weight": _non_negative,
                "stress_multiplier": _non_negative,
                "planned_base": _non_negative,
                "hysteresis_bonus": _non_negative
            }
        },
        "schedule": {
            "type": "object",
            "properties": {
                "decision_interval": _interval,
                "planning_interval": _interval,
                "decay_interval": _interval,
                "consolidation_interval": _interval,
                "consistency_interval": _interval
            }
        },
        "agent": {
            "type": "object",
            "properties": {
                "culture": {"type": "string", "enum": ["nomad", "farmer", "hunter", "gatherer"]}
            }
        }
    }
}
