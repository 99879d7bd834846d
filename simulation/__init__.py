# Author: Bradley R. Kinnard
# simulation module exports

from simulation.sandbox import (
    Body,
    SandboxReport,
    SandboxWorld,
    WorldObject,
    run_sandbox,
)

__all__ = [
    "Body",
    "SandboxReport",
    "SandboxWorld",
    "WorldObject",
    "run_sandbox",
]
