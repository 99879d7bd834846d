# Author: Bradley R. Kinnard
# utils module exports

from utils.helpers import (
    load_mind_config,
    default_config,
    compute_hash,
    canonical_json,
    get_logger
)

__all__ = [
    "load_mind_config",
    "default_config",
    "compute_hash",
    "canonical_json",
    "get_logger"
]
