# Author: Bradley R. Kinnard
# pytest configuration and fixtures

"""
Test Configuration

Hypothesis profiles:
- dev (default): 20 examples, 2s deadline
- ci: 100 examples, no deadline
- extensive: 500 examples, no deadline

Select one with HYPOTHESIS_PROFILE=ci. To reproduce a failing property:
  pytest tests/test_planner.py --hypothesis-seed=12345
"""

import os

import numpy as np
import pytest
from hypothesis import Phase, settings

settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    print_blob=True,
)

settings.register_profile(
    "dev",
    max_examples=20,
    deadline=2000,
)

settings.register_profile(
    "extensive",
    max_examples=500,
    deadline=None,
)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "dev"))


@pytest.fixture
def seeded_rng():
    """seeded generator for deterministic tests."""
    return np.random.default_rng(42)


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
