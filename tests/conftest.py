"""
Pytest configuration for the LogUp-GKR tests.

The repository root holds the `primitives` and `protocol` packages; it is
put on the path by `pythonpath` in pyproject.toml.
"""

import numpy as np
import pytest


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(0x6B6B)

