"""
Pytest configuration for the impact simulation tests.

This file ensures the impactsim package is importable from tests and
provides the shared fixtures.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / 'src'))

from impactsim.config import SimulationParameters
from impactsim.gravity import FidelityMode


class StubRandom:
    """
    Deterministic stand-in for np.random.Generator.

    random() always returns `value`; uniform(a, b) returns the midpoint.
    With value=1.0 no burn-up roll ever succeeds.
    """

    def __init__(self, value=1.0):
        self.value = value
        self.calls = 0

    def random(self):
        self.calls += 1
        return self.value

    def uniform(self, low, high):
        return 0.5 * (low + high)


@pytest.fixture
def baseline_config_path():
    return project_root / 'configs' / 'baseline_config.yaml'


@pytest.fixture
def params():
    """Default Earth-Moon parameters with no initial entities."""
    return SimulationParameters()


@pytest.fixture
def primary_only_params():
    """Earth without the Moon."""
    return SimulationParameters(secondary=None)


@pytest.fixture
def reduced_params():
    """Reduced-fidelity parameters, Earth only."""
    return SimulationParameters(secondary=None, fidelity_mode=FidelityMode.REDUCED)


@pytest.fixture
def never_burn():
    return StubRandom(1.0)


@pytest.fixture
def always_burn():
    return StubRandom(0.0)


@pytest.fixture
def rng():
    return np.random.default_rng(12345)
