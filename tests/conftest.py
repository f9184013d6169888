"""Pytest fixtures for plant tests."""

import numpy as np
import pytest

from plant.config import LowPolyPlantConfig


class ScriptedRandom:
    """Random source that replays a fixed sequence of draws, cycling."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


@pytest.fixture
def rng():
    """Deterministic generator for tests."""
    return np.random.default_rng(42)


@pytest.fixture
def scripted_rng():
    """Factory for random sources that return the given draws in order."""
    return ScriptedRandom


@pytest.fixture
def low_poly():
    return LowPolyPlantConfig()


@pytest.fixture
def plant(low_poly):
    from plant.model import Plant

    return Plant(config=low_poly, rng=np.random.default_rng(7))
