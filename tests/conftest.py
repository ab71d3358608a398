"""
Pytest configuration and fixtures for neural automata tests.
"""

import numpy as np
import pytest

from neural_automata.automaton import Grid, Rule
from neural_automata.config import Config


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded generator for stochastic tests."""
    return np.random.default_rng(12345)


@pytest.fixture
def small_config() -> Config:
    """Small, fast run."""
    return Config(width=8, height=6, channels=3, hidden=5, generations=3, steps_per_generation=4, seed=7)


@pytest.fixture
def random_rule(rng) -> Rule:
    """Random 3-channel rule."""
    return Rule.random(channels=3, hidden=6, rng=rng)


@pytest.fixture
def random_grid(random_rule, rng) -> Grid:
    """Random 7x5 grid sharing the random rule."""
    return Grid(7, 5, random_rule, rng=rng)


@pytest.fixture
def zero_rule() -> Rule:
    """Single-channel rule with every parameter zero."""
    return Rule.zeros(channels=1, hidden=4)
