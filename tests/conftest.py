"""Shared fixtures: seeded synthetic signals and a default adapter."""

import numpy as np
import pytest

from wavedenoise.swt import TransformAdapter


def make_sine(n: int = 128, period: float = 32.0, noise: float = 0.0, seed: int = 7):
    """Return (clean, noisy) sine of the given period."""
    t = np.arange(n)
    clean = np.sin(2.0 * np.pi * t / period)
    rng = np.random.default_rng(seed)
    noisy = clean + noise * rng.standard_normal(n)
    return clean, noisy


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def adapter():
    return TransformAdapter("db4")


@pytest.fixture
def noisy_sine():
    return make_sine(n=256, period=32.0, noise=0.3, seed=11)


@pytest.fixture
def random_walk(rng):
    return 100.0 + np.cumsum(rng.standard_normal(256))
