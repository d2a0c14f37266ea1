import numpy as np
import pytest

from occupancy_sim.sampler import TenancyDistribution


class ScriptedRandom:
    """Stand-in generator returning a fixed sequence of uniform variates."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def random(self):
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


class InlinePool:
    """Pool-like context manager that maps in the current process."""

    def __init__(self, processes=None):
        self.processes = processes

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def map(self, fn, iterable):
        return [fn(item) for item in iterable]


@pytest.fixture
def scripted_random():
    return ScriptedRandom


@pytest.fixture
def inline_pool():
    return InlinePool


@pytest.fixture
def two_point():
    """{1: 0.5, 3: 0.5}: mean tenancy 2."""
    return TenancyDistribution.from_pairs([(1, 0.5), (3, 0.5)])


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def distribution_csv(tmp_path):
    path = tmp_path / "tenancy.csv"
    path.write_text("tenancy,weight\n1,0.5\n3,0.5\n")
    return path
