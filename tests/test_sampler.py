import math
from collections import Counter

import numpy as np
import pytest

from occupancy_sim.errors import InvalidDistribution
from occupancy_sim.sampler import TenancyDistribution, WeightedSampler


def test_empty_distribution_rejected():
    with pytest.raises(InvalidDistribution):
        WeightedSampler([])


def test_all_zero_weights_rejected():
    with pytest.raises(InvalidDistribution):
        WeightedSampler([(1, 0.0), (2, 0.0)])


@pytest.mark.parametrize("pairs", [
    [(1, -0.5), (2, 1.0)],
    [(1, math.nan)],
    [(1, math.inf)],
    [(-1, 1.0)],
    [(1.5, 1.0)],
])
def test_out_of_range_rows_rejected(pairs):
    with pytest.raises(InvalidDistribution):
        TenancyDistribution.from_pairs(pairs)


def test_invalid_distribution_is_value_error():
    with pytest.raises(ValueError):
        WeightedSampler([])


def test_rows_keep_order_and_duplicates():
    dist = TenancyDistribution.from_pairs([(5, 1.0), (2, 2.0), (5, 1.0)])
    assert dist.durations == (5, 2, 5)
    assert dist.weights == (1.0, 2.0, 1.0)
    assert list(dist.cumulative) == [1.0, 3.0, 4.0]
    assert len(dist) == 3


def test_list_rows_stored_as_hashable_tuples():
    dist = TenancyDistribution([1, 3], [1, 2])
    assert dist.durations == (1, 3)
    assert dist.weights == (1.0, 2.0)
    assert all(isinstance(w, float) for w in dist.weights)
    assert hash(dist) == hash(TenancyDistribution((1, 3), (1.0, 2.0)))


@pytest.mark.parametrize("weight", ["heavy", "0.5", None, object()])
def test_non_numeric_weight_rejected(weight):
    with pytest.raises(InvalidDistribution):
        TenancyDistribution((1,), (weight,))
    with pytest.raises(InvalidDistribution):
        TenancyDistribution.from_pairs([(1, weight)])


def test_integral_float_durations_normalized():
    dist = TenancyDistribution.from_pairs([(3.0, 1.0)])
    assert dist.durations == (3,)
    assert isinstance(dist.max_duration, int)


def test_distribution_summary_values(two_point):
    assert two_point.max_duration == 3
    assert two_point.total_weight == pytest.approx(1.0)
    assert two_point.expected_duration == pytest.approx(2.0)
    assert list(two_point.probabilities()) == pytest.approx([0.5, 0.5])


def test_max_duration_includes_zero_weight_rows():
    dist = TenancyDistribution.from_pairs([(2, 1.0), (9, 0.0)])
    assert dist.max_duration == 9


def test_single_row_always_drawn(rng):
    sampler = WeightedSampler([(7, 0.3)], rng)
    assert {sampler.draw() for _ in range(200)} == {7}


def test_zero_weight_rows_never_drawn(rng):
    sampler = WeightedSampler([(5, 0.0), (7, 1.0), (9, 0.0)], rng)
    assert {sampler.draw() for _ in range(1000)} == {7}


def test_binary_search_boundaries(scripted_random):
    # cumulative weights [1, 2, 4]
    source = scripted_random([0.0, 0.3, 0.5, 0.999])
    sampler = WeightedSampler([(10, 1.0), (20, 1.0), (30, 2.0)], source)
    assert [sampler.draw() for _ in range(4)] == [10, 20, 30, 30]


def test_variate_at_total_lands_on_last_drawable_row(scripted_random):
    sampler = WeightedSampler([(4, 1.0), (8, 0.0)], scripted_random([1.0]))
    assert sampler.draw() == 4


def test_injected_generator_is_used(rng):
    sampler = WeightedSampler([(1, 1.0)], rng)
    assert sampler.rng is rng


def test_seeded_draws_are_reproducible():
    pairs = [(1, 0.2), (4, 0.5), (9, 0.3)]
    a = WeightedSampler(pairs, 42)
    b = WeightedSampler(pairs, 42)
    assert [a.draw() for _ in range(500)] == [b.draw() for _ in range(500)]


def test_draw_frequencies_follow_weights():
    sampler = WeightedSampler([(1, 1.0), (2, 3.0)], np.random.default_rng(7))
    counts = Counter(sampler.draw() for _ in range(20000))
    assert counts[2] / 20000 == pytest.approx(0.75, abs=0.02)
