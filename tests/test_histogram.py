import numpy as np
import pytest

from occupancy_sim.errors import InvariantViolation
from occupancy_sim.histogram import HistogramAccumulator


def make(levels, capacity=0):
    histogram = HistogramAccumulator(capacity)
    for level in levels:
        histogram.record(level)
    return histogram


def test_record_and_count():
    histogram = make([0, 2, 2, 1], capacity=3)
    assert histogram.count(2) == 2
    assert histogram.count(3) == 0
    assert histogram.count(50) == 0
    assert histogram.total() == 4
    assert histogram.max_level == 2
    assert list(histogram.counts) == [1, 1, 2]


def test_grows_past_initial_capacity():
    histogram = make([1, 40, 7], capacity=2)
    assert histogram.max_level == 40
    assert histogram.count(40) == 1
    assert histogram.total() == 3
    assert len(histogram.counts) == 41


def test_negative_level_rejected():
    with pytest.raises(InvariantViolation):
        HistogramAccumulator(3).record(-1)


def test_normalize_is_dense_and_ascending():
    rows = make([0, 3]).normalize()
    assert rows == [(0, 0.5), (1, 0.0), (2, 0.0), (3, 0.5)]


def test_normalize_percentage():
    rows = make([1, 1, 1, 0]).normalize(percentage=True)
    assert rows == [(0, pytest.approx(25.0)), (1, pytest.approx(75.0))]


def test_normalize_explicit_total():
    rows = make([2, 2]).normalize(total_samples=8)
    assert [p for _, p in rows] == [0.0, 0.0, 0.25]


def test_zero_denominator_treated_as_one():
    rows = make([1, 1]).normalize(total_samples=0)
    assert rows == [(0, 0.0), (1, 2.0)]


def test_empty_histogram_normalizes_to_empty_table():
    assert HistogramAccumulator(5).normalize() == []
    assert HistogramAccumulator(5).mean() == 0.0


def test_probabilities_times_total_recover_counts(rng):
    levels = rng.integers(0, 30, size=5000)
    histogram = make(levels, capacity=10)
    total = histogram.total()
    recovered = sum(p * total for _, p in histogram.normalize())
    assert recovered == pytest.approx(total)
    assert histogram.probabilities().sum() == pytest.approx(1.0)


def test_mean():
    assert make([0, 2, 4]).mean() == pytest.approx(2.0)


def test_merge_sums_element_wise():
    a = make([0, 1, 1], capacity=1)
    b = make([1, 5])
    a.merge(b)
    assert list(a.counts) == [1, 3, 0, 0, 0, 1]
    assert a.total() == 5
    assert a.max_level == 5


def test_merge_with_empty_is_noop():
    a = make([2])
    a.merge(HistogramAccumulator(10))
    assert list(a.counts) == [0, 0, 1]


def test_from_counts_roundtrip():
    histogram = HistogramAccumulator.from_counts([3, 0, 2])
    assert histogram.total() == 5
    assert histogram.max_level == 2
    with pytest.raises(InvariantViolation):
        HistogramAccumulator.from_counts([1, -1])


def test_to_frame_columns():
    df = make([0, 1, 1, 1]).to_frame()
    assert list(df.columns) == ['level', 'count', 'probability']
    assert df['count'].tolist() == [1, 3]
    assert df['probability'].tolist() == pytest.approx([0.25, 0.75])
    assert df['level'].dtype == np.int64
