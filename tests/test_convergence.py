import io

import numpy as np
import pytest

from occupancy_sim.convergence import ConvergenceStudy, max_abs_difference
from occupancy_sim.sampler import WeightedSampler


def test_max_abs_difference_pads_shorter_vector():
    assert max_abs_difference(np.array([0.5, 0.5]), np.array([0.5, 0.3, 0.2])) \
        == pytest.approx(0.2)
    assert max_abs_difference(np.zeros(0), np.zeros(0)) == 0.0


def test_constant_tenancy_converges_in_two_rounds():
    result = ConvergenceStudy().run(WeightedSampler([(2, 1.0)], 0), delta=0.005)
    assert result.converged
    assert result.rounds == 2
    assert result.difference == 0.0
    # round size defaults to the largest duration
    assert result.histogram.total() == 4
    assert result.history == [0.0]


def test_round_cap_stops_unconverged_study(two_point):
    result = ConvergenceStudy().run(WeightedSampler(two_point, 8), delta=1e-12,
                                    round_samples=500, max_rounds=3)
    assert result.rounds == 3
    assert not result.converged
    assert result.histogram.total() == 1500
    assert len(result.history) == 2


def test_huge_duration_with_small_round_budget():
    sampler = WeightedSampler([(1, 1.0), (10**12, 1e-9)], 0)
    result = ConvergenceStudy().run(sampler, delta=1e-12, round_samples=10, max_rounds=2)
    assert result.histogram.total() == 20


def test_study_settles_near_expected_mean(two_point):
    result = ConvergenceStudy().run(WeightedSampler(two_point, 21), delta=1e-4,
                                    round_samples=1000, max_rounds=200)
    assert result.histogram.mean() == pytest.approx(2.0, abs=0.1)


def test_verbose_progress_goes_to_stream():
    stream = io.StringIO()
    ConvergenceStudy(verbose=True, stream=stream).run(WeightedSampler([(1, 1.0)], 0))
    assert "Round" in stream.getvalue()


@pytest.mark.parametrize("kwargs", [{"delta": 0}, {"round_samples": 0}])
def test_invalid_parameters(two_point, kwargs):
    with pytest.raises(ValueError):
        ConvergenceStudy().run(WeightedSampler(two_point, 1), **kwargs)
