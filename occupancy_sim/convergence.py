"""
Convergence study: keep sampling until the occupancy distribution settles.

A single tracker and histogram are carried across rounds. After each round
the normalized distribution is compared with the previous round's; the study
stops once no level moves by more than `delta`, or after `max_rounds`.
"""

import logging
import sys
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .driver import SimulationDriver
from .histogram import HistogramAccumulator
from .sampler import WeightedSampler
from .tracker import OccupancyTracker

logger = logging.getLogger(__name__)


@dataclass
class ConvergenceResult:
    """Outcome of a convergence study"""

    histogram: HistogramAccumulator
    rounds: int
    difference: float
    converged: bool
    history: List[float] = field(default_factory=list)  # max |Δp| per round


def max_abs_difference(previous: np.ndarray, current: np.ndarray) -> float:
    """Largest per-level probability change, padding the shorter vector with zeros."""
    size = max(len(previous), len(current))
    if size == 0:
        return 0.0
    a = np.zeros(size)
    b = np.zeros(size)
    a[:len(previous)] = previous
    b[:len(current)] = current
    return float(np.max(np.abs(a - b)))


class ConvergenceStudy:
    """Runs rounds of samples until successive distributions agree within delta"""

    def __init__(self, driver: Optional[SimulationDriver] = None, verbose: bool = False,
                 stream=None):
        self.driver = driver or SimulationDriver()
        self.verbose = verbose
        self.stream = stream or sys.stderr

    def run(self, sampler: WeightedSampler, delta: float = 0.005,
            round_samples: Optional[int] = None,
            max_rounds: int = 1000) -> ConvergenceResult:
        """
        Args:
            sampler: Tenancy source
            delta: Stopping tolerance on max per-level probability change
            round_samples: Samples per round (default: largest duration, at least 1)
            max_rounds: Hard cap on rounds

        Returns:
            ConvergenceResult; histogram total is rounds × round_samples
        """
        if delta <= 0:
            raise ValueError(f"delta must be positive, got {delta}")
        if round_samples is None:
            round_samples = max(sampler.max_duration, 1)
        if round_samples < 1:
            raise ValueError(f"round_samples must be positive, got {round_samples}")

        tracker = OccupancyTracker()
        self.driver.warm_up(sampler, tracker)
        histogram = HistogramAccumulator(
            self.driver.level_bound(sampler.max_duration, max_rounds * round_samples))

        previous = np.zeros(0)
        history = []
        difference = float('inf')
        rounds = 0

        if self.verbose:
            print(f"{'Round':>6}  {'Samples':>10}  {'max |dp|':>10}", file=self.stream)

        while rounds < max_rounds:
            self.driver.accumulate(sampler, tracker, histogram, round_samples)
            rounds += 1

            current = histogram.probabilities()
            # The first round has nothing to compare against.
            if rounds > 1:
                difference = max_abs_difference(previous, current)
                history.append(difference)
            previous = current

            if self.verbose and (rounds == 1 or rounds % 10 == 0):
                print(f"{rounds:>6}  {histogram.total():>10}  {difference:>10.6f}",
                      file=self.stream)

            if difference < delta:
                break

        converged = difference < delta
        logger.info("convergence study: %d rounds, %d samples, max |dp| %.6g (%s)",
                    rounds, histogram.total(), difference,
                    'converged' if converged else 'not converged')

        return ConvergenceResult(
            histogram=histogram,
            rounds=rounds,
            difference=difference,
            converged=converged,
            history=history,
        )
