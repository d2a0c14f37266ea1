"""
Simulation driver: the draw -> admit -> record loop.

Also provides the parallel variant, which runs independent tracker and
histogram pairs in worker processes and merges the histograms afterwards.
"""

import logging
import multiprocessing
from typing import List, Optional, Tuple

import numpy as np

from .histogram import HistogramAccumulator
from .sampler import TenancyDistribution, WeightedSampler
from .tracker import OccupancyTracker

logger = logging.getLogger(__name__)


class SimulationDriver:
    """Runs the occupancy loop for a fixed sample budget"""

    def __init__(self, warmup_admissions: int = 1, burn_in: int = 0):
        """
        Initialize driver.

        Args:
            warmup_admissions: Unrecorded admissions before recording starts,
                so the first recorded sample is a post-admission state
            burn_in: Additional unrecorded admissions to discard early,
                not-yet-steady samples
        """
        if warmup_admissions < 0 or burn_in < 0:
            raise ValueError("warmup_admissions and burn_in must be non-negative")
        self.warmup_admissions = warmup_admissions
        self.burn_in = burn_in

    def run(self, sampler: WeightedSampler, tracker: Optional[OccupancyTracker] = None,
            total_samples: int = 0) -> HistogramAccumulator:
        """
        Warm up, then record exactly `total_samples` occupancy observations.

        Args:
            sampler: Tenancy source
            tracker: Tracker to drive (a fresh one if None)
            total_samples: Number of recorded samples

        Returns:
            Histogram whose total equals total_samples
        """
        if total_samples < 0:
            raise ValueError(f"total_samples must be non-negative, got {total_samples}")
        if tracker is None:
            tracker = OccupancyTracker()

        self.warm_up(sampler, tracker)

        histogram = HistogramAccumulator(self.level_bound(sampler.max_duration, total_samples))
        self.accumulate(sampler, tracker, histogram, total_samples)

        logger.debug("recorded %d samples, max occupancy %d, final step %d",
                     total_samples, histogram.max_level, tracker.step)
        return histogram

    def level_bound(self, max_duration: int, samples: int) -> int:
        """Highest reachable occupancy: capped by both tenancy and admissions made."""
        return min(max_duration, self.warmup_admissions + self.burn_in + samples)

    def warm_up(self, sampler: WeightedSampler, tracker: OccupancyTracker):
        for _ in range(self.warmup_admissions + self.burn_in):
            tracker.admit(sampler.draw())

    @staticmethod
    def accumulate(sampler: WeightedSampler, tracker: OccupancyTracker,
                   histogram: HistogramAccumulator, samples: int):
        """Draw, admit and record `samples` times."""
        draw = sampler.draw
        admit = tracker.admit
        record = histogram.record
        for _ in range(samples):
            record(admit(draw()))


# ============================================================================
# PARALLEL RUNS
# ============================================================================

def split_budget(total_samples: int, workers: int) -> List[int]:
    """Split a budget into `workers` shares that differ by at most one."""
    base, extra = divmod(total_samples, workers)
    return [base + (1 if i < extra else 0) for i in range(workers)]


def _run_worker(args: Tuple) -> np.ndarray:
    pairs, samples, seed_seq, warmup_admissions, burn_in = args
    sampler = WeightedSampler(pairs, seed_seq)
    driver = SimulationDriver(warmup_admissions, burn_in)
    return driver.run(sampler, OccupancyTracker(), samples).counts


def run_parallel(distribution: TenancyDistribution, total_samples: int,
                 workers: int, seed: Optional[int] = None,
                 warmup_admissions: int = 1, burn_in: int = 0,
                 pool_factory=None) -> HistogramAccumulator:
    """
    Run independent simulations across worker processes and merge them.

    Each worker gets its own tracker, histogram and generator spawned from
    one SeedSequence, so results are reproducible for a fixed seed and
    worker count. Each worker performs its own warm-up.

    Args:
        distribution: Tenancy distribution
        total_samples: Budget across all workers
        workers: Number of worker processes
        seed: Root seed
        warmup_admissions: Per-worker warm-up admissions
        burn_in: Per-worker burn-in admissions
        pool_factory: Callable returning a Pool-like context manager
            (defaults to multiprocessing.Pool)

    Returns:
        Merged histogram whose total equals total_samples
    """
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got {workers}")

    pairs = list(zip(distribution.durations, distribution.weights))
    children = np.random.SeedSequence(seed).spawn(workers)
    shares = split_budget(total_samples, workers)
    tasks = [(pairs, share, child, warmup_admissions, burn_in)
             for share, child in zip(shares, children)]

    logger.info("running %d samples across %d workers", total_samples, workers)

    if workers == 1:
        results = [_run_worker(tasks[0])]
    else:
        if pool_factory is None:
            pool_factory = multiprocessing.Pool
        with pool_factory(processes=workers) as pool:
            results = pool.map(_run_worker, tasks)

    # Occupancy never exceeds the admissions one worker makes.
    bound = min(distribution.max_duration, warmup_admissions + burn_in + max(shares))
    merged = HistogramAccumulator(bound)
    for counts in results:
        merged.merge(HistogramAccumulator.from_counts(counts))
    return merged
