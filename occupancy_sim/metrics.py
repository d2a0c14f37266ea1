"""
Evaluation metrics for occupancy simulation.

Calculates:
1. Occupancy moments (mean, std), median and maximum observed level
2. Capacity quantiles - smallest cache size covering a share of steps
3. Little's law check - observed mean vs expected tenancy
4. Overflow probability for a given cache size
"""

from typing import Dict, Iterable, Optional

import numpy as np
import pandas as pd

from .histogram import HistogramAccumulator
from .sampler import TenancyDistribution


class MetricsCalculator:
    """Computes summary metrics from an occupancy histogram."""

    def __init__(self, quantiles: Iterable[float] = (0.5, 0.95, 0.99),
                 little_tolerance: float = 0.05):
        self.quantiles = tuple(quantiles)
        self.little_tolerance = little_tolerance

    def calculate_all(self, histogram: HistogramAccumulator,
                      distribution: Optional[TenancyDistribution] = None,
                      capacity: Optional[int] = None) -> Dict:
        """
        Calculate all metrics from simulation results.

        Args:
            histogram: Accumulated occupancy histogram
            distribution: Tenancy distribution (for the Little's law check)
            capacity: Cache size to test for overflow

        Returns:
            Metrics dictionary
        """
        df = histogram.to_frame()

        metrics = {
            'samples': histogram.total(),
            'max_occupancy': histogram.max_level,
        }

        # 1. Moments
        metrics.update(self.calculate_moments(df))

        # 2. Capacity quantiles
        metrics.update(self.calculate_quantiles(df))

        # 3. Little's law
        if distribution is not None:
            metrics.update(self.calculate_little_law(metrics['mean_occupancy'], distribution))

        # 4. Overflow
        if capacity is not None:
            metrics.update(self.calculate_overflow(df, capacity))

        return metrics

    def calculate_moments(self, df: pd.DataFrame) -> Dict:
        """Mean and standard deviation of occupancy."""
        if df.empty or df['count'].sum() == 0:
            return {'mean_occupancy': 0.0, 'std_occupancy': 0.0}

        p = df['probability'].to_numpy()
        levels = df['level'].to_numpy(dtype=np.float64)
        mean = float(np.dot(levels, p))
        variance = float(np.dot((levels - mean) ** 2, p))

        return {
            'mean_occupancy': mean,
            'std_occupancy': float(np.sqrt(variance)),
        }

    def calculate_quantiles(self, df: pd.DataFrame) -> Dict:
        """
        Smallest capacity c with P(occupancy <= c) >= q, per quantile.

        Keys are `median_occupancy`, `capacity_p50`, `capacity_p95`, ...
        """
        if df.empty or df['count'].sum() == 0:
            result = {'median_occupancy': 0}
            for q in self.quantiles:
                result[_quantile_key(q)] = 0
            return result

        cdf = df['probability'].cumsum().to_numpy()
        result = {'median_occupancy': _level_at(df, cdf, 0.5)}
        for q in self.quantiles:
            result[_quantile_key(q)] = _level_at(df, cdf, q)
        return result

    def calculate_little_law(self, observed_mean: float,
                             distribution: TenancyDistribution) -> Dict:
        """
        Compare observed mean occupancy with Little's law.

        With one admission per step the expected occupancy equals the mean
        tenancy: L = λW with λ = 1.
        """
        expected = distribution.expected_duration
        if expected > 0:
            relative_error = abs(observed_mean - expected) / expected
        else:
            relative_error = abs(observed_mean)

        return {
            'expected_mean_occupancy': float(expected),
            'little_relative_error': float(relative_error),
            'little_pass': bool(relative_error <= self.little_tolerance),
        }

    def calculate_overflow(self, df: pd.DataFrame, capacity: int) -> Dict:
        """P(occupancy > capacity): share of steps a cache of this size overflows."""
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        overflow = float(df.loc[df['level'] > capacity, 'probability'].sum())
        return {
            'capacity': capacity,
            'overflow_probability': overflow,
            'capacity_sufficient': bool(overflow == 0.0),
        }


def _quantile_key(q: float) -> str:
    return f"capacity_p{q * 100:g}".replace('.', '_')


def _level_at(df: pd.DataFrame, cdf: np.ndarray, q: float) -> int:
    # Tolerance absorbs float error in the cumulative sum.
    index = int(np.searchsorted(cdf, q - 1e-12, side='left'))
    return int(df['level'].iloc[min(index, len(df) - 1)])


def generate_summary_report(metrics: Dict, title: str = "") -> str:
    """Generate a human-readable summary report."""
    lines = []
    lines.append(f"{'='*60}")
    lines.append(f"Occupancy Simulation Report{': ' + title if title else ''}")
    lines.append(f"{'='*60}")
    lines.append("")

    lines.append(f"[INFO] Samples: {metrics.get('samples', 0)}")
    lines.append(f"[INFO] Max occupancy: {metrics.get('max_occupancy', -1)}")
    lines.append(f"[INFO] Mean occupancy: {metrics.get('mean_occupancy', 0.0):.4f} "
                 f"(std {metrics.get('std_occupancy', 0.0):.4f})")
    if 'median_occupancy' in metrics:
        lines.append(f"[INFO] Median occupancy: {metrics['median_occupancy']}")

    quantile_keys = sorted(k for k in metrics if k.startswith('capacity_p'))
    for key in quantile_keys:
        lines.append(f"[INFO] {key[len('capacity_'):].replace('_', '.')} capacity: {metrics[key]}")

    # Little's law
    if 'expected_mean_occupancy' in metrics:
        expected = metrics['expected_mean_occupancy']
        err = metrics['little_relative_error']
        lines.append(f"[{'PASS' if metrics.get('little_pass', False) else 'FAIL'}] "
                     f"Little's law: expected {expected:.4f}, error {err:.2%}")

    # Overflow
    if 'overflow_probability' in metrics:
        lines.append(f"[{'PASS' if metrics.get('capacity_sufficient', False) else 'FAIL'}] "
                     f"Capacity {metrics['capacity']}: overflow "
                     f"{metrics['overflow_probability']:.4%}")

    # Convergence
    if 'converged' in metrics:
        lines.append(f"[{'PASS' if metrics['converged'] else 'FAIL'}] Converged after "
                     f"{metrics.get('rounds', '?')} rounds "
                     f"(max |dp| {metrics.get('final_difference', float('nan')):.6f})")

    lines.append("")
    lines.append(f"{'='*60}")

    return "\n".join(lines)
