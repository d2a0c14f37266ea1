"""
Occupancy histogram accumulation and normalization.
"""

from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from .errors import InvariantViolation


class HistogramAccumulator:
    """
    Counts observations per occupancy level.

    Storage is a dense numpy array starting at level 0. Callers preallocate
    up to the highest reachable level; levels beyond capacity grow the array.
    """

    def __init__(self, capacity: int = 0):
        """
        Args:
            capacity: Highest level to preallocate (usually the largest
                tenancy duration)
        """
        if capacity < 0:
            raise InvariantViolation(f"negative histogram capacity {capacity}")
        self._counts = np.zeros(capacity + 1, dtype=np.int64)
        self._max_level = -1

    def record(self, level: int):
        """Count one observation at `level`."""
        if level < 0:
            raise InvariantViolation(f"negative occupancy level {level}")
        if level >= len(self._counts):
            self._grow(level)
        self._counts[level] += 1
        if level > self._max_level:
            self._max_level = level

    def _grow(self, level: int):
        size = max(level + 1, 2 * len(self._counts))
        grown = np.zeros(size, dtype=np.int64)
        grown[:len(self._counts)] = self._counts
        self._counts = grown

    @property
    def max_level(self) -> int:
        """Highest level observed, or -1 when nothing was recorded"""
        return self._max_level

    @property
    def counts(self) -> np.ndarray:
        """Dense copy of counts for levels 0..max_level"""
        return self._counts[:self._max_level + 1].copy()

    def count(self, level: int) -> int:
        if level < 0:
            raise InvariantViolation(f"negative occupancy level {level}")
        if level >= len(self._counts):
            return 0
        return int(self._counts[level])

    def total(self) -> int:
        return int(self._counts.sum())

    def normalize(self, total_samples: Optional[int] = None,
                  percentage: bool = False) -> List[Tuple[int, float]]:
        """
        Convert counts to (level, probability) rows.

        Args:
            total_samples: Denominator; defaults to the recorded total. A zero
                denominator is treated as 1 so an empty run yields zeros.
            percentage: Scale probabilities by 100

        Returns:
            One row per level from 0 to max_level, ascending
        """
        denominator = self.total() if total_samples is None else total_samples
        if denominator <= 0:
            denominator = 1
        scale = 100.0 if percentage else 1.0

        probabilities = self.counts / float(denominator) * scale
        return [(level, float(p)) for level, p in enumerate(probabilities)]

    def probabilities(self) -> np.ndarray:
        """Dense probability vector over levels 0..max_level."""
        return np.array([p for _, p in self.normalize()], dtype=np.float64)

    def mean(self) -> float:
        total = self.total()
        if total == 0:
            return 0.0
        counts = self.counts
        return float(np.dot(np.arange(len(counts)), counts) / total)

    def merge(self, other: 'HistogramAccumulator') -> 'HistogramAccumulator':
        """Add another histogram's counts into this one (element-wise)."""
        if other.max_level < 0:
            return self
        if other.max_level >= len(self._counts):
            self._grow(other.max_level)
        self._counts[:other.max_level + 1] += other.counts
        self._max_level = max(self._max_level, other.max_level)
        return self

    def to_frame(self) -> pd.DataFrame:
        """DataFrame with `level`, `count` and `probability` columns."""
        counts = self.counts
        total = max(self.total(), 1)
        return pd.DataFrame({
            'level': np.arange(len(counts), dtype=np.int64),
            'count': counts,
            'probability': counts / float(total),
        })

    @classmethod
    def from_counts(cls, counts) -> 'HistogramAccumulator':
        """Rebuild a histogram from a dense count sequence."""
        counts = np.asarray(counts, dtype=np.int64)
        if (counts < 0).any():
            raise InvariantViolation("negative histogram count")
        histogram = cls(max(len(counts) - 1, 0))
        histogram._counts[:len(counts)] = counts
        nonzero = np.flatnonzero(counts)
        histogram._max_level = int(nonzero[-1]) if len(nonzero) else -1
        return histogram

    def __len__(self) -> int:
        return self._max_level + 1

    def __repr__(self):
        return f"HistogramAccumulator(levels={len(self)}, total={self.total()})"
