"""
Weighted tenancy sampling for occupancy simulation.

A TenancyDistribution is built once from (duration, weight) rows; the
WeightedSampler draws durations from it with a binary search over the
cumulative weight table.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Tuple, Union

import numpy as np

from .errors import InvalidDistribution

logger = logging.getLogger(__name__)

RandomSource = Union[None, int, np.random.SeedSequence, np.random.Generator]


def make_rng(random_source: RandomSource = None) -> np.random.Generator:
    """Return a generator, reusing one if given, else seeding a new one.

    Anything with a ``random()`` method is accepted as-is, so tests can
    substitute a scripted source.
    """
    if hasattr(random_source, 'random'):
        return random_source
    return np.random.default_rng(random_source)


def _is_integral(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, np.integer)):
        return True
    if isinstance(value, (float, np.floating)):
        return math.isfinite(value) and float(value).is_integer()
    return False


@dataclass(frozen=True)
class TenancyDistribution:
    """Ordered (duration, weight) rows with their cumulative weight table.

    Rows keep their input order and are never deduplicated: each row is its
    own bucket.
    """

    durations: Tuple[int, ...]
    weights: Tuple[float, ...]
    cumulative: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if len(self.durations) != len(self.weights):
            raise InvalidDistribution(
                f"{len(self.durations)} durations but {len(self.weights)} weights"
            )
        if not self.durations:
            raise InvalidDistribution("tenancy distribution is empty")

        durations = []
        for duration in self.durations:
            if not _is_integral(duration):
                raise InvalidDistribution(f"duration {duration!r} is not an integer")
            if duration < 0:
                raise InvalidDistribution(f"duration {duration} is negative")
            durations.append(int(duration))
        object.__setattr__(self, 'durations', tuple(durations))

        weights = []
        for weight in self.weights:
            if isinstance(weight, (str, bytes)):
                raise InvalidDistribution(f"weight {weight!r} is not a number")
            try:
                weight = float(weight)
            except (TypeError, ValueError):
                raise InvalidDistribution(f"weight {weight!r} is not a number") from None
            if not math.isfinite(weight):
                raise InvalidDistribution(f"weight {weight!r} is not finite")
            if weight < 0:
                raise InvalidDistribution(f"weight {weight} is negative")
            weights.append(weight)
        object.__setattr__(self, 'weights', tuple(weights))

        cumulative = np.cumsum(np.asarray(self.weights, dtype=np.float64))
        if cumulative[-1] <= 0:
            raise InvalidDistribution("all tenancy weights are zero")
        cumulative.setflags(write=False)
        object.__setattr__(self, 'cumulative', cumulative)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[int, float]]) -> 'TenancyDistribution':
        """Build from an iterable of (duration, weight) tuples."""
        rows = list(pairs)
        return cls(tuple(d for d, _ in rows), tuple(w for _, w in rows))

    def __len__(self) -> int:
        return len(self.durations)

    @property
    def total_weight(self) -> float:
        return float(self.cumulative[-1])

    @property
    def max_duration(self) -> int:
        """Largest duration across all rows, zero-weight rows included."""
        return max(self.durations)

    @property
    def expected_duration(self) -> float:
        """Mean tenancy sum(d * w) / sum(w)."""
        d = np.asarray(self.durations, dtype=np.float64)
        w = np.asarray(self.weights, dtype=np.float64)
        return float(np.dot(d, w) / self.total_weight)

    def probabilities(self) -> np.ndarray:
        """Per-row draw probability, in row order."""
        return np.asarray(self.weights, dtype=np.float64) / self.total_weight


class WeightedSampler:
    """Draws tenancy durations from a fixed discrete distribution"""

    def __init__(self, distribution, random_source: RandomSource = None):
        """
        Initialize sampler.

        Args:
            distribution: TenancyDistribution, or an iterable of
                (duration, weight) pairs to build one from
            random_source: numpy Generator to draw from, or a seed /
                SeedSequence to build one
        """
        if not isinstance(distribution, TenancyDistribution):
            distribution = TenancyDistribution.from_pairs(distribution)

        self.distribution = distribution
        self.rng = make_rng(random_source)

        self._durations = np.asarray(distribution.durations, dtype=np.int64)
        self._cumulative = distribution.cumulative
        self._total = distribution.total_weight
        # Highest row with positive weight; a variate that rounds up to the
        # total must still land on a drawable row.
        self._last_index = int(np.flatnonzero(np.asarray(distribution.weights) > 0)[-1])

        logger.debug("sampler built: %d rows, total weight %.6g, max duration %d",
                     len(distribution), self._total, distribution.max_duration)

    @property
    def max_duration(self) -> int:
        return self.distribution.max_duration

    def draw(self) -> int:
        """Draw one tenancy duration."""
        u = self.rng.random() * self._total
        index = int(np.searchsorted(self._cumulative, u, side='right'))
        if index > self._last_index:
            index = self._last_index
        return int(self._durations[index])

    def __repr__(self):
        return (f"WeightedSampler(rows={len(self.distribution)}, "
                f"max_duration={self.max_duration})")
