"""
Cache occupancy Monte Carlo simulator

Estimates the steady-state distribution of live cache entries when each entry
holds its slot for a randomly drawn tenancy:
1. Weighted tenancy sampling (binary search over cumulative weights)
2. Occupancy tracking (one admission per logical step, scheduled expirations)
3. Histogram accumulation (dense counts, normalized on demand)
4. Simulation driver (warm-up, fixed budget, optional worker fan-out)
5. Convergence study (rounds until the distribution settles)
"""

from .config import FixedBudget, OccupancySimConfig, ScaledBudget
from .driver import SimulationDriver, run_parallel
from .errors import InvalidDistribution, InvariantViolation, MalformedRecord, OccupancySimError
from .histogram import HistogramAccumulator
from .sampler import TenancyDistribution, WeightedSampler
from .tracker import OccupancyTracker

__version__ = "0.1.0"

__all__ = [
    "FixedBudget",
    "HistogramAccumulator",
    "InvalidDistribution",
    "InvariantViolation",
    "MalformedRecord",
    "OccupancySimConfig",
    "OccupancySimError",
    "OccupancyTracker",
    "ScaledBudget",
    "SimulationDriver",
    "TenancyDistribution",
    "WeightedSampler",
    "run_parallel",
]
