"""
Configuration and parameter definitions for occupancy simulation
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .sampler import TenancyDistribution


# ============================================================================
# SAMPLE BUDGET POLICIES
# ============================================================================


class FixedBudget:
    """Always issue the same number of samples"""

    def __init__(self, samples: int):
        if samples < 0:
            raise ValueError(f"sample budget must be non-negative, got {samples}")
        self.samples = samples

    def samples_for(self, distribution: TenancyDistribution) -> int:
        return self.samples

    def __repr__(self):
        return f"FixedBudget(samples={self.samples})"


class ScaledBudget:
    """
    Scale samples to the largest tenancy.

    Distributions with long tenancies mix slowly and need proportionally more
    samples: samples = max(minimum, largest_duration * multiplier).
    """

    def __init__(self, multiplier: int = 100_000, minimum: int = 0):
        if multiplier < 0 or minimum < 0:
            raise ValueError("multiplier and minimum must be non-negative")
        self.multiplier = multiplier
        self.minimum = minimum

    def samples_for(self, distribution: TenancyDistribution) -> int:
        return max(self.minimum, distribution.max_duration * self.multiplier)

    def __repr__(self):
        return f"ScaledBudget(multiplier={self.multiplier}, minimum={self.minimum})"


# ============================================================================
# INPUT / OUTPUT PARAMETERS
# ============================================================================

@dataclass
class InputConfig:
    """Parameters for reading the tenancy distribution"""

    delimiter: str = ','
    has_header: bool = True  # First row is a header and is skipped


@dataclass
class OutputConfig:
    """Parameters for writing the occupancy table"""

    delimiter: str = ','
    percentage: bool = False  # Probability as % instead of fraction
    header: Tuple[str, str] = None  # Default: ('DCS', 'probability')
    include_summary: bool = True  # Trailing "sum: N" line

    # Directory for histogram.csv / metrics.json (None = don't save)
    results_dir: Optional[str] = None

    def __post_init__(self):
        if self.header is None:
            self.header = ('DCS', 'probability')


# ============================================================================
# SAMPLE BUDGET PARAMETERS
# ============================================================================

@dataclass
class BudgetConfig:
    """Parameters for choosing how many samples to record"""

    policy: str = 'scaled'  # 'fixed' or 'scaled'

    # Fixed policy
    samples: Optional[int] = None

    # Scaled policy: largest duration × multiplier
    multiplier: int = 100_000
    minimum: int = 0

    def __post_init__(self):
        if self.policy not in ('fixed', 'scaled'):
            raise ValueError(f"unknown budget policy {self.policy!r}")
        if self.policy == 'fixed' and self.samples is None:
            raise ValueError("fixed budget policy requires samples")

    def build(self):
        if self.policy == 'fixed':
            return FixedBudget(self.samples)
        return ScaledBudget(self.multiplier, self.minimum)


# ============================================================================
# SIMULATION PARAMETERS
# ============================================================================

@dataclass
class SimulationConfig:
    """Parameters for the admission loop"""

    # Random seed (None = fresh OS entropy)
    seed: Optional[int] = None

    # Unrecorded admissions before the first recorded sample
    warmup_admissions: int = 1

    # Further unrecorded admissions to discard transient state
    burn_in: int = 0

    # Worker processes; each runs its own tracker and histogram
    workers: int = 1

    def __post_init__(self):
        if self.warmup_admissions < 0 or self.burn_in < 0:
            raise ValueError("warmup_admissions and burn_in must be non-negative")
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")


@dataclass
class ConvergenceConfig:
    """Parameters for running until the distribution stabilizes"""

    enabled: bool = False

    # Stop once no level's probability moves more than delta between rounds
    delta: float = 0.005

    # Samples per round (None = largest duration)
    round_samples: Optional[int] = None

    max_rounds: int = 1000

    def __post_init__(self):
        if self.delta <= 0:
            raise ValueError(f"delta must be positive, got {self.delta}")
        if self.max_rounds < 1:
            raise ValueError(f"max_rounds must be at least 1, got {self.max_rounds}")


# ============================================================================
# ANALYSIS PARAMETERS
# ============================================================================

@dataclass
class AnalysisConfig:
    """Parameters for post-run metrics"""

    # Cache size to test for overflow (None = skip)
    capacity: Optional[int] = None

    # Occupancy quantiles to report as capacities
    quantiles: Tuple[float, ...] = None  # Default: (0.5, 0.95, 0.99)

    # Accepted relative error between observed and Little's-law mean
    little_tolerance: float = 0.05

    def __post_init__(self):
        if self.quantiles is None:
            self.quantiles = (0.5, 0.95, 0.99)


# ============================================================================
# GLOBAL CONFIGURATION
# ============================================================================

class OccupancySimConfig:
    """Master configuration for an occupancy simulation run"""

    def __init__(self, input: Optional[InputConfig] = None,
                 output: Optional[OutputConfig] = None,
                 budget: Optional[BudgetConfig] = None,
                 simulation: Optional[SimulationConfig] = None,
                 convergence: Optional[ConvergenceConfig] = None,
                 analysis: Optional[AnalysisConfig] = None):
        self.input = input or InputConfig()
        self.output = output or OutputConfig()
        self.budget = budget or BudgetConfig()
        self.simulation = simulation or SimulationConfig()
        self.convergence = convergence or ConvergenceConfig()
        self.analysis = analysis or AnalysisConfig()

    def as_dict(self):
        """Flat parameter view, stored alongside saved metrics"""
        return {
            'budget_policy': self.budget.policy,
            'samples': self.budget.samples,
            'multiplier': self.budget.multiplier,
            'minimum': self.budget.minimum,
            'seed': self.simulation.seed,
            'warmup_admissions': self.simulation.warmup_admissions,
            'burn_in': self.simulation.burn_in,
            'workers': self.simulation.workers,
            'converge': self.convergence.enabled,
            'delta': self.convergence.delta,
            'round_samples': self.convergence.round_samples,
            'max_rounds': self.convergence.max_rounds,
            'capacity': self.analysis.capacity,
            'percentage': self.output.percentage,
        }
