"""
Main simulation runner orchestrating load -> simulate -> analyze -> write.
"""

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from .config import OccupancySimConfig
from .convergence import ConvergenceStudy
from .driver import SimulationDriver, run_parallel
from .histogram import HistogramAccumulator
from .metrics import MetricsCalculator, generate_summary_report
from .sampler import TenancyDistribution, WeightedSampler
from .tables import load_distribution, open_output, save_histogram, write_histogram

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Everything a single run produced"""

    distribution: TenancyDistribution
    histogram: HistogramAccumulator
    samples: int
    metrics: Dict


class SimulationRunner:
    """Orchestrates one occupancy simulation from configuration."""

    def __init__(self, config: Optional[OccupancySimConfig] = None,
                 verbose: bool = False, report_stream=None):
        self.config = config or OccupancySimConfig()
        self.verbose = verbose
        # Reports go to stderr so a stdout table stays clean.
        self.report_stream = report_stream or sys.stderr

    def run(self, input_path: Optional[str] = None,
            output_path: Optional[str] = None) -> RunResult:
        """
        Load the distribution, simulate, and write the occupancy table.

        Args:
            input_path: Distribution file ('-' or None for stdin)
            output_path: Table destination ('-' or None for stdout)

        Returns:
            RunResult with histogram and metrics
        """
        cfg = self.config
        distribution = load_distribution(input_path, delimiter=cfg.input.delimiter,
                                         has_header=cfg.input.has_header)
        result = self.simulate(distribution)

        with open_output(output_path) as stream:
            write_histogram(
                result.histogram, stream,
                delimiter=cfg.output.delimiter,
                percentage=cfg.output.percentage,
                header=cfg.output.header,
                include_summary=cfg.output.include_summary,
            )

        if cfg.output.results_dir:
            self._save_results(result)

        return result

    def simulate(self, distribution: TenancyDistribution) -> RunResult:
        """Run the configured simulation and compute metrics."""
        cfg = self.config
        sim = cfg.simulation

        if self.verbose:
            print(f"\n{'='*60}", file=self.report_stream)
            print(f"Tenancy rows: {len(distribution)}, largest duration: "
                  f"{distribution.max_duration}, mean tenancy: "
                  f"{distribution.expected_duration:.4f}", file=self.report_stream)
            print(f"{'='*60}", file=self.report_stream)

        extra = {}
        if cfg.convergence.enabled:
            if cfg.budget.policy == 'fixed':
                logger.warning("convergence study ignores the fixed budget of %d samples",
                               cfg.budget.samples)
            if sim.workers > 1:
                logger.warning("convergence study runs in one process; ignoring workers=%d",
                               sim.workers)
            study = ConvergenceStudy(
                SimulationDriver(sim.warmup_admissions, sim.burn_in),
                verbose=self.verbose, stream=self.report_stream,
            )
            outcome = study.run(
                WeightedSampler(distribution, sim.seed),
                delta=cfg.convergence.delta,
                round_samples=cfg.convergence.round_samples,
                max_rounds=cfg.convergence.max_rounds,
            )
            histogram = outcome.histogram
            samples = histogram.total()
            extra = {
                'converged': outcome.converged,
                'rounds': outcome.rounds,
                'final_difference': outcome.difference,
            }
        else:
            budget = cfg.budget.build()
            samples = budget.samples_for(distribution)
            logger.info("sample budget %d (%r)", samples, budget)

            if sim.workers > 1:
                histogram = run_parallel(
                    distribution, samples, sim.workers, seed=sim.seed,
                    warmup_admissions=sim.warmup_admissions, burn_in=sim.burn_in,
                )
            else:
                driver = SimulationDriver(sim.warmup_admissions, sim.burn_in)
                histogram = driver.run(WeightedSampler(distribution, sim.seed),
                                       total_samples=samples)

        calculator = MetricsCalculator(cfg.analysis.quantiles, cfg.analysis.little_tolerance)
        metrics = calculator.calculate_all(histogram, distribution, cfg.analysis.capacity)
        metrics.update(extra)
        metrics['params'] = cfg.as_dict()

        if self.verbose:
            print(generate_summary_report(metrics), file=self.report_stream)

        return RunResult(distribution, histogram, samples, metrics)

    def _save_results(self, result: RunResult):
        """Save histogram CSV and metrics JSON."""
        out_dir = Path(self.config.output.results_dir)
        out_dir.mkdir(exist_ok=True, parents=True)

        csv_path = out_dir / "histogram.csv"
        save_histogram(result.histogram, str(csv_path),
                       delimiter=self.config.output.delimiter,
                       percentage=self.config.output.percentage)

        json_path = out_dir / "metrics.json"
        with open(json_path, 'w') as f:
            json.dump(result.metrics, f, indent=2, default=str)

        logger.info("saved results to %s", out_dir)
