"""
Command-line entry point.

Reads a tenancy distribution (duration,weight rows) and writes the simulated
occupancy distribution as DCS,probability rows.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import (
    AnalysisConfig,
    BudgetConfig,
    ConvergenceConfig,
    InputConfig,
    OccupancySimConfig,
    OutputConfig,
    SimulationConfig,
)
from .errors import OccupancySimError
from .runner import SimulationRunner

logger = logging.getLogger("occupancy_sim")


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}")
    return number


def _positive_int(value: str) -> int:
    number = _non_negative_int(value)
    if number == 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return number


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number, got {value!r}") from None
    if not number > 0:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="occupancy-sim",
        description=(
            "Estimate the steady-state distribution of live cache entries "
            "from a tenancy distribution by Monte Carlo simulation."
        ),
    )
    parser.add_argument("input", nargs="?", default="-",
                        help="duration,weight CSV (default: stdin)")
    parser.add_argument("-o", "--output", default="-",
                        help="occupancy table destination (default: stdout)")

    budget = parser.add_mutually_exclusive_group()
    budget.add_argument("--samples", type=_non_negative_int,
                        help="record exactly this many samples")
    budget.add_argument("--multiplier", type=_non_negative_int,
                        help="samples = largest duration x multiplier (default: 100000)")
    parser.add_argument("--minimum", type=_non_negative_int, default=0,
                        help="lower bound for the scaled sample budget")

    parser.add_argument("--seed", type=int, default=None, help="RNG seed")
    parser.add_argument("--warmup", type=_non_negative_int, default=1,
                        help="unrecorded admissions before recording (default: %(default)s)")
    parser.add_argument("--burn-in", type=_non_negative_int, default=0,
                        help="extra unrecorded admissions to discard transients")
    parser.add_argument("--workers", type=_positive_int, default=1,
                        help="worker processes, each with its own tracker")

    parser.add_argument("--converge", type=_positive_float, metavar="DELTA",
                        help="sample in rounds until no level moves more than DELTA")
    parser.add_argument("--round-samples", type=_positive_int,
                        help="samples per convergence round (default: largest duration)")
    parser.add_argument("--max-rounds", type=_positive_int, default=1000,
                        help="cap on convergence rounds (default: %(default)s)")

    parser.add_argument("--capacity", type=_non_negative_int,
                        help="cache size to test for overflow")
    parser.add_argument("--percentage", action="store_true",
                        help="write probabilities as percentages")
    parser.add_argument("--delimiter", default=",", help="field delimiter")
    parser.add_argument("--no-header", action="store_true",
                        help="input has no header row")
    parser.add_argument("--results-dir", help="also save histogram.csv and metrics.json here")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="print a summary report to stderr")
    return parser


def config_from_args(args: argparse.Namespace) -> OccupancySimConfig:
    if args.samples is not None:
        budget = BudgetConfig(policy='fixed', samples=args.samples)
    else:
        budget = BudgetConfig(policy='scaled', minimum=args.minimum)
        if args.multiplier is not None:
            budget.multiplier = args.multiplier

    return OccupancySimConfig(
        input=InputConfig(delimiter=args.delimiter, has_header=not args.no_header),
        output=OutputConfig(delimiter=args.delimiter, percentage=args.percentage,
                            results_dir=args.results_dir),
        budget=budget,
        simulation=SimulationConfig(seed=args.seed, warmup_admissions=args.warmup,
                                    burn_in=args.burn_in, workers=args.workers),
        convergence=ConvergenceConfig(
            enabled=args.converge is not None,
            delta=args.converge if args.converge is not None else 0.005,
            round_samples=args.round_samples,
            max_rounds=args.max_rounds,
        ),
        analysis=AnalysisConfig(capacity=args.capacity),
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.converge is not None:
        # A convergence study sets its own sample count and runs in one process.
        for flag, value in (("--samples", args.samples), ("--multiplier", args.multiplier)):
            if value is not None:
                parser.error(f"{flag} cannot be combined with --converge")
        if args.workers > 1:
            parser.error("--workers cannot be combined with --converge")

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    runner = SimulationRunner(config_from_args(args), verbose=args.verbose)
    try:
        runner.run(args.input, args.output)
    except OccupancySimError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
