"""
Delimited-table I/O: tenancy distributions in, occupancy tables out.

Input rows are (integer duration, real weight). Output rows are
(occupancy level, probability) for every level from 0 to the highest
observed, followed by a `sum: N` summary line.
"""

import csv
import logging
import sys
from contextlib import contextmanager
from typing import IO, Iterator, Optional, Sequence

from .errors import MalformedRecord
from .histogram import HistogramAccumulator
from .sampler import TenancyDistribution

logger = logging.getLogger(__name__)

STDIO = '-'


@contextmanager
def open_input(path: Optional[str]) -> Iterator[IO[str]]:
    """Yield a text stream for `path`, or stdin for None / '-'."""
    if path is None or path == STDIO:
        yield sys.stdin
    else:
        with open(path, 'r', newline='') as f:
            yield f


@contextmanager
def open_output(path: Optional[str]) -> Iterator[IO[str]]:
    """Yield a text stream for `path`, or stdout for None / '-'."""
    if path is None or path == STDIO:
        yield sys.stdout
        sys.stdout.flush()
    else:
        with open(path, 'w', newline='') as f:
            yield f


def read_distribution(stream: IO[str], delimiter: str = ',',
                      has_header: bool = True) -> TenancyDistribution:
    """
    Parse a tenancy distribution from a delimited stream.

    Args:
        stream: Text stream with one (duration, weight) row per bucket
        delimiter: Field delimiter
        has_header: Skip the first non-blank row

    Returns:
        TenancyDistribution in row order

    Raises:
        MalformedRecord: a row is not exactly (integer, real)
        InvalidDistribution: no rows, all-zero or negative weights
    """
    reader = csv.reader(stream, delimiter=delimiter)
    durations = []
    weights = []
    header_pending = has_header

    for row in reader:
        fields = [f.strip() for f in row]
        if not any(fields):
            continue
        if header_pending:
            header_pending = False
            logger.debug("skipping header %r", fields)
            continue

        line = reader.line_num
        if len(fields) != 2:
            raise MalformedRecord(f"expected 2 fields, got {len(fields)}", line, row)
        try:
            duration = int(fields[0])
        except ValueError:
            raise MalformedRecord(f"duration {fields[0]!r} is not an integer", line, row) from None
        try:
            weight = float(fields[1])
        except ValueError:
            raise MalformedRecord(f"weight {fields[1]!r} is not a number", line, row) from None

        durations.append(duration)
        weights.append(weight)

    distribution = TenancyDistribution(tuple(durations), tuple(weights))
    logger.info("loaded %d tenancy rows, largest duration %d",
                len(distribution), distribution.max_duration)
    return distribution


def load_distribution(path: Optional[str], delimiter: str = ',',
                      has_header: bool = True) -> TenancyDistribution:
    """Read a distribution from a file path, or stdin for None / '-'."""
    with open_input(path) as stream:
        return read_distribution(stream, delimiter=delimiter, has_header=has_header)


def format_probability(value: float, percentage: bool = False) -> str:
    if percentage:
        return f"{value:.4f}%"
    return repr(float(value))


def write_histogram(histogram: HistogramAccumulator, stream: IO[str],
                    delimiter: str = ',', percentage: bool = False,
                    header: Optional[Sequence[str]] = ('DCS', 'probability'),
                    include_summary: bool = True,
                    total_samples: Optional[int] = None):
    """
    Write the occupancy table.

    Args:
        histogram: Accumulated histogram
        stream: Destination text stream
        delimiter: Field delimiter
        percentage: Write probabilities as percentages
        header: Column names (None = no header row)
        include_summary: Append `sum: N`
        total_samples: Normalization denominator (default: recorded total)
    """
    writer = csv.writer(stream, delimiter=delimiter, lineterminator='\n')
    if header is not None:
        writer.writerow(list(header))
    for level, probability in histogram.normalize(total_samples, percentage=percentage):
        writer.writerow([level, format_probability(probability, percentage)])
    if include_summary:
        total = histogram.total() if total_samples is None else total_samples
        stream.write(f"sum: {total}\n")


def save_histogram(histogram: HistogramAccumulator, path: str, delimiter: str = ',',
                   percentage: bool = False):
    """Write the occupancy table to `path` (no summary line)."""
    with open_output(path) as f:
        write_histogram(histogram, f, delimiter=delimiter, percentage=percentage,
                        include_summary=False)
