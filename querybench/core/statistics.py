"""
Latency Statistics

Reduces query runs into per-(iteration size, client) statistics.

Precision rules:
- the mean is truncated to an integer millisecond;
- the standard deviation is a population deviation centred on that
  truncated mean;
- percentiles use the nearest-rank method, rounding the rank up, with no
  interpolation between samples.
"""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Iterable, Sequence

from querybench.models import IterationStatistics, QueryRun


def percentile(sorted_values: Sequence[int], pct: float) -> int:
    """
    Nearest-rank percentile of an ascending sequence.

    Args:
        sorted_values: Samples sorted ascending
        pct: Percentile in [0, 100]

    Returns:
        The sample at index ceil(pct/100 * n) - 1, clamped to the sequence;
        0 for an empty sequence.
    """
    if not sorted_values:
        return 0
    n = len(sorted_values)
    idx = math.ceil((pct / 100.0) * n) - 1
    idx = min(max(0, idx), n - 1)
    return sorted_values[idx]


def truncated_mean(values: Sequence[int]) -> int:
    if not values:
        return 0
    return int(sum(values) / len(values))


def population_std_dev(values: Sequence[int], center: int) -> float:
    """Population standard deviation around ``center``; 0 below two samples."""
    if len(values) < 2:
        return 0.0
    variance = sum((x - center) ** 2 for x in values) / len(values)
    return math.sqrt(variance)


def throughput_rows_per_second(total_rows: int, total_elapsed_ms: int) -> float:
    total_seconds = total_elapsed_ms / 1000.0
    if total_seconds <= 0:
        return 0.0
    return total_rows / total_seconds


def calculate_iteration_statistics(
    iteration_size: int, client: str, runs: Iterable[QueryRun]
) -> IterationStatistics:
    """
    Compute statistics for one group of runs.

    An empty group yields zero for every statistic.
    """
    runs = list(runs)
    latencies = sorted(r.elapsed_ms for r in runs)

    if not latencies:
        return IterationStatistics(iteration_size=iteration_size, client=client)

    mean = truncated_mean(latencies)
    total_rows = sum(r.row_count for r in runs)

    return IterationStatistics(
        iteration_size=iteration_size,
        client=client,
        raw_latencies=latencies,
        mean=mean,
        std_dev=population_std_dev(latencies, mean),
        min=latencies[0],
        max=latencies[-1],
        p50=percentile(latencies, 50),
        p95=percentile(latencies, 95),
        p99=percentile(latencies, 99),
        throughput_rows_per_second=throughput_rows_per_second(
            total_rows, sum(latencies)
        ),
        total_rows_retrieved=total_rows,
        total_payload_bytes=sum(r.payload_bytes for r in runs),
    )


def calculate_statistics(runs: Iterable[QueryRun]) -> list[IterationStatistics]:
    """
    Group runs by (iteration size, client) and compute statistics per group.

    Returns:
        Statistics ordered by iteration size, then client name.
    """
    groups: dict[tuple[int, str], list[QueryRun]] = defaultdict(list)
    for run in runs:
        groups[(run.iteration_size, run.client)].append(run)

    return [
        calculate_iteration_statistics(size, client, group)
        for (size, client), group in sorted(groups.items(), key=lambda kv: kv[0])
    ]
