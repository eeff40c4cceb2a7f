"""
CSV exporters for raw runs and aggregated statistics.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from querybench.models import TestResult

logger = logging.getLogger(__name__)

RUN_COLUMNS = [
    "IterationSize",
    "RunNumber",
    "Client",
    "ElapsedMilliseconds",
    "RowCount",
    "PayloadBytes",
    "ExecutedAt",
]

STATISTICS_COLUMNS = [
    "IterationSize",
    "Client",
    "MeanMs",
    "StdDevMs",
    "MinMs",
    "MaxMs",
    "P50Ms",
    "P95Ms",
    "P99Ms",
    "ThroughputRowsPerSecond",
    "TotalRowsRetrieved",
    "TotalPayloadBytes",
    "RawLatenciesMs",
]


def _open_for_write(path: str | Path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path, path.open("w", newline="", encoding="utf-8")


def write_runs_csv(result: TestResult, path: str | Path) -> Path:
    """Write one row per successful run, in execution order."""
    path, f = _open_for_write(path)
    with f:
        writer = csv.writer(f)
        writer.writerow(RUN_COLUMNS)
        for run in result.runs:
            writer.writerow(
                [
                    run.iteration_size,
                    run.run_number,
                    run.client,
                    run.elapsed_ms,
                    run.row_count,
                    run.payload_bytes,
                    run.executed_at.isoformat(),
                ]
            )

    logger.info("CSV report saved to: %s", path)
    return path


def write_statistics_csv(result: TestResult, path: str | Path) -> Path:
    """Write one row per (iteration size, client) group."""
    path, f = _open_for_write(path)
    with f:
        writer = csv.writer(f)
        writer.writerow(STATISTICS_COLUMNS)
        for stat in result.statistics:
            writer.writerow(
                [
                    stat.iteration_size,
                    stat.client,
                    stat.mean,
                    stat.std_dev,
                    stat.min,
                    stat.max,
                    stat.p50,
                    stat.p95,
                    stat.p99,
                    stat.throughput_rows_per_second,
                    stat.total_rows_retrieved,
                    stat.total_payload_bytes,
                    ";".join(str(v) for v in stat.raw_latencies),
                ]
            )

    logger.info("Statistics CSV saved to: %s", path)
    return path
