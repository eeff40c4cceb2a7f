"""
Console summary report.
"""

from __future__ import annotations

import sys
from typing import TextIO

from querybench.models import TestResult


def render_console_report(result: TestResult) -> str:
    """Render the per-(size, client) summary as plain text."""
    lines = ["", "=== SUMMARY REPORT ===", ""]

    for stat in result.statistics:
        lines.extend(
            [
                "",
                f"{stat.client} - {stat.iteration_size} rows:",
                f"  Raw Latencies (ms): {', '.join(str(v) for v in stat.raw_latencies)}",
                f"  Mean:  {stat.mean}ms",
                f"  StdDev: {stat.std_dev:.2f}",
                f"  Min:   {stat.min}ms",
                f"  Max:   {stat.max}ms",
                f"  P50:   {stat.p50}ms",
                f"  P95:   {stat.p95}ms",
                f"  P99:   {stat.p99}ms",
                f"  Throughput: {stat.throughput_rows_per_second:.2f} rows/sec",
                f"  Total Rows: {stat.total_rows_retrieved}",
                f"  Total Payload: {stat.total_payload_bytes} bytes",
            ]
        )

    if not result.success:
        lines.extend(["", f"{result.failed_attempts} attempt(s) failed:"])
        lines.extend(
            f"  {line}" for line in result.error_message.splitlines() if line
        )

    return "\n".join(lines) + "\n"


def print_console_report(result: TestResult, stream: TextIO | None = None) -> None:
    (stream or sys.stdout).write(render_console_report(result))
