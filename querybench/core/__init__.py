"""
Benchmark core: matrix orchestration, statistics and pre-flight checks.
"""

from querybench.core.orchestrator import (
    PAYLOAD_BYTES_PER_ROW,
    BenchmarkOrchestrator,
    estimate_payload_size,
)
from querybench.core.preflight import PreflightIssue, PreflightReport, run_preflight
from querybench.core.statistics import (
    calculate_iteration_statistics,
    calculate_statistics,
    percentile,
)

__all__ = [
    "PAYLOAD_BYTES_PER_ROW",
    "BenchmarkOrchestrator",
    "estimate_payload_size",
    "PreflightIssue",
    "PreflightReport",
    "run_preflight",
    "calculate_iteration_statistics",
    "calculate_statistics",
    "percentile",
]
