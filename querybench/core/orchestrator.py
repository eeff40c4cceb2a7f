"""
Benchmark Orchestrator

Walks the test matrix (iteration size x client x repetition) and turns every
query attempt into a QueryRun.

Execution is strictly sequential: one query in flight at a time, so cells do
not compete for network or warehouse capacity and their latencies stay
comparable. A failed attempt is recorded in the result's error message and the
matrix moves on; nothing short of a process abort stops a run.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Callable, Sequence

from querybench.clients.base import QueryClient
from querybench.core.statistics import calculate_statistics
from querybench.models import BenchmarkConfig, QueryRun, TestResult

logger = logging.getLogger(__name__)

# Rough per-row transfer estimate; not a measured wire size.
PAYLOAD_BYTES_PER_ROW = 250


def estimate_payload_size(row_count: int) -> int:
    return row_count * PAYLOAD_BYTES_PER_ROW


class BenchmarkOrchestrator:
    """
    Runs every cell of the benchmark matrix and produces a TestResult.

    Manages:
    - Matrix iteration in configured order
    - Per-attempt timing and failure isolation
    - Statistics calculation once the matrix completes
    """

    def __init__(
        self,
        clients: Sequence[QueryClient],
        config: BenchmarkConfig,
        *,
        clock: Callable[[], int] = time.perf_counter_ns,
    ):
        """
        Args:
            clients: Query clients, in execution order
            config: Iteration sizes and repetition count
            clock: Monotonic clock in nanoseconds used to time each attempt
        """
        self.clients = list(clients)
        self.config = config
        self._clock = clock

    @classmethod
    def from_values(
        cls,
        scales: Sequence[int],
        clients: Sequence[QueryClient],
        repetitions: int,
        **kwargs,
    ) -> "BenchmarkOrchestrator":
        config = BenchmarkConfig(
            iteration_sizes=list(scales), runs_per_iteration=repetitions
        )
        return cls(clients, config, **kwargs)

    async def run(self) -> TestResult:
        """
        Execute the full matrix.

        Returns:
            TestResult with runs in execution order, statistics ordered by
            iteration size then client, and success=False if any attempt failed.
        """
        result = TestResult(start_time=datetime.now(UTC))
        runs_per_iteration = self.config.runs_per_iteration

        for size in self.config.iteration_sizes:
            logger.info(f"--- Testing with {size} rows ---")

            for client in self.clients:
                client_name = client.get_client_name()
                logger.info(f"  Running {client_name}...")

                for run_number in range(1, runs_per_iteration + 1):
                    await self._execute_attempt(result, client, client_name, size, run_number)

        result.end_time = datetime.now(UTC)
        result.success = not result.error_message
        result.statistics = calculate_statistics(result.runs)

        logger.info(
            "Benchmark finished: %d runs recorded, %d failed attempts, %.1fs elapsed",
            len(result.runs),
            result.failed_attempts,
            result.duration_seconds or 0.0,
        )
        return result

    async def _execute_attempt(
        self,
        result: TestResult,
        client: QueryClient,
        client_name: str,
        size: int,
        run_number: int,
    ) -> None:
        start = self._clock()
        try:
            rows = await client.execute_query(size)
            elapsed_ms = (self._clock() - start) // 1_000_000
            row_count = len(rows)

            result.add_run(
                QueryRun(
                    iteration_size=size,
                    run_number=run_number,
                    client=client_name,
                    elapsed_ms=elapsed_ms,
                    row_count=row_count,
                    payload_bytes=estimate_payload_size(row_count),
                    executed_at=datetime.now(UTC),
                )
            )
        except Exception as e:
            logger.warning(f"    Run {run_number}: FAILED - {e}")
            result.add_failure(client_name, run_number, e)
            return

        logger.info(f"    Run {run_number}: {elapsed_ms}ms, {row_count} rows")
