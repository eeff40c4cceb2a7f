#!/usr/bin/env python3
"""
Unit tests for BenchmarkOrchestrator.

Exercises matrix ordering, per-attempt failure isolation and timing using
stub query clients (no database connections).
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from querybench.clients.base import QueryClient, QueryExecutionError
from querybench.core.orchestrator import (
    PAYLOAD_BYTES_PER_ROW,
    BenchmarkOrchestrator,
    estimate_payload_size,
)
from querybench.models import BenchmarkConfig

pytestmark = pytest.mark.asyncio


class _StubClient:
    """Returns ``rows_cap`` rows at most; fails on the listed call numbers."""

    def __init__(
        self,
        name: str,
        calls: list,
        *,
        rows_cap: int | None = None,
        fail_on: tuple[int, ...] = (),
    ):
        self._name = name
        self._calls = calls
        self._rows_cap = rows_cap
        self._fail_on = set(fail_on)
        self._count = 0
        self.in_flight = 0
        self.max_in_flight = 0

    def get_client_name(self) -> str:
        return self._name

    async def execute_query(self, row_count: int):
        self._count += 1
        self._calls.append((self._name, row_count))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if self._count in self._fail_on:
                raise QueryExecutionError(f"{self._name} query failed: boom")
            n = row_count if self._rows_cap is None else min(row_count, self._rows_cap)
            return [{"id": i, "value": f"v{i}"} for i in range(n)]
        finally:
            self.in_flight -= 1


class _StepClock:
    """Advances by ``step_ms`` on every read, in nanoseconds."""

    def __init__(self, step_ms: int):
        self._now = 0
        self._step = step_ms * 1_000_000

    def __call__(self) -> int:
        value = self._now
        self._now += self._step
        return value


async def test_stub_satisfies_protocol():
    assert isinstance(_StubClient("A", []), QueryClient)


async def test_matrix_runs_in_nested_order():
    calls: list = []
    a = _StubClient("A", calls)
    b = _StubClient("B", calls)
    orchestrator = BenchmarkOrchestrator.from_values(
        [10, 100], [a, b], 2, clock=_StepClock(7)
    )

    result = await orchestrator.run()

    assert calls == [
        ("A", 10), ("A", 10), ("B", 10), ("B", 10),
        ("A", 100), ("A", 100), ("B", 100), ("B", 100),
    ]
    assert [(r.iteration_size, r.client, r.run_number) for r in result.runs] == [
        (10, "A", 1), (10, "A", 2), (10, "B", 1), (10, "B", 2),
        (100, "A", 1), (100, "A", 2), (100, "B", 1), (100, "B", 2),
    ]
    assert all(r.elapsed_ms == 7 for r in result.runs)
    assert result.success is True
    assert result.error_message == ""
    assert result.end_time is not None
    assert result.end_time >= result.start_time


async def test_failed_attempt_is_isolated():
    calls: list = []
    a = _StubClient("A", calls)
    b = _StubClient("B", calls, fail_on=(2,))
    orchestrator = BenchmarkOrchestrator.from_values([10], [a, b], 3)

    result = await orchestrator.run()

    # All six attempts ran, including B's third after its second failed.
    assert len(calls) == 6
    assert len(result.runs) == 5
    assert [r.run_number for r in result.runs if r.client == "B"] == [1, 3]
    assert result.success is False
    assert result.failed_attempts == 1
    assert result.error_message == "B run 2: B query failed: boom\n"


async def test_every_failure_is_appended():
    calls: list = []
    a = _StubClient("A", calls, fail_on=(1, 2))
    orchestrator = BenchmarkOrchestrator.from_values([10], [a], 2)

    result = await orchestrator.run()

    assert result.runs == []
    assert result.statistics == []
    assert result.error_message.splitlines() == [
        "A run 1: A query failed: boom",
        "A run 2: A query failed: boom",
    ]
    assert result.success is False


async def test_row_count_and_payload_follow_returned_rows():
    calls: list = []
    capped = _StubClient("CAPPED", calls, rows_cap=3)
    orchestrator = BenchmarkOrchestrator.from_values([10], [capped], 1)

    result = await orchestrator.run()

    run = result.runs[0]
    assert run.iteration_size == 10
    assert run.row_count == 3
    assert run.payload_bytes == 3 * PAYLOAD_BYTES_PER_ROW
    assert run.executed_at.tzinfo is not None


async def test_statistics_computed_after_matrix():
    calls: list = []
    b = _StubClient("B", calls)
    a = _StubClient("A", calls)
    orchestrator = BenchmarkOrchestrator.from_values(
        [100, 10], [b, a], 5, clock=_StepClock(250)
    )

    result = await orchestrator.run()

    assert [(s.iteration_size, s.client) for s in result.statistics] == [
        (10, "A"), (10, "B"), (100, "A"), (100, "B"),
    ]
    stat = result.statistics[0]
    assert stat.raw_latencies == [250] * 5
    assert stat.mean == 250
    assert stat.std_dev == 0.0
    assert stat.total_rows_retrieved == 50
    assert stat.throughput_rows_per_second == pytest.approx(50 / 1.25)


async def test_empty_inputs_produce_empty_result():
    calls: list = []
    no_sizes = await BenchmarkOrchestrator.from_values([], [_StubClient("A", calls)], 3).run()
    no_clients = await BenchmarkOrchestrator.from_values([10, 100], [], 3).run()

    for result in (no_sizes, no_clients):
        assert result.runs == []
        assert result.statistics == []
        assert result.success is True
        assert result.error_message == ""
    assert calls == []


async def test_queries_never_overlap():
    calls: list = []
    clients = [_StubClient(name, calls) for name in ("A", "B", "C")]
    config = BenchmarkConfig(iteration_sizes=[1, 2], runs_per_iteration=4)

    await BenchmarkOrchestrator(clients, config).run()

    assert all(c.max_in_flight == 1 for c in clients)


async def test_estimate_payload_size():
    assert estimate_payload_size(0) == 0
    assert estimate_payload_size(4) == 1000


class _MalformedOnceClient:
    """Returns None on the first call, then a single row."""

    def __init__(self):
        self.calls = 0

    def get_client_name(self) -> str:
        return "MALFORMED"

    async def execute_query(self, row_count: int):
        self.calls += 1
        if self.calls == 1:
            return None
        return [{"id": 1}]


async def test_malformed_rows_are_recorded_as_failure():
    client = _MalformedOnceClient()

    result = await BenchmarkOrchestrator.from_values([10], [client], 3).run()

    assert client.calls == 3
    assert [r.run_number for r in result.runs] == [2, 3]
    assert result.success is False
    assert result.failed_attempts == 1
    assert result.error_message.startswith("MALFORMED run 1: ")
