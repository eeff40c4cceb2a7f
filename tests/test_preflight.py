#!/usr/bin/env python3
"""
Unit tests for benchmark pre-flight checks.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from querybench.core.preflight import check_configuration, run_preflight
from querybench.models import BenchmarkConfig

pytestmark = pytest.mark.asyncio


class _NamedClient:
    def __init__(self, name: str):
        self._name = name

    def get_client_name(self) -> str:
        return self._name

    async def execute_query(self, row_count: int):
        return []


class _ProbedClient(_NamedClient):
    def __init__(self, name: str, healthy=True, error: Exception | None = None):
        super().__init__(name)
        self._healthy = healthy
        self._error = error
        self.probes = 0

    async def check_health(self) -> bool:
        self.probes += 1
        if self._error is not None:
            raise self._error
        return self._healthy


def _titles(report):
    return [(issue.severity, issue.title) for issue in report.issues]


async def test_valid_configuration_is_ok():
    report = await run_preflight(BenchmarkConfig(), [_ProbedClient("POSTGRES")])

    assert report.ok is True
    assert report.issues == []


async def test_no_clients_and_no_sizes():
    report = check_configuration(BenchmarkConfig(iteration_sizes=[]), [])

    assert report.ok is False
    assert _titles(report) == [
        ("error", "No Clients"),
        ("error", "No Iteration Sizes"),
    ]


async def test_duplicate_client_names():
    clients = [_NamedClient("A"), _NamedClient("B"), _NamedClient("A")]
    report = check_configuration(BenchmarkConfig(), clients)

    assert report.ok is False
    assert _titles(report) == [("error", "Duplicate Client Names")]
    assert "Duplicated: A" in report.issues[0].message


async def test_few_repetitions_is_only_a_warning():
    report = check_configuration(
        BenchmarkConfig(runs_per_iteration=2), [_NamedClient("A")]
    )

    assert report.ok is True
    assert _titles(report) == [("warning", "Few Repetitions")]


async def test_unhealthy_endpoint_is_an_error():
    healthy = _ProbedClient("POSTGRES")
    unhealthy = _ProbedClient("SNOWFLAKE", healthy=False)

    report = await run_preflight(BenchmarkConfig(), [healthy, unhealthy])

    assert report.ok is False
    assert _titles(report) == [("error", "Endpoint Unreachable")]
    assert report.issues[0].message.startswith("SNOWFLAKE:")
    assert healthy.probes == unhealthy.probes == 1


async def test_health_check_exception_counts_as_unreachable():
    client = _ProbedClient("SNOWFLAKE", error=RuntimeError("login failed"))

    report = await run_preflight(BenchmarkConfig(), [client])

    assert report.ok is False
    assert _titles(report) == [("error", "Endpoint Unreachable")]
    assert "login failed" in report.issues[0].message


async def test_clients_without_probe_are_skipped():
    report = await run_preflight(BenchmarkConfig(), [_NamedClient("KUSTO")])

    assert report.ok is True
