"""
Pre-flight checks for a benchmark run.

Validates the matrix configuration and probes each endpoint before any timed
query runs, so a missing login or an unreachable host is reported once up
front instead of as a failure on every attempt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from querybench.clients.base import QueryClient
from querybench.models import BenchmarkConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreflightIssue:
    severity: str  # "error" | "warning"
    title: str
    message: str


@dataclass
class PreflightReport:
    issues: list[PreflightIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(issue.severity == "error" for issue in self.issues)

    def add(self, severity: str, title: str, message: str) -> None:
        self.issues.append(PreflightIssue(severity, title, message))


def check_configuration(
    config: BenchmarkConfig, clients: Sequence[QueryClient]
) -> PreflightReport:
    """Structural checks that need no network access."""
    report = PreflightReport()

    if not clients:
        report.add(
            "error",
            "No Clients",
            "No query clients are enabled. Enable at least one endpoint "
            "(ENABLE_POSTGRES / ENABLE_SNOWFLAKE) with a non-empty query.",
        )
    if not config.iteration_sizes:
        report.add(
            "error",
            "No Iteration Sizes",
            "ITERATION_SIZES is empty; there is nothing to benchmark.",
        )

    names = [c.get_client_name() for c in clients]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        report.add(
            "error",
            "Duplicate Client Names",
            f"Client names must be unique; statistics are grouped by name. "
            f"Duplicated: {', '.join(duplicates)}",
        )

    if config.runs_per_iteration < 3:
        report.add(
            "warning",
            "Few Repetitions",
            f"RUNS_PER_ITERATION={config.runs_per_iteration}: standard deviation "
            f"and tail percentiles are not meaningful with so few samples.",
        )

    return report


async def run_preflight(
    config: BenchmarkConfig, clients: Sequence[QueryClient]
) -> PreflightReport:
    """
    Run configuration checks, then probe every client that can be probed.

    Clients exposing an async ``check_health()`` are called once each; a
    False result or an exception becomes an error issue.

    Returns:
        PreflightReport with all issues found
    """
    report = check_configuration(config, clients)

    for client in clients:
        check_health = getattr(client, "check_health", None)
        if check_health is None:
            continue

        name = client.get_client_name()
        reason = "connectivity check failed"
        try:
            healthy = await check_health()
        except Exception as e:
            healthy = False
            reason = f"connectivity check raised: {e}"
            logger.warning("Health check for %s raised: %s", name, e)

        if healthy:
            logger.info("✓ %s endpoint reachable", name)
        else:
            report.add(
                "error",
                "Endpoint Unreachable",
                f"{name}: {reason}. Verify host, credentials "
                f"and network access before running the benchmark.",
            )

    for issue in report.issues:
        log = logger.error if issue.severity == "error" else logger.warning
        log("Pre-flight %s: %s - %s", issue.severity, issue.title, issue.message)

    return report
