#!/usr/bin/env python3
"""
Query Benchmark - Command Line Entry Point

Runs the same query against every enabled endpoint at each iteration size,
repeats each combination, and reports latency statistics.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from querybench.clients import QueryClient, create_clients
from querybench.config import Settings, settings as default_settings
from querybench.core.orchestrator import BenchmarkOrchestrator
from querybench.core.preflight import run_preflight
from querybench.models import BenchmarkConfig
from querybench.reporting import (
    print_console_report,
    write_json_report,
    write_runs_csv,
    write_statistics_csv,
)

logger = logging.getLogger(__name__)


def configure_logging(level: str, log_format: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=log_format,
    )

    # Suppress verbose Snowflake connector internal logging (connection handshake details)
    logging.getLogger("snowflake.connector.connection").setLevel(logging.WARNING)
    logging.getLogger("snowflake.connector.network").setLevel(logging.WARNING)


def _parse_sizes(value: str) -> List[int]:
    try:
        sizes = [int(part) for part in value.split(",") if part.strip()]
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid size list {value!r}: {e}") from e
    if not sizes or any(size <= 0 for size in sizes):
        raise argparse.ArgumentTypeError(
            f"sizes must be a comma-separated list of positive integers, got {value!r}"
        )
    return sizes


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid integer {value!r}") from e
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {parsed}")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Benchmark query latency across data endpoints."
    )
    parser.add_argument(
        "--config",
        help="JSON configuration file (iteration sizes, runs, queries, output paths).",
    )
    parser.add_argument(
        "--sizes",
        type=_parse_sizes,
        help="Comma-separated iteration sizes, e.g. 10,100,1000.",
    )
    parser.add_argument(
        "--runs", type=_positive_int, help="Runs per iteration size and client."
    )
    parser.add_argument(
        "--output-dir",
        help="Write results.csv, statistics.csv and results.json into this directory.",
    )
    parser.add_argument(
        "--no-csv", action="store_true", help="Skip both CSV reports."
    )
    parser.add_argument(
        "--no-json", action="store_true", help="Skip the JSON report."
    )
    parser.add_argument(
        "--skip-preflight",
        action="store_true",
        help="Do not validate configuration and connectivity before running.",
    )
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL).")
    return parser


def build_config(args: argparse.Namespace, settings: Settings) -> BenchmarkConfig:
    """Resolve the benchmark configuration: file or settings, then CLI overrides."""
    if args.config:
        config = BenchmarkConfig.from_json_file(args.config, settings=settings)
    else:
        config = BenchmarkConfig.from_settings(settings)

    updates: dict = {}
    if args.sizes:
        updates["iteration_sizes"] = args.sizes
    if args.runs:
        updates["runs_per_iteration"] = args.runs
    if args.output_dir:
        out = Path(args.output_dir)
        updates["csv_report_path"] = str(out / "results.csv")
        updates["statistics_csv_report_path"] = str(out / "statistics.csv")
        updates["json_report_path"] = str(out / "results.json")
    if args.no_csv:
        updates["csv_report_path"] = None
        updates["statistics_csv_report_path"] = None
    if args.no_json:
        updates["json_report_path"] = None

    if not updates:
        return config
    return BenchmarkConfig.model_validate({**config.model_dump(), **updates})


async def _close_clients(clients: Sequence[QueryClient]) -> None:
    for client in clients:
        close = getattr(client, "close", None)
        if close is None:
            continue
        try:
            await close()
        except Exception as e:
            logger.warning("Failed to close %s: %s", client.get_client_name(), e)


async def run_benchmark(
    config: BenchmarkConfig,
    clients: Sequence[QueryClient],
    *,
    skip_preflight: bool = False,
) -> int:
    """
    Run pre-flight, the benchmark matrix and all configured reports.

    Returns:
        Process exit code: 0 when the matrix ran (even with failed attempts),
        1 when pre-flight failed.
    """
    if not skip_preflight:
        report = await run_preflight(config, clients)
        if not report.ok:
            logger.error("Pre-flight checks failed; not running the benchmark.")
            return 1

    logger.info("=== Query Benchmark ===")
    logger.info(
        "Clients: %s | iteration sizes: %s | runs per iteration: %d",
        ", ".join(c.get_client_name() for c in clients),
        config.iteration_sizes,
        config.runs_per_iteration,
    )

    result = await BenchmarkOrchestrator(clients, config).run()

    print_console_report(result)
    if config.csv_report_path:
        write_runs_csv(result, config.csv_report_path)
    if config.statistics_csv_report_path:
        write_statistics_csv(result, config.statistics_csv_report_path)
    if config.json_report_path:
        write_json_report(result, config.json_report_path)

    if result.success:
        logger.info("=== Test Completed ===")
    else:
        logger.warning(
            "=== Test Completed with %d failed attempt(s) ===", result.failed_attempts
        )
    return 0


async def _main(args: argparse.Namespace, settings: Settings) -> int:
    config = build_config(args, settings)
    clients = create_clients(settings, config.queries)
    try:
        return await run_benchmark(
            config, clients, skip_preflight=args.skip_preflight
        )
    finally:
        await _close_clients(clients)


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    settings = settings or default_settings
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level or settings.LOG_LEVEL, settings.LOG_FORMAT)
    try:
        return asyncio.run(_main(args, settings))
    except KeyboardInterrupt:
        print("[querybench] interrupted", file=sys.stderr)
        return 130
    except Exception:
        logger.exception("Fatal error")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
