"""
Data Models

Pydantic models for benchmark configuration, query runs and results.
"""

from querybench.models.benchmark_config import BenchmarkConfig, ConfigurationError
from querybench.models.test_result import IterationStatistics, QueryRun, TestResult

__all__ = [
    "BenchmarkConfig",
    "ConfigurationError",
    "IterationStatistics",
    "QueryRun",
    "TestResult",
]
