"""
Benchmark Configuration Model

The explicit configuration value handed to the orchestrator and the report
writers. Built once at startup, either from Settings or from a JSON file.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from querybench.config import Settings


class ConfigurationError(Exception):
    """Raised when a benchmark configuration file cannot be used."""


# JSON keys accepted in the nested file layout, mapped onto field names.
_TEST_CONFIGURATION_KEYS = {
    "IterationSizes": "iteration_sizes",
    "RunsPerIteration": "runs_per_iteration",
    "Queries": "queries",
}
_OUTPUT_KEYS = {
    "CsvReportPath": "csv_report_path",
    "StatisticsCsvReportPath": "statistics_csv_report_path",
    "JsonReportPath": "json_report_path",
}


class BenchmarkConfig(BaseModel):
    """Test matrix dimensions and report destinations."""

    iteration_sizes: List[int] = Field(
        default_factory=lambda: [10, 100, 1000, 10000],
        description="Row bounds to test, in execution order",
    )
    runs_per_iteration: int = Field(5, ge=1, description="Repetitions per cell")
    queries: Dict[str, str] = Field(
        default_factory=dict,
        description="Query template overrides keyed by client name",
    )

    csv_report_path: Optional[str] = Field(
        "./results/results.csv", description="Raw runs CSV (None disables)"
    )
    statistics_csv_report_path: Optional[str] = Field(
        "./results/statistics.csv", description="Statistics CSV (None disables)"
    )
    json_report_path: Optional[str] = Field(
        "./results/results.json", description="JSON report (None disables)"
    )

    @field_validator("iteration_sizes")
    @classmethod
    def validate_iteration_sizes(cls, v: List[int]) -> List[int]:
        """Every iteration size must be a positive row bound."""
        bad = [size for size in v if size <= 0]
        if bad:
            raise ValueError(f"Iteration sizes must be positive, got {bad}")
        return v

    @field_validator("queries")
    @classmethod
    def normalize_query_keys(cls, v: Dict[str, str]) -> Dict[str, str]:
        return {str(name).upper(): template for name, template in v.items()}

    @classmethod
    def from_settings(cls, settings: Settings) -> "BenchmarkConfig":
        return cls(
            iteration_sizes=list(settings.ITERATION_SIZES),
            runs_per_iteration=settings.RUNS_PER_ITERATION,
            csv_report_path=settings.CSV_REPORT_PATH or None,
            statistics_csv_report_path=settings.STATISTICS_CSV_REPORT_PATH or None,
            json_report_path=settings.JSON_REPORT_PATH or None,
        )

    @classmethod
    def from_json_file(
        cls, path: str | Path, settings: Optional[Settings] = None
    ) -> "BenchmarkConfig":
        """
        Load a configuration file.

        Two layouts are accepted:

        - flat: keys are the field names of this model;
        - nested: ``{"TestConfiguration": {"IterationSizes": [...],
          "RunsPerIteration": 5, "Queries": {...}}, "Output": {...}}``.

        Values missing from the file fall back to ``settings`` when given,
        otherwise to the model defaults.

        Raises:
            ConfigurationError: If the file is missing, not JSON, or invalid
        """
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigurationError(f"{path} not found") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"{path} is not valid JSON: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigurationError(f"{path} must contain a JSON object")

        data: Dict[str, Any] = {}
        if settings is not None:
            data.update(cls.from_settings(settings).model_dump())
        data.update(_flatten(raw))

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e


def _flatten(raw: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        key: value
        for key, value in raw.items()
        if key in BenchmarkConfig.model_fields
    }
    for section, mapping in (
        ("TestConfiguration", _TEST_CONFIGURATION_KEYS),
        ("Output", _OUTPUT_KEYS),
    ):
        block = raw.get(section)
        if not isinstance(block, dict):
            continue
        for key, field_name in mapping.items():
            if key in block:
                out[field_name] = block[key]
    return out
