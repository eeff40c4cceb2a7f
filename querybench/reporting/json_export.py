"""
JSON exporter for the complete benchmark result.
"""

from __future__ import annotations

import logging
from pathlib import Path

from querybench.models import TestResult

logger = logging.getLogger(__name__)


def write_json_report(result: TestResult, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(result.model_dump_json(indent=2), encoding="utf-8")
    logger.info("JSON report saved to: %s", path)
    return path
