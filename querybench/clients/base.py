"""
Query Client Interface

Defines the contract every endpoint client satisfies. The orchestrator only
needs a stable name and a way to run the benchmark query bounded to N rows;
it never looks inside the returned rows beyond counting them.
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol, runtime_checkable

# A result row: column name -> loosely typed value. Schema-agnostic.
Row = Dict[str, Any]

ROW_COUNT_PLACEHOLDERS = ("{rowCount}", "@rowCount")


class QueryExecutionError(Exception):
    """Raised by a client when its query fails."""


@runtime_checkable
class QueryClient(Protocol):
    """Capability consumed by the benchmark orchestrator."""

    def get_client_name(self) -> str:
        """Stable name used for reporting and grouping (e.g. "POSTGRES")."""
        ...

    async def execute_query(self, row_count: int) -> List[Row]:
        """Run the benchmark query bounded to ``row_count`` rows."""
        ...


def render_query(template: str, row_count: int) -> str:
    """
    Substitute the row bound into a query template.

    Example: "SELECT * FROM t LIMIT {rowCount}" -> "SELECT * FROM t LIMIT 100"
    """
    query = template
    for placeholder in ROW_COUNT_PLACEHOLDERS:
        query = query.replace(placeholder, str(int(row_count)))
    return query
