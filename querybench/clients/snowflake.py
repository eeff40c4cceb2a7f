"""
Snowflake Query Client

Runs the benchmark query against a Snowflake warehouse. Result tuples are
zipped with the cursor's column names into dict rows, so no per-table schema
is needed.
"""

import logging
from typing import List

from querybench.clients.base import QueryExecutionError, Row, render_query
from querybench.connectors.snowflake_pool import SnowflakeConnectionPool

logger = logging.getLogger(__name__)


class SnowflakeQueryClient:
    """Query client for Snowflake endpoints."""

    def __init__(
        self,
        pool: SnowflakeConnectionPool,
        query_template: str,
        name: str = "SNOWFLAKE",
    ):
        self._pool = pool
        self._query_template = query_template
        self._name = name

    def get_client_name(self) -> str:
        return self._name

    async def execute_query(self, row_count: int) -> List[Row]:
        query = render_query(self._query_template, row_count)
        logger.debug("[%s] %s", self._name, query)
        try:
            columns, results = await self._pool.execute_query_with_columns(query)
        except Exception as e:
            raise QueryExecutionError(f"{self._name} query failed: {e}") from e
        return [dict(zip(columns, values)) for values in results]

    async def check_health(self) -> bool:
        return await self._pool.is_healthy()

    async def close(self) -> None:
        await self._pool.close_all()
