"""
Postgres Query Client

Runs the benchmark query against a Postgres database through an asyncpg pool.
Rows come back as plain dicts so the client works with any table structure.
"""

import logging
from typing import List

from querybench.clients.base import QueryExecutionError, Row, render_query
from querybench.connectors.postgres_pool import PostgresConnectionPool

logger = logging.getLogger(__name__)


class PostgresQueryClient:
    """Query client for Postgres endpoints."""

    def __init__(
        self,
        pool: PostgresConnectionPool,
        query_template: str,
        name: str = "POSTGRES",
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
            records = await self._pool.fetch_all(query)
        except Exception as e:
            raise QueryExecutionError(f"{self._name} query failed: {e}") from e
        return [dict(record.items()) for record in records]

    async def check_health(self) -> bool:
        return await self._pool.is_healthy()

    async def close(self) -> None:
        await self._pool.close()
