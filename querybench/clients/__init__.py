"""
Query Clients

Factory and exports for the endpoint clients exercised by the benchmark.
"""

import logging
from typing import Dict, List, Optional

from querybench.clients.base import (
    QueryClient,
    QueryExecutionError,
    Row,
    render_query,
)
from querybench.clients.postgres import PostgresQueryClient
from querybench.clients.snowflake import SnowflakeQueryClient
from querybench.config import Settings
from querybench.connectors import postgres_pool, snowflake_pool

logger = logging.getLogger(__name__)


def create_clients(
    settings: Settings, queries: Optional[Dict[str, str]] = None
) -> List[QueryClient]:
    """
    Build the enabled query clients, Postgres first, then Snowflake.

    Args:
        settings: Endpoint and feature flag settings
        queries: Optional query template overrides keyed by client name

    Returns:
        Clients in benchmark order. A client whose query template is empty is
        skipped with a warning.
    """
    queries = {k.upper(): v for k, v in (queries or {}).items()}
    clients: List[QueryClient] = []

    if settings.ENABLE_POSTGRES:
        template = queries.get("POSTGRES", settings.POSTGRES_QUERY)
        if template.strip():
            clients.append(
                PostgresQueryClient(
                    postgres_pool.create_pool_from_settings(settings), template
                )
            )
        else:
            logger.warning("POSTGRES query template is empty; skipping client")

    if settings.ENABLE_SNOWFLAKE:
        template = queries.get("SNOWFLAKE", settings.SNOWFLAKE_QUERY)
        if template.strip():
            clients.append(
                SnowflakeQueryClient(
                    snowflake_pool.create_pool_from_settings(settings), template
                )
            )
        else:
            logger.warning("SNOWFLAKE query template is empty; skipping client")

    return clients


__all__ = [
    "QueryClient",
    "QueryExecutionError",
    "Row",
    "render_query",
    "PostgresQueryClient",
    "SnowflakeQueryClient",
    "create_clients",
]
