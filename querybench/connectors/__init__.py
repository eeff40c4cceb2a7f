"""
Database Connectors

Connection pools backing the benchmark query clients.
"""

from querybench.connectors.postgres_pool import PostgresConnectionPool
from querybench.connectors.snowflake_pool import (
    PoolInitializationError,
    SnowflakeConnectionPool,
)

__all__ = [
    "PoolInitializationError",
    "PostgresConnectionPool",
    "SnowflakeConnectionPool",
]
