"""
Postgres Connection Pool Manager

Manages async connection pooling for Postgres with health checks and retry logic.
"""

import asyncio
import logging
import random
import socket
from contextlib import asynccontextmanager
from typing import Any, List, Optional

import asyncpg
from asyncpg import Pool
from asyncpg.exceptions import (
    CannotConnectNowError,
    TooManyConnectionsError,
)

from querybench.config import Settings

logger = logging.getLogger(__name__)


class PostgresConnectionPool:
    """
    Async connection pool for Postgres with health monitoring and retry logic.
    """

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        min_size: int = 1,
        max_size: int = 1,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        command_timeout: float = 300.0,
        pool_name: str = "benchmark",
    ):
        """
        Initialize Postgres connection pool.

        Args:
            host: Database host
            port: Database port
            database: Database name
            user: Username
            password: Password
            min_size: Minimum pool size
            max_size: Maximum pool size
            max_retries: Max retry attempts for transient failures
            retry_delay: Delay between retries in seconds
            command_timeout: Command timeout in seconds
            pool_name: Descriptive name for logging
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.min_size = min_size
        self.max_size = max_size
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.command_timeout = command_timeout
        self.pool_name = pool_name

        self._pool: Optional[Pool] = None
        self._initialized = False

        logger.info(
            f"[{pool_name}] Postgres pool configured: {user}@{host}:{port}/{database}, "
            f"size={min_size}-{max_size}"
        )

    async def initialize(self):
        """Initialize the connection pool."""
        if self._initialized:
            return

        logger.info(f"[{self.pool_name}] Creating Postgres connection pool...")

        for attempt in range(self.max_retries):
            try:
                self._pool = await asyncpg.create_pool(
                    host=self.host,
                    port=self.port,
                    database=self.database,
                    user=self.user,
                    password=self.password,
                    min_size=self.min_size,
                    max_size=self.max_size,
                    command_timeout=self.command_timeout,
                )

                self._initialized = True
                logger.info(
                    f"[{self.pool_name}] Postgres pool ready "
                    f"(size: {self.min_size}-{self.max_size})"
                )
                return

            except (CannotConnectNowError, TooManyConnectionsError) as e:
                if attempt < self.max_retries - 1:
                    logger.warning(
                        f"Pool creation attempt {attempt + 1} failed, retrying: {e}"
                    )
                    await asyncio.sleep(self.retry_delay * (attempt + 1))
                else:
                    logger.error(
                        f"Failed to create pool after {self.max_retries} attempts"
                    )
                    raise
            except (socket.gaierror, OSError) as e:
                if attempt < self.max_retries - 1:
                    jitter = random.uniform(0, 0.5)
                    delay = self.retry_delay * (attempt + 1) + jitter
                    logger.warning(
                        f"[{self.pool_name}] Pool creation attempt {attempt + 1} failed "
                        f"(DNS/network error: {e}), retrying in {delay:.1f}s..."
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(
                        f"[{self.pool_name}] DNS/network error creating pool after {self.max_retries} "
                        f"attempts: {e}. Host: {self.host!r}, Port: {self.port}"
                    )
                    raise

    @asynccontextmanager
    async def get_connection(self):
        """
        Get a connection from the pool (async context manager).

        Usage:
            async with pool.get_connection() as conn:
                result = await conn.fetch("SELECT 1")
        """
        if not self._initialized:
            await self.initialize()

        if self._pool is None:
            raise RuntimeError("Pool not initialized")

        async with self._pool.acquire() as conn:
            yield conn

    async def fetch_all(
        self,
        query: str,
        *args,
        timeout: Optional[float] = None,
    ) -> List[asyncpg.Record]:
        """
        Fetch all rows from a query.

        Args:
            query: SQL query to execute
            *args: Query parameters
            timeout: Optional query timeout

        Returns:
            List of records
        """
        async with self.get_connection() as conn:
            return await conn.fetch(query, *args, timeout=timeout)

    async def fetch_val(
        self,
        query: str,
        *args,
        timeout: Optional[float] = None,
    ) -> Any:
        async with self.get_connection() as conn:
            return await conn.fetchval(query, *args, timeout=timeout)

    async def is_healthy(self) -> bool:
        """
        Check that the database answers a trivial query.

        Initializes the pool if needed, so this doubles as a connectivity probe.
        """
        try:
            result = await self.fetch_val("SELECT 1")
            return result == 1
        except Exception as e:
            logger.error(f"[{self.pool_name}] Health check failed: {e}")
            return False

    async def close(self):
        """Close the connection pool."""
        if self._pool is not None:
            logger.info(f"[{self.pool_name}] Closing Postgres connection pool...")
            await self._pool.close()
            self._pool = None
            self._initialized = False
            logger.info(f"[{self.pool_name}] Postgres pool closed")


def create_pool_from_settings(settings: Settings) -> PostgresConnectionPool:
    """Build the single-connection benchmark pool described by ``settings``."""
    return PostgresConnectionPool(
        host=settings.POSTGRES_HOST,
        port=settings.POSTGRES_PORT,
        database=settings.POSTGRES_DATABASE,
        user=settings.POSTGRES_USER,
        password=settings.POSTGRES_PASSWORD,
        command_timeout=settings.POSTGRES_COMMAND_TIMEOUT,
    )
