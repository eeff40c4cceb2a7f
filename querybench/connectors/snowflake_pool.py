"""
Snowflake Connection Pool Manager

Manages connection pooling for Snowflake with health checks and retry logic.

The Snowflake Python connector is synchronous; every blocking call runs in a
thread executor so the event loop stays responsive.
"""

import asyncio
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import asynccontextmanager, suppress
from datetime import datetime
from typing import Any, Dict, List, Optional, cast

import snowflake.connector
from snowflake.connector import SnowflakeConnection
from snowflake.connector.errors import OperationalError

from querybench.config import Settings

logger = logging.getLogger(__name__)


class PoolInitializationError(Exception):
    """Raised when the connection pool fails to initialize enough connections."""

    def __init__(self, message: str, errors: List[str]):
        super().__init__(message)
        self.errors = errors


class SnowflakeConnectionPool:
    """
    Connection pool for Snowflake with health monitoring and retry logic.
    """

    def __init__(
        self,
        account: str,
        user: str,
        password: Optional[str] = None,
        warehouse: Optional[str] = None,
        database: Optional[str] = None,
        schema: Optional[str] = None,
        role: Optional[str] = None,
        pool_size: int = 1,
        max_overflow: int = 0,
        recycle: int = 3600,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        *,
        executor: Executor | None = None,
        connect_login_timeout: int = 15,
        connect_network_timeout: int = 300,
        connect_socket_timeout: int = 300,
        session_parameters: Optional[Dict[str, Any]] = None,
        pool_name: str = "benchmark",
    ):
        """
        Initialize Snowflake connection pool.

        Args:
            account: Snowflake account identifier
            user: Username
            password: Password
            warehouse: Default warehouse
            database: Default database
            schema: Default schema
            role: Default role
            pool_size: Base pool size
            max_overflow: Max additional connections
            recycle: Recycle connections after N seconds
            max_retries: Max retry attempts for transient failures
            retry_delay: Delay between retries in seconds
            executor: Thread executor for blocking connector calls; one is
                created (and owned) when omitted
        """
        self.account = account
        self.user = user
        self.password = password
        self.warehouse = warehouse
        self.database = database
        self.schema = schema
        self.role = role

        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.recycle = recycle
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        self._pool: List[SnowflakeConnection] = []
        self._in_use: Dict[int, SnowflakeConnection] = {}
        self._connection_times: Dict[int, datetime] = {}
        self._lock = asyncio.Lock()
        self._initialized = False
        self._owns_executor = executor is None
        self._executor: Executor | None = executor or ThreadPoolExecutor(
            max_workers=max(1, pool_size + max_overflow),
            thread_name_prefix=f"sf-{pool_name}",
        )
        self._connect_login_timeout = int(connect_login_timeout)
        self._connect_network_timeout = int(connect_network_timeout)
        self._connect_socket_timeout = int(connect_socket_timeout)
        self._session_parameters: Dict[str, Any] = dict(session_parameters or {})
        self._pool_name: str = pool_name

        logger.info(
            f"[{pool_name}] Initialized Snowflake pool: {user}@{account}, "
            f"pool_size={pool_size}, max_overflow={max_overflow}"
        )

    def _run_in_executor(self, func, *args):
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(self._executor, func, *args)

    def max_connections(self) -> int:
        return int(self.pool_size) + int(self.max_overflow)

    async def initialize(self):
        """Initialize the connection pool by creating base connections."""
        if self._initialized:
            return

        async with self._lock:
            if self._initialized:
                return

            total = int(self.pool_size)
            logger.info(
                "[%s] Creating %d initial Snowflake connections...",
                self._pool_name,
                total,
            )
            results = await asyncio.gather(
                *(self._create_connection() for _ in range(total)),
                return_exceptions=True,
            )

            connection_errors: List[str] = []
            for conn in results:
                if isinstance(conn, BaseException):
                    logger.error(f"Failed to create initial connection: {conn}")
                    connection_errors.append(str(conn))
                else:
                    self._pool.append(conn)
                    self._connection_times[id(conn)] = datetime.now()

            self._initialized = True
            logger.info(
                f"[{self._pool_name}] Connection pool initialized with {len(self._pool)} connections"
            )

            if connection_errors:
                error_msg = f"Failed to create {len(connection_errors)}/{total} connections during pool initialization"
                raise PoolInitializationError(error_msg, errors=connection_errors)

    def _get_connection_params(self) -> Dict[str, Any]:
        """Get connection parameters for snowflake.connector."""
        session_params: Dict[str, Any] = {"QUERY_TAG": "querybench"}
        session_params.update(self._session_parameters)
        params = {
            "account": self.account,
            "user": self.user,
            # Templates are rendered before execution; qmark keeps any literal
            # `%` in a template from being treated as a pyformat marker.
            "paramstyle": "qmark",
            "login_timeout": self._connect_login_timeout,
            "network_timeout": self._connect_network_timeout,
            "socket_timeout": self._connect_socket_timeout,
            "session_parameters": session_params,
        }

        if self.password:
            params["password"] = self.password
        if self.warehouse:
            params["warehouse"] = self.warehouse
        if self.database:
            params["database"] = self.database
        if self.schema:
            params["schema"] = self.schema
        if self.role:
            params["role"] = self.role

        return params

    async def _create_connection(self) -> SnowflakeConnection:
        """
        Create a new Snowflake connection with retry logic.

        Raises:
            OperationalError: If connection fails after retries
        """
        params = self._get_connection_params()

        for attempt in range(self.max_retries):
            try:
                conn = cast(
                    SnowflakeConnection,
                    await self._run_in_executor(
                        lambda: snowflake.connector.connect(**params)
                    ),
                )
                logger.debug(f"Created new Snowflake connection: {id(conn)}")
                return conn

            except OperationalError as e:
                if attempt < self.max_retries - 1:
                    logger.warning(
                        f"Connection attempt {attempt + 1} failed, retrying: {e}"
                    )
                    await asyncio.sleep(self.retry_delay * (attempt + 1))
                else:
                    logger.error(
                        f"Failed to create connection after {self.max_retries} attempts"
                    )
                    raise

        raise RuntimeError("Failed to create Snowflake connection")

    def _is_connection_valid(self, conn: SnowflakeConnection) -> bool:
        """Reject closed connections and those older than the recycle age."""
        if conn.is_closed():
            return False
        created = self._connection_times.get(id(conn))
        if created is not None:
            age = (datetime.now() - created).total_seconds()
            if age > self.recycle:
                logger.debug(f"Connection {id(conn)} expired (age: {age}s)")
                return False
        return True

    @asynccontextmanager
    async def get_connection(self):
        """
        Get a connection from the pool (async context manager).

        Usage:
            async with pool.get_connection() as conn:
                cursor = conn.cursor()
        """
        if not self._initialized:
            await self.initialize()

        conn: Optional[SnowflakeConnection] = None
        try:
            while conn is None:
                candidate: Optional[SnowflakeConnection] = None
                async with self._lock:
                    if self._pool:
                        candidate = self._pool.pop()
                    elif len(self._in_use) >= self.max_connections():
                        raise RuntimeError(
                            f"Connection pool exhausted (max: {self.max_connections()})"
                        )

                if candidate is None:
                    candidate = await self._create_connection()
                    self._connection_times[id(candidate)] = datetime.now()

                if self._is_connection_valid(candidate):
                    conn = candidate
                    break

                with suppress(Exception):
                    candidate.close()
                self._connection_times.pop(id(candidate), None)

            async with self._lock:
                self._in_use[id(conn)] = conn

            yield conn

        finally:
            if conn is not None:
                async with self._lock:
                    self._in_use.pop(id(conn), None)
                    self._pool.append(conn)

    async def execute_query_with_columns(
        self, query: str, params: Optional[object] = None
    ) -> tuple[List[str], List[tuple]]:
        """
        Execute a query and return (column names, result tuples).

        Column names come from ``cursor.description``.
        """
        async with self.get_connection() as conn:
            cursor = await self._run_in_executor(conn.cursor)
            try:
                if params is None:
                    await self._run_in_executor(cursor.execute, query)
                else:
                    await self._run_in_executor(cursor.execute, query, params)

                columns = [str(d[0]) for d in (cursor.description or [])]
                results = await self._run_in_executor(cursor.fetchall)
                return columns, results

            finally:
                try:
                    await self._run_in_executor(cursor.close)
                except RuntimeError:
                    # Executor already shut down - cursor will be cleaned up with connection
                    pass

    async def execute_query(
        self, query: str, params: Optional[object] = None
    ) -> List[tuple]:
        _, results = await self.execute_query_with_columns(query, params)
        return results

    async def is_healthy(self) -> bool:
        """Check that Snowflake answers a trivial query (connects if needed)."""
        try:
            rows = await self.execute_query("SELECT 1")
            return bool(rows) and rows[0][0] == 1
        except Exception as e:
            logger.error(f"[{self._pool_name}] Health check failed: {e}")
            return False

    async def close_all(self):
        """Close all connections in the pool (best effort)."""
        async with self._lock:
            logger.info(f"[{self._pool_name}] Closing all Snowflake connections...")
            conns: list[SnowflakeConnection] = list(self._pool) + list(
                self._in_use.values()
            )
            self._pool.clear()
            self._in_use.clear()
            self._connection_times.clear()
            self._initialized = False

        def _close_conn(c: SnowflakeConnection) -> None:
            with suppress(Exception):
                c.close(retry=False)

        for conn in conns:
            await self._run_in_executor(_close_conn, conn)

        logger.info(
            f"[{self._pool_name}] All connections closed ({len(conns)} connections)"
        )

        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
            self._owns_executor = False


def create_pool_from_settings(settings: Settings) -> SnowflakeConnectionPool:
    """Build the single-connection benchmark pool described by ``settings``."""
    return SnowflakeConnectionPool(
        account=settings.SNOWFLAKE_ACCOUNT,
        user=settings.SNOWFLAKE_USER,
        password=settings.SNOWFLAKE_PASSWORD,
        warehouse=settings.SNOWFLAKE_WAREHOUSE,
        database=settings.SNOWFLAKE_DATABASE or None,
        schema=settings.SNOWFLAKE_SCHEMA or None,
        role=settings.SNOWFLAKE_ROLE or None,
        recycle=settings.SNOWFLAKE_POOL_RECYCLE,
        connect_login_timeout=settings.SNOWFLAKE_CONNECT_LOGIN_TIMEOUT,
        connect_network_timeout=settings.SNOWFLAKE_CONNECT_NETWORK_TIMEOUT,
        connect_socket_timeout=settings.SNOWFLAKE_CONNECT_SOCKET_TIMEOUT,
    )
