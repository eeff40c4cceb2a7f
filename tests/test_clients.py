#!/usr/bin/env python3
"""
Unit tests for query clients.

Pools are mocked; no database connections are made.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from querybench.clients import (
    PostgresQueryClient,
    QueryClient,
    QueryExecutionError,
    SnowflakeQueryClient,
    create_clients,
    render_query,
)
from querybench.config import Settings


def _make_postgres_pool(records=None) -> AsyncMock:
    pool = AsyncMock()
    pool.fetch_all = AsyncMock(return_value=records or [])
    pool.is_healthy = AsyncMock(return_value=True)
    return pool


def _make_snowflake_pool(columns=None, rows=None) -> AsyncMock:
    pool = AsyncMock()
    pool.execute_query_with_columns = AsyncMock(
        return_value=(columns or [], rows or [])
    )
    pool.is_healthy = AsyncMock(return_value=False)
    return pool


def test_render_query_placeholders():
    assert render_query("SELECT * FROM t LIMIT {rowCount}", 100) == (
        "SELECT * FROM t LIMIT 100"
    )
    assert render_query("SELECT TOP (@rowCount) * FROM t", 5) == (
        "SELECT TOP (5) * FROM t"
    )
    assert render_query("SELECT 1", 5) == "SELECT 1"


@pytest.mark.asyncio
async def test_postgres_client_returns_dict_rows():
    records = [{"id": 1, "name": "a"}, {"id": 2, "name": None}]
    pool = _make_postgres_pool(records)
    client = PostgresQueryClient(pool, "SELECT * FROM data LIMIT {rowCount}")

    rows = await client.execute_query(2)

    pool.fetch_all.assert_awaited_once_with("SELECT * FROM data LIMIT 2")
    assert rows == [{"id": 1, "name": "a"}, {"id": 2, "name": None}]
    assert client.get_client_name() == "POSTGRES"
    assert isinstance(client, QueryClient)


@pytest.mark.asyncio
async def test_postgres_client_wraps_errors():
    pool = _make_postgres_pool()
    pool.fetch_all.side_effect = ConnectionRefusedError("connection refused")
    client = PostgresQueryClient(pool, "SELECT 1")

    with pytest.raises(QueryExecutionError, match="POSTGRES query failed: connection refused") as exc:
        await client.execute_query(10)
    assert isinstance(exc.value.__cause__, ConnectionRefusedError)


@pytest.mark.asyncio
async def test_snowflake_client_zips_columns():
    pool = _make_snowflake_pool(["ID", "REGION"], [(1, "eu"), (2, "us"), (3, None)])
    client = SnowflakeQueryClient(pool, "SELECT * FROM T LIMIT {rowCount}", name="SF")

    rows = await client.execute_query(3)

    pool.execute_query_with_columns.assert_awaited_once_with("SELECT * FROM T LIMIT 3")
    assert rows == [
        {"ID": 1, "REGION": "eu"},
        {"ID": 2, "REGION": "us"},
        {"ID": 3, "REGION": None},
    ]
    assert client.get_client_name() == "SF"


@pytest.mark.asyncio
async def test_snowflake_client_wraps_errors():
    pool = _make_snowflake_pool()
    pool.execute_query_with_columns.side_effect = RuntimeError("warehouse suspended")
    client = SnowflakeQueryClient(pool, "SELECT 1")

    with pytest.raises(QueryExecutionError, match="SNOWFLAKE query failed"):
        await client.execute_query(1)


@pytest.mark.asyncio
async def test_health_and_close_delegate_to_pool():
    pg_pool = _make_postgres_pool()
    sf_pool = _make_snowflake_pool()
    pg = PostgresQueryClient(pg_pool, "SELECT 1")
    sf = SnowflakeQueryClient(sf_pool, "SELECT 1")

    assert await pg.check_health() is True
    assert await sf.check_health() is False

    await pg.close()
    await sf.close()
    pg_pool.close.assert_awaited_once()
    sf_pool.close_all.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_clients_order_and_flags():
    settings = Settings(_env_file=None)
    clients = create_clients(settings)
    try:
        assert [c.get_client_name() for c in clients] == ["POSTGRES", "SNOWFLAKE"]
    finally:
        for client in clients:
            await client.close()

    only_sf = create_clients(Settings(_env_file=None, ENABLE_POSTGRES=False))
    try:
        assert [c.get_client_name() for c in only_sf] == ["SNOWFLAKE"]
    finally:
        for client in only_sf:
            await client.close()


def test_create_clients_skips_empty_templates():
    settings = Settings(_env_file=None, ENABLE_SNOWFLAKE=False, POSTGRES_QUERY="  ")
    assert create_clients(settings) == []


@pytest.mark.asyncio
async def test_create_clients_query_overrides():
    settings = Settings(_env_file=None, ENABLE_SNOWFLAKE=False)
    clients = create_clients(settings, {"postgres": "SELECT n FROM s LIMIT {rowCount}"})
    client = clients[0]
    pool = _make_postgres_pool([{"n": 1}])
    client._pool = pool

    rows = await client.execute_query(1)

    pool.fetch_all.assert_awaited_once_with("SELECT n FROM s LIMIT 1")
    assert rows == [{"n": 1}]
