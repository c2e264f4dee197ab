"""
Tests for the PostgresClient data store adapter.

Tests cover:
- URL sanitizing and driver normalization
- Connection management (connect, close, verify_connectivity)
- Reads returning row dicts, with retry on data store errors
- Writes in a single transaction
- Driver errors wrapped into the DataStoreError hierarchy
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError
from tenacity import wait_none

from decision_engine.clients.postgres_client import (
    PostgresClient,
    _normalize_driver,
    _sanitize_url,
)
from decision_engine.errors import DataStoreConnectionError, DataStoreQueryError


def _ctx(conn):
    ctx = AsyncMock()
    ctx.__aenter__ = AsyncMock(return_value=conn)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return ctx


@pytest.fixture
def mock_engine():
    """Create a mock AsyncEngine whose connect()/begin() yield the same connection."""
    engine = AsyncMock()
    conn = AsyncMock()
    conn.execute = AsyncMock()

    engine.connect = MagicMock(return_value=_ctx(conn))
    engine.begin = MagicMock(return_value=_ctx(conn))
    engine.dispose = AsyncMock()

    return engine, conn


@pytest.fixture
def client(mock_engine):
    """Create a PostgresClient with a pre-injected mock engine."""
    engine, _ = mock_engine
    pg = PostgresClient()
    pg._engine = engine
    return pg


class TestUrlHelpers:
    def test_sanitize_strips_libpq_params(self):
        url = 'postgresql://u:p@host/db?sslmode=require&channel_binding=require&application_name=x'
        assert _sanitize_url(url) == 'postgresql://u:p@host/db?application_name=x'

    def test_sanitize_without_query(self):
        assert _sanitize_url('postgresql://u:p@host/db') == 'postgresql://u:p@host/db'

    @pytest.mark.parametrize(
        'url,expected',
        [
            ('postgres://h/db', 'postgresql+asyncpg://h/db'),
            ('postgresql://h/db', 'postgresql+asyncpg://h/db'),
            ('postgresql+asyncpg://h/db', 'postgresql+asyncpg://h/db'),
        ],
    )
    def test_normalize_driver(self, url, expected):
        assert _normalize_driver(url) == expected


class TestConnection:
    @pytest.mark.asyncio
    async def test_connect_requires_url(self):
        with pytest.raises(ValueError):
            await PostgresClient().connect()

    @pytest.mark.asyncio
    async def test_connect_builds_async_engine(self):
        with patch(
            'decision_engine.clients.postgres_client.create_async_engine'
        ) as mock_create:
            pg = PostgresClient('postgres://u:p@host/db?sslmode=require')
            await pg.connect()
            await pg.connect()

        mock_create.assert_called_once()
        url = mock_create.call_args.args[0]
        assert url == 'postgresql+asyncpg://u:p@host/db'
        assert mock_create.call_args.kwargs['connect_args']['ssl'] == 'require'

    @pytest.mark.asyncio
    async def test_connect_without_ssl(self):
        with patch(
            'decision_engine.clients.postgres_client.create_async_engine'
        ) as mock_create:
            await PostgresClient('postgresql://h/db', ssl_required=False).connect()

        assert 'ssl' not in mock_create.call_args.kwargs['connect_args']

    def test_engine_requires_connect(self):
        with pytest.raises(DataStoreConnectionError):
            PostgresClient().engine

    @pytest.mark.asyncio
    async def test_close_disposes_engine(self, client, mock_engine):
        engine, _ = mock_engine
        await client.close()
        engine.dispose.assert_awaited_once()
        assert client._engine is None

    @pytest.mark.asyncio
    async def test_verify_connectivity(self, client):
        assert await client.verify_connectivity() is True

    @pytest.mark.asyncio
    async def test_verify_connectivity_failure(self, client, mock_engine):
        _, conn = mock_engine
        conn.execute.side_effect = OperationalError('SELECT 1', {}, Exception('refused'))
        assert await client.verify_connectivity() is False


class TestReads:
    @pytest.mark.asyncio
    async def test_fetch_all_returns_dicts(self, client, mock_engine):
        _, conn = mock_engine
        result = MagicMock()
        result.mappings.return_value.all.return_value = [{'id': 'a1'}, {'id': 'a2'}]
        conn.execute.return_value = result

        rows = await client.fetch_all('SELECT id FROM actions WHERE user_id = :u', {'u': 'x'})

        assert rows == [{'id': 'a1'}, {'id': 'a2'}]
        assert conn.execute.await_args.args[1] == {'u': 'x'}

    @pytest.mark.asyncio
    async def test_fetch_all_retries_then_raises(self, client, mock_engine):
        _, conn = mock_engine
        conn.execute.side_effect = OperationalError(
            'SELECT 1', {}, Exception('could not connect to server')
        )
        fetch_all = PostgresClient.fetch_all.retry_with(wait=wait_none())

        with pytest.raises(DataStoreConnectionError):
            await fetch_all(client, 'SELECT 1')

        assert conn.execute.await_count == 3

    @pytest.mark.asyncio
    async def test_fetch_all_recovers_on_retry(self, client, mock_engine):
        _, conn = mock_engine
        result = MagicMock()
        result.mappings.return_value.all.return_value = [{'id': 'a1'}]
        conn.execute.side_effect = [
            OperationalError('SELECT 1', {}, Exception('connection reset')),
            result,
        ]
        fetch_all = PostgresClient.fetch_all.retry_with(wait=wait_none())

        assert await fetch_all(client, 'SELECT 1') == [{'id': 'a1'}]


class TestWrites:
    @pytest.mark.asyncio
    async def test_execute_returns_rowcount(self, client, mock_engine):
        _, conn = mock_engine
        conn.execute.return_value = MagicMock(rowcount=2)

        assert await client.execute('UPDATE leads SET x = 1') == 2

    @pytest.mark.asyncio
    async def test_execute_wraps_query_errors(self, client, mock_engine):
        _, conn = mock_engine
        conn.execute.side_effect = ProgrammingError('UPDATE', {}, Exception('syntax error'))

        with pytest.raises(DataStoreQueryError) as exc_info:
            await client.execute('UPDATE')
        assert exc_info.value.context['operation'] == 'execute'

    @pytest.mark.asyncio
    async def test_execute_many_single_transaction(self, client, mock_engine):
        engine, conn = mock_engine
        params = [{'id': 'a1'}, {'id': 'a2'}]

        await client.execute_many('UPDATE actions SET lane = :lane WHERE id = :id', params)

        engine.begin.assert_called_once()
        assert conn.execute.await_args.args[1] == params

    @pytest.mark.asyncio
    async def test_execute_many_empty_is_noop(self, client, mock_engine):
        engine, _ = mock_engine
        await client.execute_many('UPDATE actions SET lane = :lane', [])
        engine.begin.assert_not_called()
