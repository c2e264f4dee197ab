"""
Postgres data store client for the Decision Engine.

Uses SQLAlchemy 2.0 async engine + asyncpg for raw SQL execution. The engine
itself never touches this client: services read a snapshot before a run and
write results after it.

Reads are retried with exponential backoff; driver errors surface as
DataStoreError subclasses so callers can treat them as retryable.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..errors import DataStoreConnectionError, DataStoreError, wrap_data_store_error

logger = structlog.get_logger(__name__)


def _sanitize_url(url: str) -> str:
    """Remove URL query params that asyncpg does not understand.

    Pooler URLs often include ``channel_binding=require`` and
    ``sslmode=require``, which are libpq parameters. asyncpg rejects unknown
    connection params; SSL is passed through ``connect_args`` instead.
    """
    _STRIP_PARAMS = {'channel_binding', 'sslmode'}
    parsed = urlparse(url)
    if not parsed.query:
        return url
    params = parse_qs(parsed.query)
    filtered = {k: v for k, v in params.items() if k not in _STRIP_PARAMS}
    new_query = urlencode(filtered, doseq=True)
    return urlunparse(parsed._replace(query=new_query))


def _normalize_driver(url: str) -> str:
    """Force the asyncpg driver prefix."""
    if url.startswith('postgres://'):
        return url.replace('postgres://', 'postgresql+asyncpg://', 1)
    if url.startswith('postgresql://') and '+asyncpg' not in url:
        return url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    return url


class PostgresClient:
    """
    Async Postgres client exposing read/write-by-filter primitives.

    Usage:
        pg = PostgresClient(database_url)
        await pg.connect()
        rows = await pg.fetch_all('SELECT ...', {'user_id': 'u1'})
    """

    def __init__(self, database_url: str | None = None, ssl_required: bool = True):
        """
        Initialize with a Postgres connection URL.

        Args:
            database_url: Connection URL. 'postgres://' and 'postgresql://'
                          prefixes are converted to use asyncpg.
            ssl_required: Pass ssl='require' to asyncpg
        """
        self._engine: AsyncEngine | None = None
        self._database_url = database_url
        self._ssl_required = ssl_required

    async def connect(self, database_url: str | None = None) -> None:
        """
        Create the async engine. Idempotent: no-op if already connected.

        Args:
            database_url: Override the URL from __init__.
        """
        if self._engine is not None:
            return

        url = database_url or self._database_url
        if not url:
            raise ValueError('database_url is required')

        url = _normalize_driver(_sanitize_url(url))

        connect_args: dict[str, Any] = {'prepared_statement_cache_size': 0}
        if self._ssl_required:
            connect_args['ssl'] = 'require'

        self._engine = create_async_engine(
            url,
            pool_size=5,
            max_overflow=5,
            pool_pre_ping=True,
            pool_timeout=30,
            connect_args=connect_args,
        )
        logger.info('postgres_client.connected')

    async def close(self) -> None:
        """Dispose of the engine and connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info('postgres_client.closed')

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise DataStoreConnectionError('PostgresClient not connected, call connect() first')
        return self._engine

    async def verify_connectivity(self) -> bool:
        """Return True if we can execute a simple query."""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text('SELECT 1'))
            return True
        except Exception:
            logger.exception('postgres_client.connectivity_check_failed')
            return False

    # =========================================================================
    # Reads
    # =========================================================================

    @retry(
        retry=retry_if_exception_type(DataStoreError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def fetch_all(
        self,
        query: str,
        parameters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Execute a read query and return rows as dicts.

        Args:
            query: SQL with :named parameters
            parameters: Query parameters

        Returns:
            List of row mappings
        """
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(text(query), parameters or {})
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            raise wrap_data_store_error(e, {'operation': 'fetch_all'}) from e

    # =========================================================================
    # Writes
    # =========================================================================

    async def execute(
        self,
        query: str,
        parameters: dict[str, Any] | None = None,
    ) -> int:
        """
        Execute a single write statement in its own transaction.

        Returns:
            Number of affected rows
        """
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(text(query), parameters or {})
                return result.rowcount
        except SQLAlchemyError as e:
            raise wrap_data_store_error(e, {'operation': 'execute'}) from e

    async def execute_many(
        self,
        query: str,
        parameter_sets: list[dict[str, Any]],
    ) -> None:
        """Execute one statement for each parameter set, all in one transaction."""
        if not parameter_sets:
            return
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text(query), parameter_sets)
        except SQLAlchemyError as e:
            raise wrap_data_store_error(
                e, {'operation': 'execute_many', 'count': len(parameter_sets)}
            ) from e
