"""
Postgres client for the guest automation pipeline.

Wraps a SQLAlchemy 2.0 async engine (asyncpg driver). The client owns the
engine and hands out connection scopes; the SQL for each pipeline query
lives in ``repository.py``.

Tables used:
- sandbox_sessions (read)
- message_log (read, INSERT outbound replies)
- sandbox_ai_processing (read, INSERT ON CONFLICT DO NOTHING)
- sandbox_tasks (read, INSERT)
- properties, faqs (read)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import config
from ..errors import StoreConnectionError, wrap_store_error

logger = structlog.get_logger(__name__)

# Unique key that makes processing-record inserts idempotent
PROCESSING_KEY_INDEX = 'sandbox_ai_processing_completed_key'

SCHEMA_STATEMENTS = (
    f"""
    CREATE UNIQUE INDEX IF NOT EXISTS {PROCESSING_KEY_INDEX}
    ON sandbox_ai_processing (sandbox_session_id, message_uuid, processing_type)
    WHERE processing_status = 'completed'
    """,
    """
    CREATE INDEX IF NOT EXISTS message_log_session_timestamp_idx
    ON message_log (sandbox_session_id, timestamp)
    """,
    """
    CREATE INDEX IF NOT EXISTS sandbox_tasks_session_status_idx
    ON sandbox_tasks (sandbox_session_id, status, created_at)
    """,
)


def _sanitize_url(url: str) -> str:
    """Remove URL query params that asyncpg does not understand.

    Hosted Postgres URLs often include ``channel_binding=require`` and
    ``sslmode=require``, which are libpq parameters. asyncpg rejects unknown
    connection params; SSL is passed via ``connect_args`` instead.
    """
    _STRIP_PARAMS = {'channel_binding', 'sslmode'}
    parsed = urlparse(url)
    if not parsed.query:
        return url
    params = parse_qs(parsed.query)
    filtered = {k: v for k, v in params.items() if k not in _STRIP_PARAMS}
    new_query = urlencode(filtered, doseq=True)
    return urlunparse(parsed._replace(query=new_query))


def _requires_ssl(url: str) -> bool:
    params = parse_qs(urlparse(url).query)
    return params.get('sslmode', [''])[0] in ('require', 'verify-ca', 'verify-full')


def _normalise_driver(url: str) -> str:
    """Force the asyncpg driver prefix."""
    if url.startswith('postgres://'):
        return url.replace('postgres://', 'postgresql+asyncpg://', 1)
    if url.startswith('postgresql://') and '+asyncpg' not in url:
        return url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    return url


class PostgresClient:
    """
    Async Postgres client backed by a pooled SQLAlchemy engine.

    Each pipeline stage borrows one connection through ``connection()`` for
    the length of its loop; the connection goes back to the pool when the
    scope exits, whether or not the stage raised.
    """

    def __init__(self, database_url: str | None = None):
        """
        Initialize with a Postgres connection URL.

        Args:
            database_url: Postgres connection URL (defaults to DATABASE_URL).
                          'postgres://' and 'postgresql://' URLs are converted
                          to use asyncpg.
        """
        self._engine: AsyncEngine | None = None
        self._database_url = database_url or config.DATABASE_URL or None

    async def connect(self, database_url: str | None = None) -> None:
        """
        Create the async engine and verify it can reach the database.
        Idempotent: no-op if already connected.

        Args:
            database_url: Override the URL from __init__.
        """
        if self._engine is not None:
            return

        url = database_url or self._database_url
        if not url:
            raise ValueError('database_url is required')

        connect_args: dict[str, object] = {
            # PgBouncer-style poolers don't support prepared statements
            'prepared_statement_cache_size': 0,
        }
        if _requires_ssl(url):
            connect_args['ssl'] = 'require'

        url = _normalise_driver(_sanitize_url(url))

        self._engine = create_async_engine(
            url,
            pool_size=5,
            max_overflow=5,
            pool_pre_ping=True,
            pool_timeout=30,
            connect_args=connect_args,
        )

        try:
            await self._check_connectivity()
        except SQLAlchemyError as e:
            await self.close()
            raise wrap_store_error(e, context={'operation': 'connect'}) from e
        logger.info('postgres_client.connected')

    @retry(
        retry=retry_if_exception_type(SQLAlchemyError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _check_connectivity(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text('SELECT 1'))

    async def close(self) -> None:
        """Dispose of the engine and connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info('postgres_client.closed')

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise StoreConnectionError('PostgresClient not connected - call connect() first')
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

    async def setup_schema(self) -> None:
        """
        Create the indexes the pipeline relies on.

        Table DDL is managed by the platform's migrations; this only adds the
        unique processing-record key and the lookup indexes.
        """
        try:
            async with self.engine.begin() as conn:
                for statement in SCHEMA_STATEMENTS:
                    await conn.execute(text(statement))
        except SQLAlchemyError as e:
            raise wrap_store_error(e, context={'operation': 'setup_schema'}) from e
        logger.info('postgres_client.schema_ready', statements=len(SCHEMA_STATEMENTS))

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AsyncConnection]:
        """
        Borrow one connection for the duration of a stage.

        Uncommitted work is rolled back when the scope exits.
        """
        try:
            async with self.engine.connect() as conn:
                yield conn
        except SQLAlchemyError as e:
            raise wrap_store_error(e, context={'operation': 'connection'}) from e
