from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, List, Protocol
from sqlalchemy import text
from sqlalchemy.exc import ArgumentError, DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from qbgen.core.config import settings
from qbgen.core.errors import SchemaConnectionError
from qbgen.db.retry import retrying_connect

log = logging.getLogger(__name__)

Row = Dict[str, Any]


class SchemaClient(Protocol):
    """The query surface introspection needs from a schema connection."""

    async def query(self, query: str, **params: Any) -> List[Row]: ...

    async def query_required_single(self, query: str, **params: Any) -> Row: ...

    async def close(self) -> None: ...


class SqlAlchemySchemaClient:
    """Schema client backed by a SQLAlchemy async engine.

    At most ``concurrency`` queries run at once; further callers wait on the
    semaphore.
    """

    def __init__(self, engine: AsyncEngine, concurrency: int = 5):
        self.engine = engine
        self.concurrency = concurrency
        self._slots = asyncio.Semaphore(concurrency)

    async def ping(self) -> None:
        await self.query_required_single("SELECT 1 AS ok")

    async def query(self, query: str, **params: Any) -> List[Row]:
        async with self._slots:
            try:
                async with self.engine.connect() as conn:
                    result = await conn.execute(text(query), params)
                    return [dict(row) for row in result.mappings()]
            except (OperationalError, InterfaceError) as e:
                raise SchemaConnectionError(
                    f"Connection to schema database failed: {e}",
                    should_reconnect=isinstance(e, OperationalError) or e.connection_invalidated,
                ) from e
            except OSError as e:
                # socket-level failures (refused, reset, unreachable) escape the driver unwrapped
                raise SchemaConnectionError(
                    f"Connection to schema database failed: {e}", should_reconnect=True
                ) from e

    async def query_required_single(self, query: str, **params: Any) -> Row:
        rows = await self.query(query, **params)
        if len(rows) != 1:
            raise ValueError(f"Expected exactly one row, got {len(rows)}")
        return rows[0]

    async def close(self) -> None:
        await self.engine.dispose()


async def create_client(
    dsn: str | None = None,
    concurrency: int | None = None,
    wait_until_available: float | None = None,
) -> SqlAlchemySchemaClient:
    """Open a schema client and make sure the server answers."""
    dsn = dsn or settings.database_url
    if not dsn:
        raise SchemaConnectionError("No database URL configured (set QBGEN_DATABASE_URL or pass --dsn)")
    concurrency = concurrency or settings.concurrency
    if wait_until_available is None:
        wait_until_available = settings.wait_until_available

    async def connect() -> SqlAlchemySchemaClient:
        try:
            engine = create_async_engine(
                dsn,
                pool_size=concurrency,
                max_overflow=0,
                pool_pre_ping=True,
            )
        except (ArgumentError, ImportError) as e:
            raise SchemaConnectionError(f"Failed to connect: {e}") from e
        client = SqlAlchemySchemaClient(engine, concurrency=concurrency)
        try:
            await client.ping()
        except SchemaConnectionError:
            await client.close()
            raise
        except DBAPIError as e:
            await client.close()
            raise SchemaConnectionError(
                f"Failed to connect: {e}", should_reconnect=e.connection_invalidated
            ) from e
        return client

    return await retrying_connect(connect, wait_until_available)
