"""Tests for schema client creation."""
import asyncio
from contextlib import asynccontextmanager
from unittest.mock import patch
import pytest
from sqlalchemy.exc import DBAPIError
from qbgen.core.errors import SchemaConnectionError
from qbgen.db.connection import SqlAlchemySchemaClient, create_client


class _FakeResult:
    def __init__(self, rows):
        self.rows = rows

    def mappings(self):
        return self.rows


class _FakeConnection:
    async def execute(self, statement, params):
        return _FakeResult([{"ok": 1}])


class _FakeEngine:
    """Async engine stand-in that records how many connections are open at once."""

    def __init__(self, error=None, release=None):
        self.error = error
        self.release = release
        self.opened = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.disposed = False

    @asynccontextmanager
    async def connect(self):
        if self.error is not None:
            raise self.error
        self.opened += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.release is not None:
                await self.release.wait()
            yield _FakeConnection()
        finally:
            self.in_flight -= 1

    async def dispose(self):
        self.disposed = True


def test_missing_dsn_is_a_connection_error():
    with patch("qbgen.db.connection.settings") as settings:
        settings.database_url = None
        settings.concurrency = 5
        settings.wait_until_available = 0
        with pytest.raises(SchemaConnectionError) as exc_info:
            asyncio.run(create_client())
    assert "No database URL" in str(exc_info.value)


def test_unknown_dialect_is_not_retried():
    with pytest.raises(SchemaConnectionError) as exc_info:
        asyncio.run(create_client("nosuchdialect://localhost/db", wait_until_available=30))
    assert exc_info.value.should_reconnect is False


def test_refused_socket_becomes_reconnectable_error():
    engine = _FakeEngine(error=ConnectionRefusedError(111, "Connection refused"))
    with patch("qbgen.db.connection.create_async_engine", return_value=engine):
        with pytest.raises(SchemaConnectionError) as exc_info:
            asyncio.run(create_client("postgresql+asyncpg://u:p@127.0.0.1:1/db", wait_until_available=0))
    assert exc_info.value.should_reconnect is True
    assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)
    assert engine.disposed


def test_closed_port_raises_connection_error():
    """Nothing listens on port 1, so the driver's socket error must come back wrapped."""
    with pytest.raises(SchemaConnectionError) as exc_info:
        asyncio.run(create_client("postgresql+asyncpg://u:p@127.0.0.1:1/db", wait_until_available=0))
    assert exc_info.value.should_reconnect is True


def test_refused_connection_is_retried_until_server_answers():
    down = _FakeEngine(error=ConnectionRefusedError(111, "Connection refused"))
    up = _FakeEngine()
    with patch("qbgen.db.connection.create_async_engine", side_effect=[down, down, up]) as factory:
        client = asyncio.run(create_client("postgresql+asyncpg://localhost/db", wait_until_available=30))
    assert client.engine is up
    assert factory.call_count == 3
    assert down.disposed


def test_driver_error_during_ping_is_wrapped():
    error = DBAPIError("SELECT 1 AS ok", {}, Exception("password authentication failed"))
    engine = _FakeEngine(error=error)
    with patch("qbgen.db.connection.create_async_engine", return_value=engine):
        with pytest.raises(SchemaConnectionError) as exc_info:
            asyncio.run(create_client("postgresql+asyncpg://localhost/db", wait_until_available=30))
    assert exc_info.value.should_reconnect is False
    assert exc_info.value.__cause__ is error
    assert engine.disposed


def test_query_concurrency_is_capped():
    """Only five queries hold a connection at once; the rest wait for a slot."""

    async def scenario():
        release = asyncio.Event()
        engine = _FakeEngine(release=release)
        client = SqlAlchemySchemaClient(engine, concurrency=5)
        tasks = [asyncio.create_task(client.query("SELECT 1 AS ok")) for _ in range(12)]
        for _ in range(5):
            await asyncio.sleep(0)
        waiting = (engine.in_flight, engine.opened)
        release.set()
        results = await asyncio.gather(*tasks)
        return engine, waiting, results

    engine, waiting, results = asyncio.run(scenario())
    assert waiting == (5, 5)
    assert engine.max_in_flight == 5
    assert engine.opened == 12
    assert results == [[{"ok": 1}]] * 12
