"""Tests for the connection retry policy."""
import asyncio
from unittest.mock import AsyncMock, MagicMock
import pytest
from qbgen.core.errors import SchemaConnectionError
from qbgen.db import retry


def _flaky(failures, error):
    calls = {"count": 0}

    async def connect():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise error
        return "client"
    return connect, calls


def test_reconnectable_errors_are_retried():
    connect, calls = _flaky(3, SchemaConnectionError("refused", should_reconnect=True))
    sleep = AsyncMock()
    result = asyncio.run(retry.retrying_connect(connect, wait_until_available=30, sleep=sleep))
    assert result == "client"
    assert calls["count"] == 4
    assert sleep.await_count == 3
    for call in sleep.await_args_list:
        delay = call.args[0]
        assert 0.010 <= delay <= 0.210


def test_non_reconnectable_error_propagates_immediately():
    connect, calls = _flaky(1, SchemaConnectionError("bad password"))
    sleep = AsyncMock()
    with pytest.raises(SchemaConnectionError):
        asyncio.run(retry.retrying_connect(connect, wait_until_available=30, sleep=sleep))
    assert calls["count"] == 1
    sleep.assert_not_awaited()


def test_other_exceptions_are_not_retried():
    connect, calls = _flaky(1, ValueError("unexpected row"))
    with pytest.raises(ValueError):
        asyncio.run(retry.retrying_connect(connect, wait_until_available=30, sleep=AsyncMock()))
    assert calls["count"] == 1


def test_zero_wait_does_not_retry():
    connect, calls = _flaky(1, SchemaConnectionError("refused", should_reconnect=True))
    sleep = AsyncMock()
    with pytest.raises(SchemaConnectionError):
        asyncio.run(retry.retrying_connect(connect, wait_until_available=0, sleep=sleep))
    assert calls["count"] == 1
    sleep.assert_not_awaited()


def test_gives_up_after_wait_until_available():
    """Attempts stop once the window has elapsed; the last error propagates."""
    connect, calls = _flaky(10_000, SchemaConnectionError("refused", should_reconnect=True))

    async def short_sleep(seconds):
        await asyncio.sleep(0.02)

    with pytest.raises(SchemaConnectionError) as exc_info:
        asyncio.run(retry.retrying_connect(connect, wait_until_available=0.1, sleep=short_sleep))
    assert exc_info.value.should_reconnect
    # roughly one attempt per 20 ms inside a 100 ms window
    assert 2 <= calls["count"] < 50


def test_before_sleep_runs_once_per_retry():
    connect, calls = _flaky(2, SchemaConnectionError("refused", should_reconnect=True))
    before_sleep = MagicMock()
    asyncio.run(retry.retrying_connect(
        connect, wait_until_available=30, sleep=AsyncMock(), before_sleep=before_sleep,
    ))
    assert calls["count"] == 3
    assert before_sleep.call_count == 2
    state = before_sleep.call_args.args[0]
    assert isinstance(state.outcome.exception(), SchemaConnectionError)


def test_warning_is_rate_limited(caplog):
    connect, calls = _flaky(4, SchemaConnectionError("refused", should_reconnect=True))
    times = iter([100.0, 101.0, 102.0, 106.0])
    warning = retry.ReconnectWarning(30, clock=lambda: next(times))
    with caplog.at_level("WARNING", logger="qbgen.db.retry"):
        asyncio.run(retry.retrying_connect(
            connect, wait_until_available=30, sleep=AsyncMock(), before_sleep=warning,
        ))
    assert calls["count"] == 5
    warnings = [r for r in caplog.records if "reconnecting" in r.getMessage()]
    # first failure at t=100 warns, t=101/102 are inside the interval, t=106 warns again
    assert len(warnings) == 2
    assert "wait_until_available=30" in warnings[0].getMessage()
    assert warning.last_logged_at == 106.0
