"""Connection retry policy used while the schema database comes up."""
from __future__ import annotations
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_delay, wait_random
from qbgen.core.errors import SchemaConnectionError

log = logging.getLogger(__name__)

T = TypeVar("T")

# Minimum seconds between two "reconnecting" warnings
LOG_INTERVAL = 5.0


def is_reconnectable(error: BaseException) -> bool:
    return isinstance(error, SchemaConnectionError) and error.should_reconnect


class ReconnectWarning:
    """``before_sleep`` hook that warns at most once per ``interval`` seconds."""

    def __init__(
        self,
        wait_until_available: float,
        interval: float = LOG_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.wait_until_available = wait_until_available
        self.interval = interval
        self.clock = clock
        self.last_logged_at: Optional[float] = None

    def __call__(self, retry_state: RetryCallState) -> None:
        now = self.clock()
        if self.last_logged_at is not None and now - self.last_logged_at <= self.interval:
            return
        self.last_logged_at = now
        log.warning(
            "A client connection error occurred; reconnecting because of "
            "wait_until_available=%s: %s",
            self.wait_until_available,
            retry_state.outcome.exception(),
        )


async def retrying_connect(
    connect: Callable[[], Awaitable[T]],
    wait_until_available: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    before_sleep: Optional[Callable[[RetryCallState], None]] = None,
) -> T:
    """Call ``connect`` until it succeeds or ``wait_until_available`` runs out.

    Only connection errors flagged as reconnectable are retried, with a
    10-210 ms jitter between attempts; anything else propagates on the first
    attempt. A window of zero means a single attempt.
    """
    retrying = AsyncRetrying(
        retry=retry_if_exception(is_reconnectable),
        stop=stop_after_delay(wait_until_available),
        wait=wait_random(0.01, 0.21),
        sleep=sleep,
        before_sleep=before_sleep or ReconnectWarning(wait_until_available),
        reraise=True,
    )
    return await retrying(connect)
