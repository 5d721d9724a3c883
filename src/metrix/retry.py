"""Fixed-schedule retry policy for storage operations."""

from __future__ import annotations
import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar
from metrix.errors import OperationCancelledError, RetryExhaustedError


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_DELAYS: tuple[float, ...] = (0.0, 1.0, 3.0, 5.0)
"""Pause before each attempt, in seconds; the length bounds the attempt count."""


@dataclass(slots=True)
class RetryPolicy:
    """Run an operation with a fixed pause schedule between attempts.

    Only errors accepted by the ``is_transient`` predicate are retried. Any
    other error propagates on the attempt that raised it. When a request
    scoped ``cancel`` event is set, the sequence stops at the next pause and
    raises :class:`OperationCancelledError`; a running attempt is never
    interrupted by the event.
    """

    delays: Sequence[float] = DEFAULT_RETRY_DELAYS
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    @property
    def max_attempts(self) -> int:
        """Return the number of attempts the schedule allows."""
        return len(self.delays)

    async def _pause(self, delay: float, cancel: asyncio.Event | None) -> None:
        if cancel is None:
            await self.sleep(delay)
            return
        if cancel.is_set():
            raise OperationCancelledError("operation cancelled before retry")
        waiter = asyncio.ensure_future(cancel.wait())
        sleeper = asyncio.ensure_future(self.sleep(delay))
        try:
            await asyncio.wait(
                {waiter, sleeper}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            waiter.cancel()
            sleeper.cancel()
        if cancel.is_set():
            raise OperationCancelledError("operation cancelled before retry")

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        is_transient: Callable[[BaseException], bool],
        cancel: asyncio.Event | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds or the schedule is exhausted."""
        if not self.delays:
            raise ValueError("Retry schedule must allow at least one attempt.")
        last_error: BaseException | None = None
        for attempt, delay in enumerate(self.delays, start=1):
            await self._pause(delay, cancel)
            try:
                return await operation()
            except Exception as exc:
                if not is_transient(exc):
                    raise
                last_error = exc
                logger.warning(
                    "Transient storage error on attempt %s of %s: %s",
                    attempt,
                    self.max_attempts,
                    exc,
                )
        raise RetryExhaustedError(
            self.max_attempts, last_error
        ) from last_error


__all__ = ["DEFAULT_RETRY_DELAYS", "RetryPolicy"]
