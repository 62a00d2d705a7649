"""
Cancellation and deadline handling for a message exchange.

Every remote call and every wait in the exchange goes through guard(), which
races the awaited work against the caller's cancel event and the remaining
time budget. Waiting never blocks the event loop.
"""

import asyncio
import time
from typing import Awaitable, TypeVar

from app.core.errors import ExchangeCancelledError

T = TypeVar("T")

_sleep = asyncio.sleep


class ExchangeControl:
    """Deadline plus optional cancel event shared by all steps of one exchange."""

    def __init__(
        self,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
        label: str = "message exchange",
    ) -> None:
        self.cancel_event = cancel_event
        self.label = label
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def narrowed(self, timeout: float | None, label: str) -> "ExchangeControl":
        """Child control with the earlier of both deadlines and the same cancel event."""
        child = ExchangeControl(timeout, self.cancel_event, label)
        if self.deadline is not None and (child.deadline is None or self.deadline < child.deadline):
            child.deadline = self.deadline
            child.label = self.label
        return child

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        """Raise ExchangeCancelledError if cancelled or past the deadline."""
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise ExchangeCancelledError(f"{self.label} was cancelled", reason="cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise ExchangeCancelledError(f"{self.label} exceeded its deadline", reason="deadline")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` unless cancellation or the deadline wins first."""
        try:
            self.check()
        except ExchangeCancelledError:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise
        if self.deadline is None and self.cancel_event is None:
            return await awaitable

        task = asyncio.ensure_future(awaitable)
        waiters: set[asyncio.Future] = {task}
        if self.cancel_event is not None:
            waiters.add(asyncio.ensure_future(self.cancel_event.wait()))
        try:
            done, _ = await asyncio.wait(waiters, timeout=self.remaining(), return_when=asyncio.FIRST_COMPLETED)
        finally:
            for w in waiters:
                if not w.done():
                    w.cancel()
        if task in done:
            return task.result()
        self.check()
        raise ExchangeCancelledError(f"{self.label} exceeded its deadline", reason="deadline")

    async def sleep(self, delay: float) -> None:
        await self.guard(_sleep(delay))
