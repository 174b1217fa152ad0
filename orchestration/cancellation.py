"""Cooperative cancellation for the run loop."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from .errors import RunCancelledError

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal shared by everything a run awaits.

    ``run`` races an awaitable against the signal, so a pause or cancel
    aborts in-flight sleeps, page loads and agent requests promptly.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RunCancelledError(self.reason or "cancelled")

    async def wait(self) -> None:
        await self._event.wait()

    async def run(self, awaitable: Awaitable[T], timeout: float | None = None) -> T:
        """Await ``awaitable`` unless the token fires or ``timeout`` elapses first.

        Raises:
            RunCancelledError: If the token fired
            asyncio.TimeoutError: If ``timeout`` elapsed
        """
        self.raise_if_cancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise

        waiter.cancel()
        if self.is_cancelled or task not in done:
            task.cancel()
            await asyncio.wait({task})
            if not task.cancelled():
                task.exception()  # mark retrieved; the result is stale
            if self.is_cancelled:
                raise RunCancelledError(self.reason or "cancelled")
            raise asyncio.TimeoutError(f"Timed out after {timeout}s")

        return task.result()

    async def sleep(self, seconds: float) -> None:
        await self.run(asyncio.sleep(seconds))
