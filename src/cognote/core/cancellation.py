"""Cooperative cancellation for one turn."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable
from typing import TypeVar

from loguru import logger

from cognote.errors import StepCancelledError

T = TypeVar("T")


class CancellationToken:
    """Single source of truth for whether a turn has been cancelled.

    The executor checks it at attempt boundaries; transports race their
    network work against it so an in-flight request is dropped promptly.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "user") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()
        logger.info("cancel.requested reason={}", reason)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise StepCancelledError()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` or until cancelled, whichever comes first."""
        if seconds <= 0:
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._event.wait(), timeout=seconds)

    async def race(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        The losing awaitable is cancelled and ``StepCancelledError`` is raised.
        """
        self.raise_if_cancelled()
        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()
        if work.done():
            return work.result()
        work.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await work
        raise StepCancelledError()
