"""Cooperative cancellation for stream reads."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
from typing import TYPE_CHECKING, TypeVar

from chatstream.exceptions import StreamCancelledError

if TYPE_CHECKING:
    from collections.abc import Awaitable

T = TypeVar("T")


class CancellationToken:
    """A one-shot abort signal passed into the read loop.

    The loop awaits every read through :meth:`guard`, which races the read
    against the token so a cancel takes effect at the next suspension point
    even while the transport is idle.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        """Request cancellation. Repeated calls keep the first reason."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise StreamCancelledError(f"Stream aborted: {self.reason}")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        Raises:
            StreamCancelledError: If the token is or becomes cancelled; the
                pending awaitable is cancelled before raising.
        """
        if self.cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_cancelled()

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        aborted = False
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not work.done():
                aborted = True
                work.cancel()
                with contextlib.suppress(asyncio.CancelledError, Exception):
                    await work

        if aborted:
            raise StreamCancelledError(f"Stream aborted: {self.reason}")
        return work.result()
