"""One-shot asynchronous readiness gate.

A :class:`ReadyBarrier` starts pending and is settled exactly once, either
resolved or rejected.  Every :meth:`~ReadyBarrier.wait` issued before or
after settlement observes the same outcome: it returns once resolved, or
re-raises the rejection.  Settled barriers never re-block.

Both the store controller (initial validation) and each cache node (first
value) use a barrier to gate reads.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional


class ReadyBarrier:
    """Single-fire gate backed by an :class:`asyncio.Event`.

    Args:
        starter: Optional coroutine factory whose completion settles the
            barrier (success resolves, an exception rejects).  It is
            scheduled immediately on the running loop, or on the first
            :meth:`wait` when constructed outside of one.

    Example::

        barrier = ReadyBarrier(validate)
        await barrier.wait()   # raises whatever validate() raised
    """

    def __init__(self, starter: Optional[Callable[[], Awaitable[None]]] = None) -> None:
        self._event = asyncio.Event()
        self._done = False
        self._error: Optional[BaseException] = None
        self._starter = starter
        self._task: Optional[asyncio.Task[None]] = None
        if starter is not None:
            self._start()

    @property
    def done(self) -> bool:
        """Whether the barrier has been settled (resolved or rejected)."""
        return self._done

    @property
    def failed(self) -> bool:
        return self._error is not None

    @property
    def error(self) -> Optional[BaseException]:
        """The rejection, if the barrier was rejected."""
        return self._error

    def resolve(self) -> None:
        """Mark the barrier satisfied. Ignored once settled."""
        if self._done:
            return
        self._done = True
        self._event.set()

    def reject(self, exc: BaseException) -> None:
        """Mark the barrier failed with *exc*. Ignored once settled."""
        if self._done:
            return
        self._done = True
        self._error = exc
        self._event.set()

    async def wait(self) -> None:
        """Block until settled; re-raise the rejection if there was one."""
        if self._starter is not None and self._task is None:
            self._start()
        await self._event.wait()
        if self._error is not None:
            raise self._error

    def cancel(self) -> None:
        """Cancel a still-running starter task."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def _start(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._task = loop.create_task(self._run())

    async def _run(self) -> None:
        assert self._starter is not None
        try:
            await self._starter()
        except asyncio.CancelledError:
            self.reject(asyncio.CancelledError())
            raise
        except Exception as exc:
            self.reject(exc)
        else:
            self.resolve()
