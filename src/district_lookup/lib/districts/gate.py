"""FIFO counting semaphore bounding concurrent resolutions."""

import asyncio
from collections import deque
from types import TracebackType


class ConcurrencyGate:
    """Counting semaphore with a FIFO wait queue and direct permit hand-off.

    ``release()`` gives the freed permit to the longest-waiting task instead
    of returning it to the pool, so a newly arriving task can never overtake
    a queued one. ``held`` and ``max_held`` expose how many permits are in
    use, for instrumentation.

    Args:
        permits: Maximum number of simultaneous holders.
    """

    def __init__(self, permits: int) -> None:
        if permits < 1:
            msg = f"permits must be positive, got {permits}"
            raise ValueError(msg)
        self.permits = permits
        self._available = permits
        self._waiters: deque[asyncio.Future[None]] = deque()
        self.held = 0
        self.max_held = 0

    @property
    def available(self) -> int:
        return self._available

    @property
    def waiting(self) -> int:
        return sum(1 for fut in self._waiters if not fut.done())

    async def acquire(self) -> None:
        """Wait until a permit is free and take it."""
        if self._available > 0 and not self._waiters:
            self._available -= 1
            self._mark_acquired()
            return

        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            await fut
        except asyncio.CancelledError:
            if fut.done() and not fut.cancelled():
                # Permit was handed over just before the cancellation landed
                self._pass_permit()
            elif fut in self._waiters:
                self._waiters.remove(fut)
            raise
        self._mark_acquired()

    def release(self) -> None:
        """Return a permit, handing it to the next waiter if there is one."""
        if self.held <= 0:
            msg = "release() called more times than acquire()"
            raise RuntimeError(msg)
        self.held -= 1
        self._pass_permit()

    def _mark_acquired(self) -> None:
        self.held += 1
        self.max_held = max(self.max_held, self.held)

    def _pass_permit(self) -> None:
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                fut.set_result(None)
                return
        self._available += 1

    async def __aenter__(self) -> "ConcurrencyGate":
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
