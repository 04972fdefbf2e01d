"""Fixed-window request counter guarding calls to the district provider."""

import time
from collections.abc import Callable


class RateLimiter:
    """Counts provider requests in a rolling fixed window.

    The window restarts once more than ``window_seconds`` have passed since it
    began. ``allow()`` never blocks; callers decide what to do on denial.

    Args:
        max_requests: Requests permitted per window.
        window_seconds: Window length in seconds.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            msg = f"max_requests must be positive, got {max_requests}"
            raise ValueError(msg)
        if window_seconds <= 0:
            msg = f"window_seconds must be positive, got {window_seconds}"
            raise ValueError(msg)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self.request_count = 0
        self.window_start = clock()

    def _roll_window(self) -> None:
        now = self._clock()
        if now - self.window_start > self.window_seconds:
            self.request_count = 0
            self.window_start = now

    def allow(self) -> bool:
        """Whether another request fits in the current window."""
        self._roll_window()
        return self.request_count < self.max_requests

    def record(self) -> None:
        """Count one provider attempt."""
        self._roll_window()
        self.request_count += 1

    @property
    def remaining(self) -> int:
        self._roll_window()
        return max(self.max_requests - self.request_count, 0)

    def reset(self) -> None:
        self.request_count = 0
        self.window_start = self._clock()
