"""Sliding-window request gate for external API calls."""

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass
class SlidingWindowRateLimiter:
    """Admit at most `capacity` calls in any trailing window.

    Non-blocking: a denied call is not queued. State lives in memory only
    and resets when the process restarts.
    An entry expires once it is exactly `window_seconds` old, so a call at
    `t + window_seconds` is admitted again.
    """

    capacity: int
    window_seconds: float = 60.0
    clock: Callable[[], float] = time.monotonic
    _timestamps: deque[float] = field(default_factory=deque, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError("capacity must be at least 1")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

    def try_acquire(self) -> bool:
        """Record a call and return True if the window has room."""
        with self._lock:
            now = self.clock()
            self._evict(now)
            if len(self._timestamps) >= self.capacity:
                return False
            self._timestamps.append(now)
            return True

    def remaining(self) -> int:
        """Return how many calls would currently be admitted."""
        with self._lock:
            self._evict(self.clock())
            return self.capacity - len(self._timestamps)

    def _evict(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()
