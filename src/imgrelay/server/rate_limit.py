"""
Fixed-window rate limiting per client address.

Each client gets ``max_requests`` hits per ``window_seconds``; the window
starts at the client's first hit and resets when it expires. Thread-safe.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from imgrelay.logging_config import get_logger

logger = get_logger(__name__)

# Expired windows are swept once the table grows past this many clients
_SWEEP_THRESHOLD = 10_000


@dataclass
class _Window:
    started: float
    count: int = 0


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of recording one hit."""

    allowed: bool
    limit: int
    remaining: int
    reset_in: float  # seconds until the client's window resets


class FixedWindowRateLimiter:
    """Counts hits per key inside a fixed window."""

    def __init__(
        self,
        max_requests: int = 50,
        window_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests <= 0:
            raise ValueError(f"max_requests must be > 0, got {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitDecision:
        """Record one request for key and report whether it is allowed."""
        now = self._clock()
        with self._lock:
            if len(self._windows) > _SWEEP_THRESHOLD:
                self._sweep(now)
            window = self._windows.get(key)
            if window is None or now - window.started >= self.window_seconds:
                window = _Window(started=now)
                self._windows[key] = window
            window.count += 1
            allowed = window.count <= self.max_requests
            remaining = max(self.max_requests - window.count, 0)
            reset_in = max(self.window_seconds - (now - window.started), 0.0)
        if not allowed:
            logger.warning("Rate limit exceeded for %s (%d hits)", key, window.count)
        return RateLimitDecision(allowed, self.max_requests, remaining, reset_in)

    def reset(self, key: str | None = None) -> None:
        """Forget one key, or every key when key is None."""
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def _sweep(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now - w.started >= self.window_seconds]
        for k in expired:
            del self._windows[k]
