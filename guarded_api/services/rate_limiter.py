import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from guarded_api.core.exceptions.rate_limiter import RateLimitConfigurationError

Clock = Callable[[], float]


@dataclass(frozen=True)
class RateLimitPolicy:
    """Maximum number of requests (`limit`) per client per `window` seconds."""

    limit: int
    window: float

    def __post_init__(self):
        if self.limit <= 0:
            raise RateLimitConfigurationError(f"Rate limit must be positive, got {self.limit}")
        if self.window <= 0:
            raise RateLimitConfigurationError(
                f"Rate limit window must be positive, got {self.window}"
            )

    @property
    def retry_after(self) -> int:
        """Retry hint in whole seconds, as sent in the `Retry-After` header."""
        return max(1, int(self.window))


@dataclass
class ClientWindow:
    count: int
    window_start: float


class RateLimiter:
    """
    In-process rate limiter using a fixed window per client key.

    Each key owns a counter and the instant its window opened. The window
    restarts on the first request seen after it fully elapsed, so bursts of up
    to `2 * limit` requests are possible around a window boundary.

    A single lock guards the whole table. Entries whose window elapsed are
    removed by `sweep()`, which `start()` runs periodically in the background.

    Example:
        ```python
        limiter = RateLimiter(RateLimitPolicy(limit=100, window=60))

        if not limiter.allow(get_client_ip(request)):
            raise RateLimitExceeded(retry_after=limiter.policy.retry_after)
        ```
    """

    def __init__(self, policy: RateLimitPolicy, clock: Clock = time.monotonic):
        self.policy = policy
        self._clock = clock
        self._windows: dict[str, ClientWindow] = {}
        self._lock = threading.Lock()
        self._sweeper: asyncio.Task | None = None

    def allow(self, key: str) -> bool:
        """
        Count a request for `key` and report whether it may proceed.

        Args:
            key: Client identifier (usually the client IP)

        Returns:
            bool: True while the key is within its limit for the current window.
                A denied request does not increment the counter.
        """
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)

            if window is None or now - window.window_start > self.policy.window:
                self._windows[key] = ClientWindow(count=1, window_start=now)
                return True

            if window.count >= self.policy.limit:
                return False

            window.count += 1
            return True

    def count(self, key: str) -> int:
        """Requests counted for `key` in its current window (0 when untracked)."""
        with self._lock:
            window = self._windows.get(key)
            return window.count if window else 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def sweep(self, now: float | None = None) -> int:
        """
        Remove every entry whose window has fully elapsed.

        Args:
            now: Reference instant, defaults to the limiter clock

        Returns:
            int: Number of removed entries
        """
        with self._lock:
            now = self._clock() if now is None else now
            expired = [
                key
                for key, window in self._windows.items()
                if now - window.window_start > self.policy.window
            ]
            for key in expired:
                del self._windows[key]

        if expired:
            logger.debug(f"Rate limiter swept {len(expired)} expired client windows")

        return len(expired)

    async def _sweep_forever(self):
        while True:
            await asyncio.sleep(self.policy.window)
            self.sweep()

    def start(self):
        """Start the periodic sweep task on the running event loop."""
        if self._sweeper is not None and not self._sweeper.done():
            return

        self._sweeper = asyncio.create_task(self._sweep_forever(), name="rate-limiter-sweep")
        logger.debug(f"Rate limiter sweep started, every {self.policy.window}s")

    async def stop(self):
        """Cancel the sweep task and wait for it to finish."""
        if self._sweeper is None:
            return

        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        finally:
            self._sweeper = None

        logger.debug("Rate limiter sweep stopped")

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()
