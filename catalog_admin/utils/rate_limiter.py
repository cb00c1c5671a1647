"""Politeness limiter for calls to the scraping backend.

The scraping service is not known to tolerate parallel detail scrapes, so
requests go out one at a time with a fixed pause between the end of one call
and the start of the next.
"""

import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional


class SequentialRateLimiter:
    """Serializes tasks and enforces a minimum gap between them.

    Usage:
        limiter = SequentialRateLimiter(delay_seconds=1.0)
        with limiter.limit():
            client.scrape_product(platform, url)
    """

    def __init__(
        self,
        delay_seconds: float = 1.0,
        max_in_flight: int = 1,
        allow_concurrency: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize limiter.

        Args:
            delay_seconds: Minimum pause between consecutive tasks
            max_in_flight: Maximum number of concurrent tasks
            allow_concurrency: Must be True to accept ``max_in_flight > 1``
            sleep: Sleep function (injectable for tests)
            clock: Monotonic clock (injectable for tests)

        Raises:
            ValueError: On a negative delay or an unsupported concurrency level
        """
        if delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        if max_in_flight > 1 and not allow_concurrency:
            raise ValueError(
                "Scraping backend is only known to handle one request at a time; "
                "pass allow_concurrency=True to override"
            )

        self.delay_seconds = delay_seconds
        self.max_in_flight = max_in_flight
        self._sleep = sleep
        self._clock = clock
        self._semaphore = threading.BoundedSemaphore(max_in_flight)
        self._lock = threading.Lock()
        self._last_finished: Optional[float] = None
        self.tasks_run = 0
        self.total_waited = 0.0

    def wait_time(self) -> float:
        """Seconds still to wait before the next task may start."""
        with self._lock:
            if self._last_finished is None:
                return 0.0
            elapsed = self._clock() - self._last_finished
        return max(0.0, self.delay_seconds - elapsed)

    @contextmanager
    def limit(self) -> Iterator[None]:
        """Hold a task slot, waiting out the inter-task delay first."""
        self._semaphore.acquire()
        try:
            wait_seconds = self.wait_time()
            if wait_seconds > 0:
                self._sleep(wait_seconds)
                self.total_waited += wait_seconds
            yield
        finally:
            with self._lock:
                self._last_finished = self._clock()
                self.tasks_run += 1
            self._semaphore.release()

    def reset(self) -> None:
        """Forget the previous task so the next one starts immediately."""
        with self._lock:
            self._last_finished = None

    def get_stats(self) -> dict:
        return {
            "delay_seconds": self.delay_seconds,
            "max_in_flight": self.max_in_flight,
            "tasks_run": self.tasks_run,
            "total_waited": round(self.total_waited, 3),
        }
