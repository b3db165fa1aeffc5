"""Per-server debounce, throttle and retry around supported-versions checks.

Each server URL has at most one pending check and at most one running check.
Scheduling a new check for a URL always cancels the previous pending one, so
a superseded check can never fire. A check whose delay elapses while another
check for the same URL is running stays pending until that one finishes.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from supported_versions.infrastructure import ServerRegistry

logger = logging.getLogger(__name__)

DEBOUNCE_DELAY = 5.0
THROTTLE_INTERVAL = 30.0
MAX_RETRY_ATTEMPTS = 3
FAILURE_THRESHOLD = 3
RETRY_DELAYS: tuple[float, ...] = (0.0, 5.0, 15.0)

CheckFn = Callable[[str], Awaitable[object]]


@dataclass
class PendingCheck:
    url: str
    task: asyncio.Task
    retry_count: int


class CheckScheduler:
    def __init__(
        self,
        registry: ServerRegistry | None = None,
        *,
        debounce_delay: float = DEBOUNCE_DELAY,
        throttle_interval: float = THROTTLE_INTERVAL,
        retry_delays: Sequence[float] = RETRY_DELAYS,
        max_retry_attempts: int = MAX_RETRY_ATTEMPTS,
        failure_threshold: int = FAILURE_THRESHOLD,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._registry = registry
        self._debounce_delay = debounce_delay
        self._throttle_interval = throttle_interval
        self._retry_delays = tuple(retry_delays)
        self._max_retry_attempts = max_retry_attempts
        self._failure_threshold = failure_threshold
        self._clock = clock
        self._pending: dict[str, PendingCheck] = {}
        self._last_check_times: dict[str, float] = {}
        self._tasks: set[asyncio.Task] = set()
        self._running: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # throttling
    # ------------------------------------------------------------------
    def should_throttle(self, url: str) -> bool:
        last_check = self._last_check_times.get(url)
        if last_check is None:
            return False
        return self._clock() - last_check < self._throttle_interval

    def record_check_attempt(self, url: str) -> None:
        self._last_check_times[url] = self._clock()

    def _run_lock(self, url: str) -> asyncio.Lock:
        return self._running.setdefault(url, asyncio.Lock())

    def is_running(self, url: str) -> bool:
        lock = self._running.get(url)
        return lock is not None and lock.locked()

    # ------------------------------------------------------------------
    # scheduling
    # ------------------------------------------------------------------
    def _delay_for(self, *, immediate: bool, retry: int) -> float:
        if immediate:
            return 0.0
        if retry:
            return self._retry_delays[retry] if retry < len(self._retry_delays) else 0.0
        return self._debounce_delay

    def schedule_check(self, url: str, check_fn: CheckFn, *, immediate: bool = False, retry: int = 0) -> None:
        """Schedule ``check_fn(url)``, replacing any pending check for ``url``."""

        self.cancel_check(url, quiet=True)

        if not immediate and not retry and self.should_throttle(url):
            logger.info("Throttling check for %s, last check was too recent", url)
            return

        delay = self._delay_for(immediate=immediate, retry=retry)
        logger.info("Scheduling check for %s in %.1fs (retry: %d)", url, delay, retry)

        task = asyncio.get_running_loop().create_task(self._fire(url, check_fn, delay, retry))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._pending[url] = PendingCheck(url=url, task=task, retry_count=retry)

    async def _fire(self, url: str, check_fn: CheckFn, delay: float, retry: int) -> None:
        await asyncio.sleep(delay)

        async with self._run_lock(url):
            pending = self._pending.get(url)
            if pending is not None and pending.task is asyncio.current_task():
                del self._pending[url]
            self.record_check_attempt(url)
            failure = await self._run(url, check_fn)

        if failure is None:
            logger.info("Check succeeded for %s", url)
            return
        logger.warning(
            "Check failed for %s, attempt %d/%d: %s", url, retry + 1, self._max_retry_attempts, failure
        )
        if retry < self._max_retry_attempts - 1:
            self.schedule_check(url, check_fn, retry=retry + 1)
        else:
            logger.error("All retry attempts exhausted for %s", url)

    async def _run(self, url: str, check_fn: CheckFn) -> Exception | None:
        try:
            await check_fn(url)
        except Exception as exc:
            return exc
        return None

    async def run_now(self, url: str, check_fn: CheckFn) -> object:
        """Cancel any pending check and run ``check_fn`` right away."""

        self.cancel_check(url, quiet=True)
        async with self._run_lock(url):
            self.record_check_attempt(url)
            return await check_fn(url)

    def cancel_check(self, url: str, *, quiet: bool = False) -> None:
        pending = self._pending.pop(url, None)
        if pending is None:
            return
        pending.task.cancel()
        if not quiet:
            logger.info("Cancelled pending check for %s", url)

    async def shutdown(self) -> None:
        """Cancel pending checks and wait for running ones to stop."""

        self._pending.clear()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def has_pending_check(self, url: str) -> bool:
        return url in self._pending

    def pending_retry_count(self, url: str) -> int | None:
        pending = self._pending.get(url)
        return pending.retry_count if pending else None

    # ------------------------------------------------------------------
    # failure tracking
    # ------------------------------------------------------------------
    def get_server_failure_count(self, url: str) -> int:
        server = self._registry.get(url) if self._registry is not None else None
        return server.version_check_failure_count if server else 0

    def is_failure_threshold_reached(self, url: str) -> bool:
        return self.get_server_failure_count(url) >= self._failure_threshold
