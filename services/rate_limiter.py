"""Admission control for outbound AI calls.

A sliding 60-second window bounds how many calls are admitted; callers beyond
the budget wait in a FIFO queue that a background tick drains as the window
frees up. The limiter also keeps a running monthly token count and warns once
when a call pushes it past the configured threshold.

One instance is built per process by the application lifespan and shared via
``app.state``; tests construct their own with a fake clock.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Optional

from utils.errors import RateLimitTimeoutError

LOGGER = logging.getLogger(__name__)

ThresholdCallback = Callable[[int, int], None]


@dataclass
class _Waiter:
    future: asyncio.Future
    enqueued_at: float


class RateLimiter:
    """Sliding-window limiter with a FIFO wait queue and monthly token counter.

    Args:
        max_requests_per_minute: Calls admitted within any trailing window.
        monthly_token_threshold: Token total above which a warning is emitted.
        window_seconds: Length of the admission window.
        tick_interval: Seconds between background queue drains.
        clock: Monotonic time source in seconds.
        on_threshold_exceeded: Optional ``(total, threshold)`` hook called when a
            tracked call crosses the threshold.
    """

    def __init__(
        self,
        max_requests_per_minute: int,
        monthly_token_threshold: int,
        *,
        window_seconds: float = 60.0,
        tick_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        on_threshold_exceeded: Optional[ThresholdCallback] = None,
    ) -> None:
        if max_requests_per_minute <= 0:
            raise ValueError("max_requests_per_minute must be positive")
        self.max_requests_per_minute = max_requests_per_minute
        self.monthly_token_threshold = monthly_token_threshold
        self.window_seconds = window_seconds
        self.tick_interval = tick_interval
        self._clock = clock
        self._on_threshold_exceeded = on_threshold_exceeded

        self._timestamps: Deque[float] = deque()
        self._queue: Deque[_Waiter] = deque()
        self._monthly_tokens = 0
        self._tick_task: Optional[asyncio.Task] = None
        self._stopped = False

    # -- admission -----------------------------------------------------------------

    def _prune(self) -> None:
        cutoff = self._clock() - self.window_seconds
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()

    def _has_capacity(self) -> bool:
        return len(self._timestamps) < self.max_requests_per_minute

    async def acquire(self, timeout: Optional[float] = None) -> None:
        """Wait until a call may be made.

        Returns immediately while the window has room and nobody is queued.
        Otherwise the caller joins the tail of the queue. With ``timeout=None``
        the wait is unbounded; with a timeout, ``RateLimitTimeoutError`` is raised
        and the caller leaves the queue. Cancelling the awaiting task also removes
        it from the queue.
        """
        self._prune()
        if self._queue and not self._stopped:
            self.process_queue()

        if not self._queue and self._has_capacity():
            self._timestamps.append(self._clock())
            LOGGER.debug(
                "AI request admitted (%s/%s in window)",
                len(self._timestamps),
                self.max_requests_per_minute,
            )
            return

        waiter = _Waiter(future=asyncio.get_running_loop().create_future(), enqueued_at=self._clock())
        self._queue.append(waiter)
        LOGGER.info("AI request queued due to rate limit (queue length %s)", len(self._queue))

        try:
            if timeout is None:
                await waiter.future
            else:
                await asyncio.wait_for(waiter.future, timeout)
        except asyncio.TimeoutError as exc:
            if waiter.future.done() and not waiter.future.cancelled():
                return
            self._discard(waiter)
            raise RateLimitTimeoutError(f"Not admitted within {timeout:.1f}s") from exc
        except asyncio.CancelledError:
            self._discard(waiter)
            raise

    def _discard(self, waiter: _Waiter) -> None:
        try:
            self._queue.remove(waiter)
        except ValueError:
            pass

    def process_queue(self) -> int:
        """Admit queued callers, oldest first, while the window has room.

        Called by the background tick; returns how many callers were admitted.
        Admits nobody once the limiter has been stopped.
        """
        if self._stopped:
            return 0
        self._prune()
        admitted = 0
        while self._queue and self._has_capacity():
            waiter = self._queue.popleft()
            if waiter.future.done():
                continue
            now = self._clock()
            self._timestamps.append(now)
            waiter.future.set_result(None)
            admitted += 1
            LOGGER.debug(
                "Queued AI request admitted after %.1fs (queue length %s)",
                now - waiter.enqueued_at,
                len(self._queue),
            )
        return admitted

    # -- background tick -------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    def start(self) -> None:
        """Start the background queue drain. Requires a running event loop."""
        if self.is_running:
            return
        self._stopped = False
        self._tick_task = asyncio.get_running_loop().create_task(self._run_ticks())
        LOGGER.info("Rate limiter started (%s requests/minute)", self.max_requests_per_minute)

    async def _run_ticks(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.tick_interval)
                self.process_queue()
            except asyncio.CancelledError:
                break
            except Exception:
                LOGGER.exception("Rate limiter tick failed")

    def stop(self) -> None:
        """Stop the background drain. Callers still queued are not admitted."""
        if self._stopped:
            return
        self._stopped = True
        if self._tick_task is not None:
            self._tick_task.cancel()
        self._tick_task = None
        if self._queue:
            LOGGER.warning("Rate limiter stopped with %s queued request(s)", len(self._queue))
        else:
            LOGGER.info("Rate limiter stopped")

    # -- token accounting ----------------------------------------------------------------

    def track_token_usage(self, tokens: int) -> None:
        """Add ``tokens`` to the monthly total.

        Notifies once, on the call that moves the total above the threshold.
        Later calls while still over budget do not notify again until
        ``reset_monthly_tokens``.
        """
        previous = self._monthly_tokens
        self._monthly_tokens += int(tokens)
        LOGGER.debug(
            "Token usage tracked: +%s (monthly total %s / %s)",
            tokens,
            self._monthly_tokens,
            self.monthly_token_threshold,
        )
        if previous <= self.monthly_token_threshold < self._monthly_tokens:
            self._notify_threshold_exceeded()

    def _notify_threshold_exceeded(self) -> None:
        percentage = round(self._monthly_tokens / self.monthly_token_threshold * 100) if self.monthly_token_threshold else 0
        LOGGER.warning(
            "Monthly token threshold exceeded: %s tokens used of %s (%s%%)",
            self._monthly_tokens,
            self.monthly_token_threshold,
            percentage,
        )
        if self._on_threshold_exceeded is None:
            return
        try:
            self._on_threshold_exceeded(self._monthly_tokens, self.monthly_token_threshold)
        except Exception:
            LOGGER.exception("Token threshold notification hook failed")

    def reset_monthly_tokens(self) -> None:
        LOGGER.info("Resetting monthly token counter (previous total %s)", self._monthly_tokens)
        self._monthly_tokens = 0

    # -- reads ------------------------------------------------------------------------

    def get_current_request_rate(self) -> int:
        self._prune()
        return len(self._timestamps)

    def get_queue_length(self) -> int:
        return len(self._queue)

    def get_monthly_token_usage(self) -> int:
        return self._monthly_tokens
