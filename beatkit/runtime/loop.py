"""
Single-threaded cooperative event loop.

Everything a plugin does happens on this loop: host notifications, UI calls,
timer callbacks.  Work items run one at a time, so plugin state needs no
locking.  Debounce is expressed as "replace the pending task under a key":
at most one task per key is ever pending, and it fires once the quiet period
after the *last* request has elapsed.
"""
from __future__ import annotations

import heapq
import itertools
import time
from collections import deque
from typing import Callable, Optional

import structlog

log = structlog.get_logger(__name__)


class ManualClock:
    """Deterministic clock for tests and offline replays."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"cannot move clock backwards ({seconds})")
        self.now += seconds


class ScheduledTask:
    """Handle for a timed callback.  Cancelling is idempotent."""

    __slots__ = ("due", "seq", "callback", "cancelled", "fired")

    def __init__(self, due: float, seq: int, callback: Callable[[], None]) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def __lt__(self, other: "ScheduledTask") -> bool:
        return (self.due, self.seq) < (other.due, other.seq)


class EventLoop:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._queue: deque[Callable[[], None]] = deque()
        self._timers: list[ScheduledTask] = []
        self._debounced: dict[str, ScheduledTask] = {}
        self._seq = itertools.count()

    def now(self) -> float:
        return self._clock()

    def post(self, callback: Callable[[], None]) -> None:
        """Queue *callback* to run on the next drain."""
        self._queue.append(callback)

    def call_later(self, delay_sec: float, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(self._clock() + max(0.0, delay_sec), next(self._seq), callback)
        heapq.heappush(self._timers, task)
        return task

    def debounce(self, key: str, delay_sec: float, callback: Callable[[], None]) -> ScheduledTask:
        """Schedule *callback* after *delay_sec*, replacing any pending task for *key*."""
        previous = self._debounced.get(key)
        if previous is not None and previous.pending:
            previous.cancel()
            log.debug("loop.debounce_replaced", key=key)
        task = self.call_later(delay_sec, callback)
        self._debounced[key] = task
        return task

    def has_pending(self, key: Optional[str] = None) -> bool:
        if key is not None:
            task = self._debounced.get(key)
            return task is not None and task.pending
        return bool(self._queue) or any(t.pending for t in self._timers)

    def run_pending(self) -> int:
        """Drain queued work and every timer that is due now.  Returns callbacks run.

        Callbacks may post or schedule more work; newly due items are picked up
        in the same drain.
        """
        ran = 0
        while True:
            if self._queue:
                self._run(self._queue.popleft())
                ran += 1
                continue
            task = self._pop_due()
            if task is None:
                return ran
            task.fired = True
            self._run(task.callback)
            ran += 1

    def _pop_due(self) -> Optional[ScheduledTask]:
        now = self._clock()
        while self._timers:
            head = self._timers[0]
            if head.cancelled:
                heapq.heappop(self._timers)
                continue
            if head.due > now:
                return None
            return heapq.heappop(self._timers)
        return None

    def _run(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as exc:
            log.error("loop.callback_error", callback=getattr(callback, "__name__", repr(callback)), error=str(exc))
