"""Timer scheduling for the capture pipeline.

Every delay in the pipeline (micro-batch window, input debounce, scroll
throttle, buffer flush tick, session limit check) is a timer obtained from a
Scheduler. Timer callbacks run synchronously on the scheduler's thread, so
the work inside one callback is atomic with respect to the rest of the
pipeline.

Two schedulers are provided:
- AsyncioScheduler: real timers on an asyncio event loop
- ManualScheduler: a logical clock advanced explicitly, for tests and
  offline replay of recorded notification streams
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Hashable, Optional, TypeVar

T = TypeVar("T")


class TimerHandle(ABC):
    """A pending timer that can be cancelled."""

    @abstractmethod
    def cancel(self) -> None:
        """Cancel the timer. Cancelling twice is a no-op."""
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Scheduler(ABC):
    """Source of time and timers for the pipeline."""

    @abstractmethod
    def now(self) -> float:
        """Monotonic time in milliseconds."""
        pass

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], Any]) -> TimerHandle:
        """Run callback once after delay_ms milliseconds."""
        pass


class _AsyncioTimer(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop.

    Must be created and used from the thread running the loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self._loop.time() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], Any]) -> TimerHandle:
        return _AsyncioTimer(self._loop.call_later(max(delay_ms, 0) / 1000.0, callback))


@dataclass(order=True)
class _ManualTimer(TimerHandle):
    due: float
    order: int
    callback: Callable[[], Any] = field(compare=False)
    _cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """Scheduler driven by a logical clock.

    Time only moves when advance() is called; due timers fire in due-time
    order (ties in scheduling order).

    Example:
        scheduler = ManualScheduler()
        scheduler.call_later(50, flush)
        scheduler.advance(49)   # nothing fires
        scheduler.advance(1)    # flush runs
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = start_ms
        self._timers: list[_ManualTimer] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], Any]) -> TimerHandle:
        timer = _ManualTimer(self._now + max(delay_ms, 0), next(self._counter), callback)
        heapq.heappush(self._timers, timer)
        return timer

    @property
    def pending(self) -> int:
        """Number of timers that have not fired or been cancelled."""
        return sum(1 for t in self._timers if not t.cancelled)

    def advance(self, delta_ms: float) -> None:
        """Move the clock forward, firing every timer that becomes due."""
        target = self._now + delta_ms
        while self._timers and self._timers[0].due <= target:
            timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            self._now = timer.due
            timer.callback()
        self._now = target


class Debouncer(Generic[T]):
    """Keyed trailing-edge debounce with last-write-wins.

    Each key owns a pending-value slot and a pending-timer handle. A new
    value for a key replaces the slot and restarts that key's timer; when
    the window elapses with no new value the slot is emitted.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        window_ms: float,
        emit: Callable[[T], None],
    ):
        self.scheduler = scheduler
        self.window_ms = window_ms
        self._emit = emit
        self._pending: dict[Hashable, T] = {}
        self._timers: dict[Hashable, TimerHandle] = {}

    @property
    def pending_keys(self) -> list[Hashable]:
        return list(self._pending)

    def submit(self, key: Hashable, value: T) -> None:
        """Store value as the latest for key and restart its window."""
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        # Re-insert so flush() drains keys in last-activity order
        self._pending.pop(key, None)
        self._pending[key] = value
        self._timers[key] = self.scheduler.call_later(
            self.window_ms, lambda: self._fire(key)
        )

    def _fire(self, key: Hashable) -> None:
        self._timers.pop(key, None)
        if key in self._pending:
            self._emit(self._pending.pop(key))

    def flush(self) -> None:
        """Cancel every timer and emit all pending values immediately."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        pending, self._pending = self._pending, {}
        for value in pending.values():
            self._emit(value)

    def cancel(self) -> None:
        """Cancel every timer and discard pending values."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._pending.clear()


class Throttler(Generic[T]):
    """Trailing-edge throttle: at most one emission per window.

    A value submitted outside the window is emitted immediately. A value
    submitted inside the window lands in the pending slot and is emitted at
    the window boundary; later values in the same window overwrite the slot.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        window_ms: float,
        emit: Callable[[T], None],
    ):
        self.scheduler = scheduler
        self.window_ms = window_ms
        self._emit = emit
        self._last_emit: Optional[float] = None
        self._pending: Optional[T] = None
        self._has_pending = False
        self._timer: Optional[TimerHandle] = None

    def submit(self, value: T) -> None:
        now = self.scheduler.now()
        if self._timer is None and (
            self._last_emit is None or now - self._last_emit >= self.window_ms
        ):
            self._last_emit = now
            self._emit(value)
            return

        self._pending = value
        self._has_pending = True
        if self._timer is None:
            remaining = self.window_ms - (now - self._last_emit)
            self._timer = self.scheduler.call_later(remaining, self._fire)

    def _fire(self) -> None:
        self._timer = None
        if self._has_pending:
            self._last_emit = self.scheduler.now()
            value, self._pending, self._has_pending = self._pending, None, False
            self._emit(value)

    def flush(self) -> None:
        """Cancel the timer and emit the pending value, if any."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._has_pending:
            value, self._pending, self._has_pending = self._pending, None, False
            self._emit(value)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None
        self._has_pending = False
