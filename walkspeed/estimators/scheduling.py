"""
Timer scheduling for the stop-timeout.

The stop-timeout is the only part of the pipeline driven by time rather than
by samples. Scheduling goes through a small Scheduler interface so the same
pipeline code runs against:
    - ThreadingScheduler: real elapsed time via threading.Timer.
    - ManualScheduler: a logical clock advanced explicitly, for deterministic
      tests and for offline replay where the clock follows sample timestamps.

StopTimeout wraps a scheduler with cancel-and-reschedule semantics. Each arm()
bumps a generation counter; a callback whose generation is no longer current
is dropped when it fires, so a timer that lost a race against a newer step
has no effect even if its thread was already running.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional
import heapq
import itertools
import threading

from walkspeed.config import STOP_TIMEOUT_S


class TimerHandle:
    """Handle returned by Scheduler.schedule()."""

    def cancel(self) -> None:
        raise NotImplementedError

    @property
    def cancelled(self) -> bool:
        raise NotImplementedError


class Scheduler:
    """Base class for one-shot delayed callbacks."""

    def schedule(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError


class _ThreadingHandle(TimerHandle):
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        self._timer.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ThreadingScheduler(Scheduler):
    """Schedules callbacks on daemon threading.Timer threads."""

    def schedule(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay_s, callback)
        timer.daemon = True
        timer.start()
        return _ThreadingHandle(timer)


@dataclass(order=True)
class _ManualEntry:
    deadline: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class _ManualHandle(TimerHandle):
    def __init__(self, entry: _ManualEntry) -> None:
        self._entry = entry

    def cancel(self) -> None:
        self._entry.cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._entry.cancelled


class ManualScheduler(Scheduler):
    """
    Logical-clock scheduler.

    Time only moves when advance() or advance_to() is called. Due callbacks
    run synchronously on the caller's thread, in deadline order (ties in
    scheduling order), with `now` set to each callback's deadline.

    Example:
        >>> fired = []
        >>> sched = ManualScheduler()
        >>> _ = sched.schedule(2.5, lambda: fired.append(sched.now))
        >>> _ = sched.advance(2.0)
        >>> fired
        []
        >>> _ = sched.advance(1.0)
        >>> fired
        [2.5]
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = float(start)
        self._queue: List[_ManualEntry] = []
        self._seq = itertools.count()

    def schedule(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        if delay_s < 0:
            raise ValueError(f"delay_s must be non-negative, got {delay_s}")
        entry = _ManualEntry(self.now + delay_s, next(self._seq), callback)
        heapq.heappush(self._queue, entry)
        return _ManualHandle(entry)

    def advance(self, dt: float) -> int:
        """Move the clock forward by dt seconds. Returns callbacks fired."""
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")
        return self.advance_to(self.now + dt)

    def advance_to(self, t: float) -> int:
        """Move the clock to absolute time t (never backwards)."""
        fired = 0
        while self._queue and self._queue[0].deadline <= t:
            entry = heapq.heappop(self._queue)
            if entry.cancelled:
                continue
            self.now = max(self.now, entry.deadline)
            entry.callback()
            fired += 1
        self.now = max(self.now, t)
        return fired

    @property
    def pending(self) -> int:
        """Number of scheduled, not cancelled callbacks."""
        return sum(1 for e in self._queue if not e.cancelled)


class StopTimeout:
    """
    Re-armable inactivity timer.

    Args:
        scheduler: Source of delayed callbacks.
        timeout_s: Delay between the last arm() and the callback. Units: s.

    The callback passed to arm() receives its generation number. Callers that need
    serialization with other work (the pipeline does) wrap it themselves and
    consult is_current() inside their lock.
    """

    def __init__(self, scheduler: Scheduler, timeout_s: float = STOP_TIMEOUT_S) -> None:
        if timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {timeout_s}")
        self.scheduler = scheduler
        self.timeout_s = timeout_s
        self._handle: Optional[TimerHandle] = None
        self._generation = 0

    def arm(self, callback: Callable[[int], None]) -> int:
        """
        Cancel any pending timer and schedule a new one.

        Args:
            callback: Called with the generation it was armed under.

        Returns:
            The generation number of the new timer.
        """
        self.cancel()
        generation = self._generation
        self._handle = self.scheduler.schedule(
            self.timeout_s, lambda: callback(generation)
        )
        return generation

    def cancel(self) -> None:
        """Cancel the pending timer, if any. Safe to call repeatedly."""
        if self._handle is not None:
            self._generation += 1
            self._handle.cancel()
            self._handle = None

    def is_current(self, generation: int) -> bool:
        """True if `generation` belongs to the timer that is still pending."""
        return self._handle is not None and generation == self._generation

    def expire(self, generation: int) -> bool:
        """
        Mark the pending timer as fired.

        Returns:
            True if `generation` was current (the caller should act on it),
            False for a stale timer.
        """
        if not self.is_current(generation):
            return False
        self._handle = None
        self._generation += 1
        return True

    @property
    def pending(self) -> bool:
        return self._handle is not None
