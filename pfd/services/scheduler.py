"""
Cooperative frame scheduler.

Timers run on virtual time advanced by the frame tick, so nothing blocks and
tests can step time deterministically. Every scheduled callback is owned
through a TimerHandle whose cancel() is idempotent.
"""
import heapq
import itertools
import logging
import math
from typing import Callable, List, Tuple

from pfd.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellable handle for one scheduled callback.

    Attributes:
        due: Virtual time at which the callback fires
        name: Label used in log messages
    """

    def __init__(self, due: float, callback: Callable[[], None], name: str = 'timer'):
        self.due = due
        self.name = name
        self._callback = callback
        self._cancelled = False
        self._fired = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def active(self) -> bool:
        """True while the callback is still going to run."""
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        """Cancel the callback. Cancelling a fired or cancelled timer is a no-op."""
        if not self.active:
            return
        self._cancelled = True
        logger.debug(f"Cancelled {self.name} due at t={self.due:.3f}")

    def _run(self) -> None:
        if not self.active:
            return
        self._fired = True
        logger.debug(f"Firing {self.name} at t={self.due:.3f}")
        self._callback()

    def __repr__(self) -> str:
        state = 'active' if self.active else ('fired' if self._fired else 'cancelled')
        return f"TimerHandle({self.name!r}, due={self.due}, {state})"


class FrameScheduler:
    """Virtual-time scheduler driven by frame ticks.

    Attributes:
        now: Current virtual time in seconds
    """

    def __init__(self, start: float = 0.0):
        self.now = float(start)
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None], name: str = 'timer') -> TimerHandle:
        """Schedule callback to run delay seconds from now.

        Raises:
            ConfigurationError: If delay is negative or not finite
        """
        if not isinstance(delay, (int, float)) or not math.isfinite(delay) or delay < 0:
            raise ConfigurationError(f"Timer delay must be a non-negative finite number, got {delay!r}",
                                     setting_name='delay', setting_value=delay, expected=">= 0")
        handle = TimerHandle(self.now + delay, callback, name)
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        logger.debug(f"Armed {name} for t={handle.due:.3f}")
        return handle

    def advance(self, dt: float) -> int:
        """Advance virtual time by dt and fire every timer that became due.

        Timers fire in due-time order (ties in scheduling order), each with
        `now` set to its due time.

        Returns:
            Number of callbacks fired
        """
        if not isinstance(dt, (int, float)) or not math.isfinite(dt) or dt < 0:
            raise ConfigurationError(f"Tick duration must be a non-negative finite number, got {dt!r}",
                                     setting_name='dt', setting_value=dt, expected=">= 0")
        target = self.now + dt
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if not handle.active:
                continue
            self.now = max(self.now, due)
            handle._run()
            fired += 1
        self.now = target
        return fired

    def pending(self) -> int:
        """Number of timers that are still going to fire."""
        return sum(1 for _, _, h in self._queue if h.active)

    def clear(self) -> None:
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()
