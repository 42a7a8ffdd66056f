"""
Recompute triggers for a mounted chart.

Every geometry-affecting event funnels into one ``recompute`` callback:

  - mount             immediately, then once more on the next tick
  - settle schedule   again at 50 ms, 250 ms and 600 ms after mount, since
                      card content can keep changing size after the first
                      paint with no reliable "done" signal
  - node resize, viewport resize, scroll

A host that *can* tell when layout is final calls ``layout_stable()``,
which drops the remaining settle timers and recomputes once.

Timers come from a ``Scheduler``.  ``AsyncioScheduler`` wraps an event
loop; ``ManualScheduler`` is a virtual clock for one-shot rendering and
tests.  ``unmount()`` cancels every pending timer, after which all
notifications are ignored.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

SETTLE_DELAYS: tuple[float, ...] = (0.05, 0.25, 0.6)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


# ---------------------------------------------------------------------------
# Schedulers
# ---------------------------------------------------------------------------

class AsyncioScheduler:
    """Schedules callbacks on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class _ManualHandle:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """A virtual clock.  Nothing fires until ``advance`` or ``run_all``."""

    def __init__(self):
        self.now = 0.0
        self._queue: list[tuple[float, int, _ManualHandle]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(self.now + max(delay, 0.0), callback)
        heapq.heappush(self._queue, (handle.when, next(self._counter), handle))
        return handle

    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in order.

        Returns the number of callbacks fired.
        """
        deadline = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= deadline:
            when, _, handle = heapq.heappop(self._queue)
            self.now = when
            if handle.cancelled:
                continue
            handle.callback()
            fired += 1
        self.now = deadline
        return fired

    def run_all(self) -> int:
        """Fire everything pending, however far in the future."""
        fired = 0
        while self._queue:
            fired += self.advance(self._queue[0][0] - self.now)
        return fired


# ---------------------------------------------------------------------------
# Observer
# ---------------------------------------------------------------------------

class PositionObserver:
    """Turns host events into ``recompute`` calls while mounted."""

    def __init__(
        self,
        recompute: Callable[[], None],
        scheduler: Scheduler,
        settle_delays: tuple[float, ...] = SETTLE_DELAYS,
    ):
        self._recompute = recompute
        self._scheduler = scheduler
        self._settle_delays = settle_delays
        self._handles: list[TimerHandle] = []
        self._mounted = False

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self) -> None:
        if self._mounted:
            return
        self._mounted = True
        self._fire()
        self._schedule(0.0)
        for delay in self._settle_delays:
            self._schedule(delay)

    def unmount(self) -> None:
        if not self._mounted:
            return
        self._mounted = False
        self._cancel_pending()
        logger.debug("Observer detached")

    def layout_stable(self) -> None:
        """The host reports that layout is final."""
        if not self._mounted:
            return
        self._cancel_pending()
        self._fire()

    def notify_node_resize(self, node_id: str) -> None:
        self._fire()

    def notify_viewport_resize(self) -> None:
        self._fire()

    def notify_scroll(self) -> None:
        self._fire()

    def _schedule(self, delay: float) -> None:
        self._handles.append(self._scheduler.call_later(delay, self._fire))

    def _cancel_pending(self) -> None:
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()

    def _fire(self) -> None:
        if self._mounted:
            self._recompute()
