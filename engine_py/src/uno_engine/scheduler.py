"""
Timers used by the engine and the session host.

Every delayed effect (auto-hit, error clear, bot thinking) goes through a
scheduler so that replacing a session can cancel everything it left behind.
"""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Set

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellable handle returned by ``call_later``."""

    def __init__(self, callback: Callable[[], None], due: float, name: str = ''):
        self.callback = callback
        self.due = due
        self.name = name
        self.cancelled = False
        self._native = None

    def cancel(self):
        self.cancelled = True
        if self._native is not None:
            self._native.cancel()


class Scheduler(ABC):
    """Base scheduler interface."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None], name: str = '') -> TimerHandle:
        """Run ``callback`` after ``delay`` seconds unless cancelled first."""
        pass

    @abstractmethod
    def cancel_all(self):
        """Cancel every timer that has not fired yet."""
        pass


class ManualScheduler(Scheduler):
    """
    Scheduler driven by its owner instead of a clock.

    Tests and polling hosts call ``advance`` (virtual seconds) to fire
    timers in due order.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None], name: str = '') -> TimerHandle:
        handle = TimerHandle(callback, self.now + delay, name)
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle))
        return handle

    def cancel_all(self):
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()

    @property
    def pending(self) -> List[TimerHandle]:
        return [h for _, _, h in sorted(self._queue) if not h.cancelled]

    def advance(self, seconds: float) -> int:
        """
        Move the virtual clock forward, firing every timer that comes due.

        Timers scheduled by a firing callback run too if they fall inside the window.

        Returns:
            Number of callbacks fired
        """
        deadline = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= deadline:
            due, _, handle = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            if handle.cancelled:
                continue
            handle.callback()
            fired += 1
        self.now = deadline
        return fired


class AsyncioScheduler(Scheduler):
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._handles: Set[TimerHandle] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None], name: str = '') -> TimerHandle:
        handle = TimerHandle(callback, self.loop.time() + delay, name)

        def fire():
            self._handles.discard(handle)
            if handle.cancelled:
                return
            try:
                callback()
            except Exception:
                logger.exception(f"Timer {name or callback} failed")

        handle._native = self.loop.call_later(delay, fire)
        self._handles.add(handle)
        return handle

    def cancel_all(self):
        for handle in list(self._handles):
            handle.cancel()
        self._handles.clear()
