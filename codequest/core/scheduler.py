"""Deferred callbacks for timed game transitions.

The session never sleeps: it hands a callback and a delay to a scheduler.
The app plugs in a Qt timer (see codequest.ui.qt_scheduler); tests drive a
logical clock by hand.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Callable, List, Tuple


class Scheduler:
    """Interface: run ``callback`` once after ``delay_ms`` milliseconds."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        raise NotImplementedError


class ManualScheduler(Scheduler):
    """Logical clock. Nothing runs until ``advance`` moves time forward."""

    def __init__(self) -> None:
        self._now_ms = 0
        self._counter = itertools.count()
        self._queue: List[Tuple[int, int, Callable[[], None]]] = []

    @property
    def now_ms(self) -> int:
        return self._now_ms

    @property
    def pending(self) -> int:
        return len(self._queue)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        due = self._now_ms + max(0, int(delay_ms))
        heapq.heappush(self._queue, (due, next(self._counter), callback))

    def advance(self, delay_ms: int) -> int:
        """Move the clock forward and run every callback that became due. Returns how many ran."""
        target = self._now_ms + max(0, int(delay_ms))
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, callback = heapq.heappop(self._queue)
            self._now_ms = due
            callback()
            ran += 1
        self._now_ms = target
        return ran

    def run_all(self) -> int:
        """Run everything queued, however far in the future."""
        ran = 0
        while self._queue:
            ran += self.advance(self._queue[0][0] - self._now_ms)
        return ran
