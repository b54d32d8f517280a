# src/taskpoll/core/timers.py

"""
asyncio timer facility.

Each repeating timer is a chain of loop.call_later() calls. The next tick is
armed before the callback runs, so a slow callback does not push the schedule.
"""

from __future__ import annotations

import asyncio
from typing import Callable


class IntervalHandle:
    """Opaque handle for one repeating timer. Not orderable, not reusable."""

    __slots__ = ("_loop", "_delay", "_callback", "_timer", "_cancelled")

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval_ms: int,
        callback: Callable[[], None],
    ) -> None:
        self._loop = loop
        self._delay = max(0, interval_ms) / 1000.0
        self._callback = callback
        self._cancelled = False
        self._timer: asyncio.TimerHandle = loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._timer = self._loop.call_later(self._delay, self._fire)
        self._callback()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._timer.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"<IntervalHandle every={self._delay:g}s {state}>"


class AsyncioTimers:
    """Default IntervalScheduler bound to the running event loop."""

    def schedule_interval(self, interval_ms: int, callback: Callable[[], None]) -> IntervalHandle:
        loop = asyncio.get_running_loop()
        return IntervalHandle(loop, interval_ms, callback)
