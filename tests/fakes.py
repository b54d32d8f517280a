# tests/fakes.py

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


class FailingTask:
    """
    Async task that fails on every invocation.

    The message carries the attempt number, so the final rejection tells which
    invocation gave up.
    """

    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self, cancel, get_retry_count) -> None:
        self.calls += 1
        raise RuntimeError(f"stop polling after retry {get_retry_count() + 1} times.")


class CountingTask:
    """
    Async task returning 1, 2, 3, ... and calling cancel(*cancel_args) on invocation
    `stop_at` (never, when stop_at is None).
    """

    def __init__(self, stop_at: int | None = None, cancel_args: tuple[Any, ...] = ()) -> None:
        self.calls = 0
        self.stop_at = stop_at
        self.cancel_args = cancel_args

    async def __call__(self, cancel, get_retry_count) -> Any:
        self.calls += 1
        if self.stop_at is not None and self.calls >= self.stop_at:
            return cancel(*self.cancel_args)
        return self.calls


class BlockingTask:
    """Async task that waits on an event; records invocations, their start times and cancellations."""

    def __init__(self) -> None:
        self.calls = 0
        self.cancelled = 0
        self.starts: list[float] = []
        self.release = asyncio.Event()

    async def __call__(self, cancel, get_retry_count) -> int:
        self.calls += 1
        self.starts.append(asyncio.get_running_loop().time())
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        return self.calls


@dataclass(slots=True)
class FakeHandle:
    interval_ms: int
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass(slots=True)
class FakeTimers:
    """
    IntervalScheduler whose ticks fire only when the test says so.
    """

    handles: list[FakeHandle] = field(default_factory=list)

    def schedule_interval(self, interval_ms: int, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(interval_ms=interval_ms, callback=callback)
        self.handles.append(handle)
        return handle

    def tick(self) -> int:
        """Fire every live timer once. Returns how many fired."""
        fired = 0
        for handle in list(self.handles):
            if not handle.cancelled:
                handle.callback()
                fired += 1
        return fired


async def settle_loop(rounds: int = 5) -> None:
    """Let freshly created invocation tasks run to completion."""
    for _ in range(rounds):
        await asyncio.sleep(0)
