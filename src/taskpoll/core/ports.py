# src/taskpoll/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the poller.

The poller depends on Protocols instead of concrete implementations.
This keeps the timer facility swappable and makes testing easier.
"""

from typing import Any, Callable, Protocol

RetryCountFn = Callable[[], int]


class CancelFn(Protocol):
    """
    Handed to every task invocation.

    cancel()               -> stop and resolve with the last good value
    cancel(True, value)    -> stop and resolve with value
    cancel(False[, value]) -> stop and reject
    """

    def __call__(self, success: bool = True, value: Any = ...) -> None: ...


class PollTask(Protocol):
    """
    A unit of work polled on an interval.

    Called as task(cancel, get_retry_count, initial_value); tasks declaring only two
    parameters are called without initial_value. May return a plain value, an
    awaitable, or a Stop / Continue outcome.
    """

    def __call__(self, cancel: CancelFn, get_retry_count: RetryCountFn, *args: Any) -> Any: ...


class TimerHandle(Protocol):
    """Opaque handle for a repeating callback. cancel() must be idempotent."""

    def cancel(self) -> None: ...

    @property
    def cancelled(self) -> bool: ...


class IntervalScheduler(Protocol):
    """Timer facility: run callback every interval_ms until the handle is cancelled."""

    def schedule_interval(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle: ...
