# src/taskpoll/core/models.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final

from .retry_counter import RetryCounter

if TYPE_CHECKING:
    from ..config import TaskConfig
    from .cancelable import CancelableResult
    from .ports import PollTask, TimerHandle


class _Missing:
    """Marker for "no value supplied" (distinct from an explicit None)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


class TaskState(StrEnum):
    """
    Per-task lifecycle state.

    PENDING is the only non-terminal state; every tick outcome either keeps the task
    PENDING or moves it to RESOLVED / REJECTED, after which no tick fires.
    """

    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"

    @property
    def terminal(self) -> bool:
        return self is not TaskState.PENDING


@dataclass(slots=True, frozen=True)
class Continue:
    """Tick outcome: keep polling, remember ``value`` as the last good value."""

    value: Any = None


@dataclass(slots=True, frozen=True)
class Stop:
    """
    Tick outcome: stop polling now.

    success=True  -> resolve with ``value`` (or the cached value when omitted)
    success=False -> reject with ``value`` (or a generic cancellation error)
    """

    success: bool = True
    value: Any = MISSING


@dataclass(slots=True, eq=False)
class InvocationContext:
    """Everything the poller tracks for one submitted task, from submit to settlement."""

    task_id: int
    task: PollTask
    config: TaskConfig
    result: CancelableResult
    retry_counter: RetryCounter = field(default_factory=RetryCounter)
    cached_value: Any = MISSING
    handle: TimerHandle | None = None
    inflight: asyncio.Task[None] | None = None
    deadline: float | None = None  # loop time the in-flight invocation must finish by
    pass_initial_value: bool = True
    invocations: int = 0
    state: TaskState = TaskState.PENDING
