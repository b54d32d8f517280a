# src/taskpoll/errors.py

"""Poller exceptions.

Only two kinds of failure ever reach a caller's future: an explicit
cancellation with failure intent, and the last error of a task whose retry
budget ran out (that one is passed through untouched, not wrapped).
"""

from __future__ import annotations

from typing import Any


class PollerError(Exception):
    """Base exception for all taskpoll errors."""

    pass


class TaskCanceledError(PollerError):
    """A task asked to stop with failure intent.

    Attributes:
        payload: Value handed to ``cancel(False, payload)``; ``None`` when the
            task cancelled without one.
        task_id: Id of the task that was cancelled (if known).
    """

    def __init__(self, payload: Any = None, task_id: int | None = None):
        self.payload = payload
        self.task_id = task_id
        parts = ["Task was canceled"]
        if task_id is not None:
            parts.append(f"(task {task_id})")
        if payload is not None:
            parts.append(f": {payload!r}")
        super().__init__(" ".join(parts))


class InvocationTimeoutError(PollerError, TimeoutError):
    """A single invocation ran longer than its timeout.

    Counted against the retry budget exactly like an exception raised by the
    task body.
    """

    def __init__(self, timeout_ms: int, task_id: int | None = None):
        self.timeout_ms = timeout_ms
        self.task_id = task_id
        super().__init__(f"timed out after {timeout_ms} ms")
