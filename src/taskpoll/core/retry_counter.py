# src/taskpoll/core/retry_counter.py

from __future__ import annotations


class RetryCounter:
    """
    Consecutive-failure counter for one task.

    Only the task's own invocation sequence touches it, so there is no locking.
    """

    __slots__ = ("_value",)

    def __init__(self) -> None:
        self._value = 0

    def current(self) -> int:
        return self._value

    def increment(self) -> int:
        self._value += 1
        return self._value

    def reset(self) -> None:
        self._value = 0

    def __repr__(self) -> str:
        return f"RetryCounter({self._value})"
