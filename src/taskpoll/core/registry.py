# src/taskpoll/core/registry.py

"""
Registry of live tasks, owned by one Poller.

Maps task id -> InvocationContext (which owns the timer handle and the
cancelable result). A task id present here always has a live timer; removing
the entry and cancelling the timer happen together in release().

All access goes through a lock so inserts from submit(), removals from tick
callbacks and iteration from clear() stay consistent even across threads.
"""

from __future__ import annotations

import logging
import threading

from .models import InvocationContext

logger = logging.getLogger(__name__)


class TaskRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tasks: dict[int, InvocationContext] = {}
        self._last_id = 0

    def next_id(self) -> int:
        """Allocate a task id. Ids grow monotonically until reset by drain()."""
        with self._lock:
            self._last_id += 1
            return self._last_id

    def register(self, ctx: InvocationContext) -> None:
        if ctx.handle is None:
            raise ValueError(f"task {ctx.task_id} has no timer handle")
        with self._lock:
            if ctx.task_id in self._tasks:
                raise ValueError(f"task {ctx.task_id} is already registered")
            self._tasks[ctx.task_id] = ctx

    def get(self, task_id: int) -> InvocationContext | None:
        with self._lock:
            return self._tasks.get(task_id)

    def release(self, ctx: InvocationContext) -> bool:
        """
        Remove the task and cancel its timer.

        Returns True if this call removed the entry. Ids restart after drain(), so the
        entry is only removed when it still belongs to this very context.
        """
        with self._lock:
            released = self._tasks.get(ctx.task_id) is ctx
            if released:
                del self._tasks[ctx.task_id]
        if ctx.handle is not None:
            ctx.handle.cancel()
        return released

    def drain(self) -> list[InvocationContext]:
        """Release every task at once and restart id allocation."""
        with self._lock:
            drained = list(self._tasks.values())
            self._tasks.clear()
            self._last_id = 0
        for ctx in drained:
            if ctx.handle is not None:
                ctx.handle.cancel()
        if drained:
            logger.debug("Registry drained: %d task(s)", len(drained))
        return drained

    def active_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._tasks)

    def is_idle(self) -> bool:
        with self._lock:
            return not self._tasks

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._tasks
