# src/taskpoll/api.py

"""
Module-level helpers over a process-default Poller.

Convenient for scripts; code that needs isolation should construct its own
Poller instead. The default poller is created on first use with the current
settings.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

from .config import PollerConfig
from .core.ports import PollTask
from .poller import PipeRunner, Poller

logger = logging.getLogger(__name__)

_default_lock = threading.Lock()
_default_poller: Poller | None = None


def get_default_poller() -> Poller:
    global _default_poller
    with _default_lock:
        if _default_poller is None:
            _default_poller = Poller()
        return _default_poller


def reset_default_poller() -> None:
    """Clear and drop the default poller; the next helper call builds a fresh one."""
    global _default_poller
    with _default_lock:
        poller, _default_poller = _default_poller, None
    if poller is not None and not poller.is_idling():
        stopped = poller.clear()
        logger.info("Default poller reset, %d task(s) stopped", stopped)


def poll(task: PollTask, **options: Any) -> asyncio.Future[Any]:
    return get_default_poller().submit(task, **options)


def pipe(*tasks: PollTask) -> PipeRunner:
    return get_default_poller().pipe(*tasks)


def is_poller_idling() -> bool:
    return get_default_poller().is_idling()


def clear_all_tasks() -> int:
    return get_default_poller().clear()


def set_config(reset: bool = False, **fields: Any) -> PollerConfig:
    return get_default_poller().set_config(reset=reset, **fields)
