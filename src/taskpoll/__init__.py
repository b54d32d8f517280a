"""
Interval task poller.

Components:
- core/cancelable.py: a future that can be force-settled exactly once
- core/retry_counter.py: consecutive-failure counter
- core/registry.py: live tasks of one poller (timer + result per task)
- poller.py: per-task polling state machine, pipelines, bulk clear
- api.py: module-level helpers over a process-default poller
"""

from .api import clear_all_tasks, get_default_poller, is_poller_idling, pipe, poll, set_config
from .config import UNLIMITED, PollerConfig, TaskConfig
from .core.cancelable import CancelableResult, wrap
from .core.models import MISSING, Continue, Stop, TaskState
from .core.retry_counter import RetryCounter
from .errors import InvocationTimeoutError, PollerError, TaskCanceledError
from .poller import Poller

__all__ = [
    "MISSING",
    "UNLIMITED",
    "CancelableResult",
    "Continue",
    "InvocationTimeoutError",
    "Poller",
    "PollerConfig",
    "PollerError",
    "RetryCounter",
    "Stop",
    "TaskCanceledError",
    "TaskConfig",
    "TaskState",
    "clear_all_tasks",
    "get_default_poller",
    "is_poller_idling",
    "pipe",
    "poll",
    "set_config",
    "wrap",
]
