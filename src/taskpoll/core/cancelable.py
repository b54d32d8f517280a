# src/taskpoll/core/cancelable.py

"""
Cancelable result.

Wraps an awaitable (or nothing, for a result that is only ever settled by force)
in an asyncio.Future that any holder may settle exactly once:
- natural completion of the wrapped computation settles it,
- force_settle() settles it from outside,
- whichever comes first wins; later attempts are no-ops.

Forcing does not cancel the wrapped computation. It keeps running in the
background and its outcome is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

from ..errors import TaskCanceledError
from .models import MISSING

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CancelableResult(Generic[T]):
    def __init__(
        self,
        computation: Awaitable[T] | None = None,
        *,
        fallback: Callable[[], Any] | None = None,
    ) -> None:
        loop = asyncio.get_running_loop()
        self._future: asyncio.Future[T | None] = loop.create_future()
        self._fallback = fallback
        self._forced = False
        self._source: asyncio.Future[T] | None = None

        if computation is not None:
            self._source = asyncio.ensure_future(computation)
            self._source.add_done_callback(self._on_natural_done)

    @property
    def future(self) -> asyncio.Future[T | None]:
        return self._future

    @property
    def settled(self) -> bool:
        return self._future.done()

    @property
    def is_canceled(self) -> bool:
        """True if the outcome was decided by force_settle()."""
        return self._forced

    def __await__(self):
        return self._future.__await__()

    def force_settle(self, as_failure: bool = False, payload: Any = MISSING) -> bool:
        """
        Settle the outcome from outside.

        as_failure=False: resolve with payload, else the fallback value, else None.
        as_failure=True:  reject with payload if it is an exception, otherwise with
                          TaskCanceledError carrying it.

        Returns True if this call decided the outcome.
        """
        if self._future.done():
            return False
        self._forced = True

        if as_failure:
            self._future.set_exception(_as_exception(payload))
            return True

        value = payload
        if value is MISSING and self._fallback is not None:
            value = self._fallback()
        self._future.set_result(None if value is MISSING else value)
        return True

    def _on_natural_done(self, source: asyncio.Future[T]) -> None:
        if source.cancelled():
            if not self._future.done():
                self._future.set_exception(TaskCanceledError())
            return

        exc = source.exception()
        if self._future.done():
            if exc is not None:
                logger.debug("Dropping late failure of a settled computation: %r", exc)
            return

        if exc is not None:
            self._future.set_exception(exc)
        else:
            self._future.set_result(source.result())


def _as_exception(payload: Any) -> BaseException:
    # asyncio refuses CancelledError and StopIteration as a future exception.
    if isinstance(payload, Exception) and not isinstance(payload, StopIteration):
        return payload
    return TaskCanceledError(None if payload is MISSING else payload)


def wrap(
    computation: Awaitable[T] | None = None,
    *,
    fallback: Callable[[], Any] | None = None,
) -> CancelableResult[T]:
    """Wrap computation so it can be force-settled. Requires a running loop."""
    return CancelableResult(computation, fallback=fallback)
