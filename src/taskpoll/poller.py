# src/taskpoll/poller.py

"""
Task poller.

Drives each submitted task through its lifecycle:
- invokes it every `interval` ms (and once right away with run_on_start),
- guards each invocation with a timeout,
- counts consecutive failures against the retry budget, resets on success,
- stops when the task cancels itself, the budget runs out, or clear() is called,
- settles exactly one outward-facing future per task.

Ticks never overlap: a tick that fires while the previous invocation of the same
task is still running is skipped, and the schedule is not shifted.

To stop everything, call clear() (or await clear_and_await()).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from .config import PollerConfig, Settings, get_settings
from .core.cancelable import wrap
from .core.models import MISSING, Continue, InvocationContext, Stop, TaskState
from .core.ports import CancelFn, IntervalScheduler, PollTask
from .core.registry import TaskRegistry
from .core.timers import AsyncioTimers
from .errors import InvocationTimeoutError, TaskCanceledError

logger = logging.getLogger(__name__)

PipeRunner = Callable[..., Awaitable[Any]]


def _accepts_initial_value(task: PollTask) -> bool:
    """True unless the task declares fewer than three positional parameters."""
    try:
        params = list(inspect.signature(task).parameters.values())
    except (TypeError, ValueError):
        return True

    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return True
    positional = [
        p
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    return len(positional) >= 3


class Poller:
    """
    Polls independent tasks on fixed intervals.

    Each Poller owns its registry of live tasks; two pollers never see each other's
    tasks. Must be used from inside a running event loop.

    Bulk clear policy: clear() resolves every outstanding future with that task's
    last good value (None if it never produced one). It never rejects.
    """

    def __init__(
        self,
        config: PollerConfig | Mapping[str, Any] | None = None,
        *,
        settings: Settings | None = None,
        timers: IntervalScheduler | None = None,
        registry: TaskRegistry | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        if isinstance(config, PollerConfig):
            self._config = config
        else:
            self._config = self._settings.poller_defaults().merged(**dict(config or {}))
        self._timers = timers or AsyncioTimers()
        self._registry = registry or TaskRegistry()

    # ---- configuration ----

    @property
    def config(self) -> PollerConfig:
        return self._config

    @property
    def registry(self) -> TaskRegistry:
        return self._registry

    def set_config(self, reset: bool = False, **fields: Any) -> PollerConfig:
        """
        Change the defaults used by tasks submitted from now on.

        reset=False merges into the current defaults, reset=True starts over from the
        system defaults. Running tasks keep the options they were submitted with.
        """
        base = self._settings.poller_defaults() if reset else self._config
        self._config = base.merged(**fields)
        logger.debug("Poller config -> %s", self._config)
        return self._config

    # ---- submission ----

    def submit(
        self,
        task: PollTask,
        *,
        interval: Any = None,
        timeout: Any = None,
        retry_limit: Any = None,
        run_on_start: Any = None,
        initial_value: Any = None,
    ) -> asyncio.Future[Any]:
        """
        Start polling `task` and return the future of its final value.

        Every tick calls task(cancel, get_retry_count, initial_value). The returned
        future resolves when the task calls cancel() / cancel(True, value) or returns
        Stop(True, ...), and rejects when it calls cancel(False, ...), returns
        Stop(False, ...), or fails `retry_limit` times in a row (with the last error).

        Options left as None fall back to the poller defaults. Invalid values are
        logged and replaced, never raised.
        """
        result = wrap(fallback=lambda: ctx.cached_value)

        config = self._config.resolve(
            interval=interval,
            timeout=timeout,
            retry_limit=retry_limit,
            run_on_start=run_on_start,
            initial_value=initial_value,
        )
        ctx = InvocationContext(
            task_id=self._registry.next_id(),
            task=task,
            config=config,
            result=result,
            pass_initial_value=_accepts_initial_value(task),
        )
        ctx.handle = self._timers.schedule_interval(config.interval, lambda: self._tick(ctx))
        self._registry.register(ctx)

        logger.debug(
            "Task %s submitted interval=%sms timeout=%s retry_limit=%s run_on_start=%s",
            ctx.task_id,
            config.interval,
            config.timeout,
            config.retry_limit,
            config.run_on_start,
        )

        if config.run_on_start:
            self._tick(ctx)

        return result.future

    def pipe(self, *tasks: PollTask) -> PipeRunner:
        """
        Chain tasks so each one is polled with the previous task's final value.

        Returns an async callable: ``await poller.pipe(a, b, c)(initial_value=x, **options)``.
        The options apply to every step; initial_value only feeds the first one.
        The first rejection stops the chain and is re-raised as is.
        """
        steps = tuple(tasks)

        async def run(*, initial_value: Any = None, **options: Any) -> Any:
            value = initial_value
            for index, step in enumerate(steps, start=1):
                logger.debug("Pipe step %d/%d starting", index, len(steps))
                value = await self.submit(step, initial_value=value, **options)
            return value

        return run

    # ---- lifecycle ----

    def is_idling(self) -> bool:
        return self._registry.is_idle()

    def active_task_ids(self) -> list[int]:
        return self._registry.active_ids()

    def __len__(self) -> int:
        return len(self._registry)

    def clear(self) -> int:
        """
        Stop every live task now.

        Timers are cancelled, running invocations are cancelled, and each task's
        future resolves with its last good value. Returns how many tasks were stopped.
        """
        return len(self._clear())

    async def clear_and_await(self) -> None:
        """clear(), then wait until cancelled invocations have actually finished."""
        drained = self._clear()
        pending: list[asyncio.Future[Any]] = [ctx.result.future for ctx in drained]
        pending.extend(
            ctx.inflight
            for ctx in drained
            if ctx.inflight is not None and ctx.inflight is not asyncio.current_task()
        )
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _clear(self) -> list[InvocationContext]:
        drained = self._registry.drain()
        for ctx in drained:
            self._settle(ctx, TaskState.RESOLVED, as_failure=False, payload=MISSING)
        if drained:
            logger.info("Cleared %d task(s)", len(drained))
        return drained

    # ---- tick handling ----

    def _tick(self, ctx: InvocationContext) -> None:
        if ctx.state.terminal:
            return
        loop = asyncio.get_running_loop()
        now = loop.time()
        inflight = ctx.inflight
        if inflight is not None and not inflight.done():
            if not self._overdue(ctx, now):
                logger.debug("Task %s: previous invocation still running, tick skipped", ctx.task_id)
                return
            self._expire(ctx, inflight)
            if ctx.state.terminal:
                return
        timeout = ctx.config.timeout
        ctx.deadline = None if timeout is None else now + timeout / 1000.0
        ctx.inflight = loop.create_task(
            self._invoke(ctx, ctx.deadline), name=f"taskpoll-{ctx.task_id}"
        )

    @staticmethod
    def _overdue(ctx: InvocationContext, now: float) -> bool:
        """
        True when the in-flight invocation has used up its timeout.

        A timeout equal to the interval ends exactly on the next tick, which may
        fire a hair before the guard does; such an invocation counts as overdue.
        """
        timeout = ctx.config.timeout
        if timeout is None or ctx.deadline is None:
            return False
        return timeout >= ctx.config.interval or now >= ctx.deadline

    def _expire(self, ctx: InvocationContext, inflight: asyncio.Task[None]) -> None:
        logger.debug("Task %s: invocation still running at its deadline, cancelled", ctx.task_id)
        inflight.cancel()
        self._on_failure(ctx, InvocationTimeoutError(ctx.config.timeout, task_id=ctx.task_id))

    async def _invoke(self, ctx: InvocationContext, deadline: float | None) -> None:
        ctx.invocations += 1
        try:
            outcome = await self._call(ctx, deadline)
        except Exception as exc:
            if self._superseded(ctx):
                return
            self._on_failure(ctx, exc)
        else:
            if self._superseded(ctx):
                return
            self._on_success(ctx, outcome)

    @staticmethod
    def _superseded(ctx: InvocationContext) -> bool:
        # An invocation expired by a tick has already been counted as a timeout.
        return asyncio.current_task() is not ctx.inflight

    async def _call(self, ctx: InvocationContext, deadline: float | None) -> Any:
        cancel = self._make_cancel(ctx)
        get_retry_count = ctx.retry_counter.current
        if ctx.pass_initial_value:
            outcome = ctx.task(cancel, get_retry_count, ctx.config.initial_value)
        else:
            outcome = ctx.task(cancel, get_retry_count)

        if not inspect.isawaitable(outcome):
            return outcome

        if deadline is None:
            return await outcome

        # The deadline is taken from the tick, so the guard never outlives the next one.
        try:
            async with asyncio.timeout_at(deadline) as guard:
                return await outcome
        except TimeoutError as exc:
            if guard.expired():
                raise InvocationTimeoutError(ctx.config.timeout, task_id=ctx.task_id) from exc
            raise

    def _make_cancel(self, ctx: InvocationContext) -> CancelFn:
        def cancel(success: bool = True, value: Any = MISSING) -> None:
            self._stop(ctx, Stop(success=bool(success), value=value))

        return cancel

    def _on_success(self, ctx: InvocationContext, outcome: Any) -> None:
        if isinstance(outcome, Stop):
            self._stop(ctx, outcome)
            return

        ctx.cached_value = outcome.value if isinstance(outcome, Continue) else outcome
        if ctx.state.terminal:
            return
        ctx.retry_counter.reset()
        logger.debug("Task %s invocation %d succeeded", ctx.task_id, ctx.invocations)

    def _on_failure(self, ctx: InvocationContext, exc: Exception) -> None:
        if ctx.state.terminal:
            logger.debug("Task %s: failure after settlement ignored: %r", ctx.task_id, exc)
            return

        config = ctx.config
        if config.unlimited:
            ctx.retry_counter.increment()
            logger.debug("Task %s invocation failed (no retry limit): %r", ctx.task_id, exc)
            return

        if ctx.retry_counter.current() + 1 >= config.retry_limit:
            logger.warning(
                "Task %s: giving up after %d consecutive failure(s): %r",
                ctx.task_id,
                ctx.retry_counter.current() + 1,
                exc,
            )
            self._settle(ctx, TaskState.REJECTED, as_failure=True, payload=exc)
            return

        attempt = ctx.retry_counter.increment()
        logger.debug(
            "Task %s invocation failed (%d/%s): %r", ctx.task_id, attempt, config.retry_limit, exc
        )

    # ---- settlement ----

    def _stop(self, ctx: InvocationContext, stop: Stop) -> None:
        if ctx.state.terminal:
            return

        if stop.success:
            self._settle(ctx, TaskState.RESOLVED, as_failure=False, payload=stop.value)
            return

        payload = stop.value
        if not isinstance(payload, Exception):
            payload = TaskCanceledError(None if payload is MISSING else payload, task_id=ctx.task_id)
        self._settle(ctx, TaskState.REJECTED, as_failure=True, payload=payload)

    def _settle(
        self,
        ctx: InvocationContext,
        state: TaskState,
        *,
        as_failure: bool,
        payload: Any,
    ) -> None:
        ctx.state = state
        self._registry.release(ctx)

        inflight = ctx.inflight
        if inflight is not None and not inflight.done() and inflight is not asyncio.current_task():
            inflight.cancel()

        ctx.result.force_settle(as_failure, payload)
        logger.info("Task %s -> %s after %d invocation(s)", ctx.task_id, state.value, ctx.invocations)
