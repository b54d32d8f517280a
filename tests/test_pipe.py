# tests/test_pipe.py

from __future__ import annotations

import pytest

from taskpoll.errors import TaskCanceledError

from .fakes import FailingTask


def _adder(times: int, amount: int):
    """Step that polls `times` times, then resolves with initial_value + amount."""

    calls = {"n": 0}

    async def step(cancel, get_retry_count, initial_value):
        calls["n"] += 1
        if calls["n"] >= times:
            cancel(True, initial_value + amount)
        return calls["n"]

    step.calls = calls  # type: ignore[attr-defined]
    return step


@pytest.mark.asyncio
async def test_pipe_runs_steps_sequentially_threading_values(poller) -> None:
    first = _adder(times=4, amount=7)
    second = _adder(times=6, amount=5)

    value = await poller.pipe(first, second)(initial_value=3)

    assert value == 3 + 7 + 5
    assert first.calls["n"] == 4
    assert second.calls["n"] == 6
    assert poller.is_idling()


@pytest.mark.asyncio
async def test_pipe_bubbles_up_the_first_error_untouched(poller) -> None:
    calls = {"a": 0, "b": 0, "c": 0}
    err = ValueError("flower")

    async def a(cancel, get_retry_count):
        calls["a"] += 1
        cancel(True, "bird")

    async def b(cancel, get_retry_count, initial_value):
        calls["b"] += 1
        assert initial_value == "bird"
        cancel(False, err)

    async def c(cancel, get_retry_count):
        calls["c"] += 1
        cancel(True, "water")

    with pytest.raises(ValueError) as excinfo:
        await poller.pipe(a, b, c)()

    assert excinfo.value is err
    assert calls == {"a": 1, "b": 1, "c": 0}
    assert poller.is_idling()


@pytest.mark.asyncio
async def test_pipe_failure_payload_is_not_rewrapped(poller) -> None:
    async def a(cancel, get_retry_count):
        cancel(False, "flower")

    with pytest.raises(TaskCanceledError) as excinfo:
        await poller.pipe(a)()

    assert excinfo.value.payload == "flower"


@pytest.mark.asyncio
async def test_pipe_options_apply_to_every_step(poller) -> None:
    async def ok(cancel, get_retry_count):
        cancel(True, "ok")

    failing = FailingTask()

    with pytest.raises(RuntimeError, match="retry 2 times"):
        await poller.pipe(ok, failing)(retry_limit=2)

    assert failing.calls == 2


@pytest.mark.asyncio
async def test_each_pipe_step_is_its_own_task(manual_poller, timers) -> None:
    async def step(cancel, get_retry_count, initial_value):
        cancel(True, (initial_value or 0) + 1)

    runner = manual_poller.pipe(step, step, step)
    value = await runner(run_on_start=True)

    assert value == 3
    assert len(timers.handles) == 3
    assert all(h.cancelled for h in timers.handles)


@pytest.mark.asyncio
async def test_empty_pipe_returns_initial_value(poller) -> None:
    assert await poller.pipe()(initial_value="unchanged") == "unchanged"
