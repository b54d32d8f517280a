# tests/test_cancelable.py

from __future__ import annotations

import asyncio

import pytest

from taskpoll.core.cancelable import wrap
from taskpoll.errors import TaskCanceledError


async def _value_after(delay: float, value):
    await asyncio.sleep(delay)
    return value


async def _fail_after(delay: float, exc: Exception):
    await asyncio.sleep(delay)
    raise exc


@pytest.mark.asyncio
async def test_natural_completion_settles_the_result() -> None:
    handle = wrap(_value_after(0, "natural"))

    assert await handle == "natural"
    assert handle.settled
    assert not handle.is_canceled


@pytest.mark.asyncio
async def test_natural_failure_rejects_the_result() -> None:
    err = KeyError("boom")
    handle = wrap(_fail_after(0, err))

    with pytest.raises(KeyError) as excinfo:
        await handle.future

    assert excinfo.value is err


@pytest.mark.asyncio
async def test_forced_success_wins_over_later_natural_outcome() -> None:
    handle = wrap(_value_after(0.01, "natural"))

    assert handle.force_settle(False, "forced") is True
    assert await handle == "forced"
    assert handle.is_canceled

    await asyncio.sleep(0.02)
    assert handle.future.result() == "forced"


@pytest.mark.asyncio
async def test_forced_success_wins_over_later_natural_failure() -> None:
    handle = wrap(_fail_after(0.01, RuntimeError("late")))

    handle.force_settle()
    await asyncio.sleep(0.02)

    assert handle.future.result() is None


@pytest.mark.asyncio
async def test_only_first_force_counts() -> None:
    handle = wrap()

    assert handle.force_settle(True, ValueError("first")) is True
    assert handle.force_settle(False, "second") is False

    with pytest.raises(ValueError, match="first"):
        await handle


@pytest.mark.asyncio
async def test_force_after_natural_completion_is_a_no_op() -> None:
    handle = wrap(_value_after(0, 1))
    await handle

    assert handle.force_settle(True, "too late") is False
    assert handle.future.result() == 1


@pytest.mark.asyncio
async def test_forced_success_without_payload_uses_fallback() -> None:
    cache = {"value": 41}
    handle = wrap(fallback=lambda: cache["value"])

    cache["value"] = 42
    handle.force_settle()

    assert await handle == 42


@pytest.mark.asyncio
async def test_forced_success_without_payload_or_fallback_is_none() -> None:
    handle = wrap()
    handle.force_settle(False)

    assert await handle is None


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ["flower", 7, None])
async def test_forced_failure_with_plain_payload_carries_it(payload) -> None:
    handle = wrap()
    handle.force_settle(True, payload)

    with pytest.raises(TaskCanceledError) as excinfo:
        await handle

    assert excinfo.value.payload == payload


@pytest.mark.asyncio
async def test_forced_failure_without_payload_uses_generic_marker() -> None:
    handle = wrap()
    handle.force_settle(True)

    with pytest.raises(TaskCanceledError) as excinfo:
        await handle

    assert excinfo.value.payload is None


@pytest.mark.asyncio
async def test_wrap_requires_running_loop() -> None:
    with pytest.raises(RuntimeError):
        await asyncio.to_thread(wrap)
