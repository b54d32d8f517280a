# tests/conftest.py

from __future__ import annotations

import pytest
import pytest_asyncio

from taskpoll.config import Settings
from taskpoll.poller import Poller

from .fakes import FakeTimers


@pytest.fixture()
def settings() -> Settings:
    """
    System defaults for tests: 1 ms interval, default retry budget.

    Built explicitly rather than from the environment, to keep tests deterministic.
    """
    return Settings(
        log_level="DEBUG",
        log_dir=None,
        interval=1,
        timeout=None,
        retry_limit=10,
        run_on_start=False,
    )


@pytest_asyncio.fixture()
async def poller(settings: Settings):
    """Poller on the real asyncio timers; anything left running is cleared on teardown."""
    p = Poller(settings=settings)
    yield p
    await p.clear_and_await()


@pytest.fixture()
def timers() -> FakeTimers:
    return FakeTimers()


@pytest_asyncio.fixture()
async def manual_poller(settings: Settings, timers: FakeTimers):
    """
    Poller whose ticks fire only on timers.tick().

    Interval is large so the per-invocation guard never fires by itself; with the
    default timeout an invocation still running at the next tick is expired there.
    """
    p = Poller({"interval": 60_000}, settings=settings, timers=timers)
    yield p
    await p.clear_and_await()
