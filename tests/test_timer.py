"""Tests for worklog.timer."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from fakes import session_row
from worklog.timer import Timer

T0 = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_start_sets_elapsed_immediately():
    timer = Timer(clock=lambda: T0 + timedelta(seconds=90))
    timer.start(session_row(1, T0))
    assert timer.running
    assert timer.elapsed == 90
    await timer.aclose()


@pytest.mark.asyncio
async def test_stop_resets():
    timer = Timer(clock=lambda: T0 + timedelta(seconds=5), interval=0.01)
    timer.start(session_row(1, T0))
    await timer.aclose()
    assert not timer.running
    assert timer.elapsed == 0
    assert timer.session is None


@pytest.mark.asyncio
async def test_restart_replaces_previous_tick():
    now = T0 + timedelta(minutes=10)
    timer = Timer(clock=lambda: now, interval=0.01)
    timer.start(session_row(1, T0))
    first = timer._task
    timer.start(session_row(2, T0 + timedelta(minutes=9)))
    await asyncio.sleep(0.03)
    assert first.cancelled()
    assert timer.elapsed == 60
    await timer.aclose()


@pytest.mark.asyncio
async def test_on_tick_receives_elapsed():
    seen = []
    timer = Timer(clock=lambda: T0 + timedelta(seconds=3), interval=0.01, on_tick=seen.append)
    timer.start(session_row(1, T0))
    await asyncio.sleep(0.05)
    await timer.aclose()
    assert seen and set(seen) == {3}


@pytest.mark.asyncio
async def test_failing_on_tick_keeps_ticking():
    calls = []

    def explode(elapsed):
        calls.append(elapsed)
        raise RuntimeError("display gone")

    timer = Timer(clock=lambda: T0 + timedelta(seconds=7), interval=0.01, on_tick=explode)
    timer.start(session_row(1, T0))
    await asyncio.sleep(0.05)
    assert timer.running
    assert len(calls) > 1
    await timer.aclose()
