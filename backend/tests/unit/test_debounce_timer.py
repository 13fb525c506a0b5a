"""Unit tests for the DebounceTimer on a virtual clock."""

import asyncio

import pytest

from inspection_engine.application.services import DebounceTimer
from inspection_engine.infrastructure.scheduling import AsyncioScheduler


def test_fires_once_after_quiet_period(scheduler):
    fired: list[float] = []
    timer = DebounceTimer(scheduler, 10.0, lambda: fired.append(scheduler.now))

    timer.arm()
    scheduler.advance(9.9)
    assert fired == []

    scheduler.advance(0.1)
    assert fired == [10.0]
    assert not timer.pending


def test_rearming_restarts_the_quiet_period(scheduler):
    fired: list[float] = []
    timer = DebounceTimer(scheduler, 10.0, lambda: fired.append(scheduler.now))

    timer.arm()
    scheduler.advance(6)
    timer.arm()
    scheduler.advance(6)
    timer.arm()
    scheduler.advance(9)
    assert fired == []

    scheduler.advance(1)
    assert fired == [22.0]
    assert scheduler.pending == 0


def test_cancel_drops_pending_shot(scheduler):
    fired: list[bool] = []
    timer = DebounceTimer(scheduler, 10.0, lambda: fired.append(True))

    timer.arm()
    timer.cancel()
    scheduler.advance(60)

    assert fired == []
    assert not timer.pending


def test_fire_runs_immediately_and_disarms(scheduler):
    fired: list[bool] = []
    timer = DebounceTimer(scheduler, 10.0, lambda: fired.append(True))

    timer.arm()
    timer.fire()
    scheduler.advance(60)

    assert fired == [True]


@pytest.mark.asyncio
async def test_asyncio_scheduler_drives_real_timer():
    fired: list[bool] = []
    timer = DebounceTimer(AsyncioScheduler(), 0.01, lambda: fired.append(True))

    timer.arm()
    timer.arm()
    await asyncio.sleep(0.05)

    assert fired == [True]
