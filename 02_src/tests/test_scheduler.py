"""Tests for BackgroundScheduler."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from opticom.models import AIStatus
from opticom.scheduler import BackgroundScheduler

from conftest import make_conversation


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def active():
    return [make_conversation("c1", "One"), make_conversation("c2", "Two")]


@pytest.fixture
def manager(active):
    mgr = Mock()
    mgr.list_active = AsyncMock(return_value=active)
    return mgr


@pytest.fixture
def fake_driver():
    drv = Mock()
    drv.status.return_value = AIStatus(is_enabled=True)
    drv.advance = AsyncMock(return_value=None)
    return drv


@pytest.fixture
def scheduler(manager, fake_driver, clock):
    return BackgroundScheduler(manager, fake_driver, response_interval_ms=1000, clock=clock)


def advanced_ids(fake_driver) -> list[str]:
    return [call.args[0].id for call in fake_driver.advance.await_args_list]


class TestSchedulerSweep:
    """Tests for BackgroundScheduler.sweep()."""

    async def test_advances_every_active_conversation(self, scheduler, fake_driver):
        assert await scheduler.sweep() == 2
        assert advanced_ids(fake_driver) == ["c1", "c2"]
        assert set(scheduler.last_advance) == {"c1", "c2"}

    async def test_rate_limited_per_conversation(self, scheduler, fake_driver, clock):
        """Test that a conversation is not advanced again within the interval."""
        await scheduler.sweep()

        clock.now += 0.5
        assert await scheduler.sweep() == 0

        clock.now += 0.5
        assert await scheduler.sweep() == 2
        assert fake_driver.advance.await_count == 4

    async def test_new_conversation_is_eligible_immediately(
        self, scheduler, fake_driver, active, clock
    ):
        await scheduler.sweep()
        active.append(make_conversation("c3", "Three"))

        clock.now += 0.1
        assert await scheduler.sweep() == 1
        assert advanced_ids(fake_driver)[-1] == "c3"

    async def test_stale_ids_are_pruned(self, scheduler, active):
        await scheduler.sweep()
        active.pop()

        await scheduler.sweep()
        assert set(scheduler.last_advance) == {"c1"}

    async def test_driver_state_is_pruned_to_active(self, scheduler, fake_driver, active):
        active.pop()

        await scheduler.sweep()
        fake_driver.prune.assert_called_once_with({"c1"})

    async def test_error_in_one_conversation_does_not_stop_sweep(
        self, scheduler, fake_driver
    ):
        fake_driver.advance.side_effect = [RuntimeError("boom"), None]

        assert await scheduler.sweep() == 2
        assert advanced_ids(fake_driver) == ["c1", "c2"]
        assert "c1" in scheduler.last_advance

    async def test_listing_failure_is_swallowed(self, scheduler, manager, fake_driver):
        manager.list_active.side_effect = RuntimeError("db gone")

        assert await scheduler.sweep() == 0
        assert not scheduler.is_sweeping
        fake_driver.advance.assert_not_called()

    async def test_disabled_driver_sweeps_nothing(self, scheduler, manager, fake_driver):
        fake_driver.status.return_value = AIStatus(is_enabled=False, reason="off")

        assert await scheduler.sweep() == 0
        manager.list_active.assert_not_called()

    async def test_sweeps_do_not_overlap(self, scheduler, fake_driver):
        """Test that a sweep started while another runs does nothing."""
        gate = asyncio.Event()

        async def slow_advance(conversation):
            await gate.wait()

        fake_driver.advance.side_effect = slow_advance

        first = asyncio.create_task(scheduler.sweep())
        await asyncio.sleep(0)
        assert scheduler.is_sweeping

        assert await scheduler.sweep() == 0
        scheduler.tick()

        gate.set()
        assert await first == 2
        assert fake_driver.advance.await_count == 2
        assert not scheduler.is_sweeping


class TestSchedulerLifecycle:
    """Tests for start()/stop()."""

    async def test_loop_advances_conversations(self, manager, fake_driver):
        scheduler = BackgroundScheduler(
            manager, fake_driver, response_interval_ms=1000, tick_seconds=0.01
        )
        scheduler.start()
        try:
            for _ in range(100):
                if fake_driver.advance.await_count >= 2:
                    break
                await asyncio.sleep(0.01)
        finally:
            await scheduler.stop()

        assert advanced_ids(fake_driver)[:2] == ["c1", "c2"]
        assert not scheduler.is_running

    async def test_start_is_idempotent(self, scheduler):
        scheduler.start()
        task = scheduler._loop_task
        scheduler.start()

        assert scheduler._loop_task is task
        assert scheduler.is_running
        await scheduler.stop()

    async def test_stop_waits_for_in_flight_sweep(self, scheduler, fake_driver):
        gate = asyncio.Event()
        finished = []

        async def slow_advance(conversation):
            await gate.wait()
            finished.append(conversation.id)

        fake_driver.advance.side_effect = slow_advance

        scheduler.start()
        scheduler.tick()
        await asyncio.sleep(0)
        assert scheduler.is_sweeping

        stopping = asyncio.create_task(scheduler.stop())
        await asyncio.sleep(0)
        assert not stopping.done()

        gate.set()
        await stopping

        assert finished == ["c1", "c2"]
        assert scheduler.last_advance == {}
        assert not scheduler.is_running

    async def test_stop_gives_up_after_timeout(self, manager, fake_driver):
        scheduler = BackgroundScheduler(manager, fake_driver, shutdown_timeout=0.01)
        gate = asyncio.Event()

        async def stuck_advance(conversation):
            await gate.wait()

        fake_driver.advance.side_effect = stuck_advance

        scheduler.tick()
        await asyncio.sleep(0)
        abandoned = scheduler._sweep_task
        await scheduler.stop()

        assert scheduler.last_advance == {}
        assert not scheduler.is_sweeping

        gate.set()
        assert await abandoned == 0

        # the abandoned sweep neither records c1 nor moves on to c2
        assert scheduler.last_advance == {}
        assert advanced_ids(fake_driver) == ["c1"]
        assert not scheduler.is_sweeping

    async def test_restart_after_abandoned_sweep(self, manager, fake_driver):
        """Test that a sweep left over from a stopped run does not block the next one."""
        scheduler = BackgroundScheduler(manager, fake_driver, shutdown_timeout=0.01)
        gate = asyncio.Event()

        async def first_call_stuck(conversation):
            if fake_driver.advance.await_count == 1:
                await gate.wait()

        fake_driver.advance.side_effect = first_call_stuck

        scheduler.tick()
        await asyncio.sleep(0)
        abandoned = scheduler._sweep_task
        await scheduler.stop()

        assert await scheduler.sweep() == 2
        gate.set()
        await abandoned
        assert set(scheduler.last_advance) == {"c1", "c2"}

    async def test_stop_without_start(self, scheduler):
        await scheduler.stop()
        assert not scheduler.is_running

    def test_rejects_non_positive_interval(self, manager, fake_driver):
        with pytest.raises(ValueError):
            BackgroundScheduler(manager, fake_driver, response_interval_ms=0)
