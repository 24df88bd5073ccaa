"""Tests for the task scheduler loop."""

import asyncio
from datetime import time

import pytest
import tomlkit

from daybell.config.store import TaskConfigStore
from daybell.dispatch import Actor
from daybell.scheduling import TaskScheduler, minute_key
from daybell.tasks.registry import TaskRegistry


@pytest.fixture
def scheduler(registry, ledger, clock) -> TaskScheduler:
    return TaskScheduler(registry, ledger, clock, poll_interval=0.01)


async def _tick(scheduler: TaskScheduler) -> None:
    await scheduler.check_time()
    await scheduler.drain()


class TestScenarios:
    """End-to-end trigger scenarios."""

    @pytest.mark.asyncio
    async def test_due_task_runs_once_and_is_recorded(self, scheduler, host, ledger):
        await _tick(scheduler)

        assert host.dispatched == [(Actor.console(), "say hi")]
        assert await ledger.count_records(1) == 1

    @pytest.mark.asyncio
    async def test_task_already_recorded_today_is_skipped(self, scheduler, host, ledger):
        await ledger.mark_executed(1)
        await _tick(scheduler)
        assert host.dispatched == []

    @pytest.mark.asyncio
    async def test_ticks_within_one_minute_sweep_once(
        self, scheduler, host, time_provider
    ):
        time_provider.value = "14:30:05"
        await _tick(scheduler)
        time_provider.value = "14:30:45"
        await _tick(scheduler)
        await _tick(scheduler)

        assert host.commands == ["say hi"]
        assert scheduler.current_minute == "14:30"

    @pytest.mark.asyncio
    async def test_malformed_entry_never_triggers(
        self, tmp_path, dispatcher, host, ledger, clock
    ):
        path = tmp_path / "tasks.toml"
        doc = tomlkit.document()
        doc["tasks"] = {
            "1": {"time": "25:99", "commands": ["say bad"]},
            "2": {"time": "14:30", "commands": ["say good"]},
        }
        path.write_text(tomlkit.dumps(doc))
        registry = TaskRegistry(TaskConfigStore(path), dispatcher, ledger, command_delay=0)
        registry.load_tasks()

        scheduler = TaskScheduler(registry, ledger, clock)
        await _tick(scheduler)

        assert list(registry.get_all_tasks()) == [2]
        assert host.commands == ["say good"]


class TestMinuteTransitions:
    """Tests for minute detection and the dedup set."""

    @pytest.mark.asyncio
    async def test_no_match_no_dispatch(self, scheduler, host, time_provider):
        time_provider.value = "09:00:00"
        await _tick(scheduler)
        assert host.dispatched == []
        assert scheduler.current_minute == "09:00"

    @pytest.mark.asyncio
    async def test_token_added_before_ledger_answers(self, scheduler):
        await scheduler.check_time()
        assert scheduler.is_deduplicated(1, "14:30")
        assert not scheduler.is_deduplicated(2, "14:30")
        await scheduler.drain()

    @pytest.mark.asyncio
    async def test_new_minute_clears_dedup(self, scheduler, time_provider):
        await _tick(scheduler)
        time_provider.value = "14:31:00"
        await _tick(scheduler)
        assert not scheduler.is_deduplicated(1, "14:30")

    @pytest.mark.asyncio
    async def test_clock_jumping_back_is_stopped_by_ledger(
        self, scheduler, host, time_provider
    ):
        await _tick(scheduler)
        time_provider.value = "14:31:00"
        await _tick(scheduler)
        time_provider.value = "14:30:00"
        await _tick(scheduler)

        assert host.commands == ["say hi"]

    @pytest.mark.asyncio
    async def test_each_matching_task_fires(self, scheduler, host, time_provider):
        time_provider.value = "14:30:00"
        await _tick(scheduler)
        time_provider.value = "04:00:30"
        await _tick(scheduler)

        assert host.commands == ["say hi", "echo restart", "spawn", "save-all"]

    def test_minute_key(self):
        assert minute_key(time(4, 5, 59)) == "04:05"


class TestNonBlocking:
    """The poller never waits on a batch."""

    @pytest.mark.asyncio
    async def test_hung_batch_does_not_block_ticks(
        self, scheduler, registry, host, time_provider
    ):
        host.gate = asyncio.Event()
        await scheduler.check_time()
        draining = asyncio.create_task(scheduler.drain())
        for _ in range(100):
            if registry.is_executing(1):
                break
            await asyncio.sleep(0.01)
        assert registry.is_executing(1)

        time_provider.value = "14:31:00"
        await asyncio.wait_for(scheduler.check_time(), timeout=1)
        assert scheduler.current_minute == "14:31"

        host.gate.set()
        await draining
        assert host.commands == ["say hi"]


class TestLifecycle:
    """Tests for start() / stop()."""

    @pytest.mark.asyncio
    async def test_start_polls_and_triggers(self, scheduler, host):
        await scheduler.start()
        try:
            for _ in range(100):
                if host.dispatched:
                    break
                await asyncio.sleep(0.01)
        finally:
            await scheduler.stop()
        await scheduler.drain()

        assert host.commands == ["say hi"]

    @pytest.mark.asyncio
    async def test_stop_clears_dedup(self, scheduler):
        await scheduler.start()
        for _ in range(100):
            if scheduler.current_minute:
                break
            await asyncio.sleep(0.01)
        await scheduler.stop()
        await scheduler.drain()

        assert not scheduler.is_running
        assert not scheduler.is_deduplicated(1, "14:30")
        assert scheduler.current_minute is None

    @pytest.mark.asyncio
    async def test_start_and_stop_are_idempotent(self, scheduler):
        await scheduler.stop()
        await scheduler.start()
        await scheduler.start()
        await scheduler.stop()
        await scheduler.stop()
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_tick_errors_do_not_stop_loop(self, scheduler, monkeypatch):
        calls = []
        original = scheduler.check_time

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            await original()

        monkeypatch.setattr(scheduler, "check_time", flaky)
        await scheduler.start()
        for _ in range(100):
            if len(calls) >= 3:
                break
            await asyncio.sleep(0.01)
        await scheduler.stop()
        await scheduler.drain()

        assert len(calls) >= 3
