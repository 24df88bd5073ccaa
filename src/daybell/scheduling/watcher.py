"""Task scheduler: polls the clock and triggers tasks on their minute.

The poller owns the minute markers and the per-minute dedup set. Ledger
checks run as background tasks; a confirmed "not executed today" result is
posted to a trigger queue, and the queue consumer starts the task's batch as
its own task. The poll loop never awaits a batch.
"""

import asyncio
import logging
from collections.abc import Coroutine
from datetime import time
from typing import Any

from daybell.clock import ClockSource
from daybell.ledger import ExecutionLedger
from daybell.tasks.registry import TaskRegistry

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0

# Heartbeat every 60 polls (~10 min at 10s interval)
HEARTBEAT_INTERVAL = 60


def minute_key(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


class TaskScheduler:
    """Fires each task once on its configured minute.

    Example:
        scheduler = TaskScheduler(registry, ledger, clock)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        registry: TaskRegistry,
        ledger: ExecutionLedger,
        clock: ClockSource,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self._registry = registry
        self._ledger = ledger
        self._clock = clock
        self._poll_interval = poll_interval

        self._running = False
        self._task: asyncio.Task | None = None
        self._consumer: asyncio.Task | None = None
        self._poll_count = 0

        self._last_key: str | None = None
        self._last_raw: time | None = None
        self._dedup: set[str] = set()

        self._triggers: asyncio.Queue[int] = asyncio.Queue()
        self._checks: set[asyncio.Task] = set()
        self._executions: set[asyncio.Task] = set()

    @property
    def registry(self) -> TaskRegistry:
        return self._registry

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def current_minute(self) -> str | None:
        return self._last_key

    def is_deduplicated(self, task_id: int, key: str) -> bool:
        return f"{task_id}:{key}" in self._dedup

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        logger.info(
            "task_scheduler_started",
            extra={"poll.interval": self._poll_interval},
        )
        self._consumer = asyncio.create_task(self._consume_triggers())
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Stop polling. In-flight ledger checks and batches are not awaited."""
        if not self._running:
            return
        self._running = False
        for task in (self._task, self._consumer):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._consumer = None

        self._dedup.clear()
        self._last_key = None
        self._last_raw = None
        logger.info("task_scheduler_stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                self._poll_count += 1
                if self._poll_count % HEARTBEAT_INTERVAL == 0:
                    logger.info(
                        "task_scheduler_heartbeat",
                        extra={
                            "poll.count": self._poll_count,
                            "minute.key": self._last_key,
                        },
                    )
                await self.check_time()
            except Exception as e:
                logger.error("schedule_check_error", extra={"error.message": str(e)})
            await asyncio.sleep(self._poll_interval)

    async def check_time(self) -> None:
        """One tick: detect a new minute and sweep the registry if so."""
        now = self._clock.now()
        key = minute_key(now)

        # Both must move; a stalled provider can repeat the same raw value
        if key == self._last_key or now == self._last_raw:
            return

        self._dedup.clear()
        self._last_key = key
        self._last_raw = now
        logger.debug(f"Minute changed to {key}, checking tasks")

        self._sweep(now, key)

    def _sweep(self, now: time, key: str) -> None:
        for task_id in self._registry.get_all_tasks():
            token = f"{task_id}:{key}"
            if token in self._dedup:
                continue
            if not self._registry.should_execute_task(task_id, now):
                continue

            # Claim the minute before the ledger answers
            self._dedup.add(token)
            self._spawn(self._checks, self._check_ledger(task_id))

    async def _check_ledger(self, task_id: int) -> None:
        if await self._ledger.has_executed_today(task_id):
            logger.debug(f"Task {task_id} already executed today, skipping")
            return
        logger.info("task_due", extra={"task.id": task_id})
        await self._triggers.put(task_id)

    async def _consume_triggers(self) -> None:
        while True:
            task_id = await self._triggers.get()
            try:
                self._trigger(task_id)
            finally:
                self._triggers.task_done()

    def _trigger(self, task_id: int) -> None:
        self._spawn(self._executions, self._registry.execute_task(task_id))

    def _spawn(self, tasks: set[asyncio.Task], coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    async def drain(self) -> None:
        """Wait until pending ledger checks and triggered batches finish.

        Without a running consumer, queued triggers are started inline.
        """
        while self._checks:
            await asyncio.gather(*list(self._checks), return_exceptions=True)

        if self._consumer is None:
            while not self._triggers.empty():
                self._trigger(self._triggers.get_nowait())
                self._triggers.task_done()
        else:
            await self._triggers.join()

        while self._executions:
            await asyncio.gather(*list(self._executions), return_exceptions=True)
        await self._registry.drain()
