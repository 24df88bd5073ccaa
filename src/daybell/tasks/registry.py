"""Task registry: the in-memory task collection and its execution guards.

The registry is the single owner of task state. The scheduler and the
management commands both hold a reference to it; nothing is global.

Guards are a set of in-flight task ids. Claiming is an atomic
insert-if-absent under a threading.Lock, so exactly one caller wins even if
the registry is touched from another thread. Reloading swaps in a fresh
set; a batch still running from before the reload releases its id from
the set it claimed, never from the new one.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import time

from daybell.config.store import TaskConfigStore, TaskStoreError
from daybell.dispatch.dispatcher import CommandDispatcher
from daybell.dispatch.targets import classify, strip_prefix
from daybell.ledger import ExecutionLedger
from daybell.tasks.models import Task, parse_task_entry, parse_task_time

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_DELAY = 0.05


class TaskRegistry:
    """Owns task definitions, runs command batches, persists edits.

    Example:
        registry = TaskRegistry(store, dispatcher, ledger)
        registry.load_tasks()
        await registry.execute_task(1)
    """

    def __init__(
        self,
        store: TaskConfigStore,
        dispatcher: CommandDispatcher,
        ledger: ExecutionLedger,
        *,
        command_delay: float = DEFAULT_COMMAND_DELAY,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._ledger = ledger
        self._command_delay = command_delay

        self._tasks: dict[int, Task] = {}
        self._executing: set[int] = set()
        self._state_lock = threading.Lock()
        # Batches run one at a time, like commands on a host's main thread
        self._dispatch_lock = asyncio.Lock()
        self._background: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_tasks(self) -> int:
        """Rebuild the task collection from the config store.

        Invalid entries are logged and skipped. Returns the number loaded.
        """
        try:
            entries = self._store.load_entries()
        except TaskStoreError as e:
            logger.error("task_load_failed", extra={"error.message": str(e)})
            entries = {}

        if not entries:
            logger.warning(f"No tasks section found in {self._store.config_path}")

        tasks: dict[int, Task] = {}
        for key, raw in entries.items():
            try:
                task = parse_task_entry(key, raw)
            except ValueError as e:
                logger.warning(str(e))
                continue
            tasks[task.id] = task
            logger.debug(
                f"Loaded task {task.id} scheduled for {task.formatted_time} "
                f"with {len(task.commands)} commands"
            )

        with self._state_lock:
            self._tasks = tasks
            self._executing = set()

        logger.info(f"Loaded {len(tasks)} tasks successfully")
        return len(tasks)

    def reload_tasks(self) -> int:
        logger.info("Reloading tasks...")
        return self.load_tasks()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_all_tasks(self) -> dict[int, Task]:
        """Snapshot of all tasks; safe for the caller to mutate."""
        with self._state_lock:
            return {task_id: task.copy() for task_id, task in self._tasks.items()}

    def get_task(self, task_id: int) -> Task | None:
        with self._state_lock:
            task = self._tasks.get(task_id)
            return task.copy() if task else None

    def is_executing(self, task_id: int) -> bool:
        with self._state_lock:
            return task_id in self._executing

    def should_execute_task(self, task_id: int, current_time: time) -> bool:
        """True iff the task's hour and minute equal current_time's."""
        with self._state_lock:
            task = self._tasks.get(task_id)
        if task is None:
            return False

        should = (
            task.time.hour == current_time.hour
            and task.time.minute == current_time.minute
        )
        if should:
            logger.debug(
                f"Task {task_id} should execute: current="
                f"{current_time.strftime('%H:%M')}, scheduled={task.formatted_time}"
            )
        return should

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _claim(self, task_id: int) -> tuple[Task, set[int]] | None:
        """Atomically mark task_id in flight. Returns None if not possible."""
        with self._state_lock:
            task = self._tasks.get(task_id)
            if task is None or task_id in self._executing:
                return None
            self._executing.add(task_id)
            return task.copy(), self._executing

    async def execute_task(self, task_id: int) -> bool:
        """Run a task's batch on the scheduled path.

        At most one batch per task is in flight; a call while one is running
        is a no-op. The ledger is marked only after the whole batch has run.

        Returns:
            True if this call ran the batch.
        """
        if self.get_task(task_id) is None:
            logger.warning(f"Attempted to execute non-existent task: {task_id}")
            return False

        claimed = self._claim(task_id)
        if claimed is None:
            logger.debug(f"Task {task_id} is already executing, skipping")
            return False
        task, guard = claimed

        logger.info(f"Executing task {task_id} with {len(task.commands)} commands")
        try:
            await self._run_batch(task)
        except Exception:
            logger.exception("task_execution_error", extra={"task.id": task_id})
            return True
        finally:
            with self._state_lock:
                guard.discard(task_id)

        self._spawn(self._ledger.mark_executed(task_id))
        logger.info(f"Task {task_id} executed successfully")
        return True

    async def execute_task_for_testing(self, task_id: int) -> bool:
        """Run a task's batch now, ignoring the schedule, guard and ledger.

        For operator diagnostics only. Nothing is recorded, so the scheduled
        run later today still happens.
        """
        task = self.get_task(task_id)
        if task is None:
            logger.warning(f"Cannot test non-existent task: {task_id}")
            return False

        logger.info(f"Testing task {task_id} (bypassing schedule and ledger checks)")
        try:
            await self._run_batch(task)
        except Exception:
            logger.exception("task_test_error", extra={"task.id": task_id})
            return False
        logger.info(f"Task {task_id} test completed")
        return True

    async def _run_batch(self, task: Task) -> int:
        """Dispatch each command in order. Returns how many were dispatched."""
        async with self._dispatch_lock:
            dispatched = 0
            total = len(task.commands)
            for index, command in enumerate(task.commands):
                if not strip_prefix(command, classify(command)):
                    logger.warning(f"Skipping empty command in task {task.id}: {command!r}")
                    continue

                try:
                    ok = await self._dispatcher.dispatch(command)
                except Exception:
                    logger.exception(
                        "command_error",
                        extra={"task.id": task.id, "command.text": command},
                    )
                    continue

                dispatched += 1
                logger.debug(
                    f"Task {task.id} command {dispatched}: {command} - success: {ok}"
                )

                if index < total - 1 and self._command_delay > 0:
                    await asyncio.sleep(self._command_delay)

        logger.info(f"Task {task.id} completed: {dispatched} commands executed")
        return dispatched

    def _spawn(self, coro) -> None:
        bg = asyncio.create_task(coro)
        self._background.add(bg)
        bg.add_done_callback(self._background.discard)

    async def drain(self) -> None:
        """Wait for pending background ledger writes (tests, shutdown)."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Edits (persisted before the in-memory change)
    # ------------------------------------------------------------------

    def _persist(self, task: Task) -> bool:
        try:
            self._store.set_task(
                task.id,
                time=task.formatted_time,
                commands=task.commands,
                message=task.message,
            )
        except TaskStoreError as e:
            logger.error(
                "task_persist_failed",
                extra={"task.id": task.id, "error.message": str(e)},
            )
            return False
        return True

    def _replace(self, task: Task) -> None:
        with self._state_lock:
            self._tasks[task.id] = task

    def add_task(
        self,
        task_id: int,
        time_str: str,
        commands: list[str],
        message: str | None = None,
    ) -> bool:
        """Create a new task. Fails if the id exists or input is invalid."""
        if task_id <= 0 or self.get_task(task_id) is not None:
            return False
        try:
            task_time = parse_task_time(time_str)
        except ValueError:
            logger.warning(f"Invalid time format: {time_str} (expected HH:MM)")
            return False

        cleaned = [c.strip() for c in commands if c and c.strip()]
        if not cleaned:
            logger.warning(f"Cannot add task {task_id} without commands")
            return False

        task = Task(id=task_id, time=task_time, commands=cleaned, message=message or None)
        if not self._persist(task):
            return False
        self._replace(task)
        logger.info(f"Added task {task_id} at {task.formatted_time}")
        return True

    def update_task_time(self, task_id: int, time_str: str) -> bool:
        task = self.get_task(task_id)
        if task is None:
            return False
        try:
            task.time = parse_task_time(time_str)
        except ValueError:
            logger.warning(f"Invalid time format: {time_str} (expected HH:MM)")
            return False

        if not self._persist(task):
            return False
        self._replace(task)
        logger.info(f"Updated task {task_id} time to {task.formatted_time}")
        return True

    def add_command_to_task(self, task_id: int, command: str) -> bool:
        task = self.get_task(task_id)
        if task is None:
            return False
        if not command or not command.strip():
            logger.warning(f"Cannot add empty command to task {task_id}")
            return False

        task.commands.append(command.strip())
        if not self._persist(task):
            return False
        self._replace(task)
        logger.info(f"Added command to task {task_id}: {command.strip()}")
        return True

    def remove_command_from_task(self, task_id: int, command_index: int) -> bool:
        """Remove a command by its 1-based position."""
        task = self.get_task(task_id)
        if task is None or command_index < 1 or command_index > len(task.commands):
            return False

        removed = task.commands.pop(command_index - 1)
        if not self._persist(task):
            return False
        self._replace(task)
        logger.info(f"Removed command from task {task_id}: {removed}")
        return True

    def update_task_message(self, task_id: int, message: str | None) -> bool:
        """Set the display message; a blank or None message clears it."""
        task = self.get_task(task_id)
        if task is None:
            return False

        task.message = message.strip() if message and message.strip() else None
        if not self._persist(task):
            return False
        self._replace(task)
        logger.info(f"Updated task {task_id} message")
        return True

    async def remove_task(self, task_id: int) -> bool:
        """Delete a task, its guard entry and its ledger rows."""
        if self.get_task(task_id) is None:
            return False
        try:
            self._store.remove_task(task_id)
        except TaskStoreError as e:
            logger.error(
                "task_remove_failed",
                extra={"task.id": task_id, "error.message": str(e)},
            )
            return False

        with self._state_lock:
            self._tasks.pop(task_id, None)
            self._executing.discard(task_id)

        await self._ledger.remove_task_records(task_id)
        logger.info(f"Removed task {task_id}")
        return True
