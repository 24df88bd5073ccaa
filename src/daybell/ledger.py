"""Execution ledger: durable "already ran today" records per task.

Every public operation is a coroutine. The scheduler runs them as background
tasks, so a slow disk never stalls the polling loop. All statements go
through one asyncio.Lock because a single SQLite connection does not
tolerate concurrent statements.

Failure policy: storage errors are logged and turned into safe defaults.
A failed write means a task may fire again later the same day, which is
preferred over a task that silently never fires.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import date
from pathlib import Path

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from daybell.db.engine import Database
from daybell.db.models import Base, ExecutedTask, local_now

logger = logging.getLogger(__name__)

_STORAGE_ERRORS = (SQLAlchemyError, OSError)


class LedgerUnavailableError(Exception):
    """Raised when the ledger store cannot be opened at startup."""


class ExecutionLedger:
    """Per-task, per-calendar-day execution records.

    "Today" is the local calendar date at call time. It is deliberately
    independent of the clock the scheduler uses for time-of-day matching.

    Example:
        ledger = ExecutionLedger(Path("~/.daybell/tasks.db").expanduser())
        await ledger.open()
        if not await ledger.has_executed_today(3):
            ...
            await ledger.mark_executed(3)
        await ledger.close()
    """

    def __init__(
        self,
        database_path: Path | None = None,
        *,
        database: Database | None = None,
        today: Callable[[], date] = date.today,
    ):
        if database is None:
            if database_path is None:
                raise ValueError("Either database_path or database must be provided")
            database = Database(database_path)
        self._db = database
        self._today = today
        self._lock = asyncio.Lock()

    @property
    def database(self) -> Database:
        return self._db

    async def open(self) -> None:
        """Connect and create the schema.

        Raises:
            LedgerUnavailableError: If the store cannot be opened.
        """
        async with self._lock:
            try:
                await self._connect()
            except _STORAGE_ERRORS as e:
                logger.error(
                    "ledger_open_failed",
                    extra={"db.url": self._db.url, "error.message": str(e)},
                )
                raise LedgerUnavailableError(
                    f"Cannot open execution ledger at {self._db.url}: {e}"
                ) from e

            logger.info("ledger_opened", extra={"db.url": self._db.url})

    async def _connect(self) -> None:
        await self._db.connect()
        try:
            async with self._db.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except Exception:
            # Leave the handle closed so the next operation retries cleanly
            await self._db.disconnect()
            raise

    async def _ensure_connection(self) -> None:
        # Called with the lock held
        if not self._db.is_connected:
            logger.info("ledger_reconnecting", extra={"db.url": self._db.url})
            await self._connect()

    async def has_executed_today(self, task_id: int) -> bool:
        """Return True iff a row exists for (task_id, today).

        Returns False on storage errors.
        """
        today = self._today()
        async with self._lock:
            try:
                await self._ensure_connection()
                async with self._db.session() as session:
                    result = await session.execute(
                        select(ExecutedTask.task_id)
                        .where(
                            ExecutedTask.task_id == task_id,
                            ExecutedTask.execution_date == today,
                        )
                        .limit(1)
                    )
                    executed = result.first() is not None
            except _STORAGE_ERRORS:
                logger.exception(
                    "ledger_check_failed", extra={"task.id": task_id}
                )
                return False

        logger.debug(
            f"Task {task_id} executed today ({today.isoformat()}): {executed}"
        )
        return executed

    async def mark_executed(self, task_id: int) -> None:
        """Record that task_id ran today. Idempotent within a day."""
        today = self._today()
        stmt = (
            sqlite_insert(ExecutedTask)
            .prefix_with("OR REPLACE")
            .values(
                task_id=task_id,
                execution_date=today,
                execution_timestamp=local_now(),
            )
        )
        async with self._lock:
            try:
                await self._ensure_connection()
                async with self._db.session() as session:
                    await session.execute(stmt)
            except _STORAGE_ERRORS:
                logger.exception(
                    "ledger_mark_failed", extra={"task.id": task_id}
                )
                return

        logger.info(
            "task_marked_executed",
            extra={"task.id": task_id, "execution.date": today.isoformat()},
        )

    async def remove_task_records(self, task_id: int) -> None:
        """Delete every row for task_id."""
        async with self._lock:
            try:
                await self._ensure_connection()
                async with self._db.session() as session:
                    result = await session.execute(
                        delete(ExecutedTask).where(ExecutedTask.task_id == task_id)
                    )
                    deleted = result.rowcount
            except _STORAGE_ERRORS:
                logger.exception(
                    "ledger_remove_failed", extra={"task.id": task_id}
                )
                return

        logger.info(f"Removed {deleted} execution records for task {task_id}")

    async def count_records(self, task_id: int, day: date | None = None) -> int:
        """Count rows for task_id on day (default today). 0 on storage errors."""
        day = day or self._today()
        async with self._lock:
            try:
                await self._ensure_connection()
                async with self._db.session() as session:
                    result = await session.execute(
                        select(func.count())
                        .select_from(ExecutedTask)
                        .where(
                            ExecutedTask.task_id == task_id,
                            ExecutedTask.execution_date == day,
                        )
                    )
                    return int(result.scalar_one())
            except _STORAGE_ERRORS:
                logger.exception("ledger_count_failed", extra={"task.id": task_id})
                return 0

    async def executed_on(self, day: date | None = None) -> list[int]:
        """Return the ids of tasks recorded on day (default today), sorted."""
        day = day or self._today()
        async with self._lock:
            try:
                await self._ensure_connection()
                async with self._db.session() as session:
                    result = await session.execute(
                        select(ExecutedTask.task_id)
                        .where(ExecutedTask.execution_date == day)
                        .order_by(ExecutedTask.task_id)
                    )
                    return [int(row) for row in result.scalars()]
            except _STORAGE_ERRORS:
                logger.exception("ledger_list_failed")
                return []

    async def close(self) -> None:
        """Release the storage handle. Safe if never opened."""
        async with self._lock:
            try:
                await self._db.disconnect()
            except _STORAGE_ERRORS:
                logger.exception("ledger_close_failed")
                return
        logger.info("ledger_closed")
