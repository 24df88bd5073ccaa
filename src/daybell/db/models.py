"""SQLAlchemy ORM models."""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Index, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def local_now() -> datetime:
    """Return the current local wall-clock time (naive, like SQLite's)."""
    return datetime.now()


class Base(DeclarativeBase):
    """Base class for all models."""


class ExecutedTask(Base):
    """One row per task per calendar day on which its batch ran.

    Rows are only ever inserted (insert-or-replace) or deleted when the task
    itself is removed.
    """

    __tablename__ = "executed_tasks"
    __table_args__ = (Index("idx_task_date", "task_id", "execution_date"),)

    task_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    execution_date: Mapped[date] = mapped_column(Date, primary_key=True)
    execution_timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=local_now, nullable=True
    )
