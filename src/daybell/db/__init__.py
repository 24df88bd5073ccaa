"""Database layer."""

from daybell.db.engine import Database
from daybell.db.models import Base, ExecutedTask

__all__ = [
    "Base",
    "Database",
    "ExecutedTask",
]
