"""Task configuration store backed by the [tasks] table of the config file.

Uses tomlkit so comments, formatting and ordering survive edits. Every write
re-reads the file first, so an edit made by another process (an operator
using the CLI while the scheduler runs) is not clobbered.
"""

import logging
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit import TOMLDocument, table
from tomlkit.exceptions import ParseError

from daybell.config.paths import get_config_path

logger = logging.getLogger(__name__)


class TaskStoreError(Exception):
    """Raised when the task configuration cannot be read or written."""


class TaskConfigStore:
    """Reads and writes task entries in config.toml."""

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or get_config_path()

    def _load(self) -> TOMLDocument:
        try:
            if self.config_path.exists():
                return tomlkit.parse(self.config_path.read_text())
        except OSError as e:
            raise TaskStoreError(f"Cannot read {self.config_path}: {e}") from e
        except ParseError as e:
            raise TaskStoreError(f"Invalid TOML in {self.config_path}: {e}") from e
        return tomlkit.document()

    def _save(self, doc: TOMLDocument) -> None:
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(tomlkit.dumps(doc))
        except OSError as e:
            raise TaskStoreError(f"Cannot write {self.config_path}: {e}") from e
        logger.debug(f"Saved config to {self.config_path}")

    def _ensure_tasks_table(self, doc: TOMLDocument):
        if "tasks" not in doc:
            doc["tasks"] = table(is_super_table=True)
        return doc["tasks"]

    def load_entries(self) -> dict[str, Any]:
        """Return the raw [tasks] table as plain Python values.

        Keys are the task ids as written in the file; values are whatever the
        file holds. Validation is the registry's job.
        """
        tasks = self._load().unwrap().get("tasks", {})
        if not isinstance(tasks, dict):
            logger.warning("tasks_section_invalid", extra={"file.path": str(self.config_path)})
            return {}
        return tasks

    def set_task(
        self,
        task_id: int,
        *,
        time: str,
        commands: list[str],
        message: str | None = None,
    ) -> None:
        """Write the full value of one task entry, creating it if needed."""
        doc = self._load()
        tasks = self._ensure_tasks_table(doc)
        key = str(task_id)

        if key not in tasks:
            tasks[key] = table()
        entry = tasks[key]
        entry["time"] = time
        entry["commands"] = list(commands)
        if message:
            entry["message"] = message
        elif "message" in entry:
            del entry["message"]

        self._save(doc)

    def remove_task(self, task_id: int) -> bool:
        """Delete one task entry.

        Returns:
            True if removed, False if it was not in the file.
        """
        doc = self._load()
        tasks = doc.get("tasks")
        key = str(task_id)
        if not tasks or key not in tasks:
            return False

        del tasks[key]
        self._save(doc)
        return True
