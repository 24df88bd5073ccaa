"""Logging setup shared by the CLI and the scheduler.

Modules log through ``logging.getLogger(__name__)`` with short event names
("task_triggered", "ledger_mark_failed") and structured ``extra`` fields.
``configure_logging`` decides where those records go:

- a console handler (Rich for ``daybell serve``, plain text otherwise);
- optionally a JSON-lines file per local day under ``$DAYBELL_HOME/logs``.
"""

import json
import logging
import os
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import TextIO

DEFAULT_LOG_RETENTION_DAYS = 7
LOG_FILE_PREFIX = "daybell-"
LOG_FILE_SUFFIX = ".jsonl"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

# Libraries that log every statement at INFO
QUIET_LOGGERS = ("sqlalchemy", "aiosqlite")

_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "component"}


def component_of(logger_name: str) -> str:
    """Short area name: "daybell.tasks.registry" -> "tasks"."""
    head, _, rest = logger_name.partition(".")
    if head == "daybell" and rest:
        return rest.split(".", 1)[0]
    return head


def record_fields(record: logging.LogRecord) -> dict[str, object]:
    """Fields a caller attached with ``extra=``."""
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}


def log_file_name(day: date) -> str:
    return f"{LOG_FILE_PREFIX}{day.isoformat()}{LOG_FILE_SUFFIX}"


def _day_of(path: Path) -> date | None:
    name = path.name
    if not (name.startswith(LOG_FILE_PREFIX) and name.endswith(LOG_FILE_SUFFIX)):
        return None
    stamp = name[len(LOG_FILE_PREFIX) : -len(LOG_FILE_SUFFIX)]
    try:
        return date.fromisoformat(stamp)
    except ValueError:
        return None


def prune_old_logs(
    logs_dir: Path,
    retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    today: date | None = None,
) -> list[Path]:
    """Delete daily log files whose date is older than the retention window.

    Only files named like ``daybell-YYYY-MM-DD.jsonl`` are considered; the
    date in the name decides, not the modification time.

    Returns:
        The paths that were removed.
    """
    if not logs_dir.is_dir():
        return []

    cutoff = (today or date.today()) - timedelta(days=retention_days)
    removed: list[Path] = []
    for path in sorted(logs_dir.iterdir()):
        day = _day_of(path)
        if day is None or day >= cutoff or not path.is_file():
            continue
        try:
            path.unlink()
        except OSError as e:
            logging.getLogger(__name__).warning(f"Could not remove old log {path}: {e}")
            continue
        removed.append(path)
    return removed


class DailyJsonFileHandler(logging.Handler):
    """Appends one JSON object per record to the current day's log file.

    The file switches at local midnight; each switch prunes files past the
    retention window.
    """

    def __init__(
        self,
        logs_dir: Path,
        retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    ):
        super().__init__()
        logs_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir = logs_dir
        self.retention_days = retention_days
        self._day: date | None = None
        self._stream: TextIO | None = None

    def _stream_for(self, day: date) -> TextIO:
        if self._stream is None or self._day != day:
            if self._stream is not None:
                self._stream.close()
            self._stream = (self.logs_dir / log_file_name(day)).open(
                "a", encoding="utf-8"
            )
            self._day = day
            prune_old_logs(self.logs_dir, self.retention_days, today=day)
        return self._stream

    def to_dict(self, record: logging.LogRecord) -> dict[str, object]:
        entry: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": record.levelname,
            "component": component_of(record.name),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = logging.Formatter().formatException(record.exc_info)
        fields = record_fields(record)
        if fields:
            entry["fields"] = fields
        return entry

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.to_dict(record), default=str)
            stream = self._stream_for(date.fromtimestamp(record.created))
            stream.write(line + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        super().close()


class FieldsFormatter(logging.Formatter):
    """Adds ``%(component)s`` and renders extra fields as trailing key=value."""

    def format(self, record: logging.LogRecord) -> str:
        record.component = component_of(record.name)
        text = super().format(record)
        fields = record_fields(record)
        if not fields:
            return text
        return text + " " + " ".join(f"{k}={v}" for k, v in fields.items())


def resolve_level(level: str | None, default: str = "INFO") -> int:
    """Map level, else $DAYBELL_LOG_LEVEL, else default to a logging level.

    Unknown names fall back to default.
    """
    name = (level or os.environ.get("DAYBELL_LOG_LEVEL") or default).upper()
    return LOG_LEVELS.get(name, LOG_LEVELS.get(default.upper(), logging.INFO))


def _console_handler(use_rich: bool) -> logging.Handler:
    if use_rich:
        from rich.logging import RichHandler

        handler: logging.Handler = RichHandler(
            show_path=False,
            markup=False,
            rich_tracebacks=False,
        )
        handler.setFormatter(FieldsFormatter("%(component)s | %(message)s"))
        return handler

    handler = logging.StreamHandler()
    handler.setFormatter(
        FieldsFormatter(
            "%(asctime)s %(levelname)-7s %(component)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    return handler


def configure_logging(
    level: str | None = None,
    use_rich: bool = False,
    log_to_file: bool = False,
    default_level: str = "INFO",
) -> None:
    """Install handlers on the root logger, replacing any existing ones.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. Defaults to $DAYBELL_LOG_LEVEL,
            then default_level.
        use_rich: Colour console output (used by ``daybell serve``).
        log_to_file: Also write JSON lines under ``$DAYBELL_HOME/logs``.
    """
    from daybell.config.paths import get_logs_path

    log_level = resolve_level(level, default_level)
    handlers = [_console_handler(use_rich)]
    if log_to_file:
        handlers.append(DailyJsonFileHandler(get_logs_path()))

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
