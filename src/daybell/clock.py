"""Clock source: time of day from an external provider, else the system clock.

The external provider answers a single textual query (by default
"%servertime%"). An answer that is empty, missing, or echoes the query back
unresolved counts as unavailable.
"""

import logging
import re
from datetime import datetime, time
from pathlib import Path
from typing import Protocol

from daybell.config.models import DEFAULT_TIME_QUERY

logger = logging.getLogger(__name__)

# Exact-length, fixed-width encodings only. The ':' forms are matched by
# length and presence of a colon, then validated by strptime.
_TIME_FORMATS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^(?=.{5}$).*:.*$"), "%H:%M"),
    (re.compile(r"^\d{4}$"), "%H%M"),
    (re.compile(r"^(?=.{8}$).*:.*$"), "%H:%M:%S"),
    (re.compile(r"^\d{6}$"), "%H%M%S"),
)


def parse_time_of_day(text: str | None) -> time | None:
    """Parse HH:MM, HHMM, HH:MM:SS or HHMMSS into a time.

    Returns None for anything else, including out-of-range values.
    """
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None

    for pattern, fmt in _TIME_FORMATS:
        if not pattern.match(text):
            continue
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            return None
    return None


class TimeProvider(Protocol):
    """External source of the current time of day, as text."""

    def resolve(self, query: str) -> str | None: ...


class SystemTimeProvider:
    """Provider that is never available; the clock always uses system time."""

    def resolve(self, query: str) -> str | None:
        return None


class FileTimeProvider:
    """Reads a time-of-day value that another process broadcasts to a file.

    Only the first line is used. A missing or unreadable file is treated as
    unavailable.
    """

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def resolve(self, query: str) -> str | None:
        try:
            with self._path.open(encoding="utf-8") as f:
                return f.readline(64).strip()
        except OSError:
            return None


class ClockSource:
    """Time of day for the scheduler and countdown queries.

    now() never raises: every failure mode falls back to the local clock.
    """

    def __init__(
        self,
        provider: TimeProvider | None = None,
        query: str = DEFAULT_TIME_QUERY,
    ):
        self._provider = provider or SystemTimeProvider()
        self._query = query

    @property
    def provider(self) -> TimeProvider:
        return self._provider

    def system_now(self) -> time:
        return datetime.now().time()

    def now(self) -> time:
        try:
            raw = self._provider.resolve(self._query)
        except Exception as e:
            logger.warning(f"Error getting time from provider: {e}")
            return self.system_now()

        if raw is None or not raw.strip() or raw.strip() == self._query:
            logger.debug("Time provider not available, using system time")
            return self.system_now()

        parsed = parse_time_of_day(raw)
        if parsed is None:
            logger.debug(f"Could not parse provider time {raw!r}, using system time")
            return self.system_now()
        return parsed


def create_clock(source_file: Path | None, query: str = DEFAULT_TIME_QUERY) -> ClockSource:
    """Build the clock described by the [clock] config section."""
    if source_file is None:
        return ClockSource(query=query)
    return ClockSource(FileTimeProvider(source_file.expanduser()), query=query)
