"""Shared test fixtures and fakes."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Sequence
from datetime import date
from pathlib import Path

import pytest

from daybell.clock import ClockSource
from daybell.config.paths import ENV_VAR, get_daybell_home
from daybell.config.store import TaskConfigStore
from daybell.dispatch import Actor, CommandDispatcher
from daybell.ledger import ExecutionLedger
from daybell.tasks.registry import TaskRegistry

TODAY = date(2024, 6, 1)

CONFIG_TOML = """\
# test config
debug = false

[scheduler]
poll_interval = 5
command_delay = 0

[ledger]
database_path = "{db_path}"

[tasks."1"]
time = "14:30"
commands = ["[console] say hi"]
message = "Afternoon greeting"

[tasks."2"]
time = "04:00"
commands = ["echo restart", "[player] spawn", "[op] save-all"]
"""


# =============================================================================
# Fakes
# =============================================================================


class FakeHost:
    """CommandHost that records dispatches instead of running anything."""

    def __init__(self, users: Sequence[str] = ()):
        self.users = list(users)
        self.dispatched: list[tuple[Actor, str]] = []
        self.failing: set[str] = set()
        self.raising: set[str] = set()
        self.gate: asyncio.Event | None = None

    def connected_users(self) -> Sequence[str]:
        return list(self.users)

    async def dispatch(self, actor: Actor, command: str) -> bool:
        if self.gate is not None:
            await self.gate.wait()
        if command in self.raising:
            raise RuntimeError(f"host exploded on {command}")
        self.dispatched.append((actor, command))
        return command not in self.failing

    @property
    def commands(self) -> list[str]:
        return [command for _, command in self.dispatched]


class FakeTimeProvider:
    """TimeProvider answering whatever `value` is set to."""

    def __init__(self, value: str | None = None):
        self.value = value
        self.queries: list[str] = []

    def resolve(self, query: str) -> str | None:
        self.queries.append(query)
        return self.value


# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def daybell_home(monkeypatch, tmp_path: Path) -> Path:
    """Point DAYBELL_HOME at a temp dir so no test touches ~/.daybell."""
    home = tmp_path / "daybell-home"
    monkeypatch.setenv(ENV_VAR, str(home))
    monkeypatch.delenv("DAYBELL_LOG_LEVEL", raising=False)
    get_daybell_home.cache_clear()
    yield home
    get_daybell_home.cache_clear()


@pytest.fixture(autouse=True)
def root_logger():
    """Undo any configure_logging() a test (or CLI command) performs."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Config file with two valid tasks and a ledger inside tmp_path."""
    path = tmp_path / "config.toml"
    path.write_text(CONFIG_TOML.format(db_path=tmp_path / "tasks.db"))
    return path


@pytest.fixture
def store(config_file: Path) -> TaskConfigStore:
    return TaskConfigStore(config_file)


# =============================================================================
# Components
# =============================================================================


@pytest.fixture
async def ledger(tmp_path: Path) -> AsyncGenerator[ExecutionLedger, None]:
    """Open ledger on a temp database with a fixed 'today'."""
    ledger = ExecutionLedger(tmp_path / "ledger.db", today=lambda: TODAY)
    await ledger.open()
    yield ledger
    await ledger.close()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def dispatcher(host: FakeHost) -> CommandDispatcher:
    return CommandDispatcher(host)


@pytest.fixture
async def registry(
    store: TaskConfigStore,
    dispatcher: CommandDispatcher,
    ledger: ExecutionLedger,
) -> AsyncGenerator[TaskRegistry, None]:
    """Registry loaded from config_file, with no delay between commands."""
    registry = TaskRegistry(store, dispatcher, ledger, command_delay=0)
    registry.load_tasks()
    yield registry
    await registry.drain()


@pytest.fixture
def time_provider() -> FakeTimeProvider:
    return FakeTimeProvider("14:30:00")


@pytest.fixture
def clock(time_provider: FakeTimeProvider) -> ClockSource:
    return ClockSource(time_provider)


# =============================================================================
# CLI
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})
