"""Console output helpers shared by the CLI commands.

Status helpers print their message as plain text, never as Rich markup:
task commands routinely contain bracketed prefixes such as ``[console]``.
"""

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

console = Console()


def _say(style: str, msg: str) -> None:
    console.print(Text(msg, style=style))


def error(msg: str) -> None:
    _say("red", msg)


def warning(msg: str) -> None:
    _say("yellow", msg)


def success(msg: str) -> None:
    _say("green", msg)


def dim(msg: str) -> None:
    _say("dim", msg)


def create_table(title: str, columns: dict[str, str | None]) -> Table:
    """Table with one column per key; the value is the column style, if any."""
    table = Table(title=title)
    for name, style in columns.items():
        table.add_column(name, style=style)
    return table


def confirm_or_cancel(prompt: str, force: bool) -> bool:
    """True when forced or confirmed; prints "Cancelled" otherwise."""
    if force or typer.confirm(prompt):
        return True
    dim("Cancelled")
    return False
