"""Execution targets selected by a bracketed prefix on each command.

    "[console] say hi"   -> CONSOLE, "say hi"
    "[PLAYER]spawn"      -> PLAYER,  "spawn"
    "say hi"             -> CONSOLE, "say hi"
"""

import re
from enum import Enum


class CommandTarget(str, Enum):
    """Who issues a command."""

    CONSOLE = "console"
    OP = "op"
    PLAYER = "player"

    @property
    def prefix(self) -> str:
        return f"[{self.value}]"


_PREFIX_RE = re.compile(
    r"^\[(" + "|".join(t.value for t in CommandTarget) + r")\]\s*",
    re.IGNORECASE,
)


def classify(command: str | None) -> CommandTarget:
    """Return the target named by the command's prefix, CONSOLE by default."""
    if not command:
        return CommandTarget.CONSOLE
    match = _PREFIX_RE.match(command.strip())
    if match is None:
        return CommandTarget.CONSOLE
    return CommandTarget(match.group(1).lower())


def strip_prefix(command: str | None, target: CommandTarget | None = None) -> str:
    """Remove one leading target tag (case-insensitive) and trim.

    If target is given, only that target's tag is removed.
    """
    if not command:
        return ""
    text = command.strip()
    match = _PREFIX_RE.match(text)
    if match is None:
        return text
    if target is not None and match.group(1).lower() != target.value:
        return text
    return text[match.end() :].strip()
