"""Command dispatch: target classification and the host boundary.

Public API:
- CommandDispatcher: Routes a prefixed command string to the host
- CommandHost: Protocol for the environment that runs commands
- ShellCommandHost: CommandHost backed by the system shell

Pure helpers:
- classify / strip_prefix: Parse the [console]/[op]/[player] prefix
"""

from daybell.dispatch.dispatcher import CommandDispatcher
from daybell.dispatch.host import Actor, CommandHost
from daybell.dispatch.shell import ShellCommandHost
from daybell.dispatch.targets import CommandTarget, classify, strip_prefix

__all__ = [
    "Actor",
    "CommandDispatcher",
    "CommandHost",
    "CommandTarget",
    "ShellCommandHost",
    "classify",
    "strip_prefix",
]
