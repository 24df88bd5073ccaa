"""Command host that runs commands through the system shell."""

import asyncio
import logging
import shlex
import subprocess
from collections.abc import Sequence

from daybell.dispatch.host import Actor

logger = logging.getLogger(__name__)


def _logged_in_users() -> list[str]:
    """Users with an active login session, in `who` order, de-duplicated."""
    try:
        result = subprocess.run(
            ["who"],
            capture_output=True,
            text=True,
            timeout=2,
        )
    except (OSError, subprocess.TimeoutExpired):
        return []
    if result.returncode != 0:
        return []

    users: list[str] = []
    for line in result.stdout.splitlines():
        parts = line.split()
        if parts and parts[0] not in users:
            users.append(parts[0])
    return users


class ShellCommandHost:
    """Runs console commands as the current user, user commands via sudo.

    A command succeeds when its exit status is 0. Output is logged at DEBUG.
    """

    def __init__(self, timeout: float | None = None, shell: str = "/bin/sh"):
        self._timeout = timeout or None
        self._shell = shell

    def connected_users(self) -> Sequence[str]:
        return _logged_in_users()

    def build_command(self, actor: Actor, command: str) -> str:
        if actor.is_console:
            return command
        return (
            f"sudo -n -u {shlex.quote(actor.name or '')} -- "
            f"{self._shell} -c {shlex.quote(command)}"
        )

    async def dispatch(self, actor: Actor, command: str) -> bool:
        proc = await asyncio.create_subprocess_shell(
            self.build_command(actor, command),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            executable=self._shell,
        )
        try:
            output, _ = await asyncio.wait_for(proc.communicate(), self._timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            logger.warning(
                "command_timeout",
                extra={"command.text": command, "command.timeout": self._timeout},
            )
            return False

        if output:
            logger.debug(f"[{actor}] {command}: {output.decode(errors='replace').rstrip()}")
        if proc.returncode != 0:
            logger.warning(
                "command_failed",
                extra={"command.text": command, "command.exit_code": proc.returncode},
            )
        return proc.returncode == 0
