"""Routes one command string to the host as the right actor."""

import asyncio
import logging

from daybell.dispatch.host import Actor, CommandHost
from daybell.dispatch.targets import CommandTarget, classify, strip_prefix

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Classify, strip, pick an actor, and hand the command to the host."""

    def __init__(self, host: CommandHost):
        self._host = host

    @property
    def host(self) -> CommandHost:
        return self._host

    async def actor_for(self, target: CommandTarget) -> Actor:
        """Pick who issues a command for a target.

        CONSOLE and OP both run as the console. PLAYER runs as the first
        connected user, or the console when nobody is connected.
        """
        if target is not CommandTarget.PLAYER:
            return Actor.console()

        try:
            users = list(await asyncio.to_thread(self._host.connected_users))
        except Exception as e:
            logger.warning(f"Could not list connected users: {e}")
            users = []

        if not users:
            logger.warning("No users connected for player command, using console")
            return Actor.console()
        return Actor.user(users[0])

    async def dispatch(self, command: str) -> bool:
        """Dispatch a raw (possibly prefixed) command. Never raises."""
        target = classify(command)
        text = strip_prefix(command, target)
        if not text:
            logger.warning(f"Empty command after prefix removal: {command!r}")
            return False

        actor = await self.actor_for(target)
        try:
            ok = bool(await self._host.dispatch(actor, text))
        except Exception:
            logger.exception(
                "command_dispatch_error",
                extra={"command.target": target.value, "command.text": text},
            )
            return False

        logger.debug(f"Executed command ({target.value} as {actor}): {text} - success: {ok}")
        return ok
