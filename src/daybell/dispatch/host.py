"""The hosting environment that actually runs command strings."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class Actor:
    """Identity a command is issued as: the console, or a connected user."""

    kind: str
    name: str | None = None

    CONSOLE_KIND = "console"
    USER_KIND = "user"

    @classmethod
    def console(cls) -> "Actor":
        return cls(kind=cls.CONSOLE_KIND)

    @classmethod
    def user(cls, name: str) -> "Actor":
        return cls(kind=cls.USER_KIND, name=name)

    @property
    def is_console(self) -> bool:
        return self.kind == self.CONSOLE_KIND

    def __str__(self) -> str:
        return self.name if self.name else self.kind


class CommandHost(Protocol):
    """Interprets and runs command text on behalf of an actor.

    Implementations report failure as False; exceptions escaping dispatch()
    are caught by the dispatcher and also reported as failure.
    """

    def connected_users(self) -> Sequence[str]: ...

    async def dispatch(self, actor: Actor, command: str) -> bool: ...
