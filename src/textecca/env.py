"""Chain-scoped command bindings."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from textecca.errors import UnboundCommandError
from textecca.parser import Parser, default_parser

if TYPE_CHECKING:
    from textecca.eval import Command, ParsedArgs

# Builds a command instance from its arguments, or raises FromArgsError
FromArgs = Callable[["ParsedArgs"], "Command"]


@dataclass(frozen=True, slots=True)
class CommandInfo:
    """Registration record for a command kind."""

    name: str
    from_args: FromArgs
    parser: Parser = default_parser


class Environment:
    """A name → CommandInfo table with an optional parent scope.

    Lookups walk from this scope up to the root; the first match wins.
    """

    def __init__(self, parent: Environment | None = None) -> None:
        self.parent = parent
        self._cmds: dict[str, CommandInfo] = {}

    def __repr__(self) -> str:
        return f"Environment({sorted(self._cmds)}, parent={self.parent!r})"

    def __contains__(self, name: str) -> bool:
        env: Environment | None = self
        while env is not None:
            if name in env._cmds:
                return True
            env = env.parent
        return False

    def new_inheriting(self) -> Environment:
        """Return a new, empty scope whose parent is this one."""
        return Environment(self)

    def add_binding(self, info: CommandInfo) -> None:
        self._cmds[info.name] = info

    def add_binding_name(self, info: CommandInfo, name: str) -> None:
        """Bind ``info`` under ``name`` instead of its own name."""
        self._cmds[name] = info

    def cmd_info(self, name: str) -> CommandInfo:
        env: Environment | None = self
        while env is not None:
            info = env._cmds.get(name)
            if info is not None:
                return info
            env = env.parent
        raise UnboundCommandError(name)
