"""Evaluation engine: resolves commands, binds their arguments, and runs them."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from textecca import ast
from textecca.ast import CommandToken, ParsedToken, Text
from textecca.builder import DocBuilder
from textecca.doc import Block, Document, Inline
from textecca.env import Environment
from textecca.errors import (
    ArgumentParseError,
    CommandArgsError,
    CommandBuilderError,
    CommandError,
    CommandRecursionError,
    CommandTypeError,
    DocBuilderError,
    FromArgsError,
    Missing,
    MissingKeyword,
    MissingPositional,
    ParseError,
    ThunkConsumedError,
    TooFew,
    TooMany,
    UnboundCommandError,
    UnexpectedKeyword,
)
from textecca.parser import Parser, default_parser
from textecca.source import Source

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 128


class Command:
    """An evaluated command, ready to push its output into a builder."""

    def call(self, builder: DocBuilder, world: World) -> None:
        raise NotImplementedError

    def environment(self, parent: Environment) -> Environment:
        """Environment the command's own arguments are evaluated in."""
        return parent


# ---------------------------------------------------------------------------
# World
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class World:
    """The environment and source used to evaluate one command invocation."""

    env: Environment
    source: Source
    depth: int = 0
    max_depth: int = DEFAULT_MAX_DEPTH

    def get_cmd(self, cmd: ast.Command) -> Command:
        """Resolve ``cmd`` and construct it from its arguments."""
        name = cmd.name.fragment
        try:
            info = self.env.cmd_info(name)
        except UnboundCommandError:
            raise UnboundCommandError(name, cmd.name, self.source.text) from None
        logger.debug("resolved \\%s at line %d (depth %d)", name, cmd.name.line, self.depth)

        try:
            args = ParsedArgs.from_unparsed(cmd.args, info.parser, self)
        except ParseError as e:
            raise ArgumentParseError(e) from e

        try:
            return info.from_args(args)
        except FromArgsError as e:
            raise CommandArgsError(e, cmd.name, self.source.text) from e

    def call_cmd(self, cmd: ast.Command, builder: DocBuilder) -> None:
        """Resolve ``cmd`` and call it one level deeper, in its own environment."""
        if self.depth >= self.max_depth:
            raise CommandRecursionError(
                f"commands nested deeper than {self.max_depth} levels",
                cmd.name,
                self.source.text,
            )
        command = self.get_cmd(cmd)
        world = replace(self, env=command.environment(self.env), depth=self.depth + 1)
        try:
            command.call(builder, world)
        except DocBuilderError as e:
            raise CommandBuilderError(e, cmd.name, self.source.text) from e
        except RecursionError as e:
            # The interpreter stack ran out before max_depth was reached
            raise CommandRecursionError(
                f"commands nested too deeply (depth {self.depth})",
                cmd.name,
                self.source.text,
            ) from e
        except CommandError as e:
            if e.span is None:
                e.span = cmd.name
            if e.source is None:
                e.source = self.source.text
            raise


# ---------------------------------------------------------------------------
# Thunks
# ---------------------------------------------------------------------------


@dataclass(eq=True)
class Thunk:
    """An argument value, evaluated at most once."""

    _consumed: bool = field(default=False, init=False, repr=False, compare=False)

    def _consume(self) -> None:
        if self._consumed:
            raise ThunkConsumedError("argument has already been evaluated")
        self._consumed = True

    def force(self, world: World, builder: DocBuilder) -> None:
        raise NotImplementedError

    def into_string(self) -> str:
        raise NotImplementedError

    def into_blocks(self, world: World) -> list[Block]:
        builder = DocBuilder()
        self.force(world, builder)
        return builder.into_blocks()

    def into_inlines(self, world: World) -> list[Inline]:
        """Evaluate to inline content; block structure raises UnexpectedBlocks."""
        builder = DocBuilder()
        self.force(world, builder)
        return builder.into_inlines()


@dataclass(eq=True)
class LazyThunk(Thunk):
    """Unevaluated parser output."""

    tokens: list[ParsedToken] = field(default_factory=list)

    def force(self, world: World, builder: DocBuilder) -> None:
        self._consume()
        for tok in self.tokens:
            if isinstance(tok, Text):
                builder.push(tok.span)
            else:
                world.call_cmd(tok.command, builder)

    def into_string(self) -> str:
        """Return the literal text; any command in it raises CommandTypeError."""
        self._consume()
        parts: list[str] = []
        for tok in self.tokens:
            if isinstance(tok, CommandToken):
                raise CommandTypeError(
                    f"expected literal text, found command \\{tok.command.name.fragment}",
                    tok.command.name,
                )
            parts.append(tok.span.fragment)
        return "".join(parts)


@dataclass(eq=True)
class ForcedThunk(Thunk):
    """Already evaluated blocks, replayed as-is."""

    blocks: list[Block] = field(default_factory=list)

    def force(self, world: World, builder: DocBuilder) -> None:
        self._consume()
        builder.push(self.blocks)

    def into_string(self) -> str:
        self._consume()
        raise CommandTypeError("expected literal text, found evaluated content")


# ---------------------------------------------------------------------------
# Argument binding
# ---------------------------------------------------------------------------


class ParsedArgs:
    """Positional and keyword argument thunks for one command invocation."""

    def __init__(
        self,
        args: Iterable[Thunk] = (),
        kwargs: dict[str, Thunk] | None = None,
    ) -> None:
        self.args: deque[Thunk] = deque(args)
        self.kwargs: dict[str, Thunk] = dict(kwargs or {})

    def __repr__(self) -> str:
        return f"ParsedArgs({list(self.args)!r}, {self.kwargs!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParsedArgs):
            return NotImplemented
        return self.args == other.args and self.kwargs == other.kwargs

    @classmethod
    def from_unparsed(
        cls, args: Iterable[ast.Argument], parser: Parser, world: World
    ) -> ParsedArgs:
        """Parse each argument's value with ``parser`` and sort by form.

        Keyword names are used exactly as written, surrounding whitespace included.
        """
        parsed = cls()
        for arg in args:
            thunk = LazyThunk(parser(world.source, arg.value))
            if arg.name is None:
                parsed.args.append(thunk)
            else:
                parsed.kwargs[arg.name.fragment] = thunk
        return parsed

    def pop_mandatory(self, name: str) -> Thunk:
        """Take keyword ``name``, else the last positional argument."""
        if name in self.kwargs:
            return self.kwargs.pop(name)
        if self.args:
            return self.args.pop()
        raise Missing(name)

    def pop_positional(self, name: str | None = None) -> Thunk:
        if self.args:
            return self.args.popleft()
        if name is None:
            raise TooFew()
        raise MissingPositional(name)

    def pop_keyword(self, name: str) -> Thunk:
        try:
            return self.kwargs.pop(name)
        except KeyError:
            raise MissingKeyword(name) from None

    def pop_optional(self, name: str) -> Thunk | None:
        return self.kwargs.pop(name, None)

    def check_no_args(self) -> None:
        self.check_no_posargs()
        self.check_no_kwargs()

    def check_no_posargs(self) -> None:
        if self.args:
            raise TooMany()

    def check_no_kwargs(self) -> None:
        if self.kwargs:
            raise UnexpectedKeyword(sorted(self.kwargs))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def evaluate(
    source: Source | str,
    env: Environment | None = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Document:
    """Parse and evaluate a whole input into a Document.

    Without ``env``, the standard command library is used.
    """
    if isinstance(source, str):
        source = Source(source)
    if env is None:
        from textecca.builtins import default_env

        env = default_env()

    world = World(env, source, max_depth=max_depth)
    builder = DocBuilder()
    LazyThunk(default_parser(source, source.span())).force(world, builder)
    try:
        return builder.into_document()
    except DocBuilderError as e:
        raise CommandBuilderError(e) from e
