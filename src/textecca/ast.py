"""Parsed, not yet evaluated, command syntax and the parser's output tokens."""

from __future__ import annotations

from dataclasses import dataclass

from textecca.tokens import Span


@dataclass(frozen=True, slots=True)
class Argument:
    """A ``{...}`` argument; ``name`` is set for the ``{name=value}`` form."""

    name: Span | None
    value: Span

    @classmethod
    def from_value(cls, value: Span) -> Argument:
        return cls(None, value)


@dataclass(frozen=True, slots=True)
class Command:
    """A command invocation: ``\\name`` followed by its raw arguments."""

    name: Span
    args: tuple[Argument, ...] = ()

    @classmethod
    def from_name(cls, name: Span) -> Command:
        return cls(name, ())


@dataclass(frozen=True, slots=True)
class Text:
    """A region of text, to be output directly."""

    span: Span


@dataclass(frozen=True, slots=True)
class CommandToken:
    """A command, to be resolved and evaluated."""

    command: Command


ParsedToken = Text | CommandToken
