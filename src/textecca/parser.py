"""textecca parsers: recognize commands and their arguments within a text region."""

from __future__ import annotations

from collections.abc import Callable

from textecca.ast import Argument, Command, CommandToken, ParsedToken, Text
from textecca.errors import ParseError
from textecca.source import Source
from textecca.tokens import Span, is_ident_continue, is_ident_start, is_inline_space

# Turns a region of input into Text and CommandToken values. Commands carry
# their own Parser, which decides how *their* argument regions are read.
Parser = Callable[[Source, Span], list[ParsedToken]]

# Characters ending a keyword name; the name form applies only if '=' comes first
_KWARG_NAME_STOP = frozenset("\\{}$=")

# Characters ending a text run in the default parser
_TEXT_STOP = frozenset("\\\r\n")


class CommandParser:
    """Recursive descent scanner for ``\\name{arg}{kw=val}`` syntax in one region."""

    def __init__(self, source: Source, region: Span) -> None:
        self._source = source
        self._region = region
        self._text = region.fragment
        self._pos = 0
        # Line bookkeeping for _span(), which is called with mostly increasing offsets
        self._line_pos = 0
        self._line = region.line

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._text):
            return self._text[idx]
        return ""

    def _at_end(self) -> bool:
        return self._pos >= len(self._text)

    def _span(self, start: int, stop: int) -> Span:
        if start < self._line_pos:
            self._line_pos = 0
            self._line = self._region.line
        self._line += self._text.count("\n", self._line_pos, start)
        self._line_pos = start
        return Span(self._region.offset + start, self._line, self._text[start:stop])

    def error(self, message: str, start: int | None = None, stop: int | None = None) -> ParseError:
        if start is None:
            start = self._pos
        if stop is None:
            stop = min(start + 1, len(self._text))
        return ParseError(message, self._span(start, stop), self._source.text)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def parse_command(self, min_args: int = 0) -> Command | None:
        """Parse a command and at least ``min_args`` arguments at the current position.

        Returns None, consuming nothing, if no command name starts here.
        Arguments are consumed greedily. Too few arguments, or an argument
        whose braces never close, raise ParseError.
        """
        start = self._pos
        name = self._parse_name()
        if name is None:
            return None

        args: list[Argument] = []
        while (arg := self._parse_argument()) is not None:
            args.append(arg)

        if len(args) < min_args:
            raise self.error(
                f"expected at least {min_args} argument(s) to \\{name.fragment}, found {len(args)}",
                start,
                self._pos,
            )
        return Command(name, tuple(args))

    def _parse_name(self) -> Span | None:
        if self._peek() != "\\":
            return None
        first = self._peek(1)
        if not first or not is_ident_start(first):
            return None

        start = self._pos + 1
        stop = start + 1
        while stop < len(self._text) and is_ident_continue(self._text[stop]):
            stop += 1
        self._pos = stop
        return self._span(start, stop)

    def _parse_argument(self) -> Argument | None:
        pos = self._pos
        while pos < len(self._text) and is_inline_space(self._text[pos]):
            pos += 1
        if pos >= len(self._text) or self._text[pos] != "{":
            # Leading whitespace belongs to whatever follows
            return None

        content_start = pos + 1
        close, equals = self._scan_balanced(content_start)
        self._pos = close + 1

        if equals is not None:
            return Argument(self._span(content_start, equals), self._span(equals + 1, close))
        return Argument.from_value(self._span(content_start, close))

    def _scan_balanced(self, pos: int) -> tuple[int, int | None]:
        """Scan balanced-brace content starting at ``pos``.

        Returns the offset of the matching ``}`` and the offset of the ``=``
        separating a keyword name from its value, if the content has one.
        """
        open_brace = pos - 1
        depth = 0
        equals: int | None = None
        name_decided = False

        while pos < len(self._text):
            ch = self._text[pos]
            # The first of \ { } $ = settles the form: only "=" makes a keyword,
            # so {a{b}=c} stays positional rather than being rejected.
            if not name_decided and ch in _KWARG_NAME_STOP:
                name_decided = True
                if ch == "=":
                    equals = pos

            if ch == "\\":
                # \{, \} and any other escape pair are kept literally
                pos += 2
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                if depth == 0:
                    return pos, equals
                depth -= 1
            pos += 1

        raise self.error("unclosed '{' in command argument", open_brace)


class DefaultParser(CommandParser):
    """The default textecca parser: commands, text runs, and newline runs."""

    def parse(self) -> list[ParsedToken]:
        tokens: list[ParsedToken] = []
        while not self._at_end():
            command = self.parse_command()
            if command is not None:
                tokens.append(CommandToken(command))
                continue

            token = self._parse_text() or self._parse_newlines()
            if token is None:
                raise self._leftover_error()
            tokens.append(token)
        return tokens

    def _parse_text(self) -> Text | None:
        start = stop = self._pos
        while stop < len(self._text) and self._text[stop] not in _TEXT_STOP:
            stop += 1
        if stop == start:
            return None
        self._pos = stop
        return Text(self._span(start, stop))

    def _parse_newlines(self) -> ParsedToken | None:
        newlines: list[Span] = []
        pos = self._pos
        while True:
            if self._text.startswith("\n", pos):
                length = 1
            elif self._text.startswith("\r\n", pos):
                length = 2
            else:
                break
            newlines.append(self._span(pos, pos + length))
            pos += length

        if not newlines:
            return None
        self._pos = pos

        last = newlines[-1]
        if len(newlines) == 1:
            # A single newline is nothing special.
            return Text(last)
        # Two or more make a paragraph break, which has no literal name in the input.
        return CommandToken(Command.from_name(self._source.par_span(last)))

    def _leftover_error(self) -> ParseError:
        if self._peek() == "\\":
            return self.error("expected command name after '\\'", self._pos, self._pos + 2)
        return self.error(f"unexpected character {self._peek()!r}")


def parse_command(source: Source, region: Span | None = None, min_args: int = 0) -> Command:
    """Parse one command at the start of ``region`` (the whole input by default)."""
    parser = CommandParser(source, region if region is not None else source.span())
    command = parser.parse_command(min_args)
    if command is None:
        raise parser.error("expected command")
    return command


def default_parser(source: Source, region: Span) -> list[ParsedToken]:
    """Parse ``region`` into text and commands; all of it must be consumed."""
    return DefaultParser(source, region).parse()


def literal_parser(source: Source, region: Span) -> list[ParsedToken]:
    """Treat the whole region as literal text, never looking for commands."""
    return [Text(region)]


def parse(source: Source | str) -> list[ParsedToken]:
    """Convenience function: run the default parser over a whole input."""
    if isinstance(source, str):
        source = Source(source)
    return default_parser(source, source.span())
