"""Error types with formatted source context."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textecca.tokens import Span

if TYPE_CHECKING:
    from textecca.doc import Block


def _format_context(message: str, span: Span, source: str, filename: str) -> str:
    """Render ``message`` with a gutter, the offending source line, and carets."""
    offset = max(0, min(span.offset, len(source)))
    line_start = source.rfind("\n", 0, offset) + 1
    line_end = source.find("\n", offset)
    if line_end == -1:
        line_end = len(source)
    source_line = source[line_start:line_end].rstrip("\r")
    line = source.count("\n", 0, offset) + 1
    col = offset - line_start + 1

    # Underline the span while it stays on this line, at least one caret
    first_line = span.fragment.split("\n", 1)[0]
    underline_len = max(1, min(len(first_line), len(source_line) - col + 1))

    pad = " " * (col - 1)
    carets = "^" * underline_len

    line_num = str(line)
    gutter_width = len(line_num) + 1

    blank_gutter = " " * gutter_width + "|"
    line_gutter = f"{line_num:>{gutter_width - 1}} |"

    return (
        f"error: {message}\n"
        f"{' ' * gutter_width}--> {filename}:{line}:{col}\n"
        f"{blank_gutter}\n"
        f"{line_gutter} {source_line}\n"
        f"{blank_gutter} {pad}{carets}"
    )


class TexteccaError(Exception):
    """Base class of every error raised by textecca."""


class LexError(TexteccaError):
    """Raised when indentation matches no enclosing block; aborts tokenizing."""

    def __init__(self, message: str, span: Span, source: str) -> None:
        self.message = message
        self.span = span
        self.source = source
        super().__init__(self.format())

    def format(self, filename: str = "input.tx") -> str:
        return _format_context(self.message, self.span, self.source, filename)


class ParseError(TexteccaError):
    """Raised on malformed command or argument syntax."""

    def __init__(self, message: str, span: Span, source: str) -> None:
        self.message = message
        self.span = span
        self.source = source
        super().__init__(self.format())

    def format(self, filename: str = "input.tx") -> str:
        return _format_context(self.message, self.span, self.source, filename)


# ---------------------------------------------------------------------------
# Argument binding
# ---------------------------------------------------------------------------


class FromArgsError(TexteccaError):
    """A command constructor could not bind its arguments."""


class TooFew(FromArgsError):
    def __init__(self) -> None:
        super().__init__("too few arguments")


class TooMany(FromArgsError):
    def __init__(self) -> None:
        super().__init__("too many arguments")


class Missing(FromArgsError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"missing argument {name!r}")


class MissingPositional(FromArgsError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"missing positional argument {name!r}")


class MissingKeyword(FromArgsError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"argument {name!r} requires a keyword")


class UnexpectedKeyword(FromArgsError):
    def __init__(self, names: list[str]) -> None:
        self.names = names
        super().__init__("unknown keyword argument(s) " + ", ".join(repr(n) for n in names))


# ---------------------------------------------------------------------------
# Document building
# ---------------------------------------------------------------------------


class DocBuilderError(TexteccaError):
    """A structural error while folding content into a document."""


class EmptyTermList(DocBuilderError):
    def __init__(self) -> None:
        super().__init__("cannot add text to a term list with no items: the item would have no term")


class UnexpectedBlocks(DocBuilderError):
    def __init__(self, blocks: list[Block]) -> None:
        self.blocks = blocks
        kinds = ", ".join(type(b).__name__ for b in blocks)
        super().__init__(f"expected inline content, got blocks: {kinds}")


# ---------------------------------------------------------------------------
# Command evaluation
# ---------------------------------------------------------------------------


class CommandError(TexteccaError):
    """Raised while constructing or calling a command.

    ``span`` and ``source`` may be filled in after the fact by the caller that
    knows which command invocation failed.
    """

    def __init__(
        self,
        message: str,
        span: Span | None = None,
        source: str | None = None,
    ) -> None:
        self.message = message
        self.span = span
        self.source = source
        super().__init__(message)

    def __str__(self) -> str:
        return self.format()

    def format(self, filename: str = "input.tx") -> str:
        if self.span is None or self.source is None:
            return f"error: {self.message}"
        return _format_context(self.message, self.span, self.source, filename)


class CommandTypeError(CommandError):
    """Content of the wrong shape, e.g. blocks where only text is allowed."""


class CommandArgsError(CommandError):
    def __init__(self, error: FromArgsError, span: Span | None = None, source: str | None = None):
        self.error = error
        super().__init__(f"bad arguments: {error}", span, source)


class UnboundCommandError(CommandError):
    def __init__(self, name: str, span: Span | None = None, source: str | None = None):
        self.name = name
        super().__init__(f"command \\{name} not defined in current environment", span, source)


class ArgumentParseError(CommandError):
    def __init__(self, error: ParseError) -> None:
        self.error = error
        super().__init__(error.message, error.span, error.source)


class CommandBuilderError(CommandError):
    def __init__(self, error: DocBuilderError, span: Span | None = None, source: str | None = None):
        self.error = error
        super().__init__(str(error), span, source)


class CommandRecursionError(CommandError):
    """Command nesting went deeper than the configured limit."""


class ThunkConsumedError(CommandError):
    """A one-shot argument was evaluated twice."""


class SerializerError(TexteccaError):
    """Raised when a document cannot be written to the output format."""
