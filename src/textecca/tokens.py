"""Source regions, lexer token types, and Unicode character classification."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import Enum, auto


@dataclass(frozen=True, slots=True)
class Span:
    """A region of text: 0-based offset, 1-based line, and the covered fragment.

    The fragment usually is a slice of the source text, but may be a
    synthesized string owned by the source arena.
    """

    offset: int
    line: int
    fragment: str

    @property
    def end(self) -> int:
        return self.offset + len(self.fragment)

    def slice(self, start: int, stop: int | None = None) -> Span:
        """Return the sub-span covering fragment[start:stop]."""
        if stop is None:
            stop = len(self.fragment)
        line = self.line + self.fragment.count("\n", 0, start)
        return Span(self.offset + start, line, self.fragment[start:stop])

    def empty_at(self, index: int) -> Span:
        """Zero-length span at fragment[index]."""
        return self.slice(index, index)


class TokenType(Enum):
    INDENT = auto()  # new indentation level; span is the added prefix
    DEINDENT = auto()  # count levels closed; zero-length span
    WORD = auto()
    SPACE = auto()  # inline whitespace (space, tab, Zs)
    PUNCT = auto()  # P* and S* categories
    NUM = auto()  # N* category
    NEWLINE = auto()  # \n, \r\n, or zero-length at EOF
    BLANK_LINES = auto()  # count consecutive whitespace-only lines


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexer token."""

    type: TokenType
    span: Span
    count: int = 1


# ---------------------------------------------------------------------------
# Character classification
# ---------------------------------------------------------------------------


def is_inline_space(ch: str) -> bool:
    """Return True for space, tab, or any Zs (space separator) character."""
    return ch == " " or ch == "\t" or unicodedata.category(ch) == "Zs"


def is_punct_or_symbol(ch: str) -> bool:
    return unicodedata.category(ch)[0] in "PS"


def is_symbol(ch: str) -> bool:
    return unicodedata.category(ch)[0] == "S"


def is_number(ch: str) -> bool:
    return unicodedata.category(ch)[0] == "N"


def is_xid_start(ch: str) -> bool:
    # str.isidentifier() accepts XID_Start plus the underscore
    return ch != "_" and ch.isidentifier()


def is_xid_continue(ch: str) -> bool:
    return ("a" + ch).isidentifier()


# Symbols and punctuation which may not appear inside a command name
_NAME_EXCLUDED_SYMBOLS = frozenset("=|$")
_NAME_EXCLUDED_PUNCT = frozenset("\"',\\%")


def is_ident_start(ch: str) -> bool:
    """Return True if ch may start a command name."""
    return is_xid_start(ch)


def is_ident_continue(ch: str) -> bool:
    """Return True if ch may appear after the first character of a command name."""
    if is_xid_continue(ch) or ch == "-":
        return True
    cat = unicodedata.category(ch)
    if cat[0] == "S":
        return ch not in _NAME_EXCLUDED_SYMBOLS
    if cat == "Po":
        return ch not in _NAME_EXCLUDED_PUNCT
    return False


def classify(ch: str) -> TokenType:
    """Classify a grapheme cluster by its leading code point."""
    if is_punct_or_symbol(ch):
        return TokenType.PUNCT
    if is_number(ch):
        return TokenType.NUM
    if is_inline_space(ch):
        return TokenType.SPACE
    return TokenType.WORD
