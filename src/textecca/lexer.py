"""textecca tokenizer: converts source text into a flat, indentation-aware token stream."""

from __future__ import annotations

from itertools import groupby

import regex

from textecca.errors import LexError
from textecca.source import Source
from textecca.tokens import Span, Token, TokenType, classify, is_inline_space

# One extended grapheme cluster
_GRAPHEME = regex.compile(r"\X")


class Tokenizer:
    """Tokenize textecca source line by line, tracking a stack of indent prefixes."""

    def __init__(self, source: Source) -> None:
        self._source = source
        self._text = source.text
        self._pos = 0
        self._line = 1
        self._indent: list[str] = []
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Tokenize the full source and return the token list."""
        while self._pos < len(self._text):
            self._lex_line()

        # Close blocks still open at end of input
        if self._indent:
            self._emit(TokenType.DEINDENT, self._span(self._pos, self._pos), len(self._indent))
            self._indent.clear()

        return self._tokens

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _span(self, start: int, stop: int) -> Span:
        # Spans never cross a line break except at their very end
        return Span(start, self._line, self._text[start:stop])

    def _emit(self, tt: TokenType, span: Span, count: int = 1) -> Token:
        tok = Token(tt, span, count)
        self._tokens.append(tok)
        return tok

    def _error(self, message: str, start: int, stop: int) -> LexError:
        return LexError(message, self._span(start, stop), self._text)

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    def _lex_line(self) -> None:
        start = self._pos
        newline = self._text.find("\n", start)
        if newline == -1:
            content_end = line_end = len(self._text)
        else:
            content_end = newline
            line_end = newline + 1
            if content_end > start and self._text[content_end - 1] == "\r":
                content_end -= 1

        content = self._text[start:content_end]
        if all(is_inline_space(ch) for ch in content):
            # Blank lines never touch the indent stack
            self._emit(TokenType.BLANK_LINES, self._span(start, line_end))
            self._merge_last_blank_lines()
        else:
            pos = self._lex_indent(start, content_end)
            self._lex_content(pos, content_end)
            self._emit(TokenType.NEWLINE, self._span(content_end, line_end))

        self._pos = line_end
        if newline != -1:
            self._line += 1

    def _lex_indent(self, pos: int, end: int) -> int:
        """Match the line's leading whitespace against the indent stack.

        Emits at most one INDENT or DEINDENT and returns the offset where the
        line's content starts. The line is known not to be blank.
        """
        for depth, prefix in enumerate(self._indent):
            if self._text.startswith(prefix, pos, end):
                pos += len(prefix)
                continue

            if not is_inline_space(self._text[pos]):
                count = len(self._indent) - depth
                del self._indent[depth:]
                self._emit(TokenType.DEINDENT, self._span(pos, pos), count)
                return pos

            stop = self._skip_space(pos, end)
            raise self._error("blank line or indentation matches no outer block", pos, stop)

        if is_inline_space(self._text[pos]):
            stop = self._skip_space(pos, end)
            self._indent.append(self._text[pos:stop])
            self._emit(TokenType.INDENT, self._span(pos, stop))
            pos = stop

        return pos

    def _skip_space(self, pos: int, end: int) -> int:
        while pos < end and is_inline_space(self._text[pos]):
            pos += 1
        return pos

    def _lex_content(self, pos: int, end: int) -> None:
        """Group grapheme clusters into runs of the same classification."""
        clusters = _GRAPHEME.findall(self._text, pos, end)
        for kind, run in groupby(clusters, key=lambda cluster: classify(cluster[0])):
            length = sum(len(cluster) for cluster in run)
            self._emit(kind, self._span(pos, pos + length))
            pos += length

    def _merge_last_blank_lines(self) -> bool:
        """Merge the last two tokens if both are BLANK_LINES.

        Returns True if they were merged.
        """
        if len(self._tokens) < 2:
            return False
        prev, last = self._tokens[-2], self._tokens[-1]
        if prev.type != TokenType.BLANK_LINES or last.type != TokenType.BLANK_LINES:
            return False

        span = Span(prev.span.offset, prev.span.line, prev.span.fragment + last.span.fragment)
        del self._tokens[-2:]
        self._emit(TokenType.BLANK_LINES, span, prev.count + last.count)
        return True


def tokenize(source: Source | str) -> list[Token]:
    """Convenience function: tokenize source text and return token list."""
    if isinstance(source, str):
        source = Source(source)
    return Tokenizer(source).tokenize()


def untokenize(tokens: list[Token]) -> str:
    """Rebuild the exact source text from a token stream.

    Indentation prefixes of outer blocks are consumed by the tokenizer without
    being re-emitted, so they are replayed from the tracked indent stack.
    """
    parts: list[str] = []
    indent: list[str] = []
    at_line_start = True
    for tok in tokens:
        if tok.type == TokenType.INDENT:
            indent.append(tok.span.fragment)
        elif tok.type == TokenType.DEINDENT:
            del indent[len(indent) - tok.count :]
        elif tok.type == TokenType.BLANK_LINES:
            parts.append(tok.span.fragment)
        else:
            if at_line_start:
                parts.append("".join(indent))
                at_line_start = False
            parts.append(tok.span.fragment)
            if tok.type == TokenType.NEWLINE:
                at_line_start = True
    return "".join(parts)
