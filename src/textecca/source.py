"""Source text and the arena for synthesized text fragments."""

from __future__ import annotations

from textecca.tokens import Span

# Name of the implicit command produced by a run of blank lines
PAR_COMMAND = "par"


class Source:
    """The original input plus an append-only store of fabricated fragments.

    Spans handed out by the parser either slice ``text`` or point into
    ``arena``; both live as long as the Source does.
    """

    def __init__(self, text: str, filename: str = "input.tx") -> None:
        self.text = text
        self.filename = filename
        self.arena: list[str] = []
        self.par_name = self.alloc(PAR_COMMAND)

    def __repr__(self) -> str:
        return f"Source({self.filename!r}, {len(self.text)} chars)"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Source):
            return NotImplemented
        return self.text == other.text

    def span(self) -> Span:
        """The region covering the whole input."""
        return Span(0, 1, self.text)

    def alloc(self, text: str) -> str:
        self.arena.append(text)
        return text

    def alloc_span(self, text: str, loc: Span) -> Span:
        """Allocate ``text`` and return a span for it located at ``loc``."""
        return Span(loc.offset, loc.line, self.alloc(text))

    def par_span(self, loc: Span) -> Span:
        """Span naming the implicit paragraph command, located at ``loc``."""
        return Span(loc.offset, loc.line, self.par_name)

    def line_col(self, offset: int) -> tuple[int, int]:
        """Return the 1-based (line, column) of ``offset``."""
        offset = max(0, min(offset, len(self.text)))
        line = self.text.count("\n", 0, offset) + 1
        col = offset - (self.text.rfind("\n", 0, offset) + 1) + 1
        return line, col
