"""Document tree: blocks, inline content, and the finished Document."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Style(Enum):
    EMPH = auto()
    STRONG = auto()
    SUPERSCRIPT = auto()
    SUBSCRIPT = auto()
    SMALL_CAPS = auto()
    STRIKEOUT = auto()
    UNDERLINE = auto()


class ListKind(Enum):
    UNORDERED = auto()
    ORDERED = auto()


class QuoteKind(Enum):
    PRIMARY = auto()
    SECONDARY = auto()

    def marks(self) -> tuple[str, str]:
        if self is QuoteKind.PRIMARY:
            return "“", "”"
        return "‘", "’"


class LinkKind(Enum):
    URL = auto()
    LABEL = auto()


class Alignment(Enum):
    LEFT = auto()
    RIGHT = auto()
    CENTER = auto()


# ---------------------------------------------------------------------------
# Inline content
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Text:
    text: str


@dataclass(slots=True)
class Styled:
    style: Style
    content: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class Quote:
    """Quoted inline text, rendered between the kind's quotation marks."""

    kind: QuoteKind
    content: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class Code:
    content: str
    language: str | None = None


@dataclass(slots=True)
class Space:
    """An explicit inter-word space."""


@dataclass(slots=True)
class Link:
    """A hyperlink; with no content or label the target itself is shown."""

    target: str
    content: list[Inline] | None = None
    label: str | None = None
    kind: LinkKind = LinkKind.URL

    def text(self) -> list[Inline]:
        if self.content is not None:
            return self.content
        if self.label is not None:
            return [Text(self.label)]
        return [Text(self.target)]


@dataclass(slots=True)
class Footnote:
    content: list[Block] = field(default_factory=list)


@dataclass(slots=True)
class Math:
    tex: str


Inline = Text | Styled | Quote | Code | Space | Link | Footnote | Math


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Plain:
    """Inline content not wrapped in a paragraph, e.g. in a table cell."""

    content: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class Par:
    content: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class CodeBlock:
    """A block of code; ``content`` collects literal inline runs in order."""

    language: str | None = None
    content: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class BlockQuote:
    content: list[Block] = field(default_factory=list)


@dataclass(slots=True)
class Tagged:
    """Blocks carrying arbitrary key/value metadata."""

    content: list[Block] = field(default_factory=list)
    meta: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class ListItem:
    content: list[Block] = field(default_factory=list)
    label: list[Inline] | None = None


@dataclass(slots=True)
class List:
    kind: ListKind
    items: list[ListItem] = field(default_factory=list)


@dataclass(slots=True)
class TermListItem:
    term: list[Inline] = field(default_factory=list)
    content: list[Block] = field(default_factory=list)


@dataclass(slots=True)
class TermList:
    items: list[TermListItem] = field(default_factory=list)


@dataclass(slots=True)
class Heading:
    level: int
    text: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class Rule:
    """A thematic break."""


@dataclass(slots=True)
class TableColumn:
    alignment: Alignment = Alignment.LEFT
    width: float = 0.0


@dataclass(slots=True)
class TableCell:
    content: list[Block] = field(default_factory=list)
    alignment: Alignment | None = None
    row_span: int = 1
    col_span: int = 1


@dataclass(slots=True)
class Table:
    columns: list[TableColumn] = field(default_factory=list)
    rows: list[list[TableCell]] = field(default_factory=list)


@dataclass(slots=True)
class Figure:
    content: list[Block] = field(default_factory=list)
    caption: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class Defn:
    """A named kind of definition-like block, e.g. a theorem or a note."""

    kind: str
    content: list[Block] = field(default_factory=list)


@dataclass(slots=True)
class MathBlock:
    tex: str


Block = (
    Plain
    | Par
    | CodeBlock
    | BlockQuote
    | Tagged
    | List
    | TermList
    | Heading
    | Rule
    | Table
    | Figure
    | Defn
    | MathBlock
)

INLINE_TYPES = (Text, Styled, Quote, Code, Space, Link, Footnote, Math)
BLOCK_TYPES = (
    Plain,
    Par,
    CodeBlock,
    BlockQuote,
    Tagged,
    List,
    TermList,
    Heading,
    Rule,
    Table,
    Figure,
    Defn,
    MathBlock,
)


@dataclass(slots=True)
class Document:
    meta: dict[str, str] = field(default_factory=dict)
    content: list[Block] = field(default_factory=list)
