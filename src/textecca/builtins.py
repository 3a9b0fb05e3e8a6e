"""Standard command library: the commands bound in every default environment."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial

from textecca import doc
from textecca.builder import DocBuilder
from textecca.env import CommandInfo, Environment, FromArgs
from textecca.errors import CommandTypeError
from textecca.eval import Command, ParsedArgs, Thunk, World
from textecca.parser import Parser, default_parser, literal_parser

# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


@dataclass
class Par(Command):
    """Paragraph break; also produced implicitly by blank lines."""

    @classmethod
    def from_args(cls, parsed: ParsedArgs) -> Par:
        parsed.check_no_args()
        return cls()

    def call(self, builder: DocBuilder, world: World) -> None:
        builder.push(doc.Par())


@dataclass
class Section(Command):
    level: int
    title: Thunk

    @classmethod
    def from_args(cls, level: int, parsed: ParsedArgs) -> Section:
        title = parsed.pop_positional("title")
        parsed.check_no_args()
        return cls(level, title)

    def call(self, builder: DocBuilder, world: World) -> None:
        builder.push(doc.Heading(self.level, self.title.into_inlines(world)))


@dataclass
class Rule(Command):
    @classmethod
    def from_args(cls, parsed: ParsedArgs) -> Rule:
        parsed.check_no_args()
        return cls()

    def call(self, builder: DocBuilder, world: World) -> None:
        builder.push(doc.Rule())


@dataclass
class Quote(Command):
    content: Thunk

    @classmethod
    def from_args(cls, parsed: ParsedArgs) -> Quote:
        content = parsed.pop_positional("content")
        parsed.check_no_args()
        return cls(content)

    def call(self, builder: DocBuilder, world: World) -> None:
        builder.push(doc.BlockQuote(self.content.into_blocks(world)))


@dataclass
class Meta(Command):
    """Set document metadata from keyword arguments: ``\\meta{title=...}``."""

    entries: dict[str, Thunk]

    @classmethod
    def from_args(cls, parsed: ParsedArgs) -> Meta:
        parsed.check_no_posargs()
        entries = dict(parsed.kwargs)
        parsed.kwargs.clear()
        return cls(entries)

    def call(self, builder: DocBuilder, world: World) -> None:
        for key, value in self.entries.items():
            builder.meta[key] = value.into_string()


# ---------------------------------------------------------------------------
# Inline markup
# ---------------------------------------------------------------------------


@dataclass
class Styled(Command):
    style: doc.Style
    content: Thunk

    @classmethod
    def from_args(cls, style: doc.Style, parsed: ParsedArgs) -> Styled:
        content = parsed.pop_positional("content")
        parsed.check_no_args()
        return cls(style, content)

    def call(self, builder: DocBuilder, world: World) -> None:
        builder.push(doc.Styled(self.style, self.content.into_inlines(world)))


@dataclass
class Code(Command):
    """Literal code, inline or as a block; ``lang`` names the language."""

    block: bool
    content: Thunk
    language: Thunk | None

    @classmethod
    def from_args(cls, block: bool, parsed: ParsedArgs) -> Code:
        content = parsed.pop_positional("content")
        language = parsed.pop_optional("lang")
        parsed.check_no_args()
        return cls(block, content, language)

    def call(self, builder: DocBuilder, world: World) -> None:
        content = self.content.into_string()
        language = self.language.into_string() if self.language is not None else None
        if self.block:
            builder.push(doc.CodeBlock(language, [doc.Text(content)]))
        else:
            builder.push(doc.Code(content, language))


@dataclass
class Math(Command):
    display: bool
    tex: Thunk

    @classmethod
    def from_args(cls, display: bool, parsed: ParsedArgs) -> Math:
        tex = parsed.pop_positional("tex")
        parsed.check_no_args()
        return cls(display, tex)

    def call(self, builder: DocBuilder, world: World) -> None:
        tex = self.tex.into_string()
        builder.push(doc.MathBlock(tex) if self.display else doc.Math(tex))


@dataclass
class Footnote(Command):
    content: Thunk

    @classmethod
    def from_args(cls, parsed: ParsedArgs) -> Footnote:
        content = parsed.pop_positional("content")
        parsed.check_no_args()
        return cls(content)

    def call(self, builder: DocBuilder, world: World) -> None:
        builder.push(doc.Footnote(self.content.into_blocks(world)))


@dataclass
class Link(Command):
    """``\\link{url}{text}`` or ``\\link{url=...}{text}``; the text is optional."""

    url: Thunk
    text: Thunk | None

    @classmethod
    def from_args(cls, parsed: ParsedArgs) -> Link:
        url = parsed.pop_optional("url") or parsed.pop_positional("url")
        text = parsed.pop_positional() if parsed.args else None
        parsed.check_no_args()
        return cls(url, text)

    def call(self, builder: DocBuilder, world: World) -> None:
        content = self.text.into_inlines(world) if self.text is not None else None
        builder.push(doc.Link(self.url.into_string(), content))


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------


def _is_blank_text(inline: doc.Inline) -> bool:
    return isinstance(inline, doc.Text) and not inline.text.strip()


def _is_blank(block: doc.Block) -> bool:
    if not isinstance(block, (doc.Par, doc.Plain)):
        return False
    return all(_is_blank_text(i) for i in block.content)


def _trim_trailing_space(blocks: list[doc.Block]) -> None:
    # Whitespace between items drains into the previous item
    if blocks and isinstance(blocks[-1], (doc.Par, doc.Plain)):
        content = blocks[-1].content
        while content and _is_blank_text(content[-1]):
            content.pop()


@dataclass
class ListCmd(Command):
    """``\\list{...}`` or ``\\enum{...}``; the body may contain only ``\\item``."""

    kind: doc.ListKind
    body: Thunk

    @classmethod
    def from_args(cls, kind: doc.ListKind, parsed: ParsedArgs) -> ListCmd:
        body = parsed.pop_positional("body")
        parsed.check_no_args()
        return cls(kind, body)

    def environment(self, parent: Environment) -> Environment:
        env = parent.new_inheriting()
        env.add_binding(ITEM)
        return env

    def call(self, builder: DocBuilder, world: World) -> None:
        items: list[doc.ListItem] = []
        for block in self.body.into_blocks(world):
            if isinstance(block, doc.List):
                for item in block.items:
                    _trim_trailing_space(item.content)
                items.extend(block.items)
            elif not _is_blank(block):
                raise CommandTypeError("only \\item may appear directly inside a list")
        builder.push(doc.List(self.kind, items))


@dataclass
class Item(Command):
    content: Thunk

    @classmethod
    def from_args(cls, parsed: ParsedArgs) -> Item:
        content = parsed.pop_positional("content")
        parsed.check_no_args()
        return cls(content)

    def call(self, builder: DocBuilder, world: World) -> None:
        item = doc.ListItem(self.content.into_blocks(world))
        # Merged into the enclosing list, whose kind wins
        builder.push(doc.List(doc.ListKind.UNORDERED, [item]))


@dataclass
class Terms(Command):
    """``\\terms{...}``; the body may contain only ``\\term``."""

    body: Thunk

    @classmethod
    def from_args(cls, parsed: ParsedArgs) -> Terms:
        body = parsed.pop_positional("body")
        parsed.check_no_args()
        return cls(body)

    def environment(self, parent: Environment) -> Environment:
        env = parent.new_inheriting()
        env.add_binding(TERM)
        return env

    def call(self, builder: DocBuilder, world: World) -> None:
        items: list[doc.TermListItem] = []
        for block in self.body.into_blocks(world):
            if isinstance(block, doc.TermList):
                for item in block.items:
                    _trim_trailing_space(item.content)
                items.extend(block.items)
            elif not _is_blank(block):
                raise CommandTypeError("only \\term may appear directly inside a term list")
        builder.push(doc.TermList(items))


@dataclass
class Term(Command):
    term: Thunk
    definition: Thunk

    @classmethod
    def from_args(cls, parsed: ParsedArgs) -> Term:
        term = parsed.pop_positional("term")
        definition = parsed.pop_positional("definition")
        parsed.check_no_args()
        return cls(term, definition)

    def call(self, builder: DocBuilder, world: World) -> None:
        term = self.term.into_inlines(world)
        item = doc.TermListItem(term, self.definition.into_blocks(world))
        builder.push(doc.TermList([item]))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

ITEM = CommandInfo("item", Item.from_args)
TERM = CommandInfo("term", Term.from_args)


def _make_builtins() -> dict[str, CommandInfo]:
    defs: dict[str, CommandInfo] = {}

    def d(name: str, from_args: FromArgs, parser: Parser = default_parser) -> None:
        defs[name] = CommandInfo(name, from_args, parser)

    # Structural
    d("par", Par.from_args)
    d("sec", partial(Section.from_args, 1))
    d("subsec", partial(Section.from_args, 2))
    d("subsubsec", partial(Section.from_args, 3))
    d("rule", Rule.from_args)
    d("quote", Quote.from_args)
    d("meta", Meta.from_args)

    # Inline
    d("emph", partial(Styled.from_args, doc.Style.EMPH))
    d("strong", partial(Styled.from_args, doc.Style.STRONG))
    d("footnote", Footnote.from_args)
    d("link", Link.from_args)

    # Code / math, whose arguments are never parsed for commands
    d("code", partial(Code.from_args, False), literal_parser)
    d("codeblock", partial(Code.from_args, True), literal_parser)
    d("math", partial(Math.from_args, False), literal_parser)
    d("displaymath", partial(Math.from_args, True), literal_parser)

    # Lists
    d("list", partial(ListCmd.from_args, doc.ListKind.UNORDERED))
    d("enum", partial(ListCmd.from_args, doc.ListKind.ORDERED))
    d("terms", Terms.from_args)

    return defs


BUILTINS: dict[str, CommandInfo] = _make_builtins()


def import_builtins(env: Environment) -> None:
    """Bind the standard commands into ``env``."""
    for info in BUILTINS.values():
        env.add_binding(info)


def default_env() -> Environment:
    """A fresh root environment holding the standard commands."""
    env = Environment()
    import_builtins(env)
    return env
