"""HTML serializer: writes a finished Document as HTML."""

from __future__ import annotations

import io
import unicodedata
from collections.abc import Iterable, Sequence
from typing import TextIO

from textecca.doc import (
    Block,
    BlockQuote,
    Code,
    CodeBlock,
    Defn,
    Document,
    Figure,
    Footnote,
    Heading,
    Inline,
    Link,
    List,
    ListKind,
    Math,
    MathBlock,
    Par,
    Plain,
    Quote,
    Rule,
    Space,
    Style,
    Styled,
    Table,
    Tagged,
    TermList,
    Text,
)
from textecca.errors import SerializerError

_STYLE_TAGS: dict[Style, tuple[str, str]] = {
    Style.EMPH: ("<em>", "</em>"),
    Style.STRONG: ("<strong>", "</strong>"),
    Style.SUPERSCRIPT: ("<sup>", "</sup>"),
    Style.SUBSCRIPT: ("<sub>", "</sub>"),
    Style.SMALL_CAPS: ('<span class="smallcaps">', "</span>"),
    Style.STRIKEOUT: ("<s>", "</s>"),
    Style.UNDERLINE: ("<u>", "</u>"),
}


def render(doc: Document, **options) -> str:
    """Render a Document to an HTML string; options go to HtmlSerializer."""
    out = io.StringIO()
    HtmlSerializer(out, **options).write_doc(doc)
    return out.getvalue()


# ---------------------------------------------------------------------------
# HTML escaping
# ---------------------------------------------------------------------------


def _escape_html(text: str) -> str:
    """Escape text for HTML body content. Also encodes non-ASCII as entities."""
    result: list[str] = []
    for ch in text:
        if ch == "&":
            result.append("&amp;")
        elif ch == "<":
            result.append("&lt;")
        elif ch == ">":
            result.append("&gt;")
        elif ch == '"':
            result.append("&quot;")
        elif ord(ch) > 0x7F:
            result.append(f"&#x{ord(ch):X};")
        else:
            result.append(ch)
    return "".join(result)


def slugify(text: str) -> str:
    """Turn heading text into an ``id``: whitespace and control characters become '-'."""
    chars: list[str] = []
    for ch in text.strip().lower():
        if ch.isspace() or unicodedata.category(ch)[0] == "C":
            if not chars or chars[-1] != "-":
                chars.append("-")
        else:
            chars.append(ch)
    return "".join(chars) or "section"


def plain_text(inlines: Iterable[Inline]) -> str:
    """The text content of an inline run, without markup."""
    parts: list[str] = []
    for inline in inlines:
        match inline:
            case Text(text=text):
                parts.append(text)
            case Space():
                parts.append(" ")
            case Styled(content=content) | Quote(content=content):
                parts.append(plain_text(content))
            case Link():
                parts.append(plain_text(inline.text()))
            case Code(content=text):
                parts.append(text)
            case Math(tex=text):
                parts.append(text)
    return "".join(parts)


def _is_empty(inlines: Sequence[Inline]) -> bool:
    return all(isinstance(i, Text) and not i.text.strip() for i in inlines)


# ---------------------------------------------------------------------------
# Serializer
# ---------------------------------------------------------------------------


class HtmlSerializer:
    """Writes one Document to ``out`` as an HTML fragment or a full page."""

    def __init__(
        self,
        out: TextIO,
        *,
        standalone: bool = False,
        lang: str | None = None,
        css: Sequence[str] = (),
    ) -> None:
        self._out = out
        self.standalone = standalone
        self.lang = lang
        self.css = tuple(css)
        self._footnotes: list[list[Block]] = []
        self._slugs: set[str] = set()

    def write_doc(self, doc: Document) -> None:
        self._footnotes = []
        self._slugs = set()

        body = self._blocks(doc.content)
        notes = self._footnote_list()

        if self.standalone:
            self._out.write(self._head(doc.meta))
        if body:
            self._out.write(body)
            self._out.write("\n")
        if notes:
            self._out.write(notes)
            self._out.write("\n")
        if self.standalone:
            self._out.write("</body>\n</html>\n")

    def _head(self, meta: dict[str, str]) -> str:
        parts: list[str] = ["<!DOCTYPE html>\n"]
        if self.lang:
            parts.append(f'<html lang="{_escape_html(self.lang)}">\n')
        else:
            parts.append("<html>\n")
        parts.append("<head>\n")
        parts.append('<meta charset="utf-8">\n')
        if "title" in meta:
            parts.append(f"<title>{_escape_html(meta['title'])}</title>\n")
        for key, value in meta.items():
            if key != "title":
                parts.append(f'<meta name="{_escape_html(key)}" content="{_escape_html(value)}">\n')
        for href in self.css:
            parts.append(f'<link rel="stylesheet" href="{_escape_html(href)}">\n')
        parts.append("</head>\n")
        parts.append("<body>\n")
        return "".join(parts)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _blocks(self, blocks: Iterable[Block]) -> str:
        rendered = (self._block(b) for b in blocks)
        return "\n".join(html for html in rendered if html)

    def _block(self, block: Block) -> str:
        match block:
            case Plain(content=content):
                return self._inlines(content).strip()
            case Par(content=content):
                if _is_empty(content):
                    return ""
                return f"<p>{self._inlines(content).strip()}</p>"
            case CodeBlock():
                cls = f' class="language-{_escape_html(block.language)}"' if block.language else ""
                return f"<pre><code{cls}>{self._inlines(block.content)}</code></pre>"
            case BlockQuote(content=content):
                return f"<blockquote>\n{self._blocks(content)}\n</blockquote>"
            case Tagged():
                attrs = "".join(
                    f' data-{_escape_html(k)}="{_escape_html(v)}"' for k, v in block.meta.items()
                )
                return f"<div{attrs}>\n{self._blocks(block.content)}\n</div>"
            case List():
                return self._list(block)
            case TermList():
                parts = ["<dl>"]
                for item in block.items:
                    parts.append(f"<dt>{self._inlines(item.term).strip()}</dt>")
                    parts.append(f"<dd>{self._item_blocks(item.content)}</dd>")
                parts.append("</dl>")
                return "\n".join(parts)
            case Heading():
                return self._heading(block)
            case Rule():
                return "<hr>"
            case Table():
                return self._table(block)
            case Figure():
                caption = self._inlines(block.caption).strip()
                inner = self._blocks(block.content)
                if caption:
                    inner += f"\n<figcaption>{caption}</figcaption>"
                return f"<figure>\n{inner}\n</figure>"
            case Defn():
                kind = _escape_html(block.kind)
                return f'<div class="defn defn-{kind}">\n{self._blocks(block.content)}\n</div>'
            case MathBlock(tex=tex):
                return f'<div class="math display">\\[{_escape_html(tex)}\\]</div>'
        raise SerializerError(f"cannot serialize {type(block).__name__} as HTML")

    def _item_blocks(self, blocks: list[Block]) -> str:
        # A lone paragraph is rendered tight, without <p>
        if len(blocks) == 1 and isinstance(blocks[0], (Par, Plain)):
            return self._inlines(blocks[0].content).strip()
        return self._blocks(blocks)

    def _list(self, block: List) -> str:
        tag = "ol" if block.kind is ListKind.ORDERED else "ul"
        parts = [f"<{tag}>"]
        for item in block.items:
            label = ""
            if item.label is not None:
                label = f'<span class="label">{self._inlines(item.label).strip()}</span> '
            parts.append(f"<li>{label}{self._item_blocks(item.content)}</li>")
        parts.append(f"</{tag}>")
        return "\n".join(parts)

    def _heading(self, block: Heading) -> str:
        if not 1 <= block.level <= 6:
            raise SerializerError(f"heading level {block.level} is outside 1-6")

        slug = slugify(plain_text(block.text))
        if slug in self._slugs:
            n = 2
            while f"{slug}-{n}" in self._slugs:
                n += 1
            slug = f"{slug}-{n}"
        self._slugs.add(slug)

        tag = f"h{block.level}"
        text = self._inlines(block.text).strip()
        return f'<{tag} id="{_escape_html(slug)}"><a href="#{_escape_html(slug)}">{text}</a></{tag}>'

    def _table(self, block: Table) -> str:
        parts = ["<table>"]
        for row in block.rows:
            cells: list[str] = []
            for cell in row:
                attrs = ""
                if cell.col_span != 1:
                    attrs += f' colspan="{cell.col_span}"'
                if cell.row_span != 1:
                    attrs += f' rowspan="{cell.row_span}"'
                if cell.alignment is not None:
                    attrs += f' style="text-align: {cell.alignment.name.lower()}"'
                cells.append(f"<td{attrs}>{self._item_blocks(cell.content)}</td>")
            parts.append(f"<tr>{''.join(cells)}</tr>")
        parts.append("</table>")
        return "\n".join(parts)

    # ------------------------------------------------------------------
    # Inlines
    # ------------------------------------------------------------------

    def _inlines(self, inlines: Iterable[Inline]) -> str:
        return "".join(self._inline(i) for i in inlines)

    def _inline(self, inline: Inline) -> str:
        match inline:
            case Text(text=text):
                return _escape_html(text)
            case Styled(style=style, content=content):
                start, end = _STYLE_TAGS[style]
                return f"{start}{self._inlines(content)}{end}"
            case Quote(kind=kind, content=content):
                left, right = kind.marks()
                return f"{_escape_html(left)}{self._inlines(content)}{_escape_html(right)}"
            case Code(content=content, language=language):
                cls = f' class="language-{_escape_html(language)}"' if language else ""
                return f"<code{cls}>{_escape_html(content)}</code>"
            case Space():
                return " "
            case Link():
                href = _escape_html(inline.target)
                return f'<a href="{href}">{self._inlines(inline.text())}</a>'
            case Footnote(content=content):
                self._footnotes.append(content)
                n = len(self._footnotes)
                return (
                    f'<sup class="footnote-ref"><a href="#fn-{n}" id="fn-link-{n}">{n}</a></sup>'
                )
            case Math(tex=tex):
                return f'<span class="math inline">\\({_escape_html(tex)}\\)</span>'
        raise SerializerError(f"cannot serialize {type(inline).__name__} as HTML")

    def _footnote_list(self) -> str:
        if not self._footnotes:
            return ""
        parts = ['<ol class="footnotes">']
        # Footnote bodies may themselves add footnotes
        i = 0
        while i < len(self._footnotes):
            n = i + 1
            body = self._item_blocks(self._footnotes[i])
            parts.append(f'<li id="fn-{n}">{body} <a href="#fn-link-{n}">&#x21A9;</a></li>')
            i += 1
        parts.append("</ol>")
        return "\n".join(parts)
