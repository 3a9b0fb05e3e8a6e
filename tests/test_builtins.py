"""Test the standard command library."""

from __future__ import annotations

import pytest

from textecca.doc import (
    BlockQuote,
    Code,
    CodeBlock,
    Footnote,
    Heading,
    Link,
    List,
    ListItem,
    ListKind,
    Math,
    MathBlock,
    Par,
    Rule,
    Style,
    Styled,
    TermList,
    TermListItem,
    Text,
)
from textecca.errors import CommandArgsError, CommandBuilderError, CommandTypeError, UnboundCommandError


def blocks(eval_source, text: str) -> list:
    return eval_source(text).content


class TestSections:
    @pytest.mark.parametrize("name, level", [("sec", 1), ("subsec", 2), ("subsubsec", 3)])
    def test_levels(self, eval_source, name: str, level: int) -> None:
        assert blocks(eval_source, f"\\{name}{{Title}}") == [Heading(level, [Text("Title")])]

    def test_inline_markup_in_title(self, eval_source) -> None:
        assert blocks(eval_source, "\\sec{A \\emph{b}}") == [
            Heading(1, [Text("A "), Styled(Style.EMPH, [Text("b")])])
        ]

    def test_title_must_be_inline(self, eval_source) -> None:
        with pytest.raises(CommandBuilderError, match="expected inline content"):
            eval_source("\\sec{a\n\nb}")

    def test_text_after_heading_joins_it(self, eval_source) -> None:
        # Without a blank line the run drains into the heading
        assert blocks(eval_source, "\\sec{A}B") == [Heading(1, [Text("A"), Text("B")])]

    def test_paragraph_after_heading(self, eval_source) -> None:
        assert blocks(eval_source, "\\sec{A}\n\nBody") == [
            Heading(1, [Text("A")]),
            Par([Text("Body")]),
        ]


class TestStructure:
    def test_rule(self, eval_source) -> None:
        assert blocks(eval_source, "a\\rule b") == [Par([Text("a")]), Rule(), Par([Text(" b")])]

    def test_quote(self, eval_source) -> None:
        assert blocks(eval_source, "\\quote{a\n\nb}") == [
            BlockQuote([Par([Text("a")]), Par([Text("b")])])
        ]

    def test_text_after_quote_continues_inside(self, eval_source) -> None:
        assert blocks(eval_source, "\\quote{a} b") == [BlockQuote([Par([Text("a"), Text(" b")])])]

    def test_meta(self, eval_source) -> None:
        document = eval_source("\\meta{title=Hello}{author=Me}\n\nBody")
        assert document.meta == {"title": "Hello", "author": "Me"}
        assert document.content == [Par([Text("Body")])]

    def test_meta_rejects_positional(self, eval_source) -> None:
        with pytest.raises(CommandArgsError):
            eval_source("\\meta{Hello}")

    def test_meta_value_must_be_text(self, eval_source) -> None:
        with pytest.raises(CommandTypeError):
            eval_source("\\meta{title=\\emph{x}}")


class TestInline:
    @pytest.mark.parametrize("name, style", [("emph", Style.EMPH), ("strong", Style.STRONG)])
    def test_styles(self, eval_source, name: str, style: Style) -> None:
        assert blocks(eval_source, f"\\{name}{{x}}") == [Par([Styled(style, [Text("x")])])]

    def test_nested_styles(self, eval_source) -> None:
        assert blocks(eval_source, "\\strong{\\emph{x}}") == [
            Par([Styled(Style.STRONG, [Styled(Style.EMPH, [Text("x")])])])
        ]

    def test_code_is_literal(self, eval_source) -> None:
        assert blocks(eval_source, "\\code{\\emph{x}}") == [Par([Code("\\emph{x}")])]

    def test_code_language(self, eval_source) -> None:
        assert blocks(eval_source, "\\code{print()}{lang=py}") == [Par([Code("print()", "py")])]

    def test_codeblock(self, eval_source) -> None:
        assert blocks(eval_source, "\\codeblock{a\n\nb}{lang=rust}") == [
            CodeBlock("rust", [Text("a\n\nb")])
        ]

    def test_math(self, eval_source) -> None:
        assert blocks(eval_source, "\\math{x^2}") == [Par([Math("x^2")])]

    def test_display_math(self, eval_source) -> None:
        assert blocks(eval_source, "\\displaymath{\\frac{a}{b}}") == [MathBlock("\\frac{a}{b}")]

    def test_footnote(self, eval_source) -> None:
        assert blocks(eval_source, "a\\footnote{note}") == [
            Par([Text("a"), Footnote([Par([Text("note")])])])
        ]

    def test_link_positional(self, eval_source) -> None:
        assert blocks(eval_source, "\\link{https://example.com}{site}") == [
            Par([Link("https://example.com", [Text("site")])])
        ]

    def test_link_keyword(self, eval_source) -> None:
        assert blocks(eval_source, "\\link{url=https://x.org/?a=b}") == [
            Par([Link("https://x.org/?a=b")])
        ]

    def test_link_without_text_shows_target(self, eval_source) -> None:
        (par,) = blocks(eval_source, "\\link{https://x.org}")
        assert par.content[0].text() == [Text("https://x.org")]

    def test_link_too_many(self, eval_source) -> None:
        with pytest.raises(CommandArgsError):
            eval_source("\\link{a}{b}{c}")


class TestLists:
    def test_unordered(self, eval_source) -> None:
        assert blocks(eval_source, "\\list{\\item{a}\\item{b}}") == [
            List(
                ListKind.UNORDERED,
                [ListItem([Par([Text("a")])]), ListItem([Par([Text("b")])])],
            )
        ]

    def test_ordered(self, eval_source) -> None:
        (lst,) = blocks(eval_source, "\\enum{\\item{a}}")
        assert lst.kind == ListKind.ORDERED

    def test_whitespace_between_items(self, eval_source) -> None:
        (lst,) = blocks(eval_source, "\\list{\n  \\item{a}\n  \\item{b}\n}")
        assert [item.content for item in lst.items] == [[Par([Text("a")])], [Par([Text("b")])]]

    def test_paragraphs_between_items(self, eval_source) -> None:
        (lst,) = blocks(eval_source, "\\list{\\item{a}\n\n\\item{b}}")
        assert len(lst.items) == 2

    def test_item_with_blocks(self, eval_source) -> None:
        (lst,) = blocks(eval_source, "\\list{\\item{p1\n\np2}}")
        assert lst.items[0].content == [Par([Text("p1")]), Par([Text("p2")])]

    def test_nested_list(self, eval_source) -> None:
        (lst,) = blocks(eval_source, "\\list{\\item{\\enum{\\item{x}}}}")
        (inner,) = lst.items[0].content
        assert inner == List(ListKind.ORDERED, [ListItem([Par([Text("x")])])])

    def test_text_in_list_body(self, eval_source) -> None:
        with pytest.raises(CommandTypeError, match="only \\\\item"):
            eval_source("\\list{stray}")

    def test_item_outside_list(self, eval_source) -> None:
        with pytest.raises(UnboundCommandError):
            eval_source("\\item{x}")

    def test_empty_list(self, eval_source) -> None:
        assert blocks(eval_source, "\\list{}") == [List(ListKind.UNORDERED, [])]


class TestTerms:
    def test_term_list(self, eval_source) -> None:
        assert blocks(eval_source, "\\terms{\\term{A}{first}\n\\term{B}{second}}") == [
            TermList(
                [
                    TermListItem([Text("A")], [Par([Text("first")])]),
                    TermListItem([Text("B")], [Par([Text("second")])]),
                ]
            )
        ]

    def test_term_needs_definition(self, eval_source) -> None:
        with pytest.raises(CommandArgsError, match="definition"):
            eval_source("\\terms{\\term{A}}")

    def test_term_outside_terms(self, eval_source) -> None:
        with pytest.raises(UnboundCommandError):
            eval_source("\\term{A}{B}")

    def test_text_in_terms_body(self, eval_source) -> None:
        with pytest.raises(CommandTypeError, match="only \\\\term"):
            eval_source("\\terms{\\term{A}{B}\\rule}")

    def test_item_not_visible_in_sibling_terms(self, eval_source) -> None:
        with pytest.raises(UnboundCommandError) as exc_info:
            eval_source("\\list{\\item{a}}\\terms{\\item{x}}")
        assert exc_info.value.name == "item"

    def test_term_not_visible_in_sibling_list(self, eval_source) -> None:
        with pytest.raises(UnboundCommandError):
            eval_source("\\terms{\\term{A}{B}}\\list{\\term{x}{y}}")
