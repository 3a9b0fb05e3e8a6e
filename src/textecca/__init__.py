"""textecca markup language compiler."""

from __future__ import annotations

__version__ = "0.1.0"


def compile(source: str, filename: str = "input.tx", **options) -> str:
    """Tokenize, evaluate, and render textecca source to HTML.

    ``max_depth`` bounds command nesting; other options go to the HTML serializer.
    """
    from textecca.eval import DEFAULT_MAX_DEPTH, evaluate
    from textecca.lexer import tokenize
    from textecca.render import render
    from textecca.source import Source

    max_depth = options.pop("max_depth", DEFAULT_MAX_DEPTH)
    src = Source(source, filename)
    tokenize(src)
    doc = evaluate(src, max_depth=max_depth)
    return render(doc, **options)
