"""--tokens and --debug dumps to stderr."""

from __future__ import annotations

import sys
from dataclasses import fields
from enum import Enum
from typing import TextIO

from textecca.doc import Document
from textecca.tokens import Token, TokenType


def dump_tokens(tokens: list[Token], *, file: TextIO = sys.stderr) -> None:
    """Print one lexer token per line to *file*."""
    for tok in tokens:
        line = f"{tok.span.line:>4}:{tok.span.offset:<6} {tok.type.name}"
        if tok.type in (TokenType.DEINDENT, TokenType.BLANK_LINES):
            line += f"({tok.count})"
        if tok.span.fragment:
            line += f" {tok.span.fragment!r}"
        file.write(line + "\n")


def dump_doc(doc: Document, *, file: TextIO = sys.stderr) -> None:
    """Print a human-readable document tree to *file*."""
    file.write("Document\n")
    for key, value in doc.meta.items():
        file.write(f"{_indent(1)}meta {key}={value!r}\n")
    for block in doc.content:
        _dump_node(block, 1, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_node(node: object, depth: int, f: TextIO) -> None:
    scalars: list[str] = []
    children: list[tuple[str, list]] = []
    for fld in fields(node):
        value = getattr(node, fld.name)
        if isinstance(value, list):
            children.append((fld.name, value))
        elif isinstance(value, Enum):
            scalars.append(f"{fld.name}={value.name}")
        elif value is not None:
            scalars.append(f"{fld.name}={value!r}")

    f.write(f"{_indent(depth)}{type(node).__name__}")
    if scalars:
        f.write(" " + " ".join(scalars))
    f.write("\n")

    for name, items in children:
        if len(children) > 1:
            f.write(f"{_indent(depth + 1)}{name}:\n")
            child_depth = depth + 2
        else:
            child_depth = depth + 1
        for item in items:
            if isinstance(item, list):
                # Table rows
                f.write(f"{_indent(child_depth)}row\n")
                for cell in item:
                    _dump_node(cell, child_depth + 1, f)
            else:
                _dump_node(item, child_depth, f)
