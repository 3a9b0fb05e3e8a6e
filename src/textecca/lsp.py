"""Minimal LSP server for textecca: diagnostics only."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from textecca import __version__
from textecca.errors import CommandError, LexError, ParseError
from textecca.eval import evaluate
from textecca.lexer import tokenize
from textecca.source import Source
from textecca.tokens import Span

server = LanguageServer(
    "textecca-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full
)


def _position(text: str, offset: int) -> Position:
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset)
    character = offset - (text.rfind("\n", 0, offset) + 1)
    return Position(line=line, character=character)


def _range(span: Span | None, text: str) -> Range:
    if span is None:
        start = Position(line=0, character=0)
        return Range(start=start, end=start)
    # Only the first line of a multi-line span is highlighted
    first_line = span.fragment.split("\n", 1)[0]
    start = _position(text, span.offset)
    end = _position(text, span.offset + max(1, len(first_line)))
    if end.line != start.line:
        end = Position(line=start.line, character=start.character + 1)
    return Range(start=start, end=end)


def diagnose(text: str, filename: str = "input.tx") -> list[Diagnostic]:
    """Run the textecca pipeline over *text* and collect diagnostics."""
    source = Source(text, filename)
    diagnostics: list[Diagnostic] = []

    try:
        tokenize(source)
        evaluate(source)
    except (LexError, ParseError) as exc:
        diagnostics.append(
            Diagnostic(
                range=_range(exc.span, text),
                message=exc.message,
                severity=DiagnosticSeverity.Error,
                source="textecca",
            )
        )
    except CommandError as exc:
        diagnostics.append(
            Diagnostic(
                range=_range(exc.span, text),
                message=exc.message,
                severity=DiagnosticSeverity.Warning,
                source="textecca",
            )
        )
    return diagnostics


def _validate(ls: LanguageServer, uri: str) -> None:
    """Run the textecca pipeline and publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    diagnostics = diagnose(doc.source, filename)
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
