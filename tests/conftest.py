"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from textecca.ast import ParsedToken
from textecca.builtins import default_env
from textecca.doc import Document
from textecca.eval import World, evaluate
from textecca.lexer import tokenize
from textecca.parser import default_parser
from textecca.source import Source
from textecca.tokens import Token, TokenType


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns tokens."""

    def _lex(source: str) -> list[Token]:
        return tokenize(source)

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that runs the default parser over a whole input."""

    def _parse(text: str) -> tuple[Source, list[ParsedToken]]:
        source = Source(text)
        return source, default_parser(source, source.span())

    return _parse


@pytest.fixture
def eval_source():
    """Return a helper that evaluates source with the standard commands."""

    def _eval(text: str, **kwargs) -> Document:
        return evaluate(text, **kwargs)

    return _eval


@pytest.fixture
def world():
    """Return a helper that builds a World over some source text."""

    def _world(text: str = "", env=None) -> World:
        return World(env if env is not None else default_env(), Source(text))

    return _world


def assert_types(tokens: list[Token], expected: list[TokenType]) -> None:
    """Assert that the token types match the expected list."""
    actual = [t.type for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_fragments(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token fragments match the expected list."""
    actual = [t.span.fragment for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def find_tokens(tokens: list[Token], tt: TokenType) -> list[Token]:
    """Return all tokens of the given type."""
    return [t for t in tokens if t.type == tt]
