"""Incremental document builder: folds pushed inline and block content into a tree."""

from __future__ import annotations

import logging

from textecca.doc import (
    BLOCK_TYPES,
    INLINE_TYPES,
    Block,
    BlockQuote,
    CodeBlock,
    Defn,
    Document,
    Figure,
    Heading,
    Inline,
    List,
    ListItem,
    MathBlock,
    Par,
    Plain,
    Rule,
    Table,
    TableCell,
    Tagged,
    TermList,
    Text,
)
from textecca.errors import EmptyTermList, UnexpectedBlocks
from textecca.tokens import Span

logger = logging.getLogger(__name__)


class DocBuilder:
    """Accumulates blocks plus one pending inline run not yet placed in a block.

    Pushing a block first drains the pending run into the tree, then appends
    the block. Pushing inline content only extends the pending run.
    """

    def __init__(self) -> None:
        self.meta: dict[str, str] = {}
        self._blocks: list[Block] = []
        self._current: list[Inline] = []

    def __repr__(self) -> str:
        return f"DocBuilder({len(self._blocks)} blocks, {len(self._current)} pending)"

    @property
    def blocks(self) -> list[Block]:
        return self._blocks

    @property
    def pending(self) -> list[Inline]:
        return self._current

    def push(self, elem: Block | Inline | str | Span | list | tuple) -> None:
        """Push a block, an inline, raw text, or a sequence of any of these."""
        if isinstance(elem, str):
            self._current.append(Text(elem))
        elif isinstance(elem, Span):
            self._current.append(Text(elem.fragment))
        elif isinstance(elem, INLINE_TYPES):
            self._current.append(elem)
        elif isinstance(elem, BLOCK_TYPES):
            self.drain()
            self._blocks.append(elem)
        elif isinstance(elem, (list, tuple)):
            for item in elem:
                self.push(item)
        else:
            raise TypeError(f"cannot push {type(elem).__name__} to a document")

    def drain(self) -> None:
        """Place the pending inline run into the block tree."""
        if not self._current:
            return
        run = self._current
        self._current = []
        _add_to_blocks(run, self._blocks)

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def into_blocks(self) -> list[Block]:
        self.drain()
        return self._blocks

    def into_document(self) -> Document:
        return Document(meta=self.meta, content=self.into_blocks())

    def into_inlines(self) -> list[Inline]:
        """Return the content as a bare inline run.

        Only an empty result or a single Plain/Par block qualify; anything
        else raises UnexpectedBlocks.
        """
        blocks = self.into_blocks()
        if not blocks:
            return []
        if len(blocks) == 1 and isinstance(blocks[0], (Plain, Par)):
            return blocks[0].content
        raise UnexpectedBlocks(blocks)


# ---------------------------------------------------------------------------
# Drain rules
# ---------------------------------------------------------------------------


def _add_to_blocks(run: list[Inline], blocks: list[Block]) -> None:
    if not blocks:
        blocks.append(Par(run))
        return
    new_block = _add_to_block(run, blocks[-1])
    if new_block is not None:
        blocks.append(new_block)


def _add_to_block(run: list[Inline], block: Block) -> Block | None:
    """Fold ``run`` into ``block``; returns a new sibling block if it does not fit."""
    match block:
        case Plain(content=inlines) | Par(content=inlines) | CodeBlock(content=inlines):
            inlines.extend(run)
        case Heading(text=inlines) | Figure(caption=inlines):
            inlines.extend(run)
        case BlockQuote(content=blocks) | Tagged(content=blocks) | Defn(content=blocks):
            _add_to_blocks(run, blocks)
        case List():
            _add_to_list(run, block)
        case TermList():
            if not block.items:
                raise EmptyTermList()
            _add_to_blocks(run, block.items[-1].content)
        case Table():
            _add_to_table(run, block)
        case Rule() | MathBlock():
            return Par(run)
    return None


def _add_to_list(run: list[Inline], block: List) -> None:
    if not block.items:
        block.items.append(ListItem([Par(run)]))
    else:
        _add_to_blocks(run, block.items[-1].content)


def _add_to_table(run: list[Inline], table: Table) -> None:
    if table.rows and table.rows[-1]:
        # Only the first cell is ever created implicitly
        logger.warning("discarding %d inline(s) pushed to a table that already has cells", len(run))
        return
    table.rows.append([TableCell([Plain(run)])])
