"""Indentation-delimited headers to explicit `{ ... }` blocks.

Both header kinds share one state machine driven by an indentation stack:
before a line is emitted, every pending opener whose header sits at the same
or a deeper indentation is closed, innermost first. A header opens a block
only when the next real line is indented strictly deeper than the header;
otherwise it is emitted with an empty body.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..token_types import TT
from ..types import BlockEntry, LogicalLine
from .common import code_text, find_close, line_start, logical_lines, trailing_comment

logger = logging.getLogger(__name__)

OPEN = "{"
CLOSE = "}"


def _bare(text: str) -> str:
    return text[:-1] if text.endswith("\r") else text


def _with_comment(header: str, line: LogicalLine) -> str:
    comment = trailing_comment(line)
    return f"{header} {comment}" if comment else header


class IndentBlockExpander:
    """Shared indentation-stack machine; subclasses recognise their headers."""

    name = "blocks"

    def rewrite_header(self, line: LogicalLine) -> Optional[str]:
        """Return the header rewritten to end in an open brace, or None."""
        raise NotImplementedError

    def run(self, source: str) -> str:
        lines = logical_lines(source)
        # generated lines follow the source's line ending
        newline = "\r\n" if "\r\n" in source else "\n"
        out: List[str] = []
        held: List[str] = []  # blank/comment lines awaiting the next real line
        stack: List[BlockEntry] = []
        opened = 0

        for idx, line in enumerate(lines):
            if line.continued:
                # a comment still being held keeps its lines together
                (held if held else out).append(_bare(line.text))
                continue

            if line.transparent:
                held.append(_bare(line.text))
                continue

            self.close_blocks(stack, line.width, out)
            out.extend(held)
            held.clear()

            header = self.rewrite_header(line)
            if header is None:
                out.append(_bare(line.text))
                continue

            opened += 1
            out.append(header)

            if self.opens_block(lines, idx):
                stack.append(BlockEntry(width=line.width, indent=line.indent))
            else:
                out.append(f"{line.indent}{CLOSE}")

        self.close_blocks(stack, -1, out)
        out.extend(held)

        logger.debug("%s: expanded %d header(s)", self.name, opened)
        return newline.join(out)

    @staticmethod
    def close_blocks(stack: List[BlockEntry], width: int, out: List[str]) -> None:
        while stack and stack[-1].width >= width:
            entry = stack.pop()
            out.append(f"{entry.indent}{CLOSE}")

    @staticmethod
    def opens_block(lines: Sequence[LogicalLine], idx: int) -> bool:
        header = lines[idx]
        for line in lines[idx + 1:]:
            if line.transparent:
                continue
            return line.width > header.width
        return False


class FunctionHeaderExpander(IndentBlockExpander):
    """`greet(name):` becomes `function greet(name) {`."""

    name = "functions"

    def rewrite_header(self, line: LogicalLine) -> Optional[str]:
        toks = line.tokens
        if len(toks) < 4 or toks[0].type != TT.IDENT or toks[1].type != TT.LPAR:
            return None

        close = find_close(toks, 1)
        if close is None or close != len(toks) - 2 or toks[-1].type != TT.COLON:
            return None

        start = line_start(line)
        params = line.text[toks[1].end - start:toks[close].start - start].strip()
        header = f"{line.indent}function {toks[0].value}({params}) {OPEN}"
        return _with_comment(header, line)


class ControlBlockNormalizer(IndentBlockExpander):
    """`if (...)`, `while (...)`, `for (...)`, `else if (...)` and `else` get braces."""

    name = "control"

    CONDITIONAL = {TT.IF, TT.WHILE, TT.FOR}

    def rewrite_header(self, line: LogicalLine) -> Optional[str]:
        toks = line.tokens
        if toks[-1].type in (TT.LBRACE, TT.RBRACE):
            return None

        if toks[0].type == TT.ELSE:
            if len(toks) == 1:
                return self._braced(line)
            if toks[1].type == TT.IF and self._condition_ends_line(toks, 2):
                return self._braced(line)
            return None

        if toks[0].type in self.CONDITIONAL and self._condition_ends_line(toks, 1):
            return self._braced(line)

        return None

    @staticmethod
    def _condition_ends_line(toks: Sequence, idx: int) -> bool:
        if idx >= len(toks) or toks[idx].type != TT.LPAR:
            return False
        return find_close(toks, idx) == len(toks) - 1

    @staticmethod
    def _braced(line: LogicalLine) -> str:
        return _with_comment(f"{line.indent}{code_text(line)} {OPEN}", line)
