"""Loop header sugar, rewritten into the parenthesised forms JavaScript expects.

    repeat 3               ->  for (let _ = 0; _ < 3; _++)
    for i in 0..5          ->  for (let i = 0; i < 5; i++)
    for i in 0..10..2      ->  for (let i = 0; i < 10; i += 2)
    for [k, v] of pairs    ->  for (let [k, v] of pairs)
    for key in config      ->  for (let key in config)
    while n > 0            ->  while (n > 0)

Only whole header lines are rewritten; the block itself is braced later by
the control-flow pass.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from ..token_types import CLOSERS, OPENERS, TT, Tok
from ..types import LogicalLine
from .common import code_text, find_close, logical_lines, trailing_comment

logger = logging.getLogger(__name__)

REPEAT = "repeat"
REPEAT_COUNTER = "_"

_BOUND = r"-?\d+(?:\.\d+)?|[A-Za-z_$][\w$]*"
_RANGE = re.compile(
    rf"^(?P<start>{_BOUND})\s*\.\.\.?\s*(?P<stop>{_BOUND})(?:\s*\.\.\s*(?P<step>{_BOUND}))?$"
)


def _top_level(toks: Sequence[Tok], kinds, lo: int) -> Optional[int]:
    """Index of the first token of one of *kinds* outside any bracket group."""
    depth = 0
    for idx in range(lo, len(toks)):
        t = toks[idx].type
        if t in OPENERS:
            depth += 1
        elif t in CLOSERS:
            depth -= 1
        elif depth == 0 and t in kinds:
            return idx
    return None


class LoopSugarExpander:
    name = "loops"

    def run(self, source: str) -> str:
        out = []
        rewritten = 0

        for line in logical_lines(source):
            header = None if line.transparent else self.rewrite_header(line)
            if header is None:
                out.append(line.text)
                continue

            rewritten += 1
            out.append(header + ("\r" if line.text.endswith("\r") else ""))

        logger.debug("loops: rewrote %d header(s)", rewritten)
        return "\n".join(out)

    def rewrite_header(self, line: LogicalLine) -> Optional[str]:
        toks = line.tokens
        end = len(toks)
        brace = toks[-1].type == TT.LBRACE
        if brace:
            end -= 1

        if end < 2:
            return None

        first = toks[0]
        if first.type == TT.IDENT and first.value == REPEAT:
            loop = self._repeat(line, end)
        elif first.type == TT.FOR:
            loop = self._for(line, end)
        elif first.type == TT.WHILE:
            loop = self._while(line, end)
        else:
            loop = None

        if loop is None:
            return None

        header = f"{line.indent}{loop}{' {' if brace else ''}"
        comment = trailing_comment(line)
        return f"{header} {comment}" if comment else header

    @staticmethod
    def _repeat(line: LogicalLine, end: int) -> Optional[str]:
        if line.tokens[1].type not in (TT.NUMBER, TT.IDENT, TT.LPAR):
            return None
        # `repeat(3)` alone is an ordinary call
        if line.tokens[1].type == TT.LPAR and find_close(line.tokens, 1) == end - 1:
            return None

        count = code_text(line, 1, end)
        n = REPEAT_COUNTER
        return f"for (let {n} = 0; {n} < {count}; {n}++)"

    @staticmethod
    def _for(line: LogicalLine, end: int) -> Optional[str]:
        toks = line.tokens[:end]
        if toks[1].type == TT.LPAR:
            return None

        split = _top_level(toks, (TT.IN, TT.OF), 1)
        if split is None or split == 1 or split == end - 1:
            return None

        binding = code_text(line, 1, split)
        subject = code_text(line, split + 1, end)

        if toks[split].type == TT.OF:
            return f"for (let {binding} of {subject})"

        bounds = _RANGE.match(subject)
        if bounds is None:
            return f"for (let {binding} in {subject})"

        start, stop, step = bounds.group("start", "stop", "step")
        increment = f"{binding} += {step}" if step else f"{binding}++"
        return f"for (let {binding} = {start}; {binding} < {stop}; {increment})"

    @staticmethod
    def _while(line: LogicalLine, end: int) -> Optional[str]:
        if line.tokens[1].type == TT.LPAR and find_close(line.tokens, 1) == end - 1:
            return None
        return f"while ({code_text(line, 1, end)})"
