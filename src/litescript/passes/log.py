"""`log(...)` calls become labelled `console.log(...)` calls.

    log(arr)          ->  console.log('arr =>', arr)
    log(a, b)         ->  console.log('a =>', a, '\\nb =>', b)
    log("done")       ->  console.log("done")
    log("n:", n)      ->  console.log("n:", n)
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..lexer import Lexer, iter_tokens
from ..token_types import CLOSERS, OPENERS, TT, Tok
from ..utils import js_string
from .common import Span, match_forward, significant, span_text, split_args

logger = logging.getLogger(__name__)

LOG_NAME = "log"
PRINT_CALL = "console.log"

_LAYOUT = {TT.COMMENT, TT.NEWLINE}


def _is_literal(toks: Sequence[Tok], span: Span) -> bool:
    lo, hi = span
    return hi - lo == 1 and toks[lo].type == TT.STRING


def _label(text: str, first: bool) -> str:
    return js_string(f"{text} =>" if first else f"\n{text} =>")


class LogCallExpander:
    name = "log"

    def run(self, source: str) -> str:
        starts = self.call_starts(source)

        # Right to left, so earlier offsets stay valid after each rewrite.
        for start in reversed(starts):
            source = self.rewrite_call(source, start)

        logger.debug("log: rewrote %d call(s)", len(starts))
        return source

    @staticmethod
    def call_starts(source: str, lo: int = 0, hi: Optional[int] = None) -> List[int]:
        """Offsets of every `log(` call in source[lo:hi], template bodies included."""
        lexer = Lexer(source, start=lo, end=hi)
        toks = significant(lexer.tokenize())
        starts = []

        for idx, tok in enumerate(toks):
            if tok.type != TT.IDENT or tok.value != LOG_NAME:
                continue
            if toks[idx + 1].type != TT.LPAR:
                continue
            if idx > 0 and toks[idx - 1].type in (TT.DOT, TT.OPTDOT, TT.FUNCTION):
                continue

            close = match_forward(toks, idx + 1)
            # `log(x) {` is a method definition
            if toks[close + 1].type == TT.LBRACE:
                continue

            starts.append(tok.start)

        for body_lo, body_hi in lexer.interpolations:
            starts.extend(LogCallExpander.call_starts(source, body_lo, body_hi))

        return sorted(starts)

    def rewrite_call(self, source: str, start: int) -> str:
        toks = self._scan_call(source, start)
        close = match_forward(toks, 1)
        spans = split_args(toks, 1, close)

        args = [span_text(source, toks, span) for span in spans]
        literal = [_is_literal(toks, span) for span in spans]

        if not args:
            call = f"{PRINT_CALL}()"
        elif len(args) == 1 and literal[0]:
            call = f"{PRINT_CALL}({args[0]})"
        elif len(args) == 1:
            call = f"{PRINT_CALL}({_label(args[0], True)}, {args[0]})"
        elif any(literal):
            call = f"{PRINT_CALL}({', '.join(args)})"
        else:
            parts = []
            for pos, arg in enumerate(args):
                parts.append(_label(arg, pos == 0))
                parts.append(arg)
            call = f"{PRINT_CALL}({', '.join(parts)})"

        return source[:start] + call + source[toks[close].end:]

    @staticmethod
    def _scan_call(source: str, start: int) -> List[Tok]:
        """Significant tokens from `log` through the group closing its argument list."""
        toks: List[Tok] = []
        depth = 0

        for tok in iter_tokens(source, start):
            if tok.type in _LAYOUT:
                continue

            toks.append(tok)
            if tok.type in OPENERS:
                depth += 1
            elif tok.type in CLOSERS:
                depth -= 1
                if depth <= 0:
                    break
            elif tok.type == TT.EOF:
                break

        return toks
