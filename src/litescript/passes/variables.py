"""Declaration inference: first assignments are declared, legacy keywords become `let`.

    total = 0            ->  let total = 0
    total = total + 5    ->  total = total + 5
    const limit = 3      ->  let limit = 3

The declared set is flat and covers the whole file (see ``Scope``).
"""

from __future__ import annotations

import logging
from typing import List

from ..lexer import tokenize
from ..token_types import TT
from ..types import LogicalLine, Scope
from .common import Edit, apply_edits, logical_lines

logger = logging.getLogger(__name__)

CANONICAL_KEYWORD = "let"
LEGACY_KEYWORDS = {TT.CONST, TT.VAR}


def canonicalize_keywords(source: str) -> str:
    """Rewrite every `const`/`var` keyword token to `let`."""
    edits: List[Edit] = [
        (tok.start, tok.end, CANONICAL_KEYWORD)
        for tok in tokenize(source)
        if tok.type in LEGACY_KEYWORDS
    ]
    return apply_edits(source, edits)


class DeclarationInferencer:
    name = "declarations"

    def run(self, source: str) -> str:
        source = canonicalize_keywords(source)
        scope = Scope()
        out = [self.infer_line(line, scope) for line in logical_lines(source)]
        logger.debug("declared %d identifier(s): %s", len(scope), ", ".join(scope))
        return "\n".join(out)

    def infer_line(self, line: LogicalLine, scope: Scope) -> str:
        if line.transparent:
            return line.text

        toks = line.tokens
        line_start = toks[0].start - (toks[0].column - 1)
        stripped = False

        if toks[0].type == TT.LET:
            if len(toks) < 2 or toks[1].type != TT.IDENT:
                return line.text

            # `let x` / `let x;` binds without an initializer
            if len(toks) == 2 or (len(toks) == 3 and toks[2].type == TT.SEMI):
                scope.declare(toks[1].value)
                return line.text

            if toks[2].type != TT.ASSIGN:
                return line.text

            toks = toks[1:]
            stripped = True

        # Only `name = ...` at the start of the line; `obj.x = ...` and
        # `arr[i] = ...` never reach here because their second token is not `=`.
        if len(toks) < 2 or toks[0].type != TT.IDENT or toks[1].type != TT.ASSIGN:
            return line.text

        name = toks[0].value
        rest = line.text[toks[0].start - line_start:]

        if scope.declare(name):
            logger.debug("line %d: declaring %s", line.number, name)
            return f"{line.indent}{CANONICAL_KEYWORD} {rest}"

        if stripped:
            return f"{line.indent}{rest}"

        return line.text
