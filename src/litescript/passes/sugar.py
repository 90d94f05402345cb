"""Fixpoint expansion of collection sugar (`arr.sum`, `filter(xs, 3)`, `range(0, 5)`).

Each pass tokenizes the buffer, locates every valid occurrence of every rule
and rewrites exactly one: the candidate that starts furthest to the right
(on a shared start, the one that ends first). Nested sugar therefore always
expands innermost first without building a tree, e.g.

    arr.filter(3).sum
    [...arr].filter((v) => v === 3).sum
    [...arr].filter((v) => v === 3).reduce((a, b) => a + b, 0)

Expansions never produce text a rule matches again, so the loop stops once a
pass finds nothing. A budget on the number of edits guards against rule sets
that break that property. The `${...}` bodies of template literals are
searched like the rest of the buffer.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..lexer import Lexer
from ..token_types import CLOSERS, TT, Tok
from ..types import (
    ExpansionDivergence,
    ExpansionRule,
    MalformedExpression,
    MatchCandidate,
    RuleShape,
)
from ..utils import default_max_passes
from .common import (
    Span,
    contains_function_literal,
    is_primary,
    match_backward,
    match_forward,
    significant,
    span_text,
    split_args,
)
from .rules import CATALOG, Operand, expand

logger = logging.getLogger(__name__)

Expand = Callable[[ExpansionRule, Sequence[Operand]], str]
RuleKey = Tuple[RuleShape, str, bool]

_OPERAND_TOKENS = {TT.IDENT, TT.NUMBER, TT.STRING}
_CALLABLE_CLOSERS = {TT.RPAR, TT.RSQB}


class ExpressionSugarExpander:
    name = "sugar"

    def __init__(
        self,
        rules: Iterable[ExpansionRule] = CATALOG,
        max_passes: Optional[int] = None,
        expand: Expand = expand,
    ):
        self.rules = tuple(rules)
        self.max_passes = max_passes
        self.expand = expand

        self._index: Dict[RuleKey, List[ExpansionRule]] = {}
        for rule in self.rules:
            self._index.setdefault((rule.shape, rule.name, rule.negated), []).append(rule)

    def run(self, source: str) -> str:
        candidates = self.find_candidates(source)
        limit = self.max_passes if self.max_passes is not None else default_max_passes()
        budget = len(candidates) + limit
        passes = 0

        while candidates:
            best = max(candidates, key=MatchCandidate.sort_key)
            if passes >= budget:
                raise ExpansionDivergence(passes, best)

            source = source[:best.start] + best.replacement + source[best.end:]
            passes += 1
            logger.debug("pass %d: expanded '%s' at offset %d", passes, best.rule.spelling, best.start)

            candidates = self.find_candidates(source)

        logger.debug("sugar: settled after %d expansion(s)", passes)
        return source

    # ========================================================================
    # Candidate search
    # ========================================================================

    def find_candidates(
        self, source: str, lo: int = 0, hi: Optional[int] = None
    ) -> List[MatchCandidate]:
        """Every valid rule occurrence in source[lo:hi], template bodies included."""
        lexer = Lexer(source, start=lo, end=hi)
        toks = significant(lexer.tokenize())
        found: List[MatchCandidate] = []

        for idx, tok in enumerate(toks):
            if tok.type != TT.IDENT:
                continue

            bang = toks[idx + 1]
            negated = bang.type == TT.NEG and bang.start == tok.end
            prev = toks[idx - 1] if idx > 0 else None

            if prev is not None and prev.type == TT.DOT:
                candidate = self._match_member(source, toks, idx, negated)
            elif prev is None or prev.type not in (TT.OPTDOT, TT.FUNCTION):
                candidate = self._match_standalone(source, toks, idx, negated)
            else:
                candidate = None

            if candidate is not None:
                found.append(candidate)

        for body_lo, body_hi in lexer.interpolations:
            found.extend(self.find_candidates(source, body_lo, body_hi))

        return found

    def _lookup(self, shape: RuleShape, name: str, negated: bool) -> List[ExpansionRule]:
        return self._index.get((shape, name, negated), [])

    def _pick(
        self,
        rules: Sequence[ExpansionRule],
        toks: Sequence[Tok],
        spans: Sequence[Span],
    ) -> Optional[ExpansionRule]:
        for rule in rules:
            if not rule.accepts(len(spans)):
                continue
            # the collection of a standalone call may itself be expanded sugar
            values = spans[1:] if rule.shape == RuleShape.STANDALONE else spans
            if rule.plain_operands and any(contains_function_literal(toks, span) for span in values):
                continue
            return rule
        return None

    def _match_member(
        self, source: str, toks: Sequence[Tok], idx: int, negated: bool
    ) -> Optional[MatchCandidate]:
        rules = self._lookup(RuleShape.MEMBER, toks[idx].value, negated)
        if not rules:
            return None

        after = idx + 2 if negated else idx + 1
        nxt = toks[after]

        if nxt.type == TT.LPAR:
            close = match_forward(toks, after)
            spans = split_args(toks, after, close)
            # `x.reverse()` is the native call, not the property-style sugar
            if not spans:
                return None
            end = toks[close].end
        elif nxt.type == TT.ASSIGN:
            return None
        else:
            spans = []
            end = toks[after - 1].end

        rule = self._pick(rules, toks, spans)
        if rule is None:
            return None

        dot = idx - 1
        receiver = (self.operand_start(toks, dot), dot)
        operands = [self._operand(source, toks, receiver)]
        operands.extend(self._operand(source, toks, span) for span in spans)

        start = toks[receiver[0]].start
        return MatchCandidate(rule, start, end, self.expand(rule, operands))

    def _match_standalone(
        self, source: str, toks: Sequence[Tok], idx: int, negated: bool
    ) -> Optional[MatchCandidate]:
        rules = self._lookup(RuleShape.STANDALONE, toks[idx].value, negated)
        if not rules:
            return None

        after = idx + 2 if negated else idx + 1
        if toks[after].type != TT.LPAR:
            return None

        close = match_forward(toks, after)
        # `sum(xs) {` is a method definition, not a call
        if toks[close + 1].type == TT.LBRACE:
            return None

        spans = split_args(toks, after, close)
        rule = self._pick(rules, toks, spans)
        if rule is None:
            return None

        operands = [self._operand(source, toks, span) for span in spans]
        return MatchCandidate(rule, toks[idx].start, toks[close].end, self.expand(rule, operands))

    @staticmethod
    def _operand(source: str, toks: Sequence[Tok], span: Span) -> Operand:
        return Operand(span_text(source, toks, span), is_primary(toks, span))

    @staticmethod
    def operand_start(toks: Sequence[Tok], dot: int) -> int:
        """Index of the first token of the postfix chain ending just before *dot*."""
        start: Optional[int] = None
        j = dot - 1

        while j >= 0:
            tok = toks[j]

            if tok.type in CLOSERS:
                j = match_backward(toks, j)
                start = j
                prev = toks[j - 1] if j > 0 else None
                # f(x), a[0], f()() keep extending the chain to the left
                if (
                    prev is not None
                    and tok.type in _CALLABLE_CLOSERS
                    and (prev.type == TT.IDENT or prev.type in _CALLABLE_CLOSERS)
                ):
                    j -= 1
                    continue
                break

            if tok.type in _OPERAND_TOKENS:
                start = j
                if j >= 2 and toks[j - 1].type in (TT.DOT, TT.OPTDOT):
                    j -= 2
                    continue
                break

            break

        if start is None:
            member = toks[dot + 1]
            raise MalformedExpression(
                f"No operand before '.{member.value}'", toks[dot].line, toks[dot].column
            )

        if start > 0 and toks[start - 1].type == TT.NEW:
            start -= 1

        return start
