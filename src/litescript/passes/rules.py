from __future__ import annotations

from typing import NamedTuple, Sequence, Tuple

from ..types import ExpansionRule, RuleKind, RuleShape

MEMBER = RuleShape.MEMBER
STANDALONE = RuleShape.STANDALONE


class Operand(NamedTuple):
    """Unevaluated source text captured for one operand or argument."""

    text: str
    primary: bool = True

    @property
    def grouped(self) -> str:
        """Text safe to place before `.member` or after a binary operator."""
        return self.text if self.primary else f"({self.text})"


def _rule(name: str, kind: RuleKind, shape: RuleShape, *arity: int,
          negated: bool = False, plain: bool = False) -> ExpansionRule:
    return ExpansionRule(
        name=name,
        kind=kind,
        shape=shape,
        arity=frozenset(arity),
        negated=negated,
        plain_operands=plain,
    )


_REDUCERS = (
    ("sort", RuleKind.SORT),
    ("reverse", RuleKind.REVERSE),
    ("unique", RuleKind.UNIQUE),
    ("sum", RuleKind.SUM),
    ("mul", RuleKind.MUL),
    ("max", RuleKind.MAX),
    ("min", RuleKind.MIN),
    ("len", RuleKind.LEN),
)

_MATCHERS = (
    ("filter", RuleKind.FILTER),
    ("count", RuleKind.COUNT),
)

# Negated spellings come first so `filter!` is never read as `filter`.
CATALOG: Tuple[ExpansionRule, ...] = (
    *(_rule(name, kind, MEMBER, 0) for name, kind in _REDUCERS),
    *(_rule(name, kind, MEMBER, 1, negated=True, plain=True) for name, kind in _MATCHERS),
    *(_rule(name, kind, MEMBER, 1, plain=True) for name, kind in _MATCHERS),
    *(_rule(name, kind, STANDALONE, 1) for name, kind in _REDUCERS),
    _rule("sorted", RuleKind.SORT, STANDALONE, 1),
    *(_rule(name, kind, STANDALONE, 2, negated=True, plain=True) for name, kind in _MATCHERS),
    *(_rule(name, kind, STANDALONE, 2, plain=True) for name, kind in _MATCHERS),
    _rule("range", RuleKind.RANGE, STANDALONE, 2, 3),
)

RULE_NAMES = frozenset(rule.name for rule in CATALOG)


def _range(start: Operand, stop: Operand, step: Operand | None) -> str:
    magnitude = f"Math.abs({step.text})" if step is not None else "1"
    return (
        "((a, b, s) => Array.from("
        "{ length: s ? Math.ceil(Math.abs(b - a) / s) : 0 }, "
        "(_, i) => (a < b ? a + i * s : a - i * s)))"
        f"({start.text}, {stop.text}, {magnitude})"
    )


def expand(rule: ExpansionRule, operands: Sequence[Operand]) -> str:
    """Replacement text for *rule* applied to *operands*.

    ``operands[0]`` is the collection (the receiver of a member rule or the
    first argument of a standalone one); the rest are the remaining arguments.
    """
    x = operands[0]
    equality = "!==" if rule.negated else "==="

    match rule.kind:
        case RuleKind.SORT:
            return f"[...{x.text}].sort((a, b) => a - b)"
        case RuleKind.REVERSE:
            return f"[...{x.text}].reverse()"
        case RuleKind.UNIQUE:
            return f"[...new Set({x.text})]"
        case RuleKind.SUM:
            return f"{x.grouped}.reduce((a, b) => a + b, 0)"
        case RuleKind.MUL:
            return f"{x.grouped}.reduce((a, b) => a * b, 1)"
        case RuleKind.MAX:
            return f"Math.max(...{x.text})"
        case RuleKind.MIN:
            return f"Math.min(...{x.text})"
        case RuleKind.LEN:
            return f"{x.grouped}.length"
        case RuleKind.FILTER:
            return f"[...{x.text}].filter((v) => v {equality} {operands[1].grouped})"
        case RuleKind.COUNT:
            return f"[...{x.text}].filter((v) => v {equality} {operands[1].grouped}).length"
        case RuleKind.RANGE:
            step = operands[2] if len(operands) > 2 else None
            return _range(x, operands[1], step)
        case _:
            raise AssertionError(f"unhandled rule kind {rule.kind}")
