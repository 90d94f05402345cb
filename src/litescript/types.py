from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import FrozenSet, Iterator, Optional, Set, Tuple
from typing_extensions import TypeAlias

from .token_types import Tok

Arity: TypeAlias = FrozenSet[int]
LineTokens: TypeAlias = Tuple[Tok, ...]

# ---------- Source model ----------

@dataclass(frozen=True)
class LogicalLine:
    """One physical line of the buffer, split into indentation and content.

    ``width`` counts raw leading whitespace characters, so a tab is one
    column. ``tokens`` holds the significant tokens that start on the line
    (comments excluded). ``continued`` lines begin inside a multi-line token
    such as a template string and are never rewritten.
    """

    number: int
    text: str
    indent: str
    content: str
    tokens: LineTokens = ()
    continued: bool = False

    @property
    def width(self) -> int:
        return len(self.indent)

    @property
    def transparent(self) -> bool:
        """Blank and comment-only lines neither open nor close blocks."""
        return self.continued or not self.tokens


@dataclass(frozen=True)
class BlockEntry:
    """A pending block opener on the indentation stack."""

    width: int
    indent: str


class Scope:
    """Flat, whole-file set of identifiers that already carry a declaration.

    There is no shadowing: once a name is declared anywhere in the file every
    later assignment to it is treated as a plain reassignment.
    """

    def __init__(self) -> None:
        self._names: Set[str] = set()

    def declare(self, name: str) -> bool:
        """Bind *name*; return True only the first time it is seen."""
        if name in self._names:
            return False

        self._names.add(name)
        return True

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._names))

    def __len__(self) -> int:
        return len(self._names)

# ---------- Expansion rules ----------

class RuleShape(Enum):
    MEMBER = auto()  # expr.name / expr.name(args)
    STANDALONE = auto()  # name(args)


class RuleKind(Enum):
    SORT = auto()
    REVERSE = auto()
    UNIQUE = auto()
    SUM = auto()
    MUL = auto()
    MAX = auto()
    MIN = auto()
    LEN = auto()
    FILTER = auto()
    COUNT = auto()
    RANGE = auto()


@dataclass(frozen=True)
class ExpansionRule:
    name: str
    kind: RuleKind
    shape: RuleShape
    arity: Arity
    negated: bool = False
    # Arguments are compared by value, so a callback must not be mistaken for one.
    plain_operands: bool = False

    @property
    def spelling(self) -> str:
        return f"{self.name}!" if self.negated else self.name

    def accepts(self, count: int) -> bool:
        return count in self.arity


@dataclass(frozen=True)
class MatchCandidate:
    rule: ExpansionRule
    start: int
    end: int
    replacement: str

    def sort_key(self) -> Tuple[int, int]:
        # Rightmost start wins; on a shared start the shorter span is the inner one.
        return (self.start, -self.end)

# ---------- Exceptions (keep TranspileError canonical) ----------

class TranspileError(Exception):
    """Base class for every diagnostic raised by the transpile pipeline."""

    line: Optional[int]
    column: Optional[int]

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is None:
            return self.message

        if self.column is None:
            return f"{self.message} (line {self.line})"

        return f"{self.message} (line {self.line}, col {self.column})"

class UnbalancedDelimiter(TranspileError):
    pass

class MalformedExpression(TranspileError):
    pass

class ExpansionDivergence(TranspileError):
    def __init__(self, passes: int, pending: MatchCandidate):
        super().__init__(
            f"Sugar expansion did not settle after {passes} passes; "
            f"'{pending.rule.spelling}' still matches at offset {pending.start}"
        )
        self.passes = passes
        self.pending = pending

class ExecutionError(Exception):
    """The produced JavaScript failed to run. Not a transpile diagnostic."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
