from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..lexer import tokenize
from ..token_types import CLOSERS, OPENERS, TT, Tok
from ..types import LogicalLine, UnbalancedDelimiter

Span = Tuple[int, int]
Edit = Tuple[int, int, str]

_LAYOUT = {TT.COMMENT, TT.NEWLINE}
_PRIMARY = {TT.IDENT, TT.NUMBER, TT.STRING, TT.DOT, TT.OPTDOT}


def significant(tokens: Iterable[Tok]) -> List[Tok]:
    """Drop comments and newlines; keep EOF so scans always terminate."""
    return [tok for tok in tokens if tok.type not in _LAYOUT]


def find_close(tokens: Sequence[Tok], open_index: int) -> Optional[int]:
    """Like match_forward, but None when the group does not close in *tokens*."""
    expected = [OPENERS[tokens[open_index].type]]

    for idx in range(open_index + 1, len(tokens)):
        t = tokens[idx].type
        if t in OPENERS:
            expected.append(OPENERS[t])
        elif t in CLOSERS:
            if t != expected[-1]:
                return None
            expected.pop()
            if not expected:
                return idx

    return None


def match_forward(tokens: Sequence[Tok], open_index: int) -> int:
    """Return the index of the bracket closing ``tokens[open_index]``."""
    opener = tokens[open_index]
    expected = [OPENERS[opener.type]]

    for idx in range(open_index + 1, len(tokens)):
        tok = tokens[idx]
        if tok.type in OPENERS:
            expected.append(OPENERS[tok.type])
        elif tok.type in CLOSERS:
            if tok.type != expected[-1]:
                raise UnbalancedDelimiter(f"Mismatched '{tok.value}'", tok.line, tok.column)
            expected.pop()
            if not expected:
                return idx

    raise UnbalancedDelimiter(f"Unclosed '{opener.value}'", opener.line, opener.column)


def match_backward(tokens: Sequence[Tok], close_index: int) -> int:
    """Return the index of the bracket opening ``tokens[close_index]``."""
    closer = tokens[close_index]
    expected = [CLOSERS[closer.type]]

    for idx in range(close_index - 1, -1, -1):
        tok = tokens[idx]
        if tok.type in CLOSERS:
            expected.append(CLOSERS[tok.type])
        elif tok.type in OPENERS:
            if tok.type != expected[-1]:
                raise UnbalancedDelimiter(f"Mismatched '{tok.value}'", tok.line, tok.column)
            expected.pop()
            if not expected:
                return idx

    raise UnbalancedDelimiter(f"Unopened '{closer.value}'", closer.line, closer.column)


def split_args(tokens: Sequence[Tok], open_index: int, close_index: int) -> List[Span]:
    """Split a balanced group into top-level argument token ranges [lo, hi)."""
    spans: List[Span] = []
    depth = 0
    lo = open_index + 1

    for idx in range(open_index + 1, close_index):
        t = tokens[idx].type
        if t in OPENERS:
            depth += 1
        elif t in CLOSERS:
            depth -= 1
        elif t == TT.COMMA and depth == 0:
            spans.append((lo, idx))
            lo = idx + 1

    spans.append((lo, close_index))

    # A trailing comma (or an empty group) leaves one empty range at the end.
    if spans and spans[-1][0] == spans[-1][1]:
        spans.pop()

    return spans


def span_text(source: str, tokens: Sequence[Tok], span: Span) -> str:
    lo, hi = span
    if lo >= hi:
        return ""
    return source[tokens[lo].start:tokens[hi - 1].end]


def contains_function_literal(tokens: Sequence[Tok], span: Span) -> bool:
    lo, hi = span
    return any(tok.type in (TT.ARROW, TT.FUNCTION) for tok in tokens[lo:hi])


def is_primary(tokens: Sequence[Tok], span: Span) -> bool:
    """True when the range can take a trailing ``.member`` without parentheses."""
    lo, hi = span
    if hi - lo == 1 and tokens[lo].type == TT.NUMBER:
        return False

    depth = 0
    for tok in tokens[lo:hi]:
        if tok.type in OPENERS:
            depth += 1
        elif tok.type in CLOSERS:
            depth -= 1
        elif depth == 0 and tok.type not in _PRIMARY:
            return False

    return True


def apply_edits(source: str, edits: Iterable[Edit]) -> str:
    """Apply non-overlapping (start, end, text) edits right to left."""
    out = source
    for start, end, text in sorted(edits, key=lambda e: e[0], reverse=True):
        out = out[:start] + text + out[end:]
    return out


def logical_lines(source: str) -> List[LogicalLine]:
    """Decompose the buffer into LogicalLine records, one per physical line."""
    tokens = tokenize(source)

    by_line: Dict[int, List[Tok]] = defaultdict(list)
    continued: Set[int] = set()

    for tok in tokens:
        if tok.type in (TT.STRING, TT.COMMENT):
            extra = tok.value.count('\n')
            continued.update(range(tok.line + 1, tok.line + extra + 1))
        if tok.type in _LAYOUT or tok.type == TT.EOF:
            continue
        by_line[tok.line].append(tok)

    lines: List[LogicalLine] = []
    for idx, text in enumerate(source.split('\n')):
        number = idx + 1
        stripped = text.lstrip()
        lines.append(
            LogicalLine(
                number=number,
                text=text,
                indent=text[:len(text) - len(stripped)],
                content=stripped.rstrip(),
                tokens=tuple(by_line.get(number, ())),
                continued=number in continued,
            )
        )

    return lines


def trailing_comment(line: LogicalLine) -> str:
    """Comment text following the last significant token of *line*, if any."""
    if not line.tokens:
        return ""

    rest = source_line_tail(line)
    stripped = rest.strip()
    if stripped.startswith('//') or stripped.startswith('/*'):
        return stripped
    return ""


def source_line_tail(line: LogicalLine) -> str:
    """Text of the physical line after its last significant token."""
    last = line.tokens[-1]
    line_start = last.start - (last.column - 1)
    return line.text[last.end - line_start:]


def line_start(line: LogicalLine) -> int:
    """Buffer offset of the first character of *line* (it must carry tokens)."""
    first = line.tokens[0]
    return first.start - (first.column - 1)


def code_text(line: LogicalLine, lo: int = 0, hi: Optional[int] = None) -> str:
    """Source text of ``line.tokens[lo:hi]``, comments between them included."""
    toks = line.tokens[lo:hi]
    if not toks:
        return ""
    base = line_start(line)
    return line.text[toks[0].start - base:toks[-1].end - base]
