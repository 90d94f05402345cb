"""prompt_toolkit lexer for live litescript syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer import Lexer as TokenLexer
from .passes.log import LOG_NAME
from .passes.rules import RULE_NAMES
from .token_types import TT, Tok
from .types import UnbalancedDelimiter

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "constant": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "function": "bold ansiyellow",
    "sugar": "bold ansimagenta",
    "operator": "",
    "punctuation": "",
    "comment": "italic ansigray",
}

_KEYWORDS = set(TokenLexer.KEYWORDS.values())

_TT_GROUP = {
    TT.NUMBER: "number",
    TT.STRING: "string",
    TT.IDENT: "identifier",
    TT.COMMENT: "comment",
    TT.ASSIGN: "operator",
    TT.EQ: "operator",
    TT.NEQ: "operator",
    TT.NEG: "operator",
    TT.ARROW: "operator",
    TT.SPREAD: "operator",
    TT.OP: "operator",
    TT.OPTDOT: "punctuation",
    TT.LPAR: "punctuation",
    TT.RPAR: "punctuation",
    TT.LSQB: "punctuation",
    TT.RSQB: "punctuation",
    TT.LBRACE: "punctuation",
    TT.RBRACE: "punctuation",
    TT.DOT: "punctuation",
    TT.COMMA: "punctuation",
    TT.COLON: "punctuation",
    TT.SEMI: "punctuation",
}

_CONSTANTS = {"true", "false", "null", "undefined", "NaN", "Infinity"}
_LAYOUT = {TT.NEWLINE, TT.EOF}


def _ident_group(tokens: list[Tok], idx: int) -> str:
    tok = tokens[idx]
    nxt = tokens[idx + 1] if idx + 1 < len(tokens) else None
    calls = nxt is not None and nxt.type in (TT.LPAR, TT.NEG)

    if tok.value in _CONSTANTS:
        return "constant"
    if tok.value in RULE_NAMES or (tok.value == LOG_NAME and calls):
        return "sugar"
    if calls:
        return "function"
    return "identifier"


def _group(tokens: list[Tok], idx: int) -> str:
    tok = tokens[idx]
    if tok.type in _KEYWORDS:
        return "keyword"
    if tok.type == TT.IDENT:
        return _ident_group(tokens, idx)
    return _TT_GROUP.get(tok.type, "")


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    try:
        tokens = TokenLexer(text).tokenize()
    except UnbalancedDelimiter:
        return [("", text)]

    result: StyleAndTextTuples = []
    pos = 0

    for i, tok in enumerate(tokens):
        if tok.type in _LAYOUT or tok.end <= tok.start:
            continue

        # Unstyled gap before token.
        if tok.start > pos:
            result.append(("", text[pos:tok.start]))

        style = GROUP_STYLE.get(_group(tokens, i), "")
        result.append((style, text[tok.start:tok.end]))
        pos = tok.end

    # Trailing unstyled text.
    if pos < len(text):
        result.append(("", text[pos:]))

    return result if result else [("", text)]


class LiteScriptLexer(Lexer):
    """prompt_toolkit Lexer that highlights litescript using the shared tokenizer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
