"""
Token Types for the litescript tokenizer

Shared between the lexer and every rewrite pass so passes can reason about
spans instead of raw characters.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types"""

    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENT = auto()

    # Keywords
    IF = auto()
    ELSE = auto()
    FOR = auto()
    WHILE = auto()
    DO = auto()
    FUNCTION = auto()
    RETURN = auto()
    LET = auto()
    CONST = auto()
    VAR = auto()
    NEW = auto()
    TYPEOF = auto()
    INSTANCEOF = auto()
    IN = auto()
    OF = auto()
    VOID = auto()
    DELETE = auto()
    AWAIT = auto()
    YIELD = auto()
    CASE = auto()
    SWITCH = auto()
    BREAK = auto()
    CONTINUE = auto()
    THROW = auto()
    TRY = auto()
    CATCH = auto()
    FINALLY = auto()
    CLASS = auto()
    EXTENDS = auto()
    IMPORT = auto()
    EXPORT = auto()
    ASYNC = auto()

    # Operators
    ASSIGN = auto()  # =
    EQ = auto()  # == ===
    NEQ = auto()  # != !==
    NEG = auto()  # !
    ARROW = auto()  # =>
    SPREAD = auto()  # ...
    OPTDOT = auto()  # ?.
    OP = auto()  # everything else, including unknown characters

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    DOT = auto()
    COMMA = auto()
    COLON = auto()
    SEMI = auto()

    # Special
    NEWLINE = auto()
    COMMENT = auto()
    EOF = auto()


OPENERS = {TT.LPAR: TT.RPAR, TT.LSQB: TT.RSQB, TT.LBRACE: TT.RBRACE}
CLOSERS = {close: open_ for open_, close in OPENERS.items()}


@dataclass
class Tok:
    """Token with position info and its span in the source buffer"""

    type: TT
    value: Any
    line: int = 0
    column: int = 0
    start: int = 0
    end: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
