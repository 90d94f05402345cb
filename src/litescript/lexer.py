"""
Lexer for litescript

Tokenizes litescript (and the JavaScript it expands into) into a stream of
tokens carrying source spans. Every rewrite pass shares this tokenizer.

Features:
- Single-pass, incremental tokenization (``iter_tokens``)
- Can scan any slice of a buffer; spans stay absolute
- Quote-aware: strings, template literals, regex literals and comments are
  single tokens; the `${...}` bodies of template literals are recorded in
  ``interpolations`` so passes can scan them as slices of their own
- Never rejects a character; unknown input becomes an OP token
"""

from typing import Iterator, List, Optional, Tuple

from .token_types import TT, Tok
from .types import UnbalancedDelimiter

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    litescript lexer.

    Newlines are emitted as NEWLINE tokens; indentation is left to the
    line-oriented passes, which measure it on the raw text.
    """

    # Keyword mapping
    KEYWORDS = {
        'if': TT.IF,
        'else': TT.ELSE,
        'for': TT.FOR,
        'while': TT.WHILE,
        'do': TT.DO,
        'function': TT.FUNCTION,
        'return': TT.RETURN,
        'let': TT.LET,
        'const': TT.CONST,
        'var': TT.VAR,
        'new': TT.NEW,
        'typeof': TT.TYPEOF,
        'instanceof': TT.INSTANCEOF,
        'in': TT.IN,
        'of': TT.OF,
        'void': TT.VOID,
        'delete': TT.DELETE,
        'await': TT.AWAIT,
        'yield': TT.YIELD,
        'case': TT.CASE,
        'switch': TT.SWITCH,
        'break': TT.BREAK,
        'continue': TT.CONTINUE,
        'throw': TT.THROW,
        'try': TT.TRY,
        'catch': TT.CATCH,
        'finally': TT.FINALLY,
        'class': TT.CLASS,
        'extends': TT.EXTENDS,
        'import': TT.IMPORT,
        'export': TT.EXPORT,
        'async': TT.ASYNC,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Four-character operators
        ('>>>=', TT.OP),

        # Three-character operators
        ('===', TT.EQ),
        ('!==', TT.NEQ),
        ('...', TT.SPREAD),
        ('**=', TT.OP),
        ('<<=', TT.OP),
        ('>>=', TT.OP),
        ('>>>', TT.OP),
        ('&&=', TT.OP),
        ('||=', TT.OP),
        ('??=', TT.OP),

        # Two-character operators
        ('=>', TT.ARROW),
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.OP),
        ('>=', TT.OP),
        ('&&', TT.OP),
        ('||', TT.OP),
        ('??', TT.OP),
        ('++', TT.OP),
        ('--', TT.OP),
        ('+=', TT.OP),
        ('-=', TT.OP),
        ('*=', TT.OP),
        ('/=', TT.OP),
        ('%=', TT.OP),
        ('&=', TT.OP),
        ('|=', TT.OP),
        ('^=', TT.OP),
        ('**', TT.OP),
        ('<<', TT.OP),
        ('>>', TT.OP),

        # Single-character operators
        ('=', TT.ASSIGN),
        ('!', TT.NEG),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        ('.', TT.DOT),
        (',', TT.COMMA),
        (':', TT.COLON),
        (';', TT.SEMI),
    ]

    QUOTES = ('"', "'", '`')

    # Tokens after which a leading '.' is member access, never a number
    _OPERAND_END = {TT.IDENT, TT.NUMBER, TT.STRING, TT.RPAR, TT.RSQB, TT.RBRACE}

    def __init__(self, source: str, start: int = 0, end: Optional[int] = None):
        self.source = source
        self.pos = start
        self.stop = len(source) if end is None else end
        self.line = source.count('\n', 0, start) + 1
        self.column = start - (source.rfind('\n', 0, start) + 1) + 1
        self.tokens: List[Tok] = []
        self.last: Optional[Tok] = None
        # (start, end) of each ${...} body in a template scanned at this level
        self.interpolations: List[Tuple[int, int]] = []

        # Start of the token being scanned
        self.tok_start = start
        self.tok_line = self.line
        self.tok_column = self.column

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize the rest of the source, return token list"""
        for _ in self.iter_tokens():
            pass
        return self.tokens

    def iter_tokens(self) -> Iterator[Tok]:
        """Yield tokens lazily so callers can stop once a group balances"""
        while self.pos < self.stop:
            tok = self.scan_token()
            if tok is not None:
                yield tok

        self.mark()
        yield self.emit(TT.EOF, None)

    def scan_token(self) -> Optional[Tok]:
        """Scan next token; None when only whitespace was consumed"""
        self.mark()

        # Skip whitespace (not newlines)
        if self.skip_whitespace():
            return None

        ch = self.peek()

        # Newlines
        if ch in ('\n', '\r'):
            return self.scan_newline()

        # Comments
        if ch == '/' and self.peek(1) in ('/', '*'):
            return self.scan_comment()

        # Regex literals where an operand is expected
        if ch == '/' and not self._after_operand():
            return self.scan_regex()

        # String literals
        if ch in ('"', "'"):
            return self.scan_string()

        if ch == '`':
            return self.scan_template()

        # Numbers; the second dot of `0..5` is not a fraction
        leading_dot = ch == '.' and self.peek(1).isdigit()
        if ch.isdigit() or (leading_dot and not self._after_operand() and not self._after(TT.DOT)):
            return self.scan_number()

        # Identifiers and keywords
        if ch.isalpha() or ch in ('_', '$'):
            return self.scan_identifier()

        # Operators and punctuation
        return self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_newline(self) -> Tok:
        """Scan newline character"""
        if self.peek() == '\r' and self.peek(1) == '\n':
            self.advance(2)  # consume CRLF
        else:
            self.advance()

        return self.emit(TT.NEWLINE, '\n')

    def scan_comment(self) -> Tok:
        """Scan // line comment or /* block comment */"""
        if self.peek(1) == '/':
            while self.peek() not in ('\n', '\r', '\0'):
                self.advance()
            return self.emit(TT.COMMENT, self.text())

        self.advance(2)
        while self.pos < self.stop:
            if self.peek() == '*' and self.peek(1) == '/':
                self.advance(2)
                return self.emit(TT.COMMENT, self.text())
            self.advance()

        raise UnbalancedDelimiter("Unterminated block comment", self.tok_line, self.tok_column)

    def scan_string(self) -> Tok:
        """Scan string literal: "..." or '...'"""
        self.consume_quoted(self.peek())
        return self.emit(TT.STRING, self.text())

    def scan_template(self) -> Tok:
        """Scan template literal: `...${expr}...`"""
        self.consume_template(record=True)
        return self.emit(TT.STRING, self.text())

    def scan_regex(self) -> Tok:
        """Scan regex literal: /body/flags"""
        start_line, start_col = self.line, self.column
        self.advance()  # opening slash
        in_class = False

        while self.pos < self.stop:
            ch = self.peek()
            if ch == '\\':
                self.advance(2)
            elif ch in ('\n', '\r'):
                break
            elif ch == '[':
                in_class = True
                self.advance()
            elif ch == ']':
                in_class = False
                self.advance()
            elif ch == '/' and not in_class:
                self.advance()
                while self.peek().isalpha():
                    self.advance()
                return self.emit(TT.STRING, self.text())
            else:
                self.advance()

        raise UnbalancedDelimiter("Unterminated regex literal", start_line, start_col)

    def consume_quoted(self, quote: str) -> None:
        """Consume a quoted literal, keeping escape sequences as-is"""
        start_line, start_col = self.line, self.column
        self.advance()  # opening quote

        while self.pos < self.stop:
            ch = self.peek()
            if ch == '\\':
                self.advance(2)
            elif ch == quote:
                self.advance()
                return
            elif ch in ('\n', '\r'):
                break
            else:
                self.advance()

        raise UnbalancedDelimiter(f"Unterminated string {quote}", start_line, start_col)

    def consume_template(self, record: bool = False) -> None:
        start_line, start_col = self.line, self.column
        self.advance()  # opening backquote

        while self.pos < self.stop:
            ch = self.peek()
            if ch == '\\':
                self.advance(2)
            elif ch == '`':
                self.advance()
                return
            elif ch == '$' and self.peek(1) == '{':
                self.advance(2)
                body = self.pos
                self.consume_interpolation()
                if record:
                    self.interpolations.append((body, self.pos - 1))
            else:
                self.advance()

        raise UnbalancedDelimiter("Unterminated template string", start_line, start_col)

    def consume_interpolation(self) -> None:
        """Consume the body of ${...} up to its closing brace"""
        start_line, start_col = self.line, self.column
        depth = 1

        while self.pos < self.stop:
            ch = self.peek()
            if ch in ('"', "'"):
                self.consume_quoted(ch)
            elif ch == '`':
                self.consume_template()
            elif ch == '{':
                depth += 1
                self.advance()
            elif ch == '}':
                depth -= 1
                self.advance()
                if depth == 0:
                    return
            else:
                self.advance()

        raise UnbalancedDelimiter("Unterminated template expression", start_line, start_col)

    def scan_number(self) -> Tok:
        """Scan number literal (decimal, hex/octal/binary, exponent, BigInt)"""
        if self.peek() == '0' and self.peek(1) in ('x', 'X', 'o', 'O', 'b', 'B'):
            self.advance(2)
            while self.peek().isalnum() or self.peek() == '_':
                self.advance()
            return self.emit(TT.NUMBER, self.text())

        # Integer part
        while self.peek().isdigit() or self.peek() == '_':
            self.advance()

        # Decimal part
        if self.peek() == '.' and self.peek(1).isdigit():
            self.advance()  # .
            while self.peek().isdigit() or self.peek() == '_':
                self.advance()

        # Scientific notation
        if self.peek() in ('e', 'E') and (self.peek(1).isdigit() or self.peek(1) in ('+', '-')):
            self.advance()
            if self.peek() in ('+', '-'):
                self.advance()
            while self.peek().isdigit():
                self.advance()

        if self.peek() == 'n':
            self.advance()

        return self.emit(TT.NUMBER, self.text())

    def scan_identifier(self) -> Tok:
        """Scan identifier or keyword"""
        while self.peek().isalnum() or self.peek() in ('_', '$'):
            self.advance()

        value = self.text()

        # Property names may be keywords: obj.default, promise.catch
        if self.last is not None and self.last.type in (TT.DOT, TT.OPTDOT):
            return self.emit(TT.IDENT, value)

        token_type = self.KEYWORDS.get(value, TT.IDENT)
        return self.emit(token_type, value)

    def scan_operator(self) -> Tok:
        """Scan operators and punctuation"""
        # ?. is optional chaining unless it is a ternary followed by a number
        if self.source.startswith('?.', self.pos, self.stop) and not self.peek(2).isdigit():
            self.advance(2)
            return self.emit(TT.OPTDOT, '?.')

        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos, self.stop):
                self.advance(len(op_str))
                return self.emit(op_type, op_str)

        self.advance()
        return self.emit(TT.OP, self.text())

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < self.stop:
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        end = min(self.pos + n, self.stop)
        result = self.source[self.pos:end]
        for ch in result:
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos = end
        return result

    def skip_whitespace(self) -> bool:
        """Skip whitespace (not newlines), return True if any skipped"""
        skipped = False
        while self.peek() not in ('\n', '\r', '\0') and self.peek().isspace():
            self.advance()
            skipped = True
        return skipped

    def mark(self) -> None:
        self.tok_start = self.pos
        self.tok_line = self.line
        self.tok_column = self.column

    def text(self) -> str:
        return self.source[self.tok_start:self.pos]

    def _after(self, token_type: TT) -> bool:
        return self.last is not None and self.last.type == token_type

    def _after_operand(self) -> bool:
        return self.last is not None and self.last.type in self._OPERAND_END

    def emit(self, token_type: TT, value) -> Tok:
        """Emit a token spanning from the last mark to the current position"""
        tok = Tok(
            type=token_type,
            value=value,
            line=self.tok_line,
            column=self.tok_column,
            start=self.tok_start,
            end=self.pos,
        )
        self.tokens.append(tok)
        if token_type not in (TT.COMMENT, TT.NEWLINE):
            self.last = tok
        return tok


def tokenize(source: str, start: int = 0, end: Optional[int] = None) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source, start=start, end=end)
    return lexer.tokenize()


def iter_tokens(source: str, start: int = 0) -> Iterator[Tok]:
    return Lexer(source, start=start).iter_tokens()
