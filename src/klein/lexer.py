"""
Lexer for the Klein scripting language.

Converts source text into a list of tokens for the parser.
Supports:
- Identifiers and keywords (keywords are matched after the full identifier)
- Number literals (digits, optional fractional part)
- Double-quoted string literals without escape sequences
- Single-line comments (#)
- One and two character operators
"""

import logging
from typing import Iterator, List, Optional

from .tokens import Token, TokenType, SourceLocation, SourceSpan, KEYWORDS, OPERATORS
from .errors import UnrecognizedToken

logger = logging.getLogger(__name__)

WHITESPACE = " \t\r\n"
_OPERATOR_STARTS = frozenset(op[0] for op in OPERATORS)


def _is_identifier_start(ch: str) -> bool:
    return ch == '_' or ('a' <= ch <= 'z') or ('A' <= ch <= 'Z')


def _is_identifier_char(ch: str) -> bool:
    return _is_identifier_start(ch) or ('0' <= ch <= '9')


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


class Lexer:
    """
    Tokenizer for Klein source.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    Or for streaming (ends with an EOF token):
        for token in Lexer(source_code):
            process(token)

    Any failure raises UnrecognizedToken and discards the partial result.
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.split("\n")
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _skip_whitespace_and_comments(self) -> None:
        while not self._is_at_end():
            ch = self._peek()
            if ch in WHITESPACE:
                self._advance()
            elif ch == '#':
                while not self._is_at_end() and self._peek() != '\n':
                    self._advance()
            else:
                break

    def _can_start_token(self, offset: int = 0) -> bool:
        """True if the character at offset begins some token or separator."""
        ch = self._peek(offset)
        if ch in WHITESPACE or ch in ('"', '#'):
            return True
        if _is_identifier_start(ch) or _is_digit(ch):
            return True
        if ch == '!':
            # '!' only exists as part of '!='
            return self._peek(offset + 1) == '='
        return ch in _OPERATOR_STARTS

    def _error(self, start: SourceLocation) -> UnrecognizedToken:
        err = UnrecognizedToken(self.source[start.offset:self.pos], self._span(start))
        err.diagnostic.source_line = self.get_source_line(start.line)
        return err

    def _make_token(self, token_type: TokenType, start: SourceLocation, value=None) -> Token:
        text = self.source[start.offset:self.pos]
        return Token(token_type, text, self._span(start), value)

    def _scan_string(self) -> Token:
        """Scan a string literal. No escapes; may not cross a line break."""
        start = self._location()
        self._advance()  # opening quote

        while not self._is_at_end() and self._peek() not in ('"', '\n'):
            self._advance()

        if self._peek() != '"':
            raise self._error(start)

        self._advance()  # closing quote
        text = self.source[start.offset:self.pos]
        return self._make_token(TokenType.STRING_LITERAL, start, text[1:-1])

    def _scan_number(self) -> Token:
        """Scan a number literal.

        A '.' is only part of the number when a digit follows it, so
        `1.to(15)` scans as NUMBER DOT IDENTIFIER.
        """
        start = self._location()
        while _is_digit(self._peek()):
            self._advance()

        is_float = False
        if self._peek() == '.' and _is_digit(self._peek(1)):
            is_float = True
            self._advance()
            while _is_digit(self._peek()):
                self._advance()

        lexeme = self.source[start.offset:self.pos]
        try:
            value = float(lexeme) if is_float else int(lexeme)
        except ValueError:
            # Literal longer than Python's int conversion limit
            raise self._error(start)
        return self._make_token(TokenType.NUMBER_LITERAL, start, value)

    def _scan_identifier_or_keyword(self) -> Token:
        start = self._location()
        while _is_identifier_char(self._peek()):
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        token_type = KEYWORDS.get(lexeme)
        if token_type is TokenType.BOOL_LITERAL:
            return self._make_token(token_type, start, lexeme == "true")
        if token_type is not None:
            return self._make_token(token_type, start, lexeme)
        return self._make_token(TokenType.IDENTIFIER, start, lexeme)

    def _scan_operator(self) -> Optional[Token]:
        start = self._location()
        two = self._peek() + self._peek(1)
        if two in OPERATORS:
            self._advance()
            self._advance()
            return self._make_token(OPERATORS[two], start, two)
        one = self._peek()
        if one in OPERATORS:
            self._advance()
            return self._make_token(OPERATORS[one], start, one)
        return None

    def _scan_unrecognized(self) -> UnrecognizedToken:
        """Consume the maximal run of characters that start no token."""
        start = self._location()
        while not self._is_at_end() and not self._can_start_token():
            self._advance()
        return self._error(start)

    def _scan_token(self) -> Token:
        """Scan the next token, or EOF at end of input."""
        self._skip_whitespace_and_comments()

        if self._is_at_end():
            return self._make_token(TokenType.EOF, self._location())

        ch = self._peek()
        if ch == '"':
            return self._scan_string()
        if _is_digit(ch):
            return self._scan_number()
        if _is_identifier_start(ch):
            return self._scan_identifier_or_keyword()

        if self._can_start_token():
            token = self._scan_operator()
            if token is not None:
                return token

        raise self._scan_unrecognized()

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source. The result has no EOF token."""
        tokens = []
        while True:
            token = self._scan_token()
            if token.type == TokenType.EOF:
                break
            tokens.append(token)
        logger.debug("tokenized %d characters into %d tokens", len(self.source), len(tokens))
        return tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens, finishing with EOF."""
        while True:
            token = self._scan_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of tokens, without an end marker. Empty source gives [].

    Raises:
        UnrecognizedToken: If some text matches no token rule
    """
    return Lexer(source, filename).tokenize()
