"""
Token types for the Klein lexer.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional


class TokenCategory(Enum):
    """Coarse grouping of token types, used for display."""
    LITERAL = "literal"
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    END = "end"


class TokenType(Enum):
    """All token types recognized by the Klein lexer."""

    # --- Literals ---
    NUMBER_LITERAL = auto()     # 42, 2.5
    STRING_LITERAL = auto()     # "hello"
    BOOL_LITERAL = auto()       # true, false

    # --- Identifiers ---
    IDENTIFIER = auto()         # user-defined names

    # --- Keywords ---
    FOR = auto()                # for
    IN = auto()                 # in
    IF = auto()                 # if
    ELSE = auto()               # else
    WHILE = auto()              # while
    LET = auto()                # let
    AND = auto()                # and
    OR = auto()                 # or
    NOT = auto()                # not

    # --- Operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    CARET = auto()              # ^ (power)
    DOT = auto()                # .
    EQ = auto()                 # ==
    NE = auto()                 # !=
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=
    ASSIGN = auto()             # =

    # --- Punctuation ---
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    COMMA = auto()              # ,
    SEMICOLON = auto()          # ;

    # --- Special ---
    EOF = auto()                # end of input, parser use only

    @property
    def category(self) -> TokenCategory:
        if self in LITERAL_TYPES:
            return TokenCategory.LITERAL
        if self is TokenType.IDENTIFIER:
            return TokenCategory.IDENTIFIER
        if self in KEYWORD_TYPES:
            return TokenCategory.KEYWORD
        if self in OPERATOR_TYPES:
            return TokenCategory.OPERATOR
        if self is TokenType.EOF:
            return TokenCategory.END
        return TokenCategory.PUNCTUATION

    @property
    def description(self) -> str:
        """Human-readable name used in diagnostics."""
        return _DESCRIPTIONS[self]


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    text: str               # Exact source lexeme
    span: SourceSpan        # Location in source
    value: Any = None       # Decoded literal value or identifier name

    @property
    def position(self) -> int:
        """0-based offset of the first character."""
        return self.span.start.offset

    def __str__(self) -> str:
        if self.type in LITERAL_TYPES or self.type is TokenType.IDENTIFIER:
            return f"{self.type.name}({self.value!r})"
        return self.type.name


LITERAL_TYPES: FrozenSet[TokenType] = frozenset({
    TokenType.NUMBER_LITERAL,
    TokenType.STRING_LITERAL,
    TokenType.BOOL_LITERAL,
})

KEYWORD_TYPES: FrozenSet[TokenType] = frozenset({
    TokenType.FOR, TokenType.IN, TokenType.IF, TokenType.ELSE,
    TokenType.WHILE, TokenType.LET,
    TokenType.AND, TokenType.OR, TokenType.NOT,
})

OPERATOR_TYPES: FrozenSet[TokenType] = frozenset({
    TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH, TokenType.CARET,
    TokenType.DOT, TokenType.EQ, TokenType.NE,
    TokenType.LT, TokenType.GT, TokenType.LE, TokenType.GE,
    TokenType.ASSIGN,
})


# Keyword mapping - maps string to token type
KEYWORDS: Dict[str, TokenType] = {
    "for": TokenType.FOR,
    "in": TokenType.IN,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "let": TokenType.LET,

    # Logical operators
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,

    # Boolean literals
    "true": TokenType.BOOL_LITERAL,
    "false": TokenType.BOOL_LITERAL,
}


# Operators, longest first so two-character forms win
OPERATORS: Dict[str, TokenType] = {
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "^": TokenType.CARET,
    ".": TokenType.DOT,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "=": TokenType.ASSIGN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
}


_DESCRIPTIONS: Dict[TokenType, str] = {
    TokenType.NUMBER_LITERAL: "number",
    TokenType.STRING_LITERAL: "string",
    TokenType.BOOL_LITERAL: "boolean",
    TokenType.IDENTIFIER: "identifier",
    TokenType.EOF: "end of input",
}
_DESCRIPTIONS.update({tt: f"'{kw}'" for kw, tt in KEYWORDS.items()
                      if tt is not TokenType.BOOL_LITERAL})
_DESCRIPTIONS.update({tt: f"'{op}'" for op, tt in OPERATORS.items()})
