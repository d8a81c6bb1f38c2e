"""
Unit tests for the Klein lexer.
"""

import pytest
from klein import (
    tokenize, Lexer, TokenType, TokenCategory, LexerError, UnrecognizedToken, KleinError,
)


def types(source):
    return [t.type for t in tokenize(source)]


class TestLexerBasics:
    """Test basic lexer functionality."""

    def test_empty_source(self):
        """Empty source produces no tokens."""
        assert tokenize("") == []

    def test_whitespace_only(self):
        """Whitespace is discarded entirely."""
        assert tokenize("  \t\n\r\n  ") == []

    def test_print_statement(self):
        """A call statement tokenizes to the expected kinds."""
        assert types("print(x);") == [
            TokenType.IDENTIFIER,
            TokenType.LPAREN,
            TokenType.IDENTIFIER,
            TokenType.RPAREN,
            TokenType.SEMICOLON,
        ]

    def test_positions_are_offsets(self):
        """Token position is the 0-based offset of its first character."""
        tokens = tokenize("print(x);")
        assert [t.position for t in tokens] == [0, 5, 6, 7, 8]

    def test_multiline_position_tracking(self):
        """Line and column are tracked across newlines."""
        tokens = tokenize("let x = 5;\n  let y = 10;")
        lets = [t for t in tokens if t.type == TokenType.LET]
        assert lets[0].span.start.line == 1
        assert lets[1].span.start.line == 2
        assert lets[1].span.start.column == 3
        assert lets[1].position == 13

    def test_identifier_value(self):
        """Identifier token carries its name."""
        token = tokenize("foo_bar123")[0]
        assert token.type == TokenType.IDENTIFIER
        assert token.value == "foo_bar123"
        assert token.text == "foo_bar123"

    def test_iteration_ends_with_eof(self):
        """Iterating a Lexer yields tokens then EOF."""
        kinds = [t.type for t in Lexer("x;")]
        assert kinds == [TokenType.IDENTIFIER, TokenType.SEMICOLON, TokenType.EOF]


class TestKeywords:
    """Test keyword recognition."""

    @pytest.mark.parametrize("word,expected", [
        ("for", TokenType.FOR),
        ("in", TokenType.IN),
        ("if", TokenType.IF),
        ("else", TokenType.ELSE),
        ("and", TokenType.AND),
        ("or", TokenType.OR),
        ("not", TokenType.NOT),
        ("let", TokenType.LET),
        ("while", TokenType.WHILE),
    ])
    def test_keyword(self, word, expected):
        """Each reserved word has its own token type."""
        assert types(word) == [expected]

    def test_keyword_prefix_is_identifier(self):
        """Longest match: 'format' and 'iffy' are identifiers, not keywords."""
        assert types("format iffy android") == [TokenType.IDENTIFIER] * 3

    def test_boolean_literals(self):
        """true/false are boolean literals with Python values."""
        tokens = tokenize("true false")
        assert [t.type for t in tokens] == [TokenType.BOOL_LITERAL] * 2
        assert [t.value for t in tokens] == [True, False]

    def test_keywords_are_case_sensitive(self):
        """'For' and 'True' are ordinary identifiers."""
        assert types("For True") == [TokenType.IDENTIFIER, TokenType.IDENTIFIER]


class TestNumbers:
    """Test number literals."""

    def test_integer(self):
        token = tokenize("42")[0]
        assert token.type == TokenType.NUMBER_LITERAL
        assert token.value == 42

    def test_fraction(self):
        """Digits after a dot form a fractional number."""
        token = tokenize("2.5")[0]
        assert token.value == 2.5
        assert token.text == "2.5"

    def test_method_call_on_number(self):
        """A dot not followed by a digit is a separate DOT token."""
        assert types("1.to(15)") == [
            TokenType.NUMBER_LITERAL,
            TokenType.DOT,
            TokenType.IDENTIFIER,
            TokenType.LPAREN,
            TokenType.NUMBER_LITERAL,
            TokenType.RPAREN,
        ]

    def test_number_then_identifier(self):
        """Digits end where letters begin."""
        tokens = tokenize("12ab")
        assert [t.type for t in tokens] == [TokenType.NUMBER_LITERAL, TokenType.IDENTIFIER]
        assert tokens[1].value == "ab"


class TestStrings:
    """Test string literals."""

    def test_simple_string(self):
        """Text keeps the quotes; value does not."""
        token = tokenize('"hello world"')[0]
        assert token.type == TokenType.STRING_LITERAL
        assert token.text == '"hello world"'
        assert token.value == "hello world"

    def test_empty_string(self):
        assert tokenize('""')[0].value == ""

    def test_backslash_is_literal(self):
        """There are no escape sequences."""
        assert tokenize(r'"a\nb"')[0].value == "a\\nb"

    def test_unterminated_string(self):
        """An unterminated string is an unrecognized token."""
        with pytest.raises(UnrecognizedToken) as exc_info:
            tokenize('print("abc')
        assert exc_info.value.text == '"abc'

    def test_string_cannot_span_lines(self):
        """The offending text stops at the end of the line."""
        with pytest.raises(UnrecognizedToken) as exc_info:
            tokenize('"abc\ndef"')
        assert exc_info.value.text == '"abc'


class TestOperators:
    """Test operators and punctuation."""

    def test_single_char(self):
        assert types("+ - * / . = < > { } ( ) , ;") == [
            TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH,
            TokenType.DOT, TokenType.ASSIGN, TokenType.LT, TokenType.GT,
            TokenType.LBRACE, TokenType.RBRACE, TokenType.LPAREN, TokenType.RPAREN,
            TokenType.COMMA, TokenType.SEMICOLON,
        ]

    def test_two_char(self):
        """Two-character operators win over their one-character prefixes."""
        assert types("== != <= >=") == [
            TokenType.EQ, TokenType.NE, TokenType.LE, TokenType.GE,
        ]

    def test_caret(self):
        assert types("2^3") == [
            TokenType.NUMBER_LITERAL, TokenType.CARET, TokenType.NUMBER_LITERAL,
        ]
        assert TokenType.CARET.category == TokenCategory.OPERATOR
        assert TokenType.CARET.description == "'^'"

    def test_assign_then_eq(self):
        assert types("a===b") == [
            TokenType.IDENTIFIER, TokenType.EQ, TokenType.ASSIGN, TokenType.IDENTIFIER,
        ]

    def test_categories(self):
        assert TokenType.FOR.category == TokenCategory.KEYWORD
        assert TokenType.EQ.category == TokenCategory.OPERATOR
        assert TokenType.LBRACE.category == TokenCategory.PUNCTUATION
        assert TokenType.NUMBER_LITERAL.category == TokenCategory.LITERAL
        assert TokenType.IDENTIFIER.category == TokenCategory.IDENTIFIER

    def test_descriptions(self):
        assert TokenType.LBRACE.description == "'{'"
        assert TokenType.IDENTIFIER.description == "identifier"
        assert TokenType.EOF.description == "end of input"


class TestComments:
    """Test comment handling."""

    def test_comment_is_skipped(self):
        assert types("# a comment\nx;") == [TokenType.IDENTIFIER, TokenType.SEMICOLON]

    def test_trailing_comment(self):
        assert types("x; # done") == [TokenType.IDENTIFIER, TokenType.SEMICOLON]

    def test_hash_inside_string(self):
        """A '#' inside a string does not start a comment."""
        assert tokenize('"#1"')[0].value == "#1"


class TestErrors:
    """Test unrecognized input."""

    def test_unrecognized_run(self):
        """The whole run of bad characters is reported."""
        with pytest.raises(UnrecognizedToken) as exc_info:
            tokenize("@@@")
        assert exc_info.value.text == "@@@"

    def test_error_hierarchy(self):
        with pytest.raises(LexerError):
            tokenize("$")
        with pytest.raises(KleinError):
            tokenize("$")

    def test_run_stops_at_valid_character(self):
        with pytest.raises(UnrecognizedToken) as exc_info:
            tokenize("x = @$(1);")
        assert exc_info.value.text == "@$"

    def test_lone_bang(self):
        """'!' is only valid as part of '!='."""
        with pytest.raises(UnrecognizedToken) as exc_info:
            tokenize("! x")
        assert exc_info.value.text == "!"

    def test_error_location(self):
        with pytest.raises(UnrecognizedToken) as exc_info:
            tokenize("x = 1;\ny = @;")
        err = exc_info.value
        assert err.span.start.line == 2
        assert err.span.start.column == 5
        assert err.code == "E001"
        assert err.diagnostic.source_line == "y = @;"

    def test_no_partial_result(self):
        """An error anywhere fails the whole call."""
        with pytest.raises(UnrecognizedToken):
            tokenize("print(1); print(2); ~")


class TestReconstruction:
    """Token texts cover the source with nothing skipped."""

    def test_concatenated_text(self):
        source = 'for n in 1.to(3) {\n  print("hi");  # greet\n}'
        tokens = tokenize(source)
        assert "".join(t.text for t in tokens) == 'fornin1.to(3){print("hi");}'

    def test_tokens_do_not_overlap(self):
        source = "if a.mod(3) == 0 and b { print(a); }"
        tokens = tokenize(source)
        for prev, nxt in zip(tokens, tokens[1:]):
            assert prev.span.end.offset <= nxt.position
        for token in tokens:
            assert source[token.position:token.span.end.offset] == token.text

    def test_tokenize_is_repeatable(self):
        source = "let x = 1; print(x);"
        assert tokenize(source) == tokenize(source)
