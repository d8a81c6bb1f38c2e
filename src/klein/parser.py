"""
Recursive descent parser for Klein.

Converts a token list into a Program AST. Statements are terminated by
';' and bodies are brace-delimited blocks.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from .tokens import Token, TokenType, SourceLocation, SourceSpan
from .ast import (
    # Expressions
    Expression, Literal, Identifier, BinaryOp, LogicalOp, UnaryOp,
    FunctionCall, MethodCall,
    # Statements
    Statement, Block, ExpressionStatement, LetStatement, AssignmentStatement,
    IfBranch, IfStatement, ForStatement, WhileStatement,
    Program,
)
from .errors import KleinError, NestingTooDeep, UnexpectedToken
from .lexer import tokenize

logger = logging.getLogger(__name__)


class Parser:
    """
    Recursive descent parser for Klein.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()

    The parser implements precedence climbing for binary expressions:
        Lowest:  or
                 and
                 == !=
                 < > <= >=
                 + -
                 * /
                 unary (not -)
                 ^ (right-associative)
        Highest: method call (.name(args))

    Nested blocks and subexpressions are limited to MAX_NESTING_DEPTH
    levels; deeper input raises NestingTooDeep.
    """

    MAX_NESTING_DEPTH = 100

    # Operator precedence levels (higher = tighter binding)
    PRECEDENCE = {
        TokenType.OR: 1,
        TokenType.AND: 2,
        TokenType.EQ: 3,
        TokenType.NE: 3,
        TokenType.LT: 4,
        TokenType.GT: 4,
        TokenType.LE: 4,
        TokenType.GE: 4,
        TokenType.PLUS: 5,
        TokenType.MINUS: 5,
        TokenType.STAR: 6,
        TokenType.SLASH: 6,
    }

    LOGICAL = {TokenType.AND, TokenType.OR}

    def __init__(self, tokens: List[Token], filename: Optional[str] = None):
        self.tokens = list(tokens)
        self.filename = filename
        self.pos = 0
        self.depth = 0
        if not self.tokens or self.tokens[-1].type != TokenType.EOF:
            self.tokens.append(self._eof_token())

    def _eof_token(self) -> Token:
        if self.tokens:
            end = self.tokens[-1].span.end
        else:
            end = SourceLocation(1, 1, 0, self.filename)
        return Token(TokenType.EOF, "", SourceSpan(end, end))

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        """Get current token."""
        return self.tokens[min(self.pos, len(self.tokens) - 1)]

    def _peek(self, offset: int = 0) -> Token:
        """Peek at token at current position + offset."""
        return self.tokens[min(self.pos + offset, len(self.tokens) - 1)]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        return self._current().type in token_types

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType) -> Token:
        """Consume token of expected type, or raise UnexpectedToken."""
        if self._check(token_type):
            return self._advance()
        raise self._error(token_type)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _error(self, expected: TokenType) -> UnexpectedToken:
        token = self._current()
        return UnexpectedToken(expected, token.type, token.span, token.text)

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the last consumed token."""
        end_token = self.tokens[max(0, self.pos - 1)]
        return SourceSpan(start.span.start, end_token.span.end)

    @contextmanager
    def _nested(self) -> Iterator[None]:
        """Count one level of nesting for the duration of the block."""
        self.depth += 1
        try:
            if self.depth > self.MAX_NESTING_DEPTH:
                raise NestingTooDeep(self.MAX_NESTING_DEPTH, self._current().span)
            yield
        finally:
            self.depth -= 1

    # =========================================================================
    # Program and Statements
    # =========================================================================

    def parse_program(self) -> Program:
        """Parse statements until end of input."""
        start = self._current()
        statements = []
        while not self._is_at_end():
            statements.append(self._parse_statement())
        span = self._span_from(start) if statements else start.span
        logger.debug("parsed %d top-level statements", len(statements))
        return Program(span=span, statements=statements)

    def _parse_statement(self) -> Statement:
        if self._check(TokenType.FOR):
            return self._parse_for()
        if self._check(TokenType.IF):
            return self._parse_if()
        if self._check(TokenType.WHILE):
            return self._parse_while()
        if self._check(TokenType.LBRACE):
            return self._parse_block()
        if self._check(TokenType.LET):
            return self._parse_let()
        if self._check(TokenType.IDENTIFIER) and self._peek(1).type == TokenType.ASSIGN:
            return self._parse_assignment()
        return self._parse_expression_statement()

    def _parse_block(self) -> Block:
        """Parse '{' statement* '}'."""
        start = self._consume(TokenType.LBRACE)
        statements = []
        with self._nested():
            while not self._check(TokenType.RBRACE):
                if self._is_at_end():
                    raise self._error(TokenType.RBRACE)
                statements.append(self._parse_statement())
        self._consume(TokenType.RBRACE)
        return Block(span=self._span_from(start), statements=statements)

    def _parse_for(self) -> ForStatement:
        """Parse: for name in expr { ... }"""
        start = self._consume(TokenType.FOR)
        variable = self._consume(TokenType.IDENTIFIER).value
        self._consume(TokenType.IN)
        iterable = self._parse_expression()
        body = self._parse_block()
        return ForStatement(
            span=self._span_from(start),
            variable=variable,
            iterable=iterable,
            body=body,
        )

    def _parse_if(self) -> IfStatement:
        """Parse: if expr { ... } (else if expr { ... })* (else { ... })?"""
        start = self._consume(TokenType.IF)
        branches = [self._parse_if_branch()]
        else_body = None

        while self._match(TokenType.ELSE):
            if self._match(TokenType.IF):
                branches.append(self._parse_if_branch())
            else:
                else_body = self._parse_block()
                break

        return IfStatement(
            span=self._span_from(start),
            branches=branches,
            else_body=else_body,
        )

    def _parse_if_branch(self) -> IfBranch:
        condition = self._parse_expression()
        body = self._parse_block()
        return IfBranch(condition=condition, body=body)

    def _parse_while(self) -> WhileStatement:
        """Parse: while expr { ... }"""
        start = self._consume(TokenType.WHILE)
        condition = self._parse_expression()
        body = self._parse_block()
        return WhileStatement(span=self._span_from(start), condition=condition, body=body)

    def _parse_let(self) -> LetStatement:
        """Parse: let name = expr;"""
        start = self._consume(TokenType.LET)
        name = self._consume(TokenType.IDENTIFIER).value
        self._consume(TokenType.ASSIGN)
        initializer = self._parse_expression()
        self._consume(TokenType.SEMICOLON)
        return LetStatement(span=self._span_from(start), name=name, initializer=initializer)

    def _parse_assignment(self) -> AssignmentStatement:
        """Parse: name = expr;"""
        start = self._consume(TokenType.IDENTIFIER)
        self._consume(TokenType.ASSIGN)
        value = self._parse_expression()
        self._consume(TokenType.SEMICOLON)
        return AssignmentStatement(span=self._span_from(start), name=start.value, value=value)

    def _parse_expression_statement(self) -> ExpressionStatement:
        start = self._current()
        expression = self._parse_expression()
        self._consume(TokenType.SEMICOLON)
        return ExpressionStatement(span=self._span_from(start), expression=expression)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_expression(self) -> Expression:
        with self._nested():
            return self._parse_binary_expr(1)

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Parse binary expressions with precedence climbing.

        Operators of equal precedence loop here rather than recurse, so a
        long a + b + c + ... chain costs no extra nesting.
        """
        left = self._parse_unary_expr()

        while True:
            op_token = self._current()
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()  # consume operator
            with self._nested():
                right = self._parse_binary_expr(precedence + 1)

            node_type = LogicalOp if op_token.type in self.LOGICAL else BinaryOp
            left = node_type(
                span=SourceSpan(left.span.start, right.span.end),
                left=left,
                operator=op_token.type,
                right=right,
            )

        return left

    def _parse_unary_expr(self) -> Expression:
        """Parse unary expressions (not, -)."""
        if self._check_any(TokenType.NOT, TokenType.MINUS):
            op = self._advance()
            with self._nested():
                operand = self._parse_unary_expr()
            return UnaryOp(
                span=SourceSpan(op.span.start, operand.span.end),
                operator=op.type,
                operand=operand,
            )

        return self._parse_power_expr()

    def _parse_power_expr(self) -> Expression:
        """Parse base ^ exponent. Right-associative; the exponent may be negated."""
        base = self._parse_postfix_expr()
        if not self._match(TokenType.CARET):
            return base

        with self._nested():
            exponent = self._parse_unary_expr()
        return BinaryOp(
            span=SourceSpan(base.span.start, exponent.span.end),
            left=base,
            operator=TokenType.CARET,
            right=exponent,
        )

    def _parse_postfix_expr(self) -> Expression:
        """Parse method calls chained onto a primary: expr.name(args)"""
        expr = self._parse_primary_expr()

        while self._match(TokenType.DOT):
            method = self._consume(TokenType.IDENTIFIER).value
            self._consume(TokenType.LPAREN)
            arguments = self._parse_arguments()
            end = self._consume(TokenType.RPAREN)
            expr = MethodCall(
                span=SourceSpan(expr.span.start, end.span.end),
                receiver=expr,
                method=method,
                arguments=arguments,
            )

        return expr

    def _parse_arguments(self) -> List[Expression]:
        """Parse a comma-separated argument list up to (not including) ')'."""
        arguments: List[Expression] = []
        if self._check(TokenType.RPAREN):
            return arguments
        arguments.append(self._parse_expression())
        while self._match(TokenType.COMMA):
            arguments.append(self._parse_expression())
        return arguments

    def _parse_primary_expr(self) -> Expression:
        """Parse literals, identifiers, calls and parenthesized expressions."""
        token = self._current()

        if self._check_any(TokenType.NUMBER_LITERAL, TokenType.STRING_LITERAL,
                           TokenType.BOOL_LITERAL):
            self._advance()
            return Literal(span=token.span, value=token.value, literal_type=token.type)

        if self._check(TokenType.IDENTIFIER):
            self._advance()
            if self._match(TokenType.LPAREN):
                arguments = self._parse_arguments()
                self._consume(TokenType.RPAREN)
                return FunctionCall(span=self._span_from(token), name=token.value,
                                    arguments=arguments)
            return Identifier(span=token.span, name=token.value)

        if self._match(TokenType.LPAREN):
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN)
            return expr

        # Nothing can start an expression here
        raise self._error(TokenType.IDENTIFIER)


def parse_tokens(tokens: List[Token], filename: Optional[str] = None) -> Program:
    """
    Parse an already tokenized program.

    Raises:
        UnexpectedToken: If the tokens do not match the grammar
    """
    return Parser(tokens, filename).parse_program()


def parse(source: str, filename: Optional[str] = None) -> Program:
    """
    Convenience function to tokenize and parse source code.

    Args:
        source: The source code to parse
        filename: Optional filename for error messages

    Returns:
        Parsed Program AST

    Raises:
        UnrecognizedToken: If tokenization fails
        UnexpectedToken: If parsing fails
    """
    try:
        return parse_tokens(tokenize(source, filename), filename)
    except KleinError as e:
        e.attach_source(source)
        raise
