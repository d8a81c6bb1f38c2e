"""
Static checker for Klein.

Validates a program without running it:
- Lexical and syntax errors (reported, not raised)
- References and assignments to names that are never bound
- 'let' redeclarations of a visible name
- Calls to unknown functions, and unknown methods on literal receivers
- Built-in calls with the wrong number of arguments

The checker follows the interpreter's scoping rules, so a program that
checks cleanly cannot fail at runtime with an undefined or duplicate name.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Set

from .ast import (
    Program, Statement, Block, ExpressionStatement, LetStatement,
    AssignmentStatement, IfStatement, ForStatement, WhileStatement,
    Expression, Literal, Identifier, BinaryOp, LogicalOp, UnaryOp,
    FunctionCall, MethodCall,
)
from .errors import (
    Diagnostic,
    DiagnosticCollector,
    DuplicateVariableDeclaration,
    IncorrectArgumentCount,
    KleinError,
    UndefinedVariableReference,
    UnknownFunction,
    UnknownMethod,
)
from .parser import parse
from .runtime.builtins import get_builtin_registry
from .tokens import TokenType

logger = logging.getLogger(__name__)

_LITERAL_TYPE_NAMES = {
    TokenType.NUMBER_LITERAL: "Number",
    TokenType.STRING_LITERAL: "String",
    TokenType.BOOL_LITERAL: "Boolean",
}


@dataclass
class CheckResult:
    """Result of checking a program."""
    collector: DiagnosticCollector
    program: Optional[Program] = None   # None when parsing failed

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return self.collector.diagnostics

    @property
    def has_errors(self) -> bool:
        return self.collector.has_errors


class Checker:
    """
    Walks a Program with a stack of declared-name sets.

    Usage:
        checker = Checker(source)
        checker.check_program(program)
        checker.diagnostics.format_all()
    """

    def __init__(self, source: Optional[str] = None, max_errors: int = 20):
        self.source = source
        self.diagnostics = DiagnosticCollector(max_errors=max_errors)
        self.registry = get_builtin_registry()
        self.scopes: List[Set[str]] = [set()]

    def _report(self, error: KleinError) -> None:
        if self.diagnostics.should_stop:
            return
        if self.source is not None:
            error.attach_source(self.source)
        self.diagnostics.add_error(error)

    def _is_declared(self, name: str) -> bool:
        return any(name in scope for scope in self.scopes)

    def _check_body(self, statements: List[Statement], binding: Optional[str] = None) -> None:
        self.scopes.append({binding} if binding else set())
        try:
            for stmt in statements:
                self._check_statement(stmt)
        finally:
            self.scopes.pop()

    # =========================================================================
    # Statements
    # =========================================================================

    def check_program(self, program: Program) -> None:
        for stmt in program.statements:
            self._check_statement(stmt)

    def _check_statement(self, stmt: Statement) -> None:
        if isinstance(stmt, ExpressionStatement):
            self._check_expression(stmt.expression)
        elif isinstance(stmt, LetStatement):
            self._check_expression(stmt.initializer)
            if self._is_declared(stmt.name):
                self._report(DuplicateVariableDeclaration(stmt.name, stmt.span))
            else:
                self.scopes[-1].add(stmt.name)
        elif isinstance(stmt, AssignmentStatement):
            self._check_expression(stmt.value)
            if not self._is_declared(stmt.name):
                self._report(UndefinedVariableReference(stmt.name, stmt.span))
        elif isinstance(stmt, ForStatement):
            self._check_expression(stmt.iterable)
            self._check_body(stmt.body.statements, binding=stmt.variable)
        elif isinstance(stmt, WhileStatement):
            self._check_expression(stmt.condition)
            self._check_body(stmt.body.statements)
        elif isinstance(stmt, IfStatement):
            for branch in stmt.branches:
                self._check_expression(branch.condition)
                self._check_body(branch.body.statements)
            if stmt.else_body is not None:
                self._check_body(stmt.else_body.statements)
        elif isinstance(stmt, Block):
            self._check_body(stmt.statements)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _check_expression(self, expr: Expression) -> None:
        if isinstance(expr, Identifier):
            if not self._is_declared(expr.name):
                self._report(UndefinedVariableReference(expr.name, expr.span))
        elif isinstance(expr, (BinaryOp, LogicalOp)):
            # Left-leaning chains are walked in a loop, not recursively
            rights = []
            while isinstance(expr, (BinaryOp, LogicalOp)):
                rights.append(expr.right)
                expr = expr.left
            self._check_expression(expr)
            for right in reversed(rights):
                self._check_expression(right)
        elif isinstance(expr, UnaryOp):
            self._check_expression(expr.operand)
        elif isinstance(expr, FunctionCall):
            for arg in expr.arguments:
                self._check_expression(arg)
            func = self.registry.get_function(expr.name)
            if func is None:
                self._report(UnknownFunction(expr.name, expr.span))
            elif func.arity != len(expr.arguments):
                self._report(IncorrectArgumentCount(
                    expr.name, func.arity, len(expr.arguments), expr.span))
        elif isinstance(expr, MethodCall):
            calls = []
            while isinstance(expr, MethodCall):
                calls.append(expr)
                expr = expr.receiver
            self._check_expression(expr)
            for call in reversed(calls):
                for arg in call.arguments:
                    self._check_expression(arg)
                self._check_method(call)

    def _check_method(self, call: MethodCall) -> None:
        # Receiver types are only known statically for literals
        if not isinstance(call.receiver, Literal):
            return
        type_name = _LITERAL_TYPE_NAMES[call.receiver.literal_type]
        method = self.registry.get_method(type_name, call.method)
        if method is None:
            self._report(UnknownMethod(type_name, call.method, call.span))
        elif method.arity != len(call.arguments):
            self._report(IncorrectArgumentCount(
                call.method, method.arity, len(call.arguments), call.span))


def check(source: str, filename: Optional[str] = None, max_errors: int = 20) -> CheckResult:
    """
    Check source code without executing it.

    Lexer and parser errors are reported as diagnostics rather than raised.

    Returns:
        CheckResult with diagnostics and, if parsing succeeded, the Program
    """
    checker = Checker(source, max_errors=max_errors)
    try:
        program = parse(source, filename)
    except KleinError as e:
        checker.diagnostics.add_error(e)
        return CheckResult(checker.diagnostics)

    checker.check_program(program)
    logger.debug("checked %d statements: %d error(s)",
                 len(program.statements), checker.diagnostics.error_count)
    return CheckResult(checker.diagnostics, program)
