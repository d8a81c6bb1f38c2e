"""
Tree-walking interpreter for Klein.

Statements run in order against an ExecutionContext. Every failure is
raised as a KleinError subclass; nothing is recovered internally.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .values import Value, ValueType, number_val, string_val, bool_val
from .context import ExecutionContext, OutputSink, InputSource, stdout_sink, stdin_source
from .builtins import call_builtin, call_method

from ..ast import (
    Program, Statement, Block, ExpressionStatement, LetStatement,
    AssignmentStatement, IfStatement, ForStatement, WhileStatement,
    Expression, Literal, Identifier, BinaryOp, LogicalOp, UnaryOp,
    FunctionCall, MethodCall,
)
from ..config import EngineConfig
from ..errors import KleinError, InvalidOperand, LoopLimitExceeded
from ..parser import parse
from ..tokens import SourceSpan, TokenType

logger = logging.getLogger(__name__)


_ARITHMETIC = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.CARET: "^",
}

_ORDERING = {
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
}

# Largest exact integer power computed, in bits
_MAX_POWER_BITS = 1 << 16


class Interpreter:
    """
    Tree-walking interpreter for Klein programs.

    Evaluates AST nodes by dispatching on node type. An Interpreter holds
    no per-run state; all of it lives in the ExecutionContext.
    """

    def run(self, program: Program, ctx: ExecutionContext) -> None:
        """Execute every top-level statement in the context's top scope."""
        logger.debug("running %d statements", len(program.statements))
        for stmt in program.statements:
            self._execute_statement(stmt, ctx)

    # =========================================================================
    # Statements
    # =========================================================================

    def _execute_statement(self, stmt: Statement, ctx: ExecutionContext) -> None:
        """Execute a statement."""
        if ctx.config.trace:
            logger.debug("exec %s at %s", type(stmt).__name__, stmt.span.start)

        with ctx.nested(stmt.span):
            if isinstance(stmt, ExpressionStatement):
                self._evaluate(stmt.expression, ctx)
            elif isinstance(stmt, LetStatement):
                value = self._evaluate(stmt.initializer, ctx)
                ctx.declare(stmt.name, value, stmt.span)
            elif isinstance(stmt, AssignmentStatement):
                value = self._evaluate(stmt.value, ctx)
                ctx.assign(stmt.name, value, stmt.span)
            elif isinstance(stmt, ForStatement):
                self._execute_for(stmt, ctx)
            elif isinstance(stmt, WhileStatement):
                self._execute_while(stmt, ctx)
            elif isinstance(stmt, IfStatement):
                self._execute_if(stmt, ctx)
            elif isinstance(stmt, Block):
                with ctx.new_scope("block"):
                    self._execute_statements(stmt.statements, ctx)
            else:
                raise TypeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_statements(self, statements: List[Statement], ctx: ExecutionContext) -> None:
        for stmt in statements:
            self._execute_statement(stmt, ctx)

    def _execute_for(self, stmt: ForStatement, ctx: ExecutionContext) -> None:
        """Run the body once per integer of the range, in a fresh scope each time."""
        iterable = self._evaluate(stmt.iterable, ctx)
        if iterable.type != ValueType.RANGE:
            raise InvalidOperand(
                f"for loop needs a Range, got {iterable.type_name}", stmt.iterable.span)

        limit = ctx.config.max_loop_iterations
        for count, i in enumerate(iterable.data):
            if limit is not None and count >= limit:
                raise LoopLimitExceeded(limit, stmt.span)
            with ctx.new_scope("for"):
                # The loop variable may shadow an outer name
                ctx.bind(stmt.variable, number_val(i))
                self._execute_statements(stmt.body.statements, ctx)

    def _execute_while(self, stmt: WhileStatement, ctx: ExecutionContext) -> None:
        limit = ctx.config.max_loop_iterations
        count = 0
        while self._condition(stmt.condition, ctx):
            if limit is not None and count >= limit:
                raise LoopLimitExceeded(limit, stmt.span)
            count += 1
            with ctx.new_scope("while"):
                self._execute_statements(stmt.body.statements, ctx)

    def _execute_if(self, stmt: IfStatement, ctx: ExecutionContext) -> None:
        """Run the first branch whose condition is true, else the else body."""
        for branch in stmt.branches:
            if self._condition(branch.condition, ctx):
                with ctx.new_scope("if"):
                    self._execute_statements(branch.body.statements, ctx)
                return

        if stmt.else_body is not None:
            with ctx.new_scope("else"):
                self._execute_statements(stmt.else_body.statements, ctx)

    def _condition(self, expr: Expression, ctx: ExecutionContext) -> bool:
        value = self._evaluate(expr, ctx)
        if value.type != ValueType.BOOLEAN:
            raise InvalidOperand(f"condition must be a Boolean, got {value.type_name}", expr.span)
        return value.data

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression, ctx: ExecutionContext) -> Value:
        """Evaluate an expression to produce a Value."""
        with ctx.nested(expr.span):
            if isinstance(expr, Literal):
                return self._eval_literal(expr)
            elif isinstance(expr, Identifier):
                return ctx.lookup(expr.name, expr.span)
            elif isinstance(expr, (BinaryOp, LogicalOp)):
                return self._eval_operator_chain(expr, ctx)
            elif isinstance(expr, UnaryOp):
                return self._eval_unary_op(expr, ctx)
            elif isinstance(expr, FunctionCall):
                args = [self._evaluate(arg, ctx) for arg in expr.arguments]
                return call_builtin(ctx, expr.name, args, expr.span)
            elif isinstance(expr, MethodCall):
                return self._eval_method_chain(expr, ctx)
            else:
                raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_literal(self, lit: Literal) -> Value:
        if lit.literal_type == TokenType.NUMBER_LITERAL:
            return number_val(lit.value)
        elif lit.literal_type == TokenType.BOOL_LITERAL:
            return bool_val(lit.value)
        return string_val(lit.value)

    def _eval_operator_chain(self, expr: Expression, ctx: ExecutionContext) -> Value:
        """
        Evaluate a left-leaning run of binary and logical operators.

        a + b + c parses as ((a + b) + c). The left spine is walked in a
        loop so a long chain does not recurse once per operand. Operands
        are still evaluated left to right.
        """
        chain = []
        node = expr
        while isinstance(node, (BinaryOp, LogicalOp)):
            chain.append(node)
            node = node.left

        value = self._evaluate(node, ctx)
        for op in reversed(chain):
            if isinstance(op, LogicalOp):
                value = self._apply_logical(op, value, ctx)
            else:
                value = self._apply_binary(op, value, self._evaluate(op.right, ctx))
        return value

    def _eval_method_chain(self, expr: MethodCall, ctx: ExecutionContext) -> Value:
        """Evaluate a.f().g().h() receiver first, one call at a time."""
        calls = []
        node: Expression = expr
        while isinstance(node, MethodCall):
            calls.append(node)
            node = node.receiver

        value = self._evaluate(node, ctx)
        for call in reversed(calls):
            args = [self._evaluate(arg, ctx) for arg in call.arguments]
            value = call_method(ctx, value, call.method, args, call.span)
        return value

    def _apply_logical(self, op: LogicalOp, left: Value, ctx: ExecutionContext) -> Value:
        """Short-circuit: the right side runs only when the left does not decide."""
        decided = _require_boolean(left, op.operator, op.left.span)
        if op.operator == TokenType.AND and not decided:
            return bool_val(False)
        if op.operator == TokenType.OR and decided:
            return bool_val(True)
        right = self._evaluate(op.right, ctx)
        return bool_val(_require_boolean(right, op.operator, op.right.span))

    def _apply_binary(self, op: BinaryOp, left: Value, right: Value) -> Value:
        # Equality works across types; different types are never equal
        if op.operator == TokenType.EQ:
            return bool_val(left == right)
        if op.operator == TokenType.NE:
            return bool_val(left != right)

        if op.operator == TokenType.PLUS and left.type == right.type == ValueType.STRING:
            return string_val(left.data + right.data)

        symbol = _ARITHMETIC.get(op.operator) or _ORDERING.get(op.operator)
        if left.type != ValueType.NUMBER or right.type != ValueType.NUMBER:
            raise InvalidOperand(
                f"unsupported operand types for {symbol}: "
                f"{left.type_name} and {right.type_name}", op.span)

        a, b = left.data, right.data
        try:
            if op.operator == TokenType.PLUS:
                return number_val(a + b)
            elif op.operator == TokenType.MINUS:
                return number_val(a - b)
            elif op.operator == TokenType.STAR:
                return number_val(a * b)
            elif op.operator == TokenType.SLASH:
                if b == 0:
                    raise InvalidOperand("division by zero", op.span)
                return number_val(a / b)
            elif op.operator == TokenType.CARET:
                return number_val(_power(a, b, op.span))
            elif op.operator == TokenType.LT:
                return bool_val(a < b)
            elif op.operator == TokenType.GT:
                return bool_val(a > b)
            elif op.operator == TokenType.LE:
                return bool_val(a <= b)
            elif op.operator == TokenType.GE:
                return bool_val(a >= b)
        except OverflowError:
            raise InvalidOperand(f"result of {symbol} is too large", op.span)
        raise TypeError(f"Unknown binary operator: {op.operator.name}")

    def _eval_unary_op(self, op: UnaryOp, ctx: ExecutionContext) -> Value:
        operand = self._evaluate(op.operand, ctx)
        if op.operator == TokenType.NOT:
            if operand.type != ValueType.BOOLEAN:
                raise InvalidOperand(f"'not' needs a Boolean, got {operand.type_name}", op.span)
            return bool_val(not operand.data)
        if operand.type != ValueType.NUMBER:
            raise InvalidOperand(f"unary '-' needs a Number, got {operand.type_name}", op.span)
        return number_val(-operand.data)


def _require_boolean(value: Value, operator: TokenType, span: Optional[SourceSpan]) -> bool:
    if value.type != ValueType.BOOLEAN:
        raise InvalidOperand(
            f"'{operator.name.lower()}' needs Boolean operands, got {value.type_name}", span)
    return value.data


def _power(base: Union[int, float], exponent: Union[int, float],
           span: Optional[SourceSpan]) -> Union[int, float]:
    if base == 0 and exponent < 0:
        raise InvalidOperand("zero cannot be raised to a negative power", span)
    if base < 0 and isinstance(exponent, float):
        raise InvalidOperand("a negative number has no fractional power", span)
    if isinstance(base, int) and isinstance(exponent, int) and exponent > 0 and abs(base) > 1:
        # Exact integer powers grow without bound; refuse before computing
        if abs(base).bit_length() * exponent > _MAX_POWER_BITS:
            raise InvalidOperand("result of ^ is too large", span)
    return base ** exponent


# =============================================================================
# High-level API
# =============================================================================

def run(
    source: str,
    output: Optional[OutputSink] = None,
    input: Optional[InputSource] = None,
    config: Optional[EngineConfig] = None,
    filename: Optional[str] = None,
) -> None:
    """
    Parse and execute Klein source code.

        from klein import run

        run('for n in 1.to(3) { print(n); }')

    Args:
        source: Klein source code
        output: Called with each printed line; defaults to standard output
        input: Called to read a line for input(); defaults to standard input
        config: Engine settings; defaults to EngineConfig()
        filename: Optional filename for error messages

    Raises:
        UnrecognizedToken, UnexpectedToken: propagated from parsing
        ExecutionError: any runtime failure, e.g. UndefinedVariableReference
    """
    try:
        program = parse(source, filename)
        ctx = ExecutionContext(
            output=output or stdout_sink,
            input=input or stdin_source,
            config=config or EngineConfig(),
        )
        Interpreter().run(program, ctx)
    except KleinError as e:
        e.attach_source(source)
        raise


@dataclass
class ExecutionResult:
    """Result of executing a program with execute()."""
    success: bool
    output: List[str] = field(default_factory=list)
    error: Optional[KleinError] = None

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return self.error.message


def execute(
    source: str,
    input: Optional[InputSource] = None,
    config: Optional[EngineConfig] = None,
    filename: Optional[str] = None,
) -> ExecutionResult:
    """
    Run source and capture the outcome as a value instead of an exception.

        result = execute('print("hi");')
        if result.success:
            print(result.output)
        else:
            print(result.error.code, result.error_message)

    Output printed before a failure is kept in result.output.
    """
    lines: List[str] = []
    try:
        run(source, output=lines.append, input=input, config=config, filename=filename)
    except KleinError as e:
        return ExecutionResult(success=False, output=lines, error=e)
    return ExecutionResult(success=True, output=lines)
