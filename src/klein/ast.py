"""
Abstract Syntax Tree (AST) node definitions for Klein.

A parsed program is a strict tree: every node owns its children and
nodes are never shared. Nodes are plain dataclasses, so two parses of
the same source compare equal.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union
from abc import ABC
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Literal(Expression):
    """A literal value (number, string, bool)."""
    value: Union[int, float, str, bool]
    literal_type: TokenType  # NUMBER_LITERAL, STRING_LITERAL, BOOL_LITERAL


@dataclass
class Identifier(Expression):
    """A variable reference."""
    name: str


@dataclass
class BinaryOp(Expression):
    """An arithmetic or comparison operation (e.g., a + b, n == 0)."""
    left: Expression
    operator: TokenType
    right: Expression


@dataclass
class LogicalOp(Expression):
    """A short-circuiting 'and' / 'or'."""
    left: Expression
    operator: TokenType  # AND or OR
    right: Expression


@dataclass
class UnaryOp(Expression):
    """A unary operation (not x, -n)."""
    operator: TokenType  # NOT or MINUS
    operand: Expression


@dataclass
class FunctionCall(Expression):
    """A call of a built-in function by name (e.g., print(x))."""
    name: str
    arguments: List[Expression] = field(default_factory=list)


@dataclass
class MethodCall(Expression):
    """A method call on a value (e.g., n.mod(3))."""
    receiver: Expression
    method: str
    arguments: List[Expression] = field(default_factory=list)


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class Block(Statement):
    """A brace-delimited statement list."""
    statements: List[Statement] = field(default_factory=list)


@dataclass
class ExpressionStatement(Statement):
    """An expression evaluated for its effect."""
    expression: Expression


@dataclass
class LetStatement(Statement):
    """let name = initializer;"""
    name: str
    initializer: Expression


@dataclass
class AssignmentStatement(Statement):
    """name = value;"""
    name: str
    value: Expression


@dataclass
class IfBranch:
    """One (condition, body) pair of an if / else if chain."""
    condition: Expression
    body: Block


@dataclass
class IfStatement(Statement):
    """if / else if / else chain."""
    branches: List[IfBranch]
    else_body: Optional[Block] = None


@dataclass
class ForStatement(Statement):
    """for variable in iterable { ... }"""
    variable: str
    iterable: Expression
    body: Block


@dataclass
class WhileStatement(Statement):
    """while condition { ... }"""
    condition: Expression
    body: Block


# =============================================================================
# Program
# =============================================================================

@dataclass
class Program(AstNode):
    """Root of the tree: the top-level statements in source order."""
    statements: List[Statement] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.statements)


# =============================================================================
# Debug output
# =============================================================================

def format_ast(node: AstNode) -> str:
    """
    Render an AST node as indented text for debugging.

    Uses an explicit work stack, so arbitrarily long operator chains
    format without recursion.
    """
    lines: List[str] = []
    # Items are either finished lines or (node, indent) pairs still to expand
    stack: List[Any] = [(node, 0)]

    while stack:
        item = stack.pop()
        if isinstance(item, str):
            lines.append(item)
            continue

        current, indent = item
        pad = "  " * indent
        lines.append(f"{pad}{current.__class__.__name__}")

        pending: List[Any] = []
        for name, value in current.__dict__.items():
            if name == "span":
                continue
            if isinstance(value, (AstNode, IfBranch)):
                pending.append(f"{pad}  {name}:")
                pending.append((value, indent + 2))
            elif isinstance(value, list):
                pending.append(f"{pad}  {name}: [")
                for entry in value:
                    if isinstance(entry, (AstNode, IfBranch)):
                        pending.append((entry, indent + 2))
                    else:
                        pending.append(f"{pad}    {entry!r}")
                pending.append(f"{pad}  ]")
            elif isinstance(value, TokenType):
                pending.append(f"{pad}  {name}: {value.name}")
            else:
                pending.append(f"{pad}  {name}: {value!r}")
        stack.extend(reversed(pending))

    return "\n".join(lines)
