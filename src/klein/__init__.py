"""
Klein - a small dynamically-typed scripting language.

This package provides:
- Lexer: Tokenizes Klein source code
- Parser: Builds a Program AST from tokens
- Checker: Validates a program without running it
- Interpreter: Walks the AST and executes it

Usage:
    from klein import tokenize, parse, run, execute

    tokens = tokenize('print(1.to(3));')
    program = parse('for n in 1.to(3) { print(n); }')
    run('for n in 1.to(3) { print(n); }')

    result = execute('print(x);')
    if not result.success:
        print(type(result.error).__name__, result.error.name)

Every failure raises a KleinError subclass whose payload is available as
attributes (e.g. UnexpectedToken.expected / .actual).
"""

import logging
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("klein-lang")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

# Silent unless the host application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

from .tokens import (
    Token,
    TokenType,
    TokenCategory,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
    parse_tokens,
)

from .ast import (
    # Base
    AstNode,
    # Expressions
    Expression,
    Literal,
    Identifier,
    BinaryOp,
    LogicalOp,
    UnaryOp,
    FunctionCall,
    MethodCall,
    # Statements
    Statement,
    Block,
    ExpressionStatement,
    LetStatement,
    AssignmentStatement,
    IfBranch,
    IfStatement,
    ForStatement,
    WhileStatement,
    Program,
    # Helpers
    format_ast,
)

from .errors import (
    KleinError,
    LexerError,
    ParserError,
    ExecutionError,
    UnrecognizedToken,
    UnexpectedToken,
    NestingTooDeep,
    UndefinedVariableReference,
    UnknownFunction,
    UnknownMethod,
    IncorrectArgumentCount,
    DuplicateVariableDeclaration,
    InvalidOperand,
    LoopLimitExceeded,
    EvaluationTooDeep,
    Diagnostic,
    DiagnosticCollector,
    ErrorSeverity,
)

from .config import (
    EngineConfig,
    load_config,
)

from .checker import (
    Checker,
    CheckResult,
    check,
)

from .runtime import (
    Interpreter,
    ExecutionContext,
    ExecutionResult,
    Value,
    ValueType,
    Range,
    run,
    execute,
)

__all__ = [
    "__version__",
    # Tokens
    "Token",
    "TokenType",
    "TokenCategory",
    "SourceLocation",
    "SourceSpan",
    "KEYWORDS",
    # Lexer
    "Lexer",
    "tokenize",
    # Parser
    "Parser",
    "parse",
    "parse_tokens",
    # AST
    "AstNode",
    "Expression",
    "Literal",
    "Identifier",
    "BinaryOp",
    "LogicalOp",
    "UnaryOp",
    "FunctionCall",
    "MethodCall",
    "Statement",
    "Block",
    "ExpressionStatement",
    "LetStatement",
    "AssignmentStatement",
    "IfBranch",
    "IfStatement",
    "ForStatement",
    "WhileStatement",
    "Program",
    "format_ast",
    # Errors
    "KleinError",
    "LexerError",
    "ParserError",
    "ExecutionError",
    "UnrecognizedToken",
    "UnexpectedToken",
    "NestingTooDeep",
    "UndefinedVariableReference",
    "UnknownFunction",
    "UnknownMethod",
    "IncorrectArgumentCount",
    "DuplicateVariableDeclaration",
    "InvalidOperand",
    "LoopLimitExceeded",
    "EvaluationTooDeep",
    "Diagnostic",
    "DiagnosticCollector",
    "ErrorSeverity",
    # Config
    "EngineConfig",
    "load_config",
    # Checker
    "Checker",
    "CheckResult",
    "check",
    # Runtime
    "Interpreter",
    "ExecutionContext",
    "ExecutionResult",
    "Value",
    "ValueType",
    "Range",
    "run",
    "execute",
]
