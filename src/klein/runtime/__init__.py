"""
Klein runtime - tree-walking evaluation of parsed programs.

This module provides:
- Interpreter: Executes a Program against an ExecutionContext
- Value: Runtime values tagged with their Klein type
- ExecutionContext: Scope stack, I/O and configuration for one run
- BuiltinRegistry: The closed set of built-in functions and methods
"""

from .values import (
    Value,
    ValueType,
    Range,
    NIL,
    number_val,
    string_val,
    bool_val,
    range_val,
    nil_val,
)

from .context import (
    Scope,
    ExecutionContext,
    stdout_sink,
    stdin_source,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
    call_builtin,
    call_method,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    run,
    execute,
)

__all__ = [
    # Values
    "Value",
    "ValueType",
    "Range",
    "NIL",
    "number_val",
    "string_val",
    "bool_val",
    "range_val",
    "nil_val",
    # Context
    "Scope",
    "ExecutionContext",
    "stdout_sink",
    "stdin_source",
    # Builtins
    "BuiltinFunction",
    "BuiltinRegistry",
    "get_builtin_registry",
    "call_builtin",
    "call_method",
    # Interpreter
    "Interpreter",
    "ExecutionResult",
    "run",
    "execute",
]
