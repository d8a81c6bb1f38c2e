"""
Execution context for the Klein interpreter.

Holds the scope stack, the output sink and input source, and the engine
configuration for a single run. A new context is created for every run,
so nothing leaks between calls.
"""

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional

from .values import Value
from ..config import EngineConfig
from ..errors import (
    DuplicateVariableDeclaration,
    EvaluationTooDeep,
    UndefinedVariableReference,
)
from ..tokens import SourceSpan

logger = logging.getLogger(__name__)

Scope = Dict[str, Value]
OutputSink = Callable[[str], None]
InputSource = Callable[[], str]


def stdout_sink(line: str) -> None:
    """Default output sink: one line per call on standard output."""
    sys.stdout.write(line + "\n")


def stdin_source() -> str:
    """Default input source: one line from standard input, without newline."""
    line = sys.stdin.readline()
    return line[:-1] if line.endswith("\n") else line


@dataclass
class ExecutionContext:
    """
    The full execution context for interpreting Klein code.

    Tracks:
    - The scope stack (index 0 is the top-level scope)
    - Where print writes and where input reads
    - Engine limits and tracing
    - How deeply the interpreter is nested in the program tree
    """
    MAX_NESTING_DEPTH = 200

    output: OutputSink = stdout_sink
    input: InputSource = stdin_source
    config: EngineConfig = field(default_factory=EngineConfig)
    scopes: List[Scope] = field(default_factory=lambda: [{}])
    nesting: int = 0

    @property
    def depth(self) -> int:
        return len(self.scopes)

    def lookup(self, name: str, span: Optional[SourceSpan] = None) -> Value:
        """Find a variable, innermost scope first."""
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        raise UndefinedVariableReference(name, span)

    def is_defined(self, name: str) -> bool:
        return any(name in scope for scope in self.scopes)

    def declare(self, name: str, value: Value, span: Optional[SourceSpan] = None) -> None:
        """Bind a new name in the innermost scope.

        Klein forbids redeclaring a name that is visible from here, even
        one that lives in an outer scope.
        """
        if self.is_defined(name):
            raise DuplicateVariableDeclaration(name, span)
        self.scopes[-1][name] = value

    def bind(self, name: str, value: Value) -> None:
        """Bind a name in the innermost scope, shadowing outer bindings."""
        self.scopes[-1][name] = value

    def assign(self, name: str, value: Value, span: Optional[SourceSpan] = None) -> None:
        """Rebind the nearest existing binding of name."""
        for scope in reversed(self.scopes):
            if name in scope:
                scope[name] = value
                return
        raise UndefinedVariableReference(name, span)

    @contextmanager
    def nested(self, span: Optional[SourceSpan] = None) -> Iterator[None]:
        """Track one level of statement or expression nesting."""
        self.nesting += 1
        try:
            if self.nesting > self.MAX_NESTING_DEPTH:
                raise EvaluationTooDeep(self.MAX_NESTING_DEPTH, span)
            yield
        finally:
            self.nesting -= 1

    @contextmanager
    def new_scope(self, name: str = "block") -> Iterator[Scope]:
        """
        Context manager to push a nested scope and always pop it.

        Usage:
            with ctx.new_scope("for-loop") as scope:
                ctx.bind("i", number_val(0))
        """
        scope: Scope = {}
        self.scopes.append(scope)
        if self.config.trace:
            logger.debug("enter %s scope (depth %d)", name, self.depth)
        try:
            yield scope
        finally:
            self.scopes.pop()
            if self.config.trace:
                logger.debug("exit %s scope (depth %d)", name, self.depth)
