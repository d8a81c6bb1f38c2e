"""
Klein exceptions and diagnostics.

Every failure is a distinct exception class whose payload lives on plain
attributes, so callers can branch on the kind without parsing messages.
Each exception also wraps a Diagnostic for display and tooling.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .tokens import SourceSpan, TokenType


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


@dataclass
class Diagnostic:
    """A single diagnostic message (error, warning, etc.)."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: Optional[SourceSpan] = None
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        header = f"{self.severity.value}[{self.code}]: {self.message}"
        if self.span is not None:
            header = f"{self.span.start}: {header}"
        parts.append(header)

        # Source line with caret
        if show_source and self.span is not None and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            if self.span.start.line == self.span.end.line:
                end_col = self.span.end.column
            else:
                end_col = len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        result: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "range": None,
            "hints": self.hints,
        }
        if self.span is not None:
            result["range"] = {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            }
        return result


def source_line_at(source: Optional[str], span: Optional[SourceSpan]) -> Optional[str]:
    """Return the source line a span starts on, if both are known."""
    if source is None or span is None:
        return None
    lines = source.split("\n")
    index = span.start.line - 1
    if 0 <= index < len(lines):
        return lines[index]
    return None


class KleinError(Exception):
    """Base exception for Klein errors."""

    code = "E000"

    def __init__(self, message: str, span: Optional[SourceSpan] = None,
                 hints: Optional[List[str]] = None):
        self.diagnostic = Diagnostic(
            code=self.code,
            message=message,
            severity=ErrorSeverity.ERROR,
            span=span,
            hints=list(hints or []),
        )
        super().__init__(message)

    @property
    def message(self) -> str:
        return self.diagnostic.message

    @property
    def span(self) -> Optional[SourceSpan]:
        return self.diagnostic.span

    def attach_source(self, source: str) -> "KleinError":
        """Fill in the offending source line for display."""
        if self.diagnostic.source_line is None:
            self.diagnostic.source_line = source_line_at(source, self.diagnostic.span)
        return self

    def to_json(self) -> dict:
        data = self.diagnostic.to_json()
        data["kind"] = type(self).__name__
        return data

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(KleinError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(KleinError):
    """Error during parsing (E1xx)."""
    pass


class ExecutionError(KleinError):
    """Error while evaluating a program (E4xx)."""
    pass


# --- Lexer errors ---

class UnrecognizedToken(LexerError):
    """E001: Source text that matches no token rule."""

    code = "E001"

    def __init__(self, text: str, span: Optional[SourceSpan] = None):
        self.text = text
        hints = []
        if text.startswith('"'):
            hints.append("string literals must be closed with '\"' on the same line")
        super().__init__(f"unrecognized token '{text}'", span, hints)


# --- Parser errors ---

class UnexpectedToken(ParserError):
    """E101: The token found is not the one the grammar requires."""

    code = "E101"

    def __init__(self, expected: TokenType, actual: TokenType,
                 span: Optional[SourceSpan] = None, text: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        self.text = text
        found = actual.description
        if text and actual not in (TokenType.EOF,) and f"'{text}'" != found:
            found = f"{found} '{text}'"
        super().__init__(f"expected {expected.description}, found {found}", span)


class NestingTooDeep(ParserError):
    """E102: Blocks or expressions nested past the parser's limit."""

    code = "E102"

    def __init__(self, limit: int, span: Optional[SourceSpan] = None):
        self.limit = limit
        super().__init__(f"nesting deeper than {limit} levels", span,
                         ["split the expression using 'let' bindings"])


# --- Runtime errors ---

class UndefinedVariableReference(ExecutionError):
    """E401: Read or assignment of a name bound in no enclosing scope."""

    code = "E401"

    def __init__(self, name: str, span: Optional[SourceSpan] = None):
        self.name = name
        super().__init__(f"undefined variable '{name}'", span,
                         [f"declare it first with 'let {name} = ...;'"])


class UnknownFunction(ExecutionError):
    """E402: Call to a function that is not a built-in."""

    code = "E402"

    def __init__(self, name: str, span: Optional[SourceSpan] = None):
        self.name = name
        super().__init__(f"unknown function '{name}'", span)


class UnknownMethod(ExecutionError):
    """E403: Method call not defined for the receiver's type."""

    code = "E403"

    def __init__(self, type_name: str, method: str, span: Optional[SourceSpan] = None):
        self.type_name = type_name
        self.method = method
        super().__init__(f"{type_name} has no method '{method}'", span)


class IncorrectArgumentCount(ExecutionError):
    """E404: Built-in called with the wrong number of arguments."""

    code = "E404"

    def __init__(self, name: str, expected: int, actual: int,
                 span: Optional[SourceSpan] = None):
        self.name = name
        self.expected = expected
        self.actual = actual
        plural = "" if expected == 1 else "s"
        super().__init__(
            f"'{name}' expects {expected} argument{plural}, got {actual}", span)


class DuplicateVariableDeclaration(ExecutionError):
    """E405: 'let' of a name that is already visible."""

    code = "E405"

    def __init__(self, name: str, span: Optional[SourceSpan] = None):
        self.name = name
        super().__init__(f"variable '{name}' is already declared", span,
                         [f"use '{name} = ...;' to assign a new value"])


class InvalidOperand(ExecutionError):
    """E406: Operation applied to a value of the wrong type or range."""

    code = "E406"

    def __init__(self, message: str, span: Optional[SourceSpan] = None):
        super().__init__(message, span)


class LoopLimitExceeded(ExecutionError):
    """E407: A loop ran more iterations than the configured limit."""

    code = "E407"

    def __init__(self, limit: int, span: Optional[SourceSpan] = None):
        self.limit = limit
        super().__init__(f"loop exceeded {limit} iterations", span,
                         ["raise max_loop_iterations in the engine config"])


class EvaluationTooDeep(ExecutionError):
    """E408: A program tree nested past the evaluator's limit."""

    code = "E408"

    def __init__(self, limit: int, span: Optional[SourceSpan] = None):
        self.limit = limit
        super().__init__(f"evaluation nested deeper than {limit} levels", span)


class DiagnosticCollector:
    """Collects diagnostics during checking."""

    def __init__(self, max_errors: int = 20):
        self.diagnostics: List[Diagnostic] = []
        self.max_errors = max_errors
        self._error_count = 0

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)
        if diagnostic.severity == ErrorSeverity.ERROR:
            self._error_count += 1

    def add_error(self, error: KleinError) -> None:
        """Add an error exception as a diagnostic."""
        self.add(error.diagnostic)

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == ErrorSeverity.WARNING)

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @property
    def should_stop(self) -> bool:
        """Check if we've hit the max error limit."""
        return self._error_count >= self.max_errors

    def format_all(self, show_source: bool = True) -> str:
        """Format all diagnostics for display."""
        parts = [d.format(show_source) for d in self.diagnostics]
        if self._error_count > 0:
            parts.append(f"{self._error_count} error(s), {self.warning_count} warning(s)")
        elif self.warning_count > 0:
            parts.append(f"{self.warning_count} warning(s)")
        return "\n\n".join(parts)

    def to_json(self) -> dict:
        """Convert all diagnostics to JSON format."""
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "error_count": self._error_count,
            "warning_count": self.warning_count,
        }
