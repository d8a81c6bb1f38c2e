"""
Built-in function registry for the Klein interpreter.

Klein has no user-defined functions: every call dispatches by name against
this closed set. Free functions are keyed by name, methods by
(receiver type name, method name).

Functions:
    print(value)      write value's text to the output sink
    input()           read one line from the input source

Methods:
    Number.to(n)      inclusive Range from receiver to n
    Number.mod(n)     remainder, sign follows n
    String.length()   number of characters
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .values import Value, ValueType, number_val, string_val, range_val, nil_val
from ..errors import (
    ExecutionError,
    IncorrectArgumentCount,
    InvalidOperand,
    UnknownFunction,
    UnknownMethod,
)
from ..tokens import SourceSpan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuiltinFunction:
    """
    A built-in function or method with its implementation.

    Function implementations are called as impl(ctx, *args); method
    implementations as impl(ctx, receiver, *args).
    """
    name: str
    arity: int
    implementation: Callable[..., Value]
    doc: str = ""


class BuiltinRegistry:
    """
    Registry of all built-in functions and methods.

    Built once; read-only afterwards.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._methods: Dict[Tuple[str, str], BuiltinFunction] = {}  # (type_name, method_name)
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def get_method(self, type_name: str, method_name: str) -> Optional[BuiltinFunction]:
        """Look up a method by type and method name."""
        return self._methods.get((type_name, method_name))

    def function_names(self) -> List[str]:
        return sorted(self._functions)

    def method_names(self, type_name: str) -> List[str]:
        return sorted(m for (t, m) in self._methods if t == type_name)

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func

    def register_method(self, type_name: str, func: BuiltinFunction) -> None:
        """Register a method for a specific type."""
        self._methods[(type_name, func.name)] = func

    def _register_all(self) -> None:
        self._register_io_functions()
        self._register_number_methods()
        self._register_string_methods()

    # --- I/O ---

    def _register_io_functions(self) -> None:

        def _print(ctx, value: Value) -> Value:
            try:
                text = value.format()
            except ValueError:
                # Python caps int-to-str conversion at sys.get_int_max_str_digits()
                raise InvalidOperand("number has too many digits to print")
            ctx.output(text)
            return nil_val()

        def _input(ctx) -> Value:
            return string_val(ctx.input())

        self.register(BuiltinFunction("print", 1, _print, "Write a value to the output"))
        self.register(BuiltinFunction("input", 0, _input, "Read one line of input"))

    # --- Number methods ---

    def _register_number_methods(self) -> None:

        def _to(ctx, receiver: Value, end: Value) -> Value:
            _require_number(end, "to")
            if not (receiver.is_integral() and end.is_integral()):
                raise InvalidOperand("'to' needs integer bounds, "
                                     f"got {receiver.format()} and {end.format()}")
            return range_val(receiver.data, end.data)

        def _mod(ctx, receiver: Value, divisor: Value) -> Value:
            _require_number(divisor, "mod")
            if divisor.data == 0:
                raise InvalidOperand("modulo by zero")
            try:
                return number_val(receiver.data % divisor.data)
            except OverflowError:
                raise InvalidOperand("result of 'mod' is too large")

        self.register_method("Number", BuiltinFunction("to", 1, _to, "Inclusive range"))
        self.register_method("Number", BuiltinFunction("mod", 1, _mod, "Remainder"))

    # --- String methods ---

    def _register_string_methods(self) -> None:

        def _length(ctx, receiver: Value) -> Value:
            return number_val(len(receiver.data))

        self.register_method("String", BuiltinFunction("length", 0, _length, "Character count"))


def _require_number(value: Value, name: str) -> None:
    if value.type != ValueType.NUMBER:
        raise InvalidOperand(f"'{name}' expects a Number argument, got {value.type_name}")


def _invoke(func: BuiltinFunction, ctx, args: List[Value], span: Optional[SourceSpan]) -> Value:
    try:
        return func.implementation(ctx, *args)
    except ExecutionError as e:
        # Errors raised inside a built-in point at the call site
        if e.diagnostic.span is None:
            e.diagnostic.span = span
        raise


_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the shared built-in registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry


def call_builtin(ctx, name: str, args: List[Value], span: Optional[SourceSpan] = None) -> Value:
    """
    Call a built-in function by name.

    Raises UnknownFunction if no such function exists and
    IncorrectArgumentCount if the arity does not match.
    """
    func = get_builtin_registry().get_function(name)
    if func is None:
        raise UnknownFunction(name, span)
    if len(args) != func.arity:
        raise IncorrectArgumentCount(name, func.arity, len(args), span)
    logger.debug("call %s/%d", name, len(args))
    return _invoke(func, ctx, args, span)


def call_method(ctx, receiver: Value, method_name: str, args: List[Value],
                span: Optional[SourceSpan] = None) -> Value:
    """
    Call a method on a value.

    Raises UnknownMethod if the receiver's type has no such method.
    """
    method = get_builtin_registry().get_method(receiver.type_name, method_name)
    if method is None:
        raise UnknownMethod(receiver.type_name, method_name, span)
    if len(args) != method.arity:
        raise IncorrectArgumentCount(method_name, method.arity, len(args), span)
    logger.debug("call %s.%s/%d", receiver.type_name, method_name, len(args))
    return _invoke(method, ctx, [receiver] + args, span)
