"""
Runtime values for the Klein interpreter.

Every value is a `Value(data, type)` pair. `data` holds the Python object
(int/float, str, bool, Range or None) and `type` the Klein type tag.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Union


class ValueType(Enum):
    """Runtime type tags."""
    NUMBER = "Number"
    STRING = "String"
    BOOLEAN = "Boolean"
    RANGE = "Range"
    NIL = "Nil"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Range:
    """Inclusive integer interval. Empty when start > end."""
    start: int
    end: int

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end + 1))

    def __len__(self) -> int:
        return max(0, self.end - self.start + 1)

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"


@dataclass(frozen=True)
class Value:
    """
    A runtime value with its Klein type.

    Values are immutable; operations build new ones.
    """
    data: Any
    type: ValueType

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.type.name})"

    @property
    def type_name(self) -> str:
        return self.type.value

    def is_integral(self) -> bool:
        return self.type == ValueType.NUMBER and isinstance(self.data, int)

    def format(self) -> str:
        """Textual form used by print."""
        if self.type == ValueType.BOOLEAN:
            return "true" if self.data else "false"
        if self.type == ValueType.NIL:
            return "nil"
        if self.type == ValueType.NUMBER and isinstance(self.data, float):
            return repr(self.data)
        return str(self.data)


def _normalize(n: Union[int, float]) -> Union[int, float]:
    # Integral floats collapse to int so 6 / 2 prints as 3
    if isinstance(n, float) and n.is_integer():
        return int(n)
    return n


# Convenience constructors

def number_val(n: Union[int, float]) -> Value:
    """Create a number value."""
    return Value(_normalize(n), ValueType.NUMBER)


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueType.STRING)


def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return Value(bool(b), ValueType.BOOLEAN)


def range_val(start: int, end: int) -> Value:
    """Create an inclusive range value."""
    return Value(Range(start, end), ValueType.RANGE)


NIL = Value(None, ValueType.NIL)


def nil_val() -> Value:
    """The nil value, returned by calls made for their effect."""
    return NIL
