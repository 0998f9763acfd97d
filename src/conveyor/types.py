"""Value kinds carried between nodes and their exact type checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class ConveyorError(Exception):
    """Base class for engine errors."""


class UsageError(ConveyorError, ValueError):
    """Raised when a graph is wired or driven against the node contract."""


@dataclass
class Image:
    """Inert image record: dimensions, title and the log of applied operations."""

    width: int
    height: int
    title: str | None = None
    operations: list[str] = field(default_factory=list)

    def operation(self, name: str) -> None:
        self.operations.append(name)

    def copy(self) -> Image:
        return Image(self.width, self.height, self.title, list(self.operations))

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "title": self.title,
            "operations": list(self.operations),
        }


Value = Union[str, bool, int, float, Image]


class ValueType(str, Enum):
    """Closed set of port payload types."""

    STRING = "STRING"
    BOOL = "BOOL"
    INT = "INT"
    FLOAT = "FLOAT"
    IMAGE = "IMAGE"

    @classmethod
    def parse(cls, tag: str) -> ValueType:
        try:
            return cls(tag.strip())
        except ValueError as err:
            raise UsageError(f"no such type {tag!r}") from err

    def accepts(self, value: Any) -> bool:
        # exact classes: bool is not an INT, int is not a FLOAT
        return type(value) is _PYTHON_TYPES[self]


_PYTHON_TYPES: dict[ValueType, type] = {
    ValueType.STRING: str,
    ValueType.BOOL: bool,
    ValueType.INT: int,
    ValueType.FLOAT: float,
    ValueType.IMAGE: Image,
}


def matches(tag: ValueType | str, value: Any) -> bool:
    """Return whether ``value`` belongs to the type named by ``tag``."""
    value_type = tag if isinstance(tag, ValueType) else ValueType.parse(tag)
    return value_type.accepts(value)


def clone_value(value: Value) -> Value:
    if isinstance(value, Image):
        return value.copy()
    return value


def parse_template(text: str) -> list[tuple[ValueType, str]]:
    """Parse ``"INT index, STRING name"`` into typed parameter declarations."""
    params: list[tuple[ValueType, str]] = []
    seen: set[str] = set()
    for chunk in text.split(","):
        tokens = chunk.split()
        if len(tokens) != 2:
            raise UsageError(
                f"template parameter {chunk.strip()!r} must look like 'TYPE name'"
            )
        value_type = ValueType.parse(tokens[0])
        name = tokens[1]
        if name in seen:
            raise UsageError(f"duplicate template parameter {name!r}")
        seen.add(name)
        params.append((value_type, name))
    return params


def describe_value(value: Any) -> Any:
    """JSON-friendly rendering of a value for traces."""
    if isinstance(value, Image):
        return value.to_dict()
    return value
