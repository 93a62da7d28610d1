"""Interfaces for types that add themselves to a logging context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol, runtime_checkable

__all__ = [
    "ObjectMarshaler",
    "ArrayMarshaler",
    "ObjectMarshalerFunc",
    "ArrayMarshalerFunc",
]


@runtime_checkable
class ObjectMarshaler(Protocol):
    """A type that adds itself to an object encoder as a map-like value.

    Implementations raise an exception to report a failure.
    """

    def marshal_log_object(self, enc: Any) -> None:
        """Add this value's fields to ``enc``."""
        ...


@runtime_checkable
class ArrayMarshaler(Protocol):
    """A type that adds itself to an array encoder as a list-like value.

    Implementations raise an exception to report a failure.
    """

    def marshal_log_array(self, enc: Any) -> None:
        """Append this value's elements to ``enc``."""
        ...


@dataclass(frozen=True)
class ObjectMarshalerFunc:
    """Adapts a plain function into an ObjectMarshaler."""

    func: Callable[[Any], None]

    def marshal_log_object(self, enc: Any) -> None:
        """Call the wrapped function with ``enc``."""
        self.func(enc)


@dataclass(frozen=True)
class ArrayMarshalerFunc:
    """Adapts a plain function into an ArrayMarshaler."""

    func: Callable[[Any], None]

    def marshal_log_array(self, enc: Any) -> None:
        """Call the wrapped function with ``enc``."""
        self.func(enc)