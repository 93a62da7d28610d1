"""Fields: lazily marshaled key-value pairs added to a logging context."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable

from zapcore.error_encoding import encode_error

__all__ = ["FieldType", "Field", "add_fields", "encode_stringer"]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class FieldType(enum.IntEnum):
    """Which value a Field carries and how it is serialized."""

    UNKNOWN = 0
    ARRAY_MARSHALER = 1
    OBJECT_MARSHALER = 2
    BINARY = 3
    BOOL = 4
    BYTE_STRING = 5
    COMPLEX128 = 6
    COMPLEX64 = 7
    DURATION = 8
    FLOAT64 = 9
    FLOAT32 = 10
    INT64 = 11
    INT32 = 12
    INT16 = 13
    INT8 = 14
    STRING = 15
    TIME = 16
    TIME_FULL = 17
    UINT64 = 18
    UINT32 = 19
    UINT16 = 20
    UINT8 = 21
    UINTPTR = 22
    REFLECT = 23
    NAMESPACE = 24
    STRINGER = 25
    ERROR = 26
    SKIP = 27
    INLINE_MARSHALER = 28


def _float32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", float(value)))[0]


def _signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return value - (1 << bits) if value >> (bits - 1) else value


def _unsigned(value: int, bits: int) -> int:
    return value & ((1 << bits) - 1)


def _errors_equal(a: Any, b: Any) -> bool:
    if a is b:
        return True
    if a is None or b is None or type(a) is not type(b):
        return False
    if isinstance(a, BaseException):
        return a.args == b.args and vars(a) == vars(b)
    return a == b


@dataclass(frozen=True)
class Field:
    """A key-value pair for a logger's context.

    Integer-like values, durations (nanoseconds), booleans (1 is true) and
    times (nanoseconds since the epoch, with an optional tzinfo in
    ``interface``) live in ``integer``; strings in ``string``; everything
    else, floats included, in ``interface``.
    """

    key: str = ""
    type: FieldType = FieldType.UNKNOWN
    integer: int = 0
    string: str = ""
    interface: Any = None

    def add_to(self, enc: Any) -> None:
        """Add this field to an object encoder.

        Failures of marshalers, stringers and errors are recorded under
        ``<key>Error``; an unknown field type raises ValueError.
        """
        handler = _HANDLERS.get(self.type)
        if handler is None:
            raise ValueError(f"unknown field type: {self!r}")
        if self.type not in _FALLIBLE:
            handler(self, enc)
            return
        try:
            handler(self, enc)
        except Exception as exc:  # noqa: BLE001 - recorded in the log context
            enc.add_string(f"{self.key}Error", str(exc))

    def equals(self, other: "Field") -> bool:
        """Return whether two fields carry the same key, type and value."""
        if self.type != other.type or self.key != other.key:
            return False
        if self.type in (FieldType.BINARY, FieldType.BYTE_STRING):
            return bytes(self.interface) == bytes(other.interface)
        if self.type is FieldType.ERROR:
            return _errors_equal(self.interface, other.interface)
        if self.type in (
            FieldType.ARRAY_MARSHALER,
            FieldType.OBJECT_MARSHALER,
            FieldType.REFLECT,
        ):
            return self.interface == other.interface
        return self == other


def _add_time(f: Field, enc: Any) -> None:
    moment = _EPOCH + timedelta(microseconds=f.integer // 1000)
    if f.interface is not None:
        moment = moment.astimezone(f.interface)
    enc.add_time(f.key, moment)


def _add_complex64(f: Field, enc: Any) -> None:
    value = complex(f.interface)
    enc.add_complex(f.key, complex(_float32(value.real), _float32(value.imag)))


_HANDLERS: dict[FieldType, Callable[[Field, Any], None]] = {
    FieldType.ARRAY_MARSHALER: lambda f, enc: enc.add_array(f.key, f.interface),
    FieldType.OBJECT_MARSHALER: lambda f, enc: enc.add_object(f.key, f.interface),
    FieldType.INLINE_MARSHALER: lambda f, enc: f.interface.marshal_log_object(enc),
    FieldType.BINARY: lambda f, enc: enc.add_binary(f.key, f.interface),
    FieldType.BOOL: lambda f, enc: enc.add_bool(f.key, f.integer == 1),
    FieldType.BYTE_STRING: lambda f, enc: enc.add_byte_string(f.key, f.interface),
    FieldType.COMPLEX128: lambda f, enc: enc.add_complex(f.key, complex(f.interface)),
    FieldType.COMPLEX64: _add_complex64,
    FieldType.DURATION: lambda f, enc: enc.add_duration(f.key, f.integer),
    FieldType.FLOAT64: lambda f, enc: enc.add_float(f.key, float(f.interface)),
    FieldType.FLOAT32: lambda f, enc: enc.add_float32(f.key, f.interface),
    FieldType.INT64: lambda f, enc: enc.add_int(f.key, _signed(f.integer, 64)),
    FieldType.INT32: lambda f, enc: enc.add_int(f.key, _signed(f.integer, 32)),
    FieldType.INT16: lambda f, enc: enc.add_int(f.key, _signed(f.integer, 16)),
    FieldType.INT8: lambda f, enc: enc.add_int(f.key, _signed(f.integer, 8)),
    FieldType.STRING: lambda f, enc: enc.add_string(f.key, f.string),
    FieldType.TIME: _add_time,
    FieldType.TIME_FULL: lambda f, enc: enc.add_time(f.key, f.interface),
    FieldType.UINT64: lambda f, enc: enc.add_uint(f.key, _unsigned(f.integer, 64)),
    FieldType.UINT32: lambda f, enc: enc.add_uint(f.key, _unsigned(f.integer, 32)),
    FieldType.UINT16: lambda f, enc: enc.add_uint(f.key, _unsigned(f.integer, 16)),
    FieldType.UINT8: lambda f, enc: enc.add_uint(f.key, _unsigned(f.integer, 8)),
    FieldType.UINTPTR: lambda f, enc: enc.add_uint(f.key, _unsigned(f.integer, 64)),
    FieldType.REFLECT: lambda f, enc: enc.add_reflected(f.key, f.interface),
    FieldType.NAMESPACE: lambda f, enc: enc.open_namespace(f.key),
    FieldType.STRINGER: lambda f, enc: encode_stringer(f.key, f.interface, enc),
    FieldType.ERROR: lambda f, enc: encode_error(f.key, f.interface, enc),
    FieldType.SKIP: lambda f, enc: None,
}

_FALLIBLE = frozenset(
    {
        FieldType.ARRAY_MARSHALER,
        FieldType.OBJECT_MARSHALER,
        FieldType.INLINE_MARSHALER,
        FieldType.REFLECT,
        FieldType.STRINGER,
        FieldType.ERROR,
    }
)


def add_fields(enc: Any, fields: Iterable[Field]) -> None:
    """Add every field, in order, to ``enc``."""
    for f in fields:
        f.add_to(enc)


def encode_stringer(key: str, stringer: Any, enc: Any) -> None:
    """Add ``str(stringer)`` under ``key``; None is written as '<nil>'.

    A failure inside ``__str__`` is raised as a RuntimeError starting with
    ``PANIC=``.
    """
    if stringer is None:
        enc.add_string(key, "<nil>")
        return
    try:
        text = str(stringer)
    except Exception as exc:  # noqa: BLE001 - any failure is reported
        try:
            detail = str(exc)
        except Exception:  # noqa: BLE001
            detail = f"<unprintable {type(exc).__name__}>"
        raise RuntimeError(f"PANIC={detail}") from exc
    enc.add_string(key, text)