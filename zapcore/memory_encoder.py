"""An object encoder backed by plain dictionaries and lists, for tests."""

from __future__ import annotations

import struct
from datetime import datetime
from typing import Any

from zapcore.marshaler import ArrayMarshaler, ObjectMarshaler

__all__ = ["MapObjectEncoder"]


def _to_float32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", float(value)))[0]


def _bytes_to_str(value: bytes | bytearray | str) -> str:
    if isinstance(value, str):
        return value
    return bytes(value).decode("utf-8", errors="replace")


class _SliceArrayEncoder:
    """An array encoder backed by a list."""

    def __init__(self) -> None:
        self.elems: list[Any] = []

    def append_array(self, marshaler: ArrayMarshaler) -> None:
        inner = _SliceArrayEncoder()
        try:
            marshaler.marshal_log_array(inner)
        finally:
            self.elems.append(inner.elems)

    def append_object(self, marshaler: ObjectMarshaler) -> None:
        inner = MapObjectEncoder()
        try:
            marshaler.marshal_log_object(inner)
        finally:
            self.elems.append(inner.fields)

    def append_reflected(self, value: Any) -> None:
        self.elems.append(value)

    def append_bool(self, value: bool) -> None:
        self.elems.append(bool(value))

    def append_byte_string(self, value: bytes | bytearray | str) -> None:
        self.elems.append(_bytes_to_str(value))

    def append_complex(self, value: complex) -> None:
        self.elems.append(complex(value))

    def append_duration(self, value: int) -> None:
        self.elems.append(value)

    def append_float(self, value: float) -> None:
        self.elems.append(float(value))

    def append_float32(self, value: float) -> None:
        self.elems.append(_to_float32(value))

    def append_int(self, value: int) -> None:
        self.elems.append(int(value))

    def append_uint(self, value: int) -> None:
        self.elems.append(int(value))

    def append_string(self, value: str) -> None:
        self.elems.append(value)

    def append_time(self, value: datetime) -> None:
        self.elems.append(value)


class MapObjectEncoder:
    """An object encoder that records everything in ``fields``.

    Not fast enough for production use, but handy in tests.
    """

    def __init__(self) -> None:
        self.fields: dict[str, Any] = {}
        self._cur: dict[str, Any] = self.fields

    def add_array(self, key: str, marshaler: ArrayMarshaler) -> None:
        """Add an array; the elements appended so far are kept on failure."""
        arr = _SliceArrayEncoder()
        try:
            marshaler.marshal_log_array(arr)
        finally:
            self._cur[key] = arr.elems

    def add_object(self, key: str, marshaler: ObjectMarshaler) -> None:
        """Add a nested object; the partial object is kept on failure."""
        inner = MapObjectEncoder()
        self._cur[key] = inner.fields
        marshaler.marshal_log_object(inner)

    def add_binary(self, key: str, value: bytes | bytearray) -> None:
        self._cur[key] = bytes(value)

    def add_byte_string(self, key: str, value: bytes | bytearray | str) -> None:
        self._cur[key] = _bytes_to_str(value)

    def add_bool(self, key: str, value: bool) -> None:
        self._cur[key] = bool(value)

    def add_complex(self, key: str, value: complex) -> None:
        self._cur[key] = complex(value)

    def add_duration(self, key: str, value: int) -> None:
        """Add a duration given in nanoseconds."""
        self._cur[key] = value

    def add_float(self, key: str, value: float) -> None:
        self._cur[key] = float(value)

    def add_float32(self, key: str, value: float) -> None:
        """Add a float rounded to single precision."""
        self._cur[key] = _to_float32(value)

    def add_int(self, key: str, value: int) -> None:
        self._cur[key] = int(value)

    def add_uint(self, key: str, value: int) -> None:
        self._cur[key] = int(value)

    def add_string(self, key: str, value: str) -> None:
        self._cur[key] = value

    def add_time(self, key: str, value: datetime) -> None:
        self._cur[key] = value

    def add_reflected(self, key: str, value: Any) -> None:
        self._cur[key] = value

    def open_namespace(self, key: str) -> None:
        """Start a nested map into which all later fields go."""
        namespace: dict[str, Any] = {}
        self._cur[key] = namespace
        self._cur = namespace