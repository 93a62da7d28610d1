"""A fast JSON encoder for log entries."""

from __future__ import annotations

import base64
import dataclasses
import enum
import json
import math
import re
import struct
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Iterable, Mapping

from zapcore.encoder import (
    DEFAULT_LINE_ENDING,
    RFC3339NANO_LAYOUT,
    EncoderConfig,
    format_time,
    full_name_encoder,
)
from zapcore.entry import Entry
from zapcore.field import Field, add_fields
from zapcore.level import Level
from zapcore.marshaler import ArrayMarshaler, ObjectMarshaler

__all__ = ["JSONEncoder", "new_json_encoder"]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_SECOND = 10**9
_MICROSECOND = 10**3

_ESCAPES: dict[int, str] = {code: f"\\u00{code:02x}" for code in range(0x20)}
_ESCAPES.update(
    {
        ord("\\"): "\\\\",
        ord('"'): '\\"',
        ord("\n"): "\\n",
        ord("\r"): "\\r",
        ord("\t"): "\\t",
    }
)
_SURROGATE = re.compile("[\ud800-\udfff]")


def _escape(text: str) -> str:
    """JSON-escape ``text``; lone surrogates (invalid UTF-8) become \\ufffd."""
    return _SURROGATE.sub(lambda _m: "\\ufffd", text.translate(_ESCAPES))


def _bytes_text(value: bytes | bytearray | str) -> str:
    if isinstance(value, str):
        return value
    return bytes(value).decode("utf-8", errors="surrogateescape")


def _float32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _shortest(value: float, bits: int) -> str:
    if bits == 32:
        for precision in range(1, 10):
            text = f"{value:.{precision}g}"
            if _float32(float(text)) == value:
                return text
    return repr(value)


def _format_float(value: float, bits: int) -> str:
    """Format a finite float in the shortest fixed-point form that round-trips."""
    text = format(Decimal(_shortest(value, bits)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _plain_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return _format_float(value, 64)


def _unix_nanos(t: datetime) -> int:
    aware = t if t.tzinfo is not None else t.replace(tzinfo=timezone.utc)
    delta = aware - _EPOCH
    return (delta.days * 86400 + delta.seconds) * _SECOND + delta.microseconds * _MICROSECOND


def _duration_nanos(d: int | timedelta) -> int:
    if isinstance(d, timedelta):
        return (d.days * 86400 + d.seconds) * _SECOND + d.microseconds * _MICROSECOND
    return int(d)


def _to_jsonable(obj: Any) -> Any:
    """Turn ``obj`` into plain JSON values; mapping keys are sorted."""
    if obj is None or isinstance(obj, (str, bool, int, float)):
        return obj
    if isinstance(obj, enum.Enum):
        return _to_jsonable(obj.value)
    if isinstance(obj, Mapping):
        items = sorted(((str(k), v) for k, v in obj.items()), key=lambda kv: kv[0])
        return {k: _to_jsonable(v) for k, v in items}
    if isinstance(obj, (bytes, bytearray)):
        return base64.b64encode(bytes(obj)).decode("ascii")
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [_to_jsonable(item) for item in obj]
    if isinstance(obj, datetime):
        return format_time(obj, RFC3339NANO_LAYOUT)
    if isinstance(obj, timedelta):
        return _duration_nanos(obj)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: _to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)
        }
    if callable(obj):
        raise TypeError(f"json: unsupported type: {type(obj).__name__}")
    attrs = getattr(obj, "__dict__", None)
    if isinstance(attrs, dict):
        return {k: _to_jsonable(v) for k, v in attrs.items() if not k.startswith("_")}
    raise TypeError(f"json: unsupported type: {type(obj).__name__}")


def _encode_reflected(obj: Any) -> str:
    if obj is None:
        return "null"
    text = json.dumps(
        _to_jsonable(obj),
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
    )
    text = text.replace("\u2028", "\\u2028").replace("\u2029", "\\u2029")
    return _SURROGATE.sub(lambda _m: "\\ufffd", text)


class _Buffer:
    """An append-only text buffer that knows its length and last character."""

    __slots__ = ("_parts", "_length")

    def __init__(self, parts: Iterable[str] = ()) -> None:
        self._parts = list(parts)
        self._length = sum(len(part) for part in self._parts)

    def __len__(self) -> int:
        return self._length

    def append(self, text: str) -> None:
        if text:
            self._parts.append(text)
            self._length += len(text)

    def last(self) -> str:
        return self._parts[-1][-1] if self._parts else ""

    def getvalue(self) -> str:
        return "".join(self._parts)

    def copy(self) -> "_Buffer":
        return _Buffer(self._parts)


class JSONEncoder:
    """Encodes fields and entries as JSON, escaping keys and values.

    Keys are not deduplicated. With ``spaced`` a space follows each colon
    and comma.
    """

    def __init__(self, config: EncoderConfig | None = None, spaced: bool = False) -> None:
        self.config = dataclasses.replace(config) if config is not None else EncoderConfig()
        self.spaced = spaced
        self._buf = _Buffer()
        self._open_namespaces = 0

    # -- internals ---------------------------------------------------------

    def _spawn(self) -> "JSONEncoder":
        other = JSONEncoder(self.config, self.spaced)
        other.config = self.config
        other._open_namespaces = self._open_namespaces
        return other

    def _add_element_separator(self) -> None:
        last = self._buf.last()
        if not last or last in "{[:, ":
            return
        self._buf.append(", " if self.spaced else ",")

    def _add_key(self, key: str) -> None:
        self._add_element_separator()
        self._buf.append(f'"{_escape(key)}":')
        if self.spaced:
            self._buf.append(" ")

    def _append_float(self, value: float, bits: int) -> None:
        self._add_element_separator()
        if math.isnan(value):
            self._buf.append('"NaN"')
        elif math.isinf(value):
            self._buf.append('"+Inf"' if value > 0 else '"-Inf"')
        else:
            self._buf.append(_format_float(value, bits))

    def _close_open_namespaces(self) -> None:
        self._buf.append("}" * self._open_namespaces)

    # -- object encoder ----------------------------------------------------

    def add_array(self, key: str, marshaler: ArrayMarshaler) -> None:
        self._add_key(key)
        self.append_array(marshaler)

    def add_object(self, key: str, marshaler: ObjectMarshaler) -> None:
        self._add_key(key)
        self.append_object(marshaler)

    def add_binary(self, key: str, value: bytes | bytearray) -> None:
        """Add bytes as a base64 string."""
        self.add_string(key, base64.b64encode(bytes(value)).decode("ascii"))

    def add_byte_string(self, key: str, value: bytes | bytearray | str) -> None:
        self._add_key(key)
        self.append_byte_string(value)

    def add_bool(self, key: str, value: bool) -> None:
        self._add_key(key)
        self.append_bool(value)

    def add_complex(self, key: str, value: complex) -> None:
        self._add_key(key)
        self.append_complex(value)

    def add_duration(self, key: str, value: int | timedelta) -> None:
        self._add_key(key)
        self.append_duration(value)

    def add_float(self, key: str, value: float) -> None:
        self._add_key(key)
        self.append_float(value)

    def add_float32(self, key: str, value: float) -> None:
        self._add_key(key)
        self.append_float32(value)

    def add_int(self, key: str, value: int) -> None:
        self._add_key(key)
        self.append_int(value)

    def add_uint(self, key: str, value: int) -> None:
        self._add_key(key)
        self.append_uint(value)

    def add_string(self, key: str, value: str) -> None:
        self._add_key(key)
        self.append_string(value)

    def add_time(self, key: str, value: datetime) -> None:
        self._add_key(key)
        self.append_time(value)

    def add_reflected(self, key: str, value: Any) -> None:
        """Add any JSON-serializable value; raises before writing on failure."""
        text = _encode_reflected(value)
        self._add_key(key)
        self._buf.append(text)

    def open_namespace(self, key: str) -> None:
        """Open a nested object that holds every field added afterwards."""
        self._add_key(key)
        self._buf.append("{")
        self._open_namespaces += 1

    # -- array encoder -----------------------------------------------------

    def append_array(self, marshaler: ArrayMarshaler) -> None:
        self._add_element_separator()
        self._buf.append("[")
        try:
            marshaler.marshal_log_array(self)
        finally:
            self._buf.append("]")

    def append_object(self, marshaler: ObjectMarshaler) -> None:
        self._add_element_separator()
        self._buf.append("{")
        try:
            marshaler.marshal_log_object(self)
        finally:
            self._buf.append("}")

    def append_bool(self, value: bool) -> None:
        self._add_element_separator()
        self._buf.append("true" if value else "false")

    def append_byte_string(self, value: bytes | bytearray | str) -> None:
        self._add_element_separator()
        self._buf.append(f'"{_escape(_bytes_text(value))}"')

    def append_complex(self, value: complex) -> None:
        """Append a complex number as a quoted 'real+imagi' string."""
        value = complex(value)
        self._add_element_separator()
        self._buf.append(f'"{_plain_float(value.real)}+{_plain_float(value.imag)}i"')

    def append_duration(self, value: int | timedelta) -> None:
        cur = len(self._buf)
        encode = self.config.encode_duration
        if encode is not None:
            encode(value, self)
        if cur == len(self._buf):
            self.append_int(_duration_nanos(value))

    def append_float(self, value: float) -> None:
        self._append_float(float(value), 64)

    def append_float32(self, value: float) -> None:
        self._append_float(_float32(float(value)), 32)

    def append_int(self, value: int) -> None:
        self._add_element_separator()
        self._buf.append(str(int(value)))

    def append_uint(self, value: int) -> None:
        self._add_element_separator()
        self._buf.append(str(int(value)))

    def append_string(self, value: str) -> None:
        self._add_element_separator()
        self._buf.append(f'"{_escape(value)}"')

    def append_time(self, value: datetime) -> None:
        cur = len(self._buf)
        encode = self.config.encode_time
        if encode is not None:
            encode(value, self)
        if cur == len(self._buf):
            self.append_int(_unix_nanos(value))

    def append_time_layout(self, t: datetime, layout: str) -> None:
        """Append ``t`` formatted with a reference-time layout, quoted."""
        self._add_element_separator()
        self._buf.append(f'"{_escape(format_time(t, layout))}"')

    def append_reflected(self, value: Any) -> None:
        text = _encode_reflected(value)
        self._add_element_separator()
        self._buf.append(text)

    # -- encoder -----------------------------------------------------------

    def clone(self) -> "JSONEncoder":
        """Copy the encoder; fields added to the copy leave this one alone."""
        other = self._spawn()
        other._buf = self._buf.copy()
        return other

    def encode_entry(self, ent: Entry, fields: Iterable[Field] | None = None) -> str:
        """Encode an entry, its fields and the accumulated context as one line."""
        final = self._spawn()
        buf = final._buf
        cfg = final.config
        buf.append("{")

        if cfg.level_key:
            final._add_key(cfg.level_key)
            cur = len(buf)
            if cfg.encode_level is not None:
                cfg.encode_level(ent.level, final)
            if cur == len(buf):
                final.append_string(str(Level(ent.level)))
        if cfg.time_key:
            final.add_time(cfg.time_key, ent.time)
        if ent.logger_name and cfg.name_key:
            final._add_key(cfg.name_key)
            cur = len(buf)
            (cfg.encode_name or full_name_encoder)(ent.logger_name, final)
            if cur == len(buf):
                final.append_string(ent.logger_name)
        if ent.caller.defined:
            if cfg.caller_key:
                final._add_key(cfg.caller_key)
                cur = len(buf)
                if cfg.encode_caller is not None:
                    cfg.encode_caller(ent.caller, final)
                if cur == len(buf):
                    final.append_string(str(ent.caller))
            if cfg.function_key:
                final._add_key(cfg.function_key)
                final.append_string(ent.caller.function)
        if cfg.message_key:
            final._add_key(self.config.message_key)
            final.append_string(ent.message)
        if len(self._buf):
            final._add_element_separator()
            buf.append(self._buf.getvalue())
        add_fields(final, fields or ())
        final._close_open_namespaces()
        if ent.stack and cfg.stacktrace_key:
            final.add_string(cfg.stacktrace_key, ent.stack)
        buf.append("}")
        buf.append(cfg.line_ending or DEFAULT_LINE_ENDING)
        return buf.getvalue()


def new_json_encoder(config: EncoderConfig) -> JSONEncoder:
    """Create a compact JSON encoder using a copy of ``config``."""
    return JSONEncoder(config, False)