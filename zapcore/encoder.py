"""Encoder interfaces, encoder configuration and the primitive value encoders."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Protocol, runtime_checkable

from zapcore.entry import Entry, EntryCaller
from zapcore.level import Level, capital_color_string, color_string
from zapcore.marshaler import ArrayMarshaler, ObjectMarshaler

__all__ = [
    "DEFAULT_LINE_ENDING",
    "OMIT_KEY",
    "ISO8601_LAYOUT",
    "RFC3339_LAYOUT",
    "RFC3339NANO_LAYOUT",
    "PrimitiveArrayEncoder",
    "ArrayEncoder",
    "ObjectEncoder",
    "Encoder",
    "LevelEncoder",
    "TimeEncoder",
    "DurationEncoder",
    "CallerEncoder",
    "NameEncoder",
    "EncoderConfig",
    "encoder_config_from_dict",
    "format_duration",
    "format_time",
    "lowercase_level_encoder",
    "lowercase_color_level_encoder",
    "capital_level_encoder",
    "capital_color_level_encoder",
    "level_encoder_from_text",
    "epoch_time_encoder",
    "epoch_millis_time_encoder",
    "epoch_nanos_time_encoder",
    "iso8601_time_encoder",
    "rfc3339_time_encoder",
    "rfc3339nano_time_encoder",
    "time_encoder_of_layout",
    "time_encoder_from_text",
    "time_encoder_from_config",
    "seconds_duration_encoder",
    "nanos_duration_encoder",
    "millis_duration_encoder",
    "string_duration_encoder",
    "duration_encoder_from_text",
    "full_caller_encoder",
    "short_caller_encoder",
    "caller_encoder_from_text",
    "full_name_encoder",
    "name_encoder_from_text",
]

DEFAULT_LINE_ENDING = "\n"
OMIT_KEY = ""

ISO8601_LAYOUT = "2006-01-02T15:04:05.000Z0700"
RFC3339_LAYOUT = "2006-01-02T15:04:05Z07:00"
RFC3339NANO_LAYOUT = "2006-01-02T15:04:05.999999999Z07:00"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_SECOND = 10**9
_MILLISECOND = 10**6
_MICROSECOND = 10**3


# --------------------------------------------------------------------------
# Encoder interfaces
# --------------------------------------------------------------------------


@runtime_checkable
class PrimitiveArrayEncoder(Protocol):
    """Appends values of the built-in types to an array."""

    def append_bool(self, value: bool) -> None: ...
    def append_byte_string(self, value: bytes) -> None: ...
    def append_complex(self, value: complex) -> None: ...
    def append_float(self, value: float) -> None: ...
    def append_float32(self, value: float) -> None: ...
    def append_int(self, value: int) -> None: ...
    def append_uint(self, value: int) -> None: ...
    def append_string(self, value: str) -> None: ...


@runtime_checkable
class ArrayEncoder(PrimitiveArrayEncoder, Protocol):
    """Appends values, including times, durations and nested values, to an array."""

    def append_duration(self, value: int) -> None: ...
    def append_time(self, value: datetime) -> None: ...
    def append_array(self, marshaler: ArrayMarshaler) -> None: ...
    def append_object(self, marshaler: ObjectMarshaler) -> None: ...
    def append_reflected(self, value: Any) -> None: ...


@runtime_checkable
class ObjectEncoder(Protocol):
    """Adds key-value pairs to a map-like logging context."""

    def add_array(self, key: str, marshaler: ArrayMarshaler) -> None: ...
    def add_object(self, key: str, marshaler: ObjectMarshaler) -> None: ...
    def add_binary(self, key: str, value: bytes) -> None: ...
    def add_byte_string(self, key: str, value: bytes) -> None: ...
    def add_bool(self, key: str, value: bool) -> None: ...
    def add_complex(self, key: str, value: complex) -> None: ...
    def add_duration(self, key: str, value: int) -> None: ...
    def add_float(self, key: str, value: float) -> None: ...
    def add_float32(self, key: str, value: float) -> None: ...
    def add_int(self, key: str, value: int) -> None: ...
    def add_uint(self, key: str, value: int) -> None: ...
    def add_string(self, key: str, value: str) -> None: ...
    def add_time(self, key: str, value: datetime) -> None: ...
    def add_reflected(self, key: str, value: Any) -> None: ...
    def open_namespace(self, key: str) -> None: ...


@runtime_checkable
class Encoder(ObjectEncoder, Protocol):
    """A format-agnostic log entry serializer."""

    def clone(self) -> "Encoder":
        """Copy the encoder so that fields added to the copy stay apart."""
        ...

    def encode_entry(self, ent: Entry, fields: Any) -> Any:
        """Encode an entry, its fields and the accumulated context."""
        ...


LevelEncoder = Callable[[Level, PrimitiveArrayEncoder], None]
TimeEncoder = Callable[[datetime, PrimitiveArrayEncoder], None]
DurationEncoder = Callable[[int, PrimitiveArrayEncoder], None]
CallerEncoder = Callable[[EntryCaller, PrimitiveArrayEncoder], None]
NameEncoder = Callable[[str, PrimitiveArrayEncoder], None]


# --------------------------------------------------------------------------
# Conversions
# --------------------------------------------------------------------------


def _text(value: str | bytes | bytearray) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    raise TypeError(f"expected text, not {type(value).__name__}")


def _aware(t: datetime) -> datetime:
    return t if t.tzinfo is not None else t.replace(tzinfo=timezone.utc)


def _unix_nanos(t: datetime) -> int:
    """Return nanoseconds since the Unix epoch; naive times count as UTC."""
    delta = _aware(t) - _EPOCH
    return (delta.days * 86400 + delta.seconds) * _SECOND + delta.microseconds * _MICROSECOND


def _duration_nanos(d: int | timedelta) -> int:
    if isinstance(d, timedelta):
        return (d.days * 86400 + d.seconds) * _SECOND + d.microseconds * _MICROSECOND
    return int(d)


def _with_fraction(value: int, precision: int) -> str:
    whole, frac = divmod(value, 10**precision)
    digits = f"{frac:0{precision}d}".rstrip("0")
    return f"{whole}.{digits}" if digits else str(whole)


def format_duration(d: int | timedelta) -> str:
    """Render a duration in nanoseconds the way '1h2m3.5s' or '1.5µs' reads."""
    nanos = _duration_nanos(d)
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    u = abs(nanos)
    if u < _SECOND:
        if u < _MICROSECOND:
            text = f"{u}ns"
        elif u < _MILLISECOND:
            text = _with_fraction(u, 3) + "µs"
        else:
            text = _with_fraction(u, 6) + "ms"
        return sign + text
    minute = 60 * _SECOND
    text = _with_fraction(u % minute, 9) + "s"
    total_minutes = u // minute
    if total_minutes:
        hours, minutes = divmod(total_minutes, 60)
        text = f"{minutes}m{text}"
        if hours:
            text = f"{hours}h{text}"
    return sign + text


# --------------------------------------------------------------------------
# Reference-time layouts
# --------------------------------------------------------------------------

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_DAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
_OFFSET_NAME = re.compile(r"^UTC[+-]")


def _match_token(layout: str, i: int) -> str | None:
    rest = layout[i:]
    c = rest[0]
    if c == "J":
        for tok in ("January", "Jan"):
            if rest.startswith(tok):
                return tok
    elif c == "M":
        for tok in ("Monday", "Mon", "MST"):
            if rest.startswith(tok):
                return tok
    elif c == "0":
        if rest.startswith("002"):
            return "002"
        if len(rest) > 1 and rest[1] in "123456":
            return rest[:2]
    elif c == "1":
        return "15" if rest.startswith("15") else "1"
    elif c == "2":
        return "2006" if rest.startswith("2006") else "2"
    elif c == "_":
        if rest.startswith("_2"):
            return None if rest.startswith("_2006") else "_2"
        if rest.startswith("__2"):
            return "__2"
    elif c in "345":
        return c
    elif c == "P":
        if rest.startswith("PM"):
            return "PM"
    elif c == "p":
        if rest.startswith("pm"):
            return "pm"
    elif c in "-Z":
        for suffix in ("070000", "07:00:00", "0700", "07:00", "07"):
            if rest.startswith(c + suffix):
                return c + suffix
    elif c in ".,":
        if len(rest) > 1 and rest[1] in "09":
            digit = rest[1]
            j = 1
            while j < len(rest) and rest[j] == digit:
                j += 1
            if not (j < len(rest) and rest[j].isdigit()):
                return rest[:j]
    return None


def _format_offset(token: str, offset: int) -> str:
    if token[0] == "Z" and offset == 0:
        return "Z"
    sign = "-" if offset < 0 else "+"
    total = abs(offset)
    hours, minutes, seconds = total // 3600, (total // 60) % 60, total % 60
    body = token[1:]
    if body == "07":
        return f"{sign}{hours:02d}"
    if body == "0700":
        return f"{sign}{hours:02d}{minutes:02d}"
    if body == "07:00":
        return f"{sign}{hours:02d}:{minutes:02d}"
    if body == "070000":
        return f"{sign}{hours:02d}{minutes:02d}{seconds:02d}"
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"


def _zone_name(t: datetime, offset: int) -> str:
    name = t.tzname() if t.tzinfo is not None else "UTC"
    if name and not _OFFSET_NAME.match(name):
        return name
    sign = "-" if offset < 0 else "+"
    minutes = abs(offset) // 60
    text = f"{sign}{minutes // 60:02d}"
    if minutes % 60:
        text += f"{minutes % 60:02d}"
    return text


def _render(token: str, t: datetime, offset: int) -> str:
    hour12 = t.hour % 12 or 12
    simple = {
        "2006": lambda: f"{t.year:04d}",
        "06": lambda: f"{t.year % 100:02d}",
        "January": lambda: _MONTHS[t.month - 1],
        "Jan": lambda: _MONTHS[t.month - 1][:3],
        "01": lambda: f"{t.month:02d}",
        "1": lambda: str(t.month),
        "Monday": lambda: _DAYS[(t.weekday() + 1) % 7],
        "Mon": lambda: _DAYS[(t.weekday() + 1) % 7][:3],
        "02": lambda: f"{t.day:02d}",
        "2": lambda: str(t.day),
        "_2": lambda: f"{t.day:>2}",
        "002": lambda: f"{t.timetuple().tm_yday:03d}",
        "__2": lambda: f"{t.timetuple().tm_yday:>3}",
        "15": lambda: f"{t.hour:02d}",
        "3": lambda: str(hour12),
        "03": lambda: f"{hour12:02d}",
        "4": lambda: str(t.minute),
        "04": lambda: f"{t.minute:02d}",
        "5": lambda: str(t.second),
        "05": lambda: f"{t.second:02d}",
        "PM": lambda: "PM" if t.hour >= 12 else "AM",
        "pm": lambda: "pm" if t.hour >= 12 else "am",
        "MST": lambda: _zone_name(t, offset),
    }
    if token in simple:
        return simple[token]()
    if token[0] in "-Z":
        return _format_offset(token, offset)
    separator, digits = token[0], len(token) - 1
    nanos = f"{t.microsecond * _MICROSECOND:09d}"[:digits]
    if token[1] == "9":
        nanos = nanos.rstrip("0")
        return separator + nanos if nanos else ""
    return separator + nanos


def format_time(t: datetime, layout: str) -> str:
    """Format ``t`` with a reference-time layout such as '2006-01-02T15:04:05Z07:00'.

    Naive datetimes are treated as UTC.
    """
    offset_delta = t.utcoffset() if t.tzinfo is not None else None
    offset = int(offset_delta.total_seconds()) if offset_delta is not None else 0
    parts: list[str] = []
    i = 0
    while i < len(layout):
        token = _match_token(layout, i)
        if token is None:
            parts.append(layout[i])
            i += 1
        else:
            parts.append(_render(token, t, offset))
            i += len(token)
    return "".join(parts)


# --------------------------------------------------------------------------
# Level encoders
# --------------------------------------------------------------------------


def lowercase_level_encoder(level: Level, enc: PrimitiveArrayEncoder) -> None:
    """Append the level as a lowercase string, e.g. 'info'."""
    enc.append_string(str(Level(level)))


def lowercase_color_level_encoder(level: Level, enc: PrimitiveArrayEncoder) -> None:
    """Append the level as a coloured lowercase string."""
    enc.append_string(color_string(level))


def capital_level_encoder(level: Level, enc: PrimitiveArrayEncoder) -> None:
    """Append the level as an all-caps string, e.g. 'INFO'."""
    enc.append_string(Level(level).capital_string())


def capital_color_level_encoder(level: Level, enc: PrimitiveArrayEncoder) -> None:
    """Append the level as a coloured all-caps string."""
    enc.append_string(capital_color_string(level))


def level_encoder_from_text(text: str | bytes) -> LevelEncoder:
    """Choose a level encoder by name; anything unknown means lowercase."""
    return {
        "capital": capital_level_encoder,
        "capitalColor": capital_color_level_encoder,
        "color": lowercase_color_level_encoder,
    }.get(_text(text), lowercase_level_encoder)


# --------------------------------------------------------------------------
# Time encoders
# --------------------------------------------------------------------------


def epoch_time_encoder(t: datetime, enc: PrimitiveArrayEncoder) -> None:
    """Append floating-point seconds since the Unix epoch."""
    enc.append_float(_unix_nanos(t) / _SECOND)


def epoch_millis_time_encoder(t: datetime, enc: PrimitiveArrayEncoder) -> None:
    """Append floating-point milliseconds since the Unix epoch."""
    enc.append_float(_unix_nanos(t) / _MILLISECOND)


def epoch_nanos_time_encoder(t: datetime, enc: PrimitiveArrayEncoder) -> None:
    """Append integer nanoseconds since the Unix epoch."""
    enc.append_int(_unix_nanos(t))


def _encode_time_layout(t: datetime, layout: str, enc: PrimitiveArrayEncoder) -> None:
    append_layout = getattr(enc, "append_time_layout", None)
    if append_layout is not None:
        append_layout(t, layout)
        return
    enc.append_string(format_time(t, layout))


def iso8601_time_encoder(t: datetime, enc: PrimitiveArrayEncoder) -> None:
    """Append an ISO8601 string with millisecond precision."""
    _encode_time_layout(t, ISO8601_LAYOUT, enc)


def rfc3339_time_encoder(t: datetime, enc: PrimitiveArrayEncoder) -> None:
    """Append an RFC3339 string."""
    _encode_time_layout(t, RFC3339_LAYOUT, enc)


def rfc3339nano_time_encoder(t: datetime, enc: PrimitiveArrayEncoder) -> None:
    """Append an RFC3339 string with sub-second precision."""
    _encode_time_layout(t, RFC3339NANO_LAYOUT, enc)


def time_encoder_of_layout(layout: str) -> TimeEncoder:
    """Return a time encoder that formats with the given layout."""

    def encode(t: datetime, enc: PrimitiveArrayEncoder) -> None:
        _encode_time_layout(t, layout, enc)

    return encode


def time_encoder_from_text(text: str | bytes) -> TimeEncoder:
    """Choose a time encoder by name; anything unknown means epoch seconds."""
    return {
        "rfc3339nano": rfc3339nano_time_encoder,
        "RFC3339Nano": rfc3339nano_time_encoder,
        "rfc3339": rfc3339_time_encoder,
        "RFC3339": rfc3339_time_encoder,
        "iso8601": iso8601_time_encoder,
        "ISO8601": iso8601_time_encoder,
        "millis": epoch_millis_time_encoder,
        "nanos": epoch_nanos_time_encoder,
    }.get(_text(text), epoch_time_encoder)


def time_encoder_from_config(value: Any) -> TimeEncoder | None:
    """Build a time encoder from a name or a mapping with a 'layout' entry."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        layout = value.get("layout", "")
        if layout is None:
            layout = ""
        if not isinstance(layout, str):
            raise TypeError(f"time encoder layout must be a string, not {type(layout).__name__}")
        return time_encoder_of_layout(layout)
    if isinstance(value, (str, bytes, bytearray)):
        return time_encoder_from_text(value)
    raise TypeError(f"cannot build a time encoder from {type(value).__name__}")


# --------------------------------------------------------------------------
# Duration encoders
# --------------------------------------------------------------------------


def seconds_duration_encoder(d: int | timedelta, enc: PrimitiveArrayEncoder) -> None:
    """Append floating-point seconds elapsed."""
    enc.append_float(_duration_nanos(d) / _SECOND)


def nanos_duration_encoder(d: int | timedelta, enc: PrimitiveArrayEncoder) -> None:
    """Append integer nanoseconds elapsed."""
    enc.append_int(_duration_nanos(d))


def millis_duration_encoder(d: int | timedelta, enc: PrimitiveArrayEncoder) -> None:
    """Append integer milliseconds elapsed, truncated toward zero."""
    nanos = _duration_nanos(d)
    millis = abs(nanos) // _MILLISECOND
    enc.append_int(-millis if nanos < 0 else millis)


def string_duration_encoder(d: int | timedelta, enc: PrimitiveArrayEncoder) -> None:
    """Append the duration as text, e.g. '1m0s'."""
    enc.append_string(format_duration(d))


def duration_encoder_from_text(text: str | bytes) -> DurationEncoder:
    """Choose a duration encoder by name; anything unknown means seconds."""
    return {
        "string": string_duration_encoder,
        "nanos": nanos_duration_encoder,
        "ms": millis_duration_encoder,
    }.get(_text(text), seconds_duration_encoder)


# --------------------------------------------------------------------------
# Caller and name encoders
# --------------------------------------------------------------------------


def full_caller_encoder(caller: EntryCaller, enc: PrimitiveArrayEncoder) -> None:
    """Append the caller as /full/path/to/package/file:line."""
    enc.append_string(str(caller))


def short_caller_encoder(caller: EntryCaller, enc: PrimitiveArrayEncoder) -> None:
    """Append the caller as package/file:line."""
    enc.append_string(caller.trimmed_path())


def caller_encoder_from_text(text: str | bytes) -> CallerEncoder:
    """Choose a caller encoder: 'full' or, for anything else, short."""
    return full_caller_encoder if _text(text) == "full" else short_caller_encoder


def full_name_encoder(name: str, enc: PrimitiveArrayEncoder) -> None:
    """Append the logger name as it is."""
    enc.append_string(name)


def name_encoder_from_text(text: str | bytes) -> NameEncoder:
    """Choose a name encoder; every name currently means the full name."""
    _text(text)
    return full_name_encoder


# --------------------------------------------------------------------------
# Configuration
# --------------------------------------------------------------------------


@dataclass
class EncoderConfig:
    """Keys and value encoders used by the concrete encoders.

    An empty key omits that part of the entry.
    """

    message_key: str = ""
    level_key: str = ""
    time_key: str = ""
    name_key: str = ""
    caller_key: str = ""
    function_key: str = ""
    stacktrace_key: str = ""
    line_ending: str = ""
    encode_level: LevelEncoder | None = None
    encode_time: TimeEncoder | None = None
    encode_duration: DurationEncoder | None = None
    encode_caller: CallerEncoder | None = None
    encode_name: NameEncoder | None = None
    console_separator: str = ""


_STRING_KEYS = {
    "messageKey": "message_key",
    "levelKey": "level_key",
    "timeKey": "time_key",
    "nameKey": "name_key",
    "callerKey": "caller_key",
    "functionKey": "function_key",
    "stacktraceKey": "stacktrace_key",
    "lineEnding": "line_ending",
    "consoleSeparator": "console_separator",
}

_ENCODER_KEYS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "levelEncoder": ("encode_level", level_encoder_from_text),
    "timeEncoder": ("encode_time", time_encoder_from_config),
    "durationEncoder": ("encode_duration", duration_encoder_from_text),
    "callerEncoder": ("encode_caller", caller_encoder_from_text),
    "nameEncoder": ("encode_name", name_encoder_from_text),
}


def encoder_config_from_dict(data: Mapping[str, Any]) -> EncoderConfig:
    """Build a config from a decoded JSON or YAML mapping with camelCase keys.

    Unknown keys are ignored; values of the wrong type raise TypeError.
    """
    if not isinstance(data, Mapping):
        raise TypeError(f"encoder config must be a mapping, not {type(data).__name__}")
    kwargs: dict[str, Any] = {}
    for key, attr in _STRING_KEYS.items():
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise TypeError(f"{key} must be a string, not {type(value).__name__}")
        kwargs[attr] = value
    for key, (attr, build) in _ENCODER_KEYS.items():
        value = data.get(key)
        if value is None:
            continue
        kwargs[attr] = build(value)
    return EncoderConfig(**kwargs)