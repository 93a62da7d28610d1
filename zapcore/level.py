"""Logging levels, their textual forms and their coloured forms."""

from __future__ import annotations

import enum
import json
from typing import ClassVar, Protocol, runtime_checkable

__all__ = [
    "Level",
    "LevelEnabler",
    "MIN_LEVEL",
    "MAX_LEVEL",
    "ALL_LEVELS",
    "parse_level",
    "color_string",
    "capital_color_string",
]


class Level(int):
    """A logging priority. Higher levels are more important."""

    __slots__ = ()

    DEBUG: ClassVar["Level"]
    INFO: ClassVar["Level"]
    WARN: ClassVar["Level"]
    ERROR: ClassVar["Level"]
    DPANIC: ClassVar["Level"]
    PANIC: ClassVar["Level"]
    FATAL: ClassVar["Level"]

    def __str__(self) -> str:
        name = _LOWER_NAMES.get(int(self))
        return name if name is not None else f"Level({int(self)})"

    def __repr__(self) -> str:
        name = _LOWER_NAMES.get(int(self))
        if name is not None:
            return f"Level.{name.upper()}"
        return f"Level({int(self)})"

    def __format__(self, spec: str) -> str:
        if not spec:
            return str(self)
        return format(str(self), spec)

    def capital_string(self) -> str:
        """Return an all-caps representation of the level."""
        name = _LOWER_NAMES.get(int(self))
        return name.upper() if name is not None else f"LEVEL({int(self)})"

    def enabled(self, lvl: int) -> bool:
        """Return True if ``lvl`` is at or above this level."""
        return lvl >= self


_LOWER_NAMES = {
    -1: "debug",
    0: "info",
    1: "warn",
    2: "error",
    3: "dpanic",
    4: "panic",
    5: "fatal",
}

Level.DEBUG = Level(-1)
Level.INFO = Level(0)
Level.WARN = Level(1)
Level.ERROR = Level(2)
Level.DPANIC = Level(3)
Level.PANIC = Level(4)
Level.FATAL = Level(5)

MIN_LEVEL = Level.DEBUG
MAX_LEVEL = Level.FATAL
ALL_LEVELS: tuple[Level, ...] = tuple(
    Level(value) for value in range(MIN_LEVEL, MAX_LEVEL + 1)
)


@runtime_checkable
class LevelEnabler(Protocol):
    """Decides whether a given logging level is enabled."""

    def enabled(self, lvl: Level) -> bool:
        """Return True if messages at ``lvl`` should be logged."""
        ...


_FROM_TEXT = {name: Level(value) for value, name in _LOWER_NAMES.items()}
_FROM_TEXT[""] = Level.INFO  # make the empty value useful


def parse_level(text: str | bytes) -> Level:
    """Parse a level name, case-insensitively; the empty string means info."""
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8", errors="replace")
    level = _FROM_TEXT.get(text)
    if level is None:
        level = _FROM_TEXT.get(text.lower())
    if level is None:
        raise ValueError(f"unrecognized level: {json.dumps(text, ensure_ascii=False)}")
    return level


class _Color(enum.IntEnum):
    BLACK = 30
    RED = 31
    GREEN = 32
    YELLOW = 33
    BLUE = 34
    MAGENTA = 35
    CYAN = 36
    WHITE = 37

    def add(self, text: str) -> str:
        return f"\x1b[{int(self)}m{text}\x1b[0m"


_LEVEL_TO_COLOR = {
    Level.DEBUG: _Color.MAGENTA,
    Level.INFO: _Color.BLUE,
    Level.WARN: _Color.YELLOW,
    Level.ERROR: _Color.RED,
    Level.DPANIC: _Color.RED,
    Level.PANIC: _Color.RED,
    Level.FATAL: _Color.RED,
}
_UNKNOWN_LEVEL_COLOR = _Color.RED

_LOWERCASE_COLOR_STRINGS = {
    level: color.add(str(level)) for level, color in _LEVEL_TO_COLOR.items()
}
_CAPITAL_COLOR_STRINGS = {
    level: color.add(level.capital_string()) for level, color in _LEVEL_TO_COLOR.items()
}


def color_string(level: int) -> str:
    """Return the lowercase level name wrapped in its terminal colour."""
    level = Level(level)
    cached = _LOWERCASE_COLOR_STRINGS.get(level)
    return cached if cached is not None else _UNKNOWN_LEVEL_COLOR.add(str(level))


def capital_color_string(level: int) -> str:
    """Return the all-caps level name wrapped in its terminal colour."""
    level = Level(level)
    cached = _CAPITAL_COLOR_STRINGS.get(level)
    if cached is not None:
        return cached
    return _UNKNOWN_LEVEL_COLOR.add(level.capital_string())