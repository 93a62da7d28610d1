"""A core wrapper that raises the minimum level of another core."""

from __future__ import annotations

from typing import Any, Sequence

from zapcore.entry import CheckedEntry, Core, Entry
from zapcore.level import ALL_LEVELS, Level, LevelEnabler

__all__ = ["new_increase_level_core"]


class _LevelFilterCore(Core):
    """Filters entries by a stricter level before handing them on."""

    def __init__(self, core: Core, level: LevelEnabler) -> None:
        self._core = core
        self._level = level

    def enabled(self, lvl: Level) -> bool:
        return self._level.enabled(lvl)

    def with_fields(self, fields: Sequence[Any]) -> Core:
        return _LevelFilterCore(self._core.with_fields(fields), self._level)

    def check(self, ent: Entry, ce: CheckedEntry | None) -> CheckedEntry | None:
        if not self.enabled(ent.level):
            return ce
        return self._core.check(ent, ce)

    def write(self, ent: Entry, fields: Sequence[Any]) -> None:
        self._core.write(ent, fields)

    def sync(self) -> None:
        self._core.sync()


def new_increase_level_core(core: Core, level: LevelEnabler) -> Core:
    """Wrap ``core`` so that only levels enabled by ``level`` are logged.

    Raises ValueError if ``level`` would allow a level that ``core`` rejects,
    since the wrapper can only raise the level, never lower it.
    """
    for lvl in reversed(ALL_LEVELS):
        if not core.enabled(lvl) and level.enabled(lvl):
            raise ValueError(
                f'invalid increase level, as level "{lvl}" is allowed by increased '
                "level, but not by existing core"
            )
    return _LevelFilterCore(core, level)