"""A core that duplicates entries into several cores."""

from __future__ import annotations

from typing import Any, Sequence

from zapcore.entry import CheckedEntry, Core, Entry
from zapcore.error_encoding import append_error
from zapcore.level import Level

__all__ = ["new_tee"]


class _NopCore(Core):
    """A core that is never enabled and writes nothing."""

    def enabled(self, lvl: Level) -> bool:
        return False

    def with_fields(self, fields: Sequence[Any]) -> Core:
        return self

    def check(self, ent: Entry, ce: CheckedEntry | None) -> CheckedEntry | None:
        return ce

    def write(self, ent: Entry, fields: Sequence[Any]) -> None:
        return None

    def sync(self) -> None:
        return None

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _NopCore)

    def __hash__(self) -> int:
        return hash(_NopCore)


class _MultiCore(Core):
    def __init__(self, cores: Sequence[Core]) -> None:
        self._cores = tuple(cores)

    def enabled(self, lvl: Level) -> bool:
        return any(core.enabled(lvl) for core in self._cores)

    def with_fields(self, fields: Sequence[Any]) -> Core:
        return _MultiCore([core.with_fields(fields) for core in self._cores])

    def check(self, ent: Entry, ce: CheckedEntry | None) -> CheckedEntry | None:
        for core in self._cores:
            ce = core.check(ent, ce)
        return ce

    def write(self, ent: Entry, fields: Sequence[Any]) -> None:
        err: BaseException | None = None
        for core in self._cores:
            try:
                core.write(ent, fields)
            except Exception as exc:  # noqa: BLE001 - gathered and re-raised
                err = append_error(err, exc)
        if err is not None:
            raise err

    def sync(self) -> None:
        err: BaseException | None = None
        for core in self._cores:
            try:
                core.sync()
            except Exception as exc:  # noqa: BLE001 - gathered and re-raised
                err = append_error(err, exc)
        if err is not None:
            raise err


def new_tee(*args: Core) -> Core:
    """Combine cores so that each entry goes to all of them.

    A single core is returned unchanged; no cores give a no-op core.
    """
    if not args:
        return _NopCore()
    if len(args) == 1:
        return args[0]
    return _MultiCore(args)