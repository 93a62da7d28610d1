"""A core wrapper that runs user callbacks for every logged entry."""

from __future__ import annotations

from typing import Any, Callable, Sequence

from zapcore.entry import CheckedEntry, Core, Entry, add_core
from zapcore.error_encoding import append_error
from zapcore.level import Level

__all__ = ["register_hooks"]

Hook = Callable[[Entry], None]


class _HookedCore(Core):
    """Lets the wrapped core decide, then runs the hooks on write."""

    def __init__(self, core: Core, funcs: tuple[Hook, ...]) -> None:
        self._core = core
        self._funcs = funcs

    def enabled(self, lvl: Level) -> bool:
        return self._core.enabled(lvl)

    def with_fields(self, fields: Sequence[Any]) -> Core:
        return _HookedCore(self._core.with_fields(fields), self._funcs)

    def check(self, ent: Entry, ce: CheckedEntry | None) -> CheckedEntry | None:
        # The wrapped core registers itself directly with the checked entry.
        downstream = self._core.check(ent, ce)
        if downstream is not None:
            return add_core(downstream, ent, self)
        return ce

    def write(self, ent: Entry, fields: Sequence[Any]) -> None:
        """Run every hook; errors from all of them are raised together."""
        err: BaseException | None = None
        for func in self._funcs:
            try:
                func(ent)
            except Exception as exc:  # noqa: BLE001 - gathered and re-raised
                err = append_error(err, exc)
        if err is not None:
            raise err

    def sync(self) -> None:
        self._core.sync()


def register_hooks(core: Core, *args: Hook) -> Core:
    """Wrap ``core`` so that each hook is called for every entry it logs.

    Hooks run synchronously, in order; an exception from a hook is reported
    as an error of the write.
    """
    return _HookedCore(core, tuple(args))