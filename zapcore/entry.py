"""Log entries, their callers, cores and checked entries."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Sequence

from zapcore.level import Level

__all__ = [
    "ZERO_TIME",
    "EntryCaller",
    "new_entry_caller",
    "Entry",
    "CheckWriteAction",
    "PanicError",
    "TaskExit",
    "Core",
    "CheckedEntry",
    "add_core",
    "should",
]

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_UNDEFINED = "undefined"


@dataclass(frozen=True)
class EntryCaller:
    """The caller of a logging function."""

    defined: bool = False
    pc: int = 0
    file: str = ""
    line: int = 0
    function: str = ""

    def __str__(self) -> str:
        return self.full_path()

    def full_path(self) -> str:
        """Return a /full/path/to/package/file:line description."""
        if not self.defined:
            return _UNDEFINED
        return f"{self.file}:{self.line}"

    def trimmed_path(self) -> str:
        """Return a package/file:line description, keeping only the leaf directory."""
        if not self.defined:
            return _UNDEFINED
        last = self.file.rfind("/")
        if last == -1:
            return self.full_path()
        penultimate = self.file.rfind("/", 0, last)
        if penultimate == -1:
            return self.full_path()
        return f"{self.file[penultimate + 1:]}:{self.line}"


def new_entry_caller(pc: int, file: str, line: int, ok: bool) -> EntryCaller:
    """Build an EntryCaller; an undefined one when ``ok`` is false."""
    if not ok:
        return EntryCaller()
    return EntryCaller(defined=True, pc=pc, file=file, line=line)


@dataclass(frozen=True)
class Entry:
    """A complete log message; empty parts are omitted when encoding."""

    level: Level = Level.INFO
    time: datetime = ZERO_TIME
    logger_name: str = ""
    message: str = ""
    caller: EntryCaller = field(default_factory=EntryCaller)
    stack: str = ""


class CheckWriteAction(enum.IntEnum):
    """What to do after an entry is written, in increasing severity."""

    WRITE_THEN_NOOP = 0
    WRITE_THEN_GOEXIT = 1
    WRITE_THEN_PANIC = 2
    WRITE_THEN_FATAL = 3


class PanicError(RuntimeError):
    """Raised after writing an entry that demands a panic."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TaskExit(BaseException):
    """Raised after writing an entry that ends the current task."""


class Core(abc.ABC):
    """A minimal, fast logger interface."""

    @abc.abstractmethod
    def enabled(self, lvl: Level) -> bool:
        """Return True if the given level is enabled."""

    @abc.abstractmethod
    def with_fields(self, fields: Sequence[Any]) -> "Core":
        """Return a copy of this core with the fields added to its context."""

    @abc.abstractmethod
    def check(self, ent: Entry, ce: "CheckedEntry | None") -> "CheckedEntry | None":
        """Add this core to ``ce`` if it should log ``ent``; return the result."""

    @abc.abstractmethod
    def write(self, ent: Entry, fields: Sequence[Any]) -> None:
        """Serialize and write the entry; raise on failure."""

    @abc.abstractmethod
    def sync(self) -> None:
        """Flush buffered logs; raise on failure."""


@dataclass
class CheckedEntry:
    """An Entry together with the cores that have agreed to log it."""

    entry: Entry = field(default_factory=Entry)
    error_output: Any = None
    action: CheckWriteAction = CheckWriteAction.WRITE_THEN_NOOP
    cores: list[Core] = field(default_factory=list)
    _dirty: bool = field(default=False, init=False, repr=False)

    def _report(self, message: str) -> None:
        out = self.error_output
        out.write(message)
        sync = getattr(out, "sync", None) or getattr(out, "flush", None)
        if sync is not None:
            sync()

    def write(self, *fields: Any) -> None:
        """Write the entry to every core, then carry out the requested action."""
        if self._dirty:
            if self.error_output is not None:
                self._report(
                    f"{self.entry.time} Unsafe CheckedEntry re-use near Entry {self.entry!r}.\n"
                )
            return
        self._dirty = True

        field_list = list(fields)
        errors: list[Exception] = []
        for core in self.cores:
            try:
                core.write(self.entry, field_list)
            except Exception as exc:  # noqa: BLE001 - every core gets its turn
                errors.append(exc)
        if errors and self.error_output is not None:
            joined = "; ".join(str(err) for err in errors)
            self._report(f"{self.entry.time} write error: {joined}\n")

        if self.action is CheckWriteAction.WRITE_THEN_PANIC:
            raise PanicError(self.entry.message)
        if self.action is CheckWriteAction.WRITE_THEN_FATAL:
            raise SystemExit(1)
        if self.action is CheckWriteAction.WRITE_THEN_GOEXIT:
            raise TaskExit()


def add_core(ce: CheckedEntry | None, ent: Entry, core: Core) -> CheckedEntry:
    """Add a core that agreed to log; creates the CheckedEntry when ``ce`` is None."""
    if ce is None:
        ce = CheckedEntry(entry=ent)
    ce.cores.append(core)
    return ce


def should(ce: CheckedEntry | None, ent: Entry, action: CheckWriteAction) -> CheckedEntry:
    """Set the post-write action; creates the CheckedEntry when ``ce`` is None."""
    if ce is None:
        ce = CheckedEntry(entry=ent)
    ce.action = CheckWriteAction(action)
    return ce