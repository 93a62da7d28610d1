"""A core wrapper that samples repetitive log entries."""

from __future__ import annotations

import enum
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Sequence

from zapcore.entry import CheckedEntry, Core, Entry
from zapcore.level import MAX_LEVEL, MIN_LEVEL, Level

__all__ = [
    "SamplingDecision",
    "fnv32a",
    "sampler_hook",
    "new_sampler_with_options",
    "new_sampler",
]

_COUNTERS_PER_LEVEL = 4096
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_SECOND = 10**9
_MICROSECOND = 10**3


class SamplingDecision(enum.IntFlag):
    """A decision made by the sampler, as a bit field."""

    LOG_DROPPED = 1
    LOG_SAMPLED = 2


def fnv32a(s: str) -> int:
    """Return the 32-bit FNV-1a hash of the UTF-8 bytes of ``s``."""
    h = 2166136261
    for byte in s.encode("utf-8", errors="surrogatepass"):
        h ^= byte
        h = (h * 16777619) & 0xFFFFFFFF
    return h


def _nanos(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, timedelta):
        return (value.days * 86400 + value.seconds) * _SECOND + value.microseconds * _MICROSECOND
    if isinstance(value, datetime):
        aware = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
        return _nanos(aware - _EPOCH)
    return int(value)


class _Counters:
    """Per-level, hash-bucketed counters that reset every tick."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reset_at: dict[tuple[int, int], int] = {}
        self._counts: dict[tuple[int, int], int] = {}

    def inc_check_reset(self, lvl: Level, key: str, now: int, tick: int) -> int:
        slot = (int(lvl) - int(MIN_LEVEL), fnv32a(key) % _COUNTERS_PER_LEVEL)
        with self._lock:
            if self._reset_at.get(slot, 0) > now:
                self._counts[slot] += 1
                return self._counts[slot]
            self._counts[slot] = 1
            self._reset_at[slot] = now + tick
            return 1


SamplingHook = Callable[[Entry, SamplingDecision], None]


def _nop_hook(ent: Entry, dec: SamplingDecision) -> None:
    return None


class _Sampler(Core):
    def __init__(
        self,
        core: Core,
        tick: int,
        counts: _Counters,
        first: int,
        thereafter: int,
        hook: SamplingHook,
    ) -> None:
        self._core = core
        self.tick = tick
        self.counts = counts
        self.first = first
        self.thereafter = thereafter
        self.hook = hook

    def enabled(self, lvl: Level) -> bool:
        return self._core.enabled(lvl)

    def with_fields(self, fields: Sequence[Any]) -> Core:
        # Children share the counters of their parent.
        return _Sampler(
            self._core.with_fields(fields),
            self.tick,
            self.counts,
            self.first,
            self.thereafter,
            self.hook,
        )

    def check(self, ent: Entry, ce: CheckedEntry | None) -> CheckedEntry | None:
        if not self.enabled(ent.level):
            return ce
        if MIN_LEVEL <= ent.level <= MAX_LEVEL:
            n = self.counts.inc_check_reset(
                Level(ent.level), ent.message, _nanos(ent.time), self.tick
            )
            if n > self.first and (n - self.first) % self.thereafter != 0:
                self.hook(ent, SamplingDecision.LOG_DROPPED)
                return ce
            self.hook(ent, SamplingDecision.LOG_SAMPLED)
        return self._core.check(ent, ce)

    def write(self, ent: Entry, fields: Sequence[Any]) -> None:
        self._core.write(ent, fields)

    def sync(self) -> None:
        self._core.sync()


class _SamplerOption:
    """Configures a sampler."""

    def __init__(self, apply: Callable[[_Sampler], None]) -> None:
        self._apply = apply

    def apply(self, sampler: _Sampler) -> None:
        self._apply(sampler)


def sampler_hook(hook: SamplingHook) -> _SamplerOption:
    """Return an option that reports each sampling decision to ``hook``."""

    def apply(sampler: _Sampler) -> None:
        sampler.hook = hook

    return _SamplerOption(apply)


def new_sampler_with_options(
    core: Core, tick: int | timedelta, first: int, thereafter: int, *args: _SamplerOption
) -> Core:
    """Wrap ``core`` so that, per level and message and per tick, the first
    ``first`` entries are logged and then every ``thereafter``-th one.

    ``tick`` is a timedelta or a number of nanoseconds.
    """
    sampler = _Sampler(core, _nanos(tick), _Counters(), int(first), int(thereafter), _nop_hook)
    for option in args:
        option.apply(sampler)
    return sampler


def new_sampler(core: Core, tick: int | timedelta, first: int, thereafter: int) -> Core:
    """Create a sampling core without options."""
    return new_sampler_with_options(core, tick, first, thereafter)