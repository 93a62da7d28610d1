"""Encoding errors, including groups of errors, into log fields."""

from __future__ import annotations

import contextlib
from typing import Any, Iterable

__all__ = ["MultiError", "combine", "append_error", "encode_error"]


class MultiError(Exception):
    """Several errors reported together as one."""

    def __init__(self, errors: Iterable[BaseException]) -> None:
        self._errors = tuple(errors)
        super().__init__(*self._errors)

    def __str__(self) -> str:
        return "; ".join(str(err) for err in self._errors)

    def errors(self) -> list[BaseException]:
        """Return the errors this error is made of."""
        return list(self._errors)

    def verbose(self) -> str:
        """Return a multi-line description listing every error."""
        lines = ["the following errors occurred:"]
        for err in self._errors:
            lines.append(" -  " + _verbose_text(err).replace("\n", "\n    "))
        return "\n".join(lines)


def _verbose_text(err: Any) -> str:
    verbose = getattr(err, "verbose", None)
    return verbose() if callable(verbose) else str(err)


def combine(*args: BaseException | None) -> BaseException | None:
    """Merge errors into one, skipping None and flattening MultiErrors.

    Returns None when nothing is left and the sole error when only one is given.
    """
    present = [err for err in args if err is not None]
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    flat: list[BaseException] = []
    for err in present:
        if isinstance(err, MultiError):
            flat.extend(err.errors())
        else:
            flat.append(err)
    return MultiError(flat)


def append_error(err: BaseException | None, other: BaseException | None) -> BaseException | None:
    """Append ``other`` to ``err``; either may be None."""
    if err is None:
        return other
    if other is None:
        return err
    return combine(err, other)


def _describe(exc: BaseException) -> str:
    try:
        return str(exc)
    except Exception:  # noqa: BLE001 - the message itself is broken
        return f"<unprintable {type(exc).__name__}>"


class _ErrorElement:
    """Encodes one error as {"error": ...}."""

    def __init__(self, err: Any) -> None:
        self.err = err

    def marshal_log_object(self, enc: Any) -> None:
        encode_error("error", self.err, enc)


class _ErrorArray:
    """Encodes a list of errors as an array of error objects."""

    def __init__(self, errors: list[Any]) -> None:
        self._errors = errors

    def marshal_log_array(self, arr: Any) -> None:
        for err in self._errors:
            if err is None:
                continue
            # A failing element still leaves its partial object in place.
            with contextlib.suppress(Exception):
                arr.append_object(_ErrorElement(err))


def encode_error(key: str, err: Any, enc: Any) -> None:
    """Add ``err`` to ``enc`` under ``key``.

    Errors exposing ``errors()`` also get a ``<key>Causes`` array; errors
    exposing ``verbose()`` get a ``<key>Verbose`` string when it differs from
    the plain message. A failure while describing the error is raised as a
    RuntimeError whose message starts with ``PANIC=``.
    """
    if err is None:
        enc.add_string(key, "<nil>")
        return

    try:
        basic = str(err)
    except Exception as exc:  # noqa: BLE001 - any failure is reported
        raise RuntimeError(f"PANIC={_describe(exc)}") from exc
    enc.add_string(key, basic)

    group = getattr(err, "errors", None)
    if callable(group):
        try:
            causes = list(group())
        except Exception as exc:  # noqa: BLE001
            raise RuntimeError(f"PANIC={_describe(exc)}") from exc
        enc.add_array(key + "Causes", _ErrorArray(causes))
        return

    verbose = getattr(err, "verbose", None)
    if callable(verbose):
        try:
            text = verbose()
        except Exception as exc:  # noqa: BLE001
            raise RuntimeError(f"PANIC={_describe(exc)}") from exc
        if text != basic:
            enc.add_string(key + "Verbose", text)