import argparse

import pytest

from zapcore.level import (
    ALL_LEVELS,
    MAX_LEVEL,
    MIN_LEVEL,
    Level,
    LevelEnabler,
    capital_color_string,
    color_string,
    parse_level,
)


@pytest.mark.parametrize(
    "level, text",
    [
        (Level.DEBUG, "debug"),
        (Level.INFO, "info"),
        (Level.WARN, "warn"),
        (Level.ERROR, "error"),
        (Level.DPANIC, "dpanic"),
        (Level.PANIC, "panic"),
        (Level.FATAL, "fatal"),
        (Level(-42), "Level(-42)"),
    ],
)
def test_level_string(level, text):
    assert str(level) == text
    assert f"{level}" == text
    assert level.capital_string() == text.upper()


@pytest.mark.parametrize(
    "text, level",
    [
        ("debug", Level.DEBUG),
        ("info", Level.INFO),
        ("", Level.INFO),
        ("warn", Level.WARN),
        ("error", Level.ERROR),
        ("dpanic", Level.DPANIC),
        ("panic", Level.PANIC),
        ("fatal", Level.FATAL),
    ],
)
def test_level_text_round_trip(text, level):
    if text:
        assert str(level) == text
    assert parse_level(text) == level


@pytest.mark.parametrize(
    "text, level",
    [
        ("DEBUG", Level.DEBUG),
        ("INFO", Level.INFO),
        ("WARN", Level.WARN),
        ("ERROR", Level.ERROR),
        ("DPANIC", Level.DPANIC),
        ("PANIC", Level.PANIC),
        ("FATAL", Level.FATAL),
    ],
)
def test_capital_levels_parse(text, level):
    assert parse_level(text) == level


@pytest.mark.parametrize(
    "text, level",
    [
        ("Debug", Level.DEBUG),
        ("Info", Level.INFO),
        ("Warn", Level.WARN),
        ("Error", Level.ERROR),
        ("Dpanic", Level.DPANIC),
        ("Panic", Level.PANIC),
        ("Fatal", Level.FATAL),
        ("DeBuG", Level.DEBUG),
        ("InFo", Level.INFO),
        ("WaRn", Level.WARN),
        ("ErRor", Level.ERROR),
        ("DpAnIc", Level.DPANIC),
        ("PaNiC", Level.PANIC),
        ("FaTaL", Level.FATAL),
    ],
)
def test_weird_levels_parse(text, level):
    assert parse_level(text) == level


def test_parse_bytes():
    assert parse_level(b"warn") == Level.WARN


def test_unknown_text_fails():
    with pytest.raises(ValueError, match="unrecognized level"):
        parse_level("foo")


def test_unknown_text_message():
    with pytest.raises(ValueError) as info:
        parse_level("nope")
    assert str(info.value) == 'unrecognized level: "nope"'


def test_level_as_argument_type():
    parser = argparse.ArgumentParser(exit_on_error=False)
    parser.add_argument("--level", type=parse_level)
    for expected in ALL_LEVELS:
        assert parse_level(str(expected)) == expected
        assert parser.parse_args(["--level", str(expected)]).level == expected
    with pytest.raises(argparse.ArgumentError):
        parser.parse_args(["--level", "nope"])


def test_enabled():
    assert Level.WARN.enabled(Level.WARN)
    assert Level.WARN.enabled(Level.FATAL)
    assert not Level.WARN.enabled(Level.INFO)
    assert not Level.WARN.enabled(Level.DEBUG)


def test_level_is_level_enabler():
    enabler: LevelEnabler = Level.INFO
    assert isinstance(enabler, LevelEnabler)
    assert enabler.enabled(Level.INFO)
    assert enabler.enabled(Level.ERROR)
    assert not enabler.enabled(Level.DEBUG)


def test_all_levels_range():
    assert ALL_LEVELS[0] == MIN_LEVEL == Level.DEBUG
    assert ALL_LEVELS[-1] == MAX_LEVEL == Level.FATAL
    assert [str(level) for level in ALL_LEVELS] == [
        "debug",
        "info",
        "warn",
        "error",
        "dpanic",
        "panic",
        "fatal",
    ]
    assert all(MIN_LEVEL.enabled(level) for level in ALL_LEVELS)
    assert [MAX_LEVEL.enabled(level) for level in ALL_LEVELS] == [False] * 6 + [True]


def test_all_levels_covered_by_color_strings():
    for level in ALL_LEVELS:
        assert color_string(level).startswith("\x1b[")
        assert str(level) in color_string(level)
        assert level.capital_string() in capital_color_string(level)
    assert len({color_string(level) for level in ALL_LEVELS}) == len(ALL_LEVELS)


def test_color_string_values():
    assert color_string(Level.INFO) == "\x1b[34minfo\x1b[0m"
    assert capital_color_string(Level.DEBUG) == "\x1b[35mDEBUG\x1b[0m"
    assert capital_color_string(Level.WARN) == "\x1b[33mWARN\x1b[0m"


def test_unknown_level_colored_red():
    assert color_string(Level(-42)) == "\x1b[31mLevel(-42)\x1b[0m"
    assert capital_color_string(Level(42)) == "\x1b[31mLEVEL(42)\x1b[0m"