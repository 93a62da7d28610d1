from datetime import datetime, timezone

import pytest

from zapcore.marshaler import ArrayMarshalerFunc
from zapcore.memory_encoder import MapObjectEncoder


class Loggable:
    def __init__(self, ok):
        self.ok = ok

    def marshal_log_object(self, enc):
        if not self.ok:
            raise ValueError("can't marshal")
        enc.add_string("loggable", "yes")


class Turducken:
    def marshal_log_object(self, enc):
        def ducks(arr):
            for _ in range(2):
                arr.append_object(
                    type("Duck", (), {"marshal_log_object": lambda self, e: e.add_string("in", "chicken")})()
                )

        enc.add_array("ducks", ArrayMarshalerFunc(ducks))


class Turduckens:
    def __init__(self, n):
        self.n = n

    def marshal_log_array(self, enc):
        for _ in range(self.n):
            enc.append_object(Turducken())


WANT_TURDUCKEN = {"ducks": [{"in": "chicken"}, {"in": "chicken"}]}
EPOCH_100NS = datetime(1970, 1, 1, tzinfo=timezone.utc)
MAP_FOO = {"foo": 5}


def _bools(arr):
    arr.append_bool(True)
    arr.append_bool(False)
    arr.append_bool(True)


def _namespaces(e):
    e.open_namespace("k")
    e.add_int("foo", 1)
    e.open_namespace("middle")
    e.add_int("foo", 2)
    e.open_namespace("inner")
    e.add_int("foo", 3)


ADD_CASES = [
    ("add_object", lambda e: e.add_object("k", Loggable(True)), {"loggable": "yes"}),
    ("add_object nested", lambda e: e.add_object("k", Turducken()), WANT_TURDUCKEN),
    ("add_array", lambda e: e.add_array("k", ArrayMarshalerFunc(_bools)), [True, False, True]),
    ("add_array nested", lambda e: e.add_array("k", Turduckens(2)), [WANT_TURDUCKEN, WANT_TURDUCKEN]),
    ("add_array empty", lambda e: e.add_array("k", Turduckens(0)), []),
    ("add_binary", lambda e: e.add_binary("k", b"foo"), b"foo"),
    ("add_byte_string", lambda e: e.add_byte_string("k", b"foo"), "foo"),
    ("add_bool", lambda e: e.add_bool("k", True), True),
    ("add_complex", lambda e: e.add_complex("k", 1 + 2j), 1 + 2j),
    ("add_duration", lambda e: e.add_duration("k", 1_000_000), 1_000_000),
    ("add_float", lambda e: e.add_float("k", 3.14), 3.14),
    ("add_int", lambda e: e.add_int("k", 42), 42),
    ("add_uint", lambda e: e.add_uint("k", 42), 42),
    ("add_string", lambda e: e.add_string("k", "v"), "v"),
    ("add_time", lambda e: e.add_time("k", EPOCH_100NS), EPOCH_100NS),
    ("add_reflected", lambda e: e.add_reflected("k", {"foo": 5}), MAP_FOO),
    (
        "open_namespace",
        _namespaces,
        {"foo": 1, "middle": {"foo": 2, "inner": {"foo": 3}}},
    ),
]


@pytest.mark.parametrize("desc,f,expected", ADD_CASES, ids=[c[0] for c in ADD_CASES])
def test_map_object_encoder_add(desc, f, expected):
    enc = MapObjectEncoder()
    f(enc)
    assert enc.fields["k"] == expected


def test_add_float32_rounds_to_single_precision():
    enc = MapObjectEncoder()
    enc.add_float32("k", 3.14)
    value = enc.fields["k"]
    assert value == pytest.approx(3.14, rel=1e-6)
    assert value != 3.14


APPEND_CASES = [
    ("append_bool", lambda e: e.append_bool(True), True),
    ("append_byte_string", lambda e: e.append_byte_string(b"foo"), "foo"),
    ("append_complex", lambda e: e.append_complex(1 + 2j), 1 + 2j),
    ("append_duration", lambda e: e.append_duration(1_000_000_000), 1_000_000_000),
    ("append_float", lambda e: e.append_float(3.14), 3.14),
    ("append_int", lambda e: e.append_int(42), 42),
    ("append_uint", lambda e: e.append_uint(42), 42),
    ("append_string", lambda e: e.append_string("foo"), "foo"),
    ("append_time", lambda e: e.append_time(EPOCH_100NS), EPOCH_100NS),
    ("append_reflected", lambda e: e.append_reflected({"foo": 5}), MAP_FOO),
    (
        "append_array",
        lambda e: e.append_array(
            ArrayMarshalerFunc(lambda inner: (inner.append_bool(True), inner.append_bool(False)))
        ),
        [True, False],
    ),
]


@pytest.mark.parametrize("desc,f,expected", APPEND_CASES, ids=[c[0] for c in APPEND_CASES])
def test_slice_array_encoder_append(desc, f, expected):
    enc = MapObjectEncoder()

    def twice(arr):
        f(arr)
        f(arr)

    enc.add_array("k", ArrayMarshalerFunc(twice))
    assert enc.fields["k"] == [expected, expected]


def test_append_float32_in_array():
    enc = MapObjectEncoder()
    enc.add_array("k", ArrayMarshalerFunc(lambda arr: arr.append_float32(3.14)))
    (value,) = enc.fields["k"]
    assert value == pytest.approx(3.14, rel=1e-6)
    assert value != 3.14


def test_map_object_encoder_reflection_failures():
    enc = MapObjectEncoder()
    with pytest.raises(ValueError):
        enc.add_object("object", Loggable(False))
    assert enc.fields == {"object": {}}


def test_add_array_failure_keeps_partial_elements():
    enc = MapObjectEncoder()

    def partial(arr):
        arr.append_string("user")
        raise ValueError("too few users")

    with pytest.raises(ValueError, match="too few users"):
        enc.add_array("k", ArrayMarshalerFunc(partial))
    assert enc.fields == {"k": ["user"]}


def test_namespace_fields_do_not_leak_to_top_level():
    enc = MapObjectEncoder()
    enc.add_string("top", "a")
    enc.open_namespace("ns")
    enc.add_string("inner", "b")
    assert enc.fields == {"top": "a", "ns": {"inner": "b"}}