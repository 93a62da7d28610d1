from datetime import datetime, timedelta, timezone

import pytest

from zapcore.error_encoding import combine
from zapcore.field import Field, FieldType, add_fields, encode_stringer
from zapcore.memory_encoder import MapObjectEncoder


class Users(int):
    def __str__(self):
        return f"{int(self)} users"

    def marshal_log_object(self, enc):
        if int(self) < 0:
            raise ValueError("too few users")
        enc.add_int("users", int(self))

    def marshal_log_array(self, enc):
        if int(self) < 0:
            raise ValueError("too few users")
        for _ in range(int(self)):
            enc.append_string("user")


class Obj:
    def __init__(self, kind=0):
        self.kind = kind

    def __str__(self):
        if self.kind == 1:
            raise RuntimeError("panic with string")
        if self.kind == 2:
            raise ValueError("panic with error")
        return "obj"


class ErrObj(Exception):
    def __init__(self, kind=0, msg=""):
        super().__init__(msg)
        self.kind = kind
        self.msg = msg

    def __str__(self):
        if self.kind == 1:
            raise RuntimeError("panic in Error() method")
        return self.msg


UTC = timezone.utc
MOMENT = datetime(1970, 1, 1, 0, 0, 0, 1, tzinfo=UTC)


def test_unknown_field_type_raises():
    unknown = Field(key="k", string="foo")
    assert unknown.type is FieldType.UNKNOWN
    with pytest.raises(ValueError, match="unknown field type"):
        unknown.add_to(MapObjectEncoder())


@pytest.mark.parametrize(
    "ftype,iface,want,err",
    [
        (FieldType.ARRAY_MARSHALER, Users(-1), [], "too few users"),
        (FieldType.OBJECT_MARSHALER, Users(-1), {}, "too few users"),
        (FieldType.INLINE_MARSHALER, Users(-1), None, "too few users"),
        (FieldType.STRINGER, Obj(1), None, "PANIC=panic with string"),
        (FieldType.STRINGER, Obj(2), None, "PANIC=panic with error"),
        (FieldType.ERROR, ErrObj(kind=1), None, "PANIC=panic in Error() method"),
    ],
)
def test_field_adding_error(ftype, iface, want, err):
    f = Field(key="k", type=ftype, interface=iface)
    enc = MapObjectEncoder()
    f.add_to(enc)
    assert enc.fields.get("k") == want
    assert enc.fields["kError"] == err


@pytest.mark.parametrize(
    "ftype,integer,string,iface,want",
    [
        (FieldType.ARRAY_MARSHALER, 0, "", Users(2), ["user", "user"]),
        (FieldType.OBJECT_MARSHALER, 0, "", Users(2), {"users": 2}),
        (FieldType.BOOL, 0, "", None, False),
        (FieldType.BOOL, 1, "", None, True),
        (FieldType.BYTE_STRING, 0, "", b"foo", "foo"),
        (FieldType.BINARY, 0, "", b"foo", b"foo"),
        (FieldType.COMPLEX128, 0, "", 1 + 2j, 1 + 2j),
        (FieldType.COMPLEX64, 0, "", 1 + 2j, 1 + 2j),
        (FieldType.DURATION, 1000, "", None, 1000),
        (FieldType.FLOAT64, 0, "", 3.14, 3.14),
        (FieldType.FLOAT32, 0, "", 3.14, 3.140000104904175),
        (FieldType.INT64, 42, "", None, 42),
        (FieldType.INT32, 42, "", None, 42),
        (FieldType.INT16, 42, "", None, 42),
        (FieldType.INT8, 42, "", None, 42),
        (FieldType.STRING, 0, "foo", None, "foo"),
        (FieldType.TIME, 1000, "", UTC, MOMENT),
        (FieldType.TIME, 1000, "", None, MOMENT),
        (FieldType.TIME_FULL, 0, "", MOMENT, MOMENT),
        (FieldType.UINT64, 42, "", None, 42),
        (FieldType.UINT32, 42, "", None, 42),
        (FieldType.UINT16, 42, "", None, 42),
        (FieldType.UINT8, 42, "", None, 42),
        (FieldType.UINTPTR, 42, "", None, 42),
        (FieldType.REFLECT, 0, "", Users(2), Users(2)),
        (FieldType.NAMESPACE, 0, "", None, {}),
        (FieldType.STRINGER, 0, "", Users(2), "2 users"),
        (FieldType.STRINGER, 0, "", Obj(), "obj"),
        (FieldType.SKIP, 0, "", None, None),
        (FieldType.STRINGER, 0, "", None, "<nil>"),
        (FieldType.ERROR, 0, "", None, "<nil>"),
        (FieldType.ERROR, 0, "", ValueError("boom"), "boom"),
    ],
)
def test_fields(ftype, integer, string, iface, want):
    enc = MapObjectEncoder()
    f = Field(key="k", type=ftype, integer=integer, string=string, interface=iface)
    f.add_to(enc)
    assert enc.fields.pop("k", None) == want
    assert enc.fields == {}
    assert f.equals(f)


@pytest.mark.parametrize(
    "ftype,integer,want",
    [
        (FieldType.INT8, 300, 44),
        (FieldType.INT8, 200, -56),
        (FieldType.INT32, 2**31, -(2**31)),
        (FieldType.UINT8, -1, 255),
        (FieldType.UINT16, 65537, 1),
    ],
)
def test_integer_fields_wrap_to_width(ftype, integer, want):
    enc = MapObjectEncoder()
    Field(key="k", type=ftype, integer=integer).add_to(enc)
    assert enc.fields["k"] == want


def test_time_field_uses_location():
    zone = timezone(timedelta(hours=-8))
    enc = MapObjectEncoder()
    Field(key="k", type=FieldType.TIME, integer=1000, interface=zone).add_to(enc)
    assert enc.fields["k"].utcoffset() == timedelta(hours=-8)
    assert enc.fields["k"] == MOMENT


def test_error_field_with_causes():
    enc = MapObjectEncoder()
    err = combine(ValueError("foo"), ValueError("bar"))
    Field(key="err", type=FieldType.ERROR, interface=err).add_to(enc)
    assert enc.fields == {
        "err": "foo; bar",
        "errCauses": [{"error": "foo"}, {"error": "bar"}],
    }


def test_inline_marshaler():
    enc = MapObjectEncoder()
    Field(key="k", type=FieldType.STRING, string="s").add_to(enc)
    Field(key="ignored", type=FieldType.INLINE_MARSHALER, interface=Users(10)).add_to(enc)
    Field(key="nested", type=FieldType.OBJECT_MARSHALER, interface=Users(11)).add_to(enc)
    assert enc.fields == {"k": "s", "users": 10, "nested": {"users": 11}}


def test_add_fields_in_order():
    enc = MapObjectEncoder()
    add_fields(
        enc,
        [
            Field(key="a", type=FieldType.INT64, integer=1),
            Field(key="ns", type=FieldType.NAMESPACE),
            Field(key="b", type=FieldType.STRING, string="x"),
        ],
    )
    assert enc.fields == {"a": 1, "ns": {"b": "x"}}


def test_encode_stringer_direct():
    enc = MapObjectEncoder()
    encode_stringer("k", 5, enc)
    assert enc.fields == {"k": "5"}
    with pytest.raises(RuntimeError, match="^PANIC=panic with string$"):
        encode_stringer("j", Obj(1), enc)


ZONE_MINUS_EIGHT = timezone(timedelta(hours=-8))


@pytest.mark.parametrize(
    "a,b,want",
    [
        (Field("a", FieldType.INT16, 1), Field("a", FieldType.INT32, 1), False),
        (Field("k", FieldType.STRING, string="a"), Field("k", FieldType.STRING, string="a"), True),
        (Field("k", FieldType.STRING, string="a"), Field("k2", FieldType.STRING, string="a"), False),
        (Field("k", FieldType.STRING, string="a"), Field("k", FieldType.STRING, string="b"), False),
        (Field("k", FieldType.TIME, 1000, interface=UTC), Field("k", FieldType.TIME, 1000, interface=UTC), True),
        (
            Field("k", FieldType.TIME, 1000, interface=UTC),
            Field("k", FieldType.TIME, 1000, interface=ZONE_MINUS_EIGHT),
            False,
        ),
        (Field("k", FieldType.TIME, 1000, interface=UTC), Field("k", FieldType.TIME, 2000, interface=UTC), False),
        (Field("k", FieldType.BINARY, interface=b"\x01\x02"), Field("k", FieldType.BINARY, interface=b"\x01\x02"), True),
        (Field("k", FieldType.BINARY, interface=b"\x01\x02"), Field("k", FieldType.BINARY, interface=b"\x01\x03"), False),
        (
            Field("k", FieldType.BYTE_STRING, interface=b"abc"),
            Field("k", FieldType.BYTE_STRING, interface=bytearray(b"abc")),
            True,
        ),
        (Field("k", FieldType.BYTE_STRING, interface=b"abc"), Field("k", FieldType.BYTE_STRING, interface=b"abd"), False),
        (Field("k", FieldType.REFLECT, interface=[1, 2]), Field("k", FieldType.REFLECT, interface=[1, 2]), True),
        (Field("k", FieldType.REFLECT, interface=[1, 2]), Field("k", FieldType.REFLECT, interface=[1, 3]), False),
        (
            Field("k", FieldType.OBJECT_MARSHALER, interface=Users(10)),
            Field("k", FieldType.OBJECT_MARSHALER, interface=Users(10)),
            True,
        ),
        (
            Field("k", FieldType.OBJECT_MARSHALER, interface=Users(10)),
            Field("k", FieldType.OBJECT_MARSHALER, interface=Users(20)),
            False,
        ),
        (Field("k", FieldType.REFLECT, interface={"a": "b"}), Field("k", FieldType.REFLECT, interface={"a": "b"}), True),
        (Field("k", FieldType.REFLECT, interface={"a": "b"}), Field("k", FieldType.REFLECT, interface={"a": "d"}), False),
        (Field("k", FieldType.ERROR, interface=ValueError("x")), Field("k", FieldType.ERROR, interface=ValueError("x")), True),
        (Field("k", FieldType.ERROR, interface=ValueError("x")), Field("k", FieldType.ERROR, interface=TypeError("x")), False),
    ],
)
def test_equals(a, b, want):
    assert a.equals(b) is want
    assert b.equals(a) is want