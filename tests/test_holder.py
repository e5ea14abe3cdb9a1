import pytest

from simpledbus.holder import Holder, HolderType


def test_boolean():
    h = Holder.create_boolean(True)
    assert h.get_boolean() is True
    assert h.type() is HolderType.BOOLEAN
    assert h.signature() == "b"
    assert h.represent() == "true\n"


def test_boolean_false_represent():
    assert Holder.create_boolean(False).represent() == "false\n"


def test_byte():
    h = Holder.create_byte(0x12)
    assert h.get_byte() == 0x12
    assert h.type() is HolderType.BYTE
    assert h.signature() == "y"
    assert h.represent() == "18\n"


def test_int16():
    h = Holder.create_int16(0x1234)
    assert h.get_int16() == 0x1234
    assert h.type() is HolderType.INT16
    assert h.signature() == "n"
    assert h.represent() == "4660\n"


def test_int32():
    h = Holder.create_int32(0x12345678)
    assert h.get_int32() == 0x12345678
    assert h.type() is HolderType.INT32
    assert h.signature() == "i"
    assert h.represent() == "305419896\n"


def test_int64():
    h = Holder.create_int64(0x123456789ABCDEF0)
    assert h.get_int64() == 0x123456789ABCDEF0
    assert h.type() is HolderType.INT64
    assert h.signature() == "x"
    assert h.represent() == "1311768467463790320\n"


def test_double():
    h = Holder.create_double(3.14)
    assert h.get_double() == 3.14
    assert h.type() is HolderType.DOUBLE
    assert h.signature() == "d"
    assert h.represent() == "3.14\n"


def test_string():
    h = Holder.create_string("Hello, world!")
    assert h.get_string() == "Hello, world!"
    assert h.type() is HolderType.STRING
    assert h.signature() == "s"
    assert h.represent() == "Hello, world!\n"


def test_object_path():
    h = Holder.create_object_path("/foo/bar")
    assert h.get_object_path() == "/foo/bar"
    assert h.type() is HolderType.OBJ_PATH
    assert h.signature() == "o"
    assert h.represent() == "/foo/bar\n"


def test_signature():
    h = Holder.create_signature("s")
    assert h.get_signature() == "s"
    assert h.type() is HolderType.SIGNATURE
    assert h.signature() == "g"
    assert h.represent() == "s\n"


@pytest.mark.parametrize(
    "factory, sig",
    [
        (Holder.create_uint16, "q"),
        (Holder.create_uint32, "u"),
        (Holder.create_uint64, "t"),
    ],
)
def test_unsigned_signatures(factory, sig):
    assert factory(0x1234).signature() == sig


def test_array_homogeneous():
    h = Holder.create_array()
    h.array_append(Holder.create_int32(42))
    assert len(h.get_array()) == 1
    assert h.get_array()[0].get_int32() == 42
    assert h.type() is HolderType.ARRAY
    assert h.signature() == "ai"
    assert h.represent() == "Array:\n  42\n"


def test_array_heterogeneous():
    h = Holder.create_array()
    h.array_append(Holder.create_int32(42))
    h.array_append(Holder.create_string("Hello, world!"))
    assert len(h.get_array()) == 2
    assert h.type() is HolderType.ARRAY
    assert h.signature() == "av"
    assert h.represent() == "Array:\n  42\n  Hello, world!\n"


def test_empty_array_signature():
    assert Holder.create_array().signature() == "av"


def test_byte_array_represent_as_hex():
    h = Holder.create_array()
    h.array_append(Holder.create_byte(0x01))
    h.array_append(Holder.create_byte(0xAB))
    assert h.signature() == "ay"
    assert h.represent() == "Array:\n  01 ab \n"


def test_byte_array_wraps_every_32_bytes():
    h = Holder.create_array()
    for _ in range(32):
        h.array_append(Holder.create_byte(0))
    assert h.represent() == "Array:\n  " + "00 " * 32 + "\n  \n"


def test_get_array_returns_copy():
    h = Holder.create_array()
    h.get_array().append(Holder.create_int32(1))
    assert h.get_array() == []


def test_dictionary_homogeneous_string():
    h = Holder.create_dict()
    h.dict_append(HolderType.STRING, "string_key1", Holder.create_string("value1"))
    h.dict_append(HolderType.STRING, "string_key2", Holder.create_string("value2"))
    h.dict_append(HolderType.STRING, "string_key3", Holder.create_string("value3"))
    assert h.type() is HolderType.DICT
    assert h.signature() == "a{ss}"
    assert h.represent() == (
        "Dictionary:\nstring_key1:\n  value1\nstring_key2:\n  value2\nstring_key3:\n  value3\n"
    )


def test_empty_dict_signature():
    assert Holder.create_dict().signature() == "a{sv}"


def test_dict_mixed_values_signature():
    h = Holder.create_dict()
    h.dict_append(HolderType.STRING, "key1", Holder.create_int32(1))
    h.dict_append(HolderType.STRING, "key2", Holder.create_string("Hello"))
    assert h.signature() == "a{sv}"


def test_get_dict_sorted_and_later_entry_wins():
    h = Holder.create_dict()
    h.dict_append(HolderType.STRING, "b", Holder.create_int32(1))
    h.dict_append(HolderType.STRING, "a", Holder.create_int32(2))
    h.dict_append(HolderType.STRING, "b", Holder.create_int32(3))
    result = h.get_dict_string()
    assert list(result) == ["a", "b"]
    assert result["b"].get_int32() == 3


def test_dict_int32_key_wraps_to_signed():
    h = Holder.create_dict()
    h.dict_append(HolderType.INT32, 0x87654321, Holder.create_string("Hello"))
    assert list(h.get_dict(HolderType.INT32)) == [Holder.create_int32(0x87654321).get_int32()]


def test_dict_append_rejects_container_key_type():
    with pytest.raises(ValueError):
        Holder.create_dict().dict_append(HolderType.ARRAY, "x", Holder())


def test_int32_wraps_like_twos_complement():
    h = Holder.create_int32(0x87654321)
    assert h.get_int32() < 0
    assert h.get_uint32() == 0x87654321


def test_negative_int16_roundtrip():
    h = Holder.create_int16(-5)
    assert h.get_int16() == -5
    assert h.get_uint16() == 0x10000 - 5
    assert h.represent() == "-5\n"


def test_uint64_roundtrip():
    h = Holder.create_uint64(0x1234567812345678)
    assert h.get_uint64() == 0x1234567812345678
    assert h.get_contents() == 0x1234567812345678


def test_get_contents_of_container_is_none():
    assert Holder.create_array().get_contents() is None
    assert Holder().get_contents() is None


def test_default_holder():
    h = Holder()
    assert h.type() is HolderType.NONE
    assert h.represent() == ""
    assert h.signature() == ""


def test_equality_simple():
    assert Holder.create_int32(5) == Holder.create_int32(5)
    assert not (Holder.create_int32(5) == Holder.create_int32(6))
    assert Holder.create_int32(5) != Holder.create_uint32(5)
    assert Holder() == Holder()


def test_equality_array():
    a = Holder.create_array()
    b = Holder.create_array()
    a.array_append(Holder.create_string("x"))
    assert a != b
    b.array_append(Holder.create_string("x"))
    assert a == b


def test_equality_dict_ignores_order():
    a = Holder.create_dict()
    a.dict_append(HolderType.STRING, "k1", Holder.create_int32(1))
    a.dict_append(HolderType.STRING, "k2", Holder.create_int32(2))
    b = Holder.create_dict()
    b.dict_append(HolderType.STRING, "k2", Holder.create_int32(2))
    b.dict_append(HolderType.STRING, "k1", Holder.create_int32(1))
    assert a == b
    b.dict_append(HolderType.STRING, "k3", Holder.create_int32(3))
    assert a != b


def test_nested_dict_represent():
    inner = Holder.create_array()
    inner.array_append(Holder.create_int32(42))
    h = Holder.create_dict()
    h.dict_append(HolderType.STRING, "key", inner)
    assert h.represent() == "Dictionary:\nkey:\n  Array:\n    42\n"