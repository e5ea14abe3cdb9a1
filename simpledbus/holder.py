"""A dynamically typed container for D-Bus values."""

from __future__ import annotations

from enum import Enum
from typing import Any

_MASK64 = 0xFFFFFFFFFFFFFFFF


class HolderType(Enum):
    """The kind of value a Holder carries."""

    NONE = 0
    BYTE = 1
    BOOLEAN = 2
    INT16 = 3
    UINT16 = 4
    INT32 = 5
    UINT32 = 6
    INT64 = 7
    UINT64 = 8
    DOUBLE = 9
    STRING = 10
    OBJ_PATH = 11
    SIGNATURE = 12
    ARRAY = 13
    DICT = 14


_SIGNATURES = {
    HolderType.BOOLEAN: "b",
    HolderType.BYTE: "y",
    HolderType.INT16: "n",
    HolderType.UINT16: "q",
    HolderType.INT32: "i",
    HolderType.UINT32: "u",
    HolderType.INT64: "x",
    HolderType.UINT64: "t",
    HolderType.DOUBLE: "d",
    HolderType.STRING: "s",
    HolderType.OBJ_PATH: "o",
    HolderType.SIGNATURE: "g",
}

# (bit width, signed) for each integer type.
_INTEGER_LAYOUT = {
    HolderType.BYTE: (8, False),
    HolderType.INT16: (16, True),
    HolderType.UINT16: (16, False),
    HolderType.INT32: (32, True),
    HolderType.UINT32: (32, False),
    HolderType.INT64: (64, True),
    HolderType.UINT64: (64, False),
}

_STRING_TYPES = (HolderType.STRING, HolderType.OBJ_PATH, HolderType.SIGNATURE)

# Key types taken into account when comparing dictionaries.
_COMPARED_KEY_TYPES = (
    HolderType.BYTE,
    HolderType.UINT16,
    HolderType.INT16,
    HolderType.UINT32,
    HolderType.INT32,
    HolderType.UINT64,
    HolderType.INT64,
    HolderType.STRING,
    HolderType.OBJ_PATH,
    HolderType.SIGNATURE,
)


def _to_width(value: int, bits: int, signed: bool) -> int:
    value &= (1 << bits) - 1
    if signed and value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _format_double(value: float) -> str:
    return format(value, "g")


def _normalize_key(key_type: HolderType, key: Any) -> Any:
    if key_type in _INTEGER_LAYOUT:
        bits, signed = _INTEGER_LAYOUT[key_type]
        return _to_width(int(key), bits, signed)
    if key_type is HolderType.BOOLEAN:
        return bool(key)
    if key_type is HolderType.DOUBLE:
        return float(key)
    if key_type in _STRING_TYPES:
        return str(key)
    raise ValueError(f"{key_type.name} cannot be used as a dictionary key type")


def _represent_key(key_type: HolderType, key: Any) -> str:
    if key_type is HolderType.BOOLEAN:
        return "true" if key else "false"
    if key_type is HolderType.BYTE:
        # Byte keys are printed as the character they encode.
        return chr(key)
    if key_type is HolderType.DOUBLE:
        return _format_double(key)
    return str(key)


class Holder:
    """Holds one D-Bus value: a basic value, an array or a dictionary."""

    def __init__(self) -> None:
        self._type = HolderType.NONE
        self._boolean = False
        self._integer = 0
        self._double = 0.0
        self._string = ""
        self._array: list[Holder] = []
        self._dict: list[tuple[HolderType, Any, Holder]] = []

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Holder):
            return NotImplemented
        if self._type is not other._type:
            return False
        kind = self._type
        if kind is HolderType.NONE:
            return True
        if kind is HolderType.ARRAY:
            return self._array == other._array
        if kind is HolderType.DICT:
            return all(self.get_dict(t) == other.get_dict(t) for t in _COMPARED_KEY_TYPES)
        return self.get_contents() == other.get_contents()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._type is HolderType.ARRAY:
            return f"Holder(ARRAY, {self._array!r})"
        if self._type is HolderType.DICT:
            entries = [(t.name, k, v) for t, k, v in self._dict]
            return f"Holder(DICT, {entries!r})"
        if self._type is HolderType.NONE:
            return "Holder(NONE)"
        return f"Holder({self._type.name}, {self.get_contents()!r})"

    def type(self) -> HolderType:
        """Return the kind of value held."""
        return self._type

    # ----- representation -----

    def _represent_simple(self) -> str:
        kind = self._type
        if kind is HolderType.BOOLEAN:
            return "true" if self._boolean else "false"
        if kind in _INTEGER_LAYOUT:
            return str(self.get_contents())
        if kind is HolderType.DOUBLE:
            return _format_double(self._double)
        if kind in _STRING_TYPES:
            return self._string
        return ""

    def _represent_container(self) -> list[str]:
        kind = self._type
        if kind is HolderType.ARRAY:
            inner: list[str] = []
            if self._array and self._array[0]._type is HolderType.BYTE:
                line = ""
                for position, element in enumerate(self._array, start=1):
                    line += f"{element.get_byte():02x} "
                    if position % 32 == 0:
                        inner.append(line)
                        line = ""
                inner.append(line)
            else:
                for element in self._array:
                    inner.extend(element._represent_container())
            return ["Array:"] + ["  " + line for line in inner]
        if kind is HolderType.DICT:
            lines = ["Dictionary:"]
            for key_type, key, value in self._dict:
                lines.append(_represent_key(key_type, key) + ":")
                lines.extend("  " + line for line in value._represent_container())
            return lines
        if kind is HolderType.NONE:
            return []
        return [self._represent_simple()]

    def represent(self) -> str:
        """Return a human-readable, multi-line description of the value."""
        return "".join(line + "\n" for line in self._represent_container())

    # ----- signature -----

    def _signature_simple(self) -> str:
        return _SIGNATURES.get(self._type, "")

    def signature(self) -> str:
        """Return the D-Bus type signature of the value."""
        kind = self._type
        if kind is HolderType.ARRAY:
            if not self._array:
                return "av"
            first = self._array[0]._type
            if all(element._type is first for element in self._array):
                return "a" + self._array[0]._signature_simple()
            return "av"
        if kind is HolderType.DICT:
            if not self._dict:
                return "a{sv}"
            first_key = self._dict[0][0]
            if all(key_type is first_key for key_type, _, _ in self._dict):
                key_sig = _SIGNATURES.get(first_key, "")
            else:
                key_sig = "v"
            first_value = self._dict[0][2]._type
            if all(value._type is first_value for _, _, value in self._dict):
                value_sig = self._dict[0][2]._signature_simple()
            else:
                value_sig = "v"
            return "a{" + key_sig + value_sig + "}"
        return self._signature_simple()

    # ----- construction -----

    @classmethod
    def _integer_holder(cls, kind: HolderType, value: int) -> Holder:
        holder = cls()
        holder._type = kind
        holder._integer = int(value) & _MASK64
        return holder

    @classmethod
    def create_boolean(cls, value: bool) -> Holder:
        holder = cls()
        holder._type = HolderType.BOOLEAN
        holder._boolean = bool(value)
        return holder

    @classmethod
    def create_byte(cls, value: int) -> Holder:
        return cls._integer_holder(HolderType.BYTE, int(value) & 0xFF)

    @classmethod
    def create_int16(cls, value: int) -> Holder:
        return cls._integer_holder(HolderType.INT16, value)

    @classmethod
    def create_uint16(cls, value: int) -> Holder:
        return cls._integer_holder(HolderType.UINT16, value)

    @classmethod
    def create_int32(cls, value: int) -> Holder:
        return cls._integer_holder(HolderType.INT32, value)

    @classmethod
    def create_uint32(cls, value: int) -> Holder:
        return cls._integer_holder(HolderType.UINT32, value)

    @classmethod
    def create_int64(cls, value: int) -> Holder:
        return cls._integer_holder(HolderType.INT64, value)

    @classmethod
    def create_uint64(cls, value: int) -> Holder:
        return cls._integer_holder(HolderType.UINT64, value)

    @classmethod
    def create_double(cls, value: float) -> Holder:
        holder = cls()
        holder._type = HolderType.DOUBLE
        holder._double = float(value)
        return holder

    @classmethod
    def _string_holder(cls, kind: HolderType, value: str) -> Holder:
        holder = cls()
        holder._type = kind
        holder._string = str(value)
        return holder

    @classmethod
    def create_string(cls, value: str) -> Holder:
        return cls._string_holder(HolderType.STRING, value)

    @classmethod
    def create_object_path(cls, value: str) -> Holder:
        return cls._string_holder(HolderType.OBJ_PATH, value)

    @classmethod
    def create_signature(cls, value: str) -> Holder:
        return cls._string_holder(HolderType.SIGNATURE, value)

    @classmethod
    def create_array(cls) -> Holder:
        holder = cls()
        holder._type = HolderType.ARRAY
        return holder

    @classmethod
    def create_dict(cls) -> Holder:
        holder = cls()
        holder._type = HolderType.DICT
        return holder

    # ----- access -----

    def get_contents(self) -> Any:
        """Return the plain value of a basic type, or None for containers."""
        kind = self._type
        if kind is HolderType.BOOLEAN:
            return self._boolean
        if kind in _INTEGER_LAYOUT:
            bits, signed = _INTEGER_LAYOUT[kind]
            return _to_width(self._integer, bits, signed)
        if kind is HolderType.DOUBLE:
            return self._double
        if kind in _STRING_TYPES:
            return self._string
        return None

    def get_boolean(self) -> bool:
        return self._boolean

    def get_byte(self) -> int:
        return _to_width(self._integer, 8, False)

    def get_int16(self) -> int:
        return _to_width(self._integer, 16, True)

    def get_uint16(self) -> int:
        return _to_width(self._integer, 16, False)

    def get_int32(self) -> int:
        return _to_width(self._integer, 32, True)

    def get_uint32(self) -> int:
        return _to_width(self._integer, 32, False)

    def get_int64(self) -> int:
        return _to_width(self._integer, 64, True)

    def get_uint64(self) -> int:
        return _to_width(self._integer, 64, False)

    def get_double(self) -> float:
        return self._double

    def get_string(self) -> str:
        return self._string

    def get_object_path(self) -> str:
        return self._string

    def get_signature(self) -> str:
        return self._string

    def get_array(self) -> list[Holder]:
        """Return a copy of the array's elements."""
        return list(self._array)

    def get_dict(self, key_type: HolderType) -> dict[Any, Holder]:
        """Return the entries whose key has the given type, ordered by key."""
        entries: dict[Any, Holder] = {}
        for entry_type, key, value in self._dict:
            if entry_type is key_type:
                entries[key] = value
        return dict(sorted(entries.items(), key=lambda item: item[0]))

    def get_dict_string(self) -> dict[str, Holder]:
        """Return the entries with string keys, ordered by key."""
        return self.get_dict(HolderType.STRING)

    # ----- mutation -----

    def array_append(self, holder: Holder) -> None:
        self._array.append(holder)

    def dict_append(self, key_type: HolderType, key: Any, value: Holder) -> None:
        """Add an entry; the key is stored as a value of ``key_type``."""
        self._dict.append((key_type, _normalize_key(key_type, key), value))