"""D-Bus messages and their wire encoding."""

from __future__ import annotations

import itertools
import struct
from enum import IntEnum
from typing import Callable, Optional

from .holder import Holder, HolderType


class MessageType(IntEnum):
    """The kind of a D-Bus message, with its wire value."""

    INVALID = 0
    METHOD_CALL = 1
    METHOD_RETURN = 2
    ERROR = 3
    SIGNAL = 4


_TYPE_NAMES = {
    MessageType.SIGNAL: "signal",
    MessageType.METHOD_CALL: "method call",
    MessageType.METHOD_RETURN: "method return",
    MessageType.ERROR: "error",
}

_ALIGN = {
    "y": 1, "b": 4, "n": 2, "q": 2, "i": 4, "u": 4, "x": 8, "t": 8, "d": 8,
    "s": 4, "o": 4, "g": 1, "a": 4, "v": 1, "(": 8, "{": 8, "h": 4,
}

_FIXED = {
    "y": "B", "b": "I", "n": "h", "q": "H", "i": "i", "u": "I",
    "x": "q", "t": "Q", "d": "d", "h": "I",
}

_GETTERS: dict[str, Callable[[Holder], object]] = {
    "y": Holder.get_byte,
    "b": lambda h: int(h.get_boolean()),
    "n": Holder.get_int16,
    "q": Holder.get_uint16,
    "i": Holder.get_int32,
    "u": Holder.get_uint32,
    "x": Holder.get_int64,
    "t": Holder.get_uint64,
    "d": Holder.get_double,
    "h": Holder.get_uint32,
}

_CREATORS: dict[str, Callable[..., Holder]] = {
    "y": Holder.create_byte,
    "b": Holder.create_boolean,
    "n": Holder.create_int16,
    "q": Holder.create_uint16,
    "i": Holder.create_int32,
    "u": Holder.create_uint32,
    "x": Holder.create_int64,
    "t": Holder.create_uint64,
    "d": Holder.create_double,
    "s": Holder.create_string,
    "o": Holder.create_object_path,
    "g": Holder.create_signature,
}

_KEY_TYPES = {
    "y": HolderType.BYTE,
    "b": HolderType.BOOLEAN,
    "n": HolderType.INT16,
    "q": HolderType.UINT16,
    "i": HolderType.INT32,
    "u": HolderType.UINT32,
    "x": HolderType.INT64,
    "t": HolderType.UINT64,
    "d": HolderType.DOUBLE,
    "s": HolderType.STRING,
    "o": HolderType.OBJ_PATH,
    "g": HolderType.SIGNATURE,
}

# Header field codes.
_FIELD_PATH = 1
_FIELD_INTERFACE = 2
_FIELD_MEMBER = 3
_FIELD_ERROR_NAME = 4
_FIELD_REPLY_SERIAL = 5
_FIELD_DESTINATION = 6
_FIELD_SENDER = 7
_FIELD_SIGNATURE = 8


def _type_end(sig: str, index: int) -> int:
    try:
        code = sig[index]
    except IndexError:
        raise ValueError(f"incomplete signature {sig!r}") from None
    if code == "a":
        return _type_end(sig, index + 1)
    if code in "({":
        close = ")" if code == "(" else "}"
        position = index + 1
        while True:
            if position >= len(sig):
                raise ValueError(f"unterminated container in signature {sig!r}")
            if sig[position] == close:
                return position + 1
            position = _type_end(sig, position)
    if code in _ALIGN:
        return index + 1
    raise ValueError(f"unsupported type code {code!r} in signature {sig!r}")


def _split_first(sig: str) -> tuple[str, str]:
    end = _type_end(sig, 0)
    return sig[:end], sig[end:]


class _Writer:
    def __init__(self, buf: bytearray, endian: str) -> None:
        self.buf = buf
        self.endian = endian

    def align(self, size: int) -> None:
        self.buf.extend(b"\0" * (-len(self.buf) % size))

    def pack(self, code: str, value: object) -> None:
        fmt = _FIXED[code]
        self.align(struct.calcsize(fmt))
        self.buf += struct.pack(self.endian + fmt, value)

    def string(self, text: str) -> None:
        data = text.encode("utf-8")
        self.pack("u", len(data))
        self.buf += data + b"\0"

    def sig(self, text: str) -> None:
        data = text.encode("ascii")
        self.buf.append(len(data))
        self.buf += data + b"\0"

    def write(self, holder: Holder, sig: str) -> None:
        code = sig[0]
        if code in _FIXED:
            self.pack(code, _GETTERS[code](holder))
        elif code in "so":
            self.string(holder.get_string())
        elif code == "g":
            self.sig(holder.get_signature())
        elif code == "v":
            inner = holder.signature()
            if not inner:
                raise ValueError("an empty holder cannot be sent as a variant")
            self.sig(inner)
            self.write(holder, inner)
        elif code == "a":
            element = sig[1:]
            self.align(4)
            length_pos = len(self.buf)
            self.buf += b"\0\0\0\0"
            self.align(_ALIGN[element[0]])
            start = len(self.buf)
            if element[0] == "{":
                inner = element[1:-1]
                key_code, value_sig = inner[0], inner[1:]
                for key, value in holder.get_dict(_KEY_TYPES[key_code]).items():
                    self.align(8)
                    self.write(_CREATORS[key_code](key), key_code)
                    self.write(value, value_sig)
            else:
                for item in holder.get_array():
                    self.write(item, element)
            struct.pack_into(self.endian + "I", self.buf, length_pos, len(self.buf) - start)
        else:
            raise ValueError(f"unsupported signature {sig!r}")


class _Reader:
    def __init__(self, data: bytes, endian: str, pos: int = 0) -> None:
        self.data = data
        self.endian = endian
        self.pos = pos

    def align(self, size: int) -> None:
        self.pos += -self.pos % size

    def unpack(self, code: str):
        fmt = _FIXED[code]
        size = struct.calcsize(fmt)
        self.align(size)
        (value,) = struct.unpack_from(self.endian + fmt, self.data, self.pos)
        self.pos += size
        return value

    def _take(self, count: int) -> bytes:
        if self.pos + count + 1 > len(self.data):
            raise ValueError("message data is truncated")
        chunk = bytes(self.data[self.pos:self.pos + count])
        self.pos += count + 1
        return chunk

    def string(self) -> str:
        return self._take(self.unpack("u")).decode("utf-8")

    def sig(self) -> str:
        if self.pos >= len(self.data):
            raise ValueError("message data is truncated")
        count = self.data[self.pos]
        self.pos += 1
        return self._take(count).decode("ascii")

    def read(self, sig: str) -> Holder:
        code = sig[0]
        if code in _FIXED:
            value = self.unpack(code)
            if code == "b":
                return Holder.create_boolean(value != 0)
            if code == "h":
                return Holder()
            return _CREATORS[code](value)
        if code in "so":
            return _CREATORS[code](self.string())
        if code == "g":
            return Holder.create_signature(self.sig())
        if code == "v":
            return self.read(self.sig())
        if code == "a":
            length = self.unpack("u")
            element = sig[1:]
            self.align(_ALIGN[element[0]])
            end = self.pos + length
            if end > len(self.data):
                raise ValueError("message data is truncated")
            if element[0] == "{":
                key_sig, value_sig = _split_first(element[1:-1])
                result = Holder()
                while self.pos < end:
                    self.align(8)
                    key = self.read(key_sig)
                    value = self.read(value_sig)
                    if result.type() is HolderType.NONE:
                        result = Holder.create_dict()
                    result.dict_append(key.type(), key.get_contents(), value)
                return result
            array = Holder.create_array()
            while self.pos < end:
                item = self.read(element)
                if item.type() is not HolderType.NONE:
                    array.array_append(item)
            return array
        if code == "(":
            self.align(8)
            fields = sig[1:-1]
            while fields:
                first, fields = _split_first(fields)
                self.read(first)
            return Holder()
        raise ValueError(f"unsupported signature {sig!r}")


_ENDIAN = {ord("l"): "<", ord("B"): ">"}
_ENDIAN_MARK = {"<": b"l", ">": b"B"}


class Message:
    """A D-Bus message: header fields plus a marshalled body."""

    _counter = itertools.count()

    def __init__(
        self,
        message_type: MessageType = MessageType.INVALID,
        path: str = "",
        interface: str = "",
        member: str = "",
        destination: Optional[str] = None,
        error_name: str = "",
        reply_serial: int = 0,
    ) -> None:
        self._type = MessageType(message_type)
        self._path = path
        self._interface = interface
        self._member = member
        self.destination = destination
        self.sender: Optional[str] = None
        self.error_name = error_name
        self.reply_serial = reply_serial
        self.flags = 0
        self._serial = 0
        self._endian = "<"
        self._body = bytearray()
        self._body_signature = ""
        self._arguments: list[Holder] = []
        self._iter_initialized = False
        self._cursor = 0
        self._cursor_sig = ""
        self._is_extracted = False
        self._extracted = Holder()
        self._unique_id = next(Message._counter) if self.is_valid() else -1

    def __repr__(self) -> str:
        return f"Message({self.to_string()})"

    def is_valid(self) -> bool:
        return self._type is not MessageType.INVALID

    # ----- header access -----

    @property
    def path(self) -> str:
        """Object path, for signals and method calls only."""
        if self._type in (MessageType.SIGNAL, MessageType.METHOD_CALL):
            return self._path
        return ""

    @property
    def interface(self) -> str:
        return self._interface if self.is_valid() else ""

    @property
    def member(self) -> str:
        """Method name, for method calls only."""
        return self._member if self._type is MessageType.METHOD_CALL else ""

    def unique_id(self) -> int:
        return self._unique_id

    def serial(self) -> int:
        return self._serial if self.is_valid() else 0

    def type(self) -> MessageType:
        return self._type

    def signature(self) -> str:
        """Signature of the argument the extraction cursor points at."""
        if self.is_valid() and self._iter_initialized and self._cursor_sig:
            return _split_first(self._cursor_sig)[0]
        return ""

    def is_signal(self, interface: str, signal_name: str) -> bool:
        return (
            self._type is MessageType.SIGNAL
            and self._interface == interface
            and self._member == signal_name
        )

    # ----- arguments -----

    def append_argument(self, argument: Holder, signature: str) -> None:
        """Marshal ``argument`` onto the body using a single complete type."""
        first, rest = _split_first(signature)
        if rest:
            raise ValueError(f"expected a single complete type, got {signature!r}")
        body = bytearray(self._body)
        _Writer(body, self._endian).write(argument, first)
        self._body = body
        self._body_signature += first
        self._arguments.append(argument)
        self._iter_initialized = False
        self._is_extracted = False

    def extract(self) -> Holder:
        """Return the argument at the extraction cursor."""
        if not self.is_valid():
            return Holder()
        if not self._is_extracted:
            if not self._iter_initialized:
                self.extract_reset()
            self._extracted = self._read_current()[0]
            self._is_extracted = True
        return self._extracted

    def _read_current(self) -> tuple[Holder, int]:
        if not self._cursor_sig:
            return Holder(), self._cursor
        first = _split_first(self._cursor_sig)[0]
        reader = _Reader(self._body, self._endian, self._cursor)
        try:
            holder = reader.read(first)
        except struct.error as exc:
            raise ValueError("message body is truncated") from exc
        return holder, reader.pos

    def extract_reset(self) -> None:
        if self.is_valid():
            self._cursor = 0
            self._cursor_sig = self._body_signature
            self._iter_initialized = True
            self._is_extracted = False

    def extract_has_next(self) -> bool:
        if not self._iter_initialized or not self._cursor_sig:
            return False
        return bool(_split_first(self._cursor_sig)[1])

    def extract_next(self) -> None:
        if self.extract_has_next():
            _, end = self._read_current()
            self._cursor = end
            self._cursor_sig = _split_first(self._cursor_sig)[1]
            self._is_extracted = False

    # ----- presentation -----

    def to_string(self, append_arguments: bool = False) -> str:
        if not self.is_valid():
            return "INVALID"
        sender = self.sender or "(null)"
        destination = self.destination or "(null)"
        text = (
            f"[{self._unique_id}] {_TYPE_NAMES.get(self._type, '(unknown message type)')}"
            f"[{sender}->{destination}] {self._path} {self._interface} {self._member}"
        )
        if self._type is MessageType.METHOD_CALL and append_arguments:
            text += "\nArguments: \n" + "".join(arg.represent() for arg in self._arguments)
        return text

    def copy(self) -> Message:
        """Return an independent copy with a new unique id and no serial."""
        other = Message(
            self._type, self._path, self._interface, self._member,
            self.destination, self.error_name, self.reply_serial,
        )
        other.sender = self.sender
        other.flags = self.flags
        other._endian = self._endian
        other._body = bytearray(self._body)
        other._body_signature = self._body_signature
        other._arguments = list(self._arguments)
        other._is_extracted = self._is_extracted
        other._extracted = self._extracted
        return other

    # ----- wire format -----

    def to_bytes(self, serial: Optional[int] = None) -> bytes:
        """Encode the message; a given ``serial`` is stamped on it first."""
        if not self.is_valid():
            raise ValueError("an invalid message cannot be encoded")
        if serial is not None:
            self._serial = serial
        if self._serial == 0:
            raise ValueError("a message needs a non-zero serial")
        buf = bytearray()
        writer = _Writer(buf, self._endian)
        buf += _ENDIAN_MARK[self._endian] + bytes([int(self._type), self.flags, 1])
        writer.pack("u", len(self._body))
        writer.pack("u", self._serial)

        fields: list[tuple[int, str, object]] = []
        if self._path:
            fields.append((_FIELD_PATH, "o", self._path))
        if self._interface:
            fields.append((_FIELD_INTERFACE, "s", self._interface))
        if self._member:
            fields.append((_FIELD_MEMBER, "s", self._member))
        if self.error_name:
            fields.append((_FIELD_ERROR_NAME, "s", self.error_name))
        if self.reply_serial:
            fields.append((_FIELD_REPLY_SERIAL, "u", self.reply_serial))
        if self.destination:
            fields.append((_FIELD_DESTINATION, "s", self.destination))
        if self.sender:
            fields.append((_FIELD_SENDER, "s", self.sender))
        if self._body_signature:
            fields.append((_FIELD_SIGNATURE, "g", self._body_signature))

        writer.align(4)
        length_pos = len(buf)
        buf += b"\0\0\0\0"
        writer.align(8)
        start = len(buf)
        for code, sig, value in fields:
            writer.align(8)
            writer.pack("y", code)
            writer.sig(sig)
            if sig == "u":
                writer.pack("u", value)
            elif sig == "g":
                writer.sig(str(value))
            else:
                writer.string(str(value))
        struct.pack_into(self._endian + "I", buf, length_pos, len(buf) - start)
        writer.align(8)
        buf += self._body
        return bytes(buf)

    @classmethod
    def from_bytes(cls, data: bytes) -> Message:
        """Decode one complete message."""
        if len(data) < 16:
            raise ValueError("message data is truncated")
        endian = _ENDIAN.get(data[0])
        if endian is None:
            raise ValueError(f"unknown endianness marker {data[0]!r}")
        try:
            message_type = MessageType(data[1])
        except ValueError:
            raise ValueError(f"unknown message type {data[1]}") from None
        reader = _Reader(data, endian, 4)
        try:
            body_length = reader.unpack("u")
            serial = reader.unpack("u")
            fields_length = reader.unpack("u")
            reader.align(8)
            end = reader.pos + fields_length
            values: dict[int, Holder] = {}
            while reader.pos < end:
                reader.align(8)
                code = reader.unpack("y")
                values[code] = reader.read(reader.sig())
        except struct.error as exc:
            raise ValueError("message header is truncated") from exc
        reader.pos = end
        reader.align(8)
        body = data[reader.pos:reader.pos + body_length]
        if len(body) < body_length:
            raise ValueError("message body is truncated")

        def text(code: int) -> str:
            holder = values.get(code)
            return holder.get_string() if holder is not None else ""

        message = cls(
            message_type,
            text(_FIELD_PATH),
            text(_FIELD_INTERFACE),
            text(_FIELD_MEMBER),
            text(_FIELD_DESTINATION) or None,
            text(_FIELD_ERROR_NAME),
            values[_FIELD_REPLY_SERIAL].get_uint32() if _FIELD_REPLY_SERIAL in values else 0,
        )
        message.sender = text(_FIELD_SENDER) or None
        message.flags = data[2]
        message._serial = serial
        message._endian = endian
        message._body = bytearray(body)
        message._body_signature = text(_FIELD_SIGNATURE)
        return message

    # ----- factories -----

    @classmethod
    def create_method_call(cls, bus_name: str, path: str, interface: str, method: str) -> Message:
        return cls(MessageType.METHOD_CALL, path, interface, method, bus_name or None)

    @classmethod
    def create_method_return(cls, msg: Message) -> Message:
        return cls(
            MessageType.METHOD_RETURN, destination=msg.sender, reply_serial=msg.serial()
        )

    @classmethod
    def create_error(cls, msg: Message, error_name: str, error_message: str) -> Message:
        reply = cls(
            MessageType.ERROR,
            destination=msg.sender,
            error_name=error_name,
            reply_serial=msg.serial(),
        )
        reply.append_argument(Holder.create_string(error_message), "s")
        return reply

    @classmethod
    def create_signal(cls, path: str, interface: str, name: str) -> Message:
        return cls(MessageType.SIGNAL, path, interface, name)