# simpledbus

A small, dependency-free Python library for working with D-Bus data: typed value
holders, messages encoded to and decoded from the D-Bus wire format, and helpers
for D-Bus object paths.

## Modules

- `simpledbus.holder`: `Holder`, a container for one D-Bus value (byte, boolean,
  signed and unsigned 16/32/64-bit integers, double, string, object path,
  signature, array or dictionary), and the `HolderType` enum naming those kinds.
- `simpledbus.message`: `Message` and the `MessageType` enum (method call, method
  return, error, signal). Messages carry header fields and a body of marshalled
  arguments.
- `simpledbus.path`: functions on object paths such as `/org/example/obj`.

## Holding values

```python
from simpledbus.holder import Holder, HolderType

h = Holder.create_dict()
h.dict_append(HolderType.STRING, "name", Holder.create_string("value"))
print(h.signature())   # a{ss}
print(h.represent())   # "Dictionary:\nname:\n  value\n"

h.get_dict(HolderType.STRING)   # {'name': Holder(STRING, 'value')}
h.get_dict_string()             # the same entries
```

Integers are stored with the width of their type: `Holder.create_int16(0x1234).get_int16()`
is `4660`, and the `get_*` accessors reinterpret the stored bits at the width asked for.
`signature()` works out a D-Bus signature: an array whose elements all share one type
gets that type (`ai`), a mixed or empty array gets `av`, and an empty dictionary is
`a{sv}`. Holders compare equal with `==` when they hold the same kind and value.

## Messages

```python
from simpledbus.holder import Holder
from simpledbus.message import Message

call = Message.create_method_call(
    "org.example.Service", "/org/example", "org.example.Iface", "Echo"
)
call.append_argument(Holder.create_string("hello"), "s")
data = call.to_bytes(serial=1)

decoded = Message.from_bytes(data)
decoded.path, decoded.interface, decoded.member   # ('/org/example', 'org.example.Iface', 'Echo')
decoded.extract().get_string()                     # 'hello'
```

- `append_argument(holder, signature)` marshals one complete type (`"s"`, `"ai"`,
  `"a{sv}"`, `"v"`, ...) onto the body.
- `extract()` returns the argument under the cursor; `extract_next()`,
  `extract_has_next()` and `extract_reset()` move through the arguments.
- `create_method_return(msg)`, `create_error(msg, error_name, error_message)` and
  `create_signal(path, interface, name)` build replies and signals.
- `is_signal(interface, name)`, `type()`, `serial()`, `unique_id()`, `signature()`,
  `copy()` and `to_string(append_arguments=False)` inspect a message.
- `to_bytes()` needs a non-zero serial; malformed or truncated data passed to
  `from_bytes()` raises `ValueError`.

## Object paths

```python
from simpledbus import path

path.split_elements("/a/b/c")           # ['a', 'b', 'c']
path.count_elements("/a/b/c")           # 3
path.fetch_elements("/a/b/c/d", 2)      # '/a/b'
path.next_child("/a", "/a/b/c/d")       # '/a/b'
path.is_child("/a/b", "/a/b/c")         # True
path.is_parent("/a/b", "/a")            # True
path.is_descendant("/a/b", "/a/b/c/d")  # True
```

## What this package does not do

It does not open a connection to the session or system bus, authenticate, send or
receive messages over a socket, or keep track of remote objects and their
properties. It prepares and reads message bytes; moving those bytes to and from a
bus is left to the caller.

## Running the tests

```
pip install -e .[test]
pytest
```