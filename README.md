# rtosc

Open Sound Control (OSC) messages, bundles, port trees and MIDI controller
mapping in pure Python, with no dependencies outside the standard library.

## Modules

- `rtosc.message`: builds and reads OSC messages and bundles. It offers
  `encode_message`, `decode_message`, `message_length`, `encode_bundle`,
  `decode_bundle`, `is_bundle` and the frozen `Message` dataclass, which has
  `encode()` and `argument(index)`. Invalid input raises `MessageError`, a
  subclass of `ValueError`. The type tags it supports are
  `i f s b h t d S c r m T F N I` and the array brackets `[ ]`. `T`, `F`, `N`
  and `I` take no value. When decoded they come back as `True`, `False`,
  `None` and infinity.
- `rtosc.version`: `Version(major, minor, revision)`, where each component
  lies in 0..255 and `str()` gives `major.minor.revision`. Also
  `compare_versions(v1, v2)` and `current_version()`.
- `rtosc.thread_link`: `ThreadLink(max_message_length, max_messages)`, a
  single-producer, single-consumer ring buffer of encoded messages. Its
  methods are `write`, `write_array`, `raw_write`, `has_next`, `read`, `peek`
  and `buffer_size`. A message that is too long, or that does not fit into
  the space left, is dropped, and the write method returns `False`.
- `rtosc.metadata`: `MetaContainer`, which reads a port's metadata string.
  You can iterate over its `(title, value)` pairs, and it supports `find`,
  `[]`, `in` and `length()`. The module also has `enum_key`, `map_arg_vals`
  and `canonicalize_arg_vals`, which convert between integers and the names
  that `map N` metadata entries give them.
- `rtosc.ports`: `Port`, `Ports` and `RtData`. `Ports.dispatch` calls the
  callbacks of the ports that a message addresses. `Ports.apropos` finds the
  port that best describes a path. The module also has `match_port` and
  `match_path`, where `#N` in a name matches a number below N. The remaining
  helpers are `collapse_path` (removes `..`), `clone_ports` (`*` sets the
  default handler) and `merge_ports`. By default `RtData` records the replies
  it receives in `replies`, chained messages in `chained` and forwards in
  `forwarded`.
- `rtosc.ports_runtime`: `Capture`, an `RtData` that records the arguments of
  a reply. It is used by `get_value_from_runtime(runtime, port, loc,
  portname_from_base, max_args)`, which queries a port with a message that
  has no arguments and returns the reply as a list of `(type, value)` pairs.
- `rtosc.miditable`: `MidiTable`, which binds MIDI channel/controller pairs to
  parameter ports. It learns bindings (`learn`, `add_elm`, `clear_entry`) and
  turns controller events into messages with `process`. Float ports are
  scaled with `translate` from their `min`, `max` and `scale` metadata, where
  `scale` is `linear` or `logarithmic`. `learn_port`, `unlearn_port` and
  `register_port` expose these operations as ports.

## Installation

```
pip install .
```

## A first message

```python
from rtosc.message import encode_message, decode_message

data = encode_message("/testing", "is", 23, "this string")
msg = decode_message(data)
assert msg.argument(0) == 23
assert msg.argument(1) == "this string"
```

## Dispatching to ports

```python
from rtosc.message import encode_message
from rtosc.ports import Port, Ports, RtData

state = {}

def set_volume(msg, data):
    data.obj["volume"] = msg.argument(0)

ports = Ports([Port("volume:f", cb=set_volume)])
ports.dispatch(encode_message("/volume", "f", 0.5), RtData(obj=state))
assert state["volume"] == 0.5
```

## Passing messages between threads

```python
from rtosc.thread_link import ThreadLink

link = ThreadLink(128, 32)
link.write("/volume", "f", 0.5)
while link.has_next():
    raw = link.read()
```

## What it does not do

The package reads, builds and dispatches single messages. It does not:

- walk a whole port tree;
- search a tree for the paths under a prefix;
- write an XML description of a tree;
- save an object's state into a bundle, or restore it from one.

It sends and receives nothing over a network.

## Running the tests

```
pip install .[test]
pytest
```