"""Encoding and decoding of OSC messages and bundles."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from typing import Any, Union

BUNDLE_TAG = b"#bundle\0"

VALID_TYPETAGS = frozenset("ifsbhtdScrmTFNI[]")

_ARRAY_MARKS = frozenset("[]")
_NO_DATA: dict[str, Any] = {"T": True, "F": False, "N": None, "I": math.inf}
_FIXED_FORMATS = {
    "i": ">i",
    "f": ">f",
    "h": ">q",
    "t": ">Q",
    "d": ">d",
    "c": ">i",
    "r": ">I",
}


class MessageError(ValueError):
    """Raised when a message or bundle cannot be built or read."""


def _padded(size: int) -> int:
    return (size + 3) & ~3


def _argument_tags(typetags: str) -> list[str]:
    return [tag for tag in typetags if tag not in _ARRAY_MARKS]


def _check_typetags(typetags: str) -> None:
    unknown = set(typetags) - VALID_TYPETAGS
    if unknown:
        raise MessageError(f"unknown type tags: {''.join(sorted(unknown))!r}")


def _encode_string(value: Union[str, bytes]) -> bytes:
    if isinstance(value, str):
        raw = value.encode("utf-8", "surrogateescape")
    else:
        raw = bytes(value)
    if b"\0" in raw:
        raise MessageError("strings must not contain NUL bytes")
    return raw + b"\0" * (_padded(len(raw) + 1) - len(raw))


def _encode_argument(tag: str, value: Any) -> bytes:
    if tag in "sS":
        return _encode_string(value)
    if tag == "b":
        blob = bytes(value)
        return (struct.pack(">I", len(blob)) + blob
                + b"\0" * (_padded(len(blob)) - len(blob)))
    if tag == "m":
        midi = bytes(value)
        if len(midi) != 4:
            raise MessageError("a MIDI argument holds exactly 4 bytes")
        return midi
    if tag == "c" and isinstance(value, str):
        if len(value) != 1:
            raise MessageError("a character argument holds one character")
        value = ord(value)
    try:
        return struct.pack(_FIXED_FORMATS[tag], value)
    except (struct.error, OverflowError, TypeError) as exc:
        raise MessageError(f"bad value {value!r} for type '{tag}'") from exc


@dataclass(frozen=True)
class Message:
    """A decoded OSC message: its path, type tags and argument values.

    ``args`` holds one value per type tag, array brackets excluded;
    ``T``, ``F``, ``N`` and ``I`` stand for True, False, None and infinity.
    """

    path: str
    typetags: str = ""
    args: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))
        _check_typetags(self.typetags)
        expected = len(_argument_tags(self.typetags))
        if expected != len(self.args):
            raise MessageError(
                f"type tags {self.typetags!r} need {expected} arguments, "
                f"got {len(self.args)}")

    def encode(self) -> bytes:
        """Serialize the message to its wire form."""
        data = [value
                for tag, value in zip(_argument_tags(self.typetags), self.args)
                if tag not in _NO_DATA]
        return encode_message(self.path, self.typetags, *data)

    def argument(self, index: int) -> Any:
        """Return the value of the argument at ``index``."""
        return self.args[index]


def encode_message(path: str, typetags: str, *args: Any) -> bytes:
    """Build an OSC message; ``T``, ``F``, ``N`` and ``I`` take no value."""
    if not path:
        raise MessageError("a message needs a path")
    _check_typetags(typetags)
    data_tags = [tag for tag in _argument_tags(typetags) if tag not in _NO_DATA]
    if len(args) != len(data_tags):
        raise MessageError(
            f"type tags {typetags!r} need {len(data_tags)} values, "
            f"got {len(args)}")
    parts = [_encode_string(path), _encode_string("," + typetags)]
    parts.extend(_encode_argument(tag, value)
                 for tag, value in zip(data_tags, args))
    return b"".join(parts)


def _read_string(data: bytes, offset: int) -> tuple[bytes, int]:
    end = data.find(b"\0", offset)
    if end < 0:
        raise MessageError("unterminated string")
    following = offset + _padded(end - offset + 1)
    if following > len(data):
        raise MessageError("string padding runs past the end of the data")
    return data[offset:end], following


def _need(data: bytes, offset: int, size: int) -> None:
    if offset + size > len(data):
        raise MessageError("argument runs past the end of the data")


def _decode_argument(tag: str, data: bytes, offset: int) -> tuple[Any, int]:
    if tag in "sS":
        raw, offset = _read_string(data, offset)
        return raw.decode("utf-8", "surrogateescape"), offset
    if tag == "b":
        _need(data, offset, 4)
        (size,) = struct.unpack_from(">I", data, offset)
        start = offset + 4
        _need(data, start, _padded(size))
        return data[start:start + size], start + _padded(size)
    if tag == "m":
        _need(data, offset, 4)
        return data[offset:offset + 4], offset + 4
    fmt = _FIXED_FORMATS[tag]
    size = struct.calcsize(fmt)
    _need(data, offset, size)
    (value,) = struct.unpack_from(fmt, data, offset)
    return value, offset + size


def _parse(data: bytes) -> tuple[Message, int]:
    data = bytes(data)
    raw_path, offset = _read_string(data, 0)
    if not raw_path:
        raise MessageError("a message needs a path")
    raw_tags, offset = _read_string(data, offset)
    if not raw_tags.startswith(b","):
        raise MessageError("type tag string must start with ','")
    try:
        typetags = raw_tags[1:].decode("ascii")
    except UnicodeDecodeError as exc:
        raise MessageError("type tags must be ASCII") from exc
    _check_typetags(typetags)
    args = []
    for tag in _argument_tags(typetags):
        if tag in _NO_DATA:
            args.append(_NO_DATA[tag])
            continue
        value, offset = _decode_argument(tag, data, offset)
        args.append(value)
    path = raw_path.decode("utf-8", "surrogateescape")
    return Message(path, typetags, tuple(args)), offset


def decode_message(data: bytes) -> Message:
    """Read the message at the start of ``data``; trailing bytes are ignored."""
    return _parse(data)[0]


def message_length(data: bytes) -> int:
    """Return the length of the message at the start of ``data``, 0 if none."""
    try:
        return _parse(data)[1]
    except MessageError:
        return 0


def encode_bundle(timetag: int, *args: Union[Message, bytes]) -> bytes:
    """Build a bundle with the given time tag holding the given elements."""
    try:
        parts = [BUNDLE_TAG, struct.pack(">Q", timetag)]
    except (struct.error, TypeError) as exc:
        raise MessageError(f"bad time tag {timetag!r}") from exc
    for element in args:
        raw = element.encode() if isinstance(element, Message) else bytes(element)
        parts.append(struct.pack(">I", len(raw)))
        parts.append(raw)
    return b"".join(parts)


def is_bundle(data: bytes) -> bool:
    """Tell whether ``data`` starts with a bundle header."""
    return bytes(data[:len(BUNDLE_TAG)]) == BUNDLE_TAG


def decode_bundle(data: bytes) -> tuple[int, list[bytes]]:
    """Return the time tag and the raw elements of a bundle.

    Reading stops at the end of the data or at an element of size zero.
    """
    data = bytes(data)
    if not is_bundle(data):
        raise MessageError("data is not a bundle")
    _need(data, len(BUNDLE_TAG), 8)
    (timetag,) = struct.unpack_from(">Q", data, len(BUNDLE_TAG))
    offset = len(BUNDLE_TAG) + 8
    elements = []
    while offset + 4 <= len(data):
        (size,) = struct.unpack_from(">I", data, offset)
        if size == 0:
            break
        offset += 4
        _need(data, offset, size)
        elements.append(data[offset:offset + size])
        offset += size
    return timetag, elements