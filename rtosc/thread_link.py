"""A fixed-size ring buffer carrying OSC messages between two threads."""

from __future__ import annotations

from typing import Any, Sequence, Union

from rtosc.message import Message, MessageError, encode_message, message_length


class ThreadLink:
    """Single-producer, single-consumer queue of OSC messages.

    The ring holds ``max_message_length * max_messages`` bytes, one of which
    always stays free. Messages that are too long or that do not fit into the
    remaining space are dropped; the write methods return whether the message
    was queued.
    """

    def __init__(self, max_message_length: int, max_messages: int) -> None:
        if max_message_length <= 0 or max_messages <= 0:
            raise ValueError("message length and count must be positive")
        self.max_message_length = max_message_length
        self._size = max_message_length * max_messages
        self._ring = bytearray(self._size)
        self._read = 0
        self._write = 0
        self._last = b""

    def _read_space(self) -> int:
        return (self._write - self._read + self._size) % self._size

    def _write_space(self) -> int:
        if self._read == self._write:
            return self._size - 1
        return (self._read - self._write + self._size) % self._size - 1

    def _push(self, data: bytes) -> bool:
        count = len(data)
        if count > self.max_message_length or count > self._write_space():
            return False
        first = min(count, self._size - self._write)
        self._ring[self._write:self._write + first] = data[:first]
        self._ring[:count - first] = data[first:]
        self._write = (self._write + count) % self._size
        return True

    def _copy_out(self, count: int) -> bytes:
        first = min(count, self._size - self._read)
        return (bytes(self._ring[self._read:self._read + first])
                + bytes(self._ring[:count - first]))

    def write(self, dest: str, typetags: str, *args: Any) -> bool:
        """Build a message and queue it."""
        return self._push(encode_message(dest, typetags, *args))

    def write_array(self, dest: str, typetags: str, args: Sequence[Any]) -> bool:
        """Build a message from a sequence of values and queue it."""
        return self._push(encode_message(dest, typetags, *args))

    def raw_write(self, msg: Union[Message, bytes]) -> bool:
        """Queue an already built message."""
        if isinstance(msg, Message):
            data = msg.encode()
        else:
            length = message_length(msg)
            if not length:
                raise MessageError("data does not hold a valid message")
            data = bytes(msg[:length])
        return self._push(data)

    def has_next(self) -> bool:
        """Tell whether a message is waiting to be read."""
        return self._read_space() > 0

    def read(self) -> bytes:
        """Take the next message out of the ring."""
        if not self.has_next():
            raise IndexError("no message to read")
        pending = self._copy_out(min(self._read_space(), self.max_message_length))
        length = message_length(pending)
        if not length:
            raise MessageError("ring holds a corrupt message")
        self._last = pending[:length]
        self._read = (self._read + length) % self._size
        return self._last

    def peek(self) -> bytes:
        """Return the message read last, without reading another."""
        return self._last

    def buffer_size(self) -> int:
        """Return the size of the ring in bytes."""
        return self._size