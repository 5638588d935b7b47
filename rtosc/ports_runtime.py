"""Reading the current values of ports from a runtime object."""

from __future__ import annotations

import math
from typing import Any, Optional

from rtosc.message import Message, decode_message
from rtosc.ports import Port, RtData

DEFAULT_MAX_ARGS = 2048

_NO_DATA: dict[str, Any] = {"T": True, "F": False, "N": None, "I": math.inf}


class Capture(RtData):
    """RtData that records the arguments of the reply a port sends.

    ``arg_vals`` stays None until the port replies; it then holds a list of
    ``(type, value)`` pairs. A chained message empties it.
    """

    def __init__(self, max_args: int, obj: Any = None,
                 loc: Optional[str] = None) -> None:
        super().__init__(obj, loc)
        self.max_args = max_args
        self.arg_vals: Optional[list[tuple[str, Any]]] = None

    def _check_count(self, count: int) -> None:
        if count > self.max_args:
            raise ValueError(
                f"reply holds {count} arguments, at most "
                f"{self.max_args} can be captured")

    def _capture(self, typetags: str, args: tuple) -> None:
        tags = [tag for tag in typetags if tag not in "[]"]
        self._check_count(len(tags))
        values = iter(args)
        captured = []
        for tag in tags:
            if tag in _NO_DATA:
                captured.append((tag, _NO_DATA[tag]))
                continue
            try:
                captured.append((tag, next(values)))
            except StopIteration:
                raise ValueError(
                    f"type tags {typetags!r} need more values") from None
        if next(values, _NO_DATA) is not _NO_DATA:
            raise ValueError(f"too many values for type tags {typetags!r}")
        self.arg_vals = captured

    def reply(self, path: str, typetags: str, *args: Any) -> None:
        self._capture(typetags, args)

    def broadcast(self, path: str, typetags: str, *args: Any) -> None:
        self._capture(typetags, args)

    def chain(self, path: str, typetags: str, *args: Any) -> None:
        self.arg_vals = []

    def reply_message(self, msg: bytes) -> None:
        """Capture the arguments of an already built reply."""
        decoded = decode_message(msg)
        tags = [tag for tag in decoded.typetags if tag not in "[]"]
        self._check_count(len(tags))
        self.arg_vals = [(tag, decoded.argument(index))
                         for index, tag in enumerate(tags)]


def get_value_from_runtime(runtime: Any, port: Port, loc: str,
                           portname_from_base: str,
                           max_args: int = DEFAULT_MAX_ARGS
                           ) -> list[tuple[str, Any]]:
    """Query ``port`` with an argument-less message and return its reply.

    ``loc`` is the absolute path of the port, ``portname_from_base`` its
    path relative to the ports collection that holds it.
    """
    if not loc:
        raise ValueError("the location of the port must not be empty")
    capture = Capture(max_args, obj=runtime, loc=loc)
    capture.port = port
    query = Message(portname_from_base, "")
    capture.message = query
    port.cb(query, capture)
    if capture.arg_vals is None:
        raise RuntimeError(f"port {port.name!r} did not reply")
    return capture.arg_vals