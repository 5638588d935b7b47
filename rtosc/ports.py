"""Port trees and dispatch of OSC messages to them."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from rtosc.message import Message, decode_message, encode_message
from rtosc.metadata import MetaContainer

Callback = Callable[[Message, "RtData"], None]

INDEX_DEPTH = 16


class RtData:
    """State handed to port callbacks during a dispatch.

    ``loc`` holds the absolute path of the port being dispatched; when it is
    None, dispatch calls every matching port without tracking the path.
    Replies, chained messages and forwards are recorded on the instance;
    subclasses override ``reply_message`` and the other hooks to act on them.
    """

    def __init__(self, obj: Any = None, loc: Optional[str] = None) -> None:
        self.obj = obj
        self.loc = loc
        self.matches = 0
        self.message: Optional[Message] = None
        self.port: Optional[Port] = None
        self.idx = [0] * INDEX_DEPTH
        self.replies: list[bytes] = []
        self.chained: list[bytes] = []
        self.forwarded: list[Optional[str]] = []

    def push_index(self, index: int) -> None:
        self.idx = [index] + self.idx[:-1]

    def pop_index(self) -> None:
        self.idx = self.idx[1:] + [0]

    def reply(self, path: str, typetags: str, *args: Any) -> None:
        self.reply_message(encode_message(path, typetags, *args))

    def reply_message(self, msg: bytes) -> None:
        """Receive a built reply; the base class records it in ``replies``."""
        self.replies.append(msg)

    def broadcast(self, path: str, typetags: str, *args: Any) -> None:
        self.reply_message(encode_message(path, typetags, *args))

    def chain(self, path: str, typetags: str, *args: Any) -> None:
        """Pass a message on to another dispatcher; recorded in ``chained``."""
        self.chained.append(encode_message(path, typetags, *args))

    def forward(self, reason: Optional[str] = None) -> None:
        """Hand the message to another thread; recorded in ``forwarded``."""
        self.forwarded.append(reason)


@dataclass
class Port:
    """A named endpoint, optionally leading to a subtree of ports."""

    name: str
    metadata: str = ""
    ports: Optional["Ports"] = None
    cb: Callback = field(default=lambda msg, data: None)

    def meta(self) -> MetaContainer:
        return MetaContainer(self.metadata)


def _split_name(name: str) -> tuple[str, Optional[str]]:
    index = name.find(":")
    if index < 0:
        return name, None
    return name[:index], name[index:]


def _args_match(spec: str, typetags: str) -> bool:
    if not spec.startswith(":"):
        return True
    alternatives = spec[1:].split(":")
    for position, alternative in enumerate(alternatives):
        last = position == len(alternatives) - 1
        if alternative:
            matched = typetags.startswith(alternative)
            exact = matched and len(typetags) == len(alternative)
        else:
            matched = exact = typetags == ""
        if last:
            return matched
        if exact:
            return True
    return False


def match_path(pattern: str, path: str) -> Optional[str]:
    """Match the path part of a port name; return the unmatched rest or None.

    ``#N`` in the pattern matches a number below N.
    """
    pattern_path, _ = _split_name(pattern)
    pi = mi = 0
    while pi < len(pattern_path):
        char = pattern_path[pi]
        if char == "#":
            pi += 1
            start = pi
            while pi < len(pattern_path) and pattern_path[pi].isdigit():
                pi += 1
            limit = int(pattern_path[start:pi] or 0)
            digits_start = mi
            while mi < len(path) and path[mi].isdigit():
                mi += 1
            if mi == digits_start or int(path[digits_start:mi]) >= limit:
                return None
        elif mi < len(path) and path[mi] == char:
            pi += 1
            mi += 1
        else:
            return None
    if pattern_path.endswith("/"):
        return path[mi:]
    return "" if mi == len(path) else None


def match_port(pattern: str, msg: Message) -> Optional[str]:
    """Match a port name against a message, argument spec included."""
    rest = match_path(pattern, msg.path)
    if rest is None:
        return None
    _, spec = _split_name(pattern)
    if spec is not None and not _args_match(spec, msg.typetags):
        return None
    return rest


def _first_segment(path: str) -> str:
    slash = path.find("/")
    return path if slash < 0 else path[:slash + 1]


class Ports:
    """An ordered collection of ports that messages are dispatched to."""

    def __init__(self, ports: Iterable[Port] = (),
                 default_handler: Optional[Callback] = None) -> None:
        self.ports = list(ports)
        self.default_handler = default_handler
        self._table: Optional[dict[str, int]] = None
        self.refresh_magic()

    def __iter__(self) -> Iterator[Port]:
        return iter(self.ports)

    def __len__(self) -> int:
        return len(self.ports)

    def __getitem__(self, name: str) -> Port:
        for port in self.ports:
            if port.name == name or port.name.startswith(name + ":"):
                return port
        raise KeyError(name)

    def refresh_magic(self) -> None:
        """Rebuild the lookup table used for direct dispatch.

        The table exists only when no port name holds ``#`` and every port
        has its own first path segment; otherwise dispatch tries every port.
        """
        self._table = None
        if not self.ports or any("#" in port.name for port in self.ports):
            return
        table: dict[str, int] = {}
        for index, port in enumerate(self.ports):
            segment = _first_segment(_split_name(port.name)[0])
            if segment in table:
                return
            table[segment] = index
        self._table = table

    def _call(self, port: Optional[Port], callback: Callback, msg: Message,
              data: RtData, obj: Any) -> None:
        if port is not None:
            data.port = port
        callback(msg, data)
        data.obj = obj

    def dispatch(self, msg: Union[Message, bytes], data: RtData,
                 base_dispatch: bool = True) -> None:
        """Call the callbacks of the ports that ``msg`` addresses."""
        if not isinstance(msg, Message):
            msg = decode_message(msg)
        obj = data.obj
        if base_dispatch:
            data.matches = 0
            data.message = msg
            if msg.path.startswith("/"):
                msg = replace(msg, path=msg.path[1:])
            if data.loc is not None:
                data.loc = ""

        if data.loc is None:
            for port in self.ports:
                if match_port(port.name, msg) is not None:
                    self._call(port, port.cb, msg, data, obj)
            return

        if not data.loc:
            data.loc = "/"
        old = data.loc

        if self._table is None:
            for port in self.ports:
                rest = match_port(port.name, msg)
                if rest is None:
                    continue
                if port.ports is None:
                    data.matches += 1
                if "#" in port.name:
                    data.loc = old + msg.path[:len(msg.path) - len(rest)]
                else:
                    data.loc = old + _split_name(port.name)[0]
                self._call(port, port.cb, msg, data, obj)
                data.loc = old
            return

        index = self._table.get(_first_segment(msg.path))
        port = self.ports[index] if index is not None else None
        if port is not None:
            fixed, spec = _split_name(port.name)
            if msg.path.startswith(fixed) and (
                    spec is None or _args_match(spec, msg.typetags)):
                if port.ports is None:
                    data.matches += 1
                data.loc = old + fixed
                self._call(port, port.cb, msg, data, obj)
                data.loc = old
                return
        if self.default_handler is not None:
            data.matches += 1
            self._call(None, self.default_handler, msg, data, obj)

    def apropos(self, path: Optional[str]) -> Optional[Port]:
        """Find the port that best describes ``path``, or None."""
        path = path or ""
        if path.startswith("/"):
            path = path[1:]
        for port in self.ports:
            if "/" not in port.name:
                continue
            rest = match_path(port.name, path)
            if rest is None:
                continue
            slash = path.find("/")
            if port.ports is not None and 0 <= slash < len(path) - 1:
                return port.ports.apropos(rest)
            return port
        if not path:
            return None
        for port in self.ports:
            if port.name.startswith(path) or match_path(port.name, path) is not None:
                return port
        return None


def collapse_path(path: str) -> str:
    """Remove ``..`` components together with the components they cancel."""
    parts = path.split("/")
    kept: list[str] = []
    consuming = 0
    for position, part in enumerate(reversed(parts)):
        is_root = position == len(parts) - 1 and part == ""
        if part == ".." and not is_root:
            consuming += 1
        elif consuming and not is_root:
            consuming -= 1
        else:
            kept.append(part)
    return "/".join(reversed(kept))


def clone_ports(ports: Ports, clones: Iterable[tuple[str, Callback]]) -> Ports:
    """Copy named ports with new callbacks; the name ``*`` sets the default."""
    result: list[Port] = []
    default: Optional[Callback] = None
    for name, callback in clones:
        found = None
        for port in ports:
            if port.name == name:
                found = port
        if found is not None:
            result.append(Port(found.name, found.metadata, found.ports, callback))
        elif name == "*":
            default = callback
        else:
            raise KeyError(f"cannot find a clone port for {name!r}")
    return Ports(result, default)


def merge_ports(*args: Ports) -> Ports:
    """Join port collections; the first port of each name wins."""
    result: list[Port] = []
    seen: set[str] = set()
    for ports in args:
        for port in ports:
            if port.name not in seen:
                seen.add(port.name)
                result.append(port)
    return Ports(result)