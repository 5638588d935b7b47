"""Mapping of MIDI controllers onto OSC parameter ports."""

from __future__ import annotations

import math
import re
import sys
from dataclasses import dataclass
from typing import Callable, Optional

from rtosc.message import Message, encode_message
from rtosc.metadata import MetaContainer
from rtosc.ports import Port, Ports, RtData

INVALID_MIDI = 255
TABLE_SIZE = 128
PATH_LENGTH = 128
MAX_UNHANDLED_PATH = 128

_FLOAT_PREFIX = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

ModifyCallback = Callable[[str, str, Optional[str], int, int], None]


def _atof(text: str) -> float:
    found = _FLOAT_PREFIX.match(text)
    return float(found.group()) if found else 0.0


def _print_error(reason: str, path: str) -> None:
    print(f"'{reason}' and '{path}'")


def _print_event(msg: bytes) -> None:
    print(f"'{msg!r}'")


@dataclass
class MidiAddr:
    """One binding of a MIDI channel and controller to a port path."""

    ch: int = INVALID_MIDI
    ctl: int = INVALID_MIDI
    path: str = ""
    type: Optional[str] = None
    conversion: Optional[str] = None


class MidiTable:
    """Binds MIDI controllers to ports, learning bindings on request.

    ``modify_cb``, when given, is told of every added, replaced and deleted
    binding.
    """

    def __init__(self, dispatch_root: Ports,
                 error_cb: Callable[[str, str], None] = _print_error,
                 event_cb: Callable[[bytes], None] = _print_event,
                 modify_cb: Optional[ModifyCallback] = None) -> None:
        self.dispatch_root = dispatch_root
        self.error_cb = error_cb
        self.event_cb = event_cb
        self.modify_cb = modify_cb
        self.table = [MidiAddr() for _ in range(TABLE_SIZE)]
        self.unhandled_ch = INVALID_MIDI
        self.unhandled_ctl = INVALID_MIDI
        self.unhandled_path = ""

    def _modified(self, action: str, path: str, conversion: Optional[str],
                  ch: int, ctl: int) -> None:
        if self.modify_cb is not None:
            self.modify_cb(action, path, conversion, ch, ctl)

    def has(self, ch: int, ctl: int) -> bool:
        return self.get(ch, ctl) is not None

    def get(self, ch: int, ctl: int) -> Optional[MidiAddr]:
        return next((e for e in self.table if e.ch == ch and e.ctl == ctl),
                    None)

    @staticmethod
    def _mash_port(entry: MidiAddr, port: Port) -> bool:
        colon = port.name.find(":")
        if colon < 0:
            return False
        args = port.name[colon:]
        if "f" in args:
            entry.type = "f"
            entry.conversion = port.metadata
        elif "i" in args:
            entry.type = "i"
        elif "T" in args:
            entry.type = "T"
        elif "c" in args:
            entry.type = "c"
        else:
            return False
        return True

    def _bind(self, entry: MidiAddr, path: str, port: Port) -> None:
        entry.path = path[:PATH_LENGTH - 1]
        if not self._mash_port(entry, port):
            entry.ch = entry.ctl = INVALID_MIDI
            self.error_cb("Failed to read metadata", path)

    def add_elm(self, ch: int, ctl: int, path: str) -> None:
        """Bind controller ``ctl`` on channel ``ch`` to the port at ``path``."""
        port = self.dispatch_root.apropos(path)
        if port is None or port.ports is not None:
            self.error_cb("Bad path", path)
            return
        entry = self.get(ch, ctl)
        if entry is not None:
            self._bind(entry, path, port)
            self._modified("REPLACE", path, entry.conversion, ch, ctl)
            return
        for entry in self.table:
            if entry.ch == INVALID_MIDI:
                entry.ch, entry.ctl = ch, ctl
                self._bind(entry, path, port)
                self._modified("ADD", path, entry.conversion, ch, ctl)
                return

    def check_learn(self) -> None:
        """Bind the pending path to the last unhandled controller, if both exist."""
        if self.unhandled_ctl == INVALID_MIDI or not self.unhandled_path:
            return
        self.add_elm(self.unhandled_ch, self.unhandled_ctl, self.unhandled_path)
        self.unhandled_ch = self.unhandled_ctl = INVALID_MIDI
        self.unhandled_path = ""

    def learn(self, path: str) -> None:
        """Bind ``path`` to the next controller that is not yet bound."""
        if len(path) > PATH_LENGTH:
            self.error_cb("String too long", path)
            return
        self.clear_entry(path)
        self.unhandled_path = path[:MAX_UNHANDLED_PATH - 1]
        self.check_learn()

    def clear_entry(self, path: str) -> None:
        """Remove the first binding to ``path``."""
        for entry in self.table:
            if entry.path == path:
                entry.ch = entry.ctl = INVALID_MIDI
                self._modified("DEL", path, "", -1, -1)
                break

    def process(self, ch: int, ctl: int, val: int) -> None:
        """Turn a controller event into a message for its bound port."""
        addr = self.get(ch, ctl)
        if addr is None:
            self.unhandled_ch, self.unhandled_ctl = ch, ctl
            self.check_learn()
            return
        if addr.type == "f":
            msg = encode_message(addr.path, "f",
                                 self.translate(val, addr.conversion))
        elif addr.type in ("i", "c"):
            msg = encode_message(addr.path, addr.type, val)
        elif addr.type == "T":
            msg = encode_message(addr.path, "F" if val < 64 else "T")
        else:
            return
        self.event_cb(msg)

    def learn_port(self) -> Port:
        def callback(msg: Message, _data: RtData) -> None:
            self.learn(msg.argument(0))
        return Port("learn:s", "", None, callback)

    def unlearn_port(self) -> Port:
        def callback(msg: Message, _data: RtData) -> None:
            self.clear_entry(msg.argument(0))
        return Port("unlearn:s", "", None, callback)

    def register_port(self) -> Port:
        def callback(msg: Message, _data: RtData) -> None:
            self.add_elm(msg.argument(0), msg.argument(1), msg.argument(2))
        return Port("register:iis", "", None, callback)

    @staticmethod
    def translate(val: int, meta: Optional[str]) -> float:
        """Scale a controller value by the port's min, max and scale."""
        x = val / 127.0 if val != 64 else 0.5
        container = MetaContainer(meta)
        props = {}
        for title in ("min", "max", "scale"):
            entry = container.find(title)
            if entry is None or entry[1] is None:
                sys.stderr.write("failed to get properties\n")
                return 0.0
            props[title] = entry[1]
        low = _atof(props["min"])
        high = _atof(props["max"])
        if props["scale"] == "linear":
            return x * (high - low) + low
        if props["scale"] == "logarithmic":
            b = math.log(low)
            a = math.log(high) - b
            return math.exp(a * x + b)
        return 0.0