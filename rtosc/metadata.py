"""Reading of port metadata and conversion of argument values with it.

Port metadata is a string of entries; each entry is a title that starts
with ``:``, ends with a NUL and may be followed by ``=value`` and another
NUL. The whole string ends with two NULs in a row, for example
``":min\\0=0\\0:max\\0=127\\0:parameter\\0\\0"``.

Argument values are ``(type, value)`` pairs. An array is ``("a", items)``
where ``items`` is a list of such pairs.
"""

from __future__ import annotations

import re
from typing import Iterator, Optional

_INT_PREFIX = re.compile(r"\s*[+-]?\d+")


def _atoi(text: str) -> int:
    found = _INT_PREFIX.match(text)
    return int(found.group()) if found else 0


class MetaContainer:
    """Read-only view of a port's metadata string."""

    def __init__(self, raw: Optional[str]) -> None:
        self.raw = raw or ""

    def _char(self, index: int) -> str:
        return self.raw[index] if index < len(self.raw) else "\0"

    def __iter__(self) -> Iterator[tuple[str, Optional[str]]]:
        """Yield ``(title, value)`` pairs; ``value`` is None for flags."""
        raw = self.raw
        if not raw:
            return
        pos = 1 if raw[0] == ":" else 0
        while self._char(pos) != "\0":
            end = raw.find("\0", pos)
            if end < 0:
                end = len(raw)
            title = raw[pos:end]
            value = None
            if self._char(end + 1) == "=":
                value_end = raw.find("\0", end + 2)
                if value_end < 0:
                    value_end = len(raw)
                value = raw[end + 2:value_end]
            yield title, value
            # the next entry starts after a NUL followed by ':'
            prev = "\0"
            index = pos
            while True:
                current = self._char(index)
                if prev == "\0" and current in "\0:" and index != pos:
                    break
                if prev == "\0" and index == pos and current in "\0:":
                    break
                prev = current
                index += 1
            if self._char(index) == "\0":
                return
            pos = index + 1

    def find(self, title: str) -> Optional[tuple[str, Optional[str]]]:
        """Return the entry with this title, or None."""
        for entry in self:
            if entry[0] == title:
                return entry
        return None

    def __getitem__(self, title: str) -> Optional[str]:
        entry = self.find(title)
        if entry is None:
            raise KeyError(title)
        return entry[1]

    def __contains__(self, title: object) -> bool:
        return isinstance(title, str) and self.find(title) is not None

    def length(self) -> int:
        """Return the size of the metadata block, terminating NULs included."""
        if not self.raw or self.raw[0] == "\0":
            return 0
        prev = "\0"
        index = 0
        while prev != "\0" or self._char(index) != "\0":
            prev = self._char(index)
            index += 1
        return index + 2


def enum_key(meta: MetaContainer, value: str) -> Optional[int]:
    """Return the number that a ``map N`` entry gives to ``value``, or None."""
    for title, mapped in meta:
        if "map " in title and mapped == value:
            return _atoi(title[4:])
    return None


def map_arg_vals(arg_vals: list, meta: MetaContainer) -> list:
    """Replace integers that have a ``map N`` name by that name, in place."""
    for position, (tag, value) in enumerate(arg_vals):
        if tag == "i":
            entry = meta.find(f"map {value}")
            if entry is not None and entry[1] is not None:
                arg_vals[position] = ("S", entry[1])
    return arg_vals


def _convert(item: tuple, spec_tag: str, meta: MetaContainer) -> tuple[tuple, bool]:
    tag, value = item
    if tag == "S" and spec_tag == "i":
        key = enum_key(meta, value)
        if key is None:
            return item, False
        return ("i", key), True
    return item, True


def canonicalize_arg_vals(arg_vals: list, port_args: Optional[str],
                          meta: MetaContainer) -> int:
    """Turn symbol arguments into the integers the port expects, in place.

    Returns the number of symbols that could not be converted, or, if the
    port's argument spec runs out first, the number of values left over.
    """
    spec = (port_args or "").lstrip(":[]")
    if "#" in spec:
        raise ValueError("argument spec must not hold '#'")
    errors = 0
    if arg_vals and arg_vals[0][0] == "a":
        items = arg_vals[0][1]
        spec_tag = spec.lstrip("[]")[:1]
        for position, item in enumerate(items):
            if not spec_tag or spec_tag == ":":
                return len(arg_vals)
            items[position], ok = _convert(item, spec_tag, meta)
            errors += not ok
        return errors
    pos = 0
    for position, item in enumerate(arg_vals):
        while pos < len(spec) and spec[pos] in "[]":
            pos += 1
        if pos >= len(spec) or spec[pos] == ":":
            return len(arg_vals) - position
        arg_vals[position], ok = _convert(item, spec[pos], meta)
        errors += not ok
        pos += 1
    return errors