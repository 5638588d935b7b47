"""Version numbers made of three small components."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Version:
    """A version ``major.minor.revision``; each component fits in a byte."""

    major: int
    minor: int
    revision: int

    def __post_init__(self) -> None:
        for component in (self.major, self.minor, self.revision):
            if not 0 <= component <= 255:
                raise ValueError(
                    f"version components must lie in 0..255, got {component}")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.revision}"


_CURRENT = Version(0, 1, 0)


def compare_versions(v1: Version, v2: Version) -> int:
    """Return a value greater than, equal to or less than 0 as v1 is to v2."""
    pairs = zip((v1.major, v1.minor, v1.revision),
                (v2.major, v2.minor, v2.revision))
    for left, right in pairs:
        if left != right:
            return left - right
    return 0


def current_version() -> Version:
    """Return the version of this library."""
    return _CURRENT