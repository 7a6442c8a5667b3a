from __future__ import annotations

from enum import IntEnum

__all__ = ["BumpType", "merge_bumps", "parse_bump"]


class BumpType(IntEnum):
    """Magnitude of a version change, totally ordered.

    Merging two candidates for the same module is always ``max``; the order
    of the values below is therefore load-bearing.
    """

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name.lower()


def merge_bumps(*bumps: BumpType) -> BumpType:
    return max(bumps, default=BumpType.NONE)


def parse_bump(token: str) -> BumpType | None:
    """Parse a config token (``major``, ``minor``, ``patch``, ``none``)."""
    try:
        return BumpType[token.strip().upper()]
    except KeyError:
        return None
