from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

__all__ = ["AdapterError", "AdapterErrorKind"]

AdapterErrorKind = Literal[
    "hierarchy_missing",
    "hierarchy_invalid",
    "gradle_failed",
    "properties_missing",
    "properties_unreadable",
]


@dataclass(frozen=True, slots=True)
class AdapterError:
    """Module discovery failed before the engine could run."""

    kind: AdapterErrorKind
    message: str
    hint: str | None = None
