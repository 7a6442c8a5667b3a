"""Error variants produced by the version-decision engine.

All variants are returned inside ``Err`` rather than raised. Each one is
fatal for the run: the engine has no partial-success mode and never retries.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "DuplicateModule",
    "EngineError",
    "InvalidVersion",
    "ModuleNotFound",
    "WriteFailed",
]


@dataclass(frozen=True, slots=True)
class ModuleNotFound:
    """A decision or an ``affects`` edge names a module absent from the graph."""

    module_id: str
    context: str = ""

    @property
    def message(self) -> str:
        if self.context:
            return f"module not found: {self.module_id} ({self.context})"
        return f"module not found: {self.module_id}"


@dataclass(frozen=True, slots=True)
class DuplicateModule:
    module_id: str

    @property
    def message(self) -> str:
        return f"duplicate module id: {self.module_id}"


@dataclass(frozen=True, slots=True)
class InvalidVersion:
    """The recorded version of a module is not a semantic version."""

    module_id: str
    raw: str

    @property
    def message(self) -> str:
        return f"invalid version for {self.module_id}: {self.raw!r}"


@dataclass(frozen=True, slots=True)
class WriteFailed:
    """The batched write-back failed; nothing is considered committed."""

    reason: str
    module_ids: tuple[str, ...] = ()

    @property
    def message(self) -> str:
        return f"version write-back failed: {self.reason}"


EngineError = ModuleNotFound | DuplicateModule | InvalidVersion | WriteFailed
