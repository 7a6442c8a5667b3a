"""In-memory staging of version updates, flushed as one batch.

Usage:
    manager = VersionManager(graph, writer)
    manager.stage(":core", "1.3.0")
    manager.stage(":app", "2.0.1")
    match manager.commit():
        case Ok(count):
            print(f"wrote {count} versions")
        case Err(error):
            print(error.message)  # staged map is still intact
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from verse.core.result import Err, Ok, Result
from verse.engine.errors import EngineError, ModuleNotFound, WriteFailed
from verse.engine.model import ModuleGraph

__all__ = ["VersionManager", "VersionWriter"]


class VersionWriter(Protocol):
    """Write-back collaborator translating ids to ecosystem version files."""

    def write_versions(self, updates: Mapping[str, str]) -> Result[None, WriteFailed]:
        """Persist every update, or none of them."""
        ...


class VersionManager:
    def __init__(self, graph: ModuleGraph, writer: VersionWriter) -> None:
        self._graph = graph
        self._writer = writer
        self._pending: dict[str, str] = {}

    def stage(self, module_id: str, version: str) -> Result[None, EngineError]:
        """Record an update; staging the same module twice keeps the last value."""
        if module_id not in self._graph:
            return Err(ModuleNotFound(module_id, context="staged version"))
        self._pending[module_id] = version
        return Ok(None)

    def pending(self) -> dict[str, str]:
        return dict(self._pending)

    def has_pending(self) -> bool:
        return bool(self._pending)

    def clear(self) -> None:
        self._pending.clear()

    def commit(self) -> Result[int, EngineError]:
        """Hand the whole staged map to the writer in a single call.

        Returns the number of modules written. On failure the staged map is
        left untouched so the identical batch can be retried.
        """
        if not self._pending:
            return Ok(0)

        batch = dict(sorted(self._pending.items()))
        written = self._writer.write_versions(batch)
        if isinstance(written, Err):
            return written

        self._pending.clear()
        return Ok(len(batch))
