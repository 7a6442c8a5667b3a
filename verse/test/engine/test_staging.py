from __future__ import annotations

from collections.abc import Mapping

from verse.core.result import Err, Ok, Result
from verse.engine.errors import ModuleNotFound, WriteFailed
from verse.engine.model import Module, ModuleGraph
from verse.engine.semver import Version
from verse.engine.staging import VersionManager


class RecordingWriter:
    """Writer double that records every batch and can be told to fail."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.batches: list[dict[str, str]] = []

    def write_versions(self, updates: Mapping[str, str]) -> Result[None, WriteFailed]:
        self.batches.append(dict(updates))
        if self.fail:
            return Err(WriteFailed("disk full", module_ids=tuple(updates)))
        return Ok(None)


def _graph() -> ModuleGraph:
    return ModuleGraph.build(
        [
            Module(":a", "a", "a", "submodule", Version(1, 0, 0)),
            Module(":b", "b", "b", "submodule", Version(2, 0, 0)),
        ]
    ).unwrap()


class TestVersionManager:
    def test_stage_unknown_module(self) -> None:
        manager = VersionManager(_graph(), RecordingWriter())
        result = manager.stage(":zzz", "1.0.0")

        assert isinstance(result, Err)
        assert result.error == ModuleNotFound(":zzz", context="staged version")
        assert manager.has_pending() is False

    def test_last_stage_wins(self) -> None:
        manager = VersionManager(_graph(), RecordingWriter())
        manager.stage(":a", "1.0.1")
        manager.stage(":a", "1.0.1-SNAPSHOT")

        assert manager.pending() == {":a": "1.0.1-SNAPSHOT"}

    def test_commit_is_single_sorted_batch(self) -> None:
        writer = RecordingWriter()
        manager = VersionManager(_graph(), writer)
        manager.stage(":b", "2.1.0")
        manager.stage(":a", "1.1.0")

        result = manager.commit()

        assert result == Ok(2)
        assert writer.batches == [{":a": "1.1.0", ":b": "2.1.0"}]
        assert list(writer.batches[0]) == [":a", ":b"]
        assert manager.has_pending() is False

    def test_failed_commit_keeps_pending(self) -> None:
        writer = RecordingWriter(fail=True)
        manager = VersionManager(_graph(), writer)
        manager.stage(":a", "1.1.0")

        result = manager.commit()

        assert isinstance(result, Err)
        assert isinstance(result.error, WriteFailed)
        assert manager.pending() == {":a": "1.1.0"}

        writer.fail = False
        assert manager.commit() == Ok(1)
        assert writer.batches == [{":a": "1.1.0"}, {":a": "1.1.0"}]

    def test_commit_without_pending_does_not_call_writer(self) -> None:
        writer = RecordingWriter()
        manager = VersionManager(_graph(), writer)

        assert manager.commit() == Ok(0)
        assert writer.batches == []

    def test_clear(self) -> None:
        manager = VersionManager(_graph(), RecordingWriter())
        manager.stage(":a", "1.1.0")
        manager.clear()
        assert manager.has_pending() is False

    def test_pending_is_a_copy(self) -> None:
        manager = VersionManager(_graph(), RecordingWriter())
        manager.stage(":a", "1.1.0")
        manager.pending()[":b"] = "9.9.9"
        assert manager.pending() == {":a": "1.1.0"}
