"""Tests for verse.services.commits module."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from verse.core.result import Err, Ok, Result
from verse.engine.model import Module, ModuleGraph
from verse.engine.semver import Version
from verse.git.repository import COMMIT_END_MARKER, GitError, Repository
from verse.services.commits import (
    UNKNOWN_TYPE,
    CommitHistory,
    ParsedTag,
    module_paths,
    module_tag,
    parse_commit,
    parse_git_log,
    parse_tag,
)


def _graph() -> ModuleGraph:
    return ModuleGraph.build(
        [
            Module(":", "root", ".", "root", Version(1, 0, 0)),
            Module(":core", "core", "core", "submodule", Version(0, 1, 0)),
            Module(":core:api", "core/api", "core/api", "submodule", Version(0, 1, 0)),
            Module(":app", "app", "app", "submodule", Version(2, 0, 0)),
        ]
    ).unwrap()


class LogRepository(Repository):
    """Repository double serving canned tags and log output."""

    def __init__(
        self,
        tags: dict[str, str],
        logs: dict[str, str],
        *,
        plain_tag: str | None = None,
        fail_log: bool = False,
    ) -> None:
        super().__init__(Path("/repo"))
        self._tags = tags
        self._logs = logs
        self._plain_tag = plain_tag
        self._fail_log = fail_log
        self.log_calls: list[tuple[str | None, tuple[str, ...]]] = []
        self.describe_excludes: list[str | None] = []

    def last_tag(self, pattern: str) -> Result[str | None, GitError]:
        return Ok(self._tags.get(pattern))

    def nearest_tag(self, exclude: str | None = None, ref: str = "HEAD") -> Result[str | None, GitError]:
        self.describe_excludes.append(exclude)
        return Ok(self._plain_tag)

    def log(self, rev_range: str | None = None, paths: Sequence[str] = ()) -> Result[str, GitError]:
        self.log_calls.append((rev_range, tuple(paths)))
        if self._fail_log:
            return Err(GitError("log", "fatal: bad revision", 128))
        return Ok(self._logs.get(paths[0] if paths else ".", ""))


def _log(*entries: tuple[str, str, str]) -> str:
    return "".join(f"{h}\n{s}\n{b}\n{COMMIT_END_MARKER}\n" for h, s, b in entries)


class TestParseCommit:
    def test_type_scope_subject(self) -> None:
        c = parse_commit("abc", "feat(api): add pagination")
        assert (c.type, c.scope, c.subject, c.breaking) == ("feat", "api", "add pagination", False)

    def test_bang_is_breaking(self) -> None:
        assert parse_commit("abc", "refactor!: drop v1").breaking is True
        assert parse_commit("abc", "feat(core)!: new model").breaking is True

    def test_footer_is_breaking(self) -> None:
        c = parse_commit("abc", "fix: tweak", "details\n\nBREAKING CHANGE: removed flag")
        assert c.breaking is True
        assert c.body == "details\n\nBREAKING CHANGE: removed flag"

    def test_hyphenated_footer(self) -> None:
        assert parse_commit("abc", "fix: x", "BREAKING-CHANGE: y").breaking is True

    def test_type_is_lowercased(self) -> None:
        assert parse_commit("abc", "Feat: shout").type == "feat"

    def test_empty_scope_is_none(self) -> None:
        assert parse_commit("abc", "fix(): nothing").scope is None

    @pytest.mark.parametrize("subject", ["Merge branch 'main'", "feat add thing", "fix:missing space"])
    def test_non_conventional(self, subject: str) -> None:
        c = parse_commit("abc", subject)
        assert c.type == UNKNOWN_TYPE
        assert c.subject == subject
        assert c.breaking is False

    def test_non_conventional_with_breaking_footer(self) -> None:
        assert parse_commit("abc", "Update deps", "BREAKING CHANGE: java 21").breaking is True

    def test_blank_body_is_none(self) -> None:
        assert parse_commit("abc", "fix: x", "\n\n").body is None


class TestParseGitLog:
    def test_splits_commits(self) -> None:
        output = _log(("a" * 40, "feat: one", ""), ("b" * 40, "fix(core): two", "line1\nline2"))
        commits = parse_git_log(output)

        assert [c.hash for c in commits] == ["a" * 40, "b" * 40]
        assert commits[0].body is None
        assert commits[1].scope == "core"
        assert commits[1].body == "line1\nline2"

    def test_empty_output(self) -> None:
        assert parse_git_log("") == []
        assert parse_git_log("\n") == []


class TestTags:
    def test_module_tag(self) -> None:
        assert module_tag("core/api", "1.2.0") == "core/api@1.2.0"

    def test_parse_module_tag(self) -> None:
        assert parse_tag("core/api@1.2.0-alpha.1") == ParsedTag("core/api", "1.2.0-alpha.1")

    def test_parse_bare_version_tag(self) -> None:
        assert parse_tag("v1.2.3") == ParsedTag(None, "1.2.3")
        assert parse_tag("1.2.3") == ParsedTag(None, "1.2.3")

    def test_parse_other_tag(self) -> None:
        assert parse_tag("nightly") == ParsedTag(None, None)


class TestModulePaths:
    def test_root_excludes_every_submodule(self) -> None:
        graph = _graph()
        root = graph.get(":")
        assert root is not None
        assert module_paths(root, graph) == [
            ".",
            ":(exclude)app",
            ":(exclude)core",
            ":(exclude)core/api",
        ]

    def test_nested_module_excluded_from_parent(self) -> None:
        graph = _graph()
        core = graph.get(":core")
        assert core is not None
        assert module_paths(core, graph) == ["core", ":(exclude)core/api"]

    def test_leaf_module(self) -> None:
        graph = _graph()
        app = graph.get(":app")
        assert app is not None
        assert module_paths(app, graph) == ["app"]


class TestCommitHistory:
    def test_commits_since_last_tag(self) -> None:
        repo = LogRepository(
            tags={"core@*": "core@0.1.0"},
            logs={"core": _log(("c" * 40, "feat: faster", ""))},
        )
        graph = _graph()
        core = graph.get(":core")
        assert core is not None

        result = CommitHistory(repo).commits_for(core, graph)

        assert isinstance(result, Ok)
        assert [c.module for c in result.value] == [":core"]
        assert repo.log_calls == [("core@0.1.0..HEAD", ("core", ":(exclude)core/api"))]

    def test_never_released_reads_whole_history(self) -> None:
        repo = LogRepository(tags={}, logs={})
        graph = _graph()
        app = graph.get(":app")
        assert app is not None

        result = CommitHistory(repo).commits_for(app, graph)

        assert result == Ok([])
        assert repo.log_calls == [(None, ("app",))]

    def test_never_released_falls_back_to_plain_tag(self) -> None:
        repo = LogRepository(tags={}, logs={}, plain_tag="v1.4.0")
        graph = _graph()
        app = graph.get(":app")
        assert app is not None

        result = CommitHistory(repo).commits_for(app, graph)

        assert result == Ok([])
        assert repo.log_calls == [("v1.4.0..HEAD", ("app",))]
        assert repo.describe_excludes == ["*@*"]

    def test_module_tag_wins_over_plain_tag(self) -> None:
        repo = LogRepository(tags={"app@*": "app@2.0.0"}, logs={}, plain_tag="v1.4.0")
        graph = _graph()
        app = graph.get(":app")
        assert app is not None

        assert CommitHistory(repo).last_release_tag(app) == Ok("app@2.0.0")
        assert repo.describe_excludes == []

    def test_collect_every_module(self) -> None:
        repo = LogRepository(tags={}, logs={"app": _log(("d" * 40, "fix: crash", ""))})

        result = CommitHistory(repo).collect(_graph())

        assert isinstance(result, Ok)
        assert sorted(result.value) == [":", ":app", ":core", ":core:api"]
        assert [c.subject for c in result.value[":app"]] == ["crash"]
        assert result.value[":core"] == []

    def test_collect_propagates_git_error(self) -> None:
        repo = LogRepository(tags={}, logs={}, fail_log=True)

        result = CommitHistory(repo).collect(_graph())

        assert isinstance(result, Err)
        assert result.error.returncode == 128
