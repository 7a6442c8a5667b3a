"""End-to-end versioning run.

Order of operations:
1. load config, validate options, check branch and working tree
2. discover modules, collect each module's commits
3. plan (classify, cascade, compute)
4. report; stop here on dry run
5. stage + single write-back, changelogs
6. optional git commit/push and ``name@version`` tags

Every step returns a Result; the first error ends the run.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Protocol

from verse.adapters.errors import AdapterError
from verse.adapters.gradle import GradleDetector, GradleVersionWriter
from verse.core.config import DEFAULT_CONFIG_PATH, ConfigError, load_config_or_default
from verse.core.result import Err, Ok, Result
from verse.engine.compute import BuildMetadataMode, ModeFlags, PrereleaseMode
from verse.engine.errors import EngineError
from verse.engine.model import CommitRecord, Decision, ModuleGraph
from verse.engine.planner import VersionPlan, bump_summary, plan_versions, stage_plan
from verse.engine.semver import is_valid_prerelease
from verse.engine.staging import VersionManager, VersionWriter
from verse.git.repository import GitError, Repository
from verse.output.console import ConsoleProtocol, Style
from verse.services.changelog import ChangelogError, ChangelogWriter
from verse.services.commits import CommitHistory, module_tag

__all__ = [
    "ModuleDetector",
    "RunError",
    "RunResult",
    "RunnerError",
    "RunnerOptions",
    "VersionRunner",
    "release_commit_message",
]


@dataclass(frozen=True, slots=True)
class RunnerError:
    kind: Literal["dirty_tree"]
    message: str
    hint: str | None = None


RunError = ConfigError | AdapterError | EngineError | GitError | ChangelogError | RunnerError


class ModuleDetector(Protocol):
    def detect(self) -> Result[ModuleGraph, AdapterError | EngineError]: ...


@dataclass(frozen=True, slots=True)
class RunnerOptions:
    repo_root: Path
    config_path: Path | None = None
    release_branches: tuple[str, ...] = ("main",)
    dry_run: bool = False
    prerelease_mode: bool = False
    prerelease_id: str = "alpha"
    bump_unchanged: bool = False
    add_build_metadata: bool = False
    timestamp_versions: bool = False
    gradle_snapshot: bool = False
    push_changes: bool = False
    push_tags: bool = False
    hierarchy_file: Path | None = None
    changelog: bool = True

    def resolved_config_path(self) -> Path:
        if self.config_path is None:
            return self.repo_root / DEFAULT_CONFIG_PATH
        if self.config_path.is_absolute():
            return self.config_path
        return self.repo_root / self.config_path


@dataclass(frozen=True, slots=True)
class RunResult:
    bumped: bool = False
    changes: tuple[Decision, ...] = ()
    tags: tuple[str, ...] = ()
    changelog_paths: tuple[Path, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        return {
            "bumped": self.bumped,
            "changedModules": [d.to_dict() for d in self.changes],
            "createdTags": list(self.tags),
            "changelogPaths": [str(p) for p in self.changelog_paths],
        }


def release_commit_message(graph: ModuleGraph, changes: Sequence[Decision]) -> str:
    if len(changes) == 1:
        only = changes[0]
        module = graph.get(only.module_id)
        name = module.name if module is not None else only.module_id
        return f"chore(release): {name} {only.to_version}"
    return f"chore(release): update {len(changes)} modules"


class VersionRunner:
    """Drive one versioning run over a repository.

    Collaborators default to the Gradle adapter and the real git repository
    at ``options.repo_root``; tests inject fakes.
    """

    def __init__(
        self,
        options: RunnerOptions,
        console: ConsoleProtocol,
        *,
        repo: Repository | None = None,
        detector: ModuleDetector | None = None,
        writer: VersionWriter | None = None,
        now: datetime | None = None,
    ) -> None:
        self._options = options
        self._console = console
        self._repo = repo or Repository(options.repo_root)
        self._detector = detector or GradleDetector(
            options.repo_root,
            hierarchy_file=options.hierarchy_file,
        )
        self._writer = writer or GradleVersionWriter(options.repo_root)
        self._now = now or datetime.now(timezone.utc)

    def run(self) -> Result[RunResult, RunError]:
        opts = self._options
        console = self._console

        config_path = opts.resolved_config_path()
        config = load_config_or_default(config_path)
        if isinstance(config, Err):
            return config
        console.print(f"config: {config_path}", Style.DIM)

        checked = self._check_options()
        if isinstance(checked, Err):
            return checked

        branch = self._repo.current_branch()
        if branch not in opts.release_branches:
            console.warning(
                f"not on a release branch (current: {branch or 'detached HEAD'}), skipping versioning"
            )
            return Ok(RunResult())

        if not opts.dry_run and not self._repo.is_clean():
            return Err(
                RunnerError(
                    kind="dirty_tree",
                    message="working directory is not clean",
                    hint="commit or stash your changes, or use --dry-run",
                )
            )

        console.header("Discovering modules")
        detected = self._detector.detect()
        if isinstance(detected, Err):
            return detected
        graph = detected.value
        console.print(f"found {len(graph)} modules: {', '.join(graph.ids())}", Style.DIM)

        console.header("Analyzing commits")
        commits = CommitHistory(self._repo).collect(graph)
        if isinstance(commits, Err):
            return commits
        for module_id, records in commits.value.items():
            if records:
                console.print(f"{module_id}: {len(records)} commits", Style.DIM)

        mode = self._mode_flags()
        if isinstance(mode, Err):
            return mode

        plan = plan_versions(graph, commits.value, config.value.policy(), mode.value)
        if isinstance(plan, Err):
            return plan

        if plan.value.is_empty:
            console.success("no version changes needed")
            return Ok(RunResult())

        self._report(plan.value)
        changes = tuple(plan.value.changes)
        tags = tuple(self._tag_name(graph, d) for d in changes)

        if opts.dry_run:
            console.info("dry run: nothing written")
            return Ok(RunResult(bumped=True, changes=changes, tags=tags))

        written = self._write_versions(graph, plan.value)
        if isinstance(written, Err):
            return written

        changelog_paths: tuple[Path, ...] = ()
        if opts.changelog:
            paths = self._write_changelogs(graph, changes, commits.value)
            if isinstance(paths, Err):
                return paths
            changelog_paths = paths.value

        created_tags: tuple[str, ...] = ()
        if opts.push_changes:
            pushed = self._commit_and_push(graph, changes)
            if isinstance(pushed, Err):
                return pushed
            if opts.push_tags:
                tagged = self._create_tags(tags, graph, changes)
                if isinstance(tagged, Err):
                    return tagged
                created_tags = tags
        else:
            console.print("skipping commit and push (push changes disabled)", Style.DIM)
            if opts.push_tags:
                console.warning("tags are only created together with --push-changes")

        console.success(f"versioned {len(changes)} modules")
        return Ok(
            RunResult(
                bumped=True,
                changes=changes,
                tags=created_tags,
                changelog_paths=changelog_paths,
            )
        )

    def _check_options(self) -> Result[None, ConfigError]:
        opts = self._options
        if opts.prerelease_mode and not is_valid_prerelease(opts.prerelease_id):
            return Err(
                ConfigError(
                    f"invalid pre-release identifier {opts.prerelease_id!r}: "
                    "expected dot-separated [0-9A-Za-z-] identifiers without leading zeros"
                )
            )
        return Ok(None)

    def _mode_flags(self) -> Result[ModeFlags, GitError]:
        opts = self._options
        build_value = ""
        if opts.add_build_metadata:
            sha = self._repo.short_sha()
            if isinstance(sha, Err):
                return sha
            build_value = sha.value
            self._console.print(f"build metadata: {build_value}", Style.DIM)

        mode = ModeFlags(
            prerelease=PrereleaseMode(enabled=opts.prerelease_mode, identifier=opts.prerelease_id),
            build_metadata=BuildMetadataMode(enabled=opts.add_build_metadata, value=build_value),
            timestamp_identifier=opts.timestamp_versions,
            ecosystem_snapshot=opts.gradle_snapshot,
            force_unchanged_in_prerelease=opts.bump_unchanged,
            started_at=self._now,
        )
        if opts.prerelease_mode and opts.timestamp_versions:
            self._console.print(f"pre-release identifier: {mode.prerelease_identifier()}", Style.DIM)
        return Ok(mode)

    def _report(self, plan: VersionPlan) -> None:
        console = self._console
        changes = plan.changes
        console.header(f"Planned changes ({len(changes)} modules)")
        console.table(
            ("module", "from", "to", "bump", "reason"),
            [
                (d.module_id, str(d.from_version), d.to_version or "", str(d.bump_type), str(d.reason))
                for d in changes
            ],
        )
        summary = bump_summary(plan)
        if summary:
            parts = ", ".join(f"{count} {bump!s}" for bump, count in sorted(summary.items(), reverse=True))
            console.print(parts, Style.DIM)

    def _tag_name(self, graph: ModuleGraph, decision: Decision) -> str:
        module = graph.get(decision.module_id)
        name = module.name if module is not None else decision.module_id
        return module_tag(name, decision.to_version or "")

    def _write_versions(self, graph: ModuleGraph, plan: VersionPlan) -> Result[int, EngineError]:
        manager = VersionManager(graph, self._writer)
        staged = stage_plan(manager, plan)
        if isinstance(staged, Err):
            return staged
        committed = manager.commit()
        if isinstance(committed, Err):
            return committed
        self._console.success(f"wrote {committed.value} versions")
        return committed

    def _write_changelogs(
        self,
        graph: ModuleGraph,
        changes: Sequence[Decision],
        commits: dict[str, list[CommitRecord]],
    ) -> Result[tuple[Path, ...], ChangelogError]:
        writer = ChangelogWriter(self._options.repo_root)
        on = self._now.date()
        paths: list[Path] = []
        for decision in changes:
            module = graph.get(decision.module_id)
            if module is None or decision.to_version is None:
                continue
            written = writer.write_module(module, decision.to_version, commits.get(module.id, []), on=on)
            if isinstance(written, Err):
                return written
            paths.append(written.value)

        summary = writer.write_summary(changes, on=on)
        if isinstance(summary, Err):
            return summary
        paths.append(summary.value)

        unique = tuple(dict.fromkeys(paths))
        self._console.print(f"updated {len(unique)} changelogs", Style.DIM)
        return Ok(unique)

    def _commit_and_push(self, graph: ModuleGraph, changes: Sequence[Decision]) -> Result[None, GitError]:
        repo = self._repo
        added = repo.add_all()
        if isinstance(added, Err):
            return added

        staged = repo.has_staged_changes()
        if isinstance(staged, Err):
            return staged
        if not staged.value:
            self._console.print("no changes to commit", Style.DIM)
            return Ok(None)

        message = release_commit_message(graph, changes)
        committed = repo.commit(message)
        if isinstance(committed, Err):
            return committed
        self._console.print(f"committed: {message}", Style.DIM)

        pushed = repo.push()
        if isinstance(pushed, Err):
            return pushed
        self._console.success("pushed release commit")
        return Ok(None)

    def _create_tags(
        self,
        tags: Sequence[str],
        graph: ModuleGraph,
        changes: Sequence[Decision],
    ) -> Result[None, GitError]:
        for tag, decision in zip(tags, changes, strict=True):
            module = graph.get(decision.module_id)
            name = module.name if module is not None else decision.module_id
            created = self._repo.create_tag(tag, f"Release {name} v{decision.to_version}")
            if isinstance(created, Err):
                return created
            self._console.print(f"tag: {tag}", Style.DIM)

        pushed = self._repo.push_tags()
        if isinstance(pushed, Err):
            return pushed
        self._console.success(f"pushed {len(tags)} tags")
        return Ok(None)
