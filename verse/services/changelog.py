"""Markdown changelog generation.

Each bumped module gets a section prepended to ``<module>/CHANGELOG.md``:

    ## [1.2.0] - 2026-03-01

    ### Features

    - **api**: add pagination

The repository root ``CHANGELOG.md`` additionally receives a release summary
listing every module change.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from verse.core.result import Err, Ok, Result
from verse.engine.model import CommitRecord, Decision, Module
from verse.platform.files import atomic_write_text, read_text_or_none

__all__ = [
    "CHANGELOG_FILE",
    "ChangelogError",
    "ChangelogSections",
    "ChangelogWriter",
    "group_commits",
    "insert_entry",
    "render_entry",
    "render_summary",
]

CHANGELOG_FILE = "CHANGELOG.md"

_OTHER_TYPES = frozenset({"perf", "refactor", "style"})


@dataclass(frozen=True, slots=True)
class ChangelogError:
    path: Path
    message: str


@dataclass(frozen=True, slots=True)
class ChangelogSections:
    breaking: tuple[CommitRecord, ...] = ()
    features: tuple[CommitRecord, ...] = ()
    fixes: tuple[CommitRecord, ...] = ()
    other: tuple[CommitRecord, ...] = ()

    def is_empty(self) -> bool:
        return not (self.breaking or self.features or self.fixes or self.other)


def group_commits(commits: Iterable[CommitRecord]) -> ChangelogSections:
    """Sort commits into sections; commits of other types are left out."""
    breaking: list[CommitRecord] = []
    features: list[CommitRecord] = []
    fixes: list[CommitRecord] = []
    other: list[CommitRecord] = []
    for commit in commits:
        if commit.breaking:
            breaking.append(commit)
        elif commit.type == "feat":
            features.append(commit)
        elif commit.type == "fix":
            fixes.append(commit)
        elif commit.type in _OTHER_TYPES:
            other.append(commit)
    return ChangelogSections(tuple(breaking), tuple(features), tuple(fixes), tuple(other))


def _commit_line(commit: CommitRecord, *, include_scopes: bool, include_hashes: bool) -> str:
    line = "- "
    if include_scopes and commit.scope:
        line += f"**{commit.scope}**: "
    line += commit.subject
    if include_hashes:
        line += f" ({commit.short_hash})"
    return line


def render_entry(
    version: str,
    commits: Iterable[CommitRecord],
    *,
    on: date,
    include_scopes: bool = True,
    include_hashes: bool = False,
) -> str:
    sections = group_commits(commits)
    lines = [f"## [{version}] - {on.isoformat()}", ""]

    for title, items in (
        ("BREAKING CHANGES", sections.breaking),
        ("Features", sections.features),
        ("Bug Fixes", sections.fixes),
        ("Other Changes", sections.other),
    ):
        if not items:
            continue
        lines += [f"### {title}", ""]
        lines += [
            _commit_line(c, include_scopes=include_scopes, include_hashes=include_hashes)
            for c in items
        ]
        lines.append("")

    return "\n".join(lines).rstrip("\n") + "\n"


def render_summary(changes: Sequence[Decision], *, on: date) -> str:
    """Root release summary: one ``id: from → to`` line per change."""
    lines = [f"## {on.isoformat()}", ""]
    if not changes:
        lines.append("No changes in this release.")
    else:
        lines += ["### Module Updates", ""]
        lines += [f"- **{d.module_id}**: {d.from_version} → {d.to_version}" for d in changes]
    return "\n".join(lines) + "\n"


def insert_entry(existing: str | None, entry: str, *, title: str) -> str:
    """Place ``entry`` above the first ``## `` section of ``existing``.

    A missing file starts with ``# <title>``; a file without sections gets
    the entry appended.
    """
    if existing is None:
        return f"# {title}\n\n{entry}"

    lines = existing.splitlines()
    insert_at = next(
        (i for i, line in enumerate(lines) if line.startswith("## ")),
        None,
    )
    entry_lines = entry.rstrip("\n").splitlines()
    if insert_at is None:
        while lines and not lines[-1].strip():
            lines.pop()
        merged = [*lines, "", *entry_lines] if lines else entry_lines
    else:
        merged = [*lines[:insert_at], *entry_lines, "", *lines[insert_at:]]
    return "\n".join(merged) + "\n"


class ChangelogWriter:
    """Writes changelog files below a repository root."""

    def __init__(self, root: Path, *, include_scopes: bool = True, include_hashes: bool = False) -> None:
        self.root = root
        self.include_scopes = include_scopes
        self.include_hashes = include_hashes

    def path_for(self, module: Module) -> Path:
        return self.root / module.path / CHANGELOG_FILE

    def write_module(
        self,
        module: Module,
        version: str,
        commits: Sequence[CommitRecord],
        *,
        on: date,
    ) -> Result[Path, ChangelogError]:
        entry = render_entry(
            version,
            commits,
            on=on,
            include_scopes=self.include_scopes,
            include_hashes=self.include_hashes,
        )
        title = "Changelog" if module.kind == "root" else f"Changelog - {module.name}"
        return self._prepend(self.path_for(module), entry, title=title)

    def write_summary(self, changes: Sequence[Decision], *, on: date) -> Result[Path, ChangelogError]:
        return self._prepend(self.root / CHANGELOG_FILE, render_summary(changes, on=on), title="Changelog")

    def _prepend(self, path: Path, entry: str, *, title: str) -> Result[Path, ChangelogError]:
        try:
            existing = read_text_or_none(path)
            atomic_write_text(path, insert_entry(existing, entry, title=title))
        except (OSError, UnicodeDecodeError) as e:
            return Err(ChangelogError(path=path, message=str(e)))
        return Ok(path)
