"""Conventional-commit parsing and per-module commit history.

A module's history is every commit that touched the module's directory
since its last ``<name>@<version>`` tag (the nearest plain release tag for a
module never tagged), minus the directories of modules nested inside it
(those commits belong to the nested module).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from pathlib import PurePosixPath

from verse.core.result import Err, Ok, Result
from verse.engine.model import CommitRecord, Module, ModuleGraph
from verse.git.repository import COMMIT_END_MARKER, GitError, Repository

__all__ = [
    "UNKNOWN_TYPE",
    "CommitHistory",
    "ParsedTag",
    "module_paths",
    "module_tag",
    "parse_commit",
    "parse_git_log",
    "parse_tag",
]

UNKNOWN_TYPE = "unknown"

_HEADER_RE = re.compile(
    r"^(?P<type>[A-Za-z][\w-]*)"
    r"(?:\((?P<scope>[^()]*)\))?"
    r"(?P<bang>!)?"
    r": (?P<subject>.+)$"
)
_BREAKING_FOOTER_RE = re.compile(r"^BREAKING[ -]CHANGE: ?", re.MULTILINE)
_TAG_RE = re.compile(r"^(?P<name>.+)@(?P<version>[^@]+)$")
_BARE_VERSION_TAG_RE = re.compile(r"^v?(?P<version>\d+\.\d+\.\d+.*)$")


def parse_commit(hash: str, subject: str, body: str | None = None) -> CommitRecord:
    """Parse ``type(scope)!: subject`` plus an optional body.

    Subjects that do not follow the convention keep their text and get the
    type ``unknown``.
    """
    body = (body or "").strip() or None
    breaking_footer = bool(body and _BREAKING_FOOTER_RE.search(body))

    match = _HEADER_RE.match(subject.strip())
    if match is None:
        return CommitRecord(
            hash=hash,
            type=UNKNOWN_TYPE,
            subject=subject.strip(),
            breaking=breaking_footer,
            body=body,
        )

    scope = (match.group("scope") or "").strip() or None
    return CommitRecord(
        hash=hash,
        type=match.group("type").lower(),
        subject=match.group("subject").strip(),
        scope=scope,
        breaking=bool(match.group("bang")) or breaking_footer,
        body=body,
    )


def parse_git_log(output: str) -> list[CommitRecord]:
    """Split ``git log`` output produced with ``LOG_FORMAT``."""
    commits: list[CommitRecord] = []
    for block in output.split(COMMIT_END_MARKER):
        lines = block.strip("\n").splitlines()
        if len(lines) < 2:
            continue
        hash_, subject, *body = lines
        commits.append(parse_commit(hash_.strip(), subject, "\n".join(body)))
    return commits


def module_tag(name: str, version: str) -> str:
    return f"{name}@{version}"


@dataclass(frozen=True, slots=True)
class ParsedTag:
    name: str | None
    version: str | None


def parse_tag(tag: str) -> ParsedTag:
    """Split ``name@version``; plain ``v1.2.3`` tags carry only a version."""
    match = _TAG_RE.match(tag)
    if match:
        return ParsedTag(name=match.group("name"), version=match.group("version"))
    bare = _BARE_VERSION_TAG_RE.match(tag)
    if bare:
        return ParsedTag(name=None, version=bare.group("version"))
    return ParsedTag(name=None, version=None)


def _is_nested(child: str, parent: str) -> bool:
    if parent in ("", "."):
        return child not in ("", ".")
    return PurePosixPath(child).is_relative_to(parent) and child != parent


def module_paths(module: Module, graph: ModuleGraph) -> list[str]:
    """Pathspecs selecting ``module``'s files but not its nested modules."""
    include = module.path or "."
    excludes = sorted(
        other.path
        for other in graph
        if other.id != module.id and other.path and _is_nested(other.path, include)
    )
    return [include, *(f":(exclude){path}" for path in excludes)]


class CommitHistory:
    """Commit lookups for modules of one repository."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def last_release_tag(self, module: Module) -> Result[str | None, GitError]:
        """The module's highest ``name@*`` tag.

        A module that was never tagged falls back to the nearest plain
        repository tag (``v1.2.0``); tags of other modules are skipped.
        """
        tag = self._repo.last_tag(module_tag(module.name, "*"))
        if isinstance(tag, Err) or tag.value is not None:
            return tag
        return self._repo.nearest_tag(exclude=module_tag("*", "*"))

    def commits_for(self, module: Module, graph: ModuleGraph) -> Result[list[CommitRecord], GitError]:
        tag = self.last_release_tag(module)
        if isinstance(tag, Err):
            return tag

        rev_range = f"{tag.value}..HEAD" if tag.value else None
        log = self._repo.log(rev_range, module_paths(module, graph))
        if isinstance(log, Err):
            return log

        return Ok([replace(c, module=module.id) for c in parse_git_log(log.value)])

    def collect(self, graph: ModuleGraph) -> Result[dict[str, list[CommitRecord]], GitError]:
        """History of every module in ``graph``, keyed by module id."""
        out: dict[str, list[CommitRecord]] = {}
        for module in graph:
            commits = self.commits_for(module, graph)
            if isinstance(commits, Err):
                return commits
            out[module.id] = commits.value
        return Ok(out)
