"""Module graph and decision types shared by every engine stage."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final, Literal

from verse.core.result import Err, Ok, Result
from verse.engine.bump import BumpType, merge_bumps, parse_bump
from verse.engine.errors import DuplicateModule, EngineError, ModuleNotFound
from verse.engine.semver import Version

__all__ = [
    "IGNORE",
    "BumpType",
    "CommitRecord",
    "CommitRule",
    "Decision",
    "DependencyRule",
    "Module",
    "ModuleGraph",
    "ModuleKind",
    "Policy",
    "Reason",
    "default_commit_types",
    "merge_bumps",
    "parse_bump",
]


ModuleKind = Literal["root", "submodule"]

IGNORE: Final = "ignore"
CommitRule = BumpType | Literal["ignore"]


@dataclass(frozen=True, slots=True)
class Module:
    """One independently versioned unit.

    Attributes:
        id: Stable hierarchical key (e.g. ``:`` or ``:core:api``).
        name: Display name, used for tags and changelog headings.
        path: Location used by collaborators for I/O; opaque to the engine.
        kind: ``root`` or ``submodule``.
        version: Version recorded on disk at run start.
        affects: Ids of modules to reconsider when this module changes.
    """

    id: str
    name: str
    path: str
    kind: ModuleKind
    version: Version
    affects: frozenset[str] = frozenset()


class ModuleGraph:
    """Immutable per-run snapshot of every module and its ``affects`` edges."""

    __slots__ = ("_modules",)

    def __init__(self, modules: Mapping[str, Module]) -> None:
        self._modules: dict[str, Module] = dict(modules)

    @classmethod
    def build(cls, modules: Iterable[Module]) -> Result[ModuleGraph, EngineError]:
        by_id: dict[str, Module] = {}
        for module in modules:
            if module.id in by_id:
                return Err(DuplicateModule(module.id))
            by_id[module.id] = module

        for module in by_id.values():
            for target in sorted(module.affects):
                if target not in by_id:
                    return Err(ModuleNotFound(target, context=f"affected by {module.id}"))

        return Ok(cls(by_id))

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._modules

    def __iter__(self) -> Iterator[Module]:
        for module_id in self.ids():
            yield self._modules[module_id]

    def __len__(self) -> int:
        return len(self._modules)

    def ids(self) -> list[str]:
        return sorted(self._modules)

    def get(self, module_id: str) -> Module | None:
        return self._modules.get(module_id)

    def require(self, module_id: str, *, context: str = "") -> Result[Module, ModuleNotFound]:
        module = self._modules.get(module_id)
        if module is None:
            return Err(ModuleNotFound(module_id, context=context))
        return Ok(module)

    @property
    def root(self) -> Module | None:
        for module in self:
            if module.kind == "root":
                return module
        return None

    def dependents_of(self, module_id: str) -> list[str]:
        module = self._modules.get(module_id)
        if module is None:
            return []
        return sorted(module.affects)

    def transitive_affects(self, module_id: str) -> set[str]:
        """Every module reachable through ``affects`` edges (cycles allowed)."""
        seen: set[str] = set()
        queue = deque(self.dependents_of(module_id))
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            queue.extend(self.dependents_of(current))
        seen.discard(module_id)
        return seen


@dataclass(frozen=True, slots=True)
class CommitRecord:
    hash: str
    type: str
    subject: str
    scope: str | None = None
    breaking: bool = False
    body: str | None = None
    module: str | None = None

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


class Reason(StrEnum):
    COMMITS = "commits"
    CASCADE = "cascade"
    FORCED_UNCHANGED = "forced-unchanged"
    BUILD_METADATA = "build-metadata"
    ECOSYSTEM_SNAPSHOT = "ecosystem-snapshot"
    UNCHANGED = "unchanged"


@dataclass(frozen=True, slots=True)
class DependencyRule:
    """Bump a dependent module receives for a given upstream bump."""

    on_major: BumpType = BumpType.MINOR
    on_minor: BumpType = BumpType.PATCH
    on_patch: BumpType = BumpType.NONE

    def __call__(self, upstream: BumpType) -> BumpType:
        match upstream:
            case BumpType.MAJOR:
                return self.on_major
            case BumpType.MINOR:
                return self.on_minor
            case BumpType.PATCH:
                return self.on_patch
            case _:
                return BumpType.NONE


def default_commit_types() -> dict[str, CommitRule]:
    return {
        "feat": BumpType.MINOR,
        "fix": BumpType.PATCH,
        "perf": BumpType.PATCH,
        "refactor": BumpType.PATCH,
        "docs": IGNORE,
        "test": IGNORE,
        "chore": IGNORE,
        "style": IGNORE,
        "ci": IGNORE,
        "build": IGNORE,
    }


@dataclass(frozen=True, slots=True)
class Policy:
    """Validated commit-to-bump policy, consumed read-only by the engine."""

    default_bump: BumpType = BumpType.PATCH
    commit_type_bump: Mapping[str, CommitRule] = field(default_factory=default_commit_types)
    dependency_rule: DependencyRule = field(default_factory=DependencyRule)


@dataclass(slots=True)
class Decision:
    """Per-module, per-run version decision.

    Created once per module at classification time, raised by the cascade
    propagator, completed by the version computer and consumed once by the
    version manager.
    """

    module_id: str
    from_version: Version
    bump_type: BumpType = BumpType.NONE
    reason: Reason = Reason.UNCHANGED
    needs_write: bool = False
    to_version: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.module_id,
            "from": str(self.from_version),
            "to": self.to_version,
            "bumpType": str(self.bump_type),
            "reason": str(self.reason),
        }
