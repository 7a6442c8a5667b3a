"""Engine pipeline: classify -> decide -> cascade -> compute.

All inputs must be fully materialised before ``plan_versions`` is called;
the planner performs no I/O.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from verse.core.result import Err, Ok, Result
from verse.engine.cascade import propagate
from verse.engine.classifier import classify
from verse.engine.compute import ModeFlags, compute_version, initial_reason
from verse.engine.errors import EngineError, ModuleNotFound
from verse.engine.model import BumpType, CommitRecord, Decision, ModuleGraph, Policy, Reason
from verse.engine.staging import VersionManager


@dataclass(frozen=True, slots=True)
class VersionPlan:
    decisions: tuple[Decision, ...]

    @property
    def changes(self) -> list[Decision]:
        """Decisions that must be persisted (the decision sink)."""
        return [d for d in self.decisions if d.needs_write]

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def get(self, module_id: str) -> Decision | None:
        for d in self.decisions:
            if d.module_id == module_id:
                return d
        return None


def create_decisions(
    graph: ModuleGraph,
    commits_by_module: Mapping[str, Sequence[CommitRecord]],
    policy: Policy,
    mode: ModeFlags,
) -> Result[list[Decision], EngineError]:
    """One decision per module, in module-id order, even without commits."""
    for module_id in sorted(commits_by_module):
        if module_id not in graph:
            return Err(ModuleNotFound(module_id, context="commit history"))

    decisions: list[Decision] = []
    for module in graph:
        bump = classify(commits_by_module.get(module.id, ()), policy)
        reason = initial_reason(bump, mode)
        decisions.append(
            Decision(
                module_id=module.id,
                from_version=module.version,
                bump_type=bump,
                reason=reason,
                needs_write=reason in (Reason.COMMITS, Reason.FORCED_UNCHANGED),
            )
        )
    return Ok(decisions)


def plan_versions(
    graph: ModuleGraph,
    commits_by_module: Mapping[str, Sequence[CommitRecord]],
    policy: Policy,
    mode: ModeFlags,
) -> Result[VersionPlan, EngineError]:
    created = create_decisions(graph, commits_by_module, policy, mode)
    if isinstance(created, Err):
        return created

    propagated = propagate(graph, created.value, policy.dependency_rule)
    if isinstance(propagated, Err):
        return propagated

    for decision in propagated.value:
        compute_version(decision, mode)

    return Ok(VersionPlan(decisions=tuple(propagated.value)))


def stage_plan(manager: VersionManager, plan: VersionPlan) -> Result[int, EngineError]:
    """Stage every change of ``plan``; returns how many were staged."""
    count = 0
    for decision in plan.changes:
        if decision.to_version is None:
            raise AssertionError(f"change without a computed version: {decision.module_id}")
        staged = manager.stage(decision.module_id, decision.to_version)
        if isinstance(staged, Err):
            return staged
        count += 1
    return Ok(count)


def bump_summary(plan: VersionPlan) -> dict[BumpType, int]:
    out: dict[BumpType, int] = {}
    for d in plan.changes:
        out[d.bump_type] = out.get(d.bump_type, 0) + 1
    return out
