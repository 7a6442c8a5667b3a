"""Cascade propagation of bump obligations along ``affects`` edges.

The propagation is a FIFO worklist run to a fixed point. A module's bump type
only ever moves up the four-value order, so each module is re-queued at most
three times and the loop drains even when the graph has cycles.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable

from verse.core.result import Err, Ok, Result
from verse.engine.errors import EngineError, ModuleNotFound
from verse.engine.model import BumpType, Decision, ModuleGraph, Reason, merge_bumps

DependencyBump = Callable[[BumpType], BumpType]


def propagate(
    graph: ModuleGraph,
    decisions: list[Decision],
    rule: DependencyBump,
) -> Result[list[Decision], EngineError]:
    """Raise downstream decisions until no ``affects`` edge can raise one more.

    Mutates ``decisions`` in place and returns the same list. The worklist is
    seeded in list order (``create_decisions`` yields module-id order) and
    edges are walked in module-id order. The final bump types do not depend
    on either order.
    """
    by_id: dict[str, Decision] = {}
    for d in decisions:
        if d.module_id not in graph:
            return Err(ModuleNotFound(d.module_id, context="decision without graph node"))
        by_id[d.module_id] = d

    queue: deque[Decision] = deque(d for d in decisions if d.bump_type != BumpType.NONE)
    # Bump type each module had when its edges were last pushed.
    processed: dict[str, BumpType] = {}

    while queue:
        current = queue.popleft()
        done = processed.get(current.module_id)
        if done is not None and current.bump_type <= done:
            continue
        processed[current.module_id] = current.bump_type

        candidate = rule(current.bump_type)
        if candidate == BumpType.NONE:
            continue

        for target_id in graph.dependents_of(current.module_id):
            target = by_id.get(target_id)
            if target is None:
                return Err(ModuleNotFound(target_id, context=f"affected by {current.module_id}"))

            merged = merge_bumps(target.bump_type, candidate)
            if merged > target.bump_type or not target.needs_write:
                target.bump_type = merged
                target.reason = Reason.CASCADE
                target.needs_write = True
                queue.append(target)

    return Ok(decisions)
