from __future__ import annotations

from collections.abc import Iterable

from verse.engine.model import IGNORE, BumpType, CommitRecord, Policy, merge_bumps


def classify_commit(commit: CommitRecord, policy: Policy) -> BumpType:
    """Bump type contributed by a single commit."""
    if commit.breaking:
        return BumpType.MAJOR

    match policy.commit_type_bump.get(commit.type):
        case None:
            return policy.default_bump
        case BumpType() as bump:
            return bump
        case rule if rule == IGNORE:
            return BumpType.NONE
        case rule:
            raise AssertionError(f"unexpected commit rule for {commit.type!r}: {rule!r}")


def classify(commits: Iterable[CommitRecord], policy: Policy) -> BumpType:
    """Overall bump type of a module: the maximum over its commits.

    An empty commit list yields ``NONE``.
    """
    return merge_bumps(*(classify_commit(c, policy) for c in commits))
