"""Version computation: bump decision + run modes -> next version string.

The computation is a fixed pipeline of four stages, each consuming the
previous stage's output:

1. base bump        standard core increment, or implicit pre-release entry
2. pre-release      ``-<id>.0`` or increment of the trailing counter
3. snapshot         ecosystem development marker (``-SNAPSHOT``)
4. build metadata   ``+<value>``, replacing any existing build section

Every stage is exposed on its own so mode interactions can be tested in
isolation; ``compute_version`` is the only function that mutates a decision.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from verse.engine.model import BumpType, Decision, Reason
from verse.engine.semver import Version

__all__ = [
    "SNAPSHOT_SUFFIX",
    "BuildMetadataMode",
    "ModeFlags",
    "PrereleaseMode",
    "apply_base_bump",
    "apply_build_metadata",
    "apply_prerelease",
    "apply_snapshot",
    "compute_version",
    "has_snapshot",
    "initial_reason",
    "is_same_prerelease_line",
    "strip_snapshot",
    "timestamp_identifier",
]

SNAPSHOT_SUFFIX = "-SNAPSHOT"
_SNAPSHOT_MARKER = SNAPSHOT_SUFFIX[1:]


@dataclass(frozen=True, slots=True)
class PrereleaseMode:
    enabled: bool = False
    identifier: str = "alpha"


@dataclass(frozen=True, slots=True)
class BuildMetadataMode:
    enabled: bool = False
    value: str = ""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class ModeFlags:
    """Mode switches for one run.

    ``started_at`` is captured when the flags are built, so every module
    bumped in the same run shares one timestamp identifier.
    """

    prerelease: PrereleaseMode = field(default_factory=PrereleaseMode)
    build_metadata: BuildMetadataMode = field(default_factory=BuildMetadataMode)
    timestamp_identifier: bool = False
    ecosystem_snapshot: bool = False
    force_unchanged_in_prerelease: bool = False
    started_at: datetime = field(default_factory=_utc_now)

    def prerelease_identifier(self) -> str:
        if self.timestamp_identifier:
            return timestamp_identifier(self.prerelease.identifier, self.started_at)
        return self.prerelease.identifier

    @property
    def forces_unchanged(self) -> bool:
        return self.prerelease.enabled and self.force_unchanged_in_prerelease


def timestamp_identifier(base: str, at: datetime) -> str:
    """``<base>.<YYYYMMDD>.<HHMM>`` in UTC.

    Numeric identifiers may not carry leading zeros, so the time part is
    rendered as an integer (``09:05`` -> ``905``).
    """
    at = at.astimezone(timezone.utc)
    return f"{base}.{at:%Y%m%d}.{at.hour * 100 + at.minute}"


def initial_reason(bump: BumpType, mode: ModeFlags) -> Reason:
    if bump != BumpType.NONE:
        return Reason.COMMITS
    if mode.forces_unchanged:
        return Reason.FORCED_UNCHANGED
    if mode.build_metadata.enabled:
        return Reason.BUILD_METADATA
    if mode.ecosystem_snapshot:
        return Reason.ECOSYSTEM_SNAPSHOT
    return Reason.UNCHANGED


def is_same_prerelease_line(version: Version, identifier: str) -> bool:
    """True if ``version`` is ``<core>-<identifier>.<n>``.

    Identifier equality is exact: ``alpha`` and ``alpha.20260101.900`` are
    different lines.
    """
    parts = tuple(identifier.split("."))
    pre = version.prerelease
    return len(pre) == len(parts) + 1 and pre[:-1] == parts and pre[-1].isdigit()


def apply_base_bump(
    version: Version,
    bump: BumpType,
    *,
    forced: bool = False,
    identifier: str = "",
) -> Version:
    if bump != BumpType.NONE:
        return version.bump(bump)
    if not forced:
        return version
    if is_same_prerelease_line(version, identifier):
        # Stage 2 increments the counter; the core stays put.
        return version.with_build(())
    return version.bump(BumpType.PATCH)


def apply_prerelease(version: Version, identifier: str) -> Version:
    if is_same_prerelease_line(version, identifier):
        *head, counter = version.prerelease
        return Version(
            version.major,
            version.minor,
            version.patch,
            (*head, str(int(counter) + 1)),
        )
    return Version(
        version.major,
        version.minor,
        version.patch,
        (*identifier.split("."), "0"),
    )


def has_snapshot(version: Version) -> bool:
    if not version.prerelease:
        return False
    last = version.prerelease[-1]
    return last == _SNAPSHOT_MARKER or last.endswith(SNAPSHOT_SUFFIX)


def apply_snapshot(version: Version) -> Version:
    """Append the snapshot marker unless it is already there."""
    if has_snapshot(version):
        return version
    if not version.prerelease:
        return version.with_prerelease((_SNAPSHOT_MARKER,))
    *head, last = version.prerelease
    return version.with_prerelease((*head, last + SNAPSHOT_SUFFIX))


def strip_snapshot(version: Version) -> Version:
    if not has_snapshot(version):
        return version
    *head, last = version.prerelease
    if last == _SNAPSHOT_MARKER:
        return version.with_prerelease(tuple(head))
    return version.with_prerelease((*head, last.removesuffix(SNAPSHOT_SUFFIX)))


def apply_build_metadata(version: Version, value: str) -> Version:
    return version.with_build(tuple(value.split(".")))


def compute_version(decision: Decision, mode: ModeFlags) -> str:
    """Run the four stages for ``decision`` and record the result on it.

    Sets ``decision.to_version`` and flips ``decision.needs_write`` when the
    module's file has to be rewritten. Must be called after cascade
    propagation has settled.
    """
    identifier = mode.prerelease_identifier()
    forced = decision.reason == Reason.FORCED_UNCHANGED
    bumped = decision.bump_type != BumpType.NONE

    version = decision.from_version
    if mode.ecosystem_snapshot:
        version = strip_snapshot(version)

    version = apply_base_bump(version, decision.bump_type, forced=forced, identifier=identifier)

    if mode.prerelease.enabled and (bumped or forced):
        version = apply_prerelease(version, identifier)

    if mode.ecosystem_snapshot:
        version = apply_snapshot(version)

    if mode.build_metadata.enabled and mode.build_metadata.value:
        version = apply_build_metadata(version, mode.build_metadata.value)
        decision.needs_write = True

    result = str(version)
    if bumped or forced:
        decision.needs_write = True
    elif mode.ecosystem_snapshot and result != str(decision.from_version):
        decision.needs_write = True

    decision.to_version = result
    return result
