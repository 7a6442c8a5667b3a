"""Version-decision engine.

Pure, synchronous stages over in-memory data:
- model: module graph, commit records, policy and decisions
- classifier: commits -> bump type
- cascade: bump pressure along ``affects`` edges, to a fixed point
- compute: bump decision + run modes -> version string
- staging: batched write-back buffer
- planner: the stages chained together
"""

from verse.engine.bump import BumpType, merge_bumps, parse_bump
from verse.engine.cascade import propagate
from verse.engine.classifier import classify, classify_commit
from verse.engine.compute import (
    BuildMetadataMode,
    ModeFlags,
    PrereleaseMode,
    compute_version,
)
from verse.engine.errors import (
    DuplicateModule,
    EngineError,
    InvalidVersion,
    ModuleNotFound,
    WriteFailed,
)
from verse.engine.model import (
    CommitRecord,
    Decision,
    DependencyRule,
    Module,
    ModuleGraph,
    Policy,
    Reason,
)
from verse.engine.planner import VersionPlan, plan_versions, stage_plan
from verse.engine.semver import Version, compare_versions, is_valid_prerelease, parse_version
from verse.engine.staging import VersionManager, VersionWriter

__all__ = [
    # bump
    "BumpType",
    "merge_bumps",
    "parse_bump",
    # model
    "CommitRecord",
    "Decision",
    "DependencyRule",
    "Module",
    "ModuleGraph",
    "Policy",
    "Reason",
    # semver
    "Version",
    "compare_versions",
    "is_valid_prerelease",
    "parse_version",
    # stages
    "classify",
    "classify_commit",
    "propagate",
    "BuildMetadataMode",
    "ModeFlags",
    "PrereleaseMode",
    "compute_version",
    "VersionManager",
    "VersionWriter",
    "VersionPlan",
    "plan_versions",
    "stage_plan",
    # errors
    "DuplicateModule",
    "EngineError",
    "InvalidVersion",
    "ModuleNotFound",
    "WriteFailed",
]
